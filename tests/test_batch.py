import pytest
from eth_abi import encode
from eth_utils import function_signature_to_4byte_selector

from constants import DAO_MS, HEART, KERNEL, MINTER, ROLES
from conf_mock import MockSimulator
from olybatch.utils.batch import (Batch, BatchAction, Signer, dao_batch, emergency_batch,
                                  policy_batch)
from olybatch.utils.batch_helpers import encode_call
from olybatch.utils.errors import ConfigurationError, SimulationError


def test_signer_env_keys():
    assert Signer.DAO.env_key == "olympus.multisig.dao"
    assert Signer.POLICY.env_key == "olympus.multisig.policy"
    assert Signer.EMERGENCY.env_key == "olympus.multisig.emergency"
    assert Signer.EMERGENCY.label == "Emergency MS"


def test_entry_point_decorators():
    @dao_batch
    def a(batch, env, args):
        pass

    @policy_batch
    def b(batch, env, args):
        pass

    @emergency_batch
    def c(batch, env, args):
        pass

    assert a.signer is Signer.DAO
    assert b.signer is Signer.POLICY
    assert c.signer is Signer.EMERGENCY


def test_batch_action_normalizes():
    action = BatchAction(KERNEL.lower(), "0x12345678ab")
    assert action.to == KERNEL
    assert action.data == bytes.fromhex("12345678ab")
    assert action.selector == "0x12345678"


def test_batch_action_rejects_bad_destination():
    with pytest.raises(ConfigurationError):
        BatchAction("olympus.Kernel", b"")
    with pytest.raises(ConfigurationError):
        BatchAction(None, b"")


def test_actions_keep_insertion_order(simulator):
    batch = Batch(Signer.DAO, "mainnet", DAO_MS, simulator)

    batch.add_call(KERNEL, "executeAction(uint8,address)", 0, MINTER)
    batch.add_call(HEART, "beat()")
    batch.add_to_batch(ROLES, b"\xde\xad\xbe\xef")

    assert len(batch) == 3
    assert [action.to for action in batch.actions] == [KERNEL, HEART, ROLES]
    assert batch.actions[0].data == encode_call("executeAction(uint8,address)", 0, MINTER)
    assert batch.actions[1].selector == "0x" + function_signature_to_4byte_selector("beat()").hex()

    # simulated as queued, each with its own position
    assert [index for index, _ in simulator.simulated] == [0, 1, 2]
    assert batch.results == tuple(encode(["uint256"], [i]) for i in (1, 2, 3))


def test_signer_and_chain_fixed(simulator):
    batch = Batch(Signer.EMERGENCY, "sepolia", DAO_MS.lower(), simulator)
    batch.add_call(HEART, "beat()")

    assert batch.signer is Signer.EMERGENCY
    assert batch.chain == "sepolia"
    assert batch.sender == DAO_MS
    with pytest.raises(AttributeError):
        batch.signer = Signer.DAO


def test_add_to_batch_returns_output(simulator):
    batch = Batch(Signer.DAO, "mainnet", DAO_MS, simulator)
    assert batch.add_to_batch(HEART, b"") == encode(["uint256"], [1])


def test_simulate_does_not_queue(simulator):
    batch = Batch(Signer.DAO, "mainnet", DAO_MS, simulator)
    output = batch.simulate(BatchAction(HEART, b""))

    assert output == encode(["uint256"], [1])
    assert len(batch) == 0


def test_record_without_simulation():
    batch = Batch(Signer.DAO, "mainnet", DAO_MS)
    assert batch.add_call(HEART, "beat()") is None
    assert batch.results == (None,)


def test_simulate_pending_only_runs_unsimulated(simulator):
    batch = Batch(Signer.DAO, "mainnet", DAO_MS, simulator)
    batch.add_call(HEART, "beat()")
    batch.record_for_submission(BatchAction(KERNEL, b"\x01"))
    batch.record_for_submission(BatchAction(ROLES, b"\x02"))

    assert batch.simulate_pending() == 2
    assert [index for index, _ in simulator.simulated] == [0, 1, 2]
    assert None not in batch.results

    assert batch.simulate_pending() == 0


def test_simulate_pending_needs_simulator():
    batch = Batch(Signer.DAO, "mainnet", DAO_MS)
    batch.add_call(HEART, "beat()")
    with pytest.raises(ConfigurationError):
        batch.simulate_pending()


def test_failed_simulation_is_not_queued():
    simulator = MockSimulator(DAO_MS, reverts={1})
    batch = Batch(Signer.DAO, "mainnet", DAO_MS, simulator)
    batch.add_call(HEART, "beat()")

    with pytest.raises(SimulationError) as error:
        batch.add_call(KERNEL, "executeAction(uint8,address)", 0, MINTER)

    assert error.value.index == 1
    assert "Action 2 to" in str(error.value)
    assert len(batch) == 1


def test_call_reads_without_queueing():
    selector = "0x" + function_signature_to_4byte_selector("isActive()").hex()
    simulator = MockSimulator(DAO_MS, reads={(HEART, selector): encode(["bool"], [True])})
    batch = Batch(Signer.DAO, "mainnet", DAO_MS, simulator)

    assert batch.call(HEART, "isActive()", returns=["bool"]) is True
    assert batch.call(HEART, "isActive()") == encode(["bool"], [True])
    assert len(batch) == 0
    assert simulator.simulated == []
    assert len(simulator.calls) == 2


def test_call_needs_simulator():
    batch = Batch(Signer.DAO, "mainnet", DAO_MS)
    with pytest.raises(ConfigurationError, match="without a simulation fork"):
        batch.call(HEART, "isActive()", returns=["bool"])
