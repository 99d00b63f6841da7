import pytest

from conf_mock import MockResponse
from constants import DAO_MS, HEART, KERNEL, MINTER
from olybatch.utils.batch import Batch, BatchAction, Signer
from olybatch.utils.batch_helpers import encode_multisend
from olybatch.utils.dispatch_args import DispatchArgs
from olybatch.utils.dispatcher import Dispatcher
from olybatch.utils.errors import ConfigurationError, DispatchError
from olybatch.utils.safe_account import Proposal
from olybatch.utils.tenderly import TenderlyVnet


@pytest.fixture
def batch(simulator):
    batch = Batch(Signer.DAO, "mainnet", DAO_MS, simulator)
    batch.add_call(KERNEL, "executeAction(uint8,address)", 0, MINTER)
    batch.add_call(HEART, "beat()")
    return batch


def test_dispatch_args_mode(proposer):
    assert DispatchArgs("mainnet").mode == "dry run"
    assert DispatchArgs("mainnet", send=True, testnet=True).mode == "testnet replay"
    assert DispatchArgs("mainnet", send=True, proposer=proposer).mode == "proposal"
    assert DispatchArgs("mainnet", send=True, proposer=proposer, multisig=False).mode == "direct execution"
    assert DispatchArgs("mainnet", proposer=proposer, multisig=False).mode == "dry run"
    assert "send=True" in repr(DispatchArgs("mainnet", send=True, proposer=proposer))


def test_dry_run_makes_no_requests(session, simulator, batch):
    results = Dispatcher(session=session).execute_batch(batch, DispatchArgs("mainnet"))

    assert session.requests == []
    assert len(results) == 2
    # already simulated while queueing, not simulated twice
    assert [index for index, _ in simulator.simulated] == [0, 1]


def test_dry_run_simulates_pending(session, simulator):
    batch = Batch(Signer.DAO, "mainnet", DAO_MS, simulator)
    batch.record_for_submission(BatchAction(HEART, b"\x01"))
    batch.record_for_submission(BatchAction(KERNEL, b"\x02"))

    results = Dispatcher(session=session).execute_batch(batch, DispatchArgs("mainnet"))

    assert None not in results
    assert [action.to for _, action in simulator.simulated] == [HEART, KERNEL]


def test_proposal_is_one_post_with_all_actions(safe_service, proposer, batch):
    dispatcher = Dispatcher(session=safe_service)
    proposal = dispatcher.execute_batch(batch, DispatchArgs("mainnet", send=True, proposer=proposer))

    assert isinstance(proposal, Proposal)
    assert proposal.action_count == 2

    posts = safe_service.requests_for("POST")
    assert len(posts) == 1
    assert posts[0][2]["json"]["data"] == "0x" + encode_multisend(batch.actions).hex()


def test_proposal_needs_proposer(safe_service, batch):
    with pytest.raises(ConfigurationError, match="proposer"):
        Dispatcher(session=safe_service).execute_batch(batch, DispatchArgs("mainnet", send=True))
    assert safe_service.requests == []


def test_testnet_replays_each_action(session, batch):
    session.respond("POST", "/transactions", MockResponse(200, {"id": "tx"}))
    tenderly = TenderlyVnet("olympus", "governance", "vnet-1", "secret", session=session)

    responses = Dispatcher(session=session, tenderly=tenderly).execute_batch(
        batch, DispatchArgs("mainnet", send=True, testnet=True)
    )

    assert len(responses) == 2
    senders = [kwargs["json"]["callArgs"]["from"] for _, _, kwargs in session.requests]
    assert senders == [DAO_MS, DAO_MS]


def test_testnet_aborts_at_failing_action(session, simulator):
    batch = Batch(Signer.DAO, "mainnet", DAO_MS, simulator)
    for _ in range(4):
        batch.add_call(HEART, "beat()")

    session.respond(
        "POST", "/transactions",
        MockResponse(200, {"id": "tx-1"}),
        MockResponse(200, {"id": "tx-2"}),
        MockResponse(500, text="internal error"),
    )
    tenderly = TenderlyVnet("olympus", "governance", "vnet-1", "secret", session=session)

    with pytest.raises(DispatchError, match="action 3 of 4"):
        Dispatcher(tenderly=tenderly).execute_batch(batch, DispatchArgs("mainnet", send=True, testnet=True))
    assert len(session.requests) == 3


def test_testnet_reads_environment(monkeypatch, session, batch):
    monkeypatch.delenv("TENDERLY_VNET_ID", raising=False)
    with pytest.raises(ConfigurationError, match="TENDERLY_VNET_ID"):
        Dispatcher(session=session).execute_batch(batch, DispatchArgs("mainnet", send=True, testnet=True))


def test_empty_batch_is_a_no_op(session, simulator, proposer):
    batch = Batch(Signer.DAO, "mainnet", DAO_MS, simulator)
    dispatcher = Dispatcher(session=session)

    assert dispatcher.execute_batch(batch, DispatchArgs("mainnet")) == ()
    assert dispatcher.execute_batch(batch, DispatchArgs("mainnet", send=True, proposer=proposer)) == ()
    assert dispatcher.execute_batch(batch, DispatchArgs("mainnet", send=True, testnet=True)) == ()
    assert session.requests == []
    assert simulator.simulated == []


def test_chain_mismatch(session, batch):
    with pytest.raises(ConfigurationError, match="sepolia"):
        Dispatcher(session=session).execute_batch(batch, DispatchArgs("sepolia"))


class MockExecutor:
    def __init__(self, rpc, account):
        self.rpc = rpc
        self.account = account
        self.executed = []

    def execute(self, actions):
        self.executed.extend(actions)
        return [b""] * len(actions)


@pytest.fixture
def executors():
    created = []

    def factory(rpc, account):
        executor = MockExecutor(rpc, account)
        created.append(executor)
        return executor

    factory.created = created
    return factory


def test_direct_execution_sends_from_account(session, simulator, proposer, executors):
    batch = Batch(Signer.DAO, "mainnet", proposer.address, simulator)
    batch.add_call(KERNEL, "executeAction(uint8,address)", 0, MINTER)
    batch.add_call(HEART, "beat()")

    outputs = Dispatcher(session=session, executor_factory=executors).execute_batch(
        batch, DispatchArgs("mainnet", send=True, proposer=proposer, rpc="http://node", multisig=False)
    )

    assert len(outputs) == 2
    assert session.requests == []
    [executor] = executors.created
    assert executor.rpc == "http://node"
    assert executor.account is proposer
    assert executor.executed == list(batch.actions)


def test_direct_execution_refuses_other_sender(session, proposer, batch, executors):
    # batch was simulated as the DAO MS, not the account
    with pytest.raises(ConfigurationError, match="simulated as"):
        Dispatcher(session=session, executor_factory=executors).execute_batch(
            batch, DispatchArgs("mainnet", send=True, proposer=proposer, rpc="http://node", multisig=False)
        )
    assert executors.created == []


def test_direct_execution_needs_account_and_rpc(session, simulator, proposer, executors):
    batch = Batch(Signer.DAO, "mainnet", proposer.address, simulator)
    batch.add_call(HEART, "beat()")
    dispatcher = Dispatcher(session=session, executor_factory=executors)

    with pytest.raises(ConfigurationError, match="account"):
        dispatcher.execute_batch(batch, DispatchArgs("mainnet", send=True, rpc="http://node", multisig=False))
    with pytest.raises(ConfigurationError, match="RPC"):
        dispatcher.execute_batch(batch, DispatchArgs("mainnet", send=True, proposer=proposer, multisig=False))
    assert executors.created == []
