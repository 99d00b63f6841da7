import pytest

from conf_mock import load_mock
from constants import DAO_MS
from olybatch.utils.batch import BatchAction
from olybatch.utils.batch_helpers import encode_call
from olybatch.utils.direct_executor import DirectExecutor
from olybatch.utils.errors import DispatchError


@pytest.fixture
def operated_kernel(env, proposer):
    # kernel administered by an externally owned account instead of a Safe
    return load_mock("MockKernel", proposer.address)


def install(kernel, module):
    return BatchAction(str(kernel.address), encode_call("executeAction(uint8,address)", 0, str(module.address)))


def upgrade(kernel, module):
    return BatchAction(str(kernel.address), encode_call("executeAction(uint8,address)", 1, str(module.address)))


def test_sends_each_action_from_account(network_env, proposer, operated_kernel, mock_minter, mock_minter_v2):
    executor = DirectExecutor("http://node", proposer, network_env=network_env)
    outputs = executor.execute([install(operated_kernel, mock_minter), upgrade(operated_kernel, mock_minter_v2)])

    assert outputs == [b"", b""]
    assert operated_kernel.numActions() == 2
    assert str(operated_kernel.getModuleForKeycode(b"MINTR")) == str(mock_minter_v2.address)

    [network] = network_env.opened
    assert network.rpc == "http://node"
    assert network.accounts == [(proposer, True)]
    assert [sender for _, sender, _ in network.transactions] == [proposer.address, proposer.address]


def test_stops_at_failing_action(network_env, proposer, operated_kernel, mock_minter, mock_minter_v2):
    actions = [
        install(operated_kernel, mock_minter),
        install(operated_kernel, mock_minter_v2),  # module exists
        upgrade(operated_kernel, mock_minter_v2),
    ]

    with pytest.raises(DispatchError, match="action 2 of 3"):
        DirectExecutor("http://node", proposer, network_env=network_env).execute(actions)

    [network] = network_env.opened
    assert len(network.transactions) == 2
    assert operated_kernel.numActions() == 1
    assert str(operated_kernel.getModuleForKeycode(b"MINTR")) == str(mock_minter.address)


def test_account_must_be_allowed(network_env, proposer, mock_kernel, mock_minter):
    # the DAO MS administers this kernel, the account cannot act on it
    with pytest.raises(DispatchError, match="action 1 of 1"):
        DirectExecutor("http://node", proposer, network_env=network_env).execute([install(mock_kernel, mock_minter)])

    assert str(mock_kernel.executor()) == DAO_MS
    assert mock_kernel.numActions() == 0


def test_local_account_signs_transactions(proposer):
    signed = proposer.sign_transaction({
        "to": DAO_MS,
        "value": 0,
        "gas": 100000,
        "gasPrice": 1000000000,
        "nonce": 0,
        "chainId": 1,
        "data": "0x",
    })
    assert len(signed.raw_transaction) > 0
