import boa

from olybatch.utils import log
from olybatch.utils.errors import DispatchError


class DirectExecutor:
    """
    Broadcasts batch actions one by one from an externally owned account,
    for deployments that are not administered by a multisig.

    Transactions go through titanoboa's network environment, the same way
    deployments are broadcast, so the account only needs `address` and
    `sign_transaction`.
    """

    def __init__(self, rpc, account, network_env=None):
        self.rpc = rpc
        self.account = account
        # context manager factory opening the network environment for `rpc`
        self.network_env = network_env or boa.set_network_env

    def execute(self, actions):
        """
        Sends every action as its own transaction and returns the return data
        of each. Stops at the first failure; the actions after it are never sent.
        """
        outputs = []
        with self.network_env(self.rpc) as env:
            env.add_account(self.account, force_eoa=True)
            for index, action in enumerate(actions):
                log.h3(f"Sending action {index + 1} of {len(actions)} to {action.to} from {self.account.address}")
                try:
                    computation = env.raw_call(
                        to_address=action.to,
                        sender=self.account.address,
                        data=action.data,
                    )
                except Exception as exception:
                    log.error(f"\tAction {index + 1} failed: {exception}")
                    raise DispatchError(
                        f"Direct execution failed at action {index + 1} of {len(actions)}: {exception}"
                    ) from exception
                outputs.append(bytes(computation.output or b""))
        return outputs
