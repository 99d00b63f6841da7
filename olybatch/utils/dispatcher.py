from olybatch.utils import log
from olybatch.utils.batch import Batch
from olybatch.utils.direct_executor import DirectExecutor
from olybatch.utils.dispatch_args import DispatchArgs
from olybatch.utils.errors import ConfigurationError
from olybatch.utils.safe_account import SafeAccount
from olybatch.utils.tenderly import TenderlyVnet


class Dispatcher:
    """
    Flushes a batch: simulates it (dry run), proposes it to the Safe of its
    signer, replays it on a Tenderly virtual testnet, or sends it directly
    from the operator's account when no multisig is involved.
    """

    def __init__(self, session=None, tenderly=None, open_browser=False, executor_factory=None):
        self.session = session
        self.tenderly = tenderly
        self.open_browser = open_browser
        # builds the executor for (rpc, account) in direct mode
        self.executor_factory = executor_factory or DirectExecutor

    def execute_batch(self, batch: Batch, dispatch_args: DispatchArgs):
        if batch.chain != dispatch_args.chain:
            raise ConfigurationError(
                f"Batch targets {batch.chain} but the run targets {dispatch_args.chain}"
            )
        if len(batch) == 0:
            log.h2("Nothing to do: every step is already in place, nothing submitted")
            return ()

        target = batch.signer.label if dispatch_args.multisig else batch.sender
        log.h1(f"Executing batch of {len(batch)} actions for {target} ({dispatch_args.mode})")

        if not dispatch_args.send:
            return self.dry_run(batch)
        if not dispatch_args.multisig:
            return self.execute_directly(batch, dispatch_args.proposer, dispatch_args.rpc)
        if dispatch_args.testnet:
            return self.execute_on_testnet(batch)
        return self.propose_batch(batch, dispatch_args.proposer)

    def dry_run(self, batch: Batch):
        simulated = batch.simulate_pending()
        if simulated:
            log.h3(f"Simulated {simulated} actions not simulated while queueing")

        for index, (action, result) in enumerate(zip(batch.actions, batch.results)):
            log.action(index + 1, action, result)

        log.h2(f"Dry run complete: {len(batch)} actions simulated, nothing submitted")
        return batch.results

    def propose_batch(self, batch: Batch, proposer):
        if proposer is None:
            raise ConfigurationError("A proposer account is required to propose a batch")

        safe = SafeAccount(
            batch.sender,
            batch.chain,
            proposer,
            session=self.session,
            open_browser=self.open_browser,
        )
        proposal = safe.propose_batch(list(batch.actions))
        log.h2(f"Proposed {proposal.action_count} actions to {batch.signer.label} {batch.sender} with nonce {proposal.nonce}")
        return proposal

    def execute_on_testnet(self, batch: Batch):
        tenderly = self.tenderly or TenderlyVnet.from_environment(session=self.session)
        responses = tenderly.replay(list(batch.actions), batch.sender)
        log.h2(f"Executed {len(responses)} actions on testnet")
        return responses

    def execute_directly(self, batch: Batch, account, rpc):
        if account is None:
            raise ConfigurationError("An account is required to execute a batch without a multisig")
        if not rpc:
            raise ConfigurationError("An RPC URL is required to execute a batch without a multisig")
        # the batch was simulated as this account
        if account.address.lower() != batch.sender.lower():
            raise ConfigurationError(
                f"Batch was simulated as {batch.sender} but would be sent from {account.address}"
            )

        outputs = self.executor_factory(rpc, account).execute(list(batch.actions))
        log.h2(f"Executed {len(outputs)} actions from {account.address}")
        return outputs
