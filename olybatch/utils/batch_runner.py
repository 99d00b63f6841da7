import importlib.util
import os

from olybatch.utils import log
from olybatch.utils.args_file import ArgsFile
from olybatch.utils.batch import Batch
from olybatch.utils.dispatch_args import DispatchArgs
from olybatch.utils.dispatcher import Dispatcher
from olybatch.utils.env_file import EnvFile
from olybatch.utils.errors import BatchError, ConfigurationError


class BatchRunner:
    """
    Facilitates the execution of batch scripts.

    A batch script is a module in `batches_dir` exposing plain functions
    tagged with the signer they run as (`@dao_batch`, `@policy_batch`,
    `@emergency_batch`). Each entry point receives the batch, the environment
    file and the argument file, and queues actions on the batch.
    """

    def __init__(self, batches_dir, env_path, dispatcher=None, simulator_factory=None):
        self.batches_dir = batches_dir
        self.env_path = env_path
        self.dispatcher = dispatcher or Dispatcher()
        # builds the simulator for a given sender address, None disables simulation
        self.simulator_factory = simulator_factory

    def run(self, dispatch_args: DispatchArgs, contract, function, args_path=None):
        """
        Runs `contract.function` once and dispatches the resulting batch.
        Any failure aborts the run and is raised as `BatchError`.
        """
        log.h1(f"Running batch {contract}.{function} on {dispatch_args.chain}...")
        try:
            entry_point = self.entry_point(contract, function)
            env = EnvFile.load(self.env_path, dispatch_args.chain)
            args = ArgsFile.load(args_path)

            sender = self.sender(entry_point.signer, env, dispatch_args)
            simulator = self.simulator_factory(sender) if self.simulator_factory else None
            batch = Batch(entry_point.signer, dispatch_args.chain, sender, simulator)

            entry_point(batch, env, args)
            return self.dispatcher.execute_batch(batch, dispatch_args)
        except Exception as exception:
            raise BatchError(contract, function) from exception

    def sender(self, signer, env, dispatch_args: DispatchArgs):
        if dispatch_args.multisig:
            safe_address = env.get_address_not_zero(signer.env_key)
            log.info(f"{signer.label}: {safe_address}")
            return safe_address

        if dispatch_args.proposer is None:
            raise ConfigurationError("An account is required to run a batch without a multisig")
        log.info(f"Sender (no multisig): {dispatch_args.proposer.address}")
        return dispatch_args.proposer.address

    def entry_point(self, contract, function):
        module = self._load_module(contract)
        entry_point = getattr(module, function, None)
        if entry_point is None or not callable(entry_point):
            raise ConfigurationError(f"Batch {contract} has no entry point {function}")
        if not hasattr(entry_point, "signer"):
            raise ConfigurationError(
                f"{contract}.{function} is not a batch entry point (missing signer decorator)"
            )
        return entry_point

    def entry_points(self, contract):
        module = self._load_module(contract)
        return sorted(
            name for name, value in vars(module).items()
            if callable(value) and hasattr(value, "signer") and getattr(value, "__module__", None) == module.__name__
        )

    def contracts(self):
        return sorted(
            file[:-3] for file in os.listdir(self.batches_dir)
            if file.endswith(".py") and not file.startswith("_")
        )

    def _load_module(self, contract):
        filename = os.path.join(self.batches_dir, f"{contract}.py")
        if not os.path.exists(filename):
            raise ConfigurationError(f"No batch script {filename}")

        spec = importlib.util.spec_from_file_location(f"batches.{contract}", filename)
        module = importlib.util.module_from_spec(spec)
        spec.loader.exec_module(module)
        return module
