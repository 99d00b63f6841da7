from dataclasses import dataclass
from enum import Enum

from eth_utils import is_hex_address, to_checksum_address
from hexbytes import HexBytes

from olybatch.utils import log
from olybatch.utils.batch_helpers import decode_output, encode_call
from olybatch.utils.errors import ConfigurationError


class Signer(Enum):
    DAO = "dao"
    POLICY = "policy"
    EMERGENCY = "emergency"

    @property
    def env_key(self):
        return f"olympus.multisig.{self.value}"

    @property
    def label(self):
        return f"{self.name.capitalize()} MS"


@dataclass(frozen=True)
class BatchAction:
    to: str
    data: bytes

    def __post_init__(self):
        if not isinstance(self.to, str) or not is_hex_address(self.to):
            raise ConfigurationError(f"Invalid action destination: {self.to!r}")
        object.__setattr__(self, "to", to_checksum_address(self.to))
        object.__setattr__(self, "data", bytes(HexBytes(self.data)))

    @property
    def selector(self):
        return "0x" + self.data[:4].hex()


def batch_entry_point(signer):
    """
    Marks a plain function as a batch entry point submitted by `signer`.
    The function is called as `fn(batch, env, args)`.
    """

    def decorator(fn):
        fn.signer = signer
        return fn

    return decorator


dao_batch = batch_entry_point(Signer.DAO)
policy_batch = batch_entry_point(Signer.POLICY)
emergency_batch = batch_entry_point(Signer.EMERGENCY)


class Batch:
    """
    Ordered list of actions to be executed by one sender on one chain. The
    sender is the Safe of the signer, or the operator's own account when the
    batch is executed without a multisig.

    Each `add_to_batch` both simulates the action against the fork (so later
    steps can read its effects) and records it for submission. Nothing is
    submitted until the dispatcher runs.
    """

    def __init__(self, signer: Signer, chain, sender, simulator=None):
        self._signer = signer
        self._chain = chain
        self._sender = to_checksum_address(sender)
        self._simulator = simulator
        self._actions = []
        # return data per action, None until the action has been simulated
        self._results = []

    @property
    def signer(self):
        return self._signer

    @property
    def chain(self):
        return self._chain

    @property
    def sender(self):
        return self._sender

    @property
    def simulator(self):
        return self._simulator

    @property
    def actions(self):
        return tuple(self._actions)

    @property
    def results(self):
        return tuple(self._results)

    @property
    def log(self):
        return log

    def __len__(self):
        return len(self._actions)

    def simulate(self, action: BatchAction):
        """
        Executes the action on the simulation fork as the sender and returns
        the raw return data. Does not queue the action.
        """
        if self._simulator is None:
            return None
        return self._simulator.simulate(action, len(self._actions))

    def record_for_submission(self, action: BatchAction, result=None):
        self._actions.append(action)
        self._results.append(result)
        log.action(len(self._actions), action, result)

    def add_to_batch(self, to, data):
        action = BatchAction(to, data)
        output = self.simulate(action)
        self.record_for_submission(action, output)
        return output

    def add_call(self, to, signature, *args):
        log.h2(f"{signature} on {to}")
        return self.add_to_batch(to, encode_call(signature, *args))

    def call(self, to, signature, *args, returns=None):
        """
        Reads from the simulation fork without queueing anything, e.g. to
        skip an action whose effect is already in place.
        """
        if self._simulator is None:
            raise ConfigurationError(f"Cannot read {signature} without a simulation fork")
        output = self._simulator.call(BatchAction(to, encode_call(signature, *args)))
        if returns is None:
            return output
        return decode_output(returns, output)

    def simulate_pending(self):
        """
        Simulates, in order, every recorded action that has not been
        simulated yet. Returns the number of actions simulated.
        """
        if self._simulator is None:
            raise ConfigurationError("A simulation fork is required to simulate the batch")
        count = 0
        for index, action in enumerate(self._actions):
            if self._results[index] is not None:
                continue
            self._results[index] = self._simulator.simulate(action, index)
            count += 1
        return count
