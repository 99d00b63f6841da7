import boa

from olybatch.utils import log
from olybatch.utils.errors import SimulationError


class ForkSimulator:
    """
    Executes batch actions against the active titanoboa environment (a
    `boa.fork` of the target chain when run from the CLI). State changes
    persist in the environment, so each action sees the effects of the ones
    simulated before it. Reads made with `call` leave the environment as it was.
    """

    def __init__(self, sender):
        self.sender = sender
        self.simulated = 0

    def simulate(self, action, index):
        try:
            computation = boa.env.raw_call(
                to_address=action.to,
                sender=self.sender,
                data=action.data,
            )
        except Exception as exception:
            log.error(f"\tAction {index + 1} reverted: {exception}")
            raise SimulationError(index, action) from exception

        self.simulated += 1
        output = bytes(computation.output or b"")
        log.h3(f"Simulated action {index + 1} ({len(output)} bytes returned)")
        return output

    def call(self, action):
        # state changes made by a read are discarded
        try:
            computation = boa.env.raw_call(
                to_address=action.to,
                sender=self.sender,
                data=action.data,
                simulate=True,
            )
        except Exception as exception:
            raise SimulationError(-1, action, "Read reverted on simulation fork") from exception
        return bytes(computation.output or b"")
