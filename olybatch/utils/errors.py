class ConfigurationError(Exception):
    """
    A key is missing from the environment or argument document, has the
    wrong type, or resolves to the zero address where a contract is required.
    """


class PreconditionError(Exception):
    """
    An on-chain state a batch relies on does not hold.
    """


class SimulationError(Exception):
    """
    An action reverted while being executed against the simulation fork.
    """

    def __init__(self, index, action, message="Action reverted during simulation"):
        self.index = index
        self.action = action
        self.message = message
        super().__init__(self.message)

    def __str__(self):
        if self.index < 0:
            return f"{self.message}. Call to {self.action.to}"
        return f"{self.message}. Action {self.index + 1} to {self.action.to}"


class DispatchError(Exception):
    """
    The proposal service or the testnet endpoint rejected the batch.
    """


class BatchError(Exception):
    """
    Error representing an exception that occurs while running a batch.
    Provides the `contract` and `function` of the failing entry point so the
    operator knows which batch to re-verify before running it again.
    """

    def __init__(
        self, contract, function, message="An error occurred while running batch"
    ):
        self.contract = contract
        self.function = function
        self.message = message
        super().__init__(self.message)

    def __str__(self):
        return f"{self.message}. Failed entry point: {self.contract}.{self.function}"
