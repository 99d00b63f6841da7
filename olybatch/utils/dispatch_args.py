class DispatchArgs:
    """
    Options for one batch run. Passed explicitly to the runner and the
    dispatcher; nothing about the signer or the mode lives in module state.

    With `multisig` off the batch is simulated and sent as `proposer` itself
    instead of going through the signer's Safe.
    """

    def __init__(self, chain, send=False, testnet=False, proposer=None, rpc=None, multisig=True):
        self.chain = chain
        self.send = send
        self.testnet = testnet
        self.proposer = proposer
        self.rpc = rpc
        self.multisig = multisig

    @property
    def mode(self):
        if not self.send:
            return "dry run"
        if not self.multisig:
            return "direct execution"
        return "testnet replay" if self.testnet else "proposal"

    def __repr__(self):
        proposer = self.proposer.address if self.proposer else None
        return (
            f"DispatchArgs(chain={self.chain}, send={self.send}, testnet={self.testnet}, "
            f"multisig={self.multisig}, proposer={proposer}, rpc={self.rpc})"
        )
