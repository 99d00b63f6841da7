import atexit
from functools import cached_property

import hid
from ledgerblue.comm import HIDDongleHIDAPI, getDongle
from ledgereth.accounts import get_account_by_path
from ledgereth.messages import sign_typed_data_draft
from ledgereth.transactions import create_transaction
from hexbytes import HexBytes


def get_dongle(debug: bool = False, reopen_on_fail: bool = True) -> HIDDongleHIDAPI:
    """
    Get Ledger dongle with proper error handling and reconnection logic.
    """
    try:
        return getDongle(debug=debug)
    except (OSError, RuntimeError) as err:
        if str(err).lower().strip() in ("open failed", "already open") and reopen_on_fail:
            # Device was not closed properly.
            device = hid.device()
            device.close()
            return get_dongle(debug=debug, reopen_on_fail=False)
        raise


class LedgerAccount:
    """
    Proposer backed by a Ledger. Safe transactions are signed on the device
    as EIP-712 typed data (domain separator + SafeTx struct hash), so the
    signer can check both hashes against the ones printed by the batch.
    """

    def __init__(self, mnemonic_index=0):
        self.mnemonic_index = mnemonic_index
        self._sender_path = f"44'/60'/0'/0/{self.mnemonic_index}"
        print("🔗 Connecting to Ledger device...")
        self.address = get_account_by_path(self._sender_path, dongle=self.dongle).address
        print(f"🔗 Connected to Ledger: {self.address}")

    @cached_property
    def dongle(self):
        device = get_dongle()

        def close():
            print("🔗 Closing Ledger device connection.")
            device.close()

        atexit.register(close)
        return device

    def sign_safe_tx(self, domain_separator, struct_hash):
        print("🔑 Confirm the Safe transaction on your Ledger...")
        print(f"   Domain hash:  0x{domain_separator.hex()}")
        print(f"   Message hash: 0x{struct_hash.hex()}")
        signed = sign_typed_data_draft(
            "0x" + domain_separator.hex(),
            "0x" + struct_hash.hex(),
            sender_path=self._sender_path,
            dongle=self.dongle,
        )
        print("✅ Signed on Ledger!")
        return signed.r.to_bytes(32, "big") + signed.s.to_bytes(32, "big") + bytes([signed.v])

    def sign_transaction(self, tx_data):
        """
        Signs a transaction on the device for titanoboa to broadcast, used when
        a batch is executed without a multisig.
        """

        def to_int(val):
            if isinstance(val, str) and val.startswith("0x"):
                return int(val, 16)
            return val

        params = {
            "destination": tx_data.get("to", b""),
            "amount": to_int(tx_data.get("value", 0)),
            "gas": to_int(tx_data.get("gas", 21000)),
            "nonce": to_int(tx_data.get("nonce", 0)),
            "data": tx_data.get("data", ""),
            "chain_id": to_int(tx_data.get("chainId", 1)),
            "sender_path": self._sender_path,
            "dongle": self.dongle,
        }
        if "maxPriorityFeePerGas" in tx_data and "maxFeePerGas" in tx_data:
            params["max_priority_fee_per_gas"] = to_int(tx_data["maxPriorityFeePerGas"])
            params["max_fee_per_gas"] = to_int(tx_data["maxFeePerGas"])
        else:
            params["gas_price"] = to_int(tx_data.get("gasPrice", 20000000000))

        print("🔑 Confirm the transaction on your Ledger...")
        signed_tx = create_transaction(**params)
        print("✅ Signed on Ledger!")

        class SignedTx:
            def __init__(self, raw_transaction):
                self.raw_transaction = HexBytes(raw_transaction)

        return SignedTx(signed_tx.rawTransaction)

    def __repr__(self):
        return f"LedgerAccount(address={self.address}, index={self.mnemonic_index})"
