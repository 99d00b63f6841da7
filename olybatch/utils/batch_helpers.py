import os

from eth_abi import decode, encode
from eth_abi.packed import encode_packed
from eth_account import Account
from eth_utils import function_signature_to_4byte_selector, keccak, to_checksum_address
from web3 import Web3

from config.Chains import CHAIN_IDS, MULTISEND_CALL_ONLY, SafeOperation, ZERO_ADDRESS
from olybatch.utils import log
from olybatch.utils.errors import ConfigurationError


DOMAIN_SEPARATOR_TYPEHASH = keccak(
    text="EIP712Domain(uint256 chainId,address verifyingContract)"
)
SAFE_TX_TYPEHASH = keccak(
    text="SafeTx(address to,uint256 value,bytes data,uint8 operation,uint256 safeTxGas,"
    "uint256 baseGas,uint256 gasPrice,address gasToken,address refundReceiver,uint256 nonce)"
)


def split_types(params):
    """
    Splits the parameter list of a function signature on top-level commas so
    tuple types like `(address,uint256)[]` stay intact.
    """
    types = []
    depth = 0
    current = ""
    for char in params:
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
        if char == "," and depth == 0:
            types.append(current.strip())
            current = ""
        else:
            current += char
    if current.strip():
        types.append(current.strip())
    return types


def signature_types(signature):
    if "(" not in signature or not signature.endswith(")"):
        raise ValueError(f"Invalid function signature: {signature}")
    return split_types(signature[signature.index("(") + 1:-1])


def encode_call(signature, *args):
    """
    ABI-encodes a call from a canonical signature, e.g.
    `encode_call("grantRole(bytes32,address)", role, wallet)`.
    """
    types = signature_types(signature)
    if len(types) != len(args):
        raise ValueError(f"{signature} expects {len(types)} arguments, got {len(args)}")
    return function_signature_to_4byte_selector(signature) + encode(types, list(args))


def decode_output(types, output):
    values = decode(types, bytes(output))
    return values[0] if len(values) == 1 else values


def to_bytes32(text):
    # right-padded like `bytes32("heart")`
    raw = text.encode()
    if len(raw) > 32:
        raise ValueError(f"{text!r} does not fit in bytes32")
    return raw.ljust(32, b"\x00")


def encode_multisend(actions):
    """
    Packs the actions into a `multiSend(bytes)` call for MultiSendCallOnly.
    Each entry is operation (uint8), to (address), value (uint256),
    data length (uint256) and data, tightly packed.
    """
    transactions = b"".join(
        encode_packed(
            ["uint8", "address", "uint256", "uint256", "bytes"],
            [int(SafeOperation.CALL), action.to, 0, len(action.data), action.data],
        )
        for action in actions
    )
    return encode_call("multiSend(bytes)", transactions)


def safe_transaction(actions):
    # a single action is proposed as a plain call, more go through MultiSend
    if len(actions) == 1:
        return {
            "to": actions[0].to,
            "value": 0,
            "data": actions[0].data,
            "operation": int(SafeOperation.CALL),
        }
    return {
        "to": to_checksum_address(MULTISEND_CALL_ONLY),
        "value": 0,
        "data": encode_multisend(actions),
        "operation": int(SafeOperation.DELEGATECALL),
    }


def safe_domain_separator(chain_id, safe_address):
    return keccak(
        encode(
            ["bytes32", "uint256", "address"],
            [DOMAIN_SEPARATOR_TYPEHASH, chain_id, safe_address],
        )
    )


def safe_tx_struct_hash(safe_tx, nonce):
    return keccak(
        encode(
            ["bytes32", "address", "uint256", "bytes32", "uint8", "uint256",
             "uint256", "uint256", "address", "address", "uint256"],
            [
                SAFE_TX_TYPEHASH,
                safe_tx["to"],
                safe_tx["value"],
                keccak(safe_tx["data"]),
                safe_tx["operation"],
                0,  # safeTxGas
                0,  # baseGas
                0,  # gasPrice
                ZERO_ADDRESS,  # gasToken
                ZERO_ADDRESS,  # refundReceiver
                nonce,
            ],
        )
    )


def safe_tx_hash(chain_id, safe_address, safe_tx, nonce):
    domain = safe_domain_separator(chain_id, safe_address)
    struct = safe_tx_struct_hash(safe_tx, nonce)
    return keccak(b"\x19\x01" + domain + struct)


class LocalAccount:
    """
    Proposer backed by a private key. Signs the SafeTx hash directly, which
    the Safe accepts as an EIP-712 signature (v = 27/28).
    """

    def __init__(self, private_key):
        self._account = Account.from_key(private_key)
        self.address = self._account.address

    def sign_safe_tx(self, domain_separator, struct_hash):
        digest = keccak(b"\x19\x01" + domain_separator + struct_hash)
        return bytes(self._account.unsafe_sign_hash(digest).signature)

    def sign_transaction(self, tx_data):
        # titanoboa signs broadcasts through this
        return self._account.sign_transaction(tx_data)

    def __repr__(self):
        return f"LocalAccount(address={self.address})"


def get_account(account_name):
    log.h2(f"Connecting to proposer account {account_name}")

    account_key = os.environ.get(f"{account_name}_PRIVATE_KEY")
    if not account_key:
        raise ConfigurationError(
            f"No private key for account {account_name}. Set {account_name}_PRIVATE_KEY in the .env file."
        )
    account = LocalAccount(account_key)
    log.h3(f"Proposer account {account_name} connected: {account.address}")

    return account


def check_rpc_chain(rpc_url, chain):
    """
    Fails when the RPC serves a different chain than the one whose addresses
    the batch is built from.
    """
    expected = CHAIN_IDS.get(chain)
    if expected is None:
        raise ConfigurationError(f"Unknown chain {chain}")

    chain_id = Web3(Web3.HTTPProvider(rpc_url)).eth.chain_id
    if chain_id != expected:
        raise ConfigurationError(
            f"RPC chain id ({chain_id}) does not match chain {chain} ({expected})"
        )
    log.h3(f"Connected to {chain} (chain id {chain_id})")
    return chain_id
