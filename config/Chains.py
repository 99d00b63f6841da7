from enum import IntEnum


ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


CHAIN_IDS = {
    "mainnet": 1,
    "optimism": 10,
    "polygon": 137,
    "base": 8453,
    "arbitrum": 42161,
    "berachain": 80094,
    "base-sepolia": 84532,
    "arbitrum-sepolia": 421614,
    "sepolia": 11155111,
}


SAFE_SERVICE_URLS = {
    "mainnet": "https://safe-transaction-mainnet.safe.global",
    "optimism": "https://safe-transaction-optimism.safe.global",
    "polygon": "https://safe-transaction-polygon.safe.global",
    "base": "https://safe-transaction-base.safe.global",
    "arbitrum": "https://safe-transaction-arbitrum.safe.global",
    "berachain": "https://safe-transaction-berachain.safe.global",
    "base-sepolia": "https://safe-transaction-base-sepolia.safe.global",
    "sepolia": "https://safe-transaction-sepolia.safe.global",
}


# short names used by the Safe web interface in `safe=<prefix>:<address>`
SAFE_APP_PREFIXES = {
    "mainnet": "eth",
    "optimism": "oeth",
    "polygon": "matic",
    "base": "base",
    "arbitrum": "arb1",
    "berachain": "berachain",
    "base-sepolia": "basesep",
    "sepolia": "sep",
}


# MultiSendCallOnly v1.3.0, same address on every supported chain
MULTISEND_CALL_ONLY = "0x40A2aCCbd92BCA938b02010E17A5b8929b49130D"


class SafeOperation(IntEnum):
    CALL = 0
    DELEGATECALL = 1


class KernelAction(IntEnum):
    # matches the Actions enum of the Kernel
    INSTALL_MODULE = 0
    UPGRADE_MODULE = 1
    ACTIVATE_POLICY = 2
    DEACTIVATE_POLICY = 3
    CHANGE_EXECUTOR = 4
    MIGRATE_KERNEL = 5


TENDERLY_API_URL = "https://api.tenderly.co/api/v1"
TENDERLY_GAS = 10_000_000
