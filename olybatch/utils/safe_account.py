import webbrowser
from dataclasses import dataclass

import requests

from config.Chains import CHAIN_IDS, SAFE_APP_PREFIXES, SAFE_SERVICE_URLS, ZERO_ADDRESS
from olybatch.utils import log
from olybatch.utils.batch_helpers import (safe_domain_separator, safe_transaction,
                                          safe_tx_hash, safe_tx_struct_hash)
from olybatch.utils.errors import ConfigurationError, DispatchError


@dataclass(frozen=True)
class Proposal:
    safe_tx_hash: str
    nonce: int
    url: str
    action_count: int


class SafeAccount:
    """
    Proposes batches to the Safe Transaction Service on behalf of one of the
    protocol multisigs. The proposer must be an owner of the Safe; the other
    owners sign and execute from the Safe web interface.
    """

    def __init__(self, safe_address, chain, proposer, safe_transaction_service_url=None, session=None, open_browser=False):
        if chain not in CHAIN_IDS:
            raise ConfigurationError(f"Unknown chain {chain}")

        self.address = safe_address
        self.chain = chain
        self.chain_id = CHAIN_IDS[chain]
        self.proposer = proposer
        self.session = session or requests.Session()
        self.open_browser = open_browser

        # Safe Transaction Service URL
        if safe_transaction_service_url:
            self.safe_service_url = safe_transaction_service_url
        elif chain in SAFE_SERVICE_URLS:
            self.safe_service_url = SAFE_SERVICE_URLS[chain]
        else:
            raise ConfigurationError(f"No Safe Transaction Service URL for chain {chain}")

    def propose_batch(self, actions):
        """
        Proposes all actions as a single Safe transaction, in order.
        Returns the `Proposal` recorded by the service.
        """
        if not actions:
            raise DispatchError("Cannot propose an empty batch")

        safe_info = self._get_safe_info()
        self._verify_safe_owner(safe_info, self.proposer.address)

        safe_tx = safe_transaction(actions)
        nonce = self._get_nonce(safe_info)

        domain_separator = safe_domain_separator(self.chain_id, self.address)
        struct_hash = safe_tx_struct_hash(safe_tx, nonce)
        tx_hash = "0x" + safe_tx_hash(self.chain_id, self.address, safe_tx, nonce).hex()

        log.h3(f"Safe transaction hash {tx_hash} (nonce {nonce})")
        signature = self.proposer.sign_safe_tx(domain_separator, struct_hash)

        payload = {
            "to": safe_tx["to"],
            "value": str(safe_tx["value"]),
            "data": "0x" + safe_tx["data"].hex(),
            "operation": safe_tx["operation"],
            "safeTxGas": "0",
            "baseGas": "0",
            "gasPrice": "0",
            "gasToken": ZERO_ADDRESS,
            "refundReceiver": ZERO_ADDRESS,
            "nonce": nonce,
            "contractTransactionHash": tx_hash,
            "sender": self.proposer.address,
            "signature": "0x" + signature.hex(),
            "origin": "olybatch",
        }
        self._propose_transaction(payload)

        url = self._generate_safe_transaction_link(tx_hash)
        return Proposal(safe_tx_hash=tx_hash, nonce=nonce, url=url, action_count=len(actions))

    def _get_safe_info(self):
        response = self.session.get(f"{self.safe_service_url}/api/v1/safes/{self.address}/")
        if response.status_code != 200:
            raise DispatchError(
                f"Could not load Safe {self.address} from the Safe Transaction Service: {response.status_code}"
            )
        return response.json()

    def _verify_safe_owner(self, safe_info, address):
        """Verify that an address is a Safe owner"""
        owners = [owner.lower() for owner in safe_info.get("owners", [])]
        if address.lower() not in owners:
            raise DispatchError(f"Address {address} is not an owner of Safe {self.address}")

    def _get_nonce(self, safe_info):
        """
        Next free nonce: one past the highest queued transaction, or the
        Safe's on-chain nonce when nothing is queued.
        """
        nonce = int(safe_info.get("nonce", 0))

        response = self.session.get(
            f"{self.safe_service_url}/api/v1/safes/{self.address}/multisig-transactions/",
            params={"ordering": "-nonce", "limit": 1},
        )
        if response.status_code != 200:
            raise DispatchError(f"Could not load queued Safe transactions: {response.status_code}")

        results = response.json().get("results", [])
        if results:
            nonce = max(nonce, int(results[0]["nonce"]) + 1)
        return nonce

    def _generate_safe_transaction_link(self, tx_hash):
        """Generate direct link to view transaction in Safe web interface"""
        prefix = SAFE_APP_PREFIXES.get(self.chain, self.chain)
        return f"https://app.safe.global/transactions/tx?safe={prefix}:{self.address}&id=multisig_{self.address}_{tx_hash}"

    def _propose_transaction(self, payload):
        response = self.session.post(
            f"{self.safe_service_url}/api/v1/safes/{self.address}/multisig-transactions/",
            json=payload,
            headers={"Content-Type": "application/json"},
        )
        if response.status_code != 201:
            log.error(f"Failed to propose transaction: {response.status_code}")
            log.error(f"Response: {response.text}")
            raise DispatchError(f"Failed to propose Safe transaction: {response.status_code}")

        url = self._generate_safe_transaction_link(payload["contractTransactionHash"])
        log.info("\nOpen this link to view and sign the transaction in Safe web interface:")
        log.info(url)
        if self.open_browser:
            webbrowser.open(url)
