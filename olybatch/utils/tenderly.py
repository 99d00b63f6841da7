import os

import requests

from config.Chains import TENDERLY_API_URL, TENDERLY_GAS
from olybatch.utils import log
from olybatch.utils.errors import ConfigurationError, DispatchError


ENVIRONMENT_VARIABLES = (
    "TENDERLY_ACCOUNT_SLUG",
    "TENDERLY_PROJECT_SLUG",
    "TENDERLY_VNET_ID",
    "TENDERLY_ACCESS_KEY",
)


class TenderlyVnet:
    """
    Replays batch actions one by one on a Tenderly virtual testnet. Used when
    the target network has no Safe Transaction Service to propose to.
    """

    def __init__(self, account_slug, project_slug, vnet_id, access_key, session=None):
        self.account_slug = account_slug
        self.project_slug = project_slug
        self.vnet_id = vnet_id
        self.access_key = access_key
        self.session = session or requests.Session()

    @classmethod
    def from_environment(cls, session=None):
        missing = [name for name in ENVIRONMENT_VARIABLES if not os.environ.get(name)]
        if missing:
            raise ConfigurationError(f"{', '.join(missing)} not specified")
        return cls(*(os.environ[name] for name in ENVIRONMENT_VARIABLES), session=session)

    @property
    def url(self):
        return (
            f"{TENDERLY_API_URL}/account/{self.account_slug}/project/{self.project_slug}"
            f"/vnets/{self.vnet_id}/transactions"
        )

    def send(self, action, sender):
        response = self.session.post(
            self.url,
            json={
                "callArgs": {
                    "from": sender,
                    "to": action.to,
                    "gas": hex(TENDERLY_GAS),
                    "gasPrice": "0x0",
                    "value": "0x0",
                    "data": "0x" + action.data.hex(),
                },
                "blockNumber": "latest",
            },
            headers={
                "Accept": "application/json",
                "Content-Type": "application/json",
                "X-Access-Key": self.access_key,
            },
        )

        try:
            body = response.json()
        except ValueError:
            body = {"error": response.text}

        if response.status_code >= 400:
            raise DispatchError(f"HTTP {response.status_code}: {body}")
        if isinstance(body, dict) and body.get("error"):
            raise DispatchError(f"{body['error']}")
        return body

    def replay(self, actions, sender):
        """
        Sends every action as its own transaction from `sender`. Stops at the
        first failure; the actions after it are never sent.
        """
        responses = []
        for index, action in enumerate(actions):
            log.h3(f"Sending action {index + 1} of {len(actions)} to {action.to}")
            try:
                responses.append(self.send(action, sender))
            except DispatchError as exception:
                log.error(f"\tAction {index + 1} failed on testnet: {exception}")
                raise DispatchError(
                    f"Testnet execution failed at action {index + 1} of {len(actions)}: {exception}"
                ) from exception
        return responses
