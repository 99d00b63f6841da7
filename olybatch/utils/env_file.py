from mergedeep import merge
from eth_utils import is_hex_address, to_checksum_address
from hexbytes import HexBytes

from config.Chains import ZERO_ADDRESS
from olybatch.utils import json_file
from olybatch.utils.errors import ConfigurationError


VERSIONS = ("current", "last")

_MISSING = object()


def lookup(root, key):
    """
    Walks a dotted key (e.g. `olympus.policies.RolesAdmin`) through nested
    dicts; numeric parts index into lists (`roles.0.to`). Returns `_MISSING`
    instead of raising so callers can try a fallback before failing.
    """
    node = root
    for part in key.split("."):
        if isinstance(node, list) and part.isdigit() and int(part) < len(node):
            node = node[int(part)]
        elif isinstance(node, dict) and part in node:
            node = node[part]
        else:
            return _MISSING
    return node


def to_address(value, label):
    if not isinstance(value, str) or not is_hex_address(value):
        raise ConfigurationError(f"{label} is not a valid address: {value!r}")
    return to_checksum_address(value)


def to_uint(value, label):
    number = to_int(value, label)
    if number < 0:
        raise ConfigurationError(f"{label} is negative: {value!r}")
    return number


def to_int(value, label):
    if isinstance(value, bool):
        raise ConfigurationError(f"{label} is not an integer: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value, 16) if value.lower().startswith(("0x", "-0x")) else int(value)
        except ValueError:
            pass
    raise ConfigurationError(f"{label} is not an integer: {value!r}")


class KeyedDocument:
    """
    Typed, read-only access to a JSON document addressed by dotted keys.
    Every getter fails with `ConfigurationError` rather than returning a default.
    """

    def __init__(self, document):
        self._document = document

    def _resolve(self, key, **kwargs):
        value = lookup(self._document, key)
        if value is _MISSING:
            raise ConfigurationError(f"{key} is not set")
        return value, key

    def get(self, key, **kwargs):
        value, _ = self._resolve(key, **kwargs)
        return value

    def get_address(self, key, **kwargs):
        value, label = self._resolve(key, **kwargs)
        return to_address(value, label)

    def get_address_not_zero(self, key, **kwargs):
        value, label = self._resolve(key, **kwargs)
        address = to_address(value, label)
        if address == ZERO_ADDRESS:
            raise ConfigurationError(f"{label} is zero or not set")
        return address

    def get_address_list(self, key, **kwargs):
        value, label = self._resolve(key, **kwargs)
        if not isinstance(value, list):
            raise ConfigurationError(f"{label} is not a list: {value!r}")
        return [to_address(item, f"{label}[{i}]") for i, item in enumerate(value)]

    def get_uint(self, key, **kwargs):
        value, label = self._resolve(key, **kwargs)
        return to_uint(value, label)

    def get_int(self, key, **kwargs):
        value, label = self._resolve(key, **kwargs)
        return to_int(value, label)

    def get_uint_list(self, key, **kwargs):
        value, label = self._resolve(key, **kwargs)
        if not isinstance(value, list):
            raise ConfigurationError(f"{label} is not a list: {value!r}")
        return [to_uint(item, f"{label}[{i}]") for i, item in enumerate(value)]

    def get_string(self, key, **kwargs):
        value, label = self._resolve(key, **kwargs)
        if not isinstance(value, str):
            raise ConfigurationError(f"{label} is not a string: {value!r}")
        return value

    def get_bool(self, key, **kwargs):
        value, label = self._resolve(key, **kwargs)
        if not isinstance(value, bool):
            raise ConfigurationError(f"{label} is not a boolean: {value!r}")
        return value

    def get_bytes(self, key, **kwargs):
        value, label = self._resolve(key, **kwargs)
        if not isinstance(value, str) or not value.startswith("0x"):
            raise ConfigurationError(f"{label} is not a hex string: {value!r}")
        try:
            return bytes(HexBytes(value))
        except ValueError:
            raise ConfigurationError(f"{label} is not a hex string: {value!r}")

    def has(self, key, **kwargs):
        try:
            self._resolve(key, **kwargs)
        except ConfigurationError:
            return False
        return True


class EnvFile(KeyedDocument):
    """
    Deployment addresses and parameters, keyed by version then chain:

        {"current": {"mainnet": {"olympus": {"Kernel": "0x..."}}}, "last": {...}}

    Lookups default to the chain the batch targets and the `current` version.
    Pass `chain=` to read another chain's deployment (cross-chain batches),
    `version="last"` to read the previous snapshot, and `fallback=` to name a
    second version tried when the key is absent from the first.
    """

    def __init__(self, document, chain, path=None):
        super().__init__(document)
        self.chain = chain
        self.path = path

    @classmethod
    def load(cls, path, chain):
        # read fresh every time, the file may be edited between runs
        try:
            document = json_file.load(path)
        except FileNotFoundError:
            raise ConfigurationError(f"Environment file {path} does not exist")
        return cls(document, chain, path=path)

    def _resolve(self, key, chain=None, version="current", fallback=None):
        chain = chain or self.chain
        for candidate in (version, fallback):
            if candidate is None:
                continue
            if candidate not in VERSIONS:
                raise ConfigurationError(f"Unknown version {candidate!r}, expected one of {VERSIONS}")
            chains = self._document.get(candidate, {})
            if chain not in chains:
                continue
            value = lookup(chains[chain], key)
            if value is not _MISSING:
                return value, f"{candidate}.{chain}.{key}"

        versions = version if fallback is None else f"{version} (or {fallback})"
        raise ConfigurationError(f"{versions}.{chain}.{key} is not set")

    @staticmethod
    def write(path, chain, key, value, version="current"):
        """
        Sets `key` to `value` for `chain` in the environment file at `path`,
        keeping every other entry.
        """
        if version not in VERSIONS:
            raise ConfigurationError(f"Unknown version {version!r}, expected one of {VERSIONS}")

        try:
            document = json_file.load(path)
        except FileNotFoundError:
            document = {}

        update = value
        for part in reversed(key.split(".")):
            update = {part: update}

        merged = merge({}, document, {version: {chain: update}})
        json_file.save(path, merged, indent=4, sort_keys=True)
        return merged
