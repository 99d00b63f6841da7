from olybatch.utils import json_file
from olybatch.utils.env_file import KeyedDocument
from olybatch.utils.errors import ConfigurationError


class ArgsFile(KeyedDocument):
    """
    Batch-specific arguments (role lists, price observations, ...) read once
    per invocation from the file passed with `--args`.
    """

    def __init__(self, document, path=None):
        super().__init__(document)
        self.path = path

    @classmethod
    def load(cls, path):
        if not path:
            return cls.empty()
        try:
            document = json_file.load(path)
        except FileNotFoundError:
            raise ConfigurationError(f"Args file {path} does not exist")
        if not isinstance(document, dict):
            raise ConfigurationError(f"Args file {path} must contain a JSON object")
        return cls(document, path=path)

    @classmethod
    def empty(cls):
        return cls({})

    def _resolve(self, key, **kwargs):
        try:
            return super()._resolve(key)
        except ConfigurationError:
            source = self.path or "the args file (none provided)"
            raise ConfigurationError(f"{key} is not set in {source}")
