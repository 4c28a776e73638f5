"""
Settings for httpchain.

These settings are global and can be accessed from any module in the httpchain package.

They are read by the options classes (JSON, XML) and by the content and client
modules whenever a call does not pass explicit options.

Expected usage behavior:

```python
from httpchain.settings import SETTINGS, update_settings

update_settings({"json": {"document": {"max_depth": 128}}})  # once, at startup

CONTENT_SETTINGS = SETTINGS.http.content
```

Once initialized, the settings are expected to be immutable (not enforced).
"""

SETTINGS = {
    'http': {
        'client': {
            'timeout': 30,
            'verify_ssl': True,
            'headers': {
                "User-Agent": "httpchain/0.1",
            },
            'proxies': None,
        },
        'content': {
            'chunk_size': 64 * 1024,
            # bytes mirrored for parse diagnostics; None mirrors everything
            'mirror_limit': 1024 * 1024,
        },
    },
    'json': {
        'document': {
            'allow_nan': True,
            'max_depth': 64,
            'allow_duplicate_keys': True,
        },
        'serializer': {
            'strict': False,
        },
        'indent': 2,
    },
    'xml': {
        'remove_blank_text': False,
        'remove_comments': False,
        'resolve_entities': False,
        'no_network': True,
        'huge_tree': False,
    },
}


class AttrDict(dict):
    """
    A dictionary subclass that allows dot-notation access while
    recursively converting nested dictionaries.
    """
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        # Point the instance __dict__ to itself to allow attribute access
        self.__dict__ = self
        # Recursively convert any dicts passed during initialization
        for key, value in self.items():
            self[key] = self._convert(value)

    @classmethod
    def _convert(cls, value):
        """Recursively converts dicts to AttrDicts, leaving other types alone."""
        if isinstance(value, AttrDict):
            return value
        if isinstance(value, dict):
            return cls(value)
        elif isinstance(value, list):
            return [cls._convert(item) for item in value]
        return value

    def __setitem__(self, key, value):
        # Ensure that new items added via dict-syntax are also converted
        super().__setitem__(key, self._convert(value))

    def __getattr__(self, key):
        try:
            return self[key]
        except KeyError as exc:
            raise AttributeError(f"AttrDict object has no attribute '{key}'") from exc


def _merge(target: AttrDict, overrides: dict) -> None:
    for key, value in overrides.items():
        current = target.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            _merge(current, value)
        else:
            target[key] = value


def update_settings(overrides: dict) -> AttrDict:
    """
    Deep-merge `overrides` into the global SETTINGS.

    Meant to be called once during application start-up, before any response
    is processed. Unknown keys are added as-is.

    Args:
        overrides (dict): Nested mapping mirroring the SETTINGS structure.

    Returns:
        The (mutated) global SETTINGS.
    """
    _merge(SETTINGS, overrides)
    return SETTINGS


SETTINGS = AttrDict(SETTINGS)
CLIENT_SETTINGS = SETTINGS.http.client
CONTENT_SETTINGS = SETTINGS.http.content
