import copy
import logging
from logging.config import dictConfig
from typing import Any, Mapping

# value used for context that is not known at the call site
PLACEHOLDER = "-"


class KeyValueFormatter(logging.Formatter):
    """
    Appends the record's `extra` context as sorted `key=value` pairs.

    Placeholder values (`-`) are left out, so records logged outside a
    response context stay short.
    """
    # attributes every LogRecord carries
    _RESERVED = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {
        "message", "asctime", "taskName",
    }

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = sorted(
            (key, value) for key, value in vars(record).items()
            if key not in self._RESERVED and value != PLACEHOLDER
        )
        if not context:
            return line
        return line + " | " + " ".join(f"{key}={value}" for key, value in context)


_DEFAULT_LOGGING_CONF = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "kv": {
            "()": KeyValueFormatter,
            "format": "%(asctime)s [%(levelname).1s] %(name)s | %(message)s",
        }
    },
    "handlers": {
        "stderr": {
            "class": "logging.StreamHandler",
            "formatter": "kv",
        }
    },
    "loggers": {
        "httpchain": {"level": "INFO", "handlers": ["stderr"]},
    },
}


def _merged(base: dict, overrides: Mapping[str, Any]) -> dict:
    merged = copy.deepcopy(base)
    for key, value in overrides.items():
        if isinstance(merged.get(key), dict) and isinstance(value, Mapping):
            merged[key] = _merged(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def build_logging_config(level: str | int = "INFO", **overrides) -> dict:
    """
    The `dictConfig` mapping used by `configure_logging`.

    `overrides` are merged section by section into a copy of the defaults;
    the module defaults are never modified.
    """
    conf = _merged(_DEFAULT_LOGGING_CONF, overrides)
    conf["loggers"].setdefault("httpchain", {"handlers": ["stderr"]})["level"] = level
    return conf


def configure_logging(level: str | int = "INFO", **overrides) -> None:
    """
    Configure httpchain's logger.

    The library logs nothing unless the host application configures logging;
    call this once at start-up for key=value lines on stderr.

    Args:
        level (str | int): Level of the `httpchain` logger. Defaults to "INFO".
        **overrides: `dictConfig` sections merged over the defaults
            (e.g. `handlers={...}` or `loggers={"aiohttp": {...}}`).
    """
    dictConfig(build_logging_config(level, **overrides))


class ResponseAdapter(logging.LoggerAdapter):
    """
    Carries response context (url, status) on every record; per-call
    `extra` wins over the adapter's defaults.
    """
    def process(self, msg: str, kwargs: Mapping[str, Any]):
        kwargs["extra"] = {**self.extra, **kwargs.pop("extra", {})}
        return msg, kwargs


def get_logger(name: str, **ctx) -> ResponseAdapter:
    context = {"url": PLACEHOLDER, "status": PLACEHOLDER, **ctx}
    return ResponseAdapter(logging.getLogger(name), context)


def response_context(response) -> dict:
    """Logging `extra` for a response: its request URL and status code."""
    request = getattr(response, "original_request", None)
    return {
        "url": getattr(request, "url", None) or PLACEHOLDER,
        "status": getattr(response, "status", None) or PLACEHOLDER,
    }
