import time
from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass
class Request:
    """A fully built request, ready to be dispatched."""
    url: str
    method: str = "GET"
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes | str | None = None
    timeout: float | None = None

    meta: Dict[str, Any] = field(default_factory=dict)

    created_at: float = field(default_factory=time.monotonic)

    @property
    def hostname(self) -> str:
        from urllib.parse import urlsplit
        return urlsplit(self.url).hostname or ""
