from dataclasses import dataclass, field
from typing import Any, Optional

from multidict import CIMultiDict, CIMultiDictProxy

from httpchain.http.client.content import ContentStream
from httpchain.http.client.request import Request


@dataclass
class Response:
    """
    One HTTP exchange whose headers have arrived.

    The response owns `content` until a consumer reads it to the end or
    closes the response; the body is not re-readable unless it was buffered
    (see `httpchain.load_content`).
    """
    status: int
    content: ContentStream = field(default_factory=ContentStream)
    headers: CIMultiDictProxy | CIMultiDict | dict | None = None
    original_request: Optional[Request] = None
    original_response: Any = field(default=None, kw_only=True)

    def __post_init__(self):
        if not isinstance(self.headers, (CIMultiDict, CIMultiDictProxy)):
            self.headers = CIMultiDict(self.headers or {})
        if not isinstance(self.content, ContentStream):
            self.content = ContentStream(self.content)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    @property
    def content_type(self) -> str:
        """The raw Content-Type header, or "" when absent."""
        value = self.headers.get("Content-Type")
        return value if isinstance(value, str) else ""

    @property
    def media_type(self) -> str:
        """Lower-cased `type/subtype` of the Content-Type header, "" if unusable."""
        media_type = self.content_type.split(";", 1)[0].strip().lower()
        if media_type.count("/") != 1:
            return ""
        return media_type

    async def close(self) -> None:
        await self.content.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *_):
        await self.close()


def to_original_request(response: Response) -> Request | None:
    return response.original_request


def to_original_response(response: Response) -> Any:
    """The transport's own response object (e.g. `aiohttp.ClientResponse`)."""
    return response.original_response
