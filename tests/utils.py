import asyncio

from multidict import CIMultiDict, CIMultiDictProxy

from httpchain.http.client.content import ContentStream
from httpchain.http.client.request import Request
from httpchain.http.client.response import Response


class ChunkSource:
    """
    Async iterable body that yields `chunks` one by one and then, optionally,
    raises `fail_with` (a broken connection mid-body).
    """
    def __init__(self, chunks, fail_with: Exception | None = None):
        self._chunks = list(chunks)
        self._fail_with = fail_with
        self.iterations = 0

    def __aiter__(self):
        return self._gen()

    async def _gen(self):
        for chunk in self._chunks:
            await asyncio.sleep(0)
            self.iterations += 1
            yield chunk
        if self._fail_with is not None:
            raise self._fail_with


class FakeStreamReader:
    """Mimics `aiohttp.StreamReader.read` over an in-memory body."""
    def __init__(self, body: bytes):
        self._body = body
        self._pos = 0
        self.bytes_served = 0

    async def read(self, n: int = -1) -> bytes:
        await asyncio.sleep(0)
        if n < 0:
            data = self._body[self._pos:]
        else:
            data = self._body[self._pos:self._pos + n]
        self._pos += len(data)
        self.bytes_served += len(data)
        return data


def make_response(body: bytes = b"", status: int = 200, content_type: str | None = None,
                  *, chunks=None, fail_with=None, url: str = "http://example.com/"):
    """
    Build a streaming Response. By default the body is served as an
    (unbuffered) single-read source, like a live connection.
    """
    headers = {"Content-Type": content_type} if content_type is not None else {}
    if chunks is None:
        chunks = [body] if body else []
    source = ChunkSource(chunks, fail_with=fail_with)
    return Response(
        status=status,
        content=ContentStream(source),
        headers=headers,
        original_request=Request(url),
    )


# ------------------------
# Fake aiohttp primitives
# ------------------------

class FakeClientResponse:
    def __init__(self, status: int, body: bytes, headers: dict | None = None):
        self.status = status
        self.headers = CIMultiDictProxy(CIMultiDict(headers or {}))
        self.content = FakeStreamReader(body)
        self.released = 0

    def release(self):
        self.released += 1


class FakeSession:
    """
    Each .request() pops the next FakeClientResponse.
    """
    def __init__(self, responses):
        self._responses = list(responses)
        self.calls = []
        self.closed = False

    async def request(self, method, url, **kwargs):
        if not self._responses:
            raise RuntimeError("No more fake responses")
        self.calls.append((method, url, kwargs))
        return self._responses.pop(0)

    async def close(self):
        self.closed = True
