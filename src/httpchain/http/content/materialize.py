"""
Turn a response body into bytes, text or a parsed document.

Every coroutine here has a blocking twin (`*_blocking`). A response body can
be materialized once; call `load_content` (or
`response.content.load_into_buffer()`) first when it must be read several
times.
"""
import asyncio
import codecs
from typing import Any, Awaitable, Callable

from httpchain.errors import ParseCancelled, ParseError, ShapeError
from httpchain.http.client.response import Response
from httpchain.http.content.buffering import BufferingStream
from httpchain.settings import CONTENT_SETTINGS
from httpchain.util.blocking import blocking
from httpchain.util.logging import get_logger, response_context

log = get_logger(__name__)

ParseFn = Callable[[BufferingStream, asyncio.Event], Awaitable[Any]]

_UNSET = object()


def load_content(response: Response) -> Response:
    """
    Start buffering the body in the background and return `response` at once.

    Inside a running loop the warm-up is a task on that loop; otherwise it is
    deferred to the next read of the body, sync or async. Warm-up failures
    are not raised here: they surface on the next explicit read of the body.
    """
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        loop = None
    response.content.start_warmup(loop)
    return response


async def to_stream_async(response: Response):
    """The raw body reader. Consuming it excludes every other materialization."""
    return await response.content.open()


async def to_bytes_async(response: Response) -> bytes:
    reader = await response.content.open()
    return await reader.read()


async def to_text_async(response: Response) -> str:
    return (await to_bytes_async(response)).decode("utf-8", errors="replace")


async def to_string_async(response: Response, max_length: int | None = None) -> str:
    """
    Decode the body as UTF-8.

    With `max_length`, at most that many characters are returned and reading
    stops as soon as they are available.
    """
    if max_length is None:
        return await to_text_async(response)
    if max_length < 0:
        raise ValueError(f"max_length must be >= 0, got {max_length}")

    reader = await response.content.open()
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    parts: list[str] = []
    length = 0
    while length < max_length:
        chunk = await reader.read(CONTENT_SETTINGS.chunk_size)
        text = decoder.decode(chunk, final=not chunk)
        parts.append(text)
        length += len(text)
        if not chunk:
            break
    return "".join(parts)[:max_length]


def check_cancelled(cancel: asyncio.Event, parser_name: str) -> None:
    if cancel.is_set():
        raise ParseCancelled(parser_name)


async def read_all(stream: BufferingStream, cancel: asyncio.Event, parser_name: str) -> bytes:
    """Read `stream` chunk by chunk, honouring the cancellation signal."""
    parts = []
    while True:
        check_cancelled(cancel, parser_name)
        chunk = await stream.read(CONTENT_SETTINGS.chunk_size)
        if not chunk:
            return b"".join(parts)
        parts.append(chunk)


async def parse_async(
    parser_name: str,
    parse_fn: ParseFn,
    response: Response,
    *,
    cancel: asyncio.Event | None = None,
    mirror_limit: int | None = _UNSET,
):
    """
    Run `parse_fn(stream, cancel)` over the body and wrap its failures.

    `stream` mirrors what it reads; when `parse_fn` raises, a `ParseError`
    carrying `parser_name`, the original message and the mirrored text is
    raised instead. `ShapeError` passes through untouched. Task cancellation
    still propagates as `asyncio.CancelledError`, after the diagnostic has
    been logged.

    Args:
        parser_name (str): Shown in error messages ("JSON", "XML", ...).
        parse_fn: Coroutine function taking the mirrored stream and the
            cancellation event.
        response (Response): Response whose body is parsed.
        cancel (asyncio.Event, optional): Set it to ask `parse_fn` to stop.
        mirror_limit (int, optional): Bytes kept for diagnostics; defaults to
            `SETTINGS.http.content.mirror_limit`.
    """
    if mirror_limit is _UNSET:
        mirror_limit = CONTENT_SETTINGS.mirror_limit
    if cancel is None:
        cancel = asyncio.Event()

    reader = await response.content.open()
    stream = BufferingStream(reader, limit=mirror_limit)
    try:
        return await parse_fn(stream, cancel)
    except ShapeError:
        raise
    except asyncio.CancelledError as exc:
        error = ParseError(parser_name, exc, stream.get_mirrored_text())
        log.warning(str(error), extra={"parser": parser_name, **response_context(response)})
        raise
    except Exception as exc:
        log.debug("parse failed", extra={"parser": parser_name, **response_context(response)})
        raise ParseError(parser_name, exc, stream.get_mirrored_text()) from exc


to_stream_blocking = blocking(to_stream_async)
to_bytes_blocking = blocking(to_bytes_async)
to_text_blocking = blocking(to_text_async)
to_string_blocking = blocking(to_string_async)
parse_blocking = blocking(parse_async)
