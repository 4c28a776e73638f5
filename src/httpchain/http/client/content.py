"""
Single-read body streams.

A `ContentStream` hands out exactly one reader over the transport's body.
Reading it to the end exhausts it: a later `open()` returns the same
(exhausted) reader. `load_into_buffer()` switches the stream to replay mode,
in which every `open()` returns a fresh reader over the buffered bytes.
"""
import asyncio
import inspect
import io
from typing import AsyncIterable, AsyncIterator, Callable

import aiohttp

from httpchain.errors import ContentReadError
from httpchain.settings import CONTENT_SETTINGS
from httpchain.util.logging import get_logger

log = get_logger(__name__)


class BytesReader:
    """Reader over an in-memory body."""

    def __init__(self, data: bytes):
        self._io = io.BytesIO(data)

    async def read(self, n: int = -1) -> bytes:
        return self._io.read(n)


class SourceReader:
    """
    Reader over a transport source: an object with `async read(n)` (such as
    `aiohttp.StreamReader`) or an async iterable of byte chunks.

    Transport failures surface as `ContentReadError`.
    """

    def __init__(self, source, on_eof: Callable[[], object] | None = None):
        if hasattr(source, "read") and inspect.iscoroutinefunction(source.read):
            self._read = source.read
            self._chunks = None
        else:
            self._read = None
            self._chunks: AsyncIterator[bytes] | None = aiter(source)
        self._pending = b""
        self._eof = False
        self._on_eof = on_eof

    @property
    def at_eof(self) -> bool:
        return self._eof and not self._pending

    async def read(self, n: int = -1) -> bytes:
        if self.at_eof:
            return b""
        try:
            if self._read is not None:
                data = await self._read(n)
                if not data or n < 0:
                    await self._finish()
                return data
            return await self._read_chunks(n)
        except ContentReadError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as exc:
            raise ContentReadError(f"error while reading response body: {exc}") from exc

    async def _read_chunks(self, n: int) -> bytes:
        if n < 0:
            parts = [self._pending]
            async for chunk in self._chunks:
                parts.append(bytes(chunk))
            self._pending = b""
            await self._finish()
            return b"".join(parts)

        while not self._pending and not self._eof:
            try:
                self._pending = bytes(await anext(self._chunks))
            except StopAsyncIteration:
                await self._finish()

        data, self._pending = self._pending[:n], self._pending[n:]
        return data

    async def _finish(self) -> None:
        if self._eof:
            return
        self._eof = True
        if self._on_eof is not None:
            result = self._on_eof()
            if inspect.isawaitable(result):
                await result


class ContentStream:
    """
    The lazily-read body of a response.

    Args:
        source: `bytes`, an async iterable of byte chunks, or an object with a
            coroutine `read(n)` method.
        on_release: called once the source has been read to the end
            (e.g. `aiohttp.ClientResponse.release`).
    """

    def __init__(self, source: bytes | AsyncIterable[bytes] | object = b"", *,
                 on_release: Callable[[], object] | None = None):
        self._buffer: bytes | None = None
        self._source = None
        if isinstance(source, (bytes, bytearray, memoryview)):
            self._buffer = bytes(source)
        else:
            self._source = source
        self._on_release = on_release
        self._released = False
        self._reader: SourceReader | None = None
        self._warmup: asyncio.Task | None = None
        self._warmup_deferred = False
        self._warming = False
        self._parts: list[bytes] = []

    @property
    def is_buffered(self) -> bool:
        return self._buffer is not None

    async def open(self):
        """
        Return a reader over the body.

        Unbuffered streams hand out their single reader; callers must not
        assume they can read the body twice.
        """
        await self._await_warmup()
        if self._buffer is not None:
            return BytesReader(self._buffer)
        return self._source_reader()

    async def load_into_buffer(self) -> None:
        """Read the (remaining) body into memory so it can be replayed."""
        await self._await_warmup()
        await self._fill_buffer()

    def start_warmup(self, loop: asyncio.AbstractEventLoop | None) -> None:
        """
        Schedule `load_into_buffer` on `loop` without waiting for it.

        Without a loop the buffering is deferred to the next `open()` or
        `load_into_buffer()`, on whichever loop that call runs.
        """
        if self._buffer is not None or self._warmup is not None or self._warmup_deferred:
            return
        if loop is None:
            self._warmup_deferred = True
            return
        self._warmup = loop.create_task(self._warm())
        self._warmup.add_done_callback(_log_warmup_outcome)

    def iter_chunks(self, chunk_size: int | None = None) -> AsyncIterator[bytes]:
        return _iter_chunks(self, chunk_size)

    async def close(self) -> None:
        """Cancel a pending warm-up and release the transport response."""
        if self._warmup is not None and not self._warmup.done():
            self._warmup.cancel()
        self._warmup_deferred = False
        await self._release()

    async def _release(self) -> None:
        if self._on_release is None or self._released:
            return
        self._released = True
        result = self._on_release()
        if inspect.isawaitable(result):
            await result

    def _source_reader(self) -> SourceReader:
        if self._reader is None:
            self._reader = SourceReader(self._source, on_eof=self._release)
        return self._reader

    async def _fill_buffer(self) -> None:
        if self._buffer is not None:
            return
        reader = self._source_reader()
        # chunks read so far survive a cancelled warm-up
        while True:
            chunk = await reader.read(CONTENT_SETTINGS.chunk_size)
            if not chunk:
                break
            self._parts.append(chunk)
        self._buffer = b"".join(self._parts)
        self._parts = []
        self._reader = None

    async def _warm(self) -> None:
        self._warming = True
        try:
            await self._fill_buffer()
        finally:
            self._warming = False

    async def _await_warmup(self) -> None:
        if self._warmup_deferred:
            self._warmup_deferred = False
            await self._fill_buffer()
            return

        task, self._warmup = self._warmup, None
        if task is None or task is asyncio.current_task():
            return
        if not task.done():
            loop = task.get_loop()
            if loop is asyncio.get_running_loop():
                await asyncio.wait({task})
            elif loop.is_running():
                waiter = asyncio.run_coroutine_threadsafe(asyncio.wait({task}), loop)
                await asyncio.wrap_future(waiter)
            else:
                # the owning loop is idle, so the task cannot finish before this read
                if self._warming:
                    raise RuntimeError(
                        "content warm-up is suspended on an event loop that is not running"
                    )
                task.cancel()
                await self._fill_buffer()
                return
        if task.cancelled():
            if self._parts:
                await self._fill_buffer()
            return
        # a failed warm-up re-raises here, on the first explicit read
        exc = task.exception()
        if exc is not None:
            raise exc


def _log_warmup_outcome(task: asyncio.Task) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        log.debug("content warm-up failed", extra={"error": repr(exc)})


async def _iter_chunks(content: ContentStream, chunk_size: int | None = None):
    reader = await content.open()
    chunk_size = chunk_size or CONTENT_SETTINGS.chunk_size
    while True:
        chunk = await reader.read(chunk_size)
        if not chunk:
            break
        yield chunk
