import asyncio
import os
from pathlib import Path

from httpchain.http.client.response import Response
from httpchain.util.blocking import blocking
from httpchain.util.logging import get_logger, response_context

log = get_logger(__name__)


def _open_target(target: Path):
    target.parent.mkdir(parents=True, exist_ok=True)
    return open(target, "wb")


async def save_file_async(response: Response, path: str | os.PathLike,
                          chunk_size: int | None = None) -> Path:
    """
    Stream the body into `path`, creating missing parent directories.

    The body is written chunk by chunk and never held in memory as a whole.
    Disk I/O runs in a worker thread, so the loop stays free between reads.
    A failure leaves whatever was written so far in place.

    Returns:
        The absolute path written to.
    """
    target = Path(path).absolute()
    fh = await asyncio.to_thread(_open_target, target)

    written = 0
    try:
        async for chunk in response.content.iter_chunks(chunk_size):
            await asyncio.to_thread(fh.write, chunk)
            written += len(chunk)
    finally:
        await asyncio.to_thread(fh.close)

    log.info("saved response body", extra={"path": str(target), "bytes": written,
                                           **response_context(response)})
    return target


save_file_blocking = blocking(save_file_async)
