"""
Async in sync.

Blocking variants of the coroutine API run on a private event loop owned by
the calling thread. The loop is reused across calls so that transport objects
created by one blocking call (an aiohttp response, a background warm-up task)
are still usable by the next one.
"""
import asyncio
import functools
import threading

_local = threading.local()


def get_blocking_loop() -> asyncio.AbstractEventLoop:
    """Return this thread's private loop, creating it on first use."""
    loop = getattr(_local, "loop", None)
    if loop is None or loop.is_closed():
        loop = asyncio.new_event_loop()
        _local.loop = loop
    return loop


def close_blocking_loop() -> None:
    loop = getattr(_local, "loop", None)
    if loop is None or loop.is_closed():
        return
    try:
        loop.run_until_complete(loop.shutdown_asyncgens())
    finally:
        loop.close()
        _local.loop = None


def in_running_loop() -> bool:
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return False
    return True


def run_blocking(coro):
    """
    Run `coro` to completion on this thread's private loop.

    Warning:
        Must **not** be invoked from within an active asyncio event loop;
        await the coroutine variant instead.
    """
    if in_running_loop():
        coro.close()
        raise RuntimeError(
            "blocking call made from inside a running event loop; "
            "await the *_async variant instead"
        )
    return get_blocking_loop().run_until_complete(coro)


def blocking(async_fn):
    """Build the blocking variant of a coroutine function."""
    @functools.wraps(async_fn)
    def wrapper(*args, **kwargs):
        return run_blocking(async_fn(*args, **kwargs))

    name = async_fn.__name__.removesuffix("_async")
    wrapper.__name__ = wrapper.__qualname__ = f"{name}_blocking"
    return wrapper
