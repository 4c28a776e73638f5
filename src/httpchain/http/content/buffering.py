class BufferingStream:
    """
    Pass-through reader that mirrors every byte read through it, so a failed
    parse can show what was actually received.

    Args:
        inner: any reader with a coroutine `read(n=-1)`.
        limit: maximum number of bytes to mirror; `None` mirrors everything.
            Bytes past the limit are still passed through.
    """

    def __init__(self, inner, limit: int | None = None):
        self._inner = inner
        self._limit = limit
        self._mirror = bytearray()
        self.bytes_read = 0

    async def read(self, n: int = -1) -> bytes:
        data = await self._inner.read(n)
        self.bytes_read += len(data)
        self._keep(data)
        return data

    def _keep(self, data: bytes) -> None:
        if self._limit is None:
            self._mirror.extend(data)
            return
        room = self._limit - len(self._mirror)
        if room > 0:
            self._mirror.extend(data[:room])

    def get_mirrored_text(self) -> str:
        """Everything mirrored so far, decoded as UTF-8 (invalid bytes replaced)."""
        return self._mirror.decode("utf-8", errors="replace")
