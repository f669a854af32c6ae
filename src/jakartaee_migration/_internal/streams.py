"""Stream adapters that can be closed without closing the stream they wrap.

A nested archive is read and written through a zip reader/writer that must
be closed to emit its own central directory, while the enclosing archive's
entry stream has to stay open for the caller. The enclosing scope lends its
stream through one of these adapters; only the owner ever closes the real
stream.
"""

from typing import BinaryIO, Optional


class _NonClosingStream:
    """Shared lifecycle for the input and output adapters."""

    def __init__(self, stream: BinaryIO):
        self._stream = stream
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Release the adapter; the wrapped stream is left open."""
        self._closed = True

    def _check_open(self) -> None:
        if self._closed:
            raise ValueError("I/O operation on closed stream adapter")

    def seekable(self) -> bool:
        self._check_open()
        return self._stream.seekable()

    def seek(self, offset: int, whence: int = 0) -> int:
        self._check_open()
        return self._stream.seek(offset, whence)

    def tell(self) -> int:
        self._check_open()
        return self._stream.tell()

    def __enter__(self):
        self._check_open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class NonClosingInputStream(_NonClosingStream):
    """Read-only view over a borrowed input stream."""

    def readable(self) -> bool:
        return True

    def writable(self) -> bool:
        return False

    def read(self, size: Optional[int] = -1) -> bytes:
        self._check_open()
        return self._stream.read(size)

    def readinto(self, buffer) -> int:
        self._check_open()
        return self._stream.readinto(buffer)


class NonClosingOutputStream(_NonClosingStream):
    """Write-only view over a borrowed output stream."""

    def readable(self) -> bool:
        return False

    def writable(self) -> bool:
        return True

    def write(self, data) -> int:
        self._check_open()
        return self._stream.write(data)

    def flush(self) -> None:
        self._check_open()
        self._stream.flush()

    def close(self) -> None:
        """Flush pending bytes into the wrapped stream, then release the adapter."""
        if not self._closed:
            self._stream.flush()
        super().close()
