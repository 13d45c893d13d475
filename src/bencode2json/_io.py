"""Forward-only byte source and immediate-write emitter for transcoding."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable
from collections.abc import Iterator
from typing import IO
from typing import Final

DEFAULT_CAPTURE_SIZE: Final = 1024

ByteInput = bytes | bytearray | memoryview | IO[bytes] | Iterable[int]


def _iter_stream(fp: IO[bytes]) -> Iterator[int]:
    """Yields bytes one at a time from a binary file-like object."""
    while True:
        chunk = fp.read(1)
        if not chunk:
            return
        if isinstance(chunk, str):
            raise TypeError("the bencode source must be opened in binary mode")
        yield chunk[0]


class ByteSource:
    """
    Supplies input bytes on demand with one byte of lookahead.

    Wraps bytes-like objects, binary streams, or any iterable of ints.
    Nothing is read ahead except through peek(), so a blocking stream is
    only consumed as far as the decoder has asked for.
    """

    def __init__(
        self,
        source: ByteInput,
        capture_size: int = DEFAULT_CAPTURE_SIZE,
    ) -> None:
        if isinstance(source, str):
            raise TypeError("the bencode source must be bytes, not str")

        if hasattr(source, "read"):
            self._reader: Iterator[int] = _iter_stream(source)  # type: ignore[arg-type]
        else:
            self._reader = iter(source)  # type: ignore[arg-type]

        self.position = 0
        self._peeked: int | None = None
        self._has_peeked = False
        self._captured: deque[int] = deque(maxlen=capture_size)

    def _pull(self) -> int | None:
        byte = next(self._reader, None)
        if byte is not None and not 0 <= byte <= 0xFF:  # noqa: PLR2004
            raise ValueError(f"byte out of range: {byte!r}")
        return byte

    def peek(self) -> int | None:
        """Returns the next byte without consuming it, None at end."""
        if not self._has_peeked:
            self._peeked = self._pull()
            self._has_peeked = True
        return self._peeked

    def next(self) -> int | None:
        """Consumes and returns the next byte, None at end of input."""
        if self._has_peeked:
            byte = self._peeked
            self._peeked = None
            self._has_peeked = False
        else:
            byte = self._pull()

        if byte is not None:
            self.position += 1
            self._captured.append(byte)
        return byte

    def latest_bytes(self) -> bytes:
        """Returns the most recently consumed bytes."""
        return bytes(self._captured)


class Emitter:
    """
    Writes transcoded output to a binary sink as soon as it is produced.

    Output is never held back or reordered; the emitter only counts what
    it wrote and remembers the tail for diagnostics.
    """

    def __init__(
        self, sink: IO[bytes], capture_size: int = DEFAULT_CAPTURE_SIZE
    ) -> None:
        if not hasattr(sink, "write"):
            raise TypeError("sink must have a write() method")

        self.sink = sink
        self.position = 0
        self._captured: deque[int] = deque(maxlen=capture_size)

    def write(self, data: bytes) -> None:
        if not data:
            return
        self.sink.write(data)
        self.position += len(data)
        self._captured.extend(data)

    def write_byte(self, byte: int) -> None:
        self.write(bytes((byte,)))

    def flush(self) -> None:
        flush = getattr(self.sink, "flush", None)
        if flush is not None:
            flush()

    def latest_bytes(self) -> bytes:
        """Returns the most recently written bytes."""
        return bytes(self._captured)
