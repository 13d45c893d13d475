"""
Streaming bencode to JSON transcoder.

Reads one bencoded value (integer, byte string, list or dictionary,
arbitrarily nested) a byte at a time and writes the equivalent JSON as
decoding proceeds. No intermediate tree is built; the only state is a
bounded stack of open container contexts.
"""

import io
import logging
import os
import time
from dataclasses import dataclass
from dataclasses import field
from enum import Enum
from typing import IO
from typing import Any
from typing import Final
from typing import TypeAlias

from ._io import ByteInput
from ._io import ByteSource
from ._io import Emitter

__version__ = "0.1.0"

Position: TypeAlias = int

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH: Final = 1024

# Profiling infrastructure - zero-cost when disabled
PROFILE_HOT_PATHS = __debug__ and "BENCODE2JSON_PROFILE" in os.environ

# Source encoding bytes
INTEGER_START: Final = ord("i")
LIST_START: Final = ord("l")
DICT_START: Final = ord("d")
END: Final = ord("e")
LENGTH_SEPARATOR: Final = ord(":")
MINUS: Final = ord("-")
ZERO: Final = ord("0")
NINE: Final = ord("9")
NEWLINE: Final = ord("\n")

QUOTE: Final = ord('"')
BACKSLASH: Final = ord("\\")


@dataclass
class HotPathStats:
    """Statistics for profiling hot paths during transcoding."""

    function_name: str
    call_count: int = 0
    total_time_ns: int = 0
    bytes_processed: int = 0

    def record_call(self, duration_ns: int, nbytes: int = 0) -> None:
        """Records a function call with timing and byte processing info."""
        self.call_count += 1
        self.total_time_ns += duration_ns
        self.bytes_processed += nbytes


if PROFILE_HOT_PATHS:
    _hot_path_stats: dict[str, HotPathStats] = {}

    class ProfileContext:
        """
        Context manager for profiling hot paths.

        The byte count is often only known inside the block, so callers
        may set nbytes on the entered context before it exits.
        """

        def __init__(self, func_name: str, nbytes: int = 0):
            self.func_name = func_name
            self.nbytes = nbytes
            self.start_time = 0

        def __enter__(self) -> "ProfileContext":
            self.start_time = time.perf_counter_ns()
            return self

        def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
            duration = time.perf_counter_ns() - self.start_time
            if self.func_name not in _hot_path_stats:
                _hot_path_stats[self.func_name] = HotPathStats(self.func_name)
            _hot_path_stats[self.func_name].record_call(duration, self.nbytes)

    def get_hot_path_stats() -> dict[str, HotPathStats]:
        """Returns current profiling statistics."""
        return _hot_path_stats.copy()

    def clear_hot_path_stats() -> None:
        """Clears profiling statistics."""
        _hot_path_stats.clear()

else:

    class ProfileContext:  # type: ignore[no-redef]
        def __init__(self, func_name: str, nbytes: int = 0) -> None:
            self.nbytes = nbytes

        def __enter__(self) -> "ProfileContext":
            return self

        def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
            pass

    def get_hot_path_stats() -> dict[str, HotPathStats]:
        return {}

    def clear_hot_path_stats() -> None:
        pass


class BencodeDecodeError(ValueError):
    """
    Reports a bencode decoding failure at a precise byte position.

    The position is 1-based. When the input ended early, byte is None and
    the position is the one the missing byte would have occupied. The
    output side is recorded too: how many bytes had been written and the
    tail of that output, since nothing already written is rolled back.
    """

    def __init__(
        self,
        msg: str,
        pos: Position = 0,
        byte: int | None = None,
        latest_bytes: bytes = b"",
        output_pos: Position = 0,
        latest_output_bytes: bytes = b"",
    ) -> None:
        if not isinstance(msg, str):
            raise TypeError("msg must be a string")
        if not isinstance(pos, int) or pos < 0:
            raise ValueError("pos must be a non-negative integer")

        self.msg = msg
        self.pos = pos
        self.byte = byte
        self.latest_bytes = latest_bytes
        self.output_pos = output_pos
        self.latest_output_bytes = latest_output_bytes

        super().__init__(f"{msg} at position {pos}")

    def context(self) -> str:
        """Describes the read and write state when the error happened."""
        return (
            f"input pos {self.pos}, latest input bytes {self.latest_bytes!r}; "
            f"output pos {self.output_pos}, "
            f"latest output bytes {self.latest_output_bytes!r}"
        )

    def diagnostic(self) -> str:
        """Renders the one-line message written to standard error."""
        if self.byte is None:
            found = "got EOF"
        else:
            found = f"found '{chr(self.byte)}'"
        return f"parse error at position {self.pos}: {found}"


class UnexpectedByteError(BencodeDecodeError):
    """A byte that is not valid at its position in the grammar."""


class UnexpectedEndOfInputError(BencodeDecodeError):
    """The input ended before the value was complete."""


class MalformedIntegerError(BencodeDecodeError):
    """An integer that is not an optional sign, digits, then 'e'."""


class UnterminatedStringError(BencodeDecodeError):
    """A string whose declared length runs past the end of input."""


class NestingTooDeepError(BencodeDecodeError):
    """More nested containers than the configured maximum depth."""


class UnmatchedCloseError(BencodeDecodeError):
    """An 'e' with no open list or dictionary to close."""


class ContextState(Enum):
    """
    Structural stack entry tags.

    TOP_LEVEL sits at the bottom of every stack. Dictionaries alternate
    between awaiting a key and awaiting the value for that key.
    """

    TOP_LEVEL = "top_level"
    LIST_OPEN = "list_open"
    MAPPING_AWAITING_KEY = "mapping_awaiting_key"
    MAPPING_AWAITING_VALUE = "mapping_awaiting_value"


class ContainerKind(Enum):
    """Kind of container popped off the structural stack."""

    LIST = "list"
    MAPPING = "mapping"


class Separator(Enum):
    """JSON punctuation emitted before a value."""

    NONE = b""
    COMMA = b","
    COLON = b":"


_OPENING: Final = {ContainerKind.LIST: b"[", ContainerKind.MAPPING: b"{"}
_CLOSING: Final = {ContainerKind.LIST: b"]", ContainerKind.MAPPING: b"}"}

_MINIMAL_ESCAPES: dict[int, bytes] = {
    QUOTE: b'\\"',
    BACKSLASH: b"\\\\",
}

_SHORT_ESCAPES: dict[int, bytes] = {
    ord("\b"): b"\\b",
    ord("\f"): b"\\f",
    ord("\n"): b"\\n",
    ord("\r"): b"\\r",
    ord("\t"): b"\\t",
}

_FULL_ESCAPES: dict[int, bytes] = {
    **{byte: f"\\u{byte:04x}".encode() for byte in (*range(0x20), 0x7F)},
    **_SHORT_ESCAPES,
    **_MINIMAL_ESCAPES,
}

ESCAPE_TABLES: Final = {
    "minimal": _MINIMAL_ESCAPES,
    "full": _FULL_ESCAPES,
    "tagged": _FULL_ESCAPES,
}

# "tagged" wraps UTF-8 strings as <string>...</string> and anything else
# as <hex>...</hex>, so the output is valid JSON for arbitrary bytes.
STRING_TAG: Final = (b"<string>", b"</string>")
HEX_TAG: Final = (b"<hex>", b"</hex>")


def _is_digit(byte: int) -> bool:
    return ZERO <= byte <= NINE


@dataclass(frozen=True)
class TranscodeConfig:
    """
    Configures transcoding behavior with immutable settings.

    max_depth bounds how many containers may be open at once. escape
    selects "minimal" (quote and backslash only), "full" (also control
    bytes) or "tagged" (full escaping inside <string> tags, <hex> for
    byte strings that are not UTF-8). strict_integers rejects leading
    zeros and negative zero.
    """

    max_depth: int = DEFAULT_MAX_DEPTH
    escape: str = "minimal"
    strict_integers: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.max_depth, int) or isinstance(
            self.max_depth, bool
        ):
            raise TypeError("max_depth must be an integer")
        if self.max_depth < 1:
            raise ValueError("max_depth must be at least 1")
        if not isinstance(self.strict_integers, bool):
            raise TypeError("strict_integers must be a boolean")
        if self.escape not in ESCAPE_TABLES:
            choices = ", ".join(sorted(ESCAPE_TABLES))
            raise ValueError(f"escape must be one of: {choices}")


@dataclass(slots=True)
class Frame:
    """One open context on the structural stack."""

    state: ContextState
    count: int = 0


@dataclass
class StructuralTracker:
    """
    Tracks open containers and decides the separator before each value.

    The stack always starts with a TOP_LEVEL frame which is never popped.
    Error positions are supplied by the caller since the tracker never
    sees the input directly.
    """

    max_depth: int = DEFAULT_MAX_DEPTH
    _stack: list[Frame] = field(
        default_factory=lambda: [Frame(ContextState.TOP_LEVEL)]
    )

    @property
    def depth(self) -> int:
        """Number of open containers."""
        return len(self._stack) - 1

    @property
    def at_top_level(self) -> bool:
        return len(self._stack) == 1

    @property
    def state(self) -> ContextState:
        return self._stack[-1].state

    @property
    def expects_key(self) -> bool:
        """True when the next value must be a dictionary key."""
        return self._stack[-1].state is ContextState.MAPPING_AWAITING_KEY

    def before_value(self) -> Separator:
        """Returns the separator to emit and records one more element."""
        frame = self._stack[-1]

        if frame.state is ContextState.TOP_LEVEL:
            return Separator.NONE

        if frame.state is ContextState.MAPPING_AWAITING_VALUE:
            frame.state = ContextState.MAPPING_AWAITING_KEY
            frame.count += 1
            return Separator.COLON

        separator = Separator.COMMA if frame.count else Separator.NONE
        if frame.state is ContextState.MAPPING_AWAITING_KEY:
            frame.state = ContextState.MAPPING_AWAITING_VALUE
        frame.count += 1
        return separator

    def _push(self, state: ContextState, pos: Position, byte: int) -> None:
        if self.depth >= self.max_depth:
            raise NestingTooDeepError(
                f"Nesting deeper than {self.max_depth} levels", pos, byte
            )
        self._stack.append(Frame(state))

    def open_list(self, pos: Position = 0) -> None:
        self._push(ContextState.LIST_OPEN, pos, LIST_START)

    def open_mapping(self, pos: Position = 0) -> None:
        self._push(ContextState.MAPPING_AWAITING_KEY, pos, DICT_START)

    def close(self, pos: Position = 0) -> ContainerKind:
        """Pops the innermost container and returns its kind."""
        frame = self._stack[-1]

        if frame.state is ContextState.TOP_LEVEL:
            raise UnmatchedCloseError(
                "No matching start for list or dictionary end", pos, END
            )
        if frame.state is ContextState.MAPPING_AWAITING_VALUE:
            raise UnexpectedByteError(
                "Premature end of dictionary, expecting value", pos, END
            )

        self._stack.pop()
        if frame.state is ContextState.LIST_OPEN:
            return ContainerKind.LIST
        return ContainerKind.MAPPING


class Transcoder:
    """
    Decodes bencode from a ByteSource and emits JSON to an Emitter.

    Dispatches on each leading byte: containers are opened and closed on
    the structural stack, integers and strings are decoded in place and
    copied to the output as they are read.
    """

    def __init__(
        self,
        source: ByteSource,
        emitter: Emitter,
        config: TranscodeConfig | None = None,
    ) -> None:
        self.source = source
        self.emitter = emitter
        self.config = config or TranscodeConfig()
        self.tracker = StructuralTracker(self.config.max_depth)
        self._escapes = ESCAPE_TABLES[self.config.escape]

    def run(self) -> None:
        """Transcodes exactly one value, then checks the input is done."""
        try:
            with ProfileContext("run") as profile:
                self._transcode_value()
                self._expect_end()
                profile.nbytes = self.source.position
        except BencodeDecodeError as exc:
            if not exc.latest_bytes:
                exc.latest_bytes = self.source.latest_bytes()
            exc.output_pos = self.emitter.position
            exc.latest_output_bytes = self.emitter.latest_bytes()
            raise

        logger.debug(
            "Transcoded %d input bytes into %d output bytes",
            self.source.position,
            self.emitter.position,
        )

    def _error(
        self, error_cls: type[BencodeDecodeError], msg: str, byte: int | None
    ) -> BencodeDecodeError:
        """Builds an error at the current byte, or just past the end."""
        pos = self.source.position
        if byte is None:
            pos += 1
        return error_cls(msg, pos, byte)

    def _transcode_value(self) -> None:
        while True:
            byte = self.source.next()
            if byte is None:
                raise self._error(
                    UnexpectedEndOfInputError, "Unexpected end of input", None
                )

            self._dispatch(byte)

            if self.tracker.at_top_level:
                return

    def _dispatch(self, byte: int) -> None:
        pos = self.source.position

        if byte == LIST_START:
            self._begin_value(byte)
            self.tracker.open_list(pos)
            self.emitter.write(_OPENING[ContainerKind.LIST])
        elif byte == DICT_START:
            self._begin_value(byte)
            self.tracker.open_mapping(pos)
            self.emitter.write(_OPENING[ContainerKind.MAPPING])
        elif byte == INTEGER_START:
            self._begin_value(byte)
            self._decode_integer()
        elif _is_digit(byte):
            self._begin_value(byte)
            self._decode_string(byte)
        elif byte == END:
            kind = self.tracker.close(pos)
            self.emitter.write(_CLOSING[kind])
        else:
            raise self._error(
                UnexpectedByteError,
                "Unrecognized first byte for new bencoded value",
                byte,
            )

    def _begin_value(self, byte: int) -> None:
        """Emits the separator owed before a new value."""
        if self.tracker.expects_key and not _is_digit(byte):
            raise self._error(
                UnexpectedByteError,
                "Expected string for dictionary key",
                byte,
            )
        self.emitter.write(self.tracker.before_value().value)

    def _decode_integer(self) -> None:
        """Copies '-'? digit+ up to the terminating 'e'."""
        with ProfileContext("decode_integer") as profile:
            start = self.source.position
            strict = self.config.strict_integers
            seen_sign = False
            seen_digit = False
            leading_zero = False

            while True:
                byte = self.source.next()
                if byte is None:
                    raise self._error(
                        UnexpectedEndOfInputError,
                        "Unexpected end of input parsing integer",
                        None,
                    )

                if _is_digit(byte):
                    # Strict: "0" only on its own, never "-0" or "0N".
                    if strict and (
                        leading_zero
                        or (seen_sign and not seen_digit and byte == ZERO)
                    ):
                        raise self._error(
                            MalformedIntegerError,
                            "Leading zeros in integers are not allowed",
                            byte,
                        )
                    leading_zero = not seen_digit and byte == ZERO
                    seen_digit = True
                    self.emitter.write_byte(byte)
                elif byte == END and seen_digit:
                    profile.nbytes = self.source.position - start - 1
                    return
                elif byte == MINUS and not (seen_sign or seen_digit):
                    seen_sign = True
                    self.emitter.write_byte(byte)
                else:
                    raise self._error(
                        MalformedIntegerError,
                        "Unexpected byte parsing integer",
                        byte,
                    )

    def _decode_string(self, first_digit: int) -> None:
        """Reads the length prefix, then copies that many bytes quoted."""
        with ProfileContext("decode_string") as profile:
            length = first_digit - ZERO

            while True:
                byte = self.source.next()
                if byte is None:
                    raise self._error(
                        UnterminatedStringError,
                        "Unexpected end of input parsing string length",
                        None,
                    )
                if byte == LENGTH_SEPARATOR:
                    break
                if not _is_digit(byte):
                    raise self._error(
                        UnexpectedByteError,
                        "Invalid string length byte, expected a digit",
                        byte,
                    )
                length = length * 10 + byte - ZERO

            profile.nbytes = length
            if self.config.escape == "tagged":
                self._write_tagged(self._read_string_bytes(length))
                return

            self.emitter.write_byte(QUOTE)
            escapes = self._escapes
            for _ in range(length):
                byte = self._next_string_byte()
                escaped = escapes.get(byte)
                if escaped is None:
                    self.emitter.write_byte(byte)
                else:
                    self.emitter.write(escaped)
            self.emitter.write_byte(QUOTE)

    def _next_string_byte(self) -> int:
        byte = self.source.next()
        if byte is None:
            raise self._error(
                UnterminatedStringError,
                "Unexpected end of input parsing string value",
                None,
            )
        return byte

    def _read_string_bytes(self, length: int) -> bytearray:
        # Tagged output depends on whether the whole string is UTF-8, so
        # this one string is held until its last byte arrives.
        data = bytearray()
        for _ in range(length):
            data.append(self._next_string_byte())
        return data

    def _write_tagged(self, data: bytearray) -> None:
        """Writes "<string>...</string>" for UTF-8, else "<hex>...</hex>"."""
        try:
            data.decode("utf-8")
        except UnicodeDecodeError:
            opening, closing = HEX_TAG
            body = data.hex().encode("ascii")
        else:
            opening, closing = STRING_TAG
            escapes = self._escapes
            body = b"".join(
                escapes.get(byte, bytes((byte,))) for byte in data
            )

        self.emitter.write_byte(QUOTE)
        self.emitter.write(opening)
        self.emitter.write(body)
        self.emitter.write(closing)
        self.emitter.write_byte(QUOTE)

    def _expect_end(self) -> None:
        """Allows one trailing newline after the value and nothing else."""
        if self.source.peek() == NEWLINE:
            self.source.next()

        byte = self.source.next()
        if byte is None:
            return
        if byte == END:
            # Nothing is open any more, so the tracker reports underflow.
            self.tracker.close(self.source.position)
        raise self._error(
            UnexpectedByteError, "Extra data after bencoded value", byte
        )


def transcode(src: ByteInput, dst: IO[bytes], **kwargs: Any) -> None:
    """
    Transcodes one bencoded value from src and writes JSON to dst.

    Output is written as it is produced, so on error dst keeps whatever
    was emitted before the failing byte.
    """
    if not hasattr(dst, "write"):
        raise TypeError("dst must have a write() method")

    config = TranscodeConfig(**kwargs)
    Transcoder(ByteSource(src), Emitter(dst), config).run()


def transcodes(data: bytes | bytearray | memoryview, **kwargs: Any) -> bytes:
    """Transcodes an in-memory bencoded value into JSON bytes."""
    if isinstance(data, str):
        raise TypeError("the bencode object must be bytes, not str")

    out = io.BytesIO()
    transcode(data, out, **kwargs)
    return out.getvalue()


def transcode_to_str(
    data: bytes | bytearray | memoryview, **kwargs: Any
) -> str:
    """
    Transcodes into a JSON string.

    Byte strings are copied without validation, so bytes that are not
    valid UTF-8 come back as U+FFFD.
    """
    return transcodes(data, **kwargs).decode("utf-8", errors="replace")


__all__ = [
    "DEFAULT_MAX_DEPTH",
    "BencodeDecodeError",
    "ByteSource",
    "ContainerKind",
    "ContextState",
    "Emitter",
    "HEX_TAG",
    "HotPathStats",
    "MalformedIntegerError",
    "NestingTooDeepError",
    "Separator",
    "STRING_TAG",
    "StructuralTracker",
    "TranscodeConfig",
    "Transcoder",
    "UnexpectedByteError",
    "UnexpectedEndOfInputError",
    "UnmatchedCloseError",
    "UnterminatedStringError",
    "clear_hot_path_stats",
    "get_hot_path_stats",
    "transcode",
    "transcode_to_str",
    "transcodes",
]
