"""
Pytest configuration and shared fixtures for bencode2json tests.

Provides immutable test case fixtures for inputs that must transcode and
inputs that must fail with a specific error at a specific position.
"""

from dataclasses import dataclass

import pytest

import bencode2json


@dataclass(frozen=True)
class BencodeTestCase:
    """
    Immutable container for transcoding test case data.

    Holds the bencoded input with either the expected JSON output or the
    expected error type and position.
    """

    description: str
    input_data: bytes
    expected_output: bytes = b""
    should_fail: bool = False
    error: type[bencode2json.BencodeDecodeError] | None = None
    error_pos: int = 0


@pytest.fixture
def bencode_pass_cases() -> list[BencodeTestCase]:
    """
    Provides bencoded values that must transcode successfully.

    Covers every value kind, nesting, separators and byte strings that
    contain bencode control characters.
    """
    cases = [
        ("positive integer", b"i42e", b"42"),
        ("negative integer", b"i-7e", b"-7"),
        ("zero", b"i0e", b"0"),
        ("negative zero", b"i-0e", b"-0"),
        (
            "integer beyond 64 bits",
            b"i123456789012345678901234567890e",
            b"123456789012345678901234567890",
        ),
        ("string", b"4:spam", b'"spam"'),
        ("empty string", b"0:", b'""'),
        ("length with leading zero", b"00:", b'""'),
        ("multi-digit length", b"12:hello, world", b'"hello, world"'),
        ("string of bencode markers", b"5:ilde:", b'"ilde:"'),
        ("string of digits", b"3:123", b'"123"'),
        ("empty list", b"le", b"[]"),
        ("empty dictionary", b"de", b"{}"),
        ("list", b"l4:spami42ee", b'["spam",42]'),
        ("dictionary", b"d3:keyi1ee", b'{"key":1}'),
        (
            "dictionary with several pairs",
            b"d3:cow3:moo4:spam4:eggse",
            b'{"cow":"moo","spam":"eggs"}',
        ),
        (
            "list of lists",
            b"lli1ei2eeli3eee",
            b"[[1,2],[3]]",
        ),
        (
            "nested empties",
            b"lledelee",
            b"[[],{},[]]",
        ),
        (
            "dictionary of containers",
            b"d4:listli1ei2ee4:dictd1:ai-1eee",
            b'{"list":[1,2],"dict":{"a":-1}}',
        ),
        (
            "list of dictionaries",
            b"ld1:ai1eed1:bi2eee",
            b'[{"a":1},{"b":2}]',
        ),
        (
            "unsorted duplicate keys",
            b"d1:bi1e1:ai2e1:bi3ee",
            b'{"b":1,"a":2,"b":3}',
        ),
        ("trailing newline", b"i42e\n", b"42"),
        ("container with trailing newline", b"le\n", b"[]"),
    ]
    return [
        BencodeTestCase(
            description=description,
            input_data=input_data,
            expected_output=expected_output,
        )
        for description, input_data, expected_output in cases
    ]


@pytest.fixture
def bencode_fail_cases() -> list[BencodeTestCase]:
    """
    Provides malformed bencoded inputs with the error each must raise.

    Positions are 1-based; end-of-input errors point one past the last
    byte.
    """
    cases = [
        ("empty input", b"", bencode2json.UnexpectedEndOfInputError, 1),
        ("unknown leading byte", b"x", bencode2json.UnexpectedByteError, 1),
        ("bare close", b"e", bencode2json.UnmatchedCloseError, 1),
        ("extra close", b"lee", bencode2json.UnmatchedCloseError, 3),
        (
            "close after top-level integer",
            b"i1ee",
            bencode2json.UnmatchedCloseError,
            4,
        ),
        (
            "close after top-level dictionary",
            b"dee",
            bencode2json.UnmatchedCloseError,
            3,
        ),
        (
            "close after trailing newline",
            b"le\ne",
            bencode2json.UnmatchedCloseError,
            4,
        ),
        ("bad integer digit", b"i4x2e", bencode2json.MalformedIntegerError, 3),
        ("empty integer", b"ie", bencode2json.MalformedIntegerError, 2),
        ("sign only", b"i-e", bencode2json.MalformedIntegerError, 3),
        ("double sign", b"i--1e", bencode2json.MalformedIntegerError, 3),
        ("late sign", b"i1-e", bencode2json.MalformedIntegerError, 3),
        (
            "unterminated integer",
            b"i42",
            bencode2json.UnexpectedEndOfInputError,
            4,
        ),
        (
            "short string",
            b"5:abc",
            bencode2json.UnterminatedStringError,
            6,
        ),
        (
            "length without separator",
            b"12",
            bencode2json.UnterminatedStringError,
            3,
        ),
        (
            "bad length byte",
            b"3x:abc",
            bencode2json.UnexpectedByteError,
            2,
        ),
        (
            "unclosed list",
            b"li1e",
            bencode2json.UnexpectedEndOfInputError,
            5,
        ),
        (
            "unclosed dictionary",
            b"d3:keyi1e",
            bencode2json.UnexpectedEndOfInputError,
            10,
        ),
        (
            "dictionary missing value",
            b"d3:keye",
            bencode2json.UnexpectedByteError,
            7,
        ),
        (
            "integer key",
            b"di1ei2ee",
            bencode2json.UnexpectedByteError,
            2,
        ),
        (
            "list key",
            b"dlei1ee",
            bencode2json.UnexpectedByteError,
            2,
        ),
        (
            "second top-level value",
            b"i1ei2e",
            bencode2json.UnexpectedByteError,
            4,
        ),
        (
            "two trailing newlines",
            b"i1e\n\n",
            bencode2json.UnexpectedByteError,
            5,
        ),
        (
            "leading newline",
            b"\ni1e",
            bencode2json.UnexpectedByteError,
            1,
        ),
    ]
    return [
        BencodeTestCase(
            description=description,
            input_data=input_data,
            should_fail=True,
            error=error,
            error_pos=error_pos,
        )
        for description, input_data, error, error_pos in cases
    ]
