"""
Test data generators for transcoding benchmarks.

Creates bencoded documents shaped like common bencode payloads:
- Small and large torrent-style metainfo dictionaries
- Long mixed lists of integers and strings
- Deeply nested dictionaries
- String-heavy documents with bytes that need JSON escaping

Each generator returns the bencoded bytes together with the equivalent
Python value, so baselines can serialize the already-decoded value.
"""

import random
import string
from typing import Any

# Constants for random data generation
_INT_TYPE = 1
_STRING_TYPE = 2
_LIST_TYPE = 3
_ESCAPE_PROBABILITY = 0.3


def bencode(value: Any) -> bytes:
    """Encodes str, int, list and dict values for benchmark fixtures."""
    if isinstance(value, int):
        return b"i" + str(value).encode() + b"e"
    if isinstance(value, str):
        encoded = value.encode("utf-8")
        return str(len(encoded)).encode() + b":" + encoded
    if isinstance(value, list):
        return b"l" + b"".join(bencode(item) for item in value) + b"e"
    if isinstance(value, dict):
        body = b"".join(
            bencode(key) + bencode(item) for key, item in value.items()
        )
        return b"d" + body + b"e"
    raise TypeError(f"cannot bencode {type(value).__name__}")


def generate_test_data(data_type: str) -> tuple[bytes, Any]:
    """Generates (bencoded bytes, Python value) for the given type."""
    generators = {
        "small_torrent": _generate_small_torrent,
        "large_torrent": _generate_large_torrent,
        "mixed_list": _generate_mixed_list,
        "nested_structure": _generate_nested_structure,
        "string_heavy": _generate_string_heavy,
    }

    if data_type not in generators:
        raise ValueError(f"Unknown data type: {data_type}")

    value = generators[data_type]()
    return bencode(value), value


def _random_string(length: int) -> str:
    return "".join(random.choices(string.ascii_letters, k=length))


def _generate_small_torrent() -> dict[str, Any]:
    """Generates a single-file metainfo dictionary (< 1KB)."""
    return {
        "announce": "http://tracker.example.com:6969/announce",
        "created by": "bencode2json benchmarks",
        "creation date": 1700000000,
        "info": {
            "length": 1048576,
            "name": "ubuntu.iso",
            "piece length": 262144,
            "pieces": _random_string(80),
        },
    }


def _generate_large_torrent() -> dict[str, Any]:
    """Generates a multi-file metainfo dictionary (> 10KB)."""
    return {
        "announce": "http://tracker.example.com:6969/announce",
        "announce-list": [
            [f"http://tracker{i}.example.com/announce"] for i in range(20)
        ],
        "info": {
            "files": [
                {
                    "length": random.randint(1, 10**9),
                    "path": [_random_string(8), f"{_random_string(12)}.bin"],
                }
                for _ in range(200)
            ],
            "name": _random_string(16),
            "piece length": 262144,
            "pieces": _random_string(2000),
        },
    }


def _generate_mixed_list() -> list[Any]:
    """Generates a long list of integers, strings and small lists."""
    items: list[Any] = []
    for _ in range(2000):
        choice = random.randint(1, 3)
        if choice == _INT_TYPE:
            items.append(random.randint(-(10**12), 10**12))
        elif choice == _STRING_TYPE:
            items.append(_random_string(random.randint(5, 30)))
        else:
            items.append([random.randint(0, 100), _random_string(4)])
    return items


def _generate_nested_structure() -> dict[str, Any]:
    """Generates a deeply nested dictionary tree."""

    def create_nested_dict(depth: int) -> dict[str, Any]:
        if depth <= 0:
            return {"value": _random_string(10)}

        return {
            "level": depth,
            "data": _random_string(15),
            "items": [create_nested_dict(depth - 1) for _ in range(3)],
            "nested": create_nested_dict(depth - 1),
        }

    return create_nested_dict(7)


def _generate_string_heavy() -> dict[str, Any]:
    """Generates strings full of quotes and backslashes."""

    def create_escaped_string() -> str:
        chars = []
        for _ in range(50):
            if random.random() < _ESCAPE_PROBABILITY:
                chars.append(random.choice(['"', "\\"]))
            else:
                chars.append(
                    random.choice(string.ascii_letters + string.digits + " ")
                )
        return "".join(chars)

    return {
        "strings": [create_escaped_string() for _ in range(200)],
        "paths": {
            f"key_{i}": f"C:\\Users\\{_random_string(8)}\\file_{i}.txt"
            for i in range(50)
        },
    }
