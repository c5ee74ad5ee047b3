"""
Minimal ABI head/tail codec.

Covers the handful of types the verifier exchanges with contracts:
``address``, ``uint256``, ``bool``, fixed ``bytesN`` and dynamic ``bytes``.
Decoding is strict: only the canonical encoding that ``encode_abi`` would
produce is accepted, so ``encode_abi(types, decode_abi(types, data)) == data``
for every input that decodes.
"""

from __future__ import annotations

import re
from typing import Any, List, Sequence, Tuple

from .constants import ADDRESS_SIZE, SELECTOR_SIZE, WORD_SIZE
from .crypto_utils import keccak256
from .exceptions import AbiDecodingError

_FIXED_BYTES_RE = re.compile(r"^bytes([1-9]|[12][0-9]|3[0-2])$")


def function_selector(signature: str) -> bytes:
    """First four bytes of keccak256 over a canonical function signature."""
    return keccak256(signature.encode("ascii"))[:SELECTOR_SIZE]


def _is_dynamic(type_name: str) -> bool:
    return type_name == "bytes"


def _fixed_bytes_size(type_name: str) -> int:
    match = _FIXED_BYTES_RE.match(type_name)
    if not match:
        raise ValueError(f"Unsupported ABI type: {type_name}")
    return int(match.group(1))


def _padded_length(length: int) -> int:
    return (length + WORD_SIZE - 1) // WORD_SIZE * WORD_SIZE


def encode_uint256(value: int) -> bytes:
    if value < 0 or value >= 2 ** 256:
        raise ValueError(f"uint256 out of range: {value}")
    return value.to_bytes(WORD_SIZE, "big")


def _encode_static(type_name: str, value: Any) -> bytes:
    if type_name == "address":
        raw = bytes(value)
        if len(raw) != ADDRESS_SIZE:
            raise ValueError(f"Address must be {ADDRESS_SIZE} bytes, got {len(raw)} bytes")
        return raw.rjust(WORD_SIZE, b"\x00")
    if type_name == "uint256":
        return encode_uint256(value)
    if type_name == "bool":
        return encode_uint256(1 if value else 0)
    size = _fixed_bytes_size(type_name)
    raw = bytes(value)
    if len(raw) != size:
        raise ValueError(f"{type_name} value must be {size} bytes, got {len(raw)} bytes")
    return raw.ljust(WORD_SIZE, b"\x00")


def _encode_dynamic(value: bytes) -> bytes:
    raw = bytes(value)
    return encode_uint256(len(raw)) + raw.ljust(_padded_length(len(raw)), b"\x00")


def encode_abi(types: Sequence[str], values: Sequence[Any]) -> bytes:
    """
    Encode values as an ABI tuple.

    Static values sit in the head; dynamic values are appended to the tail in
    order, with their head word holding the offset from the tuple start.
    """
    if len(types) != len(values):
        raise ValueError(f"Expected {len(types)} values, got {len(values)}")

    head_size = WORD_SIZE * len(types)
    head: List[bytes] = []
    tail: List[bytes] = []
    tail_size = 0

    for type_name, value in zip(types, values):
        if _is_dynamic(type_name):
            head.append(encode_uint256(head_size + tail_size))
            encoded = _encode_dynamic(value)
            tail.append(encoded)
            tail_size += len(encoded)
        else:
            head.append(_encode_static(type_name, value))

    return b"".join(head) + b"".join(tail)


def encode_call(signature: str, types: Sequence[str], values: Sequence[Any]) -> bytes:
    """Selector for ``signature`` followed by the encoded arguments."""
    return function_selector(signature) + encode_abi(types, values)


def _read_word(data: bytes, offset: int) -> bytes:
    if offset + WORD_SIZE > len(data):
        raise AbiDecodingError(
            f"Word at offset {offset} exceeds data length {len(data)}",
            details={"offset": offset, "length": len(data)},
        )
    return data[offset:offset + WORD_SIZE]


def _decode_static(type_name: str, word: bytes, position: int) -> Any:
    if type_name == "address":
        if any(word[:WORD_SIZE - ADDRESS_SIZE]):
            raise AbiDecodingError(
                f"Address word at head position {position} has non-zero high bytes",
                details={"position": position},
            )
        return word[WORD_SIZE - ADDRESS_SIZE:]
    if type_name == "uint256":
        return int.from_bytes(word, "big")
    if type_name == "bool":
        value = int.from_bytes(word, "big")
        if value not in (0, 1):
            raise AbiDecodingError(f"Invalid bool word at head position {position}")
        return bool(value)
    size = _fixed_bytes_size(type_name)
    if any(word[size:]):
        raise AbiDecodingError(
            f"{type_name} word at head position {position} has non-zero padding",
            details={"position": position},
        )
    return word[:size]


def _decode_dynamic(data: bytes, offset: int, position: int) -> Tuple[bytes, int]:
    """Return (value, end of padded segment)."""
    if offset % WORD_SIZE:
        raise AbiDecodingError(
            f"Offset {offset} at head position {position} is not word aligned",
            details={"position": position, "offset": offset},
        )
    length = int.from_bytes(_read_word(data, offset), "big")
    start = offset + WORD_SIZE
    if length > len(data) - start:
        raise AbiDecodingError(
            f"Length {length} at offset {offset} exceeds remaining data",
            details={"position": position, "offset": offset, "declared_length": length},
        )
    end = start + _padded_length(length)
    if end > len(data):
        raise AbiDecodingError(
            f"Padded segment at offset {offset} exceeds data length {len(data)}",
            details={"position": position, "offset": offset},
        )
    if any(data[start + length:end]):
        raise AbiDecodingError(
            f"Segment at offset {offset} has non-zero padding",
            details={"position": position, "offset": offset},
        )
    return data[start:start + length], end


def decode_abi(types: Sequence[str], data: bytes) -> Tuple[Any, ...]:
    """
    Decode a canonical ABI tuple.

    Raises:
        AbiDecodingError: If the data is short, not word aligned, carries
            inconsistent offsets or lengths, dirty padding, or trailing bytes.
    """
    data = bytes(data)
    head_size = WORD_SIZE * len(types)

    if len(data) < head_size:
        raise AbiDecodingError(
            f"Data too short for {len(types)}-word head: {len(data)} bytes",
            details={"length": len(data), "head_size": head_size},
        )
    if len(data) % WORD_SIZE:
        raise AbiDecodingError(
            f"Data length {len(data)} is not a multiple of {WORD_SIZE}",
            details={"length": len(data)},
        )

    values: List[Any] = []
    expected_offset = head_size
    for position, type_name in enumerate(types):
        word = _read_word(data, position * WORD_SIZE)
        if not _is_dynamic(type_name):
            values.append(_decode_static(type_name, word, position))
            continue

        offset = int.from_bytes(word, "big")
        # Segments must follow the head back to back, in argument order.
        if offset != expected_offset:
            raise AbiDecodingError(
                f"Offset {offset} at head position {position} is inconsistent, expected {expected_offset}",
                details={"position": position, "offset": offset, "expected": expected_offset},
            )
        value, expected_offset = _decode_dynamic(data, offset, position)
        values.append(value)

    if expected_offset != len(data):
        raise AbiDecodingError(
            f"{len(data) - expected_offset} trailing bytes after encoded tuple",
            details={"length": len(data), "consumed": expected_offset},
        )

    return tuple(values)
