"""
Unit tests for the ABI head/tail codec.
"""

import pytest

from universal_sig.core.abi_codec import (
    decode_abi,
    encode_abi,
    encode_call,
    encode_uint256,
    function_selector,
)
from universal_sig.core.constants import IS_VALID_SIGNATURE_SELECTOR, IS_VALID_SIGNATURE_SIGNATURE
from universal_sig.core.exceptions import AbiDecodingError


def word(value: int) -> bytes:
    return value.to_bytes(32, "big")


class TestFunctionSelector:
    def test_is_valid_signature_selector(self):
        assert function_selector(IS_VALID_SIGNATURE_SIGNATURE) == IS_VALID_SIGNATURE_SELECTOR

    def test_transfer_selector(self):
        assert function_selector("transfer(address,uint256)").hex() == "a9059cbb"

    def test_encode_call_prefixes_selector(self):
        data = encode_call("transfer(address,uint256)", ("address", "uint256"), (b"\x11" * 20, 5))
        assert data[:4].hex() == "a9059cbb"
        assert data[4:] == b"\x00" * 12 + b"\x11" * 20 + word(5)


class TestEncode:
    def test_static_types(self):
        encoded = encode_abi(
            ("address", "uint256", "bool", "bytes4"),
            (b"\x22" * 20, 7, True, b"\xde\xad\xbe\xef"),
        )
        assert encoded == (
            b"\x00" * 12 + b"\x22" * 20
            + word(7)
            + word(1)
            + b"\xde\xad\xbe\xef" + b"\x00" * 28
        )

    def test_dynamic_bytes_layout(self):
        encoded = encode_abi(("bytes32", "bytes"), (b"\x01" * 32, b"\xaa\xbb"))
        assert encoded == (
            b"\x01" * 32
            + word(64)
            + word(2)
            + b"\xaa\xbb" + b"\x00" * 30
        )

    def test_empty_bytes_has_length_word_only(self):
        encoded = encode_abi(("bytes",), (b"",))
        assert encoded == word(32) + word(0)

    def test_wrong_value_count_rejected(self):
        with pytest.raises(ValueError):
            encode_abi(("address", "bytes"), (b"\x00" * 20,))

    def test_short_address_rejected(self):
        with pytest.raises(ValueError, match="20 bytes"):
            encode_abi(("address",), (b"\x00" * 19,))

    def test_uint256_range(self):
        with pytest.raises(ValueError):
            encode_uint256(-1)
        with pytest.raises(ValueError):
            encode_uint256(2 ** 256)

    def test_unsupported_type(self):
        with pytest.raises(ValueError, match="Unsupported"):
            encode_abi(("string",), ("hello",))


class TestDecode:
    def test_decodes_what_it_encodes(self):
        values = (b"\x33" * 20, b"factory-call", b"\x44" * 65)
        types = ("address", "bytes", "bytes")
        assert decode_abi(types, encode_abi(types, values)) == values

    def test_too_short_for_head(self):
        with pytest.raises(AbiDecodingError, match="too short"):
            decode_abi(("address", "bytes", "bytes"), b"\x00" * 64)

    def test_not_word_aligned(self):
        data = encode_abi(("bytes",), (b"\x01",)) + b"\x00"
        with pytest.raises(AbiDecodingError, match="multiple of 32"):
            decode_abi(("bytes",), data)

    def test_dirty_address_word(self):
        data = b"\x01" + b"\x00" * 11 + b"\x22" * 20
        with pytest.raises(AbiDecodingError, match="non-zero high bytes"):
            decode_abi(("address",), data)

    def test_offset_out_of_order(self):
        data = word(96) + word(0)
        with pytest.raises(AbiDecodingError, match="inconsistent"):
            decode_abi(("bytes",), data)

    def test_length_exceeds_data(self):
        data = word(32) + word(1000)
        with pytest.raises(AbiDecodingError, match="exceeds"):
            decode_abi(("bytes",), data)

    def test_missing_length_word(self):
        data = word(64) + word(64)
        with pytest.raises(AbiDecodingError):
            decode_abi(("bytes", "bytes"), data)

    def test_dirty_padding(self):
        data = word(32) + word(1) + b"\x01\x02" + b"\x00" * 30
        with pytest.raises(AbiDecodingError, match="padding"):
            decode_abi(("bytes",), data)

    def test_trailing_words(self):
        data = encode_abi(("bytes",), (b"\x01",)) + word(0)
        with pytest.raises(AbiDecodingError, match="trailing"):
            decode_abi(("bytes",), data)

    def test_invalid_bool(self):
        with pytest.raises(AbiDecodingError):
            decode_abi(("bool",), word(2))

    def test_fixed_bytes_padding(self):
        with pytest.raises(AbiDecodingError, match="padding"):
            decode_abi(("bytes4",), b"\x16\x26\xba\x7e" + b"\x00" * 27 + b"\x01")
