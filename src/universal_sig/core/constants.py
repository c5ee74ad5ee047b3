"""
Universal Signature Constants

Process-wide immutable values shared by the codec, the adapters and the
validator.
"""

from __future__ import annotations

# ==================== ABI ====================

WORD_SIZE = 32
ADDRESS_SIZE = 20
SELECTOR_SIZE = 4

# ==================== Wrapper Format ====================

# 0x6492 repeated to fill one word. The trailing byte 0x92 can never be a
# recovery id (27 or 28), so a wrapped blob never looks like a raw signature.
MAGIC_SUFFIX = bytes.fromhex("6492" * 16)

# ==================== Contract Signatures ====================

# bytes4(keccak256("isValidSignature(bytes32,bytes)"))
IS_VALID_SIGNATURE_SELECTOR = bytes.fromhex("1626ba7e")
ERC1271_SUCCESS = IS_VALID_SIGNATURE_SELECTOR
IS_VALID_SIGNATURE_SIGNATURE = "isValidSignature(bytes32,bytes)"

# ==================== Raw Signatures ====================

RAW_SIGNATURE_LENGTH = 65
VALID_RECOVERY_IDS = frozenset({27, 28})
HASH_SIZE = 32

# secp256k1 group order
SECP256K1_N = int("FFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141", 16)
