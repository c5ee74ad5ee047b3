"""Utility helpers for secp256k1 keys, keccak hashing and 20-byte addresses."""

from __future__ import annotations

from typing import Union

from Crypto.Hash import keccak
from cryptography.hazmat.primitives.asymmetric import ec
from eth_keys import keys
from eth_utils import to_checksum_address as _to_checksum_address

from .constants import ADDRESS_SIZE, HASH_SIZE, SECP256K1_N

_CURVE = ec.SECP256K1()

AddressLike = Union[bytes, bytearray, str]


def keccak256(data: bytes) -> bytes:
    """Compute keccak256 hash (same as Ethereum)."""
    k = keccak.new(digest_bits=256)
    k.update(data)
    return k.digest()


def normalize_address(address: AddressLike) -> bytes:
    """
    Convert an address given as raw bytes or 0x-prefixed hex into 20 bytes.

    Raises:
        ValueError: If the value is not a 20-byte address.
    """
    if isinstance(address, (bytes, bytearray)):
        raw = bytes(address)
    elif isinstance(address, str):
        hex_part = address[2:] if address[:2].lower() == "0x" else address
        if len(hex_part) != ADDRESS_SIZE * 2:
            raise ValueError(f"Address hex part must be 40 characters, got {len(hex_part)}")
        try:
            raw = bytes.fromhex(hex_part)
        except ValueError:
            raise ValueError(f"Invalid hex characters in address: {address}")
    else:
        raise TypeError(f"Address must be bytes or str, got {type(address).__name__}")

    if len(raw) != ADDRESS_SIZE:
        raise ValueError(f"Address must be {ADDRESS_SIZE} bytes, got {len(raw)} bytes")
    return raw


def to_checksum_address(address: AddressLike) -> str:
    """EIP-55 mixed-case rendering of an address."""
    return _to_checksum_address(normalize_address(address))


def validate_message_hash(message_hash: bytes) -> bytes:
    if not isinstance(message_hash, (bytes, bytearray)):
        raise TypeError(f"Message hash must be bytes, got {type(message_hash).__name__}")
    if len(message_hash) != HASH_SIZE:
        raise ValueError(f"Message hash must be {HASH_SIZE} bytes, got {len(message_hash)} bytes")
    return bytes(message_hash)


def _normalize_private_value(value: int) -> int:
    normalized = value % SECP256K1_N
    if normalized == 0:
        normalized = 1
    return normalized


def generate_secp256k1_keypair_hex() -> tuple[str, str]:
    """Generate a fresh key pair as (private hex, uncompressed public hex without prefix)."""
    private_key = ec.generate_private_key(_CURVE)
    private_hex = private_key.private_numbers().private_value.to_bytes(32, "big").hex()
    numbers = private_key.public_key().public_numbers()
    public_hex = (numbers.x.to_bytes(32, "big") + numbers.y.to_bytes(32, "big")).hex()
    return private_hex, public_hex


def deterministic_private_key_hex(seed: bytes) -> str:
    """Derive a private key from a seed; used for reproducible fixtures."""
    if len(seed) < 32:
        seed = seed.ljust(32, b"\x00")
    return _normalize_private_value(int.from_bytes(seed[:32], "big")).to_bytes(32, "big").hex()


def public_key_to_address(public_hex: str) -> bytes:
    raw = bytes.fromhex(public_hex)
    if len(raw) != 64:
        raise ValueError("Public key hex must be 64 bytes (uncompressed without prefix).")
    return keccak256(raw)[-ADDRESS_SIZE:]


def private_key_to_address(private_hex: str) -> bytes:
    return keys.PrivateKey(bytes.fromhex(private_hex)).public_key.to_canonical_address()


def sign_hash(private_hex: str, message_hash: bytes) -> bytes:
    """
    Sign a 32-byte hash and return the 65-byte r || s || v form.

    The recovery byte is reported as 27 or 28, the encoding contract wallets
    and on-chain recovery expect.
    """
    message_hash = validate_message_hash(message_hash)
    signature = keys.PrivateKey(bytes.fromhex(private_hex)).sign_msg_hash(message_hash)
    return (
        signature.r.to_bytes(32, "big")
        + signature.s.to_bytes(32, "big")
        + bytes([signature.v + 27])
    )
