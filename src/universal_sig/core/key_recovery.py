"""
Raw secp256k1 signature parsing and signer recovery.

Recovery itself is delegated to ``eth_keys``; this module enforces the
65-byte ``r || s || v`` layout with ``v`` in {27, 28} before anything reaches
the primitive.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from eth_keys import keys
from eth_keys.exceptions import BadSignature, ValidationError as EthKeysValidationError

from .constants import RAW_SIGNATURE_LENGTH, VALID_RECOVERY_IDS
from .crypto_utils import validate_message_hash
from .exceptions import InvalidRecoveryIdError, InvalidSignatureLengthError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RawSignature:
    r: int
    s: int
    v: int

    @classmethod
    def from_bytes(cls, signature: bytes) -> "RawSignature":
        return parse_raw_signature(signature)

    def to_bytes(self) -> bytes:
        return self.r.to_bytes(32, "big") + self.s.to_bytes(32, "big") + bytes([self.v])


def _require_recovery_id(v: int) -> None:
    if v not in VALID_RECOVERY_IDS:
        raise InvalidRecoveryIdError(
            f"Recovery id must be 27 or 28, got {v}",
            recovery_id=v,
        )


def parse_raw_signature(signature: bytes) -> RawSignature:
    """
    Parse ``r || s || v``.

    Raises:
        InvalidSignatureLengthError: If the signature is not exactly 65 bytes
        InvalidRecoveryIdError: If the trailing byte is not 27 or 28
    """
    if len(signature) != RAW_SIGNATURE_LENGTH:
        raise InvalidSignatureLengthError(
            f"Signature must be {RAW_SIGNATURE_LENGTH} bytes, got {len(signature)} bytes",
            actual_length=len(signature),
        )
    v = signature[64]
    _require_recovery_id(v)
    return RawSignature(
        r=int.from_bytes(signature[:32], "big"),
        s=int.from_bytes(signature[32:64], "big"),
        v=v,
    )


def recover_address(message_hash: bytes, r: int, s: int, v: int) -> Optional[bytes]:
    """
    Recover the 20-byte signer address.

    Returns:
        The recovered address, or None when no public key can be recovered
        (for example r or s out of range). Callers treat None as a signer
        that matches nobody.

    Raises:
        InvalidRecoveryIdError: If v is not 27 or 28
    """
    _require_recovery_id(v)
    message_hash = validate_message_hash(message_hash)
    try:
        signature = keys.Signature(vrs=(v - 27, r, s))
        public_key = signature.recover_public_key_from_msg_hash(message_hash)
    except (BadSignature, EthKeysValidationError) as e:
        logger.debug(
            "Public key recovery failed",
            extra={
                "event": "key_recovery.failed",
                "error": str(e),
                "error_type": type(e).__name__,
            },
        )
        return None
    return public_key.to_canonical_address()
