"""
Counterfactual signature wrapper codec.

A wrapped signature carries everything needed to deploy the signing account
before its contract signature check runs:

    abi.encode(address deployer, bytes deployerCalldata, bytes innerSignature)
    || MAGIC_SUFFIX

Decoding never trusts slice bounds: the prefix must be the canonical tuple
encoding, otherwise ``MalformedWrapperError`` is raised and nothing else
happens.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .abi_codec import decode_abi, encode_abi
from .constants import MAGIC_SUFFIX
from .crypto_utils import AddressLike, normalize_address
from .exceptions import AbiDecodingError, MalformedWrapperError

logger = logging.getLogger(__name__)

WRAPPER_TYPES = ("address", "bytes", "bytes")


@dataclass(frozen=True)
class WrapperEnvelope:
    """Deployment data and the signature the deployed account should accept."""

    deployer: bytes
    deployer_calldata: bytes
    inner_signature: bytes

    def __post_init__(self) -> None:
        object.__setattr__(self, "deployer", normalize_address(self.deployer))
        object.__setattr__(self, "deployer_calldata", bytes(self.deployer_calldata))
        object.__setattr__(self, "inner_signature", bytes(self.inner_signature))


def is_wrapped(signature: bytes) -> bool:
    """True iff the blob ends with the 32-byte magic suffix."""
    return len(signature) >= len(MAGIC_SUFFIX) and bytes(signature[-len(MAGIC_SUFFIX):]) == MAGIC_SUFFIX


def decode_wrapper(signature: bytes) -> WrapperEnvelope:
    """
    Split a wrapped signature into its envelope.

    Raises:
        MalformedWrapperError: If the suffix is missing or the prefix is not
            a canonical (address, bytes, bytes) encoding.
    """
    signature = bytes(signature)
    if not is_wrapped(signature):
        raise MalformedWrapperError(
            "Signature does not end with the wrapper magic suffix",
            details={"length": len(signature)},
        )

    payload = signature[:-len(MAGIC_SUFFIX)]
    try:
        deployer, deployer_calldata, inner_signature = decode_abi(WRAPPER_TYPES, payload)
    except AbiDecodingError as e:
        logger.debug(
            "Wrapper payload rejected",
            extra={
                "event": "wrapper.decode_failed",
                "payload_length": len(payload),
                "error": e.message,
            },
        )
        raise MalformedWrapperError(
            f"Malformed wrapper payload: {e.message}",
            details={"payload_length": len(payload), **e.details},
        ) from e

    return WrapperEnvelope(
        deployer=deployer,
        deployer_calldata=deployer_calldata,
        inner_signature=inner_signature,
    )


def encode_wrapper(envelope: WrapperEnvelope) -> bytes:
    """Tuple-encode the envelope and append the magic suffix."""
    payload = encode_abi(
        WRAPPER_TYPES,
        (envelope.deployer, envelope.deployer_calldata, envelope.inner_signature),
    )
    return payload + MAGIC_SUFFIX


def wrap(deployer: AddressLike, deployer_calldata: bytes, inner_signature: bytes) -> bytes:
    """
    Produce a wrapped signature for an account that may not be deployed yet.

    Args:
        deployer: Factory address to call when the account has no code
        deployer_calldata: Calldata that makes the factory deploy the account
        inner_signature: Signature the deployed account's contract check accepts

    Returns:
        Signature bytes ending in MAGIC_SUFFIX
    """
    return encode_wrapper(
        WrapperEnvelope(
            deployer=normalize_address(deployer),
            deployer_calldata=deployer_calldata,
            inner_signature=inner_signature,
        )
    )
