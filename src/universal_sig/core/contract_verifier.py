"""
Contract signature check (ERC-1271 ``isValidSignature``).

The account decides; this module only builds the call and compares the
returned word against the success value. A revert and a rejection are the
same answer here: both are ``False``.
"""

from __future__ import annotations

import logging

from .abi_codec import encode_abi
from .constants import ERC1271_SUCCESS, IS_VALID_SIGNATURE_SELECTOR, WORD_SIZE
from .logging_config import short_address
from .protocols import ILedger

logger = logging.getLogger(__name__)

# ABI encoding of the bytes4 success value as a single return word.
_SUCCESS_WORD = ERC1271_SUCCESS.ljust(WORD_SIZE, b"\x00")


def encode_is_valid_signature_call(message_hash: bytes, signature: bytes) -> bytes:
    return IS_VALID_SIGNATURE_SELECTOR + encode_abi(("bytes32", "bytes"), (message_hash, signature))


def is_valid_contract_signature(
    ledger: ILedger,
    account: bytes,
    message_hash: bytes,
    signature: bytes,
) -> bool:
    """
    Ask ``account`` whether ``signature`` is valid for ``message_hash``.

    Args:
        ledger: Chain state to call through
        account: 20-byte account address
        message_hash: 32-byte hash
        signature: Signature bytes in whatever format the account understands

    Returns:
        True only if the call succeeded and returned the success value.

    Raises:
        LedgerError: Propagated from the ledger when it cannot be reached.
    """
    result = ledger.call(
        account, encode_is_valid_signature_call(message_hash, signature), read_only=True
    )

    if not result.success:
        logger.info(
            "Contract signature check reverted",
            extra={
                "event": "contract_verifier.reverted",
                "account": short_address(account),
                "return_data_length": len(result.return_data),
            },
        )
        return False

    if len(result.return_data) < WORD_SIZE:
        logger.info(
            "Contract signature check returned short data",
            extra={
                "event": "contract_verifier.short_return",
                "account": short_address(account),
                "return_data_length": len(result.return_data),
            },
        )
        return False

    is_valid = result.return_data[:WORD_SIZE] == _SUCCESS_WORD
    logger.debug(
        "Contract signature check completed",
        extra={
            "event": "contract_verifier.result",
            "account": short_address(account),
            "valid": is_valid,
            "magic": result.return_data[:4].hex(),
        },
    )
    return is_valid
