"""
Universal signature validation.

Decides whether a signature authorizes a hash for an account that may be an
EOA, a deployed contract account, or a contract account that does not exist
yet. The tiers are checked in a fixed order:

1. Wrapper suffix: deploy the account if it has no code, then ask it.
2. Code at the account: ask the account, never fall back to recovery.
3. Otherwise: recover the signer of a raw 65-byte signature.

Checking the suffix before the code size keeps a signature produced before
deployment valid afterwards. Checking code before recovery keeps a contract
account from being authorized by an unrelated key whose signature happens to
parse as ``r || s || v``.
"""

from __future__ import annotations

import logging
from typing import Optional

from . import config
from .contract_verifier import is_valid_contract_signature
from .crypto_utils import AddressLike, normalize_address, validate_message_hash
from .exceptions import (
    DeploymentFailedError,
    LedgerError,
    SignatureFormatError,
    VerificationFailedError,
)
from .key_recovery import parse_raw_signature, recover_address
from .logging_config import short_address
from .outcome import FailureReason, ValidationOutcome
from .protocols import ILedger, ISnapshotLedger
from .wrapper_codec import WrapperEnvelope, decode_wrapper, is_wrapped

logger = logging.getLogger(__name__)


def _deploy(ledger: ILedger, account: bytes, envelope: WrapperEnvelope, event: str) -> None:
    result = ledger.call(envelope.deployer, envelope.deployer_calldata)
    if not result.success:
        logger.warning(
            "Wrapped signature deployment call failed",
            extra={
                "event": f"validator.{event}_failed",
                "account": short_address(account),
                "deployer": short_address(envelope.deployer),
                "return_data_length": len(result.return_data),
            },
        )
        raise DeploymentFailedError(
            f"Deployer {short_address(envelope.deployer)} reported failure",
            return_data=result.return_data,
            details={"account": short_address(account)},
        )
    logger.info(
        "Wrapped signature deployment call succeeded",
        extra={
            "event": f"validator.{event}_succeeded",
            "account": short_address(account),
            "deployer": short_address(envelope.deployer),
        },
    )


def _verify_wrapped(
    ledger: ILedger,
    account: bytes,
    message_hash: bytes,
    signature: bytes,
    try_prepare: bool,
) -> ValidationOutcome:
    envelope = decode_wrapper(signature)

    already_deployed = ledger.code_size_at(account) > 0
    if not already_deployed:
        _deploy(ledger, account, envelope, "deployment")

    if is_valid_contract_signature(ledger, account, message_hash, envelope.inner_signature):
        return ValidationOutcome.valid()

    if try_prepare and already_deployed:
        # The account may need the deployer call to reach the state the
        # signature was produced against.
        _deploy(ledger, account, envelope, "prepare")
        if is_valid_contract_signature(ledger, account, message_hash, envelope.inner_signature):
            return ValidationOutcome.valid()

    return ValidationOutcome.invalid("account rejected the wrapped signature")


def _verify_direct(ledger: ILedger, account: bytes, message_hash: bytes, signature: bytes) -> ValidationOutcome:
    if ledger.code_size_at(account) > 0:
        if is_valid_contract_signature(ledger, account, message_hash, signature):
            return ValidationOutcome.valid()
        return ValidationOutcome.invalid("account rejected the signature")

    raw = parse_raw_signature(signature)
    recovered = recover_address(message_hash, raw.r, raw.s, raw.v)
    if recovered is not None and recovered == account:
        return ValidationOutcome.valid()

    logger.debug(
        "Recovered signer does not match account",
        extra={
            "event": "validator.signer_mismatch",
            "account": short_address(account),
            "recovered": short_address(recovered),
        },
    )
    return ValidationOutcome.invalid("recovered signer does not match account")


def verify(
    account: AddressLike,
    message_hash: bytes,
    signature: bytes,
    ledger: ILedger,
    *,
    try_prepare: Optional[bool] = None,
) -> ValidationOutcome:
    """
    Verify ``signature`` over ``message_hash`` on behalf of ``account``.

    Args:
        account: Account address (20 bytes or 0x-prefixed hex)
        message_hash: 32-byte hash that was signed
        signature: Wrapped, contract-specific or raw 65-byte signature
        ledger: Chain state to query and, for wrapped signatures, deploy into
        try_prepare: Re-run the deployer call once when an already deployed
            account rejects a wrapped signature. Defaults to
            UNIVERSAL_SIG_TRY_PREPARE.

    Returns:
        ValidationOutcome: Valid, Invalid, or Failed(reason)

    Raises:
        ValueError: If account or message_hash are not well-formed
    """
    account = normalize_address(account)
    message_hash = validate_message_hash(message_hash)
    signature = bytes(signature)
    if try_prepare is None:
        try_prepare = config.TRY_PREPARE

    wrapped = is_wrapped(signature)
    try:
        if wrapped:
            outcome = _verify_wrapped(ledger, account, message_hash, signature, try_prepare)
        else:
            outcome = _verify_direct(ledger, account, message_hash, signature)
    except (SignatureFormatError, DeploymentFailedError, LedgerError) as e:
        outcome = ValidationOutcome.from_error(e)
        log = logger.error if isinstance(e, LedgerError) else logger.warning
        log(
            "Signature verification could not be completed",
            extra={
                "event": "validator.verification_failed",
                "account": short_address(account),
                "reason": outcome.reason.value,
                "wrapped": wrapped,
                "error": e.message,
            },
        )
        return outcome

    logger.info(
        "Signature verification completed",
        extra={
            "event": "validator.verification_completed",
            "account": short_address(account),
            "status": outcome.status.value,
            "wrapped": wrapped,
        },
    )
    return outcome


# Deployment performed during verification stays in the ledger.
verify_with_side_effects = verify


def verify_without_side_effects(
    account: AddressLike,
    message_hash: bytes,
    signature: bytes,
    ledger: ISnapshotLedger,
    *,
    try_prepare: Optional[bool] = None,
) -> ValidationOutcome:
    """
    Verify like ``verify`` and roll the ledger back afterwards.

    Any deployment or prepare call made while verifying is discarded, even
    when verification raises.
    """
    snapshot_id = ledger.snapshot()
    try:
        return verify(account, message_hash, signature, ledger, try_prepare=try_prepare)
    finally:
        ledger.revert(snapshot_id)


class UniversalSigValidator:
    """
    Verifier bound to one ledger.

    Example:
        >>> validator = UniversalSigValidator(ledger)
        >>> validator.verify(account, message_hash, signature).is_valid
        True
    """

    def __init__(self, ledger: ILedger, try_prepare: Optional[bool] = None) -> None:
        self.ledger = ledger
        self.try_prepare = config.TRY_PREPARE if try_prepare is None else try_prepare

    def verify(self, account: AddressLike, message_hash: bytes, signature: bytes) -> ValidationOutcome:
        return verify(account, message_hash, signature, self.ledger, try_prepare=self.try_prepare)

    def verify_without_side_effects(
        self, account: AddressLike, message_hash: bytes, signature: bytes
    ) -> ValidationOutcome:
        if not isinstance(self.ledger, ISnapshotLedger):
            raise TypeError(f"{type(self.ledger).__name__} does not support snapshots")
        return verify_without_side_effects(
            account, message_hash, signature, self.ledger, try_prepare=self.try_prepare
        )

    def is_valid_signature(self, account: AddressLike, message_hash: bytes, signature: bytes) -> bool:
        """
        Boolean form of ``verify``.

        Raises:
            VerificationFailedError: If the outcome is Failed, instead of
                reporting it as False
        """
        return self.verify(account, message_hash, signature).raise_for_failure().is_valid


__all__ = [
    "FailureReason",
    "UniversalSigValidator",
    "ValidationOutcome",
    "VerificationFailedError",
    "verify",
    "verify_with_side_effects",
    "verify_without_side_effects",
]
