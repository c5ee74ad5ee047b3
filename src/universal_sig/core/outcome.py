"""
Verification outcomes.

``Valid`` and ``Invalid`` are answers about the signature. ``Failed`` means no
answer could be produced. An outcome refuses to be used as a bool so a
``Failed`` result can never be mistaken for a rejected (or accepted)
signature by accident.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Type

from .exceptions import (
    DeploymentFailedError,
    InvalidRecoveryIdError,
    InvalidSignatureLengthError,
    LedgerError,
    MalformedWrapperError,
    UniversalSigError,
    VerificationFailedError,
)


class OutcomeStatus(Enum):
    VALID = "valid"
    INVALID = "invalid"
    FAILED = "failed"


class FailureReason(Enum):
    """Why a verification could not be completed."""
    MALFORMED_WRAPPER = "malformed_wrapper"
    DEPLOYMENT_FAILED = "deployment_failed"
    INVALID_SIGNATURE_LENGTH = "invalid_signature_length"
    INVALID_RECOVERY_ID = "invalid_recovery_id"
    LEDGER_UNAVAILABLE = "ledger_unavailable"


_REASON_BY_ERROR: Dict[Type[UniversalSigError], FailureReason] = {
    MalformedWrapperError: FailureReason.MALFORMED_WRAPPER,
    DeploymentFailedError: FailureReason.DEPLOYMENT_FAILED,
    InvalidSignatureLengthError: FailureReason.INVALID_SIGNATURE_LENGTH,
    InvalidRecoveryIdError: FailureReason.INVALID_RECOVERY_ID,
    LedgerError: FailureReason.LEDGER_UNAVAILABLE,
}


@dataclass(frozen=True)
class ValidationOutcome:
    """Result of one verification."""

    status: OutcomeStatus
    reason: Optional[FailureReason] = None
    detail: str = ""

    def __post_init__(self) -> None:
        if (self.status is OutcomeStatus.FAILED) != (self.reason is not None):
            raise ValueError("A failure reason is required for, and only for, FAILED outcomes")

    @classmethod
    def valid(cls) -> "ValidationOutcome":
        return cls(OutcomeStatus.VALID)

    @classmethod
    def invalid(cls, detail: str = "") -> "ValidationOutcome":
        return cls(OutcomeStatus.INVALID, detail=detail)

    @classmethod
    def failed(cls, reason: FailureReason, detail: str = "") -> "ValidationOutcome":
        return cls(OutcomeStatus.FAILED, reason=reason, detail=detail)

    @classmethod
    def from_error(cls, error: UniversalSigError) -> "ValidationOutcome":
        """Map a known verification error to its ``Failed`` outcome."""
        for error_type, reason in _REASON_BY_ERROR.items():
            if isinstance(error, error_type):
                return cls.failed(reason, error.message)
        raise TypeError(f"No failure reason for {type(error).__name__}")

    @property
    def is_valid(self) -> bool:
        return self.status is OutcomeStatus.VALID

    @property
    def is_invalid(self) -> bool:
        return self.status is OutcomeStatus.INVALID

    @property
    def is_failed(self) -> bool:
        return self.status is OutcomeStatus.FAILED

    def raise_for_failure(self) -> "ValidationOutcome":
        """Raise VerificationFailedError for a Failed outcome, otherwise return self."""
        if self.is_failed:
            raise VerificationFailedError(
                f"Verification could not be completed: {self.reason.value}"
                + (f" ({self.detail})" if self.detail else ""),
                reason=self.reason,
            )
        return self

    def __bool__(self) -> bool:
        raise TypeError(
            "ValidationOutcome has no truth value; use is_valid, is_failed or raise_for_failure()"
        )

    def __str__(self) -> str:
        if self.is_failed:
            return f"Failed({self.reason.value})"
        return self.status.value.capitalize()
