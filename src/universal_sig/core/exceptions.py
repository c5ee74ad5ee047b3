"""
Exception hierarchy for universal signature verification.

Every failure that prevents a verification from completing has its own type
so callers can tell "the signature was rejected" apart from "the signature
could not be checked". The validator converts these into ``Failed`` outcomes;
none of them is ever treated as a rejected signature.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class UniversalSigError(Exception):
    """Base exception for all universal signature errors.

    Attributes:
        message: Human-readable error description
        details: Additional context about the error
        recoverable: Whether the operation can be retried
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        recoverable: bool = False,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.recoverable = recoverable


class ConfigurationError(UniversalSigError):
    """Raised when required configuration is missing or invalid."""
    pass


# ==================== Signature Format Errors ====================


class SignatureFormatError(UniversalSigError):
    """Raised when signature bytes cannot be interpreted at all.

    This is distinct from a signature that parses correctly but does not
    authorize the hash.
    """
    pass


class AbiDecodingError(SignatureFormatError):
    """Raised when bytes are not a canonical ABI encoding of the expected types."""
    pass


class MalformedWrapperError(SignatureFormatError):
    """Raised when a magic-suffixed blob does not decode as (address, bytes, bytes)."""
    pass


class InvalidSignatureLengthError(SignatureFormatError):
    """Raised when a raw signature is not exactly 65 bytes."""

    def __init__(self, message: str, actual_length: Optional[int] = None, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.actual_length = actual_length


class InvalidRecoveryIdError(SignatureFormatError):
    """Raised when a raw signature's recovery byte is not 27 or 28."""

    def __init__(self, message: str, recovery_id: Optional[int] = None, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.recovery_id = recovery_id


# ==================== Execution Errors ====================


class DeploymentFailedError(UniversalSigError):
    """Raised when the factory call embedded in a wrapper reports failure.

    Terminal: the account's code is indeterminate after a failed deployment,
    so no other verification tier may be attempted.
    """

    def __init__(self, message: str, return_data: bytes = b"", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.return_data = return_data


class LedgerError(UniversalSigError):
    """Raised by ledger implementations when the chain state cannot be reached."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        kwargs.setdefault("recoverable", True)
        super().__init__(message, **kwargs)


class RevertError(UniversalSigError):
    """Raised by simulated contracts to revert a call with optional revert data."""

    def __init__(self, message: str, data: bytes = b"", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.data = data


class VerificationFailedError(UniversalSigError):
    """Raised when a caller demands a boolean from a ``Failed`` outcome."""

    def __init__(self, message: str, reason: Any = None, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.reason = reason


# ==================== Utility Functions ====================


def get_error_context(exc: Exception) -> Dict[str, Any]:
    """Extract error context from an exception for logging.

    Args:
        exc: The exception to extract context from

    Returns:
        Dictionary containing error type, message, and any additional details
    """
    context: Dict[str, Any] = {
        "error_type": type(exc).__name__,
        "error_message": str(exc),
    }

    if isinstance(exc, UniversalSigError):
        context["recoverable"] = exc.recoverable
        if exc.details:
            context["details"] = exc.details

    if isinstance(exc, InvalidSignatureLengthError) and exc.actual_length is not None:
        context["actual_length"] = exc.actual_length

    if isinstance(exc, InvalidRecoveryIdError) and exc.recovery_id is not None:
        context["recovery_id"] = exc.recovery_id

    if isinstance(exc, DeploymentFailedError) and exc.return_data:
        context["return_data"] = exc.return_data.hex()

    return context
