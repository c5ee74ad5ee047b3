"""
Tests for ValidationOutcome.
"""

import pytest

from universal_sig.core.exceptions import (
    DeploymentFailedError,
    InvalidRecoveryIdError,
    InvalidSignatureLengthError,
    LedgerError,
    MalformedWrapperError,
    UniversalSigError,
    VerificationFailedError,
)
from universal_sig.core.outcome import FailureReason, OutcomeStatus, ValidationOutcome


class TestConstruction:
    def test_valid(self):
        outcome = ValidationOutcome.valid()
        assert outcome.is_valid
        assert not outcome.is_invalid
        assert not outcome.is_failed
        assert outcome.reason is None
        assert str(outcome) == "Valid"

    def test_invalid(self):
        outcome = ValidationOutcome.invalid("nope")
        assert outcome.is_invalid
        assert outcome.detail == "nope"
        assert str(outcome) == "Invalid"

    def test_failed(self):
        outcome = ValidationOutcome.failed(FailureReason.DEPLOYMENT_FAILED)
        assert outcome.is_failed
        assert not outcome.is_valid
        assert str(outcome) == "Failed(deployment_failed)"

    def test_failed_requires_reason(self):
        with pytest.raises(ValueError):
            ValidationOutcome(OutcomeStatus.FAILED)

    def test_reason_only_for_failed(self):
        with pytest.raises(ValueError):
            ValidationOutcome(OutcomeStatus.INVALID, reason=FailureReason.MALFORMED_WRAPPER)

    def test_equality(self):
        assert ValidationOutcome.valid() == ValidationOutcome.valid()
        assert ValidationOutcome.failed(FailureReason.INVALID_RECOVERY_ID) != ValidationOutcome.invalid()


class TestNoTruthValue:
    @pytest.mark.parametrize(
        "outcome",
        [
            ValidationOutcome.valid(),
            ValidationOutcome.invalid(),
            ValidationOutcome.failed(FailureReason.LEDGER_UNAVAILABLE),
        ],
        ids=["valid", "invalid", "failed"],
    )
    def test_bool_raises(self, outcome):
        with pytest.raises(TypeError, match="no truth value"):
            bool(outcome)


class TestFromError:
    @pytest.mark.parametrize(
        "error,reason",
        [
            (MalformedWrapperError("bad"), FailureReason.MALFORMED_WRAPPER),
            (DeploymentFailedError("reverted"), FailureReason.DEPLOYMENT_FAILED),
            (InvalidSignatureLengthError("short"), FailureReason.INVALID_SIGNATURE_LENGTH),
            (InvalidRecoveryIdError("v"), FailureReason.INVALID_RECOVERY_ID),
            (LedgerError("down"), FailureReason.LEDGER_UNAVAILABLE),
        ],
    )
    def test_maps_error(self, error, reason):
        outcome = ValidationOutcome.from_error(error)
        assert outcome.reason is reason
        assert outcome.detail == error.message

    def test_unknown_error(self):
        with pytest.raises(TypeError):
            ValidationOutcome.from_error(UniversalSigError("other"))


class TestRaiseForFailure:
    def test_returns_self_when_not_failed(self):
        outcome = ValidationOutcome.invalid()
        assert outcome.raise_for_failure() is outcome

    def test_raises_for_failed(self):
        outcome = ValidationOutcome.failed(FailureReason.DEPLOYMENT_FAILED, "factory reverted")
        with pytest.raises(VerificationFailedError) as exc_info:
            outcome.raise_for_failure()
        assert exc_info.value.reason is FailureReason.DEPLOYMENT_FAILED
        assert "factory reverted" in str(exc_info.value)
