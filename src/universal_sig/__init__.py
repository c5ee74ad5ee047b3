"""
universal-sig - Counterfactual-aware signature verification

Verifies that a signature authorizes a message hash for an account that may
be a plain key, a deployed contract account, or a contract account that has
not been deployed yet.

Main Components:
- Wrapper codec: detect, encode and decode deployment envelopes
- Validator: ordered wrapper / contract / key-recovery decision procedure
- Ledgers: in-memory simulated chain and a web3.py-backed adapter
"""

from universal_sig.core.outcome import FailureReason, OutcomeStatus, ValidationOutcome
from universal_sig.core.validator import (
    UniversalSigValidator,
    verify,
    verify_with_side_effects,
    verify_without_side_effects,
)
from universal_sig.core.wrapper_codec import (
    WrapperEnvelope,
    decode_wrapper,
    encode_wrapper,
    is_wrapped,
    wrap,
)

__version__ = "0.1.0"

__all__ = [
    "FailureReason",
    "OutcomeStatus",
    "UniversalSigValidator",
    "ValidationOutcome",
    "WrapperEnvelope",
    "decode_wrapper",
    "encode_wrapper",
    "is_wrapped",
    "verify",
    "verify_with_side_effects",
    "verify_without_side_effects",
    "wrap",
]
