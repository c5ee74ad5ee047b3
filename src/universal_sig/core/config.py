"""
Universal Signature Configuration

All settings come from environment variables and are read once at import.
The verification core has no required settings; these only tune optional
behaviour and the Web3 ledger adapter.
"""

from __future__ import annotations

import logging
import os

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}
_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def _get_bool(env_var: str, default: bool) -> bool:
    """Read a boolean flag, rejecting values that are neither truthy nor falsy."""
    raw = os.getenv(env_var)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ConfigurationError(
        f"{env_var} must be one of 0/1/true/false, got {raw!r}",
        details={"env_var": env_var, "value": raw},
    )


def _get_number(env_var: str, default: str, cast=int):
    raw = os.getenv(env_var, default).strip()
    try:
        value = cast(raw)
    except ValueError as e:
        raise ConfigurationError(
            f"{env_var} must be numeric, got {raw!r}",
            details={"env_var": env_var, "value": raw},
        ) from e
    if value < 0:
        raise ConfigurationError(
            f"{env_var} must not be negative, got {raw!r}",
            details={"env_var": env_var, "value": raw},
        )
    return value


def _get_log_level(env_var: str, default: str) -> str:
    level = os.getenv(env_var, default).strip().upper()
    if level not in _LOG_LEVELS:
        raise ConfigurationError(
            f"{env_var} must be one of {sorted(_LOG_LEVELS)}, got {level!r}",
            details={"env_var": env_var, "value": level},
        )
    return level


# Re-run the deployer call as a "prepare" step when an already deployed
# account rejects a wrapped signature.
TRY_PREPARE = _get_bool("UNIVERSAL_SIG_TRY_PREPARE", False)

LOG_LEVEL = _get_log_level("UNIVERSAL_SIG_LOG_LEVEL", "INFO")

WEB3_RECEIPT_TIMEOUT = _get_number("UNIVERSAL_SIG_WEB3_RECEIPT_TIMEOUT", "120", float)

# 0 leaves gas estimation to the node.
WEB3_CALL_GAS = _get_number("UNIVERSAL_SIG_WEB3_CALL_GAS", "0")

if TRY_PREPARE:
    logger.info(
        "Prepare retry enabled for wrapped signatures",
        extra={"event": "config.try_prepare_enabled"},
    )
