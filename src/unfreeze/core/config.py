"""
Unfreeze Engine Configuration

Supports testnet and mainnet with separate configurations. Every value can
be overridden through ``UNFREEZE_*`` environment variables; all replicas of
a network must run with the same values or their state keys diverge.
"""

from __future__ import annotations

import logging
import os
from enum import Enum

from unfreeze.core.unfreeze_exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class NetworkType(Enum):
    TESTNET = "testnet"
    MAINNET = "mainnet"


def _get_flag(env_var: str, default: str = "0") -> bool:
    value = os.getenv(env_var, default).strip().lower()
    if value in ("1", "true", "yes", "on"):
        return True
    if value in ("0", "false", "no", "off", ""):
        return False
    raise ConfigurationError(
        f"{env_var} must be a boolean flag, got {value!r}",
        details={"env_var": env_var},
    )


def _get_name(env_var: str, default: str) -> str:
    value = os.getenv(env_var, default).strip()
    if not value or "-" in value:
        raise ConfigurationError(
            f"{env_var} must be a non-empty name without '-', got {value!r}",
            details={"env_var": env_var},
        )
    return value


# Get network type from environment variable
NETWORK = os.getenv("UNFREEZE_NETWORK", "testnet")  # Default to testnet for safety

STATE_NAMESPACE = _get_name("UNFREEZE_STATE_NAMESPACE", "mavl")
MODULE_NAME = _get_name("UNFREEZE_MODULE_NAME", "unfreeze")
TOKEN_EXEC = _get_name("UNFREEZE_TOKEN_EXEC", "token")
LOG_LEVEL = os.getenv("UNFREEZE_LOG_LEVEL", "INFO").strip().upper()
LOG_FILE = os.getenv("UNFREEZE_LOG_FILE", "").strip()

# Release policy constants
BASIS_POINTS_DENOMINATOR = 10000
UNFREEZE_ID_PREFIX = "unfreezeID_"


class TestnetConfig:
    """Testnet Configuration (for local testing before mainnet)"""

    NETWORK_TYPE = NetworkType.TESTNET
    STATE_NAMESPACE = STATE_NAMESPACE
    MODULE_NAME = MODULE_NAME
    TOKEN_EXEC = TOKEN_EXEC
    # Reject unknown release modes and non-positive rates before freezing funds
    VALIDATE_AT_CREATE = _get_flag("UNFREEZE_VALIDATE_AT_CREATE", "0")
    LOG_LEVEL = LOG_LEVEL
    LOG_FILE = LOG_FILE
    LOG_ENVIRONMENT = "testnet"


class MainnetConfig:
    """Mainnet Configuration (production ledger)"""

    NETWORK_TYPE = NetworkType.MAINNET
    STATE_NAMESPACE = STATE_NAMESPACE
    MODULE_NAME = MODULE_NAME
    TOKEN_EXEC = TOKEN_EXEC
    VALIDATE_AT_CREATE = _get_flag("UNFREEZE_VALIDATE_AT_CREATE", "0")
    LOG_LEVEL = LOG_LEVEL
    LOG_FILE = LOG_FILE
    LOG_ENVIRONMENT = "production"


if NETWORK.lower() == "mainnet":
    Config = MainnetConfig
elif NETWORK.lower() == "testnet":
    Config = TestnetConfig
else:
    raise ConfigurationError(
        f"Unknown UNFREEZE_NETWORK {NETWORK!r}; expected 'testnet' or 'mainnet'",
        details={"env_var": "UNFREEZE_NETWORK"},
    )

logger.debug("Unfreeze config selected: %s", Config.NETWORK_TYPE.value)

# Export config
__all__ = [
    "Config",
    "NetworkType",
    "TestnetConfig",
    "MainnetConfig",
    "BASIS_POINTS_DENOMINATOR",
    "UNFREEZE_ID_PREFIX",
]
