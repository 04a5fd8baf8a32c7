"""
Computex Constants

Protocol constants of the compute marketplace and the logging settings
read from `.env`.

Logging settings resolve in order: process environment, `.env`, built-in
default. Protocol values are fixed; per-deployment values (chain, gas
price, stake ratio) live in computex.toml (see computex.config).
"""
import os

from dotenv import dotenv_values

# ==================================================================================
# LOGGING SETTINGS
# ==================================================================================
_dotenv = dotenv_values(".env")

_TRUE_WORDS = ("1", "true", "yes", "on")
_FALSE_WORDS = ("0", "false", "no", "off")


class EnvSetting(str):
    """A setting value that remembers the default it falls back to."""

    def __new__(cls, key: str, default: str):
        raw = os.environ.get(key)
        if raw is None:
            raw = _dotenv.get(key)
        obj = str.__new__(cls, default if raw is None or not raw.strip() else raw.strip())
        obj.key = key
        obj.fallback = default
        return obj

    def enabled(self) -> bool:
        """Truthiness of a flag setting; anything unrecognised means the default."""
        word = self.casefold()
        if word in _TRUE_WORDS:
            return True
        if word in _FALSE_WORDS:
            return False
        return self.fallback.casefold() in _TRUE_WORDS


LOG_LEVEL = EnvSetting("LOG_LEVEL", "INFO")
LOG_FORMAT = EnvSetting("LOG_FORMAT", "%(asctime)s - %(levelname)s - %(name)s - %(message)s")
LOG_DATE_FORMAT = EnvSetting("LOG_DATE_FORMAT", "%Y-%m-%dT%H:%M:%S")
LOG_CONSOLE_HIGHLIGHTING = EnvSetting("LOG_CONSOLE_HIGHLIGHTING", "true").enabled()
LOG_FILE_OUTPUT = EnvSetting("LOG_FILE_OUTPUT", "false").enabled()

LOG_FILE_NAME = "computex.log"
LOG_ROTATE_BYTES = 5 * 1024 * 1024
LOG_ROTATE_KEEP = 3


# ==================================================================================
# LEDGER CONSTANTS
# ==================================================================================
NULL_ADDRESS = '0x0000000000000000000000000000000000000000'
NULL_BYTES32 = '0x' + '00' * 32
EMPTY_SIGNATURE = '0x'


# ==================================================================================
# UNIT PARAMETERS
# ==================================================================================
NATIVE_DECIMALS = 18  # wei per ether
CREDIT_DECIMALS = 9   # nRLC per RLC

NATIVE_UNITS = {
    'wei': 0,
    'kwei': 3,
    'mwei': 6,
    'gwei': 9,
    'szabo': 12,
    'finney': 15,
    'ether': 18,
    'eth': 18,
}

CREDIT_UNITS = {
    'nrlc': 0,
    'rlc': 9,
}


# ==================================================================================
# MARKETPLACE PARAMETERS
# ==================================================================================
# Share of volume * workerpool price the workerpool owner must have staked.
# Governance-defined; the ledger enforces it again during settlement.
STAKE_RATIO_PERCENT = 30

EIP712_DOMAIN_NAME = 'iExecODB'
EIP712_DOMAIN_VERSION = '5.0.0'

# Tag bits understood by the marketplace (bytes32 bitmap, bit 0 is the lowest)
TAG_BITS = {
    'tee': 0,
    'gpu': 8,
}
