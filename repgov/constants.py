"""
RepGov Constants

This module consolidates the governance protocol constants and the
environment configuration used throughout the codebase. Constants are
organized by category for easy reference and maintenance.
"""
import ast
from dotenv import dotenv_values

# =============================================================================
# ENVIRONMENT CONFIGURATION
# =============================================================================
# Load environment variables once at module import
_config = dotenv_values(".env")

NODE_DEFAULTS = {
    'REPGOV_NODE_HOST':                '127.0.0.1',
    'REPGOV_NODE_PORT':                '3010',
    'REPGOV_OWNER':                    '',
    'REPGOV_CONFIG_FILE':              'config.toml',
}

LOGGER_DEFAULTS = {
    'LOG_LEVEL':                       'INFO',
    'LOG_FORMAT':                      '%(asctime)s - %(levelname)s - %(name)s - %(message)s',
    'LOG_DATE_FORMAT':                 '%Y-%m-%dT%H:%M:%S',
    'LOG_CONSOLE_HIGHLIGHTING':        'True',
    'LOG_FILE_OUTPUT':                 'True',
}

LOG_MAX_FILE_SIZE = 10 * 1024 * 1024 # 10MB
LOG_BACKUP_COUNT = 5


# ==================================================================================
# GOVERNANCE PROTOCOL CONSTANTS
# ==================================================================================
NODE_VERSION = '0.3.0'

# Voting window length in blocks (~1 day at 60s blocks)
GOVERNANCE_VOTING_PERIOD_BLOCKS = 1440

# Boundary limits on proposal text, in characters
GOVERNANCE_MAX_TITLE_LENGTH = 100
GOVERNANCE_MAX_DESCRIPTION_LENGTH = 500

# Every identity may cast at least a minimally-weighted vote
GOVERNANCE_BASE_VOTING_POWER = 1

# Reputation points per additional unit of voting power
GOVERNANCE_REPUTATION_PER_POWER = 10

# Success-rate term is scaled to a percentage
GOVERNANCE_SUCCESS_RATE_SCALE = 100

# Votes needed per reputation point earned from activity
GOVERNANCE_VOTES_PER_REPUTATION = 10


# ==================================================================================
# NODE PARAMETERS
# ==================================================================================
BLOCK_TIME = 60  # seconds between block height ticks on a standalone node
RPC_RATE_LIMIT = "600/minute"


# ==================================================================================
# CONFIGURATION WRAPPERS
# ==================================================================================
class ConfigString(str):
    """
    String subclass that remembers its default value.
    """
    def __new__(cls, value, default):
        obj = str.__new__(cls, value)
        obj._default = default
        return obj

    def default(self):
        return self._default

class ConfigBool(int):
    """
    Int subclass acting as a boolean that remembers its default value.
    """
    def __new__(cls, value, default):
        obj = int.__new__(cls, bool(value))
        obj._default = default
        return obj

    def default(self):
        return self._default

    def __repr__(self):
        return str(bool(self))

    def __str__(self):
        return str(bool(self))

    def __eq__(self, other):
        return bool(self) == other

    __hash__ = int.__hash__


# ==================================================================================
# DYNAMIC CONFIGURATION LOADING
# ==================================================================================
DEFAULTS = NODE_DEFAULTS | LOGGER_DEFAULTS
namespace = globals()

def parse_bool(v):
    """
    Convert "True"/"False" (any casing, surrounding whitespace allowed) into bool.
    Anything else is returned unchanged.
    """
    if not isinstance(v, str):
        return v
    s = v.strip()
    if s.casefold() in {"true", "false"}:
        return ast.literal_eval(s.title())
    return v

for key, default_raw in DEFAULTS.items():
    # dotenv_values yields strings or None; None means "not set"
    raw = _config.get(key)
    value_raw = default_raw if raw is None else raw

    value = parse_bool(value_raw)
    default_val = parse_bool(default_raw)

    if isinstance(value, bool):
        namespace[key] = ConfigBool(value, default_val)
    else:
        namespace[key] = ConfigString(value_raw, default_val)
