"""
RepGov TOML Configuration Loader

Loads config.toml at startup; environment variables override TOML values.
Each [section] maps to a dataclass with `from_dict` and `apply_env`.

Environment variable mapping:
    [governance] owner          → REPGOV_OWNER
    [governance] voting_period  → REPGOV_VOTING_PERIOD
    [governance] block_time     → REPGOV_BLOCK_TIME
    [node] host                 → REPGOV_NODE_HOST
    [node] port                 → REPGOV_NODE_PORT
"""

from __future__ import annotations

import logging
import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..constants import (
    BLOCK_TIME,
    GOVERNANCE_VOTING_PERIOD_BLOCKS,
    REPGOV_CONFIG_FILE,
    REPGOV_NODE_HOST,
    REPGOV_NODE_PORT,
    REPGOV_OWNER,
    RPC_RATE_LIMIT,
)
from ..exceptions import ConfigurationError

logger = logging.getLogger(__name__)


def _env_int(name: str) -> Optional[int]:
    v = os.environ.get(name)
    if not v:
        return None
    try:
        return int(v)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {v!r}") from None


def _env_float(name: str) -> Optional[float]:
    v = os.environ.get(name)
    if not v:
        return None
    try:
        return float(v)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {v!r}") from None


@dataclass
class GovernanceSectionConfig:
    """[governance] section."""
    owner: str = str(REPGOV_OWNER)
    voting_period: int = GOVERNANCE_VOTING_PERIOD_BLOCKS
    block_time: float = BLOCK_TIME
    start_height: int = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GovernanceSectionConfig":
        return cls(
            owner=data.get("owner", str(REPGOV_OWNER)),
            voting_period=data.get("voting_period", GOVERNANCE_VOTING_PERIOD_BLOCKS),
            block_time=data.get("block_time", BLOCK_TIME),
            start_height=data.get("start_height", 0),
        )

    def apply_env(self) -> None:
        """Override from environment variables."""
        if v := os.environ.get("REPGOV_OWNER"):
            self.owner = v
        if (v := _env_int("REPGOV_VOTING_PERIOD")) is not None:
            self.voting_period = v
        if (v := _env_float("REPGOV_BLOCK_TIME")) is not None:
            self.block_time = v

    def validate(self) -> None:
        if not isinstance(self.owner, str):
            raise ConfigurationError("[governance] owner must be a string")
        for name in ("voting_period", "start_height"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigurationError(
                    f"[governance] {name} must be an integer, got {value!r}"
                )
        if isinstance(self.block_time, bool) or not isinstance(self.block_time, (int, float)):
            raise ConfigurationError(
                f"[governance] block_time must be a number, got {self.block_time!r}"
            )
        if not self.owner:
            raise ConfigurationError(
                "[governance] owner is required (set REPGOV_OWNER or config.toml)"
            )
        if self.voting_period <= 0:
            raise ConfigurationError("[governance] voting_period must be positive")
        if self.block_time <= 0:
            raise ConfigurationError("[governance] block_time must be positive")
        if self.start_height < 0:
            raise ConfigurationError("[governance] start_height cannot be negative")


@dataclass
class NodeSectionConfig:
    """[node] section."""
    host: str = str(REPGOV_NODE_HOST)
    port: int = int(REPGOV_NODE_PORT)
    rate_limit: str = RPC_RATE_LIMIT
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    block_ticker: bool = True

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NodeSectionConfig":
        return cls(
            host=data.get("host", str(REPGOV_NODE_HOST)),
            port=data.get("port", int(REPGOV_NODE_PORT)),
            rate_limit=data.get("rate_limit", RPC_RATE_LIMIT),
            cors_origins=data.get("cors_origins", ["*"]),
            block_ticker=data.get("block_ticker", True),
        )

    def apply_env(self) -> None:
        if v := os.environ.get("REPGOV_NODE_HOST"):
            self.host = v
        if (v := _env_int("REPGOV_NODE_PORT")) is not None:
            self.port = v

    def validate(self) -> None:
        if isinstance(self.port, bool) or not isinstance(self.port, int) or not 0 < self.port < 65536:
            raise ConfigurationError(f"[node] port must be an integer in 1-65535, got {self.port!r}")
        if not isinstance(self.rate_limit, str) or not self.rate_limit:
            raise ConfigurationError(f"[node] rate_limit must be a string such as \"600/minute\", got {self.rate_limit!r}")
        if not isinstance(self.block_ticker, bool):
            raise ConfigurationError(f"[node] block_ticker must be true or false, got {self.block_ticker!r}")


@dataclass
class RepGovConfig:
    """
    Unified configuration: every section of config.toml with environment
    overrides applied.
    """
    governance: GovernanceSectionConfig = field(default_factory=GovernanceSectionConfig)
    node: NodeSectionConfig = field(default_factory=NodeSectionConfig)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RepGovConfig":
        return cls(
            governance=GovernanceSectionConfig.from_dict(data.get("governance", {})),
            node=NodeSectionConfig.from_dict(data.get("node", {})),
        )

    @classmethod
    def from_file(cls, config_path: str) -> "RepGovConfig":
        """
        Load configuration from a TOML file. A missing file yields the
        defaults (with env overrides); a malformed one is an error.
        """
        path = Path(config_path)
        if not path.exists():
            logger.warning("Config file not found: %s, using defaults", config_path)
            cfg = cls()
            cfg.apply_env()
            return cfg

        try:
            with open(path, "rb") as f:
                raw = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigurationError(f"Invalid TOML in {config_path}: {e}") from e

        cfg = cls.from_dict(raw)
        cfg.apply_env()
        return cfg

    def apply_env(self) -> None:
        self.governance.apply_env()
        self.node.apply_env()

    def validate(self) -> None:
        self.governance.validate()
        self.node.validate()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "governance": {
                "owner": self.governance.owner,
                "voting_period": self.governance.voting_period,
                "block_time": self.governance.block_time,
                "start_height": self.governance.start_height,
            },
            "node": {
                "host": self.node.host,
                "port": self.node.port,
                "rate_limit": self.node.rate_limit,
                "cors_origins": list(self.node.cors_origins),
                "block_ticker": self.node.block_ticker,
            },
        }


def load_config(path: Optional[str] = None) -> RepGovConfig:
    """
    Load node configuration.

    Resolution order:
        1. Explicit *path* argument
        2. REPGOV_CONFIG env var
        3. REPGOV_CONFIG_FILE from .env (default ./config.toml)
        4. Defaults (with env overrides)
    """
    if path is None:
        path = os.environ.get("REPGOV_CONFIG", str(REPGOV_CONFIG_FILE))
    return RepGovConfig.from_file(path)
