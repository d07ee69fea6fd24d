"""
RepGov Configuration

Loads config.toml at startup. Environment variables override TOML values.
"""

from .loader import (
    GovernanceSectionConfig,
    NodeSectionConfig,
    RepGovConfig,
    load_config,
)

__all__ = [
    "GovernanceSectionConfig",
    "NodeSectionConfig",
    "RepGovConfig",
    "load_config",
]
