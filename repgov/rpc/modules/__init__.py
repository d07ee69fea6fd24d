"""
RepGov RPC Modules
"""

from .governance import GovernanceModule

__all__ = [
    "GovernanceModule",
]
