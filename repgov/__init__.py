"""
RepGov Package

Reputation-weighted governance ledger. Core imports are lazily loaded so
that importing the package does not pull in the node/RPC stack:

    from repgov.governance import GovernanceEngine, BlockHeightClock
    from repgov.node.app import create_app
"""

__version__ = "0.3.0"


def __getattr__(name):
    """Lazy access to the most common entry points."""
    if name == 'GovernanceEngine':
        from .governance import GovernanceEngine
        return GovernanceEngine
    elif name == 'BlockHeightClock':
        from .governance import BlockHeightClock
        return BlockHeightClock
    elif name == 'create_app':
        from .node.app import create_app
        return create_app
    raise AttributeError(f"module 'repgov' has no attribute {name!r}")

__all__ = ['GovernanceEngine', 'BlockHeightClock', 'create_app']
