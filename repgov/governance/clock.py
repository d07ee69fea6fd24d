"""
Block height clock.

The governance core only ever reads the height; the host (a node's block
ticker, or a test) is the one that advances it.
"""

import threading


class BlockHeightClock:
    """Monotonic block-height counter, callable as a height provider."""

    def __init__(self, height: int = 0):
        if height < 0:
            raise ValueError("Block height cannot be negative")
        self._height = height
        self._lock = threading.Lock()

    @property
    def height(self) -> int:
        return self._height

    def __call__(self) -> int:
        return self._height

    def advance(self, blocks: int = 1) -> int:
        """Move the height forward by *blocks* and return the new height."""
        if blocks < 0:
            raise ValueError("Block height is monotonic; cannot advance by a negative amount")
        with self._lock:
            self._height += blocks
            return self._height

    def __repr__(self) -> str:
        return f"<BlockHeightClock height={self._height}>"
