"""Block-height clock used as the registry's time source.

Move-in dates, compliance check dates and lease expiry comparisons are all
expressed in block heights.  Tests and embedding applications advance the
clock explicitly.

Example::

    clock = BlockClock(start=12345)
    registry = ComplianceRegistry(clock=clock)
    clock.advance(10_000)
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


class BlockClock:
    """Monotonically increasing block height."""

    def __init__(self, start: int = 0) -> None:
        if start < 0:
            raise ValueError(f"Block height cannot be negative: {start}")
        self._height = start

    @property
    def height(self) -> int:
        """Current block height."""
        return self._height

    def advance(self, blocks: int = 1) -> int:
        """Move forward by *blocks* and return the new height."""
        if blocks <= 0:
            raise ValueError(f"Block step must be positive, got {blocks}")
        self._height += blocks
        logger.debug("Block height advanced to %d", self._height)
        return self._height

    def set_height(self, height: int) -> None:
        """Jump to *height*; the clock never moves backwards."""
        if height < self._height:
            raise ValueError(
                f"Block height cannot go backwards ({self._height} -> {height})"
            )
        self._height = height

    def __repr__(self) -> str:
        return f"BlockClock(height={self._height})"
