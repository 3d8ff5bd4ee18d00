from __future__ import annotations

import logging

from portfolio.domain.entities.snapshot import PortfolioSnapshot

logger = logging.getLogger(__name__)


class PortfolioState:
    """Latest canonical snapshot, shared by every request of one application.

    Created in ``create_app`` and passed to loaders explicitly. Every load
    takes a generation number before it starts; a result is applied only if
    no later-started load has been applied already. Signing out an admin
    clears it.
    """

    def __init__(self) -> None:
        self._snapshot: PortfolioSnapshot | None = None
        self._issued = 0
        self._applied = 0

    @property
    def snapshot(self) -> PortfolioSnapshot | None:
        return self._snapshot

    def next_generation(self) -> int:
        self._issued += 1
        return self._issued

    def publish(self, snapshot: PortfolioSnapshot, generation: int | None = None) -> bool:
        if generation is None:
            generation = self.next_generation()
        if generation <= self._applied:
            logger.debug("Discarding stale snapshot (generation %d <= %d)", generation, self._applied)
            return False
        self._snapshot = snapshot
        self._applied = generation
        return True

    def reset(self) -> None:
        """Forget the cached snapshot. Loads started before the reset are discarded."""
        self._snapshot = None
        self._applied = self._issued
