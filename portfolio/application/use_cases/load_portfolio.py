from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from portfolio.application.portfolio_state import PortfolioState
from portfolio.application.use_cases.store_call import call_store
from portfolio.domain.entities.profile import DEFAULT_PROFILE
from portfolio.domain.entities.snapshot import PortfolioSnapshot
from portfolio.domain.errors import PersistenceError
from portfolio.infrastructure.database.repositories.content_store import ContentStore

logger = logging.getLogger(__name__)


@dataclass
class LoadPortfolioUseCase:
    """
    Fetch the profile and its three collections as one snapshot.

    The four reads run concurrently. The snapshot is only returned (and
    published) once all of them succeed; a single failure fails the whole
    load and the state keeps its previous snapshot.
    """

    store: ContentStore
    state: PortfolioState | None = None

    async def execute(self) -> PortfolioSnapshot:
        generation = self.state.next_generation() if self.state else None
        try:
            profile, skills, packages, projects = await asyncio.gather(
                call_store(self.store.profiles.get, label="Load profile"),
                call_store(self.store.skills.list_ordered, label="Load skills"),
                call_store(self.store.packages.list_ordered, label="Load packages"),
                call_store(self.store.projects.list_ordered, label="Load projects"),
            )
        except PersistenceError as exc:
            logger.error("Loading portfolio failed, keeping previous snapshot: %s", exc)
            raise

        snapshot = PortfolioSnapshot(
            profile=profile or DEFAULT_PROFILE,
            skills=tuple(skills),
            packages=tuple(packages),
            projects=tuple(projects),
            is_default=profile is None,
        )
        if self.state is not None:
            self.state.publish(snapshot, generation)
        return snapshot

    async def latest(self) -> PortfolioSnapshot:
        """Load, or fall back to the last published snapshot while the store is down.

        Raises:
            PersistenceError: If the load fails and nothing was published yet.
        """
        try:
            return await self.execute()
        except PersistenceError:
            cached = self.state.snapshot if self.state is not None else None
            if cached is None:
                raise
            logger.warning("Serving the last good portfolio snapshot")
            return cached
