from __future__ import annotations

import logging
from dataclasses import dataclass

from portfolio.application.session_gate import SessionGate
from portfolio.application.use_cases.load_portfolio import LoadPortfolioUseCase
from portfolio.application.use_cases.store_call import call_store
from portfolio.domain.entities.profile import DEFAULT_PROFILE, ProfileEntity, ProfilePatch
from portfolio.domain.entities.snapshot import PortfolioSnapshot
from portfolio.infrastructure.database.repositories.content_store import ContentStore

logger = logging.getLogger(__name__)


@dataclass
class SaveProfileUseCase:
    store: ContentStore
    gate: SessionGate
    loader: LoadPortfolioUseCase

    async def execute(self, patch: ProfilePatch) -> PortfolioSnapshot:
        """Apply ``patch`` to the stored profile, then reload the snapshot.

        Raises:
            Unauthorized: If the caller is not an admin.
            ValidationError: If the merged profile is invalid.
            PersistenceError: If the write or the reload fails.
        """
        await self.write(patch)
        return await self.loader.execute()

    async def write(self, patch: ProfilePatch) -> ProfileEntity:
        """Write only the supplied fields, without reloading."""
        self.gate.require_admin()
        changes = patch.changes()
        current = await call_store(self.store.profiles.get, label="Load profile")
        if current is None:
            profile = await call_store(
                self.store.profiles.create, patch.apply(DEFAULT_PROFILE), label="Create profile"
            )
            logger.info("Created profile %s", profile.id)
            return profile

        # validates the merge before anything is written
        patch.apply(current)
        if not changes:
            return current
        profile = await call_store(self.store.profiles.update, current.id, changes, label="Update profile")
        logger.info("Updated profile fields: %s", ", ".join(sorted(changes)))
        return profile
