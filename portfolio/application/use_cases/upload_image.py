from __future__ import annotations

import logging
from dataclasses import dataclass, replace

from portfolio.application.session_gate import SessionGate
from portfolio.application.use_cases.load_portfolio import LoadPortfolioUseCase
from portfolio.application.use_cases.save_profile import SaveProfileUseCase
from portfolio.application.use_cases.store_call import call_store
from portfolio.domain.entities.profile import ProfilePatch
from portfolio.domain.entities.snapshot import PortfolioSnapshot
from portfolio.domain.errors import NotFoundError, PortfolioError, ValidationError
from portfolio.infrastructure.database.repositories.content_store import ContentStore
from portfolio.infrastructure.storage.supabase_storage import StorageResult, SupabaseStorage

logger = logging.getLogger(__name__)

PROFILE_SLOTS = {"profile": "profile_image", "logo": "logo_image"}
IMAGE_SLOTS = (*PROFILE_SLOTS, "project")


@dataclass
class UploadImageUseCase:
    storage: SupabaseStorage
    store: ContentStore
    gate: SessionGate
    profile_saver: SaveProfileUseCase
    loader: LoadPortfolioUseCase

    async def execute(
        self, slot: str, data: bytes, *, project_id: str | None = None
    ) -> tuple[StorageResult, PortfolioSnapshot]:
        """
        Store an uploaded image and point the matching field at it.

        ``profile`` and ``logo`` update the profile; ``project`` needs
        ``project_id`` and updates that project's image.
        """
        self.gate.require_admin()
        if slot not in IMAGE_SLOTS:
            raise ValidationError(f"Unknown image slot '{slot}', expected one of {', '.join(IMAGE_SLOTS)}")
        if slot == "project":
            if not project_id:
                raise ValidationError("project_id is required for project images")
            project = await call_store(self.store.projects.get, project_id, label="Load project")
            if project is None:
                raise NotFoundError(f"No projects item with id {project_id}")

        stored = await call_store(self.storage.upload_image, slot, data, label="Upload image")
        try:
            if slot == "project":
                await call_store(self.store.projects.upsert, replace(project, image=stored.url), label="Save project")
            else:
                await self.profile_saver.write(ProfilePatch.from_mapping({PROFILE_SLOTS[slot]: stored.url}))
        except PortfolioError:
            # nothing points at the file
            logger.warning("Attaching %s image failed, removing %s", slot, stored.path)
            await call_store(self.storage.delete, stored.path, label="Remove image")
            raise
        logger.info("Attached %s image %s", slot, stored.path)
        return stored, await self.loader.execute()
