from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field, replace
from typing import Any

from portfolio.application.session_gate import SessionGate
from portfolio.application.use_cases.load_portfolio import LoadPortfolioUseCase
from portfolio.application.use_cases.replace_collection import check_items, parse_kind
from portfolio.application.use_cases.save_all import SaveAllUseCase
from portfolio.domain.entities.profile import ProfileEntity, ProfilePatch
from portfolio.domain.entities.snapshot import CollectionKind, PortfolioSnapshot
from portfolio.domain.errors import PortfolioError, ValidationError

logger = logging.getLogger(__name__)


@dataclass
class Draft:
    profile: ProfileEntity
    skills: list = field(default_factory=list)
    packages: list = field(default_factory=list)
    projects: list = field(default_factory=list)

    @classmethod
    def from_snapshot(cls, snapshot: PortfolioSnapshot) -> "Draft":
        return cls(
            profile=snapshot.profile,
            skills=list(snapshot.skills),
            packages=list(snapshot.packages),
            projects=list(snapshot.projects),
        )

    def items(self, kind: CollectionKind) -> list:
        return getattr(self, kind.value)


class AdminEditor:
    """Local editable copy of the portfolio for one admin session.

    Edits only touch the draft. :meth:`save` pushes the whole draft through
    :class:`SaveAllUseCase`; concurrent calls share one in-flight save.
    :meth:`refresh` results that arrive after a newer refresh, a save, or
    sign-out are dropped.
    """

    def __init__(
        self,
        gate: SessionGate,
        saver: SaveAllUseCase,
        loader: LoadPortfolioUseCase,
        snapshot: PortfolioSnapshot | None = None,
    ) -> None:
        self.gate = gate
        self.saver = saver
        self.loader = loader
        self.draft: Draft | None = Draft.from_snapshot(snapshot) if snapshot else None
        self.last_error: PortfolioError | None = None
        self._generation = 0
        self._inflight: asyncio.Future | None = None
        self._closed = False
        gate.on_sign_out(self.close)

    @property
    def saving(self) -> bool:
        return self._inflight is not None

    @property
    def closed(self) -> bool:
        return self._closed

    def bind(self, gate: SessionGate, saver: SaveAllUseCase, loader: LoadPortfolioUseCase) -> None:
        """Use the gate and use cases of the current request from now on."""
        self.gate = gate
        self.saver = saver
        self.loader = loader
        gate.on_sign_out(self.close)

    def _require_draft(self) -> Draft:
        if self._closed:
            raise ValidationError("Editor is closed")
        if self.draft is None:
            raise ValidationError("Nothing loaded yet; refresh the editor first")
        return self.draft

    def update_profile(self, **fields: Any) -> ProfileEntity:
        draft = self._require_draft()
        draft.profile = ProfilePatch.from_mapping(fields).apply(draft.profile)
        return draft.profile

    def add_item(self, kind: CollectionKind | str, item: Any) -> int:
        kind = parse_kind(kind)
        items = self._require_draft().items(kind)
        check_items(kind, items + [item])
        items.append(item)
        return len(items) - 1

    def update_item(self, kind: CollectionKind | str, index: int, **changes: Any) -> Any:
        kind = parse_kind(kind)
        items = self._require_draft().items(kind)
        self._check_index(kind, items, index)
        try:
            items[index] = replace(items[index], **changes)
        except TypeError as exc:
            raise ValidationError(str(exc)) from exc
        return items[index]

    def item(self, kind: CollectionKind | str, index: int) -> Any:
        kind = parse_kind(kind)
        items = self._require_draft().items(kind)
        self._check_index(kind, items, index)
        return items[index]

    def remove_item(self, kind: CollectionKind | str, index: int) -> Any:
        kind = parse_kind(kind)
        items = self._require_draft().items(kind)
        self._check_index(kind, items, index)
        return items.pop(index)

    def move_item(self, kind: CollectionKind | str, index: int, new_index: int) -> None:
        kind = parse_kind(kind)
        items = self._require_draft().items(kind)
        self._check_index(kind, items, index)
        self._check_index(kind, items, new_index)
        items.insert(new_index, items.pop(index))

    @staticmethod
    def _check_index(kind: CollectionKind, items: list, index: int) -> None:
        if not 0 <= index < len(items):
            raise ValidationError(f"No {kind.value} item at position {index}")

    async def save(self) -> PortfolioSnapshot:
        """Save the draft. A call made while a save is running joins it."""
        if self._inflight is None:
            draft = self._require_draft()
            self._inflight = asyncio.ensure_future(self._save(draft))
        return await asyncio.shield(self._inflight)

    async def _save(self, draft: Draft) -> PortfolioSnapshot:
        # pending refreshes were issued against the pre-save state
        self._generation += 1
        try:
            snapshot = await self.saver.execute(
                ProfilePatch.from_profile(draft.profile),
                list(draft.skills),
                list(draft.packages),
                list(draft.projects),
            )
        except PortfolioError as exc:
            self.last_error = exc
            logger.warning("Draft kept after failed save: %s", exc)
            raise
        finally:
            self._inflight = None
        self.last_error = None
        if not self._closed:
            self.draft = Draft.from_snapshot(snapshot)
        return snapshot

    async def refresh(self) -> PortfolioSnapshot | None:
        """Reload the draft from the store.

        Returns ``None`` when the result was discarded, either because a
        save is in flight or because a later refresh, save or sign-out
        superseded it.
        """
        self.gate.require_admin()
        if self._inflight is not None or self._closed:
            return None
        self._generation += 1
        generation = self._generation
        try:
            snapshot = await self.loader.execute()
        except PortfolioError as exc:
            if generation == self._generation:
                self.last_error = exc
            raise
        if generation != self._generation or self._inflight is not None or self._closed:
            logger.debug("Discarding stale editor refresh (generation %d)", generation)
            return None
        self.draft = Draft.from_snapshot(snapshot)
        self.last_error = None
        return snapshot

    def close(self) -> None:
        self._closed = True
        self._generation += 1
        self.draft = None


class EditorSessions:
    """Admin editors kept between requests, one per admin user.

    Lives on the application. An editor is closed and dropped when its admin
    signs out; the next request opens a fresh one.
    """

    def __init__(self) -> None:
        self._editors: dict[str, AdminEditor] = {}

    def open(self, gate: SessionGate, saver: SaveAllUseCase, loader: LoadPortfolioUseCase) -> AdminEditor:
        user_id = gate.require_admin().user.id
        editor = self._editors.get(user_id)
        if editor is None or editor.closed:
            editor = AdminEditor(gate, saver, loader)
            self._editors[user_id] = editor
        else:
            editor.bind(gate, saver, loader)
        return editor

    def close(self, user_id: str) -> None:
        editor = self._editors.pop(user_id, None)
        if editor is not None:
            editor.close()
            logger.info("Closed draft editor for %s", user_id)
