"""
Tests for the admin editor draft: single-flight save and stale refresh handling.
"""
from __future__ import annotations

import asyncio
from dataclasses import replace
from unittest.mock import AsyncMock, Mock

import pytest

from portfolio.application.admin_editor import AdminEditor, EditorSessions
from portfolio.application.session_gate import SessionGate
from portfolio.domain.entities.package import PackageEntity
from portfolio.domain.entities.profile import DEFAULT_PROFILE
from portfolio.domain.entities.skill import SkillEntity
from portfolio.domain.entities.snapshot import PortfolioSnapshot
from portfolio.domain.errors import BatchSaveError, Unauthorized, ValidationError


def snapshot(name: str = "Rafi", skills=()) -> PortfolioSnapshot:
    return PortfolioSnapshot(profile=replace(DEFAULT_PROFILE, name=name, id="p1"), skills=tuple(skills))


@pytest.fixture()
def gate() -> Mock:
    gate = Mock(spec=SessionGate)
    listeners = []
    gate.on_sign_out.side_effect = listeners.append
    gate.listeners = listeners
    return gate


def make_editor(gate, saver=None, loader=None, initial=None) -> AdminEditor:
    return AdminEditor(gate, saver or Mock(), loader or Mock(), snapshot=initial or snapshot())


def admin_gate(user_id: str = "u1") -> Mock:
    gate = Mock(spec=SessionGate)
    gate.require_admin.return_value = Mock(user=Mock(id=user_id))
    return gate


class TestEditorSessions:
    """Test keeping one editor per admin."""

    def test_one_editor_per_admin_until_sign_out(self):
        """Test reuse and rebinding of an admin's editor."""
        sessions = EditorSessions()
        first = sessions.open(admin_gate(), Mock(), Mock())
        later_gate, later_saver = admin_gate(), Mock()
        assert sessions.open(later_gate, later_saver, Mock()) is first
        assert first.gate is later_gate
        assert first.saver is later_saver
        assert sessions.open(admin_gate("u2"), Mock(), Mock()) is not first

        sessions.close("u1")
        assert first.closed
        assert sessions.open(admin_gate(), Mock(), Mock()) is not first

    def test_non_admin_cannot_open(self, gate):
        """Test that a non-admin cannot open an editor."""
        gate.require_admin.side_effect = Unauthorized("Admin role required", authenticated=True)
        with pytest.raises(Unauthorized):
            EditorSessions().open(gate, Mock(), Mock())


class TestDraftEdits:
    """Test edits on the draft."""

    def test_edits_only_touch_the_draft(self, gate):
        """Test that edits stay in the draft until saved."""
        saver = Mock()
        editor = make_editor(gate, saver=saver)
        editor.update_profile(tagline="Pentester")
        index = editor.add_item("skills", SkillEntity(name="HTML", percentage=90))
        editor.add_item("skills", SkillEntity(name="CSS", percentage=80))
        editor.update_item("skills", index, percentage=95)
        editor.move_item("skills", 1, 0)
        assert editor.draft.profile.tagline == "Pentester"
        assert [(s.name, s.percentage) for s in editor.draft.skills] == [("CSS", 80), ("HTML", 95)]
        saver.execute.assert_not_called()

    def test_invalid_edits_are_rejected(self, gate):
        """Test invalid profile and item edits."""
        editor = make_editor(gate)
        with pytest.raises(ValidationError):
            editor.update_profile(name="")
        with pytest.raises(ValidationError):
            editor.add_item("packages", SkillEntity(name="x", percentage=1))
        with pytest.raises(ValidationError):
            editor.remove_item("projects", 0)
        editor.add_item("packages", PackageEntity(name="Basic", price_min=1, price_max=2))
        with pytest.raises(ValidationError):
            editor.update_item("packages", 0, price_min=5)
        with pytest.raises(ValidationError):
            editor.update_item("packages", 0, colour="red")


class TestSave:
    """Test the single-flight draft save."""

    def test_concurrent_saves_share_one_write(self, gate):
        """Test that concurrent saves share one write."""
        saved = snapshot(name="Saved")
        release = None

        async def slow_save(*args):
            await release.wait()
            return saved

        saver = Mock()
        saver.execute = AsyncMock(side_effect=slow_save)
        editor = make_editor(gate, saver=saver)

        async def scenario():
            nonlocal release
            release = asyncio.Event()
            first = asyncio.ensure_future(editor.save())
            second = asyncio.ensure_future(editor.save())
            await asyncio.sleep(0)
            assert editor.saving
            release.set()
            return await asyncio.gather(first, second)

        results = asyncio.run(scenario())
        assert results == [saved, saved]
        assert saver.execute.await_count == 1
        assert editor.draft.profile.name == "Saved"
        assert not editor.saving

    def test_failed_save_keeps_the_draft(self, gate):
        """Test that a failed save keeps the draft."""
        saver = Mock()
        saver.execute = AsyncMock(side_effect=BatchSaveError(["profile"], {"skills": "down"}))
        editor = make_editor(gate, saver=saver)
        editor.update_profile(tagline="Unsaved edit")
        with pytest.raises(BatchSaveError):
            asyncio.run(editor.save())
        assert editor.draft.profile.tagline == "Unsaved edit"
        assert isinstance(editor.last_error, BatchSaveError)
        assert not editor.saving


class TestRefresh:
    """Test refreshing the draft."""

    def test_refresh_replaces_draft(self, gate):
        """Test that a refresh replaces the draft."""
        loader = Mock()
        loader.execute = AsyncMock(return_value=snapshot(name="Fresh"))
        editor = make_editor(gate, loader=loader)
        asyncio.run(editor.refresh())
        assert editor.draft.profile.name == "Fresh"

    def test_older_refresh_is_discarded(self, gate):
        """Test that an older refresh finishing late is discarded."""
        stale, fresh = snapshot(name="Stale"), snapshot(name="Fresh")
        gates = {}

        async def load():
            event = asyncio.Event()
            result = stale if not gates else fresh
            gates[result.profile.name] = event
            await event.wait()
            return result

        loader = Mock()
        loader.execute = AsyncMock(side_effect=load)
        editor = make_editor(gate, loader=loader)

        async def scenario():
            first = asyncio.ensure_future(editor.refresh())
            await asyncio.sleep(0)
            second = asyncio.ensure_future(editor.refresh())
            await asyncio.sleep(0)
            gates["Fresh"].set()
            await second
            gates["Stale"].set()
            return await first

        assert asyncio.run(scenario()) is None
        assert editor.draft.profile.name == "Fresh"

    def test_sign_out_closes_editor(self, gate):
        """Test that sign-out closes the editor."""
        loader = Mock()
        loader.execute = AsyncMock(return_value=snapshot(name="Late"))
        editor = make_editor(gate, loader=loader)
        for listener in gate.listeners:
            listener()
        assert editor.draft is None
        with pytest.raises(ValidationError):
            editor.update_profile(tagline="x")
        assert asyncio.run(editor.refresh()) is None

    def test_load_resolving_during_save_is_discarded(self, gate):
        """Test that a load finishing during a save is discarded."""
        saved, late = snapshot(name="Saved"), snapshot(name="Late")
        load_done, save_done = None, None

        async def slow_load():
            await load_done.wait()
            return late

        async def slow_save(*args):
            await save_done.wait()
            return saved

        loader, saver = Mock(), Mock()
        loader.execute = AsyncMock(side_effect=slow_load)
        saver.execute = AsyncMock(side_effect=slow_save)
        editor = make_editor(gate, saver=saver, loader=loader)

        async def scenario():
            nonlocal load_done, save_done
            load_done, save_done = asyncio.Event(), asyncio.Event()
            refresh = asyncio.ensure_future(editor.refresh())
            await asyncio.sleep(0)
            save = asyncio.ensure_future(editor.save())
            await asyncio.sleep(0)
            # a refresh issued while saving does not even start
            assert await editor.refresh() is None
            load_done.set()
            assert await refresh is None
            save_done.set()
            await save

        asyncio.run(scenario())
        assert editor.draft.profile.name == "Saved"
        assert loader.execute.await_count == 1
