"""
Tests for the data access use cases, run against the in-memory store.
"""
from __future__ import annotations

import asyncio
import time
from dataclasses import replace
from unittest.mock import Mock

import pytest

from portfolio.application.portfolio_state import PortfolioState
from portfolio.application.session_gate import SessionGate
from portfolio.application.use_cases.load_portfolio import LoadPortfolioUseCase
from portfolio.application.use_cases.manage_item import DeleteItemUseCase, UpsertItemUseCase
from portfolio.application.use_cases.replace_collection import ReplaceCollectionUseCase
from portfolio.application.use_cases.save_all import SaveAllUseCase
from portfolio.application.use_cases.save_profile import SaveProfileUseCase
from portfolio.application.use_cases.store_call import call_store
from portfolio.domain.entities.package import PackageEntity
from portfolio.domain.entities.profile import DEFAULT_PROFILE, ProfileEntity, ProfilePatch
from portfolio.domain.entities.project import ProjectEntity
from portfolio.domain.entities.skill import SkillEntity
from portfolio.domain.entities.snapshot import CollectionKind, PortfolioSnapshot
from portfolio.domain.errors import (
    BatchSaveError,
    NotFoundError,
    PersistenceError,
    Unauthorized,
    ValidationError,
)
from portfolio.infrastructure.database.repositories.content_store import ContentStore
from portfolio.infrastructure.database.repositories.portfolio_repository import SINGLETON_ID


def run(coro):
    return asyncio.run(coro)


@pytest.fixture()
def store() -> ContentStore:
    return ContentStore.from_client(None)


@pytest.fixture()
def admin_gate() -> Mock:
    return Mock(spec=SessionGate)


@pytest.fixture()
def state() -> PortfolioState:
    return PortfolioState()


@pytest.fixture()
def use_cases(store, admin_gate, state):
    loader = LoadPortfolioUseCase(store=store, state=state)
    profile_saver = SaveProfileUseCase(store=store, gate=admin_gate, loader=loader)
    collection_saver = ReplaceCollectionUseCase(store=store, gate=admin_gate, loader=loader)
    save_all = SaveAllUseCase(
        profile_saver=profile_saver, collection_saver=collection_saver, loader=loader, gate=admin_gate
    )
    return loader, profile_saver, collection_saver, save_all


class TestLoadPortfolio:
    """Test loading the full portfolio snapshot."""

    def test_empty_store_yields_default(self, use_cases, state):
        """Test the default profile for an empty store."""
        loader, *_ = use_cases
        snapshot = run(loader.execute())
        assert snapshot.is_default
        assert snapshot.profile == DEFAULT_PROFILE
        assert snapshot.skills == ()
        assert state.snapshot is snapshot

    def test_one_failing_read_fails_the_load(self, store, state):
        """Test that one failing read fails the whole load."""
        previous = PortfolioSnapshot(profile=DEFAULT_PROFILE)
        state.publish(previous)
        store.projects = Mock()
        store.projects.list_ordered.side_effect = PersistenceError("projects down")
        with pytest.raises(PersistenceError):
            run(LoadPortfolioUseCase(store=store, state=state).execute())
        assert state.snapshot is previous

    def test_latest_falls_back_to_last_good_snapshot(self, store, state):
        """Test serving the last good snapshot when the store fails."""
        loader = LoadPortfolioUseCase(store=store, state=state)
        good = run(loader.execute())
        store.skills = Mock()
        store.skills.list_ordered.side_effect = PersistenceError("skills down")
        assert run(loader.latest()) is good
        state.reset()
        with pytest.raises(PersistenceError):
            run(loader.latest())

    def test_collections_come_back_in_sort_order(self, use_cases, store):
        """Test that collections are ordered by sort_order."""
        loader, *_ = use_cases
        store.skills.upsert_many(
            [
                SkillEntity(name="B", percentage=1, sort_order=1),
                SkillEntity(name="A", percentage=1, sort_order=0),
            ]
        )
        assert [s.name for s in run(loader.execute()).skills] == ["A", "B"]


class TestSaveProfile:
    """Test saving profile patches."""

    def test_first_save_creates_from_defaults(self, use_cases):
        """Test that the first save creates the row from defaults."""
        _, profile_saver, *_ = use_cases
        snapshot = run(profile_saver.execute(ProfilePatch(name="Rafi")))
        assert not snapshot.is_default
        assert snapshot.profile.name == "Rafi"
        assert snapshot.profile.grade == DEFAULT_PROFILE.grade
        assert snapshot.profile.id

    def test_patch_touches_only_supplied_fields(self, use_cases, store):
        """Test that only supplied fields are written."""
        _, profile_saver, *_ = use_cases
        run(profile_saver.execute(ProfilePatch(name="Rafi", github="https://github.com/rafi")))
        store.profiles.update = Mock(wraps=store.profiles.update)
        snapshot = run(profile_saver.execute(ProfilePatch(tagline="Pentester")))
        store.profiles.update.assert_called_once()
        assert store.profiles.update.call_args.args[1] == {"tagline": "Pentester"}
        assert snapshot.profile.github == "https://github.com/rafi"

    def test_invalid_merge_writes_nothing(self, use_cases, store):
        """Test that an invalid patch writes nothing."""
        _, profile_saver, *_ = use_cases
        run(profile_saver.execute(ProfilePatch(name="Rafi")))
        with pytest.raises(ValidationError):
            run(profile_saver.execute(ProfilePatch(name="   ")))
        assert store.profiles.get().name == "Rafi"

    def test_requires_admin(self, use_cases, admin_gate, store):
        """Test that saving requires the admin role."""
        _, profile_saver, *_ = use_cases
        admin_gate.require_admin.side_effect = Unauthorized()
        with pytest.raises(Unauthorized):
            run(profile_saver.execute(ProfilePatch(name="X")))
        assert store.profiles.get() is None


class TestReplaceCollection:
    """Test replacing a whole collection."""

    def test_list_position_becomes_sort_order(self, use_cases):
        """Test that list position becomes sort_order."""
        _, _, collection_saver, _ = use_cases
        items = [SkillEntity(name=n, percentage=50, sort_order=99) for n in ("C", "A", "B")]
        snapshot = run(collection_saver.execute(CollectionKind.SKILLS, items))
        assert [(s.name, s.sort_order) for s in snapshot.skills] == [("C", 0), ("A", 1), ("B", 2)]
        assert all(s.portfolio_id == snapshot.profile.id for s in snapshot.skills)
        assert all(s.id for s in snapshot.skills)

    def test_replace_drops_items_not_in_the_list(self, use_cases):
        """Test that items missing from the list are removed."""
        _, _, collection_saver, _ = use_cases
        first = run(collection_saver.execute("packages", [PackageEntity(name=n, price_min=1, price_max=2) for n in "XYZ"]))
        keep = first.packages[1]
        second = run(collection_saver.execute("packages", [keep]))
        assert [p.id for p in second.packages] == [keep.id]

    def test_unowned_seed_rows_are_replaced(self, use_cases, store):
        """Test that seeded rows without an owner are replaced."""
        _, _, collection_saver, _ = use_cases
        store.projects.upsert(ProjectEntity(title="Seed"))
        snapshot = run(collection_saver.execute("projects", [ProjectEntity(title="Mine")]))
        assert [p.title for p in snapshot.projects] == ["Mine"]

    def test_empty_list_clears_collection(self, use_cases):
        """Test that an empty list clears the collection."""
        _, _, collection_saver, _ = use_cases
        run(collection_saver.execute("skills", [SkillEntity(name="A", percentage=1)]))
        assert run(collection_saver.execute("skills", [])).skills == ()

    def test_rejects_wrong_item_type_and_duplicates(self, use_cases):
        """Test wrong item types and duplicate ids."""
        _, _, collection_saver, _ = use_cases
        with pytest.raises(ValidationError):
            run(collection_saver.execute("skills", [ProjectEntity(title="nope")]))
        dupes = [SkillEntity(name="A", percentage=1, id="s1"), SkillEntity(name="B", percentage=1, id="s1")]
        with pytest.raises(ValidationError):
            run(collection_saver.execute("skills", dupes))
        with pytest.raises(ValidationError):
            run(collection_saver.execute("widgets", []))


class TestSaveAll:
    """Test saving the whole draft."""

    def test_saves_everything(self, use_cases):
        """Test a full save of every entity."""
        *_, save_all = use_cases
        snapshot = run(
            save_all.execute(
                ProfilePatch(name="Rafi", whatsapp="0812"),
                [SkillEntity(name="HTML", percentage=90)],
                [PackageEntity(name="Basic", price_min=100, price_max=200)],
                [ProjectEntity(title="Site")],
            )
        )
        assert snapshot.profile.name == "Rafi"
        assert len(snapshot.skills) == len(snapshot.packages) == len(snapshot.projects) == 1

    def test_partial_failure_reports_what_saved(self, use_cases, store):
        """Test the batch error after one entity fails."""
        *_, save_all = use_cases
        store.packages.replace_for_portfolio = Mock(side_effect=PersistenceError("Supabase upsert packages failed"))
        with pytest.raises(BatchSaveError) as err:
            run(
                save_all.execute(
                    ProfilePatch(name="Rafi"),
                    [SkillEntity(name="HTML", percentage=90)],
                    [PackageEntity(name="Basic", price_min=100, price_max=200)],
                    [ProjectEntity(title="Site")],
                )
            )
        assert err.value.succeeded == ["profile", "skills", "projects"]
        assert list(err.value.failed) == ["packages"]
        assert "packages" in str(err.value)
        # earlier writes stay committed
        assert store.profiles.get().name == "Rafi"
        assert [s.name for s in store.skills.list_ordered()] == ["HTML"]

    def test_invalid_draft_writes_nothing(self, use_cases, store):
        """Test that an invalid draft writes nothing."""
        *_, save_all = use_cases
        dupes = [SkillEntity(name="A", percentage=1, id="x"), SkillEntity(name="B", percentage=1, id="x")]
        with pytest.raises(ValidationError):
            run(save_all.execute(ProfilePatch(name="Rafi"), dupes, [], []))
        assert store.profiles.get() is None

    def test_reload_returns_the_saved_draft(self, use_cases, store):
        """Test that the reload matches the saved draft field by field."""
        *_, save_all = use_cases
        profile = ProfileEntity(
            name="Rafi",
            tagline="Pentester",
            age=14,
            grade="Kelas 9 SMP",
            bio="Suka CTF.",
            profile_image="https://cdn.example.com/me.png",
            logo_image="https://cdn.example.com/logo.png",
            whatsapp="+62 812-3456-7890",
            email="rafi@example.com",
            github="https://github.com/rafi",
            instagram="https://instagram.com/rafi",
            location="Bandung",
        )
        skills = [
            SkillEntity(name="Linux", percentage=70, category="security"),
            SkillEntity(name="HTML", percentage=95, category="webdev"),
            SkillEntity(name="Legacy", percentage=10),
        ]
        packages = [
            PackageEntity(name="Pro", price_min=2000000, price_max=5000000, features=("CMS", "SEO", "Hosting")),
            PackageEntity(name="Free", price_min=0, price_max=0),
        ]
        projects = [
            ProjectEntity(
                title="CTF Writeups",
                description="Notes",
                image="https://cdn.example.com/ctf.png",
                category="Security",
                technologies=("Python", "Markdown"),
                live_url="https://ctf.example.com",
                github_url="https://github.com/rafi/ctf",
            ),
            ProjectEntity(title="Landing", technologies=("React",)),
        ]
        run(save_all.execute(ProfilePatch.from_profile(profile), skills, packages, projects))
        loaded = run(LoadPortfolioUseCase(store=store).execute())

        def content(items):
            return [replace(item, id=None, portfolio_id=None, sort_order=0) for item in items]

        assert replace(loaded.profile, id=None) == profile
        assert content(loaded.skills) == skills
        assert content(loaded.packages) == packages
        assert content(loaded.projects) == projects
        assert [p.sort_order for p in loaded.packages] == [0, 1]

    def test_non_admin_changes_nothing(self, use_cases, admin_gate, store):
        """Test that a non-admin save leaves the store untouched."""
        _, _, collection_saver, save_all = use_cases
        run(collection_saver.execute("skills", [SkillEntity(name="HTML", percentage=90)]))
        before = store.skills.list_ordered()
        admin_gate.require_admin.side_effect = Unauthorized("Admin role required", authenticated=True)
        with pytest.raises(Unauthorized):
            run(collection_saver.execute("skills", []))
        with pytest.raises(Unauthorized):
            run(save_all.execute(ProfilePatch(name="X"), [], [], [PackageEntity(name="P", price_min=1, price_max=1)]))
        assert store.skills.list_ordered() == before
        assert store.packages.list_ordered() == []
        assert store.profiles.get().name == DEFAULT_PROFILE.name

    def test_timed_out_profile_write_is_reported_unknown(self, use_cases, store, monkeypatch):
        """Test that a timed-out write is reported as unknown."""
        *_, save_all = use_cases
        monkeypatch.setenv("CONTENT_TIMEOUT_SECONDS", "0.1")
        real_create = store.profiles.create

        def slow_create(profile):
            time.sleep(0.3)
            return real_create(profile)

        store.profiles.create = slow_create
        with pytest.raises(BatchSaveError) as err:
            run(save_all.execute(ProfilePatch(name="Rafi"), [SkillEntity(name="HTML", percentage=90)], [], []))
        assert err.value.unknown == ["profile"]
        assert err.value.failed == {}
        assert err.value.succeeded == ["skills", "packages", "projects"]

        # asyncio.run waits for the worker thread, so the late write has landed
        profile = store.profiles.get()
        assert profile.name == "Rafi"
        assert profile.id == SINGLETON_ID
        assert [s.portfolio_id for s in store.skills.list_ordered()] == [SINGLETON_ID]


class TestManageItem:
    """Test single item upsert and delete."""

    def test_upsert_appends_then_updates_in_place(self, store, admin_gate):
        """Test appending a new item then updating it in place."""
        loader = LoadPortfolioUseCase(store=store)
        upsert = UpsertItemUseCase(store=store, gate=admin_gate, loader=loader)
        run(upsert.execute("skills", "a", SkillEntity(name="A", percentage=10)))
        run(upsert.execute("skills", "b", SkillEntity(name="B", percentage=20)))
        snapshot = run(upsert.execute("skills", "a", SkillEntity(name="A2", percentage=30)))
        assert [(s.id, s.name, s.sort_order) for s in snapshot.skills] == [("a", "A2", 0), ("b", "B", 1)]

    def test_delete_missing_item(self, store, admin_gate):
        """Test deleting an item that does not exist."""
        delete = DeleteItemUseCase(store=store, gate=admin_gate, loader=LoadPortfolioUseCase(store=store))
        with pytest.raises(NotFoundError):
            run(delete.execute("projects", "missing"))


class TestStoreCall:
    """Test the store call wrapper."""

    def test_timeout_becomes_persistence_error(self):
        """Test that a slow call becomes a timeout error."""
        with pytest.raises(PersistenceError, match="timed out"):
            run(call_store(time.sleep, 0.5, label="Slow read", timeout=0.05))

    def test_backend_errors_are_wrapped(self):
        """Test that backend errors are wrapped."""
        def boom():
            raise ConnectionError("refused")

        with pytest.raises(PersistenceError, match="Flaky read failed: refused"):
            run(call_store(boom, label="Flaky read"))

    def test_domain_errors_pass_through(self):
        """Test that domain errors pass through unchanged."""
        def bad():
            raise ValidationError("bad input")

        with pytest.raises(ValidationError):
            run(call_store(bad, label="Validate"))


class TestPortfolioState:
    """Test the shared snapshot holder."""

    def test_late_result_from_older_load_is_discarded(self):
        """Test that an older load finishing late is discarded."""
        state = PortfolioState()
        first, second = state.next_generation(), state.next_generation()
        newer = PortfolioSnapshot(profile=DEFAULT_PROFILE)
        older = PortfolioSnapshot(profile=ProfileEntity(name="Old", tagline="", age=1, grade="", bio=""))
        assert state.publish(newer, second)
        assert not state.publish(older, first)
        assert state.snapshot is newer

    def test_reset_discards_loads_started_before_it(self):
        """Test that reset discards loads started before it."""
        state = PortfolioState()
        generation = state.next_generation()
        state.publish(PortfolioSnapshot(profile=DEFAULT_PROFILE))
        state.reset()
        assert state.snapshot is None
        assert not state.publish(PortfolioSnapshot(profile=DEFAULT_PROFILE), generation)
        assert state.snapshot is None
