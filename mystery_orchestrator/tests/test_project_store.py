"""
Unit tests for the file-backed project store.
"""

import asyncio
from datetime import timedelta

import pytest

from mystery_orchestrator.core import assemble_project
from mystery_orchestrator.models import (
    CharacterSet,
    EvidenceSet,
    GenerationSettings,
    ProjectStatus,
    StoryFoundation,
    ValidationState,
)
from mystery_orchestrator.services import (
    ProjectConflictError,
    ProjectStore,
    ProjectStoreError,
    ProjectUpdateError,
    is_valid_project_id,
)

from conftest import characters_payload, evidence_payload, story_payload


@pytest.fixture
def store(tmp_path):
    return ProjectStore(tmp_path / "projects")


@pytest.fixture
def make_project(noir_settings):
    def _make(project_id: str = "noir-1", settings: GenerationSettings = None):
        return assemble_project(
            project_id,
            settings or noir_settings,
            StoryFoundation.model_validate(story_payload()),
            CharacterSet.model_validate(characters_payload()),
            EvidenceSet.model_validate(evidence_payload()),
            ValidationState(),
        )
    return _make


class TestProjectIds:

    @pytest.mark.parametrize("project_id", ["noir-1", "abc_DEF", "0f8fad5b-d9cb-469f-a165-70867728950e"])
    def test_valid(self, project_id):
        assert is_valid_project_id(project_id)

    @pytest.mark.parametrize("project_id", ["", "../etc", "a/b", "-lead", ".hidden", "with space"])
    def test_invalid(self, project_id):
        assert not is_valid_project_id(project_id)


class TestSaveAndLoad:

    @pytest.mark.asyncio
    async def test_round_trip(self, store, make_project):
        project = make_project()

        await store.save(project)
        loaded = await store.load("noir-1")

        assert loaded.model_dump() == project.model_dump()

    @pytest.mark.asyncio
    async def test_writes_project_json_and_handouts(self, store, make_project, tmp_path):
        await store.save(make_project())

        project_dir = tmp_path / "projects" / "noir-1"
        names = sorted(p.name for p in project_dir.iterdir())
        assert "project.json" in names
        assert "00_GAME_MASTER_BLUEPRINT.md" in names
        assert "06_APPENDIX_PERSONS.md" in names
        assert not any(name.endswith(".tmp") for name in names)

    @pytest.mark.asyncio
    async def test_markdown_can_be_disabled(self, tmp_path, make_project):
        store = ProjectStore(tmp_path, render_markdown=False)

        await store.save(make_project())

        assert [p.name for p in (tmp_path / "noir-1").iterdir()] == ["project.json"]

    @pytest.mark.asyncio
    async def test_invalid_id_is_rejected(self, store, make_project):
        with pytest.raises(ProjectStoreError):
            await store.save(make_project("../escape"))

    @pytest.mark.asyncio
    async def test_load_missing_and_invalid(self, store):
        assert await store.load("missing") is None
        assert await store.load("../etc") is None

    @pytest.mark.asyncio
    async def test_load_corrupt_record(self, store, tmp_path):
        project_dir = tmp_path / "projects" / "broken"
        project_dir.mkdir(parents=True)
        (project_dir / "project.json").write_text('{"id": "broken"}', encoding="utf-8")

        assert await store.load("broken") is None


class TestList:

    @pytest.mark.asyncio
    async def test_sorted_by_updated_at_descending(self, store, make_project):
        older = make_project("older")
        newer = make_project("newer")
        older = older.model_copy(update={"updated_at": newer.updated_at - timedelta(hours=1)})

        await store.save(older)
        await store.save(newer)

        items = await store.list()

        assert [item.id for item in items] == ["newer", "older"]
        assert items[0].suspect_count == 3
        assert items[0].evidence_count == 3

    @pytest.mark.asyncio
    async def test_empty_store(self, store):
        assert await store.list() == []


class TestUpdate:

    @pytest.mark.asyncio
    async def test_bumps_version_and_timestamp(self, store, make_project):
        project = make_project()
        await store.save(project)

        updated = await store.update("noir-1", {"name": "Renamed", "status": "draft"})

        assert updated.name == "Renamed"
        assert updated.status == ProjectStatus.DRAFT
        assert updated.version == 2
        assert updated.updated_at > project.updated_at
        assert (await store.load("noir-1")).name == "Renamed"

    @pytest.mark.asyncio
    async def test_protected_fields_are_ignored(self, store, make_project):
        project = make_project()
        await store.save(project)

        updated = await store.update("noir-1", {"id": "other", "version": 40, "created_at": "2000-01-01T00:00:00Z"})

        assert updated.id == "noir-1"
        assert updated.version == 2
        assert updated.created_at == project.created_at

    @pytest.mark.asyncio
    async def test_missing_project(self, store):
        assert await store.update("missing", {"name": "x"}) is None

    @pytest.mark.asyncio
    async def test_stale_version_conflicts(self, store, make_project):
        await store.save(make_project())
        await store.update("noir-1", {"name": "First"}, expected_version=1)

        with pytest.raises(ProjectConflictError) as exc_info:
            await store.update("noir-1", {"name": "Second"}, expected_version=1)

        assert exc_info.value.actual == 2
        assert (await store.load("noir-1")).name == "First"

    @pytest.mark.asyncio
    async def test_invalid_patch(self, store, make_project):
        await store.save(make_project())

        with pytest.raises(ProjectUpdateError):
            await store.update("noir-1", {"suspects": "not a list"})

    @pytest.mark.asyncio
    async def test_concurrent_updates_are_serialised(self, store, make_project):
        await store.save(make_project())

        results = await asyncio.gather(*(
            store.update("noir-1", {"name": f"Name {i}"}) for i in range(5)
        ))

        assert sorted(r.version for r in results) == [2, 3, 4, 5, 6]
        assert (await store.load("noir-1")).version == 6

    @pytest.mark.asyncio
    async def test_invalid_id_returns_none(self, store):
        assert await store.update("../../etc", {"name": "x"}) is None

    @pytest.mark.asyncio
    async def test_locks_are_released_after_use(self, store, make_project):
        await store.save(make_project())

        for i in range(200):
            await store.update(f"nope-{i}", {"name": "x"})
        await store.update("../../etc", {"name": "x"})
        await store.update("noir-1", {"name": "Renamed"})
        await store.delete("noir-1")

        assert len(store._locks) == 0


class TestDelete:

    @pytest.mark.asyncio
    async def test_delete_twice(self, store, make_project):
        await store.save(make_project())

        assert await store.delete("noir-1") is True
        assert await store.delete("noir-1") is False
        assert await store.load("noir-1") is None
