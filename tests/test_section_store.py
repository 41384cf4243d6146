"""
Tests for the section store
"""
from datetime import timedelta

import pytest

from app.core.errors import ConflictError, NotFoundError
from app.db.key_mapper import section_storage_keys
from tests.helpers import OTHER_USER_ID, USER_ID


def new(store, section_type="experience", resume_id="r1", **fields):
    return store.new_section(USER_ID, section_type, resume_id, **fields)


@pytest.mark.asyncio
async def test_create_then_fetch(section_store):
    """Test that a created section is returned with its tags and data unchanged"""
    section = new(section_store, tags=["backend", "go"], data={"company": "Acme", "title": "Eng"})
    await section_store.create(section)

    fetched = await section_store.get(USER_ID, section.sectionId)
    assert sorted(fetched.tags) == ["backend", "go"]
    assert fetched.data == {"company": "Acme", "title": "Eng"}
    assert fetched == section


@pytest.mark.asyncio
async def test_duplicate_create_conflicts(section_store):
    section = new(section_store)
    await section_store.create(section)
    with pytest.raises(ConflictError):
        await section_store.create(section)


@pytest.mark.asyncio
async def test_get_direct_lookup_and_owner_scan(section_store):
    section = await section_store.create(new(section_store))

    direct = await section_store.get(USER_ID, section.sectionId, section_type="experience", resume_id="r1")
    assert direct == section
    assert await section_store.get(USER_ID, section.sectionId, section_type="education", resume_id="r1") is None
    assert await section_store.get(USER_ID, section.sectionId) == section
    # sections are scoped to their owner
    assert await section_store.get(OTHER_USER_ID, section.sectionId) is None


@pytest.mark.asyncio
async def test_update_merges_fields_and_reindexes_tags(section_store):
    section = await section_store.create(new(section_store, title="Old", tags=["go"], data={"a": 1}))

    updated = await section_store.update(USER_ID, section.sectionId, {"tags": ["rust"], "title": "New"})
    assert updated.title == "New"
    assert updated.tags == ["rust"]
    assert updated.data == {"a": 1}
    assert updated.updatedAt >= section.updatedAt

    by_old_tag, _ = await section_store.list_by_tags(USER_ID, ["go"])
    by_new_tag, _ = await section_store.list_by_tags(USER_ID, ["rust"])
    assert by_old_tag == []
    assert [s.sectionId for s in by_new_tag] == [section.sectionId]


@pytest.mark.asyncio
async def test_update_and_delete_unknown_section(section_store):
    with pytest.raises(NotFoundError):
        await section_store.update(USER_ID, "missing", {"title": "x"})
    with pytest.raises(NotFoundError):
        await section_store.delete(USER_ID, "missing")


@pytest.mark.asyncio
async def test_delete_removes_all_index_entries(section_store, section_table):
    section = await section_store.create(new(section_store, tags=["go"]))
    await section_store.delete(USER_ID, section.sectionId)
    assert len(section_table) == 0
    assert await section_store.list_by_resume(USER_ID, "r1", ["experience"]) == []


@pytest.mark.asyncio
async def test_list_by_tags_is_order_insensitive_prefix_query(section_store):
    a = await section_store.create(new(section_store, tags=["go", "backend"]))
    b = await section_store.create(new(section_store, tags=["backend"]))
    await section_store.create(new(section_store, tags=["backendx"]))

    both, _ = await section_store.list_by_tags(USER_ID, ["go", "backend"])
    assert [s.sectionId for s in both] == [a.sectionId]
    found, _ = await section_store.list_by_tags(USER_ID, ["backend"])
    assert {s.sectionId for s in found} == {a.sectionId, b.sectionId}


@pytest.mark.asyncio
async def test_list_by_resume(section_store):
    base = new(section_store)
    older = base.model_copy(update={"sectionId": "old", "createdAt": base.createdAt - timedelta(days=1)})
    newer = base.model_copy(update={"sectionId": "new"})
    edu = new(section_store, "education")
    elsewhere = new(section_store, resume_id="r2")
    await section_store.bulk_create([older, newer, edu, elsewhere])

    by_type = await section_store.list_by_resume(USER_ID, "r1", ["experience"])
    assert [s.sectionId for s in by_type] == ["new", "old"]

    whole = await section_store.list_by_resume(USER_ID, "r1")
    assert {s.sectionId for s in whole} == {"old", "new", edu.sectionId}


@pytest.mark.asyncio
async def test_unassigned_sections_are_listed_separately(section_store):
    loose = await section_store.create(new(section_store, resume_id=None))
    await section_store.create(new(section_store))
    assert [s.sectionId for s in await section_store.list_by_resume(USER_ID, None)] == [loose.sectionId]


@pytest.mark.asyncio
async def test_list_sections_pages_through_owner_sections(section_store):
    for _ in range(5):
        await section_store.create(new(section_store))

    first, cursor = await section_store.list_sections(USER_ID, limit=3)
    second, last = await section_store.list_sections(USER_ID, limit=3, start_after=cursor)
    assert len(first) == 3 and len(second) == 2
    assert last is None
    assert {s.sectionId for s in first}.isdisjoint({s.sectionId for s in second})


@pytest.mark.asyncio
async def test_bulk_update_and_delete(section_store):
    sections = [new(section_store, data={"n": n}) for n in range(30)]
    await section_store.bulk_create(sections)

    updated = await section_store.bulk_update([(s, {"title": f"t{i}"}) for i, s in enumerate(sections)])
    assert [s.title for s in updated][:2] == ["t0", "t1"]
    stored = await section_store.get(USER_ID, sections[29].sectionId, section_type="experience", resume_id="r1")
    assert stored.title == "t29"

    await section_store.bulk_delete(sections)
    assert await section_store.list_all(USER_ID) == []


@pytest.mark.asyncio
async def test_batch_get_skips_stale_references(section_store):
    a = await section_store.create(new(section_store))
    found = await section_store.batch_get(USER_ID, "r1", [(a.sectionId, "experience"), ("gone", "experience")])
    assert [s.sectionId for s in found] == [a.sectionId]


@pytest.mark.asyncio
async def test_change_type_rekeys_under_a_new_id(section_store):
    section = await section_store.create(new(section_store, title="Degree", data={"school": "MIT"}))
    moved = await section_store.change_type(section, "education")

    assert moved.sectionId != section.sectionId
    assert moved.sectionType == "education"
    assert (moved.title, moved.data, moved.createdAt) == (section.title, section.data, section.createdAt)
    assert await section_store.get(USER_ID, section.sectionId) is None
    assert await section_store.get(USER_ID, moved.sectionId, section_type="education", resume_id="r1") == moved


@pytest.mark.asyncio
async def test_interrupted_type_change_leaves_both_records(section_store, section_table, monkeypatch):
    """Test that a failure between create-new and delete-old leaves both records visible"""
    section = await section_store.create(new(section_store))
    old_key = section_storage_keys(section).primary

    async def failing_delete(key):
        raise ConnectionError("connection reset")

    monkeypatch.setattr(section_table, "delete_item", failing_delete)
    with pytest.raises(ConnectionError):
        await section_store.change_type(section, "education")
    monkeypatch.undo()

    listed = await section_store.list_by_resume(USER_ID, "r1")
    assert len(listed) == 2
    assert {s.sectionType for s in listed} == {"experience", "education"}
    assert await section_table.get_item(old_key) is not None

    # cleanup completes the move
    await section_store.delete(USER_ID, section.sectionId)
    assert [s.sectionType for s in await section_store.list_by_resume(USER_ID, "r1")] == ["education"]
