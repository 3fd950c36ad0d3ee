import io
import os
from unittest import mock

import pytest
from werkzeug.datastructures import FileStorage

from modules.admin.managers import EntityManager, ProfileManager, build_managers
from modules.admin.schemas import SCHEMAS
from modules.common.store import StoreError

VALID = {
    "profile": {"name": "Ayu", "title": "Mobile Developer", "bio": "Builds apps.", "phone": "+62 812 3456 7890"},
    "skills": {"name": "Flutter", "category": "Mobile"},
    "education": {
        "institution": "ITB",
        "degree": "BSc",
        "field_of_study": "Computer Science",
        "start_date": "2015-08-01",
        "end_date": "2019-07-01",
        "gpa": "3.6",
    },
    "experience": {
        "company": "Gojek",
        "position": "Engineer",
        "start_date": "2020-01-01",
        "description": "Built the driver app.",
        "technologies": "Flutter, Dart, ,Firebase",
    },
    "projects": {"title": "Kasir", "description": "POS app", "technologies": "Flutter, Dart", "featured": "1"},
    "certificates": {"title": "Associate Cloud Engineer", "issuer": "Google", "issue_date": "2022-05-10"},
}

REQUIRED = [
    (key, spec.name)
    for key, schema in SCHEMAS.items()
    for spec in schema.fields
    if spec.required
]


def _manager(key, client, notify=None):
    managers = build_managers(client, notify=notify)
    return managers[key]


def _image(name="shot.png", content_type="image/png", data=b"\x89PNG fake"):
    return FileStorage(stream=io.BytesIO(data), filename=name, content_type=content_type)


def test_build_managers_covers_every_collection(spy):
    managers = build_managers(spy)
    assert set(managers) == {"profile", "skills", "education", "experience", "projects", "certificates"}
    assert isinstance(managers["profile"], ProfileManager)
    assert all(isinstance(m, EntityManager) for m in managers.values())


@pytest.mark.parametrize("key,field", REQUIRED)
def test_missing_required_field_never_reaches_store(spy, notes, key, field):
    manager = _manager(key, spy, notes)
    form = dict(VALID[key], **{field: "   "})

    assert manager.submit(form) is None
    assert list(manager.errors) == [field]
    assert spy.tables.method_calls == []
    assert notes.messages == []


@pytest.mark.parametrize("key", list(SCHEMAS))
def test_one_error_per_invalid_field(spy, key):
    manager = _manager(key, spy)
    required = [s.name for s in SCHEMAS[key].fields if s.required]

    assert manager.submit({}) is None
    assert sorted(manager.errors) == sorted(required)
    assert spy.tables.method_calls == []


@pytest.mark.parametrize("key", list(SCHEMAS))
def test_submit_inserts_and_refreshes(spy, notes, key):
    spy.pages.set("/", "<html>stale</html>")
    manager = _manager(key, spy, notes)

    record = manager.submit(VALID[key])

    assert record is not None
    assert [r["id"] for r in manager.records] == [record["id"]]
    assert spy.pages.get("/") is None
    assert notes.messages[-1] == (f"{SCHEMAS[key].label} added successfully!", "success")


def test_technologies_are_stored_as_list(spy):
    record = _manager("experience", spy).submit(VALID["experience"])
    assert record["technologies"] == ["Flutter", "Dart", "Firebase"]


def test_insert_keeps_sort_order(spy):
    manager = _manager("skills", spy)
    for name in ("Swift", "Dart", "Kotlin"):
        manager.submit({"name": name, "category": "Language"})
    assert [r["name"] for r in manager.records] == ["Dart", "Kotlin", "Swift"]


def test_edit_then_submit_updates_in_place(spy, notes):
    manager = _manager("projects", spy, notes)
    first = manager.submit(VALID["projects"])
    manager.submit(dict(VALID["projects"], title="Other"))

    form = manager.edit(manager.find(first["id"]))
    assert form["technologies"] == "Flutter, Dart"

    updated = manager.submit(dict(form, title="Kasir v2"))

    assert updated["id"] == first["id"]
    matching = [r for r in manager.records if r["id"] == first["id"]]
    assert len(matching) == 1 and matching[0]["title"] == "Kasir v2"
    assert len(manager.records) == 2
    assert manager.editing is None
    assert notes.messages[-1] == ("Project updated successfully!", "success")


def test_cancel_drops_editing_state(spy):
    manager = _manager("skills", spy)
    record = manager.submit(VALID["skills"])
    manager.edit(record)
    manager.cancel()
    assert manager.editing is None
    assert manager.form["name"] == ""


def test_profile_is_a_singleton(spy, notes):
    manager = _manager("profile", spy, notes)
    created = manager.submit(VALID["profile"])
    assert notes.messages[-1] == ("Profile added successfully!", "success")

    fresh = _manager("profile", spy, notes)
    fresh.refresh()
    assert fresh.form["name"] == "Ayu"
    updated = fresh.submit(dict(fresh.form, title="Lead Developer"))

    assert updated["id"] == created["id"]
    assert spy.tables.select_single("profile")["title"] == "Lead Developer"
    assert len(spy.tables.select("profile")) == 1
    assert notes.messages[-1] == ("Profile updated successfully!", "success")


def test_profile_update_goes_by_stored_row(spy, notes):
    created = _manager("profile", spy, notes).submit(VALID["profile"])

    # never loaded, so the local copy knows nothing about the stored profile
    manager = _manager("profile", spy, notes)
    updated = manager.submit(dict(VALID["profile"], title="Lead Developer"))

    assert updated["id"] == created["id"]
    assert len(spy.tables.select("profile")) == 1
    assert notes.messages[-1] == ("Profile updated successfully!", "success")


def test_profile_lookup_failure_saves_nothing(spy, notes):
    _manager("profile", spy, notes).submit(VALID["profile"])
    manager = _manager("profile", spy, notes)
    spy.tables.reset_mock()

    with mock.patch.object(spy.tables, "select_single", side_effect=StoreError("db down")):
        assert manager.submit(dict(VALID["profile"], title="Lead Developer")) is None

    spy.tables.insert.assert_not_called()
    spy.tables.update.assert_not_called()
    assert len(spy.tables.select("profile")) == 1
    assert notes.messages[-1] == ("Failed to save profile", "error")


def test_delete_requires_confirmation(spy):
    manager = _manager("skills", spy)
    record = manager.submit(VALID["skills"])
    spy.tables.reset_mock()

    assert manager.delete(record["id"]) is False
    spy.tables.delete.assert_not_called()
    assert len(manager.records) == 1


def test_delete_is_idempotent(spy, notes):
    manager = _manager("certificates", spy, notes)
    keep = manager.submit(VALID["certificates"])
    gone = manager.submit(dict(VALID["certificates"], title="CKA"))
    spy.tables.reset_mock()

    assert manager.delete(gone["id"], confirmed=True) is True
    assert [r["id"] for r in manager.records] == [keep["id"]]
    spy.tables.list.assert_not_called()
    assert notes.messages[-1] == ("Certificate deleted successfully!", "success")

    assert manager.delete(gone["id"], confirmed=True) is False
    assert [r["id"] for r in manager.records] == [keep["id"]]
    assert notes.messages[-1] == ("Certificate not found", "warning")


def test_store_failure_leaves_local_state(spy, notes):
    manager = _manager("skills", spy, notes)
    manager.submit(VALID["skills"])
    before = list(manager.records)

    with mock.patch.object(spy.tables, "insert", side_effect=StoreError("db down")):
        assert manager.submit({"name": "Go", "category": "Language"}) is None

    assert manager.records == before
    assert notes.messages[-1] == ("Failed to save skill", "error")


def test_rejected_upload_aborts_submit(spy, notes):
    manager = _manager("projects", spy, notes)

    result = manager.submit(VALID["projects"], _image("notes.txt", "text/plain"))

    assert result is None
    spy.tables.insert.assert_not_called()
    spy.storage.upload.assert_not_called()
    assert notes.messages[-1] == ("Upload failed: File type text/plain not allowed for projects", "error")


def test_upload_sets_media_field(spy, portfolio):
    manager = _manager("projects", spy)

    record = manager.submit(VALID["projects"], _image())

    assert record["image_url"].startswith("/storage/projects/")
    stored = record["image_url"].rsplit("/", 1)[-1]
    assert os.path.exists(os.path.join(portfolio.storage.bucket_dir("projects"), stored))


def test_edit_without_new_file_keeps_media(spy):
    manager = _manager("skills", spy)
    record = manager.submit(VALID["skills"], _image("flutter.png"))

    manager.edit(record)
    updated = manager.submit(dict(manager.form, category="Framework"))

    assert updated["icon_url"] == record["icon_url"]


def test_failed_save_removes_uploaded_file(spy, portfolio):
    manager = _manager("projects", spy)
    with mock.patch.object(spy.tables, "insert", side_effect=StoreError("db down")):
        assert manager.submit(VALID["projects"], _image()) is None
    assert os.listdir(portfolio.storage.bucket_dir("projects")) == []
