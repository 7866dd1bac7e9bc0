"""Tests for ProjectManager: role-scoped queries, uploads, and deletes.

Tests cover:
- List scoping per role and newest-first ordering
- Designer name resolution and its graceful fallback
- Project detail authorization
- Sequential uploads that stop at the first failure
- File delete ordering (blob first, record second)
- Project delete removing every file record, blob, and the project row
"""

import pytest
from datetime import datetime, timedelta
from unittest.mock import patch
from uuid import UUID, uuid4

from designdesk.core.auth import AuthService
from designdesk.core.db import DatabaseManager, Profile, Project, ProjectFile
from designdesk.core.exceptions import (
    AuthorizationError,
    NotFoundError,
    PartialFailureError,
    ServiceError,
    ValidationError,
)
from designdesk.core.project import FileUpload, ProjectManager, generate_stored_name
from designdesk.core.storage import LocalBlobStore


# ── Fixtures ──────────────────────────────────────────────────────────────


def _make_db() -> DatabaseManager:
    db = DatabaseManager("sqlite://")
    db.init_db()
    return db


def _make_pm(tmp_path):
    db = _make_db()
    blobs = LocalBlobStore(tmp_path / "blobs")
    return db, blobs, ProjectManager(db, blobs)


def _register(db, role, name="Test User"):
    with db.get_session() as session:
        return AuthService(session).sign_up(
            f"{uuid4().hex[:10]}@example.com", "secret123", name, role
        )


def _set_designer(db, project_id, designer_id):
    with db.get_session() as session:
        project = session.query(Project).filter(Project.project_id == UUID(project_id)).first()
        project.designer_id = UUID(designer_id) if designer_id else None


def _file_count(db, project_id) -> int:
    with db.get_session() as session:
        return session.query(ProjectFile).filter(
            ProjectFile.project_id == UUID(project_id)
        ).count()


# ── Tests: Listing ───────────────────────────────────────────────────────


class TestListProjects:
    """Tests for role-scoped project listing."""

    def test_client_creates_and_sees_single_project(self, tmp_path):
        db, _, pm = _make_pm(tmp_path)
        client = _register(db, "client")

        pm.create_project(client, "Logo redesign", "Need a new logo")
        projects = pm.list_projects(client)

        assert len(projects) == 1
        assert projects[0]["title"] == "Logo redesign"
        assert projects[0]["designer_id"] is None
        assert projects[0]["client_id"] == client.id

    def test_client_sees_only_own_projects(self, tmp_path):
        db, _, pm = _make_pm(tmp_path)
        alice = _register(db, "client", "Alice")
        bob = _register(db, "client", "Bob")

        pm.create_project(alice, "Alice 1", "a")
        pm.create_project(alice, "Alice 2", "a")
        pm.create_project(bob, "Bob 1", "b")

        alice_projects = pm.list_projects(alice)
        assert {p["title"] for p in alice_projects} == {"Alice 1", "Alice 2"}
        assert all(p["client_id"] == alice.id for p in alice_projects)

        bob_projects = pm.list_projects(bob)
        assert [p["title"] for p in bob_projects] == ["Bob 1"]

    def test_designer_sees_only_assigned_projects(self, tmp_path):
        db, _, pm = _make_pm(tmp_path)
        client = _register(db, "client")
        designer = _register(db, "designer", "Dana")
        other = _register(db, "designer", "Omar")

        assigned = pm.create_project(client, "Assigned", "x")
        pm.create_project(client, "Unassigned", "y")
        _set_designer(db, assigned["id"], designer.id)

        projects = pm.list_projects(designer)
        assert [p["id"] for p in projects] == [assigned["id"]]
        assert all(p["designer_id"] == designer.id for p in projects)
        assert pm.list_projects(other) == []

    def test_project_manager_sees_all_newest_first(self, tmp_path):
        db, _, pm = _make_pm(tmp_path)
        client_a = _register(db, "client")
        client_b = _register(db, "client")
        manager = _register(db, "project_manager")

        first = pm.create_project(client_a, "First", "1")
        second = pm.create_project(client_b, "Second", "2")
        third = pm.create_project(client_a, "Third", "3")

        # Pin creation times so ordering does not depend on clock resolution
        base = datetime(2024, 1, 1)
        with db.get_session() as session:
            for offset, project in enumerate([first, second, third]):
                row = session.query(Project).filter(
                    Project.project_id == UUID(project["id"])
                ).first()
                row.created_at = base + timedelta(hours=offset)

        projects = pm.list_projects(manager)
        assert [p["title"] for p in projects] == ["Third", "Second", "First"]

    def test_designer_names_resolved_in_one_batch(self, tmp_path):
        db, _, pm = _make_pm(tmp_path)
        client = _register(db, "client")
        manager = _register(db, "project_manager")
        designer = _register(db, "designer", "Dana")

        for title in ("One", "Two", "Three"):
            project = pm.create_project(client, title, "d")
            _set_designer(db, project["id"], designer.id)

        with patch.object(pm, "resolve_designer_names", wraps=pm.resolve_designer_names) as lookup:
            projects = pm.list_projects(manager)

        lookup.assert_called_once()
        assert all(p["designer_name"] == "Dana" for p in projects)
        assert all(p["designer_label"] == "Dana" for p in projects)

    def test_name_lookup_failure_falls_back_to_assigned_label(self, tmp_path):
        db, _, pm = _make_pm(tmp_path)
        client = _register(db, "client")
        designer = _register(db, "designer", "Dana")

        project = pm.create_project(client, "Logo", "d")
        _set_designer(db, project["id"], designer.id)

        with patch.object(pm, "resolve_designer_names", side_effect=RuntimeError("lookup down")):
            projects = pm.list_projects(client)

        assert len(projects) == 1
        assert projects[0]["designer_name"] is None
        assert projects[0]["designer_label"] == "Assigned"

    def test_unassigned_project_has_no_designer_label(self, tmp_path):
        db, _, pm = _make_pm(tmp_path)
        client = _register(db, "client")
        pm.create_project(client, "Logo", "d")

        projects = pm.list_projects(client)
        assert projects[0]["designer_name"] is None
        assert projects[0]["designer_label"] is None


# ── Tests: Project Detail ────────────────────────────────────────────────


class TestGetProject:
    """Tests for get_project authorization and enrichment."""

    def test_owner_gets_project_with_files(self, tmp_path):
        db, _, pm = _make_pm(tmp_path)
        client = _register(db, "client")

        created = pm.create_project(
            client, "Logo", "d", files=[FileUpload("brief.pdf", b"%PDF")]
        )
        project = pm.get_project(client, created["id"])

        assert project["title"] == "Logo"
        assert [f["file_name"] for f in project["files"]] == ["brief.pdf"]

    def test_other_client_is_denied(self, tmp_path):
        db, _, pm = _make_pm(tmp_path)
        owner = _register(db, "client")
        stranger = _register(db, "client")
        created = pm.create_project(owner, "Logo", "d")

        with pytest.raises(AuthorizationError):
            pm.get_project(stranger, created["id"])

    def test_unassigned_designer_is_denied(self, tmp_path):
        db, _, pm = _make_pm(tmp_path)
        client = _register(db, "client")
        designer = _register(db, "designer")
        created = pm.create_project(client, "Logo", "d")

        with pytest.raises(AuthorizationError):
            pm.get_project(designer, created["id"])

    def test_assigned_designer_sees_name(self, tmp_path):
        db, _, pm = _make_pm(tmp_path)
        client = _register(db, "client")
        designer = _register(db, "designer", "Dana")
        created = pm.create_project(client, "Logo", "d")
        _set_designer(db, created["id"], designer.id)

        project = pm.get_project(designer, created["id"])
        assert project["designer_name"] == "Dana"

    def test_designer_without_name_shows_unnamed(self, tmp_path):
        db, _, pm = _make_pm(tmp_path)
        client = _register(db, "client")
        manager = _register(db, "project_manager")
        designer = _register(db, "designer", "Dana")
        created = pm.create_project(client, "Logo", "d")
        _set_designer(db, created["id"], designer.id)

        with db.get_session() as session:
            session.query(Profile).filter(Profile.user_id == designer.uuid).first().name = None

        project = pm.get_project(manager, created["id"])
        assert project["designer_name"] == "Unnamed Designer"

    def test_missing_project_raises_not_found(self, tmp_path):
        db, _, pm = _make_pm(tmp_path)
        manager = _register(db, "project_manager")

        with pytest.raises(NotFoundError):
            pm.get_project(manager, str(uuid4()))
        with pytest.raises(NotFoundError):
            pm.get_project(manager, "not-a-uuid")


# ── Tests: Create / Update ───────────────────────────────────────────────


class TestCreateAndUpdate:
    """Tests for project creation and editing permissions."""

    def test_only_clients_create(self, tmp_path):
        db, _, pm = _make_pm(tmp_path)
        manager = _register(db, "project_manager")
        designer = _register(db, "designer")

        with pytest.raises(AuthorizationError, match="Only clients can create projects"):
            pm.create_project(manager, "Logo", "d")
        with pytest.raises(AuthorizationError):
            pm.create_project(designer, "Logo", "d")

    def test_blank_fields_rejected(self, tmp_path):
        db, _, pm = _make_pm(tmp_path)
        client = _register(db, "client")

        with pytest.raises(ValidationError):
            pm.create_project(client, "   ", "d")
        with pytest.raises(ValidationError):
            pm.create_project(client, "Logo", "")
        assert pm.list_projects(client) == []

    def test_files_stored_under_project_namespace(self, tmp_path):
        db, blobs, pm = _make_pm(tmp_path)
        client = _register(db, "client")

        created = pm.create_project(
            client,
            "Logo",
            "d",
            files=[FileUpload("sketch.png", b"png-bytes"), FileUpload("notes.txt", b"hi")],
        )

        assert [f["file_name"] for f in created["files"]] == ["sketch.png", "notes.txt"]
        for record in created["files"]:
            assert record["file_path"].startswith(f"{created['id']}/")
            assert record["uploaded_by"] == client.id
        assert created["files"][0]["file_path"].endswith(".png")
        assert blobs.download(created["files"][1]["file_path"]) == b"hi"

    def test_manager_updates_title_and_bumps_timestamp(self, tmp_path):
        db, _, pm = _make_pm(tmp_path)
        client = _register(db, "client")
        manager = _register(db, "project_manager")
        created = pm.create_project(client, "Logo", "d")

        updated = pm.update_project(manager, created["id"], title="Logo v2")

        assert updated["title"] == "Logo v2"
        assert updated["description"] == "d"
        assert updated["updated_at"] >= created["updated_at"]

    def test_client_cannot_update(self, tmp_path):
        db, _, pm = _make_pm(tmp_path)
        client = _register(db, "client")
        created = pm.create_project(client, "Logo", "d")

        with pytest.raises(AuthorizationError):
            pm.update_project(client, created["id"], title="Mine now")


# ── Tests: Uploads ───────────────────────────────────────────────────────


class TestSequentialUpload:
    """Tests for the upload loop that stops at the first failure."""

    def test_second_of_three_fails_leaves_one_record(self, tmp_path):
        db, blobs, pm = _make_pm(tmp_path)
        client = _register(db, "client")
        manager = _register(db, "project_manager")
        created = pm.create_project(client, "Logo", "d")

        real_upload = blobs.upload
        calls = []

        def flaky_upload(path, data):
            calls.append(path)
            if len(calls) == 2:
                raise ServiceError("storage unavailable")
            return real_upload(path, data)

        files = [
            FileUpload("a.png", b"a"),
            FileUpload("b.png", b"b"),
            FileUpload("c.png", b"c"),
        ]
        with patch.object(blobs, "upload", side_effect=flaky_upload):
            with pytest.raises(PartialFailureError) as exc_info:
                pm.add_files(manager, created["id"], files)

        assert len(calls) == 2
        assert exc_info.value.completed == ["a.png"]
        assert "storage unavailable" in exc_info.value.message
        assert _file_count(db, created["id"]) == 1

    def test_failure_during_create_keeps_project(self, tmp_path):
        db, blobs, pm = _make_pm(tmp_path)
        client = _register(db, "client")

        with patch.object(blobs, "upload", side_effect=ServiceError("quota exceeded")):
            with pytest.raises(PartialFailureError) as exc_info:
                pm.create_project(client, "Logo", "d", files=[FileUpload("a.png", b"a")])

        assert exc_info.value.completed == []
        projects = pm.list_projects(client)
        assert len(projects) == 1
        assert _file_count(db, projects[0]["id"]) == 0

    def test_add_files_to_missing_project(self, tmp_path):
        db, _, pm = _make_pm(tmp_path)
        manager = _register(db, "project_manager")

        with pytest.raises(NotFoundError):
            pm.add_files(manager, str(uuid4()), [FileUpload("a.png", b"a")])

    def test_stored_name_keeps_extension(self):
        name = generate_stored_name("Final Logo.SVG")
        assert name.endswith(".SVG")
        assert len(name) == 13 + len(".SVG")
        assert generate_stored_name("Final Logo.SVG") != name

    def test_stored_name_without_extension(self):
        name = generate_stored_name("README")
        assert len(name) == 13
        assert name.isalnum()


# ── Tests: File Delete / Download ────────────────────────────────────────


class TestFileOperations:
    """Tests for single-file delete and download."""

    def test_delete_file_removes_blob_then_record(self, tmp_path):
        db, blobs, pm = _make_pm(tmp_path)
        client = _register(db, "client")
        manager = _register(db, "project_manager")
        created = pm.create_project(client, "Logo", "d", files=[FileUpload("a.png", b"a")])
        record = created["files"][0]

        assert pm.delete_file(manager, created["id"], record["id"]) is True

        assert _file_count(db, created["id"]) == 0
        with pytest.raises(NotFoundError):
            blobs.download(record["file_path"])

    def test_record_kept_when_blob_removal_fails(self, tmp_path):
        db, blobs, pm = _make_pm(tmp_path)
        client = _register(db, "client")
        manager = _register(db, "project_manager")
        created = pm.create_project(client, "Logo", "d", files=[FileUpload("a.png", b"a")])

        with patch.object(blobs, "remove", side_effect=ServiceError("remove failed")):
            with pytest.raises(ServiceError):
                pm.delete_file(manager, created["id"], created["files"][0]["id"])

        assert _file_count(db, created["id"]) == 1

    def test_download_uses_original_name(self, tmp_path):
        db, _, pm = _make_pm(tmp_path)
        client = _register(db, "client")
        created = pm.create_project(client, "Logo", "d", files=[FileUpload("brief.pdf", b"%PDF-1.4")])

        downloaded = pm.download_file(client, created["id"], created["files"][0]["id"])

        assert downloaded.file_name == "brief.pdf"
        assert downloaded.content == b"%PDF-1.4"
        assert downloaded.media_type == "application/pdf"

    def test_download_denied_for_unrelated_designer(self, tmp_path):
        db, _, pm = _make_pm(tmp_path)
        client = _register(db, "client")
        designer = _register(db, "designer")
        created = pm.create_project(client, "Logo", "d", files=[FileUpload("a.png", b"a")])

        with pytest.raises(AuthorizationError):
            pm.download_file(designer, created["id"], created["files"][0]["id"])

    def test_unexpected_blob_error_on_delete_surfaces_message(self, tmp_path):
        db, blobs, pm = _make_pm(tmp_path)
        client = _register(db, "client")
        manager = _register(db, "project_manager")
        created = pm.create_project(client, "Logo", "d", files=[FileUpload("a.png", b"a")])

        with patch.object(blobs, "remove", side_effect=RuntimeError("bucket offline")):
            with pytest.raises(ServiceError, match="bucket offline"):
                pm.delete_file(manager, created["id"], created["files"][0]["id"])

        assert _file_count(db, created["id"]) == 1

    def test_unexpected_blob_error_on_download_surfaces_message(self, tmp_path):
        db, blobs, pm = _make_pm(tmp_path)
        client = _register(db, "client")
        created = pm.create_project(client, "Logo", "d", files=[FileUpload("a.png", b"a")])

        with patch.object(blobs, "download", side_effect=RuntimeError("bucket offline")):
            with pytest.raises(ServiceError, match="bucket offline"):
                pm.download_file(client, created["id"], created["files"][0]["id"])

    def test_store_error_on_add_files_surfaces_message(self, tmp_path):
        db, _, pm = _make_pm(tmp_path)
        client = _register(db, "client")
        manager = _register(db, "project_manager")
        created = pm.create_project(client, "Logo", "d")

        with patch.object(db, "get_session", side_effect=RuntimeError("connection reset")):
            with pytest.raises(ServiceError, match="connection reset"):
                pm.add_files(manager, created["id"], [FileUpload("a.png", b"a")])

        assert _file_count(db, created["id"]) == 0


# ── Tests: Project Delete ────────────────────────────────────────────────


class TestDeleteProject:
    """Tests for delete_project ordering and cleanup."""

    def test_delete_with_files_leaves_nothing(self, tmp_path):
        db, blobs, pm = _make_pm(tmp_path)
        client = _register(db, "client")
        manager = _register(db, "project_manager")
        files = [FileUpload(f"f{i}.txt", b"x") for i in range(4)]
        created = pm.create_project(client, "Logo", "d", files=files)

        assert pm.delete_project(manager, created["id"]) is True

        assert _file_count(db, created["id"]) == 0
        with db.get_session() as session:
            assert session.query(Project).filter(
                Project.project_id == UUID(created["id"])
            ).count() == 0
        assert not (blobs.root / created["id"]).exists()

    def test_only_manager_deletes(self, tmp_path):
        db, _, pm = _make_pm(tmp_path)
        client = _register(db, "client")
        created = pm.create_project(client, "Logo", "d")

        with pytest.raises(AuthorizationError, match="Only project managers can delete projects"):
            pm.delete_project(client, created["id"])
        assert len(pm.list_projects(client)) == 1

    def test_delete_missing_project(self, tmp_path):
        db, _, pm = _make_pm(tmp_path)
        manager = _register(db, "project_manager")

        with pytest.raises(NotFoundError):
            pm.delete_project(manager, str(uuid4()))

    def test_project_row_failure_keeps_deleted_files_and_retry_succeeds(self, tmp_path):
        db, _, pm = _make_pm(tmp_path)
        client = _register(db, "client")
        manager = _register(db, "project_manager")
        files = [FileUpload("a.txt", b"a"), FileUpload("b.txt", b"b")]
        created = pm.create_project(client, "Logo", "d", files=files)

        real_get_session = db.get_session
        calls = []

        # Sessions: project lookup, file record delete, project delete
        def third_session_fails():
            calls.append(1)
            if len(calls) == 3:
                raise RuntimeError("lock timeout")
            return real_get_session()

        with patch.object(db, "get_session", side_effect=third_session_fails):
            with pytest.raises(PartialFailureError) as exc_info:
                pm.delete_project(manager, created["id"])

        assert exc_info.value.completed == [f"files:{created['id']}"]
        assert "lock timeout" in exc_info.value.message
        assert _file_count(db, created["id"]) == 0
        assert len(pm.list_projects(manager)) == 1

        assert pm.delete_project(manager, created["id"]) is True
        assert pm.list_projects(manager) == []
