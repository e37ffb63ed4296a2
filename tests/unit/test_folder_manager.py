"""Unit tests for FolderManager"""

import pytest
from sqlalchemy import select

from marknest_service.core.errors import NotFoundError, ValidationError
from marknest_service.infrastructure.database.models import DocumentModel, FolderModel
from marknest_service.models.document import DocumentCreate
from marknest_service.models.folder import FolderCreate, FolderUpdate

USER_ID = "user-1"


async def make_tree(folder_manager):
    """Projects / Web / Assets"""
    top = await folder_manager.create_folder(USER_ID, FolderCreate(name="Projects"))
    mid = await folder_manager.create_folder(USER_ID, FolderCreate(name="Web", parent_id=top.id))
    leaf = await folder_manager.create_folder(USER_ID, FolderCreate(name="Assets", parent_id=mid.id))
    return top, mid, leaf


@pytest.mark.unit
class TestCreateFolder:
    """Test folder creation"""

    async def test_path_and_depth_follow_parent(self, folder_manager):
        top, mid, leaf = await make_tree(folder_manager)

        assert (top.path, top.depth) == ("/projects", 0)
        assert (mid.path, mid.depth) == ("/projects/web", 1)
        assert (leaf.path, leaf.depth) == ("/projects/web/assets", 2)

    async def test_sibling_names_are_unique(self, folder_manager):
        await folder_manager.create_folder(USER_ID, FolderCreate(name="Projects"))

        with pytest.raises(ValidationError) as exc_info:
            await folder_manager.create_folder(USER_ID, FolderCreate(name="Projects"))
        assert "name" in exc_info.value.errors

    async def test_same_name_under_different_parents(self, folder_manager):
        top = await folder_manager.create_folder(USER_ID, FolderCreate(name="Projects"))
        nested = await folder_manager.create_folder(USER_ID, FolderCreate(name="Projects", parent_id=top.id))
        assert nested.parent_id == top.id

    async def test_unknown_parent_is_not_found(self, folder_manager):
        with pytest.raises(NotFoundError):
            await folder_manager.create_folder(USER_ID, FolderCreate(name="Lost", parent_id="missing"))

    async def test_list_folders_by_parent(self, folder_manager):
        top, mid, _ = await make_tree(folder_manager)
        await folder_manager.create_folder(USER_ID, FolderCreate(name="Archive"))

        roots = await folder_manager.list_folders(USER_ID)
        children = await folder_manager.list_folders(USER_ID, top.id)

        assert [f.name for f in roots] == ["Archive", "Projects"]
        assert [f.id for f in children] == [mid.id]


@pytest.mark.unit
class TestMoveFolder:
    """Test re-parenting folders"""

    async def test_move_rewrites_subtree_paths(self, folder_manager, db_client):
        top, mid, leaf = await make_tree(folder_manager)
        other = await folder_manager.create_folder(USER_ID, FolderCreate(name="Other"))

        moved = await folder_manager.move_folder(mid.id, USER_ID, other.id)

        assert moved.path == "/other/web"
        async with db_client.session() as session:
            reloaded = await session.get(FolderModel, leaf.id)
        assert (reloaded.path, reloaded.depth) == ("/other/web/assets", 2)

    async def test_move_to_root(self, folder_manager):
        _, mid, _ = await make_tree(folder_manager)
        moved = await folder_manager.move_folder(mid.id, USER_ID, None)
        assert (moved.parent_id, moved.path, moved.depth) == (None, "/web", 0)

    async def test_cannot_move_into_own_subtree(self, folder_manager):
        top, _, leaf = await make_tree(folder_manager)

        with pytest.raises(ValidationError):
            await folder_manager.move_folder(top.id, USER_ID, leaf.id)
        with pytest.raises(ValidationError):
            await folder_manager.move_folder(top.id, USER_ID, top.id)


@pytest.mark.unit
class TestDeleteFolder:
    """Test trashing folders with each action"""

    async def test_abort_refuses_non_empty_folder(self, folder_manager):
        top, _, _ = await make_tree(folder_manager)

        with pytest.raises(ValidationError) as exc_info:
            await folder_manager.delete_folder(top.id, USER_ID)
        assert exc_info.value.errors["children_count"] == ["1"]

    async def test_empty_folder_is_trashed(self, folder_manager):
        folder = await folder_manager.create_folder(USER_ID, FolderCreate(name="Empty"))
        trashed = await folder_manager.delete_folder(folder.id, USER_ID)
        assert trashed.deleted_at is not None

    async def test_move_to_parent_hands_over_contents(self, folder_manager, document_manager, db_client):
        top, mid, leaf = await make_tree(folder_manager)
        document = await document_manager.create_document(USER_ID, DocumentCreate(title="Notes", folder_id=mid.id))

        await folder_manager.delete_folder(mid.id, USER_ID, "move_to_parent")

        async with db_client.session() as session:
            leaf_row = await session.get(FolderModel, leaf.id)
            doc_row = await session.get(DocumentModel, document.id)
        assert (leaf_row.parent_id, leaf_row.path, leaf_row.depth) == (top.id, "/projects/assets", 1)
        assert doc_row.folder_id == top.id
        assert doc_row.deleted_at is None

    async def test_delete_all_shares_one_timestamp(self, folder_manager, document_manager, db_client):
        top, mid, leaf = await make_tree(folder_manager)
        document = await document_manager.create_document(USER_ID, DocumentCreate(title="Notes", folder_id=leaf.id))

        await folder_manager.delete_folder(top.id, USER_ID, "delete_all")

        async with db_client.session() as session:
            stamps = set((await session.execute(
                select(FolderModel.deleted_at).where(FolderModel.id.in_([top.id, mid.id, leaf.id]))
            )).scalars().all())
            doc_row = await session.get(DocumentModel, document.id)
        assert len(stamps) == 1 and None not in stamps
        assert doc_row.deleted_at in stamps
        assert doc_row.is_trashed is True

    async def test_restore_brings_back_what_was_trashed_together(self, folder_manager, document_manager, db_client):
        top, mid, leaf = await make_tree(folder_manager)
        earlier = await document_manager.create_document(USER_ID, DocumentCreate(title="Earlier", folder_id=mid.id))
        together = await document_manager.create_document(USER_ID, DocumentCreate(title="Together", folder_id=leaf.id))
        await document_manager.delete_document(earlier.id, USER_ID)
        await folder_manager.delete_folder(top.id, USER_ID, "delete_all")

        await folder_manager.restore_folder(top.id, USER_ID)

        async with db_client.session() as session:
            live = (await session.execute(
                select(FolderModel.id).where(FolderModel.deleted_at.is_(None))
            )).scalars().all()
            earlier_row = await session.get(DocumentModel, earlier.id)
            together_row = await session.get(DocumentModel, together.id)
        assert set(live) == {top.id, mid.id, leaf.id}
        assert together_row.deleted_at is None
        assert earlier_row.deleted_at is not None

    async def test_restore_of_live_folder_is_not_found(self, folder_manager):
        folder = await folder_manager.create_folder(USER_ID, FolderCreate(name="Live"))
        with pytest.raises(NotFoundError):
            await folder_manager.restore_folder(folder.id, USER_ID)

    async def test_move_to_parent_refuses_name_clash(self, folder_manager, db_client):
        notes = await folder_manager.create_folder(USER_ID, FolderCreate(name="Notes"))
        mid = await folder_manager.create_folder(USER_ID, FolderCreate(name="Mid"))
        inner = await folder_manager.create_folder(USER_ID, FolderCreate(name="Notes", parent_id=mid.id))

        with pytest.raises(ValidationError) as exc_info:
            await folder_manager.delete_folder(mid.id, USER_ID, "move_to_parent")
        assert "name" in exc_info.value.errors

        async with db_client.session() as session:
            mid_row = await session.get(FolderModel, mid.id)
            inner_row = await session.get(FolderModel, inner.id)
        assert mid_row.deleted_at is None
        assert (inner_row.parent_id, inner_row.path) == (mid.id, "/mid/notes")
        roots = await folder_manager.list_folders(USER_ID)
        assert [f.id for f in roots] == [mid.id, notes.id]

    async def test_move_to_parent_child_may_reuse_the_trashed_folders_name(self, folder_manager):
        outer = await folder_manager.create_folder(USER_ID, FolderCreate(name="Drafts"))
        inner = await folder_manager.create_folder(USER_ID, FolderCreate(name="Drafts", parent_id=outer.id))

        await folder_manager.delete_folder(outer.id, USER_ID, "move_to_parent")

        roots = await folder_manager.list_folders(USER_ID)
        assert [(f.id, f.path) for f in roots] == [(inner.id, "/drafts")]

    async def test_restore_refuses_name_taken_in_the_meantime(self, folder_manager, db_client):
        first = await folder_manager.create_folder(USER_ID, FolderCreate(name="Work"))
        await folder_manager.delete_folder(first.id, USER_ID)
        await folder_manager.create_folder(USER_ID, FolderCreate(name="Work"))

        with pytest.raises(ValidationError):
            await folder_manager.restore_folder(first.id, USER_ID)

        async with db_client.session() as session:
            assert (await session.get(FolderModel, first.id)).deleted_at is not None
        assert [f.name for f in await folder_manager.list_folders(USER_ID)] == ["Work"]

    async def test_restore_to_root_refuses_name_clash_at_root(self, folder_manager, db_client):
        await folder_manager.create_folder(USER_ID, FolderCreate(name="Docs"))
        parent = await folder_manager.create_folder(USER_ID, FolderCreate(name="Parent"))
        child = await folder_manager.create_folder(USER_ID, FolderCreate(name="Docs", parent_id=parent.id))
        await folder_manager.delete_folder(child.id, USER_ID)
        await folder_manager.delete_folder(parent.id, USER_ID)

        with pytest.raises(ValidationError):
            await folder_manager.restore_folder(child.id, USER_ID)

        async with db_client.session() as session:
            child_row = await session.get(FolderModel, child.id)
        assert child_row.deleted_at is not None
        assert child_row.parent_id == parent.id


@pytest.mark.unit
class TestUpdateFolder:
    """Test renaming and editing folders"""

    async def test_rename_rewrites_subtree_paths(self, folder_manager, db_client):
        top, mid, leaf = await make_tree(folder_manager)

        renamed = await folder_manager.update_folder(top.id, USER_ID, FolderUpdate(name="Client Work"))

        async with db_client.session() as session:
            leaf_row = await session.get(FolderModel, leaf.id)
        assert (renamed.name, renamed.slug, renamed.path) == ("Client Work", "client-work", "/client-work")
        assert leaf_row.path == "/client-work/web/assets"
        assert leaf_row.depth == 2

    async def test_rename_refuses_sibling_name(self, folder_manager):
        top, _, _ = await make_tree(folder_manager)
        await folder_manager.create_folder(USER_ID, FolderCreate(name="Archive"))

        with pytest.raises(ValidationError):
            await folder_manager.update_folder(top.id, USER_ID, FolderUpdate(name="Archive"))

    async def test_other_fields_keep_slug(self, folder_manager):
        top, _, _ = await make_tree(folder_manager)

        updated = await folder_manager.update_folder(
            top.id, USER_ID, FolderUpdate(description="Paid work", color="#ff0000")
        )

        assert (updated.name, updated.path) == ("Projects", "/projects")
        assert (updated.description, updated.color) == ("Paid work", "#ff0000")


@pytest.mark.unit
class TestBrowseFolders:
    """Test breadcrumbs, folder contents and search"""

    async def test_breadcrumbs_start_at_drive_root(self, folder_manager):
        _, _, leaf = await make_tree(folder_manager)

        crumbs = await folder_manager.get_breadcrumbs(leaf.id, USER_ID)

        assert [c["name"] for c in crumbs] == ["My Drive", "Projects", "Web", "Assets"]
        assert crumbs[0] == {"id": "root", "name": "My Drive", "path": "/"}
        assert crumbs[-1]["path"] == "/projects/web/assets"

    async def test_contents_lists_live_folders_then_documents(self, folder_manager, document_manager):
        _, mid, leaf = await make_tree(folder_manager)
        await folder_manager.create_folder(USER_ID, FolderCreate(name="Drafts", parent_id=mid.id))
        await document_manager.create_document(USER_ID, DocumentCreate(title="Logo", folder_id=leaf.id))
        page = await document_manager.create_document(USER_ID, DocumentCreate(title="Index", folder_id=mid.id))
        gone = await document_manager.create_document(USER_ID, DocumentCreate(title="Old", folder_id=mid.id))
        await document_manager.delete_document(gone.id, USER_ID)

        contents = await folder_manager.get_contents(USER_ID, mid.id)

        assert [(f.name, count) for f, count in contents.folders] == [("Assets", 1), ("Drafts", 0)]
        assert [d.id for d in contents.documents] == [page.id]
        assert contents.folder.id == mid.id
        assert [c["name"] for c in contents.breadcrumbs] == ["My Drive", "Projects", "Web"]

    async def test_root_contents_with_search_and_order(self, folder_manager, document_manager):
        await make_tree(folder_manager)
        await folder_manager.create_folder(USER_ID, FolderCreate(name="Personal"))
        await document_manager.create_document(USER_ID, DocumentCreate(title="Plan"))
        await document_manager.create_document(USER_ID, DocumentCreate(title="Budget"))

        contents = await folder_manager.get_contents(USER_ID, search="p", order="desc")

        assert [f.name for f, _ in contents.folders] == ["Projects", "Personal"]
        assert [d.title for d in contents.documents] == ["Plan"]
        assert contents.folder is None
        assert contents.breadcrumbs == [{"id": "root", "name": "My Drive", "path": "/"}]

    async def test_search_by_kind(self, folder_manager, document_manager):
        await make_tree(folder_manager)
        await document_manager.create_document(USER_ID, DocumentCreate(title="Notes", content="web launch"))
        await document_manager.create_document(USER_ID, DocumentCreate(title="Other", content="nothing"))

        everything = await folder_manager.search(USER_ID, "web")
        folders_only = await folder_manager.search(USER_ID, "web", "folders")

        assert [f.name for f in everything.folders] == ["Web"]
        assert [d.title for d in everything.documents] == ["Notes"]
        assert everything.total == 2
        assert folders_only.documents == []
