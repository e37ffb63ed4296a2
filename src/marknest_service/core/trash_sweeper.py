"""Permanent deletion of trash older than the retention window."""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, List, Optional
from sqlalchemy import or_, select
from sqlalchemy.orm import aliased
from ..config.settings import RetentionConfig
from ..infrastructure.database.client import DatabaseClient
from ..infrastructure.database.models import DocumentModel, FolderModel, utcnow
from ..infrastructure.database.scopes import only_trashed
from .purge import purge_document, purge_folder_tree
from .task_lock import TaskLock

logger = logging.getLogger(__name__)

DOCUMENTS_LOCK = "cleanup-trashed-documents"
FOLDERS_LOCK = "cleanup-trashed-folders"

Confirm = Callable[[int], bool]


@dataclass
class SweepReport:
    """Outcome of one sweep run."""
    kind: str
    attempted: int = 0
    succeeded: int = 0
    failed_ids: List[str] = field(default_factory=list)
    cutoff: Optional[datetime] = None
    eligible: int = 0
    skipped: bool = False
    cancelled: bool = False

    @property
    def failed(self) -> int:
        return len(self.failed_ids)

    def summary(self) -> str:
        if self.skipped:
            return f"Skipped {self.kind} cleanup: another run holds the lock"
        if self.cancelled:
            return f"Cancelled {self.kind} cleanup ({self.eligible} eligible)"
        if not self.eligible:
            return f"No trashed {self.kind} older than {self.cutoff.isoformat()}"
        return f"Permanently deleted {self.succeeded}/{self.attempted} trashed {self.kind}"


class TrashSweeper:
    """Purges soft-deleted documents and folder trees past their retention window.

    Each item is purged in its own transaction, so one failure never undoes
    or stops the rest of the batch. Runs are serialized through a TaskLock;
    a run that finds the lock held is skipped rather than queued.
    """

    def __init__(self, db_client: DatabaseClient, retention: RetentionConfig, lock_expiry_minutes: int = 1440):
        """Initialize trash sweeper.

        Args:
            db_client: Database client
            retention: Default retention windows in days
            lock_expiry_minutes: Age after which a held run lock counts as abandoned
        """
        self.db = db_client
        self.retention = retention
        self.lock_expiry_minutes = lock_expiry_minutes

    async def sweep_documents(self, days: Optional[int] = None, confirm: Optional[Confirm] = None) -> SweepReport:
        """Force-delete documents trashed more than `days` ago.

        Args:
            days: Retention window, defaults to the configured document window
            confirm: Called with the number of eligible documents; returning
                False cancels the run. None proceeds unconditionally.

        Returns:
            SweepReport for the run
        """
        days = self.retention.document_days if days is None else days
        report = SweepReport(kind="documents", cutoff=utcnow() - timedelta(days=days))

        async with TaskLock(self.db, DOCUMENTS_LOCK, self.lock_expiry_minutes).hold() as acquired:
            if not acquired:
                report.skipped = True
                logger.warning(report.summary())
                return report

            async with self.db.session() as session:
                stmt = only_trashed(
                    select(DocumentModel.id).where(DocumentModel.deleted_at < report.cutoff),
                    DocumentModel,
                ).order_by(DocumentModel.deleted_at.asc())
                candidates = list((await session.execute(stmt)).scalars().all())

            await self._run(report, candidates, confirm, self._purge_document)

        logger.info(report.summary())
        return report

    async def sweep_folders(self, days: Optional[int] = None, confirm: Optional[Confirm] = None) -> SweepReport:
        """Force-delete trashed folder trees past the retention window.

        Eligible folders are trashed before the cutoff and either sit at the
        root or hang under a parent that is live (or missing). A trashed
        folder under a trashed parent is left to the parent's cascade.
        """
        days = self.retention.folder_days if days is None else days
        report = SweepReport(kind="folders", cutoff=utcnow() - timedelta(days=days))

        async with TaskLock(self.db, FOLDERS_LOCK, self.lock_expiry_minutes).hold() as acquired:
            if not acquired:
                report.skipped = True
                logger.warning(report.summary())
                return report

            parent = aliased(FolderModel)
            async with self.db.session() as session:
                stmt = (
                    only_trashed(select(FolderModel.id), FolderModel)
                    .outerjoin(parent, parent.id == FolderModel.parent_id)
                    .where(
                        FolderModel.deleted_at < report.cutoff,
                        or_(
                            FolderModel.parent_id.is_(None),
                            parent.id.is_(None),
                            parent.deleted_at.is_(None),
                        ),
                    )
                    .order_by(FolderModel.deleted_at.asc())
                )
                candidates = list((await session.execute(stmt)).scalars().all())

            await self._run(report, candidates, confirm, self._purge_folder)

        logger.info(report.summary())
        return report

    async def _run(self, report: SweepReport, candidates: List[str], confirm: Optional[Confirm], purge) -> None:
        report.eligible = len(candidates)
        if not candidates:
            return
        if confirm is not None and not confirm(len(candidates)):
            report.cancelled = True
            return

        for item_id in candidates:
            report.attempted += 1
            try:
                await purge(item_id)
                report.succeeded += 1
            except Exception as e:
                report.failed_ids.append(item_id)
                logger.error(f"Failed to purge {report.kind[:-1]} {item_id}: {e}")

    async def _purge_document(self, document_id: str) -> None:
        async with self.db.transaction() as session:
            counts = await purge_document(session, document_id)
        logger.info(f"Purged document {document_id} ({counts.versions} versions)")

    async def _purge_folder(self, folder_id: str) -> None:
        async with self.db.transaction() as session:
            if await session.get(FolderModel, folder_id) is None:
                logger.info(f"Folder {folder_id} already removed with an ancestor")
                return
            counts = await purge_folder_tree(session, folder_id)
        logger.info(
            f"Purged folder {folder_id} ({counts.folders} folders, "
            f"{counts.documents} documents, {counts.versions} versions)"
        )
