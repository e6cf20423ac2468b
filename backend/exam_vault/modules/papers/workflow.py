"""
Approval workflow for submitted papers.

    submit  -> pending   (admin_approved=False, record + stored object)
    approve -> approved  (admin_approved=True)
    reject  -> purged    (stored object deleted, then record deleted)

Rejection is destructive: there is no stored "rejected" state. The reject
sequence spans the object store and the database without a transaction;
a failed object delete is logged and the record delete still goes ahead.
"""
import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...core.errors import (
    AuthenticationRequired,
    AuthorizationDenied,
    NotFound,
    UpstreamStorageFailure,
)
from ...core.storage import ObjectStore
from ..auth.identity import SessionIdentity
from . import repository
from .schemas import PaperResponse

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ModerationResult:
    paper: PaperResponse
    approved: bool
    object_deleted: bool = False

    @property
    def message(self) -> str:
        return f"Paper {'approved' if self.approved else 'rejected'} successfully"


class ApprovalWorkflow:
    def __init__(self, db: Session, object_store: ObjectStore):
        self.db = db
        self.object_store = object_store

    # ------------------------------------------------------------------
    # authorization gates
    # ------------------------------------------------------------------
    @staticmethod
    def _require_identity(identity: Optional[SessionIdentity]) -> SessionIdentity:
        if identity is None or not identity.email:
            raise AuthenticationRequired()
        return identity

    def _require_admin(self, identity: Optional[SessionIdentity]) -> SessionIdentity:
        identity = self._require_identity(identity)
        if not identity.is_admin:
            raise AuthorizationDenied()
        return identity

    def _rollback(self, action: str, error: Exception):
        self.db.rollback()
        logger.error(f"Database error while trying to {action}: {error}")

    # ------------------------------------------------------------------
    # transitions
    # ------------------------------------------------------------------
    def submit(self, identity: Optional[SessionIdentity], submission: Mapping[str, Any]) -> PaperResponse:
        """Record an already-uploaded object as a new pending paper"""
        identity = self._require_identity(identity)
        try:
            paper = repository.create_paper(self.db, submission, uploaded_by=identity.email)
        except SQLAlchemyError as e:
            self._rollback("create a paper", e)
            raise UpstreamStorageFailure() from e

        logger.info(f"User {identity.email} submitted paper {paper.id} ({paper.subject})")
        return PaperResponse.model_validate(paper)

    def approve(self, identity: Optional[SessionIdentity], paper_id: int) -> ModerationResult:
        """Pending -> approved. Approving twice is a no-op success."""
        identity = self._require_admin(identity)
        try:
            paper = repository.set_approval(self.db, paper_id, True)
        except SQLAlchemyError as e:
            self._rollback(f"approve paper {paper_id}", e)
            raise UpstreamStorageFailure() from e
        if paper is None:
            raise NotFound()

        logger.info(f"Admin {identity.email} approved paper {paper_id}")
        return ModerationResult(paper=PaperResponse.model_validate(paper), approved=True)

    def reject(self, identity: Optional[SessionIdentity], paper_id: int) -> ModerationResult:
        """
        Pending -> purged.

        1. read the paper (not found aborts)
        2. delete its stored object with the service credential; failure is
           logged and does not abort
        3. delete the record
        4. answer with the snapshot taken in step 1
        """
        identity = self._require_admin(identity)

        try:
            paper = repository.get_paper(self.db, paper_id)
        except SQLAlchemyError as e:
            self._rollback(f"read paper {paper_id}", e)
            raise UpstreamStorageFailure() from e
        if paper is None:
            raise NotFound()
        snapshot = PaperResponse.model_validate(paper)
        file_key = paper.file_name

        object_deleted = True
        try:
            self.object_store.delete(file_key)
        except Exception as e:
            # Any object store failure leaves an orphan, never a stuck record
            object_deleted = False
            logger.exception(
                f"Storage inconsistency: could not delete object {file_key!r} of paper {paper_id}, "
                f"deleting the record anyway: {e}"
            )

        try:
            deleted = repository.delete_by_id(self.db, paper_id)
        except SQLAlchemyError as e:
            self._rollback(f"delete paper {paper_id}", e)
            raise UpstreamStorageFailure() from e
        if not deleted:
            # A concurrent reject removed it between steps 1 and 3
            logger.info(f"Paper {paper_id} was already gone when deleting its record")

        logger.info(f"Admin {identity.email} rejected paper {paper_id}")
        return ModerationResult(paper=snapshot, approved=False, object_deleted=object_deleted)

    def moderate(self, identity: Optional[SessionIdentity], paper_id: int, approved: bool) -> ModerationResult:
        if approved:
            return self.approve(identity, paper_id)
        return self.reject(identity, paper_id)
