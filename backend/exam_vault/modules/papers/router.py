"""
Papers router: catalog, submission and admin moderation endpoints
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...core.errors import NotFound, UpstreamStorageFailure, ValidationFailed
from ...core.security import get_current_identity, require_admin, require_identity
from ...core.storage import ObjectStore, get_object_store
from ..auth.identity import SessionIdentity
from .catalog import CatalogQuery, search_catalog, parse_int
from .repository import PaperFilter, normalize_pagination, query_papers
from .schemas import (
    ModerationRequest,
    PaperEnvelope,
    PaperListResponse,
    PaperResponse,
    PaperSubmission,
)
from .workflow import ApprovalWorkflow, ModerationResult

logger = logging.getLogger(__name__)

router = APIRouter()


def get_workflow(
    db: Session = Depends(get_db),
    object_store: ObjectStore = Depends(get_object_store)
) -> ApprovalWorkflow:
    return ApprovalWorkflow(db, object_store)


def _moderation_envelope(result: ModerationResult) -> PaperEnvelope:
    return PaperEnvelope(message=result.message, paper=result.paper)


def _unavailable_catalog(limit: int, offset: int) -> JSONResponse:
    """Empty page the client can show with a retry button"""
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "success": False,
            "error": UpstreamStorageFailure.default_message,
            "retryable": True,
            "count": 0,
            "total": 0,
            "limit": limit,
            "offset": offset,
            "hasMore": False,
            "nextOffset": None,
            "prevOffset": None,
            "papers": [],
        },
    )


# ============ CATALOG ENDPOINTS ============
@router.get("", response_model=PaperListResponse)
def list_papers(
    semester: Optional[str] = Query(None),
    year: Optional[str] = Query(None),
    subject: Optional[str] = Query(None, description="Case-insensitive substring"),
    specialization: Optional[str] = Query(None),
    department: Optional[str] = Query(None, description="Deprecated alias of specialization"),
    program: Optional[str] = Query(None, description="Case-insensitive substring"),
    id: Optional[str] = Query(None),
    unapproved: Optional[str] = Query(None, description="true for the admin moderation queue"),
    limit: Optional[str] = Query(None),
    offset: Optional[str] = Query(None),
    identity: Optional[SessionIdentity] = Depends(get_current_identity),
    db: Session = Depends(get_db)
):
    """Approved papers (or, for admins with unapproved=true, pending ones), newest first"""
    params = CatalogQuery(
        semester=semester, year=year, subject=subject, specialization=specialization,
        department=department, program=program, id=id, unapproved=unapproved,
        limit=limit, offset=offset,
    )
    try:
        page = search_catalog(db, params, identity)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error fetching papers: {e}")
        return _unavailable_catalog(*normalize_pagination(parse_int(limit), parse_int(offset)))

    return PaperListResponse(
        count=page.count,
        total=page.total,
        limit=page.limit,
        offset=page.offset,
        has_more=page.has_more,
        next_offset=page.next_offset,
        prev_offset=page.prev_offset,
        papers=[PaperResponse.model_validate(p) for p in page.papers],
    )


@router.get("/{paper_id}", response_model=PaperResponse)
def get_paper(
    paper_id: int,
    identity: Optional[SessionIdentity] = Depends(get_current_identity),
    db: Session = Depends(get_db)
):
    """Single approved paper; admins can also read pending ones"""
    approved = None if identity is not None and identity.is_admin else True
    try:
        page = query_papers(db, PaperFilter(approved=approved, id=paper_id), limit=1)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error fetching paper {paper_id}: {e}")
        raise UpstreamStorageFailure() from e
    if not page.papers:
        raise NotFound()
    return PaperResponse.model_validate(page.papers[0])


# ============ SUBMISSION ENDPOINTS ============
@router.post("", response_model=PaperEnvelope, status_code=status.HTTP_201_CREATED)
def submit_paper(
    submission: PaperSubmission,
    identity: SessionIdentity = Depends(require_identity),
    workflow: ApprovalWorkflow = Depends(get_workflow)
):
    """Record an uploaded PDF as a new paper pending admin approval"""
    paper = workflow.submit(identity, submission.model_dump())
    return PaperEnvelope(message="Paper created successfully", paper=paper)


# ============ ADMIN MODERATION ENDPOINTS ============
@router.patch("", response_model=PaperEnvelope)
def moderate_paper(
    request: ModerationRequest,
    identity: SessionIdentity = Depends(require_admin),
    workflow: ApprovalWorkflow = Depends(get_workflow)
):
    """Approve (adminApproved=true) or reject and purge (adminApproved=false) a paper"""
    invalid = []
    if request.paperId is None or (isinstance(request.paperId, str) and not request.paperId.strip()):
        invalid.append("paperId")
    if not isinstance(request.adminApproved, bool):
        invalid.append("adminApproved")
    if invalid:
        raise ValidationFailed(
            invalid, message="Missing required fields: paperId and adminApproved (boolean)"
        )

    paper_id = parse_int(str(request.paperId))
    if paper_id is None:
        raise NotFound()

    result = workflow.moderate(identity, paper_id, request.adminApproved)
    return _moderation_envelope(result)


@router.post("/{paper_id}/approve", response_model=PaperEnvelope)
def approve_paper(
    paper_id: int,
    identity: SessionIdentity = Depends(require_admin),
    workflow: ApprovalWorkflow = Depends(get_workflow)
):
    """Admin approves a pending paper"""
    return _moderation_envelope(workflow.approve(identity, paper_id))


@router.post("/{paper_id}/reject", response_model=PaperEnvelope)
def reject_paper(
    paper_id: int,
    identity: SessionIdentity = Depends(require_admin),
    workflow: ApprovalWorkflow = Depends(get_workflow)
):
    """Admin rejects a paper; its stored PDF and record are deleted"""
    return _moderation_envelope(workflow.reject(identity, paper_id))
