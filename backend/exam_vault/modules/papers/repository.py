"""
Paper repository: validated create, filtered pagination, approval update, delete
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy.orm import Session

from ...core.config import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from ...core.errors import ValidationFailed
from ...models.paper import Paper

logger = logging.getLogger(__name__)

# Wire names, in the order they are reported
REQUIRED_FIELDS = ["title", "subject", "semester", "year", "specialization", "program", "url", "fileName"]

SEMESTER_RANGE = (1, 8)
YEAR_RANGE = (2000, 2100)


@dataclass
class PaperFilter:
    approved: Optional[bool] = True
    semester: Optional[int] = None
    year: Optional[int] = None
    subject: Optional[str] = None  # case-insensitive substring
    specialization: Optional[str] = None  # exact
    program: Optional[str] = None  # case-insensitive substring
    id: Optional[int] = None
    match_nothing: bool = False  # set when a criterion can never match, e.g. a malformed id


@dataclass
class PaperPage:
    papers: List[Paper] = field(default_factory=list)
    total: int = 0
    limit: int = DEFAULT_PAGE_SIZE
    offset: int = 0

    @property
    def count(self) -> int:
        return len(self.papers)

    @property
    def has_more(self) -> bool:
        return self.offset + self.count < self.total

    @property
    def next_offset(self) -> Optional[int]:
        return self.offset + self.count if self.has_more else None

    @property
    def prev_offset(self) -> Optional[int]:
        return max(0, self.offset - self.limit) if self.offset > 0 else None


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _as_int(value: Any) -> Optional[int]:
    """Integer value of an int, integral float or numeric string; None otherwise"""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            try:
                number = float(text)
            except ValueError:
                return None
            return int(number) if number.is_integer() else None
    return None


def validate_submission(data: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Check a submission and return the cleaned column values.

    Missing fields are reported first; only when nothing is missing are
    malformed values (wrong type, out-of-range semester/year) reported.
    """
    values = dict(data)
    if values.get("specialization") is None:
        values["specialization"] = values.get("department")

    missing = [name for name in REQUIRED_FIELDS if _is_blank(values.get(name))]
    if missing:
        raise ValidationFailed(missing, message="Missing required fields: " + ", ".join(missing))

    errors: Dict[str, str] = {}
    for name in ("title", "subject", "specialization", "program", "url", "fileName"):
        if not isinstance(values[name], str):
            errors[name] = "must be a non-empty string"

    semester = _as_int(values["semester"])
    if semester is None or not SEMESTER_RANGE[0] <= semester <= SEMESTER_RANGE[1]:
        errors["semester"] = "must be a number between 1 and 8"

    year = _as_int(values["year"])
    if year is None or not YEAR_RANGE[0] <= year <= YEAR_RANGE[1]:
        errors["year"] = "must be a valid number between 2000 and 2100"

    if errors:
        invalid = [name for name in REQUIRED_FIELDS if name in errors]
        message = "; ".join(f"{name} {errors[name]}" for name in invalid)
        raise ValidationFailed(invalid, errors, message="Invalid fields: " + message)

    return {
        "title": values["title"].strip(),
        "subject": values["subject"].strip(),
        "semester": semester,
        "year": year,
        "specialization": values["specialization"].strip(),
        "program": values["program"].strip(),
        "url": values["url"].strip(),
        "file_name": values["fileName"].strip(),
    }


def create_paper(db: Session, data: Mapping[str, Any], uploaded_by: str) -> Paper:
    """Validate and persist a new, unapproved paper owned by ``uploaded_by``"""
    fields = validate_submission(data)
    if _is_blank(uploaded_by):
        raise ValidationFailed(["uploadedBy"], message="Missing required fields: uploadedBy")

    paper = Paper(**fields, uploaded_by=uploaded_by, admin_approved=False)
    db.add(paper)
    db.commit()
    db.refresh(paper)
    return paper


def normalize_pagination(limit: Optional[int], offset: Optional[int]):
    if limit is None or limit <= 0:
        limit = DEFAULT_PAGE_SIZE
    limit = min(limit, MAX_PAGE_SIZE)
    if offset is None or offset < 0:
        offset = 0
    return limit, offset


def _like_pattern(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def query_papers(db: Session, paper_filter: PaperFilter,
                 limit: Optional[int] = None, offset: Optional[int] = None) -> PaperPage:
    """Filtered page of papers, newest first, with the pre-pagination total"""
    limit, offset = normalize_pagination(limit, offset)
    if paper_filter.match_nothing:
        return PaperPage(papers=[], total=0, limit=limit, offset=offset)

    query = db.query(Paper)
    if paper_filter.approved is not None:
        query = query.filter(Paper.admin_approved == paper_filter.approved)
    if paper_filter.semester is not None:
        query = query.filter(Paper.semester == paper_filter.semester)
    if paper_filter.year is not None:
        query = query.filter(Paper.year == paper_filter.year)
    if paper_filter.subject:
        query = query.filter(Paper.subject.ilike(_like_pattern(paper_filter.subject), escape="\\"))
    if paper_filter.specialization:
        query = query.filter(Paper.specialization == paper_filter.specialization)
    if paper_filter.program:
        query = query.filter(Paper.program.ilike(_like_pattern(paper_filter.program), escape="\\"))
    if paper_filter.id is not None:
        query = query.filter(Paper.id == paper_filter.id)

    total = query.count()
    papers = (
        query.order_by(Paper.created_at.desc(), Paper.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    return PaperPage(papers=papers, total=total, limit=limit, offset=offset)


def get_paper(db: Session, paper_id: int) -> Optional[Paper]:
    return db.query(Paper).filter(Paper.id == paper_id).first()


def set_approval(db: Session, paper_id: int, approved: bool) -> Optional[Paper]:
    """Single conditional UPDATE; None when the paper does not exist"""
    updated = (
        db.query(Paper)
        .filter(Paper.id == paper_id)
        .update({Paper.admin_approved: approved}, synchronize_session=False)
    )
    db.commit()
    if not updated:
        return None
    return get_paper(db, paper_id)


def delete_by_id(db: Session, paper_id: int) -> bool:
    """False when nothing matched; persistence errors propagate"""
    deleted = db.query(Paper).filter(Paper.id == paper_id).delete(synchronize_session=False)
    db.commit()
    return bool(deleted)
