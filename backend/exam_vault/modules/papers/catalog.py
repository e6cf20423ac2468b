"""
Catalog query service: maps caller-facing query parameters onto a PaperFilter
"""
import math
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Session

from ...core.errors import AuthenticationRequired, AuthorizationDenied
from ..auth.identity import SessionIdentity
from .repository import PaperFilter, PaperPage, query_papers


@dataclass
class CatalogQuery:
    """Raw query-string values as received"""
    semester: Optional[str] = None
    year: Optional[str] = None
    subject: Optional[str] = None
    specialization: Optional[str] = None
    department: Optional[str] = None
    program: Optional[str] = None
    id: Optional[str] = None
    unapproved: Optional[str] = None
    limit: Optional[str] = None
    offset: Optional[str] = None


def parse_int(value: Optional[str]) -> Optional[int]:
    if value is None or not str(value).strip():
        return None
    try:
        return int(str(value).strip())
    except ValueError:
        try:
            number = float(value)
        except ValueError:
            return None
        return int(number) if number.is_integer() else None


def _is_fractional(value: Optional[str]) -> bool:
    """Numeric but not a whole number, e.g. "3.5"; such a value matches no paper"""
    if value is None or not str(value).strip() or parse_int(value) is not None:
        return False
    try:
        number = float(value)
    except ValueError:
        return False
    return math.isfinite(number)


def build_filter(params: CatalogQuery, moderation: bool = False) -> PaperFilter:
    paper_filter = PaperFilter(approved=not moderation)
    paper_filter.semester = parse_int(params.semester)
    paper_filter.year = parse_int(params.year)
    if _is_fractional(params.semester) or _is_fractional(params.year):
        paper_filter.match_nothing = True
    paper_filter.subject = params.subject or None
    paper_filter.program = params.program or None
    # specialization wins over the legacy department parameter
    specialization = params.specialization if params.specialization is not None else params.department
    paper_filter.specialization = specialization or None
    if params.id:
        paper_id = parse_int(params.id)
        if paper_id is None:
            paper_filter.match_nothing = True
        else:
            paper_filter.id = paper_id
    return paper_filter


def wants_moderation_view(params: CatalogQuery) -> bool:
    return (params.unapproved or "").strip().lower() == "true"


def search_catalog(db: Session, params: CatalogQuery,
                   identity: Optional[SessionIdentity] = None) -> PaperPage:
    """
    Public callers always see approved papers; the moderation queue
    (``unapproved=true``) is restricted to admins.
    """
    moderation = wants_moderation_view(params)
    if moderation:
        if identity is None:
            raise AuthenticationRequired()
        if not identity.is_admin:
            raise AuthorizationDenied()

    paper_filter = build_filter(params, moderation=moderation)
    return query_papers(
        db,
        paper_filter,
        limit=parse_int(params.limit),
        offset=parse_int(params.offset),
    )
