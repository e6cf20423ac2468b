"""
Contributor leaderboard over approved papers
"""
from typing import List

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...core.config import CONTRIBUTORS_LIMIT
from ...models.paper import Paper
from ...models.user import User
from ..auth.identity import derive_display_first_name, email_local_part
from .schemas import Contributor


def rank_contributors(db: Session, limit: int = CONTRIBUTORS_LIMIT) -> List[Contributor]:
    """
    Group approved papers by uploader, most uploads first, and attach the
    uploader's display name and avatar. Uploaders without a user record
    fall back to their e-mail local part and no avatar.
    """
    paper_count = func.count(Paper.id).label("count")
    groups = (
        db.query(Paper.uploaded_by, paper_count)
        .filter(Paper.admin_approved.is_(True))
        .group_by(Paper.uploaded_by)
        .order_by(paper_count.desc(), Paper.uploaded_by)
        .limit(limit)
        .all()
    )

    emails = [email for email, _ in groups if email]
    users = {}
    if emails:
        users = {u.email: u for u in db.query(User).filter(User.email.in_(emails)).all()}

    ranked = []
    for position, (email, count) in enumerate(groups, start=1):
        user = users.get(email)
        name = (user.name if user else None) or email_local_part(email) or "User"
        ranked.append(Contributor(
            rank=position,
            email=email,
            count=count,
            name=name,
            first_name=derive_display_first_name(name, email),
            image=user.image if user else None,
        ))
    return ranked
