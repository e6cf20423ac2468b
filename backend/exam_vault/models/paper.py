"""
Paper model: uploaded exam papers awaiting or past moderation
"""
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean

from ..core.database import Base


def _utcnow():
    return datetime.now(timezone.utc)


class Paper(Base):
    """
    Approval workflow:
    - pending: admin_approved is False, record and stored object exist
    - approved: admin_approved is True
    - rejected papers are deleted together with their stored object
    """
    __tablename__ = "papers"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    subject = Column(String(100), nullable=False, index=True)  # subject code, e.g. CS101
    semester = Column(Integer, nullable=False, index=True)  # 1-8
    year = Column(Integer, nullable=False, index=True)  # 2000-2100
    # Stored under the legacy column name
    specialization = Column("department", String(255), nullable=False, index=True)
    program = Column(String(255), nullable=False)
    file_name = Column(String(512), nullable=False)  # object store key
    url = Column(Text, nullable=False)  # public retrieval URL
    uploaded_by = Column(String(255), nullable=False, index=True)  # User.email, not enforced
    admin_approved = Column(Boolean, nullable=False, default=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, index=True)

    def __repr__(self):
        return f"<Paper {self.id} {self.subject} sem{self.semester} {self.year}>"
