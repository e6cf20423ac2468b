"""
Paper module schemas
"""
from pydantic import BaseModel, Field, computed_field
from typing import Any, Optional, List
from datetime import datetime


# ============ Paper Schemas ============
class PaperSubmission(BaseModel):
    """
    Submission body. Fields are optional here so that the repository can
    report every missing one at once; uploader and approval are never read
    from the client.
    """
    title: Optional[Any] = None
    subject: Optional[Any] = None
    semester: Optional[Any] = None
    year: Optional[Any] = None
    specialization: Optional[Any] = None
    department: Optional[Any] = None  # legacy name of specialization
    program: Optional[Any] = None
    url: Optional[Any] = None
    fileName: Optional[Any] = None


class PaperResponse(BaseModel):
    id: int
    title: str
    subject: str
    semester: int
    year: int
    specialization: str
    program: str
    url: str
    uploaded_by: str = Field(alias="uploadedBy")
    admin_approved: bool = Field(alias="adminApproved")
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")

    @computed_field
    @property
    def department(self) -> str:
        return self.specialization

    class Config:
        from_attributes = True
        populate_by_name = True


class PaperEnvelope(BaseModel):
    success: bool = True
    message: str
    paper: PaperResponse


class PaperListResponse(BaseModel):
    success: bool = True
    count: int
    total: int
    limit: int
    offset: int
    has_more: bool = Field(alias="hasMore")
    next_offset: Optional[int] = Field(default=None, alias="nextOffset")
    prev_offset: Optional[int] = Field(default=None, alias="prevOffset")
    papers: List[PaperResponse]

    class Config:
        populate_by_name = True


# ============ Moderation Schemas ============
class ModerationRequest(BaseModel):
    paperId: Optional[Any] = None
    adminApproved: Optional[Any] = None
