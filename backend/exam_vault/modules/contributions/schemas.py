"""
Contributions module schemas
"""
from pydantic import BaseModel, Field
from typing import List, Optional


class Contributor(BaseModel):
    rank: int
    email: str
    count: int
    name: str
    first_name: str = Field(alias="firstName")
    image: Optional[str] = None

    class Config:
        populate_by_name = True


class ContributorsResponse(BaseModel):
    success: bool = True
    contributors: List[Contributor]
