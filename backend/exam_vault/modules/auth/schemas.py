"""
Auth schemas for request/response validation
"""
from pydantic import BaseModel, Field
from typing import Optional


class SignInRequest(BaseModel):
    """Verified identity forwarded by the identity provider gateway"""
    email: str
    name: Optional[str] = None
    image: Optional[str] = None


class SessionUser(BaseModel):
    email: str
    name: Optional[str] = None
    role: str
    image: Optional[str] = None
    first_name: str = Field(alias="firstName")

    class Config:
        from_attributes = True
        populate_by_name = True


class Token(BaseModel):
    access_token: str
    token_type: str
    user: SessionUser
