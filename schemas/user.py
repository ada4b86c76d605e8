"""
Pydantic schemas for User-related requests and responses.
"""
from pydantic import BaseModel, EmailStr
from typing import Optional


class UserResponse(BaseModel):
    """Response schema for GET /users/{user_id}."""
    id: int
    name: str
    email: EmailStr
    instagram_id: Optional[str] = None
    instagram_username: Optional[str] = None

    class Config:
        from_attributes = True


class InstagramLinkUpdate(BaseModel):
    """Request schema for PATCH /users/{user_id}/instagram."""
    instagram_id: str
    instagram_username: Optional[str] = None
