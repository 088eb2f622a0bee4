"""
Group and group membership schemas.
"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from clubhub.schemas.common import BaseResponse


class GroupCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None


class GroupUpdate(BaseModel):
    """Schema for renaming or describing a group."""
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None


class GroupResponse(BaseResponse):
    division_id: str
    name: str
    description: Optional[str] = None
    created_by_id: Optional[str] = None


class MemberInfo(BaseModel):
    """Embedded user info for membership responses."""
    id: str
    email: str
    name: str

    class Config:
        from_attributes = True


class GroupMembershipResponse(BaseResponse):
    user_id: str
    group_id: str
    removed: bool
    removal_reason: Optional[str] = None
    removed_at: Optional[datetime] = None
    removed_by_id: Optional[str] = None
    # Filled in by the service, never lazy-loaded
    member: Optional[MemberInfo] = None


class AddGroupMemberRequest(BaseModel):
    member_id: str


class RemoveGroupMemberRequest(BaseModel):
    reason: Optional[str] = None


class UpdateRemovalReasonRequest(BaseModel):
    reason: Optional[str] = None
