"""
Division schemas.
"""
from typing import Optional, List
from pydantic import BaseModel, Field

from clubhub.models.division import DivisionKind
from clubhub.schemas.common import BaseResponse
from clubhub.schemas.user import UserResponse
from clubhub.schemas.group import GroupResponse


class DivisionCreate(BaseModel):
    """Schema for creating a division."""
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    kind: Optional[DivisionKind] = Field(None, description="Resolved from the name when omitted")


class DivisionUpdate(BaseModel):
    """Schema for updating a division. The kind cannot change."""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None


class DivisionResponse(BaseResponse):
    name: str
    description: Optional[str] = None
    kind: Optional[DivisionKind] = None
    head_id: Optional[str] = None


class DivisionDetailResponse(DivisionResponse):
    """Division with its head, members and groups expanded."""
    head: Optional[UserResponse] = None
    members: List[UserResponse] = []
    groups: List[GroupResponse] = []


class AssignHeadRequest(BaseModel):
    member_id: str


class DivisionHeadInfo(BaseModel):
    """One row of the division heads listing."""
    division: DivisionResponse
    head: UserResponse
