"""
User / member schemas.
"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from clubhub.models.user import Role, UserStatus
from clubhub.schemas.common import BaseResponse


class WithdrawalInfo(BaseModel):
    """Withdrawal record of a WITHDRAWN member."""
    reason: str
    withdrawn_at: datetime
    withdrawn_by_id: str
    previous_division_id: Optional[str] = None

    class Config:
        from_attributes = True


class UserResponse(BaseResponse):
    """Member projection."""
    email: str
    name: str
    role: Role
    status: UserStatus
    division_id: Optional[str] = None
    email_verified: bool
    withdrawal: Optional[WithdrawalInfo] = None


class AddDivisionMemberRequest(BaseModel):
    """Body for adding a member to a division. ``group_id`` is required by the service."""
    member_id: str
    group_id: Optional[str] = Field(None, description="Group inside the division to place the member in")


class WithdrawMemberRequest(BaseModel):
    reason: Optional[str] = Field(None, description="Why the member is withdrawn")


class UpdateWithdrawalReasonRequest(BaseModel):
    reason: Optional[str] = None


class WithdrawAllMembersRequest(BaseModel):
    confirmation: str = Field(..., description="Must equal the configured confirmation phrase")
