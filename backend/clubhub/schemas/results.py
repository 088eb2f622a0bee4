"""
Results returned by the role assignment and membership lifecycle services.
"""
from typing import Optional, List
from pydantic import BaseModel

from clubhub.schemas.user import UserResponse
from clubhub.schemas.division import DivisionResponse
from clubhub.schemas.group import GroupResponse, GroupMembershipResponse


class HeadAssignment(BaseModel):
    division: DivisionResponse
    member: UserResponse
    previous_head: Optional[UserResponse] = None


class HeadRemoval(BaseModel):
    division: DivisionResponse
    previous_head: Optional[UserResponse] = None


class PresidentPromotion(BaseModel):
    user: UserResponse


class DivisionEnrollment(BaseModel):
    member: UserResponse
    division: DivisionResponse
    group: GroupResponse


class MemberWithdrawal(BaseModel):
    member: UserResponse


class GroupMembershipResult(BaseModel):
    membership: GroupMembershipResponse


class BulkWithdrawal(BaseModel):
    withdrawn: List[UserResponse]
    released_division_ids: List[str]
