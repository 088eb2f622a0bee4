"""
Pydantic schemas for API requests/responses and service results.
"""
from clubhub.schemas.common import MessageResponse, HealthResponse, ErrorResponse, BaseResponse
from clubhub.schemas.user import (
    UserResponse,
    WithdrawalInfo,
    AddDivisionMemberRequest,
    WithdrawMemberRequest,
    UpdateWithdrawalReasonRequest,
    WithdrawAllMembersRequest,
)
from clubhub.schemas.group import (
    GroupCreate,
    GroupUpdate,
    GroupResponse,
    GroupMembershipResponse,
    AddGroupMemberRequest,
    RemoveGroupMemberRequest,
    UpdateRemovalReasonRequest,
)
from clubhub.schemas.division import (
    DivisionCreate,
    DivisionUpdate,
    DivisionResponse,
    DivisionDetailResponse,
    AssignHeadRequest,
    DivisionHeadInfo,
)
from clubhub.schemas.results import (
    HeadAssignment,
    HeadRemoval,
    PresidentPromotion,
    DivisionEnrollment,
    MemberWithdrawal,
    GroupMembershipResult,
    BulkWithdrawal,
)

__all__ = [
    "MessageResponse",
    "HealthResponse",
    "ErrorResponse",
    "BaseResponse",
    "UserResponse",
    "WithdrawalInfo",
    "AddDivisionMemberRequest",
    "WithdrawMemberRequest",
    "UpdateWithdrawalReasonRequest",
    "WithdrawAllMembersRequest",
    "GroupCreate",
    "GroupUpdate",
    "GroupResponse",
    "GroupMembershipResponse",
    "AddGroupMemberRequest",
    "RemoveGroupMemberRequest",
    "UpdateRemovalReasonRequest",
    "DivisionCreate",
    "DivisionUpdate",
    "DivisionResponse",
    "DivisionDetailResponse",
    "AssignHeadRequest",
    "DivisionHeadInfo",
    "HeadAssignment",
    "HeadRemoval",
    "PresidentPromotion",
    "DivisionEnrollment",
    "MemberWithdrawal",
    "GroupMembershipResult",
    "BulkWithdrawal",
]
