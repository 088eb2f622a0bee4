"""
Club-wide member endpoints: withdrawal records, deactivation and removal.
"""
from fastapi import APIRouter, Depends

from clubhub.core.deps import get_actor, get_membership_service, get_removal_service
from clubhub.core.permissions import ActorContext
from clubhub.schemas.common import MessageResponse
from clubhub.schemas.user import UpdateWithdrawalReasonRequest, WithdrawAllMembersRequest
from clubhub.schemas.results import MemberWithdrawal, BulkWithdrawal
from clubhub.services.membership import MembershipService
from clubhub.services.removal import MemberRemovalService

router = APIRouter()


@router.post("/withdraw-all", response_model=BulkWithdrawal)
async def withdraw_all_members(
    data: WithdrawAllMembersRequest,
    actor: ActorContext = Depends(get_actor),
    service: MemberRemovalService = Depends(get_removal_service),
):
    """Withdraw every member except the President. Requires the confirmation phrase."""
    return await service.withdraw_all_members(data.confirmation, actor)


@router.patch("/{member_id}/withdrawal-reason", response_model=MemberWithdrawal)
async def update_withdrawal_reason(
    member_id: str,
    data: UpdateWithdrawalReasonRequest,
    actor: ActorContext = Depends(get_actor),
    service: MembershipService = Depends(get_membership_service),
):
    return await service.update_withdrawal_reason(member_id, data.reason, actor)


@router.post("/{member_id}/deactivate", response_model=MemberWithdrawal)
async def deactivate_member(
    member_id: str,
    actor: ActorContext = Depends(get_actor),
    service: MemberRemovalService = Depends(get_removal_service),
):
    return await service.deactivate_member(member_id, actor)


@router.delete("/{member_id}", response_model=MessageResponse)
async def fully_remove_member(
    member_id: str,
    actor: ActorContext = Depends(get_actor),
    service: MemberRemovalService = Depends(get_removal_service),
):
    """Permanently delete a member who no longer belongs to a division."""
    await service.fully_remove_member(member_id, actor)
    return MessageResponse(message="Member removed")
