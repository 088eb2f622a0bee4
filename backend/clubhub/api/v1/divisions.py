"""
Division endpoints: administration and division membership.
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status

from clubhub.core.deps import get_actor, get_division_service, get_membership_service
from clubhub.core.permissions import ActorContext
from clubhub.schemas.common import MessageResponse
from clubhub.schemas.division import (
    DivisionCreate,
    DivisionUpdate,
    DivisionResponse,
    DivisionDetailResponse,
)
from clubhub.schemas.group import GroupCreate, GroupResponse
from clubhub.schemas.user import (
    UserResponse,
    AddDivisionMemberRequest,
    WithdrawMemberRequest,
)
from clubhub.schemas.results import DivisionEnrollment, MemberWithdrawal
from clubhub.services.divisions import DivisionAdminService
from clubhub.services.membership import MembershipService

router = APIRouter()


@router.get("", response_model=List[DivisionResponse])
async def list_divisions(
    actor: ActorContext = Depends(get_actor),
    service: DivisionAdminService = Depends(get_division_service),
):
    """List all divisions."""
    return await service.list_divisions()


@router.post("", response_model=DivisionResponse, status_code=status.HTTP_201_CREATED)
async def create_division(
    data: DivisionCreate,
    actor: ActorContext = Depends(get_actor),
    service: DivisionAdminService = Depends(get_division_service),
):
    """Create a division (President only)."""
    return await service.create_division(data.name, data.description, data.kind, actor)


@router.get("/withdrawn", response_model=List[UserResponse])
async def list_withdrawn_members(
    division_id: Optional[str] = Query(None, description="Only members withdrawn from this division"),
    actor: ActorContext = Depends(get_actor),
    service: MembershipService = Depends(get_membership_service),
):
    """List withdrawn members, most recent first."""
    return await service.list_withdrawn_members(division_id)


@router.get("/{division_id}", response_model=DivisionDetailResponse)
async def get_division(
    division_id: str,
    actor: ActorContext = Depends(get_actor),
    service: DivisionAdminService = Depends(get_division_service),
):
    """Get a division with its head, members and groups."""
    return await service.get_division(division_id)


@router.patch("/{division_id}", response_model=DivisionResponse)
async def update_division(
    division_id: str,
    data: DivisionUpdate,
    actor: ActorContext = Depends(get_actor),
    service: DivisionAdminService = Depends(get_division_service),
):
    """Rename or describe a division (President or its head)."""
    return await service.update_division(division_id, data.name, data.description, actor)


@router.delete("/{division_id}", response_model=MessageResponse)
async def delete_division(
    division_id: str,
    actor: ActorContext = Depends(get_actor),
    service: DivisionAdminService = Depends(get_division_service),
):
    """Delete a division (President only)."""
    await service.delete_division(division_id, actor)
    return MessageResponse(message="Division deleted")


@router.get("/{division_id}/groups", response_model=List[GroupResponse])
async def list_groups(
    division_id: str,
    actor: ActorContext = Depends(get_actor),
    service: DivisionAdminService = Depends(get_division_service),
):
    return await service.list_groups(division_id)


@router.post("/{division_id}/groups", response_model=GroupResponse, status_code=status.HTTP_201_CREATED)
async def create_group(
    division_id: str,
    data: GroupCreate,
    actor: ActorContext = Depends(get_actor),
    service: DivisionAdminService = Depends(get_division_service),
):
    return await service.create_group(division_id, data.name, data.description, actor)


@router.post("/{division_id}/members", response_model=DivisionEnrollment)
async def add_member_to_division(
    division_id: str,
    data: AddDivisionMemberRequest,
    actor: ActorContext = Depends(get_actor),
    service: MembershipService = Depends(get_membership_service),
):
    """Add a member to the division and one of its groups."""
    return await service.add_member_to_division(division_id, data.member_id, data.group_id, actor)


@router.post("/{division_id}/members/{member_id}/withdraw", response_model=MemberWithdrawal)
async def remove_member_from_division(
    division_id: str,
    member_id: str,
    data: WithdrawMemberRequest,
    actor: ActorContext = Depends(get_actor),
    service: MembershipService = Depends(get_membership_service),
):
    """Withdraw a member from the division. A reason is required."""
    return await service.remove_member_from_division(division_id, member_id, data.reason, actor)
