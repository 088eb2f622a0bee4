"""
Group membership endpoints.
"""
from typing import List
from fastapi import APIRouter, Depends

from clubhub.core.deps import get_actor, get_division_service, get_membership_service
from clubhub.core.permissions import ActorContext
from clubhub.schemas.common import MessageResponse
from clubhub.schemas.group import (
    GroupResponse,
    GroupUpdate,
    GroupMembershipResponse,
    AddGroupMemberRequest,
    RemoveGroupMemberRequest,
    UpdateRemovalReasonRequest,
)
from clubhub.schemas.results import GroupMembershipResult
from clubhub.services.divisions import DivisionAdminService
from clubhub.services.membership import MembershipService

router = APIRouter()


@router.get("/{group_id}", response_model=GroupResponse)
async def get_group(
    group_id: str,
    actor: ActorContext = Depends(get_actor),
    service: DivisionAdminService = Depends(get_division_service),
):
    return await service.get_group(group_id)


@router.patch("/{group_id}", response_model=GroupResponse)
async def update_group(
    group_id: str,
    data: GroupUpdate,
    actor: ActorContext = Depends(get_actor),
    service: DivisionAdminService = Depends(get_division_service),
):
    """Rename or describe a group (President or the division's head)."""
    return await service.update_group(group_id, data.name, data.description, actor)


@router.delete("/{group_id}", response_model=MessageResponse)
async def delete_group(
    group_id: str,
    actor: ActorContext = Depends(get_actor),
    service: DivisionAdminService = Depends(get_division_service),
):
    await service.delete_group(group_id, actor)
    return MessageResponse(message="Group deleted")


@router.get("/{group_id}/members", response_model=List[GroupMembershipResponse])
async def list_group_members(
    group_id: str,
    actor: ActorContext = Depends(get_actor),
    service: MembershipService = Depends(get_membership_service),
):
    """Active members of the group."""
    return await service.list_group_members(group_id)


@router.get("/{group_id}/members/removed", response_model=List[GroupMembershipResponse])
async def list_removed_group_members(
    group_id: str,
    actor: ActorContext = Depends(get_actor),
    service: MembershipService = Depends(get_membership_service),
):
    """Removed members of the group with their removal reasons."""
    return await service.list_removed_group_members(group_id)


@router.post("/{group_id}/members", response_model=GroupMembershipResult)
async def add_member_to_group(
    group_id: str,
    data: AddGroupMemberRequest,
    actor: ActorContext = Depends(get_actor),
    service: MembershipService = Depends(get_membership_service),
):
    return await service.add_member_to_group(group_id, data.member_id, actor)


@router.post("/{group_id}/members/{member_id}/remove", response_model=GroupMembershipResult)
async def remove_member_from_group(
    group_id: str,
    member_id: str,
    data: RemoveGroupMemberRequest,
    actor: ActorContext = Depends(get_actor),
    service: MembershipService = Depends(get_membership_service),
):
    """Soft-remove a member from the group. A reason is required."""
    return await service.remove_member_from_group(group_id, member_id, data.reason, actor)


@router.patch("/memberships/{membership_id}/removal-reason", response_model=GroupMembershipResult)
async def update_group_removal_reason(
    membership_id: str,
    data: UpdateRemovalReasonRequest,
    actor: ActorContext = Depends(get_actor),
    service: MembershipService = Depends(get_membership_service),
):
    return await service.update_group_removal_reason(membership_id, data.reason, actor)
