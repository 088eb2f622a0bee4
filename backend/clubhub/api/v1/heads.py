"""
Division head endpoints (President only for changes).
"""
from typing import List
from fastapi import APIRouter, Depends

from clubhub.core.deps import get_actor, get_role_service
from clubhub.core.permissions import ActorContext
from clubhub.schemas.division import AssignHeadRequest, DivisionHeadInfo
from clubhub.schemas.results import HeadAssignment, HeadRemoval
from clubhub.services.roles import RoleAssignmentService

router = APIRouter()


@router.get("", response_model=List[DivisionHeadInfo])
async def list_division_heads(
    actor: ActorContext = Depends(get_actor),
    service: RoleAssignmentService = Depends(get_role_service),
):
    """List every division that currently has a head."""
    return await service.list_division_heads()


@router.put("/{division_id}", response_model=HeadAssignment)
async def assign_division_head(
    division_id: str,
    data: AssignHeadRequest,
    actor: ActorContext = Depends(get_actor),
    service: RoleAssignmentService = Depends(get_role_service),
):
    return await service.assign_division_head(division_id, data.member_id, actor)


@router.delete("/{division_id}", response_model=HeadRemoval)
async def remove_division_head(
    division_id: str,
    actor: ActorContext = Depends(get_actor),
    service: RoleAssignmentService = Depends(get_role_service),
):
    return await service.remove_division_head(division_id, actor)
