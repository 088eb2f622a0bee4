"""
Division & group administration.

Creating and deleting divisions is reserved for the President; a division's
head may edit it and manage its groups.
"""
import logging
from typing import Optional

from clubhub.core.errors import ConflictError, NotFoundError
from clubhub.core.permissions import ActorContext, require_president, require_division_scope
from clubhub.models.user import Role
from clubhub.models.division import Division, DivisionKind
from clubhub.models.group import Group
from clubhub.schemas.division import DivisionResponse, DivisionDetailResponse
from clubhub.schemas.group import GroupResponse
from clubhub.services.audit import AuditAction, SideEffects
from clubhub.services.base import BaseService
from clubhub.services.store import UnitOfWork
from clubhub.services import invariants
from clubhub.services.views import division_view, division_detail_view, group_view

logger = logging.getLogger(__name__)


class DivisionAdminService(BaseService):
    """CRUD for divisions and their groups."""

    async def create_division(
        self,
        name: Optional[str],
        description: Optional[str],
        kind: Optional[DivisionKind],
        actor: ActorContext,
    ) -> DivisionResponse:
        """Create a division. ``kind`` falls back to one resolved from the name."""
        async def work(uow: UnitOfWork, effects: SideEffects) -> DivisionResponse:
            await require_president(uow, actor)
            invariants.required(name, "name").raise_for_violation()
            clean_name = name.strip()
            if await uow.get_division_by_name(clean_name) is not None:
                raise ConflictError(f"A division named {clean_name} already exists", "name")

            division = Division(
                name=clean_name,
                description=description,
                kind=kind or DivisionKind.from_name(clean_name),
            )
            uow.add(division)
            await uow.flush()

            if division.kind is None:
                logger.warning(f"Division {division.id} ({clean_name}) has no kind; heads cannot be assigned")
            logger.info(f"Division {division.id} created by {actor.id}")
            effects.audit(
                AuditAction.CREATE_DIVISION,
                actor.id,
                division_id=division.id,
                details={"name": clean_name, "kind": division.kind.value if division.kind else None},
            )
            return division_view(division)

        return await self._run(work)

    async def update_division(
        self,
        division_id: Optional[str],
        name: Optional[str],
        description: Optional[str],
        actor: ActorContext,
    ) -> DivisionResponse:
        async def work(uow: UnitOfWork, effects: SideEffects) -> DivisionResponse:
            await require_division_scope(uow, actor, division_id)
            division = await uow.get_division(division_id)
            if division is None:
                raise NotFoundError("Division", division_id)

            changes = {}
            if name is not None:
                invariants.required(name, "name").raise_for_violation()
                clean_name = name.strip()
                existing = await uow.get_division_by_name(clean_name)
                if existing is not None and existing.id != division.id:
                    raise ConflictError(f"A division named {clean_name} already exists", "name")
                if clean_name != division.name:
                    changes["name"] = clean_name
                    division.name = clean_name
            if description is not None and description != division.description:
                changes["description"] = description
                division.description = description
            await uow.flush()

            if changes:
                effects.audit(AuditAction.UPDATE_DIVISION, actor.id, division_id=division.id, details=changes)
            return division_view(division)

        return await self._run(work)

    async def delete_division(self, division_id: Optional[str], actor: ActorContext) -> None:
        """
        Delete a division.

        The head is demoted to MEMBER, members are left without a division
        (their status is unchanged) and the division's groups are deleted
        along with their membership rows.
        """
        async def work(uow: UnitOfWork, effects: SideEffects) -> None:
            await require_president(uow, actor)
            invariants.required(division_id, "division_id").raise_for_violation()
            division = await uow.get_division(division_id)
            if division is None:
                raise NotFoundError("Division", division_id)

            head_id = division.head_id
            if head_id is not None:
                head = await uow.get_user(head_id)
                await uow.swap_division_head(division, None)
                if head is not None and head.role.is_division_head:
                    head.role = Role.MEMBER

            members = await uow.list_division_members(division.id)
            for member in members:
                member.division_id = None

            groups = await uow.list_groups(division.id)
            for group in groups:
                await uow.delete_group_memberships_for_group(group.id)
                await uow.delete(group)
            await uow.flush()
            await uow.delete(division)
            await uow.flush()

            logger.info(
                f"Division {division_id} deleted by {actor.id}: "
                f"{len(members)} members orphaned, {len(groups)} groups deleted"
            )
            effects.audit(
                AuditAction.DELETE_DIVISION,
                actor.id,
                division_id=division_id,
                details={
                    "name": division.name,
                    "previous_head_id": head_id,
                    "orphaned_member_ids": [m.id for m in members],
                    "deleted_group_ids": [g.id for g in groups],
                },
            )

        await self._run(work)

    async def create_group(
        self,
        division_id: Optional[str],
        name: Optional[str],
        description: Optional[str],
        actor: ActorContext,
    ) -> GroupResponse:
        async def work(uow: UnitOfWork, effects: SideEffects) -> GroupResponse:
            await require_division_scope(uow, actor, division_id)
            invariants.required(name, "name").raise_for_violation()
            division = await uow.get_division(division_id)
            if division is None:
                raise NotFoundError("Division", division_id)
            clean_name = name.strip()
            if await uow.get_group_by_name(division.id, clean_name) is not None:
                raise ConflictError(f"Group {clean_name} already exists in {division.name}", "name")

            group = Group(
                division_id=division.id,
                name=clean_name,
                description=description,
                created_by_id=actor.id,
            )
            uow.add(group)
            await uow.flush()

            logger.info(f"Group {group.id} created in division {division.id} by {actor.id}")
            effects.audit(
                AuditAction.CREATE_GROUP,
                actor.id,
                division_id=division.id,
                details={"group_id": group.id, "name": clean_name},
            )
            return group_view(group)

        return await self._run(work)

    async def update_group(
        self,
        group_id: Optional[str],
        name: Optional[str],
        description: Optional[str],
        actor: ActorContext,
    ) -> GroupResponse:
        """Rename or describe a group. The group stays in its division."""
        async def work(uow: UnitOfWork, effects: SideEffects) -> GroupResponse:
            group = await uow.get_group(group_id)
            await require_division_scope(uow, actor, group.division_id if group else None)
            if group is None:
                raise NotFoundError("Group", group_id)

            changes = {}
            if name is not None:
                invariants.required(name, "name").raise_for_violation()
                clean_name = name.strip()
                existing = await uow.get_group_by_name(group.division_id, clean_name)
                if existing is not None and existing.id != group.id:
                    raise ConflictError(f"Group {clean_name} already exists in this division", "name")
                if clean_name != group.name:
                    changes["name"] = clean_name
                    group.name = clean_name
            if description is not None and description != group.description:
                changes["description"] = description
                group.description = description
            await uow.flush()

            if changes:
                logger.info(f"Group {group.id} updated by {actor.id}")
                effects.audit(
                    AuditAction.UPDATE_GROUP,
                    actor.id,
                    division_id=group.division_id,
                    details={"group_id": group.id, **changes},
                )
            return group_view(group)

        return await self._run(work)

    async def delete_group(self, group_id: Optional[str], actor: ActorContext) -> None:
        async def work(uow: UnitOfWork, effects: SideEffects) -> None:
            group = await uow.get_group(group_id)
            await require_division_scope(uow, actor, group.division_id if group else None)
            if group is None:
                raise NotFoundError("Group", group_id)

            deleted = await uow.delete_group_memberships_for_group(group.id)
            await uow.delete(group)
            await uow.flush()

            logger.info(f"Group {group_id} deleted by {actor.id}")
            effects.audit(
                AuditAction.DELETE_GROUP,
                actor.id,
                division_id=group.division_id,
                details={"group_id": group_id, "name": group.name, "memberships_deleted": deleted},
            )

        await self._run(work)

    async def list_divisions(self) -> list[DivisionResponse]:
        async def work(uow: UnitOfWork) -> list[DivisionResponse]:
            return [division_view(d) for d in await uow.list_divisions()]

        return await self._read(work)

    async def get_division(self, division_id: str) -> DivisionDetailResponse:
        async def work(uow: UnitOfWork) -> DivisionDetailResponse:
            division = await uow.get_division(division_id)
            if division is None:
                raise NotFoundError("Division", division_id)
            head = await uow.get_user(division.head_id)
            members = await uow.list_division_members(division.id)
            groups = await uow.list_groups(division.id)
            return division_detail_view(division, head, members, groups)

        return await self._read(work)

    async def list_groups(self, division_id: str) -> list[GroupResponse]:
        async def work(uow: UnitOfWork) -> list[GroupResponse]:
            division = await uow.get_division(division_id)
            if division is None:
                raise NotFoundError("Division", division_id)
            return [group_view(g) for g in await uow.list_groups(division.id)]

        return await self._read(work)

    async def get_group(self, group_id: str) -> GroupResponse:
        async def work(uow: UnitOfWork) -> GroupResponse:
            group = await uow.get_group(group_id)
            if group is None:
                raise NotFoundError("Group", group_id)
            return group_view(group)

        return await self._read(work)
