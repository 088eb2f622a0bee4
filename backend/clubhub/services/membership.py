"""
Membership lifecycle service.

Moves members into and out of divisions and groups. Leaving a division is a
withdrawal: the user keeps their account and a structured withdrawal record,
and a later add to any division reinstates them. Leaving a group is a soft
removal on the membership row.
"""
import logging
from datetime import datetime
from typing import Optional

from clubhub.core.errors import ConflictError, NotFoundError
from clubhub.core.permissions import ActorContext, require_division_scope, is_president
from clubhub.models.base import utcnow
from clubhub.models.user import User, Role, UserStatus
from clubhub.models.division import Division
from clubhub.models.group_membership import GroupMembership
from clubhub.schemas.group import GroupMembershipResponse
from clubhub.schemas.user import UserResponse
from clubhub.schemas.results import DivisionEnrollment, MemberWithdrawal, GroupMembershipResult
from clubhub.services.audit import AuditAction, SideEffects
from clubhub.services.base import BaseService
from clubhub.services.roles import release_headship
from clubhub.services.store import UnitOfWork
from clubhub.services import invariants
from clubhub.services.views import user_view, division_view, group_view, membership_view

logger = logging.getLogger(__name__)


async def _retire_inert_memberships(
    uow: UnitOfWork,
    member: User,
    division: Division,
    keep_group_id: str,
    actor_id: str,
    at: datetime,
) -> None:
    """Close out rows left over from an earlier stay in ``division``.

    Called whenever a member enters a division. Rows other than the group the
    member is placed in are marked removed so they do not silently become
    active again. A withdrawn member's rows are dated to the withdrawal.
    """
    withdrawal = member.withdrawal
    if withdrawal is not None:
        await uow.retire_memberships_in_division(
            member.id, division.id, withdrawal.reason, withdrawal.withdrawn_by_id,
            withdrawal.withdrawn_at, keep_group_id=keep_group_id,
        )
    else:
        await uow.retire_memberships_in_division(
            member.id, division.id, f"Rejoined {division.name} in another group", actor_id,
            at, keep_group_id=keep_group_id,
        )


class MembershipService(BaseService):
    """Division and group membership operations."""

    async def add_member_to_division(
        self,
        division_id: Optional[str],
        member_id: Optional[str],
        group_id: Optional[str],
        actor: ActorContext,
    ) -> DivisionEnrollment:
        """
        Place a member in a division and one of its groups.

        The group is mandatory. Heads may only add members who are not already
        in another division; the President may reassign. Withdrawn members are
        reinstated.
        """
        async def work(uow: UnitOfWork, effects: SideEffects) -> DivisionEnrollment:
            actor_user = await require_division_scope(uow, actor, division_id)
            invariants.required(division_id, "division_id").raise_for_violation()
            invariants.required(member_id, "member_id").raise_for_violation()
            if not group_id:
                invariants.ValidationResult.missing(
                    "A group is required when adding a member to a division", "group_id"
                ).raise_for_violation()

            division = await uow.get_division(division_id)
            if division is None:
                raise NotFoundError("Division", division_id)
            member = await uow.get_user(member_id)
            if member is None:
                raise NotFoundError("User", member_id)
            group = await uow.get_group(group_id)
            if group is None:
                raise NotFoundError("Group", group_id)

            invariants.group_belongs_to_division(group, division.id).raise_for_violation()
            if member.role == Role.PRESIDENT:
                raise ConflictError("The President cannot be placed in a division", "member_id")
            if member.status == UserStatus.BANNED:
                raise ConflictError(f"{member.name} is banned", "status")

            reassigning = member.division_id is not None and member.division_id != division.id
            if reassigning and not is_president(actor, actor_user):
                raise ConflictError(
                    f"{member.name} already belongs to another division; only the President can reassign",
                    "division_id",
                )

            now = utcnow()
            released = None
            if reassigning:
                released = await release_headship(uow, member)
                await uow.retire_memberships_in_division(
                    member.id, member.division_id, f"Reassigned to division {division.name}", actor.id, now
                )

            reinstated = member.status == UserStatus.WITHDRAWN
            if member.division_id != division.id:
                await _retire_inert_memberships(uow, member, division, group.id, actor.id, now)
            if reinstated:
                member.clear_withdrawal()
            elif member.status == UserStatus.INACTIVE:
                member.status = UserStatus.ACTIVE
            previous_division_id = member.division_id
            member.division_id = division.id

            membership = await uow.get_group_membership(member.id, group.id)
            if membership is None:
                membership = GroupMembership(user_id=member.id, group_id=group.id)
                uow.add(membership)
            elif membership.removed:
                membership.reinstate()
            await uow.flush()

            logger.info(
                f"User {member.id} added to division {division.id} / group {group.id} by {actor.id}"
                + (" (reinstated)" if reinstated else "")
            )
            effects.audit(
                AuditAction.ADD_DIVISION_MEMBER,
                actor.id,
                division_id=division.id,
                subject_id=member.id,
                details={
                    "group_id": group.id,
                    "previous_division_id": previous_division_id,
                    "reinstated": reinstated,
                    "released_headship_of": released.id if released else None,
                },
            )
            effects.notify("division_member", member.email, name=member.name, division=division.name, group=group.name)
            return DivisionEnrollment(
                member=user_view(member),
                division=division_view(division),
                group=group_view(group),
            )

        return await self._run(work)

    async def remove_member_from_division(
        self,
        division_id: Optional[str],
        member_id: Optional[str],
        reason: Optional[str],
        actor: ActorContext,
    ) -> MemberWithdrawal:
        """Withdraw a member from their division. Group rows are left untouched."""
        async def work(uow: UnitOfWork, effects: SideEffects) -> MemberWithdrawal:
            await require_division_scope(uow, actor, division_id)
            invariants.required(division_id, "division_id").raise_for_violation()
            invariants.required(member_id, "member_id").raise_for_violation()
            invariants.reason_provided(reason).raise_for_violation()

            division = await uow.get_division(division_id)
            if division is None:
                raise NotFoundError("Division", division_id)
            member = await uow.get_user(member_id)
            if member is None:
                raise NotFoundError("User", member_id)
            if member.role == Role.PRESIDENT:
                raise ConflictError("The President cannot be withdrawn from a division", "member_id")
            if member.division_id != division.id:
                raise ConflictError(f"{member.name} is not a member of division {division.name}", "division_id")

            await release_headship(uow, member)
            member.mark_withdrawn(reason.strip(), actor.id, utcnow())
            await uow.flush()

            logger.info(f"User {member.id} withdrawn from division {division.id} by {actor.id}")
            effects.audit(
                AuditAction.WITHDRAW_MEMBER,
                actor.id,
                division_id=division.id,
                subject_id=member.id,
                details={"reason": member.withdrawal_reason},
            )
            effects.notify(
                "division_withdrawal",
                member.email,
                name=member.name,
                division=division.name,
                reason=member.withdrawal_reason,
            )
            return MemberWithdrawal(member=user_view(member))

        return await self._run(work)

    async def add_member_to_group(
        self,
        group_id: Optional[str],
        member_id: Optional[str],
        actor: ActorContext,
    ) -> GroupMembershipResult:
        async def work(uow: UnitOfWork, effects: SideEffects) -> GroupMembershipResult:
            group = await uow.get_group(group_id)
            await require_division_scope(uow, actor, group.division_id if group else None)
            invariants.required(group_id, "group_id").raise_for_violation()
            invariants.required(member_id, "member_id").raise_for_violation()
            if group is None:
                raise NotFoundError("Group", group_id)
            member = await uow.get_user(member_id)
            if member is None:
                raise NotFoundError("User", member_id)

            invariants.member_eligible_for_group(member, group).raise_for_violation()
            membership = await uow.get_group_membership(member.id, group.id)
            if invariants.membership_is_active(membership, member, group):
                raise ConflictError(f"{member.name} is already a member of {group.name}", "group_id")

            if membership is None:
                membership = GroupMembership(user_id=member.id, group_id=group.id)
                uow.add(membership)
            else:
                membership.reinstate()
            await uow.flush()

            division = await uow.get_division(group.division_id)
            logger.info(f"User {member.id} added to group {group.id} by {actor.id}")
            effects.audit(
                AuditAction.ADD_GROUP_MEMBER,
                actor.id,
                division_id=group.division_id,
                subject_id=member.id,
                details={"group_id": group.id},
            )
            effects.notify(
                "group_member",
                member.email,
                name=member.name,
                group=group.name,
                division=division.name if division else None,
            )
            return GroupMembershipResult(membership=membership_view(membership, member))

        return await self._run(work)

    async def remove_member_from_group(
        self,
        group_id: Optional[str],
        member_id: Optional[str],
        reason: Optional[str],
        actor: ActorContext,
    ) -> GroupMembershipResult:
        """Soft-remove a member from a group; the row keeps the reason."""
        async def work(uow: UnitOfWork, effects: SideEffects) -> GroupMembershipResult:
            group = await uow.get_group(group_id)
            await require_division_scope(uow, actor, group.division_id if group else None)
            invariants.required(group_id, "group_id").raise_for_violation()
            invariants.required(member_id, "member_id").raise_for_violation()
            invariants.reason_provided(reason).raise_for_violation()
            if group is None:
                raise NotFoundError("Group", group_id)
            member = await uow.get_user(member_id)
            if member is None:
                raise NotFoundError("User", member_id)

            membership = await uow.get_group_membership(member.id, group.id)
            if membership is None or membership.removed:
                raise NotFoundError("GroupMembership", f"{member.id}/{group.id}")
            membership.remove(reason.strip(), actor.id, utcnow())
            await uow.flush()

            logger.info(f"User {member.id} removed from group {group.id} by {actor.id}")
            effects.audit(
                AuditAction.REMOVE_GROUP_MEMBER,
                actor.id,
                division_id=group.division_id,
                subject_id=member.id,
                details={"group_id": group.id, "reason": membership.removal_reason},
            )
            return GroupMembershipResult(membership=membership_view(membership, member))

        return await self._run(work)

    async def update_group_removal_reason(
        self,
        membership_id: Optional[str],
        reason: Optional[str],
        actor: ActorContext,
    ) -> GroupMembershipResult:
        async def work(uow: UnitOfWork, effects: SideEffects) -> GroupMembershipResult:
            membership = await uow.get_group_membership_by_id(membership_id)
            group = await uow.get_group(membership.group_id) if membership else None
            await require_division_scope(uow, actor, group.division_id if group else None)
            invariants.reason_provided(reason).raise_for_violation()
            if membership is None:
                raise NotFoundError("GroupMembership", membership_id)
            if not membership.removed:
                raise ConflictError("Only removed memberships carry a removal reason", "removed")

            previous = membership.removal_reason
            membership.removal_reason = reason.strip()
            await uow.flush()

            effects.audit(
                AuditAction.UPDATE_GROUP_REMOVAL_REASON,
                actor.id,
                division_id=group.division_id if group else None,
                subject_id=membership.user_id,
                details={"membership_id": membership.id, "previous_reason": previous},
            )
            member = await uow.get_user(membership.user_id)
            return GroupMembershipResult(membership=membership_view(membership, member))

        return await self._run(work)

    async def update_withdrawal_reason(
        self,
        member_id: Optional[str],
        reason: Optional[str],
        actor: ActorContext,
    ) -> MemberWithdrawal:
        """Correct the reason on a withdrawal record (President or head of the former division)."""
        async def work(uow: UnitOfWork, effects: SideEffects) -> MemberWithdrawal:
            member = await uow.get_user(member_id)
            await require_division_scope(uow, actor, member.previous_division_id if member else None)
            invariants.reason_provided(reason).raise_for_violation()
            if member is None:
                raise NotFoundError("User", member_id)
            if member.status != UserStatus.WITHDRAWN:
                raise ConflictError(f"{member.name} is not withdrawn", "status")

            previous = member.withdrawal_reason
            member.withdrawal_reason = reason.strip()
            await uow.flush()

            effects.audit(
                AuditAction.UPDATE_WITHDRAWAL_REASON,
                actor.id,
                division_id=member.previous_division_id,
                subject_id=member.id,
                details={"previous_reason": previous},
            )
            return MemberWithdrawal(member=user_view(member))

        return await self._run(work)

    async def list_group_members(self, group_id: str) -> list[GroupMembershipResponse]:
        """Active members of a group. Rows of withdrawn or moved members are skipped."""
        async def work(uow: UnitOfWork) -> list[GroupMembershipResponse]:
            group = await uow.get_group(group_id)
            if group is None:
                raise NotFoundError("Group", group_id)
            return [
                membership_view(membership, user)
                for membership, user in await uow.list_group_memberships_with_users(group.id, removed=False)
                if invariants.membership_is_active(membership, user, group)
            ]

        return await self._read(work)

    async def list_removed_group_members(self, group_id: str) -> list[GroupMembershipResponse]:
        """Removed memberships of a group, most recent removal first."""
        async def work(uow: UnitOfWork) -> list[GroupMembershipResponse]:
            group = await uow.get_group(group_id)
            if group is None:
                raise NotFoundError("Group", group_id)
            return [
                membership_view(membership, user)
                for membership, user in await uow.list_group_memberships_with_users(group.id, removed=True)
            ]

        return await self._read(work)

    async def list_withdrawn_members(self, division_id: Optional[str] = None) -> list[UserResponse]:
        async def work(uow: UnitOfWork) -> list[UserResponse]:
            return [user_view(u) for u in await uow.list_withdrawn_members(division_id)]

        return await self._read(work)
