"""
Club-wide removal operations (President only).

Full removal is the only path that hard-deletes a user, and it is only
allowed once the member no longer belongs to a division, so it can never
race with division-level changes.
"""
import logging
from typing import Optional

from clubhub.core.config import settings
from clubhub.core.errors import ConflictError, NotFoundError, ValidationError
from clubhub.core.permissions import ActorContext, require_president
from clubhub.models.base import utcnow
from clubhub.models.user import Role, UserStatus
from clubhub.schemas.results import BulkWithdrawal, MemberWithdrawal
from clubhub.services.audit import AuditAction, SideEffects
from clubhub.services.base import BaseService
from clubhub.services.roles import release_headship
from clubhub.services.store import UnitOfWork
from clubhub.services import invariants
from clubhub.services.views import user_view

logger = logging.getLogger(__name__)

BULK_WITHDRAWAL_REASON = "Bulk withdrawal by the President"
DEACTIVATION_REASON = "Member deactivated"


class MemberRemovalService(BaseService):
    """Deactivation, bulk withdrawal and permanent removal of members."""

    async def fully_remove_member(self, member_id: Optional[str], actor: ActorContext) -> None:
        """Permanently delete a member who has already left their division."""
        async def work(uow: UnitOfWork, effects: SideEffects) -> None:
            await require_president(uow, actor)
            invariants.required(member_id, "member_id").raise_for_violation()
            member = await uow.get_user(member_id)
            if member is None:
                raise NotFoundError("User", member_id)
            if member.role == Role.PRESIDENT:
                raise ConflictError("The President cannot be removed", "member_id")
            if member.division_id is not None:
                raise ConflictError(
                    f"{member.name} still belongs to a division; withdraw them first", "division_id"
                )

            removed_rows = await uow.delete_group_memberships_for_user(member.id)
            email = member.email
            await uow.delete(member)
            await uow.flush()

            logger.info(f"User {member_id} fully removed by {actor.id} ({removed_rows} group memberships)")
            effects.audit(
                AuditAction.FULL_REMOVAL,
                actor.id,
                subject_id=member_id,
                details={"email": email, "group_memberships_deleted": removed_rows},
            )

        await self._run(work)

    async def deactivate_member(self, member_id: Optional[str], actor: ActorContext) -> MemberWithdrawal:
        """Mark a member INACTIVE and detach them from their division."""
        async def work(uow: UnitOfWork, effects: SideEffects) -> MemberWithdrawal:
            await require_president(uow, actor)
            invariants.required(member_id, "member_id").raise_for_violation()
            member = await uow.get_user(member_id)
            if member is None:
                raise NotFoundError("User", member_id)
            if member.role == Role.PRESIDENT:
                raise ConflictError("The President cannot be deactivated", "member_id")

            released = await release_headship(uow, member)
            previous_division_id = member.division_id or member.previous_division_id
            retired = []
            if previous_division_id is not None:
                retired = await uow.retire_memberships_in_division(
                    member.id, previous_division_id, DEACTIVATION_REASON, actor.id, utcnow()
                )
            if member.status == UserStatus.WITHDRAWN:
                member.clear_withdrawal()
            member.division_id = None
            member.status = UserStatus.INACTIVE
            await uow.flush()

            logger.info(f"User {member.id} deactivated by {actor.id}")
            effects.audit(
                AuditAction.DEACTIVATE_MEMBER,
                actor.id,
                division_id=previous_division_id,
                subject_id=member.id,
                details={
                    "released_headship_of": released.id if released else None,
                    "retired_membership_ids": [m.id for m in retired],
                },
            )
            return MemberWithdrawal(member=user_view(member))

        return await self._run(work)

    async def withdraw_all_members(self, confirmation: Optional[str], actor: ActorContext) -> BulkWithdrawal:
        """
        Withdraw every member except the President in one transaction.

        Already withdrawn and banned members are left as they are. Every
        headship is released.
        """
        async def work(uow: UnitOfWork, effects: SideEffects) -> BulkWithdrawal:
            await require_president(uow, actor)
            if confirmation != settings.BULK_WITHDRAW_CONFIRMATION:
                raise ValidationError(
                    f"Confirmation phrase must be {settings.BULK_WITHDRAW_CONFIRMATION}",
                    field="confirmation",
                )

            now = utcnow()
            withdrawn = []
            released_division_ids = []
            for user in await uow.list_users_except_president():
                if user.status in (UserStatus.WITHDRAWN, UserStatus.BANNED):
                    continue
                released = await release_headship(uow, user)
                if released is not None:
                    released_division_ids.append(released.id)
                user.mark_withdrawn(BULK_WITHDRAWAL_REASON, actor.id, now)
                withdrawn.append(user)
            await uow.flush()

            logger.warning(f"Bulk withdrawal by {actor.id}: {len(withdrawn)} members withdrawn")
            effects.audit(
                AuditAction.WITHDRAW_ALL_MEMBERS,
                actor.id,
                details={"withdrawn": len(withdrawn), "released_division_ids": released_division_ids},
            )
            return BulkWithdrawal(
                withdrawn=[user_view(u) for u in withdrawn],
                released_division_ids=released_division_ids,
            )

        return await self._run(work)
