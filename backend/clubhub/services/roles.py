"""
Role assignment service.

Grants and revokes the privileged roles: President and Division Head.
A head is always promoted from within the division, and the head role is
derived from the division's kind rather than from its display name.
"""
import logging
from typing import Optional

from clubhub.core.errors import ConflictError, NotFoundError
from clubhub.core.permissions import ActorContext, require_president
from clubhub.models.base import utcnow
from clubhub.models.user import User, Role, UserStatus
from clubhub.models.division import Division
from clubhub.schemas.division import DivisionHeadInfo
from clubhub.schemas.results import HeadAssignment, HeadRemoval, PresidentPromotion
from clubhub.services.audit import AuditAction, SideEffects
from clubhub.services.base import BaseService
from clubhub.services.store import UnitOfWork
from clubhub.services import invariants
from clubhub.services.views import user_view, division_view

logger = logging.getLogger(__name__)

PROMOTION_REMOVAL_REASON = "Promoted to President"


async def release_headship(uow: UnitOfWork, user: User) -> Optional[Division]:
    """Clear the division ``user`` heads (if any) and demote them to MEMBER.

    Returns the division that lost its head. Leaves ``division_id`` alone.
    """
    headed = await uow.find_headed_division(user.id)
    if headed is not None:
        await uow.swap_division_head(headed, None)
    if user.role.is_division_head:
        user.role = Role.MEMBER
    if headed is not None:
        logger.info(f"Released headship of division {headed.id} held by {user.id}")
    return headed


class RoleAssignmentService(BaseService):
    """Assigns and removes Division Heads and bootstraps the President."""

    async def assign_division_head(
        self,
        division_id: Optional[str],
        member_id: Optional[str],
        actor: ActorContext,
    ) -> HeadAssignment:
        """
        Make ``member_id`` the head of ``division_id``.

        A different sitting head is demoted to MEMBER but keeps their division.
        """
        async def work(uow: UnitOfWork, effects: SideEffects) -> HeadAssignment:
            president = await require_president(uow, actor)
            invariants.required(division_id, "division_id").raise_for_violation()
            invariants.required(member_id, "member_id").raise_for_violation()

            division = await uow.get_division(division_id)
            if division is None:
                raise NotFoundError("Division", division_id)
            member = await uow.get_user(member_id)
            if member is None:
                raise NotFoundError("User", member_id)

            check, head_role = invariants.head_role_for(division)
            check.raise_for_violation()
            if member.role == Role.PRESIDENT:
                raise ConflictError("The President cannot also head a division", "member_id")
            invariants.head_belongs_to_division(member, division).raise_for_violation()
            invariants.head_is_eligible(member).raise_for_violation()

            elsewhere = await uow.find_headed_division(member.id)
            if elsewhere is not None and elsewhere.id != division.id:
                raise ConflictError(f"{member.name} already heads division {elsewhere.name}", "member_id")

            previous_head = None
            if division.head_id is not None and division.head_id != member.id:
                previous_head = await uow.get_user(division.head_id)
                if previous_head is not None:
                    previous_head.role = Role.MEMBER
            if division.head_id != member.id:
                await uow.swap_division_head(division, member.id)
            member.role = head_role
            await uow.flush()

            logger.info(f"User {member.id} assigned head of division {division.id} by {actor.id}")
            effects.audit(
                AuditAction.ASSIGN_HEAD,
                actor.id,
                division_id=division.id,
                subject_id=member.id,
                details={
                    "role": head_role.value,
                    "previous_head_id": previous_head.id if previous_head else None,
                },
            )
            effects.notify(
                "division_head",
                member.email,
                name=member.name,
                division=division.name,
                assigned_by=president.name,
            )
            return HeadAssignment(
                division=division_view(division),
                member=user_view(member),
                previous_head=user_view(previous_head) if previous_head else None,
            )

        return await self._run(work)

    async def remove_division_head(self, division_id: Optional[str], actor: ActorContext) -> HeadRemoval:
        """Clear the division's head and demote them to MEMBER (division kept)."""
        async def work(uow: UnitOfWork, effects: SideEffects) -> HeadRemoval:
            await require_president(uow, actor)
            invariants.required(division_id, "division_id").raise_for_violation()
            division = await uow.get_division(division_id)
            if division is None:
                raise NotFoundError("Division", division_id)
            if division.head_id is None:
                raise ConflictError(f"Division {division.name} has no head assigned", "head_id")

            previous_head = await uow.get_user(division.head_id)
            await uow.swap_division_head(division, None)
            if previous_head is not None and previous_head.role.is_division_head:
                previous_head.role = Role.MEMBER
            await uow.flush()

            logger.info(f"Head of division {division.id} removed by {actor.id}")
            effects.audit(
                AuditAction.REMOVE_HEAD,
                actor.id,
                division_id=division.id,
                subject_id=previous_head.id if previous_head else None,
            )
            return HeadRemoval(
                division=division_view(division),
                previous_head=user_view(previous_head) if previous_head else None,
            )

        return await self._run(work)

    async def promote_to_president(
        self,
        candidate_id: Optional[str],
        actor: Optional[ActorContext] = None,
    ) -> PresidentPromotion:
        """
        Bootstrap the President.

        Only allowed while no other President exists; promoting the sitting
        President again is a no-op. Not exposed over HTTP.
        """
        async def work(uow: UnitOfWork, effects: SideEffects) -> PresidentPromotion:
            invariants.required(candidate_id, "candidate_id").raise_for_violation()
            candidate = await uow.get_user(candidate_id)
            if candidate is None:
                raise NotFoundError("User", candidate_id)

            current = await uow.find_president()
            invariants.single_president(current.id if current else None, candidate.id).raise_for_violation()
            if current is not None:
                return PresidentPromotion(user=user_view(candidate))

            if candidate.status in (UserStatus.WITHDRAWN, UserStatus.BANNED):
                raise ConflictError(f"{candidate.name} is {candidate.status.value} and cannot become President", "status")
            if await uow.find_headed_division(candidate.id) is not None:
                raise ConflictError(f"{candidate.name} heads a division; remove the headship first", "head_id")

            actor_id = actor.id if actor else candidate.id
            # The President sits above the divisions, so the candidate leaves theirs
            left_division_id = candidate.division_id
            if left_division_id is not None:
                await uow.retire_memberships_in_division(
                    candidate.id, left_division_id, PROMOTION_REMOVAL_REASON, actor_id, utcnow()
                )
                candidate.division_id = None

            candidate.role = Role.PRESIDENT
            candidate.status = UserStatus.ACTIVE
            candidate.email_verified = True
            await uow.flush()

            logger.info(f"User {candidate.id} promoted to President")
            effects.audit(
                AuditAction.PROMOTE_PRESIDENT,
                actor_id,
                division_id=left_division_id,
                subject_id=candidate.id,
                details={"left_division_id": left_division_id},
            )
            effects.notify("president", candidate.email, name=candidate.name)
            return PresidentPromotion(user=user_view(candidate))

        return await self._run(work)

    async def register_president(
        self,
        email: Optional[str],
        name: Optional[str],
        actor: Optional[ActorContext] = None,
    ) -> PresidentPromotion:
        """Create a new, already verified President account while none exists."""
        async def work(uow: UnitOfWork, effects: SideEffects) -> PresidentPromotion:
            invariants.required(email, "email").raise_for_violation()
            invariants.required(name, "name").raise_for_violation()

            current = await uow.find_president()
            invariants.single_president(current.id if current else None, None).raise_for_violation()
            if await uow.get_user_by_email(email) is not None:
                raise ConflictError(f"A user with email {email} already exists", "email")

            president = User(
                email=email.strip().lower(),
                name=name.strip(),
                role=Role.PRESIDENT,
                status=UserStatus.ACTIVE,
                email_verified=True,
            )
            uow.add(president)
            await uow.flush()

            logger.info(f"President registered: {president.id}")
            effects.audit(
                AuditAction.REGISTER_PRESIDENT,
                actor.id if actor else president.id,
                subject_id=president.id,
            )
            effects.notify("president", president.email, name=president.name)
            return PresidentPromotion(user=user_view(president))

        return await self._run(work)

    async def list_division_heads(self) -> list[DivisionHeadInfo]:
        async def work(uow: UnitOfWork) -> list[DivisionHeadInfo]:
            heads = []
            for division in await uow.list_headed_divisions():
                head = await uow.get_user(division.head_id)
                if head is not None:
                    heads.append(DivisionHeadInfo(division=division_view(division), head=user_view(head)))
            return heads

        return await self._read(work)
