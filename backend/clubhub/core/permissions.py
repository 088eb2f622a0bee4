"""Actor context & role checks for division-scoped operations.

The roles carried by the bearer token are only a claim. Every check below
re-reads the caller from the database inside the current transaction, so a
demoted head or a stale token cannot act on state it no longer controls.
"""
from dataclasses import dataclass, field
from typing import Optional, TYPE_CHECKING

from clubhub.core.errors import ForbiddenError
from clubhub.models.user import User, Role, UserStatus

if TYPE_CHECKING:
    from clubhub.services.store import UnitOfWork


@dataclass(frozen=True)
class ActorContext:
    """Identity of the caller: user id plus the roles it claims."""
    id: str
    roles: frozenset[Role] = field(default_factory=frozenset)

    @classmethod
    def from_claims(cls, subject: str, roles) -> "ActorContext":
        parsed = set()
        for value in roles or ():
            try:
                parsed.add(Role(value))
            except ValueError:
                # Roles this backend does not know about grant nothing here
                continue
        return cls(id=subject, roles=frozenset(parsed))

    @property
    def claims_president(self) -> bool:
        return Role.PRESIDENT in self.roles


async def _load_actor(uow: "UnitOfWork", actor: ActorContext) -> User:
    user = await uow.get_user(actor.id)
    if user is None or user.status != UserStatus.ACTIVE:
        raise ForbiddenError("Caller is not an active member")
    return user


def is_president(actor: ActorContext, user: User) -> bool:
    return actor.claims_president and user.role == Role.PRESIDENT


async def require_president(uow: "UnitOfWork", actor: ActorContext) -> User:
    """Ensure the caller is the sitting President. Raises Forbidden otherwise."""
    if not actor.claims_president:
        raise ForbiddenError("Only the President can perform this action", "president")
    user = await _load_actor(uow, actor)
    if user.role != Role.PRESIDENT:
        raise ForbiddenError("Only the President can perform this action", "president")
    return user


async def require_division_scope(
    uow: "UnitOfWork",
    actor: ActorContext,
    division_id: Optional[str],
) -> User:
    """Ensure the caller is the President or the head of ``division_id``.

    An unknown or missing division never matches a head's scope, so heads get
    Forbidden before any existence check runs. The President passes through
    and sees the NotFound/Validation error from the caller instead.
    """
    user = await _load_actor(uow, actor)
    if is_president(actor, user):
        return user
    if not user.role.is_division_head or user.role not in actor.roles:
        raise ForbiddenError("Only the President or the division head can perform this action", "division_head")
    headed = await uow.find_headed_division(user.id)
    if headed is None or division_id is None or headed.id != division_id:
        raise ForbiddenError("Division heads can only manage their own division", "division_head")
    return user
