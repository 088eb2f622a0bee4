"""
Persistence store.

Every service operation runs as one read-validate-write function handed to
``SqlAlchemyStore.with_transaction``. The function receives a ``UnitOfWork``
bound to a fresh session inside ``session.begin()``; whatever it raises rolls
the whole operation back.

User and Division rows carry an optimistic version counter. When a concurrent
writer wins, the flush raises ``StaleDataError`` (or a unique index trips an
``IntegrityError``), and the store re-runs the function from scratch against
fresh rows, up to ``TRANSACTION_MAX_RETRIES`` times.
"""
import logging
from datetime import datetime
from typing import Awaitable, Callable, Optional, Sequence, TypeVar

from sqlalchemy import select, update, delete, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from clubhub.core.config import settings
from clubhub.core.errors import ConflictError, TransientConflictError
from clubhub.models.user import User, Role, UserStatus
from clubhub.models.division import Division
from clubhub.models.group import Group
from clubhub.models.group_membership import GroupMembership

logger = logging.getLogger(__name__)

T = TypeVar("T")


class UnitOfWork:
    """Entity access for a single transaction."""

    def __init__(self, session: AsyncSession):
        self.session = session

    def add(self, instance) -> None:
        self.session.add(instance)

    async def delete(self, instance) -> None:
        await self.session.delete(instance)

    async def flush(self) -> None:
        await self.session.flush()

    # Users

    async def get_user(self, user_id: Optional[str]) -> Optional[User]:
        if not user_id:
            return None
        return await self.session.get(User, user_id)

    async def get_user_by_email(self, email: str) -> Optional[User]:
        result = await self.session.execute(
            select(User).where(func.lower(User.email) == email.strip().lower())
        )
        return result.scalar_one_or_none()

    async def find_president(self) -> Optional[User]:
        result = await self.session.execute(select(User).where(User.role == Role.PRESIDENT))
        return result.scalar_one_or_none()

    async def list_division_members(self, division_id: str) -> Sequence[User]:
        result = await self.session.execute(
            select(User).where(User.division_id == division_id).order_by(User.name)
        )
        return result.scalars().all()

    async def list_withdrawn_members(self, division_id: Optional[str] = None) -> Sequence[User]:
        query = select(User).where(User.status == UserStatus.WITHDRAWN)
        if division_id is not None:
            query = query.where(User.previous_division_id == division_id)
        result = await self.session.execute(query.order_by(User.withdrawn_at.desc()))
        return result.scalars().all()

    async def list_users_except_president(self) -> Sequence[User]:
        result = await self.session.execute(
            select(User).where(User.role != Role.PRESIDENT).order_by(User.created)
        )
        return result.scalars().all()

    # Divisions

    async def get_division(self, division_id: Optional[str]) -> Optional[Division]:
        if not division_id:
            return None
        return await self.session.get(Division, division_id)

    async def get_division_by_name(self, name: str) -> Optional[Division]:
        result = await self.session.execute(
            select(Division).where(func.lower(Division.name) == name.strip().lower())
        )
        return result.scalar_one_or_none()

    async def list_divisions(self) -> Sequence[Division]:
        result = await self.session.execute(select(Division).order_by(Division.name))
        return result.scalars().all()

    async def list_headed_divisions(self) -> Sequence[Division]:
        result = await self.session.execute(
            select(Division).where(Division.head_id.is_not(None)).order_by(Division.name)
        )
        return result.scalars().all()

    async def find_headed_division(self, user_id: str) -> Optional[Division]:
        result = await self.session.execute(select(Division).where(Division.head_id == user_id))
        return result.scalar_one_or_none()

    async def swap_division_head(self, division: Division, new_head_id: Optional[str]) -> None:
        """Compare-and-swap ``division.head_id`` against the value read earlier.

        Raises TransientConflictError when another transaction changed the
        head (or any other column of the division) since it was loaded.
        """
        # Pending ORM changes must reach the database before the raw update
        await self.session.flush()
        expected_head_id = division.head_id
        expected_version = division.version
        head_matches = (
            Division.head_id.is_(None) if expected_head_id is None
            else Division.head_id == expected_head_id
        )
        result = await self.session.execute(
            update(Division)
            .where(Division.id == division.id, Division.version == expected_version, head_matches)
            .values(head_id=new_head_id, version=Division.version + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise TransientConflictError(f"Head of division {division.id} changed concurrently")
        await self.session.refresh(division)

    # Groups

    async def get_group(self, group_id: Optional[str]) -> Optional[Group]:
        if not group_id:
            return None
        return await self.session.get(Group, group_id)

    async def get_group_by_name(self, division_id: str, name: str) -> Optional[Group]:
        result = await self.session.execute(
            select(Group).where(
                Group.division_id == division_id,
                func.lower(Group.name) == name.strip().lower(),
            )
        )
        return result.scalar_one_or_none()

    async def list_groups(self, division_id: str) -> Sequence[Group]:
        result = await self.session.execute(
            select(Group).where(Group.division_id == division_id).order_by(Group.name)
        )
        return result.scalars().all()

    async def get_group_membership(self, user_id: str, group_id: str) -> Optional[GroupMembership]:
        result = await self.session.execute(
            select(GroupMembership).where(
                GroupMembership.user_id == user_id,
                GroupMembership.group_id == group_id,
            )
        )
        return result.scalar_one_or_none()

    async def get_group_membership_by_id(self, membership_id: Optional[str]) -> Optional[GroupMembership]:
        if not membership_id:
            return None
        return await self.session.get(GroupMembership, membership_id)

    async def list_group_memberships_with_users(
        self, group_id: str, removed: bool
    ) -> Sequence[tuple[GroupMembership, User]]:
        query = (
            select(GroupMembership, User)
            .join(User, User.id == GroupMembership.user_id)
            .where(GroupMembership.group_id == group_id, GroupMembership.removed == removed)
        )
        if removed:
            query = query.order_by(GroupMembership.removed_at.desc())
        else:
            query = query.order_by(User.name)
        result = await self.session.execute(query)
        return [tuple(row) for row in result.all()]

    async def list_user_memberships_in_division(self, user_id: str, division_id: str) -> Sequence[GroupMembership]:
        result = await self.session.execute(
            select(GroupMembership)
            .join(Group, Group.id == GroupMembership.group_id)
            .where(GroupMembership.user_id == user_id, Group.division_id == division_id)
        )
        return result.scalars().all()

    async def retire_memberships_in_division(
        self,
        user_id: str,
        division_id: str,
        reason: str,
        actor_id: str,
        at: datetime,
        keep_group_id: Optional[str] = None,
    ) -> list[GroupMembership]:
        """Soft-remove the user's open rows in a division, except ``keep_group_id``."""
        retired = []
        for membership in await self.list_user_memberships_in_division(user_id, division_id):
            if membership.removed or membership.group_id == keep_group_id:
                continue
            membership.remove(reason, actor_id, at)
            retired.append(membership)
        return retired

    async def delete_group_memberships_for_user(self, user_id: str) -> int:
        result = await self.session.execute(
            delete(GroupMembership)
            .where(GroupMembership.user_id == user_id)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount

    async def delete_group_memberships_for_group(self, group_id: str) -> int:
        result = await self.session.execute(
            delete(GroupMembership)
            .where(GroupMembership.group_id == group_id)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount


class SqlAlchemyStore:
    """Runs units of work with optimistic-concurrency retries."""

    def __init__(
        self,
        session_maker: Optional[async_sessionmaker] = None,
        max_retries: Optional[int] = None,
    ):
        if session_maker is None:
            from clubhub.db.base import async_session_maker
            session_maker = async_session_maker
        self._session_maker = session_maker
        self.max_retries = settings.TRANSACTION_MAX_RETRIES if max_retries is None else max_retries

    async def with_transaction(self, fn: Callable[[UnitOfWork], Awaitable[T]]) -> T:
        last_error: Optional[Exception] = None
        for attempt in range(self.max_retries + 1):
            try:
                async with self._session_maker() as session:
                    async with session.begin():
                        return await fn(UnitOfWork(session))
            except (StaleDataError, TransientConflictError, IntegrityError) as exc:
                last_error = exc
                logger.warning(
                    "Transaction attempt %s/%s lost a concurrent update: %s",
                    attempt + 1, self.max_retries + 1, exc,
                )
        raise ConflictError(
            "The change conflicted with concurrent updates; please retry"
        ) from last_error
