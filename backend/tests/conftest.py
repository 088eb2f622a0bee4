"""
Test configuration and fixtures for ClubHub backend tests.
"""
import os
import pytest
import pytest_asyncio
from dataclasses import dataclass
from typing import AsyncGenerator, Optional
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import NullPool

from clubhub.main import app
from clubhub.db.base import Base
from clubhub.core.deps import get_store, get_notifier
from clubhub.core.permissions import ActorContext
from clubhub.core.security import create_access_token
from clubhub.models.user import User, Role, UserStatus
from clubhub.models.division import Division, DivisionKind
from clubhub.models.group import Group
from clubhub.models.group_membership import GroupMembership
from clubhub.services.audit import AuditNotifier
from clubhub.services.email import EmailService
from clubhub.services.store import SqlAlchemyStore
from clubhub.services.roles import RoleAssignmentService
from clubhub.services.membership import MembershipService
from clubhub.services.removal import MemberRemovalService
from clubhub.services.divisions import DivisionAdminService


# Use a file-based SQLite DB to avoid :memory: multiple-connection issues
# with SQLAlchemy + aiosqlite (each new connection would see an empty DB).
TEST_DATABASE_URL = "sqlite+aiosqlite:///./test.db"


class RecordingEmailService(EmailService):
    """Email service that keeps rendered messages in memory."""

    def __init__(self):
        super().__init__()
        self.email_log_path = None
        self.sent: list[tuple[str, str, str]] = []

    async def send_email(self, to: str, subject: str, body: str) -> bool:
        self.sent.append((to, subject, body))
        return True


@pytest_asyncio.fixture(scope="function")
async def db_engine():
    """Create a test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=NullPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()
    # Clean up test database file
    try:
        os.remove("./test.db")
    except OSError:
        pass


@pytest_asyncio.fixture(scope="function")
async def session_maker(db_engine) -> async_sessionmaker:
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(scope="function")
async def db_session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    """Session for inspecting committed state."""
    async with session_maker() as session:
        yield session


@pytest.fixture
def email() -> RecordingEmailService:
    return RecordingEmailService()


@pytest_asyncio.fixture
async def notifier(session_maker, email) -> AsyncGenerator[AuditNotifier, None]:
    notifier = AuditNotifier(session_maker, email=email, notifications_enabled=True)
    yield notifier
    await notifier.drain()


@pytest.fixture
def store(session_maker) -> SqlAlchemyStore:
    return SqlAlchemyStore(session_maker, max_retries=3)


@pytest.fixture
def roles(store, notifier) -> RoleAssignmentService:
    return RoleAssignmentService(store, notifier)


@pytest.fixture
def membership(store, notifier) -> MembershipService:
    return MembershipService(store, notifier)


@pytest.fixture
def removal(store, notifier) -> MemberRemovalService:
    return MemberRemovalService(store, notifier)


@pytest.fixture
def divisions(store, notifier) -> DivisionAdminService:
    return DivisionAdminService(store, notifier)


@pytest_asyncio.fixture(scope="function")
async def client(store, notifier) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client wired to the test store."""
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_notifier] = lambda: notifier
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


def actor_for(user: User) -> ActorContext:
    """Actor context claiming exactly the user's stored role."""
    return ActorContext(id=user.id, roles=frozenset({user.role}))


def auth_headers_for(user: User, roles=None) -> dict:
    token = create_access_token(subject=user.id, roles=roles if roles is not None else [user.role])
    return {"Authorization": f"Bearer {token}"}


async def reload(session_maker, model, ident):
    """Fetch a fresh copy of a row from a new session."""
    async with session_maker() as session:
        return await session.get(model, ident)


@dataclass
class Club:
    president: User
    dev: Division
    cyber: Division
    outreach: Division
    backend: Group
    frontend: Group
    red_team: Group
    outreach_group: Group
    cyber_head: User
    dev_member: User
    cyber_member: User
    unverified_dev_member: User
    free_member: User
    backend_membership: GroupMembership

    @property
    def president_actor(self) -> ActorContext:
        return actor_for(self.president)

    @property
    def cyber_head_actor(self) -> ActorContext:
        return actor_for(self.cyber_head)


def _user(email: str, name: str, role: Role = Role.MEMBER, verified: bool = True, **kwargs) -> User:
    return User(
        email=email,
        name=name,
        role=role,
        status=kwargs.pop("status", UserStatus.ACTIVE),
        email_verified=verified,
        **kwargs,
    )


@pytest_asyncio.fixture
async def club(session_maker) -> Club:
    """
    Seed a small club:

    - President
    - Dev (no head) with groups Backend and Frontend
    - Cyber headed by cyber_head, with group Red Team
    - Outreach, a division without a kind
    - dev_member in Dev/Backend, cyber_member in Cyber/Red Team,
      an unverified Dev member and a member with no division
    """
    async with session_maker() as session:
        async with session.begin():
            president = _user("president@club.test", "Pat President", Role.PRESIDENT)
            cyber_head = _user("cyberhead@club.test", "Casey Cyber", Role.CYBER_HEAD)
            dev_member = _user("dev@club.test", "Devon Member")
            cyber_member = _user("cyber@club.test", "Cyra Member")
            unverified = _user("unverified@club.test", "Una Verified", verified=False)
            free_member = _user("free@club.test", "Frank Free")
            session.add_all([president, cyber_head, dev_member, cyber_member, unverified, free_member])
            await session.flush()

            dev = Division(name="Dev", description="Software development", kind=DivisionKind.DEV)
            cyber = Division(name="Cyber", description="Security", kind=DivisionKind.CYBER, head_id=cyber_head.id)
            outreach = Division(name="Outreach", kind=None)
            session.add_all([dev, cyber, outreach])
            await session.flush()

            backend = Group(division_id=dev.id, name="Backend")
            frontend = Group(division_id=dev.id, name="Frontend")
            red_team = Group(division_id=cyber.id, name="Red Team")
            outreach_group = Group(division_id=outreach.id, name="Events")
            session.add_all([backend, frontend, red_team, outreach_group])
            await session.flush()

            cyber_head.division_id = cyber.id
            dev_member.division_id = dev.id
            cyber_member.division_id = cyber.id
            unverified.division_id = dev.id
            await session.flush()

            backend_membership = GroupMembership(user_id=dev_member.id, group_id=backend.id)
            session.add_all([
                backend_membership,
                GroupMembership(user_id=cyber_member.id, group_id=red_team.id),
                GroupMembership(user_id=cyber_head.id, group_id=red_team.id),
            ])
            await session.flush()

    return Club(
        president=president,
        dev=dev,
        cyber=cyber,
        outreach=outreach,
        backend=backend,
        frontend=frontend,
        red_team=red_team,
        outreach_group=outreach_group,
        cyber_head=cyber_head,
        dev_member=dev_member,
        cyber_member=cyber_member,
        unverified_dev_member=unverified,
        free_member=free_member,
        backend_membership=backend_membership,
    )


async def make_user(session_maker, email: str, name: str, division: Optional[Division] = None, **kwargs) -> User:
    async with session_maker() as session:
        async with session.begin():
            user = _user(email, name, division_id=division.id if division else None, **kwargs)
            session.add(user)
    return user
