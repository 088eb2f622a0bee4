"""
FastAPI dependencies: caller identity and service wiring.
"""
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from clubhub.core.permissions import ActorContext
from clubhub.core.security import read_claims
from clubhub.services.audit import AuditNotifier
from clubhub.services.store import SqlAlchemyStore
from clubhub.services.roles import RoleAssignmentService
from clubhub.services.membership import MembershipService
from clubhub.services.removal import MemberRemovalService
from clubhub.services.divisions import DivisionAdminService

security = HTTPBearer(auto_error=False)

_store = None
_notifier = None


def get_store() -> SqlAlchemyStore:
    global _store
    if _store is None:
        _store = SqlAlchemyStore()
    return _store


def get_notifier() -> AuditNotifier:
    global _notifier
    if _notifier is None:
        _notifier = AuditNotifier()
    return _notifier


async def get_actor(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> ActorContext:
    """Decode the bearer token into an ActorContext."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    claims = read_claims(credentials.credentials)
    if claims is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    subject, roles = claims
    return ActorContext.from_claims(subject, roles)


def get_role_service(
    store: SqlAlchemyStore = Depends(get_store),
    notifier: AuditNotifier = Depends(get_notifier),
) -> RoleAssignmentService:
    return RoleAssignmentService(store, notifier)


def get_membership_service(
    store: SqlAlchemyStore = Depends(get_store),
    notifier: AuditNotifier = Depends(get_notifier),
) -> MembershipService:
    return MembershipService(store, notifier)


def get_removal_service(
    store: SqlAlchemyStore = Depends(get_store),
    notifier: AuditNotifier = Depends(get_notifier),
) -> MemberRemovalService:
    return MemberRemovalService(store, notifier)


def get_division_service(
    store: SqlAlchemyStore = Depends(get_store),
    notifier: AuditNotifier = Depends(get_notifier),
) -> DivisionAdminService:
    return DivisionAdminService(store, notifier)
