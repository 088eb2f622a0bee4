"""
Database models.
"""
from clubhub.models.base import BaseModel, TimestampMixin, generate_id, utcnow
from clubhub.models.user import User, Role, UserStatus, Withdrawal, DIVISION_HEAD_ROLES
from clubhub.models.division import Division, DivisionKind, HEAD_ROLE_BY_KIND
from clubhub.models.group import Group
from clubhub.models.group_membership import GroupMembership
from clubhub.models.audit_log import AuditLog

__all__ = [
    "BaseModel",
    "TimestampMixin",
    "generate_id",
    "utcnow",
    "User",
    "Role",
    "UserStatus",
    "Withdrawal",
    "DIVISION_HEAD_ROLES",
    "Division",
    "DivisionKind",
    "HEAD_ROLE_BY_KIND",
    "Group",
    "GroupMembership",
    "AuditLog",
]
