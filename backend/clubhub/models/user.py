"""
User model.

A user is a club member. Role, division and status only change through the
role assignment and membership lifecycle services.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, TYPE_CHECKING
import enum

from sqlalchemy import (
    String, Text, Boolean, DateTime, ForeignKey, CheckConstraint, Index,
    Enum as SQLEnum, text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from clubhub.models.base import BaseModel, VersionedMixin

if TYPE_CHECKING:
    from clubhub.models.group_membership import GroupMembership


class Role(str, enum.Enum):
    """Club-wide role of a user."""
    PRESIDENT = "president"
    CPD_HEAD = "cpd_head"
    CBD_HEAD = "cbd_head"
    CYBER_HEAD = "cyber_head"
    DEV_HEAD = "dev_head"
    DATA_SCIENCE_HEAD = "data_science_head"
    MEMBER = "member"

    @property
    def is_division_head(self) -> bool:
        return self in DIVISION_HEAD_ROLES


DIVISION_HEAD_ROLES = frozenset({
    Role.CPD_HEAD,
    Role.CBD_HEAD,
    Role.CYBER_HEAD,
    Role.DEV_HEAD,
    Role.DATA_SCIENCE_HEAD,
})


class UserStatus(str, enum.Enum):
    """Standing of a user in the club."""
    ACTIVE = "active"
    INACTIVE = "inactive"
    BANNED = "banned"
    WITHDRAWN = "withdrawn"


@dataclass(frozen=True)
class Withdrawal:
    """Why, when and by whom a member was withdrawn from their division."""
    reason: str
    withdrawn_at: datetime
    withdrawn_by_id: str
    previous_division_id: Optional[str]


class User(VersionedMixin, BaseModel):
    """Club member."""
    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint(
            "status != 'withdrawn' OR division_id IS NULL",
            name="withdrawn_has_no_division",
        ),
        CheckConstraint(
            "(status = 'withdrawn' AND withdrawal_reason IS NOT NULL) "
            "OR (status != 'withdrawn' AND withdrawal_reason IS NULL)",
            name="withdrawal_metadata",
        ),
        # At most one president, enforced by the database as well
        Index(
            "uq_users_single_president",
            "role",
            unique=True,
            sqlite_where=text("role = 'president'"),
            postgresql_where=text("role = 'president'"),
        ),
    )

    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)

    role: Mapped[Role] = mapped_column(
        SQLEnum(
            Role,
            name="role",
            values_callable=lambda x: [e.value for e in x]
        ),
        default=Role.MEMBER,
        nullable=False,
        index=True
    )
    status: Mapped[UserStatus] = mapped_column(
        SQLEnum(
            UserStatus,
            name="userstatus",
            values_callable=lambda x: [e.value for e in x]
        ),
        default=UserStatus.ACTIVE,
        nullable=False,
        index=True
    )
    email_verified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    division_id: Mapped[Optional[str]] = mapped_column(
        String(15),
        # Added after both tables exist; divisions.head_id points back at users
        ForeignKey("divisions.id", ondelete="SET NULL", use_alter=True),
        nullable=True,
        index=True
    )

    # Withdrawal record, populated only while status == WITHDRAWN.
    # previous_division_id is a plain column: the division may be deleted later.
    withdrawal_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    withdrawn_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    withdrawn_by_id: Mapped[Optional[str]] = mapped_column(String(15), nullable=True)
    previous_division_id: Mapped[Optional[str]] = mapped_column(String(15), nullable=True, index=True)

    group_memberships: Mapped[list["GroupMembership"]] = relationship(
        "GroupMembership",
        back_populates="user",
        cascade="all, delete-orphan"
    )

    @property
    def withdrawal(self) -> Optional[Withdrawal]:
        if self.status != UserStatus.WITHDRAWN:
            return None
        return Withdrawal(
            reason=self.withdrawal_reason,
            withdrawn_at=self.withdrawn_at,
            withdrawn_by_id=self.withdrawn_by_id,
            previous_division_id=self.previous_division_id,
        )

    def mark_withdrawn(self, reason: str, actor_id: str, at: datetime) -> None:
        self.previous_division_id = self.division_id
        self.withdrawal_reason = reason
        self.withdrawn_at = at
        self.withdrawn_by_id = actor_id
        self.division_id = None
        self.status = UserStatus.WITHDRAWN

    def clear_withdrawal(self) -> None:
        self.withdrawal_reason = None
        self.withdrawn_at = None
        self.withdrawn_by_id = None
        self.previous_division_id = None
        self.status = UserStatus.ACTIVE

    def __repr__(self) -> str:
        return f"<User {self.email} ({self.role.value})>"
