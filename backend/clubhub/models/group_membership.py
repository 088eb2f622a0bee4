"""
GroupMembership model - links a member to a group.

Removal is soft: the row stays with ``removed`` set and the removal metadata
filled in. Adding the member again reinstates the same row.
"""
from datetime import datetime
from typing import Optional, TYPE_CHECKING

from sqlalchemy import String, Text, Boolean, DateTime, ForeignKey, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from clubhub.models.base import BaseModel

if TYPE_CHECKING:
    from clubhub.models.user import User
    from clubhub.models.group import Group


class GroupMembership(BaseModel):
    """Membership of a user in a group."""
    __tablename__ = "group_memberships"
    __table_args__ = (
        UniqueConstraint("user_id", "group_id", name="uq_group_memberships_user_group"),
        CheckConstraint(
            "(removed AND removal_reason IS NOT NULL) OR (NOT removed AND removal_reason IS NULL)",
            name="removal_metadata",
        ),
    )

    user_id: Mapped[str] = mapped_column(
        String(15),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    group_id: Mapped[str] = mapped_column(
        String(15),
        ForeignKey("groups.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    removed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    removal_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    removed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    removed_by_id: Mapped[Optional[str]] = mapped_column(String(15), nullable=True)

    user: Mapped["User"] = relationship("User", back_populates="group_memberships")
    group: Mapped["Group"] = relationship("Group", back_populates="memberships")

    def remove(self, reason: str, actor_id: str, at: datetime) -> None:
        self.removed = True
        self.removal_reason = reason
        self.removed_at = at
        self.removed_by_id = actor_id

    def reinstate(self) -> None:
        self.removed = False
        self.removal_reason = None
        self.removed_at = None
        self.removed_by_id = None

    def __repr__(self) -> str:
        return f"<GroupMembership user={self.user_id} group={self.group_id} removed={self.removed}>"
