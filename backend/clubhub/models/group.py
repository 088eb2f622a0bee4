"""
Group model.
"""
from typing import Optional, TYPE_CHECKING

from sqlalchemy import String, Text, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from clubhub.models.base import BaseModel

if TYPE_CHECKING:
    from clubhub.models.division import Division
    from clubhub.models.group_membership import GroupMembership


class Group(BaseModel):
    """Working group nested inside a division."""
    __tablename__ = "groups"
    __table_args__ = (
        UniqueConstraint("division_id", "name", name="uq_groups_division_name"),
    )

    division_id: Mapped[str] = mapped_column(
        String(15),
        ForeignKey("divisions.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_by_id: Mapped[Optional[str]] = mapped_column(String(15), nullable=True)

    division: Mapped["Division"] = relationship("Division", back_populates="groups")
    memberships: Mapped[list["GroupMembership"]] = relationship(
        "GroupMembership",
        back_populates="group",
        cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Group {self.name}>"
