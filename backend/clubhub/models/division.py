"""
Division model.

A division is led by at most one head. The head role a division grants is
fixed by its ``kind``, chosen once when the division is created.
"""
from typing import Optional, TYPE_CHECKING
import enum

from sqlalchemy import String, Text, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from clubhub.models.base import BaseModel, VersionedMixin
from clubhub.models.user import Role

if TYPE_CHECKING:
    from clubhub.models.group import Group


class DivisionKind(str, enum.Enum):
    """Closed set of divisions the club runs."""
    CPD = "cpd"
    CBD = "cbd"
    CYBER = "cyber"
    DEV = "dev"
    DATA_SCIENCE = "data_science"

    @property
    def head_role(self) -> Role:
        return HEAD_ROLE_BY_KIND[self]

    @classmethod
    def from_name(cls, name: str) -> Optional["DivisionKind"]:
        """Resolve a kind from a division's display name ("Data Science" -> DATA_SCIENCE)."""
        normalized = "_".join(name.strip().lower().replace("-", " ").split())
        for kind in cls:
            if kind.value == normalized:
                return kind
        return None


HEAD_ROLE_BY_KIND = {
    DivisionKind.CPD: Role.CPD_HEAD,
    DivisionKind.CBD: Role.CBD_HEAD,
    DivisionKind.CYBER: Role.CYBER_HEAD,
    DivisionKind.DEV: Role.DEV_HEAD,
    DivisionKind.DATA_SCIENCE: Role.DATA_SCIENCE_HEAD,
}


class Division(VersionedMixin, BaseModel):
    """Club division."""
    __tablename__ = "divisions"

    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    kind: Mapped[Optional[DivisionKind]] = mapped_column(
        SQLEnum(
            DivisionKind,
            name="divisionkind",
            values_callable=lambda x: [e.value for e in x]
        ),
        nullable=True
    )

    # A user heads at most one division
    head_id: Mapped[Optional[str]] = mapped_column(
        String(15),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        unique=True
    )

    groups: Mapped[list["Group"]] = relationship(
        "Group",
        back_populates="division",
        cascade="all, delete-orphan",
        order_by="Group.created"
    )

    def __repr__(self) -> str:
        return f"<Division {self.name}>"
