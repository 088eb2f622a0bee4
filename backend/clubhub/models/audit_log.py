"""
AuditLog model - append-only record of organizational changes.
"""
from typing import Optional, Any

from sqlalchemy import String, JSON
from sqlalchemy.orm import Mapped, mapped_column
from clubhub.models.base import BaseModel


class AuditLog(BaseModel):
    """Audit trail entry."""
    __tablename__ = "audit_logs"

    action: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    actor_id: Mapped[str] = mapped_column(String(15), nullable=False, index=True)
    division_id: Mapped[Optional[str]] = mapped_column(String(15), nullable=True, index=True)
    subject_id: Mapped[Optional[str]] = mapped_column(String(15), nullable=True)
    details: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)

    def __repr__(self) -> str:
        return f"<AuditLog {self.action} by {self.actor_id}>"
