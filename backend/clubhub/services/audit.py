"""
Audit trail and member notifications.

Both run after the business transaction commits and neither can fail it:
audit rows are written in their own short transaction, and emails are sent
from background tasks. Failures are logged and dropped.
"""
import asyncio
import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from sqlalchemy.ext.asyncio import async_sessionmaker

from clubhub.core.config import settings
from clubhub.models.audit_log import AuditLog
from clubhub.services.email import EmailService, email_service

logger = logging.getLogger(__name__)


class AuditAction(str, enum.Enum):
    ASSIGN_HEAD = "assign_head"
    REMOVE_HEAD = "remove_head"
    PROMOTE_PRESIDENT = "promote_president"
    REGISTER_PRESIDENT = "register_president"
    ADD_DIVISION_MEMBER = "add_division_member"
    WITHDRAW_MEMBER = "withdraw_member"
    UPDATE_WITHDRAWAL_REASON = "update_withdrawal_reason"
    ADD_GROUP_MEMBER = "add_group_member"
    REMOVE_GROUP_MEMBER = "remove_group_member"
    UPDATE_GROUP_REMOVAL_REASON = "update_group_removal_reason"
    DEACTIVATE_MEMBER = "deactivate_member"
    WITHDRAW_ALL_MEMBERS = "withdraw_all_members"
    FULL_REMOVAL = "full_removal"
    CREATE_DIVISION = "create_division"
    UPDATE_DIVISION = "update_division"
    DELETE_DIVISION = "delete_division"
    CREATE_GROUP = "create_group"
    UPDATE_GROUP = "update_group"
    DELETE_GROUP = "delete_group"


@dataclass(frozen=True)
class AuditEvent:
    action: AuditAction
    actor_id: str
    division_id: Optional[str] = None
    subject_id: Optional[str] = None
    details: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Notification:
    template: str
    recipient: str
    data: dict[str, Any] = field(default_factory=dict)


@dataclass
class SideEffects:
    """Audit events and notifications collected by one transaction attempt."""
    events: list[AuditEvent] = field(default_factory=list)
    notifications: list[Notification] = field(default_factory=list)

    def audit(self, action: AuditAction, actor_id: str, **kwargs) -> None:
        self.events.append(AuditEvent(action=action, actor_id=actor_id, **kwargs))

    def notify(self, template: str, recipient: Optional[str], **data) -> None:
        if recipient:
            self.notifications.append(Notification(template, recipient, data))


class AuditNotifier:
    """Records audit events and sends best-effort notifications."""

    def __init__(
        self,
        session_maker: Optional[async_sessionmaker] = None,
        email: Optional[EmailService] = None,
        notifications_enabled: Optional[bool] = None,
    ):
        if session_maker is None:
            from clubhub.db.base import async_session_maker
            session_maker = async_session_maker
        self._session_maker = session_maker
        self.email = email or email_service
        self.notifications_enabled = (
            settings.NOTIFICATIONS_ENABLED if notifications_enabled is None else notifications_enabled
        )
        self._pending: set[asyncio.Task] = set()

    async def record(self, event: AuditEvent) -> None:
        try:
            async with self._session_maker() as session:
                async with session.begin():
                    session.add(AuditLog(
                        action=event.action.value,
                        actor_id=event.actor_id,
                        division_id=event.division_id,
                        subject_id=event.subject_id,
                        details=event.details or None,
                    ))
        except Exception:
            logger.exception("Failed to record audit event %s by %s", event.action.value, event.actor_id)

    def notify(self, template: str, recipient: str, data: Optional[dict[str, Any]] = None) -> Optional[asyncio.Task]:
        """Schedule an email; returns immediately."""
        if not self.notifications_enabled:
            return None
        task = asyncio.create_task(self._send(template, recipient, data or {}))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _send(self, template: str, recipient: str, data: dict[str, Any]) -> None:
        try:
            sent = await self.email.send_template(template, recipient, data)
            if not sent:
                logger.warning("Notification %s to %s was not delivered", template, recipient)
        except Exception:
            logger.exception("Notification %s to %s failed", template, recipient)

    async def publish(self, effects: SideEffects) -> None:
        for event in effects.events:
            await self.record(event)
        for notification in effects.notifications:
            self.notify(notification.template, notification.recipient, notification.data)

    async def drain(self) -> None:
        """Wait for in-flight notifications (shutdown, tests)."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
