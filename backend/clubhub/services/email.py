"""
Email notification service for ClubHub.

Outgoing mail is rendered from a small set of named templates. In development
(and until a provider is wired in) messages are written to a log file and the
module logger instead of being sent.
"""
import logging
from typing import Any, Optional
from datetime import datetime
from pathlib import Path

from clubhub.core.config import settings

logger = logging.getLogger(__name__)


TEMPLATES = {
    "division_head": (
        "Congratulations! You're now the Head of the {division} Division",
        "Hello {name},\n\n"
        "{assigned_by} has appointed you Head of the {division} Division.\n"
        "You can now manage the division's members and groups from the portal:\n\n"
        "{site_url}\n",
    ),
    "division_member": (
        "Welcome to the {division} Division",
        "Hello {name},\n\n"
        "You have been added to the {division} Division and the {group} group.\n\n"
        "{site_url}\n",
    ),
    "group_member": (
        "You've been added to {group}",
        "Hello {name},\n\n"
        "You are now a member of the {group} group in the {division} Division.\n\n"
        "{site_url}\n",
    ),
    "division_withdrawal": (
        "You've been withdrawn from the {division} Division",
        "Hello {name},\n\n"
        "You have been withdrawn from the {division} Division.\n"
        "Reason: {reason}\n\n"
        "If you believe this is a mistake, please contact the division head or the President.\n",
    ),
    "president": (
        "You are now the President",
        "Hello {name},\n\n"
        "Your account has been granted the President role.\n\n"
        "{site_url}\n",
    ),
}


class _Defaults(dict):
    def __missing__(self, key: str) -> str:
        return ""


class EmailService:
    """
    Email service for sending notifications.

    Messages are logged to ``EMAIL_LOG_PATH`` (when set) and to the module
    logger. A real transport can replace ``_deliver`` without touching callers.
    """

    def __init__(self):
        self.from_email = settings.FROM_EMAIL
        self.from_name = settings.FROM_NAME
        self.site_url = settings.SITE_URL
        self.email_log_path = Path(settings.EMAIL_LOG_PATH) if settings.EMAIL_LOG_PATH else None

    def render(self, template: str, data: dict[str, Any]) -> tuple[str, str]:
        """Render ``template`` into (subject, body). Unknown templates raise KeyError."""
        subject, body = TEMPLATES[template]
        values = _Defaults(site_url=self.site_url)
        values.update({k: v for k, v in data.items() if v is not None})
        return subject.format_map(values), body.format_map(values)

    def _deliver(self, to: str, subject: str, body: str) -> None:
        """Log email to file for development/testing."""
        if self.email_log_path is not None:
            timestamp = datetime.now().isoformat()
            log_entry = f"""
================================================================================
EMAIL SENT: {timestamp}
================================================================================
TO: {to}
FROM: {self.from_name} <{self.from_email}>
SUBJECT: {subject}
--------------------------------------------------------------------------------
{body}
--------------------------------------------------------------------------------
"""
            with open(self.email_log_path, 'a') as f:
                f.write(log_entry)

        logger.info(f"Email logged: to={to}, subject={subject}")

    async def send_email(self, to: str, subject: str, body: str) -> bool:
        """
        Send an email.

        Returns:
            True if the email was sent/logged successfully
        """
        try:
            self._deliver(to, subject, body)
            return True
        except OSError as e:
            logger.error(f"Failed to send email to {to}: {e}")
            return False

    async def send_template(self, template: str, to: str, data: Optional[dict[str, Any]] = None) -> bool:
        subject, body = self.render(template, data or {})
        return await self.send_email(to, subject, body)


# Singleton instance
email_service = EmailService()
