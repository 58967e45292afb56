import logging
import re
from typing import List, Optional

from ..utils.email_client import EmailClient
from ..core.config import settings

logger = logging.getLogger(__name__)

EMAIL_TEMPLATES = {
    "contract_sent": (
        "<p>Hi {driver_name},</p>"
        "<p>Your rental contract for vehicle <b>{vehicle_reg}</b> is ready for signature.</p>"
        "<p>Fee: {fee} ({frequency}). Please sign it from your driver portal.</p>"
    ),
    "contract_activated": (
        "<p>Hi {driver_name},</p>"
        "<p>Your rental contract for vehicle <b>{vehicle_reg}</b> is now active.</p>"
        "<p>Your first payment of {fee} is due on {first_due_date}.</p>"
    ),
    "contract_cancelled": (
        "<p>Hi {driver_name},</p>"
        "<p>Your rental contract for vehicle <b>{vehicle_reg}</b> has been cancelled.</p>"
        "<p>{reason}</p>"
    ),
    "payment_received": (
        "<p>Hi {driver_name},</p>"
        "<p>We received your payment of {amount} due on {due_date}. Thank you.</p>"
    ),
    "payment_overdue": (
        "<p>Payment of {amount} due on {due_date} is overdue for "
        "{driver_name} (vehicle {vehicle_reg}).</p>"
    ),
}


class EmailHelper:
    """Sends templated emails via EmailClient. Disabled when SMTP is not configured."""

    def __init__(self):
        self.mailer = None
        if settings.SMTP_HOST:
            self.mailer = EmailClient(
                smtp_host=settings.SMTP_HOST,
                smtp_port=settings.SMTP_PORT,
                username=settings.SMTP_USERNAME,
                password=settings.SMTP_PASSWORD,
                use_ssl=settings.SMTP_USE_SSL,
            )

    @property
    def enabled(self) -> bool:
        return self.mailer is not None

    def send_email(
        self,
        template_code: str,
        recipients: List[Optional[str]],
        subject: str,
        context: dict,
    ) -> bool:
        """Render a template and send it. Returns False instead of raising."""
        recipients = [r for r in recipients if r]
        if not recipients:
            logger.info(f"Email '{template_code}' skipped: no recipients")
            return False
        if not self.enabled:
            logger.info(f"Email '{template_code}' skipped: SMTP not configured")
            return False

        try:
            html_body = EMAIL_TEMPLATES[template_code].format(**context)
        except KeyError as e:
            logger.error(f"Email template '{template_code}' could not be rendered: missing {e}")
            return False

        return self.mailer.send_email(
            sender=settings.EMAIL_SENDER,
            recipients=recipients,
            subject=subject,
            text_body=self._strip_html_tags(html_body),
            html_body=html_body,
        )

    @staticmethod
    def _strip_html_tags(html: str) -> str:
        """Basic HTML to plain text converter."""
        return re.sub("<.*?>", "", html or "")
