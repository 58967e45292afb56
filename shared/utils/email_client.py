import logging
import smtplib
import time
from contextlib import contextmanager
from email.message import EmailMessage
from typing import List, Optional

logger = logging.getLogger(__name__)

# failures worth another attempt; anything else is a configuration problem
TRANSIENT_ERRORS = (
    smtplib.SMTPConnectError,
    smtplib.SMTPServerDisconnected,
    smtplib.SMTPResponseException,
    OSError,
)


class EmailClient:
    """SMTP delivery with a bounded number of attempts. Returns False instead of raising."""

    def __init__(
        self,
        smtp_host: str,
        smtp_port: int,
        username: Optional[str] = None,
        password: Optional[str] = None,
        use_ssl: bool = False,
        max_attempts: int = 3,
        backoff_seconds: float = 2.0,
        timeout: float = 15.0,
    ):
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port
        self.username = username
        self.password = password
        self.use_ssl = use_ssl
        self.max_attempts = max_attempts
        self.backoff_seconds = backoff_seconds
        self.timeout = timeout

    @contextmanager
    def session(self):
        if self.use_ssl:
            server = smtplib.SMTP_SSL(self.smtp_host, self.smtp_port, timeout=self.timeout)
        else:
            server = smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=self.timeout)
        try:
            if not self.use_ssl:
                server.starttls()
            if self.username:
                server.login(self.username, self.password or "")
            yield server
        finally:
            try:
                server.quit()
            except smtplib.SMTPException as e:
                logger.warning(f"SMTP quit failed: {e}")

    @staticmethod
    def compose(sender: str, recipients: List[str], subject: str,
                text_body: str, html_body: Optional[str] = None) -> EmailMessage:
        message = EmailMessage()
        message["From"] = sender
        message["To"] = ", ".join(recipients)
        message["Subject"] = subject
        message.set_content(text_body or "")
        if html_body:
            message.add_alternative(html_body, subtype="html")
        return message

    def send_email(
        self,
        sender: str,
        recipients: List[str],
        subject: str,
        text_body: str,
        html_body: Optional[str] = None,
    ) -> bool:
        message = self.compose(sender, recipients, subject, text_body, html_body)

        for attempt in range(1, self.max_attempts + 1):
            try:
                with self.session() as server:
                    server.send_message(message)
                logger.info(f"Email '{subject}' delivered to {len(recipients)} recipient(s)")
                return True
            except smtplib.SMTPAuthenticationError:
                logger.error(f"SMTP login rejected for {self.username}@{self.smtp_host}")
                return False
            except smtplib.SMTPRecipientsRefused as e:
                logger.error(f"Recipients refused for '{subject}': {list(e.recipients)}")
                return False
            except TRANSIENT_ERRORS as e:
                logger.warning(f"Email '{subject}' attempt {attempt}/{self.max_attempts} failed: {e}")
                if attempt < self.max_attempts:
                    time.sleep(self.backoff_seconds * attempt)

        logger.error(f"Email '{subject}' not delivered after {self.max_attempts} attempts")
        return False
