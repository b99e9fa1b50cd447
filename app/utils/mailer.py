import smtplib
import time
from contextlib import contextmanager
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import List, Optional
from app.core.config import settings
from app.core.logging_config import logger


class Mailer:
    """SMTP mailer with retries, configured from settings."""

    def __init__(
        self,
        smtp_host: Optional[str] = None,
        smtp_port: Optional[int] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        use_ssl: Optional[bool] = None,
        sender: Optional[str] = None,
        max_retries: int = 3,
        retry_delay: int = 3
    ):
        self.smtp_host = smtp_host or settings.SMTP_HOST
        self.smtp_port = smtp_port or settings.SMTP_PORT
        self.username = username or settings.SMTP_USERNAME
        self.password = password or settings.SMTP_PASSWORD
        self.use_ssl = settings.SMTP_USE_SSL if use_ssl is None else use_ssl
        self.sender = sender or settings.EMAIL_SENDER
        self.max_retries = max_retries
        self.retry_delay = retry_delay

    @property
    def is_configured(self) -> bool:
        return bool(self.smtp_host)

    @contextmanager
    def _connection(self):
        """Context-managed SMTP connection."""
        server = None
        try:
            if self.use_ssl:
                server = smtplib.SMTP_SSL(self.smtp_host, self.smtp_port, timeout=30)
            else:
                server = smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=30)
                server.starttls()
            if self.username:
                server.login(self.username, self.password or "")
            yield server
        finally:
            if server:
                try:
                    server.quit()
                except smtplib.SMTPException as e:
                    logger.warning(f"Error closing SMTP connection: {e}")

    def _build_message(
        self,
        recipients: List[str],
        subject: str,
        text_body: str,
        html_body: Optional[str] = None
    ) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["From"] = self.sender
        msg["To"] = ", ".join(recipients)
        msg["Subject"] = subject
        msg.attach(MIMEText(text_body or "", "plain"))
        if html_body:
            msg.attach(MIMEText(html_body, "html"))
        return msg

    def send(
        self,
        recipients: List[str],
        subject: str,
        text_body: str,
        html_body: Optional[str] = None
    ) -> bool:
        """
        Send an email, retrying transient failures.

        Returns:
            True if sent, False if every attempt failed
        """
        msg = self._build_message(recipients, subject, text_body, html_body)

        for attempt in range(1, self.max_retries + 1):
            try:
                with self._connection() as server:
                    server.sendmail(self.sender, recipients, msg.as_string())
                logger.info(f"Email sent to {', '.join(recipients)}")
                return True
            except smtplib.SMTPAuthenticationError:
                logger.error("SMTP authentication failed, check username/password")
                break
            except (smtplib.SMTPException, OSError) as e:
                logger.error(f"Email attempt {attempt} failed: {e}")
                if attempt < self.max_retries:
                    time.sleep(self.retry_delay)

        logger.error(f"Failed to send email to {', '.join(recipients)} after all retry attempts")
        return False


# Create singleton instance
mailer = Mailer()
