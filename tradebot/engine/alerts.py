"""
Email alerts to the bot operator.

Sent when the engine shuts down on a fatal failure or an emergency stop.
Delivery is best effort: a failed send is logged, never raised.
"""

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from .config import EmailAlertsConfig

logger = logging.getLogger(__name__)


class EmailAlerter:

    def __init__(self, config: EmailAlertsConfig, bot_name: str = "", timeout: int = 10):
        self.config = config
        self.bot_name = bot_name
        self.timeout = timeout

    @property
    def enabled(self) -> bool:
        return self.config.enabled and self.config.smtp is not None

    def send_message(self, subject: str, body: str) -> bool:
        """
        Returns:
            True if the message was handed to the SMTP server.
        """
        if not self.enabled:
            logger.warning(f"Email alerts disabled, not sending: {subject}")
            return False

        smtp = self.config.smtp
        msg = MIMEMultipart()
        msg['From'] = smtp.from_address
        msg['To'] = smtp.to_address
        msg['Subject'] = f"[{self.bot_name}] {subject}" if self.bot_name else subject
        msg.attach(MIMEText(body, 'plain'))

        try:
            with smtplib.SMTP(smtp.host, smtp.tls_port, timeout=self.timeout) as server:
                server.starttls()
                server.login(smtp.account_username, smtp.account_password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Error sending email alert '{subject}': {e}")
            return False

        logger.info(f"Email alert sent to {smtp.to_address}: {subject}")
        return True
