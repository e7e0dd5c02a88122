import aiosmtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from email.utils import formataddr
from app.core.config import settings
import logging

logger = logging.getLogger(__name__)

class EmailService:
    def __init__(self):
        self.smtp_host = settings.smtp_host
        self.smtp_port = settings.smtp_port
        self.smtp_username = settings.smtp_username
        self.smtp_password = settings.smtp_password
        self.from_name = settings.mail_from_name

    async def send_notification(self, recipient: str, subject: str, body: str) -> bool:
        """Send a plain-text notification email"""
        try:
            message = MIMEMultipart()
            message["From"] = formataddr((self.from_name, self.smtp_username or ""))
            message["To"] = recipient
            message["Subject"] = subject
            message.attach(MIMEText(body, "plain"))

            if self.smtp_username and self.smtp_password:
                await aiosmtplib.send(
                    message,
                    hostname=self.smtp_host,
                    port=self.smtp_port,
                    start_tls=True,
                    username=self.smtp_username,
                    password=self.smtp_password,
                )
                logger.info(f"Notification '{subject}' sent to {recipient}")
                return True
            else:
                logger.warning("SMTP credentials not configured, email not sent")
                return False

        except Exception as e:
            logger.error(f"Failed to send email to {recipient}: {str(e)}")
            return False
