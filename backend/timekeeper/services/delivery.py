"""
Out-of-band delivery of PIN reset codes.

SMTP is used when SMTP_HOST is configured; otherwise the code is written to
the application log so a developer can complete the reset locally.
"""
import logging
import os
import smtplib
from email.mime.text import MIMEText

logger = logging.getLogger(__name__)

SMTP_HOST = os.getenv("SMTP_HOST")
SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
SMTP_USER = os.getenv("SMTP_USER")
SMTP_PASSWORD = os.getenv("SMTP_PASSWORD")
SMTP_FROM = os.getenv("SMTP_FROM", "no-reply@timekeeper.local")


class ResetCodeDelivery:
    """Delivery channel interface."""

    def deliver(self, email: str, code: str, expires_in_minutes: int) -> None:
        raise NotImplementedError


class LogDelivery(ResetCodeDelivery):
    """Writes the code to the log instead of sending it."""

    def deliver(self, email: str, code: str, expires_in_minutes: int) -> None:
        logger.warning(
            f"SMTP not configured; PIN reset code for {email} is {code} "
            f"(valid {expires_in_minutes} minutes)"
        )


class SmtpDelivery(ResetCodeDelivery):
    """Sends the code by e-mail."""

    def __init__(self, host: str, port: int, user: str = None, password: str = None,
                 sender: str = SMTP_FROM):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.sender = sender

    def deliver(self, email: str, code: str, expires_in_minutes: int) -> None:
        msg = MIMEText(
            f"Your PIN reset code is {code}.\n\n"
            f"It expires in {expires_in_minutes} minutes. "
            "If you did not request a reset, ignore this message."
        )
        msg["Subject"] = "Your PIN reset code"
        msg["From"] = self.sender
        msg["To"] = email

        with smtplib.SMTP(self.host, self.port, timeout=10) as server:
            server.starttls()
            if self.user and self.password:
                server.login(self.user, self.password)
            server.send_message(msg)
        logger.info(f"Sent PIN reset code to {email}")


# PUBLIC_INTERFACE
def get_delivery() -> ResetCodeDelivery:
    """
    Dependency to get the configured reset code delivery channel.

    Returns:
        ResetCodeDelivery: SMTP delivery if configured, log delivery otherwise
    """
    if SMTP_HOST:
        return SmtpDelivery(SMTP_HOST, SMTP_PORT, SMTP_USER, SMTP_PASSWORD)
    return LogDelivery()
