"""
Email notification for new submissions.

Delivery is best-effort. By the time notify() runs the submission is already
committed, so every failure here is logged and reported as False, never raised.
The notifier is shared by concurrent requests and keeps no per-call state.
"""

import logging
import smtplib
from email.mime.text import MIMEText

from intake.config import IntakeSettings
from intake.errors import NotificationError
from intake.schema import SubmissionRecord
from intake.templating import render

logger = logging.getLogger(__name__)


def build_subject(record: SubmissionRecord) -> str:
    return f"New Artist Submission - {record.artwork.title}"


def build_body(record: SubmissionRecord, settings: IntakeSettings) -> str:
    submitted = record.submission_date
    if submitted.tzinfo is not None:
        submitted = submitted.astimezone(settings.tzinfo)
    return render(
        "notification_email.txt",
        record=record,
        submitted=submitted.strftime("%Y-%m-%d %H:%M:%S"),
    )


def sender_address(settings: IntakeSettings) -> str:
    if settings.smtp_username:
        return settings.smtp_username
    return f"noreply@{settings.smtp_host or 'localhost'}"


class EmailNotifier:
    """Sends one plain-text email per new submission to NOTIFICATION_EMAIL."""

    def __init__(self, settings: IntakeSettings):
        self.settings = settings

    def build_message(self, record: SubmissionRecord) -> MIMEText:
        msg = MIMEText(build_body(record, self.settings), "plain", "utf-8")
        msg["Subject"] = build_subject(record)
        msg["From"] = sender_address(self.settings)
        msg["To"] = self.settings.notification_email or ""
        return msg

    def send(self, record: SubmissionRecord) -> None:
        """
        Deliver the notification over SMTP with STARTTLS.

        Raises:
            NotificationError: destination or SMTP host not configured, or the
                transport failed
        """
        s = self.settings
        if not s.notification_email:
            raise NotificationError("NOTIFICATION_EMAIL is not configured", {"reason": "no_destination"})
        if not s.smtp_host:
            raise NotificationError("SMTP_HOST is not configured", {"reason": "no_smtp_host"})

        msg = self.build_message(record)
        try:
            with smtplib.SMTP(s.smtp_host, s.smtp_port, timeout=s.smtp_timeout) as server:
                server.starttls()
                if s.smtp_username and s.smtp_password:
                    server.login(s.smtp_username, s.smtp_password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            raise NotificationError(
                f"SMTP delivery to {s.notification_email} failed: {e}",
                {"reason": "transport", "smtp_host": s.smtp_host, "smtp_port": s.smtp_port},
            ) from e

    def notify(self, record: SubmissionRecord) -> bool:
        """
        Send the notification, swallowing every failure.

        Returns:
            True if the email was handed to the SMTP server
        """
        try:
            self.send(record)
        except NotificationError as e:
            logger.warning(
                f"⚠️ Notification for {record.submission_id} not sent "
                f"({e.context.get('reason')}): {e.message}"
            )
            return False
        except Exception as e:
            logger.warning(f"⚠️ Notification for {record.submission_id} failed unexpectedly: {e}", exc_info=True)
            return False

        logger.info(f"📧 Notification for {record.submission_id} sent to {self.settings.notification_email}")
        return True
