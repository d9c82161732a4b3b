"""
Notification tests. SMTP is always mocked; nothing leaves the process.
"""

import smtplib
import threading
from dataclasses import replace
from datetime import datetime, timezone
from unittest.mock import patch

import pytest

from intake.email_notification import EmailNotifier, build_body, build_subject, sender_address
from intake.errors import NotificationError
from intake.schema import ApplicantInfo, ArtworkInfo, SubmissionRecord


@pytest.fixture
def record():
    return SubmissionRecord(
        submission_id="SUB_2026_00000000000000ab",
        applicant=ApplicantInfo(first_name="Ada", last_name="Lovelace", email="ada@example.com"),
        artwork=ArtworkInfo(title="Engine Study", medium="Oil on canvas", description="Gears"),
        image_files=["artwork_1_1.jpg", "artwork_2_1.png"],
        submission_date=datetime(2026, 10, 17, 12, 30, tzinfo=timezone.utc),
    )


@pytest.fixture
def smtp_settings(settings):
    return replace(
        settings,
        smtp_host="smtp.example.com",
        smtp_port=2525,
        smtp_username="gallery@example.com",
        smtp_password="secret",
        notification_email="curator@example.com",
    )


class TestMessageContent:

    def test_subject(self, record):
        assert build_subject(record) == "New Artist Submission - Engine Study"

    def test_body_lists_submission(self, record, settings):
        body = build_body(record, settings)
        assert body.startswith("New artist submission received:")
        assert "Artist: Ada Lovelace" in body
        assert "Email: ada@example.com" in body
        assert "Medium: Oil on canvas" in body
        assert "Images: 2" in body
        assert "Submitted: 2026-10-17 12:30:00" in body
        assert "Submission ID: SUB_2026_00000000000000ab" in body

    def test_body_uses_settings_timezone(self, record, settings):
        body = build_body(record, replace(settings, timezone="Asia/Tokyo"))
        assert "Submitted: 2026-10-17 21:30:00" in body

    def test_body_is_not_html_escaped(self, record, settings):
        record.artwork.title = "Tom & Jerry <3"
        assert "Artwork: Tom & Jerry <3" in build_body(record, settings)

    def test_sender_falls_back_to_noreply(self, smtp_settings):
        assert sender_address(smtp_settings) == "gallery@example.com"
        assert sender_address(replace(smtp_settings, smtp_username=None)) == "noreply@smtp.example.com"

    def test_message_headers(self, record, smtp_settings):
        msg = EmailNotifier(smtp_settings).build_message(record)
        assert msg["Subject"] == "New Artist Submission - Engine Study"
        assert msg["From"] == "gallery@example.com"
        assert msg["To"] == "curator@example.com"


class TestSend:

    @patch("intake.email_notification.smtplib.SMTP")
    def test_sends_with_starttls_and_login(self, mock_smtp, record, smtp_settings):
        server = mock_smtp.return_value.__enter__.return_value
        assert EmailNotifier(smtp_settings).notify(record) is True
        mock_smtp.assert_called_once_with("smtp.example.com", 2525, timeout=smtp_settings.smtp_timeout)
        server.starttls.assert_called_once()
        server.login.assert_called_once_with("gallery@example.com", "secret")
        server.send_message.assert_called_once()

    @patch("intake.email_notification.smtplib.SMTP")
    def test_login_skipped_without_credentials(self, mock_smtp, record, smtp_settings):
        server = mock_smtp.return_value.__enter__.return_value
        notifier = EmailNotifier(replace(smtp_settings, smtp_username=None, smtp_password=None))
        assert notifier.notify(record) is True
        server.login.assert_not_called()

    @patch("intake.email_notification.smtplib.SMTP")
    def test_missing_destination(self, mock_smtp, record, smtp_settings):
        notifier = EmailNotifier(replace(smtp_settings, notification_email=None))
        with pytest.raises(NotificationError) as exc_info:
            notifier.send(record)
        assert exc_info.value.context["reason"] == "no_destination"
        mock_smtp.assert_not_called()

    def test_missing_smtp_host(self, record, smtp_settings):
        with pytest.raises(NotificationError) as exc_info:
            EmailNotifier(replace(smtp_settings, smtp_host=None)).send(record)
        assert exc_info.value.context["reason"] == "no_smtp_host"


class TestNotifySwallowsFailures:

    @patch("intake.email_notification.smtplib.SMTP")
    def test_auth_failure(self, mock_smtp, record, smtp_settings, caplog):
        server = mock_smtp.return_value.__enter__.return_value
        server.login.side_effect = smtplib.SMTPAuthenticationError(535, b"bad credentials")
        notifier = EmailNotifier(smtp_settings)
        assert notifier.notify(record) is False
        assert "(transport)" in caplog.text
        server.send_message.assert_not_called()

    @patch("intake.email_notification.smtplib.SMTP")
    def test_connection_refused(self, mock_smtp, record, smtp_settings):
        mock_smtp.side_effect = ConnectionRefusedError("refused")
        notifier = EmailNotifier(smtp_settings)
        assert notifier.notify(record) is False
        with pytest.raises(NotificationError, match="failed: refused") as exc_info:
            notifier.send(record)
        assert exc_info.value.context["reason"] == "transport"

    @patch("intake.email_notification.smtplib.SMTP")
    def test_unexpected_error(self, mock_smtp, record, smtp_settings, caplog):
        mock_smtp.return_value.__enter__.return_value.send_message.side_effect = RuntimeError("boom")
        notifier = EmailNotifier(smtp_settings)
        assert notifier.notify(record) is False
        assert "failed unexpectedly" in caplog.text

    def test_unconfigured_notifier_returns_false(self, record, settings, caplog):
        notifier = EmailNotifier(settings)
        assert notifier.notify(record) is False
        assert f"{record.submission_id} not sent (no_destination)" in caplog.text

    @patch("intake.email_notification.smtplib.SMTP")
    def test_success_after_failure(self, mock_smtp, record, smtp_settings):
        notifier = EmailNotifier(smtp_settings)
        mock_smtp.side_effect = OSError("down")
        assert notifier.notify(record) is False
        mock_smtp.side_effect = None
        assert notifier.notify(record) is True


class TestSharedNotifier:

    @patch("intake.email_notification.smtplib.SMTP")
    def test_failure_leaves_no_state_on_instance(self, mock_smtp, record, smtp_settings):
        mock_smtp.side_effect = OSError("down")
        notifier = EmailNotifier(smtp_settings)
        before = dict(vars(notifier))
        assert notifier.notify(record) is False
        assert vars(notifier) == before

    def test_concurrent_results_are_independent(self, record, smtp_settings):
        notifier = EmailNotifier(smtp_settings)
        failing = record.model_copy(update={"submission_id": "SUB_2026_00000000000000ff"})
        both_started = threading.Barrier(2)

        def fake_send(rec):
            both_started.wait(timeout=5)
            if rec.submission_id == failing.submission_id:
                raise NotificationError("SMTP delivery failed", {"reason": "transport"})

        results = {}

        def run(rec):
            results[rec.submission_id] = notifier.notify(rec)

        with patch.object(EmailNotifier, "send", side_effect=fake_send):
            threads = [threading.Thread(target=run, args=(r,)) for r in (record, failing)]
            for t in threads:
                t.start()
            for t in threads:
                t.join(timeout=5)

        assert results == {record.submission_id: True, failing.submission_id: False}
