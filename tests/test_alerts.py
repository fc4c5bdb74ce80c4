import smtplib
from unittest.mock import MagicMock, patch

from tradebot.engine.alerts import EmailAlerter
from tradebot.engine.config import EmailAlertsConfig, SmtpConfig

SMTP = SmtpConfig(
    host="smtp.example.com",
    tls_port=587,
    account_username="user",
    account_password="secret",
    from_address="bot@example.com",
    to_address="me@example.com",
)


def test_disabled_alerter_does_not_connect():
    alerter = EmailAlerter(EmailAlertsConfig(enabled=False))

    with patch("tradebot.engine.alerts.smtplib.SMTP") as smtp_cls:
        assert alerter.send_message("subject", "body") is False
    smtp_cls.assert_not_called()


def test_send_message():
    alerter = EmailAlerter(EmailAlertsConfig(enabled=True, smtp=SMTP), bot_name="Test Bot")
    server = MagicMock()

    with patch("tradebot.engine.alerts.smtplib.SMTP") as smtp_cls:
        smtp_cls.return_value.__enter__.return_value = server
        assert alerter.send_message("FATAL: bot stopped", "details") is True

    smtp_cls.assert_called_once_with("smtp.example.com", 587, timeout=10)
    server.starttls.assert_called_once()
    server.login.assert_called_once_with("user", "secret")
    msg = server.send_message.call_args[0][0]
    assert msg["Subject"] == "[Test Bot] FATAL: bot stopped"
    assert msg["To"] == "me@example.com"


def test_send_failure_is_logged_not_raised(caplog):
    alerter = EmailAlerter(EmailAlertsConfig(enabled=True, smtp=SMTP))

    with patch("tradebot.engine.alerts.smtplib.SMTP") as smtp_cls:
        smtp_cls.side_effect = smtplib.SMTPConnectError(421, "try later")
        assert alerter.send_message("subject", "body") is False

    assert "Error sending email alert" in caplog.text
