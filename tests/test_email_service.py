import logging
import smtplib

import pytest

from app.core.config import Settings
from app.core.errors import MailerError
from app.services.email_service import Mailer, send_welcome_email


class FlakyMailer(Mailer):
    """Mailer cuyo transporte falla las primeras `failures` veces"""

    def __init__(self, failures, **kwargs):
        super().__init__(**kwargs)
        self.failures = failures
        self.delivered = []
        self.attempts = 0

    def _deliver(self, msg):
        self.attempts += 1
        if self.attempts <= self.failures:
            raise smtplib.SMTPServerDisconnected("connection lost")
        self.delivered.append(msg)


def _config(**overrides):
    values = {"email_backend": "smtp", "smtp_host": "mail.test", "smtp_max_attempts": 3}
    values.update(overrides)
    return Settings(**values)


def test_disabled_backend_sends_nothing():
    mailer = FlakyMailer(0, config=_config(email_backend="disabled"))
    assert mailer.send("a@example.com", "user_welcome", {"activation_token": "T" * 26, "user_id": 1}) is False
    assert mailer.attempts == 0


def test_welcome_template_is_rendered():
    mailer = FlakyMailer(0, config=_config(), sleep=lambda _: None)
    assert mailer.send("a@example.com", "user_welcome", {"activation_token": "T" * 26, "user_id": 7}) is True

    msg = mailer.delivered[0]
    assert msg["To"] == "a@example.com"
    assert msg["Subject"] == "Welcome to Bookclub!"
    text = msg.get_body(preferencelist=("plain",)).get_content()
    html_body = msg.get_body(preferencelist=("html",)).get_content()
    assert "T" * 26 in text
    assert "user ID number is 7" in text
    assert "T" * 26 in html_body


def test_retries_until_success():
    sleeps = []
    mailer = FlakyMailer(2, config=_config(), sleep=sleeps.append)
    assert mailer.send("a@example.com", "user_welcome", {"activation_token": "T" * 26, "user_id": 1})
    assert mailer.attempts == 3
    assert sleeps == [1.0, 1.0]


def test_gives_up_after_max_attempts():
    mailer = FlakyMailer(10, config=_config(smtp_max_attempts=3), sleep=lambda _: None)
    with pytest.raises(MailerError):
        mailer.send("a@example.com", "user_welcome", {"activation_token": "T" * 26, "user_id": 1})
    assert mailer.attempts == 3


def test_unknown_template():
    mailer = FlakyMailer(0, config=_config())
    with pytest.raises(MailerError):
        mailer.send("a@example.com", "password_reset", {})


def test_background_send_logs_failures(caplog):
    mailer = FlakyMailer(10, config=_config(smtp_max_attempts=1), sleep=lambda _: None)
    with caplog.at_level(logging.ERROR, logger="app.services.email_service"):
        send_welcome_email(mailer, "a@example.com", 1, "T" * 26)
    assert "a@example.com" in caplog.text
