import smtplib

import pytest

from teamauth.core.config import settings
from teamauth.services.email import EmailSender


class RecordingSMTP:
    instances = []

    def __init__(self, host, port, timeout=None):
        self.host = host
        self.port = port
        self.messages = []
        self.logged_in = None
        self.started_tls = False
        RecordingSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        self.started_tls = True

    def login(self, user, password):
        self.logged_in = (user, password)

    def send_message(self, msg):
        self.messages.append(msg)


@pytest.fixture
def smtp_config():
    return settings.model_copy(
        update={
            "smtp_host": "smtp.example.test",
            "smtp_port": 465,
            "smtp_user": "mailer@example.test",
            "smtp_pass": "pw",
            "smtp_from": "TeamGPT",
            "smtp_use_ssl": True,
        }
    )


@pytest.fixture(autouse=True)
def fake_smtp(monkeypatch):
    RecordingSMTP.instances = []
    monkeypatch.setattr(smtplib, "SMTP_SSL", RecordingSMTP)
    monkeypatch.setattr(smtplib, "SMTP", RecordingSMTP)
    return RecordingSMTP


def test_disabled_without_credentials():
    config = settings.model_copy(update={"smtp_user": "", "smtp_pass": ""})
    sender = EmailSender(config)
    assert sender.enabled is False
    assert sender.send_verification_email("bob@example.com", "123456") is False
    assert RecordingSMTP.instances == []


def test_verification_email_renders_code(smtp_config):
    assert EmailSender(smtp_config).send_verification_email("bob@example.com", "482913") is True

    smtp = RecordingSMTP.instances[0]
    assert smtp.logged_in == ("mailer@example.test", "pw")
    assert smtp.started_tls is False

    msg = smtp.messages[0]
    assert msg["To"] == "bob@example.com"
    assert msg["From"] == "TeamGPT <mailer@example.test>"
    assert "482913" in msg.get_body(("plain",)).get_content()
    assert "482913" in msg.get_body(("html",)).get_content()


def test_reset_email_contains_link(smtp_config):
    url = "http://frontend.test/reset-password/abc123"
    EmailSender(smtp_config).send_reset_password_email("bob@example.com", url)
    html = RecordingSMTP.instances[0].messages[0].get_body(("html",)).get_content()
    assert url in html


def test_starttls_when_ssl_disabled(smtp_config):
    config = smtp_config.model_copy(update={"smtp_use_ssl": False, "smtp_port": 587})
    assert EmailSender(config).send_welcome_email("bob@example.com", "Bob") is True
    assert RecordingSMTP.instances[0].started_tls is True


def test_smtp_failure_is_reported_not_raised(smtp_config, monkeypatch):
    def refuse(*args, **kwargs):
        raise smtplib.SMTPConnectError(421, "busy")

    monkeypatch.setattr(smtplib, "SMTP_SSL", refuse)
    assert EmailSender(smtp_config).send_password_reset_success_email("bob@example.com") is False
