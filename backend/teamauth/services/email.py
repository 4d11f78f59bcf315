import logging
import smtplib
from datetime import datetime
from email.message import EmailMessage
from pathlib import Path
from typing import Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from teamauth.core.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

_jinja_env = Environment(
    loader=FileSystemLoader(str(TEMPLATES_DIR)),
    autoescape=select_autoescape(["html", "xml"]),
)


class EmailSender:
    """
    SMTP mailer for account emails.

    Every public method returns True when the message was handed to the
    SMTP server and False otherwise. Failures are logged and never raised:
    the account change that triggered the email has already been committed.
    """

    def __init__(self, config: Optional[Settings] = None):
        self.config = config or default_settings

    @property
    def enabled(self) -> bool:
        c = self.config
        return bool(c.smtp_user and c.smtp_pass and (c.smtp_from or c.smtp_user))

    def _sender(self) -> str:
        smtp_from = self.config.smtp_from.strip() or self.config.smtp_user
        if "@" not in smtp_from:
            smtp_from = f"{smtp_from} <{self.config.smtp_user}>"
        return smtp_from

    def _render(self, template_name: str, context: dict) -> str:
        template = _jinja_env.get_template(template_name)
        return template.render(
            app_name=self.config.app_name,
            year=datetime.utcnow().year,
            **context,
        )

    def send(self, to_email: str, subject: str, body: str, html_body: Optional[str] = None) -> bool:
        if not to_email:
            return False
        if not self.enabled:
            logger.info("SMTP not configured, skipping email %r to %s", subject, to_email)
            return False

        msg = EmailMessage()
        msg["From"] = self._sender()
        msg["To"] = to_email
        msg["Subject"] = subject
        msg.set_content(body)
        if html_body:
            msg.add_alternative(html_body, subtype="html")

        c = self.config
        try:
            if c.smtp_use_ssl:
                server = smtplib.SMTP_SSL(c.smtp_host, c.smtp_port, timeout=c.smtp_timeout)
            else:
                server = smtplib.SMTP(c.smtp_host, c.smtp_port, timeout=c.smtp_timeout)
            with server:
                if not c.smtp_use_ssl:
                    server.starttls()
                server.login(c.smtp_user, c.smtp_pass)
                server.send_message(msg)
            return True
        except (smtplib.SMTPException, OSError):
            logger.exception("SMTP send failed for %r to %s", subject, to_email)
            return False

    def send_verification_email(self, to_email: str, code: str) -> bool:
        subject = "Verify your email"
        body = (
            "Thanks for signing up!\n\n"
            f"Your verification code is: {code}\n\n"
            "The code expires in 24 hours."
        )
        html_body = self._render("email/verification.html", {"subject": subject, "code": code})
        return self.send(to_email, subject, body, html_body)

    def send_welcome_email(self, to_email: str, name: str) -> bool:
        subject = f"Welcome to {self.config.app_name}"
        body = f"Hello {name},\n\nYour email is verified and your account is ready."
        html_body = self._render("email/welcome.html", {"subject": subject, "name": name})
        return self.send(to_email, subject, body, html_body)

    def send_reset_password_email(self, to_email: str, reset_url: str) -> bool:
        subject = "Reset your password"
        body = (
            "We received a request to reset your password.\n\n"
            f"Open this link to choose a new one: {reset_url}\n\n"
            "The link expires in 24 hours. If you did not ask for this, ignore this email."
        )
        html_body = self._render("email/reset_password.html", {"subject": subject, "reset_url": reset_url})
        return self.send(to_email, subject, body, html_body)

    def send_password_reset_success_email(self, to_email: str) -> bool:
        subject = "Your password was reset"
        body = "Your password has been reset successfully."
        html_body = self._render("email/reset_success.html", {"subject": subject})
        return self.send(to_email, subject, body, html_body)
