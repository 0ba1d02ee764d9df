# cacs_api/utils/mailer.py
import logging
import smtplib
from dataclasses import dataclass
from datetime import datetime, timezone
from email.message import EmailMessage
from html import escape
from typing import Optional

from cacs_api.config import Settings

logger = logging.getLogger(__name__)


class MailerNotConfigured(RuntimeError):
    """SMTP credentials are missing; retrying will not help."""


@dataclass
class EmailJob:
    to: str
    subject: str
    html: str
    kind: str = "generic"


_PAGE = """<!DOCTYPE html>
<html>
<head>
  <style>
    body {{ font-family: Arial, sans-serif; line-height: 1.6; color: #333; }}
    .container {{ max-width: 600px; margin: 0 auto; padding: 20px; }}
    .header {{ background-color: {color}; color: white; padding: 20px; text-align: center; }}
    .content {{ padding: 20px; background-color: #f9f9f9; }}
    .footer {{ text-align: center; padding: 20px; color: #666; font-size: 12px; }}
  </style>
</head>
<body>
  <div class="container">
    <div class="header"><h1>{title}</h1></div>
    <div class="content">
      {body}
    </div>
    <div class="footer"><p>&copy; {year} CACS. All rights reserved.</p></div>
  </div>
</body>
</html>
"""


def _page(title: str, body: str, color: str) -> str:
    return _PAGE.format(title=title, body=body, color=color, year=datetime.now().year)


def welcome_email(name: str, email: str) -> EmailJob:
    body = (
        f"<h2>Hello {escape(name)},</h2>"
        "<p>Thank you for joining with us! We are excited to have you as part of our community.</p>"
        "<p>We look forward to serving you and helping you with all your business needs.</p>"
        "<p>If you have any questions, feel free to reach out to us.</p>"
        "<p>Best regards,<br>The CACS Team</p>"
    )
    return EmailJob(
        to=email,
        subject="Thank you for joining with us!",
        html=_page("Welcome to CACS!", body, "#4CAF50"),
        kind="welcome",
    )


def thank_you_email(name: str, email: str) -> EmailJob:
    body = (
        f"<h2>Hello {escape(name)},</h2>"
        "<p>Thank you for reaching out to us. We have received your message and our team "
        "will reach out to you soon.</p>"
        "<p>We appreciate your interest and look forward to assisting you.</p>"
        "<p>Best regards,<br>The CACS Team</p>"
    )
    return EmailJob(
        to=email,
        subject="Thank you for contacting us!",
        html=_page("Thank You!", body, "#2196F3"),
        kind="thank_you",
    )


# Summary for the site owner; only the fields the applicant filled in are listed
def admin_submission_email(admin_email: str, submission, submitted_at: Optional[datetime] = None) -> EmailJob:
    submitted_at = submitted_at or datetime.now(timezone.utc)
    rows = [
        ("Name", submission.name),
        ("Email", submission.email),
        ("Subject", submission.subject),
        ("Mobile", submission.mobile),
        ("City", submission.city),
        ("Service", submission.service),
        ("Message", submission.message),
        ("Form Type", submission.form_type),
        ("Submitted At", submitted_at.strftime("%Y-%m-%d %H:%M:%S %Z").strip()),
    ]
    lines = "".join(
        f"<p><strong>{label}:</strong> {escape(str(value))}</p>" for label, value in rows if value
    )
    return EmailJob(
        to=admin_email,
        subject=f"New {submission.form_type} Form Submission",
        html=f"<h2>New Form Submission</h2>{lines}",
        kind="admin_submission",
    )


class SMTPMailer:
    """Sends EmailJob objects through the SMTP server named in the settings."""

    def __init__(self, settings: Settings, timeout: float = 10.0):
        self.settings = settings
        self.timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self.settings.EMAIL_USER and self.settings.EMAIL_PASS)

    def __call__(self, job: EmailJob) -> None:
        if not self.configured:
            raise MailerNotConfigured("EMAIL_USER / EMAIL_PASS not set")

        msg = EmailMessage()
        msg["From"] = self.settings.mail_sender
        msg["To"] = job.to
        msg["Subject"] = job.subject
        msg.set_content("This message requires an HTML capable mail client.")
        msg.add_alternative(job.html, subtype="html")

        with smtplib.SMTP(self.settings.EMAIL_HOST, self.settings.EMAIL_PORT, timeout=self.timeout) as server:
            if self.settings.EMAIL_USE_TLS:
                server.starttls()
            server.login(self.settings.EMAIL_USER, self.settings.EMAIL_PASS)
            server.send_message(msg)

        logger.info("Email sent: kind=%s to=%s", job.kind, job.to)
