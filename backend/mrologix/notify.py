import logging
import smtplib
from email.message import EmailMessage
from html import escape

from fastapi import Request

from .config import MailConfig

logger = logging.getLogger(__name__)


class Mailer:
    """SMTP-over-SSL sender built once by the application entry point.

    With ``outbox`` set, messages are recorded there instead of being sent.
    """

    def __init__(self, config: MailConfig, outbox: list | None = None):
        self.config = config
        self.outbox = outbox

    def send(self, to_email: str, subject: str, text: str, html: str | None = None) -> bool:
        if self.outbox is not None:
            self.outbox.append((to_email, subject, text, html))
            return True
        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = f'"MRO Logix" <{self.config.sender}>'
        msg["To"] = to_email
        msg.set_content(text)
        if html:
            msg.add_alternative(html, subtype="html")
        try:
            with smtplib.SMTP_SSL(self.config.host, self.config.port) as s:
                if self.config.username and self.config.password:
                    s.login(self.config.username, self.config.password)
                s.send_message(msg)
        except (smtplib.SMTPException, OSError):
            logger.exception("Failed to send email to %s", to_email)
            return False
        return True


def get_mailer(request: Request) -> Mailer:
    return request.app.state.mailer


def send_pin_email(mailer: Mailer, to_email: str, pin: str, first_name: str) -> bool:
    text = (
        f"Hello {first_name},\n\n"
        f"Your verification PIN is: {pin}\n\n"
        "This PIN will expire in 5 minutes.\n\n"
        "Thank you,\nMRO Logix Team"
    )
    html = (
        "<div style=\"font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;\">"
        "<h2>Welcome to MRO Logix!</h2>"
        f"<p>Hello {escape(first_name)},</p>"
        "<p>Thank you for registering. To verify your account, use the following PIN:</p>"
        "<div style=\"background-color: #f5f5f5; padding: 15px; text-align: center; "
        f"font-size: 24px; letter-spacing: 5px; font-weight: bold;\">{pin}</div>"
        "<p>This PIN will expire in 5 minutes.</p>"
        "<p>If you didn't request this PIN, please ignore this email.</p>"
        "<p>Thank you,<br/>MRO Logix Team</p>"
        "</div>"
    )
    return mailer.send(to_email, "Your MRO Logix Verification PIN", text, html)


def send_sms_report_email(mailer: Mailer, to_email: str, report) -> bool:
    reporter = report.reporter_name or "Anonymous"
    time_of_event = report.time_of_event or "Not specified"
    date = report.date.strftime("%Y-%m-%d")
    text = (
        "SMS Report Copy\n\n"
        f"Report Number: {report.report_number}\n"
        f"Reporter: {reporter}\n"
        f"Date: {date}\n"
        f"Time of Event: {time_of_event}\n"
        f"Title: {report.report_title}\n\n"
        f"Description:\n{report.report_description}\n\n"
        "This is a copy of your SMS report submitted to MRO Logix.\n\n"
        "Thank you,\nMRO Logix Team"
    )
    html = (
        "<div style=\"font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;\">"
        "<h2 style=\"color: #f43f5e;\">SMS Report Copy</h2>"
        f"<p><strong>Report Number:</strong> {escape(report.report_number)}</p>"
        f"<p><strong>Reporter:</strong> {escape(reporter)}</p>"
        f"<p><strong>Date:</strong> {date}</p>"
        f"<p><strong>Time of Event:</strong> {escape(time_of_event)}</p>"
        f"<p><strong>Title:</strong> {escape(report.report_title)}</p>"
        "<h4>Description:</h4>"
        f"<p style=\"white-space: pre-wrap;\">{escape(report.report_description)}</p>"
        "<p>Thank you,<br/><strong>MRO Logix Team</strong></p>"
        "</div>"
    )
    subject = f"SMS Report Copy - {report.report_number}: {report.report_title}"
    return mailer.send(to_email, subject, text, html)
