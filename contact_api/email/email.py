import asyncio
from dataclasses import dataclass
from email.message import EmailMessage
from email.utils import formataddr
from enum import Enum
from typing import Awaitable, Callable, Protocol

import aiosmtplib
from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import From, Mail, ReplyTo

from contact_api.config.config import EmailSettings
from contact_api.email.templates import EmailTemplate
from contact_api.errors import NotificationError
from contact_api.models.contact import SubmissionRecord
from contact_api.utils.my_logger import init_logger

SENDER_NAME: str = "Website Contact"

email_logger = init_logger("email-notifier")


class NotificationStatus(str, Enum):
    SENT = "sent"
    DISABLED = "disabled"
    FAILED = "failed"


@dataclass(frozen=True)
class NotificationResult:
    """outcome of a single delivery attempt, failures are values not exceptions"""
    status: NotificationStatus
    provider: str
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == NotificationStatus.SENT


@dataclass(frozen=True)
class NotificationMessage:
    sender: str
    recipient: str
    reply_to: str
    subject: str
    text: str
    html: str


def create_message(record: SubmissionRecord, sender: str, recipient: str,
                   templates: type[EmailTemplate] = EmailTemplate) -> NotificationMessage:
    """Create the message with plain-text and HTML versions."""
    return NotificationMessage(
        sender=sender,
        recipient=recipient,
        reply_to=record.email,
        subject=f"New message: {record.subject} – {record.name}",
        text=templates.contact_notification_text(record=record),
        html=templates.contact_notification_html(record=record))


async def _attempt_delivery(provider: str, deliver: Callable[[], Awaitable[None]],
                            record: SubmissionRecord) -> NotificationResult:
    """
        makes exactly one delivery attempt, any failure is logged and returned as a failed result
    """
    try:
        await deliver()
    except Exception as e:
        email_logger.error(f"""
        Email Notification Failed

        Debug Information
            provider: {provider}
            record_id: {record.id}
            error_type: {type(e).__name__}
            error_detail: {e}
        """)
        return NotificationResult(status=NotificationStatus.FAILED, provider=provider, error=str(e))

    email_logger.info(f"notification sent via {provider} for record : {record.id}")
    return NotificationResult(status=NotificationStatus.SENT, provider=provider)


class Notifier(Protocol):
    """a notification backend, exactly one is active per process"""
    provider: str

    async def send(self, record: SubmissionRecord) -> NotificationResult:
        ...


class DisabledNotifier:
    """used when no notification provider is configured, sending is skipped"""
    provider: str = "disabled"

    async def send(self, record: SubmissionRecord) -> NotificationResult:
        email_logger.info(f"email notification disabled, skipping record : {record.id}")
        return NotificationResult(status=NotificationStatus.DISABLED, provider=self.provider)


class SMTPNotifier:
    """
    **SMTPNotifier**
        sends notifications through an authenticated SMTP relay, implicit TLS when secure
        otherwise STARTTLS when the relay offers it
    """
    provider: str = "smtp"

    def __init__(self, host: str, port: int, user: str, password: str, recipient: str,
                 secure: bool = False, verify: bool = True, validate_certs: bool = True,
                 timeout: float | None = None):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.recipient = recipient
        self.secure = secure
        self.verify = verify
        self.validate_certs = validate_certs
        self.timeout = timeout

    @staticmethod
    def build_email(message: NotificationMessage) -> EmailMessage:
        email_message = EmailMessage()
        email_message['From'] = formataddr((SENDER_NAME, message.sender))
        email_message['To'] = message.recipient
        email_message['Reply-To'] = message.reply_to
        email_message['Subject'] = message.subject
        email_message.set_content(message.text)
        email_message.add_alternative(message.html, subtype='html')
        return email_message

    def create_client(self) -> aiosmtplib.SMTP:
        options = dict(hostname=self.host, port=self.port, use_tls=self.secure,
                       validate_certs=self.validate_certs)
        if self.timeout is not None:
            options.update(timeout=self.timeout)
        return aiosmtplib.SMTP(**options)

    async def send_email(self, message: NotificationMessage) -> None:
        """Send the email via the SMTP server."""
        smtp = self.create_client()
        async with smtp:
            await smtp.login(self.user, self.password)
            if self.verify:
                response = await smtp.noop()
                email_logger.info(f"SMTP connection verified : {response.code}")
            await smtp.send_message(self.build_email(message))

    async def send(self, record: SubmissionRecord) -> NotificationResult:
        message = create_message(record=record, sender=self.user, recipient=self.recipient)
        return await _attempt_delivery(self.provider, lambda: self.send_email(message), record)


class SendGridNotifier:
    """
    **SendGridNotifier**
        sends notifications as a single SendGrid API call, there is no separate verify step
    """
    provider: str = "sendgrid"

    def __init__(self, api_key: str, sender: str, recipient: str):
        self.server = SendGridAPIClient(api_key)
        self.sender = sender
        self.recipient = recipient

    @staticmethod
    def build_mail(message: NotificationMessage) -> Mail:
        mail = Mail(
            from_email=From(message.sender, SENDER_NAME),
            to_emails=message.recipient,
            subject=message.subject,
            plain_text_content=message.text,
            html_content=message.html)
        mail.reply_to = ReplyTo(message.reply_to)
        return mail

    async def send_email(self, message: NotificationMessage) -> None:
        # the sendgrid client is blocking
        response = await asyncio.to_thread(self.server.send, self.build_mail(message))
        if not 200 <= response.status_code < 300:
            raise NotificationError(message=f"SendGrid rejected the message with status {response.status_code}")

    async def send(self, record: SubmissionRecord) -> NotificationResult:
        message = create_message(record=record, sender=self.sender, recipient=self.recipient)
        return await _attempt_delivery(self.provider, lambda: self.send_email(message), record)


def _smtp_notifier(settings: EmailSettings) -> SMTPNotifier:
    return SMTPNotifier(host=settings.SMTP_HOST, port=settings.SMTP_PORT, user=settings.SMTP_USER,
                        password=settings.SMTP_PASS, recipient=settings.RECEIVER_EMAIL or settings.SMTP_USER,
                        secure=settings.SMTP_SECURE, verify=settings.SMTP_VERIFY,
                        validate_certs=settings.SMTP_VALIDATE_CERTS, timeout=settings.SMTP_TIMEOUT)


def _sendgrid_notifier(settings: EmailSettings) -> SendGridNotifier | DisabledNotifier:
    recipient = settings.RECEIVER_EMAIL
    if not recipient:
        email_logger.warning("SENDGRID_API_KEY is set but RECEIVER_EMAIL is missing, notifications disabled")
        return DisabledNotifier()
    return SendGridNotifier(api_key=settings.SENDGRID_API_KEY, sender=settings.SENDER_EMAIL or recipient,
                            recipient=recipient)


def create_notifier(settings: EmailSettings) -> Notifier:
    """
    **create_notifier**
        selects the notification backend at start up, EMAIL_PROVIDER forces a provider,
        otherwise the SMTP relay is preferred over SendGrid when both are configured
    :param settings: email settings
    :return: the active notifier
    """
    provider = (settings.EMAIL_PROVIDER or '').strip().lower()

    if provider == SMTPNotifier.provider:
        if settings.smtp_configured:
            return _smtp_notifier(settings)
        email_logger.warning("EMAIL_PROVIDER is smtp but SMTP_HOST, SMTP_USER or SMTP_PASS is missing")
        return DisabledNotifier()

    if provider == SendGridNotifier.provider:
        if settings.sendgrid_configured:
            return _sendgrid_notifier(settings)
        email_logger.warning("EMAIL_PROVIDER is sendgrid but SENDGRID_API_KEY is missing")
        return DisabledNotifier()

    if provider:
        if provider != DisabledNotifier.provider:
            email_logger.warning(f"unknown EMAIL_PROVIDER : {provider}, notifications disabled")
        return DisabledNotifier()

    if settings.smtp_configured:
        return _smtp_notifier(settings)
    if settings.sendgrid_configured:
        return _sendgrid_notifier(settings)
    return DisabledNotifier()
