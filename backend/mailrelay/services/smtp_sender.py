"""
SMTP delivery over an authenticated STARTTLS connection.

One connection per send: connect, STARTTLS, login, send, quit. Nothing is
retried; any failure surfaces as MailDeliveryError carrying the underlying
error text.
"""

import logging
import smtplib
import ssl
from email.errors import HeaderParseError

from mailrelay.config import Settings
from mailrelay.models.send_request import SendRequest
from mailrelay.services.message_builder import build_message, envelope_recipients

logger = logging.getLogger(__name__)


class MailDeliveryError(Exception):
    """Raised when the SMTP server could not be reached or refused the message."""


class InvalidMessageError(ValueError):
    """Raised when a request cannot be rendered as a MIME message."""


def send_mail(settings: Settings, request: SendRequest) -> None:
    """
    Compose and deliver a message for the given request.

    The envelope sender is the request's ``from`` address, falling back to the
    configured account. Recipients are to + cc + bcc; the Bcc header itself is
    stripped by smtplib before transmission.

    Raises:
        InvalidMessageError: if the request cannot be composed into a message
        MailDeliveryError: when there are no recipients, and on connection,
            TLS, authentication or refusal errors
    """
    try:
        message = build_message(request, default_sender=settings.gmail_from)
    except (HeaderParseError, IndexError, ValueError) as exc:
        raise InvalidMessageError(f"could not compose message: {exc}") from exc

    sender = request.from_ or settings.gmail_from
    recipients = envelope_recipients(request)
    if not recipients:
        raise MailDeliveryError("no recipients: to, cc and bcc are all empty")

    try:
        with smtplib.SMTP(
            settings.smtp_host,
            settings.smtp_port,
            timeout=settings.smtp_timeout,
        ) as smtp:
            smtp.starttls(context=ssl.create_default_context())
            smtp.login(settings.gmail_from, settings.gmail_password)
            refused = smtp.send_message(message, from_addr=sender, to_addrs=recipients)
    except (smtplib.SMTPException, OSError) as exc:
        logger.error(
            "SMTP delivery via %s:%s failed: %s",
            settings.smtp_host,
            settings.smtp_port,
            exc,
        )
        raise MailDeliveryError(str(exc)) from exc

    # send_message only returns refusals when at least one recipient was accepted
    if refused:
        logger.warning("SMTP server refused some recipients: %s", sorted(refused))

    logger.info(
        "Delivered message %r to %d recipient(s)",
        request.title,
        len(recipients) - len(refused or {}),
    )
