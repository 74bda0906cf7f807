"""
MIME message construction for outbound mail.

A request without attachments becomes a single text/plain part. With
attachments the message is promoted to multipart/mixed: the body text is the
first part and every attachment follows as a base64-encoded part carrying
its filename. Boundary generation and header encoding are left to the
standard library's email package.
"""

import mimetypes
from email.message import EmailMessage

from mailrelay.models.send_request import Attachment, SendRequest

_FALLBACK_CONTENT_TYPE = "application/octet-stream"

# Attachment bytes are opaque; these maintypes would make the email package
# try to parse them as nested messages.
_CONTAINER_MAINTYPES = {"multipart", "message"}


def resolve_content_type(attachment: Attachment) -> str:
    """
    Return the MIME type for an attachment.

    Priority:
      1. explicit content_type on the attachment
      2. guess from the filename extension
      3. application/octet-stream
    """
    # Parameters such as "; charset=..." are dropped; the bytes are sent as-is.
    content_type = (attachment.content_type or "").split(";", 1)[0].strip().lower()
    if not content_type:
        content_type, _ = mimetypes.guess_type(attachment.filename)
    if not content_type or "/" not in content_type:
        return _FALLBACK_CONTENT_TYPE

    maintype = content_type.split("/", 1)[0]
    if maintype in _CONTAINER_MAINTYPES:
        return _FALLBACK_CONTENT_TYPE
    return content_type


def envelope_recipients(request: SendRequest) -> list[str]:
    """All RCPT TO addresses (to, cc, then bcc) with duplicates removed."""
    seen: set = set()
    recipients: list[str] = []
    for addr in request.to + request.cc + request.bcc:
        key = addr.lower()
        if key not in seen:
            seen.add(key)
            recipients.append(addr)
    return recipients


def build_message(request: SendRequest, default_sender: str) -> EmailMessage:
    """
    Compose the MIME message for a send request.

    The Bcc header is set on the message so callers can inspect it, but
    smtplib.SMTP.send_message never transmits it.

    Args:
        request: validated send request
        default_sender: From address used when the request leaves it empty

    Returns:
        EmailMessage ready for smtplib.SMTP.send_message
    """
    message = EmailMessage()
    message["Subject"] = request.title
    message["From"] = request.from_ or default_sender
    if request.to:
        message["To"] = ", ".join(request.to)
    if request.cc:
        message["Cc"] = ", ".join(request.cc)
    if request.bcc:
        message["Bcc"] = ", ".join(request.bcc)

    message.set_content(request.body)

    for attachment in request.attachments:
        maintype, subtype = resolve_content_type(attachment).split("/", 1)
        message.add_attachment(
            attachment.content,
            maintype=maintype,
            subtype=subtype,
            filename=attachment.filename,
        )

    return message
