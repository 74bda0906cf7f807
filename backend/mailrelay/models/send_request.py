"""
Pydantic models for the /send endpoint.

Models:
  Attachment     — a single file to attach, decoded to raw bytes
  SendRequest    — inbound JSON body for POST /send
  SendResponse   — success body
  ErrorResponse  — error body shared by every failure path
"""

import base64
import binascii
from email import policy
from email.errors import HeaderParseError
from typing import Optional

from pydantic import BaseModel, Field, field_validator


def _require_utf8(value: str) -> str:
    # JSON can carry lone surrogates ("\ud800") that cannot be encoded on the wire.
    try:
        value.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise ValueError("text must be valid unicode") from exc
    return value


def _reject_header_breaks(value: str) -> str:
    _require_utf8(value)
    # Any separator str.splitlines() honours (CR, LF, VT, FF, NEL, U+2028, ...)
    # would let a caller inject extra headers.
    if value and value.splitlines() != [value]:
        raise ValueError("header values may not contain line break characters")
    return value


def _parse_address(value: str) -> str:
    """
    Check that ``value`` is exactly one address the email package can render,
    e.g. ``bob@example.com`` or ``Bob <bob@example.com>``.
    """
    _reject_header_breaks(value)
    try:
        header = policy.default.header_factory("To", value)
        addresses = header.addresses
        header.fold(policy=policy.SMTP)
    except (HeaderParseError, IndexError, ValueError) as exc:
        raise ValueError(f"invalid email address {value!r}") from exc
    if len(addresses) != 1 or not addresses[0].addr_spec:
        raise ValueError(f"expected exactly one email address, got {value!r}")
    return value


class Attachment(BaseModel):
    """
    A single file attachment.

    ``content`` arrives as a base64 string (the same encoding Go's JSON
    marshaller uses for byte slices) and is decoded during validation.
    """

    filename: str = "attachment"
    content: bytes = b""
    content_type: Optional[str] = None  # guessed from filename when omitted

    @field_validator("content", mode="before")
    @classmethod
    def _decode_base64(cls, value):
        if value is None:
            return b""
        if isinstance(value, (bytes, bytearray)):
            return bytes(value)
        if isinstance(value, str):
            try:
                return base64.b64decode(value, validate=True)
            except binascii.Error as exc:
                raise ValueError(f"content is not valid base64: {exc}") from exc
        return value

    @field_validator("filename", "content_type")
    @classmethod
    def _no_header_breaks(cls, value):
        if value is None:
            return value
        return _reject_header_breaks(value)


class SendRequest(BaseModel):
    """
    Inbound JSON body for POST /send.

    Every field is optional: missing keys and explicit ``null`` fall back to
    an empty string or empty list. Unknown keys are ignored.
    """

    model_config = {"extra": "ignore", "populate_by_name": True}

    from_: str = Field("", alias="from")
    to: list[str] = []
    cc: list[str] = []
    bcc: list[str] = []
    title: str = ""
    body: str = ""
    attachments: list[Attachment] = []

    @field_validator("from_", "title", "body", mode="before")
    @classmethod
    def _null_to_empty_str(cls, value):
        return "" if value is None else value

    @field_validator("to", "cc", "bcc", "attachments", mode="before")
    @classmethod
    def _null_to_empty_list(cls, value):
        return [] if value is None else value

    @field_validator("from_")
    @classmethod
    def _sender(cls, value: str) -> str:
        return _parse_address(value) if value else value

    @field_validator("body")
    @classmethod
    def _body_text(cls, value: str) -> str:
        return _require_utf8(value)

    @field_validator("title")
    @classmethod
    def _header_field(cls, value: str) -> str:
        return _reject_header_breaks(value)

    @field_validator("to", "cc", "bcc")
    @classmethod
    def _address_list(cls, value: list[str]) -> list[str]:
        return [_parse_address(addr.strip()) for addr in value if addr.strip()]

    def __str__(self) -> str:
        return (
            f"From: {self.from_} | To: {self.to} | "
            f"Title: {self.title} | Body: {self.body}"
        )


class SendResponse(BaseModel):
    status: str = "ok"


class ErrorResponse(BaseModel):
    error: str
