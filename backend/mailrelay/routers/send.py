"""
Send router.

Endpoints:
  POST /send  — relay a JSON email request through the configured SMTP account

The body is decoded as JSON whatever Content-Type the caller sends, so
``curl -d '{...}'`` (form-encoded by default) works the same as a request
with ``Content-Type: application/json``.
"""

import json
import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from mailrelay.config import Settings
from mailrelay.models.send_request import ErrorResponse, SendRequest, SendResponse
from mailrelay.services.smtp_sender import InvalidMessageError, MailDeliveryError, send_mail

logger = logging.getLogger(__name__)

router = APIRouter()


def get_settings(request: Request) -> Settings:
    """Return the Settings object the application was created with."""
    return request.app.state.settings


def format_validation_errors(errors: list) -> str:
    """
    Flatten pydantic / FastAPI validation errors into one line, e.g.

        attachments.0.content: Value error, content is not valid base64
    """
    messages = []
    for err in errors:
        loc = ".".join(str(part) for part in err.get("loc", ()))
        msg = err.get("msg", "invalid value")
        messages.append(f"{loc}: {msg}" if loc else msg)
    return "; ".join(messages) or "invalid request body"


def parse_send_request(raw: bytes) -> SendRequest:
    """
    Decode a raw request body into a SendRequest.

    A JSON ``null`` body is treated like ``{}``.

    Raises:
        HTTPException: 400 if the body is not JSON or fails validation
    """
    try:
        data = json.loads(raw)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=f"invalid JSON body: {exc}")

    if data is None:
        data = {}
    try:
        return SendRequest.model_validate(data)
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=format_validation_errors(exc.errors()))


@router.post(
    "/send",
    response_model=SendResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def send(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> SendResponse:
    """
    Relay one email.

    The blocking SMTP exchange runs in the threadpool so each request is
    handled independently of the event loop.
    """
    payload = parse_send_request(await request.body())
    logger.info("send mail: %s", payload)

    try:
        await run_in_threadpool(send_mail, settings, payload)
    except InvalidMessageError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except MailDeliveryError as exc:
        raise HTTPException(status_code=500, detail=str(exc))

    return SendResponse()
