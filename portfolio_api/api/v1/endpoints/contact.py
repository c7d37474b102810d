"""
Contact form endpoint.
"""

import asyncio
import html
import json
import time

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from portfolio_api.core.config import settings
from portfolio_api.core.logging import get_logger
from portfolio_api.core.timing import record_timing
from portfolio_api.schemas.contact import (
    ContactAccepted,
    ContactFailed,
    ContactRejected,
    ContactSubmission,
    SubmissionInvalid,
    validate_submission,
)
from portfolio_api.services.email_service import (
    EmailDeliveryError,
    MailMessage,
    email_service,
)

logger = get_logger(__name__)
router = APIRouter()

SUCCESS_MESSAGE = "Message received successfully!"
INVALID_INPUT_ERROR = "Invalid input."
DELIVERY_FAILED_ERROR = (
    "Sorry, your message could not be sent. "
    "Please try again later or email me directly."
)
UNEXPECTED_ERROR = "An unexpected error occurred."


def build_contact_message(submission: ContactSubmission) -> MailMessage:
    """Turn a validated submission into the email sent to the site owner."""
    name = submission.name
    email = str(submission.email)
    message = submission.message

    text = (
        "You have a new message from your portfolio contact form.\n\n"
        f"Name: {name}\n"
        f"Email: {email}\n\n"
        "Message:\n"
        f"{message}\n"
    )

    safe_message = html.escape(message).replace("\r\n", "\n").replace("\n", "<br>")
    body_html = (
        "<h2>New portfolio contact message</h2>"
        f"<p><strong>Name:</strong> {html.escape(name)}</p>"
        f"<p><strong>Email:</strong> {html.escape(email)}</p>"
        "<p><strong>Message:</strong></p>"
        f"<p>{safe_message}</p>"
    )

    # Header values may not contain line breaks
    subject_name = " ".join(name.split())

    return MailMessage(
        to=settings.contact_recipient or "",
        subject=f"New portfolio message from {subject_name}",
        text=text,
        html=body_html,
        reply_to=email,
    )


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@router.post(
    "",
    response_model=ContactAccepted,
    status_code=status.HTTP_200_OK,
    responses={
        400: {"model": ContactRejected, "description": "Validation failed"},
        500: {"model": ContactFailed, "description": "Delivery or server error"},
    },
    openapi_extra={
        "requestBody": {
            "required": True,
            "content": {
                "application/json": {"schema": ContactSubmission.model_json_schema()}
            },
        }
    },
)
async def submit_contact(request: Request):
    """
    Submit a contact form message.

    The body is validated field by field; every violation is returned at once
    with a 400. A valid submission is emailed to the site owner with a single
    delivery attempt. Delivery problems are reported with a generic 500 and
    never expose transport details.
    """
    try:
        payload = json.loads(await request.body())
    except (ValueError, UnicodeDecodeError, RecursionError) as e:
        logger.warning(
            json.dumps(
                {
                    "event": "contact_malformed_body",
                    "error_type": type(e).__name__,
                    "error": str(e),
                }
            )
        )
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, UNEXPECTED_ERROR)
    except Exception:
        logger.exception(json.dumps({"event": "contact_unexpected_error"}))
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, UNEXPECTED_ERROR)

    if not isinstance(payload, dict):
        logger.warning(
            json.dumps(
                {
                    "event": "contact_malformed_body",
                    "error": f"expected object, got {type(payload).__name__}",
                }
            )
        )
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, UNEXPECTED_ERROR)

    try:
        submission = validate_submission(payload)
        mail = build_contact_message(submission)
    except SubmissionInvalid as e:
        logger.info(
            json.dumps(
                {
                    "event": "contact_rejected",
                    "fields": [issue["path"] for issue in e.issues],
                }
            )
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": INVALID_INPUT_ERROR, "issues": e.issues},
        )
    except Exception:
        logger.exception(json.dumps({"event": "contact_unexpected_error"}))
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, UNEXPECTED_ERROR)

    started = time.perf_counter()
    try:
        result = await asyncio.to_thread(email_service.send, mail)
    except EmailDeliveryError as e:
        logger.error(
            json.dumps(
                {
                    "event": "contact_delivery_failed",
                    "reply_to": str(submission.email),
                    "error_type": type(e).__name__,
                    "cause": repr(e.__cause__) if e.__cause__ else None,
                }
            )
        )
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, DELIVERY_FAILED_ERROR)
    except Exception:
        logger.exception(json.dumps({"event": "contact_unexpected_error"}))
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, UNEXPECTED_ERROR)
    finally:
        record_timing(
            request, "mail", (time.perf_counter() - started) * 1000, "Mail delivery"
        )

    logger.info(
        json.dumps(
            {
                "event": "contact_accepted",
                "reply_to": str(submission.email),
                "message_id": result.message_id,
                "simulated": result.simulated,
            }
        )
    )
    return ContactAccepted(message=SUCCESS_MESSAGE)
