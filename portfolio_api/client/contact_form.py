"""
Client-side contact form flow.

Mirrors what the portfolio page does in the browser: keep the three fields,
check them with the same rules the API uses, post them once, and tell the
user how it went. The local checks only save a round trip; the API always
validates again.
"""

import json
import threading
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional

import httpx

from portfolio_api.core.logging import get_logger
from portfolio_api.schemas.contact import SubmissionInvalid, validate_submission

logger = get_logger(__name__)

CONTACT_ENDPOINT = "/api/contact"

SUCCESS_TITLE = "Message Sent!"
SUCCESS_DESCRIPTION = "Thanks for reaching out. I'll get back to you soon."
FAILURE_TITLE = "Uh oh! Something went wrong."
FALLBACK_FAILURE_DESCRIPTION = (
    "There was a problem sending your message. Please try again."
)


@dataclass(frozen=True)
class Notification:
    """A toast shown to the user."""

    title: str
    description: str
    variant: str = "default"  # "default" or "destructive"


Notifier = Callable[[Notification], None]


@dataclass
class FormOutcome:
    """Result of a submit attempt."""

    ok: bool
    status_code: Optional[int] = None
    message: Optional[str] = None
    field_errors: Dict[str, str] = field(default_factory=dict)
    sent: bool = False


def _field_errors(issues) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    for issue in issues or []:
        path = issue.get("path") if isinstance(issue, dict) else None
        if path:
            errors.setdefault(str(path[0]), str(issue.get("message", "")))
    return errors


class ContactForm:
    """Contact form state plus the submit action."""

    def __init__(
        self,
        client: httpx.Client,
        notify: Notifier,
        endpoint: str = CONTACT_ENDPOINT,
    ):
        self.client = client
        self.notify = notify
        self.endpoint = endpoint
        self.name = ""
        self.email = ""
        self.message = ""
        self._in_flight = threading.Lock()

    @property
    def submitting(self) -> bool:
        """True while a request is awaiting its response."""
        return self._in_flight.locked()

    def values(self) -> Dict[str, str]:
        return {"name": self.name, "email": self.email, "message": self.message}

    def errors(self) -> Dict[str, str]:
        """Field name to message for every field that would be rejected."""
        try:
            validate_submission(self.values())
        except SubmissionInvalid as e:
            return _field_errors(e.issues)
        return {}

    def reset(self) -> None:
        self.name = ""
        self.email = ""
        self.message = ""

    def submit(self) -> FormOutcome:
        """
        Validate locally, then post the form once.

        The form is locked while the request is in flight; a submit during
        that window is refused without sending anything. Fields are cleared
        only after a successful response.
        """
        field_errors = self.errors()
        if field_errors:
            return FormOutcome(ok=False, field_errors=field_errors)

        if not self._in_flight.acquire(blocking=False):
            return FormOutcome(ok=False, message="A submission is already in progress.")

        try:
            response = self.client.post(self.endpoint, json=self.values())
        except httpx.HTTPError as e:
            logger.warning(
                json.dumps(
                    {
                        "event": "contact_form_network_error",
                        "error_type": type(e).__name__,
                        "error": str(e),
                    }
                )
            )
            return self._failed(None, None, {})
        finally:
            self._in_flight.release()

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        if response.is_success:
            self.reset()
            self.notify(Notification(SUCCESS_TITLE, SUCCESS_DESCRIPTION))
            return FormOutcome(
                ok=True,
                status_code=response.status_code,
                message=body.get("message"),
                sent=True,
            )

        return self._failed(
            response.status_code, body.get("error"), _field_errors(body.get("issues"))
        )

    def _failed(
        self,
        status_code: Optional[int],
        server_error: Optional[str],
        field_errors: Dict[str, str],
    ) -> FormOutcome:
        description = server_error or FALLBACK_FAILURE_DESCRIPTION
        self.notify(Notification(FAILURE_TITLE, description, variant="destructive"))
        return FormOutcome(
            ok=False,
            status_code=status_code,
            message=description,
            field_errors=field_errors,
            sent=status_code is not None,
        )
