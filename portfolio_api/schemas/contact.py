"""
Schemas and validation for the contact form.

The same rules back the server endpoint and the client-side form, so a
submission accepted in the browser is accepted by the API and vice versa.
"""

from typing import Any, Dict, List, Mapping, Union

from pydantic import BaseModel, ConfigDict, EmailStr, Field, ValidationError

NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 100
MESSAGE_MIN_LENGTH = 10
MESSAGE_MAX_LENGTH = 1000

# Human-readable reasons keyed by (field, pydantic error type)
_FIELD_MESSAGES: Dict[tuple, str] = {
    ("name", "string_too_short"): f"Name must be at least {NAME_MIN_LENGTH} characters.",
    ("name", "string_too_long"): f"Name must be at most {NAME_MAX_LENGTH} characters.",
    ("email", "value_error"): "Please enter a valid email address.",
    (
        "message",
        "string_too_short",
    ): f"Message must be at least {MESSAGE_MIN_LENGTH} characters.",
    (
        "message",
        "string_too_long",
    ): f"Message must be at most {MESSAGE_MAX_LENGTH} characters.",
}

_TYPE_MESSAGES: Dict[str, str] = {
    "missing": "Required",
    "string_type": "Expected string",
    "model_type": "Expected object",
    "model_attributes_type": "Expected object",
}


class ContactSubmission(BaseModel):
    """A single contact form submission."""

    model_config = ConfigDict(extra="ignore")

    name: str = Field(
        ...,
        min_length=NAME_MIN_LENGTH,
        max_length=NAME_MAX_LENGTH,
        description="Sender's name",
    )
    email: EmailStr = Field(..., description="Sender's email address")
    message: str = Field(
        ...,
        min_length=MESSAGE_MIN_LENGTH,
        max_length=MESSAGE_MAX_LENGTH,
        description="Message content",
    )


class ContactIssue(BaseModel):
    """One field-level validation failure."""

    path: List[Union[str, int]] = Field(..., description="Path to the offending field")
    message: str = Field(..., description="Why the value was rejected")


class ContactAccepted(BaseModel):
    """Response body for a delivered submission."""

    message: str


class ContactRejected(BaseModel):
    """Response body for a submission that failed validation."""

    error: str
    issues: List[ContactIssue]


class ContactFailed(BaseModel):
    """Response body for delivery and unexpected failures."""

    error: str


class SubmissionInvalid(Exception):
    """Raised when a submission fails one or more field rules."""

    def __init__(self, issues: List[Dict[str, Any]]):
        fields = ", ".join(str(issue["path"][0]) for issue in issues if issue["path"])
        super().__init__(f"Invalid contact submission: {fields or 'body'}")
        self.issues = issues


def _issue_message(field: str, error_type: str, default: str) -> str:
    if (field, error_type) in _FIELD_MESSAGES:
        return _FIELD_MESSAGES[(field, error_type)]
    if error_type in _TYPE_MESSAGES:
        return _TYPE_MESSAGES[error_type]
    if field == "email":
        # EmailStr reports syntax problems under several error types
        return _FIELD_MESSAGES[("email", "value_error")]
    return default


def collect_issues(exc: ValidationError) -> List[Dict[str, Any]]:
    """
    Convert a pydantic ValidationError into a list of field issues.

    Every offending field is reported, one entry per field, in the order
    pydantic reports them.
    """
    issues: List[Dict[str, Any]] = []
    seen = set()
    for error in exc.errors():
        path = list(error.get("loc", ()))
        key = tuple(path[:1])
        if key in seen:
            continue
        seen.add(key)
        field = str(path[0]) if path else ""
        issues.append(
            {
                "path": path,
                "message": _issue_message(field, error["type"], error["msg"]),
            }
        )
    return issues


def validate_submission(data: Any) -> ContactSubmission:
    """
    Validate an untyped record and return a ContactSubmission.

    Args:
        data: Decoded request body (normally a dict from JSON)

    Returns:
        The validated submission with only name, email and message

    Raises:
        SubmissionInvalid: if any field breaks its rules
    """
    if not isinstance(data, Mapping):
        raise SubmissionInvalid([{"path": [], "message": "Expected object"}])
    try:
        return ContactSubmission.model_validate(dict(data))
    except ValidationError as exc:
        raise SubmissionInvalid(collect_issues(exc)) from exc
