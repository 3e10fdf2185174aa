"""Custom exception hierarchy for jobchat.

Every error carries a stable ``code`` so the inbound service layer can hand
callers a typed payload instead of a stack trace.
"""

from __future__ import annotations


class JobChatError(Exception):
    """Base exception for all jobchat errors."""

    code: str = "internal"

    def __init__(self, message: str, details: str | None = None) -> None:
        """Initialize with a human-readable message and optional diagnostics."""
        super().__init__(message)
        self.message = message
        self.details = details

    def to_payload(self) -> dict[str, object]:
        """Return the caller-facing error payload."""
        return {"code": self.code, "message": self.message, "details": self.details}


class InvalidArgumentError(JobChatError):
    """Raised when caller input is missing or malformed."""

    code = "invalid-argument"


class NotFoundError(JobChatError):
    """Raised when a referenced document does not exist."""

    code = "not-found"

    def __init__(self, collection: str, doc_id: str) -> None:
        """Initialize with the collection and id that failed to resolve."""
        super().__init__(f"{_ENTITY_NAMES.get(collection, collection)} with ID {doc_id} not found.")
        self.collection = collection
        self.doc_id = doc_id


class AlreadyExistsError(JobChatError):
    """Raised when a create-if-absent write hits an existing document."""

    code = "already-exists"


class FailedPreconditionError(JobChatError):
    """Raised when a conditional write finds the document in the wrong state."""

    code = "failed-precondition"


class PromptCompilationError(JobChatError):
    """Raised when context documents cannot be rendered into a system instruction."""

    code = "prompt-compilation"


class UpstreamUnavailableError(JobChatError):
    """Raised when the completion service fails or returns nothing usable."""

    code = "unavailable"


class UpstreamTimeoutError(UpstreamUnavailableError):
    """Raised when a completion call exceeds its time budget."""

    code = "deadline-exceeded"


class MalformedReportError(JobChatError):
    """Raised when report output does not follow the three-section contract."""

    code = "malformed-report"


class SchemaValidationError(JobChatError):
    """Raised when extracted JSON fails validation against its target schema."""

    code = "schema-validation"

    def __init__(self, violations: list[tuple[str, str]]) -> None:
        """Initialize with (path, message) pairs for every violation."""
        summary = "; ".join(f"{path}: {message}" for path, message in violations[:5])
        super().__init__(f"Extracted data failed schema validation ({summary})")
        self.violations = violations

    def to_payload(self) -> dict[str, object]:
        """Include the violation list in the payload."""
        payload = super().to_payload()
        payload["violations"] = [
            {"path": path, "message": message} for path, message in self.violations
        ]
        return payload


class InternalError(JobChatError):
    """Raised for failures that fit no other category."""

    code = "internal"


_ENTITY_NAMES: dict[str, str] = {
    "orgs": "Organization",
    "jobs": "Job",
    "candidates": "Candidate",
    "applications": "Application",
    "reports": "Report",
}
