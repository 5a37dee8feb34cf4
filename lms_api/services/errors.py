"""Service-level error taxonomy.

Services raise these; routers translate them into HTTP responses at the
request boundary (see lms_api/api/errors.py).  Nothing below the router
layer knows about status codes.
"""

from __future__ import annotations


class ServiceError(Exception):
    """Base class.  ``message`` is safe to show to API clients."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(ServiceError):
    """Missing or malformed input."""


class AuthorizationError(ServiceError):
    """Caller's identity does not match the resource owner."""


class NotFoundError(ServiceError):
    """No record exists where one was expected."""


class ConflictError(ServiceError):
    """A catalog document changed between read and write."""


class StoreError(ServiceError):
    """The document store failed; ``detail`` carries the raw cause."""

    def __init__(self, message: str, detail: str | None = None) -> None:
        super().__init__(message)
        self.detail = detail


class VersionConflict(Exception):
    """A conditional write found a different version than expected.

    Raised by document stores; callers either re-apply their change
    (progress recorder) or surface a ConflictError (catalog services).
    """

    def __init__(self, collection: str, key: str, expected: int | None) -> None:
        super().__init__(
            f"version conflict on {collection}/{key} (expected {expected})"
        )
        self.collection = collection
        self.key = key
        self.expected = expected
