"""
Platform-wide exception hierarchy.

Services raise these types; the HTTP layer maps them to status codes once,
in ``scholarhub.utils.errors.init_error_handlers``.

Usage:
    from scholarhub.core.exceptions import NotFoundError, ConflictError

    raise NotFoundError(resource="Scholar", resource_id=scholar_id)
    raise ConflictError("Invitation", "email", email)
    raise BadRequestError("Maximum resend limit reached for this invitation")
"""


class NotFoundError(Exception):
    """Raised when a requested resource does not exist or is not owned by the caller.

    Ownership failures use the same error as missing rows so a caller cannot
    probe for records belonging to someone else.

    Args:
        resource: Human-readable entity name (e.g. "Scholar", "Goal").
        resource_id: The key that was looked up. Included in logs and message.
        message: Optional override for the human-readable message.
    """

    def __init__(
        self,
        resource: str,
        resource_id: str | None = None,
        message: str | None = None,
    ) -> None:
        self.resource = resource
        self.resource_id = resource_id
        if message is None:
            message = f"{resource}"
            if resource_id is not None:
                message += f" with ID {resource_id}"
            message += " not found"
        super().__init__(message)


class ConflictError(Exception):
    """Raised when an operation would duplicate an existing resource.

    Maps to HTTP 409.

    Args:
        resource: Model name.
        field: The unique field that would be duplicated.
        value: The conflicting value.
        message: Optional override for the human-readable message.
    """

    def __init__(
        self,
        resource: str,
        field: str,
        value: str | None = None,
        message: str | None = None,
    ) -> None:
        self.resource = resource
        self.field = field
        self.value = value
        super().__init__(message or f"{resource} with {field}={value!r} already exists")


class BadRequestError(Exception):
    """Raised when a well-formed request violates a state rule.

    Examples: resending a cancelled invitation, exceeding the resend limit.
    Maps to HTTP 400.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)


class ValidationError(Exception):
    """Raised at the HTTP boundary when input has the wrong shape.

    Maps to HTTP 400.

    Args:
        message: Human-readable explanation of what failed.
        details: Optional field-level breakdown; keys are field names.
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)


class UnauthorizedError(Exception):
    """No session, or the session token could not be verified. HTTP 401."""

    def __init__(self, message: str = "User not authenticated") -> None:
        super().__init__(message)


class ForbiddenError(Exception):
    """Authenticated, but not allowed to use this endpoint. HTTP 403."""

    def __init__(self, message: str = "Access restricted to staff members only") -> None:
        super().__init__(message)
