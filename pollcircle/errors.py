from flask import jsonify, g, current_app
from werkzeug.exceptions import HTTPException


class PollCircleError(Exception):
    """Base class for errors surfaced to the caller of a core operation."""

    code = "ERROR"
    status = 400
    message = "Request error"

    def __init__(self, message: str | None = None, details=None):
        super().__init__(message or self.message)
        self.message = message or self.message
        self.details = details


class ValidationError(PollCircleError):
    code = "VALIDATION_ERROR"
    status = 400
    message = "Validation error"


class InvalidOptionError(ValidationError):
    code = "INVALID_OPTION"
    message = "Option is not part of this poll"


class NotFoundError(PollCircleError):
    code = "NOT_FOUND"
    status = 404
    message = "Resource not found"


class ForbiddenError(PollCircleError):
    code = "FORBIDDEN"
    status = 403
    message = "Not a member of this community"


class ConflictError(PollCircleError):
    code = "CONFLICT"
    status = 409
    message = "Conflict"


class AlreadyMemberError(ConflictError):
    code = "ALREADY_MEMBER"
    message = "You are already a member of this community"


class DuplicateVoteError(ConflictError):
    code = "DUPLICATE_VOTE"
    message = "You have already voted in this poll"


class AlreadyResolvedError(ConflictError):
    code = "ALREADY_RESOLVED"
    message = "This poll has already been resolved"


class CodeGenerationExhaustedError(ConflictError):
    code = "CODE_GENERATION_EXHAUSTED"
    message = "Could not generate a unique join code"


class TransientStoreError(PollCircleError):
    """Store unavailable; safe for the caller to retry with backoff."""

    code = "STORE_UNAVAILABLE"
    status = 503
    message = "Storage temporarily unavailable"


class NotificationDispatchError(PollCircleError):
    """One failed notification send. Collected per recipient, never raised to voters."""

    code = "NOTIFICATION_DISPATCH_FAILED"
    status = 502
    message = "Notification could not be sent"

    def __init__(self, recipient: str, cause: Exception):
        super().__init__(f"Failed to notify {recipient}: {cause}")
        self.recipient = recipient
        self.cause = cause


def _payload(code: str, message: str, details=None, status=400):
    return (
        jsonify({
            "success": False,
            "error": {
                "code": code,
                "message": message,
                "details": details or None,
            },
            "request_id": getattr(g, "request_id", None),
        }),
        status,
    )


def register_error_handlers(app):
    @app.errorhandler(PollCircleError)
    def handle_domain_error(e: PollCircleError):
        if e.status >= 500:
            current_app.logger.warning("%s: %s", e.code, e.message)
        return _payload(e.code, e.message, details=e.details, status=e.status)

    # Generic HTTP errors (404, 403, 401, etc.)
    @app.errorhandler(HTTPException)
    def handle_http_exception(e: HTTPException):
        desc = e.description

        # If we pass structured error info via abort(description=dict)
        if isinstance(desc, dict):
            code = desc.get("code") or e.name.replace(" ", "_").upper()
            message = desc.get("message") or e.name
            details = desc.get("errors") or desc.get("details")
            return _payload(code=code, message=message, details=details, status=e.code or 400)

        return _payload(
            code=e.name.replace(" ", "_").upper(),
            message=desc or e.name,
            details=None,
            status=e.code or 400
        )

    @app.errorhandler(404)
    def handle_404(_):
        return _payload("NOT_FOUND", "Resource not found", status=404)

    @app.errorhandler(500)
    def handle_500(_):
        # Don't leak internals
        return _payload("INTERNAL_SERVER_ERROR", "An unexpected error occurred", status=500)
