class AppError(Exception):
    """Base class for all application exceptions."""

    code = "internal_error"

    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class ResourceNotFoundError(AppError):
    """Raised when a request, faculty member or department id is unknown."""

    code = "not_found"

    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            f"{resource_type} with id {resource_id} not found",
            status_code=404,
            details={"resource_type": resource_type, "resource_id": resource_id},
        )


class InvalidRequestError(AppError):
    code = "invalid_request"

    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=400, details=details)


class RearrangementConflictError(AppError):
    """Raised when a live request already exists or a substitute would be double-booked."""

    code = "conflict"

    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=409, details=details)


class SubstituteUnavailableError(AppError):
    """Raised when the chosen substitute is not free for the requested period."""

    code = "unavailable"

    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=409, details=details)


class AlreadyResolvedError(AppError):
    """Raised when responding to a request that is no longer pending."""

    code = "already_resolved"

    def __init__(self, request_id: str, current_status: str):
        super().__init__(
            f"Rearrangement request {request_id} is already {current_status}",
            status_code=409,
            details={"request_id": request_id, "status": current_status},
        )


class ForbiddenActionError(AppError):
    code = "forbidden"

    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=403, details=details)


class InfrastructureUnavailableError(AppError):
    """Raised when the backing store cannot be reached. Safe for the caller to retry."""

    code = "infrastructure_unavailable"

    def __init__(self, message: str = "Storage backend is unavailable"):
        super().__init__(message, status_code=503, details={"retryable": True})
