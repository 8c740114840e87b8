from fastapi import HTTPException, status


class NotFoundError(HTTPException):
    def __init__(self, detail: str = "Resource not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class ForbiddenError(HTTPException):
    def __init__(self, detail: str = "Access denied"):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class ConflictError(HTTPException):
    def __init__(self, detail: str = "Conflict"):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class BadRequestError(HTTPException):
    def __init__(self, detail: str = "Bad request"):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class UnauthorizedError(HTTPException):
    def __init__(self, detail: str = "Not authenticated"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class InvalidStatusTransitionError(BadRequestError):
    def __init__(self, current: str, requested: str, allowed: set[str]):
        allowed_str = ", ".join(sorted(allowed)) if allowed else "none"
        super().__init__(
            detail=(
                f"Invalid status transition from '{current}' to '{requested}'. "
                f"Allowed transitions: {allowed_str}"
            )
        )


class PaymentGatewayError(HTTPException):
    def __init__(self, detail: str = "Payment gateway unavailable"):
        super().__init__(status_code=status.HTTP_502_BAD_GATEWAY, detail=detail)


class ServiceUnavailableError(HTTPException):
    def __init__(self, detail: str = "Service temporarily unavailable"):
        super().__init__(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=detail)


def ensure_owner(caller_id, user_id) -> None:
    """Reject mutations on another user's resources."""
    if caller_id != user_id:
        raise ForbiddenError("You are not allowed to access this resource")
