"""Custom exception classes for the admin API."""

from typing import Any, Dict, Optional


class APIException(Exception):
    """Base exception for all API errors."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        code: Optional[str] = None,
        detail: Optional[Any] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.code = code or self.__class__.__name__
        self.detail = detail
        super().__init__(self.message)

    def to_dict(self, request_id: Optional[str] = None) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON response."""
        error: Dict[str, Any] = {
            "code": self.code,
            "message": self.message,
            "requestId": request_id,
        }
        if self.detail is not None:
            error["detail"] = self.detail
        return {"error": error}


class BadRequestError(APIException):
    """Exception raised for malformed or missing input."""

    def __init__(
        self,
        message: str = "Bad request",
        detail: Optional[Any] = None,
        code: str = "BAD_REQUEST",
    ):
        super().__init__(
            message=message,
            status_code=400,
            code=code,
            detail=detail,
        )


class UnsupportedSourceError(BadRequestError):
    """Exception raised when a source table is outside the allow-list."""

    def __init__(self, source_table: Optional[str] = None):
        super().__init__(
            message="Unsupported source_table",
            detail={"source_table": source_table} if source_table else None,
        )


class InvalidStatusError(BadRequestError):
    """Exception raised when a status code is not in the status registry."""

    def __init__(self, status: Optional[str], field: str = "status"):
        self.status = status
        super().__init__(
            message=f"Invalid {field}: {status!r}",
            detail={"field": field, "value": status},
            code="INVALID_STATUS",
        )


class AuthenticationError(APIException):
    """Exception raised for authentication failures."""

    def __init__(
        self,
        message: str = "Invalid token",
        detail: Optional[Any] = None,
        code: str = "INVALID_TOKEN",
    ):
        super().__init__(
            message=message,
            status_code=401,
            code=code,
            detail=detail,
        )


class AuthorizationError(APIException):
    """Exception raised for authorization failures."""

    def __init__(
        self,
        message: str = "Insufficient permissions",
        detail: Optional[Any] = None,
    ):
        super().__init__(
            message=message,
            status_code=403,
            code="FORBIDDEN",
            detail=detail,
        )


class NotFoundError(APIException):
    """Exception raised when a resource is not found."""

    def __init__(
        self,
        resource: str = "Resource",
        resource_id: Optional[str] = None,
        detail: Optional[Any] = None,
    ):
        message = f"{resource} not found"
        if resource_id:
            message += f" with id: {resource_id}"
        super().__init__(
            message=message,
            status_code=404,
            code="NOT_FOUND",
            detail=detail,
        )


class DatabaseError(APIException):
    """Exception raised when a data-store call fails."""

    def __init__(
        self,
        message: str = "Database operation failed",
        detail: Optional[Any] = None,
    ):
        super().__init__(
            message=message,
            status_code=500,
            code="STORAGE_ERROR",
            detail=detail,
        )


class ExternalServiceError(APIException):
    """Exception raised when external service calls fail."""

    def __init__(
        self,
        service: str,
        message: Optional[str] = None,
        status_code: int = 502,
        detail: Optional[str] = None,
    ):
        self.service = service
        error_message = message or f"External service '{service}' unavailable"
        error_detail: Dict[str, Any] = {"service": service}
        if detail:
            error_detail["detail"] = detail
        super().__init__(
            message=error_message,
            status_code=status_code,
            code="EXTERNAL_SERVICE_ERROR",
            detail=error_detail,
        )


class IdentityProvisionError(APIException):
    """Exception raised when an identity-provider account cannot be provisioned."""

    def __init__(
        self,
        message: str = "Failed to provision Auth0 user for invite",
        detail: Optional[Any] = None,
    ):
        super().__init__(
            message=message,
            status_code=500,
            code="AUTH0_PROVISION_FAILED",
            detail=detail,
        )
