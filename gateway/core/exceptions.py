from fastapi import status
from typing import Any, List, Optional


class APIError(Exception):
    """Error carrying the HTTP status and whether its message is safe to show."""

    def __init__(
        self,
        status_code: int,
        message: str,
        errors: Optional[List[Any]] = None,
        is_operational: bool = True,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.errors = errors or []
        self.is_operational = is_operational


class ValidationFailed(APIError):
    def __init__(self, message: str = "Validation failed", errors: Optional[List[Any]] = None):
        super().__init__(status.HTTP_400_BAD_REQUEST, message, errors)


class NotAuthenticated(APIError):
    def __init__(self, message: str = "Access token required"):
        super().__init__(status.HTTP_401_UNAUTHORIZED, message)


class InvalidCredentials(APIError):
    def __init__(self):
        super().__init__(status.HTTP_401_UNAUTHORIZED, "Invalid credentials")


class RegistrationFailed(APIError):
    def __init__(self):
        super().__init__(status.HTTP_400_BAD_REQUEST, "Registration failed")


class ProductNotFound(APIError):
    def __init__(self):
        super().__init__(status.HTTP_404_NOT_FOUND, "Product not found")


class BlogPostNotFound(APIError):
    def __init__(self):
        super().__init__(status.HTTP_404_NOT_FOUND, "Blog post not found")


class BackendError(APIError):
    """The content backend was unreachable or answered with something unusable."""

    def __init__(self, message: str = "Content backend request failed"):
        super().__init__(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            message,
            is_operational=False,
        )
