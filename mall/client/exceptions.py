from typing import Optional


class ApiError(Exception):
    """Non-2xx JSON response from the API."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ApiAuthenticationError(ApiError):
    def __init__(self, message: str = "Unauthorized", status_code: int = 401):
        super().__init__(message, status_code)


class ApiConfigurationError(ApiError):
    """The server answered with something other than JSON, usually a wrong base URL."""
