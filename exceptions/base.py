"""
Root of the storefront exception hierarchy.
"""


class StorefrontException(Exception):
    """
    Domain error raised by services and repositories.

    Routers never catch these. utils/error_handler.py turns any subclass into
    an HTTP response whose status depends on the exception type and whose
    body carries error_code, message and details.

    Attributes:
        message: Human-readable error message
        details: Context for API clients (ids, requested and available quantities, states)
    """

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    @property
    def error_code(self) -> str:
        return type(self).__name__

    def to_response_body(self) -> dict:
        return {
            "success": False,
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        context = ''.join(f", {key}={value!r}" for key, value in self.details.items())
        return f"{self.error_code}({self.message!r}{context})"
