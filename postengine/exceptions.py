"""
Exception Classes - Strongly typed exception hierarchy.

NO DICTIONARIES - All exceptions have typed attributes.
"""


class PostEngineError(Exception):
    """Base exception for all caption pipeline errors."""

    pass


class InvalidInputError(PostEngineError):
    """Raised when the generation request is malformed or empty."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(f"Invalid input: {message}")


class MediaTooLargeError(InvalidInputError):
    """Raised when an image or video frame payload exceeds the size limit."""

    def __init__(self, size: int, limit: int) -> None:
        self.size = size
        self.limit = limit
        super().__init__(f"Media payload too large ({size} chars, max {limit})")


class MissingIdentityError(PostEngineError):
    """Raised when the request carries no anonymous visitor token."""

    def __init__(self, cookie_name: str) -> None:
        self.cookie_name = cookie_name
        super().__init__(f"Missing anonymous identity cookie: {cookie_name}")


class CreditsExhaustedError(PostEngineError):
    """Raised when a free account cannot cover the generation cost."""

    def __init__(self, balance: int, required: int) -> None:
        self.balance = balance
        self.required = required
        super().__init__(f"Credits exhausted. Balance: {balance}, Required: {required}")


class StoreUnavailableError(PostEngineError):
    """Raised when the account store cannot be reached or times out."""

    def __init__(self, operation: str, message: str) -> None:
        self.operation = operation
        self.message = message
        super().__init__(f"Account store unavailable during {operation}: {message}")


class UpstreamTimeoutError(PostEngineError):
    """Raised when the model provider exceeds its deadline."""

    def __init__(self, call: str, timeout_seconds: float) -> None:
        self.call = call
        self.timeout_seconds = timeout_seconds
        super().__init__(f"Model call '{call}' timed out after {timeout_seconds}s")


class UpstreamError(PostEngineError):
    """Raised when the model provider returns a failure."""

    def __init__(self, call: str, message: str, status_code: int | None = None) -> None:
        self.call = call
        self.message = message
        self.status_code = status_code
        super().__init__(f"Model call '{call}' failed (status={status_code}): {message}")
