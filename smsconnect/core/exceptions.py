"""Error types raised by channel clients and rule validation."""


class ChannelError(Exception):
    """Base class for outbound channel failures."""

    def __init__(self, message: str, body: str = ""):
        super().__init__(message)
        self.body = body

    @property
    def detail(self) -> str:
        """Text stored in the delivery log for this failure."""
        return self.body or str(self)


class InvalidCredentials(ChannelError):
    """Required credentials are missing; no request was attempted."""


class ApiError(ChannelError):
    """Provider answered with a non-2xx status."""

    def __init__(self, status_code: int, body: str):
        super().__init__(f"Provider returned HTTP {status_code}", body)
        self.status_code = status_code


class TransportError(ChannelError):
    """Network failure or timeout before a response was received."""


class RuleValidationError(ValueError):
    """A rule cannot be saved as submitted."""
