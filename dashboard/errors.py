"""Error taxonomy for fetch failures and client-side validation."""

from typing import Optional


class DashboardError(Exception):
    """Base class for all dashboard client errors."""


class FetchError(DashboardError):
    """Network call failed before a usable response arrived."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class FetchTimeout(FetchError):
    """Request exceeded the configured timeout."""


class HttpError(FetchError):
    """Backend answered with a non-2xx status."""

    def __init__(self, status: int, body: str = "", path: Optional[str] = None):
        super().__init__(f"HTTP {status}", path=path)
        self.status = status
        self.body = body


class DecodeError(FetchError):
    """Response was not JSON or could not be parsed."""


class ValidationError(DashboardError):
    """Form input rejected before submission."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field
