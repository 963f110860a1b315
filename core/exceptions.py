"""Custom exception hierarchy for the ERPNext API tester."""


class ProxyError(Exception):
    """Base exception for all proxy errors."""


class ConfigurationError(ProxyError):
    """Raised when configuration is missing or invalid."""


class InvalidTargetError(ProxyError):
    """Raised when the target header is not an absolute http(s) URL."""

    def __init__(self, target: str) -> None:
        super().__init__(f"Invalid target URL: {target!r}")
        self.target = target


class UpstreamError(ProxyError):
    """Raised when the upstream ERPNext host cannot be reached.

    Attributes:
        message: Error message
        target: Upstream origin the request was aimed at
    """

    def __init__(self, message: str, target: str | None = None) -> None:
        super().__init__(message)
        self.target = target


class UpstreamTimeoutError(UpstreamError):
    """Raised when an upstream request times out."""


class UpstreamConnectionError(UpstreamError):
    """Raised when unable to connect to the upstream host."""


class ComposerError(ProxyError):
    """A composed request is missing required input."""


class InvalidJSON(ComposerError):
    """Request body is not valid JSON."""
