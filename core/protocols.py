"""Shared protocol definitions."""

from typing import Protocol


class RequestLogger(Protocol):
    """Protocol for request logging (Dashboard)."""

    def log_forward(
        self,
        method: str,
        target: str,
        url: str,
        headers: dict[str, str],
    ) -> None: ...
    def log_response(
        self,
        method: str,
        target: str,
        url: str,
        status: int,
        elapsed_ms: float,
    ) -> None: ...
    def log_error(self, target: str, status: int, message: str) -> None: ...
