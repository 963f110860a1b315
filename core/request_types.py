"""Shared request data types."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class ApiCredentials:
    """ERPNext API key pair."""

    api_key: str
    api_secret: str

    def authorization(self) -> str:
        return f"token {self.api_key}:{self.api_secret}"

    @property
    def complete(self) -> bool:
        return bool(self.api_key and self.api_secret)


@dataclass(frozen=True)
class ForwardingRequest:
    """A request aimed at the proxy, ready to be sent."""

    method: str
    path: str
    target: str
    headers: dict[str, str] = field(default_factory=dict)
    query: str = ""
    body: bytes | None = None


@dataclass(frozen=True)
class PreparedForward:
    """Prepared data for an upstream request."""

    method: str
    target: str
    url: str
    headers: list[tuple[bytes, bytes]]
    body: bytes | None


@dataclass(frozen=True)
class ComposerResult:
    """Outcome of a composed request as seen by the caller."""

    success: bool
    status: int | None = None
    data: object = None
    error: str | None = None
