"""Upstream target resolution from the target header."""

from collections.abc import Mapping
from dataclasses import dataclass

import httpx

from core.exceptions import InvalidTargetError


@dataclass(frozen=True)
class TargetDecision:
    """Resolved upstream origin for a request."""

    origin: str
    from_header: bool


class TargetResolver:
    """Decide which ERPNext origin a request should be forwarded to."""

    def __init__(self, default_target: str, target_header: str):
        self.default_target = default_target
        self.target_header = target_header

    def resolve(self, headers: Mapping[str, str]) -> TargetDecision:
        """Return the origin named by the target header, or the default."""
        raw = self._header_value(headers)
        if raw:
            return TargetDecision(origin=self._validate(raw), from_header=True)
        return TargetDecision(origin=self._validate(self.default_target), from_header=False)

    def upstream_url(self, origin: str, raw_path: str, query: str = "") -> str:
        """Join origin and inbound path; the path keeps its /api prefix."""
        if not raw_path.startswith("/"):
            raw_path = "/" + raw_path
        url = origin + raw_path
        if query:
            url += "?" + query
        return url

    def _header_value(self, headers: Mapping[str, str]) -> str:
        wanted = self.target_header.lower()
        for key, value in headers.items():
            if key.lower() == wanted:
                return value.strip()
        return ""

    @staticmethod
    def _validate(target: str) -> str:
        origin = target.strip().rstrip("/")
        try:
            url = httpx.URL(origin)
        except httpx.InvalidURL as e:
            raise InvalidTargetError(target) from e
        if url.scheme not in ("http", "https") or not url.host:
            raise InvalidTargetError(target)
        return origin
