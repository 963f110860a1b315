"""Header construction for upstream requests and proxy responses."""

from collections.abc import Iterable

from core.config import TARGET_HEADER

ALLOWED_METHODS = "GET, POST, PUT, PATCH, DELETE, OPTIONS"

RawHeaders = list[tuple[bytes, bytes]]


class HeaderBuilder:
    """Build outbound headers and the CORS headers added to every response."""

    def __init__(self, target_header: str = TARGET_HEADER) -> None:
        self.target_header = target_header

    def build_forward_headers(
        self,
        raw_headers: Iterable[tuple[bytes, bytes]],
        *,
        drop_body: bool = False,
    ) -> RawHeaders:
        """Copy inbound header pairs minus the target header and Host.

        Pairs stay as bytes so repeated headers and non-ASCII values reach the
        upstream exactly as received.
        """
        excluded = {self.target_header.lower().encode("latin-1"), b"host"}
        if drop_body:
            excluded.add(b"content-length")
        return [
            (key, value)
            for key, value in raw_headers
            if key.lower() not in excluded
        ]

    def cors_headers(self) -> dict[str, str]:
        return {
            "Access-Control-Allow-Origin": "*",
            "Access-Control-Allow-Methods": ALLOWED_METHODS,
            "Access-Control-Allow-Headers": (
                f"Content-Type, Authorization, X-Requested-With, {self.target_header}"
            ),
        }


def headers_for_log(raw_headers: RawHeaders) -> dict[str, str]:
    """Readable view of raw pairs; repeated headers are comma-joined."""
    merged: dict[str, str] = {}
    for key, value in raw_headers:
        name = key.decode("latin-1").lower()
        text = value.decode("latin-1")
        merged[name] = f"{merged[name]}, {text}" if name in merged else text
    return merged
