"""Forward preparation for proxied requests."""

from core.headers import HeaderBuilder, RawHeaders, headers_for_log
from core.protocols import RequestLogger
from core.request_types import PreparedForward
from core.target import TargetResolver


class RoutingService:
    """Turn an inbound request into a prepared upstream request."""

    def __init__(
        self,
        logger: RequestLogger,
        resolver: TargetResolver,
        header_builder: HeaderBuilder,
    ) -> None:
        self._logger = logger
        self._resolver = resolver
        self._headers = header_builder

    def prepare_forward(
        self,
        method: str,
        raw_path: str,
        query: str,
        raw_headers: RawHeaders,
        body: bytes,
    ) -> PreparedForward:
        """Resolve the target and adjust headers and body for the upstream.

        Raises:
            InvalidTargetError: the target header is not an absolute http(s) URL.
        """
        decision = self._resolver.resolve(headers_for_log(raw_headers))
        url = self._resolver.upstream_url(decision.origin, raw_path, query)

        drop_body = method.upper() == "GET"
        upstream_headers = self._headers.build_forward_headers(raw_headers, drop_body=drop_body)
        upstream_body = None if drop_body or not body else body

        self._logger.log_forward(method, decision.origin, url, headers_for_log(upstream_headers))
        return PreparedForward(
            method=method,
            target=decision.origin,
            url=url,
            headers=upstream_headers,
            body=upstream_body,
        )
