"""FastAPI application factory."""

from contextlib import asynccontextmanager
from http.cookiejar import CookieJar, DefaultCookiePolicy

import httpx
from fastapi import FastAPI, Request, Response

from api.handlers import handle_forward, handle_health, handle_static
from core.config import Config
from core.headers import HeaderBuilder
from core.protocols import RequestLogger
from core.target import TargetResolver
from services.routing_service import RoutingService
from services.upstream import UpstreamClient

FORWARD_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD"]


def build_upstream_client(config: Config) -> httpx.AsyncClient:
    """Create the pooled client shared by all forwarded calls."""
    limits = httpx.Limits(
        max_connections=config.limits.max_connections,
        max_keepalive_connections=config.limits.max_keepalive_connections,
    )
    # Upstream Set-Cookie must not leak into other callers' requests
    no_cookies = CookieJar(policy=DefaultCookiePolicy(allowed_domains=[]))
    return httpx.AsyncClient(
        timeout=config.upstream.timeout,
        limits=limits,
        cookies=no_cookies,
    )


def create_app(
    config: Config,
    logger: RequestLogger,
    client: httpx.AsyncClient | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    When ``client`` is given it is used for every upstream call and left open
    on shutdown; otherwise a client is created and closed by the lifespan.
    """
    header_builder = HeaderBuilder(config.upstream.target_header)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        upstream = client or build_upstream_client(config)
        app.state.upstream_client = UpstreamClient(upstream, timeout=config.upstream.timeout)
        app.state.routing_service = RoutingService(
            logger=logger,
            resolver=TargetResolver(
                config.upstream.default_target,
                config.upstream.target_header,
            ),
            header_builder=header_builder,
        )
        try:
            yield
        finally:
            if client is None:
                await upstream.aclose()

    app = FastAPI(title="ERPNext API Tester", version="0.1.0", lifespan=lifespan)

    @app.middleware("http")
    async def add_cors_headers(request: Request, call_next):
        if request.method == "OPTIONS" and "access-control-request-method" in request.headers:
            response = Response(status_code=204)
        else:
            response = await call_next(request)
        response.headers.update(header_builder.cors_headers())
        return response

    prefix = config.upstream.path_prefix.rstrip("/")

    @app.api_route(prefix + "/{path:path}", methods=FORWARD_METHODS)
    async def proxy_api(request: Request):
        return await handle_forward(request, logger)

    @app.get("/health")
    async def health(request: Request):
        return await handle_health(request)

    @app.get("/{full_path:path}")
    async def static_files(request: Request):
        return await handle_static(request, config)

    return app
