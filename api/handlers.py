"""FastAPI route handlers."""

from pathlib import Path

from fastapi import Request, Response
from fastapi.responses import FileResponse, JSONResponse

from core.config import Config
from core.exceptions import InvalidTargetError
from core.protocols import RequestLogger
from services.upstream import proxy_error_response


async def handle_forward(
    request: Request,
    logger: RequestLogger,
) -> Response:
    """Forward any /api request to the upstream named by the target header."""
    body = await request.body()
    raw_path = request.scope.get("raw_path", request.url.path.encode()).decode("latin-1")
    query = request.url.query
    # raw_path may still carry the query string on some servers
    raw_path = raw_path.split("?", 1)[0]

    routing_service = request.app.state.routing_service
    try:
        prepared = routing_service.prepare_forward(
            request.method,
            raw_path,
            query,
            request.headers.raw,
            body,
        )
    except InvalidTargetError as e:
        logger.log_error(e.target, 500, str(e))
        return proxy_error_response(str(e))

    upstream = request.app.state.upstream_client
    try:
        return await upstream.forward(prepared, logger)
    except Exception as e:
        # anything httpx rejects before sending must still answer in JSON
        message = f"{type(e).__name__}: {e}"
        logger.log_error(prepared.target, 500, message)
        return proxy_error_response(message)


async def handle_health(_request: Request) -> Response:
    return JSONResponse({"status": "OK", "message": "Proxy server is running"})


async def handle_static(request: Request, config: Config) -> Response:
    """Serve a built frontend file, its index.html, or a status payload."""
    static_root = Path(config.proxy.static_dir).resolve()
    requested = request.path_params.get("full_path", "")

    if static_root.is_dir():
        candidate = (static_root / requested).resolve()
        if candidate.is_file() and candidate.is_relative_to(static_root):
            return FileResponse(candidate)
        index = static_root / "index.html"
        if index.is_file():
            return FileResponse(index)

    return JSONResponse(
        {
            "message": "Backend server is running",
            "status": "OK",
            "note": f"Frontend build not found in {config.proxy.static_dir!r}.",
        }
    )
