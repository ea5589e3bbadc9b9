"""
Default backend error server.

Serves a templated error page for the status code named in the X-Code
header, falls back to a static index page for codes it does not know, and
answers health checks on /healthz.
"""

import argparse
import os
import sys
from typing import Optional, Tuple

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse, PlainTextResponse, Response

from common.config import Config
from common.logging import LogCategory, StructuredLogger, get_logger

from .pages import (
    UNPARSABLE_CODE_MESSAGE,
    ErrorPageRenderer,
    message_for,
    parse_error_code,
)

ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "TRACE", "CONNECT"]


def _render(renderer: ErrorPageRenderer, slog: StructuredLogger,
            code: int, message: str) -> Response:
    try:
        body = renderer.render_error(code, message)
    except (KeyError, ValueError) as e:
        slog.error("Unable to execute template.", category=LogCategory.SERVER,
                   error=e, metadata={"status_code": code})
        return Response(status_code=500)
    return HTMLResponse(content=body, status_code=code)


def create_app(renderer: Optional[ErrorPageRenderer] = None,
               structured_logger: Optional[StructuredLogger] = None) -> FastAPI:
    """Build the FastAPI application for the default backend."""
    renderer = renderer or ErrorPageRenderer.from_package()
    slog = structured_logger or get_logger()

    app = FastAPI(
        title="Tectonic Error Server",
        description="Default backend rendering error pages for the cluster ingress",
        version="1.0.0",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    @app.api_route("/healthz", methods=ALL_METHODS, response_class=PlainTextResponse)
    async def healthz():
        return PlainTextResponse("ok")

    @app.api_route("/{path:path}", methods=ALL_METHODS)
    async def error_page(request: Request, path: str = ""):
        header = request.headers.get("X-Code", "")
        try:
            code = parse_error_code(header)
        except ValueError:
            slog.warning(UNPARSABLE_CODE_MESSAGE, category=LogCategory.SERVER,
                         metadata={"x_code": header, "path": "/" + path})
            return _render(renderer, slog, 500, UNPARSABLE_CODE_MESSAGE)

        message = message_for(code)
        if message is None:
            return HTMLResponse(content=renderer.index_page, status_code=404)

        return _render(renderer, slog, code, message)

    return app


app = create_app()


def parse_addr(addr: str) -> Tuple[str, int]:
    """Split a host:port listen address; an empty host means all interfaces."""
    host, sep, port = addr.rpartition(":")
    if not sep:
        raise ValueError(f"address must be host:port, got {addr!r}")
    try:
        port_number = int(port)
    except ValueError as e:
        raise ValueError(f"invalid port in address {addr!r}") from e
    return host.strip("[]") or "0.0.0.0", port_number


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        prog="tectonic-error-server",
        description="Default backend serving templated error pages",
    )
    parser.add_argument(
        "--addr",
        default=Config.ERROR_SERVER_ADDR,
        help="address to serve default backend (default: 0.0.0.0:8080)",
    )
    parser.add_argument(
        "--log-level",
        default=os.getenv("LOG_LEVEL", "info").lower(),
        help="uvicorn log level",
    )
    args = parser.parse_args(argv)

    try:
        host, port = parse_addr(args.addr)
    except ValueError as e:
        parser.error(str(e))

    get_logger().info(f"Serving default backend on {host}:{port}",
                      category=LogCategory.SERVER)
    uvicorn.run(app, host=host, port=port, log_level=args.log_level)
    return 0


if __name__ == "__main__":
    sys.exit(main())
