from __future__ import annotations

import logging
import time
from secrets import token_urlsafe

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from themecookie.logging_context import set_request_id
from themecookie.theme_cookie import THEME_COOKIE, theme_cookie_values

REQUEST_ID_HEADER = "X-Request-ID"

logger = logging.getLogger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    def __init__(
        self,
        app: ASGIApp,
        *,
        log_requests: bool = True,
        skip_paths: tuple[str, ...] = (),
    ) -> None:
        super().__init__(app)
        self._log_requests = log_requests
        self._skip_paths = tuple(path for path in skip_paths if path)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or token_urlsafe(12)
        request.state.request_id = request_id
        set_request_id(request_id)

        path = request.url.path
        should_log = self._log_requests and not self._is_skipped_path(path)
        started = time.perf_counter()
        if should_log:
            _log_request_event(
                "request.started",
                request,
                theme_cookie_count=len(theme_cookie_values(request)),
            )

        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "request.failed",
                extra={
                    "event": "request.failed",
                    "method": request.method,
                    "path": path,
                    "duration_ms": _elapsed_ms(started),
                },
            )
            raise
        else:
            response.headers[REQUEST_ID_HEADER] = request_id
            if should_log:
                _log_request_event(
                    "request.completed",
                    request,
                    status_code=response.status_code,
                    duration_ms=_elapsed_ms(started),
                    theme_cookie_change=theme_cookie_change(response),
                )
            return response
        finally:
            set_request_id(None)

    def _is_skipped_path(self, path: str) -> bool:
        return any(path.startswith(prefix) for prefix in self._skip_paths)


def theme_cookie_change(response: Response) -> str | None:
    """Report whether the response sets or clears the theme cookie."""
    change: str | None = None
    for key, value in response.raw_headers:
        if key != b"set-cookie" or not value.startswith(f"{THEME_COOKIE}=".encode("latin-1")):
            continue
        change = "cleared" if b"Max-Age=0" in value else "set"
    return change


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)


def _log_request_event(event: str, request: Request, **fields: object) -> None:
    logger.info(
        event,
        extra={
            "event": event,
            "method": request.method,
            "path": request.url.path,
            "request_id": getattr(request.state, "request_id", None),
            **fields,
        },
    )


def parse_skip_paths(raw_value: str) -> tuple[str, ...]:
    parts = [part.strip() for part in raw_value.split(",")]
    return tuple(part for part in parts if part)
