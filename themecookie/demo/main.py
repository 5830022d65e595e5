from __future__ import annotations

import uvicorn
from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles
from starlette.middleware.sessions import SessionMiddleware

from themecookie.demo.routes import router as demo_router
from themecookie.logging_config import configure_logging, parse_redact_fields
from themecookie.settings import settings
from themecookie.ui.errors import register_page_exception_handlers
from themecookie.web.middleware import RequestLoggingMiddleware, parse_skip_paths

configure_logging(
    level=settings.log_level,
    log_format=settings.log_format,
    redact_fields=parse_redact_fields(settings.log_redact_fields),
    include_uvicorn_access=settings.log_uvicorn_access,
)

app = FastAPI(title=settings.app_name)
register_page_exception_handlers(app)
app.add_middleware(
    SessionMiddleware,
    secret_key=settings.session_secret_key,
    same_site="lax",
    https_only=settings.session_cookie_secure,
)
app.add_middleware(
    RequestLoggingMiddleware,
    log_requests=settings.log_requests,
    skip_paths=parse_skip_paths(settings.log_request_skip_paths),
)
app.mount("/themes", StaticFiles(directory=settings.themes_root), name="themes")
app.include_router(demo_router)


@app.get("/healthz")
async def healthz() -> dict[str, str]:
    return {"status": "ok"}


def run() -> None:
    uvicorn.run(app, host=settings.app_host, port=settings.app_port, log_config=None)
