from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import PlainTextResponse

logger = logging.getLogger(__name__)


class PageLookupError(LookupError):
    """Base class for requests that cannot be mapped to a page."""


class NoPageClassError(PageLookupError):
    """Raised when no page provider answers the page-class query."""


class PageNotFoundError(PageLookupError):
    """Raised when a request refers to a page that is not live in the session."""


def register_page_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(PageLookupError)
    async def handle_page_lookup_error(request: Request, exc: PageLookupError) -> PlainTextResponse:
        logger.info(
            "pages.lookup_failed",
            extra={
                "event": "pages.lookup_failed",
                "path": request.url.path,
                "error_type": type(exc).__name__,
                "detail": str(exc),
            },
        )
        return PlainTextResponse(str(exc), status_code=status.HTTP_404_NOT_FOUND)
