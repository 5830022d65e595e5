from __future__ import annotations

from collections.abc import AsyncIterator
from contextvars import ContextVar
from typing import TYPE_CHECKING

from starlette.responses import Response

if TYPE_CHECKING:
    from themecookie.ui.page import Page

# Both values are only bound while a regular HTTP request is being handled.
_current_page: ContextVar[Page | None] = ContextVar("current_page", default=None)
_current_response: ContextVar[Response | None] = ContextVar("current_response", default=None)


def get_current_page() -> Page | None:
    return _current_page.get()


def set_current_page(page: Page | None) -> None:
    _current_page.set(page)


def get_current_response() -> Response | None:
    return _current_response.get()


def set_current_response(response: Response | None) -> None:
    _current_response.set(response)


async def bind_page_context(response: Response) -> AsyncIterator[None]:
    """FastAPI dependency exposing the request's temporal response as the current one."""
    set_current_response(response)
    try:
        yield
    finally:
        set_current_response(None)
        set_current_page(None)
