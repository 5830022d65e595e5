"""Changes the page theme and remembers the selection in a cookie.

Install :class:`ThemeCookieInitializer` on the page service so that every page
session gets a :class:`ThemeCookieProvider`. Call :func:`set_theme` from a
request handler to switch the current page's theme and store the choice.
"""
from __future__ import annotations

import logging
import string
from enum import StrEnum
from typing import Final

from starlette.requests import Request
from starlette.responses import Response

from themecookie.theme import ThemeResources, default_theme_resources
from themecookie.ui.current import get_current_page, get_current_response
from themecookie.ui.events import (
    PageClassSelectionEvent,
    PageCreateEvent,
    ServiceInitEvent,
    SessionInitEvent,
)
from themecookie.ui.page import Page, PushMode, Transport, WidgetsetInfo
from themecookie.ui.providers import PageProvider
from themecookie.ui.session import PageSession

THEME_COOKIE: Final[str] = "themeCookie"
THEME_COOKIE_PATH: Final[str] = "/"
PERMANENT_MAX_AGE: Final[int] = 2**31 - 1

_ACTUAL_PROVIDER_ATTRIBUTE: Final[str] = "theme_cookie_actual_provider"
# Path separators and parent segments never reach the resource lookup.
_FORBIDDEN_FRAGMENTS: Final[tuple[str, ...]] = ("/", "\\", "..")
# Characters a cookie value can carry without being quoted.
_COOKIE_VALUE_CHARS: Final[frozenset[str]] = frozenset(
    string.ascii_letters + string.digits + "!#$%&'*+-.^_`|~:"
)

logger = logging.getLogger(__name__)


class ThemeCookieErrorReason(StrEnum):
    BACKGROUND_THREAD = "background_thread"
    WEBSOCKET_TRANSPORT = "websocket_transport"


class ThemeCookieError(RuntimeError):
    """Raised when the theme cookie cannot be delivered with the current response."""

    def __init__(self, reason: ThemeCookieErrorReason, message: str) -> None:
        super().__init__(message)
        self.reason = reason


class ProviderResolutionError(RuntimeError):
    """Raised when a page provider query arrives before the page-class query."""


class InvalidThemeNameError(ValueError):
    """Raised when a theme name cannot be stored as a raw cookie value."""


class ThemeCookieProvider(PageProvider):
    """Page provider answering the theme query from the theme cookie.

    Every other query goes to the provider that answered ``get_page_class`` for
    the same request.
    """

    def __init__(self, session: PageSession, resources: ThemeResources | None = None) -> None:
        self._actual_providers = session.providers
        self._resources = resources

    @property
    def resources(self) -> ThemeResources:
        return self._resources or default_theme_resources()

    def get_page_class(self, event: PageClassSelectionEvent) -> type[Page] | None:
        for provider in self._actual_providers:
            if isinstance(provider, ThemeCookieProvider):
                continue

            page_class = provider.get_page_class(event)
            if page_class is not None:
                # Remembered for every later query of the same request.
                setattr(event.request.state, _ACTUAL_PROVIDER_ATTRIBUTE, provider)
                return page_class
        return None

    def get_theme(self, event: PageCreateEvent) -> str | None:
        theme_name = find_theme_cookie_value(event.request, self.resources)
        if theme_name is not None:
            return theme_name
        return _actual_provider(event).get_theme(event)

    def create_instance(self, event: PageCreateEvent) -> Page:
        return _actual_provider(event).create_instance(event)

    def get_page_title(self, event: PageCreateEvent) -> str | None:
        return _actual_provider(event).get_page_title(event)

    def get_push_mode(self, event: PageCreateEvent) -> PushMode:
        return _actual_provider(event).get_push_mode(event)

    def get_push_transport(self, event: PageCreateEvent) -> Transport:
        return _actual_provider(event).get_push_transport(event)

    def get_widgetset_info(self, event: PageCreateEvent) -> WidgetsetInfo | None:
        return _actual_provider(event).get_widgetset_info(event)

    def get_widgetset(self, event: PageCreateEvent) -> str | None:
        return _actual_provider(event).get_widgetset(event)

    def is_preserved_on_refresh(self, event: PageCreateEvent) -> bool:
        return _actual_provider(event).is_preserved_on_refresh(event)


def _actual_provider(event: PageCreateEvent) -> PageProvider:
    provider = getattr(event.request.state, _ACTUAL_PROVIDER_ATTRIBUTE, None)
    if provider is None:
        raise ProviderResolutionError(
            "get_page_class should be the first called page provider method"
        )
    return provider


class ThemeCookieInitializer:
    """Installs a ThemeCookieProvider into every new page session."""

    def __init__(self, resources: ThemeResources | None = None) -> None:
        self.resources = resources

    def service_init(self, event: ServiceInitEvent) -> None:
        event.source.add_session_init_listener(self._session_init)

    def _session_init(self, event: SessionInitEvent) -> None:
        event.session.add_provider(ThemeCookieProvider(event.session, self.resources))
        logger.debug(
            "theme_cookie.provider_installed",
            extra={"event": "theme_cookie.provider_installed"},
        )


def set_theme(theme_name: str | None) -> None:
    """Set the theme of the current page and store it in a cookie.

    ``None`` clears any existing cookie without touching the page theme. Must
    run while a regular HTTP request is handled; raises ThemeCookieError
    otherwise.
    """
    response = get_current_response()
    page = get_current_page()

    if response is None or page is None:
        if (
            page is not None
            and page.push_configuration.enabled
            and page.push_configuration.transport is Transport.WEBSOCKET
        ):
            raise ThemeCookieError(
                ThemeCookieErrorReason.WEBSOCKET_TRANSPORT,
                "Cannot be used together with regular websockets. "
                "Use Transport.WEBSOCKET_XHR instead.",
            )
        raise ThemeCookieError(
            ThemeCookieErrorReason.BACKGROUND_THREAD,
            "Must be called during regular request handling and not from a background thread.",
        )

    set_theme_for(theme_name, page, response)


def set_theme_for(theme_name: str | None, page: Page, response: Response) -> None:
    """Set the theme of ``page`` and add the theme cookie to ``response``.

    Raises InvalidThemeNameError for names that would need quoting in the
    cookie header; the value is always sent raw.
    """
    if theme_name is None:
        response.set_cookie(THEME_COOKIE, "", max_age=0, path=THEME_COOKIE_PATH)
        logger.info(
            "theme_cookie.cookie_cleared",
            extra={"event": "theme_cookie.cookie_cleared", "page_id": page.id},
        )
        return

    if not theme_name or not set(theme_name) <= _COOKIE_VALUE_CHARS:
        raise InvalidThemeNameError(
            f"Theme name {theme_name!r} cannot be stored in the {THEME_COOKIE} cookie."
        )
    page.set_theme(theme_name)
    response.set_cookie(
        THEME_COOKIE,
        theme_name,
        max_age=PERMANENT_MAX_AGE,
        path=THEME_COOKIE_PATH,
    )
    logger.info(
        "theme_cookie.theme_set",
        extra={"event": "theme_cookie.theme_set", "page_id": page.id, "theme": theme_name},
    )


def find_theme_cookie_value(
    request: Request, resources: ThemeResources | None = None
) -> str | None:
    for value in theme_cookie_values(request):
        if is_valid_theme_name(value, resources):
            return value.strip()
        logger.debug(
            "theme_cookie.value_rejected",
            extra={"event": "theme_cookie.value_rejected", "length": len(value)},
        )
    return None


def theme_cookie_values(request: Request) -> list[str]:
    """Every ``themeCookie`` value sent with the request, in header order.

    ``request.cookies`` keeps only the last value per name, while a browser
    sends one pair per matching cookie path.
    """
    values: list[str] = []
    for header in request.headers.getlist("cookie"):
        for chunk in header.split(";"):
            name, separator, value = chunk.partition("=")
            if separator and name.strip() == THEME_COOKIE:
                values.append(_unquote_cookie_value(value.strip()))
    return values


def _unquote_cookie_value(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] == '"':
        return value[1:-1]
    return value


def is_valid_theme_name(theme_name: str | None, resources: ThemeResources | None = None) -> bool:
    if theme_name is None or not theme_name.strip():
        return False
    if any(fragment in theme_name for fragment in _FORBIDDEN_FRAGMENTS):
        return False
    return (resources or default_theme_resources()).has_theme(theme_name.strip())
