from __future__ import annotations

import logging
import time
from collections import OrderedDict
from collections.abc import Callable, Iterable
from secrets import token_urlsafe
from typing import Protocol

from starlette.requests import Request

from themecookie.ui.current import set_current_page
from themecookie.ui.errors import NoPageClassError, PageNotFoundError
from themecookie.ui.events import (
    PageClassSelectionEvent,
    PageCreateEvent,
    ServiceInitEvent,
    SessionInitEvent,
)
from themecookie.ui.page import Page, PushConfiguration
from themecookie.ui.providers import DefaultPageProvider, PageProvider

SESSION_ID_KEY = "page_session_id"
DEFAULT_MAX_PAGES_PER_SESSION = 10
DEFAULT_MAX_SESSIONS = 1000
DEFAULT_SESSION_IDLE_SECONDS = 30 * 60

logger = logging.getLogger(__name__)

SessionInitListener = Callable[[SessionInitEvent], None]


class ServiceInitListener(Protocol):
    def service_init(self, event: ServiceInitEvent) -> None: ...


class PageSession:
    def __init__(
        self,
        session_id: str,
        *,
        max_pages: int = DEFAULT_MAX_PAGES_PER_SESSION,
        last_accessed: float = 0.0,
    ) -> None:
        self.id = session_id
        self.max_pages = max(1, max_pages)
        self.last_accessed = last_accessed
        self._providers: list[PageProvider] = []
        # Least recently used first.
        self._pages: OrderedDict[str, Page] = OrderedDict()

    @property
    def providers(self) -> list[PageProvider]:
        """Live provider list, highest precedence first."""
        return self._providers

    def add_provider(self, provider: PageProvider) -> None:
        # Providers added later take precedence over the ones already present.
        self._providers.insert(0, provider)

    def add_page(self, page: Page) -> None:
        if page.id is None:
            page.id = token_urlsafe(8)
        self._pages[page.id] = page
        self._pages.move_to_end(page.id)
        while len(self._pages) > self.max_pages:
            evicted_id, _ = self._pages.popitem(last=False)
            logger.info(
                "pages.page_evicted",
                extra={"event": "pages.page_evicted", "page_id": evicted_id},
            )

    def get_page(self, page_id: str) -> Page | None:
        page = self._pages.get(page_id)
        if page is not None:
            self._pages.move_to_end(page_id)
        return page

    @property
    def page_count(self) -> int:
        return len(self._pages)

    def find_preserved_page(self, page_class: type[Page], path: str) -> Page | None:
        for page in self._pages.values():
            if type(page) is page_class and page.path == path and page.preserve_on_refresh:
                return page
        return None


class PageService:
    """Maps requests to live pages through each session's page providers."""

    def __init__(
        self,
        page_class: type[Page] | None = None,
        *,
        init_listeners: Iterable[ServiceInitListener] = (),
        max_pages_per_session: int = DEFAULT_MAX_PAGES_PER_SESSION,
        max_sessions: int = DEFAULT_MAX_SESSIONS,
        session_idle_seconds: float = DEFAULT_SESSION_IDLE_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.page_class = page_class
        self.max_pages_per_session = max_pages_per_session
        self.max_sessions = max(1, max_sessions)
        self.session_idle_seconds = session_idle_seconds
        self._clock = clock
        # Least recently accessed first.
        self._sessions: OrderedDict[str, PageSession] = OrderedDict()
        self._session_init_listeners: list[SessionInitListener] = []
        event = ServiceInitEvent(source=self)
        for listener in init_listeners:
            listener.service_init(event)

    def add_session_init_listener(self, listener: SessionInitListener) -> None:
        self._session_init_listeners.append(listener)

    @property
    def session_count(self) -> int:
        return len(self._sessions)

    def get_session(self, request: Request) -> PageSession:
        now = self._clock()
        self._expire_idle_sessions(now)

        session_id = request.session.get(SESSION_ID_KEY)
        if session_id is not None:
            session = self._sessions.get(session_id)
            if session is not None:
                session.last_accessed = now
                self._sessions.move_to_end(session_id)
                return session

        session = PageSession(
            token_urlsafe(16),
            max_pages=self.max_pages_per_session,
            last_accessed=now,
        )
        if self.page_class is not None:
            session.add_provider(DefaultPageProvider(self.page_class))
        self._sessions[session.id] = session
        while len(self._sessions) > self.max_sessions:
            self._discard_oldest_session("pages.session_evicted")
        request.session[SESSION_ID_KEY] = session.id

        event = SessionInitEvent(source=self, session=session, request=request)
        for listener in self._session_init_listeners:
            listener(event)
        logger.info(
            "pages.session_created",
            extra={
                "event": "pages.session_created",
                "provider_count": len(session.providers),
            },
        )
        return session

    def create_page(self, request: Request) -> Page:
        session = self.get_session(request)
        provider, page_class = self._select_page_class(
            PageClassSelectionEvent(request=request, session=session)
        )
        event = PageCreateEvent(request=request, session=session, page_class=page_class)
        path = request.url.path

        if provider.is_preserved_on_refresh(event):
            page = session.find_preserved_page(page_class, path)
            if page is not None:
                logger.info(
                    "pages.page_reused",
                    extra={"event": "pages.page_reused", "page_id": page.id},
                )
                set_current_page(page)
                return page

        page = provider.create_instance(event)
        page.path = path
        page.theme = provider.get_theme(event)
        page.title = provider.get_page_title(event)
        page.push_configuration = PushConfiguration(
            mode=provider.get_push_mode(event),
            transport=provider.get_push_transport(event),
        )
        page.widgetset = provider.get_widgetset_info(event)
        page.preserve_on_refresh = provider.is_preserved_on_refresh(event)
        session.add_page(page)

        set_current_page(page)
        page.init(request)
        logger.info(
            "pages.page_created",
            extra={
                "event": "pages.page_created",
                "page_id": page.id,
                "page_class": page_class.__name__,
                "theme": page.theme,
            },
        )
        return page

    def attach_page(self, request: Request, page_id: str) -> Page:
        page = self.get_session(request).get_page(page_id)
        if page is None:
            raise PageNotFoundError(f"No live page with id {page_id!r}.")
        set_current_page(page)
        return page

    def _expire_idle_sessions(self, now: float) -> None:
        while self._sessions:
            oldest = next(iter(self._sessions.values()))
            if now - oldest.last_accessed < self.session_idle_seconds:
                return
            self._discard_oldest_session("pages.session_expired")

    def _discard_oldest_session(self, event_name: str) -> None:
        session_id, session = self._sessions.popitem(last=False)
        logger.info(
            event_name,
            extra={
                "event": event_name,
                "page_session_id": session_id,
                "page_count": session.page_count,
            },
        )

    def _select_page_class(
        self, event: PageClassSelectionEvent
    ) -> tuple[PageProvider, type[Page]]:
        for provider in event.session.providers:
            page_class = provider.get_page_class(event)
            if page_class is not None:
                return provider, page_class
        raise NoPageClassError(f"No page class found for {event.request.url.path}.")
