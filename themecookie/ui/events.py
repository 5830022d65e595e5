from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from starlette.requests import Request

if TYPE_CHECKING:
    from themecookie.ui.page import Page
    from themecookie.ui.session import PageService, PageSession


@dataclass(frozen=True)
class PageClassSelectionEvent:
    request: Request
    session: PageSession


@dataclass(frozen=True)
class PageCreateEvent:
    request: Request
    session: PageSession
    page_class: type[Page]


@dataclass(frozen=True)
class ServiceInitEvent:
    source: PageService


@dataclass(frozen=True)
class SessionInitEvent:
    source: PageService
    session: PageSession
    request: Request
