from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import ClassVar

from starlette.requests import Request


class PushMode(StrEnum):
    DISABLED = "disabled"
    MANUAL = "manual"
    AUTOMATIC = "automatic"


class Transport(StrEnum):
    WEBSOCKET = "websocket"
    WEBSOCKET_XHR = "websocket_xhr"
    LONG_POLLING = "long_polling"


@dataclass
class PushConfiguration:
    mode: PushMode = PushMode.DISABLED
    transport: Transport = Transport.WEBSOCKET

    @property
    def enabled(self) -> bool:
        return self.mode is not PushMode.DISABLED


@dataclass(frozen=True)
class WidgetsetInfo:
    name: str
    is_cdn: bool = False


@dataclass(frozen=True)
class PageConfig:
    """Declared defaults for a page class, read by the stock page providers."""

    theme: str | None = None
    title: str | None = None
    push_mode: PushMode = PushMode.DISABLED
    push_transport: Transport = Transport.WEBSOCKET
    widgetset: str | None = None
    preserve_on_refresh: bool = False


class Page:
    """One live, browser-visible application instance inside a page session.

    Subclasses declare their defaults through ``config`` and build their state
    in ``init``. Everything a provider resolves for the page (theme, title,
    push settings) is applied by the page service before ``init`` runs.
    """

    config: ClassVar[PageConfig] = PageConfig()

    def __init__(self) -> None:
        self.id: str | None = None
        self.path: str = "/"
        self.theme: str | None = None
        self.title: str | None = None
        self.push_configuration = PushConfiguration()
        self.widgetset: WidgetsetInfo | None = None
        self.preserve_on_refresh = False

    def init(self, request: Request) -> None:
        pass

    def set_theme(self, theme_name: str) -> None:
        self.theme = theme_name

    def __repr__(self) -> str:
        return f"<{type(self).__name__} id={self.id!r} theme={self.theme!r}>"
