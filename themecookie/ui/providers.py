from __future__ import annotations

from themecookie.ui.events import PageClassSelectionEvent, PageCreateEvent
from themecookie.ui.page import Page, PushMode, Transport, WidgetsetInfo


class PageProvider:
    """Strategy deciding which page class handles a request and how it is set up.

    Only ``get_page_class`` must be implemented. The remaining queries are asked
    of the same provider, for the same request, once it has answered the
    page-class query; their defaults read the selected class's ``PageConfig``.
    """

    def get_page_class(self, event: PageClassSelectionEvent) -> type[Page] | None:
        raise NotImplementedError

    def create_instance(self, event: PageCreateEvent) -> Page:
        return event.page_class()

    def get_theme(self, event: PageCreateEvent) -> str | None:
        return event.page_class.config.theme

    def get_page_title(self, event: PageCreateEvent) -> str | None:
        return event.page_class.config.title

    def get_push_mode(self, event: PageCreateEvent) -> PushMode:
        return event.page_class.config.push_mode

    def get_push_transport(self, event: PageCreateEvent) -> Transport:
        return event.page_class.config.push_transport

    def get_widgetset_info(self, event: PageCreateEvent) -> WidgetsetInfo | None:
        name = self.get_widgetset(event)
        if name is None:
            return None
        return WidgetsetInfo(name=name)

    def get_widgetset(self, event: PageCreateEvent) -> str | None:
        return event.page_class.config.widgetset

    def is_preserved_on_refresh(self, event: PageCreateEvent) -> bool:
        return event.page_class.config.preserve_on_refresh


class DefaultPageProvider(PageProvider):
    def __init__(self, page_class: type[Page], *, path_prefix: str = "/") -> None:
        self.page_class = page_class
        self.path_prefix = path_prefix

    def get_page_class(self, event: PageClassSelectionEvent) -> type[Page] | None:
        if event.request.url.path.startswith(self.path_prefix):
            return self.page_class
        return None

    def __repr__(self) -> str:
        return f"DefaultPageProvider({self.page_class.__name__}, path_prefix={self.path_prefix!r})"
