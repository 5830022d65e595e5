from __future__ import annotations

import pytest

from tests.unit.helpers import make_request, make_theme_resources
from themecookie.theme_cookie import ThemeCookieInitializer, ThemeCookieProvider
from themecookie.ui.current import get_current_page, set_current_page
from themecookie.ui.errors import NoPageClassError, PageNotFoundError
from themecookie.ui.page import Page, PageConfig, PushMode, Transport, WidgetsetInfo
from themecookie.ui.providers import DefaultPageProvider
from themecookie.ui.session import SESSION_ID_KEY, PageService


class ReportPage(Page):
    config = PageConfig(
        theme="valo",
        title="Reports",
        push_mode=PushMode.AUTOMATIC,
        push_transport=Transport.WEBSOCKET_XHR,
        widgetset="com.example.ReportWidgetset",
    )

    def init(self, request) -> None:
        self.initialized_for = request.url.path


class KioskPage(Page):
    config = PageConfig(theme="runo", preserve_on_refresh=True)


@pytest.fixture(autouse=True)
def reset_current_page():
    yield
    set_current_page(None)


@pytest.fixture
def service(tmp_path) -> PageService:
    resources = make_theme_resources(tmp_path, runo="styles.css", valo="styles.css")
    return PageService(ReportPage, init_listeners=[ThemeCookieInitializer(resources)])


def test_new_session_gets_theme_cookie_provider_ahead_of_default_provider(
    service: PageService,
) -> None:
    request = make_request()

    session = service.get_session(request)

    assert isinstance(session.providers[0], ThemeCookieProvider)
    assert isinstance(session.providers[1], DefaultPageProvider)
    assert request.session[SESSION_ID_KEY] == session.id


def test_session_is_reused_for_the_same_session_id(service: PageService) -> None:
    first_request = make_request()
    session = service.get_session(first_request)

    second_request = make_request(session=dict(first_request.session))

    assert service.get_session(second_request) is session
    assert len(session.providers) == 2


def test_create_page_applies_declared_settings_without_cookie(service: PageService) -> None:
    page = service.create_page(make_request("/reports"))

    assert isinstance(page, ReportPage)
    assert page.theme == "valo"
    assert page.title == "Reports"
    assert page.push_configuration.mode is PushMode.AUTOMATIC
    assert page.push_configuration.transport is Transport.WEBSOCKET_XHR
    assert page.widgetset == WidgetsetInfo(name="com.example.ReportWidgetset")
    assert page.preserve_on_refresh is False
    assert page.initialized_for == "/reports"
    assert page.id is not None
    assert get_current_page() is page


def test_create_page_uses_valid_theme_cookie(service: PageService) -> None:
    page = service.create_page(make_request(cookies={"themeCookie": "runo"}))

    assert page.theme == "runo"


def test_create_page_ignores_traversal_cookie(service: PageService) -> None:
    page = service.create_page(make_request(cookies={"themeCookie": "../../etc"}))

    assert page.theme == "valo"


def test_create_page_without_matching_provider_raises(tmp_path) -> None:
    service = PageService(init_listeners=[ThemeCookieInitializer(make_theme_resources(tmp_path))])

    with pytest.raises(NoPageClassError):
        service.create_page(make_request())


def test_preserved_page_is_reused_on_refresh(tmp_path) -> None:
    service = PageService(KioskPage)
    first_request = make_request("/kiosk")
    page = service.create_page(first_request)

    refreshed = service.create_page(make_request("/kiosk", session=dict(first_request.session)))
    other_path = service.create_page(make_request("/other", session=dict(first_request.session)))

    assert refreshed is page
    assert other_path is not page


def test_attach_page_binds_live_page_as_current(service: PageService) -> None:
    request = make_request()
    page = service.create_page(request)
    set_current_page(None)

    attached = service.attach_page(make_request(session=dict(request.session)), page.id)

    assert attached is page
    assert get_current_page() is page


def test_attach_page_with_unknown_id_raises(service: PageService) -> None:
    with pytest.raises(PageNotFoundError):
        service.attach_page(make_request(), "missing")


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def test_session_keeps_only_the_most_recent_pages() -> None:
    service = PageService(ReportPage, max_pages_per_session=3)
    first_request = make_request()
    pages = [service.create_page(first_request)]
    for _ in range(4):
        pages.append(service.create_page(make_request(session=dict(first_request.session))))

    session = service.get_session(make_request(session=dict(first_request.session)))

    assert session.page_count == 3
    with pytest.raises(PageNotFoundError):
        service.attach_page(make_request(session=dict(first_request.session)), pages[0].id)
    assert service.attach_page(make_request(session=dict(first_request.session)), pages[-1].id) is pages[-1]


def test_attached_page_is_kept_over_older_pages() -> None:
    service = PageService(ReportPage, max_pages_per_session=2)
    request = make_request()
    oldest = service.create_page(request)
    service.create_page(make_request(session=dict(request.session)))

    service.attach_page(make_request(session=dict(request.session)), oldest.id)
    service.create_page(make_request(session=dict(request.session)))

    assert service.attach_page(make_request(session=dict(request.session)), oldest.id) is oldest


def test_service_keeps_at_most_max_sessions() -> None:
    service = PageService(ReportPage, max_sessions=2)
    requests = [make_request() for _ in range(4)]
    for request in requests:
        service.create_page(request)

    assert service.session_count == 2
    reused = service.get_session(make_request(session=dict(requests[-1].session)))
    assert reused.id == requests[-1].session[SESSION_ID_KEY]
    replaced = service.get_session(make_request(session=dict(requests[0].session)))
    assert replaced.id != requests[0].session[SESSION_ID_KEY]


def test_idle_sessions_expire() -> None:
    clock = FakeClock()
    service = PageService(ReportPage, session_idle_seconds=60, clock=clock)
    request = make_request()
    page = service.create_page(request)

    clock.now += 59
    assert service.get_session(make_request(session=dict(request.session))).id == request.session[
        SESSION_ID_KEY
    ]

    clock.now += 60
    with pytest.raises(PageNotFoundError):
        service.attach_page(make_request(session=dict(request.session)), page.id)
    assert service.session_count == 1
