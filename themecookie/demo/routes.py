from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Form, HTTPException, Request, Response, status
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from themecookie import theme_cookie
from themecookie.demo.pages import ThemeCookieDemoPage
from themecookie.settings import PACKAGE_ROOT, settings
from themecookie.theme_cookie import ThemeCookieInitializer
from themecookie.ui.current import bind_page_context
from themecookie.ui.session import PageService

logger = logging.getLogger(__name__)

templates = Jinja2Templates(directory=str(PACKAGE_ROOT / "demo" / "templates"))

page_service = PageService(
    ThemeCookieDemoPage,
    init_listeners=[ThemeCookieInitializer()],
    max_pages_per_session=settings.page_session_max_pages,
    max_sessions=settings.page_session_max_sessions,
    session_idle_seconds=settings.page_session_idle_seconds,
)

router = APIRouter(dependencies=[Depends(bind_page_context)])


def _redirect_home(response: Response) -> None:
    response.status_code = status.HTTP_303_SEE_OTHER
    response.headers["location"] = "/"


@router.get("/", response_class=HTMLResponse)
async def demo_page(request: Request) -> HTMLResponse:
    page = page_service.create_page(request)
    return templates.TemplateResponse(
        request=request,
        name="demo.html",
        context={"page": page, "themes": page.theme_choices},
    )


@router.post("/theme", response_class=Response)
async def change_theme(
    request: Request,
    response: Response,
    page_id: Annotated[str, Form()],
    theme: Annotated[str, Form()],
) -> None:
    page_service.attach_page(request, page_id)
    try:
        theme_cookie.set_theme(theme)
    except theme_cookie.InvalidThemeNameError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    _redirect_home(response)


@router.post("/theme/clear", response_class=Response)
async def clear_theme(
    request: Request,
    response: Response,
    page_id: Annotated[str, Form()],
) -> None:
    page_service.attach_page(request, page_id)
    theme_cookie.set_theme(None)
    _redirect_home(response)
