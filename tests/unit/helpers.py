from __future__ import annotations

from pathlib import Path

from starlette.requests import Request

from themecookie.theme import ThemeResources


def make_request(
    path: str = "/",
    *,
    cookies: dict[str, str] | None = None,
    session: dict[str, object] | None = None,
    cookie_headers: tuple[str, ...] = (),
) -> Request:
    headers: list[tuple[bytes, bytes]] = [(b"host", b"testserver")]
    if cookies:
        cookie_header = "; ".join(f"{name}={value}" for name, value in cookies.items())
        headers.append((b"cookie", cookie_header.encode("latin-1")))
    for raw_header in cookie_headers:
        headers.append((b"cookie", raw_header.encode("latin-1")))
    scope = {
        "type": "http",
        "method": "GET",
        "scheme": "http",
        "server": ("testserver", 80),
        "path": path,
        "root_path": "",
        "query_string": b"",
        "headers": headers,
        "session": session if session is not None else {},
    }
    return Request(scope)


def make_theme_resources(root: Path, **themes: str) -> ThemeResources:
    """Create ``<root>/<theme>/<stylesheet>`` for each ``theme=stylesheet`` pair."""
    for theme_name, stylesheet in themes.items():
        theme_dir = root / theme_name
        theme_dir.mkdir(parents=True, exist_ok=True)
        (theme_dir / stylesheet).write_text("body {}\n", encoding="utf-8")
    return ThemeResources(root)
