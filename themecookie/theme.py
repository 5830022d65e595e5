from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Final

from themecookie.settings import settings

STYLESHEET_NAMES: Final[tuple[str, ...]] = ("styles.css", "styles.scss")


class ThemeResources:
    """Looks up theme resources below a themes root directory."""

    def __init__(self, root: Path | str) -> None:
        self.root = Path(root)

    def exists(self, relative_path: str) -> bool:
        return (self.root / relative_path.lstrip("/")).is_file()

    def has_theme(self, theme_name: str) -> bool:
        return any(self.exists(f"{theme_name}/{name}") for name in STYLESHEET_NAMES)

    def __repr__(self) -> str:
        return f"ThemeResources({str(self.root)!r})"


@lru_cache(maxsize=1)
def default_theme_resources() -> ThemeResources:
    return ThemeResources(settings.themes_root)
