from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from starlette.requests import Request

from themecookie.ui.page import Page, PageConfig


@dataclass(frozen=True)
class ThemeDefinition:
    slug: str
    label: str


THEMES: Final[tuple[ThemeDefinition, ...]] = (
    ThemeDefinition(slug="valo", label="Valo"),
    ThemeDefinition(slug="reindeer", label="Reindeer"),
    ThemeDefinition(slug="runo", label="Runo"),
)


class ThemeCookieDemoPage(Page):
    config = PageConfig(theme="valo", title="Theme cookie demo")

    def init(self, request: Request) -> None:
        self.theme_choices = THEMES
        self.selected_theme = self.theme

    def set_theme(self, theme_name: str) -> None:
        super().set_theme(theme_name)
        self.selected_theme = theme_name
