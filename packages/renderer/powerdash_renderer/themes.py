"""Built-in dashboard themes."""

from __future__ import annotations

from .models import ThemeConfig

DEFAULT_THEME_NAME = "Neon Slate"

THEMES: dict[str, ThemeConfig] = {
    "Neon Slate": ThemeConfig(
        name="Neon Slate",
        background="#0A0F1D",
        card_bg="#1A253F",
        grid="#2A3659",
        cpu_line="rgb(255, 99, 132)",
        gpu_line="rgb(75, 192, 192)",
        memory_bar="#35D9FF",
        error_bg="#7A1F2B",
        text_primary="#F4F7FF",
        text_secondary="#A9B5D1",
    ),
    "Paper": ThemeConfig(
        name="Paper",
        background="#F4F4F0",
        card_bg="#FFFFFF",
        grid="#DDDDD5",
        cpu_line="rgb(255, 99, 132)",
        gpu_line="rgb(75, 192, 192)",
        memory_bar="#2F80ED",
        error_bg="#F8D7DA",
        text_primary="#1B1B1B",
        text_secondary="#5F6368",
    ),
}


def list_themes() -> list[str]:
    return sorted(THEMES.keys())


def get_theme(name: str | None) -> ThemeConfig:
    if not name:
        return THEMES[DEFAULT_THEME_NAME]
    return THEMES.get(name, THEMES[DEFAULT_THEME_NAME])
