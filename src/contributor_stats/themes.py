"""Card themes and colour resolution."""

from __future__ import annotations

import re
from dataclasses import dataclass

THEMES: dict[str, dict[str, str]] = {
    "default": {
        "title_color": "2f80ed",
        "icon_color": "4c71f2",
        "text_color": "434d58",
        "bg_color": "fffefe",
        "border_color": "e4e2e2",
    },
    "transparent": {
        "title_color": "006AFF",
        "icon_color": "0579C3",
        "text_color": "417E87",
        "bg_color": "ffffff00",
    },
    "dark": {"title_color": "fff", "icon_color": "79ff97", "text_color": "9f9f9f", "bg_color": "151515"},
    "radical": {"title_color": "fe428e", "icon_color": "f8d847", "text_color": "a9fef7", "bg_color": "141321"},
    "merko": {"title_color": "abd200", "icon_color": "b7d364", "text_color": "68b587", "bg_color": "0a0f0b"},
    "gruvbox": {"title_color": "fabd2f", "icon_color": "fe8019", "text_color": "8ec07c", "bg_color": "282828"},
    "tokyonight": {"title_color": "70a5fd", "icon_color": "bf91f3", "text_color": "38bdae", "bg_color": "1a1b27"},
    "onedark": {"title_color": "e4bf7a", "icon_color": "8eb573", "text_color": "df6d74", "bg_color": "282c34"},
    "cobalt": {"title_color": "e683d9", "icon_color": "0480ef", "text_color": "75eeb2", "bg_color": "193549"},
    "synthwave": {"title_color": "e2e9ec", "icon_color": "ef8539", "text_color": "e5289e", "bg_color": "2b213a"},
    "highcontrast": {"title_color": "e7f216", "icon_color": "00ffff", "text_color": "fff", "bg_color": "000"},
    "dracula": {"title_color": "ff6e96", "icon_color": "79dafa", "text_color": "f8f8f2", "bg_color": "282a36"},
}

_HEX_COLOR = re.compile(r"^([A-Fa-f0-9]{8}|[A-Fa-f0-9]{6}|[A-Fa-f0-9]{3}|[A-Fa-f0-9]{4})$")

# A colour is either "#rrggbb" or a gradient ["angle", "hex", "hex", ...].
Color = str | list[str]


@dataclass(frozen=True)
class CardColors:
    title_color: Color
    icon_color: Color
    text_color: Color
    bg_color: Color
    border_color: Color


def is_valid_hex_color(value: str) -> bool:
    return bool(_HEX_COLOR.match(value))


def _fallback_color(color: str | None, fallback: str) -> Color:
    if not color:
        return fallback
    parts = color.split(",")
    if len(parts) > 2 and is_valid_hex_color(parts[1]) and is_valid_hex_color(parts[2]):
        return parts
    if is_valid_hex_color(color):
        return f"#{color}"
    return fallback


def get_card_colors(
    title_color: str | None = None,
    text_color: str | None = None,
    icon_color: str | None = None,
    bg_color: str | None = None,
    border_color: str | None = None,
    theme: str = "default",
    fallback_theme: str = "default",
) -> CardColors:
    """Theme colours with explicit overrides applied; invalid values fall back."""
    default = THEMES[fallback_theme]
    selected = THEMES.get(theme, default)
    default_border = selected.get("border_color") or default["border_color"]

    def pick(override: str | None, key: str) -> Color:
        return _fallback_color(override or selected.get(key), "#" + default[key])

    return CardColors(
        title_color=pick(title_color, "title_color"),
        icon_color=pick(icon_color, "icon_color"),
        text_color=pick(text_color, "text_color"),
        bg_color=pick(bg_color, "bg_color"),
        border_color=_fallback_color(border_color or default_border, "#" + default_border),
    )
