"""Colour themes for the terminal interface."""

from __future__ import annotations

from dataclasses import dataclass

Color = tuple[int, int, int]


@dataclass(frozen=True)
class Theme:
    """A named set of RGB colours used by the terminal interface."""

    name: str
    bg: Color
    fg: Color
    rx_color: Color
    tx_color: Color
    error_color: Color
    success_color: Color
    warning_color: Color
    border: Color
    selection: Color
    cursor: Color
    inactive: Color
    accent: Color


DARK = Theme(
    name="dark",
    bg=(30, 30, 46),
    fg=(205, 214, 244),
    rx_color=(166, 227, 161),
    tx_color=(137, 180, 250),
    error_color=(243, 139, 168),
    success_color=(166, 227, 161),
    warning_color=(249, 226, 175),
    border=(88, 91, 112),
    selection=(69, 71, 90),
    cursor=(245, 224, 220),
    inactive=(108, 112, 134),
    accent=(203, 166, 247),
)

LIGHT = Theme(
    name="light",
    bg=(239, 241, 245),
    fg=(76, 79, 105),
    rx_color=(64, 160, 43),
    tx_color=(30, 102, 245),
    error_color=(210, 15, 57),
    success_color=(64, 160, 43),
    warning_color=(223, 142, 29),
    border=(172, 176, 190),
    selection=(204, 208, 218),
    cursor=(220, 138, 120),
    inactive=(140, 143, 161),
    accent=(136, 57, 239),
)

SOLARIZED_DARK = Theme(
    name="solarized",
    bg=(0, 43, 54),
    fg=(131, 148, 150),
    rx_color=(133, 153, 0),
    tx_color=(38, 139, 210),
    error_color=(220, 50, 47),
    success_color=(133, 153, 0),
    warning_color=(181, 137, 0),
    border=(88, 110, 117),
    selection=(7, 54, 66),
    cursor=(238, 232, 213),
    inactive=(101, 123, 131),
    accent=(108, 113, 196),
)

DRACULA = Theme(
    name="dracula",
    bg=(40, 42, 54),
    fg=(248, 248, 242),
    rx_color=(80, 250, 123),
    tx_color=(139, 233, 253),
    error_color=(255, 85, 85),
    success_color=(80, 250, 123),
    warning_color=(241, 250, 140),
    border=(68, 71, 90),
    selection=(68, 71, 90),
    cursor=(255, 121, 198),
    inactive=(98, 114, 164),
    accent=(189, 147, 249),
)

NORD = Theme(
    name="nord",
    bg=(46, 52, 64),
    fg=(216, 222, 233),
    rx_color=(163, 190, 140),
    tx_color=(129, 161, 193),
    error_color=(191, 97, 106),
    success_color=(163, 190, 140),
    warning_color=(235, 203, 139),
    border=(76, 86, 106),
    selection=(67, 76, 94),
    cursor=(236, 239, 244),
    inactive=(107, 112, 137),
    accent=(180, 142, 173),
)

THEMES: tuple[Theme, ...] = (DARK, LIGHT, SOLARIZED_DARK, DRACULA, NORD)


def theme_by_name(name: str) -> Theme | None:
    """Return the theme called ``name``, or None if there is none."""
    return next((theme for theme in THEMES if theme.name == name), None)


def default_theme() -> Theme:
    """Return the default (dark) theme."""
    return DARK