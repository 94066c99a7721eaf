"""Interactive platform picker."""

from __future__ import annotations

import questionary

from saucefleet.cli.common.tui_style import QUESTIONARY_STYLE_SELECT
from saucefleet.core.platforms import PlatformSpec

_MAX_DESCRIPTION_WIDTH = 48


def _truncate(text: str, limit: int) -> str:
    """Shorten text to `limit` characters, ending in "..." when cut."""
    if len(text) <= limit:
        return text
    if limit <= 3:
        return text[:limit]
    return text[: limit - 3] + "..."


def _platform_choice_title(platform: PlatformSpec, *, width: int) -> str:
    """`<description>  (os, browser, version)`, padded so the tuples line up."""
    label = _truncate(platform.description, _MAX_DESCRIPTION_WIDTH).ljust(width)
    return f"{label}  ({', '.join(platform.as_wire())})"


def select_platforms(platforms: list[PlatformSpec]) -> list[PlatformSpec]:
    """
    Let the user untick platforms from a checkbox list; all start ticked.

    Returns an empty list when nothing is selected or the prompt is aborted.
    """
    width = max(
        (len(_truncate(p.description, _MAX_DESCRIPTION_WIDTH)) for p in platforms),
        default=0,
    )
    picker = questionary.checkbox(
        "Platforms to run:",
        choices=[
            questionary.Choice(
                title=_platform_choice_title(p, width=width), value=p, checked=True
            )
            for p in platforms
        ],
        style=QUESTIONARY_STYLE_SELECT,
    )
    return picker.ask() or []
