"""prompt_toolkit styles shared by the questionary prompts of the CLI."""

from __future__ import annotations

from prompt_toolkit.styles import Style

_QUIET = "ansibrightblack"

_BASE = {
    "question": "bold ansibrightcyan",
    "separator": _QUIET,
    "instruction": _QUIET,
    "disabled": _QUIET,
    "error": "bold ansired",
}


def _accented(accent: str, **extra: str) -> Style:
    """Build a style where every interactive element uses `accent`."""
    rules = dict(_BASE)
    for name in ("answer", "pointer", "highlighted", "selected"):
        rules[name] = f"bold {accent}"
    rules.update(extra)
    return Style.from_dict(rules)


QUESTIONARY_STYLE_SELECT = _accented(
    "ansibrightgreen",
    checkbox=_QUIET,
    **{"checkbox-selected": "bold ansibrightgreen"},
)

QUESTIONARY_STYLE_CONFIRM = _accented("ansimagenta")
