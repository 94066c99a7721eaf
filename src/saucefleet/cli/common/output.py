"""Console output for the saucefleet CLI: messages, tables and log routing."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

import questionary
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table
from rich.theme import Theme

from saucefleet.cli.common.tui_style import QUESTIONARY_STYLE_CONFIRM

console = Console(
    theme=Theme(
        {
            "pass": "bold green",
            "fail": "bold red",
            "caution": "yellow",
            "heading": "bold magenta",
            "muted": "dim",
        }
    )
)


def configure_logging(verbose: bool = False) -> None:
    """Route `saucefleet` log records to the shared Rich console."""
    handler = RichHandler(
        console=console,
        show_path=False,
        markup=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
    logger = logging.getLogger("saucefleet")
    logger.handlers[:] = [handler]
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    logger.propagate = False


@dataclass(frozen=True)
class Out:
    """Prints CLI messages and tables on the shared console."""

    def _line(self, style: str, mark: str, msg: str) -> None:
        console.print(f"[{style}]{mark}[/] {msg}")

    def info(self, msg: str) -> None:
        self._line("heading", "•", msg)

    def success(self, msg: str) -> None:
        self._line("pass", "✔", msg)

    def warn(self, msg: str) -> None:
        self._line("caution", "!", msg)

    def error(self, msg: str) -> None:
        self._line("fail", "✘", msg)

    def header(self, title: str) -> None:
        console.rule(f"[heading]{title}[/]", align="left")

    @contextmanager
    def status(self, msg: str):
        """Keep a spinner on screen for the duration of the block."""
        with console.status(msg, spinner="line"):
            yield

    def kv(self, items: Mapping[str, Any]) -> None:
        width = max((len(k) for k in items), default=0)
        for key, value in items.items():
            console.print(f"[muted]{key.ljust(width)}[/]  {value}")

    def confirm(self, message: str, *, default: bool = False) -> bool:
        """Yes/no prompt in the shared Questionary style."""
        answer = questionary.confirm(
            message,
            default=default,
            style=QUESTIONARY_STYLE_CONFIRM,
            qmark="?",
            auto_enter=False,
        ).ask()
        return bool(answer)

    def platforms_table(self, platforms: Iterable[Any], title: str = "Platforms") -> None:
        """Render objects exposing .description .os .browser .version (PlatformSpec)."""
        table = Table(title=title)
        table.add_column("Platform", style="pass")
        for column in ("OS", "Browser", "Version"):
            table.add_column(column, style="muted")
        for p in platforms:
            table.add_row(p.description, p.os, p.browser, p.version)
        console.print(table)

    def results_table(self, outcomes: Iterable[Any], title: str = "Results") -> None:
        """Render objects exposing .platform .failed .url (JobOutcome)."""
        table = Table(title=title)
        table.add_column("Platform")
        table.add_column("Outcome")
        table.add_column("Report", style="muted", overflow="fold")
        for o in outcomes:
            outcome = "[fail]failed[/]" if o.failed else "[pass]passed[/]"
            table.add_row(o.platform.description, outcome, o.url or "-")
        console.print(table)


out = Out()
