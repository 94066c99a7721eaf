"""Process exit codes and the helpers that end a command with one."""

from typing import Callable, NoReturn

import typer

from saucefleet.cli.common.output import out

EXIT_OK = 0
EXIT_FLEET_FAILED = 1
EXIT_TUNNEL_FAILED = 2


def _leave(say: Callable[[str], None], msg: str | None, code: int) -> NoReturn:
    if msg:
        say(msg)
    raise typer.Exit(code)


def ok_exit(msg: str | None = None) -> NoReturn:
    _leave(out.info, msg, EXIT_OK)


def warn_exit(msg: str, code: int = EXIT_OK) -> NoReturn:
    _leave(out.warn, msg, code)


def die(msg: str, code: int = EXIT_FLEET_FAILED) -> NoReturn:
    _leave(out.error, msg, code)


def exit_from_exc(exc: Exception, *, message: str, code: int = EXIT_FLEET_FAILED) -> NoReturn:
    """Report `message` and exit with `code`, keeping `exc` as the cause."""
    out.error(message)
    raise typer.Exit(code) from exc
