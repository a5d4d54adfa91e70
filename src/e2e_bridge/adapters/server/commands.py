"""Administrative command dispatch through the host's Typer/Click app."""

from __future__ import annotations

import logging
from typing import Any, Mapping

import click
import typer

logger = logging.getLogger(__name__)


def parameters_to_argv(parameters: Mapping[str, Any]) -> list[str]:
    """Translate a parameter mapping into command-line arguments.

    - `{"--force": True}` -> `--force`; `False`/`None` options are dropped.
    - `{"--class": "UserSeeder"}` -> `--class UserSeeder`.
    - `{"--tag": ["a", "b"]}` -> `--tag a --tag b`.
    - Keys without dashes are positional arguments, in mapping order.
    """

    options: list[str] = []
    positionals: list[str] = []
    for key, value in parameters.items():
        if not key.startswith("-"):
            if isinstance(value, (list, tuple)):
                positionals.extend(str(item) for item in value)
            elif value is not None:
                positionals.append(str(value))
            continue

        if value is True:
            options.append(key)
        elif value is False or value is None:
            continue
        elif isinstance(value, (list, tuple)):
            for item in value:
                options.extend([key, str(item)])
        else:
            options.extend([key, str(value)])
    return options + positionals


class TyperCommandDispatcher:
    """`CommandDispatcher` running commands of a Typer (or plain Click) app in-process."""

    def __init__(self, app: typer.Typer | click.Command, *, prog_name: str = "manage") -> None:
        self._command = typer.main.get_command(app) if isinstance(app, typer.Typer) else app
        self._prog_name = prog_name

    def call(self, command: str, parameters: Mapping[str, Any]) -> int:
        argv = command.split() + parameters_to_argv(parameters)
        if not isinstance(self._command, click.Group):
            # Single-command app: the command name only has to match.
            name, *argv = argv
            if name != self._command.name:
                raise click.UsageError(f"No such command '{name}'.")

        logger.info("Dispatching command: %s", " ".join(argv))
        result = self._command.main(args=argv, prog_name=self._prog_name, standalone_mode=False)
        return result if isinstance(result, int) else 0
