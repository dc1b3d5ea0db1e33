from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import typer

from rr.core.config import CONFIG_FILE_NAME, Config, load_config
from rr.core.errors import ErrorCode
from rr.core.result import Err
from rr.output.console import ConsoleProtocol, RichConsole


@dataclass(frozen=True, slots=True)
class CLIContext:
    config: Config
    console: ConsoleProtocol


def build_context(config_path: Path | None = None) -> CLIContext:
    """Resolve config and console for a command.

    An explicit ``--config`` must load. Without one, ``retention.toml`` in the
    working directory is used when present, else the defaults.
    """
    path = config_path if config_path is not None else Path.cwd() / CONFIG_FILE_NAME

    config = Config()
    if config_path is not None or path.exists():
        result = load_config(path)
        if isinstance(result, Err):
            typer.echo(f"error: {result.error.message}", err=True)
            raise typer.Exit(code=int(ErrorCode.CONFIG_ERROR))
        config = result.value

    return CLIContext(config=config, console=RichConsole())
