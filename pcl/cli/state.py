"""Per-invocation CLI state and shared output helpers.

``CliState`` travels on ``typer.Context.obj``.  The root callback creates a
default one; tests pass their own via ``CliRunner.invoke(..., obj=...)`` to
inject an ``httpx`` transport, a scripted prompter, a build-tool runner, or
a fake sleep.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, NoReturn

import httpx
import typer
from pydantic import BaseModel, ConfigDict, Field
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from pcl.config import Settings
from pcl.core.config_store import ConfigStore
from pcl.core.errors import BuildError, PclError
from pcl.core.selection import Prompter, QuestionaryPrompter
from pcl.models.config import PersistedConfig

console = Console()
err_console = Console(stderr=True)


class CliState(BaseModel):
    """Collaborators for one command invocation."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    settings: Settings = Field(default_factory=Settings)
    transport: httpx.BaseTransport | None = None
    prompter: Prompter | None = None
    runner: Callable[..., Any] | None = None
    sleep: Callable[[float], object] | None = None

    def store(self) -> ConfigStore:
        return ConfigStore(self.settings.config_path)

    def load(self) -> tuple[ConfigStore, PersistedConfig]:
        """Open the state file once for this command, or exit 1."""
        store = self.store()
        try:
            return store, store.load()
        except PclError as exc:
            fail(exc)

    def get_prompter(self) -> Prompter:
        return self.prompter if self.prompter is not None else QuestionaryPrompter()


def get_state(ctx: typer.Context) -> CliState:
    if ctx.obj is None:
        ctx.obj = CliState()
    return ctx.obj


def configure_logging(settings: Settings, verbose: bool = False) -> None:
    level = logging.DEBUG if verbose or settings.debug else settings.log_level.upper()
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[
            RichHandler(
                console=err_console,
                show_path=False,
                rich_tracebacks=settings.debug,
            )
        ],
        force=True,
    )


def fail(exc: PclError) -> NoReturn:
    """Print a one-line cause (plus diagnostics and hint) and exit 1."""
    err_console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}")
    if isinstance(exc, BuildError) and exc.diagnostics:
        err_console.print(exc.diagnostics, markup=False, highlight=False)
    if exc.hint:
        err_console.print(f"[dim]Run:[/dim] [bold]{escape(exc.hint)}[/bold]")
    raise typer.Exit(code=1)
