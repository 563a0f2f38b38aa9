"""``pcl test`` / ``pcl build`` — hand off to the external build tool.

Every argument after the sub-command is forwarded untouched and the tool's
exit code becomes ours.
"""

from __future__ import annotations

from pathlib import Path

import typer

from pcl.cli.state import fail, get_state
from pcl.core.build import ForgeBuildAdapter
from pcl.core.errors import BuildError

PASSTHROUGH_CONTEXT = {"allow_extra_args": True, "ignore_unknown_options": True}


def _passthrough(ctx: typer.Context, subcommand: str) -> None:
    settings = get_state(ctx).settings
    adapter = ForgeBuildAdapter(binary=settings.forge_binary, root=Path.cwd())
    try:
        code = adapter.passthrough([subcommand, *ctx.args])
    except BuildError as exc:
        fail(exc)
    if code != 0:
        raise typer.Exit(code=code)


def test_cmd(ctx: typer.Context) -> None:
    """Run the assertion test suite (forwards to ``forge test``)."""
    _passthrough(ctx, "test")


def build_cmd(ctx: typer.Context) -> None:
    """Compile the project (forwards to ``forge build``)."""
    _passthrough(ctx, "build")
