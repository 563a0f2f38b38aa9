"""Main Typer application — imports and registers all CLI commands.

Entry point: ``pcl`` (configured via pyproject.toml project.scripts).

Commands: auth (login, logout, status), store, submit, test, build.
"""

from __future__ import annotations

import typer

from pcl.cli.commands.auth import auth_app
from pcl.cli.commands.forge import PASSTHROUGH_CONTEXT, build_cmd, test_cmd
from pcl.cli.commands.store import store_cmd
from pcl.cli.commands.submit import submit_cmd
from pcl.cli.state import configure_logging, get_state

app = typer.Typer(
    name="pcl",
    help="pcl: build, store, and submit Credible Layer assertions.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)


@app.callback()
def root_callback(
    ctx: typer.Context,
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Log debug output to stderr.",
    ),
) -> None:
    state = get_state(ctx)
    configure_logging(state.settings, verbose=verbose)


# Register subcommands
app.add_typer(auth_app, name="auth")
app.command(name="store", help="Build an assertion and store it in the DA layer.")(store_cmd)
app.command(name="submit", help="Register stored assertions with a dApp project.")(submit_cmd)
app.command(
    name="test",
    help="Run assertion tests with the build tool.",
    context_settings=PASSTHROUGH_CONTEXT,
)(test_cmd)
app.command(
    name="build",
    help="Compile the project with the build tool.",
    context_settings=PASSTHROUGH_CONTEXT,
)(build_cmd)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
