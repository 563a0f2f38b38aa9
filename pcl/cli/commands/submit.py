"""``pcl submit`` — register pending assertions with a dApp project.

Without ``--project`` (and no ``PCL_DEFAULT_PROJECT``) the project is picked
interactively; without ``--assertion`` the pending assertions are.  Each
assertion is registered on its own: the command reports which succeeded and
which failed, and exits 1 if any failed.
"""

from __future__ import annotations

import json
from typing import List, Optional

import typer
from rich.markup import escape
from rich.table import Table

from pcl.cli.state import console, err_console, fail, get_state
from pcl.core.dapp import DappSubmissionClient
from pcl.core.errors import LOGIN_HINT, PclError, SubmissionError
from pcl.models.assertions import AssertionKey
from pcl.models.reports import SubmissionReport


def _parse_selectors(selectors: list[str]) -> list[AssertionKey]:
    keys = []
    for selector in selectors:
        try:
            keys.append(AssertionKey.parse(selector))
        except ValueError as exc:
            fail(SubmissionError(f"Invalid assertion selector {selector!r}: {exc}"))
    return keys


def _render_report(report: SubmissionReport) -> None:
    table = Table(title=f"Submission to {report.project.name}")
    table.add_column("Assertion", style="cyan")
    table.add_column("Artifact ID")
    table.add_column("Status", justify="center")
    table.add_column("Error")

    for item in report.registered:
        table.add_row(str(item.key), item.artifact_id, "[green]registered[/green]", "")
    for item in report.failed:
        table.add_row(str(item.key), item.artifact_id, "[red]failed[/red]", escape(item.error))

    console.print(table)


def submit_cmd(
    ctx: typer.Context,
    project: Optional[str] = typer.Option(
        None,
        "--project",
        "-p",
        help="Project to register with. Prompts when omitted.",
    ),
    assertions: Optional[List[str]] = typer.Option(
        None,
        "--assertion",
        "-a",
        help="Assertion to register: Name or Name(arg0,arg1). Repeatable. "
        "Prompts when omitted.",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Print the report as JSON.",
    ),
) -> None:
    """Register stored assertions with a project in the dApp."""
    state = get_state(ctx)
    store, config = state.load()
    keys = _parse_selectors(list(assertions or []))
    project_name = project or state.settings.default_project or None

    client = DappSubmissionClient.from_settings(
        store, state.settings, state.get_prompter(), transport=state.transport
    )
    try:
        report = client.submit(config, project_name, keys or None)
    except PclError as exc:
        fail(exc)

    if json_output:
        typer.echo(json.dumps(report.model_dump(mode="json"), indent=2))
    else:
        _render_report(report)

    if report.ok:
        if not json_output:
            console.print(
                f"[bold green]Registered {len(report.registered)} assertion(s) "
                f"with {escape(report.project.name)}.[/bold green]"
            )
        return

    err_console.print(
        f"[bold red]{len(report.failed)} of "
        f"{len(report.registered) + len(report.failed)} assertion(s) failed;[/bold red] "
        "they remain pending and can be resubmitted."
    )
    if config.credential is None:
        err_console.print(f"[dim]Run:[/dim] [bold]{LOGIN_HINT}[/bold]")
    raise typer.Exit(code=1)
