"""``pcl store CONTRACT [ARGS...]`` — build an assertion and store it in DA.

Builds and flattens the contract with the external build tool, submits the
artifact to the assertion DA service, and records it as pending for the
target project.  ``pcl submit`` registers it afterwards.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import List, Optional

import typer
from rich.panel import Panel

from pcl.cli.state import console, fail, get_state
from pcl.core.auth import require_credential
from pcl.core.build import ForgeBuildAdapter
from pcl.core.da import DaSubmissionClient
from pcl.core.errors import PclError
from pcl.models.assertions import AssertionKey


def store_cmd(
    ctx: typer.Context,
    contract: str = typer.Argument(
        ...,
        help="Name of the assertion contract, e.g. OwnableAssertion.",
    ),
    constructor_args: Optional[List[str]] = typer.Argument(
        None,
        help="Constructor arguments, in declaration order.",
        show_default=False,
    ),
    project: Optional[str] = typer.Option(
        None,
        "--project",
        "-p",
        help="Project to file the assertion under. Defaults to PCL_DEFAULT_PROJECT, "
        "then the name of the root directory.",
    ),
    root: Path = typer.Option(
        Path("."),
        "--root",
        "-r",
        help="Root of the assertion project.",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Print the result as JSON.",
    ),
) -> None:
    """Build CONTRACT and store it in the assertion DA layer."""
    state = get_state(ctx)
    settings = state.settings
    store, config = state.load()
    args = list(constructor_args or [])
    root = root.resolve()
    project_name = project or settings.default_project or root.name

    try:
        # fail fast; the build can take a while
        require_credential(config)

        adapter = ForgeBuildAdapter(
            binary=settings.forge_binary,
            root=root,
            assertions_dir=settings.assertions_dir,
            runner=state.runner,
        )
        if not json_output:
            console.print(f"[bold cyan]Building {contract}...[/bold cyan]")
        artifact = adapter.build_and_flatten(contract)

        client = DaSubmissionClient.from_settings(store, settings, transport=state.transport)
        artifact_id = client.submit(config, project_name, artifact, args)
    except PclError as exc:
        fail(exc)

    key = AssertionKey(name=contract, constructor_args=args)
    entry = config.find_pending(project_name, key)
    signature = entry.signature if entry is not None else ""

    if json_output:
        payload = {
            "project": project_name,
            "assertion": str(key),
            "name": contract,
            "constructor_args": args,
            "constructor_signature": artifact.constructor_signature,
            "artifact_id": artifact_id,
            "signature": signature,
        }
        typer.echo(json.dumps(payload, indent=2))
        return

    console.print()
    console.print(
        Panel(
            "\n".join([
                "[bold green]Assertion stored![/bold green]",
                "",
                f"[bold]Assertion:[/bold]   {key}",
                f"[bold]Constructor:[/bold] {artifact.constructor_signature}",
                f"[bold]Project:[/bold]     {project_name}",
                f"[bold]Artifact ID:[/bold] {artifact_id}",
                "",
                "[dim]Register it with:[/dim]",
                f"  pcl submit --project {project_name} --assertion '{key}'",
            ]),
            title="[bold]Assertion DA[/bold]",
            border_style="green",
            padding=(1, 2),
        )
    )
