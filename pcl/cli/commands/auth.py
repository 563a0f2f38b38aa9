"""``pcl auth login|logout|status`` — wallet authentication.

``login`` runs the device-authorization flow: it shows a pairing URL, then
waits until the wallet owner approves or denies it, the code expires, or the
user presses Ctrl-C.
"""

from __future__ import annotations

import typer
from rich.panel import Panel

from pcl.cli.state import console, fail, get_state
from pcl.core.auth import AuthManager
from pcl.core.errors import PclError
from pcl.models.auth import AuthStatus, DeviceCode

auth_app = typer.Typer(
    help="Authenticate with the Credible Layer platform.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


def _show_code(code: DeviceCode) -> None:
    lines = [
        "[bold]Open this URL to authenticate your wallet:[/bold]",
        "",
        f"  [link={code.pairing_url}]{code.pairing_url}[/link]",
    ]
    if code.user_code:
        lines += ["", f"[bold]Code:[/bold] {code.user_code}"]
    lines += ["", "[dim]Waiting for approval... (Ctrl-C to cancel)[/dim]"]
    console.print()
    console.print(
        Panel(
            "\n".join(lines),
            title="[bold]pcl auth login[/bold]",
            border_style="cyan",
            padding=(1, 2),
        )
    )


@auth_app.command(name="login", help="Authenticate via the browser pairing flow.")
def login_cmd(ctx: typer.Context) -> None:
    """Pair this machine with a wallet and store the credential."""
    state = get_state(ctx)
    store, config = state.load()
    manager = AuthManager(store, state.settings, transport=state.transport, sleep=state.sleep)
    try:
        credential = manager.login(config, on_code=_show_code)
    except PclError as exc:
        fail(exc)

    who = credential.user_address or "your wallet"
    console.print(f"[bold green]Authenticated[/bold green] as [bold]{who}[/bold].")


@auth_app.command(name="logout", help="Remove the stored credential.")
def logout_cmd(ctx: typer.Context) -> None:
    state = get_state(ctx)
    store, config = state.load()
    manager = AuthManager(store, state.settings)
    try:
        removed = manager.logout(config)
    except PclError as exc:
        fail(exc)

    if removed:
        console.print("[bold green]Logged out.[/bold green]")
    else:
        console.print("[dim]Not logged in; nothing to do.[/dim]")


@auth_app.command(name="status", help="Show whether a credential is stored.")
def status_cmd(ctx: typer.Context) -> None:
    """Local check only; the credential is not validated with the server."""
    state = get_state(ctx)
    _, config = state.load()
    status = AuthManager.status(config)

    if status == AuthStatus.AUTHENTICATED:
        credential = config.credential
        console.print("[bold green]Authenticated[/bold green]")
        if credential.user_address:
            console.print(f"  [bold]Address:[/bold] {credential.user_address}")
        if credential.expires_at is not None:
            console.print(f"  [bold]Expires:[/bold] {credential.expires_at.isoformat()}")
    elif status == AuthStatus.EXPIRED:
        console.print("[bold yellow]Credential expired.[/bold yellow] Run [bold]pcl auth login[/bold].")
    else:
        console.print("[bold red]Not authenticated.[/bold red] Run [bold]pcl auth login[/bold].")
