"""CLI commands for authfetch."""

import asyncio
import logging
import sys
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from authfetch import __logo__, __version__

app = typer.Typer(
    name="authfetch",
    help=f"{__logo__} authfetch - OAuth2 bearer-token fetch client",
    no_args_is_help=True,
)

console = Console()


def version_callback(value: bool):
    if value:
        console.print(f"{__logo__} authfetch v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None, "--version", "-v", callback=version_callback, is_eager=True
    ),
):
    """authfetch - OAuth2 bearer-token fetch client."""
    pass


# ============================================================================
# Onboard / Setup
# ============================================================================


@app.command()
def onboard():
    """Initialize authfetch configuration."""
    from authfetch.config.loader import get_config_path, save_config
    from authfetch.config.schema import Config

    config_path = get_config_path()

    if config_path.exists():
        console.print(f"[yellow]Config already exists at {config_path}[/yellow]")
        if not typer.confirm("Overwrite?"):
            raise typer.Exit()

    save_config(Config())
    console.print(f"[green]✓[/green] Created config at {config_path}")

    console.print(f"\n{__logo__} authfetch is ready!")
    console.print("\nNext steps:")
    console.print(f"  1. Set [cyan]auth.tokenUrl[/cyan] and [cyan]auth.clientId[/cyan] in [cyan]{config_path}[/cyan]")
    console.print("  2. Store a token: [cyan]authfetch login --access ... --refresh ...[/cyan]")
    console.print("  3. Fetch: [cyan]authfetch fetch /some/endpoint[/cyan]")


@app.command()
def login(
    access: str = typer.Option(..., "--access", "-a", help="Access token"),
    refresh: str = typer.Option(..., "--refresh", "-r", help="Refresh token"),
    expires_in: int = typer.Option(None, "--expires-in", "-e", help="Access token lifetime in seconds"),
):
    """Store an OAuth token pair."""
    from authfetch.auth.models import Token
    from authfetch.auth.storage import save_token

    token = Token.from_expires_in(access, refresh, expires_in)
    path = save_token(token)
    console.print(f"[green]✓[/green] Saved token to {path}")


# ============================================================================
# Fetch
# ============================================================================


@app.command()
def fetch(
    url: str = typer.Argument(..., help="Absolute URL or path relative to api.baseUrl"),
    output: Path = typer.Option(None, "--output", "-o", help="Write the body to this file"),
    as_json: bool = typer.Option(False, "--json", "-j", help="Pretty-print the body as JSON"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Fetch a resource with the stored token."""
    from authfetch.auth.refresh import OAuthTokenRefresher
    from authfetch.auth.storage import TokenFileLock, load_token, save_token
    from authfetch.config.loader import load_config
    from authfetch.fetch import FetchError, Fetcher

    if verbose:
        logging.basicConfig(level=logging.DEBUG)

    config = load_config()
    if not config.has_auth:
        console.print("[red]Error: No token endpoint configured.[/red]")
        console.print("Set auth.tokenUrl and auth.clientId in ~/.authfetch/config.json")
        raise typer.Exit(1)

    refresher = OAuthTokenRefresher(
        token_url=config.auth.token_url,
        client_id=config.auth.client_id,
        client_secret=config.auth.client_secret or None,
    )

    async def run():
        async with Fetcher(
            refresher,
            policy=config.get_retry_policy(),
            classifier=config.get_classifier(),
            base_url=config.api.base_url,
            timeout=config.api.timeout,
            refresh_leeway=config.auth.refresh_leeway,
        ) as fetcher:
            return await fetcher.fetch(url, token)

    # Hold the lock across the call so concurrent runs do not refresh twice.
    with TokenFileLock():
        token = load_token()
        if not token:
            console.print("[red]Error: No token stored. Run 'authfetch login' first.[/red]")
            raise typer.Exit(1)
        try:
            result = asyncio.run(run())
        except FetchError as e:
            if e.token is not None and e.token != token:
                save_token(e.token)
            console.print(f"[red]Error: {e}[/red]")
            raise typer.Exit(1)
        if result.token != token:
            save_token(result.token)

    if output:
        output.write_bytes(result.body)
        console.print(f"[green]✓[/green] Wrote {len(result.body)} bytes to {output}")
    elif as_json:
        try:
            console.print_json(result.text())
        except ValueError:
            console.print("[red]Error: Response body is not valid JSON[/red]")
            raise typer.Exit(1)
    else:
        sys.stdout.buffer.write(result.body)
        sys.stdout.buffer.flush()


# ============================================================================
# Status Commands
# ============================================================================


@app.command()
def status():
    """Show authfetch status."""
    from authfetch.auth.storage import get_token_path, load_token
    from authfetch.config.loader import get_config_path, get_data_dir, load_config

    config_path = get_config_path()
    config = load_config()
    token_path = get_token_path()

    console.print(f"{__logo__} authfetch Status\n")

    console.print(f"Data: {get_data_dir()}")
    console.print(f"Config: {config_path} {'[green]✓[/green]' if config_path.exists() else '[red]✗[/red]'}")
    console.print(f"Token: {token_path} {'[green]✓[/green]' if token_path.exists() else '[red]✗[/red]'}")

    policy = config.get_retry_policy()
    table = Table(title="Settings")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    table.add_row("Base URL", config.api.base_url or "[dim]not set[/dim]")
    table.add_row("Token URL", config.auth.token_url or "[dim]not set[/dim]")
    table.add_row("Max attempts", str(policy.max_attempts))
    table.add_row("Delay", f"{policy.base_delay:g}s → {policy.max_delay:g}s")
    table.add_row("Retryable", ", ".join(str(s) for s in sorted(policy.retryable_statuses)))

    token = load_token()
    if token:
        remaining = token.expires_in_ms()
        if remaining is None:
            expiry = "[dim]unknown[/dim]"
        elif remaining <= 0:
            expiry = "[red]expired[/red]"
        else:
            expiry = f"[green]{remaining // 1000}s left[/green]"
        table.add_row("Access token", expiry)

    console.print(table)


if __name__ == "__main__":
    app()
