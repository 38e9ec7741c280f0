# Tequila SSO - Web Single Sign-On Client
# Copyright (c) 2026 George Scott Foley
# ORCID: 0009-0006-4957-0540
# Email: Georgescottfoley@proton.me
# Licensed under the MIT License - see LICENSE file for details

"""
Command Line Interface

Usage:
    tequila-sso serve     # Start the demo server
    tequila-sso config    # Show the effective Tequila configuration
"""

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from tequila_core.exceptions.hierarchy import ConfigurationError

app = typer.Typer(name="tequila-sso", help="Tequila SSO - Web Single Sign-On Client")
console = Console()


# ============================================================
# SERVER COMMANDS
# ============================================================


@app.command()
def serve(
    host: str = typer.Option(None, help="Host to bind to (default: settings)"),
    port: int = typer.Option(None, help="Port to bind to (default: settings)"),
    reload: bool = typer.Option(False, help="Enable auto-reload (development)"),
):
    """Start the demo server with a Tequila-protected /private page."""
    import uvicorn

    from .core.settings import get_settings

    try:
        settings = get_settings()
    except ConfigurationError as e:
        console.print(f"[red]Configuration error:[/] {escape(e.message)}")
        raise typer.Exit(code=1) from e

    host = host or settings.host
    port = port or settings.port
    console.print(f"[bold green]Starting {settings.app_name} on {host}:{port}[/]")

    uvicorn.run(
        "tequila_sso.gateway.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
    )


# ============================================================
# CONFIGURATION COMMANDS
# ============================================================


@app.command("config")
def show_config():
    """Show the identity server configuration in effect."""
    from .core.settings import load_settings

    try:
        settings = load_settings()
    except ConfigurationError as e:
        console.print(f"[red]Configuration error:[/] {escape(e.message)}")
        raise typer.Exit(code=1) from e

    tequila = settings.tequila
    table = Table(title="Tequila Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="white")
    table.add_row("Service", tequila.service)
    table.add_row("Server", tequila.base_url)
    table.add_row("createrequest", tequila.createrequest_path)
    table.add_row("requestauth", tequila.requestauth_path)
    table.add_row("fetchattributes", tequila.fetchattributes_path)
    table.add_row("logout", tequila.logout_path)
    table.add_row("Timeout", f"{tequila.timeout}s")
    table.add_row("Request", ", ".join(tequila.request) or "[dim]none[/]")
    table.add_row("Require", tequila.require or "[dim]none[/]")
    table.add_row("Allows", ", ".join(tequila.allows) if tequila.allows else "[dim]none[/]")
    table.add_row("Redirect after auth", str(tequila.redirect_after_auth))
    console.print(table)


# ============================================================
# MAIN
# ============================================================


def main():
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
