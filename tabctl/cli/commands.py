"""CLI commands for tabctl.

Every command except `host` and `install` talks to running bridges through
TabService; `host` is what the browser launches as its native messaging host.
"""

import asyncio
from typing import Any, Awaitable, Callable

import typer
from loguru import logger
from rich.console import Console

from tabctl import __logo__, __version__
from tabctl.cli.shared.logging_utils import ensure_rotating_log_file
from tabctl.cli.shared.output import print_json, print_tab_table
from tabctl.utils.exceptions import TabctlError

app = typer.Typer(
    name="tabctl",
    help=f"{__logo__} tabctl - Browser tab management CLI",
    no_args_is_help=True,
)

console = Console()
err_console = Console(stderr=True)


def _service():
    from tabctl.client.service import TabService
    from tabctl.config.access import get_config

    return TabService(get_config())


def _run(factory: Callable[[], Awaitable[Any]]) -> Any:
    """Run one async client call, turning tabctl errors into `Error: ...` + exit 1."""
    try:
        return asyncio.run(factory())
    except TabctlError as exc:
        err_console.print(f"[red]Error: {exc.message}[/red]", highlight=False)
        raise typer.Exit(1)
    except (OSError, ValueError) as exc:
        err_console.print(f"[red]Error: {exc}[/red]", highlight=False)
        raise typer.Exit(1)


def version_callback(value: bool):
    if value:
        console.print(f"{__logo__} tabctl v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None, "--version", "-v", callback=version_callback, is_eager=True
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Show client logs and write ~/.tabctl/logs/cli.log"),
):
    """tabctl - Browser tab management CLI."""
    if verbose:
        logger.enable("tabctl")
        ensure_rotating_log_file("cli", level="DEBUG")
    else:
        logger.disable("tabctl")


# ============================================================================
# Tabs
# ============================================================================


@app.command("list")
def list_tabs(
    browser: str = typer.Option(None, "--browser", "-b", help="Filter by browser (chrome, firefox)"),
    fmt: str = typer.Option("json", "--format", "-f", help="Output format (json, table)"),
):
    """List all tabs."""
    tabs = _run(lambda: _service().list_tabs(browser))
    if fmt == "table":
        print_tab_table(console, tabs)
    else:
        print_json(console, {"tabs": [t.to_dict() for t in tabs]})


@app.command("close")
def close(
    tab_id: str = typer.Argument(None, help="Tab ID, e.g. chrome:42"),
    domain: str = typer.Option(None, "--domain", "-d", help="Close all tabs from a domain"),
    older_than: str = typer.Option(None, "--older-than", help="Close tabs older than duration (e.g. 7d, 24h, 30m)"),
    duplicates: bool = typer.Option(False, "--duplicates", help="Close duplicate URLs (keep oldest)"),
):
    """Close a tab or batch of tabs."""
    from tabctl.client.formatting import parse_duration
    from tabctl.client.service import duplicate_tabs, tabs_for_domain, tabs_older_than

    if domain or older_than or duplicates:
        if older_than:
            try:
                age_ms = parse_duration(older_than)
            except TabctlError as exc:
                err_console.print(f"[red]Error: {exc.message}[/red]", highlight=False)
                raise typer.Exit(1)
            select, empty = (lambda tabs: tabs_older_than(tabs, age_ms)), "No tabs older than that duration."
        elif domain:
            select, empty = (lambda tabs: tabs_for_domain(tabs, domain)), "No tabs found for that domain."
        else:
            select, empty = duplicate_tabs, "No duplicate tabs found."

        async def _close_selected():
            service = _service()
            chosen = select(await service.list_tabs())
            if not chosen:
                return None
            return await service.close_tabs([t.id for t in chosen])

        result = _run(_close_selected)
        if result is None:
            console.print(empty)
            return
        print_json(console, result)
    elif tab_id:
        print_json(console, _run(lambda: _service().close_tab(tab_id)))
    else:
        err_console.print("[red]Error: provide a tab ID or use --domain, --older-than, or --duplicates[/red]")
        raise typer.Exit(1)


@app.command("activate")
def activate(tab_id: str = typer.Argument(..., help="Tab ID, e.g. chrome:42")):
    """Activate (focus) a tab."""
    print_json(console, _run(lambda: _service().activate_tab(tab_id)))


@app.command("move")
def move(
    tab_id: str = typer.Argument(..., help="Tab ID, e.g. chrome:42"),
    window: str = typer.Option(..., "--window", "-w", help="Target window ID"),
):
    """Move a tab to a different window."""
    print_json(console, _run(lambda: _service().move_tab(tab_id, window)))


@app.command("open")
def open_tab(
    url: str = typer.Argument(..., help="URL to open"),
    browser: str = typer.Option(None, "--browser", "-b", help="Target browser"),
):
    """Open a new tab."""
    print_json(console, _run(lambda: _service().open_tab(url, browser)))


@app.command("windows")
def windows(browser: str = typer.Option(None, "--browser", "-b", help="Filter by browser")):
    """List all windows."""
    items = _run(lambda: _service().list_windows(browser))
    print_json(console, {"windows": [w.to_dict() for w in items]})


@app.command("domains")
def domains(sort: str = typer.Option("count", "--sort", "-s", help="Sort by count or name")):
    """Group tabs by domain."""
    from tabctl.client.service import group_by_domain

    tabs = _run(lambda: _service().list_tabs())
    print_json(console, {"domains": group_by_domain(tabs, sort)})


@app.command("tracking")
def tracking(browser: str = typer.Option(None, "--browser", "-b", help="Filter by browser")):
    """Dump raw tab tracking data per browser."""
    print_json(console, _run(lambda: _service().get_tracking_data(browser)))


@app.command("status")
def status():
    """Show connected browsers."""
    print_json(console, _run(lambda: _service().get_status()))


# ============================================================================
# Native host
# ============================================================================


@app.command("host")
def host(
    browser: str = typer.Option(None, "--browser", "-b", help="Browser label; omit for the shared single-browser socket"),
):
    """Run the native messaging bridge (launched by the browser)."""
    from tabctl.bridge.host import main as host_main
    from tabctl.config.access import get_config

    logger.enable("tabctl")
    raise typer.Exit(host_main(browser, get_config()))


@app.command("install")
def install(
    chrome_extension_id: str = typer.Argument(None, help="Chrome extension ID (optional)"),
):
    """Register native host with browsers."""
    from tabctl.config.access import get_config
    from tabctl.install import install_native_hosts

    results = install_native_hosts(get_config().install, chrome_extension_id=chrome_extension_id)
    for result in results:
        if result.ok:
            console.print(f"[green]✓[/green] {result.message}", highlight=False)
        else:
            console.print(f"[yellow]{result.message}[/yellow]", highlight=False)
    if not any(r.ok for r in results):
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
