"""CLI entry point for erpnext-api-tester."""

import sys
from datetime import datetime

from rich.console import Console

from app import create_app
from auth import print_auth_status
from core.config import CONFIG_FILE, load_config
from ui.dashboard import Dashboard
from ui.log_utils import clear_logs, shutdown_log_executor, write_cli_log

console = Console()


def main():
    """Main CLI entry point."""
    config = load_config()

    # Handle CLI arguments
    if len(sys.argv) > 1:
        arg = sys.argv[1]

        if arg in ("--check", "--auth"):
            print_auth_status(config)
            return

        if arg == "--config":
            console.print(f"[bold]Config:[/bold] {CONFIG_FILE}")
            return

        if arg in ("--help", "-h"):
            _print_help()
            return

        console.print(f"[red][ERROR][/red] Unknown argument: {arg}")
        _print_help()
        sys.exit(2)

    # Clear previous logs and start dashboard
    clear_logs()
    dashboard = Dashboard(config)

    import uvicorn

    app = create_app(config, dashboard)

    uvicorn_config = uvicorn.Config(
        app,
        host=config.proxy.host,
        port=config.proxy.port,
        log_level="warning",
        timeout_keep_alive=config.limits.keep_alive_timeout,
    )
    server = uvicorn.Server(uvicorn_config)

    dashboard.start()
    start_time = datetime.now()
    write_cli_log("STARTUP", "Proxy started", port=config.proxy.port)
    try:
        server.run()
    finally:
        duration = datetime.now() - start_time
        shutdown_log_executor()
        write_cli_log("SHUTDOWN", "Proxy stopped", duration=str(duration))
        dashboard.stop()


def _print_help():
    """Print help message."""
    help_text = """
[bold cyan]ERPNext API Tester[/bold cyan]

Forwards /api/* calls to the ERPNext host named in the X-Target-URL header.

[bold]Usage:[/bold]
    erpnext-api-tester              Start proxy with live dashboard
    erpnext-api-tester --check      Test the configured ERPNext credentials
    erpnext-api-tester --config     Show config location
    erpnext-api-tester --help       Show this help

[bold]Environment:[/bold]
    PORT    Override the listen port (default 3001)
"""
    console.print(help_text)


if __name__ == "__main__":
    main()
