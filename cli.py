"""CLI entry point for gemini-proxy."""

import asyncio
import sys
from datetime import datetime

from rich.console import Console

from app import create_app
from auth import check_auth, load_secret
from core.config import CONFIG_FILE, load_config
from core.exceptions import ProxyError, UpstreamError
from services.client import ping_model
from ui.dashboard import Dashboard
from ui.file_logger import FileLogger
from ui.log_utils import CLI_LOG_FILE, clear_logs, write_cli_log

console = Console()

DEFAULT_PING_MODEL = "gemini-2.5-flash"


def main():
    """Main CLI entry point."""
    config = load_config()
    headless = False

    # Handle CLI arguments
    if len(sys.argv) > 1:
        arg = sys.argv[1]

        if arg in ("--check", "--auth"):
            check_auth(config.upstream.api_key_env)
            return

        if arg == "--config":
            console.print(f"[bold]Config:[/bold] {CONFIG_FILE}")
            console.print(f"[bold]Log:[/bold] {CLI_LOG_FILE}")
            return

        if arg in ("--help", "-h"):
            _print_help()
            return

        if arg == "--ping":
            model = sys.argv[2] if len(sys.argv) > 2 else DEFAULT_PING_MODEL
            _ping(config, model)
            return

        if arg == "--headless":
            headless = True

    # A missing key is reported per request, so only warn here
    secret = load_secret(env_var=config.upstream.api_key_env)
    if not secret.is_configured:
        console.print(f"[yellow]Warning:[/yellow] {config.upstream.api_key_env} not set")
        console.print("[dim]Requests will fail with 500 until it is exported[/dim]")

    # Clear previous logs and start dashboard
    clear_logs()
    dashboard = None
    if headless:
        logger = FileLogger()
    else:
        dashboard = Dashboard(config, key_configured=secret.is_configured)
        logger = dashboard

    import uvicorn

    app = create_app(config, logger)

    uvicorn_config = uvicorn.Config(
        app,
        host=config.proxy.host,
        port=config.proxy.port,
        log_level="info" if headless else "warning",
    )
    server = uvicorn.Server(uvicorn_config)

    if dashboard:
        dashboard.start()
    start_time = datetime.now()
    write_cli_log("STARTUP", "Proxy started", port=config.proxy.port)
    try:
        server.run()
    finally:
        duration = datetime.now() - start_time
        write_cli_log("SHUTDOWN", "Proxy stopped", duration=str(duration))
        if dashboard:
            dashboard.stop()


def _ping(config, model: str) -> None:
    """Send one generateContent call and report the outcome; exit 1 on failure."""
    secret = load_secret(env_var=config.upstream.api_key_env)
    mode = config.routing.client_mode
    console.print(f"[bold]Pinging[/bold] {model} ({mode} mode)")
    try:
        reply = asyncio.run(ping_model(config, model, secret.api_key))
    except ProxyError as e:
        console.print(f"[red]Ping failed:[/red] {e}")
        if isinstance(e, UpstreamError) and e.body:
            console.print(e.body, markup=False, highlight=False)
        sys.exit(1)

    candidates = reply.get("candidates") or []
    console.print(f"[green]OK[/green] {len(candidates)} candidate(s)")
    write_cli_log("PING", f"{model} ok", mode=mode)


def _print_help():
    """Print help message."""
    help_text = """
[bold cyan]Gemini Key Proxy[/bold cyan]

Forwards browser calls to the Gemini API, injecting GEMINI_API_KEY server-side.

[bold]Usage:[/bold]
    gemini-proxy                 Start with live dashboard
    gemini-proxy --headless      Start without dashboard
    gemini-proxy --check         Check API key status
    gemini-proxy --config        Show config locations
    gemini-proxy --ping [model]  Send one generateContent call, routed by routing.client_mode
    gemini-proxy --help          Show this help

[bold]Mount points:[/bold]
    /api/api-proxy/<path>  /api-proxy/<path>  /api/proxy/<path>
    /api/proxy?path=<path>
"""
    console.print(help_text)


if __name__ == "__main__":
    main()
