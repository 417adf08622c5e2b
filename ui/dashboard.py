"""Real-time CLI dashboard for proxy monitoring."""

from datetime import datetime
from threading import Lock

from rich.console import Console
from rich.layout import Layout
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.config import Config
from ui.log_utils import write_cli_log

console = Console()


class ForwardInfo:
    """Info about a single forwarded request."""

    def __init__(self, method: str, path: str, status: int, elapsed_ms: float, timestamp: datetime):
        self.method = method
        self.path = path[:60] + "..." if len(path) > 60 else path
        self.status = status
        self.elapsed_ms = elapsed_ms
        self.timestamp = timestamp


class Dashboard:
    """Real-time dashboard showing recent forwards and errors."""

    def __init__(self, config: Config, key_configured: bool = True):
        self.config = config
        self.key_configured = key_configured
        self._lock = Lock()
        self._recent: list[ForwardInfo] = []
        self._max_recent = 8
        self._request_count = {"ok": 0, "error": 0}
        self._errors: list[str] = []
        self._live: Live | None = None

    def start(self) -> "Dashboard":
        """Start the live dashboard."""
        self._live = Live(
            self._build_layout(),
            console=console,
            refresh_per_second=4,
            screen=False,
        )
        self._live.start()
        return self

    def stop(self) -> None:
        """Stop the live dashboard."""
        if self._live:
            self._live.stop()

    def log_forward(
        self,
        method: str,
        path: str,
        status: int,
        *,
        url: str,
        elapsed_ms: float,
    ) -> None:
        """Log a request that reached upstream."""
        with self._lock:
            # Failures are counted once, in log_error
            if status < 400:
                self._request_count["ok"] += 1
            info = ForwardInfo(method, path, status, elapsed_ms, datetime.now())
            self._recent.insert(0, info)
            self._recent = self._recent[: self._max_recent]
            write_cli_log("FORWARD", f"{method} {path}", status=status, url=url, ms=f"{elapsed_ms:.0f}")
            self._refresh()

    def log_error(self, route: str, status: int, message: str) -> None:
        """Log an error, local or relayed from upstream."""
        with self._lock:
            self._request_count["error"] += 1
            truncated = message[:50] + "..." if len(message) > 50 else message
            self._errors.insert(0, f"{route} {status}: {truncated}")
            self._errors = self._errors[:3]
            self._refresh()
            write_cli_log("ERROR", message[:200], route=route, status=status)

    def _refresh(self) -> None:
        """Refresh the display."""
        if self._live:
            self._live.update(self._build_layout())

    def _build_layout(self) -> Layout:
        """Build the dashboard layout."""
        layout = Layout()

        layout.split_column(
            Layout(name="header", size=3),
            Layout(name="body"),
            Layout(name="footer", size=5),
        )

        layout["header"].update(self._build_header())
        layout["body"].update(self._build_requests_panel())
        layout["footer"].update(self._build_footer())

        return layout

    def _build_header(self) -> Panel:
        """Build header with stats."""
        stats = Text()
        stats.append("Gemini Key Proxy", style="bold cyan")
        stats.append("  |  ")
        stats.append(f"OK: {self._request_count['ok']}", style="green")
        stats.append("  |  ")
        stats.append(f"Errors: {self._request_count['error']}", style="red")
        stats.append("  |  ")
        stats.append(f"Port: {self.config.proxy.port}", style="dim")
        if not self.key_configured:
            stats.append("  |  ")
            stats.append(f"{self.config.upstream.api_key_env} missing", style="bold red")

        return Panel(stats, style="cyan")

    def _build_requests_panel(self) -> Panel:
        """Build recent requests panel."""
        if self._recent:
            table = Table(show_header=True, header_style="bold", expand=True, box=None)
            table.add_column("Time", style="dim", width=8)
            table.add_column("Method", width=7)
            table.add_column("Path", ratio=3)
            table.add_column("Status", width=6)
            table.add_column("ms", width=7, justify="right")

            for req in self._recent:
                style = "green" if req.status < 400 else "red"
                table.add_row(
                    req.timestamp.strftime("%H:%M:%S"),
                    req.method,
                    req.path,
                    Text(str(req.status), style=style),
                    f"{req.elapsed_ms:.0f}",
                )

            content = table
        else:
            content = Text("Waiting for requests...", style="dim")

        return Panel(content, title="[blue]Forwarded Requests[/blue]", border_style="blue")

    def _build_footer(self) -> Panel:
        """Build footer with errors and help."""
        if self._errors:
            error_text = Text()
            for err in self._errors:
                error_text.append("! ", style="red bold")
                error_text.append(err + "\n", style="red")
            content = error_text
        else:
            content = Text(
                f"Point clients at http://{self.config.proxy.host}:{self.config.proxy.port}/api-proxy",
                style="dim",
            )

        return Panel(content, title="[dim]Status[/dim]", border_style="dim")
