"""Headless request logger for serverless and --headless runs."""

from pathlib import Path

from ui.log_utils import CLI_LOG_FILE, write_cli_log


class FileLogger:
    """Write forwards and errors to the rolling CLI log only."""

    def __init__(self, log_file: Path = CLI_LOG_FILE):
        self.log_file = log_file

    def log_forward(
        self,
        method: str,
        path: str,
        status: int,
        *,
        url: str,
        elapsed_ms: float,
    ) -> None:
        write_cli_log(
            "FORWARD",
            f"{method} {path}",
            log_file=self.log_file,
            status=status,
            url=url,
            ms=f"{elapsed_ms:.0f}",
        )

    def log_error(self, route: str, status: int, message: str) -> None:
        write_cli_log("ERROR", message[:200], log_file=self.log_file, route=route, status=status)
