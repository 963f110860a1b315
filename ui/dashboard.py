"""Real-time CLI dashboard for proxy monitoring."""

from collections import Counter
from datetime import datetime
from threading import Lock
from urllib.parse import urlsplit

from rich.console import Console
from rich.layout import Layout
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.config import Config
from ui.log_utils import submit_cli_log, submit_forward_log

console = Console()


class CallInfo:
    """Info about a single forwarded call."""

    def __init__(self, method: str, target: str, url: str, timestamp: datetime):
        self.method = method
        self.url = url
        self.host = urlsplit(target).netloc or target
        path = urlsplit(url).path
        self.path = path[:60] + "..." if len(path) > 60 else path
        self.timestamp = timestamp
        self.status: int | None = None
        self.elapsed_ms: float | None = None


class Dashboard:
    """Real-time dashboard showing recent forwarded calls."""

    def __init__(self, config: Config):
        self.config = config
        self._lock = Lock()
        self._calls: list[CallInfo] = []
        self._max_calls = 12
        self._request_count: Counter[str] = Counter()
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
        target: str,
        url: str,
        headers: dict[str, str],
    ) -> None:
        """Record a call about to be forwarded."""
        with self._lock:
            info = CallInfo(method, target, url, datetime.now())
            self._request_count[info.host] += 1
            self._calls.insert(0, info)
            self._calls = self._calls[: self._max_calls]
            self._refresh()

        if self.config.proxy.debug:
            submit_forward_log(method, url, headers, target=target)
        submit_cli_log("FORWARD", f"{method} {url}")

    def log_response(
        self,
        method: str,
        target: str,
        url: str,
        status: int,
        elapsed_ms: float,
    ) -> None:
        """Attach the upstream status to the matching pending call."""
        with self._lock:
            for call in self._calls:
                if call.status is None and call.method == method and call.url == url:
                    call.status = status
                    call.elapsed_ms = elapsed_ms
                    break
            self._refresh()
        submit_cli_log("RESPONSE", f"{method} {url}", status=status, ms=f"{elapsed_ms:.0f}")

    def log_error(self, target: str, status: int, message: str) -> None:
        """Log an error."""
        with self._lock:
            truncated = message[:50] + "..." if len(message) > 50 else message
            self._errors.insert(0, f"{target} {status}: {truncated}")
            self._errors = self._errors[:3]
            self._refresh()
        submit_cli_log("ERROR", message[:200], target=target, status=status)

    def _refresh(self) -> None:
        """Refresh the display."""
        if self._live:
            self._live.update(self._build_layout())

    def _build_layout(self) -> Layout:
        """Build the dashboard layout."""
        layout = Layout()

        layout.split_column(
            Layout(name="header", size=3),
            Layout(name="calls"),
            Layout(name="footer", size=5),
        )

        layout["header"].update(self._build_header())
        layout["calls"].update(self._build_calls_panel())
        layout["footer"].update(self._build_footer())

        return layout

    def _build_header(self) -> Panel:
        """Build header with stats."""
        stats = Text()
        stats.append("ERPNext API Tester", style="bold cyan")
        for host, count in self._request_count.most_common(3):
            stats.append("  |  ")
            stats.append(f"{host}: {count}", style="blue")
        stats.append("  |  ")
        stats.append(f"Port: {self.config.proxy.port}", style="dim")

        return Panel(stats, style="cyan")

    def _build_calls_panel(self) -> Panel:
        """Build recent calls panel."""
        if self._calls:
            table = Table(show_header=True, header_style="bold", expand=True, box=None)
            table.add_column("Time", style="dim", width=8)
            table.add_column("Method", width=7)
            table.add_column("Target", ratio=1)
            table.add_column("Path", ratio=2)
            table.add_column("Status", width=6)
            table.add_column("ms", width=6, justify="right")

            for call in self._calls:
                table.add_row(
                    call.timestamp.strftime("%H:%M:%S"),
                    call.method,
                    call.host,
                    call.path,
                    _status_text(call.status),
                    f"{call.elapsed_ms:.0f}" if call.elapsed_ms is not None else "",
                )

            content = table
        else:
            content = Text("Waiting for requests...", style="dim")

        return Panel(content, title="[blue]Forwarded calls[/blue]", border_style="blue")

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
                f"Send requests to http://localhost:{self.config.proxy.port}"
                f"{self.config.upstream.path_prefix}/... with "
                f"{self.config.upstream.target_header}: https://your-erpnext-host",
                style="dim",
            )

        return Panel(content, title="[dim]Status[/dim]", border_style="dim")


def _status_text(status: int | None) -> Text:
    if status is None:
        return Text("...", style="dim")
    if status >= 500:
        return Text(str(status), style="red")
    if status >= 400:
        return Text(str(status), style="yellow")
    return Text(str(status), style="green")
