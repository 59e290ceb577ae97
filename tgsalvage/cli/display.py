"""Live scan display: current download bar, counters and recent events."""
from rich.console import Group
from rich.progress import Progress, BarColumn, DownloadColumn, TransferSpeedColumn, TextColumn, SpinnerColumn
from rich.panel import Panel
from rich.text import Text

from ..models import SaveOutcome, SaveStatus


class Display:
    """Progress display fed by scanner callbacks."""

    def __init__(self):
        self._download = Progress(
            SpinnerColumn(),
            TextColumn("[cyan]↓[/cyan]"),
            TextColumn("{task.fields[name]}", style="bold"),
            BarColumn(bar_width=25),
            DownloadColumn(),
            TransferSpeedColumn(),
            expand=False,
        )
        self._dl_task = None
        self._pages = 0

        self.saved_count = 0
        self.existing = 0
        self.unsupported = 0
        self.failed = 0
        self._logs: list[tuple[str, str]] = []

    def __rich__(self):
        stats = Text()
        stats.append(f"page {self._pages}  ", style="dim")
        stats.append(f"✓ {self.saved_count} ", style="green bold")
        stats.append(f"= {self.existing} ", style="cyan bold")
        stats.append(f"⊘ {self.unsupported} ", style="yellow bold")
        stats.append(f"✗ {self.failed}", style="red bold")

        logs = Text()
        for msg, style in self._logs[-3:]:
            logs.append(f"{msg}\n", style=style)

        return Group(
            Panel(self._download, title="Download", border_style="cyan", height=3),
            stats,
            logs,
        )

    def page(self, number: int, events: int):
        self._pages = number

    # Download progress
    def start_download(self, name: str, total: int):
        if self._dl_task is not None:
            self._download.remove_task(self._dl_task)
        self._dl_task = self._download.add_task("dl", total=total or None, name=name[:40])

    def update_download(self, current: int, total: int):
        if self._dl_task is not None:
            self._download.update(self._dl_task, completed=current, total=total or None)

    def saved(self, outcome: SaveOutcome):
        if self._dl_task is not None:
            task = self._download.tasks[0]
            self._download.update(self._dl_task, completed=task.total or task.completed)
        self.saved_count += 1
        self._log(f"✓ {outcome.path.name if outcome.path else outcome.message_id}", "green")

    # Skips and failures
    def skip(self, outcome: SaveOutcome):
        if outcome.status is SaveStatus.EXISTS:
            self.existing += 1
        elif outcome.status is SaveStatus.UNSUPPORTED:
            self.unsupported += 1
            self._log(f"⊘ unsupported: msg {outcome.message_id}", "yellow")
        elif outcome.status is SaveStatus.PLANNED:
            self._log(f"→ {outcome.path.name if outcome.path else outcome.message_id}", "dim")

    def error(self, outcome: SaveOutcome):
        self.failed += 1
        self._log(f"✗ msg {outcome.message_id}: {(outcome.error or '')[:45]}", "red")

    def _log(self, msg: str, style: str = ""):
        self._logs.append((msg, style))
        if len(self._logs) > 10:
            self._logs = self._logs[-5:]
