"""Console reporter - the default, human-readable run output.

Uses rich for colored step lines and the journey/run summary panels.
"""

from __future__ import annotations

from typing import IO, TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from synthqa.core.events import (
    EndEvent,
    JourneyEndEvent,
    JourneyRegisterEvent,
    JourneyStartEvent,
    StartEvent,
    StepEndEvent,
)
from synthqa.core.models import StepStatus
from synthqa.helpers import get_duration_ms
from synthqa.reporters.base import BaseReporter

if TYPE_CHECKING:
    from synthqa.runner import Runner

SYMBOLS = {
    StepStatus.SUCCEEDED: ("✓", "green"),
    StepStatus.FAILED: ("✖", "red"),
    StepStatus.SKIPPED: ("-", "dim"),
}


def format_duration(duration_ms: float) -> str:
    """Format a duration for display."""
    if duration_ms < 1000:
        return f"{duration_ms:.0f}ms"
    elif duration_ms < 60000:
        return f"{duration_ms / 1000:.2f}s"
    minutes = int(duration_ms / 60000)
    seconds = (duration_ms % 60000) / 1000
    return f"{minutes}m {seconds:.1f}s"


class ConsoleReporter(BaseReporter):
    """Print one line per step and a summary per journey and per run.

    Attributes:
        console: Rich Console bound to the reporter stream.
        verbose: Print the error message under failing steps.
    """

    def __init__(
        self,
        runner: Runner,
        stream: IO[str] | None = None,
        verbose: bool = True,
    ) -> None:
        super().__init__(runner, stream=stream)
        self.console = Console(file=self.stream, highlight=False, soft_wrap=True)
        self.verbose = verbose

    def on_start(self, event: StartEvent) -> None:
        self.console.rule(f"[bold]Running {event.num_journeys} journey(s)[/bold]", style="blue")

    def on_journey_register(self, event: JourneyRegisterEvent) -> None:
        self.console.print(f"[cyan]Journey:[/cyan] {escape(event.journey.name)} [dim](registered)[/dim]")

    def on_journey_start(self, event: JourneyStartEvent) -> None:
        self.console.print()
        self.console.print(f"[bold cyan]Journey: {escape(event.journey.name)}[/bold cyan]")

    def on_step_end(self, event: StepEndEvent) -> None:
        symbol, style = SYMBOLS[event.status]
        line = Text("  ")
        line.append(symbol, style=style)
        line.append(f" Step: '{event.step.name}' {event.status.value}")
        if event.status is not StepStatus.SKIPPED:
            duration = format_duration(get_duration_ms(event.start, event.end))
            line.append(f" ({duration})", style="dim")
        self.console.print(line)
        if event.error is not None and self.verbose:
            self.console.print(Text(f"    {event.error}", style="red"))

    def on_journey_end(self, event: JourneyEndEvent) -> None:
        symbol, style = SYMBOLS[event.status]
        title = Text(f"{symbol} {event.journey.name} {event.status.value}", style=f"bold {style}")
        title.append(f" ({format_duration(get_duration_ms(event.start, event.end))})", style="dim")
        self.console.print(title)

        if event.error is not None and self.verbose:
            self.console.print(Text(f"  {type(event.error).__name__}: {event.error}", style="red"))
        if event.browserconsole:
            self.console.print("  [yellow]Browser console:[/yellow]")
            for message in event.browserconsole[:10]:
                self.console.print(Text(f"    [{message.type}] {message.text}", style="yellow"))

    def on_end(self, event: EndEvent) -> None:
        summary = Table.grid(padding=(0, 2))
        summary.add_column(style="bold", width=12)
        summary.add_column()
        for status in StepStatus:
            _, style = SYMBOLS[status]
            summary.add_row(
                f"{status.value.capitalize()}:",
                f"[{style}]{self.metrics[status]}[/{style}] step(s)",
            )

        failed = self.journeys[StepStatus.FAILED]
        border = "green" if failed == 0 else "red"
        status_text = "ALL JOURNEYS PASSED" if failed == 0 else f"{failed} JOURNEY(S) FAILED"
        self.console.print()
        self.console.print(
            Panel(
                summary,
                title=f"[bold]SUMMARY: {status_text}[/bold]",
                border_style=border,
                padding=(0, 2),
            )
        )
