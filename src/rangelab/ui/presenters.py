from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..core.formatting import action_text, ev_label, format_number, street_name
from ..core.scoring import summarize_records
from ..replay.parser import ProcessedOption, ProcessedSpot
from ..replay.timeline import TimelineEvent, TimelineState

_SUIT_COLOR = {
    "♠": "white",
    "♥": "bright_red",
    "♦": "bright_cyan",
    "♣": "green",
}


class RichPresenter:
    def __init__(
        self,
        *,
        no_color: bool = False,
        console: Console | None = None,
        input_fn: Callable[[str], str] = input,
    ):
        # Default: color ON (forced), unless explicitly disabled via --no-color.
        if console is not None:
            self.console = console
        elif no_color:
            self.console = Console(force_terminal=False, color_system=None)
        else:
            self.console = Console(force_terminal=True, color_system="auto")
        self._input = input_fn
        self.quit_requested = False

    def start_spot(self, spot_no: int, total: int, processed: ProcessedSpot) -> None:
        villains = ", ".join(processed.villains_in_hand) or "-"
        self.console.print(
            Panel.fit(
                f"Spot {spot_no}/{total} • {processed.street_name} • {processed.hero_position} vs {villains}",
                title=f"RangeLab [{processed.id}]",
                style="bold cyan",
            )
        )
        self.console.print(f"Your hand: {self._cards(processed.hero_hand_display)}")

    def show_event(self, event: TimelineEvent, state: TimelineState, processed: ProcessedSpot) -> None:
        if event.type == "street":
            cards = processed.board_display[: event.cards_to_reveal or 0]
            name = street_name(event.street or "")
            board = f"  {self._cards(cards)}" if cards else ""
            self.console.print(f"[bold magenta]{name.upper()}[/]{board}")
            return
        if event.type == "action":
            text = action_text(event.action or "", event.exact_amount)
            self.console.print(f"  {event.position:>4} {text}  [dim](pot {format_number(state.current_pot)}bb)[/]")
            return
        if event.type == "decision":
            self.console.print(f"[dim]Pot at decision: {format_number(processed.pot)}bb[/]")

    def show_options(self, options: Sequence[ProcessedOption]) -> None:
        table = Table(show_header=True, header_style="bold blue")
        table.add_column("#", justify="right")
        table.add_column("Action")
        table.add_column("Hint", style="dim")
        for i, opt in enumerate(options, 1):
            table.add_row(str(i), opt.label, "EV hidden")
        self.console.print(table)

    def prompt_choice(self, n: int) -> int:
        while True:
            raw = self._input(f"Your choice (1-{n}), or 'q' to quit: ").strip().lower()
            if raw == "q":
                self.quit_requested = True
                return -1
            if raw.isdigit():
                v = int(raw)
                if 1 <= v <= n:
                    return v - 1
            self.console.print(f"[red]Invalid input[/]. Please enter a number 1-{n} or 'q'.")

    def show_feedback(self, processed: ProcessedSpot, chosen: ProcessedOption) -> None:
        best = processed.correct_option
        self.console.print("\n[bold]Result[/]")
        if chosen.is_correct or best is None:
            self.console.print(f"✓ [green]Best choice[/]: {chosen.label} ({chosen.ev_label})")
        else:
            diff = chosen.ev - best.ev
            self.console.print(f"✗ [yellow]Better was[/]: {best.label} ({best.ev_label})")
            self.console.print(f"You chose: {chosen.label} ({chosen.ev_label}) → EV diff: [red]{ev_label(diff)}[/]")
        table = Table(show_header=True, header_style="bold blue")
        table.add_column("Action")
        table.add_column("EV", justify="right")
        table.add_column("Freq", justify="right")
        for opt in processed.options:
            marker = " ★" if opt.is_correct else ""
            freq = f"{opt.freq * 100:.0f}%" if opt.freq is not None else "-"
            table.add_row(f"{opt.label}{marker}", opt.ev_label, freq)
        self.console.print(table)
        if processed.meta and processed.meta.summary:
            self.console.print(f"[dim]{processed.meta.summary}[/]")
        self.console.print("[dim]—[/]\n")

    def summary(self, records: list[dict[str, Any]]) -> None:
        if not records:
            self.console.print("No spots answered.")
            return
        stats = summarize_records(records)

        summary = Table(title="Drill Summary", show_header=False)
        summary.add_row("Spots answered:", str(stats.decisions))
        summary.add_row("Best choices hit:", f"{stats.hits} ({stats.accuracy_pct:.0f}%)")
        summary.add_row("Total EV (chosen):", f"{stats.total_ev_chosen:.2f} bb")
        summary.add_row("Total EV (best possible):", f"{stats.total_ev_best:.2f} bb")
        summary.add_row("Total EV lost:", f"{stats.total_ev_lost:.2f} bb")
        summary.add_row("Score:", f"{stats.score_pct:.0f}/100")
        self.console.print("\n")
        self.console.print(summary)

    def _cards(self, cards: Sequence[str]) -> str:
        parts: list[str] = []
        for card in cards:
            color = _SUIT_COLOR.get(card[-1:], "white")
            parts.append(f"[bold {color}]{card}[/]")
        return " ".join(parts)
