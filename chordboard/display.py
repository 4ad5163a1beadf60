from __future__ import annotations

import threading

from rich.console import Group, RenderableType
from rich.table import Table
from rich.text import Text

from .audio import in_range, pitch_name
from .engine import PerformanceEvent, PerformanceHooks
from .keymap import ClearEffect, GlobalEffect, KeyMap, ModifierEffect, PlayableEffect
from .state import HANDS, Hand, HandDisplay


def describe_notes(notes: tuple[int, ...]) -> str:
    return " ".join(pitch_name(note) if in_range(note) else f"#{note}" for note in notes)


def describe_effect(effect: object) -> str:
    match effect:
        case PlayableEffect(hand=hand, offset=offset):
            return f"play {hand} {offset:+d}"
        case ModifierEffect(hand=hand, property=prop, value=value):
            return f"{hand} {prop} {value}"
        case GlobalEffect(direction=direction):
            return f"transpose {direction}"
        case ClearEffect(hand=hand):
            return f"clear {hand}"
        case _:
            return repr(effect)


class StatusBoard:
    """Live view of both hands, fed by performer hooks."""

    def __init__(self, transposition: int = 0) -> None:
        self._hands: dict[Hand, HandDisplay] = {hand: HandDisplay(hand=hand) for hand in HANDS}
        self._transposition = transposition
        self._last_error: str | None = None
        self._lock = threading.Lock()

    def hooks(self) -> PerformanceHooks:
        return PerformanceHooks(
            on_event=self.on_event,
            on_hand_state_changed=self.on_hand_state_changed,
        )

    def on_hand_state_changed(self, hand: Hand, display: HandDisplay) -> None:
        with self._lock:
            self._hands[hand] = display

    def on_event(self, event: PerformanceEvent) -> None:
        with self._lock:
            if event.kind == "transposition_changed" and event.transposition is not None:
                self._transposition = event.transposition
            elif event.kind == "audio_error":
                self._last_error = f"audio error on pitch {event.pitch}: {event.error}"

    def hand(self, hand: Hand) -> HandDisplay:
        with self._lock:
            return self._hands[hand]

    def __rich__(self) -> RenderableType:
        table = Table(title="chordboard", expand=False)
        table.add_column("hand", style="bold")
        table.add_column("chord")
        table.add_column("notes", style="cyan")
        with self._lock:
            for hand in HANDS:
                display = self._hands[hand]
                table.add_row(hand, display.label.strip(), describe_notes(display.notes))
            footer = Text(f"transposition {self._transposition}", style="dim")
            error = self._last_error
        if error is None:
            return Group(table, footer)
        return Group(table, footer, Text(error, style="red"))


def key_map_table(key_map: KeyMap) -> Table:
    table = Table(title="Key map")
    table.add_column("key", style="bold")
    table.add_column("kind")
    table.add_column("effect")
    for code, effect in sorted(key_map.items(), key=lambda item: (item[1].kind, item[0])):
        table.add_row(code, effect.kind, describe_effect(effect))
    return table
