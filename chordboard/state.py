from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from pydantic import BaseModel, ConfigDict

from .chords import ChordQuality, Direction
from .config import DEFAULT_BASE_TRANSPOSITION

Hand = Literal["left", "right"]
ClearTarget = Literal["left", "right", "both"]
HANDS: tuple[Hand, ...] = ("left", "right")


@dataclass(slots=True)
class LeftModifiers:
    inversion: Direction | None = None
    quality: ChordQuality | None = None

    def is_default(self) -> bool:
        return self.inversion is None and self.quality is None


@dataclass(slots=True)
class RightModifiers:
    octave: Direction | None = None

    def is_default(self) -> bool:
        return self.octave is None


@dataclass(slots=True)
class PerformanceState:
    """Mutable session state owned by a single performer.

    ``previous_left`` and ``previous_right`` are exactly the pitches that are
    sounding; nothing else is ever left playing.
    """

    previous_left: tuple[int, ...] = ()
    previous_right: int | None = None
    left_modifiers: LeftModifiers = field(default_factory=LeftModifiers)
    right_modifiers: RightModifiers = field(default_factory=RightModifiers)
    transposition: int = DEFAULT_BASE_TRANSPOSITION
    last_left_offset: int | None = None
    last_right_offset: int | None = None

    @classmethod
    def initial(cls, base_transposition: int = DEFAULT_BASE_TRANSPOSITION) -> "PerformanceState":
        return cls(transposition=base_transposition)

    def sounding(self) -> frozenset[int]:
        notes = set(self.previous_left)
        if self.previous_right is not None:
            notes.add(self.previous_right)
        return frozenset(notes)

    def modifiers_for(self, hand: Hand) -> LeftModifiers | RightModifiers:
        return self.left_modifiers if hand == "left" else self.right_modifiers


class HandDisplay(BaseModel):
    """What a renderer needs to show one hand after a dispatch."""

    hand: Hand
    offset: int | None = None
    quality: ChordQuality | None = None
    inversion: Direction | None = None
    octave: Direction | None = None
    notes: tuple[int, ...] = ()

    model_config = ConfigDict(frozen=True, extra="forbid")

    @property
    def label(self) -> str:
        offset = "" if self.offset is None else str(self.offset)
        if self.hand == "left":
            return f"{offset}{self.quality or 'maj'} {self.inversion or ''}"
        return f"{offset} {self.octave or ''}"


def describe_hand(state: PerformanceState, hand: Hand) -> HandDisplay:
    if hand == "left":
        return HandDisplay(
            hand="left",
            offset=state.last_left_offset,
            quality=state.left_modifiers.quality,
            inversion=state.left_modifiers.inversion,
            notes=state.previous_left,
        )
    notes = () if state.previous_right is None else (state.previous_right,)
    return HandDisplay(
        hand="right",
        offset=state.last_right_offset,
        octave=state.right_modifiers.octave,
        notes=notes,
    )
