"""Chord shapes and the pure pitch arithmetic behind both hands.

Everything here is a function of its arguments only: the performer reads its
state, calls into this module, and applies the result as a separate step.
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import Literal, TypeAlias

from .config import DEFAULT_RIGHT_HAND_OFFSET, InversionStyle

Direction = Literal["up", "down"]
ChordQuality = Literal["maj7", "dom7", "min", "min7", "aug", "dim"]
ShapeName = Literal["maj", "min", "maj7", "dom7", "min7", "aug7", "dim7"]
ChordShape: TypeAlias = tuple[int, int, int, int]

OCTAVE = 12

MAJ: ChordShape = (0, 7, 12, 16)
MIN: ChordShape = (0, 7, 12, 15)
MAJ7: ChordShape = (0, 7, 11, 16)
DOM7: ChordShape = (0, 7, 10, 16)
MIN7: ChordShape = (0, 7, 10, 15)
AUG7: ChordShape = (0, 8, 12, 16)
DIM7: ChordShape = (0, 6, 9, 15)

CHORD_SHAPES: Mapping[ShapeName, ChordShape] = MappingProxyType(
    {
        "maj": MAJ,
        "min": MIN,
        "maj7": MAJ7,
        "dom7": DOM7,
        "min7": MIN7,
        "aug7": AUG7,
        "dim7": DIM7,
    }
)

# Modifier tokens are what the keys send; "aug" and "dim" voice as sevenths.
QUALITY_SHAPES: Mapping[ChordQuality, ShapeName] = MappingProxyType(
    {
        "maj7": "maj7",
        "dom7": "dom7",
        "min": "min",
        "min7": "min7",
        "aug": "aug7",
        "dim": "dim7",
    }
)


def shape_for(quality: ChordQuality | None) -> ChordShape:
    if quality is None:
        return MAJ
    return CHORD_SHAPES[QUALITY_SHAPES[quality]]


def invert(shape: ChordShape, direction: Direction, *, style: InversionStyle = "A") -> ChordShape:
    """Remap a 4-voice shape for an inversion.

    Style ``A`` lifts the two lowest voices an octave for ``up`` and drops the
    two highest for ``down``. Style ``B`` only moves one outer voice: the
    lowest up, or the highest down.
    """

    s0, s1, s2, s3 = shape
    match (style, direction):
        case ("A", "up"):
            return (s0 + OCTAVE, s1 + OCTAVE, s2, s3)
        case ("A", "down"):
            return (s0, s1, s2 - OCTAVE, s3 - OCTAVE)
        case ("B", "up"):
            return (s0 + OCTAVE, s1, s2, s3)
        case ("B", "down"):
            return (s0, s1, s2, s3 - OCTAVE)
        case _:
            raise ValueError(f"Unknown inversion {direction!r} for style {style!r}")


def compute_left_chord(
    offset: int,
    *,
    transposition: int,
    quality: ChordQuality | None = None,
    inversion: Direction | None = None,
    style: InversionStyle = "A",
) -> tuple[int, ...]:
    base = offset + transposition
    shape = shape_for(quality)
    if inversion is not None:
        shape = invert(shape, inversion, style=style)
    return tuple(step + base for step in shape)


def octave_shift(octave: Direction | None) -> int:
    if octave == "up":
        return OCTAVE
    if octave == "down":
        return -OCTAVE
    return 0


def compute_right_note(
    offset: int,
    *,
    transposition: int,
    octave: Direction | None = None,
    right_hand_offset: int = DEFAULT_RIGHT_HAND_OFFSET,
) -> int:
    return offset + transposition + right_hand_offset + octave_shift(octave)
