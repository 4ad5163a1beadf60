from __future__ import annotations

import pytest

from chordboard.chords import (
    AUG7,
    CHORD_SHAPES,
    DIM7,
    MAJ,
    MIN,
    compute_left_chord,
    compute_right_note,
    invert,
    shape_for,
)


def test_unset_quality_is_major() -> None:
    assert shape_for(None) == MAJ


def test_aug_and_dim_tokens_voice_as_sevenths() -> None:
    assert shape_for("aug") == AUG7
    assert shape_for("dim") == DIM7
    assert shape_for("min") == MIN


def test_shapes_are_four_voices() -> None:
    assert all(len(shape) == 4 for shape in CHORD_SHAPES.values())
    assert CHORD_SHAPES["dom7"] == (0, 7, 10, 16)


def test_left_chord_adds_offset_and_transposition() -> None:
    assert compute_left_chord(0, transposition=24) == (24, 31, 36, 40)
    assert compute_left_chord(-5, transposition=24, quality="min7") == (19, 26, 29, 34)


class TestInversion:
    def test_style_a_up_lifts_two_lowest_voices(self) -> None:
        assert invert(MAJ, "up", style="A") == (12, 19, 12, 16)

    def test_style_a_down_drops_two_highest_voices(self) -> None:
        assert invert(MAJ, "down", style="A") == (0, 7, 0, 4)

    def test_style_b_up_lifts_only_lowest_voice(self) -> None:
        assert invert(MAJ, "up", style="B") == (12, 7, 12, 16)

    def test_style_b_down_drops_only_highest_voice(self) -> None:
        assert invert(MAJ, "down", style="B") == (0, 7, 12, 4)

    def test_left_chord_applies_configured_style(self) -> None:
        style_a = compute_left_chord(0, transposition=24, inversion="up", style="A")
        style_b = compute_left_chord(0, transposition=24, inversion="up", style="B")
        assert style_a == (36, 43, 36, 40)
        assert style_b == (36, 31, 36, 40)

    def test_unknown_direction_rejected(self) -> None:
        with pytest.raises(ValueError):
            invert(MAJ, "sideways")  # type: ignore[arg-type]


def test_right_note_sits_two_octaves_above_root() -> None:
    assert compute_right_note(0, transposition=24) == 48


@pytest.mark.parametrize(("octave", "expected"), [("up", 60), ("down", 36), (None, 48)])
def test_right_note_octave_shift(octave: str | None, expected: int) -> None:
    assert compute_right_note(0, transposition=24, octave=octave) == expected  # type: ignore[arg-type]


def test_right_note_respects_custom_hand_offset() -> None:
    assert compute_right_note(3, transposition=20, right_hand_offset=12) == 35
