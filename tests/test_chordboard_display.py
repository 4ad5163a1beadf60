from __future__ import annotations

from rich.console import Console

from chordboard.audio import RecordingSink
from chordboard.display import StatusBoard, describe_effect, describe_notes, key_map_table
from chordboard.engine import Performer
from chordboard.keymap import DEFAULT_KEY_MAP


def _render(renderable: object) -> str:
    console = Console(width=100, record=True, color_system=None)
    console.print(renderable)
    return console.export_text()


def test_describe_notes_names_in_range_pitches() -> None:
    assert describe_notes((24, 31, 36, 40)) == "C2 G2 C3 E3"
    assert describe_notes((90,)) == "#90"


def test_describe_effect() -> None:
    assert describe_effect(DEFAULT_KEY_MAP.lookup("KeyB")) == "play left -5"
    assert describe_effect(DEFAULT_KEY_MAP.lookup("KeyS")) == "left quality min"
    assert describe_effect(DEFAULT_KEY_MAP.lookup("Digit6")) == "transpose down"
    assert describe_effect(DEFAULT_KEY_MAP.lookup("AltRight")) == "clear right"


def test_status_board_tracks_performer() -> None:
    board = StatusBoard(transposition=24)
    performer = Performer(RecordingSink(), hooks=board.hooks())
    performer.key_down("KeyS")
    performer.key_down("KeyR")
    performer.key_down("Digit7")
    performer.key_down("KeyN")

    assert board.hand("left").label == "0min "
    assert board.hand("right").notes == (49,)
    text = _render(board)
    assert "C2 G2 C3 D#3" in text
    assert "transposition 25" in text


def test_key_map_table_lists_keys() -> None:
    text = _render(key_map_table(DEFAULT_KEY_MAP))
    assert "KeyR" in text
    assert "transpose up" in text
