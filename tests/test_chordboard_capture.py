from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import pytest

from chordboard.audio import RecordingSink
from chordboard.capture import KeyCapture, code_for_char, code_for_key, listen
from chordboard.engine import Performer


@dataclass
class FakeKeyCode:
    char: str | None


@dataclass
class FakeKey:
    name: str


@pytest.mark.parametrize(
    ("char", "code"),
    [
        ("r", "KeyR"),
        ("R", "KeyR"),
        ("4", "Digit4"),
        ("$", "Digit4"),
        (")", "Digit0"),
        ("`", "Backquote"),
        ("?", "Slash"),
        ("{", "BracketLeft"),
        ("é", None),
    ],
)
def test_code_for_char(char: str, code: str | None) -> None:
    assert code_for_char(char) == code


def test_code_for_named_keys() -> None:
    assert code_for_key(FakeKey("shift")) == "ShiftLeft"
    assert code_for_key(FakeKey("shift_r")) == "ShiftRight"
    assert code_for_key(FakeKey("alt_gr")) == "AltRight"
    assert code_for_key(FakeKey("enter")) == "Enter"
    assert code_for_key(FakeKey("f13")) is None
    assert code_for_key(FakeKeyCode(None)) is None


def test_capture_drops_auto_repeat() -> None:
    sink = RecordingSink()
    capture = KeyCapture(Performer(sink))
    capture.press(FakeKeyCode("r"))
    capture.press(FakeKeyCode("r"))
    assert sink.played() == [24, 31, 36, 40]
    assert capture.held == frozenset({"KeyR"})
    capture.release(FakeKeyCode("r"))
    assert capture.held == frozenset()


def test_capture_shifted_modifier_release_clears_modifier() -> None:
    sink = RecordingSink()
    performer = Performer(sink)
    capture = KeyCapture(performer)
    capture.press(FakeKey("shift"))
    assert performer.state.left_modifiers.inversion == "down"
    capture.release(FakeKey("shift"))
    assert performer.state.left_modifiers.inversion is None


def test_escape_stops_capture() -> None:
    stopped: list[bool] = []
    capture = KeyCapture(Performer(RecordingSink()), on_stop=lambda: stopped.append(True))
    assert capture.press(FakeKey("esc")) is False
    assert stopped == [True]


def test_listen_uses_listener_factory() -> None:
    calls: dict[str, Any] = {}

    class FakeListener:
        def __init__(self, **kwargs: Any) -> None:
            calls.update(kwargs)

        def __enter__(self) -> "FakeListener":
            return self

        def __exit__(self, *exc: object) -> None:
            calls["exited"] = True

        def join(self) -> None:
            calls["on_press"](FakeKeyCode("n"))

    sink = RecordingSink()
    capture = KeyCapture(Performer(sink))
    listen(capture, listener_factory=FakeListener)
    assert sink.played() == [48]
    assert calls["exited"] is True
