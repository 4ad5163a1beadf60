"""Keyboard capture via pynput.

pynput reports characters and named keys rather than physical key positions,
so :func:`code_for_key` folds them back onto physical ids for a US layout.
pynput is imported lazily; it needs a display server on Linux.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any, Callable

from .engine import Performer
from .errors import CaptureError

_LOGGER = logging.getLogger("chordboard.capture")

STOP_KEY = "Escape"

_NAMED_KEYS: Mapping[str, str] = MappingProxyType(
    {
        "shift": "ShiftLeft",
        "shift_l": "ShiftLeft",
        "shift_r": "ShiftRight",
        "alt": "AltLeft",
        "alt_l": "AltLeft",
        "alt_r": "AltRight",
        "alt_gr": "AltRight",
        "ctrl": "ControlLeft",
        "ctrl_l": "ControlLeft",
        "ctrl_r": "ControlRight",
        "enter": "Enter",
        "space": "Space",
        "tab": "Tab",
        "caps_lock": "CapsLock",
        "backspace": "Backspace",
        "esc": "Escape",
    }
)

_PUNCTUATION: Mapping[str, str] = MappingProxyType(
    {
        "`": "Backquote",
        "~": "Backquote",
        "-": "Minus",
        "_": "Minus",
        "=": "Equal",
        "+": "Equal",
        "[": "BracketLeft",
        "{": "BracketLeft",
        "]": "BracketRight",
        "}": "BracketRight",
        "\\": "Backslash",
        "|": "Backslash",
        ";": "Semicolon",
        ":": "Semicolon",
        "'": "Quote",
        '"': "Quote",
        ",": "Comma",
        "<": "Comma",
        ".": "Period",
        ">": "Period",
        "/": "Slash",
        "?": "Slash",
        " ": "Space",
    }
)

# Shifted digits on a US layout.
_SHIFTED_DIGITS = ")!@#$%^&*("


def code_for_char(char: str) -> str | None:
    if len(char) != 1:
        return None
    if char.isascii() and char.isalpha():
        return f"Key{char.upper()}"
    if char.isascii() and char.isdigit():
        return f"Digit{char}"
    if char in _SHIFTED_DIGITS:
        return f"Digit{_SHIFTED_DIGITS.index(char)}"
    return _PUNCTUATION.get(char)


def code_for_key(key: Any) -> str | None:
    """Translate a pynput ``Key`` or ``KeyCode`` into a physical key id."""

    char = getattr(key, "char", None)
    if isinstance(char, str) and char:
        return code_for_char(char)
    name = getattr(key, "name", None)
    if isinstance(name, str):
        return _NAMED_KEYS.get(name)
    return None


class KeyCapture:
    """Feeds translated key events to a performer one at a time.

    Auto-repeated presses of a held key are dropped so the performer only ever
    sees one down per physical press.
    """

    def __init__(
        self,
        performer: Performer,
        *,
        on_stop: Callable[[], None] | None = None,
    ) -> None:
        self._performer = performer
        self._on_stop = on_stop
        self._held: set[str] = set()
        self._lock = threading.Lock()

    @property
    def held(self) -> frozenset[str]:
        with self._lock:
            return frozenset(self._held)

    def press(self, key: Any) -> bool:
        """Handle a press; returns False when capture should stop."""

        code = code_for_key(key)
        if code is None:
            return True
        if code == STOP_KEY:
            if self._on_stop is not None:
                self._on_stop()
            return False
        with self._lock:
            if code in self._held:
                return True
            self._held.add(code)
            self._performer.key_down(code)
        return True

    def release(self, key: Any) -> bool:
        code = code_for_key(key)
        if code is None:
            return True
        with self._lock:
            self._held.discard(code)
            self._performer.key_up(code)
        return True


def load_listener_factory() -> Callable[..., Any]:
    try:
        from pynput import keyboard  # type: ignore[import]
    except Exception as exc:
        # pynput raises a variety of errors when no backend can be loaded.
        _LOGGER.info("pynput not available: %s", exc, exc_info=True)
        raise CaptureError(
            "Keyboard capture requires pynput and a running display server."
        ) from exc
    return keyboard.Listener


def listen(capture: KeyCapture, *, listener_factory: Callable[..., Any] | None = None) -> None:
    """Block until Escape is pressed, routing keys through ``capture``."""

    factory = listener_factory or load_listener_factory()
    with factory(on_press=capture.press, on_release=capture.release) as listener:
        _LOGGER.info("Listening for keys; press Escape to stop.")
        listener.join()
