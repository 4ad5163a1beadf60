from __future__ import annotations

import json
import logging
from collections.abc import Iterator, Mapping
from pathlib import Path
from types import MappingProxyType
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, model_validator

from .chords import ChordQuality, Direction
from .errors import InvalidKeyMapError
from .state import ClearTarget, Hand

_LOGGER = logging.getLogger("chordboard.keymap")

ModifierProperty = Literal["inversion", "quality", "octave"]

_MODIFIER_VALUES: Mapping[tuple[Hand, ModifierProperty], frozenset[str]] = MappingProxyType(
    {
        ("left", "inversion"): frozenset({"up", "down"}),
        ("left", "quality"): frozenset({"maj7", "dom7", "min", "min7", "aug", "dim"}),
        ("right", "octave"): frozenset({"up", "down"}),
    }
)

_EFFECT_CONFIG = ConfigDict(frozen=True, extra="forbid")


class PlayableEffect(BaseModel):
    kind: Literal["playable"] = "playable"
    hand: Hand
    offset: int

    model_config = _EFFECT_CONFIG


class ModifierEffect(BaseModel):
    kind: Literal["modifier"] = "modifier"
    hand: Hand
    property: ModifierProperty
    value: Direction | ChordQuality

    model_config = _EFFECT_CONFIG

    @model_validator(mode="after")
    def _check_property(self) -> "ModifierEffect":
        allowed = _MODIFIER_VALUES.get((self.hand, self.property))
        if allowed is None:
            raise ValueError(f"{self.hand} hand has no {self.property!r} modifier")
        if self.value not in allowed:
            raise ValueError(
                f"{self.value!r} is not a valid {self.property} value; "
                f"expected one of {sorted(allowed)}"
            )
        return self


class GlobalEffect(BaseModel):
    kind: Literal["global"] = "global"
    property: Literal["transposition"] = "transposition"
    direction: Direction

    model_config = _EFFECT_CONFIG

    def delta(self) -> int:
        return 1 if self.direction == "up" else -1


class ClearEffect(BaseModel):
    kind: Literal["clear"] = "clear"
    hand: ClearTarget

    model_config = _EFFECT_CONFIG

    def hands(self) -> tuple[Hand, ...]:
        if self.hand == "both":
            return ("left", "right")
        return (self.hand,)


KeyEffect = Annotated[
    Union[PlayableEffect, ModifierEffect, GlobalEffect, ClearEffect],
    Field(discriminator="kind"),
]

_OVERRIDES_ADAPTER: TypeAdapter[dict[str, KeyEffect | None]] = TypeAdapter(
    dict[str, Optional[KeyEffect]]
)


def _left(offset: int) -> PlayableEffect:
    return PlayableEffect(hand="left", offset=offset)


def _right(offset: int) -> PlayableEffect:
    return PlayableEffect(hand="right", offset=offset)


def _modifier(hand: Hand, prop: ModifierProperty, value: str) -> ModifierEffect:
    return ModifierEffect.model_validate({"hand": hand, "property": prop, "value": value})


_DEFAULT_EFFECTS: dict[str, KeyEffect] = {
    # left hand roots, relative to the global root
    "KeyB": _left(-5),
    "KeyV": _left(-4),
    "KeyG": _left(-3),
    "KeyF": _left(-2),
    "KeyT": _left(-1),
    "KeyR": _left(0),
    "Digit4": _left(1),
    "KeyE": _left(2),
    "Digit3": _left(3),
    "KeyW": _left(4),
    "KeyQ": _left(5),
    "Digit1": _left(6),
    "Tab": _left(7),
    # right hand single notes
    "Slash": _right(-7),
    "Semicolon": _right(-6),
    "Period": _right(-5),
    "KeyL": _right(-4),
    "Comma": _right(-3),
    "KeyK": _right(-2),
    "KeyM": _right(-1),
    "KeyN": _right(0),
    "KeyH": _right(1),
    "KeyJ": _right(2),
    "KeyU": _right(3),
    "KeyI": _right(4),
    "KeyO": _right(5),
    "Digit0": _right(6),
    "KeyP": _right(7),
    "Minus": _right(8),
    "BracketLeft": _right(9),
    "Equal": _right(10),
    "BracketRight": _right(11),
    "Backslash": _right(12),
    # left hand modifiers
    "ShiftLeft": _modifier("left", "inversion", "down"),
    "Backquote": _modifier("left", "inversion", "up"),
    "KeyA": _modifier("left", "quality", "maj7"),
    "KeyZ": _modifier("left", "quality", "dom7"),
    "KeyS": _modifier("left", "quality", "min"),
    "KeyX": _modifier("left", "quality", "min7"),
    "KeyD": _modifier("left", "quality", "aug"),
    "KeyC": _modifier("left", "quality", "dim"),
    # right hand modifiers
    "ShiftRight": _modifier("right", "octave", "down"),
    "Enter": _modifier("right", "octave", "up"),
    # global transposition, applied from the next playable onwards
    "Digit6": GlobalEffect(direction="down"),
    "Digit7": GlobalEffect(direction="up"),
    "AltLeft": ClearEffect(hand="left"),
    "AltRight": ClearEffect(hand="right"),
    "Space": ClearEffect(hand="both"),
}


class KeyMap:
    """Immutable lookup from physical key id to the effect of that key."""

    def __init__(self, effects: Mapping[str, KeyEffect]) -> None:
        self._effects: Mapping[str, KeyEffect] = MappingProxyType(dict(effects))

    def lookup(self, code: str) -> KeyEffect | None:
        return self._effects.get(code)

    def __contains__(self, code: object) -> bool:
        return code in self._effects

    def __len__(self) -> int:
        return len(self._effects)

    def __iter__(self) -> Iterator[str]:
        return iter(self._effects)

    def items(self) -> Iterator[tuple[str, KeyEffect]]:
        return iter(self._effects.items())

    def merged(self, overrides: Mapping[str, KeyEffect | None]) -> "KeyMap":
        """Return a new map with overrides applied; ``None`` unmaps a key."""

        effects = dict(self._effects)
        for code, effect in overrides.items():
            if effect is None:
                effects.pop(code, None)
            else:
                effects[code] = effect
        return KeyMap(effects)

    @classmethod
    def from_mapping(
        cls,
        raw: Mapping[str, Any],
        *,
        base: "KeyMap | None" = None,
    ) -> "KeyMap":
        try:
            overrides = _OVERRIDES_ADAPTER.validate_python(dict(raw))
        except ValidationError as exc:
            raise InvalidKeyMapError(str(exc)) from exc
        start = DEFAULT_KEY_MAP if base is None else base
        return start.merged(overrides)

    @classmethod
    def from_file(cls, path: str | Path, *, base: "KeyMap | None" = None) -> "KeyMap":
        target = Path(path).expanduser()
        try:
            raw = json.loads(target.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise InvalidKeyMapError(f"Cannot read key map {target}: {exc}") from exc
        if not isinstance(raw, dict):
            raise InvalidKeyMapError(f"Key map {target} must be a JSON object")
        key_map = cls.from_mapping(raw, base=base)
        _LOGGER.info("Loaded %d key overrides from %s", len(raw), target)
        return key_map


DEFAULT_KEY_MAP = KeyMap(_DEFAULT_EFFECTS)


def load_key_map(path: str | Path | None = None) -> KeyMap:
    if path is None:
        return DEFAULT_KEY_MAP
    return KeyMap.from_file(path)
