from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable
from typing import Callable, Literal, Protocol, assert_never

from pydantic import BaseModel, ConfigDict

from .chords import compute_left_chord, compute_right_note
from .config import PerformanceConfig
from .keymap import (
    DEFAULT_KEY_MAP,
    ClearEffect,
    GlobalEffect,
    KeyEffect,
    KeyMap,
    ModifierEffect,
    PlayableEffect,
)
from .state import Hand, HandDisplay, PerformanceState, describe_hand

_LOGGER = logging.getLogger("chordboard.engine")

EventKind = Literal["down", "up"]


class AudioSink(Protocol):
    """Backend that sounds pitch indices.

    The performer never plays a pitch that is already sounding and only stops a
    pitch once no voice on either hand holds it.
    """

    def play_note(self, pitch: int) -> None: ...

    def stop_note(self, pitch: int) -> None: ...


class KeyEvent(BaseModel):
    kind: EventKind
    code: str

    model_config = ConfigDict(frozen=True, extra="forbid")


class PerformanceEvent(BaseModel):
    kind: Literal[
        "note_on",
        "note_off",
        "modifier_set",
        "modifier_cleared",
        "transposition_changed",
        "hand_cleared",
        "audio_error",
    ]
    hand: Hand | None = None
    pitch: int | None = None
    property: str | None = None
    value: str | None = None
    transposition: int | None = None
    error: Exception | None = None

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        arbitrary_types_allowed=True,
    )


class PerformanceHooks(BaseModel):
    on_event: Callable[[PerformanceEvent], None] | None = None
    on_hand_state_changed: Callable[[Hand, HandDisplay], None] | None = None

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        arbitrary_types_allowed=True,
    )


class Performer:
    """Translates key events into chord and note playback for one session.

    Each event is handled to completion before returning: state is updated and
    every stop and play call has been issued, stops first.
    """

    def __init__(
        self,
        sink: AudioSink,
        *,
        key_map: KeyMap | None = None,
        config: PerformanceConfig | None = None,
        state: PerformanceState | None = None,
        hooks: PerformanceHooks | None = None,
    ) -> None:
        self._sink = sink
        self._key_map = DEFAULT_KEY_MAP if key_map is None else key_map
        self._config = config or PerformanceConfig()
        if state is None:
            state = PerformanceState.initial(self._config.base_transposition)
        self._state = state
        self._hooks = hooks
        # Voices per pitch across both hands.
        self._holders: Counter[int] = Counter(state.previous_left)
        if state.previous_right is not None:
            self._holders[state.previous_right] += 1

    @property
    def state(self) -> PerformanceState:
        return self._state

    @property
    def key_map(self) -> KeyMap:
        return self._key_map

    @property
    def config(self) -> PerformanceConfig:
        return self._config

    def key_down(self, code: str) -> KeyEffect | None:
        effect = self._key_map.lookup(code)
        if effect is None:
            return None
        _LOGGER.debug("key down %s -> %s", code, effect.kind)
        match effect:
            case PlayableEffect():
                self._handle_playable(effect)
            case ModifierEffect():
                self._handle_modifier(effect)
            case GlobalEffect():
                self._handle_global(effect)
            case ClearEffect():
                self._handle_clear(effect)
            case _:
                assert_never(effect)
        return effect

    def key_up(self, code: str) -> KeyEffect | None:
        effect = self._key_map.lookup(code)
        if effect is None:
            return None
        if isinstance(effect, ModifierEffect):
            _LOGGER.debug("key up %s -> clear %s", code, effect.property)
            self._unset_modifier(effect)
        return effect

    def handle(self, event: KeyEvent) -> KeyEffect | None:
        if event.kind == "down":
            return self.key_down(event.code)
        return self.key_up(event.code)

    def handle_all(self, events: Iterable[KeyEvent]) -> None:
        for event in events:
            self.handle(event)

    def left_chord(self, offset: int) -> tuple[int, ...]:
        modifiers = self._state.left_modifiers
        return compute_left_chord(
            offset,
            transposition=self._state.transposition,
            quality=modifiers.quality,
            inversion=modifiers.inversion,
            style=self._config.inversion_style,
        )

    def right_note(self, offset: int) -> int:
        return compute_right_note(
            offset,
            transposition=self._state.transposition,
            octave=self._state.right_modifiers.octave,
            right_hand_offset=self._config.right_hand_offset,
        )

    def display(self, hand: Hand) -> HandDisplay:
        return describe_hand(self._state, hand)

    def sounding(self) -> frozenset[int]:
        return self._state.sounding()

    def reset(self) -> None:
        """Silence both hands and return to the initial session state."""

        self._clear_hand("left")
        self._clear_hand("right")
        self._holders.clear()
        self._state = PerformanceState.initial(self._config.base_transposition)

    def _handle_playable(self, effect: PlayableEffect) -> None:
        state = self._state
        if effect.hand == "left":
            notes = self.left_chord(effect.offset)
            self._stop_all("left", state.previous_left)
            self._play_all("left", notes)
            state.previous_left = notes
            state.last_left_offset = effect.offset
        else:
            note = self.right_note(effect.offset)
            if state.previous_right is not None:
                self._stop("right", state.previous_right)
            self._play("right", note)
            state.previous_right = note
            state.last_right_offset = effect.offset
        self._notify_hand(effect.hand)

    def _handle_modifier(self, effect: ModifierEffect) -> None:
        setattr(self._state.modifiers_for(effect.hand), effect.property, effect.value)
        self._emit(
            PerformanceEvent(
                kind="modifier_set",
                hand=effect.hand,
                property=effect.property,
                value=effect.value,
            )
        )
        self._notify_hand(effect.hand)

    def _unset_modifier(self, effect: ModifierEffect) -> None:
        setattr(self._state.modifiers_for(effect.hand), effect.property, None)
        self._emit(
            PerformanceEvent(kind="modifier_cleared", hand=effect.hand, property=effect.property)
        )
        self._notify_hand(effect.hand)

    def _handle_global(self, effect: GlobalEffect) -> None:
        self._state.transposition += effect.delta()
        _LOGGER.debug("transposition now %d", self._state.transposition)
        self._emit(
            PerformanceEvent(kind="transposition_changed", transposition=self._state.transposition)
        )

    def _handle_clear(self, effect: ClearEffect) -> None:
        for hand in effect.hands():
            self._clear_hand(hand)
            self._emit(PerformanceEvent(kind="hand_cleared", hand=hand))
            self._notify_hand(hand)

    def _clear_hand(self, hand: Hand) -> None:
        state = self._state
        if hand == "left":
            self._stop_all("left", state.previous_left)
            state.previous_left = ()
        else:
            if state.previous_right is not None:
                self._stop("right", state.previous_right)
            state.previous_right = None

    def _play_all(self, hand: Hand, pitches: Iterable[int]) -> None:
        for pitch in pitches:
            self._play(hand, pitch)

    def _stop_all(self, hand: Hand, pitches: Iterable[int]) -> None:
        for pitch in pitches:
            self._stop(hand, pitch)

    # The sink only hears about a pitch when its holder count leaves or returns
    # to zero. Sink errors are logged and reported as events; the count and the
    # state are updated either way.
    def _play(self, hand: Hand, pitch: int) -> None:
        self._holders[pitch] += 1
        if self._holders[pitch] > 1:
            _LOGGER.debug("pitch %d already sounding, %d holders", pitch, self._holders[pitch])
            return
        try:
            self._sink.play_note(pitch)
        except Exception as exc:
            self._report_sink_error(hand, pitch, exc)
            return
        self._emit(PerformanceEvent(kind="note_on", hand=hand, pitch=pitch))

    def _stop(self, hand: Hand, pitch: int) -> None:
        if self._holders[pitch] > 1:
            self._holders[pitch] -= 1
            return
        del self._holders[pitch]
        try:
            self._sink.stop_note(pitch)
        except Exception as exc:
            self._report_sink_error(hand, pitch, exc)
            return
        self._emit(PerformanceEvent(kind="note_off", hand=hand, pitch=pitch))

    def _report_sink_error(self, hand: Hand, pitch: int, exc: Exception) -> None:
        _LOGGER.warning("Audio sink failed for pitch %d: %s", pitch, exc, exc_info=True)
        self._emit(PerformanceEvent(kind="audio_error", hand=hand, pitch=pitch, error=exc))

    def _emit(self, event: PerformanceEvent) -> None:
        if self._hooks is not None and self._hooks.on_event is not None:
            self._hooks.on_event(event)

    def _notify_hand(self, hand: Hand) -> None:
        if self._hooks is None or self._hooks.on_hand_state_changed is None:
            return
        self._hooks.on_hand_state_changed(hand, self.display(hand))


def parse_key_events(tokens: Iterable[str]) -> list[KeyEvent]:
    """Parse replay tokens: ``+Code`` is a press, ``^Code`` a release, bare ``Code`` a tap."""

    events: list[KeyEvent] = []
    for token in tokens:
        token = token.strip()
        if not token:
            continue
        if token.startswith("+"):
            events.append(KeyEvent(kind="down", code=token[1:]))
        elif token.startswith("^"):
            events.append(KeyEvent(kind="up", code=token[1:]))
        else:
            events.append(KeyEvent(kind="down", code=token))
            events.append(KeyEvent(kind="up", code=token))
    return events
