from __future__ import annotations

import logging
import threading
from collections import defaultdict, deque
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal, TypeAlias

import numpy as np
import soundfile as sf  # type: ignore[import]
from numpy.typing import NDArray

from .config import PerformanceConfig
from .errors import PlaybackError

_LOGGER = logging.getLogger("chordboard.audio")

FloatArray: TypeAlias = NDArray[np.float32]
SinkAction = Literal["play", "stop"]

SAMPLE_RATE = 44_100
PITCH_COUNT = 85
_A4_INDEX = 57
_A4_FREQ = 440.0
_ATTACK_SECONDS = 0.005
# exp(-6.9) is roughly -60 dB, i.e. inaudible by the end of the release.
_RELEASE_DECAY = 6.9
_PARTIALS: tuple[tuple[int, float], ...] = ((1, 0.6), (2, 0.25), (3, 0.1), (4, 0.05))
_NAMES = ("C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B")

NOTE_NAMES: tuple[str, ...] = tuple(
    f"{_NAMES[index % 12]}{index // 12}" for index in range(PITCH_COUNT)
)


def in_range(pitch: int) -> bool:
    return 0 <= pitch < PITCH_COUNT


def pitch_name(pitch: int) -> str:
    """Name of a pitch index, ``C0`` for 0 up to ``C7`` for 84."""

    if not in_range(pitch):
        raise ValueError(f"Pitch index {pitch} outside 0..{PITCH_COUNT - 1}")
    return NOTE_NAMES[pitch]


def pitch_frequency(pitch: int) -> float:
    return _A4_FREQ * 2 ** ((pitch - _A4_INDEX) / 12)


def db_to_gain(volume_db: float) -> float:
    return float(10 ** (volume_db / 20))


def _partials(freq: float, t: NDArray[np.float64]) -> NDArray[np.float64]:
    wave = np.zeros_like(t)
    for harmonic, amp in _PARTIALS:
        wave += amp * np.sin(2 * np.pi * freq * harmonic * t)
    return wave


def _envelope(
    positions: NDArray[np.float64],
    release_at: float | None,
    *,
    attack_samples: int,
    release_samples: int,
) -> NDArray[np.float64]:
    gain = np.clip(positions / max(attack_samples, 1), 0.0, 1.0)
    if release_at is None:
        return gain
    since = positions - release_at
    decay = np.exp(-_RELEASE_DECAY * np.maximum(since, 0.0) / max(release_samples, 1))
    decay[since >= release_samples] = 0.0
    return gain * decay


def ensure_audio_contract(audio: NDArray[Any]) -> FloatArray:
    """Flatten to mono float32 and scale down if the peak exceeds 1.0."""

    mono: FloatArray = np.asarray(audio, dtype=np.float32).reshape(-1)
    if mono.size == 0:
        return mono
    peak = float(np.max(np.abs(mono)))
    if peak > 1.0:
        mono = mono / peak
    return mono


class RecordingSink:
    """Audio sink that records every call; the sounding set mirrors the calls."""

    def __init__(self) -> None:
        self.calls: list[tuple[SinkAction, int]] = []
        self.sounding: set[int] = set()

    def play_note(self, pitch: int) -> None:
        self.calls.append(("play", pitch))
        self.sounding.add(pitch)

    def stop_note(self, pitch: int) -> None:
        self.calls.append(("stop", pitch))
        self.sounding.discard(pitch)

    def played(self) -> list[int]:
        return [pitch for action, pitch in self.calls if action == "play"]

    def stopped(self) -> list[int]:
        return [pitch for action, pitch in self.calls if action == "stop"]

    def reset(self) -> None:
        self.calls.clear()


@dataclass(frozen=True, slots=True)
class TimelineEntry:
    time: float
    action: SinkAction
    pitch: int


class TimelineSink(RecordingSink):
    """Recording sink that stamps each call with a manually advanced clock."""

    def __init__(self) -> None:
        super().__init__()
        self.now = 0.0
        self.entries: list[TimelineEntry] = []

    def advance(self, seconds: float) -> None:
        self.now += max(seconds, 0.0)

    def play_note(self, pitch: int) -> None:
        super().play_note(pitch)
        self.entries.append(TimelineEntry(self.now, "play", pitch))

    def stop_note(self, pitch: int) -> None:
        super().stop_note(pitch)
        self.entries.append(TimelineEntry(self.now, "stop", pitch))


def render_timeline(
    entries: list[TimelineEntry],
    *,
    duration: float | None = None,
    sample_rate: int = SAMPLE_RATE,
    release_seconds: float = 0.5,
    volume_db: float = -10.0,
) -> FloatArray:
    """Render recorded play/stop calls to a mono buffer.

    Each play opens a voice; each stop releases the oldest open voice on that
    pitch. Out-of-range pitches are skipped.
    """

    if duration is None:
        last = max((entry.time for entry in entries), default=0.0)
        duration = last + release_seconds + 0.25
    total = max(int(duration * sample_rate), 0)
    mix = np.zeros(total, dtype=np.float64)
    attack_samples = int(_ATTACK_SECONDS * sample_rate)
    release_samples = int(release_seconds * sample_rate)

    open_voices: dict[int, deque[int]] = defaultdict(deque)
    voices: list[tuple[int, int, int | None]] = []
    for entry in entries:
        if not in_range(entry.pitch):
            _LOGGER.debug("Skipping out-of-range pitch %d", entry.pitch)
            continue
        index = int(entry.time * sample_rate)
        if entry.action == "play":
            open_voices[entry.pitch].append(index)
        elif open_voices[entry.pitch]:
            start = open_voices[entry.pitch].popleft()
            voices.append((entry.pitch, start, index))
    for pitch, starts in open_voices.items():
        voices.extend((pitch, start, None) for start in starts)

    for pitch, start, stop in voices:
        if start >= total:
            continue
        end = total if stop is None else min(total, stop + release_samples)
        positions = np.arange(end - start, dtype=np.float64)
        release_at = None if stop is None else float(stop - start)
        envelope = _envelope(
            positions,
            release_at,
            attack_samples=attack_samples,
            release_samples=release_samples,
        )
        tone = _partials(pitch_frequency(pitch), positions / sample_rate)
        mix[start:end] += tone * envelope

    return ensure_audio_contract(mix * db_to_gain(volume_db))


def write_wav(path: str | Path, samples: NDArray[Any], *, sample_rate: int = SAMPLE_RATE) -> Path:
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    sf.write(target, ensure_audio_contract(samples), sample_rate)
    return target


@dataclass(slots=True)
class _Voice:
    freq: float
    holders: int = 1
    position: int = 0
    release_at: int | None = None


class ToneSink:
    """Real-time additive synth with one reference-counted voice per pitch.

    Playing a pitch that is already held by the other hand retriggers it and
    adds a holder; the voice is released once every holder has stopped it.
    """

    def __init__(
        self,
        sd: Any,
        *,
        sample_rate: int = SAMPLE_RATE,
        release_seconds: float = 0.5,
        volume_db: float = -10.0,
        blocksize: int = 256,
    ) -> None:
        self._sd = sd
        self._sample_rate = sample_rate
        self._attack_samples = int(_ATTACK_SECONDS * sample_rate)
        self._release_samples = int(release_seconds * sample_rate)
        self._gain = db_to_gain(volume_db)
        self._blocksize = blocksize
        self._voices: dict[int, _Voice] = {}
        self._lock = threading.Lock()
        self._stream: Any | None = None

    def start(self) -> None:
        if self._stream is not None:
            return
        self._stream = self._sd.OutputStream(
            samplerate=self._sample_rate,
            channels=1,
            dtype="float32",
            blocksize=self._blocksize,
            callback=self._callback,
        )
        self._stream.start()
        _LOGGER.info("Tone sink started (sr=%d)", self._sample_rate)

    def close(self) -> None:
        if self._stream is None:
            return
        self._stream.stop()
        self._stream.close()
        self._stream = None
        with self._lock:
            self._voices.clear()

    def __enter__(self) -> "ToneSink":
        self.start()
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        self.close()

    def play_note(self, pitch: int) -> None:
        if not in_range(pitch):
            _LOGGER.debug("Ignoring out-of-range pitch %d", pitch)
            return
        with self._lock:
            voice = self._voices.get(pitch)
            if voice is None:
                self._voices[pitch] = _Voice(freq=pitch_frequency(pitch))
                return
            voice.holders += 1
            voice.position = 0
            voice.release_at = None

    def stop_note(self, pitch: int) -> None:
        with self._lock:
            voice = self._voices.get(pitch)
            if voice is None or voice.holders == 0:
                return
            voice.holders -= 1
            if voice.holders == 0:
                voice.release_at = voice.position

    def active_pitches(self) -> set[int]:
        with self._lock:
            return {pitch for pitch, voice in self._voices.items() if voice.holders > 0}

    def render_block(self, frames: int) -> FloatArray:
        mix = np.zeros(frames, dtype=np.float64)
        with self._lock:
            for pitch in list(self._voices):
                voice = self._voices[pitch]
                positions = np.arange(voice.position, voice.position + frames, dtype=np.float64)
                release_at = None if voice.release_at is None else float(voice.release_at)
                envelope = _envelope(
                    positions,
                    release_at,
                    attack_samples=self._attack_samples,
                    release_samples=self._release_samples,
                )
                mix += _partials(voice.freq, positions / self._sample_rate) * envelope
                voice.position += frames
                if release_at is not None and voice.position - release_at >= self._release_samples:
                    del self._voices[pitch]
        return np.clip(mix * self._gain, -1.0, 1.0).astype(np.float32)

    def _callback(self, outdata: Any, frames: int, time_info: Any, status: Any) -> None:
        if status:
            _LOGGER.debug("Output stream status: %s", status)
        outdata[:, 0] = self.render_block(frames)


def load_tone_sink(config: PerformanceConfig | None = None) -> ToneSink | None:
    try:
        import sounddevice as sd_module  # type: ignore[import]
    except (ImportError, OSError) as exc:
        _LOGGER.info("sounddevice not available: %s", exc, exc_info=True)
        return None
    settings = config or PerformanceConfig()
    return ToneSink(
        sd_module,
        release_seconds=settings.release_seconds,
        volume_db=settings.volume_db,
    )


def resolve_tone_sink(config: PerformanceConfig | None = None) -> ToneSink:
    sink = load_tone_sink(config)
    if sink is None:
        raise PlaybackError(
            "Live playback requires sounddevice (and a PortAudio install). "
            "Use `chordboard replay --output FILE.wav` to render offline instead."
        )
    return sink
