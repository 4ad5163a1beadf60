from __future__ import annotations

from .audio import (
    NOTE_NAMES,
    PITCH_COUNT,
    SAMPLE_RATE,
    RecordingSink,
    TimelineSink,
    ToneSink,
    load_tone_sink,
    pitch_frequency,
    pitch_name,
    render_timeline,
    write_wav,
)
from .chords import (
    CHORD_SHAPES,
    ChordQuality,
    Direction,
    compute_left_chord,
    compute_right_note,
    invert,
)
from .config import InversionStyle, PerformanceConfig, load_config
from .engine import (
    AudioSink,
    KeyEvent,
    PerformanceEvent,
    PerformanceHooks,
    Performer,
    parse_key_events,
)
from .errors import (
    CaptureError,
    ChordboardError,
    InvalidConfigError,
    InvalidKeyMapError,
    PlaybackError,
)
from .keymap import (
    DEFAULT_KEY_MAP,
    ClearEffect,
    GlobalEffect,
    KeyEffect,
    KeyMap,
    ModifierEffect,
    PlayableEffect,
    load_key_map,
)
from .logging_utils import configure_logging
from .state import HandDisplay, LeftModifiers, PerformanceState, RightModifiers

__all__ = [
    "CHORD_SHAPES",
    "DEFAULT_KEY_MAP",
    "NOTE_NAMES",
    "PITCH_COUNT",
    "SAMPLE_RATE",
    "AudioSink",
    "CaptureError",
    "ChordQuality",
    "ChordboardError",
    "ClearEffect",
    "Direction",
    "GlobalEffect",
    "HandDisplay",
    "InvalidConfigError",
    "InvalidKeyMapError",
    "InversionStyle",
    "KeyEffect",
    "KeyEvent",
    "KeyMap",
    "LeftModifiers",
    "ModifierEffect",
    "PerformanceConfig",
    "PerformanceEvent",
    "PerformanceHooks",
    "PerformanceState",
    "Performer",
    "PlayableEffect",
    "PlaybackError",
    "RecordingSink",
    "RightModifiers",
    "TimelineSink",
    "ToneSink",
    "compute_left_chord",
    "compute_right_note",
    "configure_logging",
    "invert",
    "load_config",
    "load_key_map",
    "load_tone_sink",
    "parse_key_events",
    "pitch_frequency",
    "pitch_name",
    "render_timeline",
    "write_wav",
]

__version__ = "0.1.0"
