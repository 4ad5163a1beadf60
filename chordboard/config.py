from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import InvalidConfigError

_LOGGER = logging.getLogger("chordboard.config")

InversionStyle = Literal["A", "B"]
INVERSION_STYLES: tuple[InversionStyle, ...] = ("A", "B")

DEFAULT_BASE_TRANSPOSITION = 24
DEFAULT_RIGHT_HAND_OFFSET = 24
DEFAULT_RELEASE_SECONDS = 0.5
DEFAULT_VOLUME_DB = -10.0

_ENV_FIELDS: Mapping[str, str] = {
    "CHORDBOARD_BASE_TRANSPOSITION": "base_transposition",
    "CHORDBOARD_INVERSION_STYLE": "inversion_style",
    "CHORDBOARD_KEYMAP": "keymap_path",
    "CHORDBOARD_RELEASE": "release_seconds",
}


class PerformanceConfig(BaseModel):
    """Session settings for a performer and its reference audio backends."""

    base_transposition: int = Field(
        default=DEFAULT_BASE_TRANSPOSITION,
        description="Initial global transposition; 24 puts the left-hand root on C2.",
    )
    right_hand_offset: int = Field(
        default=DEFAULT_RIGHT_HAND_OFFSET,
        description="Semitones the right hand sits above the left-hand root.",
    )
    inversion_style: InversionStyle = Field(
        default="A",
        description="A moves two voices per inversion, B moves only the outer voice.",
    )
    release_seconds: float = Field(default=DEFAULT_RELEASE_SECONDS, ge=0.0, le=10.0)
    volume_db: float = Field(default=DEFAULT_VOLUME_DB, le=0.0)
    keymap_path: Path | None = None

    model_config = ConfigDict(frozen=True, extra="forbid")

    def with_overrides(self, **overrides: Any) -> "PerformanceConfig":
        """Return a copy with the non-None overrides applied and validated."""

        updates = {key: value for key, value in overrides.items() if value is not None}
        if not updates:
            return self
        return _validate({**self.model_dump(), **updates})


def _validate(payload: Mapping[str, Any]) -> PerformanceConfig:
    try:
        return PerformanceConfig.model_validate(dict(payload))
    except ValidationError as exc:
        raise InvalidConfigError(str(exc)) from exc


def _env_payload(environ: Mapping[str, str]) -> dict[str, Any]:
    payload: dict[str, Any] = {}
    for env_name, field_name in _ENV_FIELDS.items():
        raw = environ.get(env_name, "").strip()
        if not raw:
            continue
        if field_name == "inversion_style":
            raw = raw.upper()
        payload[field_name] = raw
        _LOGGER.debug("Using %s=%s from environment", env_name, raw)
    return payload


def load_config(
    *,
    environ: Mapping[str, str] | None = None,
    **overrides: Any,
) -> PerformanceConfig:
    """Build a config from defaults, then environment, then explicit overrides."""

    env = os.environ if environ is None else environ
    payload = _env_payload(env)
    payload.update({key: value for key, value in overrides.items() if value is not None})
    return _validate(payload)
