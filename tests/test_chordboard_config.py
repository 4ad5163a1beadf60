from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from chordboard.config import PerformanceConfig, load_config
from chordboard.errors import InvalidConfigError


def test_defaults() -> None:
    config = load_config(environ={})
    assert config.base_transposition == 24
    assert config.right_hand_offset == 24
    assert config.inversion_style == "A"
    assert config.keymap_path is None


def test_environment_values_are_applied() -> None:
    config = load_config(
        environ={
            "CHORDBOARD_BASE_TRANSPOSITION": "30",
            "CHORDBOARD_INVERSION_STYLE": "b",
            "CHORDBOARD_KEYMAP": "~/keys.json",
            "CHORDBOARD_RELEASE": "1.5",
        }
    )
    assert config.base_transposition == 30
    assert config.inversion_style == "B"
    assert config.keymap_path == Path("~/keys.json")
    assert config.release_seconds == pytest.approx(1.5)


def test_overrides_beat_environment() -> None:
    config = load_config(
        environ={"CHORDBOARD_INVERSION_STYLE": "B"},
        inversion_style="A",
        base_transposition=None,
    )
    assert config.inversion_style == "A"
    assert config.base_transposition == 24


def test_invalid_environment_raises_config_error() -> None:
    with pytest.raises(InvalidConfigError):
        load_config(environ={"CHORDBOARD_INVERSION_STYLE": "C"})


def test_load_config_reads_process_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CHORDBOARD_BASE_TRANSPOSITION", "12")
    assert load_config().base_transposition == 12


def test_config_rejects_unknown_fields() -> None:
    with pytest.raises(ValidationError):
        PerformanceConfig.model_validate({"tempo": 120})


def test_with_overrides_validates() -> None:
    config = PerformanceConfig()
    assert config.with_overrides(inversion_style=None) is config
    assert config.with_overrides(release_seconds=0.2).release_seconds == pytest.approx(0.2)
    with pytest.raises(InvalidConfigError):
        config.with_overrides(release_seconds=-1)
