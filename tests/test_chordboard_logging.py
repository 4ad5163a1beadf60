from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path

import pytest
from rich.logging import RichHandler

from chordboard.logging_utils import configure_logging, get_log_dir, get_log_path, log_exception


def test_log_dir_uses_env_override(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CHORDBOARD_LOG_DIR", str(tmp_path))
    assert get_log_dir() == tmp_path
    assert get_log_path() == tmp_path / "chordboard.log"


def test_log_exception_appends_traceback(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CHORDBOARD_LOG_DIR", str(tmp_path))
    try:
        raise RuntimeError("sink exploded")
    except RuntimeError as exc:
        path = log_exception("replay", exc)
    assert path == tmp_path / "chordboard.log"
    text = path.read_text(encoding="utf-8")
    assert "replay failed: RuntimeError: sink exploded" in text
    assert "Traceback" in text


@pytest.fixture
def chordboard_logger() -> Iterator[logging.Logger]:
    logger = logging.getLogger("chordboard")
    yield logger
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def test_configure_logging_installs_rich_and_file_handlers(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, chordboard_logger: logging.Logger
) -> None:
    monkeypatch.setenv("CHORDBOARD_LOG_DIR", str(tmp_path))
    monkeypatch.delenv("CHORDBOARD_DEBUG", raising=False)
    configure_logging()
    file_handlers = [h for h in chordboard_logger.handlers if isinstance(h, logging.FileHandler)]
    rich_handlers = [h for h in chordboard_logger.handlers if isinstance(h, RichHandler)]
    assert len(file_handlers) == 1
    assert len(rich_handlers) == 1
    assert Path(file_handlers[0].baseFilename) == tmp_path / "chordboard.log"
    assert rich_handlers[0].level == logging.INFO


def test_configure_logging_again_follows_new_log_dir(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, chordboard_logger: logging.Logger
) -> None:
    monkeypatch.setenv("CHORDBOARD_LOG_DIR", str(tmp_path / "first"))
    configure_logging()
    monkeypatch.setenv("CHORDBOARD_LOG_DIR", str(tmp_path / "second"))
    monkeypatch.setenv("CHORDBOARD_DEBUG", "1")
    configure_logging()

    assert len(chordboard_logger.handlers) == 2
    rich_handler = next(h for h in chordboard_logger.handlers if isinstance(h, RichHandler))
    assert rich_handler.level == logging.DEBUG

    logging.getLogger("chordboard.engine").debug("key down %s", "KeyR")
    for handler in chordboard_logger.handlers:
        handler.flush()
    text = (tmp_path / "second" / "chordboard.log").read_text(encoding="utf-8")
    assert "chordboard.engine: key down KeyR" in text
    assert (tmp_path / "first" / "chordboard.log").read_text(encoding="utf-8") == ""
