"""Log routing for the ``chordboard`` logger tree.

Console output goes through rich so it lines up with the CLI's own output; a
plain-text file under the log directory keeps debug detail and tracebacks.
"""

from __future__ import annotations

import logging
import os
import traceback
from datetime import datetime
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

_LOGGER = logging.getLogger("chordboard.logging")

LOG_DIR_ENV = "CHORDBOARD_LOG_DIR"
DEBUG_ENV = "CHORDBOARD_DEBUG"
LOG_FILE_NAME = "chordboard.log"

_FILE_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"

# Handlers from the last configure_logging call.
_installed: list[logging.Handler] = []


def debug_enabled() -> bool:
    return bool(os.environ.get(DEBUG_ENV))


def get_log_dir() -> Path:
    configured = os.environ.get(LOG_DIR_ENV)
    if configured:
        return Path(configured).expanduser()
    return Path.home() / ".cache" / "chordboard" / "logs"


def get_log_path() -> Path:
    return get_log_dir() / LOG_FILE_NAME


def configure_logging() -> None:
    """Attach a rich console handler and a file handler to ``chordboard``.

    Calling it again swaps out the handlers of the previous call, so the log
    directory is re-read each time.
    """

    logger = logging.getLogger("chordboard")
    logger.setLevel(logging.DEBUG)
    while _installed:
        handler = _installed.pop()
        logger.removeHandler(handler)
        handler.close()

    verbose = debug_enabled()
    console_handler = RichHandler(
        console=Console(stderr=True),
        level=logging.DEBUG if verbose else logging.INFO,
        show_path=verbose,
        markup=False,
        rich_tracebacks=verbose,
    )
    logger.addHandler(console_handler)
    _installed.append(console_handler)

    path = get_log_path()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, encoding="utf-8")
    except OSError as exc:
        _LOGGER.warning("File logging disabled, cannot open %s: %s", path, exc)
        return
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(_FILE_FORMAT))
    logger.addHandler(file_handler)
    _installed.append(file_handler)


def log_exception(context: str, exc: BaseException) -> Path | None:
    """Append ``exc`` and its traceback to the log file; returns the file or None."""

    path = get_log_path()
    stamp = datetime.now().isoformat(timespec="seconds")
    detail = "".join(traceback.format_exception(exc))
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("a", encoding="utf-8") as handle:
            handle.write(f"[{stamp}] {context} failed: {type(exc).__name__}: {exc}\n{detail}\n")
    except OSError as write_exc:
        _LOGGER.warning("Could not write %s: %s", path, write_exc)
        return None
    return path
