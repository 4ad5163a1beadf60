from __future__ import annotations

import argparse
import importlib.util
import logging

from rich.console import Console
from rich.live import Live
from rich.table import Table
from rich.text import Text

from .audio import (
    RecordingSink,
    TimelineSink,
    in_range,
    pitch_name,
    render_timeline,
    resolve_tone_sink,
    write_wav,
)
from .capture import KeyCapture, listen
from .config import INVERSION_STYLES, PerformanceConfig, load_config
from .display import StatusBoard, describe_effect, key_map_table
from .engine import Performer, parse_key_events
from .keymap import KeyMap, load_key_map
from .logging_utils import configure_logging, debug_enabled, get_log_path, log_exception

_LOGGER = logging.getLogger("chordboard.cli")
_CONSOLE = Console()


def _settings(args: argparse.Namespace) -> tuple[PerformanceConfig, KeyMap]:
    config = load_config(
        base_transposition=args.transposition,
        inversion_style=args.inversion_style,
        keymap_path=args.keymap,
    )
    return config, load_key_map(config.keymap_path)


def _format_call(action: str, pitch: int) -> str:
    name = pitch_name(pitch) if in_range(pitch) else "out of range"
    return f"  {action} {pitch} ({name})"


def _replay(args: argparse.Namespace) -> int:
    config, key_map = _settings(args)
    events = parse_key_events(args.tokens)
    sink = TimelineSink() if args.output else RecordingSink()
    performer = Performer(sink, key_map=key_map, config=config)
    for event in events:
        seen = len(sink.calls)
        effect = performer.handle(event)
        marker = "+" if event.kind == "down" else "-"
        summary = "unmapped" if effect is None else describe_effect(effect)
        _CONSOLE.print(f"{marker}{event.code}: {summary}", markup=False)
        for action, pitch in sink.calls[seen:]:
            _CONSOLE.print(_format_call(action, pitch), markup=False)
        if isinstance(sink, TimelineSink) and event.kind == "down":
            sink.advance(args.step)
    _CONSOLE.print(f"sounding: {sorted(performer.sounding())}", markup=False)
    if isinstance(sink, TimelineSink):
        with _CONSOLE.status("Rendering replay audio"):
            audio = render_timeline(
                sink.entries,
                release_seconds=config.release_seconds,
                volume_db=config.volume_db,
            )
        path = write_wav(args.output, audio)
        _CONSOLE.print(f"Wrote replay to {path}")
    return 0


def _play(args: argparse.Namespace) -> int:
    config, key_map = _settings(args)
    board = StatusBoard(transposition=config.base_transposition)
    with resolve_tone_sink(config) as sink:
        performer = Performer(sink, key_map=key_map, config=config, hooks=board.hooks())
        capture = KeyCapture(performer)
        _CONSOLE.print("Hold modifiers, then press a root. Escape quits.")
        with Live(board, console=_CONSOLE, refresh_per_second=20):
            listen(capture)
        performer.reset()
    return 0


def _doctor(args: argparse.Namespace) -> int:
    config, key_map = _settings(args)
    table = Table(title="chordboard doctor", show_header=False)
    table.add_column("check", style="bold", no_wrap=True)
    table.add_column("value", overflow="fold")
    table.add_row("Inversion style", config.inversion_style)
    table.add_row("Base transposition", str(config.base_transposition))
    table.add_row("Key map", Text(f"{config.keymap_path or 'built-in'} ({len(key_map)} keys)"))
    for module in ("sounddevice", "pynput"):
        found = importlib.util.find_spec(module) is not None
        table.add_row(f"{module} installed", "yes" if found else "no")
    table.add_row("Log file", Text(str(get_log_path())))
    _CONSOLE.print(table)
    _CONSOLE.print("Set CHORDBOARD_INVERSION_STYLE=B for single-voice inversions.")
    _CONSOLE.print("Point CHORDBOARD_KEYMAP at a JSON file to remap keys.")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="chordboard")
    parser.add_argument("--inversion-style", choices=INVERSION_STYLES, default=None)
    parser.add_argument("--transposition", type=int, default=None)
    parser.add_argument("--keymap", type=str, default=None, help="JSON key map overrides.")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("keys", help="Print the active key map.")

    replay = sub.add_parser("replay", help="Run key events through the engine and print calls.")
    replay.add_argument(
        "tokens",
        nargs="+",
        help="KeyR taps a key, +KeyR presses it, ^KeyR releases it.",
    )
    replay.add_argument("--output", type=str, default=None, help="Render the replay to a wav.")
    replay.add_argument("--step", type=float, default=0.5, help="Seconds between key presses.")

    sub.add_parser("play", help="Play live from the computer keyboard.")
    sub.add_parser("doctor", help="Check optional backends and settings.")
    return parser


def main(argv: list[str] | None = None) -> int:
    configure_logging()
    try:
        parser = build_parser()
        args = parser.parse_args(argv)

        if args.command == "keys":
            _, key_map = _settings(args)
            _CONSOLE.print(key_map_table(key_map))
            return 0
        if args.command == "replay":
            return _replay(args)
        if args.command == "play":
            return _play(args)
        if args.command == "doctor":
            return _doctor(args)

        parser.print_help()
        return 1
    except Exception as exc:
        _LOGGER.warning("chordboard CLI failed: %s", exc, exc_info=debug_enabled())
        log_exception("chordboard CLI", exc)
        _CONSOLE.print(f"chordboard failed: {exc}", style="red", markup=False)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
