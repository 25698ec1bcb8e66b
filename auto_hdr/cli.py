"""Play files through mpv with automatic HDR and refresh-rate switching."""
from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Any, List, Optional, Sequence

import load

from .logging_utils import LOGGER_NAME, configure_logger, mpv_log_handler

DEFAULT_CONFIG_DIR = Path.home() / ".config" / "mpv-auto-hdr"

LOGGER = logging.getLogger(LOGGER_NAME)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mpv-auto-hdr",
        description="Play media with mpv, matching display HDR state and refresh rate to the content.",
    )
    parser.add_argument("files", nargs="+", help="Media files or URLs to play.")
    parser.add_argument(
        "--config-dir",
        type=Path,
        default=DEFAULT_CONFIG_DIR,
        help=f"Directory holding auto_hdr_settings.json (default: {DEFAULT_CONFIG_DIR}).",
    )
    parser.add_argument("--verbose", action="store_true", help="Log verbose diagnostics.")
    parser.add_argument(
        "--log-file",
        action="store_true",
        help="Also write the log to a rotating file under <config-dir>/logs.",
    )
    parser.add_argument("--fullscreen", action="store_true", help="Start playback fullscreen.")
    parser.add_argument(
        "--mpv-loglevel",
        default="warn",
        choices=["no", "fatal", "error", "warn", "info", "v", "debug", "trace"],
        help="Minimum libmpv message level forwarded to the log.",
    )
    return parser


def _create_player(args: argparse.Namespace) -> Any:
    import mpv

    return mpv.MPV(
        log_handler=mpv_log_handler(LOGGER),
        loglevel=args.mpv_loglevel,
        input_default_bindings=True,
        input_vo_keyboard=True,
        osc=True,
        fullscreen=bool(args.fullscreen),
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logger(
        verbose=args.verbose,
        log_dir=args.config_dir / "logs" if args.log_file else None,
    )
    files: List[str] = list(args.files)
    player = _create_player(args)
    try:
        load.script_start(player, str(args.config_dir))
        if args.verbose:
            LOGGER.setLevel(logging.DEBUG)
        player.play(files[0])
        for extra in files[1:]:
            player.playlist_append(extra)
        player.wait_for_shutdown()
    except KeyboardInterrupt:
        LOGGER.info("Interrupted; restoring display")
    finally:
        load.script_stop()
        player.terminate()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
