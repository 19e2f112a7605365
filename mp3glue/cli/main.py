"""mp3glue CLI - join audio clips into one WAV with chapter timestamps."""
from __future__ import annotations
import argparse
import json
import sys
from dataclasses import replace
from pathlib import Path

from mp3glue.version import __version__
from mp3glue.config import GlueConfig, load_config
from mp3glue.errors import (
    ConfigError,
    EmptyInputError,
    GlueError,
    WavFormatError,
)
from mp3glue.io.files import collect_audio_paths, load_clip_inputs
from mp3glue.io.wav import decode_wav_pcm16
from mp3glue.pipeline import combine_clips
from mp3glue.reporting.run_report import build_run_report, dumps_report
from mp3glue.types import RunState
from mp3glue.utils.logger import setup_logging


EXIT_OK = 0
EXIT_BAD_ARGS = 2
EXIT_DECODE_ERROR = 3
EXIT_CONFIG_ERROR = 4
EXIT_INTERNAL_ERROR = 5

_STATUS_TEXT = {
    RunState.DECODING: "Decoding files...",
    RunState.MERGING: "Merging audio...",
    RunState.ENCODING: "Encoding WAV...",
    RunState.READY: "Done! Compiled audio is ready.",
}


def _print_status(state: RunState) -> None:
    text = _STATUS_TEXT.get(state)
    if text:
        print(text, file=sys.stderr)


def _effective_config(args) -> GlueConfig:
    """Config file and environment, then explicit CLI flags on top."""
    cfg = load_config(getattr(args, "config", None))
    overrides: dict = {}
    if getattr(args, "workers", None) is not None:
        if args.workers < 1:
            raise ConfigError("--workers must be >= 1.")
        overrides["workers"] = args.workers
    if getattr(args, "strict_channels", False):
        overrides["channel_policy"] = "strict"
    if getattr(args, "strict_rates", False):
        overrides["sample_rate_policy"] = "strict"
    if getattr(args, "ext", None):
        overrides["audio_extensions"] = tuple(args.ext)
    if getattr(args, "log_level", None):
        overrides["log_level"] = args.log_level.upper()
    return replace(cfg, **overrides) if overrides else cfg


def cmd_combine(args) -> int:
    """Handle combine command."""
    try:
        cfg = _effective_config(args)
        setup_logging(cfg.log_level, getattr(args, "log_file", None))

        paths = collect_audio_paths(
            args.inputs,
            extensions=cfg.audio_extensions,
            recursive=not args.no_recursive,
            sort=args.sort,
        )
        clips = load_clip_inputs(paths)
        progress = None if args.quiet else _print_status
        result = combine_clips(clips, config=cfg, progress=progress)

        out_dir = Path(args.out_dir)
        out_dir.mkdir(parents=True, exist_ok=True)
        wav_path = out_dir / (args.wav_name or cfg.wav_name)
        ts_path = out_dir / (args.timestamps_name or cfg.timestamps_name)
        wav_path.write_bytes(result.wav_bytes)
        ts_path.write_bytes(result.timestamps_text.encode("utf-8"))
        print(f"Audio written to: {wav_path}", file=sys.stderr)
        print(f"Timestamps written to: {ts_path}", file=sys.stderr)

        if args.report_json:
            report = build_run_report(
                result, wav_path=str(wav_path), timestamps_path=str(ts_path)
            )
            Path(args.report_json).write_text(dumps_report(report), encoding="utf-8")
            print(f"Report written to: {args.report_json}", file=sys.stderr)

        note = result.upmix_note()
        if note:
            print(note)
        for w in result.warnings:
            print(f"[WARN] {w}", file=sys.stderr)
        return EXIT_OK

    except EmptyInputError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_BAD_ARGS
    except FileNotFoundError as e:
        print(f"Error: File not found - {e}", file=sys.stderr)
        return EXIT_BAD_ARGS
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR
    except GlueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_DECODE_ERROR
    except Exception as e:
        print(f"Internal error: {e}", file=sys.stderr)
        return EXIT_INTERNAL_ERROR


def cmd_inspect(args) -> int:
    """Handle inspect command."""
    try:
        data = Path(args.wav_path).read_bytes()
        header, pcm = decode_wav_pcm16(data)
        info = header.as_dict()
        info["duration_s"] = (
            header.frame_count / header.sample_rate if header.sample_rate else 0.0
        )
        if pcm.size:
            info["peak_int16"] = int(abs(pcm.astype("int32")).max())
        print(json.dumps(info, indent=2))
        return EXIT_OK
    except FileNotFoundError as e:
        print(f"Error: File not found - {e}", file=sys.stderr)
        return EXIT_BAD_ARGS
    except WavFormatError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_DECODE_ERROR
    except Exception as e:
        print(f"Internal error: {e}", file=sys.stderr)
        return EXIT_INTERNAL_ERROR


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="mp3glue",
        description="mp3glue - join audio clips into one WAV with timestamps"
    )
    parser.add_argument(
        "--version", action="version",
        version=f"mp3glue {__version__}"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # combine command
    combine_parser = subparsers.add_parser(
        "combine",
        help="Decode clips in order and write a merged WAV plus timestamps"
    )
    combine_parser.add_argument(
        "inputs",
        nargs="+",
        help="Audio files or folders, in playback order"
    )
    combine_parser.add_argument(
        "--out-dir", "-o",
        default=".",
        help="Output directory (default: current directory)"
    )
    combine_parser.add_argument(
        "--wav-name",
        help="Merged WAV filename (default: mp3-glue.wav)"
    )
    combine_parser.add_argument(
        "--timestamps-name",
        help="Timestamp listing filename (default: timestamps.txt)"
    )
    combine_parser.add_argument(
        "--report-json",
        help="Output path for a JSON run report"
    )
    combine_parser.add_argument(
        "--config", "-c",
        help="Path to JSON config file"
    )
    combine_parser.add_argument(
        "--ext",
        action="append",
        help="Extension picked up from folders (repeatable, default: .mp3)"
    )
    combine_parser.add_argument(
        "--sort",
        action="store_true",
        help="Order all inputs by file name"
    )
    combine_parser.add_argument(
        "--no-recursive",
        action="store_true",
        help="Do not descend into subfolders"
    )
    combine_parser.add_argument(
        "--workers",
        type=int,
        help="Parallel decode threads (default: 1)"
    )
    combine_parser.add_argument(
        "--strict-channels",
        action="store_true",
        help="Fail on sources with more than two channels"
    )
    combine_parser.add_argument(
        "--strict-rates",
        action="store_true",
        help="Fail when clip sample rates differ"
    )
    combine_parser.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error"],
        help="Logging level (default: warning)"
    )
    combine_parser.add_argument(
        "--log-file",
        help="Also write logs to this file"
    )
    combine_parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Suppress progress messages"
    )
    combine_parser.set_defaults(func=cmd_combine)

    # inspect command
    inspect_parser = subparsers.add_parser(
        "inspect",
        help="Print the header of a 16-bit PCM WAV as JSON"
    )
    inspect_parser.add_argument(
        "wav_path",
        help="Path to WAV file"
    )
    inspect_parser.set_defaults(func=cmd_inspect)

    args = parser.parse_args()

    if hasattr(args, "func"):
        sys.exit(args.func(args))
    else:
        parser.print_help()
        sys.exit(EXIT_BAD_ARGS)


if __name__ == "__main__":
    main()
