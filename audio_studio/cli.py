"""Terminal front end (Rich CLI).

Commands
--------
process  Load a file, run the effects chain, write a float WAV.
analyze  Print peak/RMS/loudness for a file.

Usage:
  audio-studio process input.mp3 -o out.wav --tempo 1.25 --bass-boost 0.3
  audio-studio process input.wav --config effects.json --limiter
  audio-studio analyze input.flac [--json]

The heavy lifting lives in the library modules; this file only parses
arguments, shows progress and turns errors into messages.
"""
from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from .analysis import analyze
from .config import configure_logging, load_effects_config, merge_overrides
from .errors import AudioStudioError
from .io_utils import OUTPUT_DIR, build_output_path, load_audio, save_audio
from .pipeline import plan_stages, process_audio
from .types import AnalysisSummary, EffectsConfig

logger = logging.getLogger(__name__)

console = Console()


# ====================================
# Argument parsing
# ====================================

def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="audio-studio", description="Decode, process and re-encode audio")
    p.add_argument("-v", "--verbose", action="count", default=0, help="More log output (-vv for debug)")
    sub = p.add_subparsers(dest="command", required=True)

    proc = sub.add_parser("process", help="Apply effects and save as WAV")
    proc.add_argument("input", type=str, help="Path to input WAV/MP3/M4A/AAC/OGG/FLAC")
    proc.add_argument("-o", "--output", type=str, default=None, help="Path to output WAV")
    proc.add_argument("--config", type=str, default=None, help="JSON file with effects options")
    proc.add_argument("--volume", type=float, default=None, help="Linear gain")
    proc.add_argument("--tempo", type=float, default=None, help="Playback rate (pitch follows)")
    proc.add_argument("--bass-boost", type=float, default=None, help="Low shelf intensity, 0 = off")
    proc.add_argument("--reverb", type=float, default=None, help="Reverb mix 0..1")
    for band in ("low", "low-mid", "mid", "high-mid", "high"):
        proc.add_argument(f"--eq-{band}", type=float, default=None, help=f"EQ {band} band 0..1 (0.5 = flat)")
    proc.add_argument("--limiter", action="store_true", default=None, help="Enable the limiter")
    proc.add_argument("--limiter-threshold", type=float, default=None, help="Limiter ceiling in dB")
    proc.add_argument("--limiter-release", type=float, default=None, help="Limiter release in seconds")
    proc.add_argument("--attenuator", action="store_true", default=None, help="Enable the attenuator")
    proc.add_argument("--attenuator-gain", type=float, default=None, help="Attenuator gain in dB")
    proc.add_argument(
        "--no-processing",
        dest="audio_processing_enabled",
        action="store_false",
        default=None,
        help="Bypass limiter and attenuator",
    )
    proc.add_argument("--seed", dest="reverb_seed", type=int, default=None, help="Reverb noise seed")
    proc.add_argument(
        "--fft-reverb",
        dest="reverb_method",
        action="store_const",
        const="fft",
        default=None,
        help="Convolve reverb in the frequency domain",
    )

    ana = sub.add_parser("analyze", help="Show levels for a file")
    ana.add_argument("input", type=str, help="Path to input audio")
    ana.add_argument("--json", action="store_true", help="Print JSON instead of a table")
    return p


def effects_from_args(args: argparse.Namespace) -> EffectsConfig:
    config = load_effects_config(args.config)
    return merge_overrides(
        config,
        volume=args.volume,
        tempo=args.tempo,
        bass_boost=args.bass_boost,
        reverb=args.reverb,
        eq_low=args.eq_low,
        eq_low_mid=args.eq_low_mid,
        eq_mid=args.eq_mid,
        eq_high_mid=args.eq_high_mid,
        eq_high=args.eq_high,
        limiter=args.limiter,
        limiter_threshold=args.limiter_threshold,
        limiter_release=args.limiter_release,
        attenuator=args.attenuator,
        attenuator_gain=args.attenuator_gain,
        audio_processing_enabled=args.audio_processing_enabled,
        reverb_seed=args.reverb_seed,
        reverb_method=args.reverb_method,
    )


# ====================================
# Output helpers
# ====================================

def show_analysis(summary: AnalysisSummary, title: str) -> None:
    t = Table(title=title, show_lines=True)
    t.add_column("Channel", justify="right", style="cyan")
    t.add_column("Peak", justify="right")
    t.add_column("RMS", justify="right")
    for idx, (peak, rms) in enumerate(zip(summary.peak_levels, summary.rms_levels)):
        t.add_row(str(idx), f"{peak:.4f}", f"{rms:.4f}")
    console.print(t)
    lufs = "n/a" if summary.integrated_loudness is None else f"{summary.integrated_loudness:.1f} LUFS"
    console.print(
        f"{summary.channel_count} ch @ {summary.sample_rate} Hz, "
        f"{summary.samples_per_channel} samples ({summary.duration:.2f} s), loudness {lufs}"
    )


def error_panel(message: str) -> None:
    console.print(Panel(message, title="Error", border_style="red"))


# ====================================
# Commands
# ====================================

def run_process(args: argparse.Namespace) -> int:
    in_path = Path(args.input)
    out_path = Path(args.output) if args.output else build_output_path(in_path)

    try:
        effects = effects_from_args(args)
    except AudioStudioError as e:
        error_panel(f"Invalid effects configuration: {e}")
        return 1

    stages = [name for name, _ in plan_stages(effects)]
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        TimeElapsedColumn(),
        transient=True,
        console=console,
    ) as progress:
        task_id = progress.add_task("Loading audio...", total=None)
        try:
            buffer = load_audio(in_path)
        except AudioStudioError as e:
            progress.stop()
            error_panel(f"Failed to load audio file: {e}")
            return 1

        progress.update(task_id, description=f"Processing ({', '.join(stages)})...")
        try:
            processed = process_audio(buffer, effects)
        except AudioStudioError as e:
            progress.stop()
            error_panel(f"Failed to process audio: {e}")
            return 1

        progress.update(task_id, description="Saving...")
        if out_path.parent == OUTPUT_DIR:
            OUTPUT_DIR.mkdir(parents=True, exist_ok=True)
        try:
            save_audio(processed, out_path)
        except AudioStudioError as e:
            progress.stop()
            error_panel(f"Failed to save audio file: {e}")
            return 1

    msg = (
        f"Saved processed file to\n[bold green]{out_path}[/bold green]\n\n"
        f"Stages: {', '.join(stages)}\n"
        f"Duration: {buffer.duration:.2f} s -> {processed.duration:.2f} s"
    )
    console.print(Panel(msg, title="Done", border_style="green"))
    return 0


def run_analyze(args: argparse.Namespace) -> int:
    in_path = Path(args.input)
    try:
        buffer = load_audio(in_path)
    except AudioStudioError as e:
        error_panel(f"Failed to load audio file: {e}")
        return 1
    summary = analyze(buffer)
    if args.json:
        console.print_json(json.dumps(summary.to_dict()))
    else:
        show_analysis(summary, title=f"Levels for {in_path.name}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    level = logging.WARNING - 10 * min(args.verbose, 2)
    configure_logging(level)
    logger.debug("Command: %s", args.command)
    if args.command == "process":
        return run_process(args)
    return run_analyze(args)


if __name__ == "__main__":
    raise SystemExit(main())
