"""
Infant Health Monitor - command-line interface.

Classifies an audio recording with the feature pipeline. Installed as the
``infant-monitor`` console script.

Example usage:
    # Classify the whole file in one tick
    infant-monitor path/to/recording.wav

    # Play the file back and classify it every 3 seconds of audio
    infant-monitor --stream path/to/recording.wav
    infant-monitor --stream --realtime --max-ticks 5 path/to/recording.wav

    # Reproducible run with real spectral coefficients, JSON report
    infant-monitor --mode spectral --seed 7 --output report.json recording.wav
"""

import argparse
import json
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

from infant_monitor.core.loader import create_audio_loader
from infant_monitor.core.models import ClassificationResult, ExtractionMode, SampleBuffer
from infant_monitor.core.pipeline import MonitoringPipeline, create_pipeline
from infant_monitor.core.scheduler import MonitoringLoop
from infant_monitor.core.source import PlaybackSource
from infant_monitor.utils.config import load_config
from infant_monitor.utils.errors import MonitorError
from infant_monitor.utils.logging import get_logger, setup_logging_from_config

logger = get_logger(__name__)


def print_result(result: ClassificationResult, label: Optional[str] = None) -> None:
    """Print one classification to the console."""
    features = result.features
    pitch = f"{features.pitch:.1f} Hz" if features.is_voiced else "unvoiced"
    prefix = f"[{label}] " if label else ""
    print(
        f"{prefix}{result.status.value:<8} confidence {result.confidence:5.1f}%  "
        f"pitch {pitch:<10}  zcr {features.zcr:8.2f}  variance {result.variance:.3f}"
        + ("  (short buffer)" if features.insufficient_samples else "")
    )


def print_summary(audio_file: Path, buffer: SampleBuffer, pipeline: MonitoringPipeline) -> None:
    """Print the session summary block."""
    print("\n" + "=" * 60)
    print("INFANT HEALTH MONITOR")
    print("=" * 60)
    print(f"File: {audio_file.name}")
    print(f"Duration: {buffer.duration:.2f}s at {buffer.sample_rate} Hz")
    print(f"Extraction Mode: {pipeline.extractor.mode.value}")
    print(f"Ticks: {pipeline.tick_count}")
    print("-" * 60)
    history = ", ".join("--" if p is None else f"{p:.1f}" for p in pipeline.history)
    print(f"Pitch History (Hz): {history or '(empty)'}")
    if pipeline.last_result is not None:
        print(f"Latest Status: {pipeline.last_result.status.value}")
    print("-" * 60)
    print("Note: placeholder rule, not a validated diagnostic.")


def build_report(
    audio_file: Path,
    buffer: SampleBuffer,
    pipeline: MonitoringPipeline,
    outcomes: List[Dict[str, Any]],
) -> Dict[str, Any]:
    """Assemble the JSON report written by ``--output``."""
    return {
        'file': str(audio_file),
        'generated_at': datetime.now(timezone.utc).isoformat(),
        'sample_rate': buffer.sample_rate,
        'duration': buffer.duration,
        'session': pipeline.to_dict(),
        'ticks': outcomes,
    }


def run_once(buffer: SampleBuffer, pipeline: MonitoringPipeline) -> List[Dict[str, Any]]:
    """Classify the whole buffer in one tick."""
    result = pipeline.tick(buffer)
    print_result(result)
    return [{'ok': True, 'value': result.to_dict()}]


def run_stream(
    buffer: SampleBuffer,
    pipeline: MonitoringPipeline,
    window_seconds: float,
    interval_seconds: float,
    max_ticks: Optional[int] = None,
) -> List[Dict[str, Any]]:
    """Play the buffer back and classify it window by window."""
    source = PlaybackSource(buffer, window_seconds=window_seconds)
    outcomes: List[Dict[str, Any]] = []

    def on_result(result: ClassificationResult) -> None:
        print_result(result, label=f"tick {pipeline.tick_count}")
        outcomes.append({'ok': True, 'value': result.to_dict()})

    def on_error(error: MonitorError) -> None:
        print(f"Tick failed: {error}")
        outcomes.append({'ok': False, **error.to_dict()})

    loop = MonitoringLoop(
        pipeline,
        source,
        interval_seconds=interval_seconds,
        on_result=on_result,
        on_error=on_error,
    )
    source.play()
    try:
        loop.run(max_ticks=max_ticks, until_idle=True)
    except KeyboardInterrupt:
        loop.stop()
        print("\nInterrupted by user.")
    finally:
        source.pause()
    return outcomes


def positive_int(value: str) -> int:
    """argparse type for counts that must be at least 1."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected an integer, got {value!r}")
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="infant-monitor",
        description="Classify infant audio with the feature pipeline (placeholder rule)"
    )
    parser.add_argument("audio_file", type=Path, help="Path to audio file to analyze")
    parser.add_argument("--config", type=Path, default=None, help="Path to configuration file")
    parser.add_argument("--output", type=Path, default=None, help="Path to save JSON report")
    parser.add_argument(
        "--mode",
        choices=[mode.value for mode in ExtractionMode],
        default=None,
        help="Coefficient extraction mode (overrides config)"
    )
    parser.add_argument("--seed", type=int, default=None, help="Random seed for reproducible runs")
    parser.add_argument(
        "--stream",
        action="store_true",
        help="Play the file back and classify each window on the monitor cadence"
    )
    parser.add_argument(
        "--realtime",
        action="store_true",
        help="With --stream, wait the configured interval between ticks"
    )
    parser.add_argument(
        "--max-ticks", type=positive_int, default=None, help="With --stream, stop after N ticks"
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose output")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    # Config values may reference variables defined in a local .env
    load_dotenv()

    try:
        config = load_config(str(args.config) if args.config else None)
    except MonitorError as e:
        print(f"Error: {e}")
        return 1

    try:
        setup_logging_from_config(config.get("logging") or {}, verbose=args.verbose)
    except ValueError as e:
        print(f"Error: invalid logging configuration: {e}")
        return 1

    if args.mode:
        config.setdefault("extraction", {})["mode"] = args.mode

    if not args.audio_file.exists():
        print(f"Error: Audio file not found: {args.audio_file}")
        return 1

    try:
        pipeline = create_pipeline(config, seed=args.seed)
        buffer = create_audio_loader(config.get("audio", {})).load(args.audio_file)
    except MonitorError as e:
        print(f"Error: {e}")
        if args.verbose:
            logger.exception("Startup failed")
        return 1

    try:
        if args.stream:
            monitor = pipeline.settings.monitor
            outcomes = run_stream(
                buffer,
                pipeline,
                window_seconds=monitor.window_seconds,
                interval_seconds=monitor.interval_seconds if args.realtime else 0.0,
                max_ticks=args.max_ticks,
            )
        else:
            outcomes = run_once(buffer, pipeline)
    except MonitorError as e:
        print(f"Error during analysis: {e}")
        if args.verbose:
            logger.exception("Analysis failed")
        return 1

    print_summary(args.audio_file, buffer, pipeline)

    if args.output:
        report = build_report(args.audio_file, buffer, pipeline, outcomes)
        with open(args.output, 'w') as f:
            json.dump(report, f, indent=2)
        print(f"\nJSON report saved to: {args.output}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
