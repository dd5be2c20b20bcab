"""
Wordle visualizer CLI.

Entry point:
    wordle-viz DEVICE   - capture DEVICE and draw the live Wordle grid
"""

import argparse
import logging
import math
import signal
import sys
from dataclasses import replace
from pathlib import Path

from wordle_viz.capture import SoundDeviceSource, ThreadedBlockSource, list_input_devices
from wordle_viz.config import load_config
from wordle_viz.errors import AudioSourceError, ConfigError
from wordle_viz.pipeline import WordlePipeline
from wordle_viz.spectrograph import WordleDisplay

# Fix Windows console encoding for unicode characters
if sys.platform == "win32":
    sys.stdout.reconfigure(encoding="utf-8", errors="replace")
    sys.stderr.reconfigure(encoding="utf-8", errors="replace")

logger = logging.getLogger(__name__)


def validate_positive_float(value: str) -> float:
    """Validate positive number."""
    try:
        num = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid number: {value}")

    if not math.isfinite(num):
        raise argparse.ArgumentTypeError(f"Value must be finite, got: {value}")
    if num <= 0:
        raise argparse.ArgumentTypeError(f"Value must be positive, got: {num}")
    return num


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="wordle-viz",
        description="Live audio spectrum drawn as a Wordle result grid",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  wordle-viz --list-devices         # Show input devices
  wordle-viz "Built-in Microphone"  # Capture by device name
  wordle-viz 3 --seconds 30         # Capture device #3 for 30 seconds
  wordle-viz 3 --ascii --color      # Plain ASCII tiles for terminals without emoji
        """,
    )
    parser.add_argument(
        "device",
        nargs="?",
        help="Audio input device name or index (as listed by --list-devices)",
    )

    audio_group = parser.add_argument_group("Audio Source")
    audio_group.add_argument(
        "--list-devices", action="store_true", help="List available input devices and exit"
    )
    audio_group.add_argument(
        "--seconds",
        "-s",
        type=validate_positive_float,
        default=None,
        help="Capture length in seconds (default: 10 or $WORDLE_CAPTURE_SECONDS)",
    )
    audio_group.add_argument(
        "--threaded",
        action="store_true",
        help="Capture on a separate thread (one block in flight)",
    )
    audio_group.add_argument(
        "--config", type=Path, default=None, help="JSON file with analysis settings"
    )

    display_group = parser.add_argument_group("Display Options")
    display_group.add_argument(
        "--ascii", action="store_true", help="Use ASCII tiles instead of emoji squares"
    )
    display_group.add_argument(
        "--color", action="store_true", help="Color the ASCII tiles with ANSI codes"
    )
    display_group.add_argument(
        "--verbose", "-v", action="count", default=0, help="More log output (-vv for debug)"
    )
    return parser


def _configure_logging(verbosity: int):
    # Frames own stdout, logs go to stderr
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(asctime)s - %(levelname)s - %(message)s")


def _list_devices() -> int:
    try:
        devices = list_input_devices()
    except AudioSourceError as e:
        print(f"Error: {e}")
        print("Install with: pip install sounddevice")
        return 1

    print("\nInput devices:")
    print("-" * 50)
    if not devices:
        print("  No input devices found.")
    for dev in devices:
        print(f"  {dev['index']:3}: {dev['name'][:45]} ({dev['sample_rate']} Hz)")
    print("-" * 50)
    return 0


def main(argv=None) -> int:
    """
    Main entry point.

    Exit codes: 1 for a missing device, bad settings or a device that will
    not open; 0 otherwise, including a capture cut short by a read failure.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    _configure_logging(args.verbose)

    if args.list_devices:
        return _list_devices()

    if not args.device:
        parser.print_usage(sys.stdout)
        return 1

    try:
        config = load_config(args.config)
        if args.seconds is not None:
            config = replace(config, capture_seconds=args.seconds).validate()
    except ConfigError as e:
        print(f"Error: {e}")
        return 1

    pipeline = WordlePipeline(config)
    display = WordleDisplay(palette="ascii" if args.ascii else "emoji", color=args.color)

    source = SoundDeviceSource(args.device, config.sample_rate, config.block_size)
    if args.threaded:
        source = ThreadedBlockSource(source)

    try:
        source.open()
    except AudioSourceError as e:
        print(f"Error: {e}")
        return 1

    # Signal handlers
    def signal_handler(sig, frame):
        pipeline.stop()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    try:
        result = pipeline.run(source, display.render)
    finally:
        source.close()
        display.clear()

    if result.error is not None:
        print(f"Error: {result.error}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
