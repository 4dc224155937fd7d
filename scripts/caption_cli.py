#!/usr/bin/env -S uv run python
"""
Live Captioning CLI with Slate Annotation

Captures audio from your microphone, streams it to the transcription provider
and prints the transcript with scene/take headers and ACTION/CUT markers.

Features:
- Microphone capture at the device's native sample rate
- 50-200ms PCM16 packets as the provider expects
- Slate headers ("SCENE 12A / TAKE 3") correlated with the ACTION call

Usage:
    ./caption_cli.py [--device DEVICE_ID] [--token-url URL]

Environment variables:
    SLATECAP_TOKEN_URL      - Token server endpoint (default: http://localhost:3000/token)
    SLATECAP_STREAMING_URL  - Provider streaming endpoint
    SLATECAP_FLUSH_ON_STOP  - Send the last short packet when stopping (1/0)
"""

import argparse
import asyncio
import logging
import signal

from rich.console import Console
from rich.text import Text

from slatecap.capture.microphone import MicrophoneSource, list_input_devices
from slatecap.config import SessionConfig
from slatecap.errors import SessionSetupFailure
from slatecap.framing import FlushPolicy
from slatecap.lifecycle import Annotation, AnnotationKind
from slatecap.session import CaptionSession

STYLES = {
    AnnotationKind.SLATE: "bold cyan",
    AnnotationKind.ACTION: "bold green",
    AnnotationKind.CUT: "bold red",
    AnnotationKind.TRANSCRIPT: "white",
}

console = Console()


def show_annotation(annotation: Annotation) -> None:
    if annotation.kind is AnnotationKind.TRANSCRIPT:
        console.print(Text(annotation.text, style=STYLES[annotation.kind]))
    else:
        console.print(Text(f"[{annotation.text}]", style=STYLES[annotation.kind]))


def print_devices() -> None:
    console.print("\nAvailable audio input devices:")
    console.print("-" * 50)
    for index, name, is_default in list_input_devices():
        default = " (default)" if is_default else ""
        console.print(f"  [{index}] {name}{default}")
    console.print("-" * 50)


async def main(args: argparse.Namespace) -> int:
    if args.list_devices:
        print_devices()
        return 0

    config = SessionConfig.from_env()
    if args.token_url:
        config.token_url = args.token_url
    if args.flush:
        config.flush_policy = FlushPolicy.FLUSH

    source = MicrophoneSource(
        device=args.device, sample_rate=args.sample_rate or config.sample_rate
    )
    session = CaptionSession(source, config=config, on_annotation=show_annotation)

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop_event.set)

    console.print("Connecting...", style="dim")
    try:
        started = await session.start_unless(stop_event)
    except SessionSetupFailure as e:
        console.print(f"Could not start recording: {e}", style="red")
        return 1
    if not started:
        console.print("Stopped.", style="dim")
        return 0

    console.print("Recording. Press Ctrl+C to stop.", style="dim")
    waiter = asyncio.create_task(session.wait())
    stopper = asyncio.create_task(stop_event.wait())
    await asyncio.wait({waiter, stopper}, return_when=asyncio.FIRST_COMPLETED)
    stopper.cancel()

    await session.stop()
    console.print("Stopped.", style="dim")
    return 0


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Live captioning with slate annotation")
    parser.add_argument("--device", type=int, default=None, help="Input device index")
    parser.add_argument("--sample-rate", type=int, default=None, help="Capture rate in Hz")
    parser.add_argument("--token-url", default=None, help="Token server endpoint")
    parser.add_argument(
        "--flush", action="store_true", help="Send the residual short packet on stop"
    )
    parser.add_argument("--list-devices", action="store_true", help="List input devices")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    return parser.parse_args()


if __name__ == "__main__":
    args = parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    raise SystemExit(asyncio.run(main(args)))
