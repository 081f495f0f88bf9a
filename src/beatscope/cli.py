"""
Command line entry point.

Decodes an audio file, analyses it and writes the JSON manifest.
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

from beatscope.core.decoder import AudioDecoder
from beatscope.core.framer import DEFAULT_HOP_SIZE, DEFAULT_WINDOW_SIZE
from beatscope.errors import BeatscopeError
from beatscope.pipeline import AudioPipeline


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Extract audio-reactive features from an audio file.",
    )
    parser.add_argument("audio", type=Path, help="Input audio file")
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=None,
        help="Output JSON path (default: <audio>_analysis.json)",
    )
    parser.add_argument(
        "--window-size",
        type=int,
        default=DEFAULT_WINDOW_SIZE,
        help=f"FFT window size in samples, a power of two (default: {DEFAULT_WINDOW_SIZE})",
    )
    parser.add_argument(
        "--hop-size",
        type=int,
        default=DEFAULT_HOP_SIZE,
        help=f"Samples between frame starts (default: {DEFAULT_HOP_SIZE})",
    )
    parser.add_argument(
        "--backend",
        choices=AudioDecoder.BACKENDS,
        default="librosa",
        help="Decoder backend (default: librosa)",
    )
    parser.add_argument(
        "--precision",
        type=int,
        default=4,
        help="Decimal places in the JSON output (default: 4)",
    )
    parser.add_argument(
        "--npz",
        action="store_true",
        help="Also write a compressed NumPy archive next to the JSON",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    output = args.output or args.audio.with_name(f"{args.audio.stem}_analysis.json")

    try:
        pipeline = AudioPipeline(
            window_size=args.window_size,
            hop_size=args.hop_size,
            backend=args.backend,
            precision=args.precision,
        )
        result = pipeline.process(args.audio)
        pipeline.exporter.export_json(result["output"], output)
        if args.npz:
            pipeline.exporter.export_numpy(result["output"], output.with_suffix(".npz"))
    except BeatscopeError as exc:
        raise SystemExit(f"error: {exc}") from exc

    summary = result["output"].summary
    print(
        f"Analysed {args.audio} -> {output} "
        f"[{result['duration']:.2f}s @ {result['sample_rate']}Hz, "
        f"{summary.frame_count} frames: "
        f"low={summary.low_count} mid={summary.mid_count} high={summary.high_count}]"
    )


if __name__ == "__main__":
    main()
