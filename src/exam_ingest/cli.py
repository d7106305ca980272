"""
Command line entry point for exam question ingestion.

Usage:
    exam-ingest classify question.txt --subject english
    exam-ingest segment batch.txt
    exam-ingest sanitize --profile passage < fragment.html
    exam-ingest stream model_output.txt --passage reading.txt

Input is read from the given file, or from stdin when the path is "-"
or omitted. Results are printed as JSON (classify, segment), plain text
(sanitize) or Server-Sent Event frames (stream).
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import AsyncIterator, Optional, Sequence

from exam_ingest import __version__
from exam_ingest.core.models import CompleteEvent, OptionHint, RawInput
from exam_ingest.ingest.config import StreamConfig
from exam_ingest.ingest.pipeline import classify_question
from exam_ingest.ingest.sanitize import SanitizeProfile, sanitize_with_logging
from exam_ingest.ingest.segmentation import segment_questions
from exam_ingest.ingest.sse import sse_stream
from exam_ingest.ingest.streaming import StreamContext, build_reading_context, extract_stream

logger = logging.getLogger(__name__)


def _read_input(path: Optional[str]) -> str:
    if not path or path == "-":
        return sys.stdin.read()
    return Path(path).read_text(encoding="utf-8")


def _parse_option_hint(value: str) -> OptionHint:
    """Parse "A=text" into an OptionHint."""
    key, sep, text = value.partition("=")
    if not sep or not key.strip():
        raise argparse.ArgumentTypeError(f"expected KEY=TEXT, got {value!r}")
    return OptionHint(key=key.strip(), text=text.strip())


def _print_json(data) -> None:
    print(json.dumps(data, ensure_ascii=False, indent=2))


def _cmd_classify(args: argparse.Namespace) -> int:
    raw = RawInput(
        text=_read_input(args.input),
        option_hints=tuple(args.option or ()),
        subject_hint=args.subject,
    )
    result = classify_question(raw)
    _print_json(result.to_dict())
    return 0


def _cmd_segment(args: argparse.Namespace) -> int:
    segments = segment_questions(_read_input(args.input))
    _print_json([s.to_dict() for s in segments])
    return 0


def _cmd_sanitize(args: argparse.Namespace) -> int:
    source = args.input or "stdin"
    print(sanitize_with_logging(_read_input(args.input), source, args.profile))
    return 0


async def _chunked(text: str, size: int) -> AsyncIterator[str]:
    for i in range(0, len(text), size):
        yield text[i:i + size]


async def _run_stream(text: str, context: StreamContext, config: StreamConfig, size: int) -> bool:
    last = None

    async def events():
        nonlocal last
        async for event in extract_stream(_chunked(text, size), context, config=config):
            last = event
            yield event

    async for frame in sse_stream(events()):
        sys.stdout.write(frame)
    sys.stdout.flush()
    return isinstance(last, CompleteEvent)


def _cmd_stream(args: argparse.Namespace) -> int:
    """Replay a saved completion through the streaming extractor."""
    text = _read_input(args.input)
    context = build_reading_context(Path(args.passage).read_text(encoding="utf-8")) if args.passage else StreamContext()
    config = StreamConfig(emit_text=args.emit_text)
    ok = asyncio.run(_run_stream(text, context, config, args.chunk_size))
    return 0 if ok else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="exam-ingest", description="Exam question ingestion tools")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # === classify ===
    p_classify = subparsers.add_parser("classify", help="Detect subject and kind of a question")
    p_classify.add_argument("input", nargs="?", help="Question text file (default: stdin)")
    p_classify.add_argument("--subject", help="Subject hint (math, english, chinese)")
    p_classify.add_argument(
        "--option",
        action="append",
        type=_parse_option_hint,
        metavar="KEY=TEXT",
        help="Pre-split option; repeat for each option",
    )
    p_classify.set_defaults(func=_cmd_classify)

    # === segment ===
    p_segment = subparsers.add_parser("segment", help="Split a batched paste into questions")
    p_segment.add_argument("input", nargs="?", help="Text file (default: stdin)")
    p_segment.set_defaults(func=_cmd_segment)

    # === sanitize ===
    p_sanitize = subparsers.add_parser("sanitize", help="Sanitize an HTML fragment")
    p_sanitize.add_argument("input", nargs="?", help="HTML file (default: stdin)")
    p_sanitize.add_argument(
        "--profile",
        choices=[p.value for p in SanitizeProfile],
        default=SanitizeProfile.INLINE.value,
    )
    p_sanitize.set_defaults(func=_cmd_sanitize)

    # === stream ===
    p_stream = subparsers.add_parser("stream", help="Replay saved model output as SSE frames")
    p_stream.add_argument("input", nargs="?", help="Model output file (default: stdin)")
    p_stream.add_argument("--passage", help="Reading passage file used as stream context")
    p_stream.add_argument("--chunk-size", type=int, default=64, help="Characters per replayed chunk")
    p_stream.add_argument("--emit-text", action="store_true", help="Also emit raw text events")
    p_stream.set_defaults(func=_cmd_stream)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    if getattr(args, "chunk_size", 1) < 1:
        parser.error("--chunk-size must be positive")

    try:
        return args.func(args)
    except OSError as exc:
        logger.error(f"Cannot read input: {exc}")
        return 2


if __name__ == "__main__":
    sys.exit(main())
