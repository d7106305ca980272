"""
Module: ingest.streaming

Purpose:
    Turn a stream of raw text chunks from a completion service into
    structured events. The model is asked for a JSON array with one
    answer object per question. Answers are surfaced as soon as the
    array literal closes and decodes, before any trailing text arrives,
    and the stream finishes with a single complete or error event.

Key Functions:
    - extract_stream(): Async generator of StreamEvent
    - build_reading_context(): Passage, question stems and group id for a reading group
    - decode_scanned_array(): Decode the array the scanner closed
    - parse_final_array(): Fallback decode of the whole buffer

Event ordering:
    status? -> (text | question)* -> complete | error

    question events carry 0-based array indices in increasing order and
    each index is emitted at most once. No question event is emitted
    unless the whole array decodes, so output that never becomes valid
    JSON produces exactly one error event. Raw chunks are only surfaced as
    text events when StreamConfig.emit_text is set.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, AsyncIterable, AsyncIterator, List, Optional, Sequence, Tuple

from exam_ingest.core.models import (
    CompleteEvent,
    ErrorEvent,
    Option,
    QuestionEvent,
    ReadingQuestion,
    StatusEvent,
    StreamEvent,
    TextEvent,
)
from exam_ingest.core.schemas import answers_issues
from exam_ingest.ingest.config import StreamConfig
from exam_ingest.ingest.detection import reconstruct_options_from_text
from exam_ingest.ingest.reading import parse_reading, reading_group_id

logger = logging.getLogger(__name__)

_FENCE_OPEN = re.compile(r"^\s{0,16}```(?:json|JSON)?[ \t]{0,8}\n?")
_FENCE_CLOSE = re.compile(r"\n?[ \t]{0,8}```\s{0,16}$")
_ARRAY_START = re.compile(r"\[\s{0,64}[{\]]")
_FIRST_SENTENCE = re.compile(r"^.*?[?!.]\s*", re.DOTALL)

DEFAULT_READING_STEM = "根據文章回答"


@dataclass(frozen=True)
class StreamContext:
    """
    Caller context echoed on the complete event.

    Attributes:
        passage: Original passage text
        questions: Question dicts (stem and options) in prompt order
        group_id: Reading group id, empty for single questions
    """
    passage: str = ""
    questions: Tuple[dict, ...] = field(default_factory=tuple)
    group_id: str = ""

    @property
    def expected_count(self) -> int:
        return len(self.questions)


def build_reading_context(raw_text: str, options: Sequence[Option] = ()) -> StreamContext:
    """
    Build the stream context for a reading group.

    When the reading parser finds no question headers but the caller
    has options, the whole input is treated as a single question.
    """
    parsed = parse_reading(raw_text)
    questions: List[ReadingQuestion] = list(parsed.questions)

    if not questions and options:
        stem = _FIRST_SENTENCE.sub("", raw_text or "", count=1).strip() or DEFAULT_READING_STEM
        questions = [ReadingQuestion(id=1, qid="Q1", stem=stem, options=tuple(options))]
    if questions and len(questions) == 1 and not questions[0].options:
        rebuilt = reconstruct_options_from_text(raw_text or "")
        if rebuilt:
            q = questions[0]
            questions = [ReadingQuestion(id=q.id, qid=q.qid, stem=q.stem, options=tuple(rebuilt), answer=q.answer)]

    passage = parsed.passage or (raw_text or "").strip()
    return StreamContext(
        passage=passage,
        questions=tuple(q.to_dict() for q in questions),
        group_id=parsed.group_id or reading_group_id(passage),
    )


class IncrementalArrayScanner:
    """
    Scan a growing buffer for the elements of the first JSON array.

    The scanner remembers its position and string/escape/depth state,
    so each call to feed() only looks at text appended since the last
    call. The array is the first "[" whose next non-space character is
    "{" or "]". Completed top-level element spans are recorded in order;
    once the balanced closing bracket is seen, closed is set and
    buffer[start:end] is the whole array literal.
    """

    def __init__(self) -> None:
        self.pos = 0
        self.start = -1
        self.depth = 0
        self.in_string = False
        self.escape = False
        self.closed = False
        self.end = -1
        self.element_start = -1
        self.spans: List[Tuple[int, int]] = []

    def feed(self, buffer: str) -> List[Tuple[int, int]]:
        """Scan new text; return spans of elements completed by it."""
        completed: list[tuple[int, int]] = []
        i, n = self.pos, len(buffer)
        while i < n and not self.closed:
            ch = buffer[i]
            if self.start < 0:
                if ch == "[":
                    j = i + 1
                    while j < n and buffer[j].isspace():
                        j += 1
                    if j == n:
                        break  # next significant character not here yet
                    if buffer[j] in "{]":
                        self.start = i
                        self.depth = 1
                i += 1
                continue

            if self.in_string:
                if self.escape:
                    self.escape = False
                elif ch == "\\":
                    self.escape = True
                elif ch == '"':
                    self.in_string = False
                    if self.depth == 1:
                        completed += self._close(i + 1)
                i += 1
                continue

            if ch == '"':
                self._open(i)
                self.in_string = True
            elif ch in "{[":
                self._open(i)
                self.depth += 1
            elif ch in "}]":
                if self.depth == 1:
                    completed += self._close(i)
                    self.depth = 0
                    self.closed = True
                    self.end = i + 1
                else:
                    self.depth -= 1
                    if self.depth == 1:
                        completed += self._close(i + 1)
            elif ch == ",":
                if self.depth == 1:
                    completed += self._close(i)
            elif not ch.isspace():
                self._open(i)
            i += 1
        self.pos = i
        return completed

    def _open(self, i: int) -> None:
        if self.depth == 1 and self.element_start < 0:
            self.element_start = i

    def _close(self, end: int) -> List[Tuple[int, int]]:
        if self.element_start < 0:
            return []
        span = (self.element_start, end)
        self.element_start = -1
        self.spans.append(span)
        return [span]


def strip_code_fences(text: str) -> str:
    """Remove a surrounding ```json ... ``` wrapper."""
    text = _FENCE_OPEN.sub("", text, count=1)
    return _FENCE_CLOSE.sub("", text, count=1)


def parse_final_array(buffer: str) -> List[Any]:
    """
    Decode the answer array from the complete buffer.

    Used when the scanner never saw a balanced array: code fences are
    stripped and the text up to the last "]" is decoded.

    Raises:
        ValueError: When no JSON array can be decoded (json.JSONDecodeError
            is a ValueError)
    """
    text = strip_code_fences(buffer)
    match = _ARRAY_START.search(text)
    start = match.start() if match else text.find("[")
    end = text.rfind("]")
    if start < 0 or end < start:
        raise ValueError("No JSON array found in model output")
    decoded = json.loads(text[start:end + 1])
    if not isinstance(decoded, list):
        raise ValueError("Model output is not a JSON array")
    return decoded


def decode_scanned_array(buffer: str, scanner: IncrementalArrayScanner) -> List[Any]:
    """
    Decode the array literal the scanner closed.

    Raises:
        ValueError: When the scanner has not closed an array or the
            literal is not valid JSON
    """
    if not scanner.closed:
        raise ValueError("JSON array is not closed")
    decoded = json.loads(buffer[scanner.start:scanner.end])
    if not isinstance(decoded, list):
        raise ValueError("Model output is not a JSON array")
    return decoded


async def extract_stream(
    chunks: AsyncIterable[str],
    context: Optional[StreamContext] = None,
    *,
    config: StreamConfig = StreamConfig(),
) -> AsyncIterator[StreamEvent]:
    """
    Extract answer events from a chunked completion stream.

    Args:
        chunks: Async iterable of text chunks from the completion service
        context: Passage, question stems and group id echoed on completion
        config: Event switches and error preview size

    Yields:
        StreamEvent values. The last event is always CompleteEvent or
        ErrorEvent. Closing this generator closes the chunk source.
    """
    context = context or StreamContext()
    preview = config.thresholds.error_preview_chars
    iterator = chunks.__aiter__()
    scanner = IncrementalArrayScanner()
    buffer = ""
    answers: Optional[List[Any]] = None
    failure: Optional[ValueError] = None

    try:
        if config.emit_status:
            yield StatusEvent(
                stage="generating",
                message="Generating answers",
                total_questions=context.expected_count or None,
            )

        while True:
            try:
                chunk = await iterator.__anext__()
            except StopAsyncIteration:
                break
            except Exception as exc:
                logger.error(f"Chunk source failed after {len(buffer)} chars: {exc}")
                yield ErrorEvent(message=f"Upstream stream failed: {exc}", buffer=buffer[:preview])
                return

            if not chunk:
                continue
            buffer += chunk
            if config.emit_text:
                yield TextEvent(chunk=chunk)

            if scanner.closed:
                continue
            scanner.feed(buffer)
            if scanner.closed:
                try:
                    answers = decode_scanned_array(buffer, scanner)
                except ValueError as exc:
                    failure = exc
                else:
                    for index, question in enumerate(answers):
                        yield QuestionEvent(index=index, question=question)

        if not scanner.closed:
            try:
                answers = parse_final_array(buffer)
            except ValueError as exc:
                failure = exc
            else:
                for index, question in enumerate(answers):
                    yield QuestionEvent(index=index, question=question)

        if answers is None:
            logger.warning(f"Final parse failed ({len(buffer)} chars buffered): {failure}")
            yield ErrorEvent(message=f"Failed to parse model output: {failure}", buffer=buffer[:preview])
            return

        issues = answers_issues(answers) if config.validate_answers else []
        if context.expected_count and len(answers) != context.expected_count:
            issues.append(f"Expected {context.expected_count} answers, got {len(answers)}")

        logger.debug(f"Stream complete: {len(answers)} answers, {len(issues)} issues")
        yield CompleteEvent(
            answers=tuple(answers),
            passage=context.passage,
            questions=context.questions,
            group_id=context.group_id,
            issues=tuple(issues),
        )
    finally:
        aclose = getattr(iterator, "aclose", None)
        if aclose is not None:
            await aclose()
