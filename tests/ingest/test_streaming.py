"""
Tests for ingest.streaming

Test Coverage:
- extract_stream(): question/complete/error ordering, watermark, cancellation
- IncrementalArrayScanner: offset tracking and element spans
- decode_scanned_array() / parse_final_array() / strip_code_fences()
- build_reading_context()

The extractor is an async generator; tests drive it with asyncio.run.
"""
import asyncio
import json

import pytest

from exam_ingest.core.models import (
    CompleteEvent,
    ErrorEvent,
    Option,
    QuestionEvent,
    StatusEvent,
    TextEvent,
)
from exam_ingest.ingest.config import StreamConfig
from exam_ingest.ingest.streaming import (
    IncrementalArrayScanner,
    StreamContext,
    build_reading_context,
    extract_stream,
    decode_scanned_array,
    parse_final_array,
    strip_code_fences,
)

QUIET = StreamConfig(emit_status=False)


async def _chunks(*parts):
    for part in parts:
        yield part


def _collect(chunks, context=None, config=QUIET):
    async def run():
        return [event async for event in extract_stream(chunks, context, config=config)]
    return asyncio.run(run())


class TestExtractStream:
    """Event ordering contract."""

    def test_three_bursts_three_questions_then_complete(self):
        events = _collect(_chunks(
            '[{"answer": "A"}',
            ', {"answer": "B"}',
            ', {"answer": "C"}]',
        ))

        assert [type(e) for e in events] == [QuestionEvent] * 3 + [CompleteEvent]
        assert [e.index for e in events[:3]] == [0, 1, 2]
        assert [e.question["answer"] for e in events[:3]] == ["A", "B", "C"]
        assert events[-1].answers == ({"answer": "A"}, {"answer": "B"}, {"answer": "C"})
        assert events[-1].issues == ()

    def test_questions_surface_before_trailing_text(self):
        async def run():
            stream = extract_stream(_chunks('[{"answer": "A"}, {"answer": "B"}]', " Hope this helps."), config=QUIET)
            first = await stream.__anext__()
            await stream.aclose()
            return first
        first = asyncio.run(run())

        assert isinstance(first, QuestionEvent)
        assert first.index == 0

    def test_never_valid_json_gives_single_error(self):
        events = _collect(_chunks("Sorry, ", "I cannot ", "help with that."))

        assert len(events) == 1
        assert isinstance(events[0], ErrorEvent)
        assert events[0].buffer == "Sorry, I cannot help with that."

    def test_truncated_array_gives_only_error(self):
        events = _collect(_chunks('[{"answer": "A"}', ', {"answer": "B"}', ', {"answer": "C"'))

        assert [type(e) for e in events] == [ErrorEvent]

    def test_unclosed_array_with_trailing_prose_gives_only_error(self):
        events = _collect(_chunks('[{"answer":"A"},{"answer":"B"}', " oops the model stopped"))

        assert [type(e) for e in events] == [ErrorEvent]

    def test_bracket_in_trailing_prose_ignored(self):
        events = _collect(_chunks('[{"answer": "A"}, {"answer": "B"}]', " See note [2] above."))

        assert [type(e) for e in events] == [QuestionEvent, QuestionEvent, CompleteEvent]
        assert events[-1].answers == ({"answer": "A"}, {"answer": "B"})

    def test_invalid_closed_array_gives_only_error(self):
        events = _collect(_chunks('[{"answer": "A"},', ' {"answer": B}]'))

        assert [type(e) for e in events] == [ErrorEvent]

    def test_error_preview_is_bounded(self):
        events = _collect(_chunks("x" * 1000))
        assert len(events[-1].buffer) == 200

    def test_split_mid_element_emits_once(self):
        events = _collect(_chunks('[{"ans', 'wer": "A"}', ", ", '{"answer": "B"}', "]"))
        questions = [e for e in events if isinstance(e, QuestionEvent)]

        assert [q.index for q in questions] == [0, 1]
        assert isinstance(events[-1], CompleteEvent)

    def test_brackets_inside_strings(self):
        events = _collect(_chunks('[{"answer": "A", "reasoning": "see [1] and {x}"}]'))
        assert events[0].question["reasoning"] == "see [1] and {x}"
        assert isinstance(events[-1], CompleteEvent)

    def test_code_fences_stripped(self):
        events = _collect(_chunks('```json\n[{"answer": "B"}]\n```'))

        assert isinstance(events[-1], CompleteEvent)
        assert events[-1].answers == ({"answer": "B"},)

    def test_status_and_text_events(self):
        context = StreamContext(passage="p", questions=({"stem": "a"},), group_id="reading-1")
        config = StreamConfig(emit_status=True, emit_text=True)
        events = _collect(_chunks("", '[{"answer": "A"}]'), context, config)

        assert isinstance(events[0], StatusEvent)
        assert events[0].total_questions == 1
        assert isinstance(events[1], TextEvent)
        assert events[1].chunk == '[{"answer": "A"}]'
        assert events[-1].passage == "p"
        assert events[-1].group_id == "reading-1"
        assert events[-1].questions == ({"stem": "a"},)

    def test_schema_issues_reported_not_raised(self):
        events = _collect(_chunks('[{"answer": "Z"}]'))

        complete = events[-1]
        assert isinstance(complete, CompleteEvent)
        assert complete.answers == ({"answer": "Z"},)
        assert any(issue.startswith("[0] answer") for issue in complete.issues)

    def test_validation_can_be_disabled(self):
        config = StreamConfig(emit_status=False, validate_answers=False)
        events = _collect(_chunks('[{"answer": "Z"}]'), config=config)
        assert events[-1].issues == ()

    def test_expected_count_mismatch(self):
        context = StreamContext(questions=({"stem": "a"}, {"stem": "b"}))
        events = _collect(_chunks('[{"answer": "A"}]'), context)
        assert "Expected 2 answers, got 1" in events[-1].issues

    def test_upstream_failure_becomes_error_event(self):
        async def failing():
            yield '[{"answer": "A"}'
            raise RuntimeError("connection reset")

        events = _collect(failing())

        assert [type(e) for e in events] == [ErrorEvent]
        assert "connection reset" in events[-1].message
        assert events[-1].buffer == '[{"answer": "A"}'
        assert sum(isinstance(e, ErrorEvent) for e in events) == 1

    def test_closing_consumer_closes_upstream(self):
        state = {"pulled": 0, "closed": False}

        async def upstream():
            try:
                for part in ('[{"answer": "A"}]', " More text", " follows."):
                    state["pulled"] += 1
                    yield part
            finally:
                state["closed"] = True

        async def run():
            stream = extract_stream(upstream(), config=QUIET)
            async for event in stream:
                if isinstance(event, QuestionEvent):
                    break
            await stream.aclose()

        asyncio.run(run())

        assert state["closed"] is True
        assert state["pulled"] == 1


class TestIncrementalArrayScanner:
    """Offset-tracking element scanner."""

    def test_scans_only_new_text(self):
        scanner = IncrementalArrayScanner()
        partial = '[{"a": 1}, {"b"'
        full = '[{"a": 1}, {"b": 2}]'

        assert scanner.feed(partial) == [(1, 9)]
        assert scanner.pos == len(partial)

        scanner.feed(full)
        assert scanner.closed
        assert full[scanner.start:scanner.end] == full
        assert [json.loads(full[a:b]) for a, b in scanner.spans] == [{"a": 1}, {"b": 2}]

    def test_skips_prose_brackets(self):
        scanner = IncrementalArrayScanner()
        text = 'Note [1]: here it is [{"a": 1}]'
        scanner.feed(text)
        assert [json.loads(text[a:b]) for a, b in scanner.spans] == [{"a": 1}]

    def test_waits_for_character_after_bracket(self):
        scanner = IncrementalArrayScanner()
        scanner.feed("[")
        assert scanner.start == -1
        scanner.feed('[{"a": 1}]')
        assert scanner.start == 0
        assert scanner.spans == [(1, 9)]


class TestParseFinalArray:
    """Terminal decode."""

    def test_scanned_array_ignores_trailing_brackets(self):
        text = '```json\n[{"answer": "A"}]\n```\nSee [1].'
        scanner = IncrementalArrayScanner()
        scanner.feed(text)

        assert decode_scanned_array(text, scanner) == [{"answer": "A"}]
        with pytest.raises(ValueError):
            parse_final_array(text)

    def test_scanned_array_requires_close(self):
        scanner = IncrementalArrayScanner()
        scanner.feed('[{"answer": "A"}')

        with pytest.raises(ValueError):
            decode_scanned_array('[{"answer": "A"}', scanner)

    def test_prose_around_array(self):
        assert parse_final_array('Here: [{"answer": "A"}] done') == [{"answer": "A"}]

    def test_empty_array(self):
        assert parse_final_array("[]") == []

    @pytest.mark.parametrize("text", ["", "no json", '{"answer": "A"}', '[{"answer": '])
    def test_failures_raise_value_error(self, text):
        with pytest.raises(ValueError):
            parse_final_array(text)

    def test_strip_code_fences(self):
        assert strip_code_fences('```json\n[1]\n```') == "[1]"
        assert strip_code_fences("[1]") == "[1]"


class TestBuildReadingContext:
    """Context for a reading group."""

    def test_from_reading_group(self, reading_group):
        context = build_reading_context(reading_group)

        assert context.expected_count == 2
        assert context.passage.startswith("Tom grew up")
        assert context.group_id.startswith("reading-")
        assert context.questions[0]["qid"] == "Q1"

    def test_single_question_fallback_uses_caller_options(self):
        options = (Option("A", "Friendship"), Option("B", "Travel"))
        context = build_reading_context("Pick the best title. What is the main idea?", options)

        assert context.expected_count == 1
        assert context.questions[0]["stem"] == "What is the main idea?"
        assert [o["key"] for o in context.questions[0]["options"]] == ["A", "B"]
