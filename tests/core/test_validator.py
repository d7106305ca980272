"""
Unit Tests for Answer Schema Validation

Tests for the validator module.
"""

import pytest

from exam_ingest.core.errors import SchemaValidationError
from exam_ingest.core.schemas import answer_issues, answers_issues, validate_answer


class TestAnswerIssues:
    """Tests for answer_issues function."""

    @pytest.fixture
    def valid_answer(self) -> dict:
        """Create a valid answer object for testing."""
        return {
            "id": 1,
            "qid": "Q1",
            "answer": "B",
            "answerIndex": 1,
            "reasoning": "The passage says he grew up near the sea.",
            "counterpoints": {"A": "Not a city.", "C": "No farm is mentioned."},
            "evidence": [{"text": "Tom grew up in a small village near the sea.", "paragraphIndex": 0}],
        }

    def test_issues_when_valid_data_then_empty(self, valid_answer):
        """Valid answer data has no issues."""
        assert answer_issues(valid_answer) == []

    def test_issues_when_answer_letter_only_then_empty(self):
        """answerLetter satisfies the answer requirement."""
        assert answer_issues({"answerLetter": "E"}) == []

    def test_issues_when_evidence_is_string_then_empty(self, valid_answer):
        valid_answer["evidence"] = "line 3"
        assert answer_issues(valid_answer) == []

    def test_issues_when_missing_answer_then_reported(self):
        """An object without answer or answerLetter is invalid."""
        issues = answer_issues({"reasoning": "?"})
        assert len(issues) == 1

    def test_issues_when_bad_letter_then_path_in_message(self, valid_answer):
        valid_answer["answer"] = "F"
        issues = answer_issues(valid_answer, position=2)
        assert len(issues) == 1
        assert issues[0].startswith("[2] answer:")

    def test_issues_when_counterpoint_key_invalid(self, valid_answer):
        valid_answer["counterpoints"] = {"Z": "bad key"}
        assert answer_issues(valid_answer)

    def test_issues_when_not_an_object(self):
        assert answer_issues("B")

    def test_answers_issues_prefixes_positions(self, valid_answer):
        issues = answers_issues([valid_answer, {"answer": "X"}])
        assert len(issues) == 1
        assert issues[0].startswith("[1] ")


class TestValidateAnswer:
    """Tests for validate_answer function."""

    def test_validate_when_invalid_and_not_strict_then_returns_issues(self):
        assert validate_answer({"answer": "Q"}) != []

    def test_validate_when_invalid_and_strict_then_raises_error(self):
        with pytest.raises(SchemaValidationError) as exc_info:
            validate_answer({"answer": "Q"}, strict=True)
        assert exc_info.value.path == "answer"
        assert exc_info.value.errors

    def test_validate_when_valid_and_strict_then_no_error(self):
        assert validate_answer({"answer": "A"}, strict=True) == []
