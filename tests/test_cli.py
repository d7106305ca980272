"""
Tests for the exam-ingest command line.
"""
import io
import json

import pytest

from exam_ingest.cli import build_parser, main


@pytest.fixture
def write(tmp_path):
    def _write(name, text):
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return str(path)
    return _write


def test_classify(write, capsys):
    path = write("q.txt", "He is a (A) doctor (B) lawyer (C) teacher (D) engineer")

    assert main(["classify", path, "--subject", "english"]) == 0

    data = json.loads(capsys.readouterr().out)
    assert data["kind"] == "vocab"
    assert data["subject"] == "english"


def test_classify_with_option_hints(write, capsys):
    path = write("q.txt", "He is a ( ) .")

    main(["classify", path, "--option", "A=doctor", "--option", "B=lawyer",
          "--option", "C=teacher", "--option", "D=engineer"])

    data = json.loads(capsys.readouterr().out)
    assert [o["text"] for o in data["options"]] == ["doctor", "lawyer", "teacher", "engineer"]


def test_bad_option_hint_is_usage_error():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["classify", "--option", "nodelimiter"])


def test_segment_from_stdin(monkeypatch, capsys):
    monkeypatch.setattr("sys.stdin", io.StringIO("1. First question\n2. Second question\n3. Third"))

    assert main(["segment"]) == 0

    segments = json.loads(capsys.readouterr().out)
    assert [s["index"] for s in segments] == [1, 2, 3]


def test_sanitize(write, capsys):
    path = write("f.html", "<p>Hi <script>x()</script><b>there</b></p>")

    main(["sanitize", path, "--profile", "passage"])

    assert capsys.readouterr().out.strip() == "<p>Hi <b>there</b></p>"


def test_stream_prints_sse_frames(write, capsys):
    path = write("out.txt", '```json\n[{"answer": "A"}, {"answer": "C"}]\n```')

    assert main(["stream", path, "--chunk-size", "5"]) == 0

    frames = [f for f in capsys.readouterr().out.split("\n\n") if f]
    types = [json.loads(f[len("data: "):])["type"] for f in frames]
    assert types == ["status", "question", "question", "complete"]


def test_stream_failure_exit_code(write, capsys):
    path = write("out.txt", "I cannot answer that.")
    assert main(["stream", path]) == 1
    assert '"type": "error"' in capsys.readouterr().out


def test_missing_file(tmp_path):
    assert main(["classify", str(tmp_path / "missing.txt")]) == 2
