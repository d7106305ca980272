import pytest
import sys
from pathlib import Path

# Add src to sys.path so we can import exam_ingest
SRC_PATH = Path(__file__).resolve().parent.parent / "src"
if SRC_PATH.as_posix() not in sys.path:
    sys.path.insert(0, SRC_PATH.as_posix())

from exam_ingest.core.models import Option


# Common test fixtures
@pytest.fixture
def four_word_options():
    """Four single-word options A-D."""
    return (
        Option("A", "doctor"),
        Option("B", "lawyer"),
        Option("C", "teacher"),
        Option("D", "engineer"),
    )


@pytest.fixture
def discourse_passage():
    """A long passage with five numbered blanks and no lettered markers."""
    body = (
        "Many people believe that learning a language is mostly about memory. (1) "
        "In reality, the process depends on steady practice and real conversation. (2) "
        "Teachers often notice that students who read widely improve faster than others. (3) "
        "This is because reading exposes them to patterns they would never meet in drills. (4) "
        "Over time, these patterns become natural and students begin to use them freely. (5) "
        "The lesson is simple: language grows through use, not through lists of rules. "
        "Anyone who keeps reading and talking every day will see the difference within a year. "
        "Small daily habits matter more than long study sessions."
    )
    return body


@pytest.fixture
def reading_group():
    """A passage with two headed questions, A-D options and answer keys."""
    return (
        "Tom grew up in a small village near the sea. Every morning he walked along the beach "
        "with his dog. One day he found an old bottle with a letter inside it. The letter was "
        "written by a sailor many years ago.\n"
        "(1) Where did Tom grow up?\n"
        "(A) In a big city.\n"
        "(B) In a small village near the sea.\n"
        "(C) On a farm in the mountains.\n"
        "(D) On a ship.\n"
        "Answer: B\n"
        "(2) What did Tom find on the beach?\n"
        "(A) A dog and a cat.\n"
        "(B) A shell from the sea.\n"
        "(C) A bottle with a letter.\n"
        "(D) A sailor from the past.\n"
        "答案：C"
    )
