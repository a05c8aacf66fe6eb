import sys
from pathlib import Path

import pytest

# Add the repository root to sys.path so the flat modules import
ROOT_PATH = Path(__file__).resolve().parent.parent
if ROOT_PATH.as_posix() not in sys.path:
    sys.path.insert(0, ROOT_PATH.as_posix())

from grading import StudentRecord, grade_student  # noqa: E402


SAMPLE_CSV = """first_name,last_name,university,test1,test2,test3,test4
Ada,Lovelace,Cambridge,80,90,85,95
Alan,Turing,Cambridge,70,75,72,71
Grace,Hopper,Yale,60,65,n/a,70
Edsger,Dijkstra,Leiden,40,45,50,38
Barbara,Liskov,Stanford,30,20,35,25
"""


@pytest.fixture
def make_graded():
    """Return a factory for graded records whose four tests all equal *score*."""

    def _make(university: str, score: int, first_name: str = "Test"):
        student = StudentRecord(first_name, "Student", university, (score, score, score, score))
        return grade_student(student)

    return _make


@pytest.fixture
def sample_rows():
    """Return raw rows with one malformed and one short entry."""
    return [
        ["Ada", "Lovelace", "Cambridge", "80", "90", "85", "95"],
        ["Grace", "Hopper", "Yale", "60", "65", "x", "70"],
        ["Alan", "Turing", "Cambridge", "70", "75", "72", "71", "extra"],
        ["Short", "Row", "Yale", "50"],
        ["Barbara", "Liskov", "Stanford", "30", "20", "35", "25"],
    ]


@pytest.fixture
def sample_csv(tmp_path: Path) -> Path:
    """Write the sample scores file and return its path."""
    path = tmp_path / "scores.csv"
    path.write_text(SAMPLE_CSV, encoding="utf-8")
    return path
