"""Utilities for grading student test scores and finding the toppers."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from functools import reduce
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import pandas as pd

SCORE_FIELDS: Tuple[int, ...] = (3, 4, 5, 6)
MIN_ROW_FIELDS = 7

INTEGER_PATTERN = re.compile(r"[+-]?[0-9]+")

RECORD_COLUMNS: List[str] = [
    "first_name",
    "last_name",
    "university",
    "test1",
    "test2",
    "test3",
    "test4",
    "final_score",
    "grade",
]


class EmptyInputError(ValueError):
    """Raised when a topper is requested from zero graded records."""


class Grade(str, Enum):
    A = "A"
    B = "B"
    C = "C"
    F = "F"


GRADE_ORDER: Tuple[Grade, ...] = (Grade.A, Grade.B, Grade.C, Grade.F)


@dataclass(frozen=True)
class StudentRecord:
    first_name: str
    last_name: str
    university: str
    scores: Tuple[int, int, int, int]


@dataclass(frozen=True)
class GradedRecord:
    student: StudentRecord
    final_score: float
    grade: Grade

    @property
    def first_name(self) -> str:
        return self.student.first_name

    @property
    def last_name(self) -> str:
        return self.student.last_name

    @property
    def university(self) -> str:
        return self.student.university

    @property
    def scores(self) -> Tuple[int, int, int, int]:
        return self.student.scores


def parse_score(value) -> Optional[int]:
    """Return *value* as an int, or ``None`` when it is not a plain integer."""

    if value is None:
        return None
    token = str(value).strip()
    if not INTEGER_PATTERN.fullmatch(token):
        return None
    return int(token)


def parse_row(row: Sequence[str]) -> Optional[StudentRecord]:
    """Build a record from one raw row, or ``None`` if the row must be skipped.

    Rows shorter than seven fields and rows where any of the four score
    fields is not an integer are skipped as a whole.
    """

    if len(row) < MIN_ROW_FIELDS:
        return None

    scores: List[int] = []
    for idx in SCORE_FIELDS:
        score = parse_score(row[idx])
        if score is None:
            return None
        scores.append(score)

    return StudentRecord(
        first_name=str(row[0]),
        last_name=str(row[1]),
        university=str(row[2]),
        scores=(scores[0], scores[1], scores[2], scores[3]),
    )


def parse_rows(rows: Iterable[Sequence[str]]) -> List[StudentRecord]:
    records: List[StudentRecord] = []
    for row in rows:
        record = parse_row(row)
        if record is not None:
            records.append(record)
    return records


def grade_for(final_score: float) -> Grade:
    if final_score >= 70:
        return Grade.A
    if final_score >= 50:
        return Grade.B
    if final_score >= 35:
        return Grade.C
    return Grade.F


def grade_student(student: StudentRecord) -> GradedRecord:
    final_score = sum(student.scores) / 4
    return GradedRecord(student=student, final_score=final_score, grade=grade_for(final_score))


def calculate_grades(students: Iterable[StudentRecord]) -> List[GradedRecord]:
    """Return one graded record per student, in the same order."""

    return [grade_student(student) for student in students]


def _higher(current: GradedRecord, candidate: GradedRecord) -> GradedRecord:
    # Strictly greater: the first record with the top score keeps its place.
    return candidate if candidate.final_score > current.final_score else current


def find_overall_topper(graded: Iterable[GradedRecord]) -> GradedRecord:
    """Return the record with the highest final score.

    Ties go to the record that appears first. Raises ``EmptyInputError``
    when *graded* holds no records.
    """

    records = iter(graded)
    first = next(records, None)
    if first is None:
        raise EmptyInputError("Cannot find a topper among zero graded records")
    return reduce(_higher, records, first)


def find_topper_per_university(graded: Iterable[GradedRecord]) -> Mapping[str, GradedRecord]:
    """Return a read-only mapping of university to its highest scoring record."""

    def keep_topper(toppers: Dict[str, GradedRecord], record: GradedRecord) -> Dict[str, GradedRecord]:
        current = toppers.get(record.university)
        toppers[record.university] = record if current is None else _higher(current, record)
        return toppers

    return MappingProxyType(reduce(keep_topper, graded, {}))


def _record_row(record: GradedRecord) -> Dict[str, object]:
    t1, t2, t3, t4 = record.scores
    return {
        "first_name": record.first_name,
        "last_name": record.last_name,
        "university": record.university,
        "test1": t1,
        "test2": t2,
        "test3": t3,
        "test4": t4,
        "final_score": record.final_score,
        "grade": record.grade.value,
    }


def graded_to_frame(graded: Iterable[GradedRecord]) -> pd.DataFrame:
    rows = [_record_row(record) for record in graded]
    return pd.DataFrame(rows, columns=RECORD_COLUMNS)


def toppers_to_frame(toppers: Mapping[str, GradedRecord]) -> pd.DataFrame:
    """Tabulate per-university toppers, one row per university sorted by name."""

    rows = [_record_row(toppers[university]) for university in sorted(toppers)]
    return pd.DataFrame(rows, columns=RECORD_COLUMNS)


def build_grade_distribution(graded: Iterable[GradedRecord]) -> pd.DataFrame:
    """Return grade counts and pass percentage for each university."""

    grade_columns = [grade.value for grade in GRADE_ORDER]
    columns = ["university", *grade_columns, "total", "pass_pct"]

    working = graded_to_frame(graded)
    if working.empty:
        return pd.DataFrame(columns=columns)

    counts = (
        working.groupby(["university", "grade"])
        .size()
        .unstack(fill_value=0)
        .reindex(columns=grade_columns, fill_value=0)
        .astype(int)
    )
    counts["total"] = counts[grade_columns].sum(axis=1)
    passed = counts["total"] - counts[Grade.F.value]
    counts["pass_pct"] = (passed / counts["total"] * 100).round(2)

    summary = counts.reset_index().sort_values("university").reset_index(drop=True)
    summary.columns.name = None
    return summary[columns]
