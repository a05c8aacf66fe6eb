#!/usr/bin/env python3
"""Grade student test scores from a delimited file and report the toppers.

Reads rows shaped ``first name, last name, university, test1..test4``,
averages the four tests into a final score, assigns a letter grade and
writes the graded table, the overall topper, the topper of each university
and a per-university grade distribution to the output directory.
"""

from __future__ import annotations

import argparse
import json
import os
import warnings
from pathlib import Path
from typing import Dict, List, Mapping, Sequence

import pandas as pd

from grading import (
    MIN_ROW_FIELDS,
    EmptyInputError,
    GradedRecord,
    build_grade_distribution,
    calculate_grades,
    find_overall_topper,
    find_topper_per_university,
    graded_to_frame,
    parse_rows,
    toppers_to_frame,
)

HERE = os.path.dirname(os.path.abspath(__file__))

DEFAULTS: Dict[str, str] = {
    "delimiter": ",",
    "encoding": "utf-8",
    "outdir": "outputs",
    "output_format": "csv",
}

OUTPUT_FORMATS = ("csv", "xlsx")


class SourceUnavailableError(RuntimeError):
    """Raised when the input file cannot be opened or read."""


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--input", required=True, help="Path to the delimited student scores file")
    parser.add_argument(
        "--outdir",
        default=None,
        help="Directory where result tables will be written (default: outputs)",
    )
    parser.add_argument(
        "--config",
        default=os.path.join(HERE, "config.json"),
        help="Path to the JSON configuration file (default: %(default)s)",
    )
    parser.add_argument("--delimiter", default=None, help="Field separator (default: ',')")
    parser.add_argument("--encoding", default=None, help="Input file encoding (default: utf-8)")
    parser.add_argument(
        "--format",
        dest="output_format",
        choices=OUTPUT_FORMATS,
        default=None,
        help="Format of the result tables (default: csv)",
    )
    return parser.parse_args(argv)


def load_config(path: str) -> Dict:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def resolve_settings(args: argparse.Namespace) -> Dict[str, str]:
    """Merge built-in defaults, the JSON config and command line flags."""

    cfg_path = args.config if os.path.isfile(args.config) else os.path.join(os.getcwd(), "config.json")
    cfg = load_config(cfg_path) if os.path.isfile(cfg_path) else {}

    settings = dict(DEFAULTS)
    for key in DEFAULTS:
        if cfg.get(key):
            settings[key] = str(cfg[key])
        flag = getattr(args, key, None)
        if flag:
            settings[key] = flag

    if settings["output_format"] not in OUTPUT_FORMATS:
        print(f"[WARN] Unknown output format '{settings['output_format']}', falling back to csv")
        settings["output_format"] = "csv"
    return settings


def load_rows(path: Path, delimiter: str = ",", encoding: str = "utf-8") -> List[List[str]]:
    """Return every line of *path* as a list of text fields.

    Only the first seven fields of a line are kept; lines with fewer fields
    are padded with empty strings. An empty file yields no rows.
    """

    if not path.exists():
        raise SourceUnavailableError(f"Input file not found: {path}")

    try:
        with warnings.catch_warnings():
            # Fields past the seventh are dropped on purpose.
            warnings.simplefilter("ignore", pd.errors.ParserWarning)
            df = pd.read_csv(
                path,
                sep=delimiter,
                header=None,
                names=list(range(MIN_ROW_FIELDS)),
                index_col=False,
                engine="python",
                dtype=str,
                keep_default_na=False,
                encoding=encoding,
            )
    except pd.errors.EmptyDataError:
        return []
    except (OSError, UnicodeDecodeError, pd.errors.ParserError) as exc:
        raise SourceUnavailableError(f"Unable to read {path}: {exc}") from exc

    return df.fillna("").values.tolist()


def write_output(frame: pd.DataFrame, outdir: Path, stem: str, output_format: str) -> Path:
    destination = outdir / f"{stem}.{output_format}"
    if output_format == "xlsx":
        frame.to_excel(destination, index=False, engine="openpyxl")
    else:
        frame.to_csv(destination, index=False)
    return destination


def describe(record: GradedRecord) -> str:
    return (
        f"{record.first_name} {record.last_name} ({record.university}) "
        f"final score {record.final_score:.2f}, grade {record.grade.value}"
    )


def print_report(topper: GradedRecord, toppers: Mapping[str, GradedRecord]) -> None:
    print(f"Overall topper: {describe(topper)}")
    print("Topper per university:")
    for university in sorted(toppers):
        print(f"  - {university}: {describe(toppers[university])}")


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    settings = resolve_settings(args)

    input_path = Path(args.input).resolve()
    outdir = Path(settings["outdir"]).resolve()

    try:
        rows = load_rows(input_path, delimiter=settings["delimiter"], encoding=settings["encoding"])
        students = parse_rows(rows)
        skipped = len(rows) - len(students)
        if skipped:
            print(f"[INFO] Skipped {skipped} row(s) without four integer test scores")

        graded = calculate_grades(students)
        topper = find_overall_topper(graded)
        toppers = find_topper_per_university(graded)
    except SourceUnavailableError as exc:
        print(f"[ERROR] {exc}")
        return 1
    except EmptyInputError:
        print(f"[ERROR] No valid student records found in {input_path}")
        return 1

    print_report(topper, toppers)

    outdir.mkdir(parents=True, exist_ok=True)
    output_format = settings["output_format"]
    write_output(graded_to_frame(graded), outdir, "graded_students", output_format)
    write_output(graded_to_frame([topper]), outdir, "overall_topper", output_format)
    write_output(toppers_to_frame(toppers), outdir, "university_toppers", output_format)
    write_output(build_grade_distribution(graded), outdir, "grade_distribution", output_format)

    print(f"[SUCCESS] Wrote outputs to: {outdir}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
