#!/usr/bin/env python3
"""
results_csv.py

Reading of benchmark result files produced by the run flow.

A result file is a CSV whose first line is exactly ``threads,run,run_time``,
followed by one ``<threads>,<run>,<run_time>`` row per benchmark run. The runs
for each thread count are averaged into a series ``{threads: mean_run_time}``
that is ordered by ascending thread count.
"""

from __future__ import annotations

import math
from pathlib import Path
from typing import Dict, Iterable, List, NamedTuple, Sequence

from parsec_bench.errors import HeaderMismatchError, ParseError, UsageError

EXPECTED_HEADER = "threads,run,run_time"

# {threads: mean run_time}, ascending thread order
AveragedSeries = Dict[int, float]


class ResultRow(NamedTuple):
    threads: int
    run_index: int
    run_time: float


def read_header(path: Path) -> str:
    """Return the first line of ``path`` without its line terminator.

    A first line that is not valid UTF-8 (e.g. an image passed by mistake) is
    returned as the repr of its raw bytes, so that it never matches a header.
    """
    try:
        with open(path, "rb") as f:
            raw_header = f.readline().rstrip(b"\n").removesuffix(b"\r")
    except FileNotFoundError:
        raise UsageError(f"Input file not found: {path}") from None
    except OSError as e:
        raise UsageError(f"Cannot read input file {path}: {e}") from None

    try:
        return raw_header.decode("utf-8")
    except UnicodeDecodeError:
        return repr(raw_header)


def check_headers(paths: Sequence[Path], expected: str = EXPECTED_HEADER) -> None:
    """Validate the header of every file, stopping at the first mismatch."""
    for path in paths:
        actual_header = read_header(path)
        if actual_header != expected:
            raise HeaderMismatchError(path, actual_header, expected)


def parse_row(line: str, line_number: int, path: Path) -> ResultRow:
    fields = line.split(",")
    if len(fields) != 3:
        raise ParseError(path, line_number, line, f"expected 3 fields, found {len(fields)}")

    threads_field, run_field, run_time_field = (field.strip() for field in fields)
    # int()/float() accept digit grouping underscores
    if any("_" in field for field in (threads_field, run_field, run_time_field)):
        raise ParseError(path, line_number, line, "non-numeric field (underscore)")
    try:
        threads = int(threads_field)
        run_index = int(run_field)
        run_time = float(run_time_field)
    except ValueError as e:
        raise ParseError(path, line_number, line, f"non-numeric field ({e})") from None

    if threads <= 0:
        raise ParseError(path, line_number, line, "thread count must be positive")
    if not math.isfinite(run_time):
        raise ParseError(path, line_number, line, "run time must be finite")

    return ResultRow(threads, run_index, run_time)


def iter_rows(lines: Iterable[str], path: Path) -> Iterable[ResultRow]:
    """Yield the data rows of a result file; the header line is skipped unchecked."""
    line_iter = iter(lines)
    next(line_iter, None)

    for line_number, raw_line in enumerate(line_iter, start=2):
        line = raw_line.rstrip()
        if not line:
            continue
        yield parse_row(line, line_number, path)


def average_run_times(lines: Iterable[str], path: Path = Path("<stdin>")) -> AveragedSeries:
    all_run_times: Dict[int, List[float]] = {}

    for row in iter_rows(lines, path):
        all_run_times.setdefault(row.threads, []).append(row.run_time)

    return {
        threads: sum(run_times) / len(run_times)
        for threads, run_times in sorted(all_run_times.items())
    }


def load_averaged_series(path: Path) -> AveragedSeries:
    # Undecodable bytes end up in a field and fail its numeric conversion.
    with open(path, "r", encoding="utf-8", errors="surrogateescape") as f:
        return average_run_times(f, Path(path))


def derive_title(path: Path, include_dir: bool = False) -> str:
    """Line title for a result file: its name without ``.csv``.

    With ``include_dir`` the parent directory name is prepended
    (``<dir>/<name>``), so that same-named files from different runs can be
    told apart.
    """
    path = Path(path)
    name = path.name[:-len(".csv")] if path.name.endswith(".csv") else path.name

    if not include_dir:
        return name

    parent = path.parent.name or path.resolve().parent.name
    return f"{parent}/{name}"
