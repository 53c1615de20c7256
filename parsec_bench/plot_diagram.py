#!/usr/bin/env python3
"""
plot_diagram.py

Produces a thread-scaling diagram from benchmark result files, using gnuplot.

Input files are CSVs with the columns produced by the benchmark runs
(threads,run,run_time); the run times of each thread count are averaged and
drawn as one line per file.

If --output is specified, the format is picked up from the diagram file
extension (SVG/PNG); otherwise an interactive window is opened, and closed
with a mouse click.

The --scale option vertically scales and superposes the lines, so that their
shapes can be directly compared. The --dir option adds the directory name as
prefix, in case the files have the same name.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional, Sequence

from tabulate import tabulate

from parsec_bench.debug_log import DebugLog
from parsec_bench.errors import BenchError
from parsec_bench.gnuplot_script import render
from parsec_bench.plot_spec import PlotSpec, build_plot_spec
from parsec_bench.results_csv import EXPECTED_HEADER

DEFAULT_LOG_FILE = Path("plot_diagram.log")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="plot_diagram",
        description="Produces a diagram from the specified result files, using gnuplot.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Input files are expected to be csv, with the columns produced by the benchmark
script ({EXPECTED_HEADER}); the values for each thread count are averaged.

Examples:
  %(prog)s results/*.csv                       # Interactive window
  %(prog)s --output cmp.svg a.csv b.csv        # Write an SVG diagram
  %(prog)s --scale --dir host/x.csv guest/x.csv  # Compare the shapes only
        """,
    )
    parser.add_argument(
        "-s", "--scale",
        action="store_true",
        help="Vertically scale and superpose the lines, to compare their shapes",
    )
    parser.add_argument(
        "-o", "--output",
        type=Path,
        metavar="DIAGRAM_FILE",
        help="Write the diagram to this file; the format (SVG/PNG) follows the extension",
    )
    parser.add_argument(
        "-d", "--dir",
        dest="add_dir_to_name",
        action="store_true",
        help="Prefix the line titles with the parent directory name",
    )
    parser.add_argument(
        "--summary",
        action="store_true",
        help="Print the averaged run times as a table before rendering",
    )
    parser.add_argument(
        "--no-open",
        action="store_true",
        help="Do not open the written diagram file with xdg-open",
    )
    parser.add_argument(
        "--gnuplot",
        default="gnuplot",
        help="gnuplot executable (default: gnuplot)",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=DEFAULT_LOG_FILE,
        help=f"Debug log file (default: {DEFAULT_LOG_FILE})",
    )
    parser.add_argument("input_files", nargs="*", type=Path, metavar="INPUT_FILE")
    return parser


def format_summary(spec: PlotSpec) -> str:
    """One row per thread count, one average column per series."""
    all_threads = sorted({threads for s in spec.series for threads in s.points})
    headers = ["threads"] + [s.label for s in spec.series]
    rows = []
    for threads in all_threads:
        rows.append([threads] + [s.points.get(threads) for s in spec.series])
    return tabulate(rows, headers=headers, tablefmt="grid", floatfmt=".3f")


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.input_files:
        parser.print_help()
        return 1

    log = DebugLog(args.log_file, "plot_diagram")
    log.info(f"Input files: {[str(p) for p in args.input_files]}")
    log.info(f"Scale: {args.scale}, output: {args.output}, dir prefix: {args.add_dir_to_name}")

    try:
        spec = build_plot_spec(
            args.input_files,
            scale=args.scale,
            output_file=args.output,
            add_dir_to_name=args.add_dir_to_name,
        )
        for plot_series in spec.series:
            print(f"[INFO] {plot_series.label}: {len(plot_series.points)} thread counts")

        if args.summary:
            print("\n" + format_summary(spec) + "\n")

        render(spec, gnuplot=args.gnuplot, open_result=not args.no_open, log=log)
    except BenchError as e:
        log.error(str(e))
        print(f"[ERROR] {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
