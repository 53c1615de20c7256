#!/usr/bin/env python3
#
# run_paper_benchmarks.py
#
# Runs the PARSEC programs used in the paper, appending <system_name> to the
# program names, via the VM benchmark run script:
#
#   run_benchmark.sh [--no-smt] [--perf] [--min N] [--max N] \
#       <program>_<system_name> <runs> <qemu_boot_script> \
#       support_scripts/bench_parsec_<program>.sh
#
# 1. Programs
# The programs, and their order, come from the suite JSON file (the packaged
# paper_suite.json unless --suite is given). Programs with "enabled": false
# are skipped; --programs restricts the run to a subset.
# 2. Checks
# The run script and every support script must exist; otherwise nothing runs.
# 3. Execution
# sudo is asked once and kept alive for the whole sweep. The first failing
# benchmark stops the sweep, unless --keep-going is given.
#

import argparse
import subprocess
import sys
from pathlib import Path

from tabulate import tabulate

from parsec_bench.debug_log import DebugLog
from parsec_bench.errors import BenchError, BenchmarkRunError, UsageError
from parsec_bench.runner_common import (
    DEFAULT_SCRIPTS_DIR,
    DEFAULT_SUITE_FILE,
    SudoKeepAlive,
    compose_run_command,
    enabled_programs,
    load_suite,
    run_script_args,
    support_script_path,
)

DEFAULT_RUN_SCRIPT = Path("run_benchmark.sh")
DEFAULT_LOG_FILE = Path("run_paper_benchmarks.log")


def select_programs(suite, requested=None):
    """
    Enabled suite programs, optionally restricted to `requested`.

    Args:
        suite: Parsed suite JSON content
        requested: Program names to keep, or None for all

    Returns:
        list: Program names in suite order
    """
    programs = enabled_programs(suite)
    if not requested:
        return programs

    unknown = [name for name in requested if name not in programs]
    if unknown:
        raise UsageError(
            f"Unknown or disabled program(s): {', '.join(unknown)} "
            f"(available: {', '.join(programs)})"
        )
    return [name for name in programs if name in requested]


def generate_commands(programs, args):
    """
    Compose the run script command of each program.

    Args:
        programs: Program names
        args: Parsed command line arguments

    Returns:
        list: (program, benchmark_name, command) tuples
    """
    if not args.dry_run and not Path(args.run_script).exists():
        raise UsageError(f"Run script not found: {args.run_script}")

    forwarded_args = run_script_args(args.no_smt, args.perf, args.min, args.max)

    commands = []
    for program in programs:
        benchmark_script = support_script_path(args.scripts_dir, program)
        if not benchmark_script.exists():
            raise UsageError(f"Support script not found for {program}: {benchmark_script}")

        cmd = compose_run_command(
            args.run_script, forwarded_args, program, args.system_name,
            args.runs, args.qemu_boot_script, benchmark_script,
        )
        commands.append((program, f"{program}_{args.system_name}", cmd))
    return commands


def execute_commands(commands, keep_going=False, log=None):
    """
    Run the commands in order.

    Returns:
        list: (program, benchmark_name, status) rows for the summary table
    """
    rows = []

    for i, (program, benchmark_name, cmd) in enumerate(commands, 1):
        print(f"\n{'='*80}")
        print(f"[{i}/{len(commands)}] {benchmark_name}")
        print(f"{'='*80}")
        print(f"[CMD] {' '.join(cmd)}")
        if log:
            log.cmd(cmd)

        result = subprocess.run(cmd)

        if result.returncode != 0:
            print(f"[ERROR] {benchmark_name} failed with exit code {result.returncode}", file=sys.stderr)
            if log:
                log.error(f"{benchmark_name} exited with {result.returncode}")
            rows.append((program, benchmark_name, f"FAILED ({result.returncode})"))
            if not keep_going:
                print_summary(rows)
                raise BenchmarkRunError(
                    f"{benchmark_name} failed with exit code {result.returncode}"
                )
        else:
            print(f"[OK] {benchmark_name} completed")
            if log:
                log.info(f"{benchmark_name} completed")
            rows.append((program, benchmark_name, "OK"))

    return rows


def print_summary(rows):
    print(f"\n{'='*80}")
    print("Execution Summary")
    print(f"{'='*80}")
    print(tabulate(rows, headers=["Program", "Benchmark", "Status"], tablefmt="grid"))


def positive_int(value):
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an integer: {value}") from None
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be a positive integer (got: {number})")
    return number


def build_parser():
    parser = argparse.ArgumentParser(
        prog="run_paper_benchmarks",
        description="Runs the PARSEC programs used in the paper, appending the "
                    "<system_name> to the program name(s).",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
For the options, see `run_benchmark.sh`.

Examples:
  %(prog)s guest 5 boot_vm.sh                    # All paper programs, 5 runs each
  %(prog)s --no-smt --max 8 host 3 boot_vm.sh    # Up to 8 threads, SMT disabled
  %(prog)s --programs fft,radix --dry-run guest 1 boot_vm.sh
        """
    )

    parser.add_argument('-s', '--no-smt', action='store_true', help='Disable SMT in the VM')
    parser.add_argument('-p', '--perf', action='store_true', help='Capture performance counters')
    parser.add_argument('-m', '--min', type=positive_int, metavar='THREADS', help='Minimum number of threads')
    parser.add_argument('-M', '--max', type=positive_int, metavar='THREADS', help='Maximum number of threads')
    parser.add_argument(
        '--suite',
        type=Path,
        default=DEFAULT_SUITE_FILE,
        help='Program suite JSON file (default: packaged paper_suite.json)'
    )
    parser.add_argument(
        '--programs',
        type=lambda value: [name.strip() for name in value.split(',') if name.strip()],
        help='Comma separated subset of the suite programs to run'
    )
    parser.add_argument(
        '--run-script',
        type=Path,
        default=DEFAULT_RUN_SCRIPT,
        help=f'Benchmark run script (default: {DEFAULT_RUN_SCRIPT})'
    )
    parser.add_argument(
        '--scripts-dir',
        type=Path,
        default=DEFAULT_SCRIPTS_DIR,
        help='Directory of the bench_parsec_<program>.sh support scripts'
    )
    parser.add_argument('--dry-run', action='store_true', help='Print commands without executing them')
    parser.add_argument('--keep-going', action='store_true', help='Continue after a failing benchmark')
    parser.add_argument(
        '--log-file',
        type=Path,
        default=DEFAULT_LOG_FILE,
        help=f'Debug log file (default: {DEFAULT_LOG_FILE})'
    )
    parser.add_argument('system_name', help='Appended to the program names')
    parser.add_argument('runs', type=positive_int, help='Number of runs per thread count')
    parser.add_argument('qemu_boot_script', help='VM boot script')
    return parser


def main(argv=None):
    """Main execution flow."""
    args = build_parser().parse_args(argv)

    try:
        if args.min is not None and args.max is not None and args.min > args.max:
            raise UsageError(f"--min ({args.min}) is greater than --max ({args.max})")

        suite = load_suite(args.suite)
        programs = select_programs(suite, args.programs)
        if not programs:
            print("[WARN] No programs to run")
            return 0

        commands = generate_commands(programs, args)

        if args.dry_run:
            print("[INFO] Dry run mode - commands not executed")
            for _, _, cmd in commands:
                print(' '.join(cmd))
            return 0

        log = DebugLog(args.log_file, "run_paper_benchmarks")
        with SudoKeepAlive():
            rows = execute_commands(commands, keep_going=args.keep_going, log=log)
    except BenchError as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return 1

    print_summary(rows)
    failed = [row for row in rows if row[2] != "OK"]
    return 1 if failed else 0


if __name__ == "__main__":
    raise SystemExit(main())
