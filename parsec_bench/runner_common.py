#!/usr/bin/env python3

import json
import subprocess
import threading
from pathlib import Path

from parsec_bench.errors import UsageError

PACKAGE_DIR = Path(__file__).resolve().parent
DEFAULT_SCRIPTS_DIR = PACKAGE_DIR / "support_scripts"
DEFAULT_SUITE_FILE = PACKAGE_DIR / "paper_suite.json"
SCRIPTS_NAME_PREFIX = "bench_parsec_"

SUDO_REFRESH_INTERVAL = 60


def load_suite(suite_file: Path = DEFAULT_SUITE_FILE) -> dict:
    """
    Load a program suite JSON file.

    Format:
        {"programs": {"<name>": {"enabled": true, "note": "..."}, ...}}

    The order of the "programs" keys is the execution order.
    """
    suite_path = Path(suite_file)
    if not suite_path.exists():
        raise UsageError(f"Suite file not found: {suite_path}")

    try:
        with open(suite_path, 'r', encoding='utf-8') as f:
            suite = json.load(f)
    except json.JSONDecodeError as e:
        raise UsageError(f"JSON syntax error in {suite_path}: {e}") from None

    if not isinstance(suite.get("programs"), dict):
        raise UsageError(f"Suite file {suite_path} has no \"programs\" object")
    return suite


def enabled_programs(suite: dict) -> list[str]:
    programs = []
    for name, settings in suite["programs"].items():
        if not settings.get("enabled", False):
            note = settings.get("note")
            print(f"[INFO] Skipping disabled program: {name}" + (f" ({note})" if note else ""))
            continue
        programs.append(name)
    return programs


def support_script_path(scripts_dir: Path, program: str) -> Path:
    return Path(scripts_dir) / f"{SCRIPTS_NAME_PREFIX}{program}.sh"


def run_script_args(no_smt: bool = False, perf: bool = False,
                    min_threads: int | None = None, max_threads: int | None = None) -> list[str]:
    """Options forwarded to the run script."""
    args = []
    if no_smt:
        args.append("--no-smt")
    if perf:
        args.append("--perf")
    if min_threads is not None:
        args += ["--min", str(min_threads)]
    if max_threads is not None:
        args += ["--max", str(max_threads)]
    return args


def compose_run_command(run_script: Path, forwarded_args: list[str], program: str,
                        system_name: str, runs: int, qemu_boot_script: str,
                        benchmark_script: Path) -> list[str]:
    return [
        str(run_script),
        *forwarded_args,
        f"{program}_{system_name}",
        str(runs),
        str(qemu_boot_script),
        str(benchmark_script),
    ]


class SudoKeepAlive:
    """Ask for sudo permissions only once over the runtime of a sweep.

    `sudo -v` is run up front; a daemon thread then refreshes the cached
    credentials non-interactively until stop() is called.
    """

    def __init__(self, interval: float = SUDO_REFRESH_INTERVAL):
        self.interval = interval
        self._stop_event = threading.Event()
        self._thread = None

    def start(self):
        result = subprocess.run(["sudo", "-v"], check=False)
        if result.returncode != 0:
            raise UsageError("sudo authentication failed")

        self._stop_event.clear()
        self._thread = threading.Thread(target=self._refresh_loop, daemon=True)
        self._thread.start()

    def stop(self):
        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=1.0)
            self._thread = None

    def _refresh_loop(self):
        while not self._stop_event.wait(self.interval):
            subprocess.run(
                ["sudo", "-n", "-v"],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                check=False,
            )

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.stop()
        return False
