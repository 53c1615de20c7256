from __future__ import annotations

from datetime import datetime
from pathlib import Path


class DebugLog:
    """Append-only, timestamped debug log for one invocation.

    Mirrors the console tags ([INFO], [WARN], [ERROR], [CMD]). Write failures
    are ignored so that logging never aborts a run.
    """

    def __init__(self, log_file: Path | None, title: str):
        self.log_file = Path(log_file) if log_file else None
        if self.log_file is None:
            return
        try:
            self.log_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.log_file, "w", encoding="utf-8") as f:
                f.write(f"=== {title} ===\n")
                f.write(f"Timestamp: {datetime.now()}\n\n")
        except OSError:
            self.log_file = None

    def info(self, message: str) -> None:
        self._write(f"[INFO] {message}")

    def warn(self, message: str) -> None:
        self._write(f"[WARN] {message}")

    def error(self, message: str) -> None:
        self._write(f"[ERROR] {message}")

    def cmd(self, command: list[str] | str) -> None:
        if not isinstance(command, str):
            command = " ".join(str(part) for part in command)
        self._write(f"[CMD] {command}")

    def block(self, heading: str, text: str) -> None:
        """Record a multi-line text block verbatim (e.g. a generated script)."""
        self._write(f"[INFO] {heading}:\n{text.rstrip()}\n--- end of {heading} ---")

    def _write(self, line: str) -> None:
        if self.log_file is None:
            return
        timestamp = datetime.now().strftime("%H:%M:%S")
        try:
            with open(self.log_file, "a", encoding="utf-8") as f:
                f.write(f"[{timestamp}] {line}\n")
        except OSError:
            pass
