"""Error taxonomy shared by the run and plot flows.

All errors are fatal: the CLIs print the message and exit with status 1.
"""

from __future__ import annotations

from pathlib import Path


class BenchError(RuntimeError):
    """Base class for harness errors."""


class UsageError(BenchError):
    """Bad or missing arguments."""


class InputFormatError(BenchError):
    """An input result file does not have the expected content."""


class HeaderMismatchError(InputFormatError):
    def __init__(self, path: Path, found: str, expected: str):
        self.path = Path(path)
        self.found = found
        self.expected = expected
        super().__init__(
            f"The header of the file {self.path.name} ({found}) is not as expected ({expected})."
        )


class ParseError(InputFormatError):
    def __init__(self, path: Path, line_number: int, line: str, reason: str):
        self.path = Path(path)
        self.line_number = line_number
        self.line = line
        self.reason = reason
        super().__init__(f"{self.path}:{line_number}: {reason}: {line!r}")


class UnsupportedOutputFormatError(BenchError):
    def __init__(self, path: Path):
        self.path = Path(path)
        super().__init__(f"Only SVG/PNG are supported! (got: {self.path})")


class RendererError(BenchError):
    """The plotting binary is missing or failed."""


class BenchmarkRunError(BenchError):
    """A benchmark invocation exited with a non-zero status."""
