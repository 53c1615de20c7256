import subprocess

import pytest

HEADER = "threads,run,run_time"


@pytest.fixture
def write_results(tmp_path):
    """Write a result CSV under tmp_path and return its path."""
    def _write(relative_path, rows, header=HEADER):
        path = tmp_path / relative_path
        path.parent.mkdir(parents=True, exist_ok=True)
        lines = [header] + list(rows)
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return path
    return _write


class FakeRun:
    """Stand-in for subprocess.run that records calls instead of spawning."""

    def __init__(self, returncodes=None):
        self.calls = []
        self.inputs = []
        self.returncodes = dict(returncodes or {})

    def __call__(self, cmd, *args, **kwargs):
        self.calls.append(list(cmd))
        self.inputs.append(kwargs.get("input"))
        returncode = self.returncodes.get(len(self.calls), 0)
        return subprocess.CompletedProcess(cmd, returncode, stdout="", stderr="boom" if returncode else "")

    def commands_starting_with(self, program):
        return [call for call in self.calls if call[0] == program]


@pytest.fixture
def fake_run(monkeypatch):
    runner = FakeRun()
    monkeypatch.setattr(subprocess, "run", runner)
    return runner
