import pytest

from parsec_bench.errors import BenchmarkRunError, UsageError
from parsec_bench.run_paper_benchmarks import (
    build_parser,
    execute_commands,
    generate_commands,
    main,
    select_programs,
)


@pytest.fixture
def run_script(tmp_path):
    script = tmp_path / "run_benchmark.sh"
    script.write_text("#!/bin/bash\n")
    return script


@pytest.fixture
def suite_file(tmp_path):
    scripts_dir = tmp_path / "support_scripts"
    scripts_dir.mkdir()
    for program in ("fft", "radix", "lu_cb"):
        (scripts_dir / f"bench_parsec_{program}.sh").write_text("c_input_type=simlarge\n")

    suite = tmp_path / "suite.json"
    suite.write_text(
        '{"programs": {"fft": {"enabled": true}, "ferret": {"enabled": false},'
        ' "radix": {"enabled": true}, "lu_cb": {"enabled": true}}}'
    )
    return suite


def base_args(tmp_path, run_script, suite_file, *extra):
    return [
        "--suite", str(suite_file),
        "--scripts-dir", str(tmp_path / "support_scripts"),
        "--run-script", str(run_script),
        "--log-file", str(tmp_path / "run.log"),
        *extra,
        "guest", "3", "boot_vm.sh",
    ]


def test_select_programs_subset_keeps_suite_order():
    suite = {"programs": {"fft": {"enabled": True}, "radix": {"enabled": True}, "lu_cb": {"enabled": True}}}

    assert select_programs(suite, ["lu_cb", "fft"]) == ["fft", "lu_cb"]
    assert select_programs(suite) == ["fft", "radix", "lu_cb"]


def test_select_programs_rejects_unknown_and_disabled():
    suite = {"programs": {"fft": {"enabled": True}, "ferret": {"enabled": False}}}

    with pytest.raises(UsageError, match="ferret"):
        select_programs(suite, ["ferret"])
    with pytest.raises(UsageError, match="nope"):
        select_programs(suite, ["nope"])


def test_generate_commands(tmp_path, run_script, suite_file):
    args = build_parser().parse_args(base_args(tmp_path, run_script, suite_file, "-s", "-p", "-m", "2", "-M", "8"))

    commands = generate_commands(["fft", "radix"], args)

    assert commands[0] == ("fft", "fft_guest", [
        str(run_script), "--no-smt", "--perf", "--min", "2", "--max", "8",
        "fft_guest", "3", "boot_vm.sh", str(tmp_path / "support_scripts" / "bench_parsec_fft.sh"),
    ])
    assert commands[1][1] == "radix_guest"


def test_generate_commands_missing_support_script(tmp_path, run_script, suite_file):
    args = build_parser().parse_args(base_args(tmp_path, run_script, suite_file))

    with pytest.raises(UsageError, match="Support script not found for water_spatial"):
        generate_commands(["fft", "water_spatial"], args)


def test_execute_commands_fail_fast(fake_run):
    fake_run.returncodes = {2: 3}
    commands = [(p, f"{p}_x", [f"./{p}"]) for p in ("a", "b", "c")]

    with pytest.raises(BenchmarkRunError, match="b_x failed with exit code 3"):
        execute_commands(commands)

    assert fake_run.calls == [["./a"], ["./b"]]


def test_execute_commands_keep_going(fake_run):
    fake_run.returncodes = {2: 3}
    commands = [(p, f"{p}_x", [f"./{p}"]) for p in ("a", "b", "c")]

    rows = execute_commands(commands, keep_going=True)

    assert fake_run.calls == [["./a"], ["./b"], ["./c"]]
    assert rows == [("a", "a_x", "OK"), ("b", "b_x", "FAILED (3)"), ("c", "c_x", "OK")]


def test_main_runs_enabled_programs_with_sudo(fake_run, tmp_path, run_script, suite_file, capsys):
    status = main(base_args(tmp_path, run_script, suite_file, "--perf"))

    assert status == 0
    assert fake_run.calls[0] == ["sudo", "-v"]
    benchmark_calls = fake_run.commands_starting_with(str(run_script))
    assert [call[2] for call in benchmark_calls] == ["fft_guest", "radix_guest", "lu_cb_guest"]
    assert all(call[1] == "--perf" for call in benchmark_calls)

    out = capsys.readouterr().out
    assert "Execution Summary" in out and "lu_cb_guest" in out
    assert "[CMD]" in (tmp_path / "run.log").read_text()


def test_main_dry_run_executes_nothing(fake_run, tmp_path, suite_file, capsys):
    missing_run_script = tmp_path / "not_there.sh"

    status = main(base_args(tmp_path, missing_run_script, suite_file, "--dry-run", "--programs", "radix"))

    assert status == 0
    assert fake_run.calls == []
    out = capsys.readouterr().out
    assert "Dry run mode" in out
    assert f"{missing_run_script} radix_guest 3 boot_vm.sh" in out


def test_main_missing_run_script(fake_run, tmp_path, suite_file, capsys):
    status = main(base_args(tmp_path, tmp_path / "not_there.sh", suite_file))

    assert status == 1
    assert "Run script not found" in capsys.readouterr().err
    assert fake_run.calls == []


def test_main_min_greater_than_max(fake_run, tmp_path, run_script, suite_file, capsys):
    status = main(base_args(tmp_path, run_script, suite_file, "--min", "8", "--max", "2"))

    assert status == 1
    assert "--min (8) is greater than --max (2)" in capsys.readouterr().err
    assert fake_run.calls == []


def test_main_failing_benchmark_stops_sweep(fake_run, tmp_path, run_script, suite_file, capsys):
    fake_run.returncodes = {2: 1}  # call 1 is `sudo -v`, call 2 the first benchmark

    status = main(base_args(tmp_path, run_script, suite_file))

    assert status == 1
    assert len(fake_run.commands_starting_with(str(run_script))) == 1
    assert "fft_guest failed with exit code 1" in capsys.readouterr().err


def test_main_keep_going_reports_failure(fake_run, tmp_path, run_script, suite_file):
    fake_run.returncodes = {2: 1}

    status = main(base_args(tmp_path, run_script, suite_file, "--keep-going"))

    assert status == 1
    assert len(fake_run.commands_starting_with(str(run_script))) == 3


@pytest.mark.parametrize("runs", ["0", "-1", "many"])
def test_runs_must_be_positive(runs, capsys):
    with pytest.raises(SystemExit) as excinfo:
        build_parser().parse_args(["guest", runs, "boot.sh"])

    assert excinfo.value.code == 2
