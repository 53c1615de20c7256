from parsec_bench.debug_log import DebugLog


def test_writes_tagged_lines(tmp_path):
    log_file = tmp_path / "logs" / "plot.log"
    log = DebugLog(log_file, "plot_diagram")

    log.info("starting")
    log.warn("careful")
    log.error("broken")
    log.cmd(["gnuplot", "-p"])
    log.block("gnuplot script", "set xlabel 'threads'\nplot x\n")

    text = log_file.read_text()
    assert text.startswith("=== plot_diagram ===\n")
    for fragment in ("[INFO] starting", "[WARN] careful", "[ERROR] broken", "[CMD] gnuplot -p"):
        assert fragment in text
    assert "gnuplot script:\nset xlabel 'threads'\nplot x\n--- end of gnuplot script ---" in text


def test_disabled_log_is_silent(tmp_path):
    log = DebugLog(None, "plot_diagram")

    log.info("nothing")

    assert list(tmp_path.iterdir()) == []


def test_unwritable_log_is_not_fatal(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("")

    log = DebugLog(blocker / "sub" / "x.log", "plot_diagram")
    log.info("still fine")

    assert log.log_file is None
