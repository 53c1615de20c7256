"""
gnuplot_script.py

Serializes a PlotSpec into a gnuplot script and runs gnuplot on it.

Sample of a generated standard script:

    set terminal svg background rgb 'white'
    set output '/tmp/test.svg'

    set datafile separator ','

    set key noenhanced
    set offsets graph 0.1, graph 0.1, graph 0.1, graph 0.1
    set xlabel 'threads'
    set ylabel 'time (s)'

    plot \\
    '/tmp/tmpdir/00.csv' \\
      using 1:2:xtic(1) \\
      with linespoints title 'pigz_guest_basic', \\
    '/tmp/tmpdir/01.csv' \\
      using 1:2:xtic(1) \\
      with linespoints title 'pigz_host_basic'

The scaled variant layers one plot per series with `set multiplot`, with a
shared `set xrange`, hidden y tics and one legend entry per series stacked
from the top right corner.
"""

from __future__ import annotations

import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import List, Optional, Sequence

from parsec_bench.debug_log import DebugLog
from parsec_bench.errors import RendererError
from parsec_bench.plot_spec import PlotSeries, PlotSpec

INTERACTIVE_TERMINAL = "wxt size 1600,900"
KEY_HEIGHT_START = 95
KEY_HEIGHT_STEP = 5


def quote(value: object) -> str:
    """gnuplot single-quoted string; embedded quotes are doubled."""
    return "'" + str(value).replace("'", "''") + "'"


def write_series_data(series: Sequence[PlotSeries], directory: Path) -> List[Path]:
    """Write each series as `threads,mean` lines; one file per series."""
    data_files = []
    for i, plot_series in enumerate(series):
        data_file = Path(directory) / f"{i:02d}.csv"
        with open(data_file, "w", encoding="utf-8") as f:
            for threads, mean in plot_series.points.items():
                f.write(f"{threads},{mean!r}\n")
        data_files.append(data_file)
    return data_files


def _terminal_lines(spec: PlotSpec) -> List[str]:
    if spec.output is not None:
        return [
            f"set terminal {spec.output.image_format} background rgb 'white'",
            f"set output {quote(spec.output.path)}",
            "",
        ]
    return [f"set terminal {INTERACTIVE_TERMINAL}", ""]


def _common_lines() -> List[str]:
    # `noenhanced`: print titles exactly as they are
    return [
        "set datafile separator ','",
        "",
        "set key noenhanced",
        "set offsets graph 0.1, graph 0.1, graph 0.1, graph 0.1",
        "set xlabel 'threads'",
    ]


def _standard_body(spec: PlotSpec, data_files: Sequence[Path]) -> List[str]:
    lines = ["set ylabel 'time (s)'", "", "plot \\"]

    entries = []
    for plot_series, data_file in zip(spec.series, data_files):
        # `xtic(1)`: print only the x tics of the line values
        entries.append(
            f"{quote(data_file)} \\\n"
            f"  using 1:2:xtic(1) \\\n"
            f"  with linespoints title {quote(plot_series.label)}"
        )
    lines.append(", \\\n".join(entries))
    return lines


def _scaled_body(spec: PlotSpec, data_files: Sequence[Path]) -> List[str]:
    x_min, x_max = spec.x_range
    # The series may cover different thread ranges, so the x range is fixed.
    lines = [
        f"set xrange[{x_min}:{x_max}]",
        "set ylabel 'time'",
        "unset ytics",
        "",
        "set multiplot",
    ]

    key_height = KEY_HEIGHT_START
    for plot_series, data_file in zip(spec.series, data_files):
        lines += [
            "",
            f"set key at graph 1.0, .{key_height:02d}",
            f"plot {quote(data_file)} using 1:2:xtic(1) \\\n"
            f"  with linespoints linecolor rgb '#{plot_series.color}' title {quote(plot_series.label)}",
        ]
        key_height -= KEY_HEIGHT_STEP

    lines += ["", "unset multiplot"]
    return lines


def render_script(spec: PlotSpec, data_files: Sequence[Path]) -> str:
    if len(data_files) != len(spec.series):
        raise ValueError(f"{len(spec.series)} series but {len(data_files)} data files")

    lines = _terminal_lines(spec) + _common_lines()
    if spec.scaled:
        lines += _scaled_body(spec, data_files)
    else:
        lines += _standard_body(spec, data_files)

    if spec.interactive:
        lines += ["", "pause mouse close"]

    return "\n".join(lines) + "\n"


def run_gnuplot(script: str, gnuplot: str = "gnuplot", log: Optional[DebugLog] = None) -> None:
    if log:
        log.cmd([gnuplot])
    try:
        result = subprocess.run([gnuplot], input=script, text=True, capture_output=True)
    except FileNotFoundError:
        raise RendererError(f"Command '{gnuplot}' not found") from None

    if result.returncode != 0:
        err_msg = result.stderr.strip() or result.stdout.strip() or "no output"
        raise RendererError(f"{gnuplot} failed (rc={result.returncode}): {err_msg}")


def open_output(output_file: Path, log: Optional[DebugLog] = None) -> bool:
    """Show a rendered diagram with the desktop viewer; best effort."""
    if shutil.which("xdg-open") is None:
        print(f"[WARN] xdg-open not found; diagram written to {output_file}")
        if log:
            log.warn("xdg-open not found")
        return False

    cmd = ["xdg-open", str(output_file)]
    if log:
        log.cmd(cmd)
    result = subprocess.run(cmd, check=False)
    if result.returncode != 0:
        print(f"[WARN] xdg-open exited with status {result.returncode}")
        return False
    return True


def render(
    spec: PlotSpec,
    gnuplot: str = "gnuplot",
    open_result: bool = True,
    log: Optional[DebugLog] = None,
) -> str:
    """Materialize the series, run gnuplot and return the script it was fed.

    The temporary data files only live for the duration of the gnuplot run.
    Interactive diagrams block until the window is clicked.
    """
    with tempfile.TemporaryDirectory(prefix="parsec-bench-plot-") as temp_dir:
        data_files = write_series_data(spec.series, Path(temp_dir))
        script = render_script(spec, data_files)
        if log:
            log.block("gnuplot script", script)

        if spec.interactive:
            print("[INFO] Close the diagram window with a mouse click to exit")
        run_gnuplot(script, gnuplot, log)

    if spec.output is not None:
        print(f"[OK] Diagram written to {spec.output.path}")
        if open_result:
            open_output(spec.output.path, log)

    return script
