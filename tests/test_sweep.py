import shlex
import sys

from mesisim.sweep import SweepPoint, main, parse_total_cycles, run_sweep, sweep_points

_FAKE_SIM = """\
import sys
from pathlib import Path
with open("calls.log", "a") as fh:
    fh.write(" ".join(sys.argv[1:]) + "\\n")
Path("x.txt").write_text("Total Execution Cycles:77\\n")
"""


def test_sweep_points_order_and_values():
    points = sweep_points()
    assert [p.param for p in points] == ["s"] * 4 + ["E"] * 6 + ["b"] * 4
    assert [p.value for p in points if p.param == "s"] == [2, 4, 8, 16]
    assert [p.value for p in points if p.param == "E"] == [2, 4, 8, 16, 64, 128]
    assert [p.value for p in points if p.param == "b"] == [
        p.value for p in points if p.param == "s"
    ]
    assert all(p.cycles == 0 for p in points)


def test_parse_total_cycles_takes_maximum(tmp_path):
    path = tmp_path / "x.txt"
    path.write_text("Total Execution Cycles:42\nother\nTotal Execution Cycles: 17\n")
    assert parse_total_cycles(path) == 42


def test_parse_total_cycles_missing_file(tmp_path):
    assert parse_total_cycles(tmp_path / "absent.txt") == 0


def test_parse_total_cycles_non_numeric(tmp_path):
    path = tmp_path / "x.txt"
    path.write_text("Total Execution Cycles:abc\n")
    assert parse_total_cycles(path) == 0


def test_main_wrong_arguments(capsys):
    assert main(["only-one"]) == 0
    assert capsys.readouterr().out.strip() == "sim_path trace csv"


def test_run_sweep_with_fake_simulator(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    script = tmp_path / "fake_sim.py"
    script.write_text(_FAKE_SIM)
    command = f"{shlex.quote(sys.executable)} {shlex.quote(str(script))}"

    results = run_sweep(command, "app1", tmp_path / "plot.csv")

    expected = [SweepPoint(p.param, p.value, 77) for p in sweep_points()]
    assert results == expected
    rows = (tmp_path / "plot.csv").read_text().splitlines()
    assert rows[0] == "Para ,Val, Cycles"
    assert rows[1:] == [f"{p.param},{p.value},77" for p in expected]
    calls = (tmp_path / "calls.log").read_text().splitlines()
    assert len(calls) == len(expected)
    assert calls[0] == "-t app1 -s 2 -E 2 -b 5 -o output.txt"
    assert all("-o output.txt" in call for call in calls)


def test_main_runs_sweep(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    script = tmp_path / "fake_sim.py"
    script.write_text(_FAKE_SIM)
    command = f"{shlex.quote(sys.executable)} {shlex.quote(str(script))}"
    assert main([command, "app1", "plot.csv"]) == 0
    rows = (tmp_path / "plot.csv").read_text().splitlines()
    assert len(rows) == len(sweep_points()) + 1