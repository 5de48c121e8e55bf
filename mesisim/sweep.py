"""Parameter sweep: run the simulator over cache shapes and collect cycle counts."""

from __future__ import annotations

import os
import re
import shlex
import subprocess
import sys
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Sequence, Union

CYCLES_FILE = "x.txt"
CYCLES_LABEL = "Total Execution Cycles:"
_LEADING_INT = re.compile(r"\s*([+-]?\d+)")

_BASE = {"s": 6, "E": 2, "b": 5}


@dataclass(frozen=True)
class SweepPoint:
    """One simulator run: the varied parameter, its value and the cycles measured."""

    param: str
    value: int
    cycles: int = 0


def sweep_points() -> list[SweepPoint]:
    """The runs of a sweep, set bits first, then associativity, then block bits."""
    powers = [2 << i for i in range(4)]
    top = 2 << 4
    assoc_values = powers + [top * 2, top * 4]
    s_points = [SweepPoint("s", v) for v in powers]
    e_points = [SweepPoint("E", v) for v in assoc_values]
    b_points = [SweepPoint("b", v) for v in powers]
    return s_points + e_points + b_points


def _arguments(point: SweepPoint, trace: str) -> list[str]:
    params = {**_BASE, point.param: point.value}
    if point.param != "s":
        params["s"] = _BASE["s"]
    return [
        "-t", trace,
        "-s", str(params["s"]),
        "-E", str(params["E"]),
        "-b", str(params["b"]),
        "-o", "output.txt",
    ]


def _leading_int(text: str) -> int:
    match = _LEADING_INT.match(text)
    return int(match.group(1)) if match else 0


def parse_total_cycles(path: Union[str, "os.PathLike[str]"]) -> int:
    """Largest cycle count on any summary line of ``path``; 0 if none or unreadable."""
    try:
        text = Path(path).read_text(encoding="utf-8", errors="replace")
    except OSError:
        return 0
    best = 0
    for line in text.splitlines():
        if CYCLES_LABEL in line:
            best = max(best, _leading_int(line.split(":", 1)[1]))
    return best


def run_sweep(sim_command: str, trace: str, csv_path: Union[str, "os.PathLike[str]"]) -> list[SweepPoint]:
    """Run the simulator for every sweep point and write the results as CSV."""
    command = shlex.split(sim_command)
    results = []
    with open(csv_path, "w", encoding="utf-8") as out:
        out.write("Para ,Val, Cycles\n")
        for point in sweep_points():
            subprocess.run(command + _arguments(point, trace), check=False)
            measured = replace(point, cycles=parse_total_cycles(CYCLES_FILE))
            out.write(f"{measured.param},{measured.value},{measured.cycles}\n")
            results.append(measured)
    return results


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point: ``sim_path trace csv``."""
    args = sys.argv[1:] if argv is None else list(argv)
    if len(args) != 3:
        print("sim_path trace csv")
        return 0
    sim_command, trace, csv_path = args
    run_sweep(sim_command, trace, csv_path)
    return 0


if __name__ == "__main__":
    sys.exit(main())