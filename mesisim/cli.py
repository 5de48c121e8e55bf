"""Command-line entry point for the cache simulator."""

from __future__ import annotations

import re
import sys
from dataclasses import dataclass
from typing import Sequence

from mesisim.report import format_report, write_cycles_file
from mesisim.simulator import simulate

CYCLES_FILE = "x.txt"
_USAGE = "Usage: mesisim -t <tracefile> -s <s> -E <E> -b <b> -o <outfile>"
_INT = re.compile(r"\s*([+-]?\d+)")
_INT_MIN, _INT_MAX = -(1 << 31), (1 << 31) - 1


@dataclass
class Options:
    """Parsed command-line options."""

    trace: str
    s: int
    assoc: int
    b: int
    output: str = ""


def _to_int(text: str) -> int:
    match = _INT.match(text)
    if match is None:
        raise ValueError(f"invalid number: {text!r}")
    value = int(match.group(1))
    if not _INT_MIN <= value <= _INT_MAX:
        raise ValueError(f"number out of range: {text!r}")
    return value


def parse_args(argv: Sequence[str]) -> Options:
    """Parse the option list; raise ValueError on unknown or missing options."""
    trace = ""
    s = assoc = b = -1
    output = ""
    args = iter(enumerate(argv))
    for i, arg in args:
        has_value = i + 1 < len(argv)
        if arg in ("-t", "-s", "-E", "-b", "-o") and has_value:
            _, value = next(args)
            if arg == "-t":
                trace = value
            elif arg == "-s":
                s = _to_int(value)
            elif arg == "-E":
                assoc = _to_int(value)
            elif arg == "-b":
                b = _to_int(value)
            else:
                output = value
        else:
            raise ValueError(f"Unknown option {arg}")
    if not trace or s < 0 or assoc < 0 or b < 0:
        raise ValueError(_USAGE)
    return Options(trace, s, assoc, b, output)


def main(argv: Sequence[str] | None = None) -> int:
    """Run a simulation as configured on the command line."""
    args = sys.argv[1:] if argv is None else list(argv)
    try:
        options = parse_args(args)
    except ValueError as exc:
        print(exc, file=sys.stderr)
        return 1

    result = simulate(options.trace, options.s, options.assoc, options.b)
    write_cycles_file(result, CYCLES_FILE)
    report = format_report(result, options.trace, options.s, options.assoc, options.b)

    if options.output:
        try:
            with open(options.output, "w", encoding="utf-8") as fh:
                fh.write(report)
        except OSError:
            print(f"Error: cannot open {options.output}", file=sys.stderr)
            return 1
    else:
        sys.stdout.write(report)
    return 0


if __name__ == "__main__":
    sys.exit(main())