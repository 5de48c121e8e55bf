"""Command-line help text for the simulator."""

from __future__ import annotations

import sys
from typing import TextIO

_OPTIONS: tuple[tuple[str, str], ...] = (
    ("-h", "show this help"),
    ("-t <tracefile>", "trace prefix; four files <prefix>_procN.trace are read (e.g. app1)"),
    ("-s <s>", "number of set index bits (2^s sets per cache)"),
    ("-E <E>", "associativity (lines in each set)"),
    ("-b <b>", "number of block offset bits (blocks of 2^b bytes)"),
    ("-o <outputfile>", "file that receives the statistics"),
)


def help_text() -> str:
    """Return the description of the command-line options."""
    return "".join(f"  {flag} : {meaning}\n" for flag, meaning in _OPTIONS)


def print_help(file: TextIO | None = None) -> None:
    """Write the option description to ``file`` (standard output by default)."""
    print(help_text(), file=file if file is not None else sys.stdout)