"""Text reports written at the end of a simulation run."""

from __future__ import annotations

import os
from typing import Union

from mesisim.simulator import SimulationResult

CYCLES_LABEL = "Total Execution Cycles:"


def format_report(result: SimulationResult, prefix: str, s: int, assoc: int, b: int) -> str:
    """Render the full statistics report for a finished simulation."""
    block_size = 1 << b
    num_sets = 1 << s
    lines = [
        "Simulation Parameters:",
        f"Trace Prefix: {prefix}",
        f"Set Index Bits: {s}",
        f"Associativity: {assoc}",
        f"Block Bits: {b}",
        f"Block Size (Bytes): {block_size}",
        f"Number of Sets: {num_sets}",
        f"Cache Size (KB per core): {(num_sets * block_size * assoc) // 1024}",
        "MESI Protocol: Enabled",
        "Write Policy: Write-back, Write-allocate",
        "Replacement Policy: LRU",
        "Bus: Central snooping bus",
        "",
    ]

    total_transactions = 0
    total_traffic = 0
    for core, st in enumerate(result.stats):
        accesses = st.read_ops + st.write_ops
        miss_rate = st.misses * 100.0 / accesses if accesses > 0 else 0.0
        traffic = st.data_traffic * block_size
        total_transactions += st.bus_rd + st.bus_rdx
        total_traffic += traffic
        lines += [
            f"Core {core} Statistics:",
            f"Total Instructions: {accesses}",
            f"Total Reads: {st.read_ops}",
            f"Total Writes: {st.write_ops}",
            f"Total Execution Cycles: {st.total_cycles - st.idle_cycles}",
            f"Idle Cycles: {st.idle_cycles}",
            f"Cache Misses: {st.misses}",
            f"Cache Miss Rate: {miss_rate:.2f}%",
            f"Cache Evictions: {st.evictions}",
            f"Writebacks: {st.writebacks}",
            f"Bus Invalidations: {st.invalidations}",
            f"Data Traffic (Bytes): {traffic}",
            "",
        ]

    lines += [
        "Overall Bus Summary:",
        f"Total Bus Transactions: {total_transactions}",
        f"Total Bus Traffic (Bytes): {total_traffic}",
    ]
    return "\n".join(lines) + "\n"


def format_cycles_summary(result: SimulationResult) -> str:
    """One line giving the largest per-core cycle count."""
    return f"{CYCLES_LABEL}{result.max_cycles()}\n"


def write_cycles_file(result: SimulationResult, path: Union[str, "os.PathLike[str]"]) -> None:
    """Write the cycle summary line to ``path``."""
    with open(path, "w", encoding="utf-8") as fh:
        fh.write(format_cycles_summary(result))