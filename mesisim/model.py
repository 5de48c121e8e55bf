"""Core data model for the snooping-bus MESI cache simulator."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum, IntEnum

_ULONG_MAX = (1 << 64) - 1
_WORD_MASK = (1 << 32) - 1
_HEX_PREFIX = re.compile(r"\s*([+-]?)(?:0[xX])?([0-9a-fA-F]+)")


class MESIState(IntEnum):
    """Coherence state of a cache line."""

    INVALID = 0
    SHARED = 1
    EXCLUSIVE = 2
    MODIFIED = 3


class BusType(Enum):
    """Kinds of transaction carried on the shared bus."""

    BUS_RD = "BusRd"
    BUS_RDX = "BusRdX"
    BUS_WB = "BusWB"
    CACHE_TO = "Cache_to"
    FROM_CACHE = "from_Cache"


def parse_address(text: str) -> int:
    """Parse a hexadecimal address, with or without a 0x prefix, as a 32-bit value.

    Leading hex digits are used and anything after them is ignored.
    Raises ValueError when no digits can be read or the value is too large.
    """
    body = text[2:] if text[:2] in ("0x", "0X") else text
    match = _HEX_PREFIX.match(body)
    if match is None:
        raise ValueError(f"invalid address: {text!r}")
    sign, digits = match.groups()
    value = int(digits, 16)
    if value > _ULONG_MAX:
        raise ValueError(f"address out of range: {text!r}")
    if sign == "-":
        value = -value
    return value & _WORD_MASK


@dataclass
class CacheLine:
    """One way of a cache set."""

    tag: int = 0
    state: MESIState = MESIState.INVALID
    lru: int = 0


class LRUClock:
    """Monotonic counter shared by caches to stamp line accesses."""

    def __init__(self) -> None:
        self.value = 0

    def tick(self) -> int:
        """Advance the clock and return the new stamp."""
        self.value += 1
        return self.value


class Cache:
    """A set-associative cache with 2**s sets of ``assoc`` lines of 2**b bytes."""

    def __init__(self, s: int, assoc: int, b: int) -> None:
        if s < 0 or assoc < 0 or b < 0:
            raise ValueError("cache parameters must be non-negative")
        self.s = s
        self.assoc = assoc
        self.b = b
        self.num_sets = 1 << s
        self.block_size = 1 << b
        self.sets: list[list[CacheLine]] = [
            [CacheLine() for _ in range(assoc)] for _ in range(self.num_sets)
        ]

    def find_line(self, tag: int, set_index: int) -> int | None:
        """Return the way holding a valid copy of ``tag``, or None."""
        return next(
            (
                way
                for way, line in enumerate(self.sets[set_index])
                if line.state != MESIState.INVALID and line.tag == tag
            ),
            None,
        )

    def find_invalid_line(self, set_index: int) -> int | None:
        """Return the first invalid way in the set, or None."""
        return next(
            (
                way
                for way, line in enumerate(self.sets[set_index])
                if line.state == MESIState.INVALID
            ),
            None,
        )

    def find_lru_line(self, set_index: int) -> int:
        """Return the way with the oldest access stamp (first on ties)."""
        lines = self.sets[set_index]
        if not lines:
            return 0
        return min(range(len(lines)), key=lambda way: lines[way].lru)

    def split_address(self, address: int) -> tuple[int, int]:
        """Split an address into ``(tag, set_index)``."""
        set_index = (address >> self.b) & ((1 << self.s) - 1) if self.s > 0 else 0
        tag = address >> (self.b + self.s)
        return tag, set_index


@dataclass
class Stats:
    """Per-core counters gathered during a simulation."""

    read_ops: int = 0
    write_ops: int = 0
    misses: int = 0
    evictions: int = 0
    writebacks: int = 0
    bus_rd: int = 0
    bus_rdx: int = 0
    bus_wb: int = 0
    idle_cycles: int = 0
    total_cycles: int = 0
    bus_transactions: int = 0
    data_traffic: int = 0
    invalidations: int = 0


@dataclass
class BusRequest:
    """A transaction waiting for or holding the bus."""

    core: int
    tag: int
    set_index: int
    kind: BusType
    new_state: MESIState = MESIState.INVALID
    new_tag: int = 0
    other_core: int | None = None
    shared: bool = False
    address: int | None = field(default=None)