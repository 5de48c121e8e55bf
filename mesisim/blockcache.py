"""Time-stamped block cache with per-set lookups and address tracking."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Sequence

_MASK64 = (1 << 64) - 1
_NO_ADDRESS = _MASK64  # -1 stored as an unsigned 64-bit value


def _as_unsigned(value: int) -> int:
    return value & _MASK64


def _trunc_div(a: int, b: int) -> int:
    quotient = abs(a) // abs(b)
    return quotient if (a >= 0) == (b > 0) else -quotient


class MESI(IntEnum):
    """Coherence state of a block."""

    MODIFIED = 0
    EXCLUSIVE = 1
    SHARED = 2
    INVALID = 3


@dataclass
class Block:
    """One block of a set: last access time, state and stored address."""

    time: int = 0
    pos: MESI = MESI.INVALID
    add: int = 0


@dataclass(frozen=True)
class Geometry:
    """Shape of a cache: sets, blocks per set and block size in bytes."""

    num_sets: int
    num_blocks: int
    block_size: int
    assoc: int = 0
    offset: int = 0


class SetCache:
    """A cache laid out as a grid of sets by blocks."""

    def __init__(self, geometry: Geometry) -> None:
        self.geometry = geometry
        self.last_cycle_till_valid = 0
        self.active = True
        self.maze: list[list[Block]] = [
            [Block() for _ in range(geometry.num_blocks)]
            for _ in range(geometry.num_sets)
        ]

    def set(self, time: int, add: int, pos: MESI, set_index: int, line_no: int) -> None:
        """Overwrite one block's time, address and state."""
        block = self.maze[set_index][line_no]
        block.time = time
        block.add = _as_unsigned(add)
        block.pos = pos

    def empty_line(self, address: int) -> int | None:
        """Return a line in the address's set that never held an address, or None."""
        row = self.maze[self.set_index(address)]
        return next(
            (i for i, block in enumerate(row) if block.add == _NO_ADDRESS), None
        )

    def least_recent(self, address: int) -> int:
        """Return the line with the oldest time in the address's set."""
        row = self.maze[self.set_index(address)]
        if not row:
            return 0
        return min(range(len(row)), key=lambda i: row[i].time)

    def set_index(self, address: int) -> int:
        """Return the set the address maps to."""
        g = self.geometry
        if g.num_sets > 1:
            return _trunc_div(address, g.block_size) & (g.num_sets - 1)
        return 0

    def find_block(self, address: int) -> int | None:
        """Return the line holding the address.

        A valid line wins; otherwise the last invalid line with that address,
        or None when no line holds it.
        """
        g = self.geometry
        row = self.maze[self.set_index(address)]
        tag = _as_unsigned(_trunc_div(address, g.num_blocks + g.num_sets))
        fallback = None
        for i, block in enumerate(row):
            if block.add == tag:
                if block.pos != MESI.INVALID:
                    return i
                fallback = i
        return fallback


class Address:
    """A tag and set index together with the line it occupies in each core."""

    def __init__(self, tag: int, set_index: int) -> None:
        self.tag = tag
        self.set_index = set_index
        self.line: list[int | None] = field(default=None) or [None] * 4

    def refresh(self, caches: Sequence[SetCache], core: int) -> None:
        """Record the line of ``core``'s cache that holds this tag, if any."""
        row = caches[core].maze[self.set_index]
        tag = _as_unsigned(self.tag)
        found = next((j for j, block in enumerate(row) if block.add == tag), None)
        if found is not None:
            self.line[core] = found


def all_done(caches: Sequence[SetCache]) -> bool:
    """True when no cache is still active."""
    return not any(cache.active for cache in caches)