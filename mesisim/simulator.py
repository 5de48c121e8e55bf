"""Cycle-by-cycle simulation of four MESI caches sharing a snooping bus."""

from __future__ import annotations

import logging
import re
from collections import deque
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, Sequence, Union

from mesisim.model import (
    BusRequest,
    BusType,
    Cache,
    LRUClock,
    MESIState,
    Stats,
    parse_address,
)

logger = logging.getLogger(__name__)

NUM_CORES = 4
MEMORY_LATENCY = 100
WORD_BYTES = 4

TraceItem = tuple[str, Union[str, int]]

_WS = " \t\n\v\f\r"
_TOKEN_PAIR = re.compile(rf"[{_WS}]*([^{_WS}])[{_WS}]*([^{_WS}]+)")


def _tokenize(text: str) -> Iterator[tuple[str, str]]:
    """Yield ``(op, address)`` pairs: a single op character and the next word."""
    pos = 0
    while (match := _TOKEN_PAIR.match(text, pos)) is not None:
        yield match.group(1), match.group(2)
        pos = match.end()


def read_traces(prefix: str) -> list[list[tuple[str, str]]]:
    """Read ``<prefix>_proc<n>.trace`` for each core; a missing file gives no work."""
    traces: list[list[tuple[str, str]]] = []
    for core in range(NUM_CORES):
        path = Path(f"{prefix}_proc{core}.trace")
        try:
            text = path.read_text(encoding="latin-1")
        except OSError:
            text = ""
        traces.append(list(_tokenize(text)))
    return traces


@dataclass
class SimulationResult:
    """Per-core statistics and the number of simulated clock cycles."""

    stats: list[Stats]
    cycles: int
    total_invalidations: int = 0

    def max_cycles(self) -> int:
        """Largest total cycle count of any core (never below zero)."""
        return max([0, *(st.total_cycles for st in self.stats)])


class Simulator:
    """Four private caches kept coherent with MESI over one shared bus."""

    def __init__(
        self, s: int, assoc: int, b: int, traces: Sequence[Iterable[TraceItem]]
    ) -> None:
        if len(traces) != NUM_CORES:
            raise ValueError(f"expected {NUM_CORES} traces, got {len(traces)}")
        self.s = s
        self.assoc = assoc
        self.b = b
        self.caches = [Cache(s, assoc, b) for _ in range(NUM_CORES)]
        self.stats = [Stats() for _ in range(NUM_CORES)]
        self.clock = LRUClock()
        self.cycles = 0
        self.total_invalidations = 0
        self._traces: list[Iterator[TraceItem]] = [iter(t) for t in traces]
        self._done = [False] * NUM_CORES
        self._pending = [0] * NUM_CORES
        self._queue: deque[BusRequest] = deque()
        self._busy = False
        self._bus_cycles = 0
        self._current: BusRequest | None = None
        self._block_words = self.caches[0].block_size // WORD_BYTES

    # ------------------------------------------------------------------ bus

    def _start_transaction(self) -> None:
        if self._busy or not self._queue:
            return
        req = self._queue.popleft()
        self._current = req
        core, set_index, tag = req.core, req.set_index, req.tag
        self._busy = True

        any_other = any_mod = False
        holder = None
        for other in range(NUM_CORES):
            if other == core:
                continue
            way = self.caches[other].find_line(tag, set_index)
            if way is not None:
                any_other = True
                holder = other
                if self.caches[other].sets[set_index][way].state == MESIState.MODIFIED:
                    any_mod = True

        if req.kind is BusType.BUS_WB:
            self.stats[core].data_traffic += 1
            self.stats[core].writebacks += 1
            self._bus_cycles = MEMORY_LATENCY
        elif any_mod:
            self._flush_modified_holders(core, tag, set_index)
        elif any_other:
            if req.kind is BusType.BUS_RD:
                req.shared = True
                req.other_core = holder
                self._bus_cycles = 2 * self._block_words
                self.stats[holder].data_traffic += 1
                self.stats[core].data_traffic += 1
            else:
                self.stats[core].invalidations += 1
                for cache in self.caches:
                    way = cache.find_line(tag, set_index)
                    if way is not None:
                        cache.sets[set_index][way].state = MESIState.INVALID
                self.stats[core].data_traffic += 1
                self._bus_cycles = MEMORY_LATENCY
        else:
            self.stats[core].data_traffic += 1
            self._bus_cycles = MEMORY_LATENCY

    def _flush_modified_holders(self, core: int, tag: int, set_index: int) -> None:
        """Put a writeback of each modified copy ahead of the pending request."""
        for other in range(NUM_CORES):
            if other == core:
                continue
            cache = self.caches[other]
            way = cache.find_line(tag, set_index)
            if way is None or cache.sets[set_index][way].state != MESIState.MODIFIED:
                continue
            current = self._current
            if current.kind is BusType.BUS_RDX:
                self.stats[core].invalidations += 1
                self.total_invalidations += 1
                new_state = MESIState.INVALID
            else:
                new_state = MESIState.SHARED
            self._queue.appendleft(current)
            self._queue.appendleft(
                BusRequest(
                    other,
                    current.tag,
                    current.set_index,
                    BusType.BUS_WB,
                    new_state,
                    current.tag,
                )
            )
            self._pending[other] += 1
            self._busy = False
            self._start_transaction()

    def _allocate(self, core: int, tag: int, set_index: int, state: MESIState, victim_state: MESIState) -> None:
        """Place ``tag`` in the core's set, evicting the LRU line if needed."""
        cache = self.caches[core]
        way = cache.find_line(tag, set_index)
        if way is not None:
            line = cache.sets[set_index][way]
            line.state = state
            line.lru = self.clock.tick()
            return
        empty = cache.find_invalid_line(set_index)
        if empty is not None:
            line = cache.sets[set_index][empty]
            line.tag = tag
            line.state = state
            line.lru = self.clock.tick()
            return
        victim = cache.sets[set_index][cache.find_lru_line(set_index)]
        self.stats[core].evictions += 1
        if victim.state == MESIState.MODIFIED:
            self._queue.appendleft(
                BusRequest(core, victim.tag, set_index, BusType.BUS_WB, state, tag)
            )
            self.stats[core].bus_wb += 1
            self._pending[core] += 1
        else:
            victim.tag = tag
            victim.state = victim_state
            victim.lru = self.clock.tick()

    def _complete(self) -> None:
        req = self._current
        core, set_index, tag = req.core, req.set_index, req.tag
        cache = self.caches[core]
        if req.kind is BusType.BUS_RD:
            shared = False
            for other in range(NUM_CORES):
                if other == core:
                    continue
                oc = self.caches[other]
                way = oc.find_line(tag, set_index)
                if way is not None:
                    oc.sets[set_index][way].state = MESIState.SHARED
                    shared = True
            new_state = MESIState.SHARED if shared else MESIState.EXCLUSIVE
            self._allocate(core, tag, set_index, new_state, new_state)
        elif req.kind is BusType.BUS_RDX:
            for other in range(NUM_CORES):
                if other == core:
                    continue
                oc = self.caches[other]
                way = oc.find_line(tag, set_index)
                if way is not None:
                    logger.debug(
                        "core %d still held a valid copy during exclusive read", other
                    )
                    oc.sets[set_index][way].state = MESIState.INVALID
                    self.stats[core].invalidations += 1
            self._allocate(core, tag, set_index, MESIState.MODIFIED, MESIState.INVALID)
        elif req.kind is BusType.BUS_WB:
            for line in cache.sets[set_index]:
                if line.tag == tag:
                    line.tag = req.new_tag
                    line.state = req.new_state
                    line.lru = self.clock.tick()
        self._busy = False
        self._pending[core] -= 1
        self._current = None

    def _advance_bus(self) -> None:
        self._start_transaction()
        if not self._busy:
            return
        self._bus_cycles -= 1
        if self._bus_cycles <= 0:
            self._complete()

    # ---------------------------------------------------------------- cores

    def _execute(self, core: int, op: str, address: str | int) -> None:
        value = parse_address(address) if isinstance(address, str) else address & 0xFFFFFFFF
        cache = self.caches[core]
        stats = self.stats[core]
        tag, set_index = cache.split_address(value)
        way = cache.find_line(tag, set_index)
        if op == "R":
            stats.read_ops += 1
            if way is not None:
                cache.sets[set_index][way].lru = self.clock.tick()
            else:
                stats.total_cycles += 1
                stats.misses += 1
                stats.bus_rd += 1
                self._queue.append(BusRequest(core, tag, set_index, BusType.BUS_RD))
                self._pending[core] += 1
        elif op == "W":
            stats.write_ops += 1
            if way is not None:
                line = cache.sets[set_index][way]
                if line.state == MESIState.MODIFIED:
                    line.lru = self.clock.tick()
                elif line.state == MESIState.EXCLUSIVE:
                    line.state = MESIState.MODIFIED
                    line.lru = self.clock.tick()
                elif line.state == MESIState.SHARED:
                    stats.bus_rdx += 1
                    stats.total_cycles += 1
                    self._queue.append(BusRequest(core, tag, set_index, BusType.BUS_RDX))
                    self._pending[core] += 1
            else:
                stats.misses += 1
                stats.bus_rdx += 1
                stats.total_cycles += 1
                self._queue.append(BusRequest(core, tag, set_index, BusType.BUS_RDX))
                self._pending[core] += 1

    def has_work(self) -> bool:
        """True while a core has instructions left or the bus has work."""
        return not all(self._done) or bool(self._queue) or self._busy

    def step(self) -> bool:
        """Simulate one clock cycle; return whether work remains."""
        self.cycles += 1
        was_busy = self._busy
        self._start_transaction()
        if not was_busy and self._busy:
            self.stats[self._current.core].idle_cycles += 1

        current = self._current
        serving = current.other_core if current is not None else None
        requester = current.core if current is not None else None
        for core in range(NUM_CORES):
            if self._done[core] and serving != core:
                continue
            stats = self.stats[core]
            stats.total_cycles += 1
            if serving == core:
                continue
            if self._pending[core] > 0:
                if requester != core:
                    stats.idle_cycles += 1
                continue
            item = next(self._traces[core], None)
            if item is None:
                self._done[core] = True
                stats.total_cycles -= 1
                continue
            op, address = item
            self._execute(core, op, address)

        self._advance_bus()
        return self.has_work()

    def run(self) -> SimulationResult:
        """Run until every core and the bus are idle."""
        while self.step():
            pass
        return SimulationResult(self.stats, self.cycles, self.total_invalidations)


def simulate(prefix: str, s: int, assoc: int, b: int) -> SimulationResult:
    """Simulate the four trace files that share ``prefix``."""
    return Simulator(s, assoc, b, read_traces(prefix)).run()