from __future__ import annotations
from enum import Enum, auto
from typing import Iterable, List, Optional

from ..cache.cache import Cache
from ..config import SimConfig
from ..errors import SimulationError, TraceFormatError
from ..trace.entry import AccessKind, TraceEntry
from ..utils.logging import get_logger
from .stats import LevelCounters, SimulationResult

logger = get_logger(__name__)


class EngineState(Enum):
    IDLE = auto()
    RUNNING = auto()
    FINISHED = auto()


class AccessOutcome(Enum):
    HIT = auto()
    MISS = auto()


class SimulationEngine:
    """
    Drives a cache hierarchy over a trace, one entry at a time.

    Each access walks the levels from the first one down and stops at the
    first hit; every level it reaches counts one access. The engine owns the
    caches and counters for its whole lifetime, so independent runs need
    independent engines.
    """
    MAX_ERROR_SAMPLES = 20

    def __init__(self, config: SimConfig):
        config.validate()
        self.config = config
        self.caches: List[Cache] = [Cache(c) for c in config.caches]
        self.counters: List[LevelCounters] = [LevelCounters(c) for c in config.caches]
        self._levels = list(zip(self.caches, self.counters))

        self.state = EngineState.IDLE
        self.entries = 0
        self.trace_errors = 0
        self.error_samples: List[str] = []

        self._address_limit = 1 << config.address_bits
        self._line_size = config.first_level.line_size_bytes
        self._split = config.split_accesses
        self._result: Optional[SimulationResult] = None

    # --- Driving ---

    def step(self, item) -> Optional[AccessOutcome]:
        """
        Processes one trace item.

        Returns the first-level outcome (MISS if any line of a split access
        missed), or None when the item was malformed and skipped.
        """
        if self.state is EngineState.FINISHED:
            raise SimulationError("The simulation has finished; no further entries can be processed.")
        self.state = EngineState.RUNNING

        position = self.entries
        self.entries += 1
        error = self._validate(item, position)
        if error is not None:
            self._record_error(error)
            return None

        is_write = item.kind is AccessKind.WRITE
        address = item.address
        if self._split and item.size > 1:
            line_size = self._line_size
            start = address - (address % line_size)
            hit = True
            for line_address in range(start, address + item.size, line_size):
                hit &= self._access(line_address, is_write)
        else:
            hit = self._access(address, is_write)
        return AccessOutcome.HIT if hit else AccessOutcome.MISS

    def run(self, entries: Iterable) -> SimulationResult:
        """Consumes the whole trace in order and returns the final result."""
        step = self.step
        for item in entries:
            step(item)
        return self.finish()

    def finish(self) -> SimulationResult:
        """Moves to FINISHED and freezes the statistics. Safe to call more than once."""
        if self._result is None:
            self.state = EngineState.FINISHED
            self._result = self._build_result(finished=True)
            logger.debug("Simulation finished after %d entries (%d malformed)", self.entries, self.trace_errors)
        return self._result

    def snapshot(self) -> SimulationResult:
        """Current statistics. Valid at any point, e.g. after the caller stopped early."""
        if self._result is not None:
            return self._result
        return self._build_result(finished=False)

    # --- Internals ---

    def _access(self, address: int, is_write: bool) -> bool:
        """Runs one line access through the hierarchy. Returns True on a first-level hit."""
        first = True
        for cache, stats in self._levels:
            tag, index, _ = cache.decoder.decode(address)
            stats.accesses += 1
            if is_write and not cache.write_back:
                stats.writethroughs += 1

            way = cache.find(index, tag)
            if way is not None:
                stats.hits += 1
                stats.cycles += stats.hit_cycles
                cache.touch(index, way, is_write)
                return first

            stats.misses += 1
            stats.cycles += stats.miss_cycles
            first = False
            if is_write and not cache.write_back and not cache.config.write_allocate:
                continue
            eviction = cache.install(index, tag, is_write)
            if eviction is not None:
                stats.evictions += 1
                if eviction.was_dirty:
                    stats.writebacks += 1
        return False

    def _validate(self, item, position: int) -> Optional[TraceFormatError]:
        if isinstance(item, TraceFormatError):
            return item.at(position)
        if not isinstance(item, TraceEntry):
            return TraceFormatError(f"not a trace entry: {item!r}", position=position)
        if not isinstance(item.kind, AccessKind):
            return TraceFormatError(f"unknown access kind {item.kind!r}", position=position)
        address = item.address
        if not isinstance(address, int) or isinstance(address, bool):
            return TraceFormatError(f"address must be an integer, got {address!r}", position=position)
        if address < 0 or address >= self._address_limit:
            return TraceFormatError(
                f"address {address:#x} does not fit in {self.config.address_bits} bits", position=position)
        if not isinstance(item.size, int) or item.size < 1:
            return TraceFormatError(f"access size must be a positive integer, got {item.size!r}", position=position)
        if self._split and address + item.size - 1 >= self._address_limit:
            return TraceFormatError(
                f"access {address:#x}+{item.size} does not fit in {self.config.address_bits} bits", position=position)
        return None

    def _record_error(self, error: TraceFormatError):
        if self.config.strict:
            logger.error("Malformed trace entry, stopping: %s", error)
            self.finish()
            raise error
        self.trace_errors += 1
        if len(self.error_samples) < self.MAX_ERROR_SAMPLES:
            self.error_samples.append(str(error))
            logger.warning("Skipping malformed trace entry: %s", error)
        else:
            logger.debug("Skipping malformed trace entry: %s", error)

    def _build_result(self, finished: bool) -> SimulationResult:
        return SimulationResult(
            levels=tuple(c.freeze() for c in self.counters),
            entries=self.entries,
            trace_errors=self.trace_errors,
            error_samples=tuple(self.error_samples),
            uninitialised_lines=tuple(c.uninitialised_line_count() for c in self.caches),
            finished=finished,
        )
