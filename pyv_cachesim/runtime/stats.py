from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from ..config import CacheConfig


@dataclass(frozen=True)
class Statistics:
    """Final (read-only) counters for one cache level, with derived metrics."""
    name: str = "L1"
    accesses: int = 0
    hits: int = 0
    misses: int = 0
    evictions: int = 0
    writebacks: int = 0
    writethroughs: int = 0
    total_cycles: Optional[int] = None
    hit_latency_cycles: Optional[int] = None
    miss_latency_cycles: Optional[int] = None

    @property
    def hit_rate(self) -> float:
        return self.hits / self.accesses if self.accesses else 0.0

    @property
    def miss_rate(self) -> float:
        return 1.0 - self.hit_rate if self.accesses else 0.0

    @property
    def cycle_model_enabled(self) -> bool:
        return self.total_cycles is not None

    @property
    def average_access_time(self) -> Optional[float]:
        """AMAT = hit time + miss rate * miss penalty, in cycles."""
        if not self.cycle_model_enabled:
            return None
        return (self.hit_latency_cycles or 0) + self.miss_rate * (self.miss_latency_cycles or 0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "accesses": self.accesses,
            "hits": self.hits,
            "misses": self.misses,
            "evictions": self.evictions,
            "writebacks": self.writebacks,
            "writethroughs": self.writethroughs,
            "hit_rate": self.hit_rate,
            "miss_rate": self.miss_rate,
            "total_cycles": self.total_cycles,
            "average_access_time": self.average_access_time,
        }


class LevelCounters:
    """Mutable accumulator the engine updates per access. Only the engine touches it."""
    __slots__ = ("name", "accesses", "hits", "misses", "evictions", "writebacks",
                 "writethroughs", "cycles", "hit_cycles", "miss_cycles", "cycle_model")

    def __init__(self, config: CacheConfig):
        self.name = config.name
        self.accesses = 0
        self.hits = 0
        self.misses = 0
        self.evictions = 0
        self.writebacks = 0
        self.writethroughs = 0
        self.cycles = 0
        self.cycle_model = config.cycle_model_enabled
        self.hit_cycles = config.hit_latency_cycles or 0
        self.miss_cycles = config.miss_latency_cycles or 0

    def freeze(self) -> Statistics:
        return Statistics(
            name=self.name,
            accesses=self.accesses,
            hits=self.hits,
            misses=self.misses,
            evictions=self.evictions,
            writebacks=self.writebacks,
            writethroughs=self.writethroughs,
            total_cycles=self.cycles if self.cycle_model else None,
            hit_latency_cycles=self.hit_cycles if self.cycle_model else None,
            miss_latency_cycles=self.miss_cycles if self.cycle_model else None,
        )


@dataclass(frozen=True)
class SimulationResult:
    """Immutable outcome of a run, or a partial snapshot of one in progress."""
    levels: Tuple[Statistics, ...] = ()
    entries: int = 0
    trace_errors: int = 0
    error_samples: Tuple[str, ...] = ()
    uninitialised_lines: Tuple[int, ...] = ()
    finished: bool = field(default=False, compare=False)

    @property
    def main_memory_accesses(self) -> int:
        """Everything that misses the last level goes to main memory."""
        return self.levels[-1].misses if self.levels else 0

    @property
    def total_cycles(self) -> Optional[int]:
        cycles = [level.total_cycles for level in self.levels if level.total_cycles is not None]
        return sum(cycles) if cycles else None

    def level(self, name: str) -> Statistics:
        for stats in self.levels:
            if stats.name == name:
                return stats
        raise KeyError(name)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "main_memory_accesses": self.main_memory_accesses,
            "caches": [level.to_dict() for level in self.levels],
            "entries": self.entries,
            "trace_errors": self.trace_errors,
            "total_cycles": self.total_cycles,
        }
