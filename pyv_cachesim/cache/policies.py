from __future__ import annotations
import random
from collections import OrderedDict
from typing import Dict, Optional, Type

from ..errors import ConfigurationError


class ReplacementPolicy:
    """
    Replacement state for a single cache set.

    The set calls `on_access` on every hit and `on_fill` on every install.
    `select_victim` is only called once every way in the set is valid;
    cold fills go to the lowest invalid way without asking the policy.
    """
    name = "base"

    def __init__(self, ways: int):
        self.ways = ways

    def on_access(self, way: int):
        pass

    def on_fill(self, way: int):
        self.on_access(way)

    def select_victim(self) -> int:
        raise NotImplementedError


class LeastRecentlyUsed(ReplacementPolicy):
    """LRU ordering kept in an OrderedDict. The first key is the LRU way."""
    name = "lru"

    def __init__(self, ways: int):
        super().__init__(ways)
        self.order = OrderedDict.fromkeys(range(ways))

    def on_access(self, way: int):
        self.order.move_to_end(way)

    def select_victim(self) -> int:
        return next(iter(self.order))


class FirstInFirstOut(ReplacementPolicy):
    """Evicts the way that was filled longest ago. Hits do not reorder."""
    name = "fifo"

    def __init__(self, ways: int):
        super().__init__(ways)
        self.order = OrderedDict.fromkeys(range(ways))

    def on_access(self, way: int):
        pass

    def on_fill(self, way: int):
        self.order.move_to_end(way)

    def select_victim(self) -> int:
        return next(iter(self.order))


class Random(ReplacementPolicy):
    """Uniform victim choice from a generator owned by this set."""
    name = "random"

    def __init__(self, ways: int, rng: Optional[random.Random] = None):
        super().__init__(ways)
        self.rng = rng if rng is not None else random.Random(0)

    def on_access(self, way: int):
        pass

    def on_fill(self, way: int):
        pass

    def select_victim(self) -> int:
        return self.rng.randrange(self.ways)


class RoundRobin(ReplacementPolicy):
    """Rotating victim pointer, one per set."""
    name = "rr"

    def __init__(self, ways: int):
        super().__init__(ways)
        self.next_way = 0

    def on_access(self, way: int):
        pass

    def on_fill(self, way: int):
        pass

    def select_victim(self) -> int:
        victim = self.next_way
        self.next_way = (self.next_way + 1) % self.ways
        return victim


class LeastFrequentlyUsed(ReplacementPolicy):
    """Evicts the way with the fewest hits since it was filled; ties go to the lowest way."""
    name = "lfu"

    def __init__(self, ways: int):
        super().__init__(ways)
        self.usages = [0] * ways

    def on_access(self, way: int):
        self.usages[way] += 1

    def on_fill(self, way: int):
        self.usages[way] = 1

    def select_victim(self) -> int:
        usages = self.usages
        return usages.index(min(usages))


POLICIES: Dict[str, Type[ReplacementPolicy]] = {
    cls.name: cls for cls in (LeastRecentlyUsed, FirstInFirstOut, Random, RoundRobin, LeastFrequentlyUsed)
}

_ALIASES = {
    "leastrecentlyused": "lru",
    "firstinfirstout": "fifo",
    "roundrobin": "rr",
    "round-robin": "rr",
    "leastfrequentlyused": "lfu",
}


def canonical_policy_name(name: str) -> str:
    """Maps a user supplied policy name (short or long form, any case) to its registry key."""
    if not isinstance(name, str):
        raise ConfigurationError(f"Replacement policy must be a string, got {name!r}")
    key = name.strip().lower().replace("_", "")
    key = _ALIASES.get(key, key)
    if key not in POLICIES:
        known = ", ".join(sorted(POLICIES))
        raise ConfigurationError(f"Unknown replacement policy: {name!r} (expected one of {known})")
    return key


def make_policy(name: str, ways: int, set_index: int = 0, seed: Optional[int] = 0) -> ReplacementPolicy:
    """Builds the policy state for one set.

    Random sets each get their own generator; with a fixed seed the
    generator for set `i` is the same on every run.
    """
    key = canonical_policy_name(name)
    if key == "random":
        rng = random.Random(f"{seed}:{set_index}") if seed is not None else random.Random()
        return Random(ways, rng)
    return POLICIES[key](ways)
