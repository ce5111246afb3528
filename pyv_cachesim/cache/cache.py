from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List, Optional

from ..config import CacheConfig
from .address import AddressDecoder
from .policies import ReplacementPolicy, make_policy


class CacheLine:
    """Represents a single line in a cache set."""
    __slots__ = ("valid", "dirty", "tag")

    def __init__(self):
        self.valid = False
        self.dirty = False
        self.tag = -1

    def __repr__(self):
        return f"CacheLine(valid={self.valid}, dirty={self.dirty}, tag={self.tag:#x})"


@dataclass(frozen=True)
class Eviction:
    """A valid line displaced by an install."""
    tag: int
    was_dirty: bool


class CacheSet:
    """
    A fixed set of `ways` lines plus the replacement state for the set.

    Valid lines are also indexed by tag so lookups do not scan the set.
    """
    __slots__ = ("lines", "policy", "ways_by_tag")

    def __init__(self, associativity: int, policy: ReplacementPolicy):
        self.lines: List[CacheLine] = [CacheLine() for _ in range(associativity)]
        self.policy = policy
        self.ways_by_tag: Dict[int, int] = {}

    @property
    def is_full(self) -> bool:
        return len(self.ways_by_tag) == len(self.lines)

    def find_line(self, tag: int) -> Optional[int]:
        """Returns the way holding a valid line with `tag`, or None."""
        return self.ways_by_tag.get(tag)

    def free_way(self) -> Optional[int]:
        """Lowest-index invalid way, or None when the set is full."""
        if self.is_full:
            return None
        for way, line in enumerate(self.lines):
            if not line.valid:
                return way
        return None

    def fill(self, tag: int, dirty: bool) -> Optional[Eviction]:
        """Places `tag` in the set, evicting the policy's victim if no way is free."""
        way = self.free_way()
        eviction = None
        if way is None:
            way = self.policy.select_victim()
            victim = self.lines[way]
            eviction = Eviction(victim.tag, victim.dirty)
            del self.ways_by_tag[victim.tag]

        line = self.lines[way]
        line.valid = True
        line.dirty = dirty
        line.tag = tag
        self.ways_by_tag[tag] = way
        self.policy.on_fill(way)
        return eviction

    def valid_count(self) -> int:
        return len(self.ways_by_tag)


class Cache:
    """
    A configurable set-associative cache.

    This class only holds line state. It does not count hits or misses; the
    simulation engine decides what to do with each lookup and keeps the
    statistics.
    """
    def __init__(self, config: CacheConfig):
        self.config = config
        self.decoder = AddressDecoder.from_config(config)
        self.write_back = config.is_write_back
        self.sets = [
            CacheSet(config.associativity,
                     make_policy(config.replacement_policy, config.associativity, index, config.seed))
            for index in range(config.num_sets)
        ]

    @property
    def name(self) -> str:
        return self.config.name

    def decode(self, address: int) -> tuple[int, int, int]:
        return self.decoder.decode(address)

    def find(self, index: int, tag: int) -> Optional[int]:
        """Looks up a valid line with `tag` in set `index`. Returns its way or None."""
        return self.sets[index].ways_by_tag.get(tag)

    def touch(self, index: int, way: int, is_write: bool):
        """Updates a line on a hit: replacement order and, for write-back writes, the dirty bit."""
        cache_set = self.sets[index]
        cache_set.policy.on_access(way)
        if is_write and self.write_back:
            cache_set.lines[way].dirty = True

    def install(self, index: int, tag: int, is_write: bool) -> Optional[Eviction]:
        """Installs `tag` in set `index` after a confirmed miss."""
        return self.sets[index].fill(tag, dirty=is_write and self.write_back)

    def line(self, index: int, way: int) -> CacheLine:
        return self.sets[index].lines[way]

    def uninitialised_line_count(self) -> int:
        """Number of lines that have never been filled."""
        return sum(len(s.lines) - s.valid_count() for s in self.sets)

    def reconstruct_address(self, tag: int, index: int) -> int:
        """Reconstructs the block start address from tag and index."""
        return self.decoder.encode(tag, index)
