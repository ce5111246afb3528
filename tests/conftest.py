import pytest
from pyv_cachesim.config import CacheConfig, SimConfig
from pyv_cachesim.trace.entry import TraceEntry


def single_level(**cache_kwargs) -> SimConfig:
    """A one-level SimConfig; remaining SimConfig fields keep their defaults."""
    run_kwargs = {k: cache_kwargs.pop(k) for k in ("address_bits", "strict", "split_accesses") if k in cache_kwargs}
    return SimConfig(caches=[CacheConfig(**cache_kwargs)], **run_kwargs)


def reads(*addresses):
    return [TraceEntry.read(a) for a in addresses]


@pytest.fixture
def make_config():
    """Factory for single-level configurations."""
    return single_level


@pytest.fixture
def small_config() -> SimConfig:
    """4 sets, 2-way, 64-byte lines, LRU, write-back, write-allocate."""
    return single_level(line_size_bytes=64, num_sets=4, associativity=2,
                        replacement_policy="lru", write_policy="write-back", write_allocate=True)
