from __future__ import annotations
import re
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

import yaml

from .cache.policies import canonical_policy_name
from .errors import ConfigurationError, ResourceError


WritePolicy = Literal["write-back", "write-through"]

_WRITE_POLICY_ALIASES = {
    "write-back": "write-back",
    "writeback": "write-back",
    "wb": "write-back",
    "write-through": "write-through",
    "writethrough": "write-through",
    "wt": "write-through",
}

# Named cache organisations accepted under the `kind` key.
_KIND_WAYS = {
    "direct": 1,
    "twoway": 2,
    "fourway": 4,
    "eightway": 8,
}
_NWAY_RE = re.compile(r"^(\d+)-?way$")

# File keys that are spelled differently from the dataclass fields.
_CACHE_KEY_ALIASES = {
    "block_size": "line_size_bytes",
    "line_size": "line_size_bytes",
    "size": "size_bytes",
    "sets": "num_sets",
    "ways": "associativity",
}


def is_power_of_two(n) -> bool:
    return isinstance(n, int) and not isinstance(n, bool) and n > 0 and (n & (n - 1)) == 0


def _require_int(name: str, value, minimum: int = 0):
    if not isinstance(value, int) or isinstance(value, bool):
        raise ConfigurationError(f"{name} must be an integer, got {value!r}")
    if value < minimum:
        raise ConfigurationError(f"{name} must be >= {minimum}, got {value}")


def _ways_for_kind(kind: str, size_bytes: Optional[int], line_size_bytes: int) -> int:
    key = str(kind).strip().lower().replace("_", "").replace(" ", "")
    if key == "full":
        if size_bytes is None:
            raise ConfigurationError("A fully associative cache needs `size` to derive its associativity.")
        if line_size_bytes <= 0 or size_bytes % line_size_bytes != 0:
            raise ConfigurationError("Cache size must be a multiple of line size.")
        return size_bytes // line_size_bytes
    if key in _KIND_WAYS:
        return _KIND_WAYS[key]
    match = _NWAY_RE.match(key)
    if match:
        return int(match.group(1))
    raise ConfigurationError(f"Unknown cache kind: {kind!r}")


@dataclass(frozen=True)
class CacheConfig:
    """
    Configuration for one cache level.

    The geometry is given either as `num_sets` or as `size_bytes` (the set
    count is then derived). When neither is given the cache has 64 sets.
    Names of policies are normalised, so two configs built from different
    spellings compare equal.
    """
    name: str = "L1"
    line_size_bytes: int = 64
    num_sets: Optional[int] = None
    associativity: int = 1
    size_bytes: Optional[int] = None
    replacement_policy: str = "lru"
    write_policy: WritePolicy = "write-back"
    write_allocate: bool = True
    hit_latency_cycles: Optional[int] = None
    miss_latency_cycles: Optional[int] = None
    seed: Optional[int] = 0

    def __post_init__(self):
        _require_int("line_size_bytes", self.line_size_bytes, minimum=1)
        _require_int("associativity", self.associativity, minimum=1)
        if not is_power_of_two(self.line_size_bytes):
            raise ConfigurationError("Line size must be a power of two for bitwise address decomposition.")

        num_sets = self.num_sets
        if self.size_bytes is not None:
            _require_int("size_bytes", self.size_bytes, minimum=1)
            if self.size_bytes % self.line_size_bytes != 0:
                raise ConfigurationError("Cache size must be a multiple of line size.")
            num_lines = self.size_bytes // self.line_size_bytes
            if num_lines % self.associativity != 0:
                raise ConfigurationError("Number of lines must be a multiple of associativity.")
            derived_sets = num_lines // self.associativity
            if num_sets is None:
                num_sets = derived_sets
            elif num_sets != derived_sets:
                raise ConfigurationError(
                    f"num_sets x associativity x line_size_bytes = "
                    f"{num_sets * self.associativity * self.line_size_bytes} does not match size {self.size_bytes}."
                )
        elif num_sets is None:
            num_sets = 64

        _require_int("num_sets", num_sets, minimum=1)
        if not is_power_of_two(num_sets):
            raise ConfigurationError("Number of sets must be a power of two for bitwise address decomposition.")
        object.__setattr__(self, "num_sets", num_sets)
        object.__setattr__(self, "size_bytes", num_sets * self.associativity * self.line_size_bytes)

        object.__setattr__(self, "replacement_policy", canonical_policy_name(self.replacement_policy))
        policy = str(self.write_policy).strip().lower().replace("_", "-")
        if policy not in _WRITE_POLICY_ALIASES:
            raise ConfigurationError(f"Unknown write policy: {self.write_policy!r}")
        object.__setattr__(self, "write_policy", _WRITE_POLICY_ALIASES[policy])

        if not isinstance(self.write_allocate, bool):
            raise ConfigurationError(f"write_allocate must be a boolean, got {self.write_allocate!r}")
        for name in ("hit_latency_cycles", "miss_latency_cycles"):
            value = getattr(self, name)
            if value is not None:
                _require_int(name, value, minimum=0)
        if self.seed is not None:
            _require_int("seed", self.seed, minimum=0)

    @property
    def num_lines(self) -> int:
        return self.num_sets * self.associativity

    @property
    def offset_bits(self) -> int:
        return self.line_size_bytes.bit_length() - 1

    @property
    def index_bits(self) -> int:
        return self.num_sets.bit_length() - 1

    @property
    def is_write_back(self) -> bool:
        return self.write_policy == "write-back"

    @property
    def cycle_model_enabled(self) -> bool:
        return self.hit_latency_cycles is not None or self.miss_latency_cycles is not None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> CacheConfig:
        """Builds a cache config from a mapping as found in a YAML/JSON config file."""
        if not isinstance(data, dict):
            raise ConfigurationError(f"A cache entry must be a mapping, got {type(data).__name__}")
        known = {f.name for f in fields(cls)}
        kwargs: Dict[str, Any] = {}
        kind = None
        for key, value in data.items():
            if key == "kind":
                kind = value
                continue
            if key == "size_kb":
                _require_int("size_kb", value, minimum=1)
                key, value = "size_bytes", value * 1024
            key = _CACHE_KEY_ALIASES.get(key, key)
            if key not in known:
                raise ConfigurationError(f"Unknown cache configuration key: {key!r}")
            kwargs[key] = value

        if kind is not None:
            if "associativity" in kwargs:
                raise ConfigurationError("Give either `kind` or `associativity`, not both.")
            ways = _ways_for_kind(kind, kwargs.get("size_bytes"), kwargs.get("line_size_bytes", 64))
            kwargs["associativity"] = ways
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


_CACHE_FIELDS = {f.name for f in fields(CacheConfig)} | set(_CACHE_KEY_ALIASES) | {"kind", "size_kb"}


@dataclass
class SimConfig:
    """Configuration of a whole simulation run: the cache hierarchy plus run options."""
    caches: List[CacheConfig] = field(default_factory=lambda: [CacheConfig()])

    # Declared address width; trace addresses outside it are malformed.
    address_bits: int = 64

    # Stop at the first malformed trace entry instead of counting it.
    strict: bool = False

    # Split accesses spanning several first-level lines into one access per line.
    split_accesses: bool = False

    # Input paths
    config_path: str = ""
    trace_path: str = ""

    # Reporting
    report_dir: Optional[str] = None
    debug: Optional[bool] = None
    performance: bool = False

    def __post_init__(self):
        self.validate()

    def validate(self):
        """Checks run-level invariants. Cache-level ones are checked by CacheConfig."""
        if not self.caches:
            raise ConfigurationError("At least one cache level is required.")
        _require_int("address_bits", self.address_bits, minimum=1)
        for name in ("strict", "split_accesses", "performance"):
            if not isinstance(getattr(self, name), bool):
                raise ConfigurationError(f"{name} must be a boolean, got {getattr(self, name)!r}")
        if self.debug is not None and not isinstance(self.debug, bool):
            raise ConfigurationError(f"debug must be a boolean, got {self.debug!r}")
        names = set()
        for cache in self.caches:
            if not isinstance(cache, CacheConfig):
                raise ConfigurationError(f"Expected a CacheConfig, got {type(cache).__name__}")
            if cache.offset_bits + cache.index_bits > self.address_bits:
                raise ConfigurationError(
                    f"Cache {cache.name!r} needs {cache.offset_bits + cache.index_bits} offset+index bits "
                    f"but addresses are only {self.address_bits} bits wide."
                )
            if cache.name in names:
                raise ConfigurationError(f"Duplicate cache name: {cache.name!r}")
            names.add(cache.name)

    @property
    def first_level(self) -> CacheConfig:
        return self.caches[0]

    def update_from_dict(self, data: Dict[str, Any]):
        """Updates config fields from a parsed config file mapping."""
        if not isinstance(data, dict):
            raise ConfigurationError("The configuration file must contain a mapping at top level.")
        data = dict(data)
        if "caches" in data:
            caches = data.pop("caches")
            if not isinstance(caches, list):
                raise ConfigurationError("`caches` must be a list of cache definitions.")
            self.caches = [CacheConfig.from_dict(c) for c in caches]
        else:
            # Single-level shorthand: cache keys at top level.
            cache_keys = {k: data.pop(k) for k in list(data) if k in _CACHE_FIELDS}
            if cache_keys:
                self.caches = [CacheConfig.from_dict(cache_keys)]

        known = {f.name for f in fields(self)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigurationError(f"Unknown configuration keys: {', '.join(unknown)}")
        for key, value in data.items():
            setattr(self, key, value)

    def update_from_yaml(self, yaml_path: str):
        """Updates config fields from a YAML (or JSON) file."""
        try:
            with open(yaml_path, 'r') as f:
                yaml_config = yaml.safe_load(f)
        except OSError as e:
            raise ResourceError(f"Couldn't open the config file at path {yaml_path}: {e}") from e
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Couldn't parse the config file {yaml_path}: {e}") from e
        self.update_from_dict(yaml_config or {})

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> SimConfig:
        config = cls()
        config.update_from_dict(data)
        config.validate()
        return config

    @classmethod
    def from_yaml(cls, yaml_path: str) -> SimConfig:
        config = cls(config_path=str(yaml_path))
        config.update_from_yaml(yaml_path)
        config.validate()
        return config

    @classmethod
    def from_args(cls, args) -> SimConfig:
        """Factory method to create a SimConfig from parsed argparse arguments."""
        config = cls()

        # 1. Load from the config file
        config_path = getattr(args, 'config_path', None)
        if config_path:
            if not Path(config_path).exists():
                raise ResourceError(f"Config file {config_path} not found.")
            config.config_path = config_path
            config.update_from_yaml(config_path)

        # 2. Override with command-line arguments
        known = {f.name for f in fields(config)}
        for key, value in vars(args).items():
            if key == "config_path":
                continue
            if value is not None and key in known:
                setattr(config, key, value)

        config.validate()
        return config
