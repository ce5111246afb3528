from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class AccessKind(str, Enum):
    READ = "R"
    WRITE = "W"

    @classmethod
    def parse(cls, token: str) -> AccessKind:
        """Accepts R/W, read/write and the L/S (load/store) spellings used by some tracers."""
        kind = _KIND_TOKENS.get(token.strip().lower())
        if kind is None:
            raise ValueError(f"Unknown access kind: {token!r}")
        return kind


_KIND_TOKENS = {
    "r": AccessKind.READ,
    "read": AccessKind.READ,
    "l": AccessKind.READ,
    "load": AccessKind.READ,
    "w": AccessKind.WRITE,
    "write": AccessKind.WRITE,
    "s": AccessKind.WRITE,
    "store": AccessKind.WRITE,
}


@dataclass(frozen=True)
class TraceEntry:
    kind: AccessKind
    address: int
    size: int = 1
    pc: Optional[int] = None

    @property
    def is_write(self) -> bool:
        return self.kind is AccessKind.WRITE

    @classmethod
    def read(cls, address: int, size: int = 1) -> TraceEntry:
        return cls(AccessKind.READ, address, size)

    @classmethod
    def write(cls, address: int, size: int = 1) -> TraceEntry:
        return cls(AccessKind.WRITE, address, size)
