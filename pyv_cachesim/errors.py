from __future__ import annotations


class CacheSimError(Exception):
    """Base class for all simulator errors."""


class ConfigurationError(CacheSimError, ValueError):
    """Raised when a cache configuration is invalid. Always fatal."""


class TraceFormatError(CacheSimError, ValueError):
    """A malformed trace entry.

    `position` is the 0-based ordinal of the entry in the trace sequence.
    Errors raised by the trace reader also carry the 1-based file line
    number in `line`; the engine pins `position` with `at()`.
    """

    def __init__(self, reason: str, position: int | None = None, line: int | None = None):
        self.reason = reason
        self.position = position
        self.line = line
        super().__init__(self._format())

    def _format(self) -> str:
        where = []
        if self.position is not None:
            where.append(f"entry {self.position}")
        if self.line is not None:
            where.append(f"line {self.line}")
        if not where:
            return self.reason
        return f"{', '.join(where)}: {self.reason}"

    def at(self, position: int) -> TraceFormatError:
        """Returns a copy of this error pinned to a sequence position."""
        return TraceFormatError(self.reason, position=position, line=self.line)


class ResourceError(CacheSimError, OSError):
    """The trace or configuration data could not be obtained."""


class SimulationError(CacheSimError, RuntimeError):
    """The engine was driven in an invalid way (e.g. stepped after finishing)."""
