"""
Trace file reading.

Two line grammars are accepted, chosen per line:

* the fixed 40-byte record ``<pc:16 hex> <address:16 hex> <R|W> <size:3 dec>``
* a free form ``<op> <address> [size]`` with a hex address (``0x`` optional)

Blank lines and ``#`` comments are skipped. Lines that match neither grammar
are yielded as TraceFormatError items rather than raised, so that the engine
decides whether a bad line is fatal.
"""
from __future__ import annotations
import re
from typing import IO, Iterable, Iterator, Optional, Union

from ..errors import ResourceError, TraceFormatError
from .entry import AccessKind, TraceEntry

TraceItem = Union[TraceEntry, TraceFormatError]

RECORD_SIZE = 40
_RECORD_RE = re.compile(r"^([0-9a-fA-F]{16}) ([0-9a-fA-F]{16}) ([RWrw]) (\d{3})$")


def _parse_record(match: re.Match) -> TraceEntry:
    pc, address, kind, size = match.groups()
    return TraceEntry(AccessKind.parse(kind), int(address, 16), int(size), pc=int(pc, 16))


def _parse_free_form(text: str) -> TraceEntry:
    tokens = text.replace(",", " ").split()
    if len(tokens) not in (2, 3):
        raise ValueError(f"expected '<op> <address> [size]', got {len(tokens)} fields")
    kind = AccessKind.parse(tokens[0])
    try:
        address = int(tokens[1], 16)
    except ValueError:
        raise ValueError(f"bad hex address {tokens[1]!r}") from None
    size = 1
    if len(tokens) == 3:
        try:
            size = int(tokens[2], 10)
        except ValueError:
            raise ValueError(f"bad access size {tokens[2]!r}") from None
    return TraceEntry(kind, address, size)


def parse_line(text: str, line_no: Optional[int] = None) -> Optional[TraceEntry]:
    """Parses one trace line. Returns None for blank/comment lines, raises TraceFormatError otherwise."""
    text = text.strip()
    if not text or text.startswith("#"):
        return None
    match = _RECORD_RE.match(text)
    if match:
        return _parse_record(match)
    try:
        return _parse_free_form(text)
    except ValueError as e:
        raise TraceFormatError(str(e), line=line_no) from None


def iter_trace(lines: Iterable[str]) -> Iterator[TraceItem]:
    """Lazily parses trace lines. Malformed lines come out as TraceFormatError items."""
    for line_no, text in enumerate(lines, start=1):
        try:
            entry = parse_line(text, line_no)
        except TraceFormatError as e:
            yield e
            continue
        if entry is not None:
            yield entry


def _iter_file(f: IO[str]) -> Iterator[TraceItem]:
    with f:
        yield from iter_trace(f)


def load_trace(path: str) -> Iterator[TraceItem]:
    """Opens a trace file and returns a lazy, single-pass iterator over its entries."""
    try:
        f = open(path, "r", encoding="ascii", errors="replace", buffering=RECORD_SIZE * 4096)
    except OSError as e:
        raise ResourceError(f"Couldn't open the trace file at path {path}: {e}") from e
    return _iter_file(f)
