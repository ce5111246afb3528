import pytest
from pathlib import Path
from pyv_cachesim.errors import ResourceError, TraceFormatError
from pyv_cachesim.trace.entry import AccessKind, TraceEntry
from pyv_cachesim.trace.reader import RECORD_SIZE, iter_trace, load_trace, parse_line


def record(pc: int, address: int, kind: str, size: int) -> str:
    line = f"{pc:016x} {address:016x} {kind} {size:03d}\n"
    assert len(line) == RECORD_SIZE
    return line


def test_parse_fixed_record():
    entry = parse_line(record(0x400123, 0x7FFE0010, "W", 8))
    assert entry == TraceEntry(AccessKind.WRITE, 0x7FFE0010, 8, pc=0x400123)
    assert entry.is_write


@pytest.mark.parametrize("text, expected", [
    ("R 0x1f", TraceEntry(AccessKind.READ, 0x1F)),
    ("w 1f 4", TraceEntry(AccessKind.WRITE, 0x1F, 4)),
    ("read 0xdeadbeef", TraceEntry(AccessKind.READ, 0xDEADBEEF)),
    ("S 0x10,8", TraceEntry(AccessKind.WRITE, 0x10, 8)),
    ("  L 0x20  \n", TraceEntry(AccessKind.READ, 0x20)),
])
def test_parse_free_form(text, expected):
    assert parse_line(text) == expected


@pytest.mark.parametrize("text", ["", "   \n", "# a comment"])
def test_blank_and_comment_lines_are_skipped(text):
    assert parse_line(text) is None


@pytest.mark.parametrize("text, reason", [
    ("X 0x10", "Unknown access kind"),
    ("R 0xzz", "bad hex address"),
    ("R 0x10 four", "bad access size"),
    ("R", "expected '<op> <address> \\[size\\]'"),
])
def test_malformed_lines_raise(text, reason):
    with pytest.raises(TraceFormatError, match=reason) as excinfo:
        parse_line(text, line_no=12)
    assert excinfo.value.line == 12


def test_iter_trace_yields_errors_inline():
    items = list(iter_trace(["R 0x0", "# skip", "bogus line here now", "W 0x40"]))
    assert items[0] == TraceEntry.read(0)
    assert isinstance(items[1], TraceFormatError)
    assert items[1].line == 3
    assert items[2] == TraceEntry.write(0x40)


def test_load_trace_mixed_formats(tmp_path: Path):
    trace_file = tmp_path / "trace.out"
    trace_file.write_text(record(1, 0x1000, "R", 4) + "W 0x2000\n" + record(2, 0x1000, "R", 4))

    entries = list(load_trace(str(trace_file)))

    assert [e.address for e in entries] == [0x1000, 0x2000, 0x1000]
    assert [e.kind for e in entries] == [AccessKind.READ, AccessKind.WRITE, AccessKind.READ]


def test_load_trace_is_lazy(tmp_path: Path):
    trace_file = tmp_path / "trace.out"
    trace_file.write_text("R 0x0\nR 0x40\n")
    trace = load_trace(str(trace_file))
    assert next(trace) == TraceEntry.read(0)
    trace.close()


def test_load_trace_missing_file(tmp_path: Path):
    with pytest.raises(ResourceError, match="Couldn't open the trace file"):
        load_trace(str(tmp_path / "missing.out"))
