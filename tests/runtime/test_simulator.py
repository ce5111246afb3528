import logging
from conftest import reads
from pyv_cachesim.errors import TraceFormatError
from pyv_cachesim.runtime.simulator import run
from pyv_cachesim.trace.reader import iter_trace


def test_run_returns_finished_result(small_config):
    result = run(reads(0x0, 0x8, 0x40, 0x0), small_config)
    assert result.finished
    assert result.levels[0].hits == 2
    assert result.levels[0].misses == 2


def test_run_consumes_reader_output_lazily(small_config):
    consumed = []

    def lines():
        for text in ["R 0x0", "W 0x0", "R 0x100"]:
            consumed.append(text)
            yield text

    result = run(iter_trace(lines()), small_config)
    assert len(consumed) == 3
    assert result.levels[0].accesses == 3
    assert result.levels[0].hits == 1


def test_run_warns_about_malformed_entries(small_config, caplog):
    with caplog.at_level(logging.WARNING):
        result = run([TraceFormatError("garbage", line=1)] + reads(0x0), small_config)
    assert result.trace_errors == 1
    assert "1 malformed trace entries were skipped" in caplog.text
