import json
import yaml
import pytest
from pathlib import Path
from pyv_cachesim.cli.main import build_parser, main


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "config.yaml"
    with open(path, "w") as f:
        yaml.dump({"caches": [
            {"name": "L1", "size": 512, "line_size": 64, "kind": "2way", "replacement_policy": "lru"},
            {"name": "L2", "size": 4096, "line_size": 64, "kind": "4way", "replacement_policy": "fifo"},
        ]}, f)
    return path


@pytest.fixture
def trace_file(tmp_path: Path) -> Path:
    path = tmp_path / "trace.out"
    path.write_text("R 0x0\nR 0x0\nW 0x40\nR 0x1000\n")
    return path


def parse_stdout_json(out: str) -> dict:
    """The result JSON is the first thing printed."""
    decoder = json.JSONDecoder()
    data, _ = decoder.raw_decode(out.lstrip())
    return data


def test_parser_defaults():
    args = build_parser().parse_args(["c.yaml", "t.out"])
    assert args.config_path == "c.yaml"
    assert args.trace_path == "t.out"
    assert args.performance is None
    assert args.debug is None
    assert args.strict is None


def test_parser_flags():
    args = build_parser().parse_args(["c.yaml", "t.out", "-p", "--no-debug", "--strict", "--report", "out"])
    assert args.performance is True
    assert args.debug is False
    assert args.strict is True
    assert args.report_dir == "out"


def test_cli_run_prints_json_result(config_file, trace_file, capsys):
    exit_code = main([str(config_file), str(trace_file), "--no-debug"])

    assert exit_code == 0
    result = parse_stdout_json(capsys.readouterr().out)
    l1, l2 = result["caches"]
    assert (l1["hits"], l1["misses"]) == (1, 3)
    assert (l2["hits"], l2["misses"]) == (0, 3)
    assert result["main_memory_accesses"] == 3


def test_cli_performance_flag_reports_timings(config_file, trace_file, capsys):
    assert main([str(config_file), str(trace_file), "-p", "--no-debug"]) == 0
    out = capsys.readouterr().out
    assert "Simulation time:" in out
    assert "Load time:" in out


def test_cli_debug_logs_uninitialised_lines(config_file, trace_file, caplog):
    import logging
    with caplog.at_level(logging.DEBUG, logger="pyv_cachesim"):
        assert main([str(config_file), str(trace_file), "--debug"]) == 0
    assert "Uninitialised cache lines by level" in caplog.text


def test_cli_writes_reports(config_file, trace_file, tmp_path, capsys):
    report_dir = tmp_path / "report"
    assert main([str(config_file), str(trace_file), "--no-debug", "--report", str(report_dir)]) == 0
    assert (report_dir / "report.json").exists()
    assert (report_dir / "report.html").exists()


def test_cli_missing_trace_exits_non_zero(config_file, tmp_path):
    assert main([str(config_file), str(tmp_path / "missing.out"), "--no-debug"]) == 1


def test_cli_invalid_config_exits_non_zero(tmp_path, trace_file):
    bad = tmp_path / "bad.yaml"
    bad.write_text("caches:\n  - line_size: 48\n")
    assert main([str(bad), str(trace_file), "--no-debug"]) == 1


def test_cli_strict_mode_fails_on_malformed_entry(config_file, tmp_path):
    trace = tmp_path / "bad.out"
    trace.write_text("R 0x0\nnot a trace line\n")
    assert main([str(config_file), str(trace), "--no-debug"]) == 0
    assert main([str(config_file), str(trace), "--no-debug", "--strict"]) == 1


def test_cli_unknown_config_key_exits_non_zero(tmp_path, trace_file):
    config = tmp_path / "extra.yaml"
    config.write_text("caches:\n  - size: 512\n    line_size: 64\nfirst_level: 1\n")
    assert main([str(config), str(trace_file), "--no-debug"]) == 1
