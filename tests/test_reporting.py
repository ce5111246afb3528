import json
from pathlib import Path
import pytest
from pyv_cachesim.config import CacheConfig, SimConfig
from pyv_cachesim.runtime.stats import SimulationResult, Statistics
from pyv_cachesim.utils.reporting import format_summary, generate_report, generate_report_json


@pytest.fixture
def sample_config():
    """Provides a two-level SimConfig."""
    return SimConfig(caches=[
        CacheConfig(name="L1", line_size_bytes=64, num_sets=4, associativity=2, hit_latency_cycles=1, miss_latency_cycles=10),
        CacheConfig(name="L2", line_size_bytes=64, num_sets=16, associativity=4),
    ])


@pytest.fixture
def sample_result():
    return SimulationResult(
        levels=(
            Statistics(name="L1", accesses=100, hits=80, misses=20, evictions=12, writebacks=3,
                       total_cycles=280, hit_latency_cycles=1, miss_latency_cycles=10),
            Statistics(name="L2", accesses=20, hits=5, misses=15, evictions=0),
        ),
        entries=101,
        trace_errors=1,
        error_samples=("entry 7: bad hex address 'zz'",),
        uninitialised_lines=(0, 49),
        finished=True,
    )


def test_generate_report_json(sample_result, sample_config):
    """Tests the creation of the JSON report."""
    report = generate_report_json(sample_result, sample_config)

    assert report["main_memory_accesses"] == 15
    assert report["trace_errors"] == 1
    assert report["entries"] == 101
    assert report["error_samples"] == ["entry 7: bad hex address 'zz'"]
    assert report["uninitialised_lines"] == {"L1": 0, "L2": 49}
    assert report["total_cycles"] == 280

    l1 = report["caches"][0]
    assert l1["name"] == "L1"
    assert l1["hit_rate"] == pytest.approx(0.8)
    assert l1["average_access_time"] == pytest.approx(1 + 0.2 * 10)
    assert report["caches"][1]["average_access_time"] is None

    assert [c["name"] for c in report["config"]["caches"]] == ["L1", "L2"]
    assert "timings" not in report

    # Must be serialisable as-is
    json.dumps(report)


def test_generate_report_json_with_timings(sample_result, sample_config):
    report = generate_report_json(sample_result, sample_config, {"simulation_seconds": 0.5})
    assert report["timings"] == {"simulation_seconds": 0.5}


def test_format_summary(sample_result, sample_config):
    summary = format_summary(generate_report_json(sample_result, sample_config))
    assert "L1:" in summary
    assert "80 (80.00%)" in summary
    assert "AMAT" in summary
    assert "Main memory accesses: 15" in summary
    assert "Malformed trace entries skipped: 1" in summary


def test_generate_report_full(sample_result, sample_config, tmp_path: Path, capsys):
    """Tests the main generate_report function that writes all artifacts."""
    sample_config.report_dir = str(tmp_path)

    generate_report(sample_result, sample_config)

    # Check for JSON report
    report_file = tmp_path / "report.json"
    assert report_file.exists()
    assert json.loads(report_file.read_text())["main_memory_accesses"] == 15

    # Check for HTML report
    html_file = tmp_path / "report.html"
    assert html_file.exists()
    content = html_file.read_text(encoding='utf-8')
    assert "Cache Simulation Statistics" in content

    # Check for the ASCII chart and summary in stdout
    captured = capsys.readouterr()
    assert "ASCII Chart" in captured.out
    assert "Main memory accesses: 15" in captured.out


def test_generate_report_without_report_dir(sample_result, sample_config, tmp_path: Path, capsys):
    report = generate_report(sample_result, sample_config)
    assert report["main_memory_accesses"] == 15
    assert "Reports generated" not in capsys.readouterr().out
