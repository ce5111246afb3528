from __future__ import annotations
import json
from pathlib import Path
from typing import Any, Dict, Optional
from ..config import SimConfig
from ..runtime.stats import SimulationResult
from . import viz

def generate_report_json(result: SimulationResult, config: SimConfig,
                         timings: Optional[Dict[str, float]] = None) -> Dict[str, Any]:
    """Generates a JSON-compatible dictionary from the simulation result."""
    report_data = result.to_dict()
    report_data["error_samples"] = list(result.error_samples)
    report_data["uninitialised_lines"] = {
        level.name: count for level, count in zip(result.levels, result.uninitialised_lines)
    }
    report_data["config"] = {
        "address_bits": config.address_bits,
        "strict": config.strict,
        "split_accesses": config.split_accesses,
        "caches": [c.to_dict() for c in config.caches],
    }
    if timings:
        report_data["timings"] = dict(timings)
    return report_data

def format_summary(report_data: Dict[str, Any]) -> str:
    """Human readable console summary of a report."""
    lines = []
    for level in report_data["caches"]:
        lines.append(f"{level['name']}:")
        lines.append(f"  {'accesses':<14}: {level['accesses']}")
        lines.append(f"  {'hits':<14}: {level['hits']} ({level['hit_rate']:.2%})")
        lines.append(f"  {'misses':<14}: {level['misses']} ({level['miss_rate']:.2%})")
        lines.append(f"  {'evictions':<14}: {level['evictions']}")
        lines.append(f"  {'writebacks':<14}: {level['writebacks']}")
        lines.append(f"  {'writethroughs':<14}: {level['writethroughs']}")
        if level.get('total_cycles') is not None:
            lines.append(f"  {'cycles':<14}: {level['total_cycles']}")
            lines.append(f"  {'AMAT':<14}: {level['average_access_time']:.2f} cycles")
    lines.append(f"Main memory accesses: {report_data['main_memory_accesses']}")
    if report_data.get('trace_errors'):
        lines.append(f"Malformed trace entries skipped: {report_data['trace_errors']}")
    return "\n".join(lines)

def generate_report(result: SimulationResult, config: SimConfig,
                    timings: Optional[Dict[str, float]] = None) -> Dict[str, Any]:
    """Generates all report artifacts."""
    report_data = generate_report_json(result, config, timings)

    if config.report_dir:
        output_dir = Path(config.report_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

        with open(output_dir / "report.json", "w") as f:
            json.dump(report_data, f, indent=4)

        viz.export_stats_chart(report_data['caches'], str(output_dir / "report.html"))
        print(f"\nReports generated in {output_dir.absolute()}")

    print(viz.export_stats_ascii(report_data['caches']))
    print(format_summary(report_data))
    return report_data
