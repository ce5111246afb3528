from __future__ import annotations
import argparse
import json
import sys
import time
from ..config import SimConfig
from ..errors import ConfigurationError, ResourceError, TraceFormatError
from ..runtime.engine import SimulationEngine
from ..trace.reader import load_trace
from ..utils.logging import get_logger, set_debug
from ..utils.reporting import generate_report

logger = get_logger("pyv_cachesim.cli")

# Debug output is on by default unless Python runs with -O.
DEBUG_DEFAULT = __debug__


def cmd_run(args) -> int:
    """Handles a simulation run. Returns the process exit code."""
    start = time.perf_counter()
    config = SimConfig.from_args(args)
    debug = DEBUG_DEFAULT if config.debug is None else config.debug
    set_debug(debug)

    if debug:
        logger.debug("Parsed input configuration: %s", config)

    engine = SimulationEngine(config)
    trace = load_trace(config.trace_path)
    load_time = time.perf_counter() - start

    sim_start = time.perf_counter()
    result = engine.run(trace)
    simulation_time = time.perf_counter() - sim_start

    print(json.dumps(result.to_dict(), indent=2))

    timings = None
    if config.performance:
        total_time = time.perf_counter() - start
        timings = {"load_seconds": load_time, "simulation_seconds": simulation_time, "total_seconds": total_time}
        print(f"Load time: {load_time}s")
        print(f"Simulation time: {simulation_time}s")
        print(f"Total execution time (includes initial parsing, configuration, and output): {total_time}s")

    if config.report_dir:
        generate_report(result, config, timings)

    if debug:
        formatted = ", ".join(f"{level.name}: {count}" for level, count in zip(result.levels, result.uninitialised_lines))
        logger.debug("Uninitialised cache lines by level: (%s)", formatted)
        logger.debug("Total uninitialised cache lines: %d", sum(result.uninitialised_lines))
    return 0


def build_parser():
    p = argparse.ArgumentParser(
        prog="pyv-cachesim",
        description="Trace-driven cache hierarchy simulator",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    p.add_argument("config_path", help="Path to the YAML/JSON cache configuration")
    p.add_argument("trace_path", help="Path to the memory access trace")
    p.add_argument("-p", "--performance", action="store_true", default=None,
                   help="Report load and simulation wall-clock times")
    p.add_argument("-d", "--debug", action=argparse.BooleanOptionalAction, default=None,
                   help=f"Verbose diagnostics (default: {DEBUG_DEFAULT})")
    p.add_argument("--strict", action="store_true", default=None,
                   help="Stop at the first malformed trace entry")
    p.add_argument("--split-accesses", action="store_true", default=None, dest="split_accesses",
                   help="Split accesses that span several cache lines into one access per line")
    p.add_argument("--report", type=str, default=None, dest="report_dir",
                   help="Directory to save JSON/HTML reports")
    p.set_defaults(func=cmd_run)
    return p


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        return args.func(args)
    except (ConfigurationError, ResourceError) as e:
        logger.error("%s", e)
        return 1
    except TraceFormatError as e:
        logger.error("Fatal trace error at %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
