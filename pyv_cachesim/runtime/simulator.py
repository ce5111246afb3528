from __future__ import annotations
from typing import Iterable

from ..config import SimConfig
from ..utils.logging import get_logger
from .engine import SimulationEngine
from .stats import SimulationResult

logger = get_logger(__name__)


def run(trace: Iterable, config: SimConfig) -> SimulationResult:
    """
    Runs the simulation for a trace and configuration.

    This is the main entry point for the runtime simulation. `trace` is any
    iterable of TraceEntry items (a reader may also yield TraceFormatError
    items for lines it could not parse); it is consumed once, in order.
    """
    levels = ", ".join(
        f"{c.name}({c.num_sets}x{c.associativity}x{c.line_size_bytes}B {c.replacement_policy} {c.write_policy})"
        for c in config.caches
    )
    logger.debug("Running simulation with %s", levels)

    engine = SimulationEngine(config)
    result = engine.run(trace)

    if result.trace_errors:
        logger.warning("%d malformed trace entries were skipped", result.trace_errors)
    return result
