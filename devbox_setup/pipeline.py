from __future__ import annotations

import logging
from typing import Callable, Sequence

from .catalog import MODULES, ModuleDescriptor, master_order, validate_entry_points
from .context import ModuleContext
from .report import ModuleResult, RunReport, RunReporter
from .selection import RunConfiguration

logger = logging.getLogger(__name__)

Runner = Callable[[ModuleDescriptor, ModuleContext], ModuleResult]


def run_pipeline(
    *,
    config: RunConfiguration,
    context: ModuleContext,
    reporter: RunReporter,
    modules: Sequence[ModuleDescriptor] = MODULES,
    runner: Runner | None = None,
) -> RunReport:
    """Run the selected modules in master order; a failure never stops the rest."""

    if runner is None:
        from .runner import run_module

        runner = run_module

    unresolved = validate_entry_points(modules)
    if unresolved:
        logger.warning("%d module(s) will fail to resolve: %s", len(unresolved), ", ".join(sorted(unresolved)))

    plan = [m for m in master_order(modules) if config.includes(m)]
    logger.info("Plan (%s): %s", context.dry_run.label, ", ".join(m.id for m in plan) or "(nothing)")

    ran: set[str] = set()
    for idx, descriptor in enumerate(plan, start=1):
        if descriptor.id in ran:
            logger.warning("Skipping %s (already ran in this invocation)", descriptor.id)
            continue
        ran.add(descriptor.id)

        logger.info("[%d/%d] %s", idx, len(plan), descriptor.display_name)
        result = runner(descriptor, context)
        reporter.record(result)

    return reporter.finalize()
