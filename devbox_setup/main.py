from __future__ import annotations

import argparse
import logging
import sys
from typing import Callable, List, Optional

from rich.console import Console

from . import dry_run as dry_run_flag
from .catalog import MODULES, TOGGLES, master_order
from .config import load_setup_config
from .context import ModuleContext
from .errors import PreconditionError
from .lib.env import make_run_paths
from .logging_utils import configure_logging
from .pipeline import run_pipeline
from .preflight import CANCELLED, RELAUNCHED, check_privileges, ensure_bootstrap
from .report import RunReport, RunReporter
from .selection import TOGGLE_LABELS, resolve_selection, skip_dest

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_STARTUP_FAILURE = 1


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="devbox-setup", description="Provision a developer workstation.")
    for t in TOGGLES:
        p.add_argument(f"--skip-{t}", dest=skip_dest(t), action="store_true", help=f"Skip: {TOGGLE_LABELS[t]}")
    p.add_argument("--dry-run", action="store_true", help="Preview every change without applying it")
    p.add_argument("--no-menu", action="store_true", help="Do not show the interactive menu")
    p.add_argument("--config", default=None, help="Optional YAML config (git identity, env vars, ...)")
    p.add_argument("--manifest", default=None, help="Software manifest (YAML) overriding the built-in one")
    p.add_argument("--log-dir", default=None, help="Directory for the log, report and hardware artifact")
    p.add_argument("--resume-config", default=None, help="Load a saved run configuration (used by elevated relaunch)")
    p.add_argument("--list-modules", action="store_true", help="Print the module table and exit")
    return p


def _passthrough(args: argparse.Namespace) -> List[str]:
    out: List[str] = []
    for flag, value in (("--config", args.config), ("--manifest", args.manifest), ("--log-dir", args.log_dir)):
        if value:
            out += [flag, value]
    return out


def list_modules(console: Console) -> None:
    for m in master_order(MODULES):
        flag = f"--skip-{m.toggle}" if m.skippable and m.toggle else "(always runs)"
        console.print(f"{m.order:>3}  {m.id:<20} {m.display_name:<32} {flag}")


def run(
    args: argparse.Namespace,
    *,
    ask: Optional[Callable[[str], str]] = None,
    interactive: Optional[bool] = None,
    console: Optional[Console] = None,
) -> int:
    """Resolve the selection, run the modules and report. Returns the process exit code."""

    console = console or Console(stderr=True)
    if interactive is None:
        interactive = sys.stdin.isatty()
    if ask is None and interactive:
        ask = console.input

    paths = make_run_paths(args.log_dir)
    configure_logging(log_path=str(paths.log_file))

    try:
        config = resolve_selection(args, ask=ask, say=console.print, interactive=interactive)
    except (OSError, ValueError) as e:
        logger.error("Cannot start: unusable saved configuration: %s", e)
        return EXIT_STARTUP_FAILURE
    if config is None:
        return EXIT_OK

    # Established once, before any module runs; child processes inherit it.
    dry = dry_run_flag.establish(config.dry_run)
    logger.info("Mode: %s; modules: %s", dry.label, ", ".join(config.ordered_ids()))

    try:
        setup_config = load_setup_config(args.config)
        if args.manifest:
            setup_config.raw.setdefault("software", {})["manifest"] = args.manifest
        ensure_bootstrap(dry_run=dry.enabled)
    except PreconditionError as e:
        logger.error("Cannot start: %s", e)
        return EXIT_STARTUP_FAILURE
    except (OSError, ValueError) as e:
        logger.error("Cannot start: invalid configuration: %s", e)
        return EXIT_STARTUP_FAILURE

    verdict = check_privileges(config, interactive=interactive, ask=ask, passthrough=_passthrough(args))
    if verdict in (CANCELLED, RELAUNCHED):
        return EXIT_OK

    reporter = RunReporter(RunReport(dry_run=dry.enabled), console=console)
    context = ModuleContext(dry_run=dry_run_flag.current(), paths=paths, config=setup_config)
    report = run_pipeline(config=config, context=context, reporter=reporter)

    reporter.render()
    reporter.write(paths.report_file)
    if report.failed:
        logger.warning("Setup finished with %d failed module(s); review and re-run as needed", report.failed)
    else:
        logger.info("Setup finished")
    return EXIT_OK


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    if args.list_modules:
        list_modules(Console())
        return EXIT_OK
    return run(args)


def cli() -> int:
    try:
        return main()
    except KeyboardInterrupt:
        logger.warning("Interrupted")
        return 130
