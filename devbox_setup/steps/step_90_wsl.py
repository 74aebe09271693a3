"""WSL enablement, run as a separate process.

Reads the dry-run flag from the environment at its own entry point; in
dry-run it prints intent lines instead of changing Windows features.
"""

from __future__ import annotations

import logging
import sys
from typing import Callable, Optional

from .. import dry_run as dry_run_flag
from ..dry_run import INTENT_PREFIX
from ..lib import command

logger = logging.getLogger(__name__)

WSL = "wsl.exe"
INSTALL_ARGV = [WSL, "--install", "--no-distribution"]


def wsl_enabled() -> bool:
    r = command.probe_cmd([WSL, "--status"])
    return r is not None and r.ok


def enable_wsl(*, dry_run: bool, emit: Callable[[str], None] = print) -> str:
    if wsl_enabled():
        emit("WSL already enabled")
        return "already enabled"
    if dry_run:
        emit(f"{INTENT_PREFIX} run {command.fmt_argv(INSTALL_ARGV)}")
    command.run_cmd(INSTALL_ARGV, dry_run=dry_run)
    emit("WSL enabled; a reboot may be required")
    return "enabled"


def main(argv: Optional[list[str]] = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(message)s", stream=sys.stderr)
    dry = dry_run_flag.current()
    try:
        enable_wsl(dry_run=dry.enabled)
    except (RuntimeError, OSError) as e:
        print(f"WSL setup failed: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
