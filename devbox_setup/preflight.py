"""Startup checks that run before any module.

  1. Elevated privileges (waived in dry-run)
  2. Package-manager bootstrap tool present (auto-install attempted)

Only a bootstrap tool that cannot be installed is fatal; missing privileges
can be remedied by relaunching elevated, or accepted with a warning.
"""

from __future__ import annotations

import logging
import tempfile
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from .errors import PreconditionError
from .lib import command
from .lib.command import CmdResult
from .lib.pkg import WINGET
from .lib.powershell import ps_argv
from .lib.privileges import is_admin, relaunch_elevated
from .selection import RunConfiguration
from .state_store import save_state

logger = logging.getLogger(__name__)

PROCEED = "proceed"
RELAUNCHED = "relaunched"
CANCELLED = "cancelled"

APP_INSTALLER_FAMILY = "Microsoft.DesktopAppInstaller_8wekyb3d8bbwe"


def persist_configuration(config: RunConfiguration, directory: Optional[str] = None) -> Path:
    """Write the resolved configuration where an elevated copy can pick it up."""

    d = Path(directory or tempfile.gettempdir())
    path = d / "devbox-setup-resume.json"
    save_state(str(path), config.as_dict())
    return path


def relaunch_args(config: RunConfiguration, resume_path: Path, passthrough: Sequence[str] = ()) -> List[str]:
    return [*passthrough, "--resume-config", str(resume_path), *config.to_argv()]


def check_privileges(
    config: RunConfiguration,
    *,
    interactive: bool,
    ask: Optional[Callable[[str], str]] = None,
    passthrough: Sequence[str] = (),
    admin_check: Callable[[], bool] = is_admin,
    relaunch: Callable[[Sequence[str]], bool] = relaunch_elevated,
) -> str:
    if config.dry_run:
        logger.info("Dry run: administrator check waived")
        return PROCEED
    if admin_check():
        return PROCEED

    logger.warning("Not running with administrator rights; some modules may fail")
    if not interactive or ask is None:
        logger.warning("Continuing without elevation")
        return PROCEED

    while True:
        try:
            choice = ask("[R]elaunch elevated, [C]ontinue anyway, [Q]uit? ").strip().lower()
        except EOFError:
            return CANCELLED
        if choice in {"r", "relaunch"}:
            resume = persist_configuration(config)
            if relaunch(relaunch_args(config, resume, passthrough)):
                logger.info("Elevated copy started; this window can be closed")
                return RELAUNCHED
            logger.error("Elevation was refused or failed")
            continue
        if choice in {"c", "continue"}:
            logger.warning("Continuing without elevation")
            return PROCEED
        if choice in {"q", "quit"}:
            logger.info("Setup cancelled by user")
            return CANCELLED
        logger.warning("Unrecognized choice %r", choice)


def _winget_ok(probe: Callable[[Sequence[str]], Optional[CmdResult]]) -> bool:
    r = probe([WINGET, "--version"])
    return r is not None and r.ok


def ensure_bootstrap(
    *,
    dry_run: bool,
    probe: Optional[Callable[[Sequence[str]], Optional[CmdResult]]] = None,
    runner: Optional[Callable[..., CmdResult]] = None,
) -> None:
    """Make sure winget exists; raise PreconditionError if it cannot be provided."""

    probe = probe or command.probe_cmd
    runner = runner or command.run_cmd

    if _winget_ok(probe):
        return
    if dry_run:
        logger.warning("winget not found; a live run would try to install App Installer")
        return

    logger.warning("winget not found; registering App Installer")
    try:
        runner(ps_argv(f"Add-AppxPackage -RegisterByFamilyName -MainPackage {APP_INSTALLER_FAMILY}"))
    except (RuntimeError, OSError) as e:
        raise PreconditionError(f"winget is missing and could not be installed: {e}") from e

    if not _winget_ok(probe):
        raise PreconditionError("winget is still unavailable after installing App Installer")
    logger.info("winget installed")
