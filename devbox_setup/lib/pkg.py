from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from ..context import ModuleContext

logger = logging.getLogger(__name__)

WINGET = "winget"


def winget_available(ctx: "ModuleContext") -> bool:
    r = ctx.probe([WINGET, "--version"])
    return r is not None and r.ok


def winget_has_package(ctx: "ModuleContext", package_id: str) -> bool:
    """Return True if winget reports the package as installed."""

    r = ctx.probe([WINGET, "list", "--id", package_id, "--exact", "--accept-source-agreements"])
    if r is None or not r.ok:
        return False
    return package_id.lower() in r.stdout.lower()


def winget_install(ctx: "ModuleContext", package_id: str, *, source: Optional[str] = None) -> None:
    argv = [
        WINGET,
        "install",
        "--id",
        package_id,
        "--exact",
        "--silent",
        "--accept-package-agreements",
        "--accept-source-agreements",
    ]
    if source:
        argv += ["--source", source]
    ctx.run(argv)


def ensure_package(ctx: "ModuleContext", package_id: str, *, source: Optional[str] = None) -> bool:
    """Install a package unless already present. Returns True if an install was (or would be) issued."""

    if winget_has_package(ctx, package_id):
        logger.info("Already installed: %s", package_id)
        return False
    winget_install(ctx, package_id, source=source)
    return True
