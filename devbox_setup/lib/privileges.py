from __future__ import annotations

import logging
import os
import subprocess
import sys
from typing import Sequence

logger = logging.getLogger(__name__)


def is_admin() -> bool:
    """True when running elevated (Administrator on Windows, root elsewhere)."""

    if os.name == "nt":
        try:
            import ctypes

            return bool(ctypes.windll.shell32.IsUserAnAdmin())  # type: ignore[attr-defined]
        except (AttributeError, OSError):
            return False
    geteuid = getattr(os, "geteuid", None)
    return bool(geteuid and geteuid() == 0)


def relaunch_elevated(args: Sequence[str]) -> bool:
    """Start an elevated copy of this program with ``args``. Returns True if it was started."""

    argv = [sys.executable, "-m", "devbox_setup", *args]
    logger.info("Relaunching elevated: %s", " ".join(argv))

    if os.name == "nt":
        import ctypes
        from subprocess import list2cmdline

        rc = ctypes.windll.shell32.ShellExecuteW(  # type: ignore[attr-defined]
            None, "runas", sys.executable, list2cmdline(argv[1:]), None, 1
        )
        # ShellExecuteW returns a value > 32 on success.
        return int(rc) > 32

    try:
        subprocess.Popen(["sudo", *argv])
    except OSError as e:
        logger.error("Unable to relaunch with sudo: %s", e)
        return False
    return True
