from __future__ import annotations

import logging
from typing import Optional

from ..context import ModuleContext
from ..errors import ModuleExecutionError
from ..lib.pkg import WINGET, winget_available

logger = logging.getLogger(__name__)


class PackageManagerStep:
    step_id = "package-manager"

    def run(self, ctx: ModuleContext) -> Optional[str]:
        if not winget_available(ctx):
            if not ctx.dry_run:
                raise ModuleExecutionError("winget is not available; install App Installer from the Microsoft Store")
            ctx.note_intent("install App Installer (winget not found)")

        ctx.run([WINGET, "source", "update"])
        return "winget sources refreshed"
