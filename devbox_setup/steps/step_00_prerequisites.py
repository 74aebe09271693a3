from __future__ import annotations

import logging
from typing import Optional

from ..context import ModuleContext
from ..lib.powershell import ps_argv

logger = logging.getLogger(__name__)

ACCEPTED_POLICIES = {"remotesigned", "unrestricted", "bypass"}


class PrerequisitesStep:
    step_id = "prerequisites"

    def run(self, ctx: ModuleContext) -> Optional[str]:
        r = ctx.probe(ps_argv("Get-ExecutionPolicy -Scope CurrentUser"))
        current = r.stdout.strip() if (r is not None and r.ok) else ""
        if current.lower() in ACCEPTED_POLICIES:
            return f"execution policy already {current}"

        ctx.run(ps_argv("Set-ExecutionPolicy -Scope CurrentUser -ExecutionPolicy RemoteSigned -Force"))
        return "execution policy set to RemoteSigned"
