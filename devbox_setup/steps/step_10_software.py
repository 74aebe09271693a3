from __future__ import annotations

import logging
from typing import List, Optional

from ..context import ModuleContext
from ..errors import ModuleExecutionError
from ..lib.manifests import load_software_manifest
from ..lib.pkg import ensure_package

logger = logging.getLogger(__name__)


class InstallSoftwareStep:
    step_id = "software-install"

    def run(self, ctx: ModuleContext) -> Optional[str]:
        entries = load_software_manifest(ctx.config.software_manifest)

        installed = 0
        present = 0
        failed: List[str] = []
        for entry in entries:
            logger.info("[%s] %s (%s)", entry.category, entry.name, entry.id)
            try:
                if ensure_package(ctx, entry.id, source=entry.source):
                    installed += 1
                else:
                    present += 1
            except (RuntimeError, OSError) as e:
                # Keep going; one broken package must not block the rest.
                logger.error("Install failed for %s: %s", entry.id, e)
                failed.append(entry.id)

        if failed:
            raise ModuleExecutionError(f"{len(failed)} package(s) failed: {', '.join(failed)}")
        return f"{installed} installed, {present} already present"
