from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

from ..context import ModuleContext
from ..lib.hwdetect import detect_hardware, hardware_vendors

logger = logging.getLogger(__name__)


class DetectHardwareStep:
    step_id = "hardware-detect"

    def run(self, ctx: ModuleContext, *, hardware_artifact: Path) -> Optional[str]:
        # Driver installation must never plan from an earlier run's descriptor.
        hardware_artifact.unlink(missing_ok=True)

        # Read-only inspection; in dry-run an unavailable query is not an error.
        hw = detect_hardware(ctx.probe, strict=not ctx.dry_run)

        # The artifact is this tool's own hand-off file, not machine configuration,
        # so it is written in dry-run too: driver installation needs it to plan.
        hardware_artifact.parent.mkdir(parents=True, exist_ok=True)
        hardware_artifact.write_text(json.dumps(hw, indent=2, sort_keys=True) + "\n", encoding="utf-8")
        logger.info("Hardware descriptor written to %s", hardware_artifact)

        vendors = ", ".join(f"{s}:{v}" for s, v in hardware_vendors(hw)) or "no known vendors"
        return vendors
