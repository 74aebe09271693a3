from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..context import ModuleContext
from ..errors import HandoffError, ModuleExecutionError
from ..lib.hwdetect import hardware_vendors
from ..lib.manifests import load_driver_manifest
from ..lib.pkg import ensure_package

logger = logging.getLogger(__name__)


def read_hardware_artifact(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise HandoffError(f"Hardware descriptor not found at {path}; hardware detection must run first")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except ValueError as e:
        raise HandoffError(f"Hardware descriptor {path} is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise HandoffError(f"Hardware descriptor {path} must contain an object")
    return data


class InstallDriversStep:
    step_id = "driver-install"

    def run(self, ctx: ModuleContext, *, hardware_artifact: Path) -> Optional[str]:
        hw = read_hardware_artifact(hardware_artifact)
        table = load_driver_manifest()

        packages: List[str] = []
        for section, vendor in hardware_vendors(hw):
            for pkg in table.get(section, {}).get(vendor, []):
                if pkg not in packages:
                    packages.append(pkg)

        if not packages:
            return "no vendor driver packages apply"

        failed: List[str] = []
        for pkg in packages:
            try:
                ensure_package(ctx, pkg)
            except (RuntimeError, OSError) as e:
                logger.error("Driver package %s failed: %s", pkg, e)
                failed.append(pkg)

        if failed:
            raise ModuleExecutionError(f"{len(failed)} driver package(s) failed: {', '.join(failed)}")
        return f"driver packages handled: {', '.join(packages)}"
