from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from ..context import ModuleContext
from ..errors import ModuleExecutionError
from ..lib.registry import Value, apply_values

logger = logging.getLogger(__name__)

SERVICE = "DiagTrack"

POLICIES: List[Tuple[str, str, Value, str]] = [
    (r"HKLM\SOFTWARE\Policies\Microsoft\Windows\DataCollection", "AllowTelemetry", 0, "REG_DWORD"),
    (r"HKCU\Software\Microsoft\Windows\CurrentVersion\AdvertisingInfo", "Enabled", 0, "REG_DWORD"),
    (r"HKCU\Software\Microsoft\Windows\CurrentVersion\Privacy", "TailoredExperiencesWithDiagnosticDataEnabled", 0, "REG_DWORD"),
    (r"HKCU\Software\Microsoft\Siuf\Rules", "NumberOfSIUFInPeriod", 0, "REG_DWORD"),
]


def service_disabled(ctx: ModuleContext, name: str) -> bool:
    r = ctx.probe(["sc.exe", "qc", name])
    if r is None or not r.ok:
        return False
    return any("START_TYPE" in line and "DISABLED" in line for line in r.stdout.splitlines())


class TelemetryStep:
    step_id = "telemetry"

    def run(self, ctx: ModuleContext) -> Optional[str]:
        changed, failures = apply_values(ctx, POLICIES)

        if service_disabled(ctx, SERVICE):
            logger.info("%s already disabled", SERVICE)
        else:
            try:
                ctx.run(["sc.exe", "config", SERVICE, "start=", "disabled"])
                # Stopping an already-stopped service exits non-zero; that is fine.
                ctx.run(["sc.exe", "stop", SERVICE], check=False)
                changed += 1
            except (RuntimeError, OSError) as e:
                logger.error("Unable to disable %s: %s", SERVICE, e)
                failures.append(f"service {SERVICE}")

        if failures:
            raise ModuleExecutionError(f"Could not apply: {', '.join(failures)}")
        return f"{changed} privacy setting(s) changed"
