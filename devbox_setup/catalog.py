from __future__ import annotations

import importlib
import importlib.util
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .errors import ResolutionError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EntryPoint:
    """Typed reference to a module implementation.

    kind "callable": ``"package.module:ClassName"``, instantiated and called in-process.
    kind "process":  ``"package.module"``, run as ``python -m`` in a child process.
    """

    kind: str
    target: str

    def resolve(self) -> Any:
        if self.kind == "callable":
            mod_name, _, attr = self.target.partition(":")
            if not attr:
                raise ResolutionError(f"Entry point {self.target!r} has no ':attribute'")
            try:
                mod = importlib.import_module(mod_name)
            except ImportError as e:
                raise ResolutionError(f"Cannot import {mod_name}: {e}") from e
            obj = getattr(mod, attr, None)
            if obj is None:
                raise ResolutionError(f"{mod_name} has no attribute {attr}")
            return obj
        if self.kind == "process":
            try:
                spec = importlib.util.find_spec(self.target)
            except (ImportError, ValueError) as e:
                raise ResolutionError(f"Cannot locate {self.target}: {e}") from e
            if spec is None:
                raise ResolutionError(f"Cannot locate {self.target}")
            return self.target
        raise ResolutionError(f"Unknown entry point kind {self.kind!r}")


@dataclass(frozen=True)
class ModuleDescriptor:
    id: str
    display_name: str
    entry_point: EntryPoint
    order: int
    toggle: Optional[str] = None
    skippable: bool = True
    params: Tuple[str, ...] = ()


def _step(name: str) -> str:
    return f"devbox_setup.steps.{name}"


MODULES: Tuple[ModuleDescriptor, ...] = (
    ModuleDescriptor(
        "prerequisites", "Install prerequisites",
        EntryPoint("callable", _step("step_00_prerequisites:PrerequisitesStep")), 0, skippable=False,
    ),
    ModuleDescriptor(
        "package-manager", "Bootstrap package manager",
        EntryPoint("callable", _step("step_05_package_manager:PackageManagerStep")), 5, skippable=False,
    ),
    ModuleDescriptor(
        "software-install", "Install software",
        EntryPoint("callable", _step("step_10_software:InstallSoftwareStep")), 10, toggle="software",
    ),
    ModuleDescriptor(
        "system-config", "Configure system preferences",
        EntryPoint("callable", _step("step_20_system_config:SystemConfigStep")), 20, toggle="system-config",
    ),
    ModuleDescriptor(
        "telemetry", "Disable telemetry",
        EntryPoint("callable", _step("step_30_telemetry:TelemetryStep")), 30, toggle="telemetry",
    ),
    ModuleDescriptor(
        "environment", "Set environment variables",
        EntryPoint("callable", _step("step_40_environment:EnvironmentStep")), 40, toggle="environment",
    ),
    ModuleDescriptor(
        "git-config", "Configure Git identity",
        EntryPoint("callable", _step("step_50_git_config:GitConfigStep")), 50, toggle="git-config",
    ),
    ModuleDescriptor(
        "fonts", "Install terminal fonts",
        EntryPoint("callable", _step("step_60_fonts:FontsStep")), 60, skippable=False,
    ),
    ModuleDescriptor(
        "powershell-profile", "Configure PowerShell profile",
        EntryPoint("callable", _step("step_70_powershell_profile:PowerShellProfileStep")), 70, toggle="powershell",
    ),
    ModuleDescriptor(
        "hardware-detect", "Detect hardware",
        EntryPoint("callable", _step("step_80_detect_hardware:DetectHardwareStep")), 80, toggle="drivers",
        params=("hardware_artifact",),
    ),
    ModuleDescriptor(
        "driver-install", "Install drivers",
        EntryPoint("callable", _step("step_85_install_drivers:InstallDriversStep")), 85, toggle="drivers",
        params=("hardware_artifact",),
    ),
    ModuleDescriptor(
        "wsl", "Enable WSL",
        EntryPoint("process", _step("step_90_wsl")), 90, toggle="wsl",
    ),
)


# Toggle ids in CLI order; each maps to a --skip-<toggle> flag.
TOGGLES: Tuple[str, ...] = (
    "software",
    "system-config",
    "environment",
    "drivers",
    "wsl",
    "telemetry",
    "powershell",
    "git-config",
)


def master_order(modules: Sequence[ModuleDescriptor] = MODULES) -> List[ModuleDescriptor]:
    """Modules sorted by ``order``; ties keep declaration order."""

    indexed = list(enumerate(modules))
    indexed.sort(key=lambda pair: (pair[1].order, pair[0]))
    return [m for _, m in indexed]


def modules_for_toggles(toggles: Sequence[str], modules: Sequence[ModuleDescriptor] = MODULES) -> List[str]:
    wanted = set(toggles)
    return [m.id for m in master_order(modules) if (not m.skippable) or (m.toggle in wanted)]


def validate_entry_points(modules: Sequence[ModuleDescriptor] = MODULES) -> Dict[str, str]:
    """Resolve every entry point up front. Returns {module_id: error} for the ones that fail."""

    problems: Dict[str, str] = {}
    seen: set[str] = set()
    for m in modules:
        if m.id in seen:
            problems[m.id] = "duplicate module id"
            continue
        seen.add(m.id)
        try:
            m.entry_point.resolve()
        except ResolutionError as e:
            problems[m.id] = str(e)
    for module_id, err in problems.items():
        logger.error("Module %s cannot be resolved: %s", module_id, err)
    return problems
