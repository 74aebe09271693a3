from __future__ import annotations

import argparse
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, FrozenSet, Iterable, List, Optional, Sequence

from .catalog import MODULES, TOGGLES, ModuleDescriptor, master_order, modules_for_toggles
from .state_store import load_state

logger = logging.getLogger(__name__)

TOGGLE_LABELS: Dict[str, str] = {
    "software": "Software installation",
    "system-config": "System preferences",
    "environment": "Environment variables",
    "drivers": "Hardware detection + drivers",
    "wsl": "WSL",
    "telemetry": "Telemetry / privacy",
    "powershell": "PowerShell profile",
    "git-config": "Git identity",
}

QUICK_EXCLUDES = frozenset({"drivers", "wsl"})


def skip_dest(toggle: str) -> str:
    return "skip_" + toggle.replace("-", "_")


@dataclass(frozen=True)
class RunConfiguration:
    """Resolved user intent for one invocation; never changes once modules start."""

    dry_run: bool
    selected_module_ids: FrozenSet[str]
    source: str = "flags"

    @classmethod
    def from_toggles(
        cls,
        toggles: Iterable[str],
        *,
        dry_run: bool,
        source: str = "flags",
        modules: Sequence[ModuleDescriptor] = MODULES,
    ) -> "RunConfiguration":
        return cls(
            dry_run=bool(dry_run),
            selected_module_ids=frozenset(modules_for_toggles(list(toggles), modules)),
            source=source,
        )

    def includes(self, descriptor: ModuleDescriptor) -> bool:
        return (not descriptor.skippable) or descriptor.id in self.selected_module_ids

    def ordered_ids(self, modules: Sequence[ModuleDescriptor] = MODULES) -> List[str]:
        return [m.id for m in master_order(modules) if self.includes(m)]

    def included_toggles(self, modules: Sequence[ModuleDescriptor] = MODULES) -> List[str]:
        present = {m.toggle for m in modules if m.toggle and m.id in self.selected_module_ids}
        return [t for t in TOGGLES if t in present]

    def to_argv(self) -> List[str]:
        """Equivalent command-line flags (used for display and as a relaunch fallback)."""

        argv = [f"--skip-{t}" for t in TOGGLES if t not in self.included_toggles()]
        if self.dry_run:
            argv.append("--dry-run")
        argv.append("--no-menu")
        return argv

    def as_dict(self) -> Dict[str, Any]:
        return {
            "dry_run": self.dry_run,
            "selected_module_ids": sorted(self.selected_module_ids),
            "source": self.source,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], *, modules: Sequence[ModuleDescriptor] = MODULES) -> "RunConfiguration":
        known = {m.id for m in modules}
        ids = [str(x) for x in (data.get("selected_module_ids") or [])]
        unknown = sorted(set(ids) - known)
        if unknown:
            raise ValueError(f"Unknown module ids in saved configuration: {', '.join(unknown)}")
        always = {m.id for m in modules if not m.skippable}
        return cls(
            dry_run=bool(data.get("dry_run", False)),
            selected_module_ids=frozenset(ids) | always,
            source="resume",
        )


def selection_flags_supplied(args: argparse.Namespace) -> bool:
    """True if any skip/dry-run flag was given: scripting intent, so no menu."""

    if bool(getattr(args, "dry_run", False)):
        return True
    return any(bool(getattr(args, skip_dest(t), False)) for t in TOGGLES)


def from_flags(args: argparse.Namespace) -> RunConfiguration:
    toggles = [t for t in TOGGLES if not bool(getattr(args, skip_dest(t), False))]
    return RunConfiguration.from_toggles(toggles, dry_run=bool(getattr(args, "dry_run", False)))


class MenuState(Enum):
    MAIN = "main"
    CUSTOM = "custom"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


MAIN_MENU = """\
Developer workstation setup
  1) Full        - run every module
  2) Dry run     - preview every module, change nothing
  3) Custom      - choose modules
  4) Quick       - everything except drivers and WSL
  5) Quit
"""


@dataclass
class SetupMenu:
    """Interactive preset menu as an explicit state machine (MAIN <-> CUSTOM -> CONFIRMED|CANCELLED)."""

    ask: Callable[[str], str]
    say: Callable[[str], None] = print
    toggles: Dict[str, bool] = field(default_factory=lambda: {t: True for t in TOGGLES})
    dry_run: bool = False
    state: MenuState = MenuState.MAIN
    result: Optional[RunConfiguration] = None

    def run(self) -> Optional[RunConfiguration]:
        while self.state not in (MenuState.CONFIRMED, MenuState.CANCELLED):
            try:
                if self.state is MenuState.MAIN:
                    self.state = self._main()
                else:
                    self.state = self._custom()
            except EOFError:
                logger.warning("Input closed; cancelling")
                self.state = MenuState.CANCELLED
        return self.result if self.state is MenuState.CONFIRMED else None

    def _confirm(self, toggles: Iterable[str], *, dry_run: bool, preset: str) -> MenuState:
        self.result = RunConfiguration.from_toggles(toggles, dry_run=dry_run, source=f"menu:{preset}")
        return MenuState.CONFIRMED

    def _main(self) -> MenuState:
        self.say(MAIN_MENU)
        choice = self.ask("Select an option [1-5]: ").strip().lower()
        if choice == "1":
            return self._confirm(TOGGLES, dry_run=False, preset="full")
        if choice == "2":
            return self._confirm(TOGGLES, dry_run=True, preset="dry-run")
        if choice == "3":
            return MenuState.CUSTOM
        if choice == "4":
            return self._confirm([t for t in TOGGLES if t not in QUICK_EXCLUDES], dry_run=False, preset="quick")
        if choice in {"5", "q", "quit"}:
            logger.info("Setup cancelled by user")
            return MenuState.CANCELLED
        logger.warning("Unrecognized choice %r; using the Full preset", choice)
        return self._confirm(TOGGLES, dry_run=False, preset="full")

    def _render_custom(self) -> str:
        lines = ["Custom setup (number toggles a module)"]
        for i, t in enumerate(TOGGLES, start=1):
            mark = "x" if self.toggles.get(t) else " "
            lines.append(f"  {i}) [{mark}] {TOGGLE_LABELS.get(t, t)}")
        lines.append(f"  d) [{'x' if self.dry_run else ' '}] Dry run")
        lines.append("  s) Start")
        lines.append("  b) Back")
        return "\n".join(lines)

    def _custom(self) -> MenuState:
        self.say(self._render_custom())
        choice = self.ask("Toggle, s to start, b to go back: ").strip().lower()
        if choice == "s":
            chosen = [t for t in TOGGLES if self.toggles.get(t)]
            return self._confirm(chosen, dry_run=self.dry_run, preset="custom")
        if choice == "b":
            return MenuState.MAIN
        if choice == "d":
            self.dry_run = not self.dry_run
            return MenuState.CUSTOM
        if choice.isdigit() and 1 <= int(choice) <= len(TOGGLES):
            t = TOGGLES[int(choice) - 1]
            self.toggles[t] = not self.toggles.get(t, False)
            return MenuState.CUSTOM
        logger.warning("Unrecognized choice %r", choice)
        return MenuState.CUSTOM


def resolve_selection(
    args: argparse.Namespace,
    *,
    ask: Optional[Callable[[str], str]] = None,
    say: Callable[[str], None] = print,
    interactive: bool = True,
) -> Optional[RunConfiguration]:
    """Turn CLI args (and possibly menu answers) into a RunConfiguration.

    Returns None when the user quits from the menu.
    """

    resume = getattr(args, "resume_config", None)
    if resume:
        data = load_state(resume)
        if not data:
            raise FileNotFoundError(resume)
        cfg = RunConfiguration.from_dict(data)
        logger.info("Resumed configuration from %s", resume)
        try:
            Path(resume).unlink()
        except OSError as e:
            logger.warning("Unable to remove saved configuration %s: %s", resume, e)
        return cfg

    if bool(getattr(args, "no_menu", False)):
        return from_flags(args)

    if selection_flags_supplied(args):
        logger.info("Selection flags given on the command line; skipping the menu")
        return from_flags(args)

    if not interactive or ask is None:
        logger.warning("No interactive terminal; running with command-line selection")
        return from_flags(args)

    return SetupMenu(ask=ask, say=say).run()
