from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import List, Optional, Sequence

from .config import SetupConfig
from .dry_run import DryRunContext
from .lib import command
from .lib.command import CmdResult, fmt_argv
from .lib.env import RunPaths

logger = logging.getLogger(__name__)


@dataclass
class ModuleContext:
    """What a module gets to work with.

    Mutations must go through ``run`` / ``write_text``: in dry-run they are
    turned into intent records and never reach the machine. ``probe`` is for
    read-only inspection and runs in both modes.
    """

    dry_run: DryRunContext
    paths: RunPaths
    config: SetupConfig
    module_id: Optional[str] = None
    intents: List[str] = field(default_factory=list)

    def for_module(self, module_id: str) -> "ModuleContext":
        return replace(self, module_id=module_id, intents=[])

    def note_intent(self, message: str) -> None:
        self.intents.append(message)
        logger.info("[%s] would %s", self.module_id or "-", message)

    def run(self, argv: Sequence[str], *, check: bool = True) -> CmdResult:
        if self.dry_run:
            self.intents.append(f"run {fmt_argv(list(argv))}")
        return command.run_cmd(argv, check=check, dry_run=self.dry_run.enabled)

    def probe(self, argv: Sequence[str]) -> Optional[CmdResult]:
        return command.probe_cmd(argv)

    def write_text(self, path: Path, contents: str) -> None:
        if self.dry_run:
            self.note_intent(f"write {path} ({len(contents)} chars)")
            return
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(contents, encoding="utf-8")
        logger.info("Wrote %s", path)
