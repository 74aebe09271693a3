from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple

import pytest

from devbox_setup.config import SetupConfig
from devbox_setup.context import ModuleContext
from devbox_setup.dry_run import ENV_VAR, DryRunContext
from devbox_setup.lib import command
from devbox_setup.lib.command import CmdResult
from devbox_setup.lib.env import RunPaths


class FakeShell:
    """Stands in for the OS: canned probe answers, recorded mutations."""

    def __init__(self) -> None:
        self.answers: List[Tuple[Tuple[str, ...], Optional[CmdResult]]] = []
        self.probes: List[List[str]] = []
        self.mutations: List[List[str]] = []
        self.fail_on: Dict[str, str] = {}
        self.unlaunchable: List[str] = []

    def answer(self, prefix: Sequence[str], stdout: str = "", returncode: int = 0) -> None:
        self.answers.append((tuple(prefix), CmdResult(list(prefix), returncode, stdout, "")))

    def missing(self, prefix: Sequence[str]) -> None:
        self.answers.append((tuple(prefix), None))

    def probe(self, argv: Sequence[str]) -> Optional[CmdResult]:
        argv = list(argv)
        self.probes.append(argv)
        for prefix, result in self.answers:
            if tuple(argv[: len(prefix)]) == prefix:
                return result
        return None

    def run(self, argv: Sequence[str], *, check: bool = True, dry_run: bool = False, **_: object) -> CmdResult:
        argv = list(argv)
        if dry_run:
            return CmdResult(argv, 0, "", "")
        if argv[0] in self.unlaunchable:
            raise FileNotFoundError(2, "No such file or directory", argv[0])
        self.mutations.append(argv)
        for needle, err in self.fail_on.items():
            if needle in argv and check:
                raise RuntimeError(err)
        return CmdResult(argv, 0, "", "")


@pytest.fixture(autouse=True)
def _clean_dry_run_env(monkeypatch):
    monkeypatch.setenv(ENV_VAR, "0")


@pytest.fixture
def shell(monkeypatch) -> FakeShell:
    fake = FakeShell()
    monkeypatch.setattr(command, "probe_cmd", fake.probe)
    monkeypatch.setattr(command, "run_cmd", fake.run)
    return fake


@pytest.fixture
def run_paths(tmp_path) -> RunPaths:
    return RunPaths(base_dir=tmp_path, started_at=datetime(2024, 5, 1, 9, 30, 0))


@pytest.fixture
def make_ctx(run_paths):
    def _make(*, dry_run: bool = False, config: Optional[dict] = None, module_id: str = "test") -> ModuleContext:
        ctx = ModuleContext(
            dry_run=DryRunContext(enabled=dry_run),
            paths=run_paths,
            config=SetupConfig(raw=config or {}),
        )
        return ctx.for_module(module_id)

    return _make
