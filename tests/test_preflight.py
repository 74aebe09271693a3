from __future__ import annotations

import pytest

from devbox_setup.errors import PreconditionError
from devbox_setup.lib.command import CmdResult
from devbox_setup.preflight import (
    CANCELLED,
    PROCEED,
    RELAUNCHED,
    check_privileges,
    ensure_bootstrap,
    relaunch_args,
)
from devbox_setup.selection import RunConfiguration
from devbox_setup.state_store import load_state

LIVE = RunConfiguration.from_toggles(["software", "wsl"], dry_run=False, source="menu:custom")


def never(*a, **kw):
    raise AssertionError("should not be called")


def test_dry_run_waives_privileges():
    cfg = RunConfiguration.from_toggles([], dry_run=True)
    assert check_privileges(cfg, interactive=True, ask=never, admin_check=never, relaunch=never) == PROCEED


def test_admin_proceeds_without_prompt():
    assert check_privileges(LIVE, interactive=True, ask=never, admin_check=lambda: True, relaunch=never) == PROCEED


def test_non_interactive_continues_with_warning(caplog):
    verdict = check_privileges(LIVE, interactive=False, admin_check=lambda: False, relaunch=never)
    assert verdict == PROCEED
    assert "administrator" in caplog.text


def test_relaunch_persists_resolved_selection(monkeypatch, tmp_path):
    monkeypatch.setattr("tempfile.gettempdir", lambda: str(tmp_path))
    launched = []

    def relaunch(args):
        launched.append(list(args))
        return True

    verdict = check_privileges(
        LIVE,
        interactive=True,
        ask=lambda p: "r",
        passthrough=["--config", "devbox.yaml"],
        admin_check=lambda: False,
        relaunch=relaunch,
    )
    assert verdict == RELAUNCHED
    args = launched[0]
    assert args[:2] == ["--config", "devbox.yaml"]
    resume = args[args.index("--resume-config") + 1]
    saved = RunConfiguration.from_dict(load_state(resume))
    assert saved.selected_module_ids == LIVE.selected_module_ids
    assert "--no-menu" in args


def test_refused_elevation_reprompts_then_quit():
    replies = iter(["r", "x", "q"])
    verdict = check_privileges(
        LIVE, interactive=True, ask=lambda p: next(replies), admin_check=lambda: False, relaunch=lambda a: False
    )
    assert verdict == CANCELLED


def test_relaunch_args_order(tmp_path):
    args = relaunch_args(LIVE, tmp_path / "r.json")
    assert args[0] == "--resume-config"
    assert args[-1] == "--no-menu"


def ok(argv):
    return CmdResult(list(argv), 0, "v1.7", "")


def test_bootstrap_present():
    ensure_bootstrap(dry_run=False, probe=ok, runner=never)


def test_bootstrap_dry_run_only_warns(caplog):
    ensure_bootstrap(dry_run=True, probe=lambda argv: None, runner=never)
    assert "winget not found" in caplog.text


def test_bootstrap_auto_install_then_present():
    state = {"installed": False}

    def probe(argv):
        return ok(argv) if state["installed"] else None

    def runner(argv, **kw):
        state["installed"] = True
        return CmdResult(list(argv), 0, "", "")

    ensure_bootstrap(dry_run=False, probe=probe, runner=runner)
    assert state["installed"]


def test_bootstrap_install_failure_is_precondition_error():
    def runner(argv, **kw):
        raise RuntimeError("Add-AppxPackage failed")

    with pytest.raises(PreconditionError):
        ensure_bootstrap(dry_run=False, probe=lambda argv: None, runner=runner)


def test_bootstrap_still_missing_is_precondition_error():
    with pytest.raises(PreconditionError):
        ensure_bootstrap(
            dry_run=False, probe=lambda argv: None, runner=lambda argv, **kw: CmdResult(list(argv), 0, "", "")
        )
