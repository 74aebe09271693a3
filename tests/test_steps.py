from __future__ import annotations

import pytest

from devbox_setup.errors import ModuleExecutionError
from devbox_setup.lib.command import CmdResult
from devbox_setup.lib.registry import apply_values, ensure_value, parse_query_output
from devbox_setup.steps import (
    EnvironmentStep,
    FontsStep,
    GitConfigStep,
    InstallSoftwareStep,
    PackageManagerStep,
    PowerShellProfileStep,
    PrerequisitesStep,
    SystemConfigStep,
    TelemetryStep,
)
from devbox_setup.steps.step_20_system_config import PREFERENCES
from devbox_setup.steps.step_40_environment import merge_path
from devbox_setup.steps.step_70_powershell_profile import BEGIN, END, render_profile

REG_QUERY = """
HKEY_CURRENT_USER\\Software\\Microsoft\\Windows\\CurrentVersion\\Explorer\\Advanced
    HideFileExt    REG_DWORD    0x0
"""


def test_parse_reg_query_output():
    assert parse_query_output(REG_QUERY, "HideFileExt") == "0x0"
    assert parse_query_output(REG_QUERY, "Hidden") is None


def test_ensure_value_skips_when_already_set(make_ctx, shell):
    shell.answer(["reg.exe", "query"], REG_QUERY)
    assert ensure_value(make_ctx(), "HKCU\\X", "HideFileExt", 0) is False
    assert shell.mutations == []


def test_ensure_value_writes_when_different(make_ctx, shell):
    shell.answer(["reg.exe", "query"], REG_QUERY)
    assert ensure_value(make_ctx(), "HKCU\\X", "HideFileExt", 1) is True
    assert shell.mutations == [["reg.exe", "add", "HKCU\\X", "/v", "HideFileExt", "/t", "REG_DWORD", "/d", "1", "/f"]]


def test_prerequisites_idempotent(make_ctx, shell):
    shell.answer(["powershell.exe"], "RemoteSigned\n")
    assert "already" in PrerequisitesStep().run(make_ctx())
    assert shell.mutations == []


def test_package_manager_requires_winget_live(make_ctx, shell):
    with pytest.raises(ModuleExecutionError):
        PackageManagerStep().run(make_ctx())
    shell.answer(["winget", "--version"], "v1.7")
    PackageManagerStep().run(make_ctx())
    assert shell.mutations == [["winget", "source", "update"]]


def test_software_skips_installed_and_collects_failures(make_ctx, shell, tmp_path):
    manifest = tmp_path / "software.yaml"
    manifest.write_text(
        "categories:\n"
        "  core:\n"
        "    - {id: Git.Git, name: Git}\n"
        "    - {id: Broken.Pkg, name: Broken}\n"
        "  store:\n"
        "    - {id: 9NBLGGH4NNS1, name: App Installer, source: msstore}\n",
        encoding="utf-8",
    )
    shell.answer(["winget", "list", "--id", "Git.Git"], "Git Git.Git 2.45")
    shell.fail_on["Broken.Pkg"] = "exit 1"

    with pytest.raises(ModuleExecutionError) as err:
        InstallSoftwareStep().run(make_ctx(config={"software": {"manifest": str(manifest)}}))
    assert "Broken.Pkg" in str(err.value)

    installs = [m for m in shell.mutations if m[:2] == ["winget", "install"]]
    assert [m[3] for m in installs] == ["Broken.Pkg", "9NBLGGH4NNS1"]
    assert installs[-1][-2:] == ["--source", "msstore"]


def test_software_collects_every_failure_when_installer_cannot_start(make_ctx, shell, tmp_path):
    manifest = tmp_path / "software.yaml"
    manifest.write_text("categories:\n  core:\n    - {id: Git.Git, name: Git}\n    - {id: Python.Python.3.12, name: Python}\n", encoding="utf-8")
    shell.unlaunchable.append("winget")

    with pytest.raises(ModuleExecutionError) as err:
        InstallSoftwareStep().run(make_ctx(config={"software": {"manifest": str(manifest)}}))
    assert "2 package(s) failed" in str(err.value)
    assert "Git.Git" in str(err.value) and "Python.Python.3.12" in str(err.value)


def test_registry_rows_continue_when_reg_exe_cannot_start(make_ctx, shell):
    shell.unlaunchable.append("reg.exe")
    changed, failures = apply_values(make_ctx(), PREFERENCES)
    assert changed == 0
    assert len(failures) == len(PREFERENCES)


def test_system_config_second_run_is_noop(make_ctx, shell):
    def probe(argv):
        name = argv[argv.index("/v") + 1]
        value = next(v for _, n, v, _ in PREFERENCES if n == name)
        return CmdResult(list(argv), 0, f"    {name}    REG_DWORD    {hex(value)}\n", "")

    ctx = make_ctx()
    ctx.probe = probe
    assert SystemConfigStep().run(ctx) == "0 preference(s) changed"
    assert shell.mutations == []


def test_telemetry_disables_service_once(make_ctx, shell):
    TelemetryStep().run(make_ctx())
    assert ["sc.exe", "config", "DiagTrack", "start=", "disabled"] in shell.mutations

    shell.mutations.clear()
    shell.answer(["sc.exe", "qc"], "        START_TYPE         : 4   DISABLED\n")
    TelemetryStep().run(make_ctx())
    assert not any(m[0] == "sc.exe" for m in shell.mutations)


def test_merge_path():
    assert merge_path("C:\\a;C:\\b", ["c:\\B\\", "C:\\c"]) == "C:\\a;C:\\b;C:\\c"
    assert merge_path("C:\\a", ["C:\\A"]) is None
    assert merge_path(None, ["C:\\x"]) == "C:\\x"


def test_environment_sets_variables_and_path(make_ctx, shell):
    shell.answer(["reg.exe", "query", "HKCU\\Environment", "/v", "Path"], "    Path    REG_EXPAND_SZ    C:\\a\n")
    ctx = make_ctx(config={"environment": {"variables": {"GOPATH": "%USERPROFILE%\\go"}, "path": ["C:\\tools"]}})
    EnvironmentStep().run(ctx)
    kinds = {m[4]: m[6] for m in shell.mutations}
    assert kinds == {"GOPATH": "REG_EXPAND_SZ", "Path": "REG_EXPAND_SZ"}
    path_write = next(m for m in shell.mutations if m[4] == "Path")
    assert path_write[8] == "C:\\a;C:\\tools"


def test_environment_nothing_configured(make_ctx, shell):
    assert EnvironmentStep().run(make_ctx()) == "no environment variables configured"


def test_git_config_requires_identity_live(make_ctx, shell):
    shell.answer(["git", "--version"], "git version 2.45")
    with pytest.raises(ModuleExecutionError):
        GitConfigStep().run(make_ctx())


def test_git_config_writes_only_changed_keys(make_ctx, shell):
    shell.answer(["git", "--version"], "git version 2.45")
    shell.answer(["git", "config", "--global", "--get", "user.name"], "Ada\n")
    shell.answer(["git", "config", "--global", "--get", "init.defaultBranch"], "main\n")
    GitConfigStep().run(make_ctx(config={"git": {"name": "Ada", "email": "ada@example.com"}}))
    keys = [m[3] for m in shell.mutations]
    assert keys == ["user.email", "core.autocrlf"]


def test_git_config_dry_run_without_identity_records_intent(make_ctx, shell):
    ctx = make_ctx(dry_run=True)
    GitConfigStep().run(ctx)
    assert any("user.name" in i for i in ctx.intents)
    assert shell.mutations == []


def test_fonts_uses_configured_package(make_ctx, shell):
    FontsStep().run(make_ctx(config={"fonts": {"package": "Fira.Code"}}))
    assert shell.mutations[0][3] == "Fira.Code"


def test_render_profile_replaces_managed_block_only():
    existing = f"Import-Module posh-git\n{BEGIN}\nold\n{END}\n# mine\n"
    out = render_profile(existing, ["new"])
    assert out == f"Import-Module posh-git\n{BEGIN}\nnew\n{END}\n# mine\n"
    assert render_profile(out, ["new"]) == out


def test_powershell_profile_idempotent(make_ctx, tmp_path):
    profile = tmp_path / "ps" / "profile.ps1"
    ctx = make_ctx(config={"powershell": {"profile_path": str(profile), "lines": ["Set-Alias g git"]}})
    PowerShellProfileStep().run(ctx)
    assert "Set-Alias g git" in profile.read_text(encoding="utf-8")
    assert PowerShellProfileStep().run(ctx) == "profile already up to date"


def test_powershell_profile_dry_run_writes_nothing(make_ctx, tmp_path):
    profile = tmp_path / "profile.ps1"
    ctx = make_ctx(dry_run=True, config={"powershell": {"profile_path": str(profile)}})
    PowerShellProfileStep().run(ctx)
    assert not profile.exists()
    assert ctx.intents and ctx.intents[0].startswith("write")
