from __future__ import annotations

import logging
import re

import pytest

from devbox_setup.config import DEFAULT_FONT_PACKAGE, SetupConfig, load_setup_config
from devbox_setup.lib.env import default_base_dir, make_run_paths
from devbox_setup.lib.manifests import load_driver_manifest, load_software_manifest
from devbox_setup.logging_utils import configure_logging


def test_defaults():
    cfg = SetupConfig()
    assert cfg.git_name is None
    assert cfg.git_default_branch == "main"
    assert cfg.git_autocrlf == "true"
    assert cfg.font_package == DEFAULT_FONT_PACKAGE
    assert cfg.environment_variables == {}
    assert cfg.powershell_lines is None


def test_load_yaml_config(tmp_path):
    p = tmp_path / "devbox.yaml"
    p.write_text("git:\n  name: Ada\n  autocrlf: false\nenvironment:\n  path: [C:\\\\bin]\n", encoding="utf-8")
    cfg = load_setup_config(str(p))
    assert cfg.git_name == "Ada"
    assert cfg.git_autocrlf == "false"
    assert cfg.path_entries == ["C:\\bin"]


def test_config_must_be_yaml_mapping(tmp_path):
    p = tmp_path / "devbox.yaml"
    p.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_setup_config(str(p))
    j = tmp_path / "devbox.json"
    j.write_text("{}", encoding="utf-8")
    with pytest.raises(ValueError):
        load_setup_config(str(j))


def test_bundled_manifests_load():
    entries = load_software_manifest()
    assert entries and all(e.id for e in entries)
    assert any(e.source == "msstore" for e in entries)
    drivers = load_driver_manifest()
    assert "graphics" in drivers


def test_run_paths_named_for_start_time(run_paths):
    assert run_paths.log_file.name == "devbox-setup-20240501-093000.log"
    assert run_paths.report_file.name == "devbox-setup-20240501-093000.report.json"


def test_default_base_dir_next_to_script(tmp_path):
    script = tmp_path / "setup.py"
    script.write_text("", encoding="utf-8")
    assert default_base_dir(str(script)) == tmp_path.resolve()


def test_make_run_paths_override(tmp_path):
    assert make_run_paths(str(tmp_path)).base_dir == tmp_path


def test_log_file_lines_are_timestamped(tmp_path):
    path = tmp_path / "run.log"
    actual = configure_logging(str(path), also_console=False, force=True)
    try:
        logging.getLogger("devbox_setup.test").info("hello module")
        for h in logging.getLogger().handlers:
            h.flush()
        lines = path.read_text(encoding="utf-8").splitlines()
        assert actual == str(path)
        assert re.fullmatch(r"\[\d\d:\d\d:\d\d\] hello module", lines[-1])
    finally:
        root = logging.getLogger()
        for h in getattr(root, "_devbox_handlers", []):
            root.removeHandler(h)
            h.close()
        setattr(root, "_devbox_configured", False)
