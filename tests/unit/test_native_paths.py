# tests/unit/test_native_paths.py
"""
Unit tests for native library lookup.

Tests cover:
- Config file location (SUNBRIDGE_CONFIG override, XDG default)
- TOML parsing and type errors
- SUNDIALS_LIBRARY_PATH ordering
- Candidate list order and the missing-library error
"""
from __future__ import annotations
import os
import sys
from pathlib import Path

import pytest

from sunbridge.errors import ConfigError, LibraryNotFoundError
from sunbridge.native import loader
from sunbridge.native.paths import (
    NativeConfig,
    _get_config_path,
    library_candidates,
    library_file_names,
    load_config,
)


# ---- config path ------------------------------------------------------------

def test_config_path_env_override(monkeypatch, tmp_path):
    custom = tmp_path / "custom.toml"
    monkeypatch.setenv("SUNBRIDGE_CONFIG", str(custom))
    assert _get_config_path() == custom.resolve()


@pytest.mark.skipif(sys.platform in ("darwin", "win32"), reason="XDG layout")
def test_config_path_xdg(monkeypatch, tmp_path):
    monkeypatch.delenv("SUNBRIDGE_CONFIG", raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
    assert _get_config_path() == (tmp_path / "sunbridge" / "config.toml").resolve()


# ---- load_config --------------------------------------------------------------

def test_missing_file_gives_defaults(monkeypatch, tmp_path):
    monkeypatch.delenv("SUNDIALS_LIBRARY_PATH", raising=False)
    cfg = load_config(tmp_path / "absent.toml")
    assert cfg == NativeConfig()


def test_env_paths_come_first(monkeypatch, tmp_path):
    cfg_file = tmp_path / "config.toml"
    cfg_file.write_text(
        '[native]\nsearch_paths = ["/from/file"]\n'
        '[native.libraries]\nsundials_cvodes = "/opt/libsundials_cvodes.so.6"\n'
        '[runtime]\njit_guards = true\n'
    )
    monkeypatch.setenv("SUNDIALS_LIBRARY_PATH", os.pathsep.join(["/env/a", "/env/b"]))
    cfg = load_config(cfg_file)
    assert cfg.search_paths == ["/env/a", "/env/b", "/from/file"]
    assert cfg.libraries == {"sundials_cvodes": "/opt/libsundials_cvodes.so.6"}
    assert cfg.jit_guards is True


def test_single_search_path_string(monkeypatch, tmp_path):
    monkeypatch.delenv("SUNDIALS_LIBRARY_PATH", raising=False)
    cfg_file = tmp_path / "config.toml"
    cfg_file.write_text('[native]\nsearch_paths = "/only/one"\n')
    assert load_config(cfg_file).search_paths == ["/only/one"]


@pytest.mark.parametrize(
    "text",
    [
        "[native\n",
        "native = 3\n",
        "[native]\nsearch_paths = [1, 2]\n",
        "[native.libraries]\nsundials_cvodes = 5\n",
        "[runtime]\njit_guards = \"yes\"\n",
    ],
)
def test_bad_config_raises(tmp_path, text):
    cfg_file = tmp_path / "config.toml"
    cfg_file.write_text(text)
    with pytest.raises(ConfigError):
        load_config(cfg_file)


# ---- candidates ---------------------------------------------------------------

def test_candidates_order(monkeypatch):
    monkeypatch.setattr("ctypes.util.find_library", lambda stem: None)
    cfg = NativeConfig(
        search_paths=["/d1", "/d2"],
        libraries={"sundials_cvodes": "/explicit/libcvodes.so"},
    )
    found = library_candidates("sundials_cvodes", cfg)
    names = library_file_names("sundials_cvodes")
    assert found[0] == str(Path("/explicit/libcvodes.so"))
    assert found[1:] == [str(Path(d) / n) for d in ("/d1", "/d2") for n in names]


def test_system_loader_is_last(monkeypatch):
    monkeypatch.setattr("ctypes.util.find_library", lambda stem: f"lib{stem}.so.6")
    found = library_candidates("sundials_idas", NativeConfig(search_paths=["/d"]))
    assert found[-1] == "libsundials_idas.so.6"


def test_load_native_reports_candidates(monkeypatch, tmp_path):
    monkeypatch.setattr("ctypes.util.find_library", lambda stem: None)
    cfg = NativeConfig(search_paths=[str(tmp_path)])
    with pytest.raises(LibraryNotFoundError) as info:
        loader.load_native(cfg)
    assert str(tmp_path) in str(info.value)
