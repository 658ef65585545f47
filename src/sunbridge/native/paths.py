# src/sunbridge/native/paths.py
"""
Native library lookup configuration.

Search order for a library stem such as ``sundials_cvodes``:

1. an explicit file configured under ``[native.libraries]``;
2. every directory listed in ``SUNDIALS_LIBRARY_PATH``;
3. every directory listed under ``[native] search_paths``;
4. the system loader (``ctypes.util.find_library``).

The config file is ``$SUNBRIDGE_CONFIG`` when set, otherwise the platform
config directory::

    [native]
    search_paths = ["/opt/sundials/lib"]

    [native.libraries]
    sundials_cvodes = "/opt/sundials/lib/libsundials_cvodes.so.6"

    [runtime]
    jit_guards = true
"""
from __future__ import annotations
import ctypes.util
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

try:
    import tomllib
except ModuleNotFoundError:  # Python < 3.11
    import tomli as tomllib  # type: ignore

from sunbridge.errors import ConfigError

__all__ = [
    "NativeConfig",
    "load_config",
    "library_file_names",
    "library_candidates",
    "ENV_CONFIG",
    "ENV_LIBRARY_PATH",
]

ENV_CONFIG = "SUNBRIDGE_CONFIG"
ENV_LIBRARY_PATH = "SUNDIALS_LIBRARY_PATH"


@dataclass
class NativeConfig:
    """Resolved lookup settings."""
    search_paths: List[str] = field(default_factory=list)
    libraries: Dict[str, str] = field(default_factory=dict)
    jit_guards: bool = False


def _get_config_path() -> Path:
    env = os.environ.get(ENV_CONFIG)
    if env:
        return Path(env).expanduser().resolve()

    if sys.platform == "darwin":
        base = Path.home() / "Library" / "Application Support"
    elif sys.platform.startswith("win"):
        appdata = os.environ.get("APPDATA")
        base = Path(appdata) if appdata else Path.home() / "AppData" / "Roaming"
    else:
        xdg = os.environ.get("XDG_CONFIG_HOME")
        base = Path(xdg) if xdg else Path.home() / ".config"
    return (base / "sunbridge" / "config.toml").resolve()


def _parse_env_library_path() -> List[str]:
    raw = os.environ.get(ENV_LIBRARY_PATH, "")
    return [p for p in raw.split(os.pathsep) if p.strip()]


def _as_str_list(value: object, key: str) -> List[str]:
    if isinstance(value, str):
        return [value]
    if isinstance(value, list) and all(isinstance(v, str) for v in value):
        return list(value)
    raise ConfigError(f"'{key}' must be a string or a list of strings")


def load_config(path: Optional[Path] = None) -> NativeConfig:
    """
    Load the config file (missing file -> defaults) and apply the environment.

    Raises:
        ConfigError: the file exists but is not valid TOML or has bad types.
    """
    cfg_path = path if path is not None else _get_config_path()
    data: dict = {}
    if cfg_path.is_file():
        try:
            with open(cfg_path, "rb") as fh:
                data = tomllib.load(fh)
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Invalid TOML in {cfg_path}: {e}") from e

    native = data.get("native", {})
    if not isinstance(native, dict):
        raise ConfigError("[native] must be a table")
    search_paths = _as_str_list(native.get("search_paths", []), "native.search_paths")

    libraries = native.get("libraries", {})
    if not isinstance(libraries, dict) or not all(
        isinstance(v, str) for v in libraries.values()
    ):
        raise ConfigError("[native.libraries] must map library stems to file paths")

    runtime = data.get("runtime", {})
    if not isinstance(runtime, dict):
        raise ConfigError("[runtime] must be a table")
    jit_guards = runtime.get("jit_guards", False)
    if not isinstance(jit_guards, bool):
        raise ConfigError("runtime.jit_guards must be a boolean")

    return NativeConfig(
        search_paths=_parse_env_library_path() + search_paths,
        libraries=dict(libraries),
        jit_guards=jit_guards,
    )


def library_file_names(stem: str) -> List[str]:
    """Platform file names tried for ``stem`` inside each search directory."""
    if sys.platform == "darwin":
        return [f"lib{stem}.dylib"]
    if sys.platform.startswith("win"):
        return [f"{stem}.dll", f"lib{stem}.dll"]
    return [f"lib{stem}.so"]


def library_candidates(stem: str, config: NativeConfig) -> List[str]:
    """Ordered list of paths (or loader names) to try for ``stem``."""
    candidates: List[str] = []
    explicit = config.libraries.get(stem)
    if explicit:
        candidates.append(str(Path(explicit).expanduser()))
    for directory in config.search_paths:
        for name in library_file_names(stem):
            candidates.append(str(Path(directory).expanduser() / name))
    found = ctypes.util.find_library(stem)
    if found:
        candidates.append(found)
    return candidates
