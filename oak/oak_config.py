from __future__ import annotations

import json
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, TextIO

import yaml
import tomllib


def debug_enabled(flag: bool = False) -> bool:
    return bool(flag or os.environ.get("OAK_DEBUG"))


def dbg(*parts, enabled: bool = False):
    """Debug channel: prints to stderr when OAK_DEBUG is set (or enabled=True)."""
    if debug_enabled(enabled):
        print("[DBG]", *parts, file=sys.stderr)


@dataclass
class RuntimeConfig:
    """Settings for a Runtime.

    - entry: module imported by Runtime.run() when no name is given
    - argv: what the `args()` builtin reports
    - env: what `env()` reports; None means the process environment
    - aliases: module name -> registered name, consulted on import misses
    - debug: force the [DBG] channel on regardless of OAK_DEBUG
    - load_std: register the std/str/fmt/json modules
    - stdout: stream the `print()` builtin writes to; None means sys.stdout
    """
    entry: str = ""
    argv: List[str] = field(default_factory=lambda: list(sys.argv))
    env: Optional[Dict[str, str]] = None
    aliases: Dict[str, str] = field(default_factory=dict)
    debug: bool = False
    load_std: bool = True
    stdout: Optional[TextIO] = None

    @classmethod
    def from_mapping(cls, data: Dict[str, Any]) -> "RuntimeConfig":
        data = dict(data or {})
        unknown = set(data) - {"entry", "argv", "env", "aliases", "debug", "load_std", "load-std"}
        if unknown:
            raise ValueError(f"Unknown runtime config keys: {', '.join(sorted(unknown))}")
        if "load-std" in data:
            data["load_std"] = data.pop("load-std")
        cfg = cls()
        if "entry" in data:
            cfg.entry = str(data["entry"] or "")
        if "argv" in data:
            cfg.argv = [str(a) for a in (data["argv"] or [])]
        if "env" in data and data["env"] is not None:
            cfg.env = {str(k): str(v) for k, v in data["env"].items()}
        if "aliases" in data:
            cfg.aliases = {str(k): str(v) for k, v in (data["aliases"] or {}).items()}
        if "debug" in data:
            cfg.debug = bool(data["debug"])
        if "load_std" in data:
            cfg.load_std = bool(data["load_std"])
        return cfg


def detect_format(path: str | Path) -> str:
    """Returns 'yaml', 'toml' or 'json' based on the file extension."""
    ext = Path(path).suffix.lower()
    if ext in (".yaml", ".yml"):
        return "yaml"
    if ext == ".toml":
        return "toml"
    if ext == ".json":
        return "json"
    raise ValueError(f"Unsupported config format: {path}")


def load_config(path: str | Path) -> RuntimeConfig:
    """Reads a RuntimeConfig from a YAML, TOML or JSON file.

    TOML files may nest the settings under an [oak] table.
    """
    p = Path(path)
    text = p.read_text(encoding="utf-8")
    fmt = detect_format(p)
    if fmt == "yaml":
        data = yaml.safe_load(text) or {}
    elif fmt == "toml":
        data = tomllib.loads(text)
        data = data.get("oak", data)
    else:
        data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping, got {type(data).__name__}")
    dbg("config", str(p), "keys", sorted(data))
    return RuntimeConfig.from_mapping(data)
