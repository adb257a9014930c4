"""reqx core - config loading, environment seeding, file reading."""

import os
import re
from pathlib import Path
from typing import Any

import yaml
from dotenv import dotenv_values

GLOBAL_DIR = Path.home() / ".reqx"
GLOBAL_CONFIG = GLOBAL_DIR / "config.yaml"

CWD_CONFIG_CANDIDATES = [
    ".reqx.yaml",
    ".reqx.yml",
    "reqx.yaml",
    "reqx.yml",
]

ENV_PREFIX = "env."


def resolve_path(candidates: list[Path]) -> Path | None:
    """Return the first existing path from candidates, else None."""
    for p in candidates:
        if p.exists():
            return p.resolve()
    return None


def resolve_config_path(config_file: str | None) -> Path | None:
    """Find the config file to use.

    Resolution order:
      1. Explicit -c flag (no fallthrough if missing)
      2. .reqx.yaml (variants) in CWD
      3. ~/.reqx/config.yaml
    """
    if config_file:
        return resolve_path([Path(config_file)])
    return resolve_path([Path(c) for c in CWD_CONFIG_CANDIDATES] + [GLOBAL_CONFIG])


def load_config(config_path: str | Path | None) -> dict:
    """Load the YAML config file.

    Returns {"defaults": {...}, "_config_dir": Path | None}. A missing file
    yields empty defaults. ``_config_dir`` anchors relative paths such as
    ``env_file``.
    """
    if config_path is None:
        return {"defaults": {}, "_config_dir": None}
    path = Path(config_path)
    if not path.exists():
        return {"defaults": {}, "_config_dir": None}
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    return {
        "defaults": data.get("defaults") or {},
        "_config_dir": path.resolve().parent,
    }


def load_env(env_file: str | None, base_dir: str | Path | None = None) -> dict[str, str]:
    """Load a .env file merged over os.environ.

    .env values win over the process environment. A relative ``env_file``
    is resolved against ``base_dir`` (the config file's directory).
    """
    env = dict(os.environ)
    if env_file:
        dotenv_path = Path(env_file)
        if not dotenv_path.is_absolute():
            dotenv_path = Path(base_dir or ".") / dotenv_path
        if dotenv_path.exists():
            dotenv_vars = dotenv_values(str(dotenv_path))
            env.update({k: v for k, v in dotenv_vars.items() if v is not None})
    return env


def resolve_value(value: Any, env: dict[str, str]) -> Any:
    """Resolve $VAR and ${VAR} references in a config string.

    Unknown names are left as written. Non-strings pass through.
    """
    if not isinstance(value, str):
        return value

    def _replace(m: re.Match) -> str:
        var_name = m.group(1) or m.group(2)
        return env.get(var_name, m.group(0))

    return re.sub(r"\$\{([^}]+)\}|\$([A-Za-z_][A-Za-z0-9_]*)", _replace, value)


def seed_variables(config: dict, env: dict[str, str]) -> dict[str, str]:
    """Variables visible before the document's own definitions.

    Every environment entry is exposed as ``env.NAME``; ``defaults.variables``
    from the config are added on top, with $VAR references resolved.
    """
    seeded = {f"{ENV_PREFIX}{k}": v for k, v in env.items()}
    configured = config.get("defaults", {}).get("variables") or {}
    for name, value in configured.items():
        resolved = resolve_value(value, env)
        seeded[str(name)] = "" if resolved is None else str(resolved)
    return seeded


def parse_var_overrides(specs: tuple[str, ...] | list[str]) -> dict[str, str]:
    """Parse repeated ``key=value`` flags. Specs without '=' are ignored."""
    overrides: dict[str, str] = {}
    for spec in specs:
        if "=" not in spec:
            continue
        key, value = spec.split("=", 1)
        overrides[key.strip()] = value.strip()
    return overrides


def resolve_timeout(*sources: int | None, default: int = 30) -> int:
    """Return the first truthy timeout from sources, or default."""
    for t in sources:
        if t:
            return int(t)
    return default


def read_document(path: str | Path) -> str:
    """Read a .reqx file as UTF-8 text, dropping a leading BOM.

    OSError propagates to the caller.
    """
    return Path(path).read_text(encoding="utf-8-sig")
