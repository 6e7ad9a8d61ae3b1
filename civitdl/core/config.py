# civitdl/core/config.py
from __future__ import annotations
import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from .select import Preference

logger = logging.getLogger(__name__)

# ---- schema & defaults -------------------------------------------------------
SCHEMA_VERSION = 1
DEFAULT_CFG: Dict[str, Any] = {
    "schema": SCHEMA_VERSION,
    "api_key": "",
    "token": "",                # civitai session token, sent as a cookie
    "base_directory": "",       # web UI root (the folder holding models/, embeddings/)
    "fallback_directory": "",   # used when base_directory is unset or missing
    "model_format": "",         # empty -> SafeTensor
    "resource_type": "",        # empty -> PrunedModel
    "max_concurrent": 4,
    "verbose": False,
}

# CIVITDL_<KEY> wins over the file
ENV_KEYS = ("api_key", "token", "base_directory", "fallback_directory",
            "model_format", "resource_type", "max_concurrent")

# ---- locations ---------------------------------------------------------------
# You can override location with env vars:
#   CIVITDL_CONFIG=<full path to config.json>
#   CIVITDL_DIR=<directory to place config.json>
def _windows_roaming_dir() -> Path:
    return Path(os.environ.get("APPDATA", Path.home() / "AppData/Roaming"))

def _xdg_config_home() -> Path:
    return Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))

def config_dir() -> Path:
    env_dir = os.environ.get("CIVITDL_DIR")
    if env_dir:
        return Path(env_dir).expanduser().resolve()
    if os.name == "nt":
        return (_windows_roaming_dir() / "civitdl").resolve()
    return (_xdg_config_home() / "civitdl").resolve()

def config_path() -> Path:
    env_path = os.environ.get("CIVITDL_CONFIG")
    if env_path:
        return Path(env_path).expanduser().resolve()
    return config_dir() / "config.json"

# ---- load / save -------------------------------------------------------------
def _merge_defaults(cfg: Mapping[str, Any]) -> Dict[str, Any]:
    out = DEFAULT_CFG.copy()
    out.update(cfg or {})
    if "schema" not in out:
        out["schema"] = SCHEMA_VERSION
    return out

def apply_env(cfg: Mapping[str, Any], environ: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    env = os.environ if environ is None else environ
    out = dict(cfg)
    for key in ENV_KEYS:
        val = env.get(f"CIVITDL_{key.upper()}")
        if val is not None and val != "":
            out[key] = val
    return out

def load_cfg() -> Dict[str, Any]:
    p = config_path()
    if not p.exists():
        return DEFAULT_CFG.copy()
    try:
        raw = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        # If the file is corrupt, keep a .bad copy and start fresh
        logger.warning("Unreadable config %s (%s); using defaults", p, e)
        try:
            p.replace(p.with_suffix(".bad.json"))
        except OSError:
            pass
        return DEFAULT_CFG.copy()
    if not isinstance(raw, dict):
        logger.warning("Config %s is not a JSON object; using defaults", p)
        return DEFAULT_CFG.copy()
    return _merge_defaults(raw)

def save_cfg(cfg: Mapping[str, Any]) -> Path:
    p = config_path()
    p.parent.mkdir(parents=True, exist_ok=True)
    tmp = p.with_suffix(".tmp")
    data = _merge_defaults(cfg)
    # Atomic-ish write
    tmp.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
    if p.exists():
        p.replace(p.with_suffix(".bak.json"))
    tmp.replace(p)
    return p

# ---- typed view --------------------------------------------------------------
def _as_int(v: Any, default: int) -> int:
    try:
        return int(v)
    except (TypeError, ValueError):
        return default

def _as_bool(v: Any) -> bool:
    if isinstance(v, str):
        return v.strip().lower() in ("1", "true", "yes", "on")
    return bool(v)


@dataclass(frozen=True)
class Settings:
    api_key: str = ""
    token: str = ""
    base_directory: str = ""
    fallback_directory: str = ""
    preference: Preference = Preference()
    max_concurrent: int = 4
    verbose: bool = False

    @classmethod
    def from_cfg(cls, cfg: Mapping[str, Any]) -> "Settings":
        c = _merge_defaults(cfg)
        return cls(
            api_key=str(c.get("api_key") or ""),
            token=str(c.get("token") or ""),
            base_directory=str(c.get("base_directory") or ""),
            fallback_directory=str(c.get("fallback_directory") or ""),
            preference=Preference.from_text(c.get("model_format"), c.get("resource_type")),
            max_concurrent=max(1, _as_int(c.get("max_concurrent"), DEFAULT_CFG["max_concurrent"])),
            verbose=_as_bool(c.get("verbose")),
        )

    def base_dir(self, override: Optional[str] = None) -> Path:
        """--out, then base_directory if it exists, then fallback_directory, then cwd."""
        if override:
            return Path(override).expanduser()
        if self.base_directory:
            base = Path(self.base_directory).expanduser()
            if base.is_dir():
                return base
            logger.warning("Base directory %s does not exist", base)
        if self.fallback_directory:
            return Path(self.fallback_directory).expanduser()
        return Path.cwd()


def load_settings() -> Settings:
    return Settings.from_cfg(apply_env(load_cfg()))
