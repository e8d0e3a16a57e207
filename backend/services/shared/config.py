"""YAML-backed configuration for the generation backend.

Settings come from ``backend/config/settings.yaml`` (or the file named by the
``GENSTUDIO_SETTINGS`` environment variable).  Secrets and deployment knobs
live in ``.env`` files, loaded in this order:
  1. Project-root .env   (lowest priority)
  2. backend/.env        (overrides project root)
  3. Environment variables  (highest priority, never overwritten)
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv

_BACKEND_DIR = Path(__file__).parent.parent.parent
DEFAULT_SETTINGS_PATH = _BACKEND_DIR / "config" / "settings.yaml"
SETTINGS_ENV_VAR = "GENSTUDIO_SETTINGS"

_config_instance: Optional["Config"] = None


class Config:
    """Dot-notation view over a YAML settings tree."""

    def __init__(self, config_path: str):
        path = Path(config_path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        with open(path) as f:
            self._data: dict = yaml.safe_load(f)
        if not isinstance(self._data, dict):
            raise ValueError(f"Config file must be a YAML mapping, got: {type(self._data)}")
        self.path = path
        self._load_env()

    # ── private ──────────────────────────────────────────────────────────────

    def _load_env(self) -> None:
        project_env = _BACKEND_DIR.parent / ".env"
        backend_env = _BACKEND_DIR / ".env"
        if project_env.exists():
            load_dotenv(project_env, override=False)
        if backend_env.exists():
            load_dotenv(backend_env, override=False)

    # ── public ───────────────────────────────────────────────────────────────

    def get(self, key: str, default: Any = None) -> Any:
        """Dot-notation access into the YAML tree.

        Example::

            config.get("performance.interval_seconds")         # 10
            config.get("performance.alerts.cpu_percent")       # 85.0
            config.get("missing.key", "fallback")              # "fallback"
        """
        val: Any = self._data
        for k in key.split("."):
            if isinstance(val, dict) and k in val:
                val = val[k]
            else:
                return default
        return val

    def section(self, key: str) -> dict:
        """Return a mapping under ``key``, or an empty dict if absent."""
        val = self.get(key)
        return dict(val) if isinstance(val, dict) else {}

    def get_path(self, key: str) -> Path:
        """Return a config value as a Path object.

        Raises KeyError if the key does not exist.
        """
        val = self.get(key)
        if val is None:
            raise KeyError(f"Config key not found: {key}")
        return Path(str(val))


# ── process-wide accessor ─────────────────────────────────────────────────────


def get_config(config_path: Optional[str] = None) -> Config:
    """Return the shared Config instance.

    On first call ``config_path`` is used if given, else ``$GENSTUDIO_SETTINGS``
    if set.  Subsequent calls return the existing instance.

    Raises:
        RuntimeError: If no path is available on first call.
    """
    global _config_instance
    if _config_instance is None:
        path = config_path or os.environ.get(SETTINGS_ENV_VAR)
        if path is None:
            raise RuntimeError(
                "Config not yet initialised: call get_config(config_path) "
                f"or set {SETTINGS_ENV_VAR}."
            )
        _config_instance = Config(path)
    return _config_instance


def reset_config() -> None:
    """Clear the shared instance (mainly for testing)."""
    global _config_instance
    _config_instance = None
