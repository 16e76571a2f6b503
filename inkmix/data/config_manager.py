"""
Config Manager

Dot-path access to a JSON engine configuration document, e.g.

    {"optimizer": {"max_iterations": 200}, "search": {"enumeration_ceiling": 500}}
"""

from pathlib import Path
from typing import Any, Dict, Optional

from inkmix.utils.file_io import read_json, write_json


class ConfigManager:
    def __init__(self, path: Optional[Path] = None, data: Optional[Dict] = None):
        self.config_path = Path(path) if path else None
        self._config: Dict[str, Any] = {}
        if data:
            self._config = data
        elif self.config_path and self.config_path.exists():
            self._config = read_json(self.config_path)

    def get(self, key: str, default: Any = None) -> Any:
        val: Any = self._config
        try:
            for k in key.split("."):
                val = val[k]
            return val
        except (KeyError, TypeError):
            return default

    def set(self, key: str, value: Any):
        keys = key.split(".")
        val = self._config
        for k in keys[:-1]:
            val = val.setdefault(k, {})
        val[keys[-1]] = value

    def section(self, name: str) -> Dict[str, Any]:
        """Return a top-level section as a dict (empty if missing)."""
        value = self._config.get(name, {})
        return dict(value) if isinstance(value, dict) else {}

    def save(self, path: Optional[Path] = None):
        target = path or self.config_path
        if target:
            write_json(self._config, target)
