# utils/config.py
"""Configuration loader with YAML backend."""

from __future__ import annotations

import dataclasses
from pathlib import Path
from typing import Any, Dict, TypeVar, cast

from omegaconf import OmegaConf

from utils.logger import Logger
from utils.settings import paths

DEFAULT_CONFIG_PATH = paths.CONFIG_FILE

T = TypeVar("T")


class ConfigLoader:
    """Strategy interface for config loading."""

    def load(self, filename: str) -> Dict[str, Any]:
        raise NotImplementedError


class YamlConfigLoader(ConfigLoader):
    def load(self, filename: str) -> Dict[str, Any]:
        """Load YAML file and return plain ``dict`` data."""

        cfg = OmegaConf.load(filename)
        return cast(Dict[str, Any], OmegaConf.to_container(cfg, resolve=True))


class Config:
    _data: Dict[str, Any] | None = None
    _loader = YamlConfigLoader()
    _logger = Logger.get_logger("utils.config")

    @classmethod
    def load(
        cls, filename: Path | str = DEFAULT_CONFIG_PATH, force_reload: bool = False
    ) -> None:
        """Load configuration from ``filename`` unless already loaded."""

        if cls._data is not None and not force_reload:
            return

        try:
            cls._data = cls._loader.load(str(filename)) or {}
            cls._logger.info(f"Config loaded from {filename}")
            logging_cfg = cls._data.get("logging", {})
            Logger.setup(
                level=logging_cfg.get("level"), log_dir=logging_cfg.get("log_dir")
            )
        except Exception as e:
            cls._logger.error(f"Failed to load config: {e}")
            raise

    @classmethod
    def get(cls, path: str, default: Any | None = None) -> Any:
        """Retrieve value from dotted ``path`` or return ``default``."""
        if cls._data is None:
            cls.load()
        value = cls._data
        for key in path.split("."):
            if not isinstance(value, dict):
                cls._logger.warning(f"Key {key} not found in path {path}")
                return default
            value = value.get(key, None)
            if value is None:
                cls._logger.warning(f"Key {key} not found in path {path}")
                return default
        return value

    @classmethod
    def section(cls, name: str, defaults: T) -> T:
        """
        Overlay the YAML section ``name`` on a frozen settings dataclass.

        Unknown keys are ignored with a warning so a stale config file
        cannot break startup.
        """
        values = cls.get(name, {}) or {}
        known = {f.name for f in dataclasses.fields(defaults)}
        overrides = {}
        for key, value in values.items():
            if key in known:
                overrides[key] = value
            else:
                cls._logger.warning(f"Unknown key {name}.{key} ignored")
        return dataclasses.replace(defaults, **overrides)

    @classmethod
    def set_loader(cls, loader: ConfigLoader) -> None:
        """Replace the config loader strategy (useful for testing)."""

        cls._loader = loader
        cls._data = None
        cls._logger.info(f"Config loader set to {loader.__class__.__name__}")
