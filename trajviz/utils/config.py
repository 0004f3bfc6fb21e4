"""
Configuration utilities for trajviz.

Settings live in YAML files that are deep-merged over built-in defaults and
validated into AppConfig dataclasses.
"""

import copy
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from ..physics.clock import PhysicsSettings

LOG_LEVEL_ENV = "TRAJVIZ_LOG_LEVEL"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConfigError(ValueError):
    """Invalid configuration file or value."""


DEFAULT_CONFIG: Dict[str, Any] = {
    "physics": {
        "delta_time": 1.0 / 60.0,
        "time_scale": 1.0,
        "prediction_minutes": 5.0,
    },
    "view": {
        "width": 1280,
        "height": 800,
        "fov_deg": 45.0,
    },
    "output": {
        "directory": "outputs",
        "dpi": 300,
    },
    "logging": {
        "level": "INFO",
        "file": None,
    },
}


def load_config(config_path: Union[str, Path]) -> Dict[str, Any]:
    """
    Load YAML configuration file.

    Args:
        config_path: Path to YAML config file

    Returns:
        Configuration dictionary
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, 'r') as f:
        try:
            config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

    if config is None:
        return {}
    if not isinstance(config, dict):
        raise ConfigError(f"{config_path} must contain a mapping, got {type(config).__name__}")
    return config


def save_config(config: Dict[str, Any], config_path: Union[str, Path]) -> None:
    """
    Save configuration to YAML file.

    Args:
        config: Configuration dictionary
        config_path: Path to save config file
    """
    config_path = Path(config_path)
    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, 'w') as f:
        yaml.dump(config, f, default_flow_style=False, indent=2)


def merge_configs(base_config: Dict[str, Any],
                  override_config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Merge two configuration dictionaries.

    Args:
        base_config: Base configuration
        override_config: Configuration to override base with

    Returns:
        Merged configuration
    """
    merged = copy.deepcopy(base_config)

    for key, value in override_config.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = merge_configs(merged[key], value)
        else:
            merged[key] = value

    return merged


@dataclass
class PhysicsConfig:
    delta_time: float = 1.0 / 60.0   # s of scene time per physics step
    time_scale: float = 1.0
    prediction_minutes: float = 5.0  # length of the prediction trails

    def settings(self) -> PhysicsSettings:
        return PhysicsSettings(delta_time=self.delta_time, time_scale=self.time_scale)

    def prediction_steps(self) -> int:
        return int(round(self.prediction_minutes * 60.0 / self.delta_time))


@dataclass
class ViewConfig:
    width: int = 1280     # px
    height: int = 800     # px
    fov_deg: float = 45.0


@dataclass
class OutputConfig:
    directory: str = "outputs"
    dpi: int = 300


@dataclass
class LoggingConfig:
    level: str = "INFO"
    file: Optional[str] = None


@dataclass
class AppConfig:
    """Validated application configuration."""
    physics: PhysicsConfig = field(default_factory=PhysicsConfig)
    view: ViewConfig = field(default_factory=ViewConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> "AppConfig":
        merged = merge_configs(DEFAULT_CONFIG, config or {})
        unknown = set(merged) - set(DEFAULT_CONFIG)
        if unknown:
            raise ConfigError(f"Unknown configuration sections: {sorted(unknown)}")

        sections = {}
        for name, section_cls in (("physics", PhysicsConfig), ("view", ViewConfig),
                                  ("output", OutputConfig), ("logging", LoggingConfig)):
            values = merged[name]
            if not isinstance(values, dict):
                raise ConfigError(f"Section '{name}' must be a mapping")
            try:
                sections[name] = section_cls(**values)
            except TypeError as e:
                raise ConfigError(f"Invalid keys in section '{name}': {e}") from e

        app_config = cls(**sections)
        app_config.validate()
        return app_config

    def validate(self) -> None:
        try:
            self.physics.settings()
        except ValueError as e:
            raise ConfigError(str(e)) from e
        if self.physics.prediction_minutes < 0:
            raise ConfigError(f"physics.prediction_minutes must be non-negative, got {self.physics.prediction_minutes}")
        if self.view.width <= 0 or self.view.height <= 0:
            raise ConfigError(f"view size must be positive, got {self.view.width}x{self.view.height}")
        if not 0 < self.view.fov_deg < 180:
            raise ConfigError(f"view.fov_deg must be in (0, 180), got {self.view.fov_deg}")
        if self.output.dpi <= 0:
            raise ConfigError(f"output.dpi must be positive, got {self.output.dpi}")
        self.logging.level = str(self.logging.level).upper()
        if self.logging.level not in LOG_LEVELS:
            raise ConfigError(f"logging.level must be one of {LOG_LEVELS}, got {self.logging.level}")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def load_app_config(config_path: Optional[Union[str, Path]] = None) -> AppConfig:
    """
    Build the application configuration.

    Defaults are overridden by the YAML file (when given), then by the
    ``TRAJVIZ_LOG_LEVEL`` environment variable.
    """
    overrides = load_config(config_path) if config_path is not None else {}
    env_level = os.environ.get(LOG_LEVEL_ENV)
    if env_level:
        overrides = merge_configs(overrides, {"logging": {"level": env_level}})
    return AppConfig.from_dict(overrides)
