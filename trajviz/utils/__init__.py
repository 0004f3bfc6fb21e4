"""Utils package for trajviz."""

from .config import AppConfig, ConfigError, load_app_config, load_config, merge_configs, save_config

__all__ = ['AppConfig', 'ConfigError', 'load_app_config', 'load_config', 'merge_configs', 'save_config']
