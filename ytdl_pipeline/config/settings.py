"""
Configuration management for ytdl-pipeline

This module handles loading, validation, and management of application settings
from YAML files and environment variables.

The configuration is organized into logical sections using dataclasses:
- Extractor settings (executable, time limit, default format, default flags)
- Metadata cache settings (directory, time-to-live, on/off switch)
- Download preferences (output directory)
- Logging settings (level, file, rotation, console output)

Environment variables take precedence over the YAML file, which takes
precedence over the dataclass defaults.
"""

import os
import yaml
from pathlib import Path
from typing import Dict, Any, Optional
from dataclasses import dataclass, field
from dotenv import load_dotenv

from ..exceptions import ConfigError

# Load environment variables from .env file if present
load_dotenv()


@dataclass
class ExtractorConfig:
    """
    Extractor process settings

    The executable is looked up on PATH unless an absolute path is given.
    `options` holds default flags applied to every invocation, as a mapping
    of flag to value (None for presence-only flags).
    """
    executable: str = "yt-dlp"
    timeout: int = 3600
    default_format: str = "best"
    options: Dict[str, Any] = field(default_factory=dict)


@dataclass
class CacheConfig:
    """
    Metadata cache settings

    `duration` is the time-to-live of a cached metadata blob in seconds.
    Setting `enabled` to false turns the cache into a pass-through.
    """
    enabled: bool = True
    directory: str = "cache"
    duration: int = 86400


@dataclass
class DownloadConfig:
    """
    Download settings

    An empty output directory means the current working directory.
    An explicit `-o`/`--output` extractor option always wins over it.
    """
    output_directory: str = ""


@dataclass
class LoggingConfig:
    """
    Logging configuration and output settings
    """
    level: str = "INFO"
    file: str = ""
    max_size: str = "10MB"
    backup_count: int = 3
    console_output: bool = True
    colored_output: bool = True


class Settings:
    """
    Main settings class that manages all configuration

    Loads settings from the first YAML file found, then applies environment
    variable overrides. Sections are exposed as attributes:
    `extractor`, `cache`, `download`, `logging`.
    """

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize settings from config file and environment variables

        Args:
            config_path: Path to custom config file, if None uses default locations
        """
        self.config_path = config_path
        self.config_dir = Path.home() / ".ytdl-pipeline"
        self.loaded_from: Optional[Path] = None

        self.extractor = ExtractorConfig()
        self.cache = CacheConfig()
        self.download = DownloadConfig()
        self.logging = LoggingConfig()

        self._load_config()
        self._load_environment_variables()

    def _load_config(self) -> None:
        """
        Load configuration from YAML file

        Searches the candidate locations in order and uses the first file
        found. An explicit path that does not exist is an error.
        """
        if self.config_path and not Path(self.config_path).exists():
            raise ConfigError(
                f"Configuration file not found: {self.config_path}",
                details={"file_path": str(self.config_path)}
            )

        config_paths = [
            self.config_path,
            self.config_dir / "config.yaml",
            Path("config/config.yaml"),
            Path("config.yaml")
        ]

        config_data = {}
        for path in config_paths:
            if path and Path(path).exists():
                try:
                    with open(path, 'r', encoding='utf-8') as f:
                        config_data = yaml.safe_load(f) or {}
                except (OSError, yaml.YAMLError) as e:
                    raise ConfigError(
                        f"Failed to load config from {path}: {e}",
                        details={"file_path": str(path), "original_error": str(e)}
                    ) from e
                self.loaded_from = Path(path)
                break

        if not isinstance(config_data, dict):
            raise ConfigError(
                "Configuration file must contain a YAML dictionary",
                details={"file_path": str(self.loaded_from)}
            )

        self._apply_config(config_data)

    def _apply_config(self, config_data: Dict[str, Any]) -> None:
        """
        Apply configuration data to dataclass instances

        Only keys that exist on the target dataclass are applied; unknown
        sections and keys are ignored.

        Args:
            config_data: Dictionary containing configuration sections
        """
        config_mapping = {
            'extractor': self.extractor,
            'cache': self.cache,
            'download': self.download,
            'logging': self.logging,
        }

        for section_name, section_data in config_data.items():
            if section_name in config_mapping and isinstance(section_data, dict):
                config_obj = config_mapping[section_name]
                for key, value in section_data.items():
                    if hasattr(config_obj, key):
                        setattr(config_obj, key, value)

    def _load_environment_variables(self) -> None:
        """
        Load configuration overrides from environment variables
        """
        env_mappings = {
            'YTDL_EXECUTABLE': lambda v: setattr(self.extractor, 'executable', v),
            'YTDL_TIMEOUT': lambda v: setattr(self.extractor, 'timeout', int(v)),
            'YTDL_CACHE_DIR': lambda v: setattr(self.cache, 'directory', v),
            'YTDL_CACHE_DURATION': lambda v: setattr(self.cache, 'duration', int(v)),
            'YTDL_CACHE_ENABLED': lambda v: setattr(self.cache, 'enabled', _parse_bool(v)),
            'YTDL_OUTPUT_DIR': lambda v: setattr(self.download, 'output_directory', v),
        }

        for env_var, setter in env_mappings.items():
            value = os.getenv(env_var)
            if value:
                try:
                    setter(value)
                except ValueError as e:
                    raise ConfigError(
                        f"Invalid value for {env_var}: {value}",
                        details={"variable": env_var, "original_error": str(e)}
                    ) from e

    def get_output_directory(self) -> str:
        """
        Get the expanded output directory, empty string for the current directory
        """
        if not self.download.output_directory:
            return ""
        return str(Path(self.download.output_directory).expanduser())

    def validate(self) -> None:
        """
        Validate current configuration

        Raises:
            ConfigError: On the first invalid value found
        """
        if not isinstance(self.extractor.executable, str) or not self.extractor.executable.strip():
            raise ConfigError(
                "'extractor.executable' must be a non-empty string",
                details={"field": "extractor.executable"}
            )

        if not isinstance(self.extractor.timeout, int) or self.extractor.timeout < 1:
            raise ConfigError(
                "'extractor.timeout' must be a positive integer",
                details={"field": "extractor.timeout", "value": self.extractor.timeout}
            )

        if not isinstance(self.extractor.options, dict):
            raise ConfigError(
                "'extractor.options' must be a mapping of flag to value",
                details={"field": "extractor.options"}
            )

        if not isinstance(self.cache.duration, int) or self.cache.duration < 0:
            raise ConfigError(
                "'cache.duration' must be a non-negative integer",
                details={"field": "cache.duration", "value": self.cache.duration}
            )

        if self.logging.level.upper() not in ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']:
            raise ConfigError(
                f"Invalid logging level: {self.logging.level}",
                details={"field": "logging.level", "value": self.logging.level}
            )

    def __str__(self) -> str:
        sections = [
            f"Extractor: {self.extractor.executable}",
            f"Cache: {self.cache.directory if self.cache.enabled else 'disabled'}",
            f"Output: {self.download.output_directory or '.'}",
        ]
        return f"Settings({', '.join(sections)})"


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


# Global settings instance for singleton pattern
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get the global settings instance, created on first access

    Returns:
        The global Settings instance
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reload_settings(config_path: Optional[str] = None) -> Settings:
    """
    Reload settings from configuration files

    Args:
        config_path: Optional path to specific config file

    Returns:
        New Settings instance with reloaded configuration
    """
    global _settings
    _settings = Settings(config_path)
    return _settings
