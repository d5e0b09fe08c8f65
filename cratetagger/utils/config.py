"""
Configuration management for cratetagger.

Loads YAML configuration with ${ENV_VAR} interpolation and exposes the
signal-processing parameters as a typed ``AnalysisSettings`` object.
"""

import os
import re
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from cratetagger.utils.errors import ConfigurationError


class ConfigManager:
    """
    Manages application configuration loaded from YAML files.

    Features:
    - YAML configuration loading
    - Environment variable interpolation (${VAR_NAME})
    - Nested key access with dot notation
    - Schema validation
    """

    _env_pattern = re.compile(r'\$\{([^}]+)\}')

    def __init__(self, config_dict: Optional[Dict[str, Any]] = None):
        self._config: Dict[str, Any] = config_dict or {}

    @classmethod
    def from_file(cls, file_path: Path) -> "ConfigManager":
        """
        Create ConfigManager from YAML file.

        Raises:
            ConfigurationError: If file cannot be loaded or parsed
        """
        file_path = Path(file_path)
        if not file_path.exists():
            raise ConfigurationError(
                f"Configuration file not found: {file_path}",
                config_key=str(file_path)
            )

        try:
            with open(file_path, 'r') as f:
                config_dict = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Failed to parse YAML configuration: {e}",
                config_key=str(file_path)
            ) from e

        if not isinstance(config_dict, dict):
            raise ConfigurationError(
                f"Configuration root must be a mapping: {file_path}",
                config_key=str(file_path)
            )

        manager = cls(config_dict)
        manager._config = manager._interpolate(manager._config)
        return manager

    def _interpolate(self, value: Any) -> Any:
        """Recursively replace ${ENV_VAR} in every string value."""
        if isinstance(value, dict):
            return {k: self._interpolate(v) for k, v in value.items()}
        if isinstance(value, list):
            return [self._interpolate(v) for v in value]
        if isinstance(value, str):
            return self._interpolate_string(value)
        return value

    def _interpolate_string(self, s: str) -> str:
        def replace(match: re.Match) -> str:
            value = os.environ.get(match.group(1))
            # Unset variables are left as-is
            return match.group(0) if value is None else value

        return self._env_pattern.sub(replace, s)

    def get(self, key: str, default: Any = None, required: bool = False) -> Any:
        """
        Get configuration value using dot notation.

        Example:
            config.get("analysis.onset_threshold", default=0.1)
            config.get("corpus.max_workers", required=True)
        """
        value: Any = self._config

        for k in key.split('.'):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                if required:
                    raise ConfigurationError(
                        f"Required configuration key not found: {key}",
                        config_key=key
                    )
                return default

        return value

    def get_section(self, key: str) -> Dict[str, Any]:
        """Get a configuration section as a dictionary (empty if missing)."""
        value = self.get(key, default={})
        if not isinstance(value, dict):
            return {}
        return value

    def set(self, key: str, value: Any) -> None:
        """Set a configuration value using dot notation."""
        keys = key.split('.')
        current = self._config

        for k in keys[:-1]:
            if not isinstance(current.get(k), dict):
                current[k] = {}
            current = current[k]

        current[keys[-1]] = value

    def to_dict(self) -> Dict[str, Any]:
        """Return configuration as dictionary."""
        return self._config.copy()

    def validate(self, schema: Dict[str, Any]) -> None:
        """
        Validate configuration against a schema.

        Schema format:
            {
                "analysis.onset_threshold": {"type": float, "required": True},
                "corpus.max_workers": {"type": int}
            }

        Raises:
            ConfigurationError: If a required key is missing or has the wrong type
        """
        for key, rules in schema.items():
            value = self.get(key)
            expected_type = rules.get("type")

            if value is None:
                if rules.get("required", False):
                    raise ConfigurationError(
                        f"Required configuration missing: {key}",
                        config_key=key
                    )
                continue

            if expected_type and not isinstance(value, expected_type):
                if isinstance(expected_type, tuple):
                    type_name = " or ".join(t.__name__ for t in expected_type)
                else:
                    type_name = expected_type.__name__
                raise ConfigurationError(
                    f"Invalid type for {key}: expected {type_name}, "
                    f"got {type(value).__name__}",
                    config_key=key
                )


# Every reported tempo lies in this range
TEMPO_FLOOR = 60
TEMPO_CEILING = 200


@dataclass(frozen=True)
class AnalysisSettings:
    """Signal-processing parameters shared by the numeric pipeline."""

    spectral_window: int = 2048
    spectral_hop: int = 512
    envelope_window: int = 1024
    envelope_hop: int = 512
    onset_threshold: float = 0.1
    rolloff_fraction: float = 0.85
    chroma_min_freq: float = 80.0
    chroma_max_freq: float = 5000.0
    min_bpm: int = 60
    max_bpm: int = 200
    default_bpm: int = 120

    def __post_init__(self) -> None:
        for name in ("spectral_window", "spectral_hop", "envelope_window", "envelope_hop"):
            if getattr(self, name) <= 0:
                raise ConfigurationError(
                    f"analysis.{name} must be positive", config_key=f"analysis.{name}"
                )
        if not 0.0 < self.rolloff_fraction <= 1.0:
            raise ConfigurationError(
                "analysis.rolloff_fraction must be in (0, 1]",
                config_key="analysis.rolloff_fraction"
            )
        if not TEMPO_FLOOR <= self.min_bpm <= self.default_bpm <= self.max_bpm <= TEMPO_CEILING:
            raise ConfigurationError(
                f"analysis BPM settings must satisfy {TEMPO_FLOOR} <= min_bpm <= default_bpm "
                f"<= max_bpm <= {TEMPO_CEILING}, got min={self.min_bpm} "
                f"default={self.default_bpm} max={self.max_bpm}",
                config_key="analysis.max_bpm" if self.max_bpm > TEMPO_CEILING else "analysis.min_bpm"
            )

    @classmethod
    def from_config(cls, config: Optional[Dict[str, Any]]) -> "AnalysisSettings":
        """Build settings from a full config dict, ignoring unknown keys."""
        section = (config or {}).get("analysis", {}) or {}
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in section.items() if k in known})


SETTINGS_SCHEMA: Dict[str, Dict[str, Any]] = {
    "analysis.spectral_window": {"type": int},
    "analysis.spectral_hop": {"type": int},
    "analysis.envelope_window": {"type": int},
    "analysis.envelope_hop": {"type": int},
    "analysis.onset_threshold": {"type": (int, float)},
    "analysis.min_bpm": {"type": int},
    "analysis.max_bpm": {"type": int},
    "analysis.default_bpm": {"type": int},
    "corpus.max_workers": {"type": int},
    "audio.max_file_size": {"type": int},
}


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load configuration from file or return defaults.

    Values from the file are merged over ``get_default_config()``, so a
    partial file only needs the keys it changes.

    Args:
        config_path: Optional path to config file.
                    If None, tries "config/config.yaml"
    """
    if config_path is None:
        default_paths = [
            Path("config/config.yaml"),
            Path("config.yaml"),
            Path(__file__).parent.parent.parent / "config" / "config.yaml",
        ]

        for path in default_paths:
            if path.exists():
                config_path = str(path)
                break
    elif not Path(config_path).exists():
        raise ConfigurationError(
            f"Configuration file not found: {config_path}", config_key=config_path
        )

    config = get_default_config()
    if config_path:
        manager = ConfigManager.from_file(Path(config_path))
        manager.validate(SETTINGS_SCHEMA)
        config = _deep_merge(config, manager.to_dict())
        AnalysisSettings.from_config(config)

    return config


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def get_default_config() -> Dict[str, Any]:
    """Return default configuration values."""
    return {
        "audio": {
            "supported_formats": [".wav", ".aiff", ".aif", ".flac", ".ogg", ".mp3"],
            "max_file_size": 524288000,  # 500 MB
            "decode_enabled": True,
        },
        "analysis": {
            "spectral_window": 2048,
            "spectral_hop": 512,
            "envelope_window": 1024,
            "envelope_hop": 512,
            "onset_threshold": 0.1,
            "rolloff_fraction": 0.85,
            "chroma_min_freq": 80.0,
            "chroma_max_freq": 5000.0,
            "min_bpm": 60,
            "max_bpm": 200,
            "default_bpm": 120,
        },
        "corpus": {
            "max_workers": 1,
        },
        "logging": {
            "level": "INFO",
            "format": "text",
        },
    }
