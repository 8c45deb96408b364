"""
KeyCorrect Configuration Module
===============================
Centralized configuration for dictionaries, matching, ranking,
correction sessions and backups.

Configuration can be set via:
1. Environment variables (KEYCORRECT_MAX_SUGGESTIONS=3)
2. Config file (keycorrect_config.json, or KEYCORRECT_CONFIG_FILE)
3. Direct API calls (config.set('session.auto_apply_threshold', 0.85))

The auto-apply threshold and ambiguity margin are heuristics; they live
here so they can be recalibrated against real typing data.
"""

import os
import json
from pathlib import Path
from typing import Any, Dict, Optional
from dataclasses import dataclass, field, asdict

from . import __version__
from .config_logging import get_logger

logger = get_logger(__name__)

DEFAULT_DICT_DIR = Path(__file__).parent / "dictionaries"
DEFAULT_CUSTOM_DIR = Path.home() / ".keycorrect" / "custom"


def _config_file() -> Path:
    return Path(os.environ.get('KEYCORRECT_CONFIG_FILE', 'keycorrect_config.json'))


@dataclass
class DictionaryConfig:
    """Dictionary asset and overlay locations."""
    dict_dir: str = str(DEFAULT_DICT_DIR)
    custom_dir: str = str(DEFAULT_CUSTOM_DIR)
    languages: list = field(default_factory=lambda: ["en", "id"])


@dataclass
class MatchingConfig:
    """Edit distance matcher configuration."""
    max_edit_distance: int = 2
    adjacent_substitution_cost: float = 0.5
    layout: str = "qwerty"  # qwerty, azerty, qwertz


@dataclass
class RankingConfig:
    """Suggestion ranking configuration."""
    max_suggestions: int = 5
    contraction_confidence: float = 0.95
    context_language_boost: float = 0.1
    context_language_window: int = 5  # Recent words used to guess the language


@dataclass
class SessionConfig:
    """Correction session configuration."""
    enabled: bool = True
    auto_apply_threshold: float = 0.8
    ambiguity_margin: float = 0.05
    context_size: int = 10


@dataclass
class BackupConfig:
    """Backup archive configuration."""
    format_version: int = 1
    app_version: str = __version__


@dataclass
class KeyCorrectConfig:
    """Master configuration."""
    dictionary: DictionaryConfig = field(default_factory=DictionaryConfig)
    matching: MatchingConfig = field(default_factory=MatchingConfig)
    ranking: RankingConfig = field(default_factory=RankingConfig)
    session: SessionConfig = field(default_factory=SessionConfig)
    backup: BackupConfig = field(default_factory=BackupConfig)


# Global configuration instance
_config: Optional[KeyCorrectConfig] = None


def get_config() -> KeyCorrectConfig:
    """Get the global configuration."""
    global _config
    if _config is None:
        _config = _load_config()
    return _config


def _load_config() -> KeyCorrectConfig:
    """Load configuration from file and environment."""
    config = KeyCorrectConfig()

    config_file = _config_file()
    if config_file.exists():
        try:
            with open(config_file, 'r', encoding='utf-8') as f:
                file_config = json.load(f)
            _apply_dict_to_config(config, file_config)
        except (json.JSONDecodeError, IOError) as e:
            logger.warning(f"Could not load config file {config_file}: {e}")

    _apply_env_to_config(config)

    return config


def _apply_dict_to_config(config: KeyCorrectConfig, data: Dict[str, Any]):
    """Apply dictionary values to config object."""
    for section_name, section_data in data.items():
        if hasattr(config, section_name) and isinstance(section_data, dict):
            section = getattr(config, section_name)
            for key, value in section_data.items():
                if hasattr(section, key):
                    setattr(section, key, value)


def _apply_env_to_config(config: KeyCorrectConfig):
    """Apply environment variables to config."""
    env_mappings = {
        'KEYCORRECT_DICT_DIR': ('dictionary', 'dict_dir', str),
        'KEYCORRECT_CUSTOM_DIR': ('dictionary', 'custom_dir', str),
        'KEYCORRECT_LANGUAGES': ('dictionary', 'languages', _parse_list),
        'KEYCORRECT_MAX_EDIT_DISTANCE': ('matching', 'max_edit_distance', int),
        'KEYCORRECT_ADJACENT_COST': ('matching', 'adjacent_substitution_cost', float),
        'KEYCORRECT_LAYOUT': ('matching', 'layout', str),
        'KEYCORRECT_MAX_SUGGESTIONS': ('ranking', 'max_suggestions', int),
        'KEYCORRECT_ENABLED': ('session', 'enabled', _parse_bool),
        'KEYCORRECT_AUTO_APPLY_THRESHOLD': ('session', 'auto_apply_threshold', float),
        'KEYCORRECT_AMBIGUITY_MARGIN': ('session', 'ambiguity_margin', float),
    }

    for env_var, (section, key, converter) in env_mappings.items():
        value = os.environ.get(env_var)
        if value is not None:
            try:
                section_obj = getattr(config, section)
                setattr(section_obj, key, converter(value))
            except (ValueError, AttributeError) as e:
                logger.warning(f"Invalid env var {env_var}={value}: {e}")


def _parse_bool(value: str) -> bool:
    """Parse boolean from string."""
    return value.lower() in ('true', '1', 'yes', 'on')


def _parse_list(value: str) -> list:
    """Parse a comma separated list."""
    items = [item.strip() for item in value.split(',') if item.strip()]
    if not items:
        raise ValueError("empty list")
    return items


def get(key: str, default: Any = None) -> Any:
    """
    Get a configuration value by dot-notation key.

    Example: get('session.auto_apply_threshold') -> 0.8
    """
    obj = get_config()
    for part in key.split('.'):
        if hasattr(obj, part):
            obj = getattr(obj, part)
        else:
            return default
    return obj


def set(key: str, value: Any):
    """
    Set a configuration value by dot-notation key.

    Example: set('ranking.max_suggestions', 3)
    """
    config = get_config()
    parts = key.split('.')

    if len(parts) != 2:
        raise ValueError(f"Key must be in format 'section.key': {key}")

    section_name, attr_name = parts

    if not hasattr(config, section_name):
        raise ValueError(f"Unknown config section: {section_name}")
    section = getattr(config, section_name)
    if not hasattr(section, attr_name):
        raise ValueError(f"Unknown config key: {attr_name}")
    setattr(section, attr_name, value)


def save_config(path: Optional[Path] = None):
    """Save current configuration to file."""
    path = Path(path) if path else _config_file()
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(asdict(get_config()), f, indent=2)


def reset_config():
    """Reset configuration to defaults (re-read on next access)."""
    global _config
    _config = None
