"""Configuration persistence for KochTrainer.

Saves and restores the mastery level and audio settings between application
launches.
"""
import json
import logging
import os
import sys
from typing import Any, Dict, Optional

from koch_utils import DEFAULT_DOT_MS, DEFAULT_REPEAT_PAUSE_MS, DEFAULT_TONE_HZ

logger = logging.getLogger(__name__)

LEVEL_KEY = 'level'

DEFAULT_SETTINGS: Dict[str, float] = {
    'dot_ms': DEFAULT_DOT_MS,
    'tone_hz': DEFAULT_TONE_HZ,
    'repeat_pause_ms': DEFAULT_REPEAT_PAUSE_MS,
}

# Accepted (min, max) for each setting
SETTING_LIMITS: Dict[str, tuple] = {
    'dot_ms': (10, 500),
    'tone_hz': (100, 2000),
    'repeat_pause_ms': (0, 30000),
}


def get_config_path() -> str:
    """Get platform-appropriate config file path.

    Returns:
        Path to the config file based on the platform.
    """
    if sys.platform == 'win32':
        # Windows: Use AppData\Local
        base = os.environ.get('LOCALAPPDATA', os.path.expanduser('~'))
        config_dir = os.path.join(base, 'KochTrainer')
    elif sys.platform == 'darwin':
        # macOS: Use ~/Library/Application Support
        config_dir = os.path.join(os.path.expanduser('~'), 'Library', 'Application Support', 'KochTrainer')
    else:
        # Linux/Unix: Use XDG_CONFIG_HOME or ~/.config
        xdg_config = os.environ.get('XDG_CONFIG_HOME', os.path.join(os.path.expanduser('~'), '.config'))
        config_dir = os.path.join(xdg_config, 'kochtrainer')

    os.makedirs(config_dir, exist_ok=True)
    return os.path.join(config_dir, 'config.json')


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """Load configuration from disk.

    Returns:
        Dictionary with configuration data, or empty dict if the file doesn't
        exist or cannot be parsed.
    """
    config_path = path or get_config_path()
    if not os.path.exists(config_path):
        return {}

    try:
        with open(config_path, 'r') as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        logger.warning("Ignoring unreadable config %s: %s", config_path, e)
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring config %s: expected a JSON object", config_path)
        return {}
    return data


def save_config(config: Dict[str, Any], path: Optional[str] = None) -> None:
    """Save configuration to disk.

    Args:
        config: Dictionary with configuration data to save.
        path: Override for the config file location.
    """
    config_path = path or get_config_path()
    try:
        with open(config_path, 'w') as f:
            json.dump(config, indent=2, fp=f)
    except OSError as e:
        logger.warning("Could not write config %s: %s", config_path, e)


def load_settings(path: Optional[str] = None) -> Dict[str, float]:
    """Return audio settings from the config file merged over the defaults.

    Values that are missing, non-numeric or out of range fall back to the
    default.
    """
    config = load_config(path)
    settings = dict(DEFAULT_SETTINGS)
    for key, (lo, hi) in SETTING_LIMITS.items():
        value = config.get(key)
        if value is None:
            continue
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not lo <= value <= hi:
            logger.warning("Ignoring invalid %s=%r in config", key, value)
            continue
        settings[key] = value
    return settings


def save_settings(settings: Dict[str, float], path: Optional[str] = None) -> None:
    """Write audio settings, keeping every other key in the file."""
    config = load_config(path)
    config.update({k: settings[k] for k in DEFAULT_SETTINGS if k in settings})
    save_config(config, path)


class JsonLevelStore:
    """LevelStore keeping the mastery level under ``level`` in the config file."""

    def __init__(self, path: Optional[str] = None):
        self.path = path or get_config_path()

    def get_level(self) -> Optional[int]:
        value = load_config(self.path).get(LEVEL_KEY)
        if isinstance(value, bool) or not isinstance(value, int):
            if value is not None:
                logger.warning("Ignoring invalid stored level %r", value)
            return None
        return value

    def set_level(self, level: int) -> None:
        config = load_config(self.path)
        config[LEVEL_KEY] = int(level)
        save_config(config, self.path)

    def clear(self) -> None:
        """Forget the stored level so the next launch starts from the beginning."""
        config = load_config(self.path)
        if config.pop(LEVEL_KEY, None) is not None:
            save_config(config, self.path)
