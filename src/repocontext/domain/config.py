from __future__ import annotations

"""
Configuration Domain Management.

Handles persistent storage of user settings as JSON in the application
data directory. Missing keys fall back to defaults; a corrupted file is
ignored rather than blocking startup.
"""

import json
import logging
import os
from typing import Any, Dict, Optional

from repocontext.domain import constants as const
from repocontext.infra.fs import get_config_path

logger = logging.getLogger(__name__)

TOKEN_ENV_VAR = "GITHUB_TOKEN"

# -----------------------------------------------------------------------------
# Defaults
# -----------------------------------------------------------------------------
def get_default_settings() -> Dict[str, Any]:
    """
    Generate the default settings dictionary.

    Returns:
        Dict[str, Any]: Default configuration values.
    """
    return {
        "version": const.CURRENT_CONFIG_VERSION,

        # Repository access
        "github_token": "",
        "api_base_url": const.GITHUB_API_BASE_URL,
        "request_timeout": const.REQUEST_TIMEOUT,

        # Selection persistence
        "save_debounce_ms": const.SAVE_DEBOUNCE_MS,

        # Metrics
        "bytes_per_token": const.BYTES_PER_TOKEN_ESTIMATE,

        # Diagnostics
        "log_level": "INFO",
        "log_to_file": False,
    }

# -----------------------------------------------------------------------------
# Persistence Logic
# -----------------------------------------------------------------------------
def load_settings(path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load settings from disk, merged over the defaults.

    The GITHUB_TOKEN environment variable overrides a stored token.

    Args:
        path: Optional explicit settings file location.

    Returns:
        Dict[str, Any]: The effective settings.
    """
    settings = get_default_settings()
    config_file = path or get_config_path()

    if os.path.exists(config_file):
        try:
            with open(config_file, "r", encoding="utf-8") as f:
                data = json.load(f)

            if isinstance(data, dict):
                settings.update({k: v for k, v in data.items() if k in settings})
            else:
                logger.warning("Corrupted settings file. Using defaults.")
        except (OSError, ValueError) as e:
            logger.error(f"Failed to load settings: {e}. Using defaults.")
    else:
        logger.debug("Settings file not found. Using defaults.")

    env_token = os.environ.get(TOKEN_ENV_VAR)
    if env_token:
        settings["github_token"] = env_token

    settings["version"] = const.CURRENT_CONFIG_VERSION
    return settings


def save_settings(settings: Dict[str, Any], path: Optional[str] = None) -> bool:
    """
    Persist settings to disk.

    Args:
        settings: The settings dictionary to save.
        path: Optional explicit settings file location.

    Returns:
        bool: True on success.
    """
    config_file = path or get_config_path()
    try:
        os.makedirs(os.path.dirname(os.path.abspath(config_file)), exist_ok=True)
        payload = dict(settings)
        payload["version"] = const.CURRENT_CONFIG_VERSION
        with open(config_file, "w", encoding="utf-8") as f:
            json.dump(payload, f, ensure_ascii=False, indent=4)
        logger.debug(f"Settings saved to {config_file}")
        return True
    except OSError as e:
        logger.error(f"Failed to save settings: {e}")
        return False


def debounce_seconds(settings: Dict[str, Any]) -> float:
    """Return the persistence debounce window in seconds."""
    try:
        ms = float(settings.get("save_debounce_ms", const.SAVE_DEBOUNCE_MS))
    except (TypeError, ValueError):
        ms = const.SAVE_DEBOUNCE_MS
    return max(0.0, ms) / 1000.0
