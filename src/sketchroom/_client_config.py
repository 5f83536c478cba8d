# Area: Shared
"""
sketchroom._client_config — Client Configuration
================================================

Configuration loading, defaults and validation for the headless
client and the demo. Configuration is a plain dict: a JSON file
(optional) overridden by environment variables. A ``.env`` file in
the working directory is loaded first.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from .errors import ConfigError

logger = logging.getLogger("sketchroom")

DEFAULTS: Dict[str, Any] = {
    "player_name": "Player",
    "store": "memory",
    "poll_interval_seconds": 1.0,
    "kick_debounce_seconds": 2.0,
    "stuck_timeout_seconds": 10.0,
    "ended_countdown_seconds": 5.0,
    "log_file": "sketchroom.log",
    "profile_db_path": "sketchroom.db",
    "firestore_collection": "rooms",
}

REQUIRED_CONFIG_KEYS = [
    "player_id",
]

STORE_BACKENDS = ("memory", "firestore")

INTERVAL_KEYS = (
    "poll_interval_seconds",
    "kick_debounce_seconds",
    "stuck_timeout_seconds",
    "ended_countdown_seconds",
)

# Environment variable -> config key
ENV_MAPPINGS = {
    "SKETCHROOM_PLAYER_ID": "player_id",
    "SKETCHROOM_PLAYER_NAME": "player_name",
    "SKETCHROOM_ROOM_CODE": "room_code",
    "SKETCHROOM_STORE": "store",
    "SKETCHROOM_LOG_FILE": "log_file",
    "SKETCHROOM_PROFILE_DB": "profile_db_path",
    "POLL_INTERVAL_SECONDS": "poll_interval_seconds",
    "GOOGLE_CLOUD_PROJECT": "firestore_project",
    "FIRESTORE_COLLECTION": "firestore_collection",
    "FIRESTORE_EMULATOR_HOST": "firestore_emulator_host",
}


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """Load config from file and environment, on top of DEFAULTS."""
    load_dotenv()
    config: Dict[str, Any] = dict(DEFAULTS)

    if config_path:
        path = Path(config_path)
        if path.exists():
            with open(path, encoding="utf-8") as f:
                config.update(json.load(f))
        else:
            logger.warning(f"Config file not found: {config_path}")

    for env_key, config_key in ENV_MAPPINGS.items():
        if env_key in os.environ:
            value: Any = os.environ[env_key]
            if config_key in INTERVAL_KEYS:
                value = float(value)
            config[config_key] = value

    return config


def validate_config(config: dict) -> None:
    """
    Validate required configuration keys and values.

    Args:
        config: Configuration dict

    Raises:
        ConfigError: If required keys are missing or a value is invalid
    """
    missing = [k for k in REQUIRED_CONFIG_KEYS if not config.get(k)]
    if missing:
        raise ConfigError(f"Missing required config keys: {missing}")

    store = config.get("store", DEFAULTS["store"])
    if store not in STORE_BACKENDS:
        raise ConfigError(f"Unknown store '{store}', expected one of {STORE_BACKENDS}")

    for key in INTERVAL_KEYS:
        value = config.get(key, DEFAULTS[key])
        if not isinstance(value, (int, float)) or value <= 0:
            raise ConfigError(f"{key} must be a positive number, got {value!r}")
