"""
Simple config loader for profilesync components.
Reads directly from the TOML config shipped with the package.

@.architecture
Incoming: config/profilesync.toml, config/settings.py --- {TOML file, load_config calls}
Processing: load_config(), get_fallback_config() --- {2 jobs: config_loading, fallback_generation}
Outgoing: config/settings.py --- {Dict[str, Any] config data}
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

import toml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = Path(__file__).parent.parent / "config" / "profilesync.toml"


def load_config(config_file: Optional[Path] = None) -> Dict[str, Any]:
    """Load configuration from the TOML file, falling back to built-in defaults."""
    path = config_file or DEFAULT_CONFIG_FILE
    try:
        with open(path, 'r') as f:
            return toml.load(f)
    except (OSError, toml.TomlDecodeError) as e:
        logger.warning(f"Failed to load config from {path}: {e}")
        return get_fallback_config()


def get_fallback_config() -> Dict[str, Any]:
    """Fallback configuration if TOML file can't be loaded."""
    return {
        "APP": {
            "backend": "http",
        },
        "STORE": {
            "base_url": "http://127.0.0.1:33331",
            "timeout": 10.0,
            "max_retries": 3,
        },
        "RUNTIME": {
            "controller_url": "http://127.0.0.1:9097",
            "secret": "",
            "timeout": 5.0,
            "max_retries": 3,
        },
        "SYNC": {
            "reconcile_delay": 0.1,
            "max_notices": 50,
        },
    }
