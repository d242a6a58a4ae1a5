"""
Configuration - Typed settings loaded from TOML and the environment.
"""

from .settings import Settings, get_settings, reload_settings

__all__ = ['Settings', 'get_settings', 'reload_settings']
