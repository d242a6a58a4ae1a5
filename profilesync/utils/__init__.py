"""
Utilities Package - Helper modules.

- http: HTTP client with retry and timeout management
- config: Configuration loading
"""

from .http import (
    HTTPClient,
    HTTPClientConfig,
)

from .config import (
    load_config,
    get_fallback_config,
)

__all__ = [
    # HTTP
    'HTTPClient',
    'HTTPClientConfig',

    # Config
    'load_config',
    'get_fallback_config',
]
