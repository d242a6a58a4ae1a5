"""
Runtime - Live proxy group state and selection writes.
"""

from .models import GLOBAL_GROUP, ProxyGroupState, ProxySnapshot
from .proxy import (
    ProxyRuntime,
    ClashProxyRuntime,
    InMemoryProxyRuntime,
    parse_clash_proxies,
)

__all__ = [
    'GLOBAL_GROUP',
    'ProxyGroupState',
    'ProxySnapshot',
    'ProxyRuntime',
    'ClashProxyRuntime',
    'InMemoryProxyRuntime',
    'parse_clash_proxies',
]
