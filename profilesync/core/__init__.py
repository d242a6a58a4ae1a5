"""
Core Layer - Profile, runtime and synchronization logic.
"""

from .errors import (
    ProfileSyncError,
    NotFoundError,
    FetchError,
    EnhancementError,
)

__all__ = [
    'ProfileSyncError',
    'NotFoundError',
    'FetchError',
    'EnhancementError',
]
