"""
Domain Errors - Shared exception taxonomy for profile and proxy operations

@.architecture
Incoming: core/profiles/store.py, core/runtime/proxy.py --- {HTTP status codes, transport failures, unknown uids/groups/nodes}
Processing: exception classes only --- {1 job: error_classification}
Outgoing: core/sync/reconciler.py, core/sync/controller.py, api/v1/endpoints/*.py --- {NotFoundError, FetchError, EnhancementError}

NotFoundError is benign during reconciliation (the referenced entity went away
while the profile set was loading) but a hard failure for explicit user
actions such as selecting a profile.
"""

from typing import Optional


class ProfileSyncError(Exception):
    """Base class for all profile/proxy synchronization failures."""

    def __init__(self, message: str, *, detail: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail


class NotFoundError(ProfileSyncError):
    """Raised when a referenced profile uid, proxy group or node does not exist."""
    pass


class FetchError(ProfileSyncError):
    """Raised on transport or upstream failures while fetching or importing."""
    pass


class EnhancementError(ProfileSyncError):
    """Raised when re-applying the enhancement chain fails."""
    pass
