"""
profilesync - Keeps proxy profiles and the running proxy engine in agreement.

Components:
- core.profiles: profile models, classification and the profile store
- core.runtime: proxy runtime snapshots and group selection
- core.sync: cache, reconciliation and the activation controller
- api: FastAPI surface over the activation controller
"""

__version__ = "0.1.0"
