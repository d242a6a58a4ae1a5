"""
API V1 - Versioned HTTP surface of the activation controller.
"""

from .router import api_v1_router

__all__ = ['api_v1_router']
