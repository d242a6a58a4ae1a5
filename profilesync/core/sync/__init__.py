"""
Sync - Shared cache, reconciliation and user-action orchestration.
"""

from .cache import PROFILES_KEY, PROXIES_KEY, RUNTIME_LOGS_KEY, StateCache
from .controller import ActivationController
from .guards import SingleFlight, single_flight
from .notifications import Notice, NoticeBoard, NoticeLevel, NotificationSink
from .reconciler import ReconcileResult, SelectionReconciler
from .results import ActionResult, ActionStatus

__all__ = [
    'PROFILES_KEY',
    'PROXIES_KEY',
    'RUNTIME_LOGS_KEY',
    'StateCache',
    'ActivationController',
    'SingleFlight',
    'single_flight',
    'Notice',
    'NoticeBoard',
    'NoticeLevel',
    'NotificationSink',
    'ReconcileResult',
    'SelectionReconciler',
    'ActionResult',
    'ActionStatus',
]
