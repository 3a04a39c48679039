"""
Service layer for the Secret Mirror operator.

This module provides the reconciler and the Secret-to-SecretMirror mapping,
separated from the kopf handler layer.
"""

from .base_reconciler import BaseReconciler, ReconcileAction, ReconcileResult
from .reverse_mapper import map_secret_to_mirrors, reconcile_targets_for_secret
from .secret_mirror_reconciler import SecretMirrorReconciler

__all__ = [
    "BaseReconciler",
    "ReconcileAction",
    "ReconcileResult",
    "SecretMirrorReconciler",
    "map_secret_to_mirrors",
    "reconcile_targets_for_secret",
]
