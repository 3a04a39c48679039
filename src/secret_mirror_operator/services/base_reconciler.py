"""
Base reconciler class providing common patterns for resource reconciliation.

This module defines the BaseReconciler class that wraps a reconciliation
pass with correlation-id logging, metrics and translation of operator
errors into kopf's retry signals.
"""

import enum
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass

from ..errors import OperatorError, TemporaryError
from ..observability.logging import ReconcileLogger
from ..observability.metrics import metrics_collector


class ReconcileAction(enum.StrEnum):
    """What a reconciliation pass did."""

    MIRROR_GONE = "mirror_gone"
    NOTHING_TO_DO = "nothing_to_do"
    CREATED = "created"
    UPDATED = "updated"
    IN_SYNC = "in_sync"
    DELETED = "deleted"
    CONFLICT = "conflict"


@dataclass(frozen=True)
class ReconcileResult:
    """
    Outcome of one reconciliation pass.

    ``requeue`` asks the dispatcher to run the same identity again even
    though no further change event is expected.
    """

    action: ReconcileAction
    requeue: bool = False
    message: str = ""

class BaseReconciler(ABC):
    """
    Base class for reconcilers driven by kopf handlers.

    ``run`` wraps one pass of ``do_reconcile`` with a correlation id,
    reconciliation metrics and the translation of operator errors into
    kopf.TemporaryError / kopf.PermanentError.
    """

    resource_type = "resource"

    def __init__(self):
        self.logger = ReconcileLogger(self.__class__.__module__)

    async def run(self, namespace: str, name: str) -> ReconcileResult:
        """
        Reconcile one object by identity.

        Raises:
            kopf.TemporaryError: For retryable failures
            kopf.PermanentError: For failures retrying cannot fix
        """
        started = time.monotonic()
        self.logger.begin(namespace, name)

        async with metrics_collector.track_reconciliation(namespace, name):
            try:
                result = await self.do_reconcile(namespace, name)
            except Exception as e:
                error = (
                    e
                    if isinstance(e, OperatorError)
                    else TemporaryError(f"Unexpected error during reconciliation: {e}")
                )
                self.logger.failure(namespace, name, error, time.monotonic() - started)
                raise error.as_kopf_error() from e

        self.logger.outcome(
            namespace,
            name,
            result.action.value,
            result.requeue,
            time.monotonic() - started,
        )
        return result

    @abstractmethod
    async def do_reconcile(self, namespace: str, name: str) -> ReconcileResult:
        """
        One pass of reconciliation logic.

        Implementations read all state fresh and raise OperatorError
        subclasses on failure.
        """
