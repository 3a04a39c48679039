"""
SecretMirror handlers - Drives reconciliation of mirrored Secrets.

Every handler reconciles by identity: the SecretMirror and both Secrets are
re-read from the cluster on each pass, whatever event triggered it. kopf
serializes handlers per object, so at most one pass per SecretMirror runs
at a time while different SecretMirrors reconcile concurrently.

Triggers:
- create / resume: initial sync and sync after operator restart
- update: spec edits and reconcile requests stamped by the Secret watcher
- timer: periodic level-triggered resync
"""

import logging
from datetime import UTC, datetime
from typing import Any

import kopf

from ..constants import (
    API_GROUP,
    API_VERSION,
    EVENT_REASON_CONFLICT,
    EVENT_REASON_DELETED,
    PHASE_CONFLICT,
    PHASE_FAILED,
    PHASE_SOURCE_MISSING,
    PHASE_SYNCED,
    SECRET_MIRROR_PLURAL,
)
from ..observability.tracing import traced_handler
from ..services import ReconcileAction, ReconcileResult, SecretMirrorReconciler
from ..settings import settings
from ..utils.handler_logging import log_handler_entry
from ..utils.kubernetes import SecretMirrorStore

logger = logging.getLogger(__name__)

PHASES = {
    ReconcileAction.CREATED: PHASE_SYNCED,
    ReconcileAction.UPDATED: PHASE_SYNCED,
    ReconcileAction.IN_SYNC: PHASE_SYNCED,
    ReconcileAction.NOTHING_TO_DO: PHASE_SOURCE_MISSING,
    ReconcileAction.DELETED: PHASE_SOURCE_MISSING,
    ReconcileAction.CONFLICT: PHASE_CONFLICT,
}


def get_store(memo: kopf.Memo) -> SecretMirrorStore:
    """Return the store shared through the operator memo, creating it on first use."""
    store = getattr(memo, "store", None)
    if store is None:
        store = SecretMirrorStore(
            namespaces=settings.watched_namespaces, dry_run=settings.dry_run
        )
        memo.store = store
    return store


def _record_status(
    patch: kopf.Patch, body: kopf.Body, result: ReconcileResult
) -> None:
    phase = PHASES.get(result.action)
    if phase is None:
        return

    patch.status["phase"] = phase
    patch.status["message"] = result.message
    patch.status["observedGeneration"] = body.get("metadata", {}).get("generation")
    if phase == PHASE_SYNCED:
        patch.status["lastSyncTime"] = datetime.now(UTC).isoformat()

    if result.action == ReconcileAction.CONFLICT:
        kopf.warn(body, reason=EVENT_REASON_CONFLICT, message=result.message)
    elif result.action == ReconcileAction.DELETED:
        kopf.info(body, reason=EVENT_REASON_DELETED, message=result.message)


async def reconcile_secret_mirror(
    name: str,
    namespace: str,
    body: kopf.Body,
    patch: kopf.Patch,
    memo: kopf.Memo,
) -> None:
    """
    Run one reconciliation pass and report it on the SecretMirror status.

    Raises:
        kopf.TemporaryError: When the pass asks to be requeued, or failed
            with a retryable error
        kopf.PermanentError: When the pass failed with a non-retryable error
    """
    reconciler = SecretMirrorReconciler(get_store(memo))
    try:
        result = await reconciler.run(namespace, name)
    except (kopf.TemporaryError, kopf.PermanentError) as e:
        patch.status["phase"] = PHASE_FAILED
        patch.status["message"] = str(e)
        raise

    _record_status(patch, body, result)

    if result.requeue:
        raise kopf.TemporaryError(
            f"Requeue requested after {result.action.value}",
            delay=settings.requeue_delay_seconds,
        )


@kopf.on.create(SECRET_MIRROR_PLURAL, group=API_GROUP, version=API_VERSION)
@kopf.on.resume(SECRET_MIRROR_PLURAL, group=API_GROUP, version=API_VERSION)
@traced_handler("ensure_secretmirror")
async def ensure_secret_mirror(
    name: str,
    namespace: str,
    body: kopf.Body,
    patch: kopf.Patch,
    memo: kopf.Memo,
    **kwargs: Any,
) -> None:
    """Mirror the source Secret when a SecretMirror appears or the operator restarts."""
    log_handler_entry("create/resume", "secretmirror", name, namespace)
    await reconcile_secret_mirror(name, namespace, body, patch, memo)


@kopf.on.update(SECRET_MIRROR_PLURAL, group=API_GROUP, version=API_VERSION)
@traced_handler("update_secretmirror")
async def update_secret_mirror(
    name: str,
    namespace: str,
    body: kopf.Body,
    patch: kopf.Patch,
    memo: kopf.Memo,
    **kwargs: Any,
) -> None:
    """
    Re-run reconciliation after the SecretMirror changed.

    This also covers reconcile requests, which arrive as an annotation change.
    """
    log_handler_entry("update", "secretmirror", name, namespace)
    await reconcile_secret_mirror(name, namespace, body, patch, memo)


@kopf.timer(
    SECRET_MIRROR_PLURAL,
    group=API_GROUP,
    version=API_VERSION,
    interval=settings.resync_interval_seconds,
    initial_delay=settings.resync_interval_seconds,
)
@traced_handler("resync_secretmirror")
async def resync_secret_mirror(
    name: str,
    namespace: str,
    body: kopf.Body,
    patch: kopf.Patch,
    memo: kopf.Memo,
    **kwargs: Any,
) -> None:
    """Periodic resync, converging even when no event was observed."""
    log_handler_entry("timer", "secretmirror", name, namespace)
    await reconcile_secret_mirror(name, namespace, body, patch, memo)
