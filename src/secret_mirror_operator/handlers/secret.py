"""
Secret watch handler - Turns Secret changes into SecretMirror reconciles.

kopf only notifies handlers about the kind they watch. When a source Secret
changes, or someone edits or removes a mirrored Secret, the affected
SecretMirrors are looked up and asked to reconcile again.
"""

import logging
from typing import Any

import kopf

from ..errors import NotFoundError, OperatorError
from ..models import OwnerReference
from ..observability.metrics import metrics_collector
from ..services import reconcile_targets_for_secret
from ..utils.handler_logging import log_handler_entry
from .secret_mirror import get_store

logger = logging.getLogger(__name__)


@kopf.on.event("v1", "secrets")
async def secret_changed(
    event: kopf.RawEvent,
    name: str,
    namespace: str,
    meta: kopf.Meta,
    memo: kopf.Memo,
    **kwargs: Any,
) -> None:
    """
    Request reconciliation of every SecretMirror affected by a Secret event.

    Objects from the initial listing are skipped: SecretMirrors are resumed
    on startup anyway. Failures are logged, never raised, so a broken lookup
    cannot stall the event stream; the periodic resync catches up.
    """
    if event.get("type") is None:
        return

    store = get_store(memo)

    try:
        mirrors = await store.list_secret_mirrors()
    except OperatorError as e:
        logger.warning(f"Cannot list SecretMirrors for Secret {namespace}/{name}: {e}")
        mirrors = []

    owner_references = [
        OwnerReference.from_k8s(ref) for ref in meta.get("ownerReferences") or []
    ]
    targets = reconcile_targets_for_secret(namespace, name, owner_references, mirrors)
    if not targets:
        return

    log_handler_entry(
        "event", "secret", name, namespace, extra={"event_type": event["type"]}
    )
    metrics_collector.record_reconcile_requests(namespace, len(targets))
    for key in sorted(targets):
        try:
            await store.request_reconcile(key)
            logger.debug(f"Requested reconcile of SecretMirror {key} for Secret {namespace}/{name}")
        except NotFoundError:
            logger.debug(f"SecretMirror {key} no longer exists")
        except OperatorError as e:
            logger.warning(f"Failed to request reconcile of SecretMirror {key}: {e}")
