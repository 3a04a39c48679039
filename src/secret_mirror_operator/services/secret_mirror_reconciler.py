"""
SecretMirror reconciliation service.

This module converges the Secret in a SecretMirror's namespace onto the
Secret of the same name in ``spec.fromNamespace``:
- Creates the mirrored Secret when it is missing
- Overwrites its data when it drifts from the source
- Deletes it when the source disappears
- Never touches a Secret the SecretMirror does not control

Every pass reads all state fresh, so it can be re-run at any time.
"""

from ..constants import MESSAGE_CONFLICT, MESSAGE_SOURCE_MISSING, MESSAGE_SYNCED
from ..errors import NotFoundError
from ..models import MirroredSecret, SecretMirror
from ..observability.metrics import metrics_collector
from ..utils.kubernetes import SecretMirrorStore
from ..utils.ownership import is_owned, set_controller_reference
from ..utils.secret_data import secret_data_equal
from .base_reconciler import BaseReconciler, ReconcileAction, ReconcileResult


class SecretMirrorReconciler(BaseReconciler):
    """Reconciler for SecretMirror resources."""

    resource_type = "secretmirror"

    def __init__(self, store: SecretMirrorStore):
        """
        Initialize the reconciler.

        Args:
            store: Store used for every read and write
        """
        super().__init__()
        self.store = store

    async def do_reconcile(self, namespace: str, name: str) -> ReconcileResult:
        try:
            mirror = await self.store.get_secret_mirror(namespace, name)
        except NotFoundError:
            # Mirrored Secrets are garbage-collected through their owner reference
            self.logger.debug(f"SecretMirror {namespace}/{name} not found")
            return ReconcileResult(ReconcileAction.MIRROR_GONE)

        try:
            source = await self.store.get_secret(*mirror.source_key)
        except NotFoundError:
            return await self._handle_missing_source(mirror)

        try:
            destination = await self.store.get_secret(*mirror.destination_key)
        except NotFoundError:
            return await self._create_destination(mirror, source)

        if not is_owned(destination, mirror):
            return self._conflict(mirror)

        if secret_data_equal(destination.data, source.data):
            return ReconcileResult(
                ReconcileAction.IN_SYNC,
                message=MESSAGE_SYNCED.format(mirror.spec.from_namespace),
            )

        destination.data = dict(source.data)
        await self.store.update_secret(destination)

        metrics_collector.record_secret_operation(mirror.namespace, "update")
        self.logger.secret_mutation("update", str(destination.key), str(source.key))
        return ReconcileResult(
            ReconcileAction.UPDATED,
            message=MESSAGE_SYNCED.format(mirror.spec.from_namespace),
        )

    async def _handle_missing_source(self, mirror: SecretMirror) -> ReconcileResult:
        """Remove the mirrored Secret once its source is gone."""
        message = MESSAGE_SOURCE_MISSING.format(mirror.name, mirror.spec.from_namespace)

        try:
            destination = await self.store.get_secret(*mirror.destination_key)
        except NotFoundError:
            self.logger.debug(f"{message}; nothing mirrored in {mirror.namespace}")
            return ReconcileResult(ReconcileAction.NOTHING_TO_DO, message=message)

        if not is_owned(destination, mirror):
            return self._conflict(mirror)

        try:
            await self.store.delete_secret(destination)
        except NotFoundError:
            self.logger.debug(f"Secret {destination.key} already deleted")
        else:
            metrics_collector.record_secret_operation(mirror.namespace, "delete")
            self.logger.secret_mutation(
                "delete", str(destination.key), str(mirror.source_key)
            )

        # Ask for another pass to confirm the deletion converged
        return ReconcileResult(ReconcileAction.DELETED, requeue=True, message=message)

    async def _create_destination(
        self, mirror: SecretMirror, source: MirroredSecret
    ) -> ReconcileResult:
        destination = MirroredSecret(
            name=mirror.name,
            namespace=mirror.namespace,
            # type is left unset: the API server defaults copies to Opaque
            data=dict(source.data),
        )
        set_controller_reference(destination, mirror)
        await self.store.create_secret(destination)

        metrics_collector.record_secret_operation(mirror.namespace, "create")
        self.logger.secret_mutation("create", str(destination.key), str(source.key))
        return ReconcileResult(
            ReconcileAction.CREATED,
            message=MESSAGE_SYNCED.format(mirror.spec.from_namespace),
        )

    def _conflict(self, mirror: SecretMirror) -> ReconcileResult:
        message = MESSAGE_CONFLICT.format(mirror.name, mirror.namespace)
        metrics_collector.record_ownership_conflict(mirror.namespace)
        self.logger.conflict(mirror.namespace, message)
        return ReconcileResult(ReconcileAction.CONFLICT, message=message)
