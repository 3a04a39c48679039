"""
Kubernetes utilities for the Secret Mirror operator.

This module provides the store the reconciler reads and writes through:
SecretMirror lookups and listings, and Secret create/read/update/delete.

Key functionality:
- Kubernetes client management and configuration
- Translation of API failures into the operator error hierarchy
- A "not found" error that callers can branch on
- Off-loop execution of the blocking client so every call is a
  cancellation point for the calling handler
"""

import asyncio
import logging
from datetime import UTC, datetime
from typing import Any

from kubernetes import client, config
from kubernetes.client.rest import ApiException

from ..constants import (
    API_GROUP,
    API_VERSION,
    RECONCILE_REQUESTED_ANNOTATION,
    SECRET_MIRROR_KIND,
    SECRET_MIRROR_PLURAL,
)
from ..errors import (
    ConfigurationError,
    KubernetesAPIError,
    NotFoundError,
    ValidationError,
)
from ..models import MirroredSecret, MirrorKey, SecretMirror

logger = logging.getLogger(__name__)

# Statuses worth retrying besides 5xx: optimistic concurrency conflicts
# and API server throttling
RETRYABLE_STATUSES = frozenset({409, 429})


def get_kubernetes_client() -> client.ApiClient:
    """
    Get configured Kubernetes API client.

    This function handles both in-cluster and local development configurations.

    Returns:
        Configured Kubernetes API client
    """
    try:
        # Try in-cluster config first (when running in a pod)
        config.load_incluster_config()
        logger.debug("Loaded in-cluster Kubernetes configuration")
    except config.ConfigException:
        try:
            # Fall back to local kubeconfig (for development)
            config.load_kube_config()
            logger.debug("Loaded kubeconfig from local environment")
        except config.ConfigException as e:
            logger.error(f"Failed to load Kubernetes configuration: {e}")
            raise ConfigurationError(
                f"No Kubernetes configuration available: {e}",
                user_action="Run in a pod with a service account or provide a kubeconfig",
            ) from e

    return client.ApiClient()


def translate_api_exception(
    e: ApiException, kind: str, namespace: str, name: str, verb: str
) -> Exception:
    """
    Map an ApiException onto the operator error hierarchy.

    Returns:
        NotFoundError for HTTP 404, KubernetesAPIError otherwise
    """
    if e.status == 404:
        return NotFoundError(kind, namespace, name)

    status = e.status or None
    retryable = status is None or status >= 500 or status in RETRYABLE_STATUSES
    return KubernetesAPIError(
        f"Failed to {verb} {kind} {namespace}/{name}",
        reason=e.reason,
        status=status,
        retryable=retryable,
        cause=e,
    )


class SecretMirrorStore:
    """Read and write SecretMirrors and Secrets through the Kubernetes API."""

    def __init__(
        self,
        k8s_client: client.ApiClient | None = None,
        namespaces: list[str] | None = None,
        dry_run: bool = False,
    ):
        """
        Initialize the store.

        Args:
            k8s_client: Optional Kubernetes API client
            namespaces: Namespaces to list SecretMirrors in (None = all)
            dry_run: Send mutations with server-side dry run
        """
        self.k8s_client = k8s_client
        self.namespaces = namespaces
        self.dry_run = dry_run
        self._core: client.CoreV1Api | None = None
        self._custom: client.CustomObjectsApi | None = None

    @property
    def core(self) -> client.CoreV1Api:
        """Get CoreV1Api client."""
        if self._core is None:
            self._core = client.CoreV1Api(self.k8s_client or get_kubernetes_client())
        return self._core

    @property
    def custom(self) -> client.CustomObjectsApi:
        """Get CustomObjectsApi client."""
        if self._custom is None:
            self._custom = client.CustomObjectsApi(
                self.k8s_client or get_kubernetes_client()
            )
        return self._custom

    async def server_version(self) -> str:
        """
        Return the API server's git version, proving the API is reachable.

        Raises:
            KubernetesAPIError: If the API server cannot be queried
        """
        version_api = client.VersionApi(self.k8s_client or get_kubernetes_client())
        try:
            info = await asyncio.to_thread(version_api.get_code)
        except ApiException as e:
            raise translate_api_exception(e, "Version", "", "apiserver", "get") from e
        return info.git_version

    def _mutation_kwargs(self) -> dict[str, Any]:
        return {"dry_run": "All"} if self.dry_run else {}

    async def get_secret_mirror(self, namespace: str, name: str) -> SecretMirror:
        """
        Fetch a SecretMirror.

        Raises:
            NotFoundError: If the SecretMirror does not exist
            KubernetesAPIError: On any other API failure
            ValidationError: If the stored spec is invalid
        """
        try:
            obj = await asyncio.to_thread(
                self.custom.get_namespaced_custom_object,
                group=API_GROUP,
                version=API_VERSION,
                namespace=namespace,
                plural=SECRET_MIRROR_PLURAL,
                name=name,
            )
        except ApiException as e:
            raise translate_api_exception(
                e, SECRET_MIRROR_KIND, namespace, name, "get"
            ) from e
        return SecretMirror.from_k8s(obj)

    async def list_secret_mirrors(self) -> list[SecretMirror]:
        """
        List SecretMirrors across the watched namespaces.

        Objects with an invalid spec are skipped with a warning.

        Raises:
            KubernetesAPIError: If listing fails
        """
        try:
            if self.namespaces:
                items: list[dict[str, Any]] = []
                for namespace in self.namespaces:
                    response = await asyncio.to_thread(
                        self.custom.list_namespaced_custom_object,
                        group=API_GROUP,
                        version=API_VERSION,
                        namespace=namespace,
                        plural=SECRET_MIRROR_PLURAL,
                    )
                    items.extend(response.get("items", []))
            else:
                response = await asyncio.to_thread(
                    self.custom.list_cluster_custom_object,
                    group=API_GROUP,
                    version=API_VERSION,
                    plural=SECRET_MIRROR_PLURAL,
                )
                items = response.get("items", [])
        except ApiException as e:
            raise translate_api_exception(
                e, SECRET_MIRROR_KIND, ",".join(self.namespaces or ["*"]), "*", "list"
            ) from e

        mirrors = []
        for item in items:
            try:
                mirrors.append(SecretMirror.from_k8s(item))
            except ValidationError as e:
                logger.warning(f"Skipping invalid SecretMirror: {e}")
        logger.debug(f"Listed {len(mirrors)} SecretMirrors")
        return mirrors

    async def get_secret(self, namespace: str, name: str) -> MirroredSecret:
        """
        Fetch a Secret.

        Raises:
            NotFoundError: If the Secret does not exist
            KubernetesAPIError: On any other API failure
        """
        try:
            secret = await asyncio.to_thread(
                self.core.read_namespaced_secret, name=name, namespace=namespace
            )
        except ApiException as e:
            raise translate_api_exception(e, "Secret", namespace, name, "get") from e
        return MirroredSecret.from_k8s(secret)

    async def create_secret(self, secret: MirroredSecret) -> None:
        """Create a Secret."""
        try:
            await asyncio.to_thread(
                self.core.create_namespaced_secret,
                namespace=secret.namespace,
                body=secret.to_k8s(),
                **self._mutation_kwargs(),
            )
        except ApiException as e:
            raise translate_api_exception(
                e, "Secret", secret.namespace, secret.name, "create"
            ) from e

    async def update_secret(self, secret: MirroredSecret) -> None:
        """Replace a Secret. The resourceVersion guards against lost updates."""
        try:
            await asyncio.to_thread(
                self.core.replace_namespaced_secret,
                name=secret.name,
                namespace=secret.namespace,
                body=secret.to_k8s(),
                **self._mutation_kwargs(),
            )
        except ApiException as e:
            raise translate_api_exception(
                e, "Secret", secret.namespace, secret.name, "update"
            ) from e

    async def delete_secret(self, secret: MirroredSecret) -> None:
        """Delete a Secret, provided it is still the object that was read."""
        preconditions = client.V1Preconditions(uid=secret.uid) if secret.uid else None
        try:
            await asyncio.to_thread(
                self.core.delete_namespaced_secret,
                name=secret.name,
                namespace=secret.namespace,
                body=client.V1DeleteOptions(preconditions=preconditions),
                **self._mutation_kwargs(),
            )
        except ApiException as e:
            raise translate_api_exception(
                e, "Secret", secret.namespace, secret.name, "delete"
            ) from e

    async def request_reconcile(self, key: MirrorKey) -> None:
        """
        Ask the runtime to reconcile a SecretMirror again.

        Stamps an annotation on the SecretMirror; the change is picked up by
        the update handler like any other edit.
        """
        body = {
            "metadata": {
                "annotations": {
                    RECONCILE_REQUESTED_ANNOTATION: datetime.now(UTC).isoformat()
                }
            }
        }
        try:
            await asyncio.to_thread(
                self.custom.patch_namespaced_custom_object,
                group=API_GROUP,
                version=API_VERSION,
                namespace=key.namespace,
                plural=SECRET_MIRROR_PLURAL,
                name=key.name,
                body=body,
            )
        except ApiException as e:
            raise translate_api_exception(
                e, SECRET_MIRROR_KIND, key.namespace, key.name, "annotate"
            ) from e
