"""Unit tests for the Kubernetes-backed SecretMirrorStore."""

from unittest.mock import MagicMock, patch

import pytest
from kubernetes import client
from kubernetes.client.rest import ApiException

from secret_mirror_operator.constants import RECONCILE_REQUESTED_ANNOTATION
from secret_mirror_operator.errors import (
    ConfigurationError,
    KubernetesAPIError,
    NotFoundError,
)
from secret_mirror_operator.models import MirroredSecret, MirrorKey
from secret_mirror_operator.utils.kubernetes import (
    SecretMirrorStore,
    get_kubernetes_client,
    translate_api_exception,
)


def mirror_object(name="db-credentials", namespace="team-b", from_namespace="team-a"):
    return {
        "apiVersion": "secret.mirror.io/v1alpha1",
        "kind": "SecretMirror",
        "metadata": {"name": name, "namespace": namespace, "uid": f"uid-{name}"},
        "spec": {"fromNamespace": from_namespace},
    }


@pytest.fixture
def core_api():
    return MagicMock()


@pytest.fixture
def custom_api():
    return MagicMock()


@pytest.fixture
def k8s_store(core_api, custom_api):
    store = SecretMirrorStore(k8s_client=MagicMock())
    store._core = core_api
    store._custom = custom_api
    return store


class TestTranslateApiException:
    def test_not_found(self):
        error = translate_api_exception(
            ApiException(status=404, reason="Not Found"), "Secret", "ns", "s", "get"
        )

        assert isinstance(error, NotFoundError)
        assert error.retryable is False

    @pytest.mark.parametrize("status", [409, 429, 500, 503])
    def test_retryable_statuses(self, status):
        error = translate_api_exception(
            ApiException(status=status, reason="Oops"), "Secret", "ns", "s", "update"
        )

        assert isinstance(error, KubernetesAPIError)
        assert error.retryable is True
        assert error.status == status

    @pytest.mark.parametrize(
        ("status", "reason"), [(403, "Forbidden"), (401, "Unauthorized"), (422, "Invalid")]
    )
    def test_non_retryable_statuses(self, status, reason):
        error = translate_api_exception(
            ApiException(status=status, reason=reason), "Secret", "ns", "s", "create"
        )

        assert isinstance(error, KubernetesAPIError)
        assert error.retryable is False

    def test_connection_failure_without_status_is_retryable(self):
        error = translate_api_exception(ApiException(), "Secret", "ns", "s", "get")

        assert error.retryable is True
        assert error.status is None


class TestGetKubernetesClient:
    @patch("secret_mirror_operator.utils.kubernetes.config")
    def test_falls_back_to_kubeconfig(self, mock_config):
        mock_config.ConfigException = Exception
        mock_config.load_incluster_config.side_effect = Exception("not in cluster")

        get_kubernetes_client()

        mock_config.load_kube_config.assert_called_once()

    @patch("secret_mirror_operator.utils.kubernetes.config")
    def test_no_configuration(self, mock_config):
        mock_config.ConfigException = Exception
        mock_config.load_incluster_config.side_effect = Exception("not in cluster")
        mock_config.load_kube_config.side_effect = Exception("no kubeconfig")

        with pytest.raises(ConfigurationError):
            get_kubernetes_client()


class TestSecretMirrorReads:
    @pytest.mark.asyncio
    async def test_get_secret_mirror(self, k8s_store, custom_api):
        custom_api.get_namespaced_custom_object.return_value = mirror_object()

        mirror = await k8s_store.get_secret_mirror("team-b", "db-credentials")

        assert mirror.spec.from_namespace == "team-a"
        call = custom_api.get_namespaced_custom_object.call_args.kwargs
        assert call["group"] == "secret.mirror.io"
        assert call["plural"] == "secretmirrors"

    @pytest.mark.asyncio
    async def test_get_secret_mirror_not_found(self, k8s_store, custom_api):
        custom_api.get_namespaced_custom_object.side_effect = ApiException(status=404)

        with pytest.raises(NotFoundError):
            await k8s_store.get_secret_mirror("team-b", "db-credentials")

    @pytest.mark.asyncio
    async def test_list_cluster_wide_skips_invalid(self, k8s_store, custom_api):
        custom_api.list_cluster_custom_object.return_value = {
            "items": [mirror_object(), mirror_object(name="bad", from_namespace="BAD")]
        }

        mirrors = await k8s_store.list_secret_mirrors()

        assert [m.name for m in mirrors] == ["db-credentials"]

    @pytest.mark.asyncio
    async def test_list_watched_namespaces(self, k8s_store, custom_api):
        k8s_store.namespaces = ["team-b", "team-c"]
        custom_api.list_namespaced_custom_object.side_effect = [
            {"items": [mirror_object(namespace="team-b")]},
            {"items": [mirror_object(namespace="team-c")]},
        ]

        mirrors = await k8s_store.list_secret_mirrors()

        assert {m.namespace for m in mirrors} == {"team-b", "team-c"}
        custom_api.list_cluster_custom_object.assert_not_called()

    @pytest.mark.asyncio
    async def test_list_failure(self, k8s_store, custom_api):
        custom_api.list_cluster_custom_object.side_effect = ApiException(status=500)

        with pytest.raises(KubernetesAPIError):
            await k8s_store.list_secret_mirrors()


class TestSecretOperations:
    @pytest.mark.asyncio
    async def test_get_secret(self, k8s_store, core_api):
        core_api.read_namespaced_secret.return_value = client.V1Secret(
            metadata=client.V1ObjectMeta(name="s", namespace="team-a", uid="u"),
            data={"k": "dg=="},
        )

        secret = await k8s_store.get_secret("team-a", "s")

        assert secret.data == {"k": b"v"}
        core_api.read_namespaced_secret.assert_called_once_with(
            name="s", namespace="team-a"
        )

    @pytest.mark.asyncio
    async def test_get_secret_not_found(self, k8s_store, core_api):
        core_api.read_namespaced_secret.side_effect = ApiException(status=404)

        with pytest.raises(NotFoundError):
            await k8s_store.get_secret("team-a", "s")

    @pytest.mark.asyncio
    async def test_create_secret(self, k8s_store, core_api):
        secret = MirroredSecret(name="s", namespace="team-b", data={"k": b"v"})

        await k8s_store.create_secret(secret)

        call = core_api.create_namespaced_secret.call_args.kwargs
        assert call["namespace"] == "team-b"
        assert call["body"].data == {"k": "dg=="}
        assert "dry_run" not in call

    @pytest.mark.asyncio
    async def test_dry_run_mutations(self, k8s_store, core_api):
        k8s_store.dry_run = True
        secret = MirroredSecret(name="s", namespace="team-b", data={})

        await k8s_store.create_secret(secret)
        await k8s_store.update_secret(secret)

        assert core_api.create_namespaced_secret.call_args.kwargs["dry_run"] == "All"
        assert core_api.replace_namespaced_secret.call_args.kwargs["dry_run"] == "All"

    @pytest.mark.asyncio
    async def test_update_conflict_is_retryable(self, k8s_store, core_api):
        core_api.replace_namespaced_secret.side_effect = ApiException(
            status=409, reason="Conflict"
        )
        secret = MirroredSecret(
            name="s", namespace="team-b", resource_version="7", data={}
        )

        with pytest.raises(KubernetesAPIError) as exc_info:
            await k8s_store.update_secret(secret)

        assert exc_info.value.retryable is True
        body = core_api.replace_namespaced_secret.call_args.kwargs["body"]
        assert body.metadata.resource_version == "7"

    @pytest.mark.asyncio
    async def test_delete_uses_uid_precondition(self, k8s_store, core_api):
        secret = MirroredSecret(name="s", namespace="team-b", uid="u-1")

        await k8s_store.delete_secret(secret)

        body = core_api.delete_namespaced_secret.call_args.kwargs["body"]
        assert body.preconditions.uid == "u-1"

    @pytest.mark.asyncio
    async def test_delete_not_found(self, k8s_store, core_api):
        core_api.delete_namespaced_secret.side_effect = ApiException(status=404)

        with pytest.raises(NotFoundError):
            await k8s_store.delete_secret(MirroredSecret(name="s", namespace="team-b"))


class TestRequestReconcile:
    @pytest.mark.asyncio
    async def test_stamps_annotation(self, k8s_store, custom_api):
        await k8s_store.request_reconcile(MirrorKey("team-b", "db-credentials"))

        call = custom_api.patch_namespaced_custom_object.call_args.kwargs
        assert call["namespace"] == "team-b"
        assert call["name"] == "db-credentials"
        assert RECONCILE_REQUESTED_ANNOTATION in call["body"]["metadata"]["annotations"]

    @pytest.mark.asyncio
    async def test_missing_mirror(self, k8s_store, custom_api):
        custom_api.patch_namespaced_custom_object.side_effect = ApiException(status=404)

        with pytest.raises(NotFoundError):
            await k8s_store.request_reconcile(MirrorKey("team-b", "gone"))
