"""Shared pytest fixtures for Secret Mirror operator unit tests."""

import itertools

import pytest

from secret_mirror_operator.errors import KubernetesAPIError, NotFoundError
from secret_mirror_operator.models import (
    MirroredSecret,
    MirrorKey,
    OwnerReference,
    SecretKey,
    SecretMirror,
    SecretMirrorSpec,
)
from secret_mirror_operator.utils.ownership import controller_reference_for


class FakeStore:
    """In-memory stand-in for SecretMirrorStore.

    Objects are copied on every read and write so tests observe only what
    was explicitly stored. ``failures`` maps a method name to the exception
    that method raises on its next call.
    """

    def __init__(self):
        self.mirrors: dict[MirrorKey, SecretMirror] = {}
        self.secrets: dict[SecretKey, MirroredSecret] = {}
        self.failures: dict[str, Exception] = {}
        self.calls: list[tuple[str, str]] = []
        self.reconcile_requests: list[MirrorKey] = []
        self._uids = itertools.count(1)

    def _check(self, method: str, target: str) -> None:
        self.calls.append((method, target))
        error = self.failures.pop(method, None)
        if error is not None:
            raise error

    @property
    def mutations(self) -> list[tuple[str, str]]:
        return [
            call
            for call in self.calls
            if call[0] in ("create_secret", "update_secret", "delete_secret")
        ]

    def add_mirror(self, mirror: SecretMirror) -> SecretMirror:
        self.mirrors[mirror.key] = mirror.model_copy(deep=True)
        return mirror

    def add_secret(self, secret: MirroredSecret) -> MirroredSecret:
        stored = secret.model_copy(deep=True)
        stored.uid = stored.uid or f"secret-uid-{next(self._uids)}"
        stored.resource_version = stored.resource_version or "1"
        self.secrets[stored.key] = stored
        return stored.model_copy(deep=True)

    async def get_secret_mirror(self, namespace: str, name: str) -> SecretMirror:
        self._check("get_secret_mirror", f"{namespace}/{name}")
        mirror = self.mirrors.get(MirrorKey(namespace, name))
        if mirror is None:
            raise NotFoundError("SecretMirror", namespace, name)
        return mirror.model_copy(deep=True)

    async def list_secret_mirrors(self) -> list[SecretMirror]:
        self._check("list_secret_mirrors", "*")
        return [mirror.model_copy(deep=True) for mirror in self.mirrors.values()]

    async def get_secret(self, namespace: str, name: str) -> MirroredSecret:
        self._check("get_secret", f"{namespace}/{name}")
        secret = self.secrets.get(SecretKey(namespace, name))
        if secret is None:
            raise NotFoundError("Secret", namespace, name)
        return secret.model_copy(deep=True)

    async def create_secret(self, secret: MirroredSecret) -> None:
        self._check("create_secret", str(secret.key))
        if secret.key in self.secrets:
            raise KubernetesAPIError(
                f"Failed to create Secret {secret.key}",
                reason="AlreadyExists",
                status=409,
            )
        self.add_secret(secret)

    async def update_secret(self, secret: MirroredSecret) -> None:
        self._check("update_secret", str(secret.key))
        current = self.secrets.get(secret.key)
        if current is None:
            raise NotFoundError("Secret", secret.namespace, secret.name)
        stored = secret.model_copy(deep=True)
        stored.resource_version = str(int(current.resource_version or "0") + 1)
        self.secrets[secret.key] = stored

    async def delete_secret(self, secret: MirroredSecret) -> None:
        self._check("delete_secret", str(secret.key))
        if self.secrets.pop(secret.key, None) is None:
            raise NotFoundError("Secret", secret.namespace, secret.name)

    async def request_reconcile(self, key: MirrorKey) -> None:
        self._check("request_reconcile", str(key))
        if key not in self.mirrors:
            raise NotFoundError("SecretMirror", key.namespace, key.name)
        self.reconcile_requests.append(key)

    async def server_version(self) -> str:
        self._check("server_version", "apiserver")
        return "v1.30.0"


@pytest.fixture
def store():
    """Empty in-memory store."""
    return FakeStore()


@pytest.fixture
def make_mirror():
    """Factory for SecretMirror models."""

    def _make(
        namespace: str = "team-b",
        name: str = "db-credentials",
        from_namespace: str = "team-a",
        uid: str | None = None,
    ) -> SecretMirror:
        return SecretMirror(
            name=name,
            namespace=namespace,
            uid=uid or f"mirror-uid-{namespace}-{name}",
            generation=1,
            spec=SecretMirrorSpec(from_namespace=from_namespace),
        )

    return _make


@pytest.fixture
def make_secret():
    """Factory for Secret models, optionally controlled by a SecretMirror."""

    def _make(
        namespace: str = "team-a",
        name: str = "db-credentials",
        data: dict[str, bytes] | None = None,
        owner: SecretMirror | None = None,
        owner_references: list[OwnerReference] | None = None,
    ) -> MirroredSecret:
        refs = list(owner_references or [])
        if owner is not None:
            refs.append(controller_reference_for(owner))
        return MirroredSecret(
            name=name,
            namespace=namespace,
            type="Opaque",
            data=data if data is not None else {"password": b"hunter2"},
            owner_references=refs,
        )

    return _make
