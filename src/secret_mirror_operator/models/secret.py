"""
Model for the Secret being mirrored.

The same model is used for the source Secret (read-only) and the mirrored
destination Secret (the only object the operator mutates).
"""

from kubernetes import client
from pydantic import BaseModel, Field

from ..utils.secret_data import decode_secret_data, encode_secret_data
from .common import OwnerReference, SecretKey


class MirroredSecret(BaseModel):
    """A Secret with decoded data and typed owner references."""

    model_config = {"populate_by_name": True}

    name: str
    namespace: str
    uid: str | None = None
    resource_version: str | None = None
    type: str | None = None
    immutable: bool | None = None
    finalizers: list[str] = Field(default_factory=list)
    labels: dict[str, str] = Field(default_factory=dict)
    annotations: dict[str, str] = Field(default_factory=dict)
    owner_references: list[OwnerReference] = Field(default_factory=list)
    data: dict[str, bytes] = Field(default_factory=dict)

    @property
    def key(self) -> SecretKey:
        return SecretKey(self.namespace, self.name)

    @classmethod
    def from_k8s(cls, secret: client.V1Secret) -> "MirroredSecret":
        """Build from a ``V1Secret`` returned by CoreV1Api."""
        metadata = secret.metadata
        return cls(
            name=metadata.name,
            namespace=metadata.namespace,
            uid=metadata.uid,
            resource_version=metadata.resource_version,
            type=secret.type,
            immutable=secret.immutable,
            finalizers=list(metadata.finalizers or []),
            labels=dict(metadata.labels or {}),
            annotations=dict(metadata.annotations or {}),
            owner_references=[
                OwnerReference.from_k8s(ref) for ref in metadata.owner_references or []
            ],
            data=decode_secret_data(secret.data),
        )

    def to_k8s(self) -> client.V1Secret:
        """
        Render as a ``V1Secret`` suitable for create or replace calls.

        Replace sends the whole object, so every field read in ``from_k8s``
        (finalizers and ``immutable`` included) is written back unchanged.
        """
        return client.V1Secret(
            api_version="v1",
            kind="Secret",
            metadata=client.V1ObjectMeta(
                name=self.name,
                namespace=self.namespace,
                uid=self.uid,
                resource_version=self.resource_version,
                labels=self.labels or None,
                annotations=self.annotations or None,
                finalizers=self.finalizers or None,
                owner_references=[ref.to_k8s() for ref in self.owner_references]
                or None,
            ),
            type=self.type,
            immutable=self.immutable,
            data=encode_secret_data(self.data),
        )
