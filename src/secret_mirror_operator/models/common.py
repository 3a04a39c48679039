"""
Common models shared across different resource types.

This module defines shared data structures used by both the SecretMirror
and Secret models, such as object identities and owner references.
"""

from typing import Any, NamedTuple

from kubernetes import client
from pydantic import BaseModel, Field


class MirrorKey(NamedTuple):
    """Identity of a SecretMirror: the namespace it lives in and its name."""

    namespace: str
    name: str

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}"


class SecretKey(NamedTuple):
    """Identity of a Secret."""

    namespace: str
    name: str

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}"


def api_group(api_version: str) -> str:
    """Return the API group of an apiVersion string ("" for the core group)."""
    group, _, version = api_version.rpartition("/")
    return group if version else ""


class OwnerReference(BaseModel):
    """Typed owner reference stored in an object's metadata."""

    model_config = {"populate_by_name": True, "frozen": True}

    api_version: str = Field(..., alias="apiVersion")
    kind: str
    name: str
    uid: str
    controller: bool = False
    block_owner_deletion: bool = Field(False, alias="blockOwnerDeletion")

    @property
    def group(self) -> str:
        return api_group(self.api_version)

    @classmethod
    def from_k8s(cls, ref: client.V1OwnerReference | dict[str, Any]) -> "OwnerReference":
        """Build from a client model or a raw camelCase dict (kopf bodies)."""
        if isinstance(ref, dict):
            return cls.model_validate(
                {
                    **ref,
                    "controller": bool(ref.get("controller")),
                    "blockOwnerDeletion": bool(ref.get("blockOwnerDeletion")),
                }
            )
        return cls(
            api_version=ref.api_version,
            kind=ref.kind,
            name=ref.name,
            uid=ref.uid,
            controller=bool(ref.controller),
            block_owner_deletion=bool(ref.block_owner_deletion),
        )

    def to_k8s(self) -> client.V1OwnerReference:
        return client.V1OwnerReference(
            api_version=self.api_version,
            kind=self.kind,
            name=self.name,
            uid=self.uid,
            controller=self.controller,
            block_owner_deletion=self.block_owner_deletion,
        )
