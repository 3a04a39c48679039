"""
Pydantic models for SecretMirror resources.

A SecretMirror lives in the destination namespace and names the namespace
its Secret is copied from. The Secret name is shared by the SecretMirror,
the source Secret and the mirrored Secret.
"""

import re
from typing import Any

import pydantic
from pydantic import BaseModel, Field, field_validator

from ..constants import API_GROUP_VERSION, SECRET_MIRROR_KIND
from ..errors import ValidationError
from .common import MirrorKey, SecretKey

DNS1123_LABEL = re.compile(r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?$")


class SecretMirrorSpec(BaseModel):
    """Desired state of a SecretMirror."""

    model_config = {"populate_by_name": True}

    from_namespace: str = Field(
        ...,
        alias="fromNamespace",
        description="Namespace from which the Secret is mirrored",
    )

    @field_validator("from_namespace")
    @classmethod
    def validate_from_namespace(cls, v: str) -> str:
        if len(v) > 63 or not DNS1123_LABEL.match(v):
            raise ValueError(f"'{v}' is not a valid namespace name")
        return v


class SecretMirrorStatus(BaseModel):
    """Observed state of a SecretMirror. Informational only."""

    model_config = {"populate_by_name": True}

    phase: str | None = None
    message: str | None = None
    observed_generation: int | None = Field(None, alias="observedGeneration")
    last_sync_time: str | None = Field(None, alias="lastSyncTime")


class SecretMirror(BaseModel):
    """A SecretMirror custom resource as read from the cluster."""

    model_config = {"populate_by_name": True}

    api_version: str = Field(API_GROUP_VERSION, alias="apiVersion")
    kind: str = SECRET_MIRROR_KIND
    name: str
    namespace: str
    uid: str = ""
    generation: int = 0
    spec: SecretMirrorSpec
    status: SecretMirrorStatus = Field(default_factory=SecretMirrorStatus)

    @property
    def key(self) -> MirrorKey:
        return MirrorKey(self.namespace, self.name)

    @property
    def source_key(self) -> SecretKey:
        """Where the Secret is copied from."""
        return SecretKey(self.spec.from_namespace, self.name)

    @property
    def destination_key(self) -> SecretKey:
        """Where the Secret is copied to: the SecretMirror's own namespace."""
        return SecretKey(self.namespace, self.name)

    @classmethod
    def from_k8s(cls, obj: dict[str, Any]) -> "SecretMirror":
        """
        Parse a custom object dict returned by CustomObjectsApi.

        Raises:
            ValidationError: If the spec does not satisfy the schema
        """
        metadata = obj.get("metadata") or {}
        try:
            spec = SecretMirrorSpec.model_validate(obj.get("spec") or {})
        except pydantic.ValidationError as e:
            raise ValidationError(
                f"SecretMirror {metadata.get('namespace')}/{metadata.get('name')}: "
                f"{e.errors()[0]['msg']}",
                field="spec.fromNamespace",
            ) from e

        return cls(
            api_version=obj.get("apiVersion") or API_GROUP_VERSION,
            kind=obj.get("kind") or SECRET_MIRROR_KIND,
            name=metadata["name"],
            namespace=metadata["namespace"],
            uid=metadata.get("uid") or "",
            generation=metadata.get("generation") or 0,
            spec=spec,
            status=SecretMirrorStatus.model_validate(obj.get("status") or {}),
        )
