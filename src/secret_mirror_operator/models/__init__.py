"""
Models package - Pydantic models for type-safe resource handling.

Defines data models for:
- SecretMirror specifications and status
- Mirrored Secrets with decoded payloads
- Owner references and object identities
"""

from .common import MirrorKey, OwnerReference, SecretKey
from .secret import MirroredSecret
from .secret_mirror import SecretMirror, SecretMirrorSpec, SecretMirrorStatus

__all__ = [
    "MirrorKey",
    "SecretKey",
    "OwnerReference",
    "MirroredSecret",
    "SecretMirror",
    "SecretMirrorSpec",
    "SecretMirrorStatus",
]
