"""
Ownership utilities for mirrored Secrets.

A mirrored Secret is under a SecretMirror's management only when it carries
a controller owner reference pointing at that exact SecretMirror. Secrets
without such a reference are never modified by the operator.
"""

from collections.abc import Iterable

from ..constants import API_GROUP, SECRET_MIRROR_KIND
from ..errors import AlreadyOwnedError
from ..models.common import MirrorKey, OwnerReference, api_group
from ..models.secret import MirroredSecret
from ..models.secret_mirror import SecretMirror


def _refers_to(ref: OwnerReference, mirror: SecretMirror) -> bool:
    return (
        ref.group == api_group(mirror.api_version)
        and ref.kind == mirror.kind
        and ref.name == mirror.name
        and ref.uid == mirror.uid
    )


def is_owned(secret: MirroredSecret, mirror: SecretMirror) -> bool:
    """
    Check whether a Secret is controlled by the given SecretMirror.

    All owner references are scanned; only a reference flagged as controller
    counts. A SecretMirror recreated under the same name has a new uid and
    therefore does not own Secrets left behind by its predecessor.

    Args:
        secret: The Secret to inspect
        mirror: The SecretMirror claiming it

    Returns:
        True if a controller reference matches the SecretMirror
    """
    return any(
        ref.controller and _refers_to(ref, mirror) for ref in secret.owner_references
    )


def controller_reference_for(mirror: SecretMirror) -> OwnerReference:
    """Build the owner reference stamped on Secrets created for a SecretMirror."""
    return OwnerReference(
        api_version=mirror.api_version,
        kind=mirror.kind,
        name=mirror.name,
        uid=mirror.uid,
        controller=True,
        block_owner_deletion=True,
    )


def set_controller_reference(secret: MirroredSecret, mirror: SecretMirror) -> None:
    """
    Stamp the SecretMirror as controller of a Secret before it is created.

    An existing reference to the same SecretMirror is replaced; other
    non-controller references are kept.

    Raises:
        AlreadyOwnedError: If another object is already the controller
    """
    for ref in secret.owner_references:
        if ref.controller and not _refers_to(ref, mirror):
            raise AlreadyOwnedError(
                secret.namespace, secret.name, f"{ref.kind}/{ref.name}"
            )

    secret.owner_references = [
        ref for ref in secret.owner_references if not _refers_to(ref, mirror)
    ]
    secret.owner_references.append(controller_reference_for(mirror))


def controlling_mirror_key(
    namespace: str, owner_references: Iterable[OwnerReference]
) -> MirrorKey | None:
    """
    Find the SecretMirror that controls a Secret, if any.

    Owner references are namespace-local, so the SecretMirror lives in the
    Secret's namespace.
    """
    for ref in owner_references:
        if ref.controller and ref.kind == SECRET_MIRROR_KIND and ref.group == API_GROUP:
            return MirrorKey(namespace, ref.name)
    return None
