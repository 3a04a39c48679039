"""
Map Secret changes onto the SecretMirrors that must be reconciled.

The runtime only delivers events for the objects a handler watches. A change
to a source Secret therefore has to be translated into the SecretMirrors that
copy it, and a change to a mirrored Secret into the SecretMirror that
controls it.
"""

from collections.abc import Iterable

from ..models import MirrorKey, OwnerReference, SecretMirror
from ..utils.ownership import controlling_mirror_key


def map_secret_to_mirrors(
    changed_namespace: str, changed_name: str, mirrors: Iterable[SecretMirror]
) -> set[MirrorKey]:
    """
    Find every SecretMirror that copies the given Secret.

    SecretMirrors are keyed by their destination, so this is a linear scan
    over the listing. A Secret nobody mirrors yields an empty set.

    Args:
        changed_namespace: Namespace of the changed Secret
        changed_name: Name of the changed Secret
        mirrors: Current SecretMirror listing (may be empty or stale)

    Returns:
        Identities of the SecretMirrors to reconcile
    """
    return {
        mirror.key
        for mirror in mirrors
        if mirror.spec.from_namespace == changed_namespace
        and mirror.name == changed_name
    }


def reconcile_targets_for_secret(
    namespace: str,
    name: str,
    owner_references: Iterable[OwnerReference],
    mirrors: Iterable[SecretMirror],
) -> set[MirrorKey]:
    """
    All SecretMirrors affected by a Secret change.

    This is the union of the SecretMirrors reading the Secret as their source
    and the SecretMirror that controls it as a mirrored copy.
    """
    targets = map_secret_to_mirrors(namespace, name, mirrors)
    owner = controlling_mirror_key(namespace, owner_references)
    if owner is not None:
        targets.add(owner)
    return targets
