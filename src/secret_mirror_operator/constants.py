"""
Constants used throughout the Secret Mirror operator.

This module defines all constant values used by the operator including:
- Custom resource coordinates
- Annotation keys
- Status phase constants
- Log and event message templates
"""

import logging
import os

# Custom resource coordinates
API_GROUP = "secret.mirror.io"
API_VERSION = "v1alpha1"
API_GROUP_VERSION = f"{API_GROUP}/{API_VERSION}"
SECRET_MIRROR_KIND = "SecretMirror"
SECRET_MIRROR_PLURAL = "secretmirrors"

# Annotation stamped on a SecretMirror to make the runtime dispatch it again
RECONCILE_REQUESTED_ANNOTATION = f"{API_GROUP}/reconcile-requested-at"

# Peering name used for leader election between operator replicas
PEERING_NAME = "secret-mirror-operator"

# Status phase constants
PHASE_SYNCED = "Synced"
PHASE_CONFLICT = "Conflict"
PHASE_SOURCE_MISSING = "SourceMissing"
PHASE_FAILED = "Failed"

# Event reasons
EVENT_REASON_CONFLICT = "OwnershipConflict"
EVENT_REASON_DELETED = "MirrorDeleted"

# Handler entry logging level (INFO by default, DEBUG to reduce noise)
HANDLER_ENTRY_LOG_LEVEL = getattr(
    logging, os.getenv("HANDLER_ENTRY_LOG_LEVEL", "INFO").upper(), logging.INFO
)

# Message templates
MESSAGE_CONFLICT = (
    "Secret '{}' in namespace '{}' exists and is not controlled by this "
    "SecretMirror; leaving it untouched"
)
MESSAGE_SOURCE_MISSING = "Source Secret '{}' not found in namespace '{}'"
MESSAGE_SYNCED = "Secret mirrored from namespace '{}'"
