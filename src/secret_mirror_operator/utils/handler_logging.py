"""Entry logging shared by the kopf handlers."""

import logging
from typing import Any

from ..constants import HANDLER_ENTRY_LOG_LEVEL

logger = logging.getLogger(__name__)


def log_handler_entry(
    handler_type: str,
    resource_type: str,
    name: str,
    namespace: str,
    extra: dict[str, Any] | None = None,
) -> None:
    """Record that a handler fired.

    Secret events fire often, so the level is taken from
    HANDLER_ENTRY_LOG_LEVEL and can be lowered to DEBUG.
    """
    logger.log(
        HANDLER_ENTRY_LOG_LEVEL,
        f"{handler_type} handler for {resource_type} {namespace}/{name}",
        extra={"handler_type": handler_type, "namespace": namespace, **(extra or {})},
    )
