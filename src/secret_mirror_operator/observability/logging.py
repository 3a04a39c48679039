"""
Structured logging for the Secret Mirror operator.

Every reconciliation pass gets a short correlation id and the identity of
the SecretMirror it works on. Both live in context variables, so any log
line emitted during the pass (including those from the store) carries them
without being passed around explicitly.
"""

import json
import logging
import uuid
from contextvars import ContextVar
from datetime import UTC, datetime

correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")
reconcile_target: ContextVar[str] = ContextVar("reconcile_target", default="")

# Scrapes of these paths would otherwise flood the access log
QUIET_PATHS = ("/healthz", "/metrics")

# Record attributes copied into JSON output when present
STRUCTURED_FIELDS = (
    "secretmirror",
    "namespace",
    "operation",
    "action",
    "requeue",
    "duration",
    "error_type",
    "secret",
    "source",
    "handler_type",
    "event_type",
)


def new_correlation_id() -> str:
    """Short random id, easy to grep for."""
    return uuid.uuid4().hex[:8]


def set_correlation_id(corr_id: str) -> str:
    correlation_id.set(corr_id)
    return corr_id


def get_correlation_id() -> str:
    return correlation_id.get()


class ReconcileContextFilter(logging.Filter):
    """Stamp records with the correlation id and SecretMirror of the current pass."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = correlation_id.get()
        if not hasattr(record, "secretmirror"):
            target = reconcile_target.get()
            if target:
                record.secretmirror = target
        return True


class QuietPathFilter(logging.Filter):
    """Drop access log lines for probe and scrape requests."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        return not any(path in message for path in QUIET_PATHS)


class JSONFormatter(logging.Formatter):
    """One JSON object per line, for log aggregation."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        corr_id = getattr(record, "correlation_id", "")
        if corr_id:
            entry["correlation_id"] = corr_id

        for field in STRUCTURED_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                entry[field] = value

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


def setup_structured_logging(
    log_level: str = "INFO",
    enable_json_formatting: bool = True,
    correlation_id_enabled: bool = True,
) -> None:
    """
    Install the operator's log handler on the root logger.

    Args:
        log_level: Logging level name (DEBUG, INFO, WARNING, ERROR)
        enable_json_formatting: Emit JSON lines instead of plain text
        correlation_id_enabled: Attach correlation ids and reconcile targets
    """
    handler = logging.StreamHandler()

    if enable_json_formatting:
        handler.setFormatter(JSONFormatter())
    elif correlation_id_enabled:
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s [%(correlation_id)s] %(name)s %(levelname)s %(message)s"
            )
        )
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(name)s %(levelname)s %(message)s")
        )

    if correlation_id_enabled:
        handler.addFilter(ReconcileContextFilter())
    handler.addFilter(QuietPathFilter())

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    for noisy in ("kopf", "kubernetes", "aiohttp.access"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


class ReconcileLogger:
    """
    Logging helpers for one reconciler.

    Wraps a standard logger and knows the handful of events a pass reports:
    its start and outcome, Secret mutations and ownership conflicts.
    """

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)

    def begin(self, namespace: str, name: str) -> str:
        """Open a pass: assign a correlation id and remember the target."""
        corr_id = set_correlation_id(new_correlation_id())
        reconcile_target.set(f"{namespace}/{name}")
        self.logger.debug(
            f"Reconciling SecretMirror {namespace}/{name}",
            extra={"namespace": namespace, "operation": "reconcile_start"},
        )
        return corr_id

    def outcome(
        self, namespace: str, name: str, action: str, requeue: bool, duration: float
    ) -> None:
        self.logger.info(
            f"Reconciled SecretMirror {namespace}/{name}: {action}",
            extra={
                "namespace": namespace,
                "operation": "reconcile",
                "action": action,
                "requeue": requeue,
                "duration": duration,
            },
        )

    def failure(
        self, namespace: str, name: str, error: Exception, duration: float
    ) -> None:
        self.logger.error(
            f"Reconciliation of SecretMirror {namespace}/{name} failed: {error}",
            extra={
                "namespace": namespace,
                "operation": "reconcile",
                "error_type": type(error).__name__,
                "duration": duration,
            },
            exc_info=True,
        )

    def secret_mutation(self, operation: str, secret: str, source: str) -> None:
        """Report a create, update or delete of a mirrored Secret."""
        self.logger.info(
            f"Secret {secret} {operation}d (source {source})",
            extra={"operation": f"secret_{operation}", "secret": secret, "source": source},
        )

    def conflict(self, namespace: str, message: str) -> None:
        self.logger.warning(
            message, extra={"namespace": namespace, "operation": "ownership_conflict"}
        )

    def debug(self, message: str) -> None:
        self.logger.debug(message)
