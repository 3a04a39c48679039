#!/usr/bin/env python3
"""
Secret Mirror Operator - Main entry point for the Kopf-based operator.

The operator copies a Secret from the namespace named in a SecretMirror's
``spec.fromNamespace`` into the SecretMirror's own namespace and keeps the
copy in sync:
- Multi-namespace operation (watches all namespaces by default)
- Ownership-guarded writes: Secrets it does not control are never touched
- Deletion of the copy once the source Secret disappears

Usage:
    python -m secret_mirror_operator.operator
    # Or with kopf directly:
    kopf run -m secret_mirror_operator.operator --all-namespaces

Environment Variables:
    SECRET_MIRROR_OPERATOR_NAMESPACES: Comma-separated list of namespaces to watch
    LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR)
    DRY_RUN: Set to 'true' for dry-run mode
"""

import logging
import random
import sys

import kopf

from secret_mirror_operator.constants import PEERING_NAME

# Importing the handler modules registers their decorators with kopf
from secret_mirror_operator.handlers import (  # noqa: F401
    secret,
    secret_mirror,
)
from secret_mirror_operator.errors import OperatorError
from secret_mirror_operator.observability.logging import setup_structured_logging
from secret_mirror_operator.observability.metrics import MetricsServer
from secret_mirror_operator.observability.tracing import (
    setup_tracing,
    shutdown_tracing,
)
from secret_mirror_operator.settings import settings as operator_settings
from secret_mirror_operator.utils.kubernetes import (
    SecretMirrorStore,
    get_kubernetes_client,
)

# Started on startup, stopped on cleanup
_metrics_server: MetricsServer | None = None


def configure_logging() -> None:
    """Install the structured log handler."""
    setup_structured_logging(
        log_level=operator_settings.log_level.upper(),
        enable_json_formatting=operator_settings.json_logs,
        correlation_id_enabled=operator_settings.correlation_ids,
    )


def configure_tracing() -> None:
    """Install the OTLP tracer provider when tracing is enabled."""
    setup_tracing(
        enabled=operator_settings.tracing_enabled,
        endpoint=operator_settings.tracing_endpoint,
        service_name=operator_settings.tracing_service_name,
        sample_rate=operator_settings.tracing_sample_rate,
    )


@kopf.on.startup()
async def startup_handler(
    settings: kopf.OperatorSettings, memo: kopf.Memo, **_
) -> None:
    """
    Configure peering and concurrency, create the store shared by all
    handlers through the memo, and start the metrics server.
    """
    logging.info("Starting Secret Mirror Operator...")
    settings.watching.reconnect_backoff = 1.0

    # Each replica gets a random priority so exactly one of them is active
    settings.peering.name = PEERING_NAME
    settings.peering.priority = random.randint(0, 32767)
    logging.info(
        f"Peering as {PEERING_NAME} with priority {settings.peering.priority}"
    )

    settings.execution.max_workers = operator_settings.max_workers

    watched_namespaces = operator_settings.watched_namespaces
    if watched_namespaces:
        logging.info(f"Namespaces: {', '.join(watched_namespaces)}")
    else:
        logging.info("Namespaces: all (cluster-wide)")

    if operator_settings.dry_run:
        logging.warning("DRY_RUN is set: Secret mutations are sent as server-side dry runs")

    memo.store = SecretMirrorStore(
        k8s_client=get_kubernetes_client(),
        namespaces=watched_namespaces,
        dry_run=operator_settings.dry_run,
    )

    try:
        metrics_server = MetricsServer(
            port=operator_settings.metrics_port, host=operator_settings.metrics_host
        )
        await metrics_server.start()

        global _metrics_server
        _metrics_server = metrics_server

    except OSError as e:
        # A busy metrics port is not fatal
        logging.warning(f"Metrics server not started, continuing without it: {e}")


@kopf.on.cleanup()
async def cleanup_handler(**_) -> None:
    """Stop the metrics server and flush pending traces on shutdown."""
    logging.info("Shutting down Secret Mirror Operator...")

    global _metrics_server
    if _metrics_server:
        await _metrics_server.stop()
        _metrics_server = None

    shutdown_tracing()


@kopf.on.probe(id="healthz")
async def health_check(memo: kopf.Memo, **_) -> dict[str, str]:
    """Liveness probe: healthy while the Kubernetes API answers."""
    store = getattr(memo, "store", None)
    if store is None:
        return {"status": "starting", "operator": PEERING_NAME}

    try:
        version = await store.server_version()
    except OperatorError as e:
        logging.warning(f"Kubernetes API unreachable from health probe: {e}")
        return {"status": "unhealthy", "operator": PEERING_NAME, "error": str(e)}

    return {"status": "healthy", "operator": PEERING_NAME, "apiserver": version}


def main() -> None:
    """Configure logging and tracing, then run kopf cluster-wide or per namespace."""
    configure_logging()
    configure_tracing()

    watched_namespaces = operator_settings.watched_namespaces

    try:
        if watched_namespaces:
            kopf.run(
                namespaces=watched_namespaces,
                liveness_endpoint="http://0.0.0.0:8080/healthz",
            )
        else:
            kopf.run(
                clusterwide=True,
                liveness_endpoint="http://0.0.0.0:8080/healthz",
            )
    except KeyboardInterrupt:
        logging.info("Interrupted, exiting")
        sys.exit(0)
    except Exception as e:
        logging.error(f"Operator stopped on error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
