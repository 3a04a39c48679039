"""
Prometheus metrics for the Secret Mirror operator.

This module provides metrics collection for reconciliation outcomes,
Secret mutations and cross-namespace reconcile triggers.
"""

import logging
import time
from contextlib import asynccontextmanager

from aiohttp.web import (
    Application,
    AppRunner,
    Request,
    Response,
    TCPSite,
)
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

logger = logging.getLogger(__name__)

_metrics_registry: CollectorRegistry | None = None

RECONCILIATION_TOTAL = Counter(
    "secret_mirror_operator_reconciliation_total",
    "Reconciliation passes per SecretMirror, by result",
    ["namespace", "name", "result"],
    registry=None,
)

RECONCILIATION_DURATION = Histogram(
    "secret_mirror_operator_reconciliation_duration_seconds",
    "Duration of a reconciliation pass",
    ["namespace"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0],
    registry=None,
)

RECONCILIATION_ERRORS = Counter(
    "secret_mirror_operator_reconciliation_errors_total",
    "Failed reconciliation passes, by error type",
    ["namespace", "error_type", "retryable"],
    registry=None,
)

SECRET_OPERATIONS = Counter(
    "secret_mirror_operator_secret_operations_total",
    "Mutations applied to mirrored Secrets",
    ["namespace", "operation"],
    registry=None,
)

OWNERSHIP_CONFLICTS = Counter(
    "secret_mirror_operator_ownership_conflicts_total",
    "Reconciliations that left a Secret untouched because another owner controls it",
    ["namespace"],
    registry=None,
)

RECONCILE_REQUESTS = Counter(
    "secret_mirror_operator_reconcile_requests_total",
    "Reconciliations requested from Secret change events",
    ["namespace"],
    registry=None,
)


def get_metrics_registry() -> CollectorRegistry:
    """
    Return the operator's private registry, registering all metrics on first use.

    A private registry keeps the default process and platform collectors
    out of /metrics.
    """
    global _metrics_registry

    if _metrics_registry is None:
        registry = CollectorRegistry()
        for metric in (
            RECONCILIATION_TOTAL,
            RECONCILIATION_DURATION,
            RECONCILIATION_ERRORS,
            SECRET_OPERATIONS,
            OWNERSHIP_CONFLICTS,
            RECONCILE_REQUESTS,
        ):
            registry.register(metric)
        _metrics_registry = registry

    return _metrics_registry


class MetricsCollector:
    """Records operator events on the Prometheus metrics above."""

    def __init__(self):
        self.registry = get_metrics_registry()

    @asynccontextmanager
    async def track_reconciliation(self, namespace: str, name: str):
        """Count one reconciliation pass of a SecretMirror and time it.

        Exceptions are counted by type and retryability, then re-raised.
        """
        started = time.monotonic()
        result = "error"
        try:
            yield
            result = "success"
        except Exception as e:
            RECONCILIATION_ERRORS.labels(
                namespace=namespace,
                error_type=type(e).__name__,
                retryable=str(getattr(e, "retryable", False)).lower(),
            ).inc()
            raise
        finally:
            RECONCILIATION_TOTAL.labels(namespace=namespace, name=name, result=result).inc()
            RECONCILIATION_DURATION.labels(namespace=namespace).observe(
                time.monotonic() - started
            )

    def record_secret_operation(self, namespace: str, operation: str) -> None:
        """Count a create, update or delete of a mirrored Secret."""
        SECRET_OPERATIONS.labels(namespace=namespace, operation=operation).inc()

    def record_ownership_conflict(self, namespace: str) -> None:
        OWNERSHIP_CONFLICTS.labels(namespace=namespace).inc()

    def record_reconcile_requests(self, namespace: str, count: int) -> None:
        """
        Count reconcile requests derived from a Secret event.

        Args:
            namespace: Namespace of the changed Secret
            count: Number of SecretMirrors requested
        """
        if count:
            RECONCILE_REQUESTS.labels(namespace=namespace).inc(count)


class MetricsServer:
    """Serves /metrics for Prometheus and a trivial /healthz on a separate port."""

    def __init__(self, port: int = 8081, host: str = "0.0.0.0"):
        self.host = host
        self.port = port
        self.app = Application()
        self.app.router.add_get("/metrics", self._serve_metrics)
        self.app.router.add_get("/healthz", self._serve_healthz)
        self._runner: AppRunner | None = None

    async def _serve_metrics(self, request: Request) -> Response:
        try:
            payload = generate_latest(get_metrics_registry())
        except Exception as e:
            logger.error(f"Cannot render metrics: {e}", exc_info=True)
            return Response(text="metrics unavailable", status=500)
        return Response(body=payload, headers={"Content-Type": CONTENT_TYPE_LATEST})

    async def _serve_healthz(self, request: Request) -> Response:
        return Response(text="ok")

    async def start(self) -> None:
        runner = AppRunner(self.app)
        await runner.setup()
        await TCPSite(runner, self.host, self.port).start()
        self._runner = runner
        logger.info(f"Serving metrics on {self.host}:{self.port}")

    async def stop(self) -> None:
        """Stop listening and release the port. Safe to call twice."""
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None


metrics_collector = MetricsCollector()
