from __future__ import annotations

from prometheus_client import Counter, Histogram, Gauge

from keyspace.core.config import settings

OPERATIONS_TOTAL = Counter(
    "storage_operations_total",
    "Total storage operations",
    labelnames=("component", "operation", "outcome"),
    namespace=settings.METRICS_NAMESPACE,
)

OPERATION_LATENCY_MS = Histogram(
    "storage_operation_latency_ms",
    "Storage operation latency in milliseconds",
    labelnames=("component", "operation"),
    namespace=settings.METRICS_NAMESPACE,
)

REDIS_POOL_IN_USE = Gauge(
    "redis_pool_in_use",
    "Approximate number of Redis pool connections in use",
    namespace=settings.METRICS_NAMESPACE,
)


def update_redis_pool_gauge(redis_client) -> None:
    pool = getattr(redis_client, "connection_pool", None)
    if pool is None:
        return
    in_use = 0
    # Private pool attributes differ across redis-py versions
    if hasattr(pool, "_in_use_connections"):
        in_use = len(pool._in_use_connections)  # type: ignore[attr-defined]
    elif hasattr(pool, "_created_connections") and hasattr(
        pool, "_available_connections"
    ):
        created = pool._created_connections  # type: ignore[attr-defined]
        created = created if isinstance(created, int) else len(created)
        available = len(pool._available_connections)  # type: ignore[attr-defined]
        in_use = max(created - available, 0)
    REDIS_POOL_IN_USE.set(in_use)
