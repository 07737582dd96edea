"""Around-hooks for storage operations.

A middleware is a callable ``(operation, call_next) -> result``. Components
hold an ordered list of them; the first entry is the outermost wrapper, so
with ``DEFAULT_MIDDLEWARE`` an operation is logged, then measured, then
traced, then executed. Public methods opt in with ``@operation(name)``.
"""

from __future__ import annotations

import functools
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Sequence, Tuple

from keyspace.core.logging import get_logger
from keyspace.observability.metrics import (
    OPERATION_LATENCY_MS,
    OPERATIONS_TOTAL,
    update_redis_pool_gauge,
)
from keyspace.observability.tracing import get_tracer

log = get_logger("keyspace.storage")


@dataclass
class Operation:
    component: str
    name: str
    args: Tuple[Any, ...] = ()
    kwargs: Dict[str, Any] = field(default_factory=dict)
    client: Any = None

    @property
    def qualified_name(self) -> str:
        return f"{self.component}.{self.name}"


Middleware = Callable[[Operation, Callable[[], Any]], Any]


def run_chain(middleware: Sequence[Middleware], op: Operation, call: Callable[[], Any]):
    def step(index: int):
        if index == len(middleware):
            return call()
        return middleware[index](op, lambda: step(index + 1))

    return step(0)


def operation(name: str):
    def decorator(fn):
        @functools.wraps(fn)
        def wrapper(self, *args, **kwargs):
            op = Operation(
                component=self.component,
                name=name,
                args=args,
                kwargs=kwargs,
                client=getattr(self, "client", None),
            )
            return run_chain(self.middleware, op, lambda: fn(self, *args, **kwargs))

        return wrapper

    return decorator


def logging_middleware(op: Operation, call_next: Callable[[], Any]):
    bound = log.bind(operation=op.qualified_name)
    try:
        result = call_next()
    except Exception as exc:
        bound.bind(error=repr(exc)).warning("storage.operation_failed")
        raise
    bound.debug("storage.operation")
    return result


def metrics_middleware(op: Operation, call_next: Callable[[], Any]):
    start = time.perf_counter()
    outcome = "error"
    try:
        result = call_next()
        outcome = "ok" if result is not False else "failed"
        return result
    finally:
        dur_ms = (time.perf_counter() - start) * 1000.0
        OPERATION_LATENCY_MS.labels(component=op.component, operation=op.name).observe(dur_ms)
        OPERATIONS_TOTAL.labels(
            component=op.component, operation=op.name, outcome=outcome
        ).inc()
        if op.client is not None:
            update_redis_pool_gauge(op.client)


def tracing_middleware(op: Operation, call_next: Callable[[], Any]):
    with get_tracer().start_as_current_span(op.qualified_name) as span:
        span.set_attribute("storage.component", op.component)
        span.set_attribute("storage.operation", op.name)
        return call_next()


DEFAULT_MIDDLEWARE: Tuple[Middleware, ...] = (
    logging_middleware,
    metrics_middleware,
    tracing_middleware,
)
