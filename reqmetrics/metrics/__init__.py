"""Metric definitions, kinds, the collector factory and the built-in catalog."""
from __future__ import annotations

from .catalog import (
    DURATION_BUCKETS_MS,
    Mapper,
    compute_approximate_request_size,
    default_metrics,
    param_mapper,
    request_duration,
    request_size,
    request_total,
    response_size,
    slow_request_total,
)
from .context import RequestContext
from .factory import new_collector
from .kinds import MetricKind
from .metric import ExecFn, Metric, MetricLike

__all__ = [
    "DURATION_BUCKETS_MS",
    "ExecFn",
    "Mapper",
    "Metric",
    "MetricKind",
    "MetricLike",
    "RequestContext",
    "compute_approximate_request_size",
    "default_metrics",
    "new_collector",
    "param_mapper",
    "request_duration",
    "request_size",
    "request_total",
    "response_size",
    "slow_request_total",
]
