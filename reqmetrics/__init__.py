"""reqmetrics: Prometheus request instrumentation for FastAPI / Starlette apps.

Public surface:
    Instrumentation            facade owning metrics, registry and push forwarder
    Metric / MetricKind        metric definitions and their collector kinds
    catalog helpers            request_total, request_duration, request_size, ...
    InstrumentationSettings    env-hydrated configuration
"""
from __future__ import annotations

from .config.settings import InstrumentationSettings
from .error_handling import ErrorCategory, ErrorHandler, ErrorInfo, ErrorSeverity
from .instrumentation import Instrumentation
from .metrics import (
    Metric,
    MetricKind,
    MetricLike,
    RequestContext,
    compute_approximate_request_size,
    default_metrics,
    new_collector,
    param_mapper,
    request_duration,
    request_size,
    request_total,
    response_size,
    slow_request_total,
)
from .push import LocalFetcher, PushForwarder
from .utils.exceptions import ConfigurationError, ContractViolation, ReqMetricsError, TransportError
from .web import MetricsMiddleware, build_export_router

__version__ = "0.1.0"

__all__ = [
    "ConfigurationError",
    "ContractViolation",
    "ErrorCategory",
    "ErrorHandler",
    "ErrorInfo",
    "ErrorSeverity",
    "Instrumentation",
    "InstrumentationSettings",
    "LocalFetcher",
    "Metric",
    "MetricKind",
    "MetricLike",
    "MetricsMiddleware",
    "PushForwarder",
    "ReqMetricsError",
    "RequestContext",
    "TransportError",
    "build_export_router",
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
