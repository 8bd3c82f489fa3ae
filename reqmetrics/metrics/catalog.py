"""Built-in request metrics.

Each helper returns a new `Metric`, so two Instrumentation instances never
end up sharing (and double-registering) one collector.

    request_total(mapper=None)   requests_total{code,method,handler,host,url}
    request_duration()           request_duration_seconds{code,method,url} (milliseconds)
    response_size()              response_size_bytes
    request_size()               request_size_bytes
    slow_request_total(slow)     slow_request_total
"""
from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from typing import Any

from .context import RequestContext
from .kinds import MetricKind
from .metric import Metric

Mapper = Callable[[RequestContext], str]

# "{id}" or "{id:int}" in a route template
_ROUTE_PARAM = re.compile(r"{([^{}:]+)(?::[^{}]*)?}")

REQUEST_TOTAL_DOC = "How many HTTP requests processed, partitioned by status code and HTTP method."

# Durations are observed in milliseconds, so the prometheus default (seconds) buckets do not fit.
DURATION_BUCKETS_MS: tuple[float, ...] = (5, 10, 25, 50, 100, 250, 500, 1000, 2500, 5000, 10000)


def _path(ctx: RequestContext) -> str:
    return ctx.path


def request_total(mapper: Mapper | None = None, name: str = "requests_total") -> Metric:
    url_of = mapper or _path

    def _exec(c: Any, start_time: float, ctx: RequestContext) -> None:
        c.labels(str(ctx.status), ctx.method, ctx.handler_name, ctx.host, url_of(ctx)).inc()

    return Metric(
        name=name,
        description=REQUEST_TOTAL_DOC,
        kind=MetricKind.COUNTER_VEC,
        labels=("code", "method", "handler", "host", "url"),
        exec_fn=_exec,
    )


def request_duration() -> Metric:
    def _exec(c: Any, start_time: float, ctx: RequestContext) -> None:
        c.labels(str(ctx.status), ctx.method, ctx.path).observe(ctx.elapsed(start_time) * 1000.0)

    return Metric(
        name="request_duration_seconds",
        description="The HTTP request latencies in Millisecond.",
        kind=MetricKind.HISTOGRAM_VEC,
        labels=("code", "method", "url"),
        buckets=DURATION_BUCKETS_MS,
        exec_fn=_exec,
    )


def response_size() -> Metric:
    def _exec(c: Any, start_time: float, ctx: RequestContext) -> None:
        c.observe(float(ctx.response_size))

    return Metric(
        name="response_size_bytes",
        description="The HTTP response sizes in bytes.",
        kind=MetricKind.SUMMARY,
        exec_fn=_exec,
    )


def request_size() -> Metric:
    def _exec(c: Any, start_time: float, ctx: RequestContext) -> None:
        c.observe(float(compute_approximate_request_size(ctx)))

    return Metric(
        name="request_size_bytes",
        description="The HTTP request sizes in bytes.",
        kind=MetricKind.SUMMARY,
        exec_fn=_exec,
    )


def slow_request_total(slow_time: float) -> Metric:
    """Counter of requests whose handling took strictly longer than `slow_time` seconds."""
    def _exec(c: Any, start_time: float, ctx: RequestContext) -> None:
        if ctx.elapsed(start_time) > slow_time:
            c.inc()

    return Metric(
        name="slow_request_total",
        description="The slow HTTP request total.",
        kind=MetricKind.COUNTER,
        exec_fn=_exec,
    )


def compute_approximate_request_size(ctx: RequestContext) -> int:
    s = len(ctx.path)
    s += len(ctx.method)
    s += len(ctx.protocol)
    for name, value in ctx.headers:
        s += len(name) + len(value)
    s += len(ctx.host)
    # form data is assumed to be part of the path/body already
    if ctx.content_length != -1:
        s += ctx.content_length
    return s


def _fill_route(template: str, params: Mapping[str, Any], collapse: Callable[[str], bool]) -> str:
    def _sub(match: re.Match[str]) -> str:
        key = match.group(1)
        if collapse(key) or key not in params:
            return f":{key}"
        return str(params[key])

    return _ROUTE_PARAM.sub(_sub, template)


def param_mapper(*names: str) -> Mapper:
    """Mapper that replaces route parameter values in the path with ``:<name>``.

    With no names every path parameter is collapsed, e.g. ``/user/42`` matched
    by ``/user/{id}`` becomes ``/user/:id``. The matched route template is used
    when the request carries one; otherwise only whole path segments equal to
    a parameter value are replaced.
    """
    def _selected(key: str) -> bool:
        return not names or key in names

    def _map(ctx: RequestContext) -> str:
        if ctx.route_path:
            actual = _fill_route(ctx.route_path, ctx.path_params, lambda key: False)
            # a mounted sub-app matches against the path below its mount point
            if ctx.path.endswith(actual):
                prefix = ctx.path[:len(ctx.path) - len(actual)]
                return prefix + _fill_route(ctx.route_path, ctx.path_params, _selected)
        segments = ctx.path.split("/")
        for key, value in ctx.path_params.items():
            text = str(value)
            if not text or not _selected(key):
                continue
            for i, segment in enumerate(segments):
                if segment == text:
                    segments[i] = f":{key}"
                    break
        return "/".join(segments)

    return _map


def default_metrics() -> list[Metric]:
    return [request_total(), request_duration(), request_size(), response_size()]


__all__ = [
    "Mapper",
    "DURATION_BUCKETS_MS",
    "request_total",
    "request_duration",
    "response_size",
    "request_size",
    "slow_request_total",
    "compute_approximate_request_size",
    "param_mapper",
    "default_metrics",
]
