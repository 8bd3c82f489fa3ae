"""Instrumentation facade.

One `Instrumentation` owns an ordered list of metrics, a private
CollectorRegistry, an error handler, and (when a push gateway URL is set) a
push forwarder. Construction is the registration step: every metric's
collector is built and registered up front, so configuration mistakes abort
startup instead of surfacing on the request path.

Typical wiring:

    app = FastAPI()
    inst = Instrumentation(default_metrics(), app=app, export_app=app)

Several instances can live in one process; nothing here touches the
prometheus_client default registry.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import Any
from urllib.parse import quote

import requests
from prometheus_client import CollectorRegistry, generate_latest

from .config.settings import (
    DEFAULT_JOB_NAME,
    DEFAULT_LOGGER_TAG,
    DEFAULT_METRICS_PATH,
    DEFAULT_PUSH_INTERVAL,
    DEFAULT_PUSH_TIMEOUT,
    InstrumentationSettings,
    default_instance_name,
)
from .error_handling import ErrorCategory, ErrorHandler, ErrorInfo, ErrorSeverity
from .metrics.context import RequestContext
from .metrics.metric import MetricLike
from .push import Fetch, LocalFetcher, PushForwarder
from .utils.exceptions import ConfigurationError, ContractViolation
from .web.export import basic_auth_header, build_export_router, normalize_path
from .web.middleware import MetricsMiddleware

_log = logging.getLogger(__name__)


class Instrumentation:
    def __init__(
        self,
        metrics: Iterable[MetricLike],
        *,
        app: Any = None,
        export_app: Any = None,
        export_path: str = DEFAULT_METRICS_PATH,
        job_name: str = DEFAULT_JOB_NAME,
        instance_name: str | None = None,
        push_gateway_url: str = "",
        push_interval: float = DEFAULT_PUSH_INTERVAL,
        push_timeout: float = DEFAULT_PUSH_TIMEOUT,
        metrics_url: str = "",
        export_accounts: Mapping[str, str] | None = None,
        logger: logging.Logger | None = None,
        logger_tag: str = DEFAULT_LOGGER_TAG,
        session: requests.Session | None = None,
        start_push: bool = True,
    ) -> None:
        self._metrics: tuple[MetricLike, ...] = tuple(metrics)
        if not self._metrics:
            raise ConfigurationError("at least one metric is required")
        if push_interval <= 0:
            raise ConfigurationError(f"push_interval must be positive, got {push_interval}")
        if push_timeout <= 0:
            raise ConfigurationError(f"push_timeout must be positive, got {push_timeout}")
        self.export_path = normalize_path(export_path)
        self.job_name = job_name
        self.instance_name = instance_name or default_instance_name()
        self.push_gateway_url = (push_gateway_url or "").rstrip("/")
        self.push_interval = push_interval
        self.push_timeout = push_timeout
        self.metrics_url = metrics_url
        self.export_accounts = dict(export_accounts) if export_accounts else None
        self.metrics_basic_auth = basic_auth_header(self.export_accounts)
        self.logger = logger or _log
        self.logger_tag = logger_tag
        self.error_handler = ErrorHandler(logger=self.logger, tag=logger_tag)
        self.registry = CollectorRegistry()
        self.pusher: PushForwarder | None = None
        self.fetcher: LocalFetcher | None = None

        self._register_metrics()

        if app is not None:
            app.add_middleware(MetricsMiddleware, instrumentation=self)
        if export_app is not None:
            export_app.include_router(build_export_router(self.registry, self.export_path, self.export_accounts))

        if self.push_gateway_url:
            self.pusher = PushForwarder(
                self.push_gateway_endpoint(),
                self._snapshot_source(session),
                interval=push_interval,
                timeout=push_timeout,
                session=session,
                error_handler=self.error_handler,
            )
            if start_push:
                self.pusher.start()

    @classmethod
    def from_settings(cls, settings: InstrumentationSettings, metrics: Iterable[MetricLike],
                      **kwargs: Any) -> Instrumentation:
        return cls(
            metrics,
            export_path=settings.export_path,
            job_name=settings.job_name,
            instance_name=settings.instance_name,
            push_gateway_url=settings.push_gateway_url,
            push_interval=settings.push_interval,
            push_timeout=settings.push_timeout,
            metrics_url=settings.metrics_url,
            export_accounts=settings.export_accounts,
            logger_tag=settings.logger_tag,
            **kwargs,
        )

    @property
    def metrics(self) -> Sequence[MetricLike]:
        return self._metrics

    def _register_metrics(self) -> None:
        """Build and register every collector; any failure aborts construction."""
        seen: set[str] = set()
        for metric in self._metrics:
            if metric.name in seen:
                raise ConfigurationError(
                    f"duplicate metric name {metric.name!r} under job {self.job_name!r}"
                )
            seen.add(metric.name)
            collector = metric.collector(self.job_name)
            try:
                self.registry.register(collector)
            except ValueError as e:
                # prometheus_client reports clashing timeseries names this way
                raise ConfigurationError(f"metric {metric.name!r}: {e}") from e
        _log.debug("registered %d metrics under job %s", len(self._metrics), self.job_name)

    def _snapshot_source(self, session: requests.Session | None) -> Fetch:
        if self.metrics_url:
            self.fetcher = LocalFetcher(self.metrics_url, self.metrics_basic_auth, session=session,
                                        timeout=self.push_timeout)
            return self.fetcher
        return self.metrics_text

    def dispatch(self, start_time: float, ctx: RequestContext) -> list[ErrorInfo]:
        """Run every metric in registration order; failures are isolated and reported."""
        errors: list[ErrorInfo] = []
        for metric in self._metrics:
            try:
                metric.exec(start_time, ctx)
            except ContractViolation as e:
                errors.append(self.error_handler.handle_error(
                    e,
                    category=ErrorCategory.CONTRACT,
                    severity=ErrorSeverity.HIGH,
                    component="instrumentation",
                    function_name="dispatch",
                    context={"metric": metric.name, "path": ctx.path},
                ))
            except Exception as e:
                errors.append(self.error_handler.handle_error(
                    e,
                    category=ErrorCategory.UNKNOWN,
                    severity=ErrorSeverity.HIGH,
                    component="instrumentation",
                    function_name="dispatch",
                    context={"metric": metric.name, "path": ctx.path},
                ))
        return errors

    def push_gateway_endpoint(self) -> str:
        return (
            f"{self.push_gateway_url}/metrics/job/{quote(self.job_name, safe='')}"
            f"/instance/{quote(self.instance_name, safe='')}"
        )

    def metrics_text(self) -> bytes:
        return generate_latest(self.registry)

    def shutdown(self, timeout: float | None = 5.0) -> None:
        """Stop the push loop and close any HTTP sessions created for it."""
        if self.pusher is not None:
            self.pusher.close(timeout)
        if self.fetcher is not None:
            self.fetcher.close()

    def __enter__(self) -> Instrumentation:
        return self

    def __exit__(self, *exc: object) -> None:
        self.shutdown()


__all__ = ["Instrumentation"]
