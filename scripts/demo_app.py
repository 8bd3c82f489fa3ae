#!/usr/bin/env python3
"""Demo FastAPI app instrumented with reqmetrics.

Run:
  python scripts/demo_app.py
  # with pushing enabled
  REQMETRICS_PUSH_GATEWAY_URL=http://localhost:9091 \
  REQMETRICS_METRICS_URL=http://127.0.0.1:8080/metrics python scripts/demo_app.py

Then hit http://127.0.0.1:8080/, /hello and /user/<name>; scrape /metrics.
"""
from __future__ import annotations

import os
from typing import Any

from fastapi import FastAPI

from reqmetrics import (
    Instrumentation,
    InstrumentationSettings,
    Metric,
    MetricKind,
    RequestContext,
    default_metrics,
    param_mapper,
    request_total,
    slow_request_total,
)
from reqmetrics.utils.logging_utils import setup_logging


def _count(c: Any, start_time: float, ctx: RequestContext) -> None:
    c.inc()


def build_app(settings: InstrumentationSettings | None = None) -> tuple[FastAPI, Instrumentation]:
    app = FastAPI()
    custom = Metric(name="test_metric", description="Counter test metric", kind=MetricKind.COUNTER, exec_fn=_count)
    inst = Instrumentation.from_settings(
        settings or InstrumentationSettings.from_env(),
        [
            custom,
            *default_metrics(),
            slow_request_total(1.0),
            request_total(param_mapper("name"), name="requests_by_route_total"),
        ],
        app=app,
        export_app=app,
    )

    @app.get("/")
    def index() -> str:
        return "Hello world!"

    @app.get("/hello")
    def hello() -> str:
        return "world!"

    @app.get("/user/{name}")
    def user(name: str) -> dict[str, str]:
        return {"user": name}

    return app, inst


def main() -> None:
    import uvicorn

    setup_logging(os.getenv("REQMETRICS_LOG_LEVEL", "INFO"))
    app, inst = build_app()
    try:
        uvicorn.run(app, host=os.getenv("HOST", "127.0.0.1"), port=int(os.getenv("PORT", "8080")))
    finally:
        inst.shutdown()


if __name__ == "__main__":
    main()
