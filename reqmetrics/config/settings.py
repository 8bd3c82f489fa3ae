"""Instrumentation settings.

A frozen snapshot of everything an Instrumentation needs besides its metric
list and the application objects. `from_env()` hydrates it in a single pass
from REQMETRICS_* variables so callers do not scatter os.getenv lookups:

  REQMETRICS_EXPORT_PATH       export route (default "metrics")
  REQMETRICS_JOB_NAME          namespace / push job (default "gin")
  REQMETRICS_INSTANCE_NAME     push instance (default: host name)
  REQMETRICS_PUSH_GATEWAY_URL  enables pushing when non-empty
  REQMETRICS_PUSH_INTERVAL     seconds between push ticks (default 5)
  REQMETRICS_PUSH_TIMEOUT      per-request HTTP timeout for fetch/push (default 3)
  REQMETRICS_METRICS_URL       local URL the forwarder scrapes
  REQMETRICS_EXPORT_USER / REQMETRICS_EXPORT_PASS  Basic-Auth account for the export route
  REQMETRICS_LOGGER_TAG        tag prefixed to error log lines
"""
from __future__ import annotations

import socket
from collections.abc import Mapping
from dataclasses import dataclass, field

from ..utils.env_flags import env_float, env_str
from ..utils.exceptions import ConfigurationError

DEFAULT_PUSH_INTERVAL = 5.0
DEFAULT_PUSH_TIMEOUT = 3.0
DEFAULT_JOB_NAME = "gin"
DEFAULT_METRICS_PATH = "metrics"
DEFAULT_LOGGER_TAG = "reqmetrics"


def default_instance_name() -> str:
    try:
        return socket.gethostname()
    except OSError:
        return ""


@dataclass(frozen=True)
class InstrumentationSettings:
    export_path: str = DEFAULT_METRICS_PATH
    job_name: str = DEFAULT_JOB_NAME
    instance_name: str = field(default_factory=default_instance_name)
    push_gateway_url: str = ""
    push_interval: float = DEFAULT_PUSH_INTERVAL
    push_timeout: float = DEFAULT_PUSH_TIMEOUT
    metrics_url: str = ""
    export_accounts: Mapping[str, str] | None = None
    logger_tag: str = DEFAULT_LOGGER_TAG

    def __post_init__(self) -> None:
        if self.push_interval <= 0:
            raise ConfigurationError(f"push_interval must be positive, got {self.push_interval}")
        if self.push_timeout <= 0:
            raise ConfigurationError(f"push_timeout must be positive, got {self.push_timeout}")

    @property
    def push_enabled(self) -> bool:
        return bool(self.push_gateway_url)

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> InstrumentationSettings:
        user = env_str("REQMETRICS_EXPORT_USER", "", env)
        pw = env_str("REQMETRICS_EXPORT_PASS", "", env)
        return cls(
            export_path=env_str("REQMETRICS_EXPORT_PATH", DEFAULT_METRICS_PATH, env),
            job_name=env_str("REQMETRICS_JOB_NAME", DEFAULT_JOB_NAME, env),
            instance_name=env_str("REQMETRICS_INSTANCE_NAME", "", env) or default_instance_name(),
            push_gateway_url=env_str("REQMETRICS_PUSH_GATEWAY_URL", "", env),
            push_interval=env_float("REQMETRICS_PUSH_INTERVAL", DEFAULT_PUSH_INTERVAL, env),
            push_timeout=env_float("REQMETRICS_PUSH_TIMEOUT", DEFAULT_PUSH_TIMEOUT, env),
            metrics_url=env_str("REQMETRICS_METRICS_URL", "", env),
            export_accounts={user: pw} if user and pw else None,
            logger_tag=env_str("REQMETRICS_LOGGER_TAG", DEFAULT_LOGGER_TAG, env),
        )


__all__ = [
    "DEFAULT_PUSH_INTERVAL",
    "DEFAULT_PUSH_TIMEOUT",
    "DEFAULT_JOB_NAME",
    "DEFAULT_METRICS_PATH",
    "DEFAULT_LOGGER_TAG",
    "InstrumentationSettings",
    "default_instance_name",
]
