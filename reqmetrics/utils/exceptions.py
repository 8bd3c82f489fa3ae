"""reqmetrics exception hierarchy.

Three failure families matter to the instrumentation core:

- ConfigurationError: a metric can never work as declared (unknown kind,
  vector kind without labels, duplicate name). Raised at registration time.
- ContractViolation: a metric's update function and its collector disagree at
  request time. Recovered per metric; the request is unaffected.
- TransportError: the push forwarder could not fetch or deliver a snapshot.
  Recovered and retried on the next tick.
"""
from __future__ import annotations


class ReqMetricsError(Exception):
    """Base class for all reqmetrics exceptions."""


class ConfigurationError(ReqMetricsError):
    """Invalid metric or instrumentation configuration."""


class ContractViolation(ReqMetricsError):
    """Collector kind does not match what the update function operates on."""


class TransportError(ReqMetricsError):
    """Local snapshot fetch or remote push failed."""


__all__ = [
    "ReqMetricsError",
    "ConfigurationError",
    "ContractViolation",
    "TransportError",
]
