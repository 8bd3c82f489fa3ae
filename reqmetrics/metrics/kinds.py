"""Metric kinds.

`MetricKind` is the closed set of collector shapes a metric may declare. Each
member knows the prometheus_client class backing it and whether it is
partitioned by labels, so a declared kind can be checked against a collector
without the update function casting blindly.
"""
from __future__ import annotations

from enum import Enum
from typing import Any

from prometheus_client import Counter, Gauge, Histogram, Summary

from ..utils.exceptions import ConfigurationError


class MetricKind(Enum):
    COUNTER = "counter"
    COUNTER_VEC = "counter_vec"
    GAUGE = "gauge"
    GAUGE_VEC = "gauge_vec"
    HISTOGRAM = "histogram"
    HISTOGRAM_VEC = "histogram_vec"
    SUMMARY = "summary"
    SUMMARY_VEC = "summary_vec"

    @classmethod
    def parse(cls, value: MetricKind | str) -> MetricKind:
        """Resolve an enum member or its string name ("counter_vec", "counter-vector")."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = value.strip().lower().replace("-", "_").replace("_vector", "_vec")
            for member in cls:
                if member.value == key:
                    return member
        raise ConfigurationError(f"unknown metric kind {value!r}; expected one of {[m.value for m in cls]}")

    @property
    def is_vector(self) -> bool:
        return self.value.endswith("_vec")

    @property
    def collector_class(self) -> type:
        return _CLASSES[self.value.removesuffix("_vec")]

    def matches(self, collector: Any) -> bool:
        """True iff `collector` is the prometheus type this kind declares."""
        if not isinstance(collector, self.collector_class):
            return False
        return _is_labelled(collector) == self.is_vector


def _is_labelled(collector: Any) -> bool:
    # prometheus_client exposes no public accessor for a collector's label
    # names; `_labelnames` is set by MetricWrapperBase in every 0.x release.
    return bool(getattr(collector, "_labelnames", ()))


_CLASSES: dict[str, type] = {
    "counter": Counter,
    "gauge": Gauge,
    "histogram": Histogram,
    "summary": Summary,
}

__all__ = ["MetricKind"]
