"""
Collector factory: maps a metric kind to a freshly allocated prometheus collector.

Collectors are created with ``registry=None`` so construction never touches a
registry; the owning Instrumentation registers them in its own
CollectorRegistry. The job name is applied as the prometheus namespace, giving
exposed names of the form ``<job>_<name>``.
"""
from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any

from ..utils.exceptions import ConfigurationError
from .kinds import MetricKind


def _normalize_labels(labels: Iterable[str] | None) -> tuple[str, ...]:
    if not labels:
        return ()
    return tuple(str(l) for l in labels)


def validate_shape(kind: MetricKind, name: str, labels: Sequence[str]) -> None:
    """Reject label declarations that cannot work for `kind`."""
    if kind.is_vector and not labels:
        raise ConfigurationError(f"metric {name!r}: kind {kind.value} requires at least one label name")
    if not kind.is_vector and labels:
        raise ConfigurationError(f"metric {name!r}: scalar kind {kind.value} does not take labels {list(labels)}")


def new_collector(kind: MetricKind | str, name: str, description: str,
                  labels: Iterable[str] | None = None, namespace: str = "",
                  buckets: Sequence[float] | None = None) -> Any:
    """Build an unregistered collector for `kind`.

    Raises ConfigurationError for an unknown kind, a label list that does not
    fit the kind, or a name prometheus_client refuses.
    """
    kind = MetricKind.parse(kind)
    label_names = _normalize_labels(labels)
    validate_shape(kind, name, label_names)

    kwargs: dict[str, Any] = {"namespace": namespace or "", "registry": None}
    if buckets is not None and kind in (MetricKind.HISTOGRAM, MetricKind.HISTOGRAM_VEC):
        kwargs["buckets"] = tuple(buckets)
    try:
        return kind.collector_class(name, description, label_names, **kwargs)
    except ValueError as e:
        raise ConfigurationError(f"metric {name!r}: {e}") from e


__all__ = ["new_collector", "validate_shape"]
