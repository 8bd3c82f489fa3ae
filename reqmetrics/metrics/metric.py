"""Metric definition: a named, typed unit with a lazily built collector.

A `Metric` pairs a declared `MetricKind` with an update function. The
collector is constructed at most once, on the first `collector()` call, under
a lock (double-checked so the steady state is lock-free). Construction is
all-or-nothing: if the factory raises, nothing is cached and no other thread
can observe a half-built collector.

At request time `exec()` checks the cached collector against the declared
kind before handing it to the update function. Any disagreement between the
two is reported as ContractViolation instead of escaping as an arbitrary
AttributeError deep inside prometheus_client.
"""
from __future__ import annotations

import threading
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from ..utils.exceptions import ContractViolation
from .context import RequestContext
from .factory import new_collector, validate_shape
from .kinds import MetricKind

ExecFn = Callable[[Any, float, RequestContext], None]


@runtime_checkable
class MetricLike(Protocol):
    name: str

    def collector(self, job_name: str) -> Any: ...

    def exec(self, start_time: float, ctx: RequestContext) -> None: ...


@dataclass(eq=False)
class Metric:
    name: str
    description: str
    kind: MetricKind | str
    exec_fn: ExecFn
    labels: Sequence[str] = ()
    buckets: Sequence[float] | None = None

    _collector: Any = field(default=None, init=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def __post_init__(self) -> None:
        self.kind = MetricKind.parse(self.kind)
        self.labels = tuple(str(l) for l in self.labels)
        validate_shape(self.kind, self.name, self.labels)

    def collector(self, job_name: str) -> Any:
        """Return the collector, building it on first use with `job_name` as namespace."""
        c = self._collector
        if c is not None:
            return c
        with self._lock:
            if self._collector is None:
                self._collector = new_collector(self.kind, self.name, self.description,
                                                self.labels, job_name, self.buckets)
            return self._collector

    @property
    def initialized(self) -> bool:
        return self._collector is not None

    def exec(self, start_time: float, ctx: RequestContext) -> None:
        c = self._collector
        if c is None:
            raise ContractViolation(f"metric {self.name!r} executed before its collector was registered")
        if not self.kind.matches(c):
            raise ContractViolation(
                f"metric {self.name!r} declares {self.kind.value} but holds {type(c).__name__}"
            )
        try:
            self.exec_fn(c, start_time, ctx)
        except (AttributeError, ValueError) as e:
            # wrong method for the kind, or label arity mismatch on a vector
            raise ContractViolation(f"metric {self.name!r} update failed against {self.kind.value}: {e}") from e


__all__ = ["Metric", "MetricLike", "ExecFn"]
