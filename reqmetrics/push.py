"""Push forwarder: ships exposition snapshots to a Prometheus push gateway.

A single daemon thread wakes on a fixed-rate schedule (deadlines at
``anchor + k * interval``). Each tick fetches the current snapshot, skips the
push when the fetch fails or yields an empty body, and otherwise POSTs the
bytes to the gateway. A tick that overruns the interval does not queue a
backlog: missed deadlines are dropped and the loop resumes on the next future
one. Every failure is reported and the loop carries on; `stop()` is the only
way out.
"""
from __future__ import annotations

import logging
import math
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

import requests

from .error_handling import ErrorCategory, ErrorHandler, ErrorSeverity
from .utils.exceptions import TransportError

logger = logging.getLogger(__name__)

PUSH_CONTENT_TYPE = "text/plain; version=0.0.4; charset=utf-8"

Fetch = Callable[[], bytes | None]


class LocalFetcher:
    """GET the local export endpoint, optionally with a precomputed Basic-Auth header."""

    def __init__(self, url: str, auth_header: str = "", session: requests.Session | None = None,
                 timeout: float = 3.0) -> None:
        self.url = url
        self.auth_header = auth_header
        self._owns_session = session is None
        self.session = session or requests.Session()
        self.timeout = timeout

    def __call__(self) -> bytes:
        headers = {"Authorization": self.auth_header} if self.auth_header else {}
        try:
            resp = self.session.get(self.url, headers=headers, timeout=self.timeout)
            resp.raise_for_status()
        except requests.RequestException as e:
            raise TransportError(f"fetch {self.url} failed: {e}") from e
        return resp.content

    def close(self) -> None:
        """Close the HTTP session if this fetcher created it."""
        if self._owns_session:
            self.session.close()


def next_deadline(anchor: float, now: float, interval: float) -> float:
    """First ``anchor + k * interval`` (k >= 1) strictly after `now`."""
    k = max(1, math.floor((now - anchor) / interval) + 1)
    return anchor + k * interval


@dataclass
class PushStats:
    ticks: int = 0
    pushes: int = 0
    failures: int = 0
    skipped: int = 0


class PushForwarder:
    def __init__(self, endpoint: str, fetch: Fetch, *, interval: float = 5.0, timeout: float = 3.0,
                 session: requests.Session | None = None, error_handler: ErrorHandler | None = None,
                 clock: Callable[[], float] = time.monotonic) -> None:
        self.endpoint = endpoint
        self.fetch = fetch
        self.interval = interval
        self.timeout = timeout
        self._owns_session = session is None
        self.session = session or requests.Session()
        self.error_handler = error_handler or ErrorHandler(logger=logger)
        self._clock = clock
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()
        self.stats = PushStats()

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        t = threading.Thread(target=self._loop, name="reqmetrics-push", daemon=True)
        self._thread = t
        t.start()
        logger.info("push forwarder started: %s every %.3gs", self.endpoint, self.interval)

    def stop(self, timeout: float | None = None) -> None:
        self._stop.set()
        t = self._thread
        if t is not None and t is not threading.current_thread():
            t.join(timeout)
        self._thread = None

    def close(self, timeout: float | None = None) -> None:
        """Stop the loop and close the HTTP session if this forwarder created it."""
        self.stop(timeout)
        if self._owns_session:
            self.session.close()

    def _loop(self) -> None:
        anchor = self._clock()
        deadline = anchor + self.interval
        while not self._stop.wait(max(0.0, deadline - self._clock())):
            self.run_once()
            deadline = next_deadline(anchor, self._clock(), self.interval)

    def run_once(self) -> bool:
        """Run a single tick. Returns True when a snapshot was delivered."""
        with self._lock:
            self.stats.ticks += 1
        try:
            body = self.fetch()
        except Exception as e:
            self._report(e, "fetch")
            return False
        if not body:
            logger.debug("empty metrics snapshot; skipping push")
            with self._lock:
                self.stats.skipped += 1
            return False
        try:
            self._post(body)
        except Exception as e:
            self._report(e, "push")
            return False
        with self._lock:
            self.stats.pushes += 1
        return True

    def _post(self, body: bytes) -> None:
        try:
            resp = self.session.post(self.endpoint, data=body, timeout=self.timeout,
                                     headers={"Content-Type": PUSH_CONTENT_TYPE})
        except requests.RequestException as e:
            raise TransportError(f"push to {self.endpoint} failed: {e}") from e
        if resp.status_code >= 400:
            raise TransportError(f"push to {self.endpoint} rejected with HTTP {resp.status_code}")

    def _report(self, exc: Exception, stage: str) -> None:
        with self._lock:
            self.stats.failures += 1
        category = ErrorCategory.TRANSPORT if isinstance(exc, TransportError) else ErrorCategory.UNKNOWN
        self.error_handler.handle_error(
            exc,
            category=category,
            severity=ErrorSeverity.MEDIUM,
            component="push",
            function_name=stage,
            context={"endpoint": self.endpoint},
        )


__all__ = ["PushForwarder", "PushStats", "LocalFetcher", "next_deadline", "PUSH_CONTENT_TYPE"]
