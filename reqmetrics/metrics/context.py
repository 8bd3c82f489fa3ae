"""Completed request/response context handed to every metric's update function."""
from __future__ import annotations

from collections.abc import Mapping, MutableMapping
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class RequestContext:
    method: str
    path: str
    host: str = ""
    protocol: str = "HTTP/1.1"
    # (name, value) pairs in arrival order; the Host header is carried in `host`
    headers: tuple[tuple[str, str], ...] = ()
    content_length: int = -1
    status: int = 200
    handler_name: str = ""
    path_params: Mapping[str, Any] = field(default_factory=dict)
    # matched route template, e.g. "/user/{id}"; empty when no route matched
    route_path: str = ""
    response_size: int = 0
    finished_at: float = 0.0

    def elapsed(self, start_time: float) -> float:
        """Seconds between `start_time` and handler completion (same clock as perf_counter)."""
        return self.finished_at - start_time

    @classmethod
    def from_scope(cls, scope: MutableMapping[str, Any], *, status: int,
                   response_size: int, finished_at: float) -> RequestContext:
        """Build a context from an ASGI HTTP scope after the app has handled it.

        Starlette's router writes `endpoint`, `path_params` and (under FastAPI)
        `route` into the shared scope during routing, so they are available
        once the app returns.
        """
        host = ""
        content_length = -1
        headers: list[tuple[str, str]] = []
        for raw_name, raw_value in scope.get("headers") or ():
            name = raw_name.decode("latin-1")
            value = raw_value.decode("latin-1")
            lname = name.lower()
            if lname == "host":
                host = value
                continue
            if lname == "content-length":
                try:
                    content_length = int(value)
                except ValueError:
                    content_length = -1
            headers.append((name, value))
        if not host and scope.get("server"):
            server_host, server_port = scope["server"][0], scope["server"][1]
            host = f"{server_host}:{server_port}" if server_port else str(server_host)

        return cls(
            method=scope.get("method", ""),
            path=scope.get("path", ""),
            host=host,
            protocol=f"HTTP/{scope.get('http_version', '1.1')}",
            headers=tuple(headers),
            content_length=content_length,
            status=status,
            handler_name=handler_name(scope.get("endpoint")),
            path_params=dict(scope.get("path_params") or {}),
            route_path=getattr(scope.get("route"), "path", "") or "",
            response_size=response_size,
            finished_at=finished_at,
        )


def handler_name(endpoint: Any) -> str:
    if endpoint is None:
        return ""
    module = getattr(endpoint, "__module__", None) or ""
    qualname = getattr(endpoint, "__qualname__", None) or getattr(endpoint, "__name__", None) or type(endpoint).__name__
    return f"{module}.{qualname}" if module else qualname


__all__ = ["RequestContext", "handler_name"]
