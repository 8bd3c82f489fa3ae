"""Exposition endpoint.

`build_export_router()` returns an APIRouter serving the owned registry in
the Prometheus text format. When accounts are configured, requests without a
matching Basic-Auth credential are challenged with 401 before the registry is
touched.
"""
from __future__ import annotations

import base64
import secrets
from collections.abc import Mapping

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import Response
from fastapi.security import HTTPBasic, HTTPBasicCredentials
from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, generate_latest

REALM = "reqmetrics"


def normalize_path(path: str) -> str:
    path = (path or "").strip()
    return path if path.startswith("/") else "/" + path


def basic_auth_header(accounts: Mapping[str, str] | None) -> str:
    """Authorization header value for the first configured account ('' when none)."""
    if not accounts:
        return ""
    username, password = next(iter(accounts.items()))
    token = base64.b64encode(f"{username}:{password}".encode()).decode()
    return f"Basic {token}"


def _check_credentials(accounts: Mapping[str, str], creds: HTTPBasicCredentials | None) -> bool:
    if creds is None:
        return False
    expected = accounts.get(creds.username)
    if expected is None:
        # still compare so unknown users cost the same as bad passwords
        secrets.compare_digest(creds.password.encode(), b"")
        return False
    return secrets.compare_digest(creds.password.encode(), expected.encode())


def build_export_router(registry: CollectorRegistry, path: str,
                        accounts: Mapping[str, str] | None = None) -> APIRouter:
    router = APIRouter()
    route = normalize_path(path)

    def export() -> Response:
        return Response(content=generate_latest(registry), media_type=CONTENT_TYPE_LATEST)

    if accounts:
        security = HTTPBasic(realm=REALM, auto_error=False)
        frozen = dict(accounts)

        def require_account(creds: HTTPBasicCredentials | None = Depends(security)) -> None:
            if not _check_credentials(frozen, creds):
                raise HTTPException(
                    status_code=status.HTTP_401_UNAUTHORIZED,
                    detail="Unauthorized",
                    headers={"WWW-Authenticate": f'Basic realm="{REALM}"'},
                )

        router.add_api_route(route, export, methods=["GET"], include_in_schema=False,
                             dependencies=[Depends(require_account)])
    else:
        router.add_api_route(route, export, methods=["GET"], include_in_schema=False)
    return router


__all__ = ["build_export_router", "basic_auth_header", "normalize_path"]
