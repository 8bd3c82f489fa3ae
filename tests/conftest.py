"""Pytest configuration for reqmetrics.

Ensures the project root is importable and provides a RequestContext factory.
"""
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from reqmetrics.metrics.context import RequestContext  # noqa: E402


@pytest.fixture()
def make_ctx():
    """Factory for RequestContext with sensible defaults; override any field by keyword."""
    def _make(**overrides) -> RequestContext:
        fields = dict(method="GET", path="/a", host="h", protocol="HTTP/1.1",
                      content_length=-1, status=200, handler_name="app.index",
                      finished_at=10.0)
        fields.update(overrides)
        return RequestContext(**fields)
    return _make
