"""FastAPI / Starlette integration: request middleware and the export route."""
from .export import basic_auth_header, build_export_router, normalize_path
from .middleware import MetricsMiddleware

__all__ = ["MetricsMiddleware", "basic_auth_header", "build_export_router", "normalize_path"]
