from .settings import DEFAULT_JOB_NAME, DEFAULT_METRICS_PATH, DEFAULT_PUSH_INTERVAL, InstrumentationSettings

__all__ = ["DEFAULT_JOB_NAME", "DEFAULT_METRICS_PATH", "DEFAULT_PUSH_INTERVAL", "InstrumentationSettings"]
