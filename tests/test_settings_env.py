import pytest

from reqmetrics.config.settings import (
    DEFAULT_JOB_NAME,
    DEFAULT_METRICS_PATH,
    DEFAULT_PUSH_INTERVAL,
    InstrumentationSettings,
)
from reqmetrics import Instrumentation, request_total
from reqmetrics.utils.exceptions import ConfigurationError


def test_defaults_from_empty_env():
    s = InstrumentationSettings.from_env({})
    assert s.export_path == DEFAULT_METRICS_PATH == "metrics"
    assert s.job_name == DEFAULT_JOB_NAME == "gin"
    assert s.push_interval == DEFAULT_PUSH_INTERVAL == 5.0
    assert s.push_gateway_url == ""
    assert not s.push_enabled
    assert s.export_accounts is None
    assert s.instance_name  # host name


def test_values_from_env():
    s = InstrumentationSettings.from_env({
        "REQMETRICS_EXPORT_PATH": "/internal/metrics",
        "REQMETRICS_JOB_NAME": "api",
        "REQMETRICS_INSTANCE_NAME": "pod-7",
        "REQMETRICS_PUSH_GATEWAY_URL": "http://gw:9091",
        "REQMETRICS_PUSH_INTERVAL": "2.5",
        "REQMETRICS_METRICS_URL": "http://127.0.0.1:8000/internal/metrics",
        "REQMETRICS_EXPORT_USER": "scraper",
        "REQMETRICS_EXPORT_PASS": "s3cret",
        "REQMETRICS_LOGGER_TAG": "api-metrics",
    })
    assert s.export_path == "/internal/metrics"
    assert s.job_name == "api"
    assert s.instance_name == "pod-7"
    assert s.push_enabled
    assert s.push_interval == 2.5
    assert s.export_accounts == {"scraper": "s3cret"}
    assert s.logger_tag == "api-metrics"


def test_malformed_interval_falls_back():
    s = InstrumentationSettings.from_env({"REQMETRICS_PUSH_INTERVAL": "soon"})
    assert s.push_interval == DEFAULT_PUSH_INTERVAL


def test_non_positive_interval_rejected():
    with pytest.raises(ConfigurationError):
        InstrumentationSettings.from_env({"REQMETRICS_PUSH_INTERVAL": "0"})


def test_account_requires_user_and_password():
    s = InstrumentationSettings.from_env({"REQMETRICS_EXPORT_USER": "scraper"})
    assert s.export_accounts is None


def test_from_settings_wires_instrumentation():
    s = InstrumentationSettings(job_name="svc", instance_name="n1", push_gateway_url="http://gw")
    inst = Instrumentation.from_settings(s, [request_total()], start_push=False)
    assert inst.job_name == "svc"
    assert inst.push_gateway_endpoint() == "http://gw/metrics/job/svc/instance/n1"
    assert inst.export_path == "/metrics"
