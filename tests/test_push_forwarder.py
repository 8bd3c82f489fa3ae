import threading
import time

import pytest
import requests

from reqmetrics import Instrumentation, request_total
from reqmetrics import push as push_mod
from reqmetrics.error_handling import ErrorCategory, ErrorHandler
from reqmetrics.push import PUSH_CONTENT_TYPE, LocalFetcher, PushForwarder, next_deadline
from reqmetrics.utils.exceptions import TransportError


def _response(status: int, body: bytes = b"") -> requests.Response:
    r = requests.Response()
    r.status_code = status
    r._content = body
    r.url = "http://local/metrics"
    return r


class FakeSession:
    def __init__(self, get_status: int = 200, get_body: bytes = b"# metrics\n", post_status: int = 200,
                 post_exc: Exception | None = None):
        self.get_status = get_status
        self.get_body = get_body
        self.post_status = post_status
        self.post_exc = post_exc
        self.gets: list[dict] = []
        self.posts: list[dict] = []
        self.closed = False
        self._lock = threading.Lock()

    def get(self, url, headers=None, timeout=None):
        with self._lock:
            self.gets.append({"url": url, "headers": headers or {}, "timeout": timeout})
        return _response(self.get_status, self.get_body)

    def post(self, url, data=None, headers=None, timeout=None):
        with self._lock:
            self.posts.append({"url": url, "data": data, "headers": headers or {}, "timeout": timeout})
        if self.post_exc is not None:
            raise self.post_exc
        return _response(self.post_status)

    def close(self):
        self.closed = True


def _failing_fetch():
    raise TransportError("local endpoint down")


def test_fetch_failure_skips_push():
    session = FakeSession()
    handler = ErrorHandler()
    fwd = PushForwarder("http://gw/metrics/job/j/instance/i", _failing_fetch, session=session, error_handler=handler)
    assert fwd.run_once() is False
    assert session.posts == []
    assert fwd.stats.failures == 1
    assert handler.get_recent_errors()[0].category is ErrorCategory.TRANSPORT


@pytest.mark.parametrize("body", [b"", None])
def test_empty_snapshot_skips_push(body):
    session = FakeSession()
    fwd = PushForwarder("http://gw/x", lambda: body, session=session)
    assert fwd.run_once() is False
    assert session.posts == []
    assert fwd.stats.skipped == 1
    assert fwd.stats.failures == 0


def test_successful_tick_posts_snapshot():
    session = FakeSession()
    fwd = PushForwarder("http://gw/x", lambda: b"a_metric 1\n", session=session, timeout=1.5)
    assert fwd.run_once() is True
    assert session.posts == [{
        "url": "http://gw/x",
        "data": b"a_metric 1\n",
        "headers": {"Content-Type": PUSH_CONTENT_TYPE},
        "timeout": 1.5,
    }]
    assert fwd.stats.pushes == 1


def test_rejected_push_is_reported():
    session = FakeSession(post_status=500)
    handler = ErrorHandler()
    fwd = PushForwarder("http://gw/x", lambda: b"m 1\n", session=session, error_handler=handler)
    assert fwd.run_once() is False
    assert fwd.stats.failures == 1
    assert isinstance(handler.get_recent_errors()[0].exception, TransportError)


def test_connection_error_on_push_is_reported():
    session = FakeSession(post_exc=requests.ConnectionError("refused"))
    handler = ErrorHandler()
    fwd = PushForwarder("http://gw/x", lambda: b"m 1\n", session=session, error_handler=handler)
    assert fwd.run_once() is False
    assert handler.get_recent_errors()[0].category is ErrorCategory.TRANSPORT


def test_local_fetcher_sends_auth_and_timeout():
    session = FakeSession(get_body=b"x 1\n")
    fetch = LocalFetcher("http://local/metrics", "Basic abc", session=session, timeout=2.0)
    assert fetch() == b"x 1\n"
    assert session.gets == [{"url": "http://local/metrics", "headers": {"Authorization": "Basic abc"}, "timeout": 2.0}]


def test_local_fetcher_http_error_is_transport_error():
    fetch = LocalFetcher("http://local/metrics", session=FakeSession(get_status=503))
    with pytest.raises(TransportError):
        fetch()


@pytest.mark.parametrize("now,expected", [
    (0.0, 5.0),
    (1.0, 5.0),
    (5.0, 10.0),
    (12.3, 15.0),
    (29.9, 30.0),
])
def test_next_deadline_drops_missed_ticks(now, expected):
    assert next_deadline(0.0, now, 5.0) == expected


def test_loop_keeps_ticking_after_failed_fetch():
    calls = {"n": 0}

    def fetch():
        calls["n"] += 1
        if calls["n"] == 1:
            raise TransportError("first tick fails")
        return b"m 1\n"

    session = FakeSession()
    fwd = PushForwarder("http://gw/x", fetch, interval=0.02, session=session)
    fwd.start()
    try:
        deadline = time.monotonic() + 3.0
        while not session.posts and time.monotonic() < deadline:
            time.sleep(0.01)
    finally:
        fwd.stop(timeout=2.0)
    assert fwd.stats.failures >= 1
    assert len(session.posts) >= 1
    assert calls["n"] >= 2
    assert not fwd.running


class SteppedClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


class ClockedStopEvent:
    """Stop event whose waits advance a fake clock; reports stop after `limit` waits."""

    def __init__(self, clock: SteppedClock, limit: int):
        self.clock = clock
        self.limit = limit
        self.waits: list[float] = []

    def wait(self, timeout):
        self.waits.append(timeout)
        self.clock.now += timeout
        return len(self.waits) > self.limit


def test_slow_fetch_drops_missed_ticks():
    clock = SteppedClock()
    started: list[float] = []

    def slow_fetch():
        started.append(clock.now)
        clock.now += 2.5  # each fetch overruns the 1s interval
        return b"m 1\n"

    session = FakeSession()
    fwd = PushForwarder("http://gw/x", slow_fetch, interval=1.0, session=session, clock=clock)
    fwd._stop = ClockedStopEvent(clock, limit=4)
    fwd._loop()
    # ticks stay on the interval grid; the deadlines missed while fetching are skipped
    assert started == [1.0, 4.0, 7.0, 10.0]
    assert all(w > 0 for w in fwd._stop.waits)
    assert fwd.stats.ticks == 4
    assert len(session.posts) == 4


def test_instrumentation_push_endpoint_and_inprocess_snapshot():
    session = FakeSession()
    inst = Instrumentation([request_total()], job_name="api", instance_name="host-1",
                           push_gateway_url="http://gw:9091/", session=session, start_push=False)
    assert inst.pusher is not None
    assert inst.pusher.endpoint == "http://gw:9091/metrics/job/api/instance/host-1"
    assert inst.push_gateway_endpoint() == inst.pusher.endpoint
    assert inst.pusher.run_once() is True
    assert b"api_requests_total" in session.posts[0]["data"]
    assert session.gets == []


def test_instrumentation_local_fetch_uses_export_credentials():
    session = FakeSession()
    inst = Instrumentation([request_total()], push_gateway_url="http://gw", metrics_url="http://127.0.0.1:8080/metrics",
                           export_accounts={"user": "pass"}, session=session, start_push=False)
    assert inst.metrics_basic_auth == "Basic dXNlcjpwYXNz"
    inst.pusher.run_once()
    assert session.gets[0]["headers"] == {"Authorization": "Basic dXNlcjpwYXNz"}
    assert session.gets[0]["url"] == "http://127.0.0.1:8080/metrics"


def test_no_push_url_disables_forwarder():
    inst = Instrumentation([request_total()])
    assert inst.pusher is None
    inst.shutdown()


def test_shutdown_stops_forwarder():
    session = FakeSession()
    with Instrumentation([request_total()], push_gateway_url="http://gw", push_interval=0.05,
                         session=session) as inst:
        assert inst.pusher.running
    assert not inst.pusher.running


def test_shutdown_closes_sessions_it_created(monkeypatch):
    created: list[FakeSession] = []

    def _session():
        s = FakeSession()
        created.append(s)
        return s

    monkeypatch.setattr(push_mod.requests, "Session", _session)
    inst = Instrumentation([request_total()], push_gateway_url="http://gw", metrics_url="http://127.0.0.1:8080/metrics",
                           start_push=False)
    assert len(created) == 2
    inst.shutdown()
    assert [s.closed for s in created] == [True, True]


def test_shutdown_leaves_caller_session_open():
    session = FakeSession()
    inst = Instrumentation([request_total()], push_gateway_url="http://gw", metrics_url="http://127.0.0.1:8080/metrics",
                           session=session, start_push=False)
    inst.shutdown()
    assert session.closed is False
