from fastapi.testclient import TestClient
from starlette.requests import Request

from app.core import rate_limit
from app.core.config import Settings
from app.core.rate_limit import RateLimiter, TokenBucket, get_client_ip


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def _request(headers=None, client=("10.0.0.1", 5000)):
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/",
        "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
        "client": client,
    }
    return Request(scope)


def test_bucket_allows_burst_then_denies():
    bucket = TokenBucket(rate=1.0, capacity=2, now=0.0)
    assert bucket.allow(0.0)
    assert bucket.allow(0.0)
    assert not bucket.allow(0.0)


def test_bucket_refills_over_time_up_to_capacity():
    bucket = TokenBucket(rate=2.0, capacity=2, now=0.0)
    assert bucket.allow(0.0)
    assert bucket.allow(0.0)
    assert not bucket.allow(0.0)
    assert bucket.allow(0.5)
    assert not bucket.allow(0.5)

    bucket.allow(100.0)
    assert bucket.tokens <= 2


def test_limiter_tracks_clients_separately():
    limiter = RateLimiter(rps=0, burst=1, clock=FakeClock())
    assert limiter.allow("1.1.1.1")
    assert not limiter.allow("1.1.1.1")
    assert limiter.allow("2.2.2.2")
    assert len(limiter) == 2


def test_sweep_evicts_idle_clients():
    clock = FakeClock()
    limiter = RateLimiter(rps=1, burst=1, idle_timeout=180, clock=clock)
    limiter.allow("1.1.1.1")
    clock.advance(120)
    limiter.allow("2.2.2.2")

    clock.advance(61)
    assert limiter.sweep() == 1
    assert len(limiter) == 1

    # un cliente barrido vuelve con el bucket lleno
    assert limiter.allow("1.1.1.1")


def test_start_launches_a_single_daemon_sweeper():
    limiter = RateLimiter(rps=1, burst=1, sweep_interval=3600)
    limiter.start()
    thread = limiter._sweeper
    limiter.start()
    assert limiter._sweeper is thread
    assert thread.daemon
    assert thread.is_alive()


def test_client_ip_ignores_proxy_headers_by_default(monkeypatch):
    monkeypatch.setattr(rate_limit.settings, "trust_proxy_headers", False)
    request = _request({"X-Forwarded-For": "203.0.113.9"})
    assert get_client_ip(request) == "10.0.0.1"


def test_client_ip_uses_proxy_headers_when_trusted(monkeypatch):
    monkeypatch.setattr(rate_limit.settings, "trust_proxy_headers", True)
    assert get_client_ip(_request({"X-Forwarded-For": "203.0.113.9, 10.0.0.2"})) == "203.0.113.9"
    assert get_client_ip(_request({"X-Real-IP": "198.51.100.4"})) == "198.51.100.4"


def test_client_ip_unknown_without_client():
    assert get_client_ip(_request(client=None)) == "unknown"


def test_middleware_returns_429_after_burst():
    from app.main import create_app

    app = create_app(Settings(limiter_enabled=True, limiter_rps=0, limiter_burst=1, auto_create_db=False))
    client = TestClient(app)

    first = client.get("/api/v1/healthcheck")
    assert first.status_code == 200

    second = client.get("/api/v1/healthcheck")
    assert second.status_code == 429
    assert second.json() == {"error": "rate limit exceeded"}


def test_middleware_passes_everything_when_disabled():
    from app.main import create_app

    app = create_app(Settings(limiter_enabled=False, limiter_rps=0, limiter_burst=1, auto_create_db=False))
    client = TestClient(app)

    for _ in range(5):
        assert client.get("/api/v1/healthcheck").status_code == 200


def test_create_app_syncs_login_throttle_with_settings():
    from app.main import create_app

    create_app(Settings(limiter_enabled=True, auto_create_db=False))
    assert rate_limit.limiter.enabled is True

    create_app(Settings(limiter_enabled=False, auto_create_db=False))
    assert rate_limit.limiter.enabled is False
