from types import SimpleNamespace

import pytest

from contact_api.errors import RateLimitExceeded
from contact_api.ratelimit import IPRateLimiter, RateLimit, rate_limit_headers
from contact_api.utils.utils import get_client_ip


def test_rate_limit_window_slides():
    rate_limit = RateLimit(max_requests=2, duration=60)
    assert not rate_limit.is_limit_exceeded(now=0)
    assert not rate_limit.is_limit_exceeded(now=10)
    assert rate_limit.is_limit_exceeded(now=59)
    # the first request has left the window
    assert not rate_limit.is_limit_exceeded(now=61)
    assert rate_limit.remaining() == 0
    assert rate_limit.reset_after(now=61) == 9


def test_limiter_tracks_addresses_separately():
    limiter = IPRateLimiter(max_requests=1, duration=900)
    state = limiter.check("10.0.0.1")
    assert state == {'limit': 1, 'remaining': 0, 'reset': 900}
    limiter.check("10.0.0.2")
    with pytest.raises(RateLimitExceeded) as exc_info:
        limiter.check("10.0.0.1")
    assert exc_info.value.status_code == 429
    assert exc_info.value.message == "Too many contact submissions. Please try again later."


def test_limiter_prunes_idle_addresses():
    limiter = IPRateLimiter(max_requests=1, duration=0)
    limiter.max_tracked_addresses = 2
    for ip in ("10.0.0.1", "10.0.0.2", "10.0.0.3"):
        limiter.check(ip)
    assert len(limiter.ip_rate_limits) <= 2


def test_rate_limit_headers():
    assert rate_limit_headers({'limit': 5, 'remaining': 4, 'reset': 900}) == {
        'RateLimit-Limit': '5', 'RateLimit-Remaining': '4', 'RateLimit-Reset': '900'}


def fake_request(headers=None, host="192.0.2.10"):
    return SimpleNamespace(headers=headers or {}, client=SimpleNamespace(host=host))


def test_client_ip_uses_last_forwarded_hop_behind_proxy():
    request = fake_request(headers={'x-forwarded-for': "203.0.113.9, 198.51.100.7"})
    assert get_client_ip(request, trust_proxy=True) == "198.51.100.7"
    assert get_client_ip(request, trust_proxy=False) == "192.0.2.10"


def test_client_ip_without_forwarding_header():
    assert get_client_ip(fake_request()) == "192.0.2.10"
    assert get_client_ip(SimpleNamespace(headers={}, client=None)) == "unknown"
