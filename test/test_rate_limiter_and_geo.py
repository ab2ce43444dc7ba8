"""
Tests for the fixed-window rate limiter, geo bucketing and client IP helpers.
"""
from types import SimpleNamespace

import pytest

from app.domain.errors import RateLimitError
from app.middleware.rate_limiter import FixedWindowRateLimiter
from app.services.analytics_service import bucket_countries, clamp, resolve_sort, months_back
from app.utils.geoip import get_client_ip, get_peer_ip, is_public_ip, get_country_from_ip
from app.domain.constants import USER_SORT_FIELDS
from datetime import datetime
from pymongo import ASCENDING, DESCENDING


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def test_limiter_blocks_after_limit_and_resets_with_window():
    clock = FakeClock()
    limiter = FixedWindowRateLimiter(3, 60, "slow down", clock=clock)

    assert [limiter.hit("user:1") for _ in range(3)] == [2, 1, 0]
    with pytest.raises(RateLimitError) as exc:
        limiter.hit("user:1")
    assert exc.value.status_code == 429
    assert exc.value.message == "slow down"

    # Other keys are independent
    assert limiter.hit("user:2") == 2

    clock.now += 60
    assert limiter.hit("user:1") == 2


def test_limiter_reset():
    limiter = FixedWindowRateLimiter(1, 60, "x", clock=FakeClock())
    limiter.hit("ip:1.2.3.4")
    limiter.reset()
    assert limiter.hit("ip:1.2.3.4") == 0


def test_limiter_sweeps_expired_windows():
    clock = FakeClock()
    limiter = FixedWindowRateLimiter(5, 60, "x", clock=clock, sweep_threshold=100)
    for i in range(10000):
        limiter.hit(f"ip:{i}")
        if i % 50 == 49:
            clock.now += 61
    print(f"  tracked={limiter.tracked_keys}")
    assert limiter.tracked_keys < 200

    limiter.reset()
    for i in range(100):
        limiter.hit(f"ip:{i}")
    clock.now += 61
    limiter.hit("ip:last")
    assert limiter.tracked_keys == 1


def test_geo_bucketing_collapses_tail_into_other():
    counts = [
        {"country": c, "users": n}
        for c, n in [("US", 50), ("CA", 20), ("UK", 10), ("DE", 5), ("FR", 5), ("JP", 5), ("AU", 3), ("BR", 2)]
    ]
    result = bucket_countries(counts)

    assert result["total"] == 100
    assert [d["country"] for d in result["distribution"]] == ["US", "CA", "UK", "DE", "FR", "JP", "AU", "Other"]
    assert result["distribution"][0] == {"country": "US", "users": 50, "pct": 50.0}
    assert result["distribution"][-1] == {"country": "Other", "users": 2, "pct": 2.0}


def test_geo_bucketing_small_and_empty():
    assert bucket_countries([]) == {"total": 0, "distribution": []}
    result = bucket_countries([{"country": "PK", "users": 2}, {"country": "IN", "users": 1}])
    assert result["distribution"] == [
        {"country": "PK", "users": 2, "pct": 66.7},
        {"country": "IN", "users": 1, "pct": 33.3},
    ]


def test_listing_parameter_helpers():
    assert clamp(None, 1, 50, 8) == 8
    assert clamp(0, 1, 50, 8) == 1
    assert clamp(500, 1, 50, 8) == 50
    assert resolve_sort("name", "asc", USER_SORT_FIELDS) == ("name", ASCENDING)
    assert resolve_sort("proposalsThisMonth", None, USER_SORT_FIELDS) == ("proposals_this_month", DESCENDING)
    assert resolve_sort("password_hash", "asc", USER_SORT_FIELDS) == ("created_at", DESCENDING)
    assert months_back(datetime(2024, 3, 15), 5) == datetime(2023, 10, 1)
    assert months_back(datetime(2024, 12, 31), 0) == datetime(2024, 12, 1)


def test_client_ip_prefers_forwarded_header():
    request = SimpleNamespace(headers={"x-forwarded-for": "203.0.113.9, 10.0.0.1"}, client=SimpleNamespace(host="10.0.0.2"))
    assert get_client_ip(request) == "203.0.113.9"
    request = SimpleNamespace(headers={}, client=SimpleNamespace(host="10.0.0.2"))
    assert get_client_ip(request) == "10.0.0.2"


def test_peer_ip_ignores_forwarded_header():
    request = SimpleNamespace(headers={"x-forwarded-for": "203.0.113.9"}, client=SimpleNamespace(host="10.0.0.2"))
    assert get_peer_ip(request) == "10.0.0.2"
    assert get_peer_ip(SimpleNamespace(headers={}, client=None)) == ""


def test_private_and_invalid_addresses_are_skipped():
    assert not is_public_ip("127.0.0.1")
    assert not is_public_ip("192.168.1.10")
    assert not is_public_ip("not-an-ip")
    assert is_public_ip("8.8.8.8")
    assert get_country_from_ip("127.0.0.1") == ""
    assert get_country_from_ip(None) == ""
