"""
Tests for the client-side result cache.
"""

import pytest

from affiliate_revenue.services.cache import ResultCache, build_key, default_ttl


class TestCacheKeys:
    """Tests for key building and TTL selection."""

    def test_params_order_does_not_matter(self) -> None:
        assert build_key("fn", {"b": 1, "a": 2}) == build_key("fn", {"a": 2, "b": 1})

    def test_no_params(self) -> None:
        assert build_key("fn") == "fn:null"

    @pytest.mark.parametrize(
        "function_name,ttl",
        [
            ("get_user_fee_overrides_batch", 300),
            ("get_user_fee_overrides", 300),
            ("get_unread_notifications_batch", 30),
            ("get_user_profile", 120),
            ("system_type_lookup", 600),
            ("reference_rates", 600),
            ("get_payment_dates_batch", 120),
        ],
    )
    def test_default_ttl(self, function_name: str, ttl: int) -> None:
        assert default_ttl(function_name) == ttl


class TestResultCache:
    """Tests for ResultCache behaviour."""

    def test_set_get_roundtrip(self, cache: ResultCache) -> None:
        cache.set("get_payment_dates_batch", {"u1": 1}, {"ids": ["u1"]})
        assert cache.get("get_payment_dates_batch", {"ids": ["u1"]}) == {"u1": 1}

    def test_miss_returns_none(self, cache: ResultCache) -> None:
        assert cache.get("unknown") is None

    def test_different_params_are_different_entries(self, cache: ResultCache) -> None:
        cache.set("fn", "a", {"id": 1})
        assert cache.get("fn", {"id": 2}) is None

    def test_expires_after_ttl(self, cache: ResultCache, fake_clock) -> None:
        """Entry is a miss once its TTL elapsed, without raising."""
        cache.set("fn", "value", ttl=10)
        fake_clock.advance(9)
        assert cache.get("fn") == "value"
        fake_clock.advance(1)
        assert cache.get("fn") is None

    def test_default_ttl_applies(self, cache: ResultCache, fake_clock) -> None:
        cache.set("get_unread_notifications_batch", 3)
        fake_clock.advance(29)
        assert cache.get("get_unread_notifications_batch") == 3
        fake_clock.advance(2)
        assert cache.get("get_unread_notifications_batch") is None

    def test_sweep_removes_expired_entries(self, cache: ResultCache, fake_clock) -> None:
        """A write after the sweep interval drops expired entries."""
        cache.set("old", 1, ttl=10)
        fake_clock.advance(61)
        cache.set("new", 2, ttl=10)
        assert cache.stats()["entries"] == 1

    def test_invalidate(self, cache: ResultCache) -> None:
        cache.set("fn", 1, {"id": 1})
        assert cache.invalidate("fn", {"id": 1}) is True
        assert cache.invalidate("fn", {"id": 1}) is False
        assert cache.get("fn", {"id": 1}) is None

    def test_invalidate_prefix(self, cache: ResultCache) -> None:
        cache.set("get_user_fee_overrides_batch", 1, {"ids": ["a"]})
        cache.set("get_user_fee_overrides_batch", 2, {"ids": ["b"]})
        cache.set("get_payment_dates_batch", 3, {"ids": ["a"]})

        assert cache.invalidate_prefix("get_user_fee_overrides_batch:") == 2
        assert cache.get("get_payment_dates_batch", {"ids": ["a"]}) == 3

    def test_clear_and_stats(self, cache: ResultCache) -> None:
        cache.set("fn", 1)
        cache.get("fn")
        cache.get("missing")
        assert cache.stats() == {"entries": 1, "hits": 1, "misses": 1}

        cache.clear()
        assert cache.stats() == {"entries": 0, "hits": 0, "misses": 0}

    def test_falsy_values_are_cached(self, cache: ResultCache) -> None:
        """Only None means miss."""
        cache.set("fn", {})
        assert cache.get("fn") == {}
