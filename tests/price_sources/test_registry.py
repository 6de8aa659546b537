"""
Source Registry Tests.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock

from price_sources.models import SourceStatus
from price_sources.providers import MockPriceSource, MockSourceConfig
from price_sources.registry import DEFAULT_ROUTES, SourceRegistry, create_default_registry


# ============================================================
# REGISTRATION TESTS
# ============================================================

class TestSourceRegistration:
    """Tests for registering and listing sources."""

    def test_priority_order(self):
        registry = SourceRegistry()
        registry.register(MockPriceSource("low", config=MockSourceConfig(priority=5)))
        registry.register(MockPriceSource("high", config=MockSourceConfig(priority=1)))
        registry.register(MockPriceSource("mid", config=MockSourceConfig(priority=3)))

        assert registry.list_sources() == ["high", "mid", "low"]

    def test_replace_existing(self):
        registry = SourceRegistry()
        first = MockPriceSource("a")
        second = MockPriceSource("a")
        registry.register(first)
        registry.register(second)

        assert registry.list_sources() == ["a"]
        assert registry.get_source("a") is second

    def test_unregister(self):
        registry = SourceRegistry()
        source = MockPriceSource("a")
        registry.register(source)

        assert registry.unregister("a") is source
        assert registry.unregister("a") is None
        assert registry.list_sources() == []


# ============================================================
# ROUTE TESTS
# ============================================================

class TestRoutes:
    """Tests for commodity routes."""

    def test_candidates_in_route_order(self):
        registry = SourceRegistry(routes={"Gold": ["second", "first"]})
        first = MockPriceSource("first", config=MockSourceConfig(priority=1))
        second = MockPriceSource("second", config=MockSourceConfig(priority=2))
        registry.register(first)
        registry.register(second)

        assert registry.candidates_for("Gold") == [second, first]

    def test_unregistered_names_skipped(self):
        registry = SourceRegistry(routes={"Gold": ["missing", "a"]})
        source = MockPriceSource("a")
        registry.register(source)

        assert registry.candidates_for("Gold") == [source]

    def test_no_route(self):
        registry = SourceRegistry(routes=DEFAULT_ROUTES)

        assert registry.candidates_for("Cobalt") == []
        assert registry.candidates_for("Graphite") == []

    def test_set_route(self):
        registry = SourceRegistry()
        registry.set_route("Gold", ["a"])
        assert registry.routes == {"Gold": ["a"]}

        registry.set_route("Gold", [])
        assert registry.routes == {}

    def test_routes_are_copied(self):
        registry = SourceRegistry(routes=DEFAULT_ROUTES)
        registry.routes["Gold"].append("other")

        assert registry.routes["Gold"] == ["lbma", "yahoo_finance", "free_gold_price"]
        assert DEFAULT_ROUTES["Gold"] == ["lbma", "yahoo_finance", "free_gold_price"]


# ============================================================
# EVENT TESTS
# ============================================================

class TestEvents:
    """Tests for fallback and incident callbacks."""

    def test_fallback_callbacks(self):
        registry = SourceRegistry()
        fallback = MagicMock()
        incident = MagicMock()
        registry.on_fallback(fallback)
        registry.on_incident(incident)

        registry.record_fallback("Gold", "lbma", "yahoo_finance")

        fallback.assert_called_once_with("Gold", "lbma", "yahoo_finance")
        assert incident.call_count == 1
        assert incident.call_args.args[0].incident_type == "fallback"
        assert registry.get_incidents()[0].commodity == "Gold"

    def test_callback_failure_isolated(self):
        registry = SourceRegistry()
        good = MagicMock()
        registry.on_fallback(MagicMock(side_effect=RuntimeError("listener bug")))
        registry.on_fallback(good)

        registry.record_fallback("Gold", "a", "b")

        good.assert_called_once()

    def test_incident_log_bounded(self):
        registry = SourceRegistry(max_incidents=3)
        for i in range(5):
            registry.record_failure("a", "Gold", f"error {i}")

        incidents = registry.get_incidents()
        assert len(incidents) == 3
        assert incidents[-1].error_message == "error 4"
        assert len(registry.get_source_incidents("a")) == 3


# ============================================================
# HEALTH AND LIFECYCLE TESTS
# ============================================================

class TestHealthAndLifecycle:
    """Tests for health checks, stats and close."""

    @pytest.mark.asyncio
    async def test_health_check_all(self):
        registry = SourceRegistry()
        healthy = MockPriceSource("ok")
        broken = MockPriceSource("broken")
        broken.health_check = AsyncMock(side_effect=RuntimeError("down"))
        registry.register(healthy)
        registry.register(broken)

        results = await registry.health_check_all()

        assert results["ok"].status == SourceStatus.HEALTHY
        assert results["broken"].status == SourceStatus.UNAVAILABLE
        assert "down" in results["broken"].last_error

    def test_stats(self):
        registry = SourceRegistry(routes={"Gold": ["a"]})
        registry.register(MockPriceSource("a"))

        stats = registry.get_stats()

        assert stats["total_sources"] == 1
        assert stats["routes"] == {"Gold": ["a"]}
        assert stats["sources"]["a"]["uses_relay"] is False

    @pytest.mark.asyncio
    async def test_close_closes_sources(self):
        source = MockPriceSource("a")
        source.close = AsyncMock()

        async with SourceRegistry() as registry:
            registry.register(source)

        source.close.assert_awaited_once()
        assert registry.list_sources() == []


# ============================================================
# DEFAULT REGISTRY TESTS
# ============================================================

class TestDefaultRegistry:
    """Tests for create_default_registry."""

    def test_sources_and_routes(self):
        registry = create_default_registry()

        assert set(registry.list_sources()) == {
            "lbma", "yahoo_finance", "yahoo_metals", "free_gold_price",
        }
        assert [s.name for s in registry.candidates_for("Gold")] == [
            "lbma", "yahoo_finance", "free_gold_price",
        ]
        assert [s.name for s in registry.candidates_for("Nickel")] == ["yahoo_metals"]
        assert [s.name for s in registry.candidates_for("Electricity")] == ["yahoo_finance"]

    def test_free_gold_price_routed_last_for_precious_metals(self):
        registry = create_default_registry()

        for commodity in DEFAULT_ROUTES:
            names = [s.name for s in registry.candidates_for(commodity)]
            if commodity in ("Gold", "Silver", "Platinum"):
                assert names[-1] == "free_gold_price"
            else:
                assert "free_gold_price" not in names

    def test_independent_instances(self):
        assert create_default_registry() is not create_default_registry()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
