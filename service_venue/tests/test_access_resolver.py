"""
Unit tests for location and table access resolution.
"""

import pytest
from prometheus_client import CollectorRegistry
from structlog.testing import capture_logs

from shared.errors import IdentityServiceError
from shared.metrics import get_metrics_collector
from service_venue.app.access.resolver import AccessResolver, LocationVisibility, TableAccess


class TestLocationVisibility:
    """Test cases for the LocationVisibility value."""

    def test_all_allows_anything(self):
        visibility = LocationVisibility.all()
        assert visibility.unrestricted is True
        assert visibility.allows("anything")

    def test_restricted_allows_only_listed(self):
        visibility = LocationVisibility.restricted(["A", "B", "A"])
        assert visibility.unrestricted is False
        assert visibility.location_ids == frozenset({"A", "B"})
        assert visibility.allows("A")
        assert not visibility.allows("C")

    def test_restricted_empty_allows_nothing(self):
        visibility = LocationVisibility.restricted()
        assert not visibility.allows("A")


class TestResolveLocationVisibility:
    """Test cases for AccessResolver.resolve_location_visibility."""

    @pytest.fixture
    def resolver(self, identity):
        return AccessResolver(identity)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("caller_id,credential", [("", ""), ("u1", ""), ("", "t1"), (None, None)])
    async def test_anonymous_sees_all(self, resolver, identity, caller_id, credential):
        visibility = await resolver.resolve_location_visibility(caller_id, credential)

        assert visibility == LocationVisibility.all()
        identity.is_admin.assert_not_called()
        identity.get_assigned_locations.assert_not_called()

    @pytest.mark.asyncio
    async def test_admin_sees_all(self, resolver, identity):
        identity.is_admin.return_value = True

        visibility = await resolver.resolve_location_visibility("u1", "t1")

        assert visibility.unrestricted is True
        identity.is_admin.assert_awaited_once_with("u1", "t1")
        identity.get_assigned_locations.assert_not_called()

    @pytest.mark.asyncio
    async def test_admin_check_failure_sees_all(self, resolver, identity):
        identity.is_admin.side_effect = IdentityServiceError("request timed out")

        visibility = await resolver.resolve_location_visibility("u3", "t3")

        assert visibility.unrestricted is True
        identity.get_assigned_locations.assert_not_called()

    @pytest.mark.asyncio
    async def test_non_admin_restricted_to_assignments(self, resolver, identity):
        identity.get_assigned_locations.return_value = ["A"]

        visibility = await resolver.resolve_location_visibility("u1", "t1")

        assert visibility == LocationVisibility.restricted(["A"])
        identity.get_assigned_locations.assert_awaited_once_with("u1", "t1")

    @pytest.mark.asyncio
    async def test_non_admin_without_assignments_sees_nothing(self, resolver, identity):
        identity.get_assigned_locations.return_value = []

        visibility = await resolver.resolve_location_visibility("u2", "t2")

        assert visibility.unrestricted is False
        assert visibility.location_ids == frozenset()

    @pytest.mark.asyncio
    async def test_assignment_failure_sees_nothing(self, resolver, identity):
        identity.get_assigned_locations.side_effect = IdentityServiceError("unexpected status", status_code=500)

        visibility = await resolver.resolve_location_visibility("u1", "t1")

        assert visibility == LocationVisibility.restricted()

    @pytest.mark.asyncio
    async def test_unexpected_errors_propagate(self, resolver, identity):
        identity.is_admin.side_effect = RuntimeError("bug")

        with pytest.raises(RuntimeError):
            await resolver.resolve_location_visibility("u1", "t1")


class TestResolveTableVisibility:
    """Test cases for AccessResolver.resolve_table_visibility."""

    @pytest.fixture
    def resolver(self, identity):
        return AccessResolver(identity)

    @pytest.mark.asyncio
    async def test_anonymous_allowed(self, resolver, identity):
        access = await resolver.resolve_table_visibility("B", "", "")

        assert access is TableAccess.ALLOW
        identity.is_admin.assert_not_called()

    @pytest.mark.asyncio
    async def test_admin_allowed_anywhere(self, resolver, identity):
        identity.is_admin.return_value = True

        access = await resolver.resolve_table_visibility("B", "u1", "t1")

        assert access is TableAccess.ALLOW
        identity.get_assigned_locations.assert_not_called()

    @pytest.mark.asyncio
    async def test_admin_check_failure_allowed(self, resolver, identity):
        identity.is_admin.side_effect = IdentityServiceError("request failed")

        access = await resolver.resolve_table_visibility("B", "u1", "t1")

        assert access is TableAccess.ALLOW
        identity.get_assigned_locations.assert_not_called()

    @pytest.mark.asyncio
    async def test_assigned_location_allowed(self, resolver, identity):
        identity.get_assigned_locations.return_value = ["A"]

        assert await resolver.resolve_table_visibility("A", "u1", "t1") is TableAccess.ALLOW

    @pytest.mark.asyncio
    async def test_unassigned_location_denied(self, resolver, identity):
        identity.get_assigned_locations.return_value = ["A"]

        assert await resolver.resolve_table_visibility("B", "u1", "t1") is TableAccess.DENY

    @pytest.mark.asyncio
    async def test_no_assignments_denied(self, resolver, identity):
        identity.get_assigned_locations.return_value = []

        assert await resolver.resolve_table_visibility("A", "u2", "t2") is TableAccess.DENY

    @pytest.mark.asyncio
    async def test_assignment_failure_allowed(self, resolver, identity):
        identity.get_assigned_locations.side_effect = IdentityServiceError("request timed out")

        assert await resolver.resolve_table_visibility("B", "u1", "t1") is TableAccess.ALLOW

    @pytest.mark.asyncio
    async def test_location_match_is_exact(self, resolver, identity):
        identity.get_assigned_locations.return_value = ["loc-A"]

        assert await resolver.resolve_table_visibility("loc-a", "u1", "t1") is TableAccess.DENY


class TestAccessDecisionMetrics:
    """Decisions are counted per path and outcome."""

    @pytest.mark.asyncio
    async def test_decisions_recorded(self, identity):
        registry = CollectorRegistry()
        resolver = AccessResolver(identity, metrics=get_metrics_collector("venue", registry=registry))

        identity.get_assigned_locations.side_effect = IdentityServiceError("request failed")
        await resolver.resolve_location_visibility("u1", "t1")
        await resolver.resolve_table_visibility("A", "u1", "t1")

        identity.get_assigned_locations.side_effect = None
        identity.get_assigned_locations.return_value = []
        await resolver.resolve_table_visibility("A", "u1", "t1")

        def sample(path, outcome):
            return registry.get_sample_value("access_decisions_total", {"path": path, "outcome": outcome})

        assert sample("locations", "fail_closed") == 1.0
        assert sample("tables", "fail_open") == 1.0
        assert sample("tables", "deny") == 1.0


class TestFallbackLogging:
    """Fallbacks are logged at WARNING with the caller."""

    @staticmethod
    def warnings(logs):
        return [entry for entry in logs if entry["log_level"] == "warning"]

    @pytest.mark.asyncio
    async def test_fail_closed_logged(self, identity):
        identity.get_assigned_locations.side_effect = IdentityServiceError("request failed")

        with capture_logs() as logs:
            resolver = AccessResolver(identity)
            await resolver.resolve_location_visibility("u1", "t1")

        [entry] = self.warnings(logs)
        assert entry["event"] == "Assignment lookup failed, listing no locations"
        assert entry["caller_id"] == "u1"
        assert entry["error"] == "identity service: request failed"

    @pytest.mark.asyncio
    async def test_fail_open_logged(self, identity):
        identity.is_admin.side_effect = IdentityServiceError("request timed out")

        with capture_logs() as logs:
            resolver = AccessResolver(identity)
            await resolver.resolve_table_visibility("B", "u3", "t3")

        [entry] = self.warnings(logs)
        assert entry["event"] == "Admin check failed, allowing table access"
        assert entry["caller_id"] == "u3"
        assert entry["location_id"] == "B"

    @pytest.mark.asyncio
    async def test_normal_decisions_do_not_warn(self, identity):
        identity.get_assigned_locations.return_value = ["A"]

        with capture_logs() as logs:
            resolver = AccessResolver(identity)
            await resolver.resolve_location_visibility("u1", "t1")
            await resolver.resolve_table_visibility("A", "u1", "t1")

        assert self.warnings(logs) == []
