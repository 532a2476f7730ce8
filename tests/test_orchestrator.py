# tests/test_orchestrator.py
"""
Tests for TieredStorageOrchestrator.

These tests verify:
- Lookup order, misses and refresh of faster tiers on read
- Save to every tier with compensating rollback on failure
- Update propagation, fallback save for tiers without a copy, stop on failure
- Idempotent delete across every tier with aggregated results
- Argument validation and per-call deadlines
"""

from datetime import datetime, timezone

import pytest

from tierstore.models import OperationStatus, Record
from tierstore.orchestrator import ProviderCall, TieredStorageOrchestrator
from tierstore.storage.registry import ProviderRegistry

FIXED_TIME = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)
LATER_TIME = datetime(2024, 5, 1, 13, 30, 0, tzinfo=timezone.utc)


# =============================================================================
# FIXTURES
# =============================================================================


@pytest.fixture
def tiers(scripted_provider):
    """Cache, file and database tiers backed by scripted in-memory providers."""
    return (
        scripted_provider("cache"),
        scripted_provider("file"),
        scripted_provider("database"),
    )


def _orchestrator(providers, **kwargs) -> TieredStorageOrchestrator:
    registry = ProviderRegistry(list(providers))
    ids = iter(f"rec-{i}" for i in range(1, 100))
    kwargs.setdefault("id_factory", lambda: next(ids))
    kwargs.setdefault("clock", lambda: FIXED_TIME)
    return TieredStorageOrchestrator(registry, **kwargs)


@pytest.fixture
def orchestrator(tiers):
    return _orchestrator(tiers)


def _seed(provider, record_id="abc", value="payload"):
    record = Record(id=record_id, value=value, created_at=FIXED_TIME)
    provider.records[record_id] = record
    return record


# =============================================================================
# PROVIDER CALL TESTS
# =============================================================================


class TestProviderCall:
    """Tests for the guarded call outcome."""

    def test_succeeded_requires_true_value(self):
        assert ProviderCall(completed=True, value=True).succeeded
        assert not ProviderCall(completed=True, value=False).succeeded
        assert not ProviderCall(completed=False, error="boom").succeeded


# =============================================================================
# GET TESTS
# =============================================================================


class TestGetById:
    """Tests for reads with refresh-on-read."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("bad_id", ["", "   ", None])
    async def test_invalid_id(self, orchestrator, tiers, bad_id):
        """Blank or missing ids are rejected before any tier is touched."""
        result = await orchestrator.get_by_id(bad_id)

        assert result.status is OperationStatus.INVALID_ARGUMENT
        assert all(not t.calls for t in tiers)

    @pytest.mark.asyncio
    async def test_not_found_checks_every_tier(self, orchestrator, tiers):
        """A miss in every tier reports NOT_FOUND and writes nothing."""
        result = await orchestrator.get_by_id("missing")

        assert result.not_found
        assert result.value is None
        for tier in tiers:
            assert tier.operations("get") == ["missing"]
            assert tier.operations("save") == []

    @pytest.mark.asyncio
    async def test_hit_in_database_refreshes_faster_tiers(self, orchestrator, tiers):
        """Scenario: record only in the database is copied to cache and file."""
        cache, file, database = tiers
        stored = _seed(database)

        result = await orchestrator.get_by_id("abc")

        assert result.ok
        assert result.value == stored
        assert cache.records["abc"] == stored
        assert file.records["abc"] == stored
        assert database.operations("save") == []

    @pytest.mark.asyncio
    async def test_hit_in_file_refreshes_only_cache(self, orchestrator, tiers):
        cache, file, database = tiers
        _seed(file)

        result = await orchestrator.get_by_id("abc")

        assert result.ok
        assert "abc" in cache.records
        assert database.calls == []
        assert file.operations("save") == []

    @pytest.mark.asyncio
    async def test_hit_in_cache_stops_search(self, orchestrator, tiers):
        """The fastest hit is returned and slower tiers are not consulted."""
        cache, file, database = tiers
        _seed(cache)

        result = await orchestrator.get_by_id("abc")

        assert result.ok
        assert file.calls == []
        assert database.calls == []

    @pytest.mark.asyncio
    async def test_fastest_copy_wins_when_tiers_disagree(self, orchestrator, tiers):
        cache, _file, database = tiers
        _seed(cache, value="fresh")
        _seed(database, value="stale")

        result = await orchestrator.get_by_id("abc")

        assert result.value.value == "fresh"

    @pytest.mark.asyncio
    async def test_refresh_failure_does_not_fail_read(self, scripted_provider):
        """A tier that cannot be refreshed is logged and the read still succeeds."""
        cache = scripted_provider("cache", raise_on={"save"})
        file = scripted_provider("file")
        database = scripted_provider("database")
        stored = _seed(database)

        result = await _orchestrator([cache, file, database]).get_by_id("abc")

        assert result.ok
        assert result.value == stored
        assert "abc" not in cache.records
        assert file.records["abc"] == stored

    @pytest.mark.asyncio
    async def test_failing_tier_is_treated_as_miss(self, scripted_provider):
        cache = scripted_provider("cache", raise_on={"get"})
        file = scripted_provider("file")
        database = scripted_provider("database")
        _seed(file)

        result = await _orchestrator([cache, file, database]).get_by_id("abc")

        assert result.ok
        assert database.calls == []


# =============================================================================
# SAVE TESTS
# =============================================================================


class TestSave:
    """Tests for save with compensating rollback."""

    @pytest.mark.asyncio
    async def test_save_writes_every_tier(self, orchestrator, tiers):
        result = await orchestrator.save("hello")

        assert result.ok
        assert result.value == "rec-1"
        assert result.tier_results == {"cache": True, "file": True, "database": True}
        for tier in tiers:
            stored = tier.records["rec-1"]
            assert stored.value == "hello"
            assert stored.created_at == FIXED_TIME

    @pytest.mark.asyncio
    async def test_save_writes_in_priority_order(self, scripted_provider):
        """Providers registered in any order are written fastest first."""
        cache, file, database = (scripted_provider(t) for t in ("cache", "file", "database"))
        order = []
        for provider in (cache, file, database):
            original = provider.save

            async def save(record, _p=provider, _orig=original):
                order.append(_p.tier)
                return await _orig(record)

            provider.save = save

        await _orchestrator([database, cache, file]).save("v")

        assert order == ["cache", "file", "database"]

    @pytest.mark.asyncio
    async def test_each_save_mints_new_id(self, orchestrator):
        first = await orchestrator.save("same")
        second = await orchestrator.save("same")

        assert first.value != second.value

    @pytest.mark.asyncio
    async def test_default_id_factory_mints_uuid(self, tiers):
        orchestrator = TieredStorageOrchestrator(ProviderRegistry(list(tiers)))

        result = await orchestrator.save("v")

        assert result.ok
        assert len(result.value) == 36

    @pytest.mark.asyncio
    @pytest.mark.parametrize("bad_value", ["", None])
    async def test_invalid_value(self, orchestrator, tiers, bad_value):
        result = await orchestrator.save(bad_value)

        assert result.status is OperationStatus.INVALID_ARGUMENT
        assert all(not t.calls for t in tiers)

    @pytest.mark.asyncio
    async def test_whitespace_value_is_accepted(self, orchestrator):
        result = await orchestrator.save("   ")

        assert result.ok

    @pytest.mark.asyncio
    async def test_failure_in_slowest_tier_rolls_back(self, scripted_provider):
        """Scenario: database write raises, cache and file copies are deleted."""
        cache = scripted_provider("cache")
        file = scripted_provider("file")
        database = scripted_provider("database", raise_on={"save"})

        result = await _orchestrator([cache, file, database]).save("hello")

        assert result.status is OperationStatus.FAILED
        assert result.tier_results == {"cache": True, "file": True, "database": False}
        assert "database" in result.error
        assert cache.records == {}
        assert file.records == {}
        assert cache.operations("delete") == ["rec-1"]
        assert file.operations("delete") == ["rec-1"]
        # The raising tier's outcome is unknown, so it is compensated too.
        assert database.operations("delete") == ["rec-1"]

    @pytest.mark.asyncio
    async def test_rejected_write_does_not_compensate_rejecting_tier(self, scripted_provider):
        cache = scripted_provider("cache")
        file = scripted_provider("file", reject_on={"save"})
        database = scripted_provider("database")

        result = await _orchestrator([cache, file, database]).save("hello")

        assert result.status is OperationStatus.FAILED
        assert cache.operations("delete") == ["rec-1"]
        assert file.operations("delete") == []
        assert database.calls == []

    @pytest.mark.asyncio
    async def test_failure_in_first_tier_writes_nothing(self, scripted_provider):
        cache = scripted_provider("cache", reject_on={"save"})
        file = scripted_provider("file")
        database = scripted_provider("database")

        result = await _orchestrator([cache, file, database]).save("hello")

        assert result.status is OperationStatus.FAILED
        assert result.tier_results == {"cache": False}
        assert file.calls == [] and database.calls == []

    @pytest.mark.asyncio
    async def test_incomplete_rollback_is_reported(self, scripted_provider):
        cache = scripted_provider("cache")
        file = scripted_provider("file", raise_on={"delete"})
        database = scripted_provider("database", reject_on={"save"})

        result = await _orchestrator([cache, file, database]).save("hello")

        assert result.status is OperationStatus.FAILED
        assert "Rollback incomplete" in result.error
        assert "file" in result.error
        assert cache.records == {}

    @pytest.mark.asyncio
    async def test_timeout_counts_as_failure(self, scripted_provider):
        """A tier exceeding the per-call deadline fails the save and is rolled back."""
        cache = scripted_provider("cache")
        file = scripted_provider("file")
        database = scripted_provider("database", hang_on={"save"})

        orchestrator = _orchestrator([cache, file, database], provider_timeout_seconds=0.05)
        result = await orchestrator.save("hello")

        assert result.status is OperationStatus.FAILED
        assert "timed out" in result.error
        assert cache.records == {} and file.records == {}


# =============================================================================
# UPDATE TESTS
# =============================================================================


class TestUpdate:
    """Tests for update propagation."""

    @pytest.mark.asyncio
    async def test_update_replaces_value_everywhere(self, tiers):
        for tier in tiers:
            _seed(tier, value="old")
        orchestrator = _orchestrator(tiers, clock=lambda: LATER_TIME)

        result = await orchestrator.update("abc", "new")

        assert result.ok
        assert result.tier_results == {"cache": True, "file": True, "database": True}
        for tier in tiers:
            assert tier.records["abc"].value == "new"
            assert tier.records["abc"].created_at == LATER_TIME

    @pytest.mark.asyncio
    async def test_update_does_not_refresh_before_writing(self, orchestrator, tiers):
        """The lookup phase of an update performs no saves of the old value."""
        cache, file, database = tiers
        _seed(database, value="old")

        await orchestrator.update("abc", "new")

        for tier in (cache, file):
            assert tier.operations("save") == ["abc"]
            assert tier.records["abc"].value == "new"

    @pytest.mark.asyncio
    async def test_tier_without_copy_is_repopulated(self, orchestrator, tiers):
        """Scenario: record only in the database ends up in every tier."""
        cache, file, database = tiers
        _seed(database, value="old")

        result = await orchestrator.update("abc", "new")

        assert result.ok
        assert cache.operations("update") == ["abc"]
        assert cache.operations("save") == ["abc"]
        assert {t.records["abc"].value for t in tiers} == {"new"}

    @pytest.mark.asyncio
    async def test_update_not_found(self, orchestrator, tiers):
        result = await orchestrator.update("missing", "new")

        assert result.not_found
        assert all(t.operations("update") == [] for t in tiers)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("record_id,value", [("", "v"), ("  ", "v"), ("abc", ""), ("abc", None)])
    async def test_invalid_arguments(self, orchestrator, tiers, record_id, value):
        for tier in tiers:
            _seed(tier)

        result = await orchestrator.update(record_id, value)

        assert result.status is OperationStatus.INVALID_ARGUMENT
        assert all(not t.calls for t in tiers)

    @pytest.mark.asyncio
    async def test_update_stops_at_failing_tier(self, scripted_provider):
        """Tiers after the failure are not written; earlier tiers keep the new value."""
        cache = scripted_provider("cache")
        file = scripted_provider("file", raise_on={"update"})
        database = scripted_provider("database")
        for tier in (cache, file, database):
            _seed(tier, value="old")

        result = await _orchestrator([cache, file, database]).update("abc", "new")

        assert result.status is OperationStatus.FAILED
        assert result.tier_results == {"cache": True, "file": False}
        assert cache.records["abc"].value == "new"
        assert database.records["abc"].value == "old"
        assert database.operations("update") == []

    @pytest.mark.asyncio
    async def test_failed_fallback_save_fails_update(self, scripted_provider):
        cache = scripted_provider("cache", reject_on={"save"})
        file = scripted_provider("file")
        database = scripted_provider("database")
        _seed(database, value="old")

        result = await _orchestrator([cache, file, database]).update("abc", "new")

        assert result.status is OperationStatus.FAILED
        assert result.tier_results == {"cache": False}


# =============================================================================
# DELETE TESTS
# =============================================================================


class TestDelete:
    """Tests for delete across every tier."""

    @pytest.mark.asyncio
    async def test_delete_removes_every_copy(self, orchestrator, tiers):
        for tier in tiers:
            _seed(tier)

        result = await orchestrator.delete("abc")

        assert result.ok
        assert all(t.records == {} for t in tiers)
        assert (await orchestrator.get_by_id("abc")).not_found

    @pytest.mark.asyncio
    async def test_delete_absent_record_succeeds(self, orchestrator):
        result = await orchestrator.delete("never-saved")

        assert result.ok
        assert result.tier_results == {"cache": True, "file": True, "database": True}

    @pytest.mark.asyncio
    async def test_delete_attempts_every_tier(self, scripted_provider):
        """A failing tier does not stop deletes in slower tiers."""
        cache = scripted_provider("cache")
        file = scripted_provider("file", raise_on={"delete"})
        database = scripted_provider("database")
        for tier in (cache, file, database):
            _seed(tier)

        result = await _orchestrator([cache, file, database]).delete("abc")

        assert result.status is OperationStatus.FAILED
        assert result.tier_results == {"cache": True, "file": False, "database": True}
        assert "abc" not in database.records

    @pytest.mark.asyncio
    async def test_invalid_id(self, orchestrator, tiers):
        result = await orchestrator.delete(" ")

        assert result.status is OperationStatus.INVALID_ARGUMENT
        assert all(not t.calls for t in tiers)


# =============================================================================
# DESCRIBE
# =============================================================================


def test_describe_lists_tiers_in_order(tiers):
    orchestrator = _orchestrator(reversed(tiers), provider_timeout_seconds=2.5)

    description = orchestrator.describe()

    assert description["tiers"] == ["cache", "file", "database"]
    assert description["provider_timeout_seconds"] == 2.5
    assert set(description["providers"]) == {"cache", "file", "database"}
