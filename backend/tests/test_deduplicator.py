"""
Tests for natural-key de-duplication and incremental filtering.
"""
import asyncio
from unittest.mock import AsyncMock, Mock

from adperf.errors import StoreUnavailableError
from adperf.services.deduplicator import (
    NaturalKey,
    collapse_duplicates,
    compute_incremental,
    filter_new_records,
    natural_key,
)


def _mock_store(count=0, keys=None):
    store = Mock()
    store.count = AsyncMock(return_value=count)
    store.existing_keys = AsyncMock(return_value=keys or set())
    return store


class TestNaturalKey:
    def test_key_fields(self, make_record):
        record = make_record(ad_id="a9", day="2024-03-02", placement="story", platform="instagram")

        assert natural_key(record) == NaturalKey("a9", "2024-03-02", "story", "instagram")

    def test_metrics_do_not_affect_key(self, make_record):
        assert natural_key(make_record(amount_spent=1)) == natural_key(make_record(amount_spent=99))


class TestComputeIncremental:
    """Tests for compute_incremental."""

    def test_keeps_only_unseen_keys_in_order(self, make_record):
        candidates = [
            make_record(ad_id="a3"),
            make_record(ad_id="a1"),
            make_record(ad_id="a2"),
            make_record(ad_id="a1", placement="story"),
        ]
        existing = {natural_key(make_record(ad_id="a1"))}

        result = compute_incremental(candidates, existing)

        assert [(r.ad_id, r.placement) for r in result] == [("a3", "feed"), ("a2", "feed"), ("a1", "story")]

    def test_result_is_disjoint_from_existing(self, make_record):
        candidates = [make_record(day=f"2024-03-{d:02d}") for d in range(1, 11)]
        existing = {natural_key(r) for r in candidates[::2]}

        result = compute_incremental(candidates, existing)

        assert len(result) == 5
        assert not {natural_key(r) for r in result} & existing

    def test_empty_existing_returns_everything(self, make_record):
        candidates = [make_record(), make_record(ad_id="a2")]

        assert compute_incremental(candidates, set()) == candidates


class TestCollapseDuplicates:
    def test_last_record_wins_at_first_position(self, make_record):
        records = [
            make_record(ad_id="a1", amount_spent=1),
            make_record(ad_id="a2", amount_spent=2),
            make_record(ad_id="a1", amount_spent=3),
        ]

        result = collapse_duplicates(records)

        assert [(r.ad_id, r.amount_spent) for r in result] == [("a1", 3.0), ("a2", 2.0)]


class TestFilterNewRecords:
    """Tests for filter_new_records against a store."""

    def test_empty_candidates_skip_the_store(self):
        store = _mock_store()

        result = asyncio.run(filter_new_records([], store))

        assert result.records == []
        store.count.assert_not_awaited()

    def test_empty_store_skips_key_lookup(self, make_record):
        store = _mock_store(count=0)
        candidates = [make_record(), make_record(ad_id="a2")]

        result = asyncio.run(filter_new_records(candidates, store))

        assert result.records == candidates
        assert result.skipped == 0
        store.existing_keys.assert_not_awaited()

    def test_filters_existing_keys(self, make_record):
        existing = make_record(ad_id="a1")
        store = _mock_store(count=1, keys={natural_key(existing)})

        result = asyncio.run(filter_new_records([existing, make_record(ad_id="a2")], store))

        assert [r.ad_id for r in result.records] == ["a2"]
        assert result.skipped == 1
        assert result.warning is None

    def test_lookup_failure_returns_everything_with_warning(self, make_record, caplog):
        store = _mock_store(count=5)
        store.existing_keys.side_effect = StoreUnavailableError("connection refused")
        candidates = [make_record(), make_record(ad_id="a2")]

        with caplog.at_level("WARNING"):
            result = asyncio.run(filter_new_records(candidates, store))

        assert result.records == candidates
        assert "connection refused" in result.warning
        assert "connection refused" in caplog.text

    def test_count_failure_returns_everything(self, make_record):
        store = _mock_store()
        store.count.side_effect = StoreUnavailableError("timeout")

        result = asyncio.run(filter_new_records([make_record()], store))

        assert len(result.records) == 1
        assert "timeout" in result.warning

    def test_against_real_store(self, store, make_record):
        asyncio.run(store.upsert([make_record(ad_id="a1")]))

        result = asyncio.run(filter_new_records([make_record(ad_id="a1"), make_record(ad_id="a2")], store))

        assert [r.ad_id for r in result.records] == ["a2"]
