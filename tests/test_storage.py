import json

import pytest

from allocator.allocation_engine import allocate_for_user
from allocator.season_cache import SeasonCache
from allocator.storage import LocalSeasonStore


@pytest.fixture
def store(tmp_path, season_records):
    items, submissions = season_records
    (tmp_path / "2024.json").write_text(json.dumps(items), encoding="utf-8")
    (tmp_path / "2024_submissions.json").write_text(json.dumps(submissions), encoding="utf-8")
    return LocalSeasonStore(str(tmp_path))


class TestFetch:

    def test_items_for_season(self, store):
        items = store.fetch_items_for_season("2024")

        assert len(items) == 30
        assert items[0].item_id == "1"
        assert items[0].localidad == "Madrid"

    def test_missing_season(self, store):
        with pytest.raises(FileNotFoundError, match="Season 1999 not found"):
            store.fetch_items_for_season("1999")

    def test_items_file_must_be_an_array(self, tmp_path):
        (tmp_path / "bad.json").write_text(json.dumps({"Vacante": 1}), encoding="utf-8")

        with pytest.raises(ValueError, match="not an array"):
            LocalSeasonStore(str(tmp_path)).fetch_items_for_season("bad")

    def test_submissions_for_season(self, store):
        submissions = store.fetch_submissions_for_season("2024")

        assert [s.id for s in submissions] == ["u1", "u2", "u3"]
        assert submissions[1].ranked_items == ["1", "4", "2"]

    def test_no_submissions_yet(self, store):
        assert store.fetch_submissions_for_season("2030") == []

    def test_submissions_above(self, store):
        assert [s.id for s in store.fetch_submissions_above("2024", 4)] == ["u1", "u2"]
        assert store.fetch_submissions_above("2024", 1) == []

    def test_feeds_single_user_allocation(self, store):
        above = store.fetch_submissions_above("2024", 4)
        target = next(s for s in store.fetch_submissions_for_season("2024") if s.id == "u3")

        result = allocate_for_user(above, target, items=store.fetch_items_for_season("2024"))

        # u1 takes 1 and u2 takes 4, so 2 is still free
        assert result.assigned_item_ids == ["2"]
        assert result.available_by_preference == ["5", "6"]


class TestSaveSubmission:

    def test_creates_new_submission(self, store):
        saved = store.save_submission("2024", "  Marta ", 5, [7, "8", 7.0], now_ms=999)

        assert saved.id.startswith("u_")
        assert saved.name == "Marta"
        assert saved.ranked_items == ["7", "8"]
        assert saved.submitted_at == 999
        assert saved.id in [s.id for s in store.fetch_submissions_for_season("2024")]

    def test_overwrite_keeps_submission_time(self, store):
        saved = store.save_submission("2024", "Ana", 3, ["9"], submission_id="u1", now_ms=5000)

        assert saved.submitted_at == 100
        submissions = store.fetch_submissions_for_season("2024")
        assert len(submissions) == 3
        assert next(s for s in submissions if s.id == "u1").order == 3

    def test_new_season_file(self, store):
        store.save_submission("2025", "Ana", 1, ["1"], submission_id="a1", now_ms=1)
        assert [s.id for s in store.fetch_submissions_for_season("2025")] == ["a1"]

    @pytest.mark.parametrize("name", ["", "   ", None])
    def test_name_is_required(self, store, name):
        with pytest.raises(ValueError, match="Name is required"):
            store.save_submission("2024", name, 1, ["1"])

    @pytest.mark.parametrize("order", [0, -1, 1.5, "2", True])
    def test_order_must_be_positive_integer(self, store, order):
        with pytest.raises(ValueError, match="Order must be a positive integer"):
            store.save_submission("2024", "Ana", order, ["1"])


class TestDelete:

    def test_delete_submission(self, store):
        assert store.delete_submission("2024", "u2") is True
        assert store.delete_submission("2024", "u2") is False
        assert [s.id for s in store.fetch_submissions_for_season("2024")] == ["u1", "u3"]

    def test_delete_user_everywhere(self, store):
        store.save_submission("2025", "Ana", 1, ["1"], submission_id="u1", now_ms=1)

        assert store.delete_user_submissions("u1") == 2
        assert store.delete_user_submissions("u1") == 0


class TestCachedStore:

    @pytest.fixture
    def cache(self):
        return SeasonCache(ttl_seconds=60)

    @pytest.fixture
    def cached_store(self, store, cache):
        return LocalSeasonStore(str(store.data_dir), cache=cache)

    def test_reads_go_through_cache(self, cached_store, cache):
        first = cached_store.fetch_submissions_for_season("2024")
        (cached_store.data_dir / "2024_submissions.json").write_text("[]", encoding="utf-8")

        assert [s.id for s in cached_store.fetch_submissions_for_season("2024")] == [s.id for s in first]
        assert cache.stats.cache_hits == 1

    def test_save_invalidates_season(self, cached_store, cache):
        cached_store.fetch_submissions_for_season("2024")
        cached_store.save_submission("2024", "Marta", 5, ["7"], submission_id="m1", now_ms=1)

        assert cache.stats.invalidations == 1
        assert "m1" in [s.id for s in cached_store.fetch_submissions_for_season("2024")]

    def test_delete_invalidates_season(self, cached_store, cache):
        cached_store.fetch_submissions_above("2024", 10)
        assert cached_store.delete_user_submissions("u2") == 1

        assert cache.stats.invalidations == 1
        assert [s.id for s in cached_store.fetch_submissions_for_season("2024")] == ["u1", "u3"]

    def test_items_are_cached(self, cached_store, cache):
        cached_store.fetch_items_for_season("2024")
        (cached_store.data_dir / "2024.json").unlink()

        assert len(cached_store.fetch_items_for_season("2024")) == 30

    def test_missing_season_is_not_cached(self, cached_store):
        with pytest.raises(FileNotFoundError):
            cached_store.fetch_items_for_season("1999")
        with pytest.raises(FileNotFoundError):
            cached_store.fetch_items_for_season("1999")
