import csv
import json

import pytest

from allocator.allocation_engine import allocate
from allocator.utils import (
    load_items_json,
    load_submissions_json,
    results_to_dataframe,
    save_allocation_results_csv,
    save_allocation_results_json,
)


@pytest.fixture
def season_files(tmp_path, season_records):
    items, submissions = season_records
    items_path = tmp_path / "items.json"
    submissions_path = tmp_path / "submissions.json"
    items_path.write_text(json.dumps(items), encoding="utf-8")
    submissions_path.write_text(json.dumps(submissions), encoding="utf-8")
    return str(submissions_path), str(items_path)


class TestLoaders:

    def test_load_submissions(self, season_files):
        submissions = load_submissions_json(season_files[0])

        assert [s.id for s in submissions] == ["u1", "u2", "u3"]
        assert submissions[0].ranked_items == ["1", "2", "3"]

    def test_load_items(self, season_files):
        items = load_items_json(season_files[1])

        assert len(items) == 30
        assert items[10].localidad == "Sevilla"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_submissions_json(str(tmp_path / "nope.json"))

    def test_object_instead_of_array(self, tmp_path):
        path = tmp_path / "obj.json"
        path.write_text("{}", encoding="utf-8")

        with pytest.raises(ValueError, match="JSON array"):
            load_items_json(str(path))


class TestExport:

    def test_csv(self, tmp_path, three_users):
        path = tmp_path / "out" / "results.csv"
        save_allocation_results_csv(allocate(three_users), str(path))

        with open(path, newline="", encoding="utf-8") as f:
            rows = list(csv.DictReader(f))

        assert [r["user_id"] for r in rows] == ["u1", "u2", "u3"]
        assert rows[0]["assigned_item"] == "A"
        assert rows[0]["assigned_rank"] == "1"
        assert rows[0]["available_by_preference"] == "B;C"
        assert rows[2]["available_by_preference"] == ""

    def test_json(self, tmp_path, two_users):
        path = tmp_path / "results.json"
        save_allocation_results_json(allocate(two_users), str(path))

        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["allocation"][0]["assignedItemIds"] == ["A"]
        assert data["allocation"][1]["availableByPreference"] == []

    def test_dataframe(self, three_users):
        df = results_to_dataframe(allocate(three_users))

        assert df["assigned_item"].tolist() == ["A", "B", "C"]
        assert df["backup_count"].tolist() == [2, 1, 0]
        assert df["preferences"].tolist() == [3, 3, 3]

    def test_empty_dataframe_keeps_columns(self):
        df = results_to_dataframe([])

        assert df.empty
        assert "assigned_rank" in df.columns
