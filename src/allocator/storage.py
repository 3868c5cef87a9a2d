# src/allocator/storage.py
"""
Local JSON season store.
Provides the data the allocation engine consumes (submissions and catalog
items per season) plus basic submission CRUD. Layout of `data_dir`:

    <season>.json              catalog items (list of records)
    <season>_submissions.json  submissions (list of records)
"""
import json
import logging
import time
import uuid
from pathlib import Path
from typing import Any, List, Optional

from .models import Item, Submission
from .item_utils import normalize_item_id
from .empirical_params import DEFAULT_ID_FIELD
from .season_cache import SeasonCache

logger = logging.getLogger(__name__)

SUBMISSIONS_SUFFIX = "_submissions.json"


class LocalSeasonStore:
    """
    File-backed store keyed by season.

    With a SeasonCache, reads go through the cache and every write
    invalidates the season it touched.
    """

    def __init__(self, data_dir: str, id_field: str = DEFAULT_ID_FIELD, cache: Optional[SeasonCache] = None):
        self.data_dir = Path(data_dir)
        self.id_field = id_field
        self.cache = cache

    def _items_path(self, season) -> Path:
        return self.data_dir / f"{season}.json"

    def _submissions_path(self, season) -> Path:
        return self.data_dir / f"{season}{SUBMISSIONS_SUFFIX}"

    @staticmethod
    def _read_list(path: Path) -> List[Any]:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        if not isinstance(data, list):
            raise ValueError(f"File {path.name} is not an array")
        return data

    def _write_submissions(self, season, submissions: List[Submission]) -> None:
        path = self._submissions_path(season)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            json.dump([s.to_dict() for s in submissions], f, ensure_ascii=False, indent=2)

    def _cached(self, key: str, loader):
        if self.cache is None:
            return loader(key)
        return list(self.cache.get_or_load(key, loader))

    def _invalidate(self, season) -> None:
        if self.cache is not None:
            self.cache.invalidate(f"{season}/submissions")

    def fetch_items_for_season(self, season) -> List[Item]:
        return self._cached(f"{season}/items", lambda _: self._load_items(season))

    def fetch_submissions_for_season(self, season) -> List[Submission]:
        return self._cached(f"{season}/submissions", lambda _: self._load_submissions(season))

    def _load_items(self, season) -> List[Item]:
        path = self._items_path(season)
        if not path.exists():
            raise FileNotFoundError(f"Season {season} not found (file: {path.name})")
        items = [Item.from_dict(record, self.id_field) for record in self._read_list(path)]
        logger.info(f"Loaded {len(items)} items for season {season}")
        return items

    def _load_submissions(self, season) -> List[Submission]:
        path = self._submissions_path(season)
        if not path.exists():
            return []
        return [Submission.from_dict(record) for record in self._read_list(path)]

    def fetch_submissions_above(self, season, order: int) -> List[Submission]:
        """Submissions with strictly lower order (higher priority)."""
        return [s for s in self.fetch_submissions_for_season(season) if s.order < order]

    def save_submission(self, season, name: str, order: int, ranked_items: List[Any],
                        submission_id: Optional[str] = None, now_ms: Optional[int] = None) -> Submission:
        """
        Create or overwrite a user's submission for a season.

        The first submitted_at is kept on overwrite so edits never lose priority
        ties. Ranked items are de-duplicated, keeping the first occurrence.
        """
        if not name or not isinstance(name, str) or not name.strip():
            raise ValueError("Name is required.")
        if isinstance(order, bool) or not isinstance(order, int) or order <= 0:
            raise ValueError("Order must be a positive integer.")

        submissions = self.fetch_submissions_for_season(season)
        user_id = submission_id or f"u_{uuid.uuid4().hex[:12]}"
        existing = next((s for s in submissions if s.id == user_id), None)

        if existing is not None:
            submitted_at = existing.submitted_at
        else:
            submitted_at = now_ms if now_ms is not None else int(time.time() * 1000)

        submission = Submission(
            id=user_id,
            name=name.strip(),
            order=order,
            ranked_items=list(dict.fromkeys(normalize_item_id(i) for i in ranked_items or [])),
            submitted_at=submitted_at
        )

        submissions = [s for s in submissions if s.id != user_id] + [submission]
        self._write_submissions(season, submissions)
        self._invalidate(season)
        logger.info(f"Saved submission {user_id} for season {season} (order {order})")
        return submission

    def delete_submission(self, season, submission_id: str) -> bool:
        submissions = self.fetch_submissions_for_season(season)
        remaining = [s for s in submissions if s.id != submission_id]
        if len(remaining) == len(submissions):
            return False
        self._write_submissions(season, remaining)
        self._invalidate(season)
        logger.info(f"Deleted submission {submission_id} for season {season}")
        return True

    def delete_user_submissions(self, submission_id: str) -> int:
        """Delete a user's submissions across every season; returns how many were removed."""
        removed = 0
        for path in sorted(self.data_dir.glob(f"*{SUBMISSIONS_SUFFIX}")):
            season = path.name[:-len(SUBMISSIONS_SUFFIX)]
            if self.delete_submission(season, submission_id):
                removed += 1
        return removed
