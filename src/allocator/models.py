# src/allocator/models.py
"""
Core data models for destination allocation.
Submissions, catalog items, scenario parameters and per-user allocation results.
All item identifiers are normalized to strings at construction time.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple
from enum import Enum
import logging
from pathlib import Path

from .item_utils import normalize_item_id
from .empirical_params import DEFAULT_COMPETITION_DEPTH

logger = logging.getLogger(__name__)


class Scenario(Enum):
    CURRENT_STATE = 0
    REMAINING_USERS_RESPOND = 1
    SPECIFIC_DESTINATIONS_OCCUPIED = 2
    PREFERENCE_DEPTH_BLOCKING = 3


@dataclass
class Submission:
    """One user's ranked preferences for a season."""
    id: str
    name: str
    order: int
    ranked_items: List[str] = field(default_factory=list)
    submitted_at: int = 0
    is_fake: bool = False

    def __post_init__(self):
        self.ranked_items = [normalize_item_id(item) for item in (self.ranked_items or [])]
        if self.submitted_at is None:
            self.submitted_at = 0

    @property
    def priority_key(self) -> Tuple[int, int]:
        return (self.order, self.submitted_at)

    @classmethod
    def from_dict(cls, record: Dict[str, Any]) -> 'Submission':
        """Build a submission from its stored/wire representation (camelCase keys)."""
        return cls(
            id=str(record['id']),
            name=record.get('name', ''),
            order=record['order'],
            ranked_items=record.get('rankedItems') or [],
            submitted_at=record.get('submittedAt') or 0,
            is_fake=bool(record.get('isFake', False))
        )

    def to_dict(self) -> Dict[str, Any]:
        record = {
            'id': self.id,
            'name': self.name,
            'order': self.order,
            'rankedItems': list(self.ranked_items),
            'submittedAt': self.submitted_at,
        }
        if self.is_fake:
            record['isFake'] = True
        return record


@dataclass
class Item:
    """Catalog destination. Only the location fields matter to the allocator."""
    item_id: str
    localidad: Optional[str] = None
    centro: Optional[str] = None
    attributes: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, record: Dict[str, Any], id_field: str = "Vacante") -> 'Item':
        return cls(
            item_id=normalize_item_id(record.get(id_field)),
            localidad=record.get('Localidad'),
            centro=record.get('Centro de destino'),
            attributes=dict(record)
        )


@dataclass
class BlockedItems:
    """Location/centre filter used by the occupied-destinations scenario."""
    selected_localidades: List[str] = field(default_factory=list)
    selected_centros: List[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.selected_localidades and not self.selected_centros

    @classmethod
    def from_dict(cls, record: Optional[Dict[str, Any]]) -> 'BlockedItems':
        record = record or {}
        return cls(
            selected_localidades=list(record.get('selectedLocalidades') or []),
            selected_centros=list(record.get('selectedCentros') or [])
        )


@dataclass
class ScenarioParams:
    """Normalized simulation configuration for one allocation call."""
    scenario: Scenario
    competition_depth: int = 0
    include_fake_users: bool = False
    mark_specific_items_unavailable: bool = False
    description: str = ""


@dataclass
class AllocationResult:
    """Outcome for a single user: primary assignment plus backup list."""
    user_id: str
    name: str
    order: int
    ranked_items: List[str]
    assigned_item_ids: List[str] = field(default_factory=list)
    available_by_preference: List[str] = field(default_factory=list)

    @property
    def assigned_item(self) -> Optional[str]:
        return self.assigned_item_ids[0] if self.assigned_item_ids else None

    @property
    def assigned_rank(self) -> Optional[int]:
        """1-based position of the assigned item in the user's own ranking."""
        if self.assigned_item is None:
            return None
        return self.ranked_items.index(self.assigned_item) + 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            'userId': self.user_id,
            'name': self.name,
            'order': self.order,
            'rankedItems': list(self.ranked_items),
            'assignedItemIds': list(self.assigned_item_ids),
            'availableByPreference': list(self.available_by_preference),
        }


@dataclass
class PreferenceProfile:
    """Weighted preference popularity per order bucket."""
    popular_items: Dict[str, List[str]] = field(default_factory=dict)
    item_weights: Dict[str, Dict[str, int]] = field(default_factory=dict)
    users_per_bucket: Dict[str, int] = field(default_factory=dict)

    def popular_for_order(self, order: int) -> List[str]:
        from .preference_patterns import bucket_for_order
        return list(self.popular_items.get(bucket_for_order(order), []))

    def to_dataframe(self):
        """Flatten the profile to a DataFrame (bucket, rank, item_id, weight)."""
        import pandas as pd

        rows = []
        for bucket, items in self.popular_items.items():
            weights = self.item_weights.get(bucket, {})
            for rank, item_id in enumerate(items, start=1):
                rows.append({
                    'bucket': bucket,
                    'rank': rank,
                    'item_id': item_id,
                    'weight': weights.get(item_id, 0),
                    'users_in_bucket': self.users_per_bucket.get(bucket, 0)
                })
        return pd.DataFrame(rows, columns=['bucket', 'rank', 'item_id', 'weight', 'users_in_bucket'])


@dataclass
class AllocationConfig:
    """Configuration for command-line allocation runs."""
    scenario: int = 0
    competition_depth: int = DEFAULT_COMPETITION_DEPTH
    submissions_path: Optional[str] = None
    items_path: Optional[str] = None
    data_dir: Optional[str] = None
    season: Optional[str] = None
    user_id: Optional[str] = None
    selected_localidades: List[str] = field(default_factory=list)
    selected_centros: List[str] = field(default_factory=list)
    seed: Optional[int] = None
    output_path: Optional[str] = None
    plots: bool = False
    list_locations: bool = False
    debug: bool = False

    @property
    def blocked_items(self) -> BlockedItems:
        return BlockedItems(list(self.selected_localidades), list(self.selected_centros))

    @property
    def output_dir(self) -> Path:
        """Get output directory path."""
        return Path(self.output_path).parent if self.output_path else Path('output')
