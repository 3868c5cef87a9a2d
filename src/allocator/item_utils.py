# src/allocator/item_utils.py
"""
Item utilities: ID normalization, popularity lookups and scenario-2 blocking.
"""
import logging
from collections import defaultdict
from typing import TYPE_CHECKING, Any, Dict, List

if TYPE_CHECKING:
    from .models import BlockedItems, Item, Submission

logger = logging.getLogger(__name__)


def normalize_item_id(value: Any) -> str:
    """Normalize an item identifier so that 101, 101.0 and "101" compare equal."""
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def get_blocked_item_ids(items: List['Item'], blocked_items: 'BlockedItems') -> List[str]:
    """
    Get blocked item IDs for the selected localidades and centros.

    An item is blocked when it matches the localidad filter AND the centro
    filter; an empty side of the filter matches everything. With both sides
    empty nothing is blocked.

    Args:
        items: Catalog items for the season
        blocked_items: Selected localidades/centros (None means no filter)

    Returns:
        Blocked item IDs in catalog order
    """
    if blocked_items is None or blocked_items.is_empty:
        return []

    localidades = set(blocked_items.selected_localidades)
    centros = set(blocked_items.selected_centros)

    blocked = []
    for item in items or []:
        localidad_match = not localidades or item.localidad in localidades
        centro_match = not centros or item.centro in centros
        if localidad_match and centro_match:
            blocked.append(item.item_id)

    logger.debug(f"Blocked {len(blocked)} items (localidades={sorted(localidades)}, centros={sorted(centros)})")
    return blocked


def _count_first_preferences(submissions: List['Submission']) -> Dict[str, int]:
    counts: Dict[str, int] = defaultdict(int)
    for submission in submissions:
        if submission.ranked_items:
            counts[submission.ranked_items[0]] += 1
    return counts


def get_most_desired_items(submissions: List['Submission'], max_items: int = 10) -> List[str]:
    """Return the items that appear most often as a first preference."""
    counts = _count_first_preferences(submissions)
    ranked = sorted(counts.items(), key=lambda x: x[1], reverse=True)
    return [item_id for item_id, _ in ranked[:max_items]]


def get_items_from_popular_centros(submissions: List['Submission'], items: List['Item'],
                                   max_centros: int = 3) -> List[str]:
    """
    Return every item belonging to the centros that collect the most
    first-preference votes.
    """
    item_lookup = {item.item_id: item for item in items}

    items_by_centro: Dict[str, List[str]] = defaultdict(list)
    for item in items:
        items_by_centro[item.centro or "Sin centro"].append(item.item_id)

    centro_votes: Dict[str, int] = defaultdict(int)
    for item_id, count in _count_first_preferences(submissions).items():
        item = item_lookup.get(item_id)
        if item and item.centro:
            centro_votes[item.centro] += count

    top_centros = sorted(centro_votes.items(), key=lambda x: x[1], reverse=True)[:max_centros]

    result = []
    for centro, _ in top_centros:
        result.extend(items_by_centro.get(centro, []))
    return result


def list_localidades(items: List['Item']) -> List[str]:
    return sorted({item.localidad for item in items if item.localidad})


def list_centros(items: List['Item']) -> List[str]:
    return sorted({item.centro for item in items if item.centro})
