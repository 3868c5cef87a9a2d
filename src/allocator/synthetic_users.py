# src/allocator/synthetic_users.py
"""
Synthetic user generation for the "remaining users respond" scenario.

Fills every priority slot below the target user that has no real submission
with a fabricated user whose ranking is sampled from the popularity profile of
real users in the same order range. Fake users live only inside one allocation
call and are never persisted.
"""

import logging
from typing import Iterable, List, Optional, Sequence, Set

import numpy as np

from .models import Item, Submission
from .preference_patterns import analyze_preference_patterns
from .empirical_params import (
    BASE_SHARE_MIN, BASE_SHARE_MAX,
    VARIATION_PROBABILITY, VARIATION_RANGE_MIN, VARIATION_RANGE_MAX,
    MIN_SYNTHETIC_PREFERENCES, SYNTHETIC_ITEM_ID_MAX, SYNTHETIC_USED_ID_LIMIT,
    SYNTHETIC_TIMESTAMP_STEP_MS
)

logger = logging.getLogger(__name__)


def find_missing_orders(submissions: Iterable[Submission], target_order: int) -> List[int]:
    """Orders in [1, target_order) with no submission."""
    existing = {s.order for s in submissions}
    return [order for order in range(1, int(target_order)) if order not in existing]


def count_real_users_above(submissions: Iterable[Submission], order: int) -> int:
    """Number of non-synthetic submissions with strictly higher priority."""
    return sum(1 for s in submissions if not s.is_fake and s.order < order)


def _shuffled(values: Sequence[str], rng: np.random.Generator) -> List[str]:
    return [values[i] for i in rng.permutation(len(values))]


def _numeric_variations(base_items: List[str], used: Set[str], rng: np.random.Generator,
                        valid_ids: Optional[Set[str]]) -> List[str]:
    """Neighbouring numeric IDs of the chosen items ("similar but not identical")."""
    variations = []
    for item_id in base_items:
        if not item_id.isdecimal():
            continue
        number = int(item_id)
        radius = int(rng.integers(VARIATION_RANGE_MIN, VARIATION_RANGE_MAX + 1))
        for neighbour in range(max(1, number - radius), number + radius + 1):
            candidate = str(neighbour)
            if candidate in used or (valid_ids is not None and candidate not in valid_ids):
                continue
            if rng.random() < VARIATION_PROBABILITY:
                variations.append(candidate)
                used.add(candidate)
    return _shuffled(variations, rng)


def _filler_ids(count: int, used: Set[str], rng: np.random.Generator,
                candidate_ids: Optional[List[str]]) -> List[str]:
    """Random IDs not yet used, from the catalog when available."""
    fillers: List[str] = []
    if count <= 0:
        return fillers

    if candidate_ids is not None:
        for candidate in _shuffled(candidate_ids, rng):
            if len(fillers) >= count:
                break
            if candidate not in used:
                fillers.append(candidate)
                used.add(candidate)
        return fillers

    while len(fillers) < count and len(used) <= SYNTHETIC_USED_ID_LIMIT:
        candidate = str(int(rng.integers(1, SYNTHETIC_ITEM_ID_MAX + 1)))
        if candidate not in used:
            fillers.append(candidate)
            used.add(candidate)

    # Sequential fallback once random draws hit the used-ID limit
    next_id = 1
    while len(fillers) < count and next_id <= SYNTHETIC_ITEM_ID_MAX:
        candidate = str(next_id)
        if candidate not in used:
            fillers.append(candidate)
            used.add(candidate)
        next_id += 1

    return fillers


def generate_preferences_for_order(order: int, popular_items: List[str], rng: np.random.Generator,
                                   candidate_ids: Optional[List[str]] = None) -> List[str]:
    """
    Synthesize a ranking for a fake user at the given order.

    Args:
        order: Priority order of the fake user; also the final list length
        popular_items: Popular set of the order's bucket
        rng: Random source
        candidate_ids: Catalog item IDs used for neighbours and filler (None = 1..700)

    Returns:
        Ranked item IDs, popular picks first
    """
    preferences: List[str] = []
    used: Set[str] = set()

    if popular_items:
        base_share = rng.uniform(BASE_SHARE_MIN, BASE_SHARE_MAX)
        base_items = _shuffled(popular_items, rng)[:int(len(popular_items) * base_share)]
        for item_id in base_items:
            if item_id not in used:
                preferences.append(item_id)
                used.add(item_id)

        valid_ids = set(candidate_ids) if candidate_ids is not None else None
        preferences.extend(_numeric_variations(base_items, used, rng, valid_ids))

    target_count = max(order, MIN_SYNTHETIC_PREFERENCES)
    preferences.extend(_filler_ids(target_count - len(preferences), used, rng, candidate_ids))

    return preferences[:max(0, order)]


def generate_fake_submissions(real_submissions: List[Submission], target_order: int,
                              rng: Optional[np.random.Generator] = None,
                              items: Optional[List[Item]] = None) -> List[Submission]:
    """
    Fill missing priority slots below target_order with synthetic users.

    Returns the input unchanged when no slot is missing; otherwise real and
    synthetic submissions sorted by (order, submitted_at). Without an injected
    generator the result is not reproducible.
    """
    missing_orders = find_missing_orders(real_submissions, target_order)
    if not missing_orders:
        return real_submissions

    if rng is None:
        rng = np.random.default_rng()

    real_only = [s for s in real_submissions if not s.is_fake]
    profile = analyze_preference_patterns(real_only)
    base_timestamp = min((s.submitted_at for s in real_only), default=0)
    candidate_ids = [item.item_id for item in items] if items else None

    fake_submissions = []
    for missing_order in missing_orders:
        ranked = generate_preferences_for_order(
            missing_order, profile.popular_for_order(missing_order), rng, candidate_ids
        )
        fake_submissions.append(Submission(
            id=f"fake_{missing_order}",
            name=f"Usuario {missing_order}",
            order=missing_order,
            ranked_items=ranked,
            submitted_at=base_timestamp - missing_order * SYNTHETIC_TIMESTAMP_STEP_MS,
            is_fake=True
        ))

    logger.debug(f"Generated {len(fake_submissions)} synthetic users below order {target_order} "
                 f"({len(real_only)} real submissions)")

    return sorted(list(real_submissions) + fake_submissions, key=lambda s: s.priority_key)
