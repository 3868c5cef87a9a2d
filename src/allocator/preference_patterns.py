# src/allocator/preference_patterns.py
"""
Preference pattern analysis by priority-order range.
Builds the popularity profile that synthetic users are sampled from.
"""

import logging
from typing import Dict, List
from collections import defaultdict

from .models import PreferenceProfile, Submission
from .empirical_params import ORDER_BUCKETS, RANK_WEIGHT_BASE, POPULAR_SET_SIZE

logger = logging.getLogger(__name__)


def bucket_for_order(order: int) -> str:
    """Name of the order bucket a priority order falls into (open at both ends)."""
    for name, _, max_order in ORDER_BUCKETS:
        if max_order is None or order <= max_order:
            return name
    return ORDER_BUCKETS[-1][0]


def rank_weight(position: int) -> int:
    """Weight of a preference at a 0-based position; earlier choices weigh more."""
    return max(0, RANK_WEIGHT_BASE - position)


def analyze_preference_patterns(submissions: List[Submission],
                                popular_set_size: int = POPULAR_SET_SIZE) -> PreferenceProfile:
    """
    Analyze preference popularity by order range.

    For every bucket with at least one user, sums the rank weight of each item
    across the bucket's users and keeps the heaviest items.

    Args:
        submissions: Real submissions
        popular_set_size: Items kept per bucket

    Returns:
        PreferenceProfile with popular items, weights and user counts per bucket
    """
    profile = PreferenceProfile()

    for name, min_order, max_order in ORDER_BUCKETS:
        users_in_range = [
            s for s in submissions
            if s.order >= min_order and (max_order is None or s.order <= max_order)
        ]
        if not users_in_range:
            continue

        # dict preserves first-seen order, so sorted() keeps it for equal weights
        weights: Dict[str, int] = defaultdict(int)
        for user in users_in_range:
            for position, item_id in enumerate(user.ranked_items):
                weights[item_id] += rank_weight(position)

        top_items = sorted(weights.items(), key=lambda x: x[1], reverse=True)[:popular_set_size]

        profile.popular_items[name] = [item_id for item_id, _ in top_items]
        profile.item_weights[name] = dict(top_items)
        profile.users_per_bucket[name] = len(users_in_range)

        logger.debug(f"Bucket {name}: {len(users_in_range)} users, {len(weights)} distinct items")

    return profile
