# src/allocator/empirical_params.py
"""
Empirical parameters for destination allocation and scenario simulation.
Order buckets and synthetic-preference shape were tuned against real season data.
"""
from typing import List, Optional, Tuple
import logging

logger = logging.getLogger(__name__)

# Preference popularity buckets: (name, min_order, max_order); None = open-ended
ORDER_BUCKETS: List[Tuple[str, int, Optional[int]]] = [
    ("top50", 1, 50),
    ("orders51_100", 51, 100),
    ("orders101_200", 101, 200),
    ("orders201_300", 201, 300),
    ("orders301_plus", 301, None),
]

# Popularity weighting: preference at position i weighs max(0, RANK_WEIGHT_BASE - i)
RANK_WEIGHT_BASE = 10
POPULAR_SET_SIZE = 100  # Items kept per bucket

# Synthetic user preference shape
BASE_SHARE_MIN = 0.70  # Share of the bucket's popular set each fake user keeps
BASE_SHARE_MAX = 0.85
VARIATION_PROBABILITY = 0.25  # Chance of adding each numeric neighbour
VARIATION_RANGE_MIN = 2  # Neighbourhood radius, inclusive
VARIATION_RANGE_MAX = 4
MIN_SYNTHETIC_PREFERENCES = 15
SYNTHETIC_ITEM_ID_MAX = 700  # Random filler IDs are drawn from 1..700
SYNTHETIC_USED_ID_LIMIT = 600  # Stop random filling once this many IDs are used
SYNTHETIC_TIMESTAMP_STEP_MS = 1000  # Fake users are staggered 1s per order before real ones

# Backup list caps
MAX_BACKUP_ITEMS = 40  # Full-population allocation
MAX_BACKUP_ITEMS_FOR_USER = 50  # Single-user allocation

# Competition depth (scenario 3), clamped by the caller
MIN_COMPETITION_DEPTH = 1
MAX_COMPETITION_DEPTH = 20
DEFAULT_COMPETITION_DEPTH = 1

# Catalog / collaborator defaults
DEFAULT_ID_FIELD = "Vacante"
SEASON_CACHE_TTL_SECONDS = 15 * 60
