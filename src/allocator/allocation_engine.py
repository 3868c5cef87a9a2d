# src/allocator/allocation_engine.py
"""
Core destination allocation engine (serial dictatorship, one item per user).

Users are served in (order, submitted_at) order and each takes the first item
of their ranking nobody above has claimed. Backup lists are a single greedy
scan of the user's ranking against a static "taken by higher priority" set,
optionally widened by scenario adversity (blocked destinations, top-N
preferences of the users above).
"""

import logging
from typing import Iterable, List, Optional, Sequence, Set

import numpy as np

from .models import AllocationResult, BlockedItems, Item, Submission
from .scenarios import get_scenario_params
from .synthetic_users import count_real_users_above, generate_fake_submissions
from .item_utils import get_blocked_item_ids
from .empirical_params import MAX_BACKUP_ITEMS, MAX_BACKUP_ITEMS_FOR_USER, DEFAULT_COMPETITION_DEPTH

logger = logging.getLogger(__name__)


def _check_submissions(submissions, argument: str = "submissions") -> None:
    if not isinstance(submissions, (list, tuple)):
        raise TypeError(f"{argument} must be a list of Submission, got {type(submissions).__name__}")
    for submission in submissions:
        if not isinstance(submission, Submission):
            raise TypeError(f"{argument} must contain Submission objects, got {type(submission).__name__}")


def _coerce_blocked_items(blocked_items) -> Optional[BlockedItems]:
    if blocked_items is None or isinstance(blocked_items, BlockedItems):
        return blocked_items
    return BlockedItems.from_dict(blocked_items)


def sort_by_priority(submissions: Iterable[Submission]) -> List[Submission]:
    """Sort by order ascending, then submitted_at ascending (stable)."""
    return sorted(submissions, key=lambda s: s.priority_key)


def assign_primary_items(users: Sequence[Submission], taken: Optional[Set[str]] = None) -> List[Optional[str]]:
    """
    Single pass over priority-sorted users; each gets the first ranked item
    not yet claimed. Claimed items are added to `taken` in place.

    Returns:
        Assigned item ID (or None) for each user, aligned with `users`
    """
    if taken is None:
        taken = set()

    assignments: List[Optional[str]] = []
    for user in users:
        choice = next((item_id for item_id in user.ranked_items if item_id not in taken), None)
        if choice is not None:
            taken.add(choice)
        assignments.append(choice)
    return assignments


def top_preferences(users: Iterable[Submission], depth: int) -> Set[str]:
    """First `depth` ranked items of every user."""
    if depth <= 0:
        return set()
    return {item_id for user in users for item_id in user.ranked_items[:depth]}


def compute_backup_items(ranked_items: Sequence[str], assigned_item: Optional[str],
                         unavailable: Set[str], max_items: int) -> List[str]:
    """
    Items the user would get next if their assignment disappeared.

    Scans the ranking in order, skipping the actual assignment, duplicates and
    anything in `unavailable`, up to `max_items` entries.
    """
    backup: List[str] = []
    seen: Set[str] = set()
    for item_id in ranked_items:
        if len(backup) >= max_items:
            break
        if item_id == assigned_item or item_id in seen:
            continue
        if item_id not in unavailable:
            backup.append(item_id)
            seen.add(item_id)
    return backup


def allocate(submissions: List[Submission], scenario=0, items: Optional[List[Item]] = None,
             competition_depth: int = DEFAULT_COMPETITION_DEPTH,
             blocked_items: Optional[BlockedItems] = None, rng: Optional[np.random.Generator] = None,
             max_backup_items: int = MAX_BACKUP_ITEMS) -> List[AllocationResult]:
    """
    Allocate every submitted user (administrative/debug view).

    Args:
        submissions: All submissions of the season
        scenario: Scenario code 0-3 (unknown codes behave as 0)
        items: Season catalog (blocking filter and synthetic filler IDs)
        competition_depth: Top-N preferences treated as consumed (scenario 3)
        blocked_items: Localidad/centro filter (scenario 2)
        rng: Random source for synthetic users (scenario 1)
        max_backup_items: Backup list cap

    Returns:
        One AllocationResult per user in priority order, synthetic users included
    """
    _check_submissions(submissions)
    params = get_scenario_params(scenario, competition_depth)

    all_submissions = submissions
    if params.include_fake_users and submissions:
        max_order = max(s.order for s in submissions)
        all_submissions = generate_fake_submissions(list(submissions), max_order, rng=rng, items=items)

    users = sort_by_priority(all_submissions)
    assignments = assign_primary_items(users)

    # Blocked destinations only narrow backup lists in the full-population view
    taken_by_higher: Set[str] = set()
    if params.mark_specific_items_unavailable:
        taken_by_higher.update(get_blocked_item_ids(items or [], _coerce_blocked_items(blocked_items)))

    results = []
    pending: Set[str] = set()
    current_order = None
    for user, assigned in zip(users, assignments):
        # Only strictly lower orders count as "above"; equal orders share a taken set
        if user.order != current_order:
            taken_by_higher |= pending
            pending = set()
            current_order = user.order

        backup = compute_backup_items(user.ranked_items, assigned, taken_by_higher, max_backup_items)
        results.append(AllocationResult(
            user_id=user.id,
            name=user.name,
            order=user.order,
            ranked_items=list(user.ranked_items),
            assigned_item_ids=[assigned] if assigned is not None else [],
            available_by_preference=backup
        ))

        if assigned is not None:
            pending.add(assigned)
        pending.update(user.ranked_items[:params.competition_depth])

    assigned_count = sum(1 for a in assignments if a is not None)
    logger.debug(f"Allocated {assigned_count}/{len(users)} users ({params.description})")
    return results


def allocate_for_user(submissions_above: List[Submission], target_user: Submission, scenario=0,
                      items: Optional[List[Item]] = None, blocked_items: Optional[BlockedItems] = None,
                      competition_depth: int = DEFAULT_COMPETITION_DEPTH,
                      rng: Optional[np.random.Generator] = None,
                      max_backup_items: int = MAX_BACKUP_ITEMS_FOR_USER) -> AllocationResult:
    """
    Allocate a single user from the submissions above them.

    The users above are simulated only to reproduce what they take; nothing
    about them is returned. Blocked destinations (scenario 2) are unavailable
    for both the target's assignment and backup list; top-N preferences of the
    users above (scenario 3) only affect the backup list.
    """
    _check_submissions(submissions_above, "submissions_above")
    if not isinstance(target_user, Submission):
        raise TypeError(f"target_user must be a Submission, got {type(target_user).__name__}")

    params = get_scenario_params(scenario, competition_depth)

    above = [s for s in submissions_above if s.order < target_user.order]
    if len(above) != len(submissions_above):
        logger.debug(f"Ignored {len(submissions_above) - len(above)} submissions not above order {target_user.order}")

    if params.include_fake_users:
        above = generate_fake_submissions(above, target_user.order, rng=rng, items=items)

    users_above = sort_by_priority(above)
    taken: Set[str] = set()
    assign_primary_items(users_above, taken)

    if params.mark_specific_items_unavailable:
        taken.update(get_blocked_item_ids(items or [], _coerce_blocked_items(blocked_items)))

    assigned = next((item_id for item_id in target_user.ranked_items if item_id not in taken), None)

    unavailable = taken | top_preferences(users_above, params.competition_depth)
    backup = compute_backup_items(target_user.ranked_items, assigned, unavailable, max_backup_items)

    real_above = count_real_users_above(users_above, target_user.order)
    logger.debug(f"User {target_user.id} (order {target_user.order}): assigned={assigned}, "
                 f"{len(backup)} backups, {real_above} real + {len(users_above) - real_above} synthetic "
                 f"users above ({params.description})")

    return AllocationResult(
        user_id=target_user.id,
        name=target_user.name,
        order=target_user.order,
        ranked_items=list(target_user.ranked_items),
        assigned_item_ids=[assigned] if assigned is not None else [],
        available_by_preference=backup
    )
