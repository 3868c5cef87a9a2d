# src/allocator/allocation_summary.py
"""
Allocation summary generator.
Condenses per-user allocation results into readable console tables.
"""

import logging
from typing import Dict, List, Optional
from dataclasses import dataclass, field
from collections import Counter

from .models import AllocationResult

logger = logging.getLogger(__name__)


@dataclass
class AllocationSummary:
    """Key metrics of one allocation run."""
    total_users: int
    assigned_users: int
    unassigned_users: int
    first_choice_users: int
    mean_assigned_rank: Optional[float]
    mean_backup_length: float
    rank_distribution: Dict[int, int] = field(default_factory=dict)
    most_desired_items: List[str] = field(default_factory=list)
    scenario_name: str = ""

    @property
    def assignment_rate(self) -> float:
        return self.assigned_users / self.total_users if self.total_users else 0.0

    @property
    def first_choice_rate(self) -> float:
        return self.first_choice_users / self.total_users if self.total_users else 0.0


def generate_allocation_summary(results: List[AllocationResult], scenario_name: str = "",
                                most_desired_items: Optional[List[str]] = None) -> AllocationSummary:
    """
    Generate a summary from allocation results.

    Args:
        results: Allocation results (one per user)
        scenario_name: Scenario label for display
        most_desired_items: Most requested first choices, for display

    Returns:
        AllocationSummary
    """
    ranks = [r.assigned_rank for r in results if r.assigned_rank is not None]
    backup_lengths = [len(r.available_by_preference) for r in results]

    return AllocationSummary(
        total_users=len(results),
        assigned_users=len(ranks),
        unassigned_users=len(results) - len(ranks),
        first_choice_users=sum(1 for rank in ranks if rank == 1),
        mean_assigned_rank=sum(ranks) / len(ranks) if ranks else None,
        mean_backup_length=sum(backup_lengths) / len(backup_lengths) if backup_lengths else 0.0,
        rank_distribution=dict(sorted(Counter(ranks).items())),
        most_desired_items=list(most_desired_items or []),
        scenario_name=scenario_name
    )


def print_allocation_summary(summary: AllocationSummary, max_ranks: int = 10):
    """Print a summary table to console."""
    title = f"ALLOCATION SUMMARY: {summary.scenario_name.upper()}" if summary.scenario_name else "ALLOCATION SUMMARY"
    print()
    print("=" * 80)
    print(title)
    print("=" * 80)
    print(f"Users:               {summary.total_users:,}")
    print(f"Assigned:            {summary.assigned_users:,} ({summary.assignment_rate:.1%})")
    print(f"Unassigned:          {summary.unassigned_users:,}")
    print(f"First choice:        {summary.first_choice_users:,} ({summary.first_choice_rate:.1%})")
    if summary.mean_assigned_rank is not None:
        print(f"Mean assigned rank:  {summary.mean_assigned_rank:.2f}")
    print(f"Mean backup length:  {summary.mean_backup_length:.1f}")

    if summary.rank_distribution:
        print("-" * 80)
        print(f"{'Rank':>6} | {'Users':>8}")
        for rank, count in list(summary.rank_distribution.items())[:max_ranks]:
            print(f"{rank:6d} | {count:8,d}")

    if summary.most_desired_items:
        print("-" * 80)
        print(f"Most requested first choices: {', '.join(summary.most_desired_items)}")
    print("=" * 80)


def print_user_allocation(result: AllocationResult, max_backups: int = 20):
    """Print a single user's assignment and backup list."""
    print()
    print("=" * 80)
    print(f"Position {result.order} | {result.name}")
    print("=" * 80)
    assigned = result.assigned_item if result.assigned_item is not None else "None"
    print(f"Assigned destination: {assigned}")
    if result.available_by_preference:
        shown = result.available_by_preference[:max_backups]
        print(f"Next available ({len(result.available_by_preference)}): {' » '.join(shown)}")
    else:
        print("Next available: none")
    print("=" * 80)
