# src/allocator/utils.py
"""
Utility functions for loading allocation inputs and exporting results.
"""
import logging
import csv
import json
from pathlib import Path
from typing import List

import pandas as pd

from .models import AllocationResult, Item, Submission
from .empirical_params import DEFAULT_ID_FIELD

logger = logging.getLogger(__name__)

LIST_SEPARATOR = ';'


def _read_json_list(input_path: str) -> list:
    input_file = Path(input_path)
    if not input_file.exists():
        raise FileNotFoundError(f"Input file not found: {input_file}")
    with open(input_file, 'r', encoding='utf-8') as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise ValueError(f"{input_file} must contain a JSON array")
    return data


def load_submissions_json(input_path: str) -> List[Submission]:
    """Load submissions from a JSON array of {id, name, order, rankedItems, submittedAt}."""
    submissions = [Submission.from_dict(record) for record in _read_json_list(input_path)]
    logger.info(f"Loaded {len(submissions)} submissions from {input_path}")
    return submissions


def load_items_json(input_path: str, id_field: str = DEFAULT_ID_FIELD) -> List[Item]:
    """Load catalog items from a JSON array of records."""
    items = [Item.from_dict(record, id_field) for record in _read_json_list(input_path)]
    logger.info(f"Loaded {len(items)} items from {input_path}")
    return items


def save_allocation_results_csv(results: List[AllocationResult], output_path: str) -> None:
    """
    Save allocation results to CSV; list columns are joined with ';'.

    Args:
        results: Allocation results
        output_path: Path to output CSV file
    """
    output_file = Path(output_path)
    output_file.parent.mkdir(parents=True, exist_ok=True)

    with open(output_file, 'w', newline='', encoding='utf-8') as csvfile:
        fieldnames = ['user_id', 'name', 'order', 'assigned_item', 'assigned_rank',
                      'available_by_preference', 'ranked_items']
        writer = csv.DictWriter(csvfile, fieldnames=fieldnames)
        writer.writeheader()

        for result in results:
            writer.writerow({
                'user_id': result.user_id,
                'name': result.name,
                'order': result.order,
                'assigned_item': result.assigned_item or '',
                'assigned_rank': result.assigned_rank or '',
                'available_by_preference': LIST_SEPARATOR.join(result.available_by_preference),
                'ranked_items': LIST_SEPARATOR.join(result.ranked_items)
            })

    logger.info(f"Saved {len(results)} allocation results to {output_file}")


def save_allocation_results_json(results: List[AllocationResult], output_path: str) -> None:
    """Save allocation results as {"allocation": [...]} JSON."""
    output_file = Path(output_path)
    output_file.parent.mkdir(parents=True, exist_ok=True)

    with open(output_file, 'w', encoding='utf-8') as f:
        json.dump({'allocation': [r.to_dict() for r in results]}, f, ensure_ascii=False, indent=2)

    logger.info(f"Saved {len(results)} allocation results to {output_file}")


def results_to_dataframe(results: List[AllocationResult]) -> pd.DataFrame:
    """One row per user with assignment, rank and backup count."""
    rows = [{
        'user_id': r.user_id,
        'name': r.name,
        'order': r.order,
        'assigned_item': r.assigned_item,
        'assigned_rank': r.assigned_rank,
        'preferences': len(r.ranked_items),
        'backup_count': len(r.available_by_preference)
    } for r in results]
    return pd.DataFrame(rows, columns=['user_id', 'name', 'order', 'assigned_item', 'assigned_rank',
                                       'preferences', 'backup_count'])
