# src/allocator/visualization.py
"""
Visualization module for allocation results.
Charts the preference popularity profile and the distribution of assigned ranks.
"""
import logging
from pathlib import Path
from typing import List

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import seaborn as sns

from .models import AllocationResult, PreferenceProfile
from .utils import results_to_dataframe

# VISUALIZATION CONSTANTS
OUTPUT_DIR = 'output'
PLOT_DPI = 150
PLOT_STYLE = 'whitegrid'
PLOT_PALETTE = 'Set2'
SAVE_PLOTS = True

logger = logging.getLogger(__name__)

sns.set_theme(style=PLOT_STYLE, palette=PLOT_PALETTE)

COLORS = {
    'assigned': '#1E3A8A',   # Deep navy
    'popular': '#D97706',    # Amber
    'empty': '#9CA3AF',      # Grey
}


class AllocationVisualizer:
    """
    Charts for allocation runs. Every plot method returns the saved file path
    (or None when saving is disabled).
    """

    def __init__(self, output_dir: str = OUTPUT_DIR, save_plots: bool = SAVE_PLOTS):
        self.output_dir = Path(output_dir)
        self.save_plots = save_plots
        self.output_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"AllocationVisualizer initialized. Output directory: {self.output_dir}")

    def _finish(self, fig, filename: str):
        path = None
        if self.save_plots:
            path = self.output_dir / filename
            fig.savefig(path, dpi=PLOT_DPI, bbox_inches='tight')
            logger.info(f"Saved chart: {path}")
        plt.close(fig)
        return str(path) if path else None

    @staticmethod
    def _empty_axes(ax, message: str):
        ax.text(0.5, 0.5, message, ha='center', va='center', color=COLORS['empty'], fontsize=14)
        ax.set_axis_off()

    def plot_preference_profile(self, profile: PreferenceProfile, top_n: int = 15,
                                filename: str = 'preference_profile.png'):
        """Horizontal bars of the heaviest items in each order bucket."""
        df = profile.to_dataframe()
        buckets = list(df['bucket'].unique()) if not df.empty else []

        fig, axes = plt.subplots(1, max(1, len(buckets)), figsize=(5 * max(1, len(buckets)), 6), squeeze=False)
        fig.suptitle('Preference popularity by priority range', fontsize=16, fontweight='bold')

        if not buckets:
            self._empty_axes(axes[0][0], 'No submissions')
            return self._finish(fig, filename)

        for ax, bucket in zip(axes[0], buckets):
            top = df[df['bucket'] == bucket].nsmallest(top_n, 'rank')
            ax.barh(top['item_id'], top['weight'], color=COLORS['popular'])
            ax.invert_yaxis()
            users = int(top['users_in_bucket'].iloc[0])
            ax.set_title(f"{bucket} ({users} users)")
            ax.set_xlabel('Weighted votes')

        fig.tight_layout()
        return self._finish(fig, filename)

    def plot_assignment_ranks(self, results: List[AllocationResult], filename: str = 'assignment_ranks.png'):
        """Bar chart of how many users got their 1st, 2nd, ... choice."""
        df = results_to_dataframe(results)
        assigned = df.dropna(subset=['assigned_rank'])

        fig, ax = plt.subplots(figsize=(10, 6))
        if assigned.empty:
            self._empty_axes(ax, 'No assignments')
            return self._finish(fig, filename)

        counts = assigned['assigned_rank'].astype(int).value_counts().sort_index()
        ax.bar(counts.index.astype(str), counts.values, color=COLORS['assigned'])
        ax.set_title(f"Assigned preference rank ({len(assigned)}/{len(df)} users assigned)",
                     fontsize=14, fontweight='bold')
        ax.set_xlabel('Rank of assigned destination')
        ax.set_ylabel('Users')

        fig.tight_layout()
        return self._finish(fig, filename)
