"""
Visualization module for B+ tree benchmark results.

Generates plots from benchmark CSV data.
"""

import os
from typing import List

import pandas as pd
import matplotlib.pyplot as plt

from src.common.logger import get_logger

logger = get_logger(__name__)


# =============================================================================
# Configuration
# =============================================================================

# Plot styling
FIGURE_DPI = 150
FIGURE_SIZE_SHAPE = (12, 5)
FIGURE_SIZE_QUERIES = (8, 5)

QUERY_SERIES = {
    "query_le_seconds": ("<=", "#3498db", "o"),
    "query_eq_seconds": ("==", "#2ecc71", "^"),
    "query_ge_seconds": (">=", "#e74c3c", "s"),
}


# =============================================================================
# Data Loading
# =============================================================================

def load_benchmark_data(filepath: str) -> pd.DataFrame:
    """Load benchmark results from CSV."""
    if not os.path.exists(filepath):
        raise FileNotFoundError(f"Benchmark results not found: {filepath}")

    df = pd.read_csv(filepath)
    logger.info(f"Loaded {len(df)} rows from {filepath}")
    return df.sort_values("branching_factor")


# =============================================================================
# Plot 1: Tree Shape vs Branching Factor
# =============================================================================

def plot_shape(df: pd.DataFrame, output_dir: str) -> str:
    """
    Height and node counts against branching factor, side by side.
    """
    fig, (ax_height, ax_nodes) = plt.subplots(1, 2, figsize=FIGURE_SIZE_SHAPE)

    ax_height.plot(df["branching_factor"], df["height"], marker="o", linewidth=2)
    ax_height.set_title("Tree Height", fontsize=11, fontweight="bold")
    ax_height.set_xlabel("Branching Factor")
    ax_height.set_ylabel("Levels")
    ax_height.grid(True, alpha=0.3)

    ax_nodes.plot(df["branching_factor"], df["leaf_count"], marker="o", linewidth=2, label="Leaves")
    ax_nodes.plot(df["branching_factor"], df["internal_count"], marker="s", linewidth=2, label="Internal")
    ax_nodes.set_title("Node Counts", fontsize=11, fontweight="bold")
    ax_nodes.set_xlabel("Branching Factor")
    ax_nodes.set_ylabel("Nodes")
    ax_nodes.set_yscale("log")
    ax_nodes.grid(True, alpha=0.3)
    ax_nodes.legend()

    for ax in (ax_height, ax_nodes):
        ax.set_xscale("log", base=2)
        ax.set_xticks(df["branching_factor"].tolist())
        ax.set_xticklabels([str(m) for m in df["branching_factor"]])

    fig.suptitle("B+ Tree Shape vs Branching Factor", fontsize=14, fontweight="bold")
    plt.tight_layout()

    output_path = os.path.join(output_dir, "tree_shape.png")
    plt.savefig(output_path, dpi=FIGURE_DPI, bbox_inches="tight")
    plt.close(fig)

    logger.info(f"Saved: {output_path}")
    return output_path


# =============================================================================
# Plot 2: Range Search Time per Comparator
# =============================================================================

def plot_query_times(df: pd.DataFrame, output_dir: str) -> str:
    """
    Mean range search time per comparator against branching factor.
    """
    fig, ax = plt.subplots(figsize=FIGURE_SIZE_QUERIES)

    for column, (label, color, marker) in QUERY_SERIES.items():
        if column not in df.columns:
            continue
        ax.plot(
            df["branching_factor"],
            df[column] * 1e6,
            marker=marker,
            color=color,
            linewidth=2,
            markersize=8,
            label=label,
        )

    ax.set_title("Mean Range Search Time", fontsize=13, fontweight="bold")
    ax.set_xlabel("Branching Factor")
    ax.set_ylabel("Microseconds per query")
    ax.set_xscale("log", base=2)
    ax.set_xticks(df["branching_factor"].tolist())
    ax.set_xticklabels([str(m) for m in df["branching_factor"]])
    ax.grid(True, alpha=0.3)
    ax.legend(title="Comparator")

    plt.tight_layout()

    output_path = os.path.join(output_dir, "query_times.png")
    plt.savefig(output_path, dpi=FIGURE_DPI, bbox_inches="tight")
    plt.close(fig)

    logger.info(f"Saved: {output_path}")
    return output_path


# =============================================================================
# All Plots
# =============================================================================

def generate_all_plots(input_file: str, output_dir: str) -> List[str]:
    """Generate all visualization plots and return their paths."""
    os.makedirs(output_dir, exist_ok=True)

    df = load_benchmark_data(input_file)

    return [
        plot_shape(df, output_dir),
        plot_query_times(df, output_dir),
    ]
