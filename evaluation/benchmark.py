"""
Benchmark system for the B+ tree index.

For each branching factor, builds a tree from a seeded key workload and
records:
- Tree shape (height, leaf and internal node counts)
- Insert time for the whole workload
- Mean range search time for each comparator

Outputs results to CSV for visualization.
"""

import csv
import os
import random
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List

import config
from src.common.logger import get_logger
from src.indexing.bplus_tree import COMPARATORS, BPTree

logger = get_logger(__name__)


# =============================================================================
# Configuration
# =============================================================================

@dataclass
class BenchmarkConfig:
    """Configuration for benchmark runs."""
    # Branching factors to test
    branching_factors: List[int] = field(default_factory=lambda: [3, 4, 8, 16, 32, 64])

    # Number of key/value pairs inserted per tree
    num_keys: int = 10000

    # Number of range searches timed per comparator
    num_queries: int = 200

    # Keys are drawn from [0, key_range); a small range means many duplicates
    key_range: int = 2500

    # Random seed for reproducibility
    seed: int = 42

    # Output directory
    output_dir: str = config.RESULTS_DIR


@dataclass
class QuickBenchmarkConfig(BenchmarkConfig):
    """Smaller configuration for quick testing."""
    branching_factors: List[int] = field(default_factory=lambda: [3, 4, 8])
    num_keys: int = 500
    num_queries: int = 20
    key_range: int = 100


# =============================================================================
# Results
# =============================================================================

# CSV-safe names for the comparators
_COMPARATOR_NAMES = {"<=": "le", "==": "eq", ">=": "ge"}


@dataclass
class TreeStats:
    """Shape and timings for one branching factor."""
    branching_factor: int
    num_keys: int
    height: int
    leaf_count: int
    internal_count: int
    insert_seconds: float
    query_seconds: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for CSV output."""
        row: Dict[str, Any] = {
            "branching_factor": self.branching_factor,
            "num_keys": self.num_keys,
            "height": self.height,
            "leaf_count": self.leaf_count,
            "internal_count": self.internal_count,
            "insert_seconds": round(self.insert_seconds, 6),
        }
        for comparator in COMPARATORS:
            row[f"query_{_COMPARATOR_NAMES[comparator]}_seconds"] = round(
                self.query_seconds.get(comparator, 0.0), 9
            )
        return row


# =============================================================================
# Benchmark Runner
# =============================================================================

class BenchmarkRunner:
    """Runs benchmark experiments across branching factors."""

    def __init__(self, cfg: BenchmarkConfig):
        self.cfg = cfg
        self.results: List[TreeStats] = []
        self.keys: List[int] = []
        self.pivots: List[int] = []

    def prepare_workload(self) -> None:
        """Draw the insert keys and the query pivots."""
        rng = random.Random(self.cfg.seed)
        self.keys = [rng.randrange(self.cfg.key_range) for _ in range(self.cfg.num_keys)]
        self.pivots = [rng.randrange(self.cfg.key_range) for _ in range(self.cfg.num_queries)]
        logger.info(
            f"Workload: {len(self.keys)} keys in [0, {self.cfg.key_range}), "
            f"{len(self.pivots)} pivots"
        )

    def run_all(self) -> List[TreeStats]:
        """Run the benchmark for every branching factor and return results."""
        self.prepare_workload()
        self.results = []

        for branching_factor in self.cfg.branching_factors:
            stats = self._benchmark_tree(branching_factor)
            self.results.append(stats)
            logger.info(
                f"m={branching_factor}: height={stats.height}, "
                f"leaves={stats.leaf_count}, insert={stats.insert_seconds:.4f}s"
            )

        return self.results

    def _benchmark_tree(self, branching_factor: int) -> TreeStats:
        tree = BPTree(branching_factor)

        start = time.perf_counter()
        for i, key in enumerate(self.keys):
            tree.insert(key, i)
        insert_seconds = time.perf_counter() - start

        query_seconds = {}
        for comparator in COMPARATORS:
            start = time.perf_counter()
            for pivot in self.pivots:
                tree.range_search(pivot, comparator)
            elapsed = time.perf_counter() - start
            query_seconds[comparator] = elapsed / len(self.pivots) if self.pivots else 0.0

        return TreeStats(
            branching_factor=branching_factor,
            num_keys=len(tree),
            height=tree.height,
            leaf_count=tree.leaf_count(),
            internal_count=tree.internal_count(),
            insert_seconds=insert_seconds,
            query_seconds=query_seconds,
        )

    def save_results(self, filename: str = "benchmark_results.csv") -> str:
        """Save results to CSV file."""
        os.makedirs(self.cfg.output_dir, exist_ok=True)
        filepath = os.path.join(self.cfg.output_dir, filename)

        with open(filepath, "w", newline="") as f:
            if self.results:
                writer = csv.DictWriter(f, fieldnames=self.results[0].to_dict().keys())
                writer.writeheader()
                for result in self.results:
                    writer.writerow(result.to_dict())

        logger.info(f"Results saved to: {filepath}")
        return filepath
