"""
Per-column B+ tree indexes over food item records.

Each indexed nutrient column gets its own BPTree keyed by the amount, with
the FoodItem itself as value. Filter rules such as "calories <= 200" are
answered by range searches on the matching tree; several rules are combined
by intersecting their results.
"""

import math
import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

import config
from src.common.data_loader import FoodItem
from src.common.logger import get_logger
from src.indexing.bplus_tree import COMPARATORS, BPTree

logger = get_logger(__name__)

_RULE_PATTERN = re.compile(
    r"^\s*(\w+)\s*(" + "|".join(re.escape(c) for c in COMPARATORS) + r")\s*(\S+)\s*$"
)


class InvalidRuleError(ValueError):
    """Raised when a filter rule cannot be parsed."""


@dataclass(frozen=True)
class FilterRule:
    """A single "<column> <comparator> <value>" condition."""
    column: str
    comparator: str
    value: float

    def __str__(self) -> str:
        return f"{self.column} {self.comparator} {self.value:g}"


def parse_rule(rule: str) -> FilterRule:
    """
    Parse a rule string such as "protein >= 10".

    Raises:
        InvalidRuleError: If the rule is not "<column> <comparator> <number>".
    """
    match = _RULE_PATTERN.match(rule or "")
    if match is None:
        raise InvalidRuleError(f"Malformed filter rule: {rule!r}")

    column, comparator, raw_value = match.groups()
    try:
        value = float(raw_value)
    except ValueError:
        raise InvalidRuleError(f"Rule value is not a number: {rule!r}") from None
    if not math.isfinite(value):
        raise InvalidRuleError(f"Rule value must be finite: {rule!r}")
    return FilterRule(column, comparator, value)


class RecordIndex:
    """
    One BPTree per indexed column.

    Args:
        columns: Nutrient columns to index.
        branching_factor: Branching factor for every column tree.
    """

    def __init__(
        self,
        columns: Optional[Iterable[str]] = None,
        branching_factor: int = config.BPTREE_BRANCHING_FACTOR,
    ) -> None:
        columns = list(columns if columns is not None else config.INDEXED_COLUMNS)
        if not columns:
            raise ValueError("RecordIndex needs at least one column")
        self._trees: Dict[str, BPTree] = {
            column: BPTree(branching_factor) for column in columns
        }
        self._records: Dict[str, FoodItem] = {}

    @property
    def columns(self) -> List[str]:
        return list(self._trees)

    def __len__(self) -> int:
        return len(self._records)

    def tree(self, column: str) -> BPTree:
        """The tree backing a column. Raises KeyError for unknown columns."""
        if column not in self._trees:
            raise KeyError(column)
        return self._trees[column]

    def add(self, record: FoodItem) -> None:
        """
        Index a record under every column it has an amount for.

        Raises:
            ValueError: If a record with the same id is already indexed.
        """
        if record.id in self._records:
            raise ValueError(f"Item id {record.id!r} is already indexed")
        for column, tree in self._trees.items():
            amount = record.get(column)
            if amount is None:
                logger.debug(f"Item {record.id} has no {column}; not indexed on it")
                continue
            tree.insert(amount, record)
        self._records[record.id] = record

    def add_all(self, records: Iterable[FoodItem]) -> int:
        """Index many records and return how many were added."""
        count = 0
        for record in records:
            self.add(record)
            count += 1
        logger.info(f"Indexed {count} items on {len(self._trees)} columns")
        return count

    def search(self, column: str, comparator: str, key: float) -> List[FoodItem]:
        """Range search a single column."""
        return self.tree(column).range_search(key, comparator)

    def filter(self, rules: Iterable[str]) -> List[FoodItem]:
        """
        Return the records matching every rule, sorted by name.

        An empty rule list matches every record.

        Raises:
            InvalidRuleError: If a rule is malformed.
            KeyError: If a rule names a column that is not indexed.
        """
        parsed = [parse_rule(rule) for rule in rules]
        for rule in parsed:
            self.tree(rule.column)

        matching = set(self._records)
        for rule in parsed:
            hits = self.search(rule.column, rule.comparator, rule.value)
            matching &= {record.id for record in hits}
            if not matching:
                break

        return sorted(
            (self._records[record_id] for record_id in matching),
            key=lambda record: (record.name, record.id),
        )
