"""
Data loader for the food items dataset.

Loads the CSV once, caches it, and turns rows into FoodItem records that the
record index stores as tree values.
"""

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import pandas as pd

import config
from src.common.logger import get_logger

logger = get_logger(__name__)

# Cache for the loaded dataset, keyed by the path it came from
_dataset_cache: Optional[pd.DataFrame] = None
_dataset_cache_path: Optional[str] = None


@dataclass
class FoodItem:
    """
    A single food item from the dataset.

    Attributes:
        id: Unique item identifier.
        name: Display name.
        nutrients: Nutrient column name -> amount. Missing amounts are absent.
    """
    id: str
    name: str
    nutrients: Dict[str, float] = field(default_factory=dict)

    def get(self, column: str) -> Optional[float]:
        """Amount for a nutrient column, or None when the item has none."""
        return self.nutrients.get(column)

    def to_dict(self) -> Dict[str, Any]:
        """Flatten to a row-like dictionary."""
        row: Dict[str, Any] = {
            config.DATASET_ID_COLUMN: self.id,
            config.DATASET_NAME_COLUMN: self.name,
        }
        row.update(self.nutrients)
        return row

    @classmethod
    def from_series(cls, series: pd.Series, nutrient_columns: List[str]) -> "FoodItem":
        """Create a FoodItem from a DataFrame row, dropping NaN amounts."""
        nutrients = {}
        for column in nutrient_columns:
            amount = float(series[column])
            if not math.isnan(amount):
                nutrients[column] = amount
        return cls(
            id=str(series[config.DATASET_ID_COLUMN]),
            name=str(series[config.DATASET_NAME_COLUMN]),
            nutrients=nutrients,
        )


def load_dataset(path: Optional[str] = None, force_reload: bool = False) -> pd.DataFrame:
    """
    Load the food items dataset from CSV.

    The dataset is cached in memory after first load.

    Args:
        path: CSV file to read. Defaults to config.DATASET_PATH.
        force_reload: If True, reload from disk even if cached.

    Returns:
        pandas DataFrame containing the food items.

    Raises:
        FileNotFoundError: If the dataset file does not exist.
    """
    global _dataset_cache, _dataset_cache_path

    path = path or config.DATASET_PATH

    if _dataset_cache is not None and _dataset_cache_path == path and not force_reload:
        logger.debug("Returning cached dataset")
        return _dataset_cache

    logger.info(f"Loading dataset from {path}")

    df = pd.read_csv(path, dtype={config.DATASET_ID_COLUMN: str})

    # Rows without an id cannot be told apart in the index
    null_id_count = df[config.DATASET_ID_COLUMN].isnull().sum()
    if null_id_count > 0:
        logger.warning(f"Filtering out {null_id_count} rows with null ids")
        df = df[df[config.DATASET_ID_COLUMN].notnull()].copy()

    df = df.reset_index(drop=True)

    logger.info(f"Dataset loaded: {len(df):,} rows, {len(df.columns)} columns")

    _dataset_cache = df
    _dataset_cache_path = path
    return df


def get_nutrient_columns(df: pd.DataFrame) -> List[str]:
    """Numeric columns other than the id and name columns."""
    identity = {config.DATASET_ID_COLUMN, config.DATASET_NAME_COLUMN}
    return [
        column
        for column in df.select_dtypes(include="number").columns
        if column not in identity
    ]


def get_food_items(path: Optional[str] = None) -> List[FoodItem]:
    """
    Get every food item in the dataset.

    Args:
        path: CSV file to read. Defaults to config.DATASET_PATH.

    Returns:
        List of FoodItem records in file order.
    """
    df = load_dataset(path)
    nutrient_columns = get_nutrient_columns(df)
    return [FoodItem.from_series(row, nutrient_columns) for _, row in df.iterrows()]


def clear_cache() -> None:
    """Clear the cached dataset to free memory."""
    global _dataset_cache, _dataset_cache_path
    _dataset_cache = None
    _dataset_cache_path = None
    logger.info("Dataset cache cleared")
