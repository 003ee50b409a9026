"""
Project configuration and constants.

Centralizes all configurable parameters for the B+ tree index.
"""

import os

# -----------------------------------------------------------------------------
# Directory Paths
# -----------------------------------------------------------------------------

# Project root directory (where this file is located)
PROJECT_ROOT = os.path.dirname(os.path.abspath(__file__))

# Data directory
DATA_DIR = os.path.join(PROJECT_ROOT, "data")

# Results directory (benchmark CSV and plots)
RESULTS_DIR = os.path.join(PROJECT_ROOT, "results")

# -----------------------------------------------------------------------------
# Dataset Configuration
# -----------------------------------------------------------------------------

# Food items dataset, one row per item with one numeric column per nutrient
DATASET_FILENAME = "food_items.csv"

DATASET_PATH = os.path.join(DATA_DIR, DATASET_FILENAME)

# Columns identifying a food item; every other numeric column is a nutrient
DATASET_ID_COLUMN = "id"
DATASET_NAME_COLUMN = "name"

# Nutrients that get their own index
INDEXED_COLUMNS = ["calories", "fat", "carbohydrate", "fiber", "protein"]

# -----------------------------------------------------------------------------
# B+ Tree Configuration
# -----------------------------------------------------------------------------

# A node splits when it reaches this many keys (so it holds at most
# BPTREE_BRANCHING_FACTOR - 1 keys). Must be greater than 2.
BPTREE_BRANCHING_FACTOR = 3

# -----------------------------------------------------------------------------
# Logging Configuration
# -----------------------------------------------------------------------------

# Log level: DEBUG, INFO, WARNING, ERROR, CRITICAL
LOG_LEVEL = "INFO"

# Log to file (in addition to console)
LOG_TO_FILE = False

# Log file path (only used if LOG_TO_FILE is True)
LOG_FILE_PATH = os.path.join(PROJECT_ROOT, "bptree.log")
