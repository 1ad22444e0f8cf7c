"""gaintree: Gain-ratio decision trees for mixed categorical and numerical tables."""

from loguru import logger

from gaintree.config import ExperimentConfig, TreeConfig
from gaintree.dataset import ColumnInfo, Dataset, RowView, load_dataset, split_train_test
from gaintree.exceptions import DatasetError, DatasetFormatError, DatasetSourceError
from gaintree.logging import PACKAGE_NAME, enable_logging
from gaintree.tree import TreeModel, describe, evaluate, extract_rules, fit, predict

logger.disable(PACKAGE_NAME)  # noqa: RUF067 - Disable logging for the gaintree package by default

__all__ = [
    "ColumnInfo",
    "Dataset",
    "DatasetError",
    "DatasetFormatError",
    "DatasetSourceError",
    "ExperimentConfig",
    "RowView",
    "TreeConfig",
    "TreeModel",
    "describe",
    "enable_logging",
    "evaluate",
    "extract_rules",
    "fit",
    "load_dataset",
    "predict",
    "split_train_test",
]
