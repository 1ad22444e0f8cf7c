"""Configuration for tree induction and train/test experiments.

Both settings classes read overrides from ``GAINTREE_``-prefixed environment
variables (or a ``.env`` file); explicit keyword arguments take precedence.
"""

from __future__ import annotations

from typing import Final, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

type ImpurityCriterion = Literal["gini", "entropy"]

MAX_TREE_DEPTH: Final[int] = 256  # Keeps recursive building well inside the interpreter's stack limit.


class TreeConfig(BaseSettings):
    """Hyperparameters controlling tree induction.

    A node becomes a leaf when its depth exceeds `max_depth` or it holds fewer
    than `min_sample_split` rows, so `max_depth=0` still allows a split at the
    root.

    Attributes:
        max_depth (int): Deepest level (root is 0) at which a node may still
            be split.
        min_sample_split (int): Minimum number of rows a node needs to be
            considered for splitting.
        criterion (ImpurityCriterion): Impurity measure used to score splits.

    Examples:
        >>> TreeConfig(max_depth=2, min_sample_split=1).criterion
        'gini'
    """

    model_config = SettingsConfigDict(
        env_prefix="GAINTREE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    max_depth: int = Field(
        default=3,
        ge=0,
        le=MAX_TREE_DEPTH,
        description="Deepest level (root is 0) at which a node may still be split.",
    )
    min_sample_split: int = Field(
        default=2,
        ge=0,
        description="Minimum number of rows a node needs to be considered for splitting.",
    )
    criterion: ImpurityCriterion = Field(
        default="gini",
        description="Impurity measure used to score splits: 'gini' or 'entropy'.",
    )


class ExperimentConfig(BaseSettings):
    """Settings for the train/test split used by the command line.

    Attributes:
        test_fraction (float): Fraction of rows held out for evaluation.
        seed (int): Seed for the shuffle that precedes the split.
    """

    model_config = SettingsConfigDict(
        env_prefix="GAINTREE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    test_fraction: float = Field(default=0.2, ge=0.0, le=1.0, description="Fraction of rows held out for evaluation.")
    seed: int = Field(default=100, ge=0, description="Seed for the shuffle that precedes the split.")
