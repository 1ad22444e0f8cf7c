"""Split search: the best categorical or numerical partition of a node's rows."""

from __future__ import annotations

from collections import Counter, defaultdict
from dataclasses import dataclass
from typing import Final

import numpy as np
from loguru import logger

from gaintree.config import ImpurityCriterion
from gaintree.dataset import RowView
from gaintree.tree.impurity import class_counts, gain_ratio, impurity, split_info, weighted_impurity
from gaintree.tree.models import GREATER_OR_EQUAL, LESS_THAN

# Gain ratios closer than this are treated as equal, absorbing floating-point noise.
GAIN_TOLERANCE: Final[float] = 1e-12


@dataclass(frozen=True)
class SplitCandidate:
    """The best partition found for one node.

    Attributes:
        feature_index (int): Index of the feature the partition tests.
        is_numerical (bool): Whether the partition is a threshold split.
        threshold (float | None): Threshold of a numerical split; `None` for
            categorical splits.
        gain_ratio (float): Gain ratio of the partition; always > 0.
        partition (dict[str, RowView]): Child row-sets keyed by branch key.
            Categorical keys are the feature values, sorted; numerical keys
            are `"less-than"` and `"greater-or-equal"`, in that order.
    """

    feature_index: int
    is_numerical: bool
    threshold: float | None
    gain_ratio: float
    partition: dict[str, RowView]


def find_best_split(view: RowView, *, criterion: ImpurityCriterion = "gini") -> SplitCandidate | None:
    """Find the partition of `view` with the highest gain ratio across all features.

    Features are examined in ascending index order, and a later feature only
    replaces the current best when its gain ratio is strictly greater, so ties
    go to the lower feature index.

    Args:
        view (RowView): Rows reaching the node.
        criterion (ImpurityCriterion): Impurity measure used to score splits.

    Returns:
        SplitCandidate | None: The winning split, or `None` when no feature
            yields a gain ratio greater than 0.
    """
    labels = view.labels()
    parent_impurity = impurity(class_counts(labels), len(labels), criterion)

    best: SplitCandidate | None = None
    for feature_index in view.dataset.feature_indices:
        if view.columns[feature_index].is_numerical:
            candidate = best_numerical_split(
                view, feature_index, labels=labels, parent_impurity=parent_impurity, criterion=criterion
            )
        else:
            candidate = best_categorical_split(
                view, feature_index, labels=labels, parent_impurity=parent_impurity, criterion=criterion
            )
        if candidate is None:
            continue
        logger.trace(
            "Feature scored",
            feature_index=feature_index,
            gain_ratio=candidate.gain_ratio,
            threshold=candidate.threshold,
        )
        if best is None or _improves(candidate.gain_ratio, best.gain_ratio):
            best = candidate
    return best


def best_categorical_split(
    view: RowView,
    feature_index: int,
    *,
    labels: list[str],
    parent_impurity: float,
    criterion: ImpurityCriterion = "gini",
) -> SplitCandidate | None:
    """Score the multi-way partition of `view` by the values of a categorical feature.

    One child is created per value present in `view`; values seen elsewhere
    in the dataset but not in this row-set get no branch.

    Args:
        view (RowView): Rows reaching the node.
        feature_index (int): Index of a categorical feature.
        labels (list[str]): Labels of `view`, in view order.
        parent_impurity (float): Impurity of `view`.
        criterion (ImpurityCriterion): Impurity measure used to score the split.

    Returns:
        SplitCandidate | None: The partition, or `None` when it has fewer than
            two children or no positive gain ratio.
    """
    groups: defaultdict[str, list[int]] = defaultdict(list)
    group_counts: defaultdict[str, Counter[str]] = defaultdict(Counter)
    for row_index, value, label in zip(view.indices, view.values(feature_index), labels, strict=True):
        groups[value].append(row_index)
        group_counts[value][label] += 1

    if len(groups) < 2:
        return None

    size = len(view)
    ratio = gain_ratio(
        parent_impurity,
        weighted_impurity(group_counts.values(), size, criterion),
        split_info(size, [len(indices) for indices in groups.values()]),
    )
    if ratio is None or ratio <= GAIN_TOLERANCE:
        return None

    return SplitCandidate(
        feature_index=feature_index,
        is_numerical=False,
        threshold=None,
        gain_ratio=ratio,
        partition={value: view.select(groups[value]) for value in sorted(groups)},
    )


def best_numerical_split(
    view: RowView,
    feature_index: int,
    *,
    labels: list[str],
    parent_impurity: float,
    criterion: ImpurityCriterion = "gini",
) -> SplitCandidate | None:
    """Find the best binary threshold split of `view` on a numerical feature.

    Rows are sorted by value and swept once, moving one row at a time from a
    running right-hand class tally to a left-hand one. A threshold is only
    considered between two consecutive rows whose values differ, at their
    midpoint. The first boundary reaching the maximal gain ratio wins.

    Args:
        view (RowView): Rows reaching the node.
        feature_index (int): Index of a numerical feature.
        labels (list[str]): Labels of `view`, in view order.
        parent_impurity (float): Impurity of `view`.
        criterion (ImpurityCriterion): Impurity measure used to score the split.

    Returns:
        SplitCandidate | None: The best threshold split, or `None` when every
            row has the same value or no boundary has a positive gain ratio.
    """
    size = len(view)
    if size < 2:
        return None

    values = view.numeric_values(feature_index)
    order = np.argsort(values, kind="stable")
    sorted_values: list[float] = values[order].tolist()
    sorted_labels = [labels[position] for position in order]

    left: Counter[str] = Counter()
    right: Counter[str] = Counter(labels)
    best_ratio: float | None = None
    best_boundary: int | None = None

    for position in range(size - 1):
        label = sorted_labels[position]
        left[label] += 1
        right[label] -= 1
        if sorted_values[position] == sorted_values[position + 1]:
            continue

        left_size = position + 1
        ratio = gain_ratio(
            parent_impurity,
            weighted_impurity((left, right), size, criterion),
            split_info(size, (left_size, size - left_size)),
        )
        if ratio is None or ratio <= GAIN_TOLERANCE:
            continue
        if best_ratio is None or _improves(ratio, best_ratio):
            best_ratio = ratio
            best_boundary = position

    if best_ratio is None or best_boundary is None:
        return None

    threshold = _midpoint(sorted_values[best_boundary], sorted_values[best_boundary + 1])
    indices = np.asarray(view.indices, dtype=np.intp)
    goes_left = values < threshold
    return SplitCandidate(
        feature_index=feature_index,
        is_numerical=True,
        threshold=threshold,
        gain_ratio=best_ratio,
        partition={
            LESS_THAN: view.select(indices[goes_left]),
            GREATER_OR_EQUAL: view.select(indices[~goes_left]),
        },
    )


def _improves(candidate: float, incumbent: float) -> bool:
    """Return whether `candidate` beats `incumbent` by more than `GAIN_TOLERANCE`.

    Args:
        candidate (float): Gain ratio under consideration.
        incumbent (float): Gain ratio of the current best split.

    Returns:
        bool: `True` if `candidate` is strictly greater beyond the tolerance.
    """
    return candidate > incumbent + GAIN_TOLERANCE


def _midpoint(low: float, high: float) -> float:
    """Return a threshold between two distinct sorted values.

    The result satisfies `low < threshold <= high`, so `value < threshold`
    reproduces the sweep's partition even when rounding collapses the
    arithmetic midpoint onto `low`.

    Args:
        low (float): The larger value of the left-hand side.
        high (float): The smaller value of the right-hand side.

    Returns:
        float: The midpoint, or `high` when the midpoint is not representable
            strictly above `low`.
    """
    middle = low / 2 + high / 2
    if low < middle <= high:
        return middle
    return high
