"""Impurity, split information and gain ratio over class-count mappings."""

from __future__ import annotations

import math
from collections import Counter
from collections.abc import Iterable, Mapping, Sequence

from gaintree.config import ImpurityCriterion


def class_counts(labels: Iterable[str]) -> dict[str, int]:
    """Count labels, keeping the order in which each label first occurs.

    Args:
        labels (Iterable[str]): Labels of a row-set.

    Returns:
        dict[str, int]: Mapping of label to count, in order of first occurrence.

    Examples:
        >>> class_counts(["no", "yes", "no"])
        {'no': 2, 'yes': 1}
    """
    return dict(Counter(labels))


def gini_impurity(counts: Mapping[str, int], total: int) -> float:
    """Compute the Gini impurity `1 - sum(p_i^2)`.

    Args:
        counts (Mapping[str, int]): Label counts.
        total (int): Number of rows the counts were taken from.

    Returns:
        float: Impurity in `[0, 1 - 1/k]` for `k` distinct labels; 0.0 when
            `total` is 0.

    Examples:
        >>> gini_impurity({"yes": 1, "no": 3}, 4)
        0.375
    """
    if total == 0:
        return 0.0
    return 1.0 - sum((count / total) ** 2 for count in counts.values())


def entropy(counts: Mapping[str, int], total: int) -> float:
    """Compute the Shannon entropy `-sum(p_i * log2(p_i))` in bits.

    Args:
        counts (Mapping[str, int]): Label counts.
        total (int): Number of rows the counts were taken from.

    Returns:
        float: Entropy in `[0, log2(k)]`; 0.0 when `total` is 0.
    """
    if total == 0:
        return 0.0
    result = 0.0
    for count in counts.values():
        if count > 0:
            probability = count / total
            result -= probability * math.log2(probability)
    return result


def impurity(counts: Mapping[str, int], total: int, criterion: ImpurityCriterion = "gini") -> float:
    """Compute impurity with the selected criterion.

    Args:
        counts (Mapping[str, int]): Label counts.
        total (int): Number of rows the counts were taken from.
        criterion (ImpurityCriterion): `"gini"` or `"entropy"`.

    Returns:
        float: The impurity.

    Raises:
        ValueError: If `criterion` is not recognized.
    """
    match criterion:
        case "gini":
            return gini_impurity(counts, total)
        case "entropy":
            return entropy(counts, total)
        case _:
            raise ValueError(f"Unsupported impurity criterion: {criterion!r}")


def weighted_impurity(
    child_counts: Iterable[Mapping[str, int]],
    parent_size: int,
    criterion: ImpurityCriterion = "gini",
) -> float:
    """Compute the size-weighted mean impurity of a partition's children.

    Args:
        child_counts (Iterable[Mapping[str, int]]): Label counts of each child.
        parent_size (int): Number of rows in the partitioned row-set.
        criterion (ImpurityCriterion): `"gini"` or `"entropy"`.

    Returns:
        float: `sum(size_i / parent_size * impurity_i)`; 0.0 when `parent_size` is 0.
    """
    if parent_size == 0:
        return 0.0
    result = 0.0
    for counts in child_counts:
        size = sum(counts.values())
        result += size / parent_size * impurity(counts, size, criterion)
    return result


def split_info(parent_size: int, child_sizes: Sequence[int]) -> float:
    """Compute the split information `-sum(r_i * log2(r_i))` of a partition.

    Zero-sized children contribute 0. Splits that fragment rows into many
    small children get a large value, which lowers their gain ratio.

    Args:
        parent_size (int): Number of rows in the partitioned row-set.
        child_sizes (Sequence[int]): Number of rows in each child.

    Returns:
        float: The split information; 0.0 when one child holds every row.

    Examples:
        >>> split_info(4, [2, 2])
        1.0
        >>> split_info(4, [4, 0])
        0.0
    """
    if parent_size == 0:
        return 0.0
    result = 0.0
    for size in child_sizes:
        if size > 0:
            ratio = size / parent_size
            result -= ratio * math.log2(ratio)
    return result


def gain_ratio(parent_impurity: float, weighted_child_impurity: float, split_information: float) -> float | None:
    """Normalize the impurity decrease of a split by its split information.

    Args:
        parent_impurity (float): Impurity of the row-set before splitting.
        weighted_child_impurity (float): Weighted impurity of the children.
        split_information (float): Split information of the partition.

    Returns:
        float | None: The gain ratio, or `None` when `split_information` is 0
            and the ratio is undefined. Callers must never select an
            undefined split.
    """
    if split_information == 0.0:
        return None
    return (parent_impurity - weighted_child_impurity) / split_information


def plurality_class(counts: Mapping[str, int]) -> str | None:
    """Return the most frequent label, ties going to the label seen first.

    Args:
        counts (Mapping[str, int]): Label counts in order of first occurrence.

    Returns:
        str | None: The plurality label, or `None` for empty counts.

    Examples:
        >>> plurality_class({"b": 2, "a": 2, "c": 1})
        'b'
    """
    if not counts:
        return None
    return max(counts, key=counts.__getitem__)
