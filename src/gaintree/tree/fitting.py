"""Recursive tree induction with pre-pruning stop rules."""

from __future__ import annotations

from loguru import logger

from gaintree.config import TreeConfig
from gaintree.dataset import Dataset, RowView
from gaintree.logging import OPERATION_LEVEL, OPERATION_MSG, OPERATION_RESULT_MSG
from gaintree.tree.impurity import class_counts, plurality_class
from gaintree.tree.models import InternalNode, LeafNode, TreeModel
from gaintree.tree.splitting import find_best_split

# ---------------------------------------------------------------------------
# Public interface
# ---------------------------------------------------------------------------


def fit(train: RowView | Dataset, *, config: TreeConfig | None = None) -> TreeModel:
    """Grow a decision tree from labeled rows.

    An empty training set yields a single leaf with no predicted class rather
    than an error.

    Args:
        train (RowView | Dataset): Training rows; a `Dataset` is used whole.
        config (TreeConfig | None): Hyperparameters. Defaults to `TreeConfig()`,
            which reads `GAINTREE_*` environment overrides.

    Returns:
        TreeModel: The fitted tree.

    Examples:
        >>> from gaintree.dataset import Dataset
        >>> data = Dataset.from_rows([["a", "yes"], ["b", "no"]], column_names=["x", "y"])
        >>> model = fit(data, config=TreeConfig(max_depth=1, min_sample_split=1))
        >>> model.leaf_count
        2
    """
    view = train.view() if isinstance(train, Dataset) else train
    config = config if config is not None else TreeConfig()
    logger.log(
        OPERATION_LEVEL,
        OPERATION_MSG.format(operation="fit"),
        rows=len(view),
        max_depth=config.max_depth,
        min_sample_split=config.min_sample_split,
        criterion=config.criterion,
    )

    root = build_tree(view, config=config)
    model = TreeModel(root=root, columns=view.columns, config=config)

    logger.log(
        OPERATION_LEVEL,
        OPERATION_RESULT_MSG.format(operation="fit"),
        depth=model.depth,
        leaf_count=model.leaf_count,
        internal_count=model.internal_count,
    )
    return model


def build_tree(view: RowView, *, config: TreeConfig, depth: int = 0) -> LeafNode | InternalNode:
    """Build the subtree for the rows reaching one node.

    The node becomes a leaf when the row-set is empty, `depth` exceeds
    `config.max_depth`, the row-set is smaller than `config.min_sample_split`,
    the row-set is pure, or no split has a positive gain ratio. Otherwise the
    best split becomes an internal node and each child partition is built at
    `depth + 1`.

    Args:
        view (RowView): Rows reaching the node.
        config (TreeConfig): Hyperparameters.
        depth (int): Depth of the node; the root is 0.

    Returns:
        LeafNode | InternalNode: The subtree root.
    """
    counts = class_counts(view.labels())
    samples = len(view)

    reason = _stop_reason(samples, counts, config=config, depth=depth)
    split = None
    if reason is None:
        split = find_best_split(view, criterion=config.criterion)
        if split is None:
            reason = "no split with positive gain ratio"

    if reason is not None or split is None:
        logger.debug("Leaf created", depth=depth, samples=samples, reason=reason)
        return LeafNode(predicted_class=plurality_class(counts), samples=samples, class_counts=counts)

    feature_name = view.columns[split.feature_index].name
    logger.debug(
        "Split chosen",
        depth=depth,
        samples=samples,
        feature=feature_name,
        threshold=split.threshold,
        gain_ratio=split.gain_ratio,
        branches=list(split.partition),
    )
    children = {
        branch_key: build_tree(child_view, config=config, depth=depth + 1)
        for branch_key, child_view in split.partition.items()
    }
    majority_class = plurality_class(counts)
    if majority_class is None:
        raise RuntimeError("Internal nodes are only built from non-empty row-sets")
    return InternalNode(
        feature_index=split.feature_index,
        feature_name=feature_name,
        is_numerical=split.is_numerical,
        threshold=split.threshold,
        gain_ratio=split.gain_ratio,
        majority_class=majority_class,
        samples=samples,
        class_counts=counts,
        children=children,
    )


# ---------------------------------------------------------------------------
# Private helpers
# ---------------------------------------------------------------------------


def _stop_reason(samples: int, counts: dict[str, int], *, config: TreeConfig, depth: int) -> str | None:
    """Return why a node must be a leaf, or `None` if it may be split.

    Args:
        samples (int): Number of rows reaching the node.
        counts (dict[str, int]): Label counts of those rows.
        config (TreeConfig): Hyperparameters.
        depth (int): Depth of the node.

    Returns:
        str | None: A short reason, or `None` when no stop rule applies.
    """
    if samples == 0:
        return "empty row-set"
    if depth > config.max_depth:
        return "max_depth exceeded"
    if samples < config.min_sample_split:
        return "fewer rows than min_sample_split"
    if len(counts) == 1:  # pure: impurity is 0
        return "pure row-set"
    return None
