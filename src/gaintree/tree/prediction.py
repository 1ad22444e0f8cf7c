"""Prediction walk over a fitted tree, and accuracy evaluation."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

import numpy as np
from loguru import logger

from gaintree.dataset import parse_number
from gaintree.logging import OPERATION_LEVEL, OPERATION_MSG, OPERATION_RESULT_MSG
from gaintree.tree.models import GREATER_OR_EQUAL, LESS_THAN, InternalNode, LeafNode, TreeModel


def predict(model: TreeModel | LeafNode | InternalNode, row: Sequence[str]) -> str | None:
    """Predict the label of one row.

    At a categorical node the row's value selects the child; a value not seen
    at training time falls back to the node's majority class. At a numerical
    node a value that is missing or does not parse as a number falls back to
    the majority class; otherwise `value < threshold` selects `"less-than"`
    and anything else `"greater-or-equal"`. A row too short to hold the tested
    field is treated as missing that value.

    Args:
        model (TreeModel | LeafNode | InternalNode): A fitted model or any node
            of one.
        row (Sequence[str]): Field values; a trailing label is ignored.

    Returns:
        str | None: The predicted label. `None` only for a model fitted on an
            empty training set.
    """
    node = model.root if isinstance(model, TreeModel) else model
    match node:
        case LeafNode():
            return node.predicted_class
        case InternalNode():
            child = _route(node, row)
            if child is None:
                logger.trace(
                    "Falling back to majority class",
                    feature=node.feature_name,
                    value=row[node.feature_index] if node.feature_index < len(row) else None,
                    majority_class=node.majority_class,
                )
                return node.majority_class
            return predict(child, row)


def predict_many(model: TreeModel, rows: Iterable[Sequence[str]]) -> list[str | None]:
    """Predict the label of each row.

    Args:
        model (TreeModel): A fitted model.
        rows (Iterable[Sequence[str]]): Rows to classify.

    Returns:
        list[str | None]: Predictions in input order.
    """
    return [predict(model, row) for row in rows]


def evaluate(model: TreeModel, rows: Iterable[Sequence[str]]) -> float:
    """Compute the fraction of rows whose prediction equals their stored label.

    Args:
        model (TreeModel): A fitted model.
        rows (Iterable[Sequence[str]]): Labeled rows, e.g. a test `RowView`.
            The label is read from `model.label_index`.

    Returns:
        float: Accuracy in `[0, 1]`.

    Raises:
        ValueError: If `rows` is empty, since accuracy is undefined.
    """
    labeled_rows = list(rows)
    logger.log(OPERATION_LEVEL, OPERATION_MSG.format(operation="evaluate"), rows=len(labeled_rows))
    if not labeled_rows:
        raise ValueError("Cannot evaluate a model on an empty set of rows.")

    label_index = model.label_index
    predictions = np.array(predict_many(model, labeled_rows), dtype=object)
    labels = np.array([row[label_index] for row in labeled_rows], dtype=object)
    accuracy = float(np.mean(predictions == labels))

    logger.log(OPERATION_LEVEL, OPERATION_RESULT_MSG.format(operation="evaluate"), accuracy=accuracy)
    return accuracy


def _route(node: InternalNode, row: Sequence[str]) -> LeafNode | InternalNode | None:
    """Select the child a row follows at `node`.

    Args:
        node (InternalNode): The node testing the row.
        row (Sequence[str]): Field values.

    Returns:
        LeafNode | InternalNode | None: The child to descend into, or `None`
            when the row must fall back to the node's majority class.
    """
    if node.feature_index >= len(row):
        return None
    value = row[node.feature_index]
    if not node.is_numerical:
        return node.children.get(value)

    number = parse_number(value)
    if number is None or node.threshold is None:
        return None
    return node.children[LESS_THAN if number < node.threshold else GREATER_OR_EQUAL]
