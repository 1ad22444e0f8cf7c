"""Decision tree sub-package: impurity, split search, fitting, prediction and rendering."""

from __future__ import annotations

from gaintree.tree.fitting import build_tree, fit
from gaintree.tree.models import (
    GREATER_OR_EQUAL,
    LESS_THAN,
    ClassificationRule,
    InternalNode,
    LeafNode,
    Predicate,
    PredicateOp,
    TreeModel,
    TreeNode,
)
from gaintree.tree.prediction import evaluate, predict, predict_many
from gaintree.tree.rendering import describe, extract_rules
from gaintree.tree.splitting import SplitCandidate, find_best_split

__all__ = [
    "GREATER_OR_EQUAL",
    "LESS_THAN",
    "ClassificationRule",
    "InternalNode",
    "LeafNode",
    "Predicate",
    "PredicateOp",
    "SplitCandidate",
    "TreeModel",
    "TreeNode",
    "build_tree",
    "describe",
    "evaluate",
    "extract_rules",
    "find_best_split",
    "fit",
    "predict",
    "predict_many",
]
