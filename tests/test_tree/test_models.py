"""Tests for the tree models: node validation, TreeModel metrics and serialization, Predicate, ClassificationRule."""

from __future__ import annotations

import pytest
from pydantic import ValidationError
from pytest_check import check

from gaintree.config import TreeConfig
from gaintree.dataset import ColumnInfo
from gaintree.tree.models import (
    GREATER_OR_EQUAL,
    LESS_THAN,
    ClassificationRule,
    InternalNode,
    LeafNode,
    Predicate,
    TreeModel,
    iter_nodes,
)


class TestLeafNode:
    """Tests for LeafNode validation."""

    def test_valid_leaf(self) -> None:
        """A leaf whose prediction is the plurality of its counts should validate."""
        # Act
        leaf = LeafNode(predicted_class="no", samples=3, class_counts={"no": 2, "yes": 1})

        # Assert
        with check:
            assert leaf.kind == "leaf"
        with check:
            assert leaf.predicted_class == "no"

    def test_prediction_must_be_plurality(self) -> None:
        """A leaf predicting a minority class should be rejected."""
        with pytest.raises(ValidationError, match="plurality"):
            LeafNode(predicted_class="yes", samples=3, class_counts={"no": 2, "yes": 1})

    def test_counts_must_sum_to_samples(self) -> None:
        """Counts that disagree with `samples` should be rejected."""
        with pytest.raises(ValidationError, match="class_counts sum"):
            LeafNode(predicted_class="no", samples=5, class_counts={"no": 2, "yes": 1})

    def test_empty_leaf_predicts_none(self) -> None:
        """The leaf for an empty row-set has no counts and no prediction."""
        leaf = LeafNode(predicted_class=None, samples=0, class_counts={})

        assert leaf.predicted_class is None

    def test_leaf_is_frozen(self) -> None:
        """Nodes should be immutable once built."""
        leaf = LeafNode(predicted_class="no", samples=1, class_counts={"no": 1})

        with pytest.raises(ValidationError):
            leaf.samples = 2  # type: ignore[misc]


class TestInternalNode:
    """Tests for InternalNode validation."""

    def test_numerical_node_requires_threshold(self) -> None:
        """A numerical node without a threshold should be rejected."""
        with pytest.raises(ValidationError, match="threshold"):
            _make_numerical_node(threshold=None)

    def test_numerical_node_requires_both_branch_keys_in_order(self) -> None:
        """Numerical branches must be exactly less-than then greater-or-equal."""
        # Arrange
        left, right = _make_pure_leaves()

        # Act / Assert
        with pytest.raises(ValidationError, match="branches"):
            InternalNode(
                feature_index=0,
                feature_name="Age",
                is_numerical=True,
                threshold=40.0,
                gain_ratio=1.0,
                majority_class="no",
                samples=4,
                class_counts={"no": 2, "yes": 2},
                children={GREATER_OR_EQUAL: right, LESS_THAN: left},
            )

    def test_categorical_node_rejects_threshold(self) -> None:
        """A categorical node carrying a threshold should be rejected."""
        # Arrange
        left, right = _make_pure_leaves()

        # Act / Assert
        with pytest.raises(ValidationError, match="must not have a threshold"):
            InternalNode(
                feature_index=1,
                feature_name="BP",
                is_numerical=False,
                threshold=1.0,
                gain_ratio=1.0,
                majority_class="no",
                samples=4,
                class_counts={"no": 2, "yes": 2},
                children={"HIGH": left, "LOW": right},
            )

    def test_gain_ratio_must_be_positive(self) -> None:
        """Splits without a positive gain ratio are never stored."""
        with pytest.raises(ValidationError):
            _make_numerical_node(gain_ratio=0.0)

    def test_majority_class_must_be_plurality(self) -> None:
        """The stored majority class must be the plurality of the node's counts."""
        with pytest.raises(ValidationError, match="plurality"):
            _make_numerical_node(majority_class="yes")


class TestTreeModel:
    """Tests for TreeModel metrics and JSON serialization."""

    def test_metrics_of_two_level_tree(self) -> None:
        """Depth, leaf count and internal count should describe the tree shape."""
        # Act
        model = _make_model()

        # Assert
        with check:
            assert model.depth == 1
        with check:
            assert model.leaf_count == 2
        with check:
            assert model.internal_count == 1
        with check:
            assert model.label_index == 1

    def test_single_leaf_tree_has_depth_zero(self) -> None:
        """A tree that is a single leaf has no edges."""
        model = TreeModel(
            root=LeafNode(predicted_class="no", samples=2, class_counts={"no": 2}),
            columns=(ColumnInfo(name="Age", is_numerical=True), ColumnInfo(name="label", is_numerical=False)),
            config=TreeConfig(),
        )

        assert model.depth == 0

    def test_json_round_trip_restores_node_kinds(self) -> None:
        """Serializing and re-validating should rebuild the same discriminated node types."""
        # Arrange
        model = _make_model()

        # Act
        restored = TreeModel.model_validate_json(model.model_dump_json())

        # Assert
        with check:
            assert restored == model
        with check:
            assert isinstance(restored.root, InternalNode)
        with check:
            assert isinstance(restored.root.children[LESS_THAN], LeafNode)  # type: ignore[union-attr]

    def test_iter_nodes_is_pre_order(self) -> None:
        """Nodes should be yielded parent first, then children in branch-key order."""
        # Arrange
        model = _make_model()

        # Act
        kinds = [(node.kind, node.samples) for node in iter_nodes(model.root)]

        # Assert
        assert kinds == [("internal", 4), ("leaf", 2), ("leaf", 2)]


class TestPredicate:
    """Tests for the Predicate model: construction, str and eval."""

    def test_threshold_operator_rejects_string_value(self) -> None:
        """`<` and `>=` need a numeric threshold."""
        with pytest.raises(ValidationError, match="numeric threshold"):
            Predicate(variable="Age", operator="<", value="forty")

    @pytest.mark.parametrize(
        ("predicate", "expected"),
        [
            (Predicate(variable="Na_to_K", operator="<", value=14.82900001), "Na_to_K < 14.829"),
            (Predicate(variable="Age", operator=">=", value=50.5), "Age >= 50.5"),
            (Predicate(variable="BP", operator="==", value="HIGH"), "BP == HIGH"),
        ],
    )
    def test_str_rounds_thresholds(self, predicate: Predicate, expected: str) -> None:
        """Thresholds should be rendered with at most four decimal places.

        Args:
            predicate (Predicate): Predicate under test.
            expected (str): Expected rendering.
        """
        assert str(predicate) == expected

    @pytest.mark.parametrize(
        ("predicate", "value", "expected"),
        [
            (Predicate(variable="Age", operator="<", value=40.0), "39.9", True),
            (Predicate(variable="Age", operator="<", value=40.0), "40", False),
            (Predicate(variable="Age", operator=">=", value=40.0), "40", True),
            (Predicate(variable="Age", operator=">=", value=40.0), "unknown", False),
            (Predicate(variable="BP", operator="==", value="HIGH"), "HIGH", True),
            (Predicate(variable="BP", operator="==", value="HIGH"), "LOW", False),
        ],
    )
    def test_eval(self, predicate: Predicate, value: str, expected: bool) -> None:
        """Predicates should evaluate raw field text the way prediction routes rows.

        Args:
            predicate (Predicate): Predicate under test.
            value (str): Raw field value.
            expected (bool): Expected outcome.
        """
        assert predicate.eval(value) is expected


class TestClassificationRule:
    """Tests for ClassificationRule.matches and validation."""

    def test_matches_requires_every_predicate(self) -> None:
        """A rule should match only rows satisfying all of its predicates."""
        # Arrange
        columns = (
            ColumnInfo(name="Age", is_numerical=True),
            ColumnInfo(name="BP", is_numerical=False),
            ColumnInfo(name="Drug", is_numerical=False),
        )
        rule = ClassificationRule(
            predicates=[
                Predicate(variable="BP", operator="==", value="HIGH"),
                Predicate(variable="Age", operator="<", value=50.0),
            ],
            prediction="drugA",
            samples=10,
            confidence=0.9,
        )

        # Act / Assert
        with check:
            assert rule.matches(("35", "HIGH", "?"), columns)
        with check:
            assert not rule.matches(("65", "HIGH", "?"), columns)
        with check:
            assert not rule.matches(("35", "LOW", "?"), columns)

    def test_confidence_bounded(self) -> None:
        """Confidence outside [0, 1] should be rejected."""
        with pytest.raises(ValidationError):
            ClassificationRule(predicates=[], prediction="a", samples=1, confidence=1.5)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_pure_leaves() -> tuple[LeafNode, LeafNode]:
    """Build two pure two-row leaves, one per class.

    Returns:
        tuple[LeafNode, LeafNode]: A `"no"` leaf and a `"yes"` leaf.
    """
    return (
        LeafNode(predicted_class="no", samples=2, class_counts={"no": 2}),
        LeafNode(predicted_class="yes", samples=2, class_counts={"yes": 2}),
    )


def _make_numerical_node(
    *,
    threshold: float | None = 40.0,
    gain_ratio: float = 1.0,
    majority_class: str = "no",
) -> InternalNode:
    """Build a numerical node on `Age` over four rows with overridable fields.

    Args:
        threshold (float | None): Split threshold. Defaults to 40.0.
        gain_ratio (float): Gain ratio. Defaults to 1.0.
        majority_class (str): Stored majority class. Defaults to "no".

    Returns:
        InternalNode: The node.
    """
    left, right = _make_pure_leaves()
    return InternalNode(
        feature_index=0,
        feature_name="Age",
        is_numerical=True,
        threshold=threshold,
        gain_ratio=gain_ratio,
        majority_class=majority_class,
        samples=4,
        class_counts={"no": 2, "yes": 2},
        children={LESS_THAN: left, GREATER_OR_EQUAL: right},
    )


def _make_model() -> TreeModel:
    """Build a one-split model on `Age` at threshold 40.

    Returns:
        TreeModel: The model.
    """
    return TreeModel(
        root=_make_numerical_node(),
        columns=(ColumnInfo(name="Age", is_numerical=True), ColumnInfo(name="label", is_numerical=False)),
        config=TreeConfig(max_depth=1, min_sample_split=2),
    )
