"""Tests for tree induction: stop rules, recursion, determinism and fit orchestration."""

from __future__ import annotations

import numpy as np
import pytest
from pytest_check import check

from gaintree.config import TreeConfig
from gaintree.dataset import Dataset, split_train_test
from gaintree.tree.fitting import build_tree, fit
from gaintree.tree.models import GREATER_OR_EQUAL, LESS_THAN, InternalNode, LeafNode, TreeModel, iter_nodes
from gaintree.tree.prediction import predict


class TestFitScenarios:
    """End-to-end scenarios for `fit` on small hand-checkable datasets."""

    def test_mixed_features_reach_pure_leaves(self) -> None:
        """The four-row mixed dataset should split on column 0, then column 1, and classify every row.

        Both features give gain ratio 0.125 at the root (Gini 0.375 -> 0.25,
        split information 1.0); the tie goes to column 0. The `a` branch is
        then split on column 1 at threshold 1.5 into two pure leaves.
        """
        # Arrange
        rows = [["a", "1", "yes"], ["a", "2", "no"], ["b", "1", "no"], ["b", "2", "no"]]
        dataset = Dataset.from_rows(rows, column_names=["letter", "number", "label"])

        # Act
        model = fit(dataset, config=TreeConfig(max_depth=2, min_sample_split=1))

        # Assert
        root = model.root
        assert isinstance(root, InternalNode)
        with check:
            assert root.feature_index == 0
        with check:
            assert root.gain_ratio == pytest.approx(0.125)
        with check:
            assert root.majority_class == "no"
        with check:
            assert list(root.children) == ["a", "b"]
        a_branch = root.children["a"]
        assert isinstance(a_branch, InternalNode)
        with check:
            assert a_branch.feature_index == 1
        with check:
            assert a_branch.threshold == pytest.approx(1.5)
        with check:
            assert isinstance(root.children["b"], LeafNode)
        for row in rows:
            with check:
                assert predict(model, row) == row[-1]

    @pytest.mark.parametrize("max_depth", [0, 1, 5, 50])
    def test_single_class_dataset_is_single_leaf(self, max_depth: int) -> None:
        """A dataset with one label should always give a single leaf predicting it.

        Args:
            max_depth (int): Depth limit, which must not matter.
        """
        # Arrange
        dataset = Dataset.from_rows([[str(value), "blue", "drugY"] for value in range(12)])

        # Act
        model = fit(dataset, config=TreeConfig(max_depth=max_depth, min_sample_split=1))

        # Assert
        assert isinstance(model.root, LeafNode)
        assert model.root.predicted_class == "drugY"

    def test_min_sample_split_above_dataset_size_gives_plurality_leaf(self) -> None:
        """When no node has enough rows to split, the root leaf should hold the plurality label."""
        # Arrange
        dataset = Dataset.from_rows([["1", "no"], ["2", "yes"], ["3", "no"], ["4", "no"], ["5", "yes"]])

        # Act
        model = fit(dataset, config=TreeConfig(max_depth=5, min_sample_split=6))

        # Assert
        assert isinstance(model.root, LeafNode)
        with check:
            assert model.root.predicted_class == "no"
        with check:
            assert model.root.samples == 5

    def test_empty_training_set_gives_trivial_leaf(self) -> None:
        """Fitting zero rows should produce a leaf with no class instead of raising."""
        # Arrange
        dataset = Dataset.from_rows([["a", "yes"], ["b", "no"]], column_names=["f", "label"])
        empty_view = dataset.view().select([])

        # Act
        model = fit(empty_view, config=TreeConfig())

        # Assert
        assert isinstance(model.root, LeafNode)
        with check:
            assert model.root.predicted_class is None
        with check:
            assert model.root.samples == 0
        with check:
            assert predict(model, ["a", "yes"]) is None

    def test_plurality_ties_go_to_first_seen_label(self) -> None:
        """A leaf with tied counts should predict the label that occurred first."""
        # Arrange
        dataset = Dataset.from_rows([["k", "beta"], ["k", "alpha"], ["k", "alpha"], ["k", "beta"]])

        # Act
        model = fit(dataset, config=TreeConfig())

        # Assert
        assert isinstance(model.root, LeafNode)
        assert model.root.predicted_class == "beta"


class TestBuildTree:
    """Tests for `build_tree` stop rules and node construction."""

    def test_node_deeper_than_max_depth_is_leaf(self) -> None:
        """With max_depth=0 the root may split but its children must be leaves."""
        # Arrange
        view = _make_staircase_dataset().view()

        # Act
        root = build_tree(view, config=TreeConfig(max_depth=0, min_sample_split=1))

        # Assert
        assert isinstance(root, InternalNode)
        for child in root.children.values():
            with check:
                assert isinstance(child, LeafNode)

    def test_internal_majority_comes_from_parent_rows(self) -> None:
        """Every internal node's majority class should be the plurality of the rows reaching it."""
        # Arrange
        view = _make_staircase_dataset().view()

        # Act
        root = build_tree(view, config=TreeConfig(max_depth=4, min_sample_split=1))

        # Assert
        assert isinstance(root, InternalNode)
        with check:
            assert root.majority_class == "low"
        with check:
            assert root.samples == len(view)
        for node in iter_nodes(root):
            with check:
                assert sum(node.class_counts.values()) == node.samples

    def test_children_sample_counts_sum_to_parent(self) -> None:
        """Partitioning must neither drop nor duplicate rows."""
        # Arrange
        view = _make_drug_dataset().view()

        # Act
        root = build_tree(view, config=TreeConfig(max_depth=3, min_sample_split=2))

        # Assert
        for node in iter_nodes(root):
            if isinstance(node, InternalNode):
                with check:
                    assert sum(child.samples for child in node.children.values()) == node.samples

    def test_numerical_nodes_have_both_branches(self) -> None:
        """Every numerical node should carry exactly the less-than and greater-or-equal branches."""
        # Arrange
        view = _make_drug_dataset().view()

        # Act
        root = build_tree(view, config=TreeConfig(max_depth=4, min_sample_split=2))

        # Assert
        numerical_nodes = [node for node in iter_nodes(root) if isinstance(node, InternalNode) and node.is_numerical]
        assert numerical_nodes
        for node in numerical_nodes:
            with check:
                assert list(node.children) == [LESS_THAN, GREATER_OR_EQUAL]


class TestFitProperties:
    """Property-style tests for determinism and pre-pruning monotonicity."""

    def test_repeated_fits_are_identical(self) -> None:
        """The same rows, seed and configuration should give the same tree and accuracy."""
        # Arrange
        dataset = _make_drug_dataset()
        config = TreeConfig(max_depth=3, min_sample_split=2)

        # Act
        first_train, first_test = split_train_test(dataset, 0.25, seed=7)
        second_train, second_test = split_train_test(dataset, 0.25, seed=7)
        first = fit(first_train, config=config)
        second = fit(second_train, config=config)

        # Assert
        with check:
            assert first.model_dump() == second.model_dump()
        with check:
            assert first_test.indices == second_test.indices

    @pytest.mark.parametrize("criterion", ["gini", "entropy"])
    def test_larger_min_sample_split_never_adds_internal_nodes(self, criterion: str) -> None:
        """Raising min_sample_split should never increase the number of internal nodes.

        Args:
            criterion (str): Impurity criterion under test.
        """
        # Arrange
        dataset = _make_drug_dataset()

        # Act
        counts = [
            fit(
                dataset,
                config=TreeConfig(max_depth=6, min_sample_split=min_split, criterion=criterion),  # type: ignore[arg-type]
            ).internal_count
            for min_split in (1, 2, 4, 8, 16, 32, 64)
        ]

        # Assert
        assert counts == sorted(counts, reverse=True)

    def test_smaller_max_depth_never_adds_internal_nodes(self) -> None:
        """Lowering max_depth should never increase the number of internal nodes."""
        # Arrange
        dataset = _make_drug_dataset()

        # Act
        counts = [
            fit(dataset, config=TreeConfig(max_depth=depth, min_sample_split=1)).internal_count
            for depth in (6, 4, 3, 2, 1, 0)
        ]

        # Assert
        assert counts == sorted(counts, reverse=True)

    def test_fit_returns_model_with_training_columns(self) -> None:
        """The model should carry the training columns and configuration."""
        # Arrange
        dataset = _make_drug_dataset()
        config = TreeConfig(max_depth=2)

        # Act
        model = fit(dataset, config=config)

        # Assert
        assert isinstance(model, TreeModel)
        with check:
            assert model.columns == dataset.columns
        with check:
            assert model.config == config
        with check:
            assert model.depth <= config.max_depth + 1


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_staircase_dataset() -> Dataset:
    """Build a one-feature dataset whose label changes at several value boundaries.

    Returns:
        Dataset: Rows `(value, label)` where the label is "low" below 4,
            "mid" from 4 to 7, and "low" again from 8.
    """
    rows = []
    for value in range(12):
        label = "mid" if 4 <= value <= 7 else "low"
        rows.append([str(value), label])
    return Dataset.from_rows(rows, column_names=["level", "band"])


def _make_drug_dataset(n_rows: int = 120) -> Dataset:
    """Build a drug-prescription style dataset with mixed feature types.

    The prescribed drug depends on the sodium-to-potassium ratio, blood
    pressure and age, with a little label noise.

    Args:
        n_rows (int): Number of rows to generate. Defaults to 120.

    Returns:
        Dataset: Rows `(age, sex, bp, na_to_k, drug)`; `age` and `na_to_k`
            are numerical, the rest categorical.
    """
    rng = np.random.default_rng(42)
    rows = []
    for _ in range(n_rows):
        age = int(rng.integers(15, 75))
        sex = str(rng.choice(["F", "M"]))
        bp = str(rng.choice(["LOW", "NORMAL", "HIGH"]))
        na_to_k = round(float(rng.uniform(6.0, 38.0)), 3)
        if na_to_k >= 15.0:
            drug = "drugY"
        elif bp == "HIGH":
            drug = "drugA" if age < 50 else "drugB"
        elif bp == "LOW":
            drug = "drugC"
        else:
            drug = "drugX"
        if rng.uniform() < 0.05:
            drug = str(rng.choice(["drugA", "drugB", "drugC", "drugX", "drugY"]))
        rows.append([str(age), sex, bp, f"{na_to_k}", drug])
    return Dataset.from_rows(rows, column_names=["Age", "Sex", "BP", "Na_to_K", "Drug"])
