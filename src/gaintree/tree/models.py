"""Pydantic models for induced trees, their nodes, and the rules extracted from them."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Annotated, Final, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from gaintree.config import TreeConfig
from gaintree.dataset import ColumnInfo, parse_number
from gaintree.tree.impurity import plurality_class

# ---------------------------------------------------------------------------
# Public constants and type aliases
# ---------------------------------------------------------------------------

LESS_THAN: Final[str] = "less-than"
GREATER_OR_EQUAL: Final[str] = "greater-or-equal"
NUMERIC_BRANCH_KEYS: Final[tuple[str, str]] = (LESS_THAN, GREATER_OR_EQUAL)
THRESHOLD_DECIMAL_PLACES: Final[int] = 4  # Decimal places for thresholds in rendered predicates.

type PredicateOp = Literal["==", "<", ">="]

# ---------------------------------------------------------------------------
# Public models -- Tree nodes
# ---------------------------------------------------------------------------


class LeafNode(BaseModel):
    """A terminal node predicting a single class.

    Attributes:
        kind (Literal["leaf"]): Discriminator field; always `"leaf"`.
        predicted_class (str | None): Plurality label among the training rows
            that reached this leaf. `None` only for the leaf produced by
            fitting an empty training set.
        samples (int): Number of training rows that reached this leaf.
        class_counts (dict[str, int]): Label counts of those rows, in order of
            first occurrence.

    Examples:
        >>> leaf = LeafNode(kind="leaf", predicted_class="no", samples=3, class_counts={"no": 2, "yes": 1})
        >>> leaf.predicted_class
        'no'
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["leaf"] = Field(default="leaf", description='Discriminator field. Always "leaf".')
    predicted_class: str | None = Field(
        description="Plurality label among the training rows that reached this leaf.",
    )
    samples: int = Field(ge=0, description="Number of training rows that reached this leaf.")
    class_counts: dict[str, int] = Field(
        description="Label counts of the training rows at this leaf, in order of first occurrence.",
    )

    @model_validator(mode="after")
    def _validate_predicted_class_is_plurality(self) -> LeafNode:
        """Validate that `predicted_class` is the plurality label of `class_counts`.

        Returns:
            LeafNode: The validated model instance.

        Raises:
            ValueError: If the counts disagree with `samples` or
                `predicted_class` is not their plurality label.
        """
        _check_counts(self.class_counts, self.samples, self.predicted_class, field_name="predicted_class")
        return self


class InternalNode(BaseModel):
    """A node testing one feature and routing rows to its children.

    Numerical nodes compare against `threshold` and have exactly the branch
    keys `"less-than"` and `"greater-or-equal"`. Categorical nodes have one
    branch per feature value observed at training time, keyed by that value.

    Attributes:
        kind (Literal["internal"]): Discriminator field; always `"internal"`.
        feature_index (int): Index of the tested field in each row.
        feature_name (str): Name of the tested column.
        is_numerical (bool): Whether the test is a threshold comparison.
        threshold (float | None): Split threshold for numerical nodes; `None`
            for categorical nodes.
        gain_ratio (float): Gain ratio of the split chosen at this node.
        majority_class (str): Plurality label among the training rows that
            reached this node; returned when a row cannot be routed.
        samples (int): Number of training rows that reached this node.
        class_counts (dict[str, int]): Label counts of those rows.
        children (dict[str, TreeNode]): Child nodes keyed by branch key, in
            branch-key order.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["internal"] = Field(default="internal", description='Discriminator field. Always "internal".')
    feature_index: int = Field(ge=0, description="Index of the tested field in each row.")
    feature_name: str = Field(description="Name of the tested column.")
    is_numerical: bool = Field(description="Whether the test is a threshold comparison.")
    threshold: float | None = Field(
        default=None,
        description="Split threshold for numerical nodes; None for categorical nodes.",
    )
    gain_ratio: float = Field(gt=0.0, description="Gain ratio of the split chosen at this node.")
    majority_class: str = Field(
        description="Plurality label among the training rows that reached this node.",
    )
    samples: int = Field(ge=2, description="Number of training rows that reached this node.")
    class_counts: dict[str, int] = Field(
        description="Label counts of the training rows at this node, in order of first occurrence.",
    )
    children: dict[str, TreeNode] = Field(description="Child nodes keyed by branch key.")

    @model_validator(mode="after")
    def _validate_branches(self) -> InternalNode:
        """Validate the threshold and branch keys against the node's test type.

        Returns:
            InternalNode: The validated model instance.

        Raises:
            ValueError: If a numerical node lacks a threshold or has branch keys
                other than `NUMERIC_BRANCH_KEYS`, or a categorical node has a
                threshold or fewer than two children.
        """
        if self.is_numerical:
            if self.threshold is None:
                raise ValueError("Numerical nodes require a threshold")
            if tuple(self.children) != NUMERIC_BRANCH_KEYS:
                raise ValueError(
                    f"Numerical nodes must have branches {list(NUMERIC_BRANCH_KEYS)}, got {list(self.children)}"
                )
        else:
            if self.threshold is not None:
                raise ValueError("Categorical nodes must not have a threshold")
            if len(self.children) < 2:
                raise ValueError(f"Categorical nodes need at least two branches, got {len(self.children)}")
        return self

    @model_validator(mode="after")
    def _validate_majority_class_is_plurality(self) -> InternalNode:
        """Validate that `majority_class` is the plurality label of `class_counts`.

        Returns:
            InternalNode: The validated model instance.

        Raises:
            ValueError: If the counts disagree with `samples` or
                `majority_class` is not their plurality label.
        """
        _check_counts(self.class_counts, self.samples, self.majority_class, field_name="majority_class")
        return self


# Use this alias when accepting a node of either kind; Pydantic selects the model from `kind`.
TreeNode = Annotated[LeafNode | InternalNode, Field(discriminator="kind")]

InternalNode.model_rebuild()


class TreeModel(BaseModel):
    """A fitted decision tree together with the metadata needed to use it.

    Attributes:
        root (TreeNode): Root node of the tree.
        columns (tuple[ColumnInfo, ...]): Column descriptors of the training
            data; the last one describes the label.
        config (TreeConfig): Hyperparameters the tree was grown with.
    """

    model_config = ConfigDict(frozen=True)

    root: TreeNode = Field(description="Root node of the tree.")
    columns: tuple[ColumnInfo, ...] = Field(min_length=1, description="Column descriptors of the training data.")
    config: TreeConfig = Field(description="Hyperparameters the tree was grown with.")

    @property
    def label_index(self) -> int:
        """Index of the label field in each row."""
        return len(self.columns) - 1

    @property
    def depth(self) -> int:
        """Number of edges on the longest root-to-leaf path."""
        return _depth(self.root)

    @property
    def leaf_count(self) -> int:
        """Number of leaf nodes."""
        return sum(1 for node in iter_nodes(self.root) if isinstance(node, LeafNode))

    @property
    def internal_count(self) -> int:
        """Number of internal nodes."""
        return sum(1 for node in iter_nodes(self.root) if isinstance(node, InternalNode))


def iter_nodes(node: LeafNode | InternalNode) -> Iterator[LeafNode | InternalNode]:
    """Yield every node of a subtree in pre-order, children in branch-key order.

    Args:
        node (LeafNode | InternalNode): Root of the subtree.

    Yields:
        LeafNode | InternalNode: Each node of the subtree.
    """
    yield node
    if isinstance(node, InternalNode):
        for child in node.children.values():
            yield from iter_nodes(child)


# ---------------------------------------------------------------------------
# Public models -- Rules
# ---------------------------------------------------------------------------


class Predicate(BaseModel):
    """A single branch condition on one feature.

    Attributes:
        variable (str): Feature name the condition applies to.
        operator (PredicateOp): `"=="` for categorical branches, `"<"` or
            `">="` for numerical branches.
        value (float | str): Category value or numeric threshold.

    Examples:
        >>> p = Predicate(variable="Na_to_K", operator="<", value=14.829)
        >>> str(p)
        'Na_to_K < 14.829'
        >>> p.eval("12.1")
        True
    """

    model_config = ConfigDict(frozen=True)

    variable: str = Field(description="Feature name the condition applies to.")
    operator: PredicateOp = Field(description="'==' for categorical branches, '<' or '>=' for numerical ones.")
    value: float | str = Field(description="Category value or numeric threshold.")

    @model_validator(mode="after")
    def _validate_operator_value_compatibility(self) -> Predicate:
        """Validate that threshold operators carry a numeric value.

        Returns:
            Predicate: The validated model instance.

        Raises:
            ValueError: If `"<"` or `">="` is paired with a string value.
        """
        if self.operator != "==" and isinstance(self.value, str):
            raise ValueError(f"Operator '{self.operator}' requires a numeric threshold")
        return self

    def __str__(self) -> str:
        """Return a human-readable representation of this predicate.

        Returns:
            str: The predicate as `"<variable> <operator> <value>"`, with
                numeric thresholds rounded to `THRESHOLD_DECIMAL_PLACES`.
        """
        value = round(self.value, THRESHOLD_DECIMAL_PLACES) if isinstance(self.value, float) else self.value
        return f"{self.variable} {self.operator} {value}"

    def eval(self, x: str) -> bool:
        """Evaluate this predicate against a raw field value.

        Args:
            x (str): The raw field value.

        Returns:
            bool: `True` if the predicate holds. Threshold predicates are
                `False` for values that do not parse as numbers.
        """
        if self.operator == "==":
            return x == str(self.value)
        number = parse_number(x)
        if number is None:
            return False
        if self.operator == "<":
            return number < float(self.value)
        return number >= float(self.value)


class ClassificationRule(BaseModel):
    """A decision rule describing the path from the root to one leaf.

    Attributes:
        predicates (list[Predicate]): Conditions along the path; empty when the
            tree is a single leaf.
        prediction (str | None): Class predicted at the leaf.
        samples (int): Number of training rows that reached the leaf.
        confidence (float): Fraction of those rows carrying the predicted
            class; 0.0 for a leaf with no rows.
    """

    model_config = ConfigDict(frozen=True)

    predicates: list[Predicate] = Field(description="Conditions along the path from the root to the leaf.")
    prediction: str | None = Field(description="Class predicted at the leaf.")
    samples: int = Field(ge=0, description="Number of training rows that reached the leaf.")
    confidence: float = Field(ge=0.0, le=1.0, description="Fraction of leaf rows carrying the predicted class.")

    def matches(self, row: tuple[str, ...] | list[str], columns: tuple[ColumnInfo, ...]) -> bool:
        """Return whether every predicate of this rule holds for a row.

        Args:
            row (tuple[str, ...] | list[str]): The row to test.
            columns (tuple[ColumnInfo, ...]): Column descriptors used to map
                predicate variables to field positions.

        Returns:
            bool: `True` if the row satisfies all predicates.
        """
        positions = {column.name: index for index, column in enumerate(columns)}
        return all(predicate.eval(row[positions[predicate.variable]]) for predicate in self.predicates)


# ---------------------------------------------------------------------------
# Private helpers
# ---------------------------------------------------------------------------


def _check_counts(class_counts: dict[str, int], samples: int, expected: str | None, *, field_name: str) -> None:
    """Raise `ValueError` unless `expected` is the plurality label of `class_counts`.

    Ties go to the label that occurs first in `class_counts`.

    Args:
        class_counts (dict[str, int]): Label counts in order of first occurrence.
        samples (int): Number of rows the counts were taken from.
        expected (str | None): The label the node stores.
        field_name (str): Field name used in the error message.

    Raises:
        ValueError: If the counts do not sum to `samples` or `expected` is not
            the plurality label (`None` when there are no counts).
    """
    if sum(class_counts.values()) != samples:
        raise ValueError(f"class_counts sum to {sum(class_counts.values())}, expected samples={samples}")
    plurality = plurality_class(class_counts)
    if expected != plurality:
        raise ValueError(f"{field_name} must be the plurality label {plurality!r}, got {expected!r}")


def _depth(node: LeafNode | InternalNode) -> int:
    if isinstance(node, LeafNode):
        return 0
    return 1 + max(_depth(child) for child in node.children.values())
