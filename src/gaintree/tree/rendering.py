"""Text dump and rule extraction for fitted trees."""

from __future__ import annotations

from gaintree.tree.models import (
    LESS_THAN,
    ClassificationRule,
    InternalNode,
    LeafNode,
    Predicate,
    TreeModel,
)

_INDENT: str = "    "
_BRANCH_MARKER: str = "|__ "

# ---------------------------------------------------------------------------
# Public interface
# ---------------------------------------------------------------------------


def describe(model: TreeModel) -> str:
    """Render a fitted tree as indented text, one node per line, in pre-order.

    Children are listed in branch-key order: `<` before `>=` for numerical
    tests, values in sorted order for categorical tests. Leaves show their
    predicted class after `->`; internal nodes show their majority class.

    Args:
        model (TreeModel): A fitted model.

    Returns:
        str: The rendered tree.

    Examples:
        >>> print(describe(model))  # doctest: +SKIP
        root [majority: no]
        |__ x0 == a [majority: yes]
            |__ x1 < 1.5 -> yes
            |__ x1 >= 1.5 -> no
        |__ x0 == b -> no
    """
    lines: list[str] = []
    _describe_node(model.root, condition="root", depth=0, lines=lines)
    return "\n".join(lines)


def extract_rules(model: TreeModel) -> list[ClassificationRule]:
    """Extract one rule per leaf, in pre-order.

    Each rule lists the branch conditions from the root to the leaf, the
    leaf's prediction, how many training rows reached it, and the fraction of
    them carrying the predicted class.

    Args:
        model (TreeModel): A fitted model.

    Returns:
        list[ClassificationRule]: One rule per leaf.
    """
    rules: list[ClassificationRule] = []
    _collect_rules(model.root, path_predicates=[], rules=rules)
    return rules


def branch_predicate(node: InternalNode, branch_key: str) -> Predicate:
    """Build the condition a row satisfies when it follows one branch of `node`.

    Args:
        node (InternalNode): The branching node.
        branch_key (str): Key of one of `node.children`.

    Returns:
        Predicate: `feature == value` for categorical nodes, `feature < t` or
            `feature >= t` for numerical nodes.
    """
    if not node.is_numerical or node.threshold is None:
        return Predicate(variable=node.feature_name, operator="==", value=branch_key)
    operator = "<" if branch_key == LESS_THAN else ">="
    return Predicate(variable=node.feature_name, operator=operator, value=node.threshold)


# ---------------------------------------------------------------------------
# Private helpers
# ---------------------------------------------------------------------------


def _describe_node(node: LeafNode | InternalNode, *, condition: str, depth: int, lines: list[str]) -> None:
    """Append the lines for one subtree to `lines`.

    Args:
        node (LeafNode | InternalNode): Subtree root.
        condition (str): Branch condition leading to `node`.
        depth (int): Depth of `node`; the root is 0.
        lines (list[str]): Accumulator; lines are appended in-place.
    """
    lead = "" if depth == 0 else _INDENT * (depth - 1) + _BRANCH_MARKER
    match node:
        case LeafNode():
            lines.append(f"{lead}{condition} -> {node.predicted_class}")
        case InternalNode():
            lines.append(f"{lead}{condition} [majority: {node.majority_class}]")
            for branch_key, child in node.children.items():
                _describe_node(child, condition=str(branch_predicate(node, branch_key)), depth=depth + 1, lines=lines)


def _collect_rules(
    node: LeafNode | InternalNode,
    *,
    path_predicates: list[Predicate],
    rules: list[ClassificationRule],
) -> None:
    """Recursively walk a subtree and accumulate one rule per leaf.

    Args:
        node (LeafNode | InternalNode): Subtree root.
        path_predicates (list[Predicate]): Conditions from the root to `node`.
        rules (list[ClassificationRule]): Accumulator; rules are appended in-place.
    """
    match node:
        case LeafNode():
            confidence = (
                node.class_counts[node.predicted_class] / node.samples
                if node.predicted_class is not None and node.samples > 0
                else 0.0
            )
            rules.append(
                ClassificationRule(
                    predicates=path_predicates,
                    prediction=node.predicted_class,
                    samples=node.samples,
                    confidence=round(confidence, 4),
                )
            )
        case InternalNode():
            for branch_key, child in node.children.items():
                predicate = branch_predicate(node, branch_key)
                _collect_rules(child, path_predicates=[*path_predicates, predicate], rules=rules)
