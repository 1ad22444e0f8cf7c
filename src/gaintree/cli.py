"""Command line entry point: load a CSV, split it, fit a tree, report accuracy and the tree."""

from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence

from pydantic import ValidationError

from gaintree.config import ExperimentConfig, TreeConfig
from gaintree.dataset import load_dataset, split_train_test
from gaintree.exceptions import DatasetError
from gaintree.logging import enable_logging
from gaintree.tree import describe, evaluate, extract_rules, fit


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser.

    Options left unset fall back to `TreeConfig` / `ExperimentConfig`, which
    read `GAINTREE_*` environment variables before their defaults.

    Returns:
        argparse.ArgumentParser: The parser.
    """
    parser = argparse.ArgumentParser(
        prog="gaintree",
        description="Fit a gain-ratio decision tree on a CSV file whose last column is the label.",
    )
    parser.add_argument("csv_path", help="CSV file with a header row; the last column is the label")
    parser.add_argument("--max-depth", type=int, default=None, help="deepest level at which a node may split")
    parser.add_argument("--min-sample-split", type=int, default=None, help="minimum rows needed to split a node")
    parser.add_argument("--criterion", choices=["gini", "entropy"], default=None, help="impurity measure")
    parser.add_argument("--test-fraction", type=float, default=None, help="fraction of rows held out for testing")
    parser.add_argument("--seed", type=int, default=None, help="shuffle seed for the train/test split")
    parser.add_argument(
        "--log-level",
        choices=["TRACE", "DEBUG", "INFO", "OPERATION", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="enable gaintree logging on stderr at this level",
    )
    parser.add_argument("--rules", action="store_true", help="also print one rule per leaf")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the fit/evaluate pipeline and print the results.

    Args:
        argv (Sequence[str] | None): Arguments excluding the program name.
            Defaults to `sys.argv[1:]`.

    Returns:
        int: Process exit code; 0 on success, 1 when the dataset or the
            options are invalid.
    """
    args = build_parser().parse_args(argv)
    handle = enable_logging(level=args.log_level) if args.log_level is not None else None
    try:
        return _run(args)
    finally:
        if handle is not None:
            handle.disable()


def _run(args: argparse.Namespace) -> int:
    """Execute the pipeline for parsed arguments.

    Args:
        args (argparse.Namespace): Parsed command line arguments.

    Returns:
        int: Process exit code.
    """
    try:
        tree_config = TreeConfig(
            **_given(max_depth=args.max_depth, min_sample_split=args.min_sample_split, criterion=args.criterion)
        )
        experiment_config = ExperimentConfig(**_given(test_fraction=args.test_fraction, seed=args.seed))
    except ValidationError as exc:
        print(f"error: invalid options: {exc}", file=sys.stderr)
        return 1

    try:
        dataset = load_dataset(args.csv_path)
    except DatasetError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    train_view, test_view = split_train_test(dataset, experiment_config.test_fraction, experiment_config.seed)
    model = fit(train_view, config=tree_config)

    if len(test_view) > 0:
        print(f"Success ratio: {evaluate(model, test_view):f}")
    else:
        print("Success ratio: n/a (empty test set)")
    print(describe(model))
    if args.rules:
        for rule in extract_rules(model):
            conditions = " and ".join(str(predicate) for predicate in rule.predicates) or "always"
            print(f"if {conditions} then {rule.prediction} (samples={rule.samples}, confidence={rule.confidence})")
    return 0


def _given(**options: object) -> dict[str, object]:
    """Drop options the user did not pass, so settings defaults apply.

    Args:
        **options (object): Option values, `None` when not given.

    Returns:
        dict[str, object]: The options that were given.
    """
    return {name: value for name, value in options.items() if value is not None}


if __name__ == "__main__":
    sys.exit(main())
