"""Demonstrates how to enable and configure logging in gaintree.

gaintree logging is disabled by default. Users opt in by calling ``enable_logging()``,
which returns a ``LoggingHandle``. The handle can be used as a context manager
(``with enable_logging(): ...``) or disabled manually via ``handle.disable()``.
When the last active handle is disabled, gaintree logging is automatically turned off.

Key concepts shown here:

- ``level``: controls the minimum log level. The custom ``OPERATION`` level
  (numeric value 25, between INFO and WARNING) surfaces calls to the public
  entry points and is the default. ``DEBUG`` adds every leaf and split decision.
- ``log_format``: ``"short"`` shows ``timestamp | level | function - message``;
  ``"full"`` adds the module and line number.
- Error logging: failed loads are logged at WARNING before the error is raised.
"""

import polars as pl

from gaintree import DatasetError, TreeConfig, enable_logging, evaluate, fit, load_dataset, split_train_test
from gaintree.tree import describe

df_drugs = pl.DataFrame({
    "Age": [23, 47, 47, 28, 61, 22, 49, 41, 60, 43, 47, 34],
    "BP": ["HIGH", "LOW", "LOW", "NORMAL", "LOW", "NORMAL", "NORMAL", "LOW", "NORMAL", "LOW", "LOW", "HIGH"],
    "Na_to_K": [25.355, 13.093, 10.114, 7.798, 18.043, 8.607, 16.275, 11.037, 15.171, 19.368, 11.767, 19.199],
    "Drug": [
        "drugY", "drugC", "drugC", "drugX", "drugY", "drugX",
        "drugY", "drugC", "drugY", "drugY", "drugC", "drugY",
    ],
})

# Enable logging at DEBUG level with full log format to see each node decision
with enable_logging(level="DEBUG", log_format="full"):
    dataset = load_dataset(df_drugs)
    train_view, test_view = split_train_test(dataset, test_fraction=0.25, seed=100)
    model = fit(train_view, config=TreeConfig(max_depth=2, min_sample_split=2))
    print(f"\nSuccess ratio: {evaluate(model, test_view):f}\n")
    print(describe(model))

    # Try an error to show error logging
    try:
        load_dataset("does-not-exist.csv")
    except DatasetError as error:
        print(f"\n{error!r}\n")

# Logging automatically disabled here
