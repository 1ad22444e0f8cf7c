"""Tabular data for tree induction: column metadata, row storage, views, loading and splitting.

A `Dataset` owns the rows; every other structure refers to rows by index
through a `RowView`, so partitioning a node's rows into children never copies
row storage.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from pathlib import Path

import numpy as np
import polars as pl
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

from gaintree.exceptions import DatasetFormatError, DatasetSourceError
from gaintree.logging import OPERATION_ERROR_MSG, OPERATION_LEVEL, OPERATION_MSG, OPERATION_RESULT_MSG

type Row = tuple[str, ...]

# ---------------------------------------------------------------------------
# Public interface -- Column metadata
# ---------------------------------------------------------------------------


class ColumnInfo(BaseModel):
    """Descriptor for one column of a dataset.

    Attributes:
        name (str): Column name from the header row.
        is_numerical (bool): Whether every value in the column parses as a
            real number. Always `False` for the label column.

    Examples:
        >>> ColumnInfo(name="Age", is_numerical=True)
        ColumnInfo(name='Age', is_numerical=True)
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Column name from the header row.")
    is_numerical: bool = Field(description="Whether every value in the column parses as a real number.")


def parse_number(text: str) -> float | None:
    """Parse a field as a real number.

    This is the only numeric parser in the package; column inference, the
    threshold sweep and prediction all go through it so they agree on which
    values are numbers.

    Args:
        text (str): The raw field value.

    Returns:
        float | None: The parsed value, or `None` when the field is not a
            number or parses to NaN.

    Examples:
        >>> parse_number("2.5")
        2.5
        >>> parse_number("n/a") is None
        True
    """
    try:
        value = float(text)
    except (TypeError, ValueError):
        return None
    if math.isnan(value):
        return None
    return value


def infer_columns(rows: Sequence[Sequence[str]], names: Sequence[str]) -> tuple[ColumnInfo, ...]:
    """Build column descriptors for a rectangular set of rows.

    A feature column is numerical when the dataset has at least one row and
    every value in the column passes `parse_number`. The last column is the
    label and is always categorical.

    Args:
        rows (Sequence[Sequence[str]]): Data rows, all of length `len(names)`.
        names (Sequence[str]): Column names in field order.

    Returns:
        tuple[ColumnInfo, ...]: One descriptor per column.
    """
    label_index = len(names) - 1
    columns: list[ColumnInfo] = []
    for column_index, name in enumerate(names):
        is_numerical = (
            column_index != label_index
            and len(rows) > 0
            and all(parse_number(row[column_index]) is not None for row in rows)
        )
        columns.append(ColumnInfo(name=name, is_numerical=is_numerical))
    return tuple(columns)


# ---------------------------------------------------------------------------
# Public interface -- Row storage and views
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Dataset:
    """Backing storage for a labeled table of string fields.

    Attributes:
        rows (tuple[Row, ...]): The data rows. The last field of each row is
            the class label.
        columns (tuple[ColumnInfo, ...]): One descriptor per field.

    Raises:
        DatasetFormatError: If there are no columns or a row's length differs
            from the number of columns.
    """

    rows: tuple[Row, ...]
    columns: tuple[ColumnInfo, ...]
    _numeric_cache: dict[int, np.ndarray] = field(default_factory=dict, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not self.columns:
            raise DatasetFormatError("Dataset must have at least one column")
        width = len(self.columns)
        for row_number, row in enumerate(self.rows, start=1):
            if len(row) != width:
                raise DatasetFormatError(
                    f"Row {row_number} has {len(row)} fields, expected {width}",
                    row_number=row_number,
                )

    @classmethod
    def from_rows(
        cls,
        rows: Iterable[Sequence[str]],
        column_names: Sequence[str] | None = None,
    ) -> Dataset:
        """Build a dataset from raw rows, inferring which columns are numerical.

        Args:
            rows (Iterable[Sequence[str]]): Data rows; the last field is the label.
            column_names (Sequence[str] | None): Column names. Defaults to
                `x0, x1, ...` for features and `label` for the last column.

        Returns:
            Dataset: The dataset.

        Raises:
            DatasetFormatError: If the rows are ragged, do not match
                `column_names`, or no column names can be determined.

        Examples:
            >>> data = Dataset.from_rows([["a", "1", "yes"], ["b", "2", "no"]])
            >>> [column.is_numerical for column in data.columns]
            [False, True, False]
        """
        materialized = tuple(tuple(str(value) for value in row) for row in rows)
        if column_names is None:
            width = len(materialized[0]) if materialized else 0
            column_names = [*(f"x{index}" for index in range(width - 1)), "label"] if width else []
        names = list(column_names)
        for row_number, row in enumerate(materialized, start=1):
            if len(row) != len(names):
                raise DatasetFormatError(
                    f"Row {row_number} has {len(row)} fields, expected {len(names)}",
                    row_number=row_number,
                )
        return cls(rows=materialized, columns=infer_columns(materialized, names))

    @property
    def label_index(self) -> int:
        """Index of the label field in every row."""
        return len(self.columns) - 1

    @property
    def feature_indices(self) -> range:
        """Indices of the feature fields, in ascending order."""
        return range(self.label_index)

    def __len__(self) -> int:
        return len(self.rows)

    def view(self) -> RowView:
        """Return a view selecting every row, in storage order.

        Returns:
            RowView: View over the whole dataset.
        """
        return RowView(dataset=self, indices=tuple(range(len(self.rows))))

    def numeric_column(self, feature_index: int) -> np.ndarray:
        """Return the parsed values of a numerical column as a float64 array.

        The array is computed once per column and cached.

        Args:
            feature_index (int): Index of a numerical column.

        Returns:
            np.ndarray: 1-D float64 array aligned with `rows`.

        Raises:
            ValueError: If the column is not numerical.
        """
        if not self.columns[feature_index].is_numerical:
            raise ValueError(f"Column '{self.columns[feature_index].name}' is not numerical")
        cached = self._numeric_cache.get(feature_index)
        if cached is None:
            cached = np.array([parse_number(row[feature_index]) for row in self.rows], dtype=np.float64)
            self._numeric_cache[feature_index] = cached
        return cached


@dataclass(frozen=True)
class RowView:
    """A selection of rows from a `Dataset`, held as row indices.

    Attributes:
        dataset (Dataset): The backing dataset shared by every view over it.
        indices (tuple[int, ...]): Indices into `dataset.rows`.

    Examples:
        >>> data = Dataset.from_rows([["a", "yes"], ["b", "no"], ["a", "no"]])
        >>> view = data.view().select([0, 2])
        >>> view.labels()
        ['yes', 'no']
    """

    dataset: Dataset
    indices: tuple[int, ...]

    def __len__(self) -> int:
        return len(self.indices)

    def __iter__(self) -> Iterator[Row]:
        rows = self.dataset.rows
        return (rows[index] for index in self.indices)

    @property
    def columns(self) -> tuple[ColumnInfo, ...]:
        """Column descriptors of the backing dataset."""
        return self.dataset.columns

    def labels(self) -> list[str]:
        """Return the label of each selected row, in view order.

        Returns:
            list[str]: Labels in view order.
        """
        rows = self.dataset.rows
        label_index = self.dataset.label_index
        return [rows[index][label_index] for index in self.indices]

    def values(self, feature_index: int) -> list[str]:
        """Return the raw field values of one column, in view order.

        Args:
            feature_index (int): Column index.

        Returns:
            list[str]: Field values in view order.
        """
        rows = self.dataset.rows
        return [rows[index][feature_index] for index in self.indices]

    def numeric_values(self, feature_index: int) -> np.ndarray:
        """Return the parsed values of a numerical column, in view order.

        Args:
            feature_index (int): Index of a numerical column.

        Returns:
            np.ndarray: 1-D float64 array aligned with `indices`.
        """
        column = self.dataset.numeric_column(feature_index)
        return column[np.asarray(self.indices, dtype=np.intp)]

    def select(self, indices: Iterable[int]) -> RowView:
        """Return a view over a subset of rows of the same dataset.

        Args:
            indices (Iterable[int]): Dataset row indices to select.

        Returns:
            RowView: A view sharing this view's dataset.
        """
        return RowView(dataset=self.dataset, indices=tuple(int(index) for index in indices))


# ---------------------------------------------------------------------------
# Public interface -- Loading and splitting
# ---------------------------------------------------------------------------


def load_dataset(source: str | Path | pl.DataFrame) -> Dataset:
    """Load a labeled table from a CSV file or an in-memory DataFrame.

    The first CSV line is the header. Every value is read as a string; column
    types are inferred afterwards with `infer_columns`. The last column is the
    label.

    Args:
        source (str | Path | pl.DataFrame): Path to a CSV file, or a DataFrame
            whose last column is the label.

    Returns:
        Dataset: The loaded dataset.

    Raises:
        DatasetSourceError: If the file does not exist or cannot be read.
        DatasetFormatError: If the table has no columns, ragged rows, or
            missing values.
    """
    source_label = "<DataFrame>" if isinstance(source, pl.DataFrame) else str(source)
    logger.log(OPERATION_LEVEL, OPERATION_MSG.format(operation="load_dataset"), source=source_label)

    try:
        frame = source if isinstance(source, pl.DataFrame) else _read_csv(Path(source))
        dataset = _dataset_from_frame(frame)
    except (DatasetSourceError, DatasetFormatError) as error:
        error.source = source_label
        logger.warning(
            OPERATION_ERROR_MSG.format(operation="load_dataset"),
            source=source_label,
            error_type=type(error).__name__,
            message=str(error),
        )
        raise

    logger.log(
        OPERATION_LEVEL,
        OPERATION_RESULT_MSG.format(operation="load_dataset"),
        rows=len(dataset),
        columns=[column.name for column in dataset.columns],
        numerical=[column.name for column in dataset.columns if column.is_numerical],
    )
    return dataset


def split_train_test(dataset: Dataset, test_fraction: float, seed: int) -> tuple[RowView, RowView]:
    """Shuffle row indices and split them into disjoint train and test views.

    The first `int(len(dataset) * test_fraction)` shuffled rows form the test
    view and the rest form the train view. The dataset itself is not
    reordered.

    Args:
        dataset (Dataset): The dataset to split.
        test_fraction (float): Fraction of rows to hold out, in `[0, 1]`.
        seed (int): Seed for the shuffle; the same seed gives the same split.

    Returns:
        tuple[RowView, RowView]: A 2-tuple of `(train_view, test_view)`.

    Raises:
        ValueError: If `test_fraction` is outside `[0, 1]`.
    """
    logger.log(OPERATION_LEVEL, OPERATION_MSG.format(operation="split_train_test"), seed=seed)
    if not 0.0 <= test_fraction <= 1.0:
        raise ValueError(f"test_fraction must be between 0 and 1, got {test_fraction}")

    permutation = np.random.default_rng(seed).permutation(len(dataset))
    test_size = int(len(dataset) * test_fraction)
    full_view = dataset.view()
    test_view = full_view.select(permutation[:test_size])
    train_view = full_view.select(permutation[test_size:])

    logger.debug(
        OPERATION_RESULT_MSG.format(operation="split_train_test"),
        train_rows=len(train_view),
        test_rows=len(test_view),
    )
    return train_view, test_view


# ---------------------------------------------------------------------------
# Private helpers
# ---------------------------------------------------------------------------


def _read_csv(path: Path) -> pl.DataFrame:
    """Read a CSV file with every column as a string.

    Args:
        path (Path): The CSV file to read.

    Returns:
        pl.DataFrame: The raw table.

    Raises:
        DatasetSourceError: If the file does not exist or cannot be read.
        DatasetFormatError: If polars cannot parse the file as a table.
    """
    if not path.is_file():
        raise DatasetSourceError(f"Dataset file does not exist: {path}")
    try:
        return pl.read_csv(path, infer_schema=False)
    except OSError as exc:
        raise DatasetSourceError(f"Dataset file cannot be read: {exc}") from exc
    except pl.exceptions.NoDataError as exc:
        raise DatasetFormatError("Dataset file is empty; expected a header row") from exc
    except pl.exceptions.PolarsError as exc:
        raise DatasetFormatError(f"Dataset file is not a rectangular table: {exc}") from exc


def _dataset_from_frame(frame: pl.DataFrame) -> Dataset:
    """Convert a DataFrame into a `Dataset` of string rows.

    Args:
        frame (pl.DataFrame): Table whose last column is the label.

    Returns:
        Dataset: The dataset.

    Raises:
        DatasetFormatError: If the table has no columns or contains a null
            (missing field) anywhere.
    """
    if frame.width == 0:
        raise DatasetFormatError("Dataset must have at least one column")

    string_frame = frame.cast(pl.String)
    rows: list[Row] = []
    for row_number, raw_row in enumerate(string_frame.iter_rows(), start=1):
        if any(value is None for value in raw_row):
            missing = [name for name, value in zip(string_frame.columns, raw_row, strict=True) if value is None]
            raise DatasetFormatError(
                f"Row {row_number} is missing values for columns {missing}",
                row_number=row_number,
            )
        rows.append(tuple(raw_row))

    return Dataset(rows=tuple(rows), columns=infer_columns(rows, string_frame.columns))
