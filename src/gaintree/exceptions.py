"""Custom exceptions for gaintree.

Tree induction and prediction never raise for data reasons: empty training
sets, unseen categories and unparsable numbers are designed outcomes. The
exceptions here belong to the data-loading boundary:

- DatasetError: Base class for all data-source failures. Catch this to handle
  any problem reading a dataset.
- DatasetSourceError: Raised when the source is missing or unreadable.
- DatasetFormatError: Raised when the source is readable but not a
  well-formed rectangular table (ragged rows, missing values, no columns).
"""

from __future__ import annotations


class DatasetError(Exception):
    """Base exception for all data-source errors.

    Attributes:
        source (str | None): Description of the data source that failed,
            typically a file path.
    """

    source: str | None

    def __init__(self, message: str, source: str | None = None) -> None:
        """Initialize DatasetError.

        Args:
            message (str): Description of the failure.
            source (str | None): The data source that failed.
        """
        super().__init__(message)
        self.source = source

    def __repr__(self) -> str:
        """Return detailed representation for debugging.

        Returns:
            str: Detailed string representation including message and source.
        """
        return f"{self.__class__.__name__}(message={str(self)!r}, source={self.source!r})"


class DatasetSourceError(DatasetError):
    """Raised when a data source does not exist or cannot be read.

    Examples:
        >>> err = DatasetSourceError("Dataset file does not exist", source="drug200.csv")
        >>> err.source
        'drug200.csv'
    """


class DatasetFormatError(DatasetError):
    """Raised when a data source is not a well-formed rectangular table.

    Rows are never dropped silently; the first malformed row is reported.

    Attributes:
        row_number (int | None): 1-indexed data row number (header excluded)
            of the first malformed row, when known.

    Examples:
        >>> err = DatasetFormatError("Row has 2 fields, expected 3", row_number=4)
        >>> err.row_number
        4
    """

    row_number: int | None

    def __init__(
        self,
        message: str,
        source: str | None = None,
        *,
        row_number: int | None = None,
    ) -> None:
        """Initialize DatasetFormatError.

        Args:
            message (str): Description of the malformed content.
            source (str | None): The data source that failed.
            row_number (int | None): 1-indexed data row number of the first
                malformed row, when known.
        """
        super().__init__(message, source)
        self.row_number = row_number

    def __repr__(self) -> str:
        """Return detailed representation for debugging.

        Returns:
            str: Detailed string representation including message, source and row number.
        """
        return (
            f"{self.__class__.__name__}(message={str(self)!r}, source={self.source!r}, row_number={self.row_number!r})"
        )
