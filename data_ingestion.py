"""
Data ingestion module for reading transaction CSV files.

This module reads ``Date,Category,Amount`` files with pandas and hands the
rows to the core as raw string tuples. It does not interpret the values:
validation belongs to ``validation.RecordValidator``. Structural problems
(missing file, empty file, wrong header) raise ``IngestionError``; rows with
the wrong number of columns are reported and skipped.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Union

import pandas as pd
from pandas import errors as pd_errors

from exceptions import IngestionError
from validation import RawRow

# Configure logging
logger = logging.getLogger(__name__)

EXPECTED_HEADER = ["Date", "Category", "Amount"]

_FILENAME_YEAR_PATTERN = re.compile(r"20\d{2}")


@dataclass
class CSVReadResult:
    """
    Rows read from one CSV file.

    Attributes:
        path: Source file
        rows: Well-formed rows as RawRow tuples (row numbers are 1-based data rows)
        malformed: Field lists, as read, of rows with the wrong number of columns
        malformed_row_numbers: 1-based data row numbers of the malformed rows
        file_year: Four-digit year found in the file name, if any
    """
    path: Path
    rows: List[RawRow] = field(default_factory=list)
    malformed: List[List[str]] = field(default_factory=list)
    malformed_row_numbers: List[int] = field(default_factory=list)
    file_year: Optional[int] = None


def extract_year_from_filename(file_name: Union[str, Path]) -> Optional[int]:
    """
    Extract a four-digit 20xx year from a file name.

    Examples:
        >>> extract_year_from_filename("PFM_2024_data.csv")
        2024
        >>> extract_year_from_filename("budget.csv") is None
        True
    """
    match = _FILENAME_YEAR_PATTERN.search(Path(file_name).name)
    return int(match.group()) if match else None


class CSVReader:
    """
    Reads transaction CSV files.

    Handles:
    - UTF-8 and latin-1 encoded files
    - Blank lines (ignored)
    - Rows with extra or missing columns (reported, skipped)
    """

    def __init__(self, encodings: Optional[List[str]] = None):
        """
        Initialize the CSV reader.

        Args:
            encodings: Encodings to try in order (default: utf-8, then latin-1).
        """
        self.encodings = encodings or ["utf-8", "latin-1"]
        logger.info("CSV reader initialized with encodings %s", self.encodings)

    def _read_frame(self, file_path: Path, over_long: List[List[str]]) -> pd.DataFrame:
        """
        Read the file into a string-typed DataFrame, trying each encoding in turn.

        The header line is read as the first data row so pandas never infers an
        index from an over-long first data row. Over-long rows stay in the frame
        as all-missing placeholder rows, keeping every row at its file position;
        their fields are collected in ``over_long`` in file order.
        """

        def _record_bad_line(fields: List[str]) -> List[None]:
            over_long.append(list(fields))
            return [None] * len(EXPECTED_HEADER)

        last_error: Optional[Exception] = None
        for encoding in self.encodings:
            over_long.clear()
            params: Dict[str, object] = {
                "header": None,
                "names": EXPECTED_HEADER,
                "dtype": str,
                "keep_default_na": False,
                "skip_blank_lines": True,
                "skipinitialspace": True,
                "engine": "python",
                "on_bad_lines": _record_bad_line,
                "encoding": encoding,
            }
            try:
                logger.debug("Attempting to read '%s' with params: %s", file_path, params)
                return pd.read_csv(file_path, **params)
            except pd_errors.EmptyDataError as exc:
                raise IngestionError("CSV file is empty", details={"path": str(file_path)}, original_error=exc) from exc
            except (UnicodeDecodeError, pd_errors.ParserError, ValueError) as exc:
                last_error = exc
                logger.debug("Read attempt failed for '%s' with encoding %s: %s", file_path, encoding, exc)
                continue

        raise IngestionError(
            f"Failed to read CSV '{file_path}'", details={"path": str(file_path)}, original_error=last_error
        ) from last_error

    @staticmethod
    def _check_header(df: pd.DataFrame, file_path: Path) -> None:
        if df.empty:
            raise IngestionError("CSV file is empty", details={"path": str(file_path)})

        header = [str(value).strip() for value in df.iloc[0].tolist() if not pd.isna(value)]
        if not isinstance(df.index, pd.RangeIndex):
            # A header with more fields than expected makes pandas use its
            # leading fields as the index.
            header.insert(0, str(df.index[0]).strip())
        if header != EXPECTED_HEADER:
            raise IngestionError(
                "Invalid CSV header",
                details={
                    "path": str(file_path),
                    "expected": ",".join(EXPECTED_HEADER),
                    "found": ",".join(header),
                },
            )

    def read_rows(self, file_path: Union[str, Path]) -> CSVReadResult:
        """
        Read a transaction CSV file.

        Args:
            file_path: Path to the CSV file.

        Returns:
            CSVReadResult with well-formed rows and malformed row fields.

        Raises:
            IngestionError: If the file is missing, empty, unreadable or has
                a header other than ``Date,Category,Amount``.
        """
        path = Path(file_path)
        if not path.exists():
            message = f"CSV file not found: {path}"
            logger.error(message)
            raise IngestionError(message, details={"path": str(path)})

        logger.info("Reading CSV file: %s", path)
        result = CSVReadResult(path=path, file_year=extract_year_from_filename(path))
        over_long: List[List[str]] = []
        df = self._read_frame(path, over_long)
        self._check_header(df, path)

        pending_over_long = iter(over_long)
        data_rows = df.iloc[1:].itertuples(index=False, name=None)
        for position, values in enumerate(data_rows, start=1):
            missing = [pd.isna(value) for value in values]
            if all(missing):
                result.malformed.append(next(pending_over_long))
                result.malformed_row_numbers.append(position)
                continue
            if any(missing):
                # Short rows are padded with missing values by pandas.
                width = missing.index(True)
                result.malformed.append([str(value) for value in values[:width]])
                result.malformed_row_numbers.append(position)
                continue
            fields = [str(value) for value in values]
            result.rows.append(RawRow(fields[0].strip(), fields[1].strip(), fields[2].strip(), position))

        if result.malformed:
            logger.warning(
                "Skipped %s row(s) in '%s' with the wrong number of columns (rows %s)",
                len(result.malformed),
                path,
                ", ".join(str(number) for number in result.malformed_row_numbers),
            )
        logger.info("Successfully read %s rows from '%s'", len(result.rows), path)
        return result


def check_file_year(file_year: Optional[int], batch_year: Optional[int]) -> bool:
    """
    Cross-check the year in a file name against the batch year of its data.

    Returns:
        False (and logs a warning) when both years are known and differ.
    """
    if file_year is None or batch_year is None or file_year == batch_year:
        return True
    logger.warning("File name year (%s) does not match CSV date year (%s)", file_year, batch_year)
    return False
