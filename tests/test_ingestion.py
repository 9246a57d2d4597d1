"""
Ingestion tests for the transaction CSV reader.
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from data_ingestion import CSVReader, check_file_year, extract_year_from_filename
from exceptions import IngestionError
from validation import RawRow


VALID_CSV = (
    "Date,Category,Amount\n"
    "01/05/2024,Compensation,5000\n"
    "01/10/2024,Rent,-1200\n"
    "\n"
    "02/01/2024,Food,-300\n"
)


class TestReadRows:
    """Test reading well-formed and malformed files."""

    def test_reads_rows_as_strings(self, write_csv):
        result = CSVReader().read_rows(write_csv(VALID_CSV))
        assert result.rows == [
            RawRow("01/05/2024", "Compensation", "5000", 1),
            RawRow("01/10/2024", "Rent", "-1200", 2),
            RawRow("02/01/2024", "Food", "-300", 3),
        ]
        assert result.malformed == []
        assert result.file_year == 2024

    def test_values_are_not_interpreted(self, write_csv):
        path = write_csv("Date,Category,Amount\n01/05/2024,Food,-012.50\n")
        result = CSVReader().read_rows(path)
        assert result.rows[0].amount == "-012.50"

    def test_empty_fields_are_kept_for_validation(self, write_csv):
        path = write_csv("Date,Category,Amount\n01/05/2024,,-5\n")
        result = CSVReader().read_rows(path)
        assert result.rows == [RawRow("01/05/2024", "", "-5", 1)]

    def test_rows_with_extra_columns_are_skipped(self, write_csv):
        path = write_csv(
            "Date,Category,Amount\n"
            "01/05/2024,Compensation,5000\n"
            "01/06/2024,Food,-20\n"
            "01/07/2024,Food,-5,extra\n"
            "01/08/2024,Food,-10\n"
        )
        result = CSVReader().read_rows(path)
        assert [row.date for row in result.rows] == ["01/05/2024", "01/06/2024", "01/08/2024"]
        assert [row.row_number for row in result.rows] == [1, 2, 4]
        assert result.malformed == [["01/07/2024", "Food", "-5", "extra"]]
        assert result.malformed_row_numbers == [3]

    def test_extra_column_in_first_data_row(self, write_csv):
        path = write_csv(
            "Date,Category,Amount\n"
            "01/01/2024,Food,-5,EXTRA\n"
            "01/02/2024,Compensation,100\n"
            "01/04/2024,Rent,-7\n"
        )
        result = CSVReader().read_rows(path)
        assert result.rows == [
            RawRow("01/02/2024", "Compensation", "100", 2),
            RawRow("01/04/2024", "Rent", "-7", 3),
        ]
        assert result.malformed == [["01/01/2024", "Food", "-5", "EXTRA"]]
        assert result.malformed_row_numbers == [1]

    def test_short_rows_keep_fields_as_read(self, write_csv):
        path = write_csv(
            "Date,Category,Amount\n"
            "01/02/2024,\n"
            "01/03/2024,Food,-6\n"
            "01/04/2024\n"
        )
        result = CSVReader().read_rows(path)
        assert result.rows == [RawRow("01/03/2024", "Food", "-6", 2)]
        assert result.malformed == [["01/02/2024", ""], ["01/04/2024"]]
        assert result.malformed_row_numbers == [1, 3]

    def test_wrong_header_with_extra_field_raises(self, write_csv):
        path = write_csv("Date,Category,Amount,Note\n01/05/2024,Food,-5,lunch\n")
        with pytest.raises(IngestionError) as exc_info:
            CSVReader().read_rows(path)
        assert exc_info.value.details["found"] == "Date,Category,Amount,Note"

    def test_missing_file_raises(self, tmp_path: Path):
        with pytest.raises(IngestionError):
            CSVReader().read_rows(tmp_path / "missing.csv")

    def test_empty_file_raises(self, write_csv):
        with pytest.raises(IngestionError):
            CSVReader().read_rows(write_csv(""))

    def test_wrong_header_raises(self, write_csv):
        path = write_csv("When,What,HowMuch\n01/05/2024,Food,-5\n")
        with pytest.raises(IngestionError) as exc_info:
            CSVReader().read_rows(path)
        assert exc_info.value.details["found"] == "When,What,HowMuch"

    def test_header_only_file_has_no_rows(self, write_csv):
        result = CSVReader().read_rows(write_csv("Date,Category,Amount\n"))
        assert result.rows == []

    def test_latin1_file(self, tmp_path: Path):
        path = tmp_path / "budget.csv"
        path.write_bytes("Date,Category,Amount\n01/05/2024,Caf\xe9,-5\n".encode("latin-1"))
        result = CSVReader().read_rows(path)
        assert result.rows[0].category == "Caf\xe9"
        assert result.file_year is None


class TestFileYear:
    """Test file name year handling."""

    @pytest.mark.parametrize(
        "name, expected",
        [("PFM_2024_data.csv", 2024), ("budget-2031.csv", 2031), ("budget.csv", None), ("1999.csv", None)],
    )
    def test_extract_year_from_filename(self, name, expected):
        assert extract_year_from_filename(name) == expected

    def test_matching_years(self):
        assert check_file_year(2024, 2024)

    def test_unknown_years_are_not_compared(self):
        assert check_file_year(None, 2024)
        assert check_file_year(2024, None)

    def test_mismatch_is_logged(self):
        with patch("data_ingestion.logger") as mock_logger:
            assert not check_file_year(2023, 2024)
        mock_logger.warning.assert_called_once()
