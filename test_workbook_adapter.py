import pytest
import pandas as pd
from unittest.mock import patch
from quotation_process import (
    QuotationRow,
    Totals,
    TransformError,
    TransformErrorCode,
    TransformResult,
    transform_matrix_rows,
)
from workbook_adapter import (
    QUOTATION_COLUMNS,
    create_workbook_from_quotation,
    rows_from_workbook,
    serialize_workbook,
    workbook_from_bytes,
)


@pytest.fixture
def sample_result():
    """
    Fixture providing a one-row transformation result.

    Returns:
        TransformResult: Result with a single quotation row
    """
    return TransformResult(
        rows=[
            QuotationRow(
                model_no="Model A",
                category_name="Model A",
                color="Black",
                qty=10,
                price_usd=0.8,
                amount_usd=8,
            )
        ],
        totals=Totals(total_qty=10, total_amount=8),
        warnings=[],
    )


class TestWorkbookFromBytes:
    """
    Tests for decoding uploaded bytes.
    """

    @pytest.mark.parametrize(
        "data",
        [b"not-an-excel-file", b"", b"PK\x03\x04broken-zip"],
        ids=["text", "empty", "truncated-zip"]
    )
    def test_invalid_bytes_raise_parse_error(self, data):
        with pytest.raises(TransformError) as exc_info:
            workbook_from_bytes(data)

        assert exc_info.value.code == TransformErrorCode.PARSE_ERROR
        assert "Failed to parse workbook" in exc_info.value.message

    def test_reads_every_sheet_in_order(self, make_xlsx):
        data = make_xlsx({
            "Orders": [{"Model": "A", "Black": 1}],
            "Notes": [{"Note": "ignored"}],
        })

        workbook = workbook_from_bytes(data)

        assert list(workbook) == ["Orders", "Notes"]


class TestRowsFromWorkbook:
    """
    Tests for extracting raw rows from the first sheet.
    """

    def test_values_are_kept_as_text(self, matrix_xlsx):
        rows = rows_from_workbook(workbook_from_bytes(matrix_xlsx))

        assert len(rows) == 2
        assert rows[0]["Model"] == "IP 12/12 pro"
        assert all(isinstance(value, str) for row in rows for value in row.values())
        assert float(rows[1]["Price"]) == 1.2

    def test_only_first_sheet_is_read(self, make_xlsx):
        data = make_xlsx({
            "First": [{"Model": "A", "Black": 1}],
            "Second": [{"Model": "B", "Red": 2}, {"Model": "C", "Red": 3}],
        })

        rows = rows_from_workbook(workbook_from_bytes(data))

        assert len(rows) == 1
        assert set(rows[0]) == {"Model", "Black"}

    def test_empty_rows_are_dropped_and_missing_cells_are_empty(self):
        workbook = {
            "Sheet1": pd.DataFrame({
                "Model": ["A", "", "  ", "B"],
                "Black": ["1", "", "", None],
            })
        }

        rows = rows_from_workbook(workbook)

        assert rows == [
            {"Model": "A", "Black": "1"},
            {"Model": "  ", "Black": ""},
            {"Model": "B", "Black": ""},
        ]

    def test_whitespace_model_row_reaches_the_model_check(self):
        workbook = {
            "Sheet1": pd.DataFrame({
                "Model": ["A", "   "],
                "Black": ["1", ""],
            })
        }

        result = transform_matrix_rows(rows_from_workbook(workbook))

        assert len(result.rows) == 1
        assert "Row 3: Missing model name, skipping." in result.warnings

    def test_unnamed_columns_are_dropped(self):
        workbook = {
            "Sheet1": pd.DataFrame({"Model": ["A"], "Unnamed: 1": ["x"], "Black": ["3"]})
        }

        rows = rows_from_workbook(workbook)

        assert list(rows[0]) == ["Model", "Black"]

    def test_non_string_headers_are_stringified(self):
        workbook = {"Sheet1": pd.DataFrame({"Model": ["A"], 2024: ["5"]})}

        rows = rows_from_workbook(workbook)

        assert rows[0]["2024"] == "5"

    def test_no_sheets_raise_parse_error(self):
        with pytest.raises(TransformError) as exc_info:
            rows_from_workbook({})

        assert exc_info.value.code == TransformErrorCode.PARSE_ERROR
        assert "does not contain any sheets" in exc_info.value.message

    def test_header_only_sheet_raises_parse_error(self, make_xlsx):
        data = make_xlsx({"Orders": pd.DataFrame(columns=["Model", "Black"])})

        with pytest.raises(TransformError) as exc_info:
            rows_from_workbook(workbook_from_bytes(data))

        assert exc_info.value.code == TransformErrorCode.PARSE_ERROR
        assert "Worksheet is empty" in exc_info.value.message


class TestCreateWorkbookFromQuotation:
    """
    Tests for building the output workbook.
    """

    def test_builds_single_sheet_with_total_row(self, sample_result):
        workbook = create_workbook_from_quotation(sample_result)

        assert list(workbook) == ["Quotation"]
        frame = workbook["Quotation"]
        assert list(frame.columns) == QUOTATION_COLUMNS
        assert len(frame) == 2

        first = frame.iloc[0]
        assert first["Model No."] == "Model A"
        assert first["Category / Name"] == "Model A"
        assert first["color"] == "Black"
        assert first["PRICE (USD)"] == 0.8

        total = frame.iloc[-1]
        assert total["color"] == "total:"
        assert total["QTY"] == 10
        assert total["Amount (USD)"] == 8
        assert pd.isna(total["Model No."])
        assert pd.isna(total["PRICE (USD)"])

    def test_custom_sheet_name(self, sample_result):
        assert list(create_workbook_from_quotation(sample_result, sheet_name="Offer")) == ["Offer"]


class TestSerializeWorkbook:
    """
    Tests for writing workbooks to bytes.
    """

    def test_serializes_to_xlsx_bytes(self, sample_result):
        data = serialize_workbook(create_workbook_from_quotation(sample_result))

        assert isinstance(data, bytes)
        assert data[:2] == b"PK"

    def test_round_trip_keeps_rows_and_total(self, matrix_rows):
        """
        Test that a serialized quotation can be read back: every quotation
        row plus the total row come back in order.

        Args:
            matrix_rows: Fixture providing raw matrix rows
        """
        result = transform_matrix_rows(matrix_rows)

        data = serialize_workbook(create_workbook_from_quotation(result))
        rows = rows_from_workbook(workbook_from_bytes(data))

        assert len(rows) == len(result.rows) + 1
        assert [row["color"] for row in rows] == ["18#Black", "5#Lilac Blue", "Red", "total:"]
        assert float(rows[-1]["QTY"]) == result.totals.total_qty
        assert float(rows[-1]["Amount (USD)"]) == result.totals.total_amount
        assert rows[-1]["Model No."] == ""

    def test_writer_failure_raises_parse_error(self, sample_result):
        workbook = create_workbook_from_quotation(sample_result)

        with patch("workbook_adapter.pd.ExcelWriter", side_effect=OSError("disk full")):
            with pytest.raises(TransformError) as exc_info:
                serialize_workbook(workbook)

        assert exc_info.value.code == TransformErrorCode.PARSE_ERROR
        assert "disk full" in exc_info.value.message
