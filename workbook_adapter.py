import io
import time
import logging
from typing import Dict, List
import pandas as pd
from quotation_process import RawRow, TransformError, TransformErrorCode, TransformResult

logger = logging.getLogger(__name__)

# Sheet name -> sheet contents, the shape pandas.read_excel(sheet_name=None) returns
Workbook = Dict[str, pd.DataFrame]

QUOTATION_COLUMNS = [
    "Model No.",
    "Category / Name",
    "color",
    "QTY",
    "PRICE (USD)",
    "Amount (USD)",
]

# pandas labels header cells left blank in the sheet as "Unnamed: <n>"
_UNNAMED_PREFIX = "Unnamed:"


def workbook_from_bytes(data: bytes) -> Workbook:
    """
    Decode uploaded spreadsheet bytes into a workbook.

    Every sheet is read with all cells kept as text and empty cells as "".
    The engine (openpyxl for .xlsx, xlrd for .xls) is picked by pandas from
    the file contents.

    Args:
        data: Raw bytes of the uploaded file

    Returns:
        Workbook: Sheets in workbook order

    Raises:
        TransformError: PARSE_ERROR if the bytes are not a readable spreadsheet
    """
    try:
        start_time = time.time()
        workbook = pd.read_excel(io.BytesIO(data), sheet_name=None, dtype=str, keep_default_na=False)
        logger.info(
            "Successfully read workbook",
            extra={
                "sheet_count": len(workbook),
                "size_bytes": len(data),
                "read_time_seconds": f"{time.time() - start_time:.2f}"
            }
        )
        return workbook
    except Exception as e:
        logger.error(
            "Failed to read workbook",
            extra={"error": str(e), "error_type": type(e).__name__}
        )
        raise TransformError(f"Failed to parse workbook: {e}", TransformErrorCode.PARSE_ERROR) from e


def rows_from_workbook(workbook: Workbook) -> List[RawRow]:
    """
    Read the first sheet of a workbook as a list of header -> value rows.

    Later sheets are ignored. Columns without a header and rows where every
    cell is empty are dropped; missing cells become "".
    Whitespace-only cells are kept so the model check can report them.

    Args:
        workbook: Workbook returned by workbook_from_bytes

    Returns:
        List[RawRow]: One dict per data row

    Raises:
        TransformError: PARSE_ERROR if there is no sheet or the first sheet has no rows
    """
    if not workbook:
        raise TransformError("Workbook does not contain any sheets.", TransformErrorCode.PARSE_ERROR)

    first_sheet_name = next(iter(workbook))
    frame = workbook[first_sheet_name].copy()
    frame.columns = [str(column) for column in frame.columns]
    frame = frame[[column for column in frame.columns if not column.startswith(_UNNAMED_PREFIX)]]
    frame = frame.fillna("")

    blank_rows = (frame.astype(str) == "").all(axis=1)
    frame = frame.loc[~blank_rows]

    if frame.empty:
        raise TransformError("Worksheet is empty.", TransformErrorCode.PARSE_ERROR)

    logger.info(
        "Extracted rows from first sheet",
        extra={"sheet_name": first_sheet_name, "row_count": len(frame), "columns": list(frame.columns)}
    )
    return frame.to_dict(orient="records")


def create_workbook_from_quotation(result: TransformResult, sheet_name: str = "Quotation") -> Workbook:
    """
    Build the output workbook: one line per quotation row plus a total line.

    Args:
        result: Transformation output
        sheet_name: Name of the single sheet

    Returns:
        Workbook: Workbook with one sheet
    """
    sheet_rows = [
        {
            "Model No.": row.model_no,
            "Category / Name": row.category_name,
            "color": row.color,
            "QTY": row.qty,
            "PRICE (USD)": row.price_usd,
            "Amount (USD)": row.amount_usd,
        }
        for row in result.rows
    ]
    sheet_rows.append({
        "Model No.": None,
        "Category / Name": None,
        "color": "total:",
        "QTY": result.totals.total_qty,
        "PRICE (USD)": None,
        "Amount (USD)": result.totals.total_amount,
    })
    return {sheet_name: pd.DataFrame(sheet_rows, columns=QUOTATION_COLUMNS)}


def serialize_workbook(workbook: Workbook) -> bytes:
    """
    Write a workbook to .xlsx bytes.

    Raises:
        TransformError: PARSE_ERROR wrapping any writer failure
    """
    buffer = io.BytesIO()
    try:
        with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
            for sheet_name, frame in workbook.items():
                frame.to_excel(writer, sheet_name=sheet_name, index=False)
    except Exception as e:
        logger.error(
            "Failed to serialize workbook",
            extra={"error": str(e), "error_type": type(e).__name__}
        )
        raise TransformError(f"Failed to serialize workbook: {e}", TransformErrorCode.PARSE_ERROR) from e
    return buffer.getvalue()
