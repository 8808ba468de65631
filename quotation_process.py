import re
import math
import logging
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Dict, List, Optional, Sequence, Union
from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

DEFAULT_PRICE = 0.8

# Normalized names of the accounting columns; every other header is a color
FIXED_COLUMNS = frozenset({
    "model",
    "qty",
    "price",
    "amount,usd",
    "amount",
    "amountusd",
})

# Leading numeric prefix of a cell, e.g. "10" in "10 pcs"
_NUMBER_PREFIX = re.compile(r"[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")

CellValue = Union[str, int, float, None]
RawRow = Dict[str, CellValue]


class TransformErrorCode(str, Enum):
    """Error codes raised by the conversion core"""
    INVALID_TEMPLATE = "INVALID_TEMPLATE"
    PARSE_ERROR = "PARSE_ERROR"
    EMPTY_RESULT = "EMPTY_RESULT"


class TransformError(Exception):
    """
    Structural failure of a conversion.

    Attributes:
        message: Human readable description
        code: TransformErrorCode describing the kind of failure
    """
    def __init__(self, message: str, code: TransformErrorCode):
        super().__init__(message)
        self.message = message
        self.code = code


class QuotationRow(BaseModel):
    """
    One flattened model + color line of the quotation.

    Attributes:
        model_no: Model identifier as written in the source sheet
        category_name: Same as model_no
        color: Variant column header, trimmed
        qty: Quantity, always greater than zero
        price_usd: Unit price
        amount_usd: qty * price_usd rounded to 2 decimals
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True, protected_namespaces=())

    model_no: str = Field(alias="modelNo")
    category_name: str = Field(alias="categoryName")
    color: str
    qty: float
    price_usd: float = Field(alias="priceUSD")
    amount_usd: float = Field(alias="amountUSD")


class Totals(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    total_qty: float = Field(alias="totalQty")
    total_amount: float = Field(alias="totalAmount")


class TransformResult(BaseModel):
    """Rows, totals and warnings produced by a single transformation"""
    model_config = ConfigDict(populate_by_name=True)

    rows: List[QuotationRow]
    totals: Totals
    warnings: List[str] = Field(default_factory=list)


class TransformOptions(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    default_price: Optional[float] = Field(default=None, alias="defaultPrice")


def parse_number(value: CellValue) -> Optional[float]:
    """
    Parse a cell value into a finite number.

    Numbers are returned as they are. Strings are trimmed and stripped of
    thousands separators, then their leading number is read, so "10 pcs"
    gives 10. Anything else, including blanks, booleans, NaN and
    infinities, gives None.

    Args:
        value: Raw cell value

    Returns:
        Optional[float]: The parsed number or None
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value if math.isfinite(value) else None
    if isinstance(value, str):
        trimmed = value.strip()
        if not trimmed:
            return None
        match = _NUMBER_PREFIX.match(trimmed.replace(",", ""))
        if match is None:
            return None
        parsed = float(match.group(0))
        return parsed if math.isfinite(parsed) else None
    return None


def round_money(value: float) -> float:
    """Round to 2 decimals with ties going up, as spreadsheets do."""
    return float(Decimal(value).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def normalize_header(header: str) -> str:
    """Strip all whitespace and lowercase a header for comparison."""
    return "".join(header.split()).lower()


def extract_headers(rows: Sequence[RawRow]) -> List[str]:
    """
    Collect the union of header names across all rows.

    Rows may carry different keys, so every row is scanned. Order is the
    order in which each header is first seen.

    Args:
        rows: Raw rows read from the worksheet

    Returns:
        List[str]: Distinct, non-empty header names
    """
    headers: Dict[str, None] = {}
    for row in rows:
        for key in row:
            if key:
                headers.setdefault(key, None)
    return list(headers)


def ensure_model_column(headers: Sequence[str]) -> None:
    if not any(normalize_header(header) == "model" for header in headers):
        raise TransformError('Missing required column "Model".', TransformErrorCode.INVALID_TEMPLATE)


def identify_color_columns(headers: Sequence[str]) -> List[str]:
    """
    Return every header that is not one of the fixed accounting columns.

    Args:
        headers: Header union in first-seen order

    Returns:
        List[str]: Color column headers, original text, same order

    Raises:
        TransformError: INVALID_TEMPLATE when no color column remains
    """
    color_columns = [
        header for header in headers
        if header and normalize_header(header) not in FIXED_COLUMNS
    ]
    if not color_columns:
        raise TransformError("No color columns detected in worksheet.", TransformErrorCode.INVALID_TEMPLATE)
    return color_columns


def _first_present(row: RawRow, *keys: str) -> CellValue:
    for key in keys:
        value = row.get(key)
        if value is not None:
            return value
    return None


def _resolve_price(row: RawRow, default_price: float, warnings: List[str]) -> float:
    price = parse_number(_first_present(row, "Price", "price"))
    if price is None or price <= 0:
        warnings.append("Price column missing or invalid; fallback to default price.")
        return default_price
    return price


def transform_matrix_rows(
    rows: Sequence[RawRow],
    options: Optional[TransformOptions] = None
) -> TransformResult:
    """
    Expand matrix rows (one per model) into quotation rows (one per model and color).

    For each raw row the model and price are resolved, then every color
    column with a positive quantity yields a QuotationRow. Row-level problems
    (blank model, bad price, unparsable quantity) are collected as warnings;
    rows are numbered as they appear in a sheet with one header row.

    Args:
        rows: Raw rows mapping header text to cell value
        options: Optional TransformOptions; default_price falls back to 0.8

    Returns:
        TransformResult: Emitted rows, totals and warnings

    Raises:
        TransformError: PARSE_ERROR when no headers are found, INVALID_TEMPLATE
            when the Model column or color columns are missing, EMPTY_RESULT
            when no quotation row was produced
    """
    default_price = DEFAULT_PRICE
    if options is not None and options.default_price is not None:
        default_price = options.default_price

    headers = extract_headers(rows)
    if not headers:
        raise TransformError("Could not detect headers in worksheet.", TransformErrorCode.PARSE_ERROR)

    ensure_model_column(headers)
    color_columns = identify_color_columns(headers)
    logger.debug("Detected color columns", extra={"color_columns": color_columns})

    result_rows: List[QuotationRow] = []
    warnings: List[str] = []
    total_qty = 0.0
    total_amount = 0.0

    for index, row in enumerate(rows):
        row_number = index + 2
        model_value = _first_present(row, "Model", "model")
        model = "" if model_value is None else str(model_value).strip()

        if not model:
            warnings.append(f"Row {row_number}: Missing model name, skipping.")
            continue

        price = _resolve_price(row, default_price, warnings)

        for color_column in color_columns:
            qty = parse_number(row.get(color_column))

            if qty is None:
                warnings.append(f'Row {row_number}, column "{color_column}": Invalid quantity, ignored.')
                continue

            # Zero or negative means the model is not ordered in this color
            if qty <= 0:
                continue

            amount = round_money(qty * price)
            result_rows.append(QuotationRow(
                model_no=model,
                category_name=model,
                color=color_column.strip(),
                qty=qty,
                price_usd=price,
                amount_usd=amount,
            ))
            total_qty += qty
            total_amount += amount

    if not result_rows:
        raise TransformError("No valid rows produced from worksheet.", TransformErrorCode.EMPTY_RESULT)

    return TransformResult(
        rows=result_rows,
        totals=Totals(total_qty=total_qty, total_amount=round_money(total_amount)),
        warnings=warnings,
    )
