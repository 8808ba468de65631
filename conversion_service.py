import time
import uuid
import base64
import logging
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field
from utils.result import Result
from quotation_process import (
    QuotationRow,
    Totals,
    TransformError,
    TransformErrorCode,
    TransformOptions,
    transform_matrix_rows,
)
from workbook_adapter import (
    create_workbook_from_quotation,
    rows_from_workbook,
    serialize_workbook,
    workbook_from_bytes,
)

logger = logging.getLogger(__name__)


class LogContext:
    """Context manager for tracking and logging conversion stage timings"""
    def __init__(self, operation_name: str, **kwargs):
        self.operation_name = operation_name
        self.start_time = None
        self.request_id = kwargs.get('request_id', str(uuid.uuid4())[:8])
        self.extra = kwargs

    def __enter__(self):
        self.start_time = time.time()
        logger.info(f"Starting {self.operation_name}", extra={"request_id": self.request_id, **self.extra})
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        duration = time.time() - self.start_time
        if exc_type:
            logger.warning(
                f"Failed {self.operation_name} in {duration:.2f}s: {str(exc_val)}",
                extra={"request_id": self.request_id, "duration": duration, **self.extra}
            )
        else:
            logger.info(
                f"Completed {self.operation_name} in {duration:.2f}s",
                extra={"request_id": self.request_id, "duration": duration, **self.extra}
            )


class ConversionMetadata(BaseModel):
    """
    Details about a conversion shown alongside its rows.

    Attributes:
        source_name: Name of the uploaded file
        default_price: Price used for rows without a valid price
        row_count: Number of quotation rows produced
        output_name: Suggested file name for the generated workbook
    """
    model_config = ConfigDict(populate_by_name=True)

    source_name: str = Field(alias="sourceName")
    default_price: float = Field(alias="defaultPrice")
    row_count: int = Field(alias="rowCount")
    output_name: str = Field(alias="outputName")


class ConversionResponse(BaseModel):
    """Successful response body of the /convert endpoint"""
    model_config = ConfigDict(populate_by_name=True)

    rows: List[QuotationRow]
    totals: Totals
    warnings: List[str]
    metadata: ConversionMetadata
    excel_base64: str = Field(alias="excelBase64")


_STATUS_BY_CODE = {
    TransformErrorCode.INVALID_TEMPLATE: Result.invalid_template,
    TransformErrorCode.EMPTY_RESULT: Result.empty_result,
}


class ConversionService:
    """
    Converts one uploaded matrix workbook into a quotation.

    Runs parse, row extraction, transformation, workbook building and
    serialization, and maps every outcome onto a Result carrying the HTTP
    status and error code the API answers with.
    """

    def __init__(self, default_price: float, sheet_name: str = "Quotation"):
        self.default_price = default_price
        self.sheet_name = sheet_name

    def convert(self, data: Optional[bytes], source_name: Optional[str]) -> Result[ConversionResponse]:
        """
        Convert an uploaded file.

        Args:
            data: Uploaded bytes, None when no file was sent
            source_name: Original file name of the upload

        Returns:
            Result[ConversionResponse]: The response payload or a coded failure
        """
        if data is None:
            logger.warning("Conversion requested without a file")
            return Result.invalid_template('Missing uploaded file under field "file".')

        request_id = str(uuid.uuid4())[:8]
        log_context = {
            "request_id": request_id,
            "source_name": source_name,
            "size_bytes": len(data),
        }
        logger.info("Converting uploaded workbook", extra=log_context)

        try:
            with LogContext("workbook parsing", **log_context):
                raw_rows = rows_from_workbook(workbook_from_bytes(data))
            log_context["raw_row_count"] = len(raw_rows)

            with LogContext("matrix transformation", **log_context):
                transform_result = transform_matrix_rows(
                    raw_rows, TransformOptions(default_price=self.default_price)
                )

            with LogContext("quotation workbook export", **log_context):
                excel_bytes = serialize_workbook(
                    create_workbook_from_quotation(transform_result, sheet_name=self.sheet_name)
                )

        except TransformError as e:
            logger.warning(
                f"Conversion rejected: {e.message}",
                extra={**log_context, "error_code": e.code.value}
            )
            factory = _STATUS_BY_CODE.get(e.code)
            if factory is None:
                return Result.server_error(e.message, e.code.value)
            return factory(e.message)

        except Exception as e:
            logger.exception("Unexpected error during conversion", extra={**log_context, "error": str(e)})
            return Result.server_error("Unexpected server error occurred while processing file.")

        if transform_result.warnings:
            logger.info(
                f"Conversion produced {len(transform_result.warnings)} warnings",
                extra={**log_context, "warnings": transform_result.warnings}
            )

        response = ConversionResponse(
            rows=transform_result.rows,
            totals=transform_result.totals,
            warnings=transform_result.warnings,
            metadata=ConversionMetadata(
                source_name=source_name or "",
                default_price=self.default_price,
                row_count=len(transform_result.rows),
                output_name=f"quotation-{int(time.time() * 1000)}.xlsx",
            ),
            excel_base64=base64.b64encode(excel_bytes).decode("ascii"),
        )
        logger.info(
            f"Successfully converted workbook into {len(transform_result.rows)} quotation rows",
            extra=log_context
        )
        return Result.ok(response)
