from fastapi import FastAPI, File, Request, UploadFile
import os
import logging
from datetime import datetime
from typing import Optional
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from config import settings
from conversion_service import ConversionService, ConversionResponse
from utils.result import Result


# Create logs directory if it doesn't exist
os.makedirs(settings.log_dir, exist_ok=True)

# Configure logging
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# Add file handler to write logs to file; attached to the root logger so
# conversion modules land in the same file
log_file_path = os.path.join(settings.log_dir, f"app_{datetime.now().strftime('%Y%m%d')}.log")
file_handler = logging.FileHandler(log_file_path)
file_handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
logging.getLogger().addHandler(file_handler)


# Initialize FastAPI app with metadata
app = FastAPI(
    title="Matrix Quotation Converter API",
    description="API for converting matrix order sheets into flat quotation workbooks",
    version=settings.version,
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

conversion_service = ConversionService(
    default_price=settings.default_price,
    sheet_name=settings.sheet_name
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Answer malformed form submissions (e.g. "file" sent as plain text)
    with the same error envelope as the conversion itself.
    """
    logger.warning(f"Rejected malformed request to {request.url.path}: {exc.errors()}")
    result = Result.invalid_template('Missing uploaded file under field "file".')
    return JSONResponse(status_code=result.status_code.value, content=result.to_dict())


# API Endpoints
@app.post(
    "/convert",
    tags=["Quotation Conversion"],
    response_model=ConversionResponse,
    response_model_by_alias=True
)
def convert_matrix_workbook(file: Optional[UploadFile] = File(None)):
    """
    Convert an uploaded matrix workbook (.xlsx / .xls) into a quotation.

    The first sheet must have a Model column; a Price column is optional and
    every other column except Qty/Amount is read as a color with a quantity.

    Returns:
        dict: JSON response with:
            - rows: Flat quotation rows (model, color, qty, price, amount)
            - totals: Total quantity and amount
            - warnings: Row-level problems that were skipped over
            - metadata: Source file name, default price, row count, output name
            - excelBase64: Generated quotation workbook, base64 encoded
    """
    data = None
    source_name = None
    if file is not None:
        source_name = file.filename
        data = file.file.read()
    logger.info(f"Received conversion request for {source_name}")

    result = conversion_service.convert(data, source_name)

    # Single exit point
    return JSONResponse(status_code=result.status_code.value, content=result.to_dict())


# Run the application if executed directly
if __name__ == "__main__":
    import uvicorn
    logger.info("Starting Matrix Quotation Converter API in development mode.")
    uvicorn.run("main:app", host=settings.host, port=settings.port, reload=True)
