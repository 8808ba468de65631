"""
Matrix Quotation Converter

This package provides an API that turns "matrix" order sheets (one row per
model, one column per color quantity) into flat quotation workbooks.

Key modules:
- main.py: FastAPI application with the /convert endpoint
- conversion_service.py: Orchestrates one conversion and maps errors to responses
- quotation_process.py: Matrix-to-rows transformation core
- workbook_adapter.py: Spreadsheet reading and writing
- utils/result.py: Result pattern implementation for error handling
"""
