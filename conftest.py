"""
Pytest configuration file.

This file is automatically loaded by pytest and provides global test configuration.
It ensures the project's source directory is added to the Python path so that
modules can be imported properly during test execution, and provides the
matrix sheets shared by the test modules.
"""
import io
import os
import sys

import pandas as pd
import pytest

# Add the current directory to the Python path
# This ensures imports work correctly when running tests
sys.path.insert(0, os.path.abspath(os.path.dirname(__file__)))


@pytest.fixture
def matrix_rows():
    """
    Fixture providing two raw matrix rows with mixed numeric and text cells.

    Returns:
        list: Raw rows as read from a matrix sheet
    """
    return [
        {
            "Model": "IP 12/12 pro",
            "18#Black": 50,
            "5#Lilac Blue": "20",
            "Qty": 230,
            "Price": 0.8,
            "Amount, usd": 184,
        },
        {
            "Model": "IP 12 promax",
            "18#Black": 0,
            "Red": 30,
            "Qty": 150,
            "Price": "1.2",
            "Amount, usd": 120,
            "Amount": 480,
        },
    ]


@pytest.fixture
def make_xlsx():
    """
    Fixture returning a helper that writes sheets to .xlsx bytes.

    The helper takes a mapping of sheet name to list of row dicts.
    """
    def _make(sheets):
        buffer = io.BytesIO()
        with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
            for sheet_name, rows in sheets.items():
                pd.DataFrame(rows).to_excel(writer, sheet_name=sheet_name, index=False)
        return buffer.getvalue()
    return _make


@pytest.fixture
def matrix_xlsx(make_xlsx):
    """
    Fixture providing a matrix workbook as uploaded by a user.

    Returns:
        bytes: .xlsx file contents
    """
    return make_xlsx({
        "Orders": [
            {"Model": "IP 12/12 pro", "18#Black": 50, "5#Lilac Blue": 20, "Qty": 70, "Price": 0.8},
            {"Model": "IP 12 promax", "18#Black": 0, "5#Lilac Blue": 30, "Qty": 30, "Price": 1.2},
        ]
    })
