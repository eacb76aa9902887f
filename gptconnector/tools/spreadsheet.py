"""Spreadsheet generation tool exposed to the model."""

from __future__ import annotations

import base64
import io
from typing import Any

from openpyxl import Workbook

from gptconnector.core.errors import SpreadsheetGenerationError
from gptconnector.util.logger import get_logger

logger = get_logger("tools.spreadsheet")

SPREADSHEET_TOOL_NAME = "generate_excel"
SPREADSHEET_MIME_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

SPREADSHEET_TOOL: dict[str, Any] = {
    "type": "function",
    "name": SPREADSHEET_TOOL_NAME,
    "description": (
        "Create an Excel (.xlsx) file from tabular data and attach it to the reply. "
        "Pass every row of the table; use the first row for column headers."
    ),
    "parameters": {
        "type": "object",
        "properties": {
            "rows": {
                "type": "array",
                "description": "Table rows; each row is an array of cell values.",
                "items": {
                    "type": "array",
                    "items": {"anyOf": [{"type": "string"}, {"type": "number"}, {"type": "boolean"}]},
                },
            }
        },
        "required": ["rows"],
        "additionalProperties": False,
    },
    "strict": True,
}


def _check_rows(rows: Any) -> list[list[Any]]:
    if not isinstance(rows, list):
        raise TypeError(f"rows must be a list, got {type(rows).__name__}")
    for index, row in enumerate(rows):
        if not isinstance(row, list):
            raise TypeError(f"row {index} must be a list, got {type(row).__name__}")
        for cell in row:
            if cell is not None and not isinstance(cell, (str, int, float, bool)):
                raise TypeError(f"row {index} holds unsupported cell type {type(cell).__name__}")
    return rows


def generate_spreadsheet(rows: Any, sheet_title: str = "Sheet1") -> str:
    """Build a single-sheet workbook from *rows* and return it base64 encoded."""
    try:
        checked = _check_rows(rows)
        workbook = Workbook()
        sheet = workbook.active
        sheet.title = sheet_title
        for row in checked:
            sheet.append(row)
        buf = io.BytesIO()
        workbook.save(buf)
    except Exception as exc:
        raise SpreadsheetGenerationError(f"spreadsheet generation failed: {exc}") from exc
    data = buf.getvalue()
    logger.debug("spreadsheet generated rows=%d bytes=%d", len(checked), len(data))
    return base64.b64encode(data).decode("ascii")
