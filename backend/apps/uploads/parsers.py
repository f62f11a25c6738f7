"""
Spreadsheet parser.

Reads one sheet of an .xlsx/.xls workbook with pandas and returns cleaned
headers plus rows keyed by them. The source file is always removed once
parsing finishes.
"""
import logging
import math
import os
import re
import zipfile
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, List

import numpy as np
import pandas as pd
from openpyxl.utils.exceptions import InvalidFileException
from xlrd import XLRDError

from apps.core.exceptions import EmptyFileError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

HEADER_PATTERN = re.compile(r'[^A-Za-z0-9_]')

UNREADABLE_ERRORS = (ValueError, OSError, zipfile.BadZipFile, InvalidFileException, XLRDError)


@dataclass
class ParsedSheet:
    headers: List[str]
    rows: List[Dict[str, Any]] = field(default_factory=list)
    sheet_name: str = ''


def clean_header(value) -> str:
    """Trim, replace anything outside [A-Za-z0-9_] with an underscore, lowercase."""
    return HEADER_PATTERN.sub('_', str(value).strip()).lower()


def _unique_headers(columns) -> List[str]:
    headers, seen = [], set()
    for column in columns:
        header = clean_header(column)
        candidate, suffix = header, 2
        while candidate in seen:
            candidate = f"{header}_{suffix}"
            suffix += 1
        seen.add(candidate)
        headers.append(candidate)
    return headers


def to_json_value(value):
    """Convert a pandas/numpy cell into a JSON-friendly Python value."""
    if value is None:
        return None
    if isinstance(value, (bool, np.bool_)):
        return bool(value)
    if isinstance(value, (int, np.integer)):
        return int(value)
    if isinstance(value, (float, np.floating)):
        number = float(value)
        if not math.isfinite(number):
            return None
        return int(number) if number.is_integer() else number
    if value is pd.NaT:
        return None
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, timedelta):
        return str(value)
    return value if isinstance(value, str) else str(value)


def _remove(path: str) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.error(f"Could not remove uploaded file {path}: {e}")


def parse(path: str, sheet_index: int = 0) -> ParsedSheet:
    """
    Parse the sheet at ``sheet_index`` of the workbook at ``path``.

    Every row carries every cleaned header; blank cells are None and rows
    with no values at all are skipped.
    """
    if not os.path.exists(path):
        raise NotFoundError(f"File not found: {os.path.basename(path)}")

    try:
        if os.path.getsize(path) == 0:
            raise EmptyFileError('Uploaded file is empty')

        try:
            with pd.ExcelFile(path) as workbook:
                if sheet_index >= len(workbook.sheet_names):
                    raise ValidationError(f"Workbook has no sheet at position {sheet_index}")
                sheet_name = workbook.sheet_names[sheet_index]
                frame = workbook.parse(
                    sheet_name,
                    dtype=object,
                    keep_default_na=False,
                    na_values=[''],
                )
        except UNREADABLE_ERRORS as e:
            logger.warning(f"Unreadable workbook {os.path.basename(path)}: {e}")
            raise ValidationError('File could not be read as a spreadsheet') from e

        frame = frame.dropna(how='all')
        if frame.empty or not len(frame.columns):
            raise EmptyFileError('No data rows found in the spreadsheet')

        headers = _unique_headers(frame.columns)
        rows = [
            {header: to_json_value(value) for header, value in zip(headers, values)}
            for values in frame.itertuples(index=False, name=None)
        ]
        logger.info(f"Parsed sheet '{sheet_name}': {len(rows)} rows, {len(headers)} columns")
        return ParsedSheet(headers=headers, rows=rows, sheet_name=clean_header(sheet_name))
    finally:
        _remove(path)
