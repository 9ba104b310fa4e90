"""
Type coercion between spreadsheet cells and record field values.

Import reads every cell as text first (numbers without a trailing ``.0``,
dates as ``yyyy-MM-dd HH:mm:ss``) and then converts the text to the
column's kind. Export does not use this module except for date formatting.
"""

import logging
import re
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from openpyxl.utils.datetime import from_excel

from core.exceptions import FormatError
from services.column_registry import ColumnKind

logger = logging.getLogger(__name__)

DEFAULT_DATETIME_PATTERN = "yyyy-MM-dd HH:mm:ss"
DEFAULT_DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"
DEFAULT_DATE_FORMAT = "%Y-%m-%d"

INTEGER_RANGES = {
    ColumnKind.SHORT: (-2 ** 15, 2 ** 15 - 1),
    ColumnKind.INT: (-2 ** 31, 2 ** 31 - 1),
    ColumnKind.LONG: (-2 ** 63, 2 ** 63 - 1),
}

DATE_KINDS = (ColumnKind.DATETIME, ColumnKind.DATE)

TRUE_WORDS = {"true", "1", "yes", "y"}
FALSE_WORDS = {"false", "0", "no", "n"}

# Java style date tokens, longest first within each letter
_PATTERN_TOKENS = re.compile(r"yyyy|yy|MM|dd|HH|hh|mm|ss|SSS")
_STRFTIME_CODES = {
    "yyyy": "%Y",
    "yy": "%y",
    "MM": "%m",
    "dd": "%d",
    "HH": "%H",
    "hh": "%I",
    "mm": "%M",
    "ss": "%S",
    "SSS": "%f",
}


def to_strftime(pattern: str) -> str:
    """
    Translate a Java style date pattern into a strftime format.

    Only the two and four letter tokens yyyy, yy, MM, dd, HH, hh, mm, ss
    and the millisecond token SSS are translated; single letter tokens
    such as M or d are kept as literal text. Patterns that already
    contain '%' are returned unchanged.

    Examples:
        >>> to_strftime("yyyy-MM-dd HH:mm:ss")
        '%Y-%m-%d %H:%M:%S'
    """
    if "%" in pattern:
        return pattern
    return _PATTERN_TOKENS.sub(lambda match: _STRFTIME_CODES[match.group(0)], pattern)


def format_date(value: Any, pattern: str) -> str:
    """
    Format a date or datetime with a Java style or strftime pattern.

    SSS renders three digit milliseconds, unlike strftime's %f.
    """
    if "%" not in pattern and "SSS" in pattern:
        millis = f"{getattr(value, 'microsecond', 0) // 1000:03d}"
        pattern = pattern.replace("SSS", millis)
    return value.strftime(to_strftime(pattern))


def parse_date(text: str, pattern: str = "") -> datetime:
    """
    Parse date text, trying the column pattern before the defaults.

    Raises:
        ValueError: If no known format matches
    """
    formats = [to_strftime(pattern)] if pattern else []
    formats += [DEFAULT_DATETIME_FORMAT, DEFAULT_DATE_FORMAT]

    for fmt in formats:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue

    return datetime.fromisoformat(text)


def _number_to_text(value: float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def cell_to_text(value: Any, kind: ColumnKind) -> str:
    """
    Render a raw openpyxl cell value as text.

    Args:
        value: Cell value (None, str, int, float, bool, datetime, date, time)
        kind: Kind of the column the cell belongs to

    Returns:
        Text form of the value; empty string for an empty cell

    Raises:
        FormatError: If a number in a date column is not a valid serial
    """
    if value is None:
        return ""

    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"

    if kind in DATE_KINDS and isinstance(value, (int, float)):
        # Serial date stored as a plain number
        try:
            value = from_excel(value)
        except (OverflowError, ValueError):
            raise FormatError(value, "not a valid date serial")

    if isinstance(value, datetime):
        return value.strftime(DEFAULT_DATETIME_FORMAT)
    if isinstance(value, date):
        return datetime.combine(value, time()).strftime(DEFAULT_DATETIME_FORMAT)
    if isinstance(value, (int, float)):
        return _number_to_text(value)

    return str(value)


def _to_integer(text: str, kind: ColumnKind) -> int:
    try:
        number = int(text, 10)
    except ValueError:
        raise FormatError(text, f"not a base-10 integer ({kind.value})")

    low, high = INTEGER_RANGES[kind]
    if not low <= number <= high:
        raise FormatError(text, f"out of range for {kind.value} [{low}, {high}]")
    return number


def _to_float(text: str) -> float:
    try:
        return float(text)
    except ValueError:
        raise FormatError(text, "not a decimal number")


def _to_decimal(text: str) -> Decimal:
    try:
        return Decimal(text.strip())
    except InvalidOperation:
        raise FormatError(text, "not a decimal number")


def _to_bool(text: str) -> bool:
    word = text.strip().lower()
    if word in TRUE_WORDS:
        return True
    if word in FALSE_WORDS:
        return False
    raise FormatError(text, "not a boolean")


def _to_date(text: str, kind: ColumnKind, pattern: str):
    try:
        parsed = parse_date(text.strip(), pattern)
    except ValueError:
        raise FormatError(text, f"does not match date format '{pattern or DEFAULT_DATETIME_PATTERN}'")
    return parsed.date() if kind is ColumnKind.DATE else parsed


def coerce(text: str, kind: ColumnKind, date_format: str = "") -> Optional[Any]:
    """
    Convert cell text to a typed field value.

    Args:
        text: Cell text as produced by cell_to_text()
        kind: Target column kind
        date_format: Column date pattern, used for date kinds

    Returns:
        Typed value, or None for empty text (field keeps its default)

    Raises:
        FormatError: If the text cannot be converted; coordinates are
                     attached by the caller
    """
    if text == "":
        return None

    if kind is ColumnKind.TEXT:
        return text
    if kind is ColumnKind.CHAR:
        return text[0]
    if kind in INTEGER_RANGES:
        return _to_integer(text, kind)
    if kind in (ColumnKind.FLOAT, ColumnKind.DOUBLE):
        return _to_float(text)
    if kind is ColumnKind.DECIMAL:
        return _to_decimal(text)
    if kind in DATE_KINDS:
        return _to_date(text, kind, date_format)
    if kind is ColumnKind.BOOL:
        return _to_bool(text)

    raise FormatError(text, f"columns of kind '{kind.value}' cannot be imported")
