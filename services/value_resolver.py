"""
Export value resolution.

Turns one record field into the text written to its cell: follows the
column's nested path, then applies exactly one of date formatting,
translation, or default/suffix handling.
"""

import logging
from datetime import date
from enum import Enum
from typing import Any

from pydantic import BaseModel

from core.exceptions import AccessError, ConfigurationError
from services.column_registry import ColumnDescriptor, ColumnRegistry
from services.type_coercion import format_date

logger = logging.getLogger(__name__)


def convert_by_exp(value: str, expression: str) -> str:
    """
    Translate a value through a ``key=label`` expression.

    Args:
        value: Stringified raw value
        expression: Comma separated pairs, e.g. "0=male,1=female,2=unknown"

    Returns:
        Label of the first pair whose key equals value exactly, otherwise
        value unchanged
    """
    for item in expression.split(","):
        key, _, label = item.partition("=")
        if key == value:
            return label
    return value


def stringify(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


class ValueResolver:
    """Resolve export cell text for records of one registered type."""

    def __init__(self, registry: ColumnRegistry):
        self.registry = registry

    def follow_path(self, record: BaseModel, descriptor: ColumnDescriptor) -> Any:
        """
        Read the field and walk its nested path.

        A None intermediate value ends the walk and yields None.

        Raises:
            AccessError: If an accessor is missing or fails
        """
        value = self.registry.read_field(record, descriptor)

        for accessor in self.registry.accessors(descriptor):
            if value is None:
                return None
            try:
                value = accessor(value)
            except AccessError:
                raise
            except Exception as e:
                raise AccessError(
                    f"Nested path '{descriptor.nested_path}' on field "
                    f"'{descriptor.field_name}' failed: {e}"
                ) from e

        return value

    def resolve(self, record: BaseModel, descriptor: ColumnDescriptor) -> str:
        """
        Text to write for one record and column.

        Raises:
            AccessError: If the nested path cannot be followed
            ConfigurationError: If a date format is declared on a non-date value
        """
        value = self.follow_path(record, descriptor)

        if descriptor.date_format:
            if value is None:
                return descriptor.default_value
            if not isinstance(value, date):
                raise ConfigurationError(
                    f"Field '{descriptor.field_name}' declares date format "
                    f"'{descriptor.date_format}' but holds {type(value).__name__}"
                )
            return format_date(value, descriptor.date_format)

        if descriptor.translation_expr:
            return convert_by_exp(stringify(value), descriptor.translation_expr)

        if value is None:
            return descriptor.default_value
        return stringify(value) + descriptor.suffix
