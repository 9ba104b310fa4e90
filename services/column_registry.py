"""
Column metadata registry.

Reflects over a pydantic record type once and produces the ordered column
descriptors shared by import and export, together with the accessor table
used to follow nested export paths.

Columns are declared with ``Annotated``:

    class SysDept(BaseModel):
        dept_id: Annotated[Optional[int], ExcelColumn(name="Dept ID")] = None
        status: Annotated[str, ExcelColumn(name="Status", translation="0=Normal,1=Disabled")] = "0"
"""

import inspect
import logging
import types
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from functools import lru_cache
from operator import attrgetter, methodcaller
from typing import Annotated, Any, Callable, Dict, Optional, Tuple, Type, Union, get_args, get_origin

from pydantic import BaseModel, ValidationError

from core.exceptions import AccessError, ConfigurationError, FormatError

logger = logging.getLogger(__name__)

Accessor = Callable[[Any], Any]

_UNION_TYPES = (Union, getattr(types, "UnionType", Union))

PICK_LIST_MAX_LENGTH = 255


class ColumnKind(str, Enum):
    """Value kinds the coercion engine knows how to convert."""

    TEXT = "text"
    CHAR = "char"
    SHORT = "short"
    INT = "int"
    LONG = "long"
    FLOAT = "float"
    DOUBLE = "double"
    DECIMAL = "decimal"
    DATETIME = "datetime"
    DATE = "date"
    BOOL = "bool"
    OBJECT = "object"


# Order matters: bool before int, datetime before date
_INFERRED_KINDS = (
    (bool, ColumnKind.BOOL),
    (datetime, ColumnKind.DATETIME),
    (date, ColumnKind.DATE),
    (Decimal, ColumnKind.DECIMAL),
    (int, ColumnKind.LONG),
    (float, ColumnKind.DOUBLE),
    (str, ColumnKind.TEXT),
)


@dataclass(frozen=True)
class ExcelColumn:
    """Column metadata attached to a record field through ``Annotated``."""

    name: str = ""
    width: float = 16
    height: float = 14
    exportable: bool = True
    date_format: str = ""
    translation: str = ""
    nested_path: str = ""
    pick_list: Tuple[str, ...] = ()
    prompt: str = ""
    default_value: str = ""
    suffix: str = ""
    kind: Optional[ColumnKind] = None

    def __post_init__(self):
        object.__setattr__(self, "pick_list", tuple(self.pick_list))


@dataclass(frozen=True)
class ColumnDescriptor:
    """How one record field maps to one spreadsheet column."""

    ordinal: int
    field_name: str
    display_name: str
    width: float
    height: float
    exportable: bool
    date_format: str
    translation_expr: str
    nested_path: str
    pick_list: Tuple[str, ...]
    prompt: str
    default_value: str
    suffix: str
    kind: ColumnKind
    python_type: Any = None

    @property
    def index(self) -> int:
        """Zero-based column index."""
        return self.ordinal - 1

    def is_note(self, marker: str) -> bool:
        return bool(marker) and marker in self.display_name


def unwrap_annotation(annotation: Any) -> Any:
    """
    Strip ``Annotated`` and ``Optional`` wrappers from a field annotation.

    Returns the single non-None member of an optional union, or the
    annotation unchanged when it is a wider union.
    """
    if get_origin(annotation) is Annotated:
        annotation = get_args(annotation)[0]

    if get_origin(annotation) in _UNION_TYPES:
        members = [arg for arg in get_args(annotation) if arg is not type(None)]
        if len(members) == 1:
            return unwrap_annotation(members[0])

    return annotation


def infer_kind(python_type: Any, override: Optional[Any] = None) -> ColumnKind:
    """
    Pick the coercion kind for a field.

    Args:
        python_type: Unwrapped field annotation
        override: Explicit kind from ExcelColumn(kind=...)

    Returns:
        ColumnKind; OBJECT when the type is not one of the supported scalars
    """
    if override is not None:
        try:
            return ColumnKind(override)
        except ValueError:
            raise ConfigurationError(f"Unknown column kind: {override!r}")

    if isinstance(python_type, type) and not issubclass(python_type, Enum):
        for candidate, kind in _INFERRED_KINDS:
            if issubclass(python_type, candidate):
                return kind

    return ColumnKind.OBJECT


def _find_column(field_info) -> Optional[ExcelColumn]:
    for item in getattr(field_info, "metadata", None) or []:
        if isinstance(item, ExcelColumn):
            return item

    # Annotation not yet processed by pydantic
    annotation = getattr(field_info, "annotation", None)
    if get_origin(annotation) is Annotated:
        for item in get_args(annotation)[1:]:
            if isinstance(item, ExcelColumn):
                return item

    return None


def _check_translation(field_name: str, expression: str):
    if not expression:
        return
    for item in expression.split(","):
        if "=" not in item:
            raise ConfigurationError(
                f"Field '{field_name}': translation pair '{item}' is missing '='"
            )


def _check_pick_list(field_name: str, pick_list: Tuple[str, ...]):
    """Pick lists become an inline list formula, which Excel caps at 255 characters."""
    for item in pick_list:
        if "," in item or '"' in item:
            raise ConfigurationError(
                f"Field '{field_name}': pick list item {item!r} may not contain ',' or '\"'"
            )
    if len(",".join(pick_list)) > PICK_LIST_MAX_LENGTH:
        raise ConfigurationError(
            f"Field '{field_name}': pick list is longer than {PICK_LIST_MAX_LENGTH} characters"
        )


def _describe_fields(record_type: Type[BaseModel]) -> Tuple[ColumnDescriptor, ...]:
    descriptors = []

    for field_name, field_info in record_type.model_fields.items():
        column = _find_column(field_info)
        if column is None:
            continue

        _check_translation(field_name, column.translation)
        _check_pick_list(field_name, column.pick_list)
        python_type = unwrap_annotation(field_info.annotation)

        descriptors.append(ColumnDescriptor(
            ordinal=len(descriptors) + 1,
            field_name=field_name,
            display_name=column.name or field_name,
            width=column.width,
            height=column.height,
            exportable=column.exportable,
            date_format=column.date_format,
            translation_expr=column.translation,
            nested_path=column.nested_path,
            pick_list=column.pick_list,
            prompt=column.prompt,
            default_value=column.default_value,
            suffix=column.suffix,
            kind=infer_kind(python_type, column.kind),
            python_type=python_type
        ))

    return tuple(descriptors)


def _dynamic_accessor(segment: str) -> Accessor:
    """
    Accessor for a segment whose owner type is only known at runtime.

    Mapping keys and attributes are tried before a get_<segment>() method;
    an attribute that is a bound method is called with no arguments.
    """
    getter_name = f"get_{segment}"

    def access(value: Any) -> Any:
        if isinstance(value, Mapping):
            if segment in value:
                return value[segment]
        elif hasattr(value, segment):
            attribute = getattr(value, segment)
            return attribute() if inspect.ismethod(attribute) else attribute

        getter = getattr(value, getter_name, None)
        if callable(getter):
            return getter()

        raise AccessError(
            f"{type(value).__name__} has no attribute or accessor '{segment}'"
        )

    return access


def _segment_accessor(owner: Any, segment: str, path: str) -> Tuple[Accessor, Any]:
    """
    Resolve one nested path segment against a statically known owner type.

    Returns:
        (accessor, type of the value the accessor yields)
    """
    if not (isinstance(owner, type) and issubclass(owner, BaseModel)):
        return _dynamic_accessor(segment), Any

    if segment in owner.model_fields:
        return attrgetter(segment), unwrap_annotation(owner.model_fields[segment].annotation)

    if isinstance(getattr(owner, segment, None), property):
        return attrgetter(segment), Any

    if inspect.isfunction(getattr(owner, segment, None)):
        return methodcaller(segment), Any

    if callable(getattr(owner, f"get_{segment}", None)):
        return methodcaller(f"get_{segment}"), Any

    raise ConfigurationError(
        f"Nested path '{path}': {owner.__name__} has no field or accessor '{segment}'"
    )


def build_accessor_chain(descriptor: ColumnDescriptor) -> Tuple[Accessor, ...]:
    """Build one accessor per segment of the descriptor's nested path."""
    path = descriptor.nested_path
    owner = descriptor.python_type
    chain = []

    for segment in path.split("."):
        if not segment:
            raise ConfigurationError(
                f"Field '{descriptor.field_name}': empty segment in nested path '{path}'"
            )
        accessor, owner = _segment_accessor(owner, segment, path)
        chain.append(accessor)

    return tuple(chain)


class ColumnRegistry:
    """
    Descriptor table and accessor registry for one record type.

    Built once per type by get_registry() and never mutated afterwards.
    """

    def __init__(self, record_type: Type[BaseModel]):
        if not (isinstance(record_type, type) and issubclass(record_type, BaseModel)):
            raise ConfigurationError(
                f"Record type must be a pydantic BaseModel subclass, got {record_type!r}"
            )

        self.record_type = record_type
        self.columns = _describe_fields(record_type)

        if not self.columns:
            raise ConfigurationError(
                f"{record_type.__name__} has no fields annotated with ExcelColumn"
            )

        self._by_field: Dict[str, ColumnDescriptor] = {
            column.field_name: column for column in self.columns
        }
        self._accessors: Dict[str, Tuple[Accessor, ...]] = {
            column.field_name: build_accessor_chain(column)
            for column in self.columns if column.nested_path
        }

        logger.debug(f"Registered {len(self.columns)} columns for {record_type.__name__}: "
                     f"{[c.field_name for c in self.columns]}")

    @property
    def column_count(self) -> int:
        return len(self.columns)

    @property
    def exportable_columns(self) -> Tuple[ColumnDescriptor, ...]:
        return tuple(column for column in self.columns if column.exportable)

    def get(self, ordinal: int) -> ColumnDescriptor:
        """Descriptor for a 1-based ordinal."""
        if not 1 <= ordinal <= len(self.columns):
            raise KeyError(ordinal)
        return self.columns[ordinal - 1]

    def by_field(self, field_name: str) -> ColumnDescriptor:
        return self._by_field[field_name]

    def accessors(self, descriptor: ColumnDescriptor) -> Tuple[Accessor, ...]:
        """Accessor chain for the descriptor's nested path (empty when unset)."""
        return self._accessors.get(descriptor.field_name, ())

    def new_record(self) -> BaseModel:
        """
        Instantiate the record type with no arguments.

        Raises:
            ConfigurationError: If the type has required fields or its
                                constructor fails
        """
        try:
            return self.record_type()
        except (ValidationError, TypeError) as e:
            raise ConfigurationError(
                f"{self.record_type.__name__} cannot be constructed without arguments: {e}"
            ) from e

    def read_field(self, record: BaseModel, descriptor: ColumnDescriptor) -> Any:
        return getattr(record, descriptor.field_name)

    def write_field(self, record: BaseModel, descriptor: ColumnDescriptor, value: Any):
        """
        Assign an imported value to the record field.

        Raises:
            ConfigurationError: If the record type or field is frozen
            FormatError: If assignment validation rejects the value
        """
        try:
            setattr(record, descriptor.field_name, value)
        except ValidationError as e:
            error_types = {error["type"] for error in e.errors()}
            if error_types & {"frozen_instance", "frozen_field"}:
                raise ConfigurationError(
                    f"{self.record_type.__name__}.{descriptor.field_name} is frozen and cannot be imported"
                ) from e
            reason = "; ".join(error["msg"] for error in e.errors())
            raise FormatError(value, reason) from e


@lru_cache(maxsize=None)
def get_registry(record_type: Type[BaseModel]) -> ColumnRegistry:
    """
    Get the cached registry for a record type.

    Raises:
        ConfigurationError: If the type has no eligible columns or a column
                            is misconfigured
    """
    return ColumnRegistry(record_type)


def discover(record_type: Type[BaseModel]) -> Tuple[ColumnDescriptor, ...]:
    """Ordered column descriptors for a record type."""
    return get_registry(record_type).columns
