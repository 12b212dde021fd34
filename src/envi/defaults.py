"""Default values for file-backed records."""

from typing import Any

from .exceptions import InvalidKindError
from .exceptions import ParsingError
from .models import FieldKind
from .models import describe_fields

_TRUE = {"1", "t", "T", "TRUE", "true", "True"}
_FALSE = {"0", "f", "F", "FALSE", "false", "False"}


def apply_defaults(record: Any) -> None:
    """Assign parsed ``default`` tags to the direct fields of a record.

    Only the immediate fields are touched; nested records are left alone.
    Fields without a default tag, or with an empty one, keep their value.

    Args:
        record: Dataclass instance to fill

    Raises:
        ParsingError: If a default cannot be parsed into the field's type
        InvalidKindError: If a field with a default is not a scalar
    """
    for spec in describe_fields(type(record)):
        if not spec.default:
            continue
        setattr(record, spec.name, parse_value(spec.name, spec.kind, spec.kind_name, spec.default))


def parse_value(field: str, kind: FieldKind, kind_name: str, text: str) -> str | int | float | bool:
    """Parse tag text into a value of the given kind.

    Args:
        field: Field name, used in error messages
        kind: Target kind
        kind_name: Printable name of the field's type
        text: Tag text to parse

    Returns:
        Parsed value

    Raises:
        ParsingError: If the text is not a valid value of the kind
        InvalidKindError: If the kind is not a scalar
    """
    if kind is FieldKind.STRING:
        return text

    if kind is FieldKind.INT:
        try:
            return int(text, 10)
        except ValueError as e:
            raise ParsingError("int", e) from e

    if kind is FieldKind.FLOAT:
        try:
            return float(text)
        except ValueError as e:
            raise ParsingError("float", e) from e

    if kind is FieldKind.BOOL:
        if text in _TRUE:
            return True
        if text in _FALSE:
            return False
        err = ValueError(f"invalid syntax {text!r}")
        raise ParsingError("bool", err) from err

    raise InvalidKindError(field, "string, int, float, bool", kind_name)
