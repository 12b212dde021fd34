"""Decoding of file content into records."""

import json
from collections.abc import Callable
from collections.abc import Mapping
from typing import Any

import yaml

from .exceptions import InvalidTagError
from .exceptions import UnmarshalError
from .models import FieldKind
from .models import FileType
from .models import describe_fields
from .models import new_record

Unmarshaler = Callable[[bytes, Any], None]


def get_unmarshaler(file_type: str | None) -> Unmarshaler:
    """Select the decode routine for a ``type`` tag.

    Args:
        file_type: Tag value; None selects YAML

    Returns:
        Function decoding bytes into a record in place

    Raises:
        InvalidTagError: If the tag value is not a known format
    """
    if file_type is None:
        return unmarshal_yaml

    try:
        parsed = FileType(file_type)
    except ValueError:
        raise InvalidTagError(f"type={file_type}") from None

    if parsed is FileType.JSON:
        return unmarshal_json
    if parsed is FileType.TEXT:
        return unmarshal_text
    return unmarshal_yaml


def unmarshal_yaml(content: bytes, record: Any) -> None:
    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise UnmarshalError("yaml", e) from e
    _assign(record, data, "yaml")


def unmarshal_json(content: bytes, record: Any) -> None:
    try:
        data = json.loads(content)
    except ValueError as e:
        raise UnmarshalError("json", e) from e
    _assign(record, data, "json")


def unmarshal_text(content: bytes, record: Any) -> None:
    """Store the file content in the record's first string field.

    A single trailing newline is trimmed.
    """
    try:
        text = content.decode("utf-8")
    except UnicodeDecodeError as e:
        raise UnmarshalError("text", e) from e

    for spec in describe_fields(type(record)):
        if spec.kind is FieldKind.STRING:
            setattr(record, spec.name, text.removesuffix("\n"))
            return

    err = ValueError(f"{type(record).__name__} has no string field")
    raise UnmarshalError("text", err) from err


def _assign(record: Any, data: Any, format_name: str) -> None:
    """Copy mapping values onto record fields, matching by field key.

    Keys without a matching field are ignored; fields without a matching key
    keep their value. An empty document leaves the record unchanged.
    """
    if data is None:
        return
    if not isinstance(data, Mapping):
        err = TypeError(f"cannot decode {type(data).__name__} into {type(record).__name__}")
        raise UnmarshalError(format_name, err) from err

    for spec in describe_fields(type(record)):
        if spec.key not in data:
            continue
        value = data[spec.key]
        if spec.kind is FieldKind.STRUCT and value is not None:
            nested = getattr(record, spec.name)
            if nested is None:
                nested = new_record(spec.annotation)
            _assign(nested, value, format_name)
            value = nested
        elif value is not None and not _matches_kind(spec.kind, value):
            err = TypeError(f"cannot decode {type(value).__name__} into {spec.kind_name} field {spec.name}")
            raise UnmarshalError(format_name, err) from err
        elif spec.kind is FieldKind.FLOAT and value is not None:
            value = float(value)
        setattr(record, spec.name, value)


def _matches_kind(kind: FieldKind, value: Any) -> bool:
    # bool is a subclass of int, so it is checked explicitly
    if kind is FieldKind.STRING:
        return isinstance(value, str)
    if kind is FieldKind.INT:
        return isinstance(value, int) and not isinstance(value, bool)
    if kind is FieldKind.FLOAT:
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if kind is FieldKind.BOOL:
        return isinstance(value, bool)
    return True
