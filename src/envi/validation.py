"""Required-field validation for loaded records."""

from typing import Any

from .exceptions import FieldRequiredError
from .models import describe_fields
from .models import is_record


def validate(record: Any, prefix: str = "") -> list[FieldRequiredError]:
    """Collect every required field left at its zero value.

    Descends into nested records. Field names are reported as dotted paths
    from the root record.

    Args:
        record: Dataclass instance to check
        prefix: Path of the record within the root, used for recursion

    Returns:
        All violations in traversal order; empty when validation passed
    """
    errors: list[FieldRequiredError] = []

    for spec in describe_fields(type(record)):
        value = getattr(record, spec.name)
        path = f"{prefix}{spec.name}"

        if spec.required and is_zero(value):
            errors.append(FieldRequiredError(path))

        if is_record(value):
            errors.extend(validate(value, prefix=f"{path}."))

    return errors


def is_zero(value: Any) -> bool:
    """Check whether a value is the zero value of its type."""
    if value is None:
        return True
    if is_record(value):
        return all(is_zero(getattr(value, spec.name)) for spec in describe_fields(type(value)))
    if isinstance(value, (str, int, float, bool, list, dict, tuple)):
        return not value
    return False
