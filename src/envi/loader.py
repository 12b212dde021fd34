"""Population of config records from the environment, defaults and files."""

import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

from .defaults import apply_defaults
from .exceptions import ConfigFileError
from .exceptions import InvalidKindError
from .exceptions import MissingCallbackError
from .exceptions import MissingTagError
from .models import FieldKind
from .models import FieldSpec
from .models import Watchable
from .models import describe_fields
from .models import is_record
from .models import new_record
from .unmarshal import Unmarshaler
from .unmarshal import get_unmarshaler
from .utils import resolve_path
from .utils import resolve_value

logger = logging.getLogger(__name__)

# (field name, live record, resolved path, unmarshaler, loaded content)
WatchRegistrar = Callable[[str, Any, Path, Unmarshaler, bytes], None]


def populate(record: Any, register_watch: WatchRegistrar | None = None) -> None:
    """Populate a config record in place.

    String fields are set from their ``env`` variable when it is set and
    non-empty, otherwise from their ``default`` tag. Record fields are loaded
    from the file named by their ``env`` variable or ``default`` tag, with the
    nested record's own defaults applied first.

    Args:
        record: Dataclass instance to populate
        register_watch: Called for every field tagged ``watch=True``

    Raises:
        InvalidKindError: If the record or one of its fields has the wrong shape
        MissingTagError: If a field has neither an env nor a default tag
        InvalidTagError: If a record field has an unknown type tag
        ParsingError: If a nested default cannot be parsed
        ConfigFileError: If a backing file cannot be read
        UnmarshalError: If a backing file cannot be decoded
        MissingCallbackError: If a watched record lacks on_change/on_error
    """
    if not is_record(record):
        raise InvalidKindError("config", "struct", type(record).__name__)

    for spec in describe_fields(type(record)):
        if not spec.has_env and not spec.has_default:
            raise MissingTagError(spec.name, "env or default")

        if spec.kind is FieldKind.STRUCT:
            _load_file_field(record, spec, register_watch)
        elif spec.kind is FieldKind.STRING:
            setattr(record, spec.name, resolve_value(spec.env, spec.default))
        else:
            raise InvalidKindError(spec.name, "string, struct", spec.kind_name)


def _load_file_field(record: Any, spec: FieldSpec, register_watch: WatchRegistrar | None) -> None:
    path = resolve_path(spec.env, spec.default)
    unmarshal = get_unmarshaler(spec.file_type)

    nested = getattr(record, spec.name)
    if nested is None:
        nested = new_record(spec.annotation)
        setattr(record, spec.name, nested)

    if spec.watch and not isinstance(nested, Watchable):
        raise MissingCallbackError(spec.name, type(nested).__name__)

    apply_defaults(nested)

    content = read_file(path)
    unmarshal(content, nested)
    logger.debug(f"Loaded field '{spec.name}' from {path}")

    if spec.watch and register_watch is not None:
        register_watch(spec.name, nested, path, unmarshal, content)


def read_file(path: Path) -> bytes:
    """Read a backing file.

    Args:
        path: File to read

    Returns:
        File content

    Raises:
        ConfigFileError: If the file cannot be read
    """
    try:
        return path.read_bytes()
    except OSError as e:
        raise ConfigFileError(path, f"Failed to read configuration file ({e.strerror or e})") from e
