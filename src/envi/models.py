"""Data models for envi.

Records are plain dataclasses. Loading behavior is declared per field through
``setting()``, which stores tag text in the field metadata:

    ```python
    @dataclass
    class Database:
        host: str = setting(key="HOST", default="localhost")
        port: int = setting(key="PORT", default="5432")

    @dataclass
    class Config:
        name: str = setting(env="APP_NAME", default="demo")
        database: Database | None = setting(env="DB_CONFIG", default="./db.yaml", watch=True)
    ```
"""

import dataclasses
import types
import typing
from dataclasses import dataclass
from enum import Enum
from typing import Any
from typing import Protocol
from typing import runtime_checkable

METADATA_KEY = "envi"

TAG_ENV = "env"
TAG_DEFAULT = "default"
TAG_TYPE = "type"
TAG_REQUIRED = "required"
TAG_WATCH = "watch"
TAG_KEY = "key"


class FileType(Enum):
    """Decode format of a file-backed record."""

    YAML = "yaml"
    YML = "yml"
    JSON = "json"
    TEXT = "text"


class FieldKind(Enum):
    """Kind of a record field as seen by the loader."""

    STRING = "string"
    INT = "int"
    FLOAT = "float"
    BOOL = "bool"
    STRUCT = "struct"
    OTHER = "other"


@runtime_checkable
class Watchable(Protocol):
    """Callbacks a record type must provide to be loaded with ``watch=True``."""

    def on_change(self) -> None: ...

    def on_error(self, err: Exception) -> None: ...


@dataclass(frozen=True)
class EnviOptions:
    """Options for an Envi instance.

    Attributes:
        error_queue_size: Capacity of the reload error queue
        settle_interval: Quiet period in seconds used to coalesce a burst of
            file events into a single reload
        use_polling: Use a polling observer instead of the native one
        poll_interval: Polling period in seconds when use_polling is set
        join_timeout: Seconds close() waits for each observer thread
    """

    error_queue_size: int = 10
    settle_interval: float = 0.1
    use_polling: bool = False
    poll_interval: float = 1.0
    join_timeout: float = 2.0

    def __post_init__(self):
        if self.error_queue_size < 1:
            raise ValueError(f"error_queue_size must be at least 1, got {self.error_queue_size}")


def setting(
    *,
    env: str | None = None,
    default: str | None = None,
    type: str | None = None,
    required: bool = False,
    watch: bool = False,
    key: str | None = None,
) -> Any:
    """Declare a record field together with its loading tags.

    Args:
        env: Environment variable overriding the value (or the file path)
        default: Default text, parsed per field type; the file path for records
        type: Decode format of a file-backed record (yaml, yml, json, text)
        required: Fail validation when the field ends up at its zero value
        watch: Reload the backing file when it changes
        key: Mapping key the field is decoded from (defaults to the field name)

    Returns:
        A dataclass field whose default is None
    """
    tags: dict[str, str] = {}
    if env is not None:
        tags[TAG_ENV] = env
    if default is not None:
        tags[TAG_DEFAULT] = default
    if type is not None:
        tags[TAG_TYPE] = type
    if required:
        tags[TAG_REQUIRED] = "true"
    if watch:
        tags[TAG_WATCH] = "true"
    if key is not None:
        tags[TAG_KEY] = key

    return dataclasses.field(default=None, metadata={METADATA_KEY: tags})


@dataclass(frozen=True)
class FieldSpec:
    """Descriptor of one exported record field.

    Built fresh on every traversal from the dataclass field and its resolved
    annotation; never cached.
    """

    name: str
    annotation: Any
    kind: FieldKind
    tags: typing.Mapping[str, str]

    @property
    def has_env(self) -> bool:
        return TAG_ENV in self.tags

    @property
    def has_default(self) -> bool:
        return TAG_DEFAULT in self.tags

    @property
    def env(self) -> str:
        return self.tags.get(TAG_ENV, "")

    @property
    def default(self) -> str:
        return self.tags.get(TAG_DEFAULT, "")

    @property
    def file_type(self) -> str | None:
        return self.tags.get(TAG_TYPE)

    @property
    def required(self) -> bool:
        return self.tags.get(TAG_REQUIRED) == "true"

    @property
    def watch(self) -> bool:
        return self.tags.get(TAG_WATCH) == "true"

    @property
    def key(self) -> str:
        return self.tags.get(TAG_KEY) or self.name

    @property
    def kind_name(self) -> str:
        if self.kind is FieldKind.OTHER:
            return getattr(self.annotation, "__name__", repr(self.annotation))
        return self.kind.value


def describe_fields(record_type: type) -> list[FieldSpec]:
    """Describe the exported fields of a dataclass type.

    Fields whose name starts with an underscore are skipped.

    Args:
        record_type: Dataclass type to describe

    Returns:
        Field descriptors in declaration order
    """
    hints = typing.get_type_hints(record_type)
    specs = []
    for field in dataclasses.fields(record_type):
        if field.name.startswith("_"):
            continue
        annotation = unwrap_optional(hints.get(field.name, field.type))
        specs.append(
            FieldSpec(
                name=field.name,
                annotation=annotation,
                kind=kind_of(annotation),
                tags=dict(field.metadata.get(METADATA_KEY, {})),
            )
        )
    return specs


def unwrap_optional(annotation: Any) -> Any:
    """Strip one level of ``Optional`` from an annotation."""
    origin = typing.get_origin(annotation)
    if origin is typing.Union or origin is types.UnionType:
        args = [arg for arg in typing.get_args(annotation) if arg is not type(None)]
        if len(args) == 1:
            return args[0]
    return annotation


def kind_of(annotation: Any) -> FieldKind:
    # bool before int: bool is a subclass of int
    if annotation is bool:
        return FieldKind.BOOL
    if annotation is str:
        return FieldKind.STRING
    if annotation is int:
        return FieldKind.INT
    if annotation is float:
        return FieldKind.FLOAT
    if isinstance(annotation, type) and dataclasses.is_dataclass(annotation):
        return FieldKind.STRUCT
    return FieldKind.OTHER


def is_record(value: Any) -> bool:
    """Check whether a value is a dataclass instance."""
    return dataclasses.is_dataclass(value) and not isinstance(value, type)


def new_record(record_type: type) -> Any:
    """Allocate a record, leaving fields without a dataclass default as None."""
    record = record_type.__new__(record_type)
    for field in dataclasses.fields(record_type):
        if field.default is not dataclasses.MISSING:
            value = field.default
        elif field.default_factory is not dataclasses.MISSING:
            value = field.default_factory()
        else:
            value = None
        object.__setattr__(record, field.name, value)
    return record


def copy_fields(source: Any, target: Any) -> None:
    """Copy the exported field values of one record onto another."""
    for field in dataclasses.fields(source):
        if not field.name.startswith("_"):
            setattr(target, field.name, getattr(source, field.name))
