"""Exceptions for envi."""

from pathlib import Path


class ConfigError(Exception):
    """Base exception for configuration errors."""

    pass


class ConfigFileError(ConfigError):
    """Error reading a configuration file."""

    def __init__(self, path: Path | str, message: str):
        self.path = Path(path)
        super().__init__(f"{message}: {path}")


class InvalidKindError(ConfigError):
    """A field is not of the expected kind."""

    def __init__(self, field: str, expected: str, got: str):
        self.field = field
        self.expected = expected
        self.got = got
        super().__init__(f"expected field {field} to be kind {expected} got {got}")


class MissingTagError(ConfigError):
    """A required tag is not set on a field."""

    def __init__(self, field: str, tag: str):
        self.field = field
        self.tag = tag
        super().__init__(f"tag {tag} not set on field {field}")


class InvalidTagError(ConfigError):
    """A tag carries a value that is not recognized."""

    def __init__(self, tag: str):
        self.tag = tag
        super().__init__(f"invalid tag {tag}")


class ParsingError(ConfigError):
    """A default value could not be parsed into the field's type."""

    def __init__(self, type_name: str, err: Exception):
        self.type = type_name
        self.err = err
        super().__init__(f"could not parse {type_name}: {err}")


class UnmarshalError(ConfigError):
    """File content could not be decoded into a record."""

    def __init__(self, type_name: str, err: Exception):
        self.type = type_name
        self.err = err
        super().__init__(f"could not unmarshal {type_name}: {err}")


class MissingCallbackError(ConfigError):
    """A watched record does not implement on_change/on_error."""

    def __init__(self, field: str, type_name: str):
        self.field = field
        super().__init__(f"field {field} is watched but {type_name} does not implement on_change and on_error")


class FieldRequiredError(ConfigError):
    """A required field is not set."""

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"field {field} is required")


class ValidationError(ConfigError):
    """One or more fields failed validation.

    Attributes:
        errors: Every violation found, in traversal order
    """

    def __init__(self, errors: list[ConfigError]):
        self.errors = list(errors)
        super().__init__("\n".join(str(err) for err in self.errors))


class WatchError(ConfigError):
    """A directory watch could not be started or re-registered."""

    pass


class ReloadError(ConfigError):
    """Reloading a watched file failed."""

    def __init__(self, path: Path | str, err: Exception):
        self.path = Path(path)
        self.err = err
        super().__init__(f"failed to reload {path}: {err}")


class WatchedFileRemovedError(ConfigError):
    """A watched file was removed or renamed away."""

    def __init__(self, path: Path | str):
        self.path = Path(path)
        super().__init__(f"watched file was removed: {path}")


class CloseError(ConfigError):
    """One or more watchers failed to close."""

    def __init__(self, errors: list[Exception]):
        self.errors = list(errors)
        super().__init__("\n".join(str(err) for err in self.errors))


class RequiredEnvVarsMissingError(ConfigError):
    """One or more required environment variables are missing."""

    def __init__(self, missing: list[str]):
        self.missing = sorted(missing)
        super().__init__(f"required environment variables are missing: {', '.join(self.missing)}")
