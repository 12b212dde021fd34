"""envi: Declarative config records from environment, defaults and files.

This library populates dataclass records. String fields come from an
environment variable or a default; nested record fields are loaded from a
JSON, YAML or text file and can be watched for changes, reloading the record
in place.

Public API:
    Envi: Loads records and owns their file watches
    EnviOptions: Watch settings
    setting: Declares a field together with its tags
    Watchable: Callbacks required by watched records
    load_env_vars: Loads named environment variables into a dictionary
    ConfigError and subclasses: Exception types

Example:
    ```python
    from dataclasses import dataclass
    from envi import Envi, setting

    @dataclass
    class Secrets:
        token: str = setting(key="TOKEN", required=True)

        def on_change(self):
            print("secrets reloaded")

        def on_error(self, err):
            print(f"reload failed: {err}")

    @dataclass
    class Config:
        name: str = setting(env="APP_NAME", default="demo")
        secrets: Secrets | None = setting(env="SECRETS_PATH", default="./secrets.yaml", watch=True)

    with Envi() as envi:
        config = Config()
        envi.load(config)
    ```
"""

from .exceptions import CloseError
from .exceptions import ConfigError
from .exceptions import ConfigFileError
from .exceptions import FieldRequiredError
from .exceptions import InvalidKindError
from .exceptions import InvalidTagError
from .exceptions import MissingCallbackError
from .exceptions import MissingTagError
from .exceptions import ParsingError
from .exceptions import ReloadError
from .exceptions import RequiredEnvVarsMissingError
from .exceptions import UnmarshalError
from .exceptions import ValidationError
from .exceptions import WatchedFileRemovedError
from .exceptions import WatchError
from .manager import Envi
from .models import EnviOptions
from .models import FileType
from .models import Watchable
from .models import setting
from .utils import load_env_vars

__version__ = "0.1.0"

__all__ = [
    "Envi",
    "EnviOptions",
    "FileType",
    "Watchable",
    "setting",
    "load_env_vars",
    "ConfigError",
    "ConfigFileError",
    "InvalidKindError",
    "MissingTagError",
    "InvalidTagError",
    "ParsingError",
    "UnmarshalError",
    "MissingCallbackError",
    "FieldRequiredError",
    "ValidationError",
    "WatchError",
    "ReloadError",
    "WatchedFileRemovedError",
    "CloseError",
    "RequiredEnvVarsMissingError",
]
