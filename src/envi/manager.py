"""Envi: loads config records and keeps watched files live."""

import logging
import queue
import threading
from pathlib import Path
from typing import Any

from .exceptions import ValidationError
from .loader import populate
from .models import EnviOptions
from .unmarshal import Unmarshaler
from .validation import validate
from .watcher import WatchCoordinator

logger = logging.getLogger(__name__)


class Envi:
    """Populates config records and watches their backing files.

    Resolution order for string fields (highest to lowest priority):
    1. Environment variable named by ``env`` (if set and non-empty)
    2. ``default`` tag

    Record fields are loaded from a file whose path resolves the same way.
    The record's own defaults are applied first, so file content always wins.

    Watches started by ``load`` keep running until ``close`` is called. Reload
    errors are reported to the record's ``on_error`` and to ``errors``.

    Args:
        options: Watch settings (default: EnviOptions())
    """

    def __init__(self, options: EnviOptions | None = None):
        self.options = options or EnviOptions()
        self.errors: queue.Queue = queue.Queue(maxsize=self.options.error_queue_size)
        self._coordinator = WatchCoordinator(self.options, self.errors)

    def __enter__(self) -> "Envi":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def load(self, config: Any) -> None:
        """Populate a config record in place and validate it.

        Args:
            config: Dataclass instance to populate

        Raises:
            ValidationError: If required fields are left unset, listing all of them
            ConfigError: If the record is malformed or a backing file fails to load
        """
        populate(config, self._watch)

        errors = validate(config)
        if errors:
            raise ValidationError(errors)

        logger.debug(f"Loaded {type(config).__name__}")

    def lock_for(self, record: Any) -> threading.Lock:
        """Get the lock held while a watched record is being updated.

        Args:
            record: Nested record loaded with ``watch=True``

        Returns:
            Lock to hold while reading several fields consistently

        Raises:
            ConfigError: If the record is not watched by this instance
        """
        return self._coordinator.lock_for(record)

    def close(self) -> None:
        """Stop every watch started by this instance.

        Safe to call more than once.

        Raises:
            CloseError: If one or more watches failed to stop
        """
        self._coordinator.close()

    def _watch(self, field: str, record: Any, path: Path, unmarshal: Unmarshaler, content: bytes) -> None:
        self._coordinator.watch_file(field, record, path, unmarshal, content)
