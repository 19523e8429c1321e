"""
Backend selection.

Remembers which store ("remote" or "local") CRUD calls go to. The choice is
persisted as a small JSON file so it survives restarts, and it is read fresh
by the repository before every dispatch: switching backends takes effect on
the next call and never redirects one already in flight.
"""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path

from .exceptions import AdapterError, ValidationError
from .file_ops import read_json, remove_file, write_json_atomic

logger = logging.getLogger(__name__)

CHOICE_FIELD = "database_choice"


class BackendChoice(Enum):
    """Which store CRUD calls are dispatched to."""

    REMOTE = "remote"
    LOCAL = "local"

    @classmethod
    def parse(cls, value: BackendChoice | str) -> BackendChoice:
        """Parse a choice, accepting the legacy names ``mongodb`` and ``sqlite``."""
        if isinstance(value, BackendChoice):
            return value
        normalized = str(value).strip().lower()
        normalized = _LEGACY_NAMES.get(normalized, normalized)
        try:
            return cls(normalized)
        except ValueError:
            raise ValidationError(
                "choice", "must be 'remote' or 'local'", str(value)
            ) from None


_LEGACY_NAMES = {"mongodb": "remote", "sqlite": "local"}

DEFAULT_CHOICE = BackendChoice.REMOTE


class BackendSelector:
    """Persisted process-wide backend choice.

    With ``path=None`` the choice lives in memory only, which is what tests
    and hosts that manage their own settings want.

    Example:
        >>> selector = BackendSelector(Path("~/.dualstore/database_choice.json"))
        >>> await selector.set_choice(BackendChoice.LOCAL)
        >>> await selector.get_choice()
        <BackendChoice.LOCAL: 'local'>
    """

    def __init__(self, path: Path | str | None = None, default: BackendChoice = DEFAULT_CHOICE):
        self.path = Path(path).expanduser() if path else None
        self.default = default
        self._memory: BackendChoice | None = None

    async def get_choice(self) -> BackendChoice:
        """Return the stored choice, or the default when none is stored.

        An unreadable or corrupt choice file is logged and treated as unset.
        """
        if self.path is None:
            return self._memory or self.default

        try:
            data = await read_json(self.path)
        except AdapterError as e:
            logger.warning(f"Ignoring unreadable backend choice: {e}")
            return self.default

        if not data or CHOICE_FIELD not in data:
            return self.default

        try:
            return BackendChoice.parse(data[CHOICE_FIELD])
        except ValidationError as e:
            logger.warning(f"Ignoring invalid backend choice in {self.path}: {e}")
            return self.default

    async def set_choice(self, choice: BackendChoice | str) -> BackendChoice:
        """Store a new choice. Returns the parsed value."""
        parsed = BackendChoice.parse(choice)
        if self.path is None:
            self._memory = parsed
        else:
            await write_json_atomic(self.path, {CHOICE_FIELD: parsed.value})
        logger.info(f"Backend choice set to {parsed.value}")
        return parsed

    async def clear_choice(self) -> None:
        """Forget the stored choice so the default applies again."""
        self._memory = None
        if self.path is not None:
            await remove_file(self.path)
        logger.info("Backend choice cleared")
