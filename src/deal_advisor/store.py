"""
Preferences persistence at the application boundary.

The engine only ever receives a Preferences value. This store is what the
service uses to load that value at startup and to save edits.
"""

import json
import os
import tempfile
from pathlib import Path

from pydantic import ValidationError as PydanticValidationError

from .config import config
from .errors import PreferencesError
from .logging import get_logger
from .models.preferences import Preferences

logger = get_logger(__name__)


class PreferencesStore:
    """JSON file holding one user's Preferences."""

    def __init__(self, path: str | Path | None = None):
        self.path = Path(path or config.PREFERENCES_PATH)

    def load(self) -> Preferences:
        """
        Read preferences from disk.

        Returns:
            Stored preferences, or defaults when no file exists yet

        Raises:
            PreferencesError: file is unreadable, not JSON, or fails validation
        """
        if not self.path.exists():
            logger.info('preferences.defaults', path=str(self.path))
            return Preferences()
        try:
            raw = self.path.read_text(encoding='utf-8')
            return Preferences.model_validate(json.loads(raw))
        except (OSError, json.JSONDecodeError, PydanticValidationError) as e:
            raise PreferencesError(
                f"Could not load preferences from {self.path}",
                context={'path': str(self.path), 'error_type': type(e).__name__, 'original_error': str(e)},
            ) from e

    def save(self, preferences: Preferences) -> None:
        """Write preferences atomically (temp file + rename)."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix='.prefs-', suffix='.json')
            try:
                with os.fdopen(fd, 'w', encoding='utf-8') as fh:
                    fh.write(preferences.model_dump_json(indent=2))
                os.replace(tmp, self.path)
            except BaseException:
                Path(tmp).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise PreferencesError(
                f"Could not save preferences to {self.path}",
                context={'path': str(self.path), 'error_type': type(e).__name__, 'original_error': str(e)},
            ) from e
        logger.info('preferences.saved', path=str(self.path))
