"""Local file-based storage for player progress."""

import json
import logging
import os
from pathlib import Path
from typing import Any

from pydantic import ValidationError
from pydantic.alias_generators import to_camel

from serene_arcade.models import UserProgress

logger = logging.getLogger(__name__)

DEFAULT_DATA_DIR = Path.home() / ".serene_arcade"

# Key the progress record is stored under
PROGRESS_KEY = "UserProgress"


def default_data_dir() -> Path:
    """Data directory from SERENE_ARCADE_DATA_DIR, or the default."""
    env_dir = os.getenv("SERENE_ARCADE_DATA_DIR")
    return Path(env_dir).expanduser() if env_dir else DEFAULT_DATA_DIR


class LocalStore:
    """Key-value store keeping one JSON file per key."""

    def __init__(self, data_dir: Path | str | None = None):
        self.data_dir = Path(data_dir) if data_dir else default_data_dir()
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def path_for(self, key: str) -> Path:
        return self.data_dir / f"{key}.json"

    def get(self, key: str) -> bytes | None:
        """Raw stored value, or None if nothing is stored under the key."""
        path = self.path_for(key)
        if not path.exists():
            return None
        return path.read_bytes()

    def set(self, key: str, value: str) -> None:
        """Store a value, replacing the previous one in a single rename."""
        path = self.path_for(key)
        tmp_path = path.with_suffix(".json.tmp")
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                f.write(value)
            os.replace(tmp_path, path)
        except OSError:
            tmp_path.unlink(missing_ok=True)
            raise

    def remove(self, key: str) -> bool:
        """Delete a stored value. Returns True if something was deleted."""
        path = self.path_for(key)
        if path.exists():
            path.unlink()
            return True
        return False


def encode_user_progress(progress: UserProgress) -> str:
    """Serialize progress to the persisted JSON layout (camelCase keys)."""
    return json.dumps(progress.model_dump(mode="json", by_alias=True), indent=2)


def decode_user_progress(data: dict[str, Any]) -> UserProgress:
    """Build progress from a saved JSON object, one field at a time.

    A missing or malformed field falls back to its fresh value while the
    other fields are kept.
    """
    values = {}
    for name, field in UserProgress.model_fields.items():
        key = field.alias or to_camel(name)
        if key not in data:
            continue
        try:
            partial = UserProgress.model_validate({key: data[key]})
        except ValidationError as e:
            logger.warning("Ignoring malformed %r in saved progress: %s", key, e.errors()[0]["msg"])
            continue
        except RecursionError:
            logger.warning("Ignoring malformed %r in saved progress: nested too deeply", key)
            continue
        values[name] = getattr(partial, name)
    return UserProgress(**values)


class ProgressStore:
    """Loads and saves the player progress record.

    Neither operation raises: a failed save is logged and dropped, and a
    record that cannot be read is deleted and replaced by fresh progress.
    """

    def __init__(self, store: LocalStore | None = None, key: str = PROGRESS_KEY):
        self.store = store or LocalStore()
        self.key = key

    def save(self, progress: UserProgress) -> bool:
        """Persist progress. Returns False if the write was dropped."""
        try:
            self.store.set(self.key, encode_user_progress(progress))
        except (OSError, TypeError, ValueError) as e:
            logger.warning("Could not save progress under %r: %s", self.key, e)
            return False
        return True

    def load(self) -> UserProgress:
        """Load saved progress, or fresh progress if there is none."""
        try:
            raw = self.store.get(self.key)
        except OSError as e:
            logger.warning("Could not read progress under %r: %s", self.key, e)
            return UserProgress()

        if raw is None:
            return UserProgress()

        try:
            data = json.loads(raw)
        except (ValueError, RecursionError):
            data = None

        if not isinstance(data, dict):
            # Corrupted record, drop it so the next save starts clean
            logger.warning("Discarding unreadable progress under %r", self.key)
            self.clear()
            return UserProgress()

        return decode_user_progress(data)

    def clear(self) -> None:
        """Delete the saved record."""
        try:
            self.store.remove(self.key)
        except OSError as e:
            logger.warning("Could not delete progress under %r: %s", self.key, e)
