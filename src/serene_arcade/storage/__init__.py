"""Storage for player progress."""

from serene_arcade.storage.local import (
    DEFAULT_DATA_DIR,
    PROGRESS_KEY,
    LocalStore,
    ProgressStore,
    decode_user_progress,
    default_data_dir,
    encode_user_progress,
)

__all__ = [
    "DEFAULT_DATA_DIR",
    "PROGRESS_KEY",
    "LocalStore",
    "ProgressStore",
    "decode_user_progress",
    "default_data_dir",
    "encode_user_progress",
]
