# pricewatch/storage/item_store.py

"""Per-user JSON storage of tracked items with a write-through cache."""

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any

from pricewatch.config.logging_config import with_context
from pricewatch.config.settings import Settings
from pricewatch.models.tracked_item import TrackedItem

logger = logging.getLogger("pricewatch.storage")

_TRACKED_FILE = "tracked.json"


class ItemStore:
    """Reads and writes ``<userdata>/<user_id>/tracked.json``.

    The in-memory cache is updated in the same critical section as the
    file, so reads within the process always see the last write. Callers
    get copies of the cached lists.
    """

    def __init__(self, userdata_dir: Path | None = None) -> None:
        self.userdata_dir: Path = userdata_dir or Settings.USERDATA_DIR
        self.userdata_dir.mkdir(parents=True, exist_ok=True)
        self._cache: dict[str, list[TrackedItem]] = {}
        self._lock = threading.Lock()
        logger.debug("ItemStore initialised, userdata_dir=%s", self.userdata_dir)

    def _path_for(self, user_id: str) -> Path:
        return self.userdata_dir / str(user_id) / _TRACKED_FILE

    def list_users(self) -> list[str]:
        """IDs of every user with a data directory, sorted."""
        return sorted(
            p.name for p in self.userdata_dir.iterdir() if p.is_dir()
        )

    def user_exists(self, user_id: str) -> bool:
        return (self.userdata_dir / str(user_id)).is_dir()

    def get_items(self, user_id: str) -> list[TrackedItem]:
        """Items tracked by *user_id*; empty if the user has no file yet."""
        with self._lock:
            cached = self._cache.get(user_id)
            if cached is None:
                cached = self._read(user_id)
                self._cache[user_id] = cached
            return list(cached)

    def _read(self, user_id: str) -> list[TrackedItem]:
        path = self._path_for(user_id)
        if not path.exists():
            return []
        with open(path, encoding="utf-8") as f:
            data: dict[str, Any] = json.load(f)
        return [
            TrackedItem.from_dict(raw)
            for raw in data.get("trackedItems", [])
        ]

    def save_items(self, user_id: str, items: list[TrackedItem]) -> Path:
        """Replace *user_id*'s items, sorted by name, and refresh the cache."""
        to_save = sorted(items, key=lambda item: item.name)
        path = self._path_for(user_id)
        payload = {"trackedItems": [item.to_dict() for item in to_save]}

        with self._lock:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=path.parent, prefix=".tracked-", suffix=".json"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(payload, f, ensure_ascii=False, indent=2)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
            self._cache[user_id] = to_save

        with_context(logger, user=user_id).info(
            "Saved %d tracked items to %s",
            len(to_save),
            path,
        )
        return path

    def create_user(self, user_id: str) -> None:
        """Create the user's directory with an empty item list."""
        if self.user_exists(user_id):
            return
        self.save_items(user_id, [])
