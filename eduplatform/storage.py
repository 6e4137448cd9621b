import json
import logging
import os
import re
from typing import Dict, Optional

logger = logging.getLogger("eduplatform.storage")

TOKEN_KEY = "authToken"
THEME_KEY = "theme"


class LocalStorage:
    """String key-value store that survives restarts.

    Backed by a JSON file when a path is given, otherwise kept in memory.
    """

    def __init__(self, path: Optional[str] = None):
        self.path = path
        self._items: Dict[str, str] = {}
        if path and os.path.exists(path):
            try:
                with open(path, "r", encoding="utf-8") as f:
                    self._items = {str(k): str(v) for k, v in json.load(f).items()}
            except (OSError, ValueError) as e:
                logger.warning("Ignoring unreadable storage file %s: %s", path, e)

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = str(value)
        self._flush()

    def remove_item(self, key: str) -> None:
        if self._items.pop(key, None) is not None:
            self._flush()

    def _flush(self) -> None:
        if not self.path:
            return
        os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(self._items, f)


def safe_filename(name: str, default: str = "download") -> str:
    # keep only the last path component and drop characters no filesystem likes
    name = re.split(r"[\\/]", name or "")[-1].strip()
    name = re.sub(r'[\x00-\x1f<>:"|?*]', "_", name)
    if name in ("", ".", ".."):
        return default
    return name


class DownloadFolder:
    """Directory where downloaded files are saved."""

    def __init__(self, directory: str):
        self.directory = directory

    def open(self, filename: str):
        os.makedirs(self.directory, exist_ok=True)
        path = os.path.join(self.directory, safe_filename(filename))
        return path, open(path, "wb")
