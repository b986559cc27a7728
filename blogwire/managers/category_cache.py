"""
On-disk cache of server categories, one JSON file per (host, blog, user).
"""

import hashlib
import json
import logging
import re
from pathlib import Path
from typing import List

from blogwire.models.category import CategoryEntry

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._@-]")


class CategoryCache:
    """
    Loads and saves category lists so later sessions skip the fetch.

    Attributes:
        cache_dir: Directory holding one file per (host, blog id, username).
    """

    def __init__(self, cache_dir: Path) -> None:
        """Initialize the cache with a directory path.

        Args:
            cache_dir: Directory where cache files are stored. Created on first save.
        """
        self.cache_dir = Path(cache_dir)
        self.logging = logging.getLogger(__name__)

    def _file_path(self, host: str, blog_id: str, username: str) -> Path:
        """
        Get the cache file path for a (host, blog id, username) triple.

        The readable prefix may collide once unsafe characters are replaced,
        so the name ends with a digest of the exact triple.
        """
        parts = [_UNSAFE_CHARS.sub("_", part) for part in (host, blog_id, username)]
        digest = hashlib.sha256("\0".join((host, blog_id, username)).encode("utf-8"))
        return self.cache_dir / f"{'_'.join(parts)}_{digest.hexdigest()[:16]}.json"

    def load(self, host: str, blog_id: str, username: str) -> List[CategoryEntry]:
        """Load the cached categories.

        Args:
            host: Server host name.
            blog_id: Blog identifier on that server.
            username: Account the categories were fetched with.

        Returns:
            The cached entries in server order. Empty when any identifying
            string is empty, when nothing was cached yet, or when the file
            cannot be decoded.
        """
        if not host or not blog_id or not username:
            return []

        path = self._file_path(host, blog_id, username)
        if not path.exists():
            return []

        try:
            with path.open(encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            self.logging.warning(f"Ignoring unreadable category cache {path}: {e}")
            return []

        categories = data.get("categories") if isinstance(data, dict) else None
        if not isinstance(categories, list):
            self.logging.warning(f"Ignoring category cache {path}: no list of categories")
            return []

        try:
            entries = [CategoryEntry.from_dict(item) for item in categories]
        except (AttributeError, KeyError, TypeError) as e:
            self.logging.warning(f"Ignoring category cache {path}: {e}")
            return []
        self.logging.debug(f"Loaded {len(entries)} categories from {path}")
        return entries

    def save(
        self, host: str, blog_id: str, username: str, entries: List[CategoryEntry]
    ) -> None:
        """Write the categories, replacing any previous file.

        Nothing is written when any identifying string is empty.
        """
        if not host or not blog_id or not username:
            return

        path = self._file_path(host, blog_id, username)
        path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "host": host,
            "blog_id": blog_id,
            "username": username,
            "categories": [entry.to_dict() for entry in entries],
        }
        with path.open("w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)

        self.logging.debug(f"Saved {len(entries)} categories to {path}")
