"""Persistence for the comment collection."""

import json
from pathlib import Path

from .errors import CommentStoreError
from .models import Comment


class JsonCommentStore:
    """Stores the ordered comment collection in a JSON file."""

    VERSION = "1.0"

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> list[Comment]:
        """
        Load comments, newest first.

        A missing file is an empty collection. Unreadable or malformed
        data raises CommentStoreError.
        """
        if not self.path.exists():
            return []

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise CommentStoreError(f"Could not read {self.path}: {e}") from e

        # Older files hold a bare list
        records = data.get("comments", []) if isinstance(data, dict) else data
        if not isinstance(records, list):
            raise CommentStoreError(f"Unexpected comment data in {self.path}")

        try:
            return [Comment.from_dict(record) for record in records]
        except (KeyError, TypeError, ValueError) as e:
            raise CommentStoreError(f"Malformed comment in {self.path}: {e}") from e

    def save(self, comments: list[Comment]) -> None:
        """Write the full collection, replacing the previous file."""
        data = {
            "version": self.VERSION,
            "comments": [c.to_dict() for c in comments],
        }

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            tmp_path.replace(self.path)
        except OSError as e:
            raise CommentStoreError(f"Could not write {self.path}: {e}") from e

    def clear(self) -> None:
        """Delete the stored collection."""
        self.path.unlink(missing_ok=True)


class MemoryCommentStore:
    """Keeps serialized comments in memory; used when no file is wanted."""

    def __init__(self, comments: list[Comment] | None = None):
        self._records = [c.to_dict() for c in comments or []]
        self.save_count = 0

    def load(self) -> list[Comment]:
        return [Comment.from_dict(record) for record in self._records]

    def save(self, comments: list[Comment]) -> None:
        self._records = [c.to_dict() for c in comments]
        self.save_count += 1
