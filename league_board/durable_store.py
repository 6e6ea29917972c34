# league_board/durable_store.py
"""
Durable cache tier: one JSON file per key.

Survives process restarts and can be shared by several processes pointing at
the same directory. There is no locking; the last writer wins and readers
re-check the TTL stamped in each entry.
"""

from __future__ import annotations

import hashlib
import json
import os
import uuid
from contextlib import suppress
from pathlib import Path
from typing import Any, Dict, Optional

from .errors import DurableStoreError


def _atomic_write_json(path: Path, value: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(f".tmp-{path.name}-{uuid.uuid4().hex}")
    try:
        payload = json.dumps(value, sort_keys=True, ensure_ascii=True)
        tmp_path.write_text(payload, encoding="utf-8")
        os.replace(tmp_path, path)
    except (OSError, TypeError, ValueError):
        with suppress(FileNotFoundError):
            tmp_path.unlink()
        raise


class JsonFileStore:
    """Key-addressed JSON entries under a single directory."""

    def __init__(self, root: Path | str) -> None:
        self.root = Path(root).resolve()
        self.root.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        digest = hashlib.sha1(key.encode("utf-8")).hexdigest()
        return self.root / f"{digest}.json"

    def _load(self, path: Path) -> Dict[str, Any]:
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise DurableStoreError(f"unreadable cache entry {path.name}: {exc}") from exc
        if not isinstance(payload, dict) or not isinstance(payload.get("key"), str):
            raise DurableStoreError(f"malformed cache entry {path.name}")
        return payload

    def read(self, key: str) -> Optional[Dict[str, Any]]:
        """Return the stored entry dict for key, or None when absent."""
        path = self._path(key)
        if not path.exists():
            return None
        payload = self._load(path)
        if payload["key"] != key:
            # sha1 collision or a hand-edited file; not ours
            return None
        return payload

    def write(self, key: str, entry: Dict[str, Any]) -> None:
        try:
            _atomic_write_json(self._path(key), {**entry, "key": key})
        except (OSError, TypeError, ValueError) as exc:
            raise DurableStoreError(f"could not write cache entry {key!r}: {exc}") from exc

    def delete(self, key: str) -> None:
        self._delete_path(self._path(key))

    def _delete_path(self, path: Path) -> None:
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as exc:
            raise DurableStoreError(f"could not delete {path.name}: {exc}") from exc

    def delete_matching(self, substring: str) -> int:
        """Delete every entry whose key contains substring; corrupt files are removed too."""
        removed = 0
        for path in sorted(self.root.glob("*.json")):
            try:
                key = self._load(path)["key"]
            except DurableStoreError:
                self._delete_path(path)
                continue
            if substring in key:
                self._delete_path(path)
                removed += 1
        return removed

    def clear(self) -> None:
        for path in self.root.glob("*.json"):
            self._delete_path(path)
