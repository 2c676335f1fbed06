"""JSON-backed media index for the shared pictures area.

The index mirrors the two ways a platform media catalog can be fed:

* *managed insertion*: the caller describes the entry (display name, MIME
  type, relative path) and the index allocates the destination file and
  hands back a write handle;
* *direct registration*: the caller already wrote a file and records its
  absolute path.

The catalog lives in a single JSON file that is rewritten atomically.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
import time
from contextlib import contextmanager
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, BinaryIO, Iterator, List, Optional

logger = logging.getLogger(__name__)

EXTERNAL_CONTENT_URI = "content://media/external/images/media"

_INDEX_LOCK = threading.RLock()


@dataclass
class MediaEntry:
    id: int
    uri: str
    display_name: str
    title: str
    mime_type: str
    relative_path: str | None
    data: str
    pending: bool = False
    date_added: int = 0

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "MediaEntry":
        entry_id = int(payload["id"])
        return cls(
            id=entry_id,
            uri=payload.get("uri") or f"{EXTERNAL_CONTENT_URI}/{entry_id}",
            display_name=payload.get("display_name") or "",
            title=payload.get("title") or payload.get("display_name") or "",
            mime_type=payload.get("mime_type") or "image/png",
            relative_path=payload.get("relative_path"),
            data=payload.get("data") or "",
            pending=bool(payload.get("pending", False)),
            date_added=int(payload.get("date_added") or 0),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _dedupe_name(directory: Path, name: str, taken: set[str]) -> str:
    """Return ``name`` or ``stem (n)suffix`` so it is free both on disk and in the index."""

    candidate = name
    stem, suffix = os.path.splitext(name)
    counter = 1
    while (directory / candidate).exists() or str(directory / candidate) in taken:
        candidate = f"{stem} ({counter}){suffix}"
        counter += 1
    return candidate


class MediaIndex:
    def __init__(self, index_path: Path, storage_root: Path) -> None:
        self.index_path = Path(index_path)
        self.storage_root = Path(storage_root).resolve()

    # -- catalog persistence -------------------------------------------------

    def _read(self) -> dict[str, Any]:
        if not self.index_path.exists():
            return {"next_id": 1, "entries": []}
        try:
            with self.index_path.open("r", encoding="utf-8") as handle:
                payload = json.load(handle)
        except json.JSONDecodeError:
            logger.warning("[media-index] Catalog is corrupted; starting empty", extra={"index": str(self.index_path)})
            return {"next_id": 1, "entries": []}
        if not isinstance(payload, dict) or not isinstance(payload.get("entries"), list):
            return {"next_id": 1, "entries": []}
        payload.setdefault("next_id", len(payload["entries"]) + 1)
        return payload

    def _write(self, payload: dict[str, Any]) -> None:
        self.index_path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=".media_index.", suffix=".tmp", dir=str(self.index_path.parent)
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(payload, handle, ensure_ascii=False, indent=2)
            os.replace(tmp_name, self.index_path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except OSError:  # pragma: no cover - temp file already gone
                pass
            raise

    # -- queries -------------------------------------------------------------

    def entries(self, relative_path: str | None = None) -> List[MediaEntry]:
        with _INDEX_LOCK:
            payload = self._read()
        items = [MediaEntry.from_dict(item) for item in payload["entries"]]
        if relative_path is not None:
            wanted = relative_path.strip("/")
            items = [
                item
                for item in items
                if (item.relative_path or "").strip("/") == wanted
                or Path(item.data).parent == self.storage_root / wanted
            ]
        return items

    def get(self, uri: str) -> Optional[MediaEntry]:
        for entry in self.entries():
            if entry.uri == uri:
                return entry
        return None

    # -- mutations -----------------------------------------------------------

    def _resolve_relative_dir(self, relative_path: str) -> Path | None:
        root = self.storage_root
        directory = (root / relative_path.strip("/")).resolve()
        if directory != root and root not in directory.parents:
            return None
        return directory

    def insert(self, values: dict[str, Any]) -> Optional[MediaEntry]:
        """Add an entry and return it, or ``None`` when nothing could be allocated.

        ``values`` with a ``relative_path`` allocate a new pending file under the
        storage root. ``values`` with ``data`` register an existing absolute path;
        registering the same path again refreshes the existing entry.
        """

        display_name = (values.get("display_name") or "").strip()
        mime_type = values.get("mime_type") or "image/png"
        title = values.get("title") or display_name

        with _INDEX_LOCK:
            try:
                payload = self._read()
                if values.get("relative_path"):
                    return self._insert_managed(payload, values["relative_path"], display_name, title, mime_type)
                if values.get("data"):
                    return self._insert_existing(payload, str(values["data"]), display_name, title, mime_type)
            except OSError as exc:
                logger.error(
                    "[media-index] Insert failed",
                    extra={"index": str(self.index_path), "display_name": display_name, "error": str(exc)},
                )
                return None

        logger.warning("[media-index] Insert without relative_path or data ignored")
        return None

    def _insert_managed(
        self,
        payload: dict[str, Any],
        relative_path: str,
        display_name: str,
        title: str,
        mime_type: str,
    ) -> Optional[MediaEntry]:
        if not display_name:
            return None
        directory = self._resolve_relative_dir(relative_path)
        if directory is None:
            logger.warning(
                "[media-index] Relative path escapes storage root",
                extra={"relative_path": relative_path},
            )
            return None

        directory.mkdir(parents=True, exist_ok=True)
        taken = {item.get("data") for item in payload["entries"]}
        allocated = _dedupe_name(directory, display_name, taken)
        target = directory / allocated
        # Reserve the file so a concurrent insert cannot pick the same name.
        with target.open("xb"):
            pass

        entry_id = int(payload["next_id"])
        entry = MediaEntry(
            id=entry_id,
            uri=f"{EXTERNAL_CONTENT_URI}/{entry_id}",
            display_name=allocated,
            title=title if allocated == display_name else os.path.splitext(allocated)[0],
            mime_type=mime_type,
            relative_path=relative_path.strip("/"),
            data=str(target),
            pending=True,
            date_added=int(time.time()),
        )
        payload["entries"].append(entry.to_dict())
        payload["next_id"] = entry_id + 1
        try:
            self._write(payload)
        except OSError:
            target.unlink(missing_ok=True)
            raise

        logger.info(
            "[media-index] Entry allocated",
            extra={"uri": entry.uri, "path": entry.data, "display_name": allocated},
        )
        return entry

    def _insert_existing(
        self,
        payload: dict[str, Any],
        data: str,
        display_name: str,
        title: str,
        mime_type: str,
    ) -> MediaEntry:
        path = Path(data)
        if not path.is_absolute():
            raise OSError(f"media path must be absolute: {data}")
        if not path.exists():
            raise FileNotFoundError(data)
        path = path.resolve()

        now = int(time.time())
        for item in payload["entries"]:
            if item.get("data") == str(path):
                item.update(
                    display_name=display_name or path.name,
                    title=title or path.name,
                    mime_type=mime_type,
                    pending=False,
                    date_added=now,
                )
                self._write(payload)
                entry = MediaEntry.from_dict(item)
                logger.info("[media-index] Entry refreshed", extra={"uri": entry.uri, "path": entry.data})
                return entry

        entry_id = int(payload["next_id"])
        entry = MediaEntry(
            id=entry_id,
            uri=f"{EXTERNAL_CONTENT_URI}/{entry_id}",
            display_name=display_name or path.name,
            title=title or path.name,
            mime_type=mime_type,
            relative_path=None,
            data=str(path),
            pending=False,
            date_added=now,
        )
        payload["entries"].append(entry.to_dict())
        payload["next_id"] = entry_id + 1
        self._write(payload)
        logger.info("[media-index] Entry registered", extra={"uri": entry.uri, "path": entry.data})
        return entry

    def _mark_published(self, uri: str) -> None:
        with _INDEX_LOCK:
            payload = self._read()
            for item in payload["entries"]:
                if item.get("uri") == uri:
                    item["pending"] = False
                    break
            else:
                return
            self._write(payload)

    @contextmanager
    def open_output_stream(self, entry: MediaEntry) -> Iterator[BinaryIO]:
        """Yield a writable stream for a pending entry and publish it on clean close."""

        if not entry.pending:
            raise PermissionError(f"entry {entry.uri} is not open for writing")
        with open(entry.data, "wb") as handle:
            yield handle
            handle.flush()
        self._mark_published(entry.uri)


__all__ = ["EXTERNAL_CONTENT_URI", "MediaEntry", "MediaIndex"]
