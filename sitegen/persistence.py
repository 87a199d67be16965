"""Local snapshot of the current document.

The store holds one JSON record shaped like::

    {"html": ..., "css": ..., "images": [...], "favicon": {...} | null,
     "timestamp": <ms since epoch>, "metaDescription": ..., ...}

Saving never raises: when the record does not fit, it is retried without
image payloads, and if that still fails the save is dropped and logged.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import tempfile
import time
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .config import DEFAULT_STATE_QUOTA
from .document import Document
from .errors import PersistenceWriteError, StorageQuotaError

LOGGER = logging.getLogger(__name__)


class StateStore:
    """A single-record JSON key-value store with a byte quota."""

    def __init__(
        self, path: Union[str, Path], *, quota_bytes: int = DEFAULT_STATE_QUOTA
    ):
        self.path = Path(path).expanduser()
        self.quota_bytes = quota_bytes

    def write(self, record: Dict[str, Any]) -> None:
        payload = json.dumps(record, ensure_ascii=False)
        size = len(payload.encode("utf-8"))
        if size > self.quota_bytes:
            raise StorageQuotaError(
                f"State record of {size} bytes exceeds quota of {self.quota_bytes} bytes"
            )
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=".state-", suffix=".json", dir=str(self.path.parent)
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    fh.write(payload)
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise PersistenceWriteError(f"Could not write {self.path}: {exc}") from exc

    def read(self) -> Optional[Dict[str, Any]]:
        """Return the stored record, or None when absent or unreadable."""
        if not self.path.is_file():
            return None
        try:
            with open(self.path, "r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, ValueError) as exc:
            LOGGER.warning("Ignoring unreadable state file %s: %s", self.path, exc)
            return None
        if not isinstance(data, dict):
            LOGGER.warning("Ignoring malformed state file %s", self.path)
            return None
        return data

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)


def document_to_record(document: Document, *, include_images: bool = True) -> Dict[str, Any]:
    record = document.to_dict()
    if not include_images:
        record["images"] = []
        record["favicon"] = None
    record["timestamp"] = int(time.time() * 1000)
    return record


def save_document(store: StateStore, document: Document) -> bool:
    """Persist *document*; returns False when the save was dropped."""
    try:
        store.write(document_to_record(document))
        return True
    except PersistenceWriteError as exc:
        LOGGER.warning("Saving state failed (%s); retrying without images", exc)

    try:
        store.write(document_to_record(document, include_images=False))
        return True
    except PersistenceWriteError as exc:
        LOGGER.error("Saving state failed without images too; dropping save: %s", exc)
        return False


def load_document(store: StateStore) -> Optional[Document]:
    """Restore the saved document; None when there is no usable prior state."""
    record = store.read()
    if record is None:
        return None
    try:
        document = Document.from_dict(record)
    except (TypeError, ValueError, AttributeError) as exc:
        LOGGER.warning("Ignoring malformed state record: %s", exc)
        return None
    if not document.has_markup:
        return None
    return document


class DebouncedSaver:
    """Coalesces rapid successive saves into one write after a quiet period."""

    def __init__(self, store: StateStore, *, delay: float = 1.0):
        self.store = store
        self.delay = delay
        self._task: Optional[asyncio.Task] = None
        self._pending: Optional[Document] = None

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.done()

    def schedule(self, document: Document) -> None:
        """(Re)start the timer; only the latest document is written."""
        self.cancel()
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No event loop to time against: write through.
            self._pending = None
            save_document(self.store, document)
            return
        self._pending = document
        self._task = loop.create_task(self._run())

    async def _run(self) -> None:
        await asyncio.sleep(self.delay)
        document, self._pending = self._pending, None
        if document is not None:
            save_document(self.store, document)

    def cancel(self) -> None:
        """Drop the pending write, if any."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None
        self._pending = None

    def flush(self) -> bool:
        """Write the pending document now, if any."""
        document = self._pending
        self.cancel()
        self._pending = None
        if document is None:
            return False
        return save_document(self.store, document)
