"""
Persistence backends for the trigger configuration.

A backend stores one serialisable blob under a fixed storage key. The
ConfigurationStore always saves the full mapping, never a delta.
"""

import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional, Union

logger = logging.getLogger(__name__)

STORAGE_KEY = "expressionConfig"


class StorageBackend(ABC):
    """Load/save a single blob keyed by ``storage_key``."""

    def __init__(self, storage_key: str = STORAGE_KEY):
        self.storage_key = storage_key

    @abstractmethod
    def load(self) -> Optional[Any]:
        """Return the stored blob, or None if nothing was saved yet."""
        pass

    @abstractmethod
    def save(self, data: Any) -> None:
        """Replace the stored blob with ``data``."""
        pass

    @abstractmethod
    def clear(self) -> None:
        """Forget the stored blob."""
        pass


class MemoryStorage(StorageBackend):
    """In-process storage, shared between stores given the same instance."""

    def __init__(self, storage_key: str = STORAGE_KEY):
        super().__init__(storage_key)
        self._blobs: Dict[str, str] = {}

    def load(self) -> Optional[Any]:
        raw = self._blobs.get(self.storage_key)
        if raw is None:
            return None
        return json.loads(raw)

    def save(self, data: Any) -> None:
        # Stored as JSON text so loads never alias the live mapping
        self._blobs[self.storage_key] = json.dumps(data, ensure_ascii=False)

    def clear(self) -> None:
        self._blobs.pop(self.storage_key, None)


class JsonFileStorage(StorageBackend):
    """
    JSON document on disk holding one entry per storage key.

    Writes go through a temporary file in the same directory followed by
    os.replace, so a crash mid-save leaves the previous document intact.
    """

    def __init__(self, path: Union[str, Path], storage_key: str = STORAGE_KEY):
        super().__init__(storage_key)
        self.path = Path(path)

    def _read_document(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                document = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable storage file {self.path}: {e}")
            return {}
        if not isinstance(document, dict):
            logger.warning(f"Ignoring storage file {self.path}: not a JSON object")
            return {}
        return document

    def _write_document(self, document: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=str(self.path.parent)
        )
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(document, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    def load(self) -> Optional[Any]:
        return self._read_document().get(self.storage_key)

    def save(self, data: Any) -> None:
        document = self._read_document()
        document[self.storage_key] = data
        self._write_document(document)
        logger.debug(f"Saved {self.storage_key} to {self.path}")

    def clear(self) -> None:
        document = self._read_document()
        if self.storage_key in document:
            del document[self.storage_key]
            self._write_document(document)
