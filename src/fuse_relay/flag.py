"""
Durable single-bit state surviving process restarts.

The ingest side keeps "the last acknowledgment value successfully sent
upstream" here. The value lives outside the record database so a store outage
cannot roll it back.
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Union

from loguru import logger

from .errors import DataError

ACK_NAMESPACE = "ingest"
ACK_KEY = "last_value_sent"


class FileFlagStore:
    """Boolean stored in a small JSON document: ``{namespace: {key: bool}}``.

    Reads default to False when the file, namespace or key is absent. Writes go
    to a temp file in the same directory and are moved into place with
    ``os.replace`` so a crash never leaves a half-written document. Other
    namespaces/keys in the file are preserved.
    """

    def __init__(
        self,
        path: Union[str, Path],
        namespace: str = ACK_NAMESPACE,
        key: str = ACK_KEY,
    ) -> None:
        self.path = Path(path)
        self.namespace = namespace
        self.key = key

    def _load(self) -> dict:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        if not raw.strip():
            return {}
        try:
            doc = json.loads(raw)
        except json.JSONDecodeError as e:
            raise DataError(f"flag file {self.path} is not valid JSON: {e}") from e
        if not isinstance(doc, dict):
            raise DataError(f"flag file {self.path} must hold a JSON object")
        return doc

    def get(self) -> bool:
        section = self._load().get(self.namespace)
        if section is None:
            return False
        if not isinstance(section, dict):
            raise DataError(f"flag file {self.path}: {self.namespace!r} must hold a JSON object")
        value = section.get(self.key, False)
        if not isinstance(value, bool):
            raise DataError(
                f"flag file {self.path}: {self.namespace}/{self.key} must be true or false, got {value!r}"
            )
        return value

    def set(self, value: bool) -> None:
        doc = self._load()
        section = doc.get(self.namespace)
        if not isinstance(section, dict):
            section = {}
        section[self.key] = bool(value)
        doc[self.namespace] = section

        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(prefix=".flag-", dir=str(self.path.parent))
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(doc, f, indent=2, sort_keys=True)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp, self.path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise
        logger.debug(f"Flag {self.namespace}/{self.key} persisted as {bool(value)}")


class MemoryFlagStore:
    """In-process flag; state is lost with the process."""

    def __init__(self, value: bool = False) -> None:
        self._value = bool(value)
        self.writes: list[bool] = []

    def get(self) -> bool:
        return self._value

    def set(self, value: bool) -> None:
        self._value = bool(value)
        self.writes.append(self._value)


class AckToggle:
    """Acknowledgment toggle over a FlagStore.

    The candidate is always the negation of the persisted value, and the
    persisted value only advances through ``confirm``. A failed send leaves it
    untouched, so the next attempt proposes the same candidate again.
    """

    def __init__(self, store) -> None:
        self._store = store

    @property
    def last_sent(self) -> bool:
        return self._store.get()

    def candidate(self) -> bool:
        return not self._store.get()

    def confirm(self, value: bool) -> None:
        self._store.set(value)
