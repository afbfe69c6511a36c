"""
Flat-file persistence: a single JSON array, read whole and rewritten whole
"""
import json
import threading
import time
from pathlib import Path
from typing import List, Union

import structlog

logger = structlog.get_logger()


class JsonFileStore:
    """Read-all/write-all store with an in-memory mirror.

    The mirror always holds the last records read or written. When a write
    cannot be persisted the store switches to serving reads from the mirror
    ("degraded"); changes made in that state live only as long as the process.
    Subclasses with ``sticky_fallback`` stay degraded for the rest of the
    process, the others recover on the next successful write.
    """

    sticky_fallback = False

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._mirror: List[dict] = []
        self._degraded = False
        self._last_id = 0
        self._id_lock = threading.Lock()

    @property
    def degraded(self) -> bool:
        return self._degraded

    def next_id(self) -> str:
        """Millisecond timestamp id, strictly increasing within the process."""
        with self._id_lock:
            self._last_id = max(int(time.time() * 1000), self._last_id + 1)
            return str(self._last_id)

    def _load(self) -> List[dict]:
        raw = self.path.read_text(encoding="utf-8")
        if not raw.strip():
            return []
        data = json.loads(raw)
        if not isinstance(data, list):
            raise ValueError(f"{self.path.name} does not hold a JSON array")
        return data

    def _dump(self, records: List[dict]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(records, indent=2), encoding="utf-8")

    def _read_fallback(self) -> List[dict]:
        return list(self._mirror)

    def _fall_back_to_mirror(self, records: List[dict]) -> None:
        self._mirror = list(records)
        self._degraded = True

    def read_all(self) -> List[dict]:
        if self._degraded:
            return list(self._mirror)
        try:
            records = self._load()
        except FileNotFoundError:
            logger.info("store_file_created", path=str(self.path))
            try:
                self._dump([])
            except OSError as e:
                logger.error("store_create_failed", path=str(self.path), error=str(e))
            return []
        except (OSError, ValueError) as e:
            logger.error("store_read_failed", path=str(self.path), error=str(e))
            return self._read_fallback()
        self._mirror = list(records)
        return records

    def write_all(self, records: List[dict]) -> bool:
        """Persist records. Returns False when only the in-memory mirror holds them."""
        try:
            self._dump(records)
        except (OSError, TypeError) as e:
            logger.error("store_write_failed", path=str(self.path), error=str(e), records=len(records))
            self._fall_back_to_mirror(records)
            return False
        self._mirror = list(records)
        if not self.sticky_fallback:
            self._degraded = False
        return True
