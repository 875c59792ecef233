"""
File-backed cache of the last known status of each payment.

The whole mapping lives in memory and is rewritten to a single JSON file
after every mutation. Loading never raises: a missing file yields an empty
store and an unreadable or malformed one is logged and discarded.
"""
import json
import os
import tempfile
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import structlog
from pydantic import BaseModel, ValidationError

from payment_relay.monitoring.metrics import metrics

logger = structlog.get_logger(__name__)


def utc_now_iso() -> str:
    """Current UTC time as ``YYYY-MM-DDTHH:MM:SS.mmmZ``."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class StatusRecord(BaseModel):
    """Latest known state of one payment."""

    status: str
    timestamp: str
    data: Any = None


class StatusStore:
    """
    Payment ID -> StatusRecord mapping persisted to a JSON flat file.

    A single re-entrant lock spans "mutate in memory" and "flush to disk" so
    concurrent writers cannot lose updates.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self.last_save_ok: Optional[bool] = None
        self._records: Dict[str, StatusRecord] = {}
        self._lock = threading.RLock()

    def load(self) -> None:
        """Replace the in-memory mapping with the file's content."""
        with self._lock:
            self._records = {}
            if not self.path.exists():
                logger.info("status_store_file_missing", path=str(self.path))
                metrics.set_payments_tracked(0)
                return

            try:
                raw = json.loads(self.path.read_text(encoding="utf-8"))
                if not isinstance(raw, dict):
                    raise ValueError(f"expected a JSON object, got {type(raw).__name__}")
                records = {
                    str(payment_id): StatusRecord.model_validate(record)
                    for payment_id, record in raw.items()
                }
            except (OSError, ValueError, ValidationError) as e:
                logger.error(
                    "status_store_load_failed",
                    path=str(self.path),
                    error=str(e),
                    error_type=type(e).__name__,
                )
                metrics.record_store_failure("load")
                metrics.set_payments_tracked(0)
                return

            self._records = records
            metrics.set_payments_tracked(len(records))
            logger.info("status_store_loaded", path=str(self.path), records=len(records))

    def save(self) -> bool:
        """
        Write the whole mapping to disk.

        The payload goes to a temporary file in the target directory which
        is then renamed over the old file. Errors are logged, not raised.

        Returns:
            bool: True if the file now matches memory
        """
        with self._lock:
            payload = {
                payment_id: record.model_dump(mode="json")
                for payment_id, record in self._records.items()
            }
            tmp_name = None
            try:
                directory = self.path.parent
                directory.mkdir(parents=True, exist_ok=True)
                fd, tmp_name = tempfile.mkstemp(
                    prefix=f".{self.path.name}.", suffix=".tmp", dir=directory
                )
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(payload, f, indent=2)
                os.replace(tmp_name, self.path)
                tmp_name = None
            except (OSError, TypeError, ValueError) as e:
                logger.error(
                    "status_store_save_failed",
                    path=str(self.path),
                    error=str(e),
                    error_type=type(e).__name__,
                )
                metrics.record_store_failure("save")
                self.last_save_ok = False
                return False
            finally:
                if tmp_name is not None:
                    try:
                        os.unlink(tmp_name)
                    except OSError:
                        pass

            self.last_save_ok = True
            return True

    def set(self, payment_id: str, record: StatusRecord) -> bool:
        """
        Insert or replace the record for ``payment_id`` and persist.

        Returns:
            bool: Result of the save that followed the mutation
        """
        with self._lock:
            self._records[payment_id] = record
            metrics.set_payments_tracked(len(self._records))
            return self.save()

    def get(self, payment_id: str) -> Optional[StatusRecord]:
        with self._lock:
            return self._records.get(payment_id)

    def list(self) -> List[Tuple[str, StatusRecord]]:
        """Every (payment_id, record) pair in first-write order."""
        with self._lock:
            return list(self._records.items())

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def __contains__(self, payment_id: object) -> bool:
        with self._lock:
            return payment_id in self._records
