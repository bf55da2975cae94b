"""Bounded history of completed tracking sessions, most recent first."""
import json
import logging
from typing import List, Optional

from pydantic import ValidationError

from steptrack.models.session import CompletedSessionRecord
from steptrack.storage.kv import write_best_effort

logger = logging.getLogger(__name__)

SESSIONS_KEY = "session_records"
DEFAULT_LIMIT = 50


class SessionHistory:
    def __init__(self, store, limit: int = DEFAULT_LIMIT):
        self.store = store
        self.limit = limit

    def records(self) -> List[CompletedSessionRecord]:
        """Load stored records. Unreadable data is logged and treated as empty."""
        raw = self.store.get(SESSIONS_KEY)
        if not raw:
            return []
        try:
            return [CompletedSessionRecord.model_validate(r) for r in json.loads(raw)]
        except (ValueError, ValidationError) as exc:
            logger.error("Discarding unreadable session history: %s", exc)
            return []

    def get(self, record_id: str) -> Optional[CompletedSessionRecord]:
        return next((r for r in self.records() if r.id == record_id), None)

    def append(self, record: CompletedSessionRecord) -> bool:
        """Prepend a record and trim to the most recent `limit` entries."""
        updated = [record] + [r for r in self.records() if r.id != record.id]
        updated = updated[: self.limit]
        payload = json.dumps([r.model_dump(mode="json") for r in updated])
        return write_best_effort(self.store, SESSIONS_KEY, payload)
