"""In-memory record and profile stores.

Persistence is owned by the journal backend; these stores satisfy the
``RecordStore`` / ``ProfileStore`` contracts for the API process and for tests.
They can be seeded from a JSON export shaped like::

    {
      "records":  {"<user_id>": [{"date": "2024-01-01", "symptoms": [...], ...}]},
      "profiles": {"<user_id>": {"cycle": {"averageCycleLengthDays": 28}}}
    }
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Mapping

from src.analytics.base import DailyRecord, UserProfile

logger = logging.getLogger("journal.analytics.stores")


class InMemoryRecordStore:
    def __init__(self, records: Mapping[str, list[DailyRecord]] | None = None) -> None:
        self._records: dict[str, list[DailyRecord]] = {
            user_id: list(items) for user_id, items in (records or {}).items()
        }

    async def get_records_by_user(self, user_id: str) -> list[DailyRecord]:
        # Hand out a copy so callers never share the stored list
        return list(self._records.get(user_id, []))

    def add(self, user_id: str, record: DailyRecord) -> None:
        self._records.setdefault(user_id, []).append(record)


class InMemoryProfileStore:
    def __init__(self, profiles: Mapping[str, UserProfile] | None = None) -> None:
        self._profiles: dict[str, UserProfile] = dict(profiles or {})

    async def get_profile(self, user_id: str) -> UserProfile | None:
        return self._profiles.get(user_id)

    def set(self, user_id: str, profile: UserProfile) -> None:
        self._profiles[user_id] = profile


def stores_from_payload(payload: Mapping[str, Any]) -> tuple[InMemoryRecordStore, InMemoryProfileStore]:
    """Build both stores from an export dict (see module docstring)."""
    records = {
        str(user_id): [DailyRecord.from_dict(item) for item in items or []]
        for user_id, items in (payload.get("records") or {}).items()
    }
    profiles = {
        str(user_id): UserProfile.from_dict(data or {})
        for user_id, data in (payload.get("profiles") or {}).items()
    }
    return InMemoryRecordStore(records), InMemoryProfileStore(profiles)


def load_seed_file(path: Path) -> tuple[InMemoryRecordStore, InMemoryProfileStore]:
    """Load stores from a JSON export on disk.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError:        If the file is not valid JSON.
    """
    if not path.exists():
        raise FileNotFoundError(f"Seed data not found: {path}")
    payload = json.loads(path.read_text(encoding="utf-8"))
    record_store, profile_store = stores_from_payload(payload)
    logger.info(
        "Loaded seed data from %s (%d user(s))",
        path, len(payload.get("records") or {}),
    )
    return record_store, profile_store
