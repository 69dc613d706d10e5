"""Firestore Client - Persistence for profiles, health logs and food logs.

This module handles all database I/O. Business logic lives in the core
module; every read-modify-write here runs inside a Firestore transaction so
derived fields are stored together with the write that produced them.
"""

import logging
from contextvars import ContextVar
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Callable, Optional, TypeVar

from google.cloud import firestore
from pydantic import BaseModel

from ..core.lifecycle import DailyLogMutation, ProfileMutation
from ..core.models import DailyLog, FoodEntry, FoodLog, User, UserProfile


logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

# Transaction of the running read-modify-write. Reads made by a mutation
# (the day's nutrition score) go through it.
_active_transaction: ContextVar[Optional[firestore.Transaction]] = ContextVar(
    "_active_transaction", default=None
)


@dataclass
class FirestoreConfig:
    """Configuration for Firestore client.

    Attributes:
        project_id: GCP project ID (None for default)
        database: Firestore database name (None for default database)
    """

    project_id: str | None = None
    database: str | None = None


class FirestoreHealthStore:
    """Store for health data backed by Firestore.

    Document structure per user:
        users/{user_id}: { email, name, api_key_hash, ... }
            profile/current: { profile, derived, state }
            metrics/{YYYY-MM-DD}: { log_date, water, steps, ..., scores }
            food/{YYYY-MM-DD}: { log_date, entries: [...] }
            nutrition/{YYYY-MM-DD}: { score }
    """

    def __init__(self, config: FirestoreConfig | None = None) -> None:
        self.config = config or FirestoreConfig()
        self._client: firestore.Client | None = None

    @property
    def client(self) -> firestore.Client:
        """Lazy initialization of Firestore client."""
        if self._client is None:
            kwargs: dict[str, Any] = {}
            if self.config.project_id:
                kwargs["project"] = self.config.project_id
            if self.config.database:
                kwargs["database"] = self.config.database
            self._client = firestore.Client(**kwargs)
        return self._client

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def _user_ref(self, user_id: str) -> firestore.DocumentReference:
        return self.client.collection("users").document(user_id)

    def _profile_ref(self, user_id: str) -> firestore.DocumentReference:
        return self._user_ref(user_id).collection("profile").document("current")

    def _metrics_ref(self, user_id: str, log_date: date) -> firestore.DocumentReference:
        return self._user_ref(user_id).collection("metrics").document(log_date.isoformat())

    def _food_ref(self, user_id: str, log_date: date) -> firestore.DocumentReference:
        return self._user_ref(user_id).collection("food").document(log_date.isoformat())

    def _nutrition_ref(self, user_id: str, log_date: date) -> firestore.DocumentReference:
        return self._user_ref(user_id).collection("nutrition").document(log_date.isoformat())

    def _read(self, ref: firestore.DocumentReference, model: type[ModelT]) -> Optional[ModelT]:
        doc = ref.get()
        if not doc.exists:
            return None
        return model(**doc.to_dict())

    def _transact(
        self,
        ref: firestore.DocumentReference,
        model: type[ModelT],
        mutate: Callable[[Optional[ModelT]], Optional[ModelT]],
    ) -> Optional[ModelT]:
        """Read, mutate and write one document in a transaction.

        The mutation may run more than once if Firestore retries on
        contention. Returning None from mutate skips the write.
        """
        transaction = self.client.transaction()

        @firestore.transactional
        def _apply(txn: firestore.Transaction) -> Optional[ModelT]:
            token = _active_transaction.set(txn)
            try:
                snapshot = ref.get(transaction=txn)
                current = model(**snapshot.to_dict()) if snapshot.exists else None
                updated = mutate(current)
            finally:
                _active_transaction.reset(token)
            if updated is not None:
                txn.set(ref, updated.model_dump(mode="json"))
            return updated

        return _apply(transaction)

    # ==================== User Operations ====================

    def save_user(self, user_id: str, user: User) -> None:
        logger.info("Saving user: %s", user_id[:8])
        self._user_ref(user_id).set(user.model_dump(mode="json"))

    def get_user(self, user_id: str) -> User | None:
        return self._read(self._user_ref(user_id), User)

    def user_exists(self, user_id: str) -> bool:
        return self._user_ref(user_id).get().exists

    # ==================== Profile Operations ====================

    def get_profile(self, user_id: str) -> UserProfile | None:
        logger.debug("Fetching profile for user: %s", user_id[:8])
        return self._read(self._profile_ref(user_id), UserProfile)

    def update_profile(self, user_id: str, mutate: ProfileMutation) -> UserProfile:
        logger.info("Updating profile for user: %s", user_id[:8])
        return self._transact(self._profile_ref(user_id), UserProfile, mutate)

    # ==================== Daily Health Log Operations ====================

    def get_daily_log(self, user_id: str, log_date: date) -> DailyLog | None:
        logger.debug("Fetching metrics for %s on %s", user_id[:8], log_date)
        return self._read(self._metrics_ref(user_id, log_date), DailyLog)

    def update_daily_log(self, user_id: str, log_date: date, mutate: DailyLogMutation) -> DailyLog:
        logger.info("Updating metrics for %s on %s", user_id[:8], log_date)
        return self._transact(self._metrics_ref(user_id, log_date), DailyLog, mutate)

    def get_daily_logs_range(self, user_id: str, start_date: date, end_date: date) -> list[DailyLog]:
        """Fetch daily logs for a date range.

        Args:
            user_id: The user's ID
            start_date: Start of range (inclusive)
            end_date: End of range (inclusive)

        Returns:
            List of DailyLogs ordered by date (may be empty)
        """
        logger.debug("Fetching metrics for %s from %s to %s", user_id[:8], start_date, end_date)
        query = (
            self._user_ref(user_id)
            .collection("metrics")
            .where("log_date", ">=", start_date.isoformat())
            .where("log_date", "<=", end_date.isoformat())
            .order_by("log_date")
        )
        logs = [DailyLog(**doc.to_dict()) for doc in query.stream()]
        logger.debug("Found %d logs in range", len(logs))
        return logs

    # ==================== Food Log Operations ====================

    def get_food_log(self, user_id: str, log_date: date) -> FoodLog | None:
        logger.debug("Fetching food log for %s on %s", user_id[:8], log_date)
        return self._read(self._food_ref(user_id, log_date), FoodLog)

    def add_food_entry(self, user_id: str, entry: FoodEntry) -> FoodLog:
        """Append an entry to the food log for the entry's date."""
        logger.info("Adding food entry for %s on %s", user_id[:8], entry.log_date)

        def _add(log: FoodLog | None) -> FoodLog:
            log = log or FoodLog(log_date=entry.log_date)
            log.entries.append(entry)
            log.updated_at = datetime.utcnow()
            return log

        return self._transact(self._food_ref(user_id, entry.log_date), FoodLog, _add)

    def update_food_entry(
        self, user_id: str, entry_id: str, updates: dict, log_date: date
    ) -> FoodLog | None:
        """Replace fields of an entry. Returns None if the entry does not exist."""

        def _update(log: FoodLog | None) -> FoodLog | None:
            if log is None:
                return None
            for i, entry in enumerate(log.entries):
                if entry.id == entry_id:
                    log.entries[i] = entry.with_updates(updates)
                    log.updated_at = datetime.utcnow()
                    return log
            logger.warning("Entry not found: %s", entry_id)
            return None

        return self._transact(self._food_ref(user_id, log_date), FoodLog, _update)

    def delete_food_entry(self, user_id: str, entry_id: str, log_date: date) -> FoodLog | None:
        """Remove an entry. Returns None if the entry does not exist."""

        def _delete(log: FoodLog | None) -> FoodLog | None:
            if log is None:
                return None
            remaining = [e for e in log.entries if e.id != entry_id]
            if len(remaining) == len(log.entries):
                logger.warning("Entry not found: %s", entry_id)
                return None
            log.entries = remaining
            log.updated_at = datetime.utcnow()
            return log

        return self._transact(self._food_ref(user_id, log_date), FoodLog, _delete)

    # ==================== Nutrition Score Operations ====================

    def get_nutrition_score(self, user_id: str, log_date: date) -> float | None:
        """Read inside the running transaction when called from a mutation."""
        doc = self._nutrition_ref(user_id, log_date).get(transaction=_active_transaction.get())
        if not doc.exists:
            return None
        return doc.to_dict().get("score")

    def save_nutrition_score(self, user_id: str, log_date: date, score: float) -> None:
        logger.info("Saving nutrition score for %s on %s", user_id[:8], log_date)
        self._nutrition_ref(user_id, log_date).set(
            {"score": score, "updated_at": datetime.utcnow()}
        )
