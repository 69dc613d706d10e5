"""In-memory store with the same surface as FirestoreHealthStore.

Suitable for local runs and tests. Data is lost when the process stops.
Writes are serialized with a single lock, so read-modify-write updates
never lose each other's changes.
"""

import logging
import threading
from copy import deepcopy
from datetime import date, datetime

from ..core.lifecycle import DailyLogMutation, ProfileMutation
from ..core.models import DailyLog, FoodEntry, FoodLog, User, UserProfile


logger = logging.getLogger(__name__)


class InMemoryHealthStore:
    """Dictionary-backed store keyed by user and (user, date)."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._users: dict[str, User] = {}
        self._profiles: dict[str, UserProfile] = {}
        self._daily_logs: dict[tuple[str, date], DailyLog] = {}
        self._food_logs: dict[tuple[str, date], FoodLog] = {}
        self._nutrition: dict[tuple[str, date], float] = {}

    def close(self) -> None:
        pass

    # ==================== User Operations ====================

    def save_user(self, user_id: str, user: User) -> None:
        with self._lock:
            self._users[user_id] = deepcopy(user)

    def get_user(self, user_id: str) -> User | None:
        user = self._users.get(user_id)
        return deepcopy(user) if user is not None else None

    def user_exists(self, user_id: str) -> bool:
        return user_id in self._users

    # ==================== Profile Operations ====================

    def get_profile(self, user_id: str) -> UserProfile | None:
        profile = self._profiles.get(user_id)
        return deepcopy(profile) if profile is not None else None

    def update_profile(self, user_id: str, mutate: ProfileMutation) -> UserProfile:
        with self._lock:
            updated = mutate(deepcopy(self._profiles.get(user_id)))
            self._profiles[user_id] = deepcopy(updated)
        logger.debug("Updated profile for user: %s", user_id[:8])
        return updated

    # ==================== Daily Health Log Operations ====================

    def get_daily_log(self, user_id: str, log_date: date) -> DailyLog | None:
        log = self._daily_logs.get((user_id, log_date))
        return deepcopy(log) if log is not None else None

    def update_daily_log(self, user_id: str, log_date: date, mutate: DailyLogMutation) -> DailyLog:
        key = (user_id, log_date)
        with self._lock:
            updated = mutate(deepcopy(self._daily_logs.get(key)))
            self._daily_logs[key] = deepcopy(updated)
        logger.debug("Updated metrics for %s on %s", user_id[:8], log_date)
        return updated

    def get_daily_logs_range(self, user_id: str, start_date: date, end_date: date) -> list[DailyLog]:
        """Daily logs with start_date <= date <= end_date, ordered by date."""
        logs = [
            deepcopy(log)
            for (uid, log_date), log in self._daily_logs.items()
            if uid == user_id and start_date <= log_date <= end_date
        ]
        return sorted(logs, key=lambda log: log.log_date)

    # ==================== Food Log Operations ====================

    def get_food_log(self, user_id: str, log_date: date) -> FoodLog | None:
        log = self._food_logs.get((user_id, log_date))
        return deepcopy(log) if log is not None else None

    def add_food_entry(self, user_id: str, entry: FoodEntry) -> FoodLog:
        key = (user_id, entry.log_date)
        with self._lock:
            log = self._food_logs.get(key) or FoodLog(log_date=entry.log_date)
            log.entries.append(deepcopy(entry))
            log.updated_at = datetime.utcnow()
            self._food_logs[key] = log
            return deepcopy(log)

    def update_food_entry(
        self, user_id: str, entry_id: str, updates: dict, log_date: date
    ) -> FoodLog | None:
        with self._lock:
            log = self._food_logs.get((user_id, log_date))
            if log is None:
                return None
            for i, entry in enumerate(log.entries):
                if entry.id == entry_id:
                    log.entries[i] = entry.with_updates(updates)
                    log.updated_at = datetime.utcnow()
                    return deepcopy(log)
        logger.warning("Entry not found: %s", entry_id)
        return None

    def delete_food_entry(self, user_id: str, entry_id: str, log_date: date) -> FoodLog | None:
        with self._lock:
            log = self._food_logs.get((user_id, log_date))
            if log is None:
                return None
            remaining = [e for e in log.entries if e.id != entry_id]
            if len(remaining) == len(log.entries):
                logger.warning("Entry not found: %s", entry_id)
                return None
            log.entries = remaining
            log.updated_at = datetime.utcnow()
            return deepcopy(log)

    # ==================== Nutrition Score Operations ====================

    def get_nutrition_score(self, user_id: str, log_date: date) -> float | None:
        return self._nutrition.get((user_id, log_date))

    def save_nutrition_score(self, user_id: str, log_date: date, score: float) -> None:
        with self._lock:
            self._nutrition[(user_id, log_date)] = score
