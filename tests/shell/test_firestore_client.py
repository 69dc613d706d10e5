"""Unit tests for the Firestore store with a mocked client."""

from datetime import date
from unittest.mock import MagicMock, patch

import pytest

from healthlogr.core.models import DailyLog, FoodEntry, FoodLog, MealType, NutritionFacts, User
from healthlogr.shell.firestore_client import FirestoreConfig, FirestoreHealthStore


DAY = date(2024, 12, 28)


@pytest.fixture
def mock_firestore():
    """Patch the firestore module; transactional runs the function directly."""
    with patch("healthlogr.shell.firestore_client.firestore") as mock_fs:
        mock_fs.transactional = lambda fn: fn
        yield mock_fs


@pytest.fixture
def store(mock_firestore):
    return FirestoreHealthStore(FirestoreConfig(project_id="test-project", database="healthlogr"))


def _snapshot(data=None):
    snapshot = MagicMock()
    snapshot.exists = data is not None
    snapshot.to_dict.return_value = data
    return snapshot


class TestClientSetup:
    """Tests for lazy client creation."""

    def test_client_created_with_config(self, store, mock_firestore):
        """Client is created once with project and database."""
        first = store.client
        second = store.client

        assert first is second
        mock_firestore.Client.assert_called_once_with(project="test-project", database="healthlogr")

    def test_default_config(self, mock_firestore):
        """No config means the ambient project and default database."""
        FirestoreHealthStore().client
        mock_firestore.Client.assert_called_once_with()

    def test_close(self, store, mock_firestore):
        """close() closes the client and drops it."""
        client = store.client
        store.close()

        client.close.assert_called_once()
        assert store._client is None


class TestReads:
    """Tests for document reads."""

    def test_missing_user(self, store):
        """A missing document reads as None."""
        store.client.collection.return_value.document.return_value.get.return_value = _snapshot()
        assert store.get_user("user-1") is None
        assert store.user_exists("user-1") is False

    def test_existing_user(self, store):
        """An existing document loads into the model."""
        data = User(email="test@example.com", api_key_hash="abc").model_dump(mode="json")
        store.client.collection.return_value.document.return_value.get.return_value = _snapshot(data)

        assert store.get_user("user-1").email == "test@example.com"

    def test_metrics_document_path(self, store):
        """Daily logs live under users/{id}/metrics/{date}."""
        user_ref = store.client.collection.return_value.document.return_value
        metrics_ref = user_ref.collection.return_value.document.return_value
        metrics_ref.get.return_value = _snapshot()

        store.get_daily_log("user-1", DAY)

        store.client.collection.assert_called_with("users")
        user_ref.collection.assert_called_with("metrics")
        user_ref.collection.return_value.document.assert_called_with("2024-12-28")

    def test_range_query(self, store):
        """Range query filters on the ISO date and orders by it."""
        user_ref = store.client.collection.return_value.document.return_value
        query = user_ref.collection.return_value.where.return_value.where.return_value.order_by.return_value
        doc = MagicMock()
        doc.to_dict.return_value = DailyLog(log_date=DAY).model_dump(mode="json")
        query.stream.return_value = [doc]

        logs = store.get_daily_logs_range("user-1", date(2024, 12, 22), DAY)

        assert [log.log_date for log in logs] == [DAY]
        user_ref.collection.return_value.where.assert_called_with("log_date", ">=", "2024-12-22")

    def test_nutrition_score(self, store):
        """Nutrition score is read from the score field."""
        ref = store.client.collection.return_value.document.return_value.collection.return_value.document.return_value
        ref.get.return_value = _snapshot({"score": 64})
        assert store.get_nutrition_score("user-1", DAY) == 64


class TestTransactions:
    """Tests for transactional read-modify-write."""

    def _doc_ref(self, store):
        return store.client.collection.return_value.document.return_value.collection.return_value.document.return_value

    def test_update_daily_log_writes_in_transaction(self, store):
        """The mutation sees the stored record and its result is set in the transaction."""
        ref = self._doc_ref(store)
        ref.get.return_value = _snapshot(DailyLog(log_date=DAY).model_dump(mode="json"))
        transaction = store.client.transaction.return_value

        def mutate(current):
            assert current.log_date == DAY
            return current.model_copy(update={"weight": 70})

        result = store.update_daily_log("user-1", DAY, mutate)

        assert result.weight == 70
        ref.get.assert_called_with(transaction=transaction)
        transaction.set.assert_called_once()
        written = transaction.set.call_args[0][1]
        assert written["log_date"] == "2024-12-28"
        assert written["weight"] == 70

    def test_nutrition_read_joins_transaction(self, store):
        """Reads made by a mutation go through the running transaction."""
        ref = self._doc_ref(store)
        ref.get.return_value = _snapshot({"score": 90, "log_date": "2024-12-28"})
        transaction = store.client.transaction.return_value

        seen = []

        def mutate(current):
            seen.append(store.get_nutrition_score("user-1", DAY))
            return current

        store.update_daily_log("user-1", DAY, mutate)

        assert seen == [90]
        assert ref.get.call_count == 2
        for call in ref.get.call_args_list:
            assert call.kwargs == {"transaction": transaction}

    def test_nutrition_read_outside_transaction(self, store):
        """Outside a mutation the nutrition score is a plain read."""
        ref = self._doc_ref(store)
        ref.get.return_value = _snapshot({"score": 55})

        assert store.get_nutrition_score("user-1", DAY) == 55
        ref.get.assert_called_once_with(transaction=None)

    def test_mutation_returning_none_skips_write(self, store):
        """Updating a missing food entry writes nothing."""
        ref = self._doc_ref(store)
        ref.get.return_value = _snapshot(FoodLog(log_date=DAY).model_dump(mode="json"))
        transaction = store.client.transaction.return_value

        assert store.update_food_entry("user-1", "missing", {"quantity": 2}, DAY) is None
        transaction.set.assert_not_called()

    def test_add_food_entry_creates_log(self, store):
        """Adding to a missing day creates the food log."""
        self._doc_ref(store).get.return_value = _snapshot()
        entry = FoodEntry(
            food_name="Oatmeal",
            meal_type=MealType.BREAKFAST,
            nutrition=NutritionFacts(calories=150),
            log_date=DAY,
        )

        log = store.add_food_entry("user-1", entry)

        assert [e.id for e in log.entries] == [entry.id]
        store.client.transaction.return_value.set.assert_called_once()
