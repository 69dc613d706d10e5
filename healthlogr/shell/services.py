"""Service Wiring - Builds the store, coordinator and auth client.

Everything the transport layer needs is constructed here from an explicit
ServiceConfig and passed in. Call HealthServices.close() on shutdown.

Environment Variables:
    STORAGE_BACKEND: "firestore" | "memory" (default: firestore)
    GCP_PROJECT: GCP project ID (default: ambient credentials project)
    FIRESTORE_DATABASE: Firestore database name (default: healthlogr)
"""

import logging
import os
from dataclasses import dataclass
from typing import Union

from ..core.lifecycle import ProfileLifecycleCoordinator
from .auth import AuthClient
from .firestore_client import FirestoreConfig, FirestoreHealthStore
from .memory_store import InMemoryHealthStore


logger = logging.getLogger(__name__)

STORAGE_BACKENDS = ("firestore", "memory")

HealthStore = Union[FirestoreHealthStore, InMemoryHealthStore]


@dataclass
class ServiceConfig:
    """Configuration for the service layer.

    Attributes:
        storage_backend: Which store implementation to use
        firestore: Firestore settings (used when storage_backend is "firestore")
    """

    storage_backend: str = "firestore"
    firestore: FirestoreConfig | None = None

    @classmethod
    def from_env(cls) -> "ServiceConfig":
        backend = os.environ.get("STORAGE_BACKEND", "firestore").lower()
        if backend not in STORAGE_BACKENDS:
            raise ValueError(
                f"Invalid STORAGE_BACKEND value: {backend}. Expected one of {STORAGE_BACKENDS}"
            )
        return cls(
            storage_backend=backend,
            firestore=FirestoreConfig(
                project_id=os.environ.get("GCP_PROJECT"),
                database=os.environ.get("FIRESTORE_DATABASE", "healthlogr"),
            ),
        )


@dataclass
class HealthServices:
    """Collaborators shared by the HTTP routes and MCP tools."""

    store: HealthStore
    coordinator: ProfileLifecycleCoordinator
    auth: AuthClient

    def close(self) -> None:
        logger.info("Closing health services")
        self.store.close()


def build_services(config: ServiceConfig | None = None) -> HealthServices:
    """Create the store and the objects that depend on it."""
    config = config or ServiceConfig.from_env()

    if config.storage_backend == "memory":
        store: HealthStore = InMemoryHealthStore()
    else:
        store = FirestoreHealthStore(config.firestore)

    logger.info("Using %s storage backend", config.storage_backend)

    return HealthServices(
        store=store,
        coordinator=ProfileLifecycleCoordinator(
            profiles=store,
            daily_logs=store,
            nutrition=store,
        ),
        auth=AuthClient(store),
    )
