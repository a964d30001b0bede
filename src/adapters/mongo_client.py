from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Callable, Dict, Iterator, List, Optional

from pymongo import MongoClient
from pymongo.errors import PyMongoError

logger = logging.getLogger(__name__)

DEFAULT_SERVER_SELECTION_TIMEOUT_MS = 5000


class ClusterConnectionError(Exception):
    """Raised when a configured cluster cannot be reached at startup."""

    def __init__(self, cluster_id: str, message: str) -> None:
        super().__init__(f"Failed to connect to cluster '{cluster_id}': {message}")
        self.cluster_id = cluster_id


class StoreError(Exception):
    """A MongoDB operation failed; carries the driver's message."""


@contextmanager
def store_call(operation: str) -> Iterator[None]:
    try:
        yield
    except PyMongoError as exc:
        logger.error("MongoDB %s failed: %s", operation, exc)
        raise StoreError(str(exc)) from exc


class MongoClusterRegistry:
    """Owns one long-lived MongoClient per configured cluster."""

    def __init__(
        self,
        clusters: Dict[str, str],
        server_selection_timeout_ms: int = DEFAULT_SERVER_SELECTION_TIMEOUT_MS,
        client_factory: Callable[..., MongoClient] = MongoClient,
    ) -> None:
        self._uris = dict(clusters)
        self._timeout_ms = server_selection_timeout_ms
        self._client_factory = client_factory
        self._clients: Dict[str, MongoClient] = {}

    @property
    def is_connected(self) -> bool:
        return bool(self._clients) and set(self._clients) == set(self._uris)

    def connect(self) -> None:
        if self.is_connected:
            return
        clients: Dict[str, MongoClient] = {}
        for cluster_id, uri in self._uris.items():
            try:
                client = self._client_factory(uri, serverSelectionTimeoutMS=self._timeout_ms)
                clients[cluster_id] = client
                client.admin.command("ping")
            except PyMongoError as exc:
                logger.error("MongoDB connection to %s cluster failed: %s", cluster_id, exc)
                for opened in clients.values():
                    opened.close()
                raise ClusterConnectionError(cluster_id, str(exc)) from exc
            logger.info("MongoDB cluster %s connected", cluster_id)
        self._clients = clients

    def connection_for(self, cluster_id: str) -> MongoClient:
        client: Optional[MongoClient] = self._clients.get(cluster_id)
        if client is None:
            raise RuntimeError(f"Cluster '{cluster_id}' is not connected; call connect() first")
        return client

    def database_names(self, cluster_id: str) -> List[str]:
        client = self.connection_for(cluster_id)
        with store_call("list_database_names"):
            return client.list_database_names()

    def close(self) -> None:
        for cluster_id, client in self._clients.items():
            client.close()
            logger.info("MongoDB cluster %s closed", cluster_id)
        self._clients = {}
