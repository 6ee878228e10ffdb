"""Cosmos DB record store shared by the directory, audit and chat services."""

from __future__ import annotations

import logging
from typing import Any

from azure.cosmos.aio import CosmosClient
from azure.cosmos.exceptions import CosmosResourceNotFoundError

from app.core.config import Settings
from app.core.query import Equals, Predicate, build_query, combine

logger = logging.getLogger(__name__)

EMPLOYEES = "employees"
TEAMS = "teams"
TEAM_MEMBERS = "team_members"
AUDIT_LOGS = "audit_logs"
CHAT_SESSIONS = "chat_sessions"
CHAT_MESSAGES = "chat_messages"


def _container_names(settings: Settings) -> dict[str, str]:
    return {
        EMPLOYEES: settings.COSMOS_DB_EMPLOYEES_CONTAINER,
        TEAMS: settings.COSMOS_DB_TEAMS_CONTAINER,
        TEAM_MEMBERS: settings.COSMOS_DB_TEAM_MEMBERS_CONTAINER,
        AUDIT_LOGS: settings.COSMOS_DB_AUDIT_LOGS_CONTAINER,
        CHAT_SESSIONS: settings.COSMOS_DB_CHAT_SESSIONS_CONTAINER,
        CHAT_MESSAGES: settings.COSMOS_DB_CHAT_MESSAGES_CONTAINER,
    }


class RecordStore:
    def __init__(self) -> None:
        self.client: CosmosClient | None = None
        self.containers: dict[str, Any] = {}
        self.initialized: bool = False

    async def initialize(self, settings: Settings) -> None:
        if self.initialized:
            return

        endpoint = settings.COSMOS_DB_ENDPOINT
        key = settings.COSMOS_DB_KEY

        if not endpoint or not key:
            logger.warning("Cosmos DB credentials missing — record store not initialized")
            return

        self.client = CosmosClient(endpoint, key)
        db = self.client.get_database_client(settings.COSMOS_DB_DATABASE)
        self.containers = {
            entity: db.get_container_client(name) for entity, name in _container_names(settings).items()
        }
        self.initialized = True
        logger.info("RecordStore initialized (database=%s)", settings.COSMOS_DB_DATABASE)

    async def close(self) -> None:
        if self.client:
            await self.client.close()
        self.client = None
        self.containers = {}
        self.initialized = False

    def _container(self, entity: str) -> Any:
        if not self.initialized:
            raise RuntimeError("RecordStore not initialized")
        try:
            return self.containers[entity]
        except KeyError:
            raise ValueError(f"Unknown entity type: {entity}") from None

    async def _query(self, entity: str, query: str, parameters: list[dict[str, Any]]) -> list[Any]:
        container = self._container(entity)
        items: list[Any] = []
        async for item in container.query_items(
            query=query,
            parameters=parameters,
            enable_cross_partition_query=True,
        ):
            items.append(item)
        return items

    async def find_many(
        self,
        entity: str,
        predicate: Predicate | None = None,
        *,
        status: str | None = None,
        order_by: str | None = None,
        descending: bool = False,
        offset: int | None = None,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        where = combine(Equals("status", status) if status else None, predicate)
        query, parameters = build_query(
            where,
            order_by=order_by,
            descending=descending,
            offset=offset,
            limit=limit,
        )
        logger.debug("find_many %s: %s", entity, query)
        return await self._query(entity, query, parameters)

    async def count(
        self,
        entity: str,
        predicate: Predicate | None = None,
        *,
        status: str | None = None,
    ) -> int:
        where = combine(Equals("status", status) if status else None, predicate)
        query, parameters = build_query(where, select="VALUE COUNT(1)")
        rows = await self._query(entity, query, parameters)
        return int(rows[0]) if rows else 0

    async def get(self, entity: str, record_id: str) -> dict[str, Any] | None:
        container = self._container(entity)
        try:
            return await container.read_item(item=record_id, partition_key=record_id)
        except CosmosResourceNotFoundError:
            return None

    async def create(self, entity: str, doc: dict[str, Any]) -> dict[str, Any]:
        return await self._container(entity).create_item(body=doc)

    async def replace(self, entity: str, doc: dict[str, Any]) -> dict[str, Any]:
        return await self._container(entity).upsert_item(body=doc)

    async def delete(self, entity: str, record_id: str) -> None:
        await self._container(entity).delete_item(item=record_id, partition_key=record_id)

    async def check_connection(self) -> bool:
        if not self.initialized:
            return False
        try:
            await self.count(EMPLOYEES)
            return True
        except Exception:
            logger.exception("Cosmos DB connection check failed")
            return False


record_store = RecordStore()
