from __future__ import annotations

from copy import deepcopy
from typing import Any

from pymongo.errors import PyMongoError

from support_portal.core.errors import BackendUnavailable
from support_portal.infrastructure.persistence_clients import MongoClientManager


class SupportRepository:
    def __init__(
        self,
        *,
        mongo_manager: MongoClientManager,
    ) -> None:
        self.mongo_manager = mongo_manager

    def create(self, ticket: dict[str, Any]) -> dict[str, Any]:
        collection = self._mongo_collection()
        try:
            collection.update_one(
                {"ticketId": ticket["id"]},
                {"$set": {"ticketId": ticket["id"], **deepcopy(ticket)}},
                upsert=True,
            )
        except PyMongoError as exc:
            raise BackendUnavailable(f"Ticket insert failed: {exc}") from exc
        return deepcopy(ticket)

    def get(self, ticket_id: str) -> dict[str, Any] | None:
        collection = self._mongo_collection()
        try:
            payload = collection.find_one({"ticketId": ticket_id})
        except PyMongoError as exc:
            raise BackendUnavailable(f"Ticket lookup failed: {exc}") from exc
        if not payload:
            return None
        return self._clean(payload)

    def list_by_customer(self, customer_id: str) -> list[dict[str, Any]]:
        collection = self._mongo_collection()
        try:
            rows = list(collection.find({"customerId": customer_id}).sort("createdAt", -1))
        except PyMongoError as exc:
            raise BackendUnavailable(f"Ticket listing failed: {exc}") from exc
        return [self._clean(row) for row in rows if isinstance(row, dict)]

    @staticmethod
    def _clean(row: dict[str, Any]) -> dict[str, Any]:
        row.pop("_id", None)
        row.pop("ticketId", None)
        return row

    def _mongo_collection(self) -> Any:
        database = self.mongo_manager.database()
        if database is None:
            raise BackendUnavailable("Ticket store is not connected.")
        return database["support_tickets"]
