from __future__ import annotations

from copy import deepcopy
from typing import Any

from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError, PyMongoError

from support_portal.core.errors import BackendUnavailable
from support_portal.core.utils import utc_now
from support_portal.infrastructure.persistence_clients import MongoClientManager


class OrderRepository:
    def __init__(
        self,
        *,
        mongo_manager: MongoClientManager,
    ) -> None:
        self.mongo_manager = mongo_manager

    def create(self, order: dict[str, Any]) -> dict[str, Any]:
        collection = self._orders_collection()
        try:
            collection.update_one(
                {"orderId": order["id"]},
                {"$set": {"orderId": order["id"], **deepcopy(order)}},
                upsert=True,
            )
        except PyMongoError as exc:
            raise BackendUnavailable(f"Order insert failed: {exc}") from exc
        return deepcopy(order)

    def get(self, order_id: str) -> dict[str, Any] | None:
        collection = self._orders_collection()
        try:
            payload = collection.find_one({"orderId": order_id})
        except PyMongoError as exc:
            raise BackendUnavailable(f"Order lookup failed: {exc}") from exc
        if not payload:
            return None
        return self._clean(payload)

    def list_by_customer(self, customer_id: str) -> list[dict[str, Any]]:
        collection = self._orders_collection()
        try:
            payloads = list(collection.find({"customerId": customer_id}).sort("createdAt", -1))
        except PyMongoError as exc:
            raise BackendUnavailable(f"Order listing failed: {exc}") from exc
        return [self._clean(payload) for payload in payloads if isinstance(payload, dict)]

    @staticmethod
    def _clean(payload: dict[str, Any]) -> dict[str, Any]:
        payload.pop("_id", None)
        payload.pop("orderId", None)
        return payload

    def _orders_collection(self) -> Any:
        database = self.mongo_manager.database()
        if database is None:
            raise BackendUnavailable("Order store is not connected.")
        return database["orders"]


class OrderNumberRepository:
    """Issues order numbers from an atomic per-day counter document."""

    def __init__(self, *, mongo_manager: MongoClientManager) -> None:
        self.mongo_manager = mongo_manager

    def next(self) -> str:
        day = utc_now().strftime("%Y%m%d")
        database = self.mongo_manager.database()
        if database is None:
            raise BackendUnavailable("Order number generator is not connected.")
        try:
            try:
                counter = self._increment(database["counters"], day)
            except DuplicateKeyError:
                # A concurrent upsert created today's counter first; the retry increments it.
                counter = self._increment(database["counters"], day)
        except PyMongoError as exc:
            raise BackendUnavailable(f"Order number generation failed: {exc}") from exc
        if not counter or "seq" not in counter:
            raise BackendUnavailable("Order number generation returned no value.")
        return f"MS-{day}-{int(counter['seq']):06d}"

    @staticmethod
    def _increment(collection: Any, day: str) -> dict[str, Any] | None:
        return collection.find_one_and_update(
            {"_id": f"order_number:{day}"},
            {"$inc": {"seq": 1}},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
