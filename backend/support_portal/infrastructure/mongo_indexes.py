from __future__ import annotations

from typing import Any

from pymongo import ASCENDING, DESCENDING

from support_portal.infrastructure.persistence_clients import DEFAULT_DATABASE

IndexSpec = tuple[list[tuple[str, int]], dict[str, Any]]


MONGO_INDEX_SPECS: dict[str, list[IndexSpec]] = {
    "profiles": [
        ([("userId", ASCENDING)], {"name": "profiles_user_id_unique", "unique": True}),
        (
            [("mobileNumber", ASCENDING)],
            {
                "name": "profiles_mobile_number_unique",
                "unique": True,
                "partialFilterExpression": {"mobileNumber": {"$type": "string"}},
            },
        ),
    ],
    "support_tickets": [
        ([("ticketId", ASCENDING)], {"name": "support_tickets_ticket_id_unique", "unique": True}),
        ([("customerId", ASCENDING), ("createdAt", DESCENDING)], {"name": "support_tickets_customer_created_desc"}),
        ([("status", ASCENDING), ("createdAt", DESCENDING)], {"name": "support_tickets_status_created_desc"}),
    ],
    "orders": [
        ([("orderId", ASCENDING)], {"name": "orders_order_id_unique", "unique": True}),
        ([("orderNumber", ASCENDING)], {"name": "orders_order_number_unique", "unique": True}),
        ([("customerId", ASCENDING), ("createdAt", DESCENDING)], {"name": "orders_customer_created_desc"}),
    ],
    "questions": [
        ([("questionId", ASCENDING)], {"name": "questions_question_id_unique", "unique": True}),
        ([("categoryId", ASCENDING), ("createdAt", ASCENDING)], {"name": "questions_category_created_asc"}),
    ],
}


def resolve_database(client: Any, database_name: str | None = None) -> Any:
    if database_name:
        return client[database_name]
    return client.get_default_database(default=DEFAULT_DATABASE)


def ensure_mongo_indexes(*, client: Any, database_name: str | None = None) -> dict[str, list[str]]:
    database = resolve_database(client, database_name)
    created: dict[str, list[str]] = {}
    for collection_name, specs in MONGO_INDEX_SPECS.items():
        collection = database[collection_name]
        names: list[str] = []
        for keys, options in specs:
            names.append(str(collection.create_index(keys, **options)))
        created[collection_name] = names
    return created
