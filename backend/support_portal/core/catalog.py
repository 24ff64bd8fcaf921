from __future__ import annotations

from decimal import Decimal
from typing import Any

TICKET_CATEGORIES = ("battery", "mechanical", "safety", "general")
TICKET_PRIORITIES = ("low", "medium", "high", "urgent")
TICKET_STATUSES = ("open", "in_progress", "resolved")
ORDER_STATUSES = ("pending", "confirmed", "processing", "shipped", "delivered", "cancelled")

SCOOTER_MODELS: dict[str, dict[str, Any]] = {
    "ms_classic": {"label": "MS Classic", "price": Decimal("1299.99")},
    "ms_sport": {"label": "MS Sport", "price": Decimal("1599.99")},
    "ms_electric": {"label": "MS Electric", "price": Decimal("1899.99")},
    "ms_premium": {"label": "MS Premium", "price": Decimal("2299.99")},
}

QUESTION_ICONS = (
    "Zap",
    "Wrench",
    "Settings",
    "Shield",
    "Package",
    "HelpCircle",
    "Phone",
    "Mail",
    "MessageSquare",
)

# Shown when no questions have been stored yet.
DEFAULT_QUESTION_CATEGORIES: list[dict[str, Any]] = [
    {
        "categoryId": "battery",
        "categoryTitle": "Battery Issues",
        "categoryDescription": "Battery not charging, low range, or power problems",
        "categoryIcon": "Zap",
        "questions": [
            "My scooter battery is not charging",
            "How can I improve my scooter battery life?",
            "Why does my battery drain so quickly?",
            "What is the expected battery range?",
        ],
    },
    {
        "categoryId": "mechanical",
        "categoryTitle": "Mechanical Problems",
        "categoryDescription": "Brakes, wheels, steering, or motor issues",
        "categoryIcon": "Wrench",
        "questions": [
            "My brakes are making strange noises",
            "The scooter is not accelerating properly",
            "How do I adjust the brake tension?",
            "The wheels are wobbling while riding",
        ],
    },
    {
        "categoryId": "safety",
        "categoryTitle": "Safety Concerns",
        "categoryDescription": "Safety features, helmet recommendations, or accident reports",
        "categoryIcon": "Shield",
        "questions": [
            "What safety gear do you recommend?",
            "How do I report a safety issue?",
            "My scooter suddenly stopped working while riding",
            "Are there age restrictions for using the scooter?",
        ],
    },
    {
        "categoryId": "general",
        "categoryTitle": "General Questions",
        "categoryDescription": "Warranty, maintenance, or usage questions",
        "categoryIcon": "HelpCircle",
        "questions": [
            "How do I maintain my electric scooter?",
            "What is covered under warranty?",
            "How often should I service my scooter?",
            "Can I ride in the rain?",
        ],
    },
]


def unit_price(model: str) -> Decimal:
    return SCOOTER_MODELS[model]["price"]


def list_models() -> list[dict[str, Any]]:
    return [
        {"value": value, "label": str(entry["label"]), "price": float(entry["price"])}
        for value, entry in SCOOTER_MODELS.items()
    ]
