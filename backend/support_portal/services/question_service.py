from __future__ import annotations

from typing import Any

from support_portal.core.catalog import DEFAULT_QUESTION_CATEGORIES, QUESTION_ICONS
from support_portal.core.errors import NotFound, ValidationError
from support_portal.core.utils import generate_id, iso_now
from support_portal.repositories.question_repository import QuestionRepository


def _default_groups() -> list[dict[str, Any]]:
    groups: list[dict[str, Any]] = []
    for category in DEFAULT_QUESTION_CATEGORIES:
        groups.append(
            {
                "categoryId": category["categoryId"],
                "categoryTitle": category["categoryTitle"],
                "categoryDescription": category["categoryDescription"],
                "categoryIcon": category["categoryIcon"],
                "questions": [
                    {"id": f"default_{category['categoryId']}_{index}", "questionText": text}
                    for index, text in enumerate(category["questions"], start=1)
                ],
            }
        )
    return groups


class QuestionService:
    def __init__(self, *, question_repository: QuestionRepository) -> None:
        self.question_repository = question_repository

    def list_grouped(self) -> dict[str, Any]:
        rows = self.question_repository.list_all()
        if not rows:
            return {"categories": _default_groups(), "source": "default"}

        groups: dict[str, dict[str, Any]] = {}
        for row in rows:
            category_id = str(row.get("categoryId", ""))
            group = groups.setdefault(
                category_id,
                {
                    "categoryId": category_id,
                    "categoryTitle": row.get("categoryTitle", ""),
                    "categoryDescription": row.get("categoryDescription", ""),
                    "categoryIcon": row.get("categoryIcon", "HelpCircle"),
                    "questions": [],
                },
            )
            group["questions"].append({"id": row["id"], "questionText": row.get("questionText", "")})
        return {"categories": list(groups.values()), "source": "stored"}

    def add_question(self, payload: dict[str, Any], *, created_by: str | None = None) -> dict[str, Any]:
        self._validate(payload)
        now = iso_now()
        question = {
            "id": generate_id("question"),
            **self._fields(payload),
            "createdBy": created_by,
            "createdAt": now,
            "updatedAt": now,
        }
        return self.question_repository.save(question)

    def update_question(self, question_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        existing = self.question_repository.get(question_id)
        if existing is None:
            raise NotFound("Question not found")
        self._validate(payload)
        updated = {**existing, **self._fields(payload), "updatedAt": iso_now()}
        return self.question_repository.save(updated)

    def delete_question(self, question_id: str) -> None:
        if self.question_repository.get(question_id) is None:
            raise NotFound("Question not found")
        self.question_repository.delete(question_id)

    @staticmethod
    def _fields(payload: dict[str, Any]) -> dict[str, Any]:
        return {
            "categoryId": str(payload["categoryId"]).strip(),
            "categoryTitle": str(payload["categoryTitle"]).strip(),
            "categoryDescription": str(payload.get("categoryDescription") or "").strip(),
            "categoryIcon": str(payload.get("categoryIcon") or "HelpCircle"),
            "questionText": str(payload["questionText"]).strip(),
        }

    @staticmethod
    def _validate(payload: dict[str, Any]) -> None:
        details: list[dict[str, Any]] = []
        for field in ("categoryId", "categoryTitle", "questionText"):
            if not str(payload.get(field) or "").strip():
                details.append({"field": field, "message": "Please fill in all required fields"})
        icon = payload.get("categoryIcon") or "HelpCircle"
        if icon not in QUESTION_ICONS:
            details.append({"field": "categoryIcon", "message": "Unknown icon"})
        if details:
            raise ValidationError("Please fill in all required fields", details=details)
