from __future__ import annotations

from fastapi import APIRouter, Depends, Response

from support_portal.api.deps import ClientScope, get_client_scope
from support_portal.container import question_service
from support_portal.models.schemas import QuestionWriteRequest

router = APIRouter(tags=["questions"])


@router.get("/questions")
def list_questions() -> dict[str, object]:
    return question_service.list_grouped()


@router.post("/admin/questions", status_code=201)
def add_question(
    payload: QuestionWriteRequest,
    scope: ClientScope = Depends(get_client_scope),
) -> dict[str, object]:
    question = question_service.add_question(
        payload.model_dump(),
        created_by=scope.resolver.resolve_ambient(),
    )
    return {"question": question}


@router.put("/admin/questions/{question_id}")
def update_question(question_id: str, payload: QuestionWriteRequest) -> dict[str, object]:
    return {"question": question_service.update_question(question_id, payload.model_dump())}


@router.delete("/admin/questions/{question_id}", status_code=204, response_class=Response)
def delete_question(question_id: str) -> Response:
    question_service.delete_question(question_id)
    return Response(status_code=204)
