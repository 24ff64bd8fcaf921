from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from support_portal.api.deps import ClientScope, decode_attachment, get_client_scope
from support_portal.container import container, ticket_submission_service, workflow_registry
from support_portal.models.schemas import SelectQuestionRequest, SubmitTicketRequest
from support_portal.services.support_workflow import SupportWorkflow

router = APIRouter(prefix="/support", tags=["support"])


def _workflow(workflow_id: str, scope: ClientScope) -> SupportWorkflow:
    return workflow_registry.get(workflow_id=workflow_id, tab_id=scope.tab_id)


@router.post("/workflows", status_code=201)
def create_workflow(scope: ClientScope = Depends(get_client_scope)) -> dict[str, object]:
    workflow = container.new_workflow(resolver=scope.resolver, tab_id=scope.tab_id)
    return {"workflow": workflow.snapshot()}


@router.get("/workflows/{workflow_id}")
def get_workflow(workflow_id: str, scope: ClientScope = Depends(get_client_scope)) -> dict[str, object]:
    return {"workflow": _workflow(workflow_id, scope).snapshot()}


@router.post("/workflows/{workflow_id}/question")
def select_question(
    workflow_id: str,
    payload: SelectQuestionRequest,
    scope: ClientScope = Depends(get_client_scope),
) -> dict[str, object]:
    workflow = _workflow(workflow_id, scope)
    workflow.select_predefined_question(payload.question, payload.category)
    return {"workflow": workflow.snapshot()}


@router.post("/workflows/{workflow_id}/custom")
def select_custom(workflow_id: str, scope: ClientScope = Depends(get_client_scope)) -> dict[str, object]:
    workflow = _workflow(workflow_id, scope)
    workflow.select_custom_question()
    return {"workflow": workflow.snapshot()}


@router.post("/workflows/{workflow_id}/back")
def go_back(workflow_id: str, scope: ClientScope = Depends(get_client_scope)) -> dict[str, object]:
    workflow = _workflow(workflow_id, scope)
    workflow.back()
    return {"workflow": workflow.snapshot()}


@router.post("/workflows/{workflow_id}/submit", response_model=None)
def submit(
    workflow_id: str,
    payload: SubmitTicketRequest,
    scope: ClientScope = Depends(get_client_scope),
) -> dict[str, object] | JSONResponse:
    workflow = _workflow(workflow_id, scope)
    attachment = decode_attachment(payload.attachment)
    ticket = workflow.submit(payload.model_dump(exclude={"attachment"}), attachment=attachment)
    if ticket is None and workflow.last_error is not None:
        failure = workflow.last_error
        return JSONResponse(
            status_code=failure.status_code,
            content={**failure.to_envelope(), "workflow": workflow.snapshot()},
        )
    return {"ticket": ticket, "workflow": workflow.snapshot()}


@router.post("/workflows/{workflow_id}/restart")
def restart(workflow_id: str, scope: ClientScope = Depends(get_client_scope)) -> dict[str, object]:
    workflow = _workflow(workflow_id, scope)
    workflow.restart()
    return {"workflow": workflow.snapshot()}


@router.get("/tickets")
def list_tickets(scope: ClientScope = Depends(get_client_scope)) -> dict[str, object]:
    return ticket_submission_service.list_tickets(resolver=scope.resolver)
