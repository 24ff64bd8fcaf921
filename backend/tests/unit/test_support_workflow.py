from __future__ import annotations

from typing import Any, Callable

import pytest

from support_portal.core.errors import (
    InvalidTransition,
    NotFound,
    SubmissionInProgress,
    Unauthenticated,
    ValidationError,
)
from support_portal.services.support_workflow import SupportWorkflow, WorkflowRegistry, WorkflowState


class _StubSubmission:
    def __init__(self, outcome: Callable[[dict[str, Any]], dict[str, Any]] | None = None) -> None:
        self.outcome = outcome
        self.forms: list[dict[str, Any]] = []

    def submit(self, *, resolver: Any, form_data: dict[str, Any], attachment: Any = None) -> dict[str, Any]:
        self.forms.append(form_data)
        if self.outcome is not None:
            return self.outcome(form_data)
        return {"id": "ticket_1", "status": "open", **form_data}


def _workflow(submission: _StubSubmission | None = None) -> SupportWorkflow:
    return SupportWorkflow(resolver=object(), ticket_submission=submission or _StubSubmission())  # type: ignore[arg-type]


def test_predefined_question_prefills_truncated_title() -> None:
    workflow = _workflow()
    question = "My scooter battery is not charging " * 5

    workflow.select_predefined_question(question, "battery")

    assert workflow.state is WorkflowState.FILLING_FORM
    assert workflow.form["title"] == question[:100]
    assert len(workflow.form["title"]) == 100
    assert workflow.form["description"] == question
    assert workflow.form["category"] == "battery"
    assert workflow.form["priority"] == "medium"


def test_custom_question_starts_blank_and_back_discards_form() -> None:
    workflow = _workflow()
    workflow.select_predefined_question("Brakes squeak loudly", "safety")
    workflow.back()
    assert workflow.state is WorkflowState.SELECTING_QUESTION

    workflow.select_custom_question()

    assert workflow.form == {"title": "", "description": "", "category": "", "priority": "medium"}


def test_validation_failure_keeps_form_open_with_field_errors() -> None:
    def reject(_form: dict[str, Any]) -> dict[str, Any]:
        raise ValidationError(details=[{"field": "title", "message": "Title must be at least 5 characters"}])

    workflow = _workflow(_StubSubmission(reject))
    workflow.select_custom_question()

    assert workflow.submit({"title": "Hi", "description": "Too short?", "category": "general"}) is None
    assert workflow.state is WorkflowState.FILLING_FORM
    assert workflow.errors == {"title": "Title must be at least 5 characters"}
    assert workflow.form["title"] == "Hi"
    assert workflow.submitting is False


def test_non_validation_failure_is_recorded_without_field_errors() -> None:
    def unauthenticated(_form: dict[str, Any]) -> dict[str, Any]:
        raise Unauthenticated()

    workflow = _workflow(_StubSubmission(unauthenticated))
    workflow.select_custom_question()

    assert workflow.submit({"title": "Battery dead"}) is None
    assert workflow.errors == {}
    assert workflow.snapshot()["error"]["code"] == "AUTH_REQUIRED"


def test_successful_submit_reaches_terminal_state_and_restart_resets() -> None:
    workflow = _workflow()
    workflow.select_predefined_question("Battery is not charging", "battery")

    ticket = workflow.submit({"description": "Battery is not charging at all"})

    assert ticket is not None
    assert ticket["description"] == "Battery is not charging at all"
    assert workflow.state is WorkflowState.SUBMITTED
    assert workflow.snapshot()["ticket"]["id"] == "ticket_1"

    workflow.restart()
    assert workflow.state is WorkflowState.SELECTING_QUESTION
    assert workflow.ticket is None


def test_transitions_outside_their_state_are_refused() -> None:
    workflow = _workflow()
    with pytest.raises(InvalidTransition):
        workflow.back()
    with pytest.raises(InvalidTransition):
        workflow.submit({})
    with pytest.raises(InvalidTransition):
        workflow.restart()

    workflow.select_custom_question()
    with pytest.raises(InvalidTransition):
        workflow.select_custom_question()


def test_transitions_are_refused_while_a_submission_runs() -> None:
    observed: dict[str, Any] = {}
    workflow: SupportWorkflow

    def slow(form: dict[str, Any]) -> dict[str, Any]:
        observed["submitting"] = workflow.snapshot()["submitting"]
        for action in (workflow.back, lambda: workflow.submit({})):
            try:
                action()
            except SubmissionInProgress:
                observed.setdefault("refused", 0)
                observed["refused"] += 1
        return {"id": "ticket_1", **form}

    submission = _StubSubmission(slow)
    workflow = _workflow(submission)
    workflow.select_custom_question()

    assert workflow.submit({"title": "Battery dead"}) is not None
    assert observed == {"submitting": True, "refused": 2}
    assert len(submission.forms) == 1


def test_registry_scopes_workflows_to_their_tab_and_evicts_oldest() -> None:
    registry = WorkflowRegistry(limit=2)
    first = registry.create(tab_id="tab_a", factory=_workflow)
    registry.create(tab_id="tab_a", factory=_workflow)

    assert registry.get(workflow_id=first.id, tab_id="tab_a") is first
    with pytest.raises(NotFound):
        registry.get(workflow_id=first.id, tab_id="tab_b")

    third = registry.create(tab_id="tab_a", factory=_workflow)
    # `first` was touched most recently before the insert, so the second one is evicted.
    assert registry.get(workflow_id=first.id, tab_id="tab_a") is first
    assert registry.get(workflow_id=third.id, tab_id="tab_a") is third
