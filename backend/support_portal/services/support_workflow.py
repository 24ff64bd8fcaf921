from __future__ import annotations

from collections import OrderedDict
from enum import Enum
from threading import Lock
from typing import Any, Callable

from support_portal.core.errors import (
    InvalidTransition,
    NotFound,
    PortalError,
    SubmissionInProgress,
    ValidationError,
)
from support_portal.core.utils import generate_id
from support_portal.infrastructure.logging import get_logger
from support_portal.services.attachment_uploader import Attachment
from support_portal.services.identity_resolver import IdentityResolver
from support_portal.services.ticket_submission import TicketSubmissionService

logger = get_logger(__name__)

TITLE_PREFILL_LIMIT = 100
FORM_FIELDS = ("title", "description", "category", "priority")


class WorkflowState(str, Enum):
    SELECTING_QUESTION = "selecting_question"
    FILLING_FORM = "filling_form"
    SUBMITTED = "submitted"


def _blank_form() -> dict[str, str]:
    return {"title": "", "description": "", "category": "", "priority": "medium"}


class SupportWorkflow:
    """In-memory state machine for one support request.

    selecting_question -> filling_form -> submitted, with back() returning
    from the form and restart() leaving the terminal state. Only one submit
    may run at a time; other transitions are refused while it does.
    """

    def __init__(
        self,
        *,
        resolver: IdentityResolver,
        ticket_submission: TicketSubmissionService,
        workflow_id: str | None = None,
    ) -> None:
        self.id = workflow_id or generate_id("workflow")
        self.resolver = resolver
        self.ticket_submission = ticket_submission
        self.state = WorkflowState.SELECTING_QUESTION
        self.form = _blank_form()
        self.errors: dict[str, str] = {}
        self.last_error: PortalError | None = None
        self.ticket: dict[str, Any] | None = None
        self._submitting = False
        self._lock = Lock()

    @property
    def submitting(self) -> bool:
        return self._submitting

    def select_predefined_question(self, text: str, category: str) -> None:
        with self._lock:
            self._require(WorkflowState.SELECTING_QUESTION, "select a question")
            self.form = {
                "title": text[:TITLE_PREFILL_LIMIT],
                "description": text,
                "category": category,
                "priority": "medium",
            }
            self._enter(WorkflowState.FILLING_FORM)

    def select_custom_question(self) -> None:
        with self._lock:
            self._require(WorkflowState.SELECTING_QUESTION, "ask a custom question")
            self.form = _blank_form()
            self._enter(WorkflowState.FILLING_FORM)

    def back(self) -> None:
        with self._lock:
            self._require(WorkflowState.FILLING_FORM, "go back")
            self.form = _blank_form()
            self._enter(WorkflowState.SELECTING_QUESTION)

    def restart(self) -> None:
        with self._lock:
            self._require(WorkflowState.SUBMITTED, "restart")
            self.form = _blank_form()
            self.ticket = None
            self._enter(WorkflowState.SELECTING_QUESTION)

    def submit(self, form_data: dict[str, Any], attachment: Attachment | None = None) -> dict[str, Any] | None:
        """Returns the created ticket, or None after recording why submission failed."""
        with self._lock:
            self._require(WorkflowState.FILLING_FORM, "submit")
            self._submitting = True
            self.form = {
                **self.form,
                **{field: form_data[field] for field in FORM_FIELDS if field in form_data},
            }
            form = dict(self.form)

        ticket: dict[str, Any] | None = None
        failure: PortalError | None = None
        try:
            ticket = self.ticket_submission.submit(
                resolver=self.resolver,
                form_data=form,
                attachment=attachment,
            )
        except PortalError as exc:
            failure = exc
        finally:
            with self._lock:
                self._submitting = False
                if failure is not None:
                    self.last_error = failure
                    self.errors = failure.field_errors if isinstance(failure, ValidationError) else {}
                elif ticket is not None:
                    self.ticket = ticket
                    self.form = _blank_form()
                    self._enter(WorkflowState.SUBMITTED)

        if failure is not None:
            logger.info("workflow.submit_failed", workflow_id=self.id, code=failure.code)
        return ticket

    def snapshot(self) -> dict[str, Any]:
        with self._lock:
            return {
                "id": self.id,
                "state": self.state.value,
                "form": dict(self.form),
                "errors": dict(self.errors),
                "error": self.last_error.to_envelope()["error"] if self.last_error else None,
                "submitting": self._submitting,
                "ticket": dict(self.ticket) if self.ticket else None,
            }

    def _require(self, expected: WorkflowState, action: str) -> None:
        if self._submitting:
            raise SubmissionInProgress()
        if self.state is not expected:
            raise InvalidTransition(f"Cannot {action} while the workflow is {self.state.value}.")

    def _enter(self, state: WorkflowState) -> None:
        logger.debug("workflow.transition", workflow_id=self.id, source=self.state.value, target=state.value)
        self.state = state
        self.errors = {}
        self.last_error = None


class WorkflowRegistry:
    """Keeps live workflows addressable per tab; the oldest are evicted past `limit`."""

    def __init__(self, *, limit: int = 1000) -> None:
        self.limit = max(1, limit)
        self._workflows: OrderedDict[str, tuple[str, SupportWorkflow]] = OrderedDict()
        self._lock = Lock()

    def create(self, *, tab_id: str, factory: Callable[[], SupportWorkflow]) -> SupportWorkflow:
        workflow = factory()
        with self._lock:
            self._workflows[workflow.id] = (tab_id, workflow)
            while len(self._workflows) > self.limit:
                self._workflows.popitem(last=False)
        return workflow

    def get(self, *, workflow_id: str, tab_id: str) -> SupportWorkflow:
        with self._lock:
            entry = self._workflows.get(workflow_id)
            if entry is None or entry[0] != tab_id:
                raise NotFound("Support workflow not found")
            self._workflows.move_to_end(workflow_id)
            return entry[1]

    def clear(self) -> None:
        with self._lock:
            self._workflows.clear()
