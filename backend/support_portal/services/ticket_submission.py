from __future__ import annotations

from typing import Any

from support_portal.core.errors import Unauthenticated
from support_portal.core.utils import generate_id, iso_now
from support_portal.infrastructure.logging import get_logger
from support_portal.models.schemas import TicketForm, parse_form
from support_portal.repositories.support_repository import SupportRepository
from support_portal.services.attachment_uploader import Attachment, AttachmentUploader
from support_portal.services.identity_resolver import IdentityResolver

logger = get_logger(__name__)


class TicketSubmissionService:
    def __init__(
        self,
        *,
        support_repository: SupportRepository,
        attachment_uploader: AttachmentUploader,
    ) -> None:
        self.support_repository = support_repository
        self.attachment_uploader = attachment_uploader

    def submit(
        self,
        *,
        resolver: IdentityResolver,
        form_data: dict[str, Any],
        attachment: Attachment | None = None,
    ) -> dict[str, Any]:
        """Validates, uploads the optional attachment, then writes the ticket.

        Any failure aborts before the insert. An attachment uploaded before
        a failed insert stays in blob storage.
        """
        form = parse_form(TicketForm, form_data)
        if attachment is not None:
            self.attachment_uploader.check_size(attachment)

        customer_id = resolver.resolve_ambient()
        if not customer_id:
            raise Unauthenticated()

        attachment_path: str | None = None
        if attachment is not None:
            attachment_path = self.attachment_uploader.upload(customer_id, attachment)

        now = iso_now()
        ticket = {
            "id": generate_id("ticket"),
            "customerId": customer_id,
            "title": form.title,
            "description": form.description,
            "category": form.category,
            "priority": form.priority,
            "status": "open",
            "attachmentUrl": attachment_path,
            "assignedAdminId": None,
            "resolvedAt": None,
            "createdAt": now,
            "updatedAt": now,
        }
        created = self.support_repository.create(ticket)
        logger.info(
            "ticket.created",
            ticket_id=created["id"],
            category=form.category,
            has_attachment=attachment_path is not None,
        )
        return created

    def list_tickets(self, *, resolver: IdentityResolver) -> dict[str, Any]:
        customer_id = resolver.resolve_ambient()
        if not customer_id:
            raise Unauthenticated()
        return {"tickets": self.support_repository.list_by_customer(customer_id)}
