from __future__ import annotations

from typing import Any, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from support_portal.core.errors import ValidationError

TicketCategory = Literal["battery", "mechanical", "safety", "general"]
TicketPriority = Literal["low", "medium", "high", "urgent"]
ScooterModel = Literal["ms_classic", "ms_sport", "ms_electric", "ms_premium"]

FormT = TypeVar("FormT", bound=BaseModel)

FIELD_MESSAGES = {
    "title": "Title must be at least 5 characters",
    "description": "Description must be at least 10 characters",
    "category": "Please select a category",
    "priority": "Please select a priority",
    "scooterModel": "Please select a scooter model",
    "quantity": "Quantity must be between 1 and 10",
    "deliveryAddress": "Delivery address is required",
    "deliveryCity": "City is required",
    "deliveryPostalCode": "Postal code is required",
    "deliveryPhone": "Delivery phone is required",
}


# Forms validated by the submission services.


class TicketForm(BaseModel):
    title: str = Field(min_length=5)
    description: str = Field(min_length=10)
    category: TicketCategory
    priority: TicketPriority = "medium"


class OrderForm(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    scooterModel: ScooterModel
    quantity: int = Field(ge=1, le=10)
    deliveryAddress: str = Field(min_length=1)
    deliveryCity: str = Field(min_length=1)
    deliveryPostalCode: str = Field(min_length=1)
    deliveryPhone: str = Field(min_length=1)
    notes: str | None = None


def parse_form(form_cls: type[FormT], data: dict[str, Any]) -> FormT:
    try:
        return form_cls.model_validate(data)
    except PydanticValidationError as exc:
        details: list[dict[str, Any]] = []
        for error in exc.errors():
            field = ".".join(str(part) for part in error.get("loc", ())) or "form"
            details.append({"field": field, "message": FIELD_MESSAGES.get(field, str(error.get("msg", "")))})
        raise ValidationError("Please correct the highlighted fields.", details=details) from exc


# HTTP request bodies.


class OtpRequest(BaseModel):
    phone: str = Field(min_length=1, max_length=20)


class OtpVerifyRequest(BaseModel):
    phone: str = Field(min_length=1, max_length=20)
    otp: str


class AttachmentPayload(BaseModel):
    filename: str = Field(min_length=1, max_length=255)
    contentType: str | None = None
    contentBase64: str


class SelectQuestionRequest(BaseModel):
    question: str = Field(min_length=1)
    category: str = ""


class SubmitTicketRequest(BaseModel):
    title: str = ""
    description: str = ""
    category: str = ""
    priority: str = "medium"
    attachment: AttachmentPayload | None = None


class CreateOrderRequest(BaseModel):
    scooterModel: str = ""
    quantity: int = 1
    deliveryAddress: str = ""
    deliveryCity: str = ""
    deliveryPostalCode: str = ""
    deliveryPhone: str = ""
    notes: str | None = None


class UpdateProfileRequest(BaseModel):
    displayName: str | None = Field(default=None, max_length=100)
    mobileNumber: str | None = Field(default=None, max_length=20)


class QuestionWriteRequest(BaseModel):
    categoryId: str = Field(min_length=1)
    categoryTitle: str = Field(min_length=1)
    categoryDescription: str = ""
    categoryIcon: str = "HelpCircle"
    questionText: str = Field(min_length=1)
