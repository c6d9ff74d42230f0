"""Submission request/response schemas."""

from typing import Literal

from pydantic import BaseModel, Field

SubmissionSource = Literal["qr_static", "qr_magic"]


class Answer(BaseModel):
    """One answer to one form question."""

    question_id: str = Field(min_length=1)
    value: bool | int | float | str


class FieldDefinition(BaseModel):
    """Form field as stored in Form.fields."""

    id: str
    type: Literal["nps", "csat", "text", "phone"]
    label: str = ""
    required: bool = False


class Metrics(BaseModel):
    """Scores derived from answers at ingestion time."""

    nps_score: int | None = None
    csat_score: int | None = None


class CustomerMetadata(BaseModel):
    """Customer context attached to a submission."""

    phone: str | None = None
    order_id: str | None = None
    store_id: str | None = None
    source: SubmissionSource | None = None


class SubmitRequest(BaseModel):
    """POST /v1/submit request."""

    tenant_id: str = Field(min_length=1)
    form_id: str | None = None
    answers: list[Answer] = Field(min_length=1)
    metadata: CustomerMetadata = Field(default_factory=CustomerMetadata)
    honeypot: str | None = None


class TenantDisplayInfo(BaseModel):
    """Tenant details echoed to the thank-you screen."""

    name: str


class SubmissionData(BaseModel):
    response_id: str
    metrics: Metrics
    tenant: TenantDisplayInfo


class SubmitResponse(BaseModel):
    """POST /v1/submit response."""

    success: bool = True
    message: str = "Thank you for your feedback!"
    data: SubmissionData | None = None
