"""Job order schemas for request validation."""

from datetime import date
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.types import CamelModel, OptionalStr


REQUIRED_CREATE_FIELDS = ("job_number", "title", "customer_name", "job_type", "location", "address")


class JobOrderCreate(BaseModel):
    """Admin job creation. Required fields are checked by the route so a
    missing one is a 400 naming every absent field."""

    job_number: OptionalStr = None
    title: OptionalStr = None
    customer_name: OptionalStr = None
    customer_contact: Optional[str] = None
    customer_email: Optional[str] = None
    job_type: OptionalStr = None
    location: OptionalStr = None
    address: OptionalStr = None
    description: Optional[str] = None
    additional_info: Optional[str] = None
    assigned_to: OptionalStr = None
    operator_name: Optional[str] = None
    foreman_name: Optional[str] = None
    foreman_phone: Optional[str] = None
    salesman_name: Optional[str] = None
    salesperson_email: Optional[str] = None
    priority: Optional[str] = "medium"
    scheduled_date: Optional[date] = None
    end_date: Optional[date] = None
    arrival_time: OptionalStr = None
    shop_arrival_time: OptionalStr = None
    drive_time_hours: Optional[float] = Field(None, ge=0)
    estimated_hours: Optional[float] = None
    is_multi_day: Optional[bool] = False
    job_quote: Optional[float] = None
    required_documents: list[str] = Field(default_factory=list)
    equipment_needed: list[str] = Field(default_factory=list)
    special_equipment: list[str] = Field(default_factory=list)
    job_site_number: Optional[str] = None
    po_number: Optional[str] = None
    customer_job_number: Optional[str] = None

    def missing_fields(self) -> list[str]:
        return [name for name in REQUIRED_CREATE_FIELDS if not getattr(self, name)]


class JobOrderUpdate(BaseModel):
    """Admin edit. Only fields present in the body are applied."""

    arrival_time: Optional[str] = None
    shop_arrival_time: Optional[str] = None
    location: Optional[str] = None
    address: Optional[str] = None
    customer_name: Optional[str] = None
    foreman_name: Optional[str] = None
    foreman_phone: Optional[str] = None
    equipment_needed: Optional[list[str]] = None
    description: Optional[str] = None
    assigned_to: Optional[str] = None
    scheduled_date: Optional[date] = None
    end_date: Optional[date] = None
    estimated_hours: Optional[float] = None
    operator_name: Optional[str] = None
    status: Optional[str] = None
    priority: Optional[str] = None


class StatusUpdateRequest(BaseModel):
    """Status change. Unknown keys are kept and filtered by the service."""

    model_config = ConfigDict(extra="allow")

    status: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    accuracy: Optional[float] = None
    departure_time: Optional[str] = None

    def extra_fields(self) -> dict[str, Any]:
        return dict(self.model_extra or {})


class JobSubmission(BaseModel):
    """Operator completion data."""

    work_performed: Optional[str] = None
    materials_used: Optional[str] = None
    equipment_used: Optional[str] = None
    operator_notes: Optional[str] = None
    issues_encountered: Optional[str] = None
    customer_signature: Optional[str] = None
    customer_satisfied: Optional[bool] = None
    photo_urls: Optional[list[str]] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    accuracy: Optional[float] = None


class HistoryNoteRequest(CamelModel):
    notes: OptionalStr = None
    changes: Optional[dict[str, Any]] = None


class DailyLogRequest(CamelModel):
    work_performed: Union[str, list[str], None] = None
    notes: Optional[str] = None
    signer_name: Optional[str] = None
    signature_data: Optional[str] = None
    continue_next_day: bool = False
    latitude: Optional[float] = None
    longitude: Optional[float] = None
