"""
Request models validated at the boundary before any scheduling logic runs.
"""

import datetime as dt
from typing import Any, Mapping, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .domain.exceptions import InvalidRequest
from .domain.models import BookingStatus, ServiceType, TimeSlot, normalize_date


RequestT = TypeVar("RequestT", bound=BaseModel)


class _Request(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)


class SlotQuery(_Request):
    """Query for the free start slots of a service on a day."""
    date: dt.date
    service_id: int = Field(gt=0)

    @field_validator("date", mode="before")
    @classmethod
    def parse_date(cls, value: Any) -> dt.date:
        return normalize_date(value)


class CreateBookingRequest(_Request):
    """A customer's request to reserve a slot for one of their bikes."""
    bike_id: int = Field(gt=0)
    service_id: int = Field(gt=0)
    date: dt.date
    time_slot: TimeSlot
    service_type: ServiceType
    address: Optional[str] = None

    @field_validator("date", mode="before")
    @classmethod
    def parse_date(cls, value: Any) -> dt.date:
        return normalize_date(value)

    @field_validator("time_slot", mode="before")
    @classmethod
    def parse_time_slot(cls, value: Any) -> TimeSlot:
        if isinstance(value, TimeSlot):
            return value
        return TimeSlot.parse(value)

    @field_validator("address", mode="before")
    @classmethod
    def blank_address_is_missing(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip() or None
        return value

    @model_validator(mode="after")
    def require_address_for_on_site(self) -> "CreateBookingRequest":
        """Pickup and home services need somewhere to go."""
        if self.service_type.requires_address and not self.address:
            raise ValueError("Address is required for pickup and home services")
        return self


class StatusUpdateRequest(_Request):
    """Staff request to move a booking to another status."""
    booking_id: int = Field(gt=0)
    status: BookingStatus


def parse_request(model: Type[RequestT], data: Mapping[str, Any]) -> RequestT:
    """
    Validate raw input into a request model.

    Raises:
        InvalidRequest: If any field is missing or malformed
    """
    try:
        return model.model_validate(dict(data))
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc']) or 'request'}: {error['msg']}"
            for error in exc.errors()
        )
        raise InvalidRequest(f"Invalid {model.__name__}: {problems}") from exc
