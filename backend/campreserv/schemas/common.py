"""Schemas shared across routers."""

from datetime import date
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, model_validator


def _reject_null(value: bool | None) -> bool:
    if value is None:
        raise ValueError("may be omitted but not set to null")
    return value


# A flag on a partial-update body: leaving it out keeps the stored value
OptionalFlag = Annotated[bool | None, AfterValidator(_reject_null)]


class MessageResponse(BaseModel):
    """Generic message response."""

    message: str


class ActiveToggle(BaseModel):
    """Body of the ``/active`` toggle endpoints."""

    is_active: bool


class DateWindow(BaseModel):
    """An inclusive date window."""

    start_date: date
    end_date: date

    model_config = ConfigDict(from_attributes=True)

    @model_validator(mode="after")
    def check_dates(self) -> "DateWindow":
        """Validate that end_date is not before start_date."""
        if self.end_date < self.start_date:
            raise ValueError("end_date must be on or after start_date")
        return self
