"""Common schema utilities."""

from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class BaseSchema(BaseModel):
    """Base schema with common configuration.

    Fields are exposed in camelCase on the wire and accepted in either
    camelCase or snake_case.
    """

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )


class ApiResponse(BaseModel, Generic[T]):
    """Envelope carried by every response."""

    success: bool = True
    message: str | None = None
    data: T | None = None


class FieldError(BaseModel):
    """One per-field validation error."""

    field: str
    message: str


class ErrorResponse(BaseModel):
    """Failure envelope."""

    success: bool = False
    message: str
    errors: list[FieldError] | None = None
