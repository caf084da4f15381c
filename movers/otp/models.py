from typing import Any, Optional
from pydantic import BaseModel, Field, field_validator, model_validator


def as_text(value: Any) -> Optional[str]:
    """Read a JSON value as text the way a loose client would send it."""
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, (list, tuple)):
        return ",".join("" if v is None else str(v) for v in value)
    return str(value)


class SendOtpIn(BaseModel):
    phone: Optional[str] = Field(None, examples=["9876543210"])

    @model_validator(mode="before")
    @classmethod
    def object_only(cls, data: Any) -> Any:
        return data if isinstance(data, dict) else {}

    @field_validator("phone", mode="before")
    @classmethod
    def phone_as_text(cls, value: Any) -> Optional[str]:
        return as_text(value)


class VerifyOtpIn(BaseModel):
    phone: Optional[str] = Field(None, examples=["9876543210"])
    code: Optional[str] = Field(None, examples=["123456"])

    @model_validator(mode="before")
    @classmethod
    def object_only(cls, data: Any) -> Any:
        return data if isinstance(data, dict) else {}

    @field_validator("phone", "code", mode="before")
    @classmethod
    def fields_as_text(cls, value: Any) -> Optional[str]:
        return as_text(value)
