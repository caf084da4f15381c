from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class StatusPushIn(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True, populate_by_name=True)

    booking_id: Optional[str] = None
    status: Optional[str] = Field(None, examples=["in_transit"])
    event_type: Optional[str] = Field(None, alias="type", examples=["otp"])
    otp_kind: Optional[str] = Field(None, examples=["pickup", "delivery"])
    old_driver_id: Optional[str] = None
    new_driver_id: Optional[str] = None
