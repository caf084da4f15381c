from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field


class CreateOrderIn(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    # paise
    amount: Optional[Any] = Field(None, examples=[150000])
    currency: Optional[str] = Field(None, examples=["INR"])
    receipt: Optional[str] = None
    booking_id: Optional[str] = None


class VerifyPaymentIn(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    order_id: Optional[str] = None
    payment_id: Optional[str] = None
    signature: Optional[str] = None
