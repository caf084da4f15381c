from typing import Optional
from pydantic import BaseModel, ConfigDict


class QuoteFields(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    service: Optional[str] = None
    message: Optional[str] = None
    source: Optional[str] = None


class QuoteRequestIn(QuoteFields):
    quote_id: Optional[str] = None
    # older clients send the form nested
    payload: Optional[QuoteFields] = None

    def fields(self) -> QuoteFields:
        return self.payload if self.payload is not None else self


class BookingBillIn(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    booking_id: Optional[str] = None
