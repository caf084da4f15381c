import enum
from datetime import datetime
from typing import Optional
from sqlalchemy import Boolean, DateTime, Float, Integer, Text, text
from sqlmodel import Column, SQLModel, Field, String
from uuid6 import uuid7
from movers.common.utils import now


def new_id() -> str:
    return str(uuid7())


class UserRole(str, enum.Enum):
    CUSTOMER = "customer"
    DRIVER = "driver"
    STAFF = "staff"
    ADMIN = "admin"


ADMIN_ROLES = (UserRole.ADMIN, UserRole.STAFF)


class BookingStatus(str, enum.Enum):
    PENDING = "pending"
    ASSIGNED = "assigned"
    UNASSIGNED = "unassigned"
    NOT_STARTED = "not_started"
    PICKUP_REACHED = "pickup_reached"
    IN_TRANSIT = "in_transit"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    RESCHEDULED = "rescheduled"


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"

    @classmethod
    def from_gateway(cls, gateway_status: Optional[str]) -> "PaymentStatus":
        if gateway_status == "captured":
            return cls.PAID
        if gateway_status == "failed":
            return cls.FAILED
        return cls.PENDING


class BookingOtp(SQLModel, table=True):
    """One live verification code per canonical phone; issuing a new code overwrites the row."""
    __tablename__ = "booking_otps"

    phone: str = Field(sa_column=Column(Text(), primary_key=True))
    otp_hash: str = Field(sa_column=Column(Text(), nullable=False))  # never the plain code
    expires_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))
    attempts: int = Field(default=0, sa_column=Column(Integer, nullable=False, server_default=text("0")))
    verified: bool = Field(default=False, sa_column=Column(Boolean, nullable=False, server_default=text("false")))
    last_sent_at: datetime = Field(default_factory=now, sa_column=Column(DateTime(timezone=True), nullable=False))


class Users(SQLModel, table=True):
    __tablename__ = "users"

    id: str = Field(default_factory=new_id, sa_column=Column(String(36), primary_key=True))
    name: Optional[str] = Field(default=None, sa_column=Column(String(128), nullable=True))
    email: Optional[str] = Field(default=None, sa_column=Column(String(320), nullable=True))
    phone: Optional[str] = Field(default=None, sa_column=Column(String(20), nullable=True))
    role: str = Field(default=UserRole.CUSTOMER.value, sa_column=Column(String(16), nullable=False, index=True))
    expo_push_token: Optional[str] = Field(default=None, sa_column=Column(String(255), nullable=True))
    created_at: datetime = Field(default_factory=now, sa_column=Column(DateTime(timezone=True), nullable=False, default=now))


class VehicleType(SQLModel, table=True):
    __tablename__ = "vehicle_types"

    id: str = Field(default_factory=new_id, sa_column=Column(String(36), primary_key=True))
    name: Optional[str] = Field(default=None, sa_column=Column(String(128), nullable=True))


class Booking(SQLModel, table=True):
    __tablename__ = "bookings"

    id: str = Field(default_factory=new_id, sa_column=Column(String(36), primary_key=True))
    user_id: Optional[str] = Field(default=None, sa_column=Column(String(36), nullable=True, index=True))
    driver_id: Optional[str] = Field(default=None, sa_column=Column(String(36), nullable=True, index=True))
    status: str = Field(default=BookingStatus.PENDING.value, sa_column=Column(String(32), nullable=False))
    payment_status: str = Field(default=PaymentStatus.PENDING.value, sa_column=Column(String(16), nullable=False))
    pickup_otp: Optional[str] = Field(default=None, sa_column=Column(String(12), nullable=True))
    delivery_otp: Optional[str] = Field(default=None, sa_column=Column(String(12), nullable=True))
    pickup_address: Optional[str] = Field(default=None, sa_column=Column(Text(), nullable=True))
    drop_address: Optional[str] = Field(default=None, sa_column=Column(Text(), nullable=True))
    distance_km: Optional[float] = Field(default=None, sa_column=Column(Float, nullable=True))
    scheduled_date: Optional[str] = Field(default=None, sa_column=Column(String(16), nullable=True))
    scheduled_time: Optional[str] = Field(default=None, sa_column=Column(String(16), nullable=True))
    labor_count: Optional[int] = Field(default=None, sa_column=Column(Integer, nullable=True))
    estimated_price: Optional[float] = Field(default=None, sa_column=Column(Float, nullable=True))  # rupees
    advance_amount: Optional[float] = Field(default=None, sa_column=Column(Float, nullable=True))
    remaining_amount: Optional[float] = Field(default=None, sa_column=Column(Float, nullable=True))
    vehicle_type_id: Optional[str] = Field(default=None, sa_column=Column(String(36), nullable=True))
    created_at: datetime = Field(default_factory=now, sa_column=Column(DateTime(timezone=True), nullable=False, default=now))
    updated_at: datetime = Field(default_factory=now, sa_column=Column(DateTime(timezone=True), nullable=False, default=now, onupdate=now))


class Payment(SQLModel, table=True):
    __tablename__ = "payments"

    id: str = Field(default_factory=new_id, sa_column=Column(String(36), primary_key=True))
    booking_id: Optional[str] = Field(default=None, sa_column=Column(String(36), nullable=True, index=True))
    razorpay_order_id: str = Field(sa_column=Column(String(64), nullable=False, unique=True))
    razorpay_payment_id: Optional[str] = Field(default=None, sa_column=Column(String(64), nullable=True))
    status: Optional[str] = Field(default=None, sa_column=Column(String(32), nullable=True))  # gateway status, e.g. captured
    amount: Optional[float] = Field(default=None, sa_column=Column(Float, nullable=True))  # rupees
    created_at: datetime = Field(default_factory=now, sa_column=Column(DateTime(timezone=True), nullable=False, default=now))
    updated_at: datetime = Field(default_factory=now, sa_column=Column(DateTime(timezone=True), nullable=False, default=now, onupdate=now))


class QuoteRequest(SQLModel, table=True):
    __tablename__ = "quote_requests"

    id: str = Field(default_factory=new_id, sa_column=Column(String(36), primary_key=True))
    name: Optional[str] = Field(default=None, sa_column=Column(String(128), nullable=True))
    phone: Optional[str] = Field(default=None, sa_column=Column(String(20), nullable=True))
    email: Optional[str] = Field(default=None, sa_column=Column(String(320), nullable=True))
    service: Optional[str] = Field(default=None, sa_column=Column(String(128), nullable=True))
    message: Optional[str] = Field(default=None, sa_column=Column(Text(), nullable=True))
    source: Optional[str] = Field(default=None, sa_column=Column(String(32), nullable=True))
    created_at: datetime = Field(default_factory=now, sa_column=Column(DateTime(timezone=True), nullable=False, default=now))
