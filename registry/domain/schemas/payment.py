"""Pydantic schemas for the payment ledger and capacity limits."""

from datetime import datetime
from typing import Any, Dict, Literal, Optional

from pydantic import Field

from registry.domain.schemas.base import CamelModel


class InitializePaymentRequest(CamelModel):
    type: Literal["idcard", "certificate", "database"]
    amount: float = Field(ge=1)
    payment_method: Literal["bank_transfer", "card", "mobile_money", "ussd", "phone_number"] = "card"
    customer_name: str = "NARAP Admin"
    customer_email: str = "admin@narap.org.ng"
    metadata: Dict[str, Any] = Field(default_factory=dict)


class VerifyPaymentRequest(CamelModel):
    tx_ref: str = Field(min_length=1)
    transaction_id: Optional[str] = None
    transaction_reference: Optional[str] = None
    status: str = "successful"
    amount_paid: Optional[float] = None


class IncreaseLimitsRequest(CamelModel):
    member_limit: int = Field(default=0, ge=0)
    certificate_limit: int = Field(default=0, ge=0)
    transaction_reference: Optional[str] = None
    amount_paid: Optional[float] = None


class DatabaseHostingRequest(CamelModel):
    plan: Literal["monthly", "yearly"]
    payment_status: Optional[str] = None
    transaction_reference: Optional[str] = None
    amount_paid: Optional[float] = None


class PaymentRead(CamelModel):
    id: int
    type: str
    amount: float
    payment_method: str
    status: str
    transaction_id: str
    transaction_reference: Optional[str] = None
    tx_ref: Optional[str] = None
    amount_paid: Optional[float] = None
    payment_date: Optional[datetime] = None
    payment_description: Optional[str] = None
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = Field(default=None, validation_alias="meta")
    processed_by: Optional[str] = None
    plan: Optional[str] = None
    duration: Optional[str] = None
    expiry_date: Optional[datetime] = None
    created_at: Optional[datetime] = None


class LimitCheck(CamelModel):
    allowed: bool
    message: str
    current_count: Optional[int] = None
    limit: Optional[int] = None
    remaining: Optional[int] = None
