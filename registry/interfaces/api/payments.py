"""Payment API routes: ledger, capacity purchases, database hosting."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from registry.application.services import payment_service
from registry.domain.schemas.payment import (
    DatabaseHostingRequest,
    IncreaseLimitsRequest,
    InitializePaymentRequest,
    PaymentRead,
    VerifyPaymentRequest,
)
from registry.interfaces.api.deps import require_admin
from registry.interfaces.deps import get_db

router = APIRouter(prefix="/api", tags=["Payments"])


@router.get("/payment-config")
def payment_config():
    return payment_service.payment_config()


@router.post("/initialize-payment")
def initialize_payment(
    body: InitializePaymentRequest,
    db: Session = Depends(get_db),
    admin: dict = Depends(require_admin),
):
    payment = payment_service.initialize_payment(db, body)
    return {
        "success": True,
        "tx_ref": payment.tx_ref,
        "payment": PaymentRead.model_validate(payment),
    }


@router.get("/limits-status")
def limits_status(
    db: Session = Depends(get_db),
    admin: dict = Depends(require_admin),
):
    return {"success": True, "status": payment_service.limits_status(db)}


@router.post("/verify-payment")
def verify_payment(
    body: VerifyPaymentRequest,
    db: Session = Depends(get_db),
    admin: dict = Depends(require_admin),
):
    payment = payment_service.verify_payment(db, body)
    return {
        "success": True,
        "message": "Payment verified successfully",
        "payment": PaymentRead.model_validate(payment),
        "paymentType": payment.type,
        "metadata": payment.meta,
    }


@router.post("/increase-limits")
def increase_limits(
    body: IncreaseLimitsRequest,
    db: Session = Depends(get_db),
    admin: dict = Depends(require_admin),
):
    limits = payment_service.add_capacity(db, body)
    return {
        "success": True,
        "message": "Limits increased successfully",
        "limits": limits,
        "transactionReference": body.transaction_reference,
    }


@router.post("/database-hosting")
def database_hosting(
    body: DatabaseHostingRequest,
    db: Session = Depends(get_db),
    admin: dict = Depends(require_admin),
):
    payment = payment_service.activate_database_hosting(db, body)
    return {
        "success": True,
        "message": "Database hosting activated successfully",
        "plan": payment.plan,
        "duration": payment.duration,
        "expiryDate": payment.expiry_date.date().isoformat(),
        "transactionReference": body.transaction_reference,
    }


@router.get("/database-status")
def database_status(
    db: Session = Depends(get_db),
    admin: dict = Depends(require_admin),
):
    return {"success": True, "status": payment_service.database_status(db)}


@router.get("/payment-history")
def payment_history(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    type: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    admin: dict = Depends(require_admin),
):
    history = payment_service.payment_history(db, page=page, limit=limit, payment_type=type)
    history["payments"] = [PaymentRead.model_validate(p) for p in history["payments"]]
    return {"success": True, **history}
