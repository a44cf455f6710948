"""Payment ledger and capacity purchases.

No payment provider is called from here: the admin client completes the
checkout and reports the outcome, which is recorded as-is.
"""

import math
import random
import time
from typing import Any, Dict, Optional

import pandas as pd
import structlog
from sqlalchemy.orm import Session

from registry.application.services.activity_service import record_activity
from registry.application.services.limits_service import (
    can_add_certificate,
    can_add_member,
    increase_limits,
    initialize_limits_from_current_data,
)
from registry.config import get_settings
from registry.core.dates import as_utc, utcnow
from registry.core.exceptions import EntityNotFoundException, ValidationFailed
from registry.domain.models.payment import Payment
from registry.domain.schemas.payment import (
    DatabaseHostingRequest,
    IncreaseLimitsRequest,
    InitializePaymentRequest,
    VerifyPaymentRequest,
)

settings = get_settings()
logger = structlog.get_logger(__name__)

HOSTING_PLANS = {
    "monthly": {"amount": 35, "duration": "1 month", "offset": pd.DateOffset(months=1)},
    "yearly": {"amount": 336, "duration": "12 months", "offset": pd.DateOffset(years=1)},
}


def _transaction_id(prefix: str = "TXN") -> str:
    return f"{prefix}-{int(time.time() * 1000)}-{random.randint(0, 10**6)}"


def payment_config() -> Dict[str, Any]:
    """Public values only."""
    return {
        "apiKey": settings.MONNIFY_API_KEY,
        "contractCode": settings.MONNIFY_CONTRACT_CODE,
        "baseUrl": settings.MONNIFY_BASE_URL,
    }


def _description(body: InitializePaymentRequest) -> str:
    increase = body.metadata.get("capacityIncrease") or int(body.amount)
    if body.type == "idcard":
        return f"ID Card Payment - Increase Member Capacity by {increase}"
    if body.type == "certificate":
        return f"Certificate Payment - Increase Certificate Capacity by {increase}"
    return f"Database Hosting Payment - {body.metadata.get('plan', 'monthly')} plan"


def initialize_payment(db: Session, body: InitializePaymentRequest) -> Payment:
    tx_ref = f"NARAP_{body.type}_{int(time.time() * 1000)}"
    payment = Payment(
        type=body.type,
        amount=body.amount,
        payment_method=body.payment_method,
        status="pending",
        transaction_id=_transaction_id(),
        tx_ref=tx_ref,
        customer_name=body.customer_name,
        customer_email=body.customer_email,
        payment_description=_description(body),
        meta=body.metadata,
    )
    db.add(payment)
    db.commit()
    db.refresh(payment)

    logger.info("Payment initialized", tx_ref=tx_ref, type=body.type, amount=body.amount)
    return payment


def verify_payment(db: Session, body: VerifyPaymentRequest) -> Payment:
    payment = db.query(Payment).filter(Payment.tx_ref == body.tx_ref).first()
    if payment is None:
        raise EntityNotFoundException("Payment record not found", {"txRef": body.tx_ref})

    if body.status.lower() not in ("successful", "completed"):
        payment.status = "failed"
        db.commit()
        raise ValidationFailed("Payment verification failed - payment not successful", {"txRef": body.tx_ref})

    payment.status = "completed"
    payment.transaction_reference = body.transaction_reference or body.transaction_id
    payment.amount_paid = body.amount_paid if body.amount_paid is not None else payment.amount
    payment.payment_date = utcnow()
    record_activity(db, "payment", "verify", {"txRef": payment.tx_ref, "type": payment.type})
    db.commit()
    db.refresh(payment)

    logger.info("Payment verified", tx_ref=payment.tx_ref, type=payment.type)
    return payment


def limits_status(db: Session) -> Dict[str, Any]:
    members = can_add_member(db)
    certificates = can_add_certificate(db)
    limits = initialize_limits_from_current_data(db)

    def _entry(check, fallback_limit):
        return {
            "current": check.current_count or 0,
            "limit": check.limit if check.limit is not None else fallback_limit,
            "remaining": check.remaining or 0,
            "canAdd": check.allowed,
        }

    return {
        "members": _entry(members, limits.member_limit),
        "certificates": _entry(certificates, limits.certificate_limit),
    }


def add_capacity(db: Session, body: IncreaseLimitsRequest) -> Dict[str, Any]:
    """Add purchased slots on top of the current ceilings."""
    current = initialize_limits_from_current_data(db)
    old_members, old_certificates = current.member_limit, current.certificate_limit

    limits = increase_limits(
        db,
        member_limit=old_members + body.member_limit,
        certificate_limit=old_certificates + body.certificate_limit,
    )
    record_activity(db, "system", "increase_limits", {
        "memberIncrease": body.member_limit,
        "certificateIncrease": body.certificate_limit,
        "transactionReference": body.transaction_reference,
    })
    db.commit()

    logger.info(
        "Limits increased",
        member_limit=f"{old_members} -> {limits.member_limit}",
        certificate_limit=f"{old_certificates} -> {limits.certificate_limit}",
    )
    return {
        "memberLimit": limits.member_limit,
        "certificateLimit": limits.certificate_limit,
        "memberIncrease": body.member_limit,
        "certificateIncrease": body.certificate_limit,
    }


def activate_database_hosting(db: Session, body: DatabaseHostingRequest) -> Payment:
    if body.payment_status != "successful":
        raise ValidationFailed("Payment not completed")

    plan = HOSTING_PLANS[body.plan]
    now = pd.Timestamp(utcnow())
    expiry = (now + plan["offset"]).to_pydatetime()

    payment = Payment(
        type="database",
        amount=plan["amount"],
        payment_method="card",
        status="completed",
        transaction_id=_transaction_id("DB"),
        transaction_reference=body.transaction_reference,
        amount_paid=body.amount_paid,
        payment_date=now.to_pydatetime(),
        payment_description=f"Database hosting - {body.plan} plan",
        plan=body.plan,
        duration=plan["duration"],
        expiry_date=expiry,
    )
    db.add(payment)
    record_activity(db, "payment", "database_hosting", {"plan": body.plan})
    db.commit()
    db.refresh(payment)

    logger.info("Database hosting activated", plan=body.plan, expiry=expiry.isoformat())
    return payment


def database_status(db: Session) -> Dict[str, Any]:
    now = utcnow()
    hostings = (
        db.query(Payment)
        .filter(Payment.type == "database", Payment.status == "completed")
        .order_by(Payment.created_at.desc(), Payment.id.desc())
        .all()
    )
    latest: Optional[Payment] = next(
        (p for p in hostings if p.expiry_date and as_utc(p.expiry_date) > now), None
    )

    if latest is None:
        return {"active": False, "plan": None, "expiryDate": None, "daysRemaining": 0}

    expiry = as_utc(latest.expiry_date)
    return {
        "active": True,
        "plan": latest.plan,
        "duration": latest.duration,
        "expiryDate": expiry.date().isoformat(),
        "daysRemaining": math.ceil((expiry - now).total_seconds() / 86400),
    }


def payment_history(db: Session, page: int = 1, limit: int = 10, payment_type: Optional[str] = None) -> Dict[str, Any]:
    query = db.query(Payment)
    if payment_type:
        query = query.filter(Payment.type == payment_type)

    total = query.count()
    payments = (
        query.order_by(Payment.created_at.desc(), Payment.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return {
        "payments": payments,
        "totalPages": math.ceil(total / limit) if limit else 0,
        "currentPage": page,
        "total": total,
    }
