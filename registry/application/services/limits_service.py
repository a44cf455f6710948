"""Capacity ceilings for members and certificates.

The ceiling row is created on first use and seeded with the current live
counts, so growth stays frozen until an admin buys more slots. Checks fail
open: a database error during a check allows the operation.
"""

from typing import Optional

import structlog
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from registry.domain.models.certificate import Certificate
from registry.domain.models.system_limits import SystemLimits
from registry.domain.models.user import User
from registry.domain.schemas.payment import LimitCheck

logger = structlog.get_logger(__name__)


def count_live_members(db: Session) -> int:
    return db.query(User).filter(or_(User.is_active.is_(None), User.is_active.is_(True))).count()


def count_live_certificates(db: Session) -> int:
    return db.query(Certificate).filter(Certificate.status != "revoked").count()


def initialize_limits_from_current_data(db: Session) -> SystemLimits:
    limits = db.query(SystemLimits).order_by(SystemLimits.id.asc()).first()
    if limits is None:
        limits = SystemLimits(
            member_limit=count_live_members(db),
            certificate_limit=count_live_certificates(db),
            is_active=True,
        )
        db.add(limits)
        db.commit()
        db.refresh(limits)
        logger.info(
            "System limits initialized from current data",
            member_limit=limits.member_limit,
            certificate_limit=limits.certificate_limit,
        )
    return limits


def _check(db: Session, label: str, limit_attr: str, counter) -> LimitCheck:
    try:
        limits = initialize_limits_from_current_data(db)
        if not limits.is_active:
            return LimitCheck(allowed=True, message="Limits disabled")

        current = counter(db)
        limit = getattr(limits, limit_attr)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Limit check failed, allowing operation", kind=label, error=str(e))
        return LimitCheck(allowed=True, message="Error checking limits, allowing operation")

    if current >= limit:
        return LimitCheck(
            allowed=False,
            message=(
                f"Your {label} capacity is full. Please buy additional slots to continue "
                f"adding new {label}s. Current: {current}, Limit: {limit}."
            ),
            current_count=current,
            limit=limit,
            remaining=0,
        )

    return LimitCheck(
        allowed=True,
        message=f"{label.capitalize()}s: {current}/{limit} ({limit - current} remaining)",
        current_count=current,
        limit=limit,
        remaining=limit - current,
    )


def can_add_member(db: Session) -> LimitCheck:
    return _check(db, "member", "member_limit", count_live_members)


def can_add_certificate(db: Session) -> LimitCheck:
    return _check(db, "certificate", "certificate_limit", count_live_certificates)


def increase_limits(
    db: Session,
    member_limit: Optional[int] = None,
    certificate_limit: Optional[int] = None,
) -> SystemLimits:
    """Overwrite the ceilings that are given."""
    limits = initialize_limits_from_current_data(db)
    if member_limit is not None:
        limits.member_limit = member_limit
    if certificate_limit is not None:
        limits.certificate_limit = certificate_limit
    db.commit()
    db.refresh(limits)

    logger.info(
        "System limits updated",
        member_limit=limits.member_limit,
        certificate_limit=limits.certificate_limit,
    )
    return limits
