"""Dashboard aggregates."""

from datetime import timedelta
from typing import Any, Dict

from sqlalchemy import func
from sqlalchemy.orm import Session

from registry.core.dates import utcnow
from registry.domain.models.certificate import Certificate
from registry.domain.models.user import User
from registry.domain.repositories.certificate_repository import CertificateRepository


def get_dashboard(db: Session, certificate_repo: CertificateRepository) -> Dict[str, Any]:
    total_users = db.query(func.count(User.id)).scalar() or 0
    total_certificates = db.query(func.count(Certificate.id)).scalar() or 0
    status_counts = certificate_repo.count_by_status()

    by_state = (
        db.query(func.coalesce(User.state, "Unknown"), func.count(User.id))
        .group_by(func.coalesce(User.state, "Unknown"))
        .order_by(func.count(User.id).desc())
        .all()
    )
    by_position = (
        db.query(func.coalesce(User.position, "Unspecified"), func.count(User.id))
        .group_by(func.coalesce(User.position, "Unspecified"))
        .order_by(func.count(User.id).desc())
        .all()
    )

    since = utcnow() - timedelta(days=7)
    recent_users = db.query(func.count(User.id)).filter(User.date_added >= since).scalar() or 0
    recent_certificates = (
        db.query(func.count(Certificate.id)).filter(Certificate.issue_date >= since).scalar() or 0
    )

    return {
        "totalUsers": total_users,
        "totalMembers": total_users,
        "totalCertificates": total_certificates,
        "certificateStatus": status_counts,
        "usersByState": [{"state": state, "count": count} for state, count in by_state],
        "usersByPosition": [{"position": position, "count": count} for position, count in by_position],
        "recentActivity": {"users": recent_users, "certificates": recent_certificates},
        "lastUpdated": utcnow().isoformat(),
    }
