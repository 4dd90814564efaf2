"""
Clinic Service
The tenant itself: profile, activity log and explicit removal.
"""
import logging
from typing import List

from sqlalchemy import delete, select

from clinic_audit.errors import NotFoundError
from clinic_audit.extensions import db
from clinic_audit.models import (
    AdditionalExpense,
    AuditLog,
    Clinic,
    GlobalGoals,
    Invitation,
    MonthlyAudit,
    PasswordResetToken,
    PayrollItem,
    ServiceRecord,
    User,
)
from clinic_audit.utils.decorators import require_role
from clinic_audit.utils.transaction import transaction

logger = logging.getLogger(__name__)


def get_clinic(principal) -> Clinic:
    clinic = db.session.get(Clinic, principal.clinic_id)
    if not clinic:
        raise NotFoundError('Clinic not found')
    return clinic


def list_activity(principal, limit: int = 50) -> List[AuditLog]:
    """Latest activity log entries of the clinic (admin only)"""
    require_role(principal, 'admin')
    limit = max(1, min(int(limit or 50), 500))
    return AuditLog.query.filter_by(clinic_id=principal.clinic_id).order_by(
        AuditLog.created_at.desc(), AuditLog.id.desc()
    ).limit(limit).all()


def delete_clinic(principal) -> None:
    """
    Remove the principal's clinic and everything that belongs to it.

    Dependents are deleted leaf-first in one transaction so the result does
    not depend on the database enforcing ON DELETE CASCADE.
    """
    require_role(principal, 'admin')
    clinic_id = principal.clinic_id

    with transaction('delete clinic') as session:
        clinic = session.get(Clinic, clinic_id)
        if not clinic:
            raise NotFoundError('Clinic not found')

        audit_ids = select(MonthlyAudit.id).where(MonthlyAudit.clinic_id == clinic_id)
        user_ids = select(User.id).where(User.clinic_id == clinic_id)

        for child in (PayrollItem, AdditionalExpense, ServiceRecord):
            session.execute(delete(child).where(child.monthly_audit_id.in_(audit_ids)))
        session.execute(delete(MonthlyAudit).where(MonthlyAudit.clinic_id == clinic_id))
        session.execute(delete(Invitation).where(Invitation.clinic_id == clinic_id))
        session.execute(delete(PasswordResetToken).where(PasswordResetToken.user_id.in_(user_ids)))
        session.execute(delete(AuditLog).where(AuditLog.clinic_id == clinic_id))
        session.execute(delete(GlobalGoals).where(GlobalGoals.clinic_id == clinic_id))
        session.execute(delete(User).where(User.clinic_id == clinic_id))
        session.execute(delete(Clinic).where(Clinic.id == clinic_id))

    logger.warning("Clinic %s deleted by user %s", clinic_id, principal.user_id)
