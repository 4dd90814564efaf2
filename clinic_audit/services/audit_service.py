"""
Monthly Audit Service
Storage for the audit composite: one MonthlyAudit per clinic and month
with its payroll, expense and service children. Every call is scoped by
the clinic id the caller was authenticated for.
"""
import logging
from typing import List, Tuple

from sqlalchemy import delete, select
from sqlalchemy.orm import selectinload

from clinic_audit.errors import NotFoundError
from clinic_audit.extensions import db
from clinic_audit.models import AdditionalExpense, MonthlyAudit, PayrollItem, ServiceRecord
from clinic_audit.schemas import AuditInput
from clinic_audit.services import goals_service
from clinic_audit.services.scoring import Goals, Scorecard, ScoringInput, score_audit
from clinic_audit.utils.clock import utcnow
from clinic_audit.utils.months import format_month, normalize_month
from clinic_audit.utils.transaction import transaction

logger = logging.getLogger(__name__)

# Columns overwritten when a month is saved again
AUDIT_FIELDS = (
    'clinic_name',
    'revenue',
    'operating_expenses',
    'cogs',
    'marketing_spend',
    'website_visits',
    'website_conversion_rate',
    'new_client_visits',
    'clients_converting_to_treatment',
    'total_clients',
    'total_appointments',
)

CHILD_MODELS = (PayrollItem, AdditionalExpense, ServiceRecord)


def _with_children(query):
    return query.options(
        selectinload(MonthlyAudit.payroll_items),
        selectinload(MonthlyAudit.expenses),
        selectinload(MonthlyAudit.services),
    )


def list_audits(clinic_id: int) -> List[MonthlyAudit]:
    """All audits of a clinic, newest month first, children loaded"""
    query = _with_children(MonthlyAudit.query.filter_by(clinic_id=clinic_id))
    return query.order_by(MonthlyAudit.audit_month.desc()).all()


def get_audit(clinic_id: int, month) -> MonthlyAudit:
    """
    One clinic's audit for a month.

    Raises:
        ValidationError: month is malformed
        NotFoundError: the clinic has no audit for that month
    """
    audit_month = normalize_month(month)
    audit = _with_children(
        MonthlyAudit.query.filter_by(clinic_id=clinic_id, audit_month=audit_month)
    ).first()
    if not audit:
        raise NotFoundError('Audit not found')
    return audit


def _audit_values(clinic_id, creator_id, data, now):
    values = {
        'clinic_id': clinic_id,
        'audit_month': normalize_month(data.audit_month),
        'created_by': creator_id,
        'created_at': now,
        'updated_at': now,
    }
    for name in AUDIT_FIELDS:
        value = getattr(data, name, None)
        if value is None and name != 'clinic_name':
            value = 0
        values[name] = value
    return values


def _upsert_audit(values):
    """
    Insert the month or overwrite it in place, keyed on (clinic_id, audit_month).

    Uses the database's own ON CONFLICT handling where available so two
    concurrent saves of the same month resolve to the last commit.
    """
    dialect = db.session.get_bind().dialect.name
    if dialect in ('postgresql', 'sqlite'):
        if dialect == 'postgresql':
            from sqlalchemy.dialects.postgresql import insert
        else:
            from sqlalchemy.dialects.sqlite import insert
        stmt = insert(MonthlyAudit).values(**values)
        updates = {name: stmt.excluded[name] for name in AUDIT_FIELDS}
        updates['updated_at'] = stmt.excluded.updated_at
        stmt = stmt.on_conflict_do_update(
            index_elements=[MonthlyAudit.clinic_id, MonthlyAudit.audit_month],
            set_=updates,
        ).returning(MonthlyAudit.id)
        return db.session.execute(stmt).scalar_one()

    audit = MonthlyAudit.query.filter_by(
        clinic_id=values['clinic_id'], audit_month=values['audit_month']
    ).with_for_update().first()
    if audit is None:
        audit = MonthlyAudit(**values)
        db.session.add(audit)
    else:
        for name in AUDIT_FIELDS:
            setattr(audit, name, values[name])
        audit.updated_at = values['updated_at']
    db.session.flush()
    return audit.id


def _child_rows(audit_id, data):
    rows = []
    for item in data.payroll or []:
        rows.append(PayrollItem(monthly_audit_id=audit_id, name=item.name, amount=item.amount or 0))
    for item in data.expenses or []:
        rows.append(AdditionalExpense(
            monthly_audit_id=audit_id,
            name=item.name,
            amount=item.amount or 0,
            notes=item.notes or None,
        ))
    for item in data.services or []:
        rows.append(ServiceRecord(
            monthly_audit_id=audit_id,
            name=item.name,
            provider_hours=item.provider_hours or 0,
            booked_hours=item.booked_hours or 0,
            revenue=item.revenue or 0,
            commission=item.commission or 0,
            allocated_expenses=item.allocated_expenses or 0,
        ))
    return rows


def save_audit(clinic_id: int, creator_id: int, data: AuditInput, now=None) -> int:
    """
    Create or fully replace a clinic's audit for ``data.audit_month``.

    The audit row is upserted, all of its children are deleted and the
    supplied children inserted, all in one transaction. If any step fails
    nothing is written and a previously saved month stays as it was.

    Args:
        clinic_id: tenant taken from the authenticated principal
        creator_id: user saving the audit (kept from the first save)
        data: validated AuditInput

    Returns:
        int: audit id

    Raises:
        ValidationError: rejected by database constraints
        TransientStorageError: database failure, safe to retry
    """
    now = now or utcnow()
    values = _audit_values(clinic_id, creator_id, data, now)

    with transaction('save audit') as session:
        audit_id = _upsert_audit(values)
        for model in CHILD_MODELS:
            session.execute(delete(model).where(model.monthly_audit_id == audit_id))
        session.add_all(_child_rows(audit_id, data))
        session.flush()

    logger.info(
        "Saved audit %s for clinic %s month %s (%d payroll, %d expenses, %d services)",
        audit_id, clinic_id, format_month(values['audit_month']),
        len(data.payroll or []), len(data.expenses or []), len(data.services or []),
    )
    return audit_id


def delete_audit(clinic_id: int, month) -> None:
    """
    Delete a clinic's audit for a month along with its children.

    Raises:
        NotFoundError: the clinic has no audit for that month
    """
    audit_month = normalize_month(month)
    with transaction('delete audit') as session:
        audit = session.execute(
            select(MonthlyAudit).filter_by(clinic_id=clinic_id, audit_month=audit_month)
        ).scalar_one_or_none()
        if not audit:
            raise NotFoundError('Audit not found')
        audit_id = audit.id
        session.delete(audit)

    logger.info("Deleted audit %s for clinic %s month %s", audit_id, clinic_id, format_month(audit_month))


def get_scorecard(clinic_id: int, month) -> Tuple[MonthlyAudit, Scorecard]:
    """Score a saved month against the clinic's goals"""
    audit = get_audit(clinic_id, month)
    goals = goals_service.get_goals(clinic_id)
    return audit, score_audit(ScoringInput.from_audit(audit), Goals.from_model(goals))
