"""
Goals Service
Clinic-wide scoring goals; the row is created with defaults on first read.
"""
import logging

from clinic_audit.errors import ConflictError
from clinic_audit.extensions import db
from clinic_audit.models import GlobalGoals
from clinic_audit.schemas import GoalsInput
from clinic_audit.utils.audit import log_audit
from clinic_audit.utils.decorators import require_role
from clinic_audit.utils.transaction import transaction

logger = logging.getLogger(__name__)


def _find_goals(clinic_id):
    return GlobalGoals.query.filter_by(clinic_id=clinic_id).first()


def get_goals(clinic_id: int) -> GlobalGoals:
    """Return the clinic's goals, creating the default row if missing"""
    goals = _find_goals(clinic_id)
    if goals:
        return goals

    try:
        with transaction('create default goals', on_integrity_error=ConflictError,
                         integrity_message='Goals already exist'):
            goals = GlobalGoals(clinic_id=clinic_id)
            db.session.add(goals)
    except ConflictError:
        # a concurrent first read created the row
        logger.info("Default goals for clinic %s already created", clinic_id)
        return GlobalGoals.query.filter_by(clinic_id=clinic_id).one()

    logger.info("Created default goals for clinic %s", clinic_id)
    return goals


def update_goals(principal, data: GoalsInput) -> GlobalGoals:
    """Overwrite the clinic goals (admin only)"""
    require_role(principal, 'admin')
    goals = get_goals(principal.clinic_id)

    with transaction('update goals'):
        goals.revenue_goal = data.revenue_goal
        goals.profit_margin_goal = data.profit_margin_goal
        goals.capacity_goal = data.capacity_goal

    log_audit(
        principal.clinic_id, 'goals', 'update',
        user_id=principal.user_id, entity_id=goals.id,
        details=data.model_dump(mode='json'),
    )
    return goals
