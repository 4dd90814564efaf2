"""
Activity logging for changes inside a clinic.
"""
import json
import logging
from typing import Any, Optional

from clinic_audit.extensions import db
from clinic_audit.models import AuditLog

logger = logging.getLogger(__name__)


def log_audit(
    clinic_id: Optional[int],
    entity_type: str,
    action: str,
    user_id: Optional[int] = None,
    entity_id: Optional[Any] = None,
    details: Optional[dict] = None,
) -> None:
    """Append an activity log entry. Failures are logged and never raised."""
    try:
        entry = AuditLog(
            clinic_id=clinic_id,
            entity_type=entity_type,
            entity_id=str(entity_id) if entity_id is not None else None,
            action=action,
            user_id=user_id,
            details=json.dumps(details, default=str) if details else None,
        )
        db.session.add(entry)
        db.session.commit()
    except Exception as e:
        logger.warning("Audit log failed: %s", e)
        db.session.rollback()
