from clinic_audit.extensions import db
from clinic_audit.utils.clock import utcnow


class TimestampMixin:
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)


def money(value):
    """Decimal -> exact string for API responses (never float)"""
    return str(value) if value is not None else None
