from decimal import Decimal

from clinic_audit.extensions import db
from .base import TimestampMixin, money

DEFAULT_REVENUE_GOAL = Decimal('100000')
DEFAULT_PROFIT_MARGIN_GOAL = Decimal('30')
DEFAULT_CAPACITY_GOAL = Decimal('80')


class GlobalGoals(db.Model, TimestampMixin):
    """Clinic-wide goals used for scoring (one row per clinic)"""
    __tablename__ = 'global_goals'

    id = db.Column(db.Integer, primary_key=True)
    clinic_id = db.Column(db.Integer, db.ForeignKey('clinics.id', ondelete='CASCADE'), nullable=False, unique=True, index=True)
    revenue_goal = db.Column(db.Numeric(12, 2), default=DEFAULT_REVENUE_GOAL)
    profit_margin_goal = db.Column(db.Numeric(5, 2), default=DEFAULT_PROFIT_MARGIN_GOAL)  # percent
    capacity_goal = db.Column(db.Numeric(5, 2), default=DEFAULT_CAPACITY_GOAL)  # percent

    def to_dict(self):
        return {
            'id': self.id,
            'clinic_id': self.clinic_id,
            'revenue_goal': money(self.revenue_goal),
            'profit_margin_goal': money(self.profit_margin_goal),
            'capacity_goal': money(self.capacity_goal),
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }
