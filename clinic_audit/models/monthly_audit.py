"""
Monthly Audit Model
One row per clinic per calendar month, owning its payroll, expense and
service children. Children are always replaced wholesale on save.
"""
from clinic_audit.extensions import db
from clinic_audit.utils.months import format_month
from .base import TimestampMixin, money


class MonthlyAudit(db.Model, TimestampMixin):
    __tablename__ = 'monthly_audits'

    id = db.Column(db.Integer, primary_key=True)
    clinic_id = db.Column(db.Integer, db.ForeignKey('clinics.id', ondelete='CASCADE'), nullable=False, index=True)
    audit_month = db.Column(db.Date, nullable=False, index=True)  # always YYYY-MM-01
    clinic_name = db.Column(db.String(255))

    # Financial inputs
    revenue = db.Column(db.Numeric(12, 2), default=0, nullable=False)
    operating_expenses = db.Column(db.Numeric(12, 2), default=0, nullable=False)
    cogs = db.Column(db.Numeric(12, 2), default=0, nullable=False)
    marketing_spend = db.Column(db.Numeric(12, 2), default=0, nullable=False)

    # Funnel inputs
    website_visits = db.Column(db.Integer, default=0, nullable=False)
    website_conversion_rate = db.Column(db.Numeric(5, 2), default=0, nullable=False)  # entered as percent
    new_client_visits = db.Column(db.Integer, default=0, nullable=False)
    clients_converting_to_treatment = db.Column(db.Integer, default=0, nullable=False)
    total_clients = db.Column(db.Integer, default=0, nullable=False)
    total_appointments = db.Column(db.Integer, default=0, nullable=False)

    created_by = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='SET NULL'), nullable=True, index=True)

    # Relationships
    creator = db.relationship('User', foreign_keys=[created_by], lazy=True)
    payroll_items = db.relationship('PayrollItem', backref='audit', cascade='all, delete-orphan',
                                    passive_deletes=True, order_by='PayrollItem.id', lazy=True)
    expenses = db.relationship('AdditionalExpense', backref='audit', cascade='all, delete-orphan',
                               passive_deletes=True, order_by='AdditionalExpense.id', lazy=True)
    services = db.relationship('ServiceRecord', backref='audit', cascade='all, delete-orphan',
                               passive_deletes=True, order_by='ServiceRecord.id', lazy=True)

    __table_args__ = (
        db.UniqueConstraint('clinic_id', 'audit_month', name='uq_monthly_audits_clinic_month'),
    )

    def __repr__(self):
        return f"<MonthlyAudit {self.id} clinic={self.clinic_id} month={format_month(self.audit_month)}>"

    def to_dict(self):
        """Convert to dictionary for API responses"""
        return {
            'id': self.id,
            'clinic_id': self.clinic_id,
            'audit_month': format_month(self.audit_month),
            'clinic_name': self.clinic_name,
            'revenue': money(self.revenue),
            'operating_expenses': money(self.operating_expenses),
            'cogs': money(self.cogs),
            'marketing_spend': money(self.marketing_spend),
            'website_visits': self.website_visits,
            'website_conversion_rate': money(self.website_conversion_rate),
            'new_client_visits': self.new_client_visits,
            'clients_converting_to_treatment': self.clients_converting_to_treatment,
            'total_clients': self.total_clients,
            'total_appointments': self.total_appointments,
            'created_by': self.created_by,
            'payroll': [item.to_dict() for item in self.payroll_items],
            'expenses': [item.to_dict() for item in self.expenses],
            'services': [item.to_dict() for item in self.services],
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None
        }


class PayrollItem(db.Model, TimestampMixin):
    __tablename__ = 'payroll_items'

    id = db.Column(db.Integer, primary_key=True)
    monthly_audit_id = db.Column(db.Integer, db.ForeignKey('monthly_audits.id', ondelete='CASCADE'), nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    amount = db.Column(db.Numeric(12, 2), default=0, nullable=False)

    def to_dict(self):
        return {'id': self.id, 'name': self.name, 'amount': money(self.amount)}


class AdditionalExpense(db.Model, TimestampMixin):
    __tablename__ = 'additional_expenses'

    id = db.Column(db.Integer, primary_key=True)
    monthly_audit_id = db.Column(db.Integer, db.ForeignKey('monthly_audits.id', ondelete='CASCADE'), nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    amount = db.Column(db.Numeric(12, 2), default=0, nullable=False)
    notes = db.Column(db.Text)

    def to_dict(self):
        return {'id': self.id, 'name': self.name, 'amount': money(self.amount), 'notes': self.notes}


class ServiceRecord(db.Model, TimestampMixin):
    """Per-service hours and revenue for the month"""
    __tablename__ = 'services'

    id = db.Column(db.Integer, primary_key=True)
    monthly_audit_id = db.Column(db.Integer, db.ForeignKey('monthly_audits.id', ondelete='CASCADE'), nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    provider_hours = db.Column(db.Numeric(10, 2), default=0, nullable=False)
    booked_hours = db.Column(db.Numeric(10, 2), default=0, nullable=False)
    revenue = db.Column(db.Numeric(12, 2), default=0, nullable=False)
    commission = db.Column(db.Numeric(12, 2), default=0, nullable=False)
    allocated_expenses = db.Column(db.Numeric(12, 2), default=0, nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'provider_hours': money(self.provider_hours),
            'booked_hours': money(self.booked_hours),
            'revenue': money(self.revenue),
            'commission': money(self.commission),
            'allocated_expenses': money(self.allocated_expenses),
        }
