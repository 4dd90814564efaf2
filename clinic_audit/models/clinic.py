"""
Clinic Model - each clinic is a separate tenant
"""
from clinic_audit.extensions import db
from .base import TimestampMixin


class Clinic(db.Model, TimestampMixin):
    """Tenant root; every other record hangs off a clinic"""
    __tablename__ = 'clinics'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    location = db.Column(db.String(255))

    # Relationships
    users = db.relationship('User', backref='clinic', lazy='dynamic')
    audits = db.relationship('MonthlyAudit', backref='clinic', lazy='dynamic')
    invitations = db.relationship('Invitation', backref='clinic', lazy='dynamic')
    goals = db.relationship('GlobalGoals', backref='clinic', uselist=False, lazy=True)

    def get_user_count(self):
        return self.users.count()

    def get_audit_count(self):
        return self.audits.count()

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'location': self.location,
            'user_count': self.get_user_count(),
            'audit_count': self.get_audit_count(),
            'created_at': self.created_at.isoformat() if self.created_at else None
        }

    def __repr__(self):
        return f"<Clinic {self.id} {self.name}>"
