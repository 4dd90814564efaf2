"""
Invitation Model
pending -> accepted once on redemption; expiry is only ever checked lazily
"""
from clinic_audit.extensions import db
from clinic_audit.utils.clock import utcnow
from .user import ROLES

STATUSES = ('pending', 'accepted', 'expired')


class Invitation(db.Model):
    __tablename__ = 'invitations'

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), nullable=False, index=True)
    clinic_id = db.Column(db.Integer, db.ForeignKey('clinics.id', ondelete='CASCADE'), nullable=False, index=True)
    invited_by = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    role = db.Column(db.String(20), nullable=False)
    token = db.Column(db.String(255), unique=True, nullable=False, index=True)
    status = db.Column(db.String(20), default='pending', nullable=False)
    expires_at = db.Column(db.DateTime, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    accepted_at = db.Column(db.DateTime, nullable=True)

    inviter = db.relationship('User', foreign_keys=[invited_by], lazy=True)

    __table_args__ = (
        db.CheckConstraint(f"role IN {ROLES}", name='ck_invitations_role'),
        db.CheckConstraint(f"status IN {STATUSES}", name='ck_invitations_status'),
    )

    def is_redeemable(self, now=None):
        now = now or utcnow()
        return self.status == 'pending' and self.expires_at > now

    def effective_status(self, now=None):
        """Status as a reader should see it; a lapsed pending invitation reads as expired"""
        if self.status == 'pending' and not self.is_redeemable(now):
            return 'expired'
        return self.status

    def to_dict(self, now=None):
        return {
            'id': self.id,
            'email': self.email,
            'role': self.role,
            'status': self.effective_status(now),
            'invited_by': self.inviter.display_name if self.inviter else None,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'expires_at': self.expires_at.isoformat() if self.expires_at else None,
            'accepted_at': self.accepted_at.isoformat() if self.accepted_at else None,
        }

    def __repr__(self):
        return f"<Invitation {self.email} clinic={self.clinic_id} {self.status}>"
