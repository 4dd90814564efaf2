from clinic_audit.extensions import db
from clinic_audit.utils.clock import utcnow


class PasswordResetToken(db.Model):
    """Single-use reset token; marked used, never deleted"""
    __tablename__ = 'password_reset_tokens'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    token = db.Column(db.String(255), unique=True, nullable=False, index=True)
    expires_at = db.Column(db.DateTime, nullable=False)
    used = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    user = db.relationship('User', lazy=True)

    def is_usable(self, now=None):
        now = now or utcnow()
        return not self.used and self.expires_at > now
