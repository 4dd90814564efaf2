"""
Team Service
Invitations and user management inside one clinic. Every operation is
admin-only and scoped to the principal's clinic.
"""
import logging
from datetime import timedelta
from typing import List

from flask import current_app

from clinic_audit.errors import ConflictError, NotFoundError, ValidationError
from clinic_audit.extensions import db
from clinic_audit.models import Clinic, Invitation, User
from clinic_audit.services import email_service
from clinic_audit.services.auth_service import generate_token
from clinic_audit.utils.audit import log_audit
from clinic_audit.utils.clock import utcnow
from clinic_audit.utils.decorators import require_role
from clinic_audit.utils.transaction import transaction

logger = logging.getLogger(__name__)


def list_users(principal) -> List[User]:
    """Users of the principal's clinic, newest first"""
    require_role(principal, 'admin')
    return User.query.filter_by(clinic_id=principal.clinic_id).order_by(User.created_at.desc(), User.id.desc()).all()


def invite(principal, email: str, role: str, now=None) -> Invitation:
    """
    Invite someone to the principal's clinic and mail them the link.

    Raises:
        AuthorizationError: principal is not an admin
        ConflictError: the email already belongs to a clinic user, or has an
            open invitation to this clinic
    """
    require_role(principal, 'admin')
    now = now or utcnow()
    email = email.strip().lower()

    if User.query.filter_by(email=email, clinic_id=principal.clinic_id).first():
        raise ConflictError('User already exists in this clinic')

    pending = Invitation.query.filter(
        Invitation.email == email,
        Invitation.clinic_id == principal.clinic_id,
        Invitation.status == 'pending',
        Invitation.expires_at > now,
    ).first()
    if pending:
        raise ConflictError('Invitation already sent to this email')

    expiry_hours = current_app.config['INVITATION_EXPIRY_HOURS']
    with transaction('create invitation', on_integrity_error=ConflictError,
                     integrity_message='Invitation already exists'):
        invitation = Invitation(
            email=email,
            clinic_id=principal.clinic_id,
            invited_by=principal.user_id,
            role=role,
            token=generate_token(),
            status='pending',
            expires_at=now + timedelta(hours=expiry_hours),
            created_at=now,
        )
        db.session.add(invitation)

    clinic = db.session.get(Clinic, principal.clinic_id)
    base_url = current_app.config.get('FRONTEND_BASE_URL', '')
    sent = email_service.send_invitation_email(
        email=email,
        invite_link=f"{base_url.rstrip('/')}/accept-invitation?token={invitation.token}",
        inviter_name=principal.name or principal.email,
        clinic_name=clinic.name if clinic else '',
        role=role,
        expiry_hours=expiry_hours,
    )
    if not sent:
        logger.warning("Invitation %s created but the email could not be delivered", invitation.id)

    log_audit(principal.clinic_id, 'invitation', 'create', user_id=principal.user_id,
              entity_id=invitation.id, details={'email': email, 'role': role})
    return invitation


def list_invitations(principal, now=None) -> List[dict]:
    """All invitations of the clinic, newest first, with the inviter's name"""
    require_role(principal, 'admin')
    now = now or utcnow()
    invitations = Invitation.query.filter_by(clinic_id=principal.clinic_id).order_by(
        Invitation.created_at.desc(), Invitation.id.desc()
    ).all()
    return [invitation.to_dict(now) for invitation in invitations]


def cancel_invitation(principal, invitation_id: int) -> None:
    """
    Delete a pending invitation of the principal's clinic.

    Raises:
        NotFoundError: no such invitation in this clinic
        ValidationError: the invitation was already accepted
    """
    require_role(principal, 'admin')
    with transaction('cancel invitation'):
        invitation = Invitation.query.filter_by(id=invitation_id, clinic_id=principal.clinic_id).first()
        if not invitation:
            raise NotFoundError('Invitation not found')
        if invitation.status == 'accepted':
            raise ValidationError('Invitation was already accepted')
        db.session.delete(invitation)

    log_audit(principal.clinic_id, 'invitation', 'cancel', user_id=principal.user_id, entity_id=invitation_id)


def set_user_active(principal, user_id: int, active: bool) -> User:
    """
    Activate or deactivate a user of the principal's clinic.

    Raises:
        ValidationError: an admin trying to deactivate themselves
        NotFoundError: no such user in this clinic
    """
    require_role(principal, 'admin')
    if user_id == principal.user_id and not active:
        raise ValidationError('Cannot deactivate your own account')

    with transaction('update user status'):
        user = User.query.filter_by(id=user_id, clinic_id=principal.clinic_id).first()
        if not user:
            raise NotFoundError('User not found')
        user.is_active = bool(active)

    log_audit(principal.clinic_id, 'user', 'activate' if active else 'deactivate',
              user_id=principal.user_id, entity_id=user_id)
    return user
