"""
Authentication Service
Signup, login, password reset and invitation redemption. Each successful
sign-in path returns the user together with a fresh session token.
"""
import logging
import secrets
from datetime import timedelta
from typing import Tuple

from flask import current_app

from clinic_audit.errors import (
    AuthenticationError,
    AuthorizationError,
    ClinicAuditError,
    ConflictError,
    ValidationError,
)
from clinic_audit.extensions import bcrypt, db
from clinic_audit.models import Clinic, GlobalGoals, Invitation, PasswordResetToken, User
from clinic_audit.schemas import AcceptInvitationInput, SignupInput
from clinic_audit.services import email_service
from clinic_audit.utils.audit import log_audit
from clinic_audit.utils.clock import utcnow
from clinic_audit.utils.tokens import issue_token as encode_token
from clinic_audit.utils.transaction import transaction

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS_MESSAGE = 'Invalid email or password'
INVALID_RESET_TOKEN_MESSAGE = 'Invalid or expired reset token'
INVALID_INVITATION_MESSAGE = 'Invalid or expired invitation'

_DUMMY_HASH = None


def generate_token() -> str:
    """Random single-use token for reset links and invitations"""
    return secrets.token_hex(32)


def _dummy_hash():
    global _DUMMY_HASH
    if _DUMMY_HASH is None:
        _DUMMY_HASH = bcrypt.generate_password_hash(secrets.token_hex(16)).decode('utf-8')
    return _DUMMY_HASH


def issue_token(user: User) -> str:
    """Session token for a user: subject, clinic and role"""
    return encode_token(user.id, user.clinic_id, user.role)


def signup(data: SignupInput) -> Tuple[User, str]:
    """
    Create a clinic, its first admin and the default goals in one transaction.

    Raises:
        ConflictError: email already registered (in any clinic)
    """
    email = data.email.lower()
    if User.query.filter_by(email=email).first():
        raise ConflictError('Email already registered')

    with transaction('create account', on_integrity_error=ConflictError,
                     integrity_message='Email already registered') as session:
        clinic = Clinic(name=data.clinic_name, location=data.clinic_location or None)
        session.add(clinic)
        session.flush()  # get clinic.id

        user = User(
            email=email,
            first_name=data.first_name,
            last_name=data.last_name,
            role='admin',
            clinic_id=clinic.id,
            is_active=True,
        )
        user.set_password(data.password)
        session.add(user)
        session.add(GlobalGoals(clinic_id=clinic.id))
        session.flush()

    logger.info("New clinic %s created by user %s", clinic.id, user.id)
    log_audit(clinic.id, 'clinic', 'signup', user_id=user.id, entity_id=clinic.id)
    return user, issue_token(user)


def login(email: str, password: str, now=None) -> Tuple[User, str]:
    """
    Check credentials and start a session.

    Raises:
        AuthenticationError: unknown email or wrong password (same message)
        AuthorizationError: correct credentials for a deactivated account
    """
    user = User.query.filter_by(email=(email or '').strip().lower()).first()
    if not user:
        # same bcrypt cost as a real check
        bcrypt.check_password_hash(_dummy_hash(), password or '')
        raise AuthenticationError(INVALID_CREDENTIALS_MESSAGE)
    if not user.check_password(password):
        raise AuthenticationError(INVALID_CREDENTIALS_MESSAGE)

    if not user.is_active:
        raise AuthorizationError('Account is inactive')

    with transaction('record login'):
        user.last_login_at = now or utcnow()

    return user, issue_token(user)


def request_password_reset(email: str, now=None) -> None:
    """
    Start a password reset.

    Returns the same way whether or not the account exists. For a known
    email a single-use token is stored and the reset link mailed; a failed
    send or a failed write is logged, not raised.
    """
    now = now or utcnow()
    user = User.query.filter_by(email=(email or '').strip().lower()).first()
    if not user:
        logger.info("Password reset requested for unknown email")
        return

    expiry_hours = current_app.config['PASSWORD_RESET_EXPIRY_HOURS']
    token = generate_token()
    try:
        with transaction('create password reset token', integrity_message='Could not create reset token'):
            db.session.add(PasswordResetToken(
                user_id=user.id,
                token=token,
                expires_at=now + timedelta(hours=expiry_hours),
            ))
    except ClinicAuditError as e:
        # answer exactly as for an unknown email
        logger.error("Password reset token for user %s not stored: %s", user.id, e.message)
        return

    base_url = current_app.config.get('FRONTEND_BASE_URL', '')
    reset_link = f"{base_url.rstrip('/')}/reset-password?token={token}"
    sent = email_service.send_password_reset_email(
        email=user.email,
        reset_link=reset_link,
        user_name=user.first_name or user.display_name,
        expiry_hours=expiry_hours,
    )
    if not sent:
        logger.warning("Password reset email could not be delivered for user %s", user.id)


def reset_password(token: str, new_password: str, now=None) -> User:
    """
    Set a new password with a reset token and burn the token.

    Raises:
        ValidationError: token unknown, already used or expired
    """
    now = now or utcnow()
    with transaction('reset password'):
        reset = PasswordResetToken.query.filter_by(token=token).with_for_update().first()
        if not reset or not reset.is_usable(now):
            raise ValidationError(INVALID_RESET_TOKEN_MESSAGE)

        user = reset.user
        user.set_password(new_password)
        reset.used = True

    logger.info("Password reset completed for user %s", user.id)
    return user


def accept_invitation(data: AcceptInvitationInput, now=None) -> Tuple[User, str]:
    """
    Redeem an invitation: create the user in the inviting clinic with the
    invited role, and mark the invitation accepted.

    Raises:
        ValidationError: no pending, unexpired invitation for the token, or
            the invited email already has an account
    """
    now = now or utcnow()
    with transaction('accept invitation', integrity_message='Email already registered') as session:
        invitation = Invitation.query.filter_by(token=data.token).with_for_update().first()
        if not invitation or not invitation.is_redeemable(now):
            raise ValidationError(INVALID_INVITATION_MESSAGE)

        if User.query.filter_by(email=invitation.email.lower()).first():
            raise ValidationError('Email already registered')

        user = User(
            email=invitation.email.lower(),
            first_name=data.first_name,
            last_name=data.last_name,
            role=invitation.role,
            clinic_id=invitation.clinic_id,
            is_active=True,
        )
        user.set_password(data.password)
        session.add(user)

        invitation.status = 'accepted'
        invitation.accepted_at = now
        session.flush()

    logger.info("Invitation %s accepted; user %s joined clinic %s", invitation.id, user.id, user.clinic_id)
    log_audit(user.clinic_id, 'invitation', 'accept', user_id=user.id, entity_id=invitation.id)
    return user, issue_token(user)
