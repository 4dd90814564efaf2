"""
Tenant access guard.

Resolves a bearer token to a Principal and checks role and clinic scope.
The principal is handed to views and services explicitly; nothing here
reads it back from ``g`` or any other request-global.
"""
from dataclasses import dataclass
from functools import wraps
from typing import Optional

from flask import request

from clinic_audit.errors import AuthenticationError, AuthorizationError
from clinic_audit.extensions import db
from clinic_audit.models import User
from clinic_audit.utils.tokens import INVALID_TOKEN_MESSAGE, verify_token

CLINIC_SCOPE_KEYS = ('clinic_id', 'clinicId')


@dataclass(frozen=True)
class Principal:
    user_id: int
    clinic_id: int
    role: str
    active: bool
    email: Optional[str] = None
    name: Optional[str] = None

    @property
    def is_admin(self):
        return self.role == 'admin'

    @classmethod
    def from_user(cls, user):
        return cls(
            user_id=user.id,
            clinic_id=user.clinic_id,
            role=user.role,
            active=user.is_active,
            email=user.email,
            name=user.display_name,
        )


def resolve_principal(token):
    """
    Bearer token -> Principal.

    Raises:
        AuthenticationError: token missing, malformed, tampered, expired,
            or its subject no longer exists
        AuthorizationError: the account is deactivated
    """
    claims = verify_token(token)
    user = db.session.get(User, claims['user_id'])
    if not user:
        raise AuthenticationError(INVALID_TOKEN_MESSAGE)
    if not user.is_active:
        raise AuthorizationError('Account is inactive')
    return Principal.from_user(user)


def require_role(principal, *roles):
    """Raise AuthorizationError unless the principal holds one of ``roles``"""
    if principal.role not in roles:
        raise AuthorizationError(f'Permission denied. Required roles: {", ".join(roles)}')


def verify_clinic_access(resource, principal):
    """
    Compare a clinic reference against the principal's clinic.

    Args:
        resource: a model with ``clinic_id`` or a raw clinic id
        principal: the authenticated Principal
    """
    clinic_id = getattr(resource, 'clinic_id', resource)
    try:
        matches = clinic_id is not None and int(clinic_id) == principal.clinic_id
    except (TypeError, ValueError):
        matches = False
    if not matches:
        raise AuthorizationError('Access denied to this clinic data')


def get_bearer_token():
    header = request.headers.get('Authorization', '')
    if not header.startswith('Bearer '):
        return None
    return header[len('Bearer '):].strip() or None


def _requested_clinic_ids():
    """Clinic ids a client put in the URL, query string or JSON body"""
    found = []
    sources = [request.view_args or {}, request.args]
    body = request.get_json(silent=True)
    if isinstance(body, dict):
        sources.append(body)
    for source in sources:
        for key in CLINIC_SCOPE_KEYS:
            if source.get(key) is not None:
                found.append(source.get(key))
    return found


def authenticated(f):
    """
    Resolve the caller and pass the Principal as the view's first argument.
    Any client-supplied clinic id must match the caller's clinic.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        principal = resolve_principal(get_bearer_token())
        for clinic_id in _requested_clinic_ids():
            verify_clinic_access(clinic_id, principal)
        return f(principal, *args, **kwargs)
    return decorated_function


def get_current_user(principal):
    """The User row behind a principal"""
    user = db.session.get(User, principal.user_id)
    if not user:
        raise AuthenticationError(INVALID_TOKEN_MESSAGE)
    return user
