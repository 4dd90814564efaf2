"""
Session token codec (JWT via Flask-JWT-Extended)
"""
import logging
from datetime import timedelta

from flask import current_app
from flask_jwt_extended import create_access_token, decode_token
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt.exceptions import PyJWTError

from clinic_audit.errors import AuthenticationError

logger = logging.getLogger(__name__)

INVALID_TOKEN_MESSAGE = 'Invalid or expired token'


def issue_token(user_id, clinic_id, role, expires_delta=None):
    """
    Issue an access token carrying (subject, clinic, role).

    Args:
        user_id: subject id (stored as a string in "sub")
        clinic_id: tenant the subject belongs to
        role: 'admin' or 'member'
        expires_delta: lifetime override (default SESSION_TIMEOUT_HOURS)

    Returns:
        str: encoded token
    """
    if expires_delta is None:
        expires_delta = timedelta(hours=current_app.config['SESSION_TIMEOUT_HOURS'])
    return create_access_token(
        identity=str(user_id),
        additional_claims={
            "clinic_id": clinic_id,
            "role": role,
        },
        expires_delta=expires_delta,
    )


def verify_token(token):
    """
    Decode and validate a token.

    Signature, format and expiry failures all raise the same
    AuthenticationError so callers cannot tell them apart.
    """
    if not token:
        raise AuthenticationError(INVALID_TOKEN_MESSAGE)
    try:
        claims = decode_token(token)
        user_id = int(claims['sub'])
    except (PyJWTError, JWTExtendedException, KeyError, TypeError, ValueError) as e:
        logger.info("Rejected token: %s", type(e).__name__)
        raise AuthenticationError(INVALID_TOKEN_MESSAGE) from e

    return {
        "user_id": user_id,
        "clinic_id": claims.get("clinic_id"),
        "role": claims.get("role"),
    }
