from flask import Blueprint, request, jsonify

from clinic_audit.schemas import (
    AcceptInvitationInput,
    ForgotPasswordInput,
    LoginInput,
    ResetPasswordInput,
    SignupInput,
    load,
)
from clinic_audit.services import auth_service
from clinic_audit.utils.decorators import authenticated, get_current_user

auth_bp = Blueprint('auth', __name__, url_prefix='/api/auth')


def _session_response(user, token, message, status=200):
    return jsonify({
        'success': True,
        'message': message,
        'data': {
            'id': user.id,
            'email': user.email,
            'first_name': user.first_name,
            'last_name': user.last_name,
            'role': user.role,
            'clinic_id': user.clinic_id,
            'clinic_name': user.clinic.name if user.clinic else None,
        },
        'access_token': token,
        'token_type': 'bearer',
    }), status


@auth_bp.route('/signup', methods=['POST'])
def signup():
    """Create a new clinic and its admin account"""
    data = load(SignupInput, request.get_json(silent=True))
    user, token = auth_service.signup(data)
    return _session_response(user, token, 'Account created successfully', 201)


@auth_bp.route('/login', methods=['POST'])
def login():
    """Login endpoint - authenticates user and returns a JWT"""
    data = load(LoginInput, request.get_json(silent=True))
    user, token = auth_service.login(data.email, data.password)
    return _session_response(user, token, 'Login successful')


@auth_bp.route('/me', methods=['GET'])
@authenticated
def me(principal):
    """Current user and clinic"""
    user = get_current_user(principal)
    data = user.to_dict()
    data['clinic_name'] = user.clinic.name if user.clinic else None
    return jsonify({'success': True, 'data': data}), 200


@auth_bp.route('/forgot-password', methods=['POST'])
def forgot_password():
    """
    Request password reset.
    Body: { "email": "user@example.com" }
    Always returns success (does not leak whether email exists).
    """
    data = load(ForgotPasswordInput, request.get_json(silent=True))
    auth_service.request_password_reset(data.email)
    return jsonify({
        'success': True,
        'message': 'If that email exists, a password reset link has been sent'
    }), 200


@auth_bp.route('/reset-password', methods=['POST'])
def reset_password():
    """
    Reset password using token.
    Body: { "token": "<token_from_email>", "newPassword": "newpassword123" }
    """
    data = load(ResetPasswordInput, request.get_json(silent=True))
    auth_service.reset_password(data.token, data.new_password)
    return jsonify({
        'success': True,
        'message': 'Password reset successfully'
    }), 200


@auth_bp.route('/accept-invitation', methods=['POST'])
def accept_invitation():
    """
    Accept invitation and create account.
    Body: { "token", "password", "firstName", "lastName" }
    """
    data = load(AcceptInvitationInput, request.get_json(silent=True))
    user, token = auth_service.accept_invitation(data)
    return _session_response(user, token, 'Account created successfully', 201)
