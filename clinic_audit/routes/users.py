"""
Team API Routes
Users and invitations of the caller's clinic (admin only)
"""
from flask import Blueprint, request, jsonify

from clinic_audit.schemas import InviteInput, load
from clinic_audit.services import team_service
from clinic_audit.utils.decorators import authenticated

users_bp = Blueprint('users', __name__, url_prefix='/api/users')


@users_bp.route('', methods=['GET'])
@authenticated
def list_users(principal):
    users = team_service.list_users(principal)
    return jsonify({'success': True, 'data': [u.to_dict() for u in users]}), 200


@users_bp.route('/invite', methods=['POST'])
@authenticated
def invite_user(principal):
    """
    Invite user to clinic
    Body: { "email": "...", "role": "admin" | "member" }
    """
    data = load(InviteInput, request.get_json(silent=True))
    invitation = team_service.invite(principal, data.email, data.role)
    return jsonify({
        'success': True,
        'message': 'Invitation sent successfully',
        'data': invitation.to_dict()
    }), 201


@users_bp.route('/invitations', methods=['GET'])
@authenticated
def list_invitations(principal):
    return jsonify({
        'success': True,
        'data': team_service.list_invitations(principal)
    }), 200


@users_bp.route('/invitations/<int:invitation_id>', methods=['DELETE'])
@authenticated
def cancel_invitation(principal, invitation_id):
    team_service.cancel_invitation(principal, invitation_id)
    return jsonify({'success': True, 'message': 'Invitation cancelled'}), 200


@users_bp.route('/<int:user_id>/deactivate', methods=['PUT'])
@authenticated
def deactivate_user(principal, user_id):
    team_service.set_user_active(principal, user_id, False)
    return jsonify({'success': True, 'message': 'User deactivated successfully'}), 200


@users_bp.route('/<int:user_id>/activate', methods=['PUT'])
@authenticated
def activate_user(principal, user_id):
    team_service.set_user_active(principal, user_id, True)
    return jsonify({'success': True, 'message': 'User activated successfully'}), 200
