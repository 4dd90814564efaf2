from flask import Blueprint, request, jsonify

from clinic_audit.schemas import GoalsInput, load
from clinic_audit.services import goals_service
from clinic_audit.utils.decorators import authenticated

goals_bp = Blueprint('goals', __name__, url_prefix='/api/goals')


@goals_bp.route('', methods=['GET'])
@authenticated
def get_goals(principal):
    goals = goals_service.get_goals(principal.clinic_id)
    return jsonify({'success': True, 'data': goals.to_dict()}), 200


@goals_bp.route('', methods=['PUT'])
@authenticated
def update_goals(principal):
    """
    Update global goals (admin only)
    Body: { revenueGoal, profitMarginGoal, capacityGoal }
    """
    data = load(GoalsInput, request.get_json(silent=True))
    goals = goals_service.update_goals(principal, data)
    return jsonify({
        'success': True,
        'message': 'Goals updated successfully',
        'data': goals.to_dict()
    }), 200
