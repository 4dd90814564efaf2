from flask import Blueprint, request, jsonify

from clinic_audit.services import clinic_service
from clinic_audit.utils.decorators import authenticated

clinic_bp = Blueprint('clinic', __name__, url_prefix='/api/clinic')


@clinic_bp.route('', methods=['GET'])
@authenticated
def get_clinic(principal):
    clinic = clinic_service.get_clinic(principal)
    return jsonify({'success': True, 'data': clinic.to_dict()}), 200


@clinic_bp.route('', methods=['DELETE'])
@authenticated
def delete_clinic(principal):
    """Remove the clinic and all of its data (admin only)"""
    clinic_service.delete_clinic(principal)
    return jsonify({'success': True, 'message': 'Clinic deleted'}), 200


@clinic_bp.route('/activity', methods=['GET'])
@authenticated
def list_activity(principal):
    limit = request.args.get('limit', 50, type=int)
    entries = clinic_service.list_activity(principal, limit=limit)
    return jsonify({'success': True, 'data': [e.to_dict() for e in entries]}), 200
