"""
Monthly Audit API Routes
The clinic is always the caller's own; months are addressed as YYYY-MM.
"""
from flask import Blueprint, request, jsonify

from clinic_audit.schemas import AuditInput, load
from clinic_audit.services import audit_service
from clinic_audit.utils.audit import log_audit
from clinic_audit.utils.decorators import authenticated
from clinic_audit.utils.months import format_month

audits_bp = Blueprint('audits', __name__, url_prefix='/api/audits')


@audits_bp.route('', methods=['GET'])
@authenticated
def list_audits(principal):
    """All monthly audits for the caller's clinic, newest first"""
    audits = audit_service.list_audits(principal.clinic_id)
    return jsonify({
        'success': True,
        'data': [audit.to_dict() for audit in audits]
    }), 200


@audits_bp.route('/<month>', methods=['GET'])
@authenticated
def get_audit(principal, month):
    audit = audit_service.get_audit(principal.clinic_id, month)
    return jsonify({'success': True, 'data': audit.to_dict()}), 200


@audits_bp.route('/<month>/score', methods=['GET'])
@authenticated
def get_score(principal, month):
    """Derived metrics, category scores and recommendations for a month"""
    audit, scorecard = audit_service.get_scorecard(principal.clinic_id, month)
    data = scorecard.to_dict()
    data['audit_month'] = format_month(audit.audit_month)
    return jsonify({'success': True, 'data': data}), 200


@audits_bp.route('', methods=['POST'])
@authenticated
def save_audit(principal):
    """
    Create or update monthly audit
    Body: { auditMonth: "YYYY-MM", revenue, ..., payroll: [], expenses: [], services: [] }
    """
    data = load(AuditInput, request.get_json(silent=True))
    audit_id = audit_service.save_audit(principal.clinic_id, principal.user_id, data)
    log_audit(principal.clinic_id, 'monthly_audit', 'save', user_id=principal.user_id,
              entity_id=audit_id, details={'month': format_month(data.audit_month)})
    return jsonify({
        'success': True,
        'message': 'Audit saved successfully',
        'data': {'audit_id': audit_id, 'audit_month': format_month(data.audit_month)}
    }), 200


@audits_bp.route('/<month>', methods=['DELETE'])
@authenticated
def delete_audit(principal, month):
    audit_service.delete_audit(principal.clinic_id, month)
    log_audit(principal.clinic_id, 'monthly_audit', 'delete', user_id=principal.user_id,
              details={'month': month})
    return jsonify({
        'success': True,
        'message': 'Audit deleted successfully'
    }), 200
