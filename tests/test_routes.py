"""
HTTP tests: status codes, JSON envelopes and clinic scoping through the
blueprints.
"""

import pytest
from sqlalchemy.exc import OperationalError

from clinic_audit.extensions import db
from clinic_audit.models import Clinic, MonthlyAudit, User
from clinic_audit.utils.tokens import issue_token
from tests.factories import add_member, auth_header, signup, token_from_link

ACME_BODY = {
    'auditMonth': '2025-02',
    'revenue': 85000,
    'operatingExpenses': 20000,
    'cogs': 5000,
    'payroll': [{'name': 'Hygienist', 'amount': 8000}],
    'services': [{'name': 'Therapy', 'providerHours': 160, 'bookedHours': 120, 'revenue': 50000}],
    'websiteVisits': 1000,
    'websiteConversionRate': 2,
    'newClientVisits': 25,
    'clientsConvertingToTreatment': 15,
    'totalClients': 100,
}


class TestHealth:
    def test_ping(self, client):
        resp = client.get('/health/ping')
        assert resp.status_code == 200
        assert resp.get_json()['status'] == 'healthy'

    def test_ready(self, client):
        resp = client.get('/health/ready')
        assert resp.status_code == 200
        assert resp.get_json()['database'] == 'connected'

    def test_unknown_endpoint(self, client):
        resp = client.get('/api/nope')
        assert resp.status_code == 404
        assert resp.get_json() == {'success': False, 'error': 'Endpoint not found'}


class TestAuthRoutes:
    def test_signup_then_me(self, client):
        resp = client.post('/api/auth/signup', json={
            'email': 'owner@acme.test',
            'password': 'password123',
            'firstName': 'Ada',
            'lastName': 'Owner',
            'clinicName': 'Acme',
        })
        assert resp.status_code == 201
        body = resp.get_json()
        assert body['success'] is True
        assert body['data']['role'] == 'admin'

        me = client.get('/api/auth/me', headers=auth_header(body['access_token']))
        assert me.status_code == 200
        assert me.get_json()['data']['clinic_name'] == 'Acme'

    def test_signup_validation(self, client):
        resp = client.post('/api/auth/signup', json={'email': 'not-an-email', 'password': 'x'})
        assert resp.status_code == 400
        assert resp.get_json()['success'] is False

    def test_signup_duplicate(self, client, acme):
        resp = client.post('/api/auth/signup', json={
            'email': 'owner@acme.test', 'password': 'password123',
            'firstName': 'A', 'lastName': 'B', 'clinicName': 'Again',
        })
        assert resp.status_code == 409

    def test_login(self, client, acme):
        resp = client.post('/api/auth/login', json={'email': 'owner@acme.test', 'password': 'password123'})
        assert resp.status_code == 200
        assert resp.get_json()['access_token']

        bad = client.post('/api/auth/login', json={'email': 'owner@acme.test', 'password': 'nope'})
        assert bad.status_code == 401
        assert bad.get_json()['error'] == 'Invalid email or password'

    def test_non_json_body(self, client):
        resp = client.post('/api/auth/login', data='email=x', content_type='text/plain')
        assert resp.status_code == 400
        assert resp.get_json()['error'] == 'Request body must be JSON'

    def test_forgot_password_same_answer_for_unknown(self, client, acme):
        known = client.post('/api/auth/forgot-password', json={'email': 'owner@acme.test'})
        unknown = client.post('/api/auth/forgot-password', json={'email': 'ghost@acme.test'})
        assert known.status_code == unknown.status_code == 200
        assert known.get_json() == unknown.get_json()

    @pytest.mark.parametrize("headers", [{}, {'Authorization': 'Token abc'}, {'Authorization': 'Bearer abc'}])
    def test_me_rejects_bad_credentials(self, client, headers):
        resp = client.get('/api/auth/me', headers=headers)
        assert resp.status_code == 401

    def test_inactive_user_token_is_forbidden(self, client, acme):
        admin, _ = acme
        member = add_member(admin, active=False)
        token = issue_token(member.id, member.clinic_id, member.role)
        resp = client.get('/api/audits', headers=auth_header(token))
        assert resp.status_code == 403


class TestAuditRoutes:
    def test_save_get_score_delete(self, client, acme):
        _, token = acme
        headers = auth_header(token)

        saved = client.post('/api/audits', json=ACME_BODY, headers=headers)
        assert saved.status_code == 200
        assert saved.get_json()['data']['audit_month'] == '2025-02'

        got = client.get('/api/audits/2025-02', headers=headers)
        assert got.status_code == 200
        data = got.get_json()['data']
        assert data['payroll'][0]['name'] == 'Hygienist'
        assert float(data['revenue']) == 85000

        score = client.get('/api/audits/2025-02/score', headers=headers)
        assert score.status_code == 200
        scores = score.get_json()['data']['scores']
        assert scores['financial'] == pytest.approx(23.125)
        assert score.get_json()['data']['recommendations'][0]['title'] == 'Revenue Below Goal'

        deleted = client.delete('/api/audits/2025-02', headers=headers)
        assert deleted.status_code == 200
        assert client.get('/api/audits/2025-02', headers=headers).status_code == 404

    def test_resave_overwrites(self, client, acme):
        _, token = acme
        headers = auth_header(token)
        client.post('/api/audits', json=ACME_BODY, headers=headers)
        client.post('/api/audits', json=dict(ACME_BODY, revenue=90000), headers=headers)

        listed = client.get('/api/audits', headers=headers).get_json()['data']
        assert len(listed) == 1
        assert float(listed[0]['revenue']) == 90000

    def test_storage_failure_is_503(self, client, acme, monkeypatch):
        _, token = acme

        def broken_flush(*args, **kwargs):
            raise OperationalError('FLUSH', {}, Exception('database is locked'))

        monkeypatch.setattr(db.session, 'flush', broken_flush)
        resp = client.post('/api/audits', json=ACME_BODY, headers=auth_header(token))
        monkeypatch.undo()

        assert resp.status_code == 503
        assert resp.get_json() == {'success': False, 'error': 'Failed to save audit. Please retry.'}
        assert MonthlyAudit.query.count() == 0

    def test_bad_month(self, client, acme):
        _, token = acme
        resp = client.get('/api/audits/Feb-2025', headers=auth_header(token))
        assert resp.status_code == 400
        assert resp.get_json()['error'] == 'Invalid month format. Use YYYY-MM'

    def test_negative_count_rejected(self, client, acme):
        _, token = acme
        resp = client.post('/api/audits', json=dict(ACME_BODY, totalClients=-1), headers=auth_header(token))
        assert resp.status_code == 400
        assert MonthlyAudit.query.count() == 0

    def test_foreign_clinic_id_in_body_is_forbidden(self, client, acme):
        _, token = acme
        other, _ = signup(email='owner@bravo.test', clinic_name='Bravo')
        resp = client.post('/api/audits', json=dict(ACME_BODY, clinicId=other.clinic_id),
                           headers=auth_header(token))
        assert resp.status_code == 403
        assert resp.get_json()['error'] == 'Access denied to this clinic data'
        assert MonthlyAudit.query.count() == 0

    def test_foreign_clinic_id_in_query_is_forbidden(self, client, acme):
        _, token = acme
        other, _ = signup(email='owner@bravo.test', clinic_name='Bravo')
        resp = client.get(f'/api/audits?clinic_id={other.clinic_id}', headers=auth_header(token))
        assert resp.status_code == 403

    def test_own_clinic_id_is_allowed(self, client, acme):
        admin, token = acme
        resp = client.get(f'/api/audits?clinic_id={admin.clinic_id}', headers=auth_header(token))
        assert resp.status_code == 200

    def test_other_clinic_cannot_see_month(self, client, acme):
        _, token_a = acme
        _, token_b = signup(email='owner@bravo.test', clinic_name='Bravo')
        client.post('/api/audits', json=ACME_BODY, headers=auth_header(token_a))

        assert client.get('/api/audits', headers=auth_header(token_b)).get_json()['data'] == []
        assert client.get('/api/audits/2025-02', headers=auth_header(token_b)).status_code == 404
        assert client.delete('/api/audits/2025-02', headers=auth_header(token_b)).status_code == 404


class TestGoalsRoutes:
    def test_defaults_and_update(self, client, acme):
        _, token = acme
        headers = auth_header(token)
        got = client.get('/api/goals', headers=headers).get_json()['data']
        assert float(got['revenue_goal']) == 100000

        resp = client.put('/api/goals', json={'revenueGoal': 120000, 'profitMarginGoal': 25, 'capacityGoal': 85},
                          headers=headers)
        assert resp.status_code == 200
        assert float(resp.get_json()['data']['capacity_goal']) == 85

    def test_member_cannot_update(self, client, acme):
        admin, _ = acme
        add_member(admin)
        token = client.post('/api/auth/login', json={
            'email': 'member@acme.test', 'password': 'password123'
        }).get_json()['access_token']

        assert client.get('/api/goals', headers=auth_header(token)).status_code == 200
        resp = client.put('/api/goals', json={'revenueGoal': 1, 'profitMarginGoal': 1, 'capacityGoal': 1},
                          headers=auth_header(token))
        assert resp.status_code == 403

    def test_negative_goal_rejected(self, client, acme):
        _, token = acme
        resp = client.put('/api/goals', json={'revenueGoal': -1, 'profitMarginGoal': 1, 'capacityGoal': 1},
                          headers=auth_header(token))
        assert resp.status_code == 400


class TestTeamRoutes:
    def test_invite_accept_and_deactivate(self, client, acme, sent_emails):
        admin, token = acme
        headers = auth_header(token)

        invited = client.post('/api/users/invite', json={'email': 'new@acme.test', 'role': 'member'}, headers=headers)
        assert invited.status_code == 201
        assert client.post('/api/users/invite', json={'email': 'new@acme.test', 'role': 'member'},
                           headers=headers).status_code == 409

        invitations = client.get('/api/users/invitations', headers=headers).get_json()['data']
        assert invitations[0]['status'] == 'pending'

        accepted = client.post('/api/auth/accept-invitation', json={
            'token': token_from_link(sent_emails[0]['text']),
            'password': 'password123',
            'firstName': 'Nia',
            'lastName': 'New',
        })
        assert accepted.status_code == 201
        new_id = accepted.get_json()['data']['id']

        assert client.put(f'/api/users/{new_id}/deactivate', headers=headers).status_code == 200
        login = client.post('/api/auth/login', json={'email': 'new@acme.test', 'password': 'password123'})
        assert login.status_code == 403

        assert client.put(f'/api/users/{new_id}/activate', headers=headers).status_code == 200

    def test_self_deactivation(self, client, acme):
        admin, token = acme
        resp = client.put(f'/api/users/{admin.id}/deactivate', headers=auth_header(token))
        assert resp.status_code == 400

    def test_cancel_unknown_invitation(self, client, acme):
        _, token = acme
        resp = client.delete('/api/users/invitations/999', headers=auth_header(token))
        assert resp.status_code == 404


class TestClinicRoutes:
    def test_get_and_activity(self, client, acme):
        _, token = acme
        headers = auth_header(token)
        clinic = client.get('/api/clinic', headers=headers).get_json()['data']
        assert clinic['name'] == 'Acme'
        assert clinic['user_count'] == 1

        client.post('/api/audits', json=ACME_BODY, headers=headers)
        activity = client.get('/api/clinic/activity', headers=headers).get_json()['data']
        assert activity[0]['entity_type'] == 'monthly_audit'

    def test_delete_clinic_removes_everything(self, client, acme):
        admin, token = acme
        clinic_id = admin.clinic_id
        signup(email='owner@bravo.test', clinic_name='Bravo')
        headers = auth_header(token)
        client.post('/api/audits', json=ACME_BODY, headers=headers)

        resp = client.delete('/api/clinic', headers=headers)
        assert resp.status_code == 200
        assert Clinic.query.count() == 1
        assert User.query.filter_by(clinic_id=clinic_id).count() == 0
        assert MonthlyAudit.query.count() == 0
        assert client.get('/api/audits', headers=headers).status_code == 401

    def test_member_cannot_delete_clinic(self, client, acme):
        admin, _ = acme
        member = add_member(admin)
        token = issue_token(member.id, member.clinic_id, member.role)
        assert client.delete('/api/clinic', headers=auth_header(token)).status_code == 403
