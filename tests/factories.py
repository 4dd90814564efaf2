"""
Builders for clinics, users and audits, going through the services
wherever a service exists.
"""

import re

from clinic_audit.extensions import db
from clinic_audit.models import User
from clinic_audit.schemas import AuditInput, SignupInput
from clinic_audit.services import auth_service
from clinic_audit.utils.decorators import Principal


def make_signup(email='owner@acme.test', clinic_name='Acme', password='password123', **overrides):
    data = {
        'email': email,
        'password': password,
        'first_name': 'Ada',
        'last_name': 'Owner',
        'clinic_name': clinic_name,
        'clinic_location': 'Springfield',
    }
    data.update(overrides)
    return SignupInput(**data)


def signup(email='owner@acme.test', clinic_name='Acme', **overrides):
    """Create a clinic with its admin; returns (user, token)"""
    return auth_service.signup(make_signup(email=email, clinic_name=clinic_name, **overrides))


def add_member(admin, email='member@acme.test', password='password123', active=True, role='member'):
    user = User(
        clinic_id=admin.clinic_id,
        email=email,
        first_name='Mo',
        last_name='Member',
        role=role,
        is_active=active,
    )
    user.set_password(password)
    db.session.add(user)
    db.session.commit()
    return user


def principal_for(user):
    return Principal.from_user(db.session.get(User, user.id))


def acme_audit(**overrides):
    """The February 2025 Acme month"""
    data = {
        'audit_month': '2025-02',
        'revenue': 85000,
        'operating_expenses': 20000,
        'cogs': 5000,
        'payroll': [{'name': 'Hygienist', 'amount': 8000}],
        'services': [{'name': 'Therapy', 'provider_hours': 160, 'booked_hours': 120, 'revenue': 50000}],
        'website_visits': 1000,
        'website_conversion_rate': 2,
        'new_client_visits': 25,
        'clients_converting_to_treatment': 15,
        'total_clients': 100,
    }
    data.update(overrides)
    return AuditInput(**data)


def auth_header(token):
    return {'Authorization': f'Bearer {token}'}


def token_from_link(text):
    """Pull the ?token= value out of a mailed link"""
    match = re.search(r'token=([0-9a-f]+)', text)
    assert match, text
    return match.group(1)
