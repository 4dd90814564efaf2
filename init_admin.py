#!/usr/bin/env python3
"""
Create a demo clinic with an admin, a member and one saved month.
Run with: python3 init_admin.py
"""
from datetime import date
from decimal import Decimal

from clinic_audit import create_app
from clinic_audit.extensions import db
from clinic_audit.models import User
from clinic_audit.schemas import AuditInput, SignupInput
from clinic_audit.services import audit_service, auth_service
from clinic_audit.utils.transaction import transaction

DEMO_ADMIN = {
    'email': 'admin@democlinic.com',
    'password': 'demo12345',
    'first_name': 'Demo',
    'last_name': 'Admin',
    'clinic_name': 'Demo Wellness Clinic',
    'clinic_location': 'Austin, TX',
}

DEMO_MEMBER = {
    'email': 'member@democlinic.com',
    'password': 'member12345',
    'first_name': 'Demo',
    'last_name': 'Member',
}

DEMO_AUDIT = {
    'audit_month': date.today().replace(day=1),
    'clinic_name': DEMO_ADMIN['clinic_name'],
    'revenue': Decimal('85000'),
    'operating_expenses': Decimal('30000'),
    'cogs': Decimal('3000'),
    'marketing_spend': Decimal('4000'),
    'website_visits': 1500,
    'website_conversion_rate': Decimal('2.5'),
    'new_client_visits': 28,
    'clients_converting_to_treatment': 16,
    'total_clients': 240,
    'total_appointments': 610,
    'payroll': [{'name': 'Front desk', 'amount': '6000'}, {'name': 'Associate', 'amount': '9000'}],
    'expenses': [{'name': 'Software', 'amount': '450', 'notes': 'Scheduling and EHR'}],
    'services': [{
        'name': 'Physical therapy',
        'provider_hours': '160',
        'booked_hours': '120',
        'revenue': '48000',
        'commission': '6000',
        'allocated_expenses': '9000',
    }],
}


def create_demo():
    """Create the demo clinic unless its admin already exists"""
    app = create_app()

    with app.app_context():
        print("=" * 60)
        print("Initializing Demo Clinic")
        print("=" * 60)
        print()

        db.create_all()

        if User.query.filter_by(email=DEMO_ADMIN['email']).first():
            print(f"  - '{DEMO_ADMIN['email']}' already exists (skipping)")
            return

        admin, _ = auth_service.signup(SignupInput(**DEMO_ADMIN))
        print(f"  ✓ Clinic: {DEMO_ADMIN['clinic_name']} (id {admin.clinic_id})")
        print(f"  ✓ Admin:  {DEMO_ADMIN['email']} - Password: {DEMO_ADMIN['password']}")

        with transaction('create demo member') as session:
            member = User(
                clinic_id=admin.clinic_id,
                email=DEMO_MEMBER['email'],
                first_name=DEMO_MEMBER['first_name'],
                last_name=DEMO_MEMBER['last_name'],
                role='member',
            )
            member.set_password(DEMO_MEMBER['password'])
            session.add(member)
        print(f"  ✓ Member: {DEMO_MEMBER['email']} - Password: {DEMO_MEMBER['password']}")

        audit_service.save_audit(admin.clinic_id, admin.id, AuditInput(**DEMO_AUDIT))
        print(f"  ✓ Audit:  {DEMO_AUDIT['audit_month']:%Y-%m}")

        print()
        print("=" * 60)
        print("✅ Demo clinic ready")
        print("=" * 60)
        print("\n⚠️  IMPORTANT: Change passwords after first login!")


if __name__ == '__main__':
    create_demo()
