"""
Test configuration: a fresh in-memory database per test.
"""

import sys
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).parent.parent
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from clinic_audit import create_app  # noqa: E402
from clinic_audit.extensions import db  # noqa: E402
from tests.factories import signup  # noqa: E402


@pytest.fixture
def app():
    app = create_app('testing')
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def sent_emails(monkeypatch):
    """Capture outgoing mail instead of talking to SMTP"""
    from clinic_audit.services import email_service

    outbox = []

    def fake_send(to_email, subject, body_html, body_text=None):
        outbox.append({'to': to_email, 'subject': subject, 'html': body_html, 'text': body_text})
        return True

    monkeypatch.setattr(email_service, 'send_email', fake_send)
    return outbox


@pytest.fixture
def acme(app):
    """Clinic "Acme" with its admin; yields (admin, token)"""
    return signup()
