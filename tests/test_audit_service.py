"""
Tests for monthly audit storage: upsert, child replacement, atomicity and
clinic scoping.
"""

from datetime import date, datetime
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from clinic_audit.errors import NotFoundError, TransientStorageError, ValidationError
from clinic_audit.extensions import db
from clinic_audit.models import MonthlyAudit, PayrollItem
from clinic_audit.schemas import PayrollItemInput
from clinic_audit.services import audit_service
from clinic_audit.utils.months import normalize_month
from tests.factories import acme_audit, add_member, signup


class TestNormalizeMonth:
    @pytest.mark.parametrize("value", ['2025-02', '2025-02-17', date(2025, 2, 17), datetime(2025, 2, 3, 12, 30)])
    def test_first_of_month(self, value):
        assert normalize_month(value) == date(2025, 2, 1)

    @pytest.mark.parametrize("value", ['2025/02', 'February', '2025-13', '', None, 202502])
    def test_rejects_malformed(self, value):
        with pytest.raises(ValidationError):
            normalize_month(value)


class TestSaveAudit:
    def test_creates_month(self, acme):
        admin, _ = acme
        audit_id = audit_service.save_audit(admin.clinic_id, admin.id, acme_audit())

        audit = audit_service.get_audit(admin.clinic_id, '2025-02')
        assert audit.id == audit_id
        assert audit.audit_month == date(2025, 2, 1)
        assert audit.revenue == Decimal('85000')
        assert audit.created_by == admin.id
        assert [p.name for p in audit.payroll_items] == ['Hygienist']
        assert len(audit.services) == 1

    def test_second_save_overwrites(self, acme):
        admin, _ = acme
        first_id = audit_service.save_audit(admin.clinic_id, admin.id, acme_audit())
        second_id = audit_service.save_audit(admin.clinic_id, admin.id, acme_audit(revenue=90000))

        assert first_id == second_id
        audits = audit_service.list_audits(admin.clinic_id)
        assert len(audits) == 1
        assert audits[0].revenue == Decimal('90000')

    def test_day_of_month_is_ignored(self, acme):
        admin, _ = acme
        audit_service.save_audit(admin.clinic_id, admin.id, acme_audit(audit_month='2025-02-01'))
        audit_service.save_audit(admin.clinic_id, admin.id, acme_audit(audit_month='2025-02-28'))
        assert MonthlyAudit.query.filter_by(clinic_id=admin.clinic_id).count() == 1

    def test_children_fully_replaced(self, acme):
        admin, _ = acme
        three = [{'name': n, 'amount': 1000} for n in ('A', 'B', 'C')]
        audit_service.save_audit(admin.clinic_id, admin.id, acme_audit(payroll=three))
        audit_service.save_audit(admin.clinic_id, admin.id, acme_audit(payroll=[{'name': 'D', 'amount': 500}]))

        audit = audit_service.get_audit(admin.clinic_id, '2025-02')
        assert [(p.name, p.amount) for p in audit.payroll_items] == [('D', Decimal('500'))]
        assert PayrollItem.query.count() == 1

    def test_empty_lists_clear_children(self, acme):
        admin, _ = acme
        audit_service.save_audit(admin.clinic_id, admin.id, acme_audit())
        audit_service.save_audit(admin.clinic_id, admin.id, acme_audit(payroll=[], services=[], expenses=[]))

        audit = audit_service.get_audit(admin.clinic_id, '2025-02')
        assert audit.payroll_items == []
        assert audit.services == []
        assert audit.expenses == []

    def test_failed_save_leaves_previous_month_intact(self, acme):
        admin, _ = acme
        audit_service.save_audit(admin.clinic_id, admin.id, acme_audit())

        broken = acme_audit(revenue=1).model_copy(update={
            'payroll': [PayrollItemInput.model_construct(name=None, amount=Decimal('1'))],
        })
        with pytest.raises(ValidationError):
            audit_service.save_audit(admin.clinic_id, admin.id, broken)

        db.session.expire_all()
        audit = audit_service.get_audit(admin.clinic_id, '2025-02')
        assert audit.revenue == Decimal('85000')
        assert [p.name for p in audit.payroll_items] == ['Hygienist']

    def test_unknown_creator_is_rejected(self, acme):
        admin, _ = acme
        with pytest.raises(ValidationError):
            audit_service.save_audit(admin.clinic_id, 99999, acme_audit(audit_month='2025-03'))
        assert MonthlyAudit.query.count() == 0

    def test_creator_kept_from_first_save(self, acme):
        admin, _ = acme
        member = add_member(admin)
        audit_service.save_audit(admin.clinic_id, admin.id, acme_audit())
        audit_service.save_audit(admin.clinic_id, member.id, acme_audit(revenue=1))
        assert audit_service.get_audit(admin.clinic_id, '2025-02').created_by == admin.id


class TestStorageFailure:
    def test_failed_write_is_transient_and_keeps_previous_month(self, acme, monkeypatch):
        admin, _ = acme
        clinic_id, admin_id = admin.clinic_id, admin.id
        audit_service.save_audit(clinic_id, admin_id, acme_audit())

        def broken_flush(*args, **kwargs):
            raise OperationalError('FLUSH', {}, Exception('database is locked'))

        monkeypatch.setattr(db.session, 'flush', broken_flush)
        with pytest.raises(TransientStorageError):
            audit_service.save_audit(clinic_id, admin_id, acme_audit(revenue=1, payroll=[]))
        monkeypatch.undo()

        db.session.expire_all()
        audit = audit_service.get_audit(clinic_id, '2025-02')
        assert audit.revenue == Decimal('85000')
        assert [p.name for p in audit.payroll_items] == ['Hygienist']


class TestReadAndDelete:
    def test_list_newest_first(self, acme):
        admin, _ = acme
        for month in ('2025-01', '2025-03', '2024-12'):
            audit_service.save_audit(admin.clinic_id, admin.id, acme_audit(audit_month=month))

        months = [a.audit_month for a in audit_service.list_audits(admin.clinic_id)]
        assert months == [date(2025, 3, 1), date(2025, 1, 1), date(2024, 12, 1)]

    def test_get_missing_month(self, acme):
        admin, _ = acme
        with pytest.raises(NotFoundError):
            audit_service.get_audit(admin.clinic_id, '2030-01')

    def test_delete_removes_children(self, acme):
        admin, _ = acme
        audit_service.save_audit(admin.clinic_id, admin.id, acme_audit())
        audit_service.delete_audit(admin.clinic_id, '2025-02')

        assert MonthlyAudit.query.count() == 0
        assert PayrollItem.query.count() == 0

    def test_delete_missing_month(self, acme):
        admin, _ = acme
        with pytest.raises(NotFoundError):
            audit_service.delete_audit(admin.clinic_id, '2025-02')


class TestClinicScoping:
    def test_other_clinic_cannot_read_or_delete(self, acme):
        admin_a, _ = acme
        admin_b, _ = signup(email='owner@bravo.test', clinic_name='Bravo')
        audit_service.save_audit(admin_a.clinic_id, admin_a.id, acme_audit())

        assert audit_service.list_audits(admin_b.clinic_id) == []
        with pytest.raises(NotFoundError):
            audit_service.get_audit(admin_b.clinic_id, '2025-02')
        with pytest.raises(NotFoundError):
            audit_service.delete_audit(admin_b.clinic_id, '2025-02')
        assert len(audit_service.list_audits(admin_a.clinic_id)) == 1

    def test_same_month_in_two_clinics(self, acme):
        admin_a, _ = acme
        admin_b, _ = signup(email='owner@bravo.test', clinic_name='Bravo')
        audit_service.save_audit(admin_a.clinic_id, admin_a.id, acme_audit())
        audit_service.save_audit(admin_b.clinic_id, admin_b.id, acme_audit(revenue=1))

        assert audit_service.get_audit(admin_a.clinic_id, '2025-02').revenue == Decimal('85000')
        assert audit_service.get_audit(admin_b.clinic_id, '2025-02').revenue == Decimal('1')


class TestScorecard:
    def test_uses_clinic_goals(self, acme):
        admin, _ = acme
        audit_service.save_audit(admin.clinic_id, admin.id, acme_audit())

        audit, card = audit_service.get_scorecard(admin.clinic_id, '2025-02')
        assert audit.audit_month == date(2025, 2, 1)
        assert card.financial == pytest.approx(23.125)
        assert card.metrics.profit == 52000
