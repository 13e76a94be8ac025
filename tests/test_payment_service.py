import tempfile
import unittest
from datetime import date, datetime
from pathlib import Path

from freezegun import freeze_time
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from academy.core.errors import NotFoundError
from academy.core.time_provider import TimeProvider
from academy.db import Base
from academy.models import DueDateChange, Installment, LevelChange, PaymentSettings, Student
from academy.services.payment_service import (
    add_months,
    assign_payment_plan,
    change_all_due_dates,
    end_of_day_report,
    installment_status,
    mark_installment_paid,
    set_grace_period,
    student_payment_summary,
    update_payment_settings,
)
from academy.services.student_service import create_student


class FixedTimeProvider(TimeProvider):
    def __init__(self, frozen_dt: datetime):
        self._frozen_dt = frozen_dt

    def now(self) -> datetime:
        return self._frozen_dt


class AddMonthsTests(unittest.TestCase):
    def test_clamps_to_month_end(self):
        self.assertEqual(add_months(date(2026, 1, 31), 1), date(2026, 2, 28))
        self.assertEqual(add_months(date(2026, 11, 30), 3), date(2027, 2, 28))
        self.assertEqual(add_months(date(2026, 1, 15), 12), date(2027, 1, 15))


class PaymentServiceTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls._tmpdir = tempfile.TemporaryDirectory()
        db_path = Path(cls._tmpdir.name) / 'test_payment_service.db'
        cls._engine = create_engine(f"sqlite:///{db_path}", connect_args={'check_same_thread': False})
        cls._session_factory = sessionmaker(autocommit=False, autoflush=False, bind=cls._engine)
        Base.metadata.create_all(bind=cls._engine)

    @classmethod
    def tearDownClass(cls):
        cls._engine.dispose()
        cls._tmpdir.cleanup()

    def setUp(self):
        db = self._session_factory()
        try:
            for table in (Installment, DueDateChange, LevelChange, PaymentSettings, Student):
                db.query(table).delete()
            db.commit()
        finally:
            db.close()
        self.db = self._session_factory()
        self.clock = FixedTimeProvider(datetime(2026, 3, 15, 10, 30))
        update_payment_settings(self.db, monthly=450, quarterly=1300, yearly=4800)
        self.student = create_student(self.db, name='Student X', time_provider=self.clock)

    def tearDown(self):
        self.db.close()

    def _installments(self):
        return (
            self.db.query(Installment)
            .filter(Installment.student_id == self.student.id)
            .order_by(Installment.due_date.asc())
            .all()
        )

    def test_monthly_plan_creates_twelve_installments_at_current_price(self):
        assign_payment_plan(self.db, student_id=self.student.id, plan='monthly', start_date=date(2026, 1, 31))
        rows = self._installments()

        self.assertEqual(len(rows), 12)
        self.assertEqual(rows[0].due_date, date(2026, 1, 31))
        self.assertEqual(rows[1].due_date, date(2026, 2, 28))
        self.assertEqual(rows[11].due_date, date(2026, 12, 31))
        self.assertTrue(all(row.amount == 450 for row in rows))
        self.assertTrue(all(row.status == 'unpaid' for row in rows))

        update_payment_settings(self.db, monthly=999, quarterly=1300, yearly=4800)
        self.assertTrue(all(row.amount == 450 for row in self._installments()))

    def test_quarterly_and_yearly_plans(self):
        assign_payment_plan(self.db, student_id=self.student.id, plan='quarterly', start_date=date(2026, 1, 10))
        rows = self._installments()
        self.assertEqual([r.due_date for r in rows], [date(2026, 1, 10), date(2026, 4, 10), date(2026, 7, 10), date(2026, 10, 10)])
        self.assertEqual(rows[0].amount, 1300)

        assign_payment_plan(self.db, student_id=self.student.id, plan='yearly', start_date=date(2026, 2, 1))
        rows = self._installments()
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0].amount, 4800)

    def test_rejects_unknown_plan_and_student(self):
        with self.assertRaises(ValueError):
            assign_payment_plan(self.db, student_id=self.student.id, plan='weekly', start_date=date(2026, 1, 1))
        with self.assertRaises(NotFoundError):
            assign_payment_plan(self.db, student_id=999, plan='monthly', start_date=date(2026, 1, 1))

    def test_negative_price_is_rejected(self):
        with self.assertRaises(ValueError):
            update_payment_settings(self.db, monthly=-1, quarterly=1300, yearly=4800)

    def test_marking_paid_twice_keeps_one_invoice(self):
        assign_payment_plan(self.db, student_id=self.student.id, plan='monthly', start_date=date(2026, 1, 15))
        first = self._installments()[0]

        paid = mark_installment_paid(self.db, first.id, payment_method='cash', time_provider=self.clock)
        invoice = paid.invoice_number
        self.assertTrue(invoice.startswith('INV-'))
        self.assertEqual(paid.payment_date, date(2026, 3, 15))

        later = FixedTimeProvider(datetime(2026, 3, 16, 9, 0))
        again = mark_installment_paid(self.db, first.id, payment_method='visa', time_provider=later)
        self.assertEqual(again.invoice_number, invoice)
        self.assertEqual(again.payment_method, 'visa')

    def test_invoice_numbers_are_unique_within_same_millisecond(self):
        assign_payment_plan(self.db, student_id=self.student.id, plan='monthly', start_date=date(2026, 1, 15))
        first, second = self._installments()[:2]
        a = mark_installment_paid(self.db, first.id, payment_method='cash', time_provider=self.clock).invoice_number
        b = mark_installment_paid(self.db, second.id, payment_method='cash', time_provider=self.clock).invoice_number
        self.assertNotEqual(a, b)
        self.assertEqual(b, f'{a}-1')

    def test_rejects_unknown_payment_method(self):
        assign_payment_plan(self.db, student_id=self.student.id, plan='yearly', start_date=date(2026, 1, 15))
        with self.assertRaises(ValueError):
            mark_installment_paid(self.db, self._installments()[0].id, payment_method='crypto', time_provider=self.clock)

    def test_change_due_dates_only_moves_unpaid_from_today(self):
        assign_payment_plan(self.db, student_id=self.student.id, plan='monthly', start_date=date(2026, 1, 15))
        rows = self._installments()
        mark_installment_paid(self.db, rows[0].id, payment_method='cash', time_provider=self.clock)

        change_all_due_dates(self.db, student_id=self.student.id, day=5, time_provider=self.clock)
        rows = self._installments()

        self.assertEqual(rows[0].due_date, date(2026, 1, 15))
        self.assertEqual(rows[1].due_date, date(2026, 2, 15))
        self.assertEqual(rows[2].due_date, date(2026, 3, 5))
        self.assertEqual(rows[3].due_date, date(2026, 4, 5))
        self.assertEqual(rows[11].due_date, date(2026, 12, 5))

        student = self.db.get(Student, self.student.id)
        self.assertEqual(student.preferred_pay_day, 5)
        self.assertEqual(len(student.due_date_changes), 1)
        self.assertEqual(student.due_date_changes[0].new_day, 5)

    def test_change_due_dates_rejects_day_out_of_range(self):
        for day in (0, 29):
            with self.assertRaises(ValueError):
                change_all_due_dates(self.db, student_id=self.student.id, day=day, time_provider=self.clock)

    def test_overdue_is_computed_and_grace_period_defers_it(self):
        assign_payment_plan(self.db, student_id=self.student.id, plan='monthly', start_date=date(2026, 2, 10))
        rows = self._installments()
        today = date(2026, 3, 15)

        self.assertEqual(installment_status(rows[0], today), 'overdue')
        self.assertEqual(installment_status(rows[1], today), 'overdue')
        self.assertEqual(installment_status(rows[2], today), 'unpaid')

        with self.assertRaises(ValueError):
            set_grace_period(self.db, rows[1].id, until=date(2026, 3, 1))
        set_grace_period(self.db, rows[1].id, until=date(2026, 3, 20))
        self.assertEqual(installment_status(self.db.get(Installment, rows[1].id), today), 'unpaid')

        summary = student_payment_summary(self.db, self.student.id, time_provider=self.clock)
        self.assertEqual(summary['overdue_count'], 1)
        self.assertEqual(summary['paid_total'], 0)
        self.assertEqual(summary['due_total'], 450 * 12)
        self.assertEqual(summary['next_due']['due_date'], '2026-02-10')

    def test_end_of_day_report(self):
        assign_payment_plan(self.db, student_id=self.student.id, plan='monthly', start_date=date(2026, 1, 15))
        other = create_student(self.db, name='Student Y', time_provider=self.clock)
        assign_payment_plan(self.db, student_id=other.id, plan='yearly', start_date=date(2026, 1, 15))
        rows = self._installments()
        mark_installment_paid(self.db, rows[0].id, payment_method='cash', time_provider=self.clock)
        mark_installment_paid(self.db, rows[1].id, payment_method='mada', time_provider=self.clock)
        yearly = self.db.query(Installment).filter(Installment.student_id == other.id).one()
        mark_installment_paid(self.db, yearly.id, payment_method='visa', time_provider=FixedTimeProvider(datetime(2026, 3, 16, 9, 0)))

        report = end_of_day_report(self.db, day=date(2026, 3, 15))

        self.assertEqual(report['cash'], 450)
        self.assertEqual(report['mada'], 450)
        self.assertEqual(report['visa'], 0)
        self.assertEqual(report['total'], 900)
        self.assertEqual(len(report['transactions']), 2)
        self.assertEqual({t['student_name'] for t in report['transactions']}, {'Student X'})

    @freeze_time('2026-03-15 08:00:00')
    def test_summary_uses_default_clock(self):
        assign_payment_plan(self.db, student_id=self.student.id, plan='monthly', start_date=date(2026, 3, 1))
        rows = self._installments()
        mark_installment_paid(self.db, rows[1].id, payment_method='transfer')

        summary = student_payment_summary(self.db, self.student.id)

        statuses = [item['status'] for item in summary['installments'][:3]]
        self.assertEqual(statuses, ['overdue', 'paid', 'unpaid'])
        self.assertEqual(summary['installments'][1]['payment_date'], '2026-03-15')
        self.assertEqual(summary['next_due']['due_date'], '2026-03-01')


if __name__ == '__main__':
    unittest.main()
