import tempfile
import unittest
from datetime import date, datetime
from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from academy.core.errors import StateConflictError
from academy.core.time_provider import TimeProvider
from academy.db import Base
from academy.models import Applicant, LevelChange, Student
from academy.services.applicant_service import (
    cancel_applicant,
    create_applicant,
    evaluate_applicant,
    import_applicants_csv,
    list_applicants,
    schedule_interviews,
    serialize_applicant,
)


class FixedTimeProvider(TimeProvider):
    def __init__(self, frozen_dt: datetime):
        self._frozen_dt = frozen_dt

    def now(self) -> datetime:
        return self._frozen_dt


class ApplicantServiceTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls._tmpdir = tempfile.TemporaryDirectory()
        db_path = Path(cls._tmpdir.name) / 'test_applicant_service.db'
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
            for table in (LevelChange, Student, Applicant):
                db.query(table).delete()
            db.commit()
        finally:
            db.close()
        self.db = self._session_factory()
        self.clock = FixedTimeProvider(datetime(2026, 10, 19, 9, 0))

    def tearDown(self):
        self.db.close()

    def _applicant(self, name, **fields):
        return create_applicant(self.db, name=name, time_provider=self.clock, **fields)

    def _interviewed(self, name, **fields):
        row = self._applicant(name, **fields)
        schedule_interviews(
            self.db,
            applicant_ids=[row.id],
            interview_date=date(2026, 10, 20),
            start_time='09:00',
            duration_minutes=30,
            break_minutes=0,
            interviewers=['Ali'],
        )
        return row

    def test_create_and_filter(self):
        row = self._applicant('Huda', gender='female', instrument_interest='Piano')
        self.assertEqual(row.status, 'pending-review')
        self.assertEqual(len(list_applicants(self.db, status='pending-review')), 1)
        self.assertEqual(list_applicants(self.db, status='approved'), [])
        with self.assertRaises(ValueError):
            self._applicant('Bad', gender='unknown')

    def test_interviews_round_robin_with_break(self):
        applicants = [self._applicant(f'Applicant {n}') for n in range(1, 6)]

        rows = schedule_interviews(
            self.db,
            applicant_ids=[a.id for a in applicants],
            interview_date=date(2026, 10, 20),
            start_time='09:00',
            duration_minutes=30,
            break_minutes=10,
            interviewers=['Ali', 'Sara'],
        )

        slots = [(row.interviewer, row.interview_time) for row in rows]
        self.assertEqual(
            slots,
            [('Ali', '09:00'), ('Sara', '09:00'), ('Ali', '09:40'), ('Sara', '09:40'), ('Ali', '10:20')],
        )
        self.assertTrue(all(row.status == 'interview-scheduled' for row in rows))
        self.assertEqual(serialize_applicant(rows[0])['interview_details']['date'], '2026-10-20')

    def test_interview_validation(self):
        applicant = self._applicant('Huda')
        with self.assertRaises(ValueError):
            schedule_interviews(
                self.db,
                applicant_ids=[applicant.id],
                interview_date=date(2026, 10, 20),
                start_time='09:00',
                duration_minutes=3,
                break_minutes=0,
                interviewers=['Ali'],
            )
        with self.assertRaises(ValueError):
            schedule_interviews(
                self.db,
                applicant_ids=[applicant.id],
                interview_date=date(2026, 10, 20),
                start_time='09:00',
                duration_minutes=30,
                break_minutes=0,
                interviewers=[],
            )

    def test_approve_and_enroll_creates_beginner_student(self):
        applicant = self._interviewed('Huda', gender='female', phone='0500000001', instrument_interest='Piano')

        result = evaluate_applicant(
            self.db,
            applicant.id,
            decision='approved',
            criteria={'rhythm': 4, 'pitch': 5},
            notes='Strong ear',
            general_score=4.5,
            enroll=True,
            time_provider=self.clock,
        )

        self.assertEqual(result['applicant'].status, 'approved')
        student = result['student']
        self.assertEqual(student.applicant_id, applicant.id)
        self.assertEqual(student.level, 'Beginner')
        self.assertEqual(student.status, 'active')
        self.assertEqual(student.phone, '0500000001')
        self.assertEqual([h.review for h in student.level_history], ['Initial enrollment from application.'])
        evaluation = serialize_applicant(result['applicant'])['evaluation']
        self.assertEqual(evaluation['general_score'], 4.5)
        self.assertEqual(evaluation['criteria']['pitch'], 5)

    def test_reject_does_not_enroll(self):
        applicant = self._interviewed('Omar')
        with self.assertRaises(ValueError):
            evaluate_applicant(self.db, applicant.id, decision='rejected', enroll=True, time_provider=self.clock)
        result = evaluate_applicant(self.db, applicant.id, decision='rejected', time_provider=self.clock)
        self.assertIsNone(result['student'])
        self.assertEqual(self.db.query(Student).count(), 0)

    def test_approved_applicant_cannot_be_evaluated_again(self):
        applicant = self._interviewed('Huda', gender='female')
        evaluate_applicant(self.db, applicant.id, decision='approved', enroll=True, time_provider=self.clock)

        with self.assertRaises(StateConflictError):
            evaluate_applicant(self.db, applicant.id, decision='approved', enroll=True, time_provider=self.clock)
        self.assertEqual(self.db.query(Student).count(), 1)

        with self.assertRaises(StateConflictError):
            schedule_interviews(
                self.db,
                applicant_ids=[applicant.id],
                interview_date=date(2026, 10, 21),
                start_time='09:00',
                duration_minutes=30,
                break_minutes=0,
                interviewers=['Ali'],
            )

    def test_pending_review_applicant_needs_interview_before_evaluation(self):
        applicant = self._applicant('Omar')
        with self.assertRaises(StateConflictError):
            evaluate_applicant(self.db, applicant.id, decision='approved', enroll=True, time_provider=self.clock)
        self.db.expire_all()
        self.assertEqual(self.db.get(Applicant, applicant.id).status, 'pending-review')
        self.assertEqual(self.db.query(Student).count(), 0)

    def test_cancel(self):
        applicant = self._applicant('Omar')
        row = cancel_applicant(self.db, applicant.id, reason='Withdrew application')
        self.assertEqual(row.status, 'cancelled')
        with self.assertRaises(StateConflictError):
            cancel_applicant(self.db, applicant.id, reason='Again')
        with self.assertRaises(StateConflictError):
            evaluate_applicant(self.db, applicant.id, decision='approved', time_provider=self.clock)

    def test_csv_import(self):
        header = 'name,gender,dob,nationality,phone,email,instrumentInterest,previousExperience\n'
        result = import_applicants_csv(
            self.db,
            header + 'Huda,female,2010-01-01,SA,1,h@example.com,Piano,Two years\n',
            time_provider=self.clock,
        )
        self.assertEqual(result['imported'], 1)
        self.assertEqual(list_applicants(self.db)[0].previous_experience, 'Two years')

        with self.assertRaises(ValueError) as ctx:
            import_applicants_csv(self.db, 'name,gender\nHuda,female\n', time_provider=self.clock)
        self.assertIn('previousExperience', str(ctx.exception))


if __name__ == '__main__':
    unittest.main()
