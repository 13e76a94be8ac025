import tempfile
import unittest
from datetime import date, datetime
from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from academy.core.errors import NotFoundError, StateConflictError
from academy.core.time_provider import TimeProvider
from academy.db import Base
from academy.models import Leave, ScheduleSession, Semester, SemesterTeacher, SessionEnrollment, Student
from academy.services.leave_service import (
    Transfer,
    approve_leave,
    create_leave,
    deny_leave,
    find_affected_students,
    get_leave,
    list_leaves,
)
from academy.services.schedule_service import enroll_student, list_student_enrollments
from academy.services.semester_service import create_semester, set_active_semester
from academy.services.student_service import create_student


class FixedTimeProvider(TimeProvider):
    def __init__(self, frozen_dt: datetime):
        self._frozen_dt = frozen_dt

    def now(self) -> datetime:
        return self._frozen_dt


class LeaveServiceTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls._tmpdir = tempfile.TemporaryDirectory()
        db_path = Path(cls._tmpdir.name) / 'test_leave_service.db'
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
            for table in (Leave, SessionEnrollment, ScheduleSession, SemesterTeacher, Semester, Student):
                db.query(table).delete()
            db.commit()
        finally:
            db.close()
        self.db = self._session_factory()
        self.clock = FixedTimeProvider(datetime(2026, 10, 15, 8, 0))
        self.semester = create_semester(
            self.db,
            name='Fall 2026',
            start_date=date(2026, 9, 1),
            end_date=date(2027, 1, 31),
            teachers=['Ali', 'Sara'],
        )
        set_active_semester(self.db, self.semester.id)
        self.x = create_student(self.db, name='Student X', time_provider=self.clock)
        self.y = create_student(self.db, name='Student Y', time_provider=self.clock)
        self.saturday = self._enroll(self.x, day='Saturday', start='14:00')
        self._enroll(self.y, day='Saturday', start='14:00')
        self.monday = self._enroll(self.x, day='Monday', start='10:00')
        self._enroll(self.y, day='Wednesday', start='10:00')

    def tearDown(self):
        self.db.close()

    def _enroll(self, student, *, teacher='Ali', day, start):
        return enroll_student(
            self.db,
            semester_id=self.semester.id,
            teacher_name=teacher,
            day=day,
            start_time=start,
            duration_hours=1.5,
            specialization='Oud',
            student_id=student.id,
        )

    def _teacher_leave(self, start=date(2026, 10, 17), end=date(2026, 10, 19)):
        return create_leave(
            self.db,
            leave_type='teacher',
            person_id='T-1',
            person_name='Ali',
            start_date=start,
            end_date=end,
            reason='Medical appointment',
        )

    def _all_transfers(self, leave, teacher='Sara'):
        affected = find_affected_students(self.db, leave, time_provider=self.clock)
        return [Transfer(student_id=a['student_id'], session_id=a['session_id'], new_teacher=teacher) for a in affected]

    def test_create_leave_validation(self):
        with self.assertRaises(ValueError):
            create_leave(
                self.db,
                leave_type='teacher',
                person_id='T-1',
                person_name='Ali',
                start_date=date(2026, 10, 17),
                end_date=date(2026, 10, 19),
                reason='sick',
            )
        with self.assertRaises(ValueError):
            create_leave(
                self.db,
                leave_type='teacher',
                person_id='T-1',
                person_name='Ali',
                start_date=date(2026, 10, 19),
                end_date=date(2026, 10, 17),
                reason='Medical appointment',
            )
        self.assertEqual(list_leaves(self.db), [])

    def test_affected_pairs_cover_weekdays_in_range(self):
        leave = self._teacher_leave()
        affected = find_affected_students(self.db, leave, time_provider=self.clock)
        pairs = {(a['student_id'], a['session_id']) for a in affected}
        self.assertEqual(
            pairs,
            {(self.x.id, self.saturday.id), (self.y.id, self.saturday.id), (self.x.id, self.monday.id)},
        )

    def test_affected_pairs_counted_once_across_weeks(self):
        leave = self._teacher_leave(start=date(2026, 10, 17), end=date(2026, 10, 31))
        affected = find_affected_students(self.db, leave, time_provider=self.clock)
        self.assertEqual(len(affected), 4)

    def test_student_leave_has_no_affected_pairs(self):
        leave = create_leave(
            self.db,
            leave_type='student',
            person_id=str(self.x.id),
            person_name='Student X',
            start_date=date(2026, 10, 17),
            end_date=date(2026, 10, 19),
            reason='Family travel',
        )
        self.assertEqual(find_affected_students(self.db, leave, time_provider=self.clock), [])
        result = approve_leave(self.db, leave.id, time_provider=self.clock)
        self.assertEqual(result['leave'].status, 'approved')
        self.assertEqual(result['transfers'], [])

    def test_approve_requires_a_substitute_for_every_pair(self):
        leave = self._teacher_leave()
        transfers = self._all_transfers(leave)[:-1]

        with self.assertRaises(ValueError):
            approve_leave(self.db, leave.id, transfers=transfers, time_provider=self.clock)

        self.assertEqual(get_leave(self.db, leave.id).status, 'pending')
        self.assertEqual(len(self.db.get(ScheduleSession, self.saturday.id).enrollments), 2)

    def test_substitute_must_differ_from_teacher_on_leave(self):
        leave = self._teacher_leave()
        with self.assertRaises(ValueError):
            approve_leave(self.db, leave.id, transfers=self._all_transfers(leave, teacher='Ali'), time_provider=self.clock)

    def test_transfer_not_in_affected_set_is_rejected(self):
        leave = self._teacher_leave()
        transfers = self._all_transfers(leave) + [Transfer(student_id=self.y.id, session_id=self.monday.id, new_teacher='Sara')]
        with self.assertRaises(ValueError):
            approve_leave(self.db, leave.id, transfers=transfers, time_provider=self.clock)

    def test_approve_moves_students_to_substitute_sessions(self):
        existing = self._enroll(self.y, teacher='Sara', day='Monday', start='10:00')
        leave = self._teacher_leave()

        result = approve_leave(self.db, leave.id, transfers=self._all_transfers(leave), time_provider=self.clock)

        self.assertEqual(result['leave'].status, 'approved')
        self.assertEqual(len(result['transfers']), 3)
        self.assertEqual(self.db.get(ScheduleSession, self.saturday.id).enrollments, [])
        self.assertEqual(self.db.get(ScheduleSession, self.monday.id).enrollments, [])

        sara_saturday = (
            self.db.query(ScheduleSession)
            .filter(ScheduleSession.teacher_name == 'Sara', ScheduleSession.day == 'Saturday')
            .one()
        )
        self.assertEqual(sara_saturday.start_time, self.saturday.start_time)
        self.assertEqual(sara_saturday.duration_hours, 1.5)
        self.assertEqual(sara_saturday.specialization, 'Oud')
        self.assertEqual(sorted(e.student_id for e in sara_saturday.enrollments), sorted([self.x.id, self.y.id]))

        # The Monday transfer joins Sara's existing 10:00 session.
        self.db.refresh(existing)
        self.assertEqual(sorted(e.student_id for e in existing.enrollments), sorted([self.x.id, self.y.id]))

        teachers = sorted(item['teacher'] for item in list_student_enrollments(self.db, self.x.id))
        self.assertEqual(teachers, ['Sara', 'Sara'])

    def test_decided_leave_cannot_change_state(self):
        leave = self._teacher_leave()
        deny_leave(self.db, leave.id)
        with self.assertRaises(StateConflictError):
            approve_leave(self.db, leave.id, transfers=self._all_transfers(leave), time_provider=self.clock)
        with self.assertRaises(StateConflictError):
            deny_leave(self.db, leave.id)

    def test_unknown_leave(self):
        with self.assertRaises(NotFoundError):
            approve_leave(self.db, 999, time_provider=self.clock)


if __name__ == '__main__':
    unittest.main()
