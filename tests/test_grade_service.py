import tempfile
import unittest
from datetime import date, datetime
from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from academy.core.errors import NotFoundError
from academy.core.time_provider import TimeProvider
from academy.db import Base
from academy.models import Grade, LevelChange, Student, StudentEvaluation
from academy.services.grade_service import (
    create_evaluation,
    create_grade,
    delete_evaluation,
    delete_grade,
    list_evaluations_for_student,
    list_grades_for_student,
    serialize_evaluation,
    serialize_grade,
    update_evaluation,
    update_grade,
)
from academy.services.student_service import create_student


class FixedTimeProvider(TimeProvider):
    def __init__(self, frozen_dt: datetime):
        self._frozen_dt = frozen_dt

    def now(self) -> datetime:
        return self._frozen_dt


class GradeServiceTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls._tmpdir = tempfile.TemporaryDirectory()
        db_path = Path(cls._tmpdir.name) / 'test_grade_service.db'
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
            for table in (Grade, StudentEvaluation, LevelChange, Student):
                db.query(table).delete()
            db.commit()
        finally:
            db.close()
        self.db = self._session_factory()
        self.clock = FixedTimeProvider(datetime(2026, 10, 19, 9, 0))
        self.student = create_student(self.db, name='Student X', time_provider=self.clock)

    def tearDown(self):
        self.db.close()

    def _grade(self, **overrides):
        fields = {
            'student_id': self.student.id,
            'subject': 'Oud',
            'grade_type': 'test',
            'title': 'Maqam Rast scales',
            'score': 18,
            'max_score': 20,
            'time_provider': self.clock,
        }
        fields.update(overrides)
        return create_grade(self.db, **fields)

    def test_create_grade_defaults_to_today(self):
        row = self._grade()
        payload = serialize_grade(row)
        self.assertEqual(payload['date'], '2026-10-19')
        self.assertEqual(payload['type'], 'test')
        self.assertIsNone(payload['attachment'])

        with_file = self._grade(attachment_name='sheet.pdf', attachment_type='application/pdf', attachment_url='/files/sheet.pdf')
        self.assertEqual(serialize_grade(with_file)['attachment']['name'], 'sheet.pdf')

    def test_grade_validation(self):
        with self.assertRaises(ValueError):
            self._grade(grade_type='exam')
        with self.assertRaises(ValueError):
            self._grade(score=21)
        with self.assertRaises(ValueError):
            self._grade(max_score=0)
        with self.assertRaises(NotFoundError):
            self._grade(student_id=999)
        self.assertEqual(self.db.query(Grade).count(), 0)

    def test_update_and_delete_grade(self):
        row = self._grade()
        updated = update_grade(self.db, row.id, score=19.5, title=' Retake ')
        self.assertEqual(updated.score, 19.5)
        self.assertEqual(updated.title, 'Retake')

        with self.assertRaises(ValueError):
            update_grade(self.db, row.id, max_score=10)
        with self.assertRaises(ValueError):
            update_grade(self.db, row.id, student_id=2)

        delete_grade(self.db, row.id)
        with self.assertRaises(NotFoundError):
            delete_grade(self.db, row.id)

    def test_list_grades_for_student_newest_first(self):
        other = create_student(self.db, name='Student Y', time_provider=self.clock)
        self._grade(title='First', graded_on=date(2026, 9, 10))
        self._grade(title='Second', graded_on=date(2026, 10, 1))
        self._grade(student_id=other.id, title='Other')

        titles = [row.title for row in list_grades_for_student(self.db, self.student.id)]
        self.assertEqual(titles, ['Second', 'First'])

    def test_evaluations(self):
        row = create_evaluation(
            self.db,
            student_id=self.student.id,
            evaluator=' Ali ',
            criteria=[{'name': 'Rhythm', 'score': 4}, {'name': 'Pitch', 'score': 5}],
            notes='Steady progress',
            time_provider=self.clock,
        )
        payload = serialize_evaluation(row)
        self.assertEqual(payload['evaluator'], 'Ali')
        self.assertEqual(payload['date'], '2026-10-19')
        self.assertEqual(payload['criteria'][1], {'name': 'Pitch', 'score': 5.0})

        with self.assertRaises(ValueError):
            create_evaluation(self.db, student_id=self.student.id, evaluator='', time_provider=self.clock)
        with self.assertRaises(ValueError):
            create_evaluation(
                self.db,
                student_id=self.student.id,
                evaluator='Ali',
                criteria=[{'name': '', 'score': 1}],
                time_provider=self.clock,
            )

        updated = update_evaluation(self.db, row.id, criteria=[{'name': 'Tone', 'score': 3}])
        self.assertEqual(serialize_evaluation(updated)['criteria'], [{'name': 'Tone', 'score': 3.0}])
        self.assertEqual(updated.notes, 'Steady progress')

        self.assertEqual(len(list_evaluations_for_student(self.db, self.student.id)), 1)
        delete_evaluation(self.db, row.id)
        self.assertEqual(list_evaluations_for_student(self.db, self.student.id), [])


if __name__ == '__main__':
    unittest.main()
