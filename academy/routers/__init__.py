from academy.routers import (
    applicants,
    attendance,
    evaluations,
    exclusions,
    grades,
    leaves,
    payments,
    requests,
    schedule,
    semesters,
    students,
)

__all__ = [
    'applicants',
    'attendance',
    'evaluations',
    'exclusions',
    'grades',
    'leaves',
    'payments',
    'requests',
    'schedule',
    'semesters',
    'students',
]
