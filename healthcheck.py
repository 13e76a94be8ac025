import sys
from pathlib import Path

from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory
from sqlalchemy import text

from academy.config import settings
from academy.db import SessionLocal, engine
from academy.models import PaymentSettings, Semester
from academy.services.semester_service import resolve_current_semester


GREEN = '\033[32m'
RED = '\033[31m'
RESET = '\033[0m'

ALEMBIC_DIR = Path(__file__).resolve().parent / 'alembic'


def run_check(name, fn):
    try:
        message = fn() or ''
        suffix = f' - {message}' if message else ''
        print(f'{GREEN}PASS{RESET} {name}{suffix}')
        return True
    except Exception as exc:
        print(f'{RED}FAIL{RESET} {name} - {exc}')
        return False


def check_db_connectivity_and_write():
    with engine.begin() as conn:
        conn.execute(text('SELECT 1'))
        conn.execute(text('CREATE TABLE IF NOT EXISTS _healthcheck_probe (id INTEGER PRIMARY KEY, note TEXT)'))
        conn.execute(text("INSERT INTO _healthcheck_probe (note) VALUES ('probe')"))
        conn.execute(text("DELETE FROM _healthcheck_probe WHERE note='probe'"))
        conn.execute(text('DROP TABLE IF EXISTS _healthcheck_probe'))
    return 'connect + write ok'


def check_alembic_head():
    script = ScriptDirectory(str(ALEMBIC_DIR))
    heads = set(script.get_heads())
    if not heads:
        raise RuntimeError('No alembic heads found in repository')

    with engine.connect() as conn:
        current = MigrationContext.configure(conn).get_current_revision()

    if current is None:
        raise RuntimeError('No migration version in DB (run alembic upgrade head)')
    if current not in heads:
        raise RuntimeError(f'DB revision {current} is not at head {sorted(heads)}')
    return f'current={current}'


def check_required_env():
    required = {
        'DATABASE_URL': settings.database_url,
        'APP_TIMEZONE': settings.app_timezone,
        'WEEK_START_DAY': settings.week_start_day,
    }
    missing = [key for key, value in required.items() if not str(value).strip()]
    if missing:
        raise RuntimeError(f'Missing env vars: {", ".join(missing)}')
    return 'all required vars present'


def check_price_table_seeded():
    db = SessionLocal()
    try:
        row = db.query(PaymentSettings).first()
        if row is None:
            raise RuntimeError('payment_settings is empty (run bootstrap.py)')
        return f'monthly={row.monthly} quarterly={row.quarterly} yearly={row.yearly}'
    finally:
        db.close()


def check_current_semester():
    db = SessionLocal()
    try:
        if db.query(Semester.id).first() is None:
            return 'no semesters yet'
        current = resolve_current_semester(db)
        return f'current={current.name}'
    finally:
        db.close()


def main():
    checks = [
        ('Database connectivity and write access', check_db_connectivity_and_write),
        ('Alembic migration status at head', check_alembic_head),
        ('Required environment variables present', check_required_env),
        ('Price table seeded', check_price_table_seeded),
        ('Current semester resolvable', check_current_semester),
    ]

    all_ok = True
    for name, fn in checks:
        all_ok = run_check(name, fn) and all_ok

    if not all_ok:
        sys.exit(1)
    sys.exit(0)


if __name__ == '__main__':
    main()
