import unittest
from datetime import date, time

from academy.core.csv_import import read_csv_rows
from academy.core.weekdays import (
    add_hours,
    format_display_time,
    iter_days,
    normalize_day,
    parse_hhmm,
    parse_session_time,
    slot_key,
    week_dates,
)


class WeekdayHelpersTests(unittest.TestCase):
    def test_normalize_day(self):
        self.assertEqual(normalize_day(' saturday '), 'Saturday')
        with self.assertRaises(ValueError):
            normalize_day('Someday')

    def test_time_parsing(self):
        self.assertEqual(parse_hhmm('09:30'), time(9, 30))
        self.assertEqual(parse_session_time('2:00 PM'), time(14, 0))
        self.assertEqual(parse_session_time('12:15 AM'), time(0, 15))
        self.assertEqual(parse_session_time('12:00 PM'), time(12, 0))
        for bad in ('24:00', '9.30', '', '13:00 PM'):
            with self.assertRaises(ValueError):
                parse_session_time(bad)

    def test_display_and_arithmetic(self):
        self.assertEqual(format_display_time(time(0, 5)), '12:05 AM')
        self.assertEqual(format_display_time(time(14, 0)), '2:00 PM')
        self.assertEqual(add_hours(time(14, 0), 1.5), time(15, 30))
        self.assertEqual(add_hours(time(23, 0), 2), time(1, 0))
        self.assertEqual(slot_key('Saturday', 'Ali', time(14, 0)), 'Saturday-Ali-200PM')

    def test_day_ranges(self):
        self.assertEqual(len(list(iter_days(date(2026, 10, 17), date(2026, 10, 23)))), 7)
        self.assertEqual(list(iter_days(date(2026, 10, 18), date(2026, 10, 17))), [])
        self.assertEqual(week_dates(date(2026, 10, 17))[-1], date(2026, 10, 23))


class CsvImportTests(unittest.TestCase):
    def test_reads_rows_and_strips_values(self):
        rows = read_csv_rows('name , level\n Huda , Beginner \n,\n', ['name', 'level'])
        self.assertEqual(rows, [{'name': 'Huda', 'level': 'Beginner'}])

    def test_bytes_with_bom(self):
        rows = read_csv_rows('name,level\nHuda,Beginner\n'.encode('utf-8-sig'), ['name'])
        self.assertEqual(rows[0]['name'], 'Huda')

    def test_missing_columns_are_named(self):
        with self.assertRaises(ValueError) as ctx:
            read_csv_rows('name\nHuda\n', ['name', 'level', 'email'])
        self.assertEqual(str(ctx.exception), 'CSV is missing required columns: level, email')


if __name__ == '__main__':
    unittest.main()
