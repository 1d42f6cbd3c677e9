import unittest
from datetime import datetime, timedelta, timezone

from portalsync.util.time import as_utc, normalize_dt, now_utc, parse_rfc3339


class TestUtilTime(unittest.TestCase):
    def test_now_utc_is_tz_aware(self) -> None:
        dt = now_utc()
        self.assertIsNotNone(dt.tzinfo)
        self.assertEqual(dt.tzinfo, timezone.utc)

    def test_normalize_dt_rejects_naive(self) -> None:
        naive = datetime(2025, 1, 1, 12, 0, 0)
        with self.assertRaises(ValueError):
            normalize_dt(naive)

    def test_parse_rfc3339_z(self) -> None:
        dt = parse_rfc3339("2025-01-01T12:34:56Z")
        self.assertEqual(dt.tzinfo, timezone.utc)
        self.assertEqual(dt, datetime(2025, 1, 1, 12, 34, 56, tzinfo=timezone.utc))

    def test_parse_rfc3339_fractional_z(self) -> None:
        dt = parse_rfc3339("2025-01-01T12:34:56.123Z")
        self.assertEqual(
            dt, datetime(2025, 1, 1, 12, 34, 56, 123000, tzinfo=timezone.utc)
        )

    def test_parse_rfc3339_offset_converts_to_utc(self) -> None:
        dt = parse_rfc3339("2025-01-01T12:34:56+09:00")
        self.assertEqual(dt.tzinfo, timezone.utc)
        self.assertEqual(dt, datetime(2025, 1, 1, 3, 34, 56, tzinfo=timezone.utc))

    def test_as_utc_treats_naive_as_utc(self) -> None:
        self.assertIsNone(as_utc(None))
        naive = datetime(2025, 1, 1, 12, 0, 0)
        self.assertEqual(as_utc(naive), datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc))

        jst = datetime(2025, 1, 1, 9, 0, 0, tzinfo=timezone(timedelta(hours=9)))
        self.assertEqual(as_utc(jst), datetime(2025, 1, 1, 0, 0, 0, tzinfo=timezone.utc))
