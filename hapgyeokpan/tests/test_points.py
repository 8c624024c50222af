import unittest
from datetime import datetime, timedelta, timezone

from hapgyeokpan.db import LedgerRecord, ProfileRecord
from hapgyeokpan.points import (
    LEDGER_LIMIT,
    adoption_award,
    merge_ledger,
    owner_name,
    summarize_points,
    verification_label,
)

BASE_TIME = datetime(2026, 1, 1, tzinfo=timezone.utc)


def _entry(entry_id, minutes, amount=10):
    return LedgerRecord(
        id=entry_id,
        profile_id=None,
        receiver_name="회원",
        source="채택 답변",
        amount=amount,
        created_at=BASE_TIME + timedelta(minutes=minutes),
    )


class PointsTests(unittest.TestCase):
    def test_adoption_award(self):
        self.assertEqual(adoption_award(False), (80, "채택 답변"))
        self.assertEqual(adoption_award(True), (100, "채택 답변(인증 가산 포함)"))

    def test_merge_deduplicates_and_orders(self):
        a, b, c = _entry("a", 1), _entry("b", 3), _entry("c", 2)
        merged = merge_ledger([a, b], [b, c])
        self.assertEqual([row.id for row in merged], ["b", "c", "a"])

    def test_merge_caps_at_limit(self):
        rows = [_entry(str(i), i) for i in range(LEDGER_LIMIT + 5)]
        merged = merge_ledger(rows[:20], rows[15:])
        self.assertEqual(len(merged), LEDGER_LIMIT)
        self.assertEqual(merged[0].id, str(LEDGER_LIMIT + 4))

    def test_summarize_prefers_cached_profile_points(self):
        ledger = [_entry("a", 1, 80), _entry("b", 2, 20)]
        self.assertEqual(summarize_points(None, ledger), 100)
        self.assertEqual(summarize_points(ProfileRecord(id="p", points=7), ledger), 7)
        self.assertEqual(summarize_points(ProfileRecord(id="p", points=None), ledger), 100)

    def test_owner_name_and_labels(self):
        self.assertEqual(owner_name(ProfileRecord(id="p", username="user"), "nick"), "user")
        self.assertEqual(owner_name(None, "nick"), "nick")
        self.assertEqual(verification_label("cpa_first_passer"), "CPA 1차 합격")
        self.assertEqual(verification_label("none"), "미인증")


if __name__ == "__main__":
    unittest.main()
