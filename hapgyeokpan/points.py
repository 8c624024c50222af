"""
Reward rules and point ledger aggregation.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from hapgyeokpan.db import LedgerRecord, ProfileRecord

LEDGER_LIMIT = 30


@dataclass(frozen=True)
class RewardRule:
    id: str
    points: int
    description: str


REWARD_RULES: tuple[RewardRule, ...] = (
    RewardRule("reward-adopted", 80, "채택된 답변 작성자"),
    RewardRule("reward-verified-bonus", 20, "인증 회원의 채택 답변 가산"),
)

VERIFICATION_LABELS = {
    "transfer_passer": "편입 합격자",
    "cpa_first_passer": "CPA 1차 합격",
    "cpa_accountant": "현직 회계사",
}

VERIFICATION_LEVELS = ("none",) + tuple(VERIFICATION_LABELS)


def rule_points(rule_id: str, default: int) -> int:
    for rule in REWARD_RULES:
        if rule.id == rule_id:
            return rule.points
    return default


def is_verified(level: Optional[str]) -> bool:
    return bool(level) and level != "none"


def verification_label(level: Optional[str]) -> str:
    return VERIFICATION_LABELS.get(level or "", "미인증")


def adoption_award(verified: bool) -> tuple[int, str]:
    """Return (points, ledger source) for an adopted answer."""
    base = rule_points("reward-adopted", 80)
    if verified:
        return base + rule_points("reward-verified-bonus", 20), "채택 답변(인증 가산 포함)"
    return base, "채택 답변"


def merge_ledger(*groups: Iterable[LedgerRecord]) -> list[LedgerRecord]:
    """De-duplicate rows by id, newest first, capped at the ledger limit."""
    merged: dict[str, LedgerRecord] = {}
    for rows in groups:
        for row in rows:
            merged[row.id] = row
    ordered = sorted(merged.values(), key=lambda r: r.created_at, reverse=True)
    return ordered[:LEDGER_LIMIT]


def owner_name(profile: Optional[ProfileRecord], nickname: str) -> str:
    if profile:
        return profile.display_name or profile.username or nickname
    return nickname


def summarize_points(
    profile: Optional[ProfileRecord], ledger: Iterable[LedgerRecord]
) -> int:
    if profile and profile.points is not None:
        return profile.points
    return sum(row.amount for row in ledger)
