"""
Cutoff predictor: compares an adjusted score against reported score bands.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Optional

SCORE_BAND_RE = re.compile(r"([0-9]+(?:\.[0-9]+)?)~([0-9]+(?:\.[0-9]+)?)")
WRONG_ANSWER_PENALTY = 0.15
TIER_MARGIN = 0.8

SCORE_NOT_NUMERIC_MESSAGE = "점수를 숫자로 입력해 주세요."
WRONG_COUNT_INVALID_MESSAGE = "틀린 개수는 0 이상의 숫자로 입력해 주세요."
NOT_ENOUGH_DATA_MESSAGE = "해당 학교/년도의 커트라인 데이터가 부족합니다."
MEMBERS_ONLY_MESSAGE = "합격 커트라인 추정은 회원가입 후 이용할 수 있습니다."


@dataclass
class Prediction:
    tier: str
    strategy: str
    reason: str
    cutoff_low: float
    cutoff_high: float
    adjusted_score: float
    wrong_penalty: float
    margin: float
    sample_count: int


def parse_score_band(score_band: str) -> Optional[tuple[float, float]]:
    cleaned = re.sub(r"\s", "", score_band or "")
    match = SCORE_BAND_RE.search(cleaned)
    if not match:
        return None
    return float(match.group(1)), float(match.group(2))


def _average(values: list[float]) -> float:
    if not values:
        return 0.0
    return sum(values) / len(values)


def cutoff_stats(score_bands: Iterable[str]) -> Optional[tuple[float, float, int]]:
    """Average the parseable bands. Returns (low, high, sample_count) or None."""
    parsed = [band for band in map(parse_score_band, score_bands) if band]
    if not parsed:
        return None
    low = round(_average([band[0] for band in parsed]), 2)
    high = round(_average([band[1] for band in parsed]), 2)
    return low, high, len(parsed)


def evaluate(
    score: float,
    wrong_count: float,
    cutoff_low: float,
    cutoff_high: float,
    sample_count: int,
) -> Prediction:
    wrong_penalty = round(wrong_count * WRONG_ANSWER_PENALTY, 2)
    adjusted_score = round(score - wrong_penalty, 2)
    margin = round(adjusted_score - cutoff_low, 2)

    if margin >= TIER_MARGIN:
        tier, strategy = "합격권", "안정 지원"
        reason = "유효 점수가 최근 커트라인 하단보다 충분히 높습니다."
    elif margin >= -TIER_MARGIN:
        tier, strategy = "예비순위권", "적정 지원"
        reason = "커트라인 근접 구간입니다. 경쟁률 변수를 함께 보세요."
    else:
        tier, strategy = "탈락권", "상향 재검토"
        reason = "최근 커트라인 대비 격차가 있어 지원 전략 재조정이 필요합니다."

    return Prediction(
        tier=tier,
        strategy=strategy,
        reason=reason,
        cutoff_low=cutoff_low,
        cutoff_high=cutoff_high,
        adjusted_score=adjusted_score,
        wrong_penalty=wrong_penalty,
        margin=margin,
        sample_count=sample_count,
    )
