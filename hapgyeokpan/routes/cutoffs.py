"""
Cutoff scores, the cutoff predictor, daily briefings and the exam calendar.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query

from hapgyeokpan import catalog
from hapgyeokpan.auth import AuthUser
from hapgyeokpan.config import Settings, get_settings
from hapgyeokpan.db import DbClient
from hapgyeokpan.dependencies import get_db_client, require_user
from hapgyeokpan.errors import ApiError, StoreError
from hapgyeokpan.predictor import (
    NOT_ENOUGH_DATA_MESSAGE,
    SCORE_NOT_NUMERIC_MESSAGE,
    WRONG_COUNT_INVALID_MESSAGE,
    cutoff_stats,
    evaluate,
)
from hapgyeokpan.routes.common import ensure_exam_readable, iso
from hapgyeokpan.schedule import build_schedule
from hapgyeokpan.schemas import (
    BriefingItem,
    BriefingsResponse,
    CutoffItem,
    CutoffsResponse,
    PredictRequest,
    PredictResponse,
    ScheduleItem,
    ScheduleResponse,
)
from hapgyeokpan.validation import round_half_up, to_number

logger = logging.getLogger(__name__)

router = APIRouter(tags=["cutoffs"])

CUTOFF_LIST_LIMIT = 30
BRIEFING_LIST_LIMIT = 10


def _load_cutoffs(db: DbClient, exam: str, limit: Optional[int]) -> tuple[list[CutoffItem], str]:
    try:
        rows = db.list_cutoffs(exam, limit=limit)
    except StoreError as exc:
        logger.warning("Cutoff read failed for %s: %s", exam, exc.message)
        rows = []
    if rows:
        return [
            CutoffItem(
                id=row.id,
                exam_slug=row.exam_slug,
                university=row.university,
                major=row.major,
                year=row.year,
                score_band=row.score_band,
                note=row.note or "",
            )
            for row in rows
        ], "db"
    return [
        CutoffItem(
            id=seed.id,
            exam_slug=seed.exam_slug,
            university=seed.university,
            major=seed.major,
            year=seed.year,
            score_band=seed.score_band,
            note=seed.note,
        )
        for seed in catalog.seed_cutoffs(exam)
    ], "seed"


@router.get("/cutoffs", response_model=CutoffsResponse)
def list_cutoffs(
    exam: str = Query(default="transfer"),
    db: DbClient = Depends(get_db_client),
    settings: Settings = Depends(get_settings),
):
    exam = exam.strip() or "transfer"
    ensure_exam_readable(settings, exam)
    cutoffs, source = _load_cutoffs(db, exam, CUTOFF_LIST_LIMIT)
    return CutoffsResponse(source=source, cutoffs=cutoffs)


@router.post("/cutoffs/predict", response_model=PredictResponse)
def predict(
    payload: PredictRequest,
    user: AuthUser = Depends(require_user),
    db: DbClient = Depends(get_db_client),
    settings: Settings = Depends(get_settings),
):
    """Classify a score against the averaged score bands of one university and year."""
    exam = payload.exam.strip() or "transfer"
    ensure_exam_readable(settings, exam)

    university = payload.university.strip()
    year = to_number(payload.year)
    if not university or year is None:
        raise ApiError(status_code=400, detail="학교와 년도를 선택해 주세요.")
    score = to_number(payload.score)
    if score is None:
        raise ApiError(status_code=400, detail=SCORE_NOT_NUMERIC_MESSAGE)
    wrong_count = 0.0 if payload.wrong_count is None else to_number(payload.wrong_count)
    if wrong_count is None or wrong_count < 0:
        raise ApiError(status_code=400, detail=WRONG_COUNT_INVALID_MESSAGE)

    target_year = round_half_up(year)
    cutoffs, _ = _load_cutoffs(db, exam, None)
    stats = cutoff_stats(
        row.score_band
        for row in cutoffs
        if row.university == university and row.year == target_year
    )
    if not stats:
        raise ApiError(status_code=404, detail=NOT_ENOUGH_DATA_MESSAGE)

    low, high, count = stats
    result = evaluate(score, wrong_count, low, high, count)
    return PredictResponse(
        university=university,
        year=target_year,
        tier=result.tier,
        strategy=result.strategy,
        reason=result.reason,
        cutoff_low=result.cutoff_low,
        cutoff_high=result.cutoff_high,
        adjusted_score=result.adjusted_score,
        wrong_penalty=result.wrong_penalty,
        margin=result.margin,
        sample_count=result.sample_count,
    )


@router.get("/daily/{exam}", response_model=BriefingsResponse)
def daily_briefings(
    exam: str,
    db: DbClient = Depends(get_db_client),
    settings: Settings = Depends(get_settings),
):
    ensure_exam_readable(settings, exam)
    try:
        rows = db.list_daily_briefings(exam, limit=BRIEFING_LIST_LIMIT)
    except StoreError as exc:
        logger.warning("Briefing read failed for %s: %s", exam, exc.message)
        rows = []

    if rows:
        briefings = [
            BriefingItem(
                id=row.id,
                exam_slug=row.exam_slug,
                title=row.title,
                summary=row.summary,
                source_label=row.source_label or "",
                published_at=iso(row.published_at),
            )
            for row in rows
        ]
        return BriefingsResponse(source="db", briefings=briefings)

    briefings = [
        BriefingItem(
            id=seed.id,
            exam_slug=seed.exam_slug,
            title=seed.title,
            summary=seed.summary,
            source_label=seed.source_label,
            published_at=seed.published_at,
        )
        for seed in catalog.seed_briefings(exam)
    ]
    return BriefingsResponse(source="seed", briefings=briefings)


@router.get("/schedule", response_model=ScheduleResponse)
def exam_schedule():
    today = date.today()
    return ScheduleResponse(
        today=today.isoformat(),
        exams=[
            ScheduleItem(
                id=entry.id,
                title=entry.title,
                date=entry.exam_date.isoformat(),
                days_left=entry.days_left,
                label=entry.label,
                is_soon=entry.is_soon,
            )
            for entry in build_schedule(today)
        ],
    )
