"""
Instructor ranking routes: public aggregated ranking and one-vote-per-user voting.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends

from hapgyeokpan.auth import AuthUser
from hapgyeokpan.config import Settings, get_settings
from hapgyeokpan.db import DbClient
from hapgyeokpan.dependencies import get_current_user, get_db_client
from hapgyeokpan.errors import LOGIN_REQUIRED_MESSAGE, ApiError
from hapgyeokpan.ranking import aggregate_rankings
from hapgyeokpan.routes.common import UNSUPPORTED_EXAM_MESSAGE, ensure_exam_readable, iso
from hapgyeokpan.schemas import (
    RankingItem,
    RankingsResponse,
    VoteRequest,
    VoteResponse,
    VoteStatusResponse,
)
from hapgyeokpan.validation import resolve_votable_exam

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/rankings", tags=["rankings"])

PUBLIC_RANKING_LIMIT = 100


@router.get("/{exam}", response_model=RankingsResponse)
def public_rankings(
    exam: str,
    db: DbClient = Depends(get_db_client),
    settings: Settings = Depends(get_settings),
):
    ensure_exam_readable(settings, exam)
    entries, total_votes = aggregate_rankings(
        db.list_rankings(exam, limit=PUBLIC_RANKING_LIMIT), db.list_votes(exam)
    )
    return RankingsResponse(
        total_votes=total_votes,
        rankings=[
            RankingItem(
                id=entry.id,
                exam_slug=entry.exam_slug,
                subject=entry.subject,
                instructor_name=entry.instructor_name,
                rank=entry.rank,
                vote_count=entry.vote_count,
                vote_percent=entry.vote_percent,
            )
            for entry in entries
        ],
    )


def _voting_user(exam: str, settings: Settings, user: Optional[AuthUser]) -> AuthUser:
    # Exam checks come before the login check.
    if not resolve_votable_exam(exam):
        raise ApiError(status_code=400, detail=UNSUPPORTED_EXAM_MESSAGE)
    ensure_exam_readable(settings, exam)
    if not user:
        raise ApiError(status_code=401, detail=LOGIN_REQUIRED_MESSAGE)
    return user


@router.get("/{exam}/vote", response_model=VoteStatusResponse)
def vote_status(
    exam: str,
    user: Optional[AuthUser] = Depends(get_current_user),
    db: DbClient = Depends(get_db_client),
    settings: Settings = Depends(get_settings),
):
    voter = _voting_user(exam, settings, user)
    vote = db.find_vote(exam, voter.id)
    return VoteStatusResponse(
        has_voted=vote is not None,
        instructor_name=vote.instructor_name if vote else None,
        voted_at=iso(vote.created_at) if vote else None,
    )


@router.post("/{exam}/vote", response_model=VoteResponse)
def cast_vote(
    exam: str,
    payload: VoteRequest,
    user: Optional[AuthUser] = Depends(get_current_user),
    db: DbClient = Depends(get_db_client),
    settings: Settings = Depends(get_settings),
):
    voter = _voting_user(exam, settings, user)
    instructor_name = payload.instructor_name.strip()
    if not instructor_name:
        raise ApiError(status_code=400, detail="강사명을 선택해 주세요.")
    if not db.find_ranking(exam, instructor_name):
        raise ApiError(status_code=400, detail="투표 가능한 강사가 아닙니다.")

    previous = db.find_vote(exam, voter.id)
    if previous:
        if previous.instructor_name == instructor_name:
            return VoteResponse(
                already_voted=True,
                instructor_name=previous.instructor_name,
                voted_at=iso(previous.created_at),
            )
        raise ApiError(
            status_code=409,
            detail=f"이미 투표를 완료했습니다. ({previous.instructor_name})",
            extra={
                "instructorName": previous.instructor_name,
                "votedAt": iso(previous.created_at),
            },
        )

    db.create_vote(exam, instructor_name, voter.id)
    logger.info("Recorded %s vote for %s", exam, instructor_name)
    return VoteResponse(already_voted=False, instructor_name=instructor_name)
