"""
Admin console routes: role bootstrap, ranking seeds, cutoff rows and verification review.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from hapgyeokpan.auth import AuthUser
from hapgyeokpan.config import Settings, get_settings
from hapgyeokpan.db import DbClient, VerificationRecord
from hapgyeokpan.dependencies import (
    ADMIN_ROLES,
    get_db_client,
    is_admin_user,
    require_admin,
    require_user,
)
from hapgyeokpan.errors import ApiError
from hapgyeokpan.points import VERIFICATION_LEVELS
from hapgyeokpan.ranking import aggregate_rankings
from hapgyeokpan.routes.common import UNSUPPORTED_EXAM_MESSAGE, ensure_exam_readable, iso
from hapgyeokpan.schemas import (
    AdminCutoffItem,
    AdminCutoffsResponse,
    AdminCutoffUpsertRequest,
    AdminDeleteRequest,
    AdminMeResponse,
    AdminRankingItem,
    AdminRankingsResponse,
    AdminRankingUpsertRequest,
    AdminUser,
    BootstrapResponse,
    VerificationItem,
    VerificationListResponse,
    VerificationReviewRequest,
    VerificationReviewResponse,
)
from hapgyeokpan.validation import (
    clean_text,
    resolve_votable_exam,
    round_half_up,
    sanitize_username,
    to_number,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])

CUTOFF_RESULT_TYPES = ("불합격", "추합", "최초합")
INPUT_BASIS_TYPES = ("wrong", "score")
REVIEW_DECISIONS = {"approve": "approved", "reject": "rejected"}


def _admin_exam(value: Optional[str], settings: Settings) -> str:
    exam = resolve_votable_exam((value or "").strip() or "transfer")
    if not exam:
        raise ApiError(status_code=400, detail=UNSUPPORTED_EXAM_MESSAGE)
    ensure_exam_readable(settings, exam)
    return exam


@router.get("/me", response_model=AdminMeResponse)
def admin_me(
    user: AuthUser = Depends(require_user),
    db: DbClient = Depends(get_db_client),
    settings: Settings = Depends(get_settings),
):
    emails = settings.admin_email_list
    return AdminMeResponse(
        user=AdminUser(id=user.id, email=user.email),
        is_admin=is_admin_user(db, settings, user),
        can_bootstrap=user.email.lower() in emails,
        admin_email_configured=bool(emails),
    )


@router.post("/bootstrap", response_model=BootstrapResponse)
def admin_bootstrap(
    user: AuthUser = Depends(require_user),
    db: DbClient = Depends(get_db_client),
    settings: Settings = Depends(get_settings),
):
    """Grant the admin role to a user whose email is listed in ADMIN_EMAILS."""
    if db.has_any_role(user.id, ADMIN_ROLES):
        return BootstrapResponse(is_admin=True, upgraded=False)
    if user.email.lower() not in settings.admin_email_list:
        raise ApiError(
            status_code=403,
            detail="관리자 승격 권한이 없습니다. ADMIN_EMAILS 설정을 확인해 주세요.",
        )

    if not db.get_profile(user.id):
        local = user.email.split("@")[0]
        db.upsert_profile(
            user.id,
            username=sanitize_username(local) or f"user_{user.id[:8]}",
            display_name=local[:30],
        )
    db.upsert_user_role(user.id, "admin")
    logger.info("Granted admin role to %s", user.id)
    return BootstrapResponse(is_admin=True, upgraded=True)


# Rankings


def _ranking_stats(db: DbClient, exam: str) -> AdminRankingsResponse:
    entries, total_votes = aggregate_rankings(db.list_rankings(exam), db.list_votes(exam))
    return AdminRankingsResponse(
        total_votes=total_votes,
        rankings=[
            AdminRankingItem(
                id=e.id,
                subject=e.subject,
                instructor_name=e.instructor_name,
                rank=e.rank,
                initial_rank=e.seed_rank,
                initial_votes=e.initial_votes,
                real_vote_count=e.real_vote_count,
                source_type=e.source_type,
                is_seed=e.is_seed,
                vote_count=e.vote_count,
                vote_percent=e.vote_percent,
            )
            for e in entries
        ],
    )


@router.get("/rankings/{exam}", response_model=AdminRankingsResponse)
def admin_rankings(
    exam: str,
    admin: AuthUser = Depends(require_admin),
    db: DbClient = Depends(get_db_client),
    settings: Settings = Depends(get_settings),
):
    return _ranking_stats(db, _admin_exam(exam, settings))


@router.post("/rankings/{exam}", response_model=AdminRankingsResponse)
def upsert_ranking(
    exam: str,
    payload: AdminRankingUpsertRequest,
    admin: AuthUser = Depends(require_admin),
    db: DbClient = Depends(get_db_client),
    settings: Settings = Depends(get_settings),
):
    exam = _admin_exam(exam, settings)
    subject = clean_text(payload.subject, 40)
    instructor_name = clean_text(payload.instructor_name, 40)
    if not subject or not instructor_name:
        raise ApiError(status_code=400, detail="subject, instructorName이 필요합니다.")

    existing = db.find_ranking(exam, instructor_name, subject=subject)
    next_rank = max(1, (db.max_ranking_rank(exam) or 0) + 1)

    initial_rank = to_number(payload.initial_rank)
    if initial_rank is not None:
        rank = max(1, round_half_up(initial_rank))
    else:
        rank = max(1, existing.rank if existing else next_rank)

    initial_votes = to_number(payload.initial_votes)
    if initial_votes is not None:
        votes = max(0, round_half_up(initial_votes))
    else:
        votes = max(0, (existing.confidence or 0) if existing else 0)

    db.upsert_ranking(
        exam,
        subject,
        instructor_name,
        rank=rank,
        confidence=votes,
        trend="-",
        source_type="admin",
        is_seed=False,
    )
    logger.info("Admin %s saved %s ranking for %s", admin.id, exam, instructor_name)
    return _ranking_stats(db, exam)


@router.delete("/rankings/{exam}", response_model=AdminRankingsResponse)
def delete_ranking(
    exam: str,
    payload: AdminDeleteRequest,
    admin: AuthUser = Depends(require_admin),
    db: DbClient = Depends(get_db_client),
    settings: Settings = Depends(get_settings),
):
    exam = _admin_exam(exam, settings)
    ranking_id = clean_text(payload.id, 80)
    if not ranking_id:
        raise ApiError(status_code=400, detail="삭제할 id가 필요합니다.")

    row = db.get_ranking(ranking_id, exam)
    db.delete_ranking(ranking_id, exam)
    if row:
        removed = db.delete_votes(exam, row.instructor_name)
        logger.info(
            "Admin %s removed %s ranking %s and %d votes",
            admin.id,
            exam,
            row.instructor_name,
            removed,
        )
    return _ranking_stats(db, exam)


# Cutoffs


def _cutoff_list(db: DbClient, exam: str) -> AdminCutoffsResponse:
    return AdminCutoffsResponse(
        cutoffs=[
            AdminCutoffItem(
                id=row.id,
                exam_slug=row.exam_slug,
                university=row.university,
                major=row.major,
                year=row.year,
                result_type=row.score_band,
                note=row.note or "",
                input_basis=row.source if row.source in INPUT_BASIS_TYPES else "wrong",
            )
            for row in db.list_cutoffs(exam)
        ]
    )


@router.get("/cutoffs", response_model=AdminCutoffsResponse)
def admin_cutoffs(
    exam: Optional[str] = Query(default=None),
    admin: AuthUser = Depends(require_admin),
    db: DbClient = Depends(get_db_client),
    settings: Settings = Depends(get_settings),
):
    return _cutoff_list(db, _admin_exam(exam, settings))


@router.post("/cutoffs", response_model=AdminCutoffsResponse)
def upsert_cutoff(
    payload: AdminCutoffUpsertRequest,
    admin: AuthUser = Depends(require_admin),
    db: DbClient = Depends(get_db_client),
    settings: Settings = Depends(get_settings),
):
    exam = _admin_exam(clean_text(payload.exam, 20), settings)
    university = clean_text(payload.university, 40)
    major = clean_text(payload.major, 40)
    year = to_number(payload.year)
    result_type = payload.result_type.strip()
    input_basis = payload.input_basis.strip()
    note = clean_text(payload.note, 120)

    if (
        not university
        or not major
        or year is None
        or result_type not in CUTOFF_RESULT_TYPES
    ):
        raise ApiError(
            status_code=400, detail="university, major, year, resultType이 필요합니다."
        )

    db.upsert_cutoff(
        exam,
        university,
        major,
        round_half_up(year),
        score_band=result_type,
        note=note or None,
        source=input_basis if input_basis in INPUT_BASIS_TYPES else "wrong",
    )
    return _cutoff_list(db, exam)


@router.delete("/cutoffs", response_model=AdminCutoffsResponse)
def delete_cutoff(
    payload: AdminDeleteRequest,
    admin: AuthUser = Depends(require_admin),
    db: DbClient = Depends(get_db_client),
    settings: Settings = Depends(get_settings),
):
    cutoff_id = clean_text(payload.id, 80)
    if not cutoff_id:
        raise ApiError(status_code=400, detail="삭제할 id가 필요합니다.")
    exam = _admin_exam(clean_text(payload.exam, 20), settings)
    db.delete_cutoff(cutoff_id, exam)
    return _cutoff_list(db, exam)


# Verification review


def _verification_item(record: VerificationRecord) -> VerificationItem:
    return VerificationItem(
        id=record.id,
        profile_id=record.profile_id,
        requester_name=record.requester_name,
        exam_slug=record.exam_slug,
        verification_type=record.verification_type,
        evidence_url=record.evidence_url,
        memo=record.memo,
        status=record.status,
        reviewed_by=record.reviewed_by,
        reviewed_at=iso(record.reviewed_at),
        created_at=iso(record.created_at),
    )


@router.get("/verifications", response_model=VerificationListResponse)
def list_verifications(
    status: Optional[str] = Query(default=None),
    admin: AuthUser = Depends(require_admin),
    db: DbClient = Depends(get_db_client),
):
    rows = db.list_verification_requests(status=(status or "").strip() or None)
    return VerificationListResponse(requests=[_verification_item(r) for r in rows])


@router.post("/verifications/{request_id}/review", response_model=VerificationReviewResponse)
def review_verification(
    request_id: str,
    payload: VerificationReviewRequest,
    admin: AuthUser = Depends(require_admin),
    db: DbClient = Depends(get_db_client),
):
    status = REVIEW_DECISIONS.get(payload.decision.strip())
    if not status:
        raise ApiError(status_code=400, detail="decision은 approve 또는 reject여야 합니다.")
    if not db.get_verification_request(request_id):
        raise ApiError(status_code=404, detail="인증 요청을 찾을 수 없습니다.")

    record = db.update_verification_request(
        request_id, status=status, reviewed_by=admin.id
    )
    level = None
    if (
        status == "approved"
        and record.profile_id
        and record.verification_type in VERIFICATION_LEVELS
        and record.verification_type != "none"
    ):
        level = record.verification_type
        db.update_profile(record.profile_id, verification_level=level)
    logger.info("Admin %s %s verification %s", admin.id, status, request_id)
    return VerificationReviewResponse(
        request=_verification_item(record), verification_level=level
    )
