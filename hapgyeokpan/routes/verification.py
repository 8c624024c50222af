"""
Credential verification requests submitted by members.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from hapgyeokpan.config import Settings, get_settings
from hapgyeokpan.db import DbClient
from hapgyeokpan.dependencies import get_db_client
from hapgyeokpan.errors import ApiError
from hapgyeokpan.routes.common import ensure_exam_writable
from hapgyeokpan.schemas import VerificationSubmitRequest, VerificationSubmitResponse
from hapgyeokpan.validation import VOTABLE_EXAMS, is_valid_uuid

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/verification", tags=["verification"])


@router.post("/request", response_model=VerificationSubmitResponse)
def submit_verification(
    payload: VerificationSubmitRequest,
    db: DbClient = Depends(get_db_client),
    settings: Settings = Depends(get_settings),
):
    requester_name = payload.requester_name.strip()
    exam_slug = payload.exam_slug.strip()
    verification_type = payload.verification_type.strip()
    evidence_url = payload.evidence_url.strip()
    memo = (payload.memo or "").strip()
    user_id = (payload.user_id or "").strip()

    if len(requester_name) < 2:
        raise ApiError(status_code=400, detail="요청자 이름을 확인해 주세요.")
    if exam_slug not in VOTABLE_EXAMS:
        raise ApiError(status_code=400, detail="시험 구분이 올바르지 않습니다.")
    ensure_exam_writable(
        settings,
        exam_slug,
        "현재 CPA는 읽기 전용입니다. 인증 신청은 추후 오픈 예정입니다.",
        disabled_message="현재 CPA 인증은 비활성화 상태입니다.",
    )
    if not verification_type:
        raise ApiError(status_code=400, detail="인증 유형을 선택해 주세요.")
    if not evidence_url:
        raise ApiError(status_code=400, detail="합격증 이미지를 업로드해 주세요.")

    record = db.create_verification_request(
        profile_id=user_id if is_valid_uuid(user_id) else None,
        requester_name=requester_name,
        exam_slug=exam_slug,
        verification_type=verification_type,
        evidence_url=evidence_url,
        memo=memo or None,
    )
    logger.info("Verification request %s submitted by %s", record.id, requester_name)
    return VerificationSubmitResponse(id=record.id, status=record.status)
