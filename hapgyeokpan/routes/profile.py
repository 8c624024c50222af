"""
Profile routes: nickname changes for the signed-in member.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from hapgyeokpan.auth import AuthClient
from hapgyeokpan.db import DbClient
from hapgyeokpan.dependencies import get_auth_client, get_db_client
from hapgyeokpan.errors import ApiError
from hapgyeokpan.schemas import ProfileUpdateRequest, ProfileUpdateResponse, ProfileUser
from hapgyeokpan.validation import is_valid_uuid, validate_nickname

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/profile", tags=["profile"])


@router.post("/update", response_model=ProfileUpdateResponse)
def update_profile(
    payload: ProfileUpdateRequest,
    db: DbClient = Depends(get_db_client),
    auth: AuthClient = Depends(get_auth_client),
):
    access_token = payload.access_token.strip()
    user_id = payload.user_id.strip()
    nickname = payload.nickname.strip()

    if not access_token:
        raise ApiError(status_code=401, detail="인증 토큰이 없습니다.")
    if not is_valid_uuid(user_id):
        raise ApiError(status_code=400, detail="유효하지 않은 사용자 정보입니다.")
    nickname_error = validate_nickname(nickname)
    if nickname_error:
        raise ApiError(status_code=400, detail=nickname_error)

    user = auth.get_user(access_token)
    if not user:
        logger.info("Profile update rejected: token did not resolve")
        raise ApiError(status_code=401, detail="인증이 만료되었습니다. 다시 로그인해 주세요.")
    if user.id != user_id:
        raise ApiError(status_code=403, detail="본인 계정만 수정할 수 있습니다.")

    if db.find_profile(display_name=nickname, exclude_id=user_id):
        raise ApiError(status_code=409, detail="이미 사용 중인 닉네임입니다.")

    profile = db.update_profile(user_id, display_name=nickname)
    return ProfileUpdateResponse(
        user=ProfileUser(
            id=user_id,
            username=(profile.username if profile else None) or "",
            nickname=(profile.display_name if profile else None) or nickname,
        )
    )
