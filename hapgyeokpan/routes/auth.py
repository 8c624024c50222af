"""
Account routes: availability checks, username login, signup, email codes and social OAuth glue.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Optional, Union
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Query
from fastapi.responses import RedirectResponse

from hapgyeokpan.auth import AuthClient, AuthUser
from hapgyeokpan.config import Settings, get_settings
from hapgyeokpan.db import DbClient
from hapgyeokpan.dependencies import get_auth_client, get_db_client
from hapgyeokpan.errors import ApiError, AuthError, StoreError
from hapgyeokpan.schemas import (
    AvailabilityResponse,
    CheckAvailabilityRequest,
    LoginRequest,
    OAuthFinalizeRequest,
    OkResponse,
    SendCodeRequest,
    SessionResponse,
    SessionTokens,
    SessionUser,
    SignupRequest,
)
from hapgyeokpan.validation import normalize_next_path, sanitize_username

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

SOCIAL_PROVIDERS = ("kakao", "naver", "google")
INVALID_CREDENTIALS_MESSAGE = "아이디 또는 비밀번호가 올바르지 않습니다."
INVALID_EMAIL_MESSAGE = "이메일 주소가 올바르지 않습니다."


@router.post("/check-availability", response_model=AvailabilityResponse)
def check_availability(
    payload: CheckAvailabilityRequest,
    db: DbClient = Depends(get_db_client),
    auth: AuthClient = Depends(get_auth_client),
):
    username = payload.username.strip()
    nickname = payload.nickname.strip()
    email = payload.email.strip()
    if not username and not nickname and not email:
        raise ApiError(status_code=400, detail="값이 없습니다.")

    if username:
        stage, lookup = "username", lambda: db.find_profile(username=username)
    elif nickname:
        stage, lookup = "nickname", lambda: db.find_profile(display_name=nickname)
    else:
        stage, lookup = "email", lambda: auth.find_user_by_email(email)

    try:
        existing = lookup()
    except (StoreError, AuthError) as exc:
        raise ApiError(status_code=400, detail=exc.message, extra={"stage": stage}) from exc
    return AvailabilityResponse(available=existing is None)


@router.post("/login", response_model=SessionResponse)
def login(
    payload: LoginRequest,
    db: DbClient = Depends(get_db_client),
    auth: AuthClient = Depends(get_auth_client),
):
    username = payload.username.strip()
    password = payload.password
    if not username or not password:
        raise ApiError(status_code=400, detail="아이디와 비밀번호를 입력해 주세요.")

    profile = db.find_profile(username=username)
    if not profile:
        logger.info("Login failed: unknown username %s", username)
        raise ApiError(status_code=401, detail=INVALID_CREDENTIALS_MESSAGE)

    user = auth.get_user_by_id(profile.id)
    if not user or not user.email:
        logger.info("Login failed: no auth user for profile %s", profile.id)
        raise ApiError(status_code=401, detail=INVALID_CREDENTIALS_MESSAGE)

    try:
        session = auth.sign_in_with_password(user.email, password)
    except AuthError as exc:
        logger.info("Login failed for %s: %s", username, exc.message)
        raise ApiError(status_code=401, detail=INVALID_CREDENTIALS_MESSAGE) from exc

    return SessionResponse(
        user=SessionUser(
            id=session.user.id,
            email=session.user.email,
            username=username,
            nickname=profile.display_name or username,
        ),
        session=SessionTokens(
            access_token=session.access_token,
            refresh_token=session.refresh_token,
            expires_at=session.expires_at,
        ),
    )


@router.post("/signup", response_model=OkResponse)
def signup(
    payload: SignupRequest,
    db: DbClient = Depends(get_db_client),
    auth: AuthClient = Depends(get_auth_client),
    settings: Settings = Depends(get_settings),
):
    if not settings.enable_email_auth:
        raise ApiError(status_code=403, detail="소셜 회원가입으로 이용해 주세요.")

    username = payload.username.strip()
    nickname = payload.nickname.strip()
    email = payload.email.strip()
    password = payload.password

    if len(username) < 3:
        raise ApiError(status_code=400, detail="아이디는 3자 이상이어야 합니다.")
    if len(nickname) < 2:
        raise ApiError(status_code=400, detail="닉네임은 2자 이상이어야 합니다.")
    if "@" not in email:
        raise ApiError(status_code=400, detail=INVALID_EMAIL_MESSAGE)
    if len(password) < 6:
        raise ApiError(status_code=400, detail="비밀번호는 6자 이상이어야 합니다.")

    try:
        user = auth.create_user(
            email, password, {"username": username, "nickname": nickname}
        )
    except AuthError as exc:
        raise ApiError(status_code=400, detail=exc.message or "계정 생성 실패") from exc

    db.upsert_profile(
        user.id,
        username=username,
        display_name=nickname,
        points=0,
        verification_level="none",
    )
    logger.info("Created account %s (%s)", user.id, username)
    return OkResponse()


@router.post("/send-code", response_model=OkResponse)
def send_code(
    payload: SendCodeRequest, auth: AuthClient = Depends(get_auth_client)
):
    email = payload.email.strip()
    if "@" not in email:
        raise ApiError(status_code=400, detail=INVALID_EMAIL_MESSAGE)
    auth.send_otp(email, should_create_user=True)
    return OkResponse()


def _signup_redirect(settings: Settings, error: str) -> RedirectResponse:
    return RedirectResponse(f"{settings.site_url}/signup?{urlencode({'error': error})}")


@router.get("/oauth/start")
def oauth_start(
    provider: Optional[str] = Query(default=None),
    next_path: Optional[str] = Query(default=None, alias="next"),
    auth: AuthClient = Depends(get_auth_client),
    settings: Settings = Depends(get_settings),
):
    if not settings.enable_social_auth:
        return _signup_redirect(settings, "social_disabled")
    if provider not in SOCIAL_PROVIDERS:
        return _signup_redirect(settings, "invalid_provider")
    configured = settings.supabase_url and settings.supabase_anon_key
    if not configured and not settings.use_in_memory_backends:
        return _signup_redirect(settings, "server_config")

    callback = (
        f"{settings.site_url}/auth/callback?"
        f"{urlencode({'next': normalize_next_path(next_path)})}"
    )
    try:
        url = auth.oauth_authorize_url(provider, callback)
    except AuthError as exc:
        logger.warning("OAuth start failed for %s: %s", provider, exc.message)
        return _signup_redirect(settings, "oauth_start_failed")
    if not url:
        return _signup_redirect(settings, "oauth_start_failed")
    return RedirectResponse(url)


def find_available_username(db: DbClient, seed: str, user_id: str) -> str:
    """First free username derived from the seed, suffixing _1.._49 on collision."""
    base = sanitize_username(seed) or f"user_{user_id[:8]}"
    for index in range(50):
        candidate = base if index == 0 else f"{base[:20]}_{index}"
        try:
            holder = db.find_profile(username=candidate)
        except StoreError as exc:
            logger.warning("Username lookup failed for %s: %s", candidate, exc.message)
            continue
        if not holder or holder.id == user_id:
            return candidate
    return f"user_{user_id.replace('-', '')[:12]}"


def build_display_name(metadata: dict[str, Any], email: str, fallback: str) -> str:
    for key in ("nickname", "name", "full_name", "user_name"):
        value = metadata.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()[:30]
    if email:
        return email.split("@")[0][:30]
    return fallback[:30]


def _username_seed(user: AuthUser) -> str:
    preferred = user.user_metadata.get("preferred_username")
    if isinstance(preferred, str) and preferred:
        return preferred
    if user.email:
        local = user.email.split("@")[0]
        if local:
            return local
    provider = user.app_metadata.get("provider")
    if not isinstance(provider, str):
        provider = "social"
    return f"{provider}_{user.id[:8]}"


def _parse_expires_at(value: Any) -> Optional[Union[int, float]]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return int(number) if number.is_integer() else number


@router.post("/oauth/finalize", response_model=SessionResponse)
def oauth_finalize(
    payload: OAuthFinalizeRequest,
    db: DbClient = Depends(get_db_client),
    auth: AuthClient = Depends(get_auth_client),
):
    access_token = payload.access_token.strip()
    if not access_token:
        raise ApiError(status_code=400, detail="토큰이 없습니다.")

    user = auth.get_user(access_token)
    if not user:
        raise ApiError(status_code=401, detail="소셜 인증 사용자 확인 실패")

    existing = db.get_profile(user.id)
    if existing and existing.username and len(existing.username) >= 3:
        username = existing.username
    else:
        username = find_available_username(db, _username_seed(user), user.id)

    if existing and existing.display_name and len(existing.display_name.strip()) >= 2:
        display_name = existing.display_name
    else:
        display_name = build_display_name(user.user_metadata, user.email, username)

    db.upsert_profile(user.id, username=username, display_name=display_name)

    return SessionResponse(
        user=SessionUser(
            id=user.id, email=user.email, username=username, nickname=display_name
        ),
        session=SessionTokens(
            access_token=access_token,
            refresh_token=payload.refresh_token.strip(),
            expires_at=_parse_expires_at(payload.expires_at),
        ),
    )
