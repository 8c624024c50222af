"""
Helpers shared by the route modules: feature-flag gating and time formatting.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from hapgyeokpan.config import Settings
from hapgyeokpan.errors import ApiError

CPA_DISABLED_MESSAGE = "CPA 서비스 비활성화 상태입니다."
CPA_WRITE_DISABLED_MESSAGE = "현재 CPA 서비스는 비활성화 상태입니다."
UNSUPPORTED_EXAM_MESSAGE = "지원하지 않는 시험 카테고리입니다."


def ensure_exam_readable(settings: Settings, exam_slug: str) -> None:
    if not settings.is_exam_enabled(exam_slug):
        raise ApiError(status_code=404, detail=CPA_DISABLED_MESSAGE)


def ensure_exam_writable(
    settings: Settings,
    exam_slug: str,
    read_only_message: str,
    disabled_message: str = CPA_WRITE_DISABLED_MESSAGE,
) -> None:
    if not settings.is_exam_enabled(exam_slug):
        raise ApiError(status_code=403, detail=disabled_message)
    if not settings.is_exam_writable(exam_slug):
        raise ApiError(status_code=403, detail=read_only_message)


def iso(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


def relative_time(value: Optional[datetime], now: Optional[datetime] = None) -> str:
    if value is None:
        return "-"
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)
    minutes = int((now - value).total_seconds() // 60)
    hours = minutes // 60
    days = hours // 24
    if minutes < 1:
        return "방금 전"
    if minutes < 60:
        return f"{minutes}분 전"
    if hours < 24:
        return f"{hours}시간 전"
    if days < 7:
        return f"{days}일 전"
    return f"{value.year}. {value.month}. {value.day}."
