"""
Request-time validation helpers shared by the route modules.
"""

from __future__ import annotations

import math
import re
from typing import Any, Optional
from urllib.parse import unquote

UUID_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE
)
NICKNAME_RE = re.compile(r"^[a-zA-Z0-9가-힣_ ]+$")
USERNAME_STRIP_RE = re.compile(r"[^a-z0-9_]")
REFERER_BOARD_RE = re.compile(r"/c/([^/]+)/([^/]+)(?:/|$)")

VOTABLE_EXAMS = ("transfer", "cpa")
ANONYMOUS_AUTHOR = "익명"


def is_valid_uuid(value: Optional[str]) -> bool:
    return bool(value) and bool(UUID_RE.match(value))


def clean_text(value: Any, max_length: Optional[int] = None) -> str:
    """Trim a request value to a string, dropping non-string input."""
    if not isinstance(value, str):
        return ""
    text = value.strip()
    if max_length is not None:
        text = text[:max_length]
    return text


def author_or_anonymous(value: Any) -> str:
    name = clean_text(value)
    return name if len(name) >= 2 else ANONYMOUS_AUTHOR


def sanitize_username(value: str) -> str:
    normalized = USERNAME_STRIP_RE.sub("", (value or "").lower())
    if len(normalized) >= 3:
        return normalized[:24]
    return ""


def validate_nickname(value: str) -> Optional[str]:
    """Return an error message for an invalid nickname, or None."""
    nickname = (value or "").strip()
    if len(nickname) < 2:
        return "닉네임은 2자 이상이어야 합니다."
    if len(nickname) > 20:
        return "닉네임은 20자 이하여야 합니다."
    if not NICKNAME_RE.match(nickname):
        return "닉네임은 한글/영문/숫자/_/공백만 사용할 수 있습니다."
    return None


def normalize_next_path(value: Optional[str]) -> str:
    if not value or not value.startswith("/") or value.startswith("//"):
        return "/"
    return value


def resolve_votable_exam(value: str) -> Optional[str]:
    return value if value in VOTABLE_EXAMS else None


def board_from_referer(referer: str) -> tuple[str, str]:
    """Extract (exam_slug, board_slug) from a /c/<exam>/<board> referer URL."""
    match = REFERER_BOARD_RE.search(referer or "")
    if not match:
        return "", ""
    return unquote(match.group(1)), unquote(match.group(2))


def get_bearer_token(authorization: Optional[str]) -> str:
    if not authorization:
        return ""
    parts = authorization.split(" ")
    if len(parts) < 2 or parts[0].lower() != "bearer":
        return ""
    return parts[1].strip()


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves toward +infinity."""
    return int(math.floor(value + 0.5))


def to_number(value: Any) -> Optional[float]:
    """Coerce a JSON number or numeric string to a finite float, else None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None
