"""
Error types shared by the clients and the HTTP layer.
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import HTTPException

SERVER_ERROR_MESSAGE = "서버 오류가 발생했습니다."
INVALID_REQUEST_MESSAGE = "요청 형식이 올바르지 않습니다."
LOGIN_REQUIRED_MESSAGE = "로그인이 필요합니다."
ADMIN_REQUIRED_MESSAGE = "관리자 권한이 필요합니다."


class StoreError(Exception):
    """Raised when the backing store rejects a query or mutation."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AuthError(Exception):
    """Raised when the auth provider rejects a request."""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ApiError(HTTPException):
    """HTTPException carrying extra fields for the JSON error body."""

    def __init__(
        self,
        status_code: int,
        detail: str,
        extra: Optional[dict[str, Any]] = None,
    ):
        super().__init__(status_code=status_code, detail=detail)
        self.extra = extra or {}
