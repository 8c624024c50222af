"""
Auth abstraction for Supabase GoTrue and an in-memory test implementation.
"""

from __future__ import annotations

import logging
import secrets
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol
from urllib.parse import urlencode

import requests

from hapgyeokpan.errors import AuthError

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 10


@dataclass
class AuthUser:
    id: str
    email: str = ""
    user_metadata: Dict[str, Any] = field(default_factory=dict)
    app_metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class AuthSession:
    access_token: str
    refresh_token: str
    expires_at: Optional[int]
    user: AuthUser


class AuthClient(Protocol):
    """Operations the API needs from the hosted auth provider."""

    def get_user(self, access_token: str) -> Optional[AuthUser]:
        ...

    def get_user_by_id(self, user_id: str) -> Optional[AuthUser]:
        ...

    def find_user_by_email(self, email: str) -> Optional[AuthUser]:
        ...

    def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        ...

    def create_user(
        self, email: str, password: str, user_metadata: Dict[str, Any]
    ) -> AuthUser:
        ...

    def send_otp(self, email: str, should_create_user: bool = True) -> None:
        ...

    def oauth_authorize_url(self, provider: str, redirect_to: str) -> str:
        ...


class InMemoryAuthClient:
    """Simple in-memory auth provider for development and tests."""

    def __init__(self, base_url: str = "https://auth.example.test"):
        self.base_url = base_url
        self.users: Dict[str, AuthUser] = {}
        self.passwords: Dict[str, str] = {}
        self.tokens: Dict[str, str] = {}
        self.sent_codes: list[str] = []

    def reset(self) -> None:
        self.users.clear()
        self.passwords.clear()
        self.tokens.clear()
        self.sent_codes.clear()

    def add_user(
        self,
        email: str,
        password: str = "",
        user_metadata: Optional[Dict[str, Any]] = None,
        app_metadata: Optional[Dict[str, Any]] = None,
        user_id: Optional[str] = None,
    ) -> AuthUser:
        user = AuthUser(
            id=user_id or str(uuid.uuid4()),
            email=email,
            user_metadata=dict(user_metadata or {}),
            app_metadata=dict(app_metadata or {}),
        )
        self.users[user.id] = user
        self.passwords[user.id] = password
        return user

    def issue_token(self, user_id: str) -> str:
        token = f"token-{secrets.token_hex(8)}"
        self.tokens[token] = user_id
        return token

    def get_user(self, access_token: str) -> Optional[AuthUser]:
        user_id = self.tokens.get(access_token.strip())
        return self.users.get(user_id) if user_id else None

    def get_user_by_id(self, user_id: str) -> Optional[AuthUser]:
        return self.users.get(user_id)

    def find_user_by_email(self, email: str) -> Optional[AuthUser]:
        wanted = email.strip().lower()
        for user in self.users.values():
            if user.email.lower() == wanted:
                return user
        return None

    def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        user = self.find_user_by_email(email)
        if not user or self.passwords.get(user.id) != password:
            raise AuthError("Invalid login credentials", status_code=400)
        return AuthSession(
            access_token=self.issue_token(user.id),
            refresh_token=f"refresh-{secrets.token_hex(8)}",
            expires_at=int(time.time()) + 3600,
            user=user,
        )

    def create_user(
        self, email: str, password: str, user_metadata: Dict[str, Any]
    ) -> AuthUser:
        if self.find_user_by_email(email):
            raise AuthError(
                "A user with this email address has already been registered",
                status_code=422,
            )
        return self.add_user(email, password, user_metadata)

    def send_otp(self, email: str, should_create_user: bool = True) -> None:
        if should_create_user and not self.find_user_by_email(email):
            self.add_user(email)
        self.sent_codes.append(email)

    def oauth_authorize_url(self, provider: str, redirect_to: str) -> str:
        query = urlencode({"provider": provider, "redirect_to": redirect_to})
        return f"{self.base_url}/auth/v1/authorize?{query}"


def _error_message(response: requests.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return f"HTTP {response.status_code}"
    if not isinstance(data, dict):
        return f"HTTP {response.status_code}"
    return (
        data.get("msg")
        or data.get("error_description")
        or data.get("message")
        or f"HTTP {response.status_code}"
    )


def _to_user(data: Dict[str, Any]) -> AuthUser:
    return AuthUser(
        id=data["id"],
        email=data.get("email") or "",
        user_metadata=data.get("user_metadata") or {},
        app_metadata=data.get("app_metadata") or {},
    )


class SupabaseAuthClient:
    """
    Supabase GoTrue client over the REST API.

    Anonymous calls use the anon key; admin calls use the service role key.
    """

    def __init__(self, url: str, anon_key: str, service_role_key: str | None = None):
        self.url = url.rstrip("/")
        self.anon_key = anon_key
        self.service_role_key = service_role_key
        self.session = requests.Session()

    def _headers(self, token: str | None = None, admin: bool = False) -> Dict[str, str]:
        key = self.anon_key
        if admin:
            if not self.service_role_key:
                raise AuthError("SUPABASE_SERVICE_ROLE_KEY is missing.", status_code=500)
            key = self.service_role_key
        return {
            "apikey": key,
            "Authorization": f"Bearer {token or key}",
            "Content-Type": "application/json",
        }

    def _request(self, method: str, path: str, **kwargs: Any) -> requests.Response:
        try:
            return self.session.request(
                method, f"{self.url}{path}", timeout=REQUEST_TIMEOUT, **kwargs
            )
        except requests.RequestException as exc:
            logger.warning("Auth request %s %s failed: %s", method, path, exc)
            raise AuthError(str(exc), status_code=502) from exc

    def get_user(self, access_token: str) -> Optional[AuthUser]:
        token = access_token.strip()
        if not token:
            return None
        resp = self._request("GET", "/auth/v1/user", headers=self._headers(token))
        if resp.status_code != 200:
            logger.info("Access token rejected: %s", _error_message(resp))
            return None
        return _to_user(resp.json())

    def get_user_by_id(self, user_id: str) -> Optional[AuthUser]:
        resp = self._request(
            "GET", f"/auth/v1/admin/users/{user_id}", headers=self._headers(admin=True)
        )
        if resp.status_code == 404:
            return None
        if resp.status_code != 200:
            raise AuthError(_error_message(resp), status_code=resp.status_code)
        return _to_user(resp.json())

    def find_user_by_email(self, email: str) -> Optional[AuthUser]:
        # GoTrue has no lookup by email; page through the admin listing.
        wanted = email.strip().lower()
        page = 1
        while True:
            resp = self._request(
                "GET",
                "/auth/v1/admin/users",
                headers=self._headers(admin=True),
                params={"page": page, "per_page": 1000},
            )
            if resp.status_code != 200:
                raise AuthError(_error_message(resp), status_code=resp.status_code)
            users = (resp.json() or {}).get("users") or []
            for data in users:
                if (data.get("email") or "").lower() == wanted:
                    return _to_user(data)
            if len(users) < 1000:
                return None
            page += 1

    def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        resp = self._request(
            "POST",
            "/auth/v1/token",
            params={"grant_type": "password"},
            headers=self._headers(),
            json={"email": email, "password": password},
        )
        if resp.status_code != 200:
            raise AuthError(_error_message(resp), status_code=resp.status_code)
        data = resp.json() or {}
        if not data.get("access_token") or not data.get("user"):
            raise AuthError("Session missing from sign-in response", status_code=401)
        return AuthSession(
            access_token=data["access_token"],
            refresh_token=data.get("refresh_token") or "",
            expires_at=data.get("expires_at"),
            user=_to_user(data["user"]),
        )

    def create_user(
        self, email: str, password: str, user_metadata: Dict[str, Any]
    ) -> AuthUser:
        resp = self._request(
            "POST",
            "/auth/v1/admin/users",
            headers=self._headers(admin=True),
            json={
                "email": email,
                "password": password,
                "email_confirm": True,
                "user_metadata": user_metadata,
            },
        )
        if resp.status_code not in (200, 201):
            raise AuthError(_error_message(resp), status_code=resp.status_code)
        return _to_user(resp.json())

    def send_otp(self, email: str, should_create_user: bool = True) -> None:
        resp = self._request(
            "POST",
            "/auth/v1/otp",
            headers=self._headers(),
            json={"email": email, "create_user": should_create_user},
        )
        if resp.status_code not in (200, 201):
            raise AuthError(_error_message(resp), status_code=resp.status_code)

    def oauth_authorize_url(self, provider: str, redirect_to: str) -> str:
        query = urlencode({"provider": provider, "redirect_to": redirect_to})
        return f"{self.url}/auth/v1/authorize?{query}"
