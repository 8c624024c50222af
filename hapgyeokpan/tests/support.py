"""Shared fixtures for the API test suites."""

import unittest

from fastapi.testclient import TestClient

from hapgyeokpan.app import create_app
from hapgyeokpan.auth import InMemoryAuthClient
from hapgyeokpan.config import Settings, get_settings
from hapgyeokpan.db import InMemoryDbClient
from hapgyeokpan.dependencies import get_auth_client, get_db_client, get_storage_client
from hapgyeokpan.storage import InMemoryStorageClient

ADMIN_EMAIL = "admin@example.com"


class ApiTestCase(unittest.TestCase):
    """Runs the app against fresh in-memory clients for every test."""

    settings_overrides: dict = {}

    def setUp(self):
        self.db = InMemoryDbClient()
        self.auth = InMemoryAuthClient()
        self.storage = InMemoryStorageClient()
        self.settings = Settings(
            use_in_memory_backends=True,
            admin_emails=ADMIN_EMAIL,
            site_url="https://hapgyeokpan.test",
            **self.settings_overrides,
        )

        app = create_app()
        app.dependency_overrides[get_db_client] = lambda: self.db
        app.dependency_overrides[get_auth_client] = lambda: self.auth
        app.dependency_overrides[get_storage_client] = lambda: self.storage
        app.dependency_overrides[get_settings] = lambda: self.settings
        self.client = TestClient(app, raise_server_exceptions=False)

    def make_member(self, email, username=None, nickname=None, password="secret1"):
        """Create an auth user with an optional profile and return (user, token)."""
        user = self.auth.add_user(email, password)
        if username or nickname:
            self.db.upsert_profile(user.id, username=username, display_name=nickname)
        return user, self.auth.issue_token(user.id)

    @staticmethod
    def bearer(token):
        return {"Authorization": f"Bearer {token}"}

    def create_post(self, exam="transfer", board="qa", author="작성자", title="질문", content="본문"):
        response = self.client.post(
            "/api/posts/create",
            json={
                "examSlug": exam,
                "boardSlug": board,
                "authorName": author,
                "title": title,
                "content": content,
            },
        )
        self.assertEqual(response.status_code, 200, response.text)
        return response.json()["id"]

    def create_comment(self, post_id, author="답변자", content="답변", parent_id=None):
        body = {"postId": post_id, "authorName": author, "content": content}
        if parent_id:
            body["parentId"] = parent_id
        response = self.client.post("/api/comments/create", json=body)
        self.assertEqual(response.status_code, 200, response.text)
        return response.json()["id"]
