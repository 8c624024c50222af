import unittest
import uuid

from hapgyeokpan.tests.support import ApiTestCase


class PointsRouteTests(ApiTestCase):
    def test_points_require_identifier(self):
        response = self.client.get("/api/points/me")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "nickname 또는 userId가 필요합니다.")

    def test_points_merge_profile_and_name_ledgers(self):
        user, _ = self.make_member("p@example.com", username="pointer", nickname="포인터")
        self.db.update_profile(user.id, points=150, verification_level="cpa_accountant")
        shared = self.db.add_ledger_entry(
            profile_id=user.id, receiver_name="포인터", source="채택 답변", amount=80
        )
        self.db.add_ledger_entry(
            profile_id=None, receiver_name="포인터", source="채택 답변", amount=70
        )

        response = self.client.get("/api/points/me", params={"userId": user.id})
        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertEqual(payload["ownerName"], "포인터")
        self.assertEqual(payload["points"], 150)
        self.assertEqual(payload["verificationLevel"], "현직 회계사")
        ids = [row["id"] for row in payload["ledger"]]
        self.assertEqual(len(ids), 2)
        self.assertEqual(ids[-1], shared.id)

    def test_points_for_guest_sum_the_ledger(self):
        self.db.add_ledger_entry(profile_id=None, receiver_name="손님", source="채택 답변", amount=80)
        self.db.add_ledger_entry(profile_id=None, receiver_name="손님", source="채택 답변", amount=80)

        payload = self.client.get("/api/points/me", params={"nickname": "손님"}).json()
        self.assertEqual(payload["points"], 160)
        self.assertEqual(payload["verificationLevel"], "미인증")

    def test_points_find_profile_by_username(self):
        self.make_member("u@example.com", username="finder", nickname="찾기")
        payload = self.client.get("/api/points/me", params={"nickname": "finder"}).json()
        self.assertEqual(payload["ownerName"], "찾기")
        self.assertEqual(payload["points"], 0)


class ProfileRouteTests(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.user, self.token = self.make_member("me@example.com", username="me_user", nickname="기존닉")

    def _update(self, nickname, token=None, user_id=None):
        return self.client.post(
            "/api/profile/update",
            json={
                "accessToken": self.token if token is None else token,
                "userId": user_id or self.user.id,
                "nickname": nickname,
            },
        )

    def test_update_nickname(self):
        response = self._update("새닉네임")
        self.assertEqual(response.status_code, 200, response.text)
        self.assertEqual(
            response.json()["user"],
            {"id": self.user.id, "username": "me_user", "nickname": "새닉네임"},
        )
        self.assertEqual(self.db.get_profile(self.user.id).display_name, "새닉네임")

    def test_update_checks_token_and_owner(self):
        self.assertEqual(self._update("새닉네임", token="").status_code, 401)
        self.assertEqual(self._update("새닉네임", token="expired").status_code, 401)
        self.assertEqual(self._update("새닉네임", user_id=str(uuid.uuid4())).status_code, 403)
        self.assertEqual(self._update("새닉네임", user_id="not-a-uuid").status_code, 400)

    def test_update_validates_nickname(self):
        response = self._update("bad!name")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(
            response.json()["error"], "닉네임은 한글/영문/숫자/_/공백만 사용할 수 있습니다."
        )

    def test_duplicate_nickname_conflicts(self):
        self.make_member("other@example.com", username="other", nickname="선점닉")
        response = self._update("선점닉")
        self.assertEqual(response.status_code, 409)

    def test_keeping_own_nickname_is_allowed(self):
        self.assertEqual(self._update("기존닉").status_code, 200)


class UploadRouteTests(ApiTestCase):
    def test_upload_stores_file(self):
        response = self.client.post(
            "/api/upload", files={"file": ("proof.png", b"\x89PNG data", "image/png")}
        )
        self.assertEqual(response.status_code, 200, response.text)
        payload = response.json()
        self.assertEqual(payload["filename"], "proof.png")
        (path,) = self.storage.stored_objects.keys()
        self.assertTrue(path.startswith("posts/"))
        self.assertTrue(path.endswith(".png"))
        self.assertTrue(payload["url"].endswith(path))

    def test_upload_accepts_hwp_by_extension(self):
        response = self.client.post(
            "/api/upload",
            files={"file": ("notes.hwp", b"hwp", "application/octet-stream")},
        )
        self.assertEqual(response.status_code, 200)

    def test_upload_rejects_unknown_type(self):
        response = self.client.post(
            "/api/upload",
            files={"file": ("run.exe", b"MZ", "application/octet-stream")},
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "지원하지 않는 파일 형식입니다.")

    def test_upload_rejects_large_file(self):
        self.settings.upload_max_bytes = 4
        response = self.client.post(
            "/api/upload", files={"file": ("big.txt", b"12345", "text/plain")}
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "파일 크기는 5MB 이하여야 합니다.")

    def test_upload_requires_file(self):
        response = self.client.post("/api/upload")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "파일이 없습니다.")


class VerificationRouteTests(ApiTestCase):
    def _submit(self, **overrides):
        body = {
            "requesterName": "합격자",
            "examSlug": "transfer",
            "verificationType": "transfer_passer",
            "evidenceUrl": "https://example.test/proof.png",
        }
        body.update(overrides)
        return self.client.post("/api/verification/request", json=body)

    def test_submit_creates_pending_request(self):
        user, _ = self.make_member("v@example.com", username="verify", nickname="합격자")
        response = self._submit(userId=user.id, memo=" 잘 부탁드립니다 ")
        self.assertEqual(response.status_code, 200, response.text)
        self.assertEqual(response.json()["status"], "pending")
        record = self.db.get_verification_request(response.json()["id"])
        self.assertEqual(record.profile_id, user.id)
        self.assertEqual(record.memo, "잘 부탁드립니다")

    def test_submit_ignores_malformed_user_id(self):
        response = self._submit(userId="guest")
        record = self.db.get_verification_request(response.json()["id"])
        self.assertIsNone(record.profile_id)

    def test_submit_validation(self):
        self.assertEqual(
            self._submit(requesterName="a").json()["error"], "요청자 이름을 확인해 주세요."
        )
        self.assertEqual(
            self._submit(examSlug="civil-9").json()["error"], "시험 구분이 올바르지 않습니다."
        )
        self.assertEqual(
            self._submit(verificationType="").json()["error"], "인증 유형을 선택해 주세요."
        )
        self.assertEqual(
            self._submit(evidenceUrl="").json()["error"], "합격증 이미지를 업로드해 주세요."
        )

    def test_cpa_requests_are_read_only(self):
        response = self._submit(examSlug="cpa", verificationType="cpa_first_passer")
        self.assertEqual(response.status_code, 403)
        self.assertEqual(
            response.json()["error"],
            "현재 CPA는 읽기 전용입니다. 인증 신청은 추후 오픈 예정입니다.",
        )


if __name__ == "__main__":
    unittest.main()
