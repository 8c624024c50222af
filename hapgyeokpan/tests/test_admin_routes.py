import unittest

from hapgyeokpan.tests.support import ADMIN_EMAIL, ApiTestCase


class AdminAccessTests(ApiTestCase):
    def test_me_requires_login(self):
        self.assertEqual(self.client.get("/api/admin/me").status_code, 401)

    def test_me_reports_bootstrap_rights(self):
        _, token = self.make_member(ADMIN_EMAIL.upper())
        payload = self.client.get("/api/admin/me", headers=self.bearer(token)).json()
        self.assertTrue(payload["isAdmin"])
        self.assertTrue(payload["canBootstrap"])
        self.assertTrue(payload["adminEmailConfigured"])

    def test_bootstrap_grants_admin_role(self):
        user, token = self.make_member(ADMIN_EMAIL)
        response = self.client.post("/api/admin/bootstrap", headers=self.bearer(token))
        self.assertEqual(response.status_code, 200, response.text)
        self.assertEqual(response.json(), {"ok": True, "isAdmin": True, "upgraded": True})
        self.assertTrue(self.db.has_any_role(user.id, ("admin",)))
        self.assertEqual(self.db.get_profile(user.id).username, "admin")

        again = self.client.post("/api/admin/bootstrap", headers=self.bearer(token))
        self.assertFalse(again.json()["upgraded"])

    def test_bootstrap_rejects_unlisted_email(self):
        _, token = self.make_member("nobody@example.com")
        response = self.client.post("/api/admin/bootstrap", headers=self.bearer(token))
        self.assertEqual(response.status_code, 403)

    def test_admin_routes_require_admin(self):
        _, token = self.make_member("nobody@example.com")
        self.assertEqual(self.client.get("/api/admin/rankings/transfer").status_code, 401)
        response = self.client.get("/api/admin/rankings/transfer", headers=self.bearer(token))
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()["error"], "관리자 권한이 필요합니다.")

    def test_moderator_role_counts_as_admin(self):
        user, token = self.make_member("mod@example.com")
        self.db.upsert_user_role(user.id, "moderator")
        response = self.client.get("/api/admin/cutoffs", headers=self.bearer(token))
        self.assertEqual(response.status_code, 200)


class AdminConsoleTests(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.admin, token = self.make_member(ADMIN_EMAIL)
        self.headers = self.bearer(token)

    def test_ranking_upsert_defaults_and_split(self):
        url = "/api/admin/rankings/transfer"
        first = self.client.post(
            url, json={"subject": "영어", "instructorName": "김영어", "initialVotes": 5}, headers=self.headers
        )
        self.assertEqual(first.status_code, 200, first.text)
        second = self.client.post(
            url, json={"subject": "수학", "instructorName": "박수학"}, headers=self.headers
        )
        rows = {r["instructorName"]: r for r in second.json()["rankings"]}
        self.assertEqual(rows["김영어"]["initialRank"], 1)
        self.assertEqual(rows["박수학"]["initialRank"], 2)
        self.assertEqual(rows["박수학"]["initialVotes"], 0)
        self.assertEqual(rows["김영어"]["sourceType"], "admin")
        self.assertFalse(rows["김영어"]["isSeed"])

        # Re-saving without numbers keeps the stored rank and votes.
        third = self.client.post(
            url, json={"subject": "영어", "instructorName": "김영어"}, headers=self.headers
        )
        rows = {r["instructorName"]: r for r in third.json()["rankings"]}
        self.assertEqual(rows["김영어"]["initialVotes"], 5)
        self.assertEqual(rows["김영어"]["initialRank"], 1)
        self.assertEqual(third.json()["totalVotes"], 5)

    def test_ranking_upsert_requires_names(self):
        response = self.client.post(
            "/api/admin/rankings/transfer", json={"subject": "영어"}, headers=self.headers
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "subject, instructorName이 필요합니다.")

    def test_ranking_delete_removes_votes(self):
        self.db.upsert_ranking("transfer", "영어", "김영어", rank=1, confidence=0)
        row = self.db.find_ranking("transfer", "김영어")
        self.db.create_vote("transfer", "김영어", "someone")

        response = self.client.request(
            "DELETE", "/api/admin/rankings/transfer", json={"id": row.id}, headers=self.headers
        )
        self.assertEqual(response.status_code, 200, response.text)
        self.assertEqual(response.json()["rankings"], [])
        self.assertEqual(self.db.list_votes("transfer"), [])

        missing_id = self.client.request(
            "DELETE", "/api/admin/rankings/transfer", json={}, headers=self.headers
        )
        self.assertEqual(missing_id.json()["error"], "삭제할 id가 필요합니다.")

    def test_ranking_rejects_unsupported_exam(self):
        response = self.client.get("/api/admin/rankings/labor", headers=self.headers)
        self.assertEqual(response.status_code, 400)

    def test_cutoff_upsert_and_delete(self):
        body = {
            "exam": "transfer",
            "university": "한양대",
            "major": "경영학부",
            "year": "2025",
            "resultType": "추합",
            "inputBasis": "score",
            "note": "예비 3번",
        }
        created = self.client.post("/api/admin/cutoffs", json=body, headers=self.headers)
        self.assertEqual(created.status_code, 200, created.text)
        (row,) = created.json()["cutoffs"]
        self.assertEqual(row["resultType"], "추합")
        self.assertEqual(row["inputBasis"], "score")
        self.assertEqual(row["year"], 2025)

        body["resultType"] = "최초합"
        updated = self.client.post("/api/admin/cutoffs", json=body, headers=self.headers)
        self.assertEqual(len(updated.json()["cutoffs"]), 1)
        self.assertEqual(updated.json()["cutoffs"][0]["resultType"], "최초합")

        deleted = self.client.request(
            "DELETE",
            "/api/admin/cutoffs",
            json={"id": row["id"], "exam": "transfer"},
            headers=self.headers,
        )
        self.assertEqual(deleted.json()["cutoffs"], [])

    def test_cutoff_upsert_validates_result_type(self):
        response = self.client.post(
            "/api/admin/cutoffs",
            json={"university": "한양대", "major": "경영", "year": 2025, "resultType": "합격"},
            headers=self.headers,
        )
        self.assertEqual(response.status_code, 400)

    def test_verification_review_approves_level(self):
        member, _ = self.make_member("m@example.com", username="member", nickname="회원")
        request = self.db.create_verification_request(
            profile_id=member.id,
            requester_name="회원",
            exam_slug="transfer",
            verification_type="transfer_passer",
            evidence_url="https://example.test/proof.png",
        )

        listed = self.client.get(
            "/api/admin/verifications", params={"status": "pending"}, headers=self.headers
        )
        self.assertEqual([r["id"] for r in listed.json()["requests"]], [request.id])

        response = self.client.post(
            f"/api/admin/verifications/{request.id}/review",
            json={"decision": "approve"},
            headers=self.headers,
        )
        self.assertEqual(response.status_code, 200, response.text)
        payload = response.json()
        self.assertEqual(payload["request"]["status"], "approved")
        self.assertEqual(payload["request"]["reviewedBy"], self.admin.id)
        self.assertEqual(payload["verificationLevel"], "transfer_passer")
        self.assertEqual(self.db.get_profile(member.id).verification_level, "transfer_passer")

    def test_verification_review_validation(self):
        bad = self.client.post(
            "/api/admin/verifications/whatever/review",
            json={"decision": "maybe"},
            headers=self.headers,
        )
        self.assertEqual(bad.status_code, 400)
        missing = self.client.post(
            "/api/admin/verifications/whatever/review",
            json={"decision": "reject"},
            headers=self.headers,
        )
        self.assertEqual(missing.status_code, 404)


if __name__ == "__main__":
    unittest.main()
