import unittest

from hapgyeokpan.tests.support import ApiTestCase


class RankingRouteTests(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.db.upsert_ranking("transfer", "영어", "김영어", rank=1, confidence=10, is_seed=True)
        self.db.upsert_ranking("transfer", "수학", "박수학", rank=2, confidence=9, is_seed=True)
        self.user, self.token = self.make_member("voter@example.com", username="voter", nickname="투표자")

    def _vote(self, instructor, token=None, exam="transfer"):
        return self.client.post(
            f"/api/rankings/{exam}/vote",
            json={"instructorName": instructor},
            headers=self.bearer(token or self.token),
        )

    def test_public_ranking_merges_votes(self):
        other, other_token = self.make_member("other@example.com")
        self._vote("박수학")
        self._vote("박수학", token=other_token)

        response = self.client.get("/api/rankings/transfer")
        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertEqual(payload["source"], "db")
        self.assertEqual(payload["totalVotes"], 21)
        first = payload["rankings"][0]
        self.assertEqual(first["instructorName"], "박수학")
        self.assertEqual(first["rank"], 1)
        self.assertEqual(first["voteCount"], 11)
        self.assertEqual(first["votePercent"], 52.4)

    def test_vote_status_requires_login(self):
        response = self.client.get("/api/rankings/transfer/vote")
        self.assertEqual(response.status_code, 401)

    def test_vote_rejects_unsupported_exam_before_login(self):
        response = self.client.get("/api/rankings/civil-9/vote")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "지원하지 않는 시험 카테고리입니다.")

    def test_vote_and_status(self):
        response = self._vote("김영어")
        self.assertEqual(response.status_code, 200, response.text)
        self.assertFalse(response.json()["alreadyVoted"])

        status = self.client.get(
            "/api/rankings/transfer/vote", headers=self.bearer(self.token)
        ).json()
        self.assertTrue(status["hasVoted"])
        self.assertEqual(status["instructorName"], "김영어")
        self.assertIsNotNone(status["votedAt"])

    def test_revote_same_instructor_is_idempotent(self):
        self._vote("김영어")
        response = self._vote("김영어")
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()["alreadyVoted"])
        self.assertEqual(len(self.db.list_votes("transfer")), 1)

    def test_vote_for_another_instructor_conflicts(self):
        self._vote("김영어")
        response = self._vote("박수학")
        self.assertEqual(response.status_code, 409)
        payload = response.json()
        self.assertEqual(payload["error"], "이미 투표를 완료했습니다. (김영어)")
        self.assertEqual(payload["instructorName"], "김영어")
        self.assertIn("votedAt", payload)

    def test_vote_validation(self):
        empty = self._vote("")
        self.assertEqual(empty.json()["error"], "강사명을 선택해 주세요.")
        unknown = self._vote("없는강사")
        self.assertEqual(unknown.json()["error"], "투표 가능한 강사가 아닙니다.")


class DisabledCpaRankingTests(ApiTestCase):
    settings_overrides = {"enable_cpa": False}

    def test_cpa_ranking_is_not_found(self):
        self.assertEqual(self.client.get("/api/rankings/cpa").status_code, 404)
        self.assertEqual(self.client.get("/api/rankings/cpa/vote").status_code, 404)


if __name__ == "__main__":
    unittest.main()
