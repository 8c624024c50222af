import unittest

from hapgyeokpan.errors import StoreError
from hapgyeokpan.tests.support import ApiTestCase


def _store_down(*args, **kwargs):
    raise StoreError("connection refused")


def _crash(*args, **kwargs):
    raise RuntimeError("unexpected")


class StoreFailureTests(ApiTestCase):
    def test_write_store_error_becomes_bad_request(self):
        self.db.create_post = _store_down
        response = self.client.post(
            "/api/posts/create",
            json={"examSlug": "transfer", "boardSlug": "free", "title": "제목", "content": "본문"},
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"error": "connection refused"})

    def test_unexpected_exception_becomes_server_error(self):
        self.db.list_cutoffs = _crash
        response = self.client.get("/api/cutoffs", params={"exam": "transfer"})
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"error": "서버 오류가 발생했습니다."})

    def test_failed_view_counter_still_serves_post(self):
        post_id = self.create_post(exam="transfer", board="qa")
        self.db.set_post_view_count = _store_down

        response = self.client.get(f"/api/boards/transfer/qa/posts/{post_id}")
        self.assertEqual(response.status_code, 200, response.text)
        self.assertEqual(response.json()["post"]["views"], 0)

    def test_board_posts_fall_back_to_seed(self):
        self.db.find_board = _store_down
        response = self.client.get("/api/boards/transfer/free/posts")
        self.assertEqual(response.status_code, 200, response.text)
        payload = response.json()
        self.assertEqual(payload["source"], "seed")
        self.assertEqual([p["id"] for p in payload["posts"]], ["tr-f-1"])

    def test_post_detail_falls_back_to_sample(self):
        self.db.find_board = _store_down
        response = self.client.get(
            "/api/boards/transfer/free/posts/123e4567-e89b-12d3-a456-426614174000"
        )
        self.assertEqual(response.status_code, 404)
        sample = self.client.get("/api/boards/transfer/free/posts/tr-f-1")
        self.assertEqual(sample.status_code, 200)
        self.assertTrue(sample.json()["post"]["isSample"])

    def test_feed_falls_back_to_seed(self):
        self.db.find_board = _store_down
        response = self.client.get("/api/community/feed")
        self.assertEqual(response.status_code, 200, response.text)
        sections = {s["examSlug"]: s for s in response.json()["sections"]}
        self.assertEqual(sections["civil-9"]["source"], "seed")
        self.assertEqual(len(sections["civil-9"]["posts"]), 3)

    def test_cutoffs_fall_back_to_seed(self):
        self.db.list_cutoffs = _store_down
        response = self.client.get("/api/cutoffs", params={"exam": "transfer"})
        self.assertEqual(response.status_code, 200, response.text)
        payload = response.json()
        self.assertEqual(payload["source"], "seed")
        self.assertTrue(all(c["id"].startswith("seed-cut-") for c in payload["cutoffs"]))

    def test_briefings_fall_back_to_seed(self):
        self.db.list_daily_briefings = _store_down
        response = self.client.get("/api/daily/transfer")
        self.assertEqual(response.status_code, 200, response.text)
        payload = response.json()
        self.assertEqual(payload["source"], "seed")
        self.assertTrue(payload["briefings"])


if __name__ == "__main__":
    unittest.main()
