import unittest
import uuid

from hapgyeokpan.tests.support import ApiTestCase


class CatalogAndFeedTests(ApiTestCase):
    def test_catalog_lists_exam_groups(self):
        response = self.client.get("/api/community")
        self.assertEqual(response.status_code, 200)
        slugs = [group["examSlug"] for group in response.json()["groups"]]
        self.assertEqual(slugs[:2], ["transfer", "cpa"])
        transfer = response.json()["groups"][0]
        self.assertEqual(
            [board["slug"] for board in transfer["boards"]],
            ["free", "qa", "study-qa", "cutoff"],
        )

    def test_feed_falls_back_to_seed_posts(self):
        response = self.client.get("/api/community/feed")
        self.assertEqual(response.status_code, 200)
        sections = {s["examSlug"]: s for s in response.json()["sections"]}
        self.assertEqual(sections["cpa"]["source"], "seed")
        self.assertEqual(len(sections["cpa"]["posts"]), 2)
        self.assertTrue(sections["cpa"]["posts"][0]["isSample"])
        self.assertEqual(sections["cta"]["boardName"], "자유게시판")

    def test_feed_prefers_stored_posts(self):
        self.create_post(exam="civil-9", board="free", title="첫 글")
        sections = {
            s["examSlug"]: s for s in self.client.get("/api/community/feed").json()["sections"]
        }
        self.assertEqual(sections["civil-9"]["source"], "db")
        self.assertEqual(sections["civil-9"]["posts"][0]["title"], "첫 글")

    def test_unknown_exam_is_not_found(self):
        response = self.client.get("/api/community/unknown")
        self.assertEqual(response.status_code, 404)

    def test_exam_boards_mix_stored_and_seed_previews(self):
        for index in range(4):
            self.create_post(exam="transfer", board="qa", title=f"질문 {index}")

        response = self.client.get("/api/community/transfer")
        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertFalse(payload["readOnly"])
        boards = {board["slug"]: board for board in payload["boards"]}
        self.assertEqual(boards["qa"]["source"], "db")
        self.assertEqual(
            [post["title"] for post in boards["qa"]["posts"]],
            ["질문 3", "질문 2", "질문 1"],
        )
        self.assertEqual(boards["free"]["source"], "seed")

    def test_cpa_boards_are_read_only(self):
        response = self.client.get("/api/community/cpa")
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()["readOnly"])


class DisabledCpaTests(ApiTestCase):
    settings_overrides = {"enable_cpa": False}

    def test_catalog_hides_disabled_exam(self):
        slugs = [g["examSlug"] for g in self.client.get("/api/community").json()["groups"]]
        self.assertNotIn("cpa", slugs)

    def test_disabled_exam_reads_are_not_found(self):
        response = self.client.get("/api/boards/cpa/free/posts")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["error"], "CPA 서비스 비활성화 상태입니다.")

    def test_disabled_exam_writes_are_forbidden(self):
        response = self.client.post(
            "/api/posts/create",
            json={"examSlug": "cpa", "boardSlug": "free", "title": "t", "content": "c"},
        )
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()["error"], "현재 CPA 서비스는 비활성화 상태입니다.")


class PostTests(ApiTestCase):
    def test_board_posts_include_counts(self):
        post_id = self.create_post(exam="transfer", board="free")
        self.create_comment(post_id)
        self.client.post(
            "/api/posts/like", json={"postId": post_id, "userId": str(uuid.uuid4())}
        )

        response = self.client.get("/api/boards/transfer/free/posts")
        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertEqual(payload["source"], "db")
        self.assertEqual(payload["boardName"], "자유게시판")
        post = payload["posts"][0]
        self.assertEqual(post["comments"], 1)
        self.assertEqual(post["likes"], 1)
        self.assertEqual(post["timeLabel"], "방금 전")

    def test_board_posts_fall_back_to_seed(self):
        response = self.client.get("/api/boards/transfer/qa/posts")
        payload = response.json()
        self.assertEqual(payload["source"], "seed")
        self.assertEqual(payload["posts"][0]["id"], "tr-q-1")

    def test_unknown_board_is_not_found(self):
        response = self.client.get("/api/boards/transfer/nowhere/posts")
        self.assertEqual(response.status_code, 404)

    def test_create_post_reads_board_from_referer(self):
        response = self.client.post(
            "/api/posts/create",
            json={"authorName": "편입러", "title": "제목", "content": "내용"},
            headers={"Referer": "https://hapgyeokpan.test/c/transfer/cutoff/write"},
        )
        self.assertEqual(response.status_code, 200, response.text)
        post = self.db.get_post(response.json()["id"])
        self.assertEqual(post.post_type, "cutoff")
        self.assertEqual(self.db.get_board(post.board_id).name, "커트라인 제보")

    def test_create_post_requires_board(self):
        response = self.client.post(
            "/api/posts/create", json={"title": "제목", "content": "내용"}
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "게시판 정보가 없습니다.")

    def test_create_post_validates_title_and_content(self):
        no_title = self.client.post(
            "/api/posts/create",
            json={"examSlug": "transfer", "boardSlug": "free", "title": " ", "content": "c"},
        )
        self.assertEqual(no_title.json()["error"], "제목을 입력해 주세요.")
        no_content = self.client.post(
            "/api/posts/create",
            json={"examSlug": "transfer", "boardSlug": "free", "title": "t"},
        )
        self.assertEqual(no_content.json()["error"], "내용을 입력해 주세요.")

    def test_create_post_on_read_only_exam_is_forbidden(self):
        response = self.client.post(
            "/api/posts/create",
            json={"examSlug": "cpa", "boardSlug": "free", "title": "t", "content": "c"},
        )
        self.assertEqual(response.status_code, 403)
        self.assertIn("읽기 전용", response.json()["error"])

    def test_short_author_names_become_anonymous(self):
        post_id = self.create_post(author="a")
        self.assertEqual(self.db.get_post(post_id).author_name, "익명")

    def test_post_detail_counts_views_and_orders_comments(self):
        post_id = self.create_post(exam="transfer", board="qa")
        first = self.create_comment(post_id, content="첫 답변")
        self.create_comment(post_id, content="대댓글", parent_id=first)

        url = f"/api/boards/transfer/qa/posts/{post_id}"
        self.client.get(url)
        response = self.client.get(url)
        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertEqual(payload["post"]["views"], 2)
        self.assertEqual(payload["post"]["postType"], "question")
        self.assertEqual([c["content"] for c in payload["comments"]], ["첫 답변", "대댓글"])
        self.assertEqual(payload["comments"][1]["parentId"], first)
        self.assertIsNone(payload["adoption"])

    def test_post_detail_on_wrong_board_is_not_found(self):
        post_id = self.create_post(exam="transfer", board="qa")
        response = self.client.get(f"/api/boards/transfer/free/posts/{post_id}")
        self.assertEqual(response.status_code, 404)

    def test_sample_post_detail(self):
        response = self.client.get("/api/boards/transfer/free/posts/tr-f-1")
        self.assertEqual(response.status_code, 200)
        post = response.json()["post"]
        self.assertTrue(post["isSample"])
        self.assertIn(post["title"], post["content"])
        self.assertEqual(response.json()["comments"], [])


class LikeAndCommentTests(ApiTestCase):
    def test_like_toggles(self):
        post_id = self.create_post()
        user_id = str(uuid.uuid4())
        body = {"postId": post_id, "userId": user_id}

        self.assertTrue(self.client.post("/api/posts/like", json=body).json()["liked"])
        self.assertFalse(self.client.post("/api/posts/like", json=body).json()["liked"])
        self.assertFalse(self.db.has_like(post_id, user_id))

    def test_like_validation(self):
        bad_post = self.client.post(
            "/api/posts/like", json={"postId": "tr-f-1", "userId": str(uuid.uuid4())}
        )
        self.assertEqual(bad_post.status_code, 400)

        post_id = self.create_post()
        no_user = self.client.post("/api/posts/like", json={"postId": post_id})
        self.assertEqual(no_user.status_code, 401)

        missing = self.client.post(
            "/api/posts/like",
            json={"postId": str(uuid.uuid4()), "userId": str(uuid.uuid4())},
        )
        self.assertEqual(missing.status_code, 404)

    def test_comment_on_sample_post_is_rejected(self):
        response = self.client.post(
            "/api/comments/create", json={"postId": "tr-f-1", "content": "hi"}
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "샘플 게시글에는 댓글을 작성할 수 없습니다.")

    def test_comment_validation(self):
        post_id = self.create_post()
        bad_parent = self.client.post(
            "/api/comments/create",
            json={"postId": post_id, "parentId": "x", "content": "hi"},
        )
        self.assertEqual(bad_parent.json()["error"], "유효하지 않은 답글 대상입니다.")

        empty = self.client.post("/api/comments/create", json={"postId": post_id})
        self.assertEqual(empty.json()["error"], "댓글 내용을 입력해 주세요.")

        missing = self.client.post(
            "/api/comments/create", json={"postId": str(uuid.uuid4()), "content": "hi"}
        )
        self.assertEqual(missing.status_code, 404)


class AdoptionTests(ApiTestCase):
    def _adopt(self, post_id, comment_id, adopter="작성자"):
        return self.client.post(
            "/api/comments/adopt",
            json={"postId": post_id, "commentId": comment_id, "adopterName": adopter},
        )

    def test_adoption_awards_verified_bonus(self):
        answerer, _ = self.make_member("answer@example.com", username="answerer", nickname="답변자")
        self.db.update_profile(answerer.id, verification_level="transfer_passer")
        post_id = self.create_post(author="작성자")
        comment_id = self.create_comment(post_id, author="답변자")

        response = self._adopt(post_id, comment_id)
        self.assertEqual(response.status_code, 200, response.text)
        self.assertEqual(
            response.json(),
            {
                "ok": True,
                "awarded": 100,
                "selectedAuthorName": "답변자",
                "adoptedCommentId": comment_id,
            },
        )
        self.assertEqual(self.db.get_profile(answerer.id).points, 100)
        ledger = self.db.list_ledger(profile_id=answerer.id)
        self.assertEqual(ledger[0].source, "채택 답변(인증 가산 포함)")
        self.assertEqual(ledger[0].meta, {"post_id": post_id, "comment_id": comment_id})

        detail = self.client.get(f"/api/boards/transfer/qa/posts/{post_id}").json()
        self.assertEqual(detail["adoption"]["commentId"], comment_id)

    def test_adoption_without_profile_still_records_ledger(self):
        post_id = self.create_post(author="작성자")
        comment_id = self.create_comment(post_id, author="손님")

        response = self._adopt(post_id, comment_id)
        self.assertEqual(response.json()["awarded"], 80)
        ledger = self.db.list_ledger(receiver_name="손님")
        self.assertEqual(len(ledger), 1)
        self.assertIsNone(ledger[0].profile_id)

    def test_only_post_author_can_adopt(self):
        post_id = self.create_post(author="작성자")
        comment_id = self.create_comment(post_id)
        response = self._adopt(post_id, comment_id, adopter="다른사람")
        self.assertEqual(response.status_code, 403)

    def test_second_adoption_conflicts(self):
        post_id = self.create_post(author="작성자")
        first = self.create_comment(post_id)
        second = self.create_comment(post_id, author="또다른")
        self.assertEqual(self._adopt(post_id, first).status_code, 200)

        response = self._adopt(post_id, second)
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()["error"], "이미 채택된 답변이 있습니다.")

    def test_comment_from_another_post_is_rejected(self):
        post_id = self.create_post(author="작성자")
        other_post = self.create_post(author="작성자", title="다른 질문")
        comment_id = self.create_comment(other_post)
        response = self._adopt(post_id, comment_id)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "댓글 정보를 확인할 수 없습니다.")

    def test_adoption_validation(self):
        bad_ids = self._adopt("x", "y")
        self.assertEqual(bad_ids.status_code, 400)

        no_adopter = self._adopt(str(uuid.uuid4()), str(uuid.uuid4()), adopter=" ")
        self.assertEqual(no_adopter.status_code, 401)

        missing = self._adopt(str(uuid.uuid4()), str(uuid.uuid4()))
        self.assertEqual(missing.status_code, 404)


if __name__ == "__main__":
    unittest.main()
