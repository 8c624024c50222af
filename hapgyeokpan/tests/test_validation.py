import unittest

from hapgyeokpan.validation import (
    author_or_anonymous,
    board_from_referer,
    get_bearer_token,
    is_valid_uuid,
    normalize_next_path,
    round_half_up,
    sanitize_username,
    to_number,
    validate_nickname,
)


class ValidationTests(unittest.TestCase):
    def test_uuid(self):
        self.assertTrue(is_valid_uuid("123E4567-E89B-12D3-A456-426614174000"))
        self.assertFalse(is_valid_uuid("tr-f-1"))
        self.assertFalse(is_valid_uuid(None))

    def test_author_or_anonymous(self):
        self.assertEqual(author_or_anonymous(" 홍길동 "), "홍길동")
        self.assertEqual(author_or_anonymous("a"), "익명")
        self.assertEqual(author_or_anonymous(None), "익명")

    def test_sanitize_username(self):
        self.assertEqual(sanitize_username("Kim.Lee-99"), "kimlee99")
        self.assertEqual(sanitize_username("김"), "")

    def test_nickname_rules(self):
        self.assertIsNone(validate_nickname("합격 기원_1"))
        self.assertEqual(validate_nickname("a"), "닉네임은 2자 이상이어야 합니다.")
        self.assertEqual(validate_nickname("x" * 21), "닉네임은 20자 이하여야 합니다.")

    def test_next_path(self):
        self.assertEqual(normalize_next_path("/mypage"), "/mypage")
        self.assertEqual(normalize_next_path("//evil.example"), "/")
        self.assertEqual(normalize_next_path("https://evil.example"), "/")
        self.assertEqual(normalize_next_path(None), "/")

    def test_board_from_referer(self):
        self.assertEqual(
            board_from_referer("https://site.test/c/transfer/study-qa/write"),
            ("transfer", "study-qa"),
        )
        self.assertEqual(board_from_referer("https://site.test/community"), ("", ""))

    def test_bearer_token(self):
        self.assertEqual(get_bearer_token("Bearer abc"), "abc")
        self.assertEqual(get_bearer_token("bearer abc"), "abc")
        self.assertEqual(get_bearer_token("Basic abc"), "")
        self.assertEqual(get_bearer_token(None), "")

    def test_numbers(self):
        self.assertEqual(to_number("2025"), 2025.0)
        self.assertEqual(to_number(3), 3.0)
        self.assertIsNone(to_number(""))
        self.assertIsNone(to_number("abc"))
        self.assertIsNone(to_number(True))
        self.assertIsNone(to_number("nan"))
        self.assertEqual(round_half_up(2.5), 3)
        self.assertEqual(round_half_up(-2.5), -2)


if __name__ == "__main__":
    unittest.main()
