"""
Static community catalog: exam groups, boards, seed content and the exam calendar.

Seed rows stand in for the store when a board or feed has no data yet.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional


@dataclass(frozen=True)
class ExamCategory:
    slug: str
    name: str
    description: str


@dataclass(frozen=True)
class BoardInfo:
    slug: str
    name: str
    description: str


@dataclass(frozen=True)
class BoardGroup:
    exam_slug: str
    exam_name: str
    description: str
    boards: tuple[BoardInfo, ...]

    def board(self, slug: str) -> Optional[BoardInfo]:
        for board in self.boards:
            if board.slug == slug:
                return board
        return None


@dataclass(frozen=True)
class SeedPost:
    id: str
    exam_slug: str
    board_slug: str
    title: str
    author: str
    comments: int
    views: int
    time_label: str


@dataclass(frozen=True)
class SeedCutoff:
    id: str
    exam_slug: str
    university: str
    major: str
    year: int
    score_band: str
    note: str


@dataclass(frozen=True)
class SeedBriefing:
    id: str
    exam_slug: str
    title: str
    summary: str
    source_label: str
    published_at: str


@dataclass(frozen=True)
class ScheduledExam:
    id: str
    title: str
    exam_date: date


EXAM_CATEGORIES: tuple[ExamCategory, ...] = (
    ExamCategory("cpa", "CPA (회계사)", "공인회계사 시험 정보 및 커뮤니티"),
    ExamCategory("cta", "CTA (세무사)", "세무사 시험 대비 및 합격 수기"),
    ExamCategory("civil-9", "9급 공무원", "국가직/지방직 9급 공무원 준비"),
    ExamCategory("civil-7", "7급 공무원", "7급 공무원 시험 정보 공유"),
    ExamCategory("lawyer", "변호사 (로스쿨)", "변호사 시험 및 로스쿨 생활"),
    ExamCategory("labor", "노무사", "공인노무사 시험 합격 정보"),
    ExamCategory("appraiser", "감정평가사", "감정평가사 시험/실무 이야기"),
    ExamCategory("police", "경찰공무원", "경찰 공무원 채용 및 체력 정보"),
    ExamCategory("fire", "소방공무원", "소방 공무원 시험 및 안전"),
    ExamCategory("patent", "변리사", "변리사 1차/2차 시험 정보"),
)

BOARD_GROUPS: tuple[BoardGroup, ...] = (
    BoardGroup(
        exam_slug="transfer",
        exam_name="편입",
        description="편입 전략, 학습 질문, 커트라인 제보를 한곳에.",
        boards=(
            BoardInfo("free", "자유게시판", "편입 준비 일상과 고민 공유"),
            BoardInfo("qa", "전략 Q&A", "지원 전략과 학교 선택 질문"),
            BoardInfo("study-qa", "학습 Q&A", "영어/수학 문제풀이 질문"),
            BoardInfo("cutoff", "커트라인 제보", "합격/불합격 점수 제보"),
        ),
    ),
    BoardGroup(
        exam_slug="cpa",
        exam_name="CPA (회계사)",
        description="회계사 1·2차 과목별 정보를 한곳에.",
        boards=(
            BoardInfo("free", "자유게시판", "수험생 일상과 고민 공유"),
            BoardInfo("resources", "자료실", "요약본/서브노트/기출 정리"),
            BoardInfo("qa", "Q&A", "과목별 질문 답변"),
        ),
    ),
    BoardGroup(
        exam_slug="civil-9",
        exam_name="9급 공무원",
        description="국가직/지방직 최신 정보와 필수 자료 모음.",
        boards=(
            BoardInfo("free", "자유게시판", "수험 생활 정보 공유"),
            BoardInfo("resources", "기출/자료", "기출 분석/암기노트"),
            BoardInfo("qa", "Q&A", "과목별 질문과 답변"),
        ),
    ),
    BoardGroup(
        exam_slug="labor",
        exam_name="노무사",
        description="노무사 1·2차 대비, 답안 구조 및 실무 팁.",
        boards=(
            BoardInfo("free", "자유게시판", "학습 일정과 고민 공유"),
            BoardInfo("resources", "자료실", "판례/법령 요약"),
            BoardInfo("qa", "Q&A", "답안 작성 피드백"),
        ),
    ),
    BoardGroup(
        exam_slug="patent",
        exam_name="변리사",
        description="특허법·민법 중심 학습 자료 모음.",
        boards=(
            BoardInfo("free", "자유게시판", "수험 생활/멘탈 관리"),
            BoardInfo("resources", "기출/자료", "조문 정리/핵심 판례"),
            BoardInfo("qa", "Q&A", "문제풀이 질문"),
        ),
    ),
)

FEATURED_EXAM_SLUGS: tuple[str, ...] = ("cpa", "civil-9", "labor", "patent", "civil-7", "cta")

SEED_POSTS: tuple[SeedPost, ...] = (
    SeedPost("cpa-f-1", "cpa", "free", "1차 회독표 공유합니다", "회독러", 12, 420, "10분 전"),
    SeedPost("cpa-f-2", "cpa", "free", "재무회계 공부 루틴 질문", "새내기", 6, 210, "24분 전"),
    SeedPost("c9-f-1", "civil-9", "free", "국어 문학 파트 난이도 체감", "달빛", 8, 180, "18분 전"),
    SeedPost("c9-f-2", "civil-9", "free", "한국사 연표 암기법 공유", "초시생", 5, 140, "33분 전"),
    SeedPost("c9-f-3", "civil-9", "free", "영어 어휘 공부 어떻게 해요?", "하루10분", 7, 200, "1시간 전"),
    SeedPost("labor-f-1", "labor", "free", "노동법 판례 정리 루틴", "로디", 4, 120, "26분 전"),
    SeedPost("labor-f-2", "labor", "free", "2차 답안 작성 팁 공유", "모범답안", 6, 150, "50분 전"),
    SeedPost("pat-f-1", "patent", "free", "민법 암기 방법 공유", "봄날", 5, 110, "22분 전"),
    SeedPost("pat-f-3", "patent", "free", "1차 대비 자료 추천", "수험생A", 4, 100, "1시간 전"),
    SeedPost("c7-f-1", "civil-7", "free", "경제학 풀이 루틴 공유", "경제러", 7, 170, "14분 전"),
    SeedPost("c7-f-2", "civil-7", "free", "헌법 개념 정리 방법", "헌법러", 4, 120, "37분 전"),
    SeedPost("cta-f-1", "cta", "free", "세법개론 공부 팁", "세무러", 6, 160, "12분 전"),
    SeedPost("cta-f-2", "cta", "free", "회계학 계산 문제 접근법", "장부", 3, 90, "28분 전"),
    SeedPost("tr-f-1", "transfer", "free", "편입 영어 하루 공부량 공유", "편입러", 9, 240, "16분 전"),
    SeedPost("tr-q-1", "transfer", "qa", "인서울 중위권 지원 조합 질문", "지원고민", 11, 310, "42분 전"),
    SeedPost("tr-s-1", "transfer", "study-qa", "편입 수학 적분 파트 질문", "미적분", 4, 95, "1시간 전"),
)

CUTOFF_SEED: tuple[SeedCutoff, ...] = (
    SeedCutoff("seed-cut-1", "transfer", "한양대", "경영학부", 2025, "91.5~93.0", "최초합"),
    SeedCutoff("seed-cut-2", "transfer", "중앙대", "경영학부", 2025, "89.0~91.5", "추합"),
    SeedCutoff("seed-cut-3", "transfer", "건국대", "컴퓨터공학부", 2025, "85.0~88.5", "최초합"),
    SeedCutoff("seed-cut-4", "transfer", "한양대", "경영학부", 2024, "90.5~92.5", "최초합"),
    SeedCutoff("seed-cut-5", "cpa", "1차 시험", "전체", 2025, "63.0~65.5", "합격선 추정"),
)

DAILY_BRIEFING_SEED: tuple[SeedBriefing, ...] = (
    SeedBriefing(
        "seed-brief-1",
        "transfer",
        "주요 대학 편입 모집요강 발표",
        "올해 일반편입 모집 인원과 전형 일정이 입학처에 공지되었습니다.",
        "입학처 공지",
        "2026-10-01T09:00:00+09:00",
    ),
    SeedBriefing(
        "seed-brief-2",
        "transfer",
        "편입 영어 모의고사 난이도 분석",
        "최근 학원 모의고사의 어휘 비중이 늘어난 추세입니다.",
        "학원 모의고사",
        "2026-09-24T09:00:00+09:00",
    ),
    SeedBriefing(
        "seed-brief-3",
        "cpa",
        "CPA 1차 시험 일정 공고",
        "금융감독원이 차기 공인회계사 1차 시험 일정을 공고했습니다.",
        "금융감독원",
        "2026-09-30T09:00:00+09:00",
    ),
)

UPCOMING_EXAMS: tuple[ScheduledExam, ...] = (
    ScheduledExam("1", "2026 CPA 1차 시험", date(2026, 2, 22)),
    ScheduledExam("2", "2026 9급 국가직", date(2026, 4, 4)),
    ScheduledExam("3", "2026 변호사 시험", date(2026, 1, 9)),
    ScheduledExam("4", "2026 노무사 1차", date(2026, 5, 23)),
)

SAMPLE_POST_BODY = (
    "이 게시글은 샘플 데이터입니다.\n\n"
    "{title}에 대한 자세한 내용을 여기에서 확인하세요.\n\n"
    "실제 서비스에서는 회원들이 작성한 다양한 정보와 경험담을 공유할 수 있습니다."
)


def find_group(exam_slug: str) -> Optional[BoardGroup]:
    for group in BOARD_GROUPS:
        if group.exam_slug == exam_slug:
            return group
    return None


def find_category(exam_slug: str) -> Optional[ExamCategory]:
    for category in EXAM_CATEGORIES:
        if category.slug == exam_slug:
            return category
    return None


def exam_name(exam_slug: str) -> str:
    group = find_group(exam_slug)
    if group:
        return group.exam_name
    category = find_category(exam_slug)
    return category.name if category else exam_slug


def board_name(exam_slug: str, board_slug: str) -> str:
    group = find_group(exam_slug)
    board = group.board(board_slug) if group else None
    if board:
        return board.name
    return "자유게시판" if board_slug == "free" else board_slug


def seed_posts(exam_slug: str, board_slug: str) -> list[SeedPost]:
    return [
        post
        for post in SEED_POSTS
        if post.exam_slug == exam_slug and post.board_slug == board_slug
    ]


def find_seed_post(exam_slug: str, board_slug: str, post_id: str) -> Optional[SeedPost]:
    for post in seed_posts(exam_slug, board_slug):
        if post.id == post_id:
            return post
    return None


def seed_cutoffs(exam_slug: str) -> list[SeedCutoff]:
    return [row for row in CUTOFF_SEED if row.exam_slug == exam_slug]


def seed_briefings(exam_slug: str) -> list[SeedBriefing]:
    return [row for row in DAILY_BRIEFING_SEED if row.exam_slug == exam_slug]


def post_type_for_board(board_slug: str) -> str:
    if board_slug in ("qa", "study-qa"):
        return "question"
    if board_slug == "cutoff":
        return "cutoff"
    return "general"


def deterministic_like_count(seed: str, base: int) -> int:
    """Stable pseudo like count for seed posts, derived from the post id."""
    value = 0
    for char in seed:
        value = (value * 31 + ord(char)) % 97
    return (value % 15) + base // 3
