"""
Database abstraction for the Supabase Postgres store and an in-memory test implementation.

Uniqueness, foreign keys and timestamps belong to the store. The in-memory
client enforces the same constraints so handlers see identical failures.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, Optional, Protocol

from hapgyeokpan.errors import StoreError

PROFILE_FIELDS = ("username", "display_name", "points", "verification_level")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DbClient(Protocol):
    """Interface for database access."""

    # Profiles and roles
    def get_profile(self, profile_id: str) -> Optional["ProfileRecord"]:
        ...

    def find_profile(
        self,
        *,
        username: str | None = None,
        display_name: str | None = None,
        exclude_id: str | None = None,
    ) -> Optional["ProfileRecord"]:
        ...

    def upsert_profile(self, profile_id: str, **fields: Any) -> "ProfileRecord":
        ...

    def update_profile(
        self, profile_id: str, **fields: Any
    ) -> Optional["ProfileRecord"]:
        ...

    def increment_profile_points(self, profile_id: str, delta: int) -> Optional[int]:
        ...

    def has_any_role(self, user_id: str, roles: Iterable[str]) -> bool:
        ...

    def upsert_user_role(self, user_id: str, role: str) -> None:
        ...

    # Exams and boards
    def get_exam(self, exam_id: str) -> Optional["ExamRecord"]:
        ...

    def get_exam_by_slug(self, slug: str) -> Optional["ExamRecord"]:
        ...

    def upsert_exam(
        self, slug: str, name: str, description: str | None = None
    ) -> "ExamRecord":
        ...

    def get_board(self, board_id: str) -> Optional["BoardRecord"]:
        ...

    def find_board(self, exam_slug: str, board_slug: str) -> Optional["BoardRecord"]:
        ...

    def list_boards(self, exam_slug: str) -> list["BoardRecord"]:
        ...

    def upsert_board(
        self, exam_id: str, slug: str, name: str, description: str | None = None
    ) -> "BoardRecord":
        ...

    # Posts, comments, likes, adoptions
    def create_post(
        self,
        board_id: str,
        *,
        author_name: str,
        title: str,
        content: str,
        post_type: str = "general",
    ) -> "PostRecord":
        ...

    def get_post(self, post_id: str) -> Optional["PostRecord"]:
        ...

    def list_posts(
        self, board_ids: list[str], limit: int | None = None
    ) -> list["PostRecord"]:
        ...

    def set_post_view_count(self, post_id: str, view_count: int) -> None:
        ...

    def count_comments(self, post_ids: list[str]) -> dict[str, int]:
        ...

    def count_likes(self, post_ids: list[str]) -> dict[str, int]:
        ...

    def create_comment(
        self,
        post_id: str,
        *,
        author_name: str,
        content: str,
        parent_id: str | None = None,
    ) -> "CommentRecord":
        ...

    def get_comment(self, comment_id: str) -> Optional["CommentRecord"]:
        ...

    def list_comments(self, post_id: str) -> list["CommentRecord"]:
        ...

    def has_like(self, post_id: str, user_id: str) -> bool:
        ...

    def add_like(self, post_id: str, user_id: str) -> None:
        ...

    def remove_like(self, post_id: str, user_id: str) -> None:
        ...

    def get_adoption(self, post_id: str) -> Optional["AdoptionRecord"]:
        ...

    def create_adoption(
        self,
        post_id: str,
        comment_id: str,
        *,
        adopter_name: str,
        selected_author_name: str,
        points_awarded: int,
    ) -> "AdoptionRecord":
        ...

    # Instructor rankings and votes
    def list_rankings(
        self, exam_slug: str, limit: int | None = None
    ) -> list["RankingRecord"]:
        ...

    def find_ranking(
        self, exam_slug: str, instructor_name: str, subject: str | None = None
    ) -> Optional["RankingRecord"]:
        ...

    def get_ranking(self, ranking_id: str, exam_slug: str) -> Optional["RankingRecord"]:
        ...

    def max_ranking_rank(self, exam_slug: str) -> Optional[int]:
        ...

    def upsert_ranking(
        self,
        exam_slug: str,
        subject: str,
        instructor_name: str,
        *,
        rank: int,
        confidence: int,
        trend: str = "-",
        source_type: str = "admin",
        is_seed: bool = False,
    ) -> "RankingRecord":
        ...

    def delete_ranking(self, ranking_id: str, exam_slug: str) -> None:
        ...

    def list_votes(self, exam_slug: str) -> list["VoteRecord"]:
        ...

    def find_vote(self, exam_slug: str, voter_name: str) -> Optional["VoteRecord"]:
        ...

    def create_vote(
        self, exam_slug: str, instructor_name: str, voter_name: str
    ) -> "VoteRecord":
        ...

    def delete_votes(self, exam_slug: str, instructor_name: str) -> int:
        ...

    # Cutoff scores and briefings
    def list_cutoffs(
        self, exam_slug: str, limit: int | None = None
    ) -> list["CutoffRecord"]:
        ...

    def upsert_cutoff(
        self,
        exam_slug: str,
        university: str,
        major: str,
        year: int,
        *,
        score_band: str,
        note: str | None = None,
        source: str | None = None,
    ) -> "CutoffRecord":
        ...

    def delete_cutoff(self, cutoff_id: str, exam_slug: str) -> None:
        ...

    def list_daily_briefings(
        self, exam_slug: str, limit: int = 10
    ) -> list["BriefingRecord"]:
        ...

    def add_daily_briefing(
        self,
        exam_slug: str,
        *,
        title: str,
        summary: str,
        source_label: str | None = None,
        published_at: datetime | None = None,
    ) -> "BriefingRecord":
        ...

    # Point ledger
    def add_ledger_entry(
        self,
        *,
        profile_id: str | None,
        receiver_name: str,
        source: str,
        amount: int,
        meta: dict | None = None,
    ) -> "LedgerRecord":
        ...

    def list_ledger(
        self,
        *,
        profile_id: str | None = None,
        receiver_name: str | None = None,
        limit: int = 30,
    ) -> list["LedgerRecord"]:
        ...

    # Verification requests
    def create_verification_request(
        self,
        *,
        profile_id: str | None,
        requester_name: str,
        exam_slug: str,
        verification_type: str,
        evidence_url: str,
        memo: str | None = None,
    ) -> "VerificationRecord":
        ...

    def get_verification_request(
        self, request_id: str
    ) -> Optional["VerificationRecord"]:
        ...

    def list_verification_requests(
        self, status: str | None = None, limit: int = 100
    ) -> list["VerificationRecord"]:
        ...

    def update_verification_request(
        self, request_id: str, *, status: str, reviewed_by: str | None = None
    ) -> Optional["VerificationRecord"]:
        ...


@dataclass
class ProfileRecord:
    id: str
    username: Optional[str] = None
    display_name: Optional[str] = None
    points: Optional[int] = None
    verification_level: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)


@dataclass
class ExamRecord:
    id: str
    slug: str
    name: str
    description: Optional[str] = None


@dataclass
class BoardRecord:
    id: str
    exam_id: str
    slug: str
    name: str
    description: Optional[str] = None


@dataclass
class PostRecord:
    id: str
    board_id: str
    author_name: Optional[str]
    title: str
    content: str
    post_type: str = "general"
    view_count: int = 0
    created_at: datetime = field(default_factory=utcnow)


@dataclass
class CommentRecord:
    id: str
    post_id: str
    author_name: Optional[str]
    content: str
    parent_id: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)


@dataclass
class AdoptionRecord:
    id: str
    post_id: str
    comment_id: str
    adopter_name: str
    selected_author_name: str
    points_awarded: int
    created_at: datetime = field(default_factory=utcnow)


@dataclass
class RankingRecord:
    id: str
    exam_slug: str
    subject: str
    instructor_name: str
    rank: int
    confidence: Optional[int] = None
    trend: str = "-"
    source_type: Optional[str] = None
    is_seed: bool = False


@dataclass
class VoteRecord:
    id: str
    exam_slug: str
    instructor_name: str
    voter_name: str
    created_at: datetime = field(default_factory=utcnow)


@dataclass
class CutoffRecord:
    id: str
    exam_slug: str
    university: str
    major: str
    year: int
    score_band: str
    note: Optional[str] = None
    source: Optional[str] = None


@dataclass
class BriefingRecord:
    id: str
    exam_slug: str
    title: str
    summary: str
    source_label: Optional[str] = None
    published_at: datetime = field(default_factory=utcnow)


@dataclass
class LedgerRecord:
    id: str
    profile_id: Optional[str]
    receiver_name: str
    source: str
    amount: int
    meta: Optional[dict] = None
    created_at: datetime = field(default_factory=utcnow)


@dataclass
class VerificationRecord:
    id: str
    profile_id: Optional[str]
    requester_name: str
    exam_slug: str
    verification_type: str
    evidence_url: str
    memo: Optional[str] = None
    status: str = "pending"
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    created_at: datetime = field(default_factory=utcnow)


def _new_id() -> str:
    return str(uuid.uuid4())


def _unique_violation(constraint: str) -> StoreError:
    return StoreError(f'duplicate key value violates unique constraint "{constraint}"')


def _fk_violation(table: str, constraint: str) -> StoreError:
    return StoreError(
        f'insert or update on table "{table}" violates foreign key constraint "{constraint}"'
    )


class InMemoryDbClient:
    """Simple in-memory database for development and tests."""

    def __init__(self):
        self.profiles: Dict[str, ProfileRecord] = {}
        self.user_roles: set[tuple[str, str]] = set()
        self.exams: Dict[str, ExamRecord] = {}
        self.boards: Dict[str, BoardRecord] = {}
        self.posts: Dict[str, PostRecord] = {}
        self.comments: Dict[str, CommentRecord] = {}
        self.likes: set[tuple[str, str]] = set()
        self.adoptions: Dict[str, AdoptionRecord] = {}
        self.rankings: Dict[str, RankingRecord] = {}
        self.votes: Dict[str, VoteRecord] = {}
        self.cutoffs: Dict[str, CutoffRecord] = {}
        self.briefings: Dict[str, BriefingRecord] = {}
        self.ledger: Dict[str, LedgerRecord] = {}
        self.verifications: Dict[str, VerificationRecord] = {}
        self._last_timestamp: Optional[datetime] = None

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        self.__init__()

    def _now(self) -> datetime:
        # Strictly increasing so "newest first" ordering is deterministic.
        now = utcnow()
        if self._last_timestamp and now <= self._last_timestamp:
            now = self._last_timestamp + timedelta(microseconds=1)
        self._last_timestamp = now
        return now

    # Profiles and roles

    def get_profile(self, profile_id: str) -> Optional[ProfileRecord]:
        return self.profiles.get(profile_id)

    def find_profile(
        self,
        *,
        username: str | None = None,
        display_name: str | None = None,
        exclude_id: str | None = None,
    ) -> Optional[ProfileRecord]:
        candidates = sorted(self.profiles.values(), key=lambda p: p.created_at)
        for profile in candidates:
            if exclude_id and profile.id == exclude_id:
                continue
            if username is not None and profile.username != username:
                continue
            if display_name is not None and profile.display_name != display_name:
                continue
            return profile
        return None

    def _check_username(self, profile_id: str, username: Optional[str]) -> None:
        if not username:
            return
        for other in self.profiles.values():
            if other.id != profile_id and other.username == username:
                raise _unique_violation("profiles_username_key")

    def upsert_profile(self, profile_id: str, **fields: Any) -> ProfileRecord:
        values = {k: v for k, v in fields.items() if k in PROFILE_FIELDS}
        self._check_username(profile_id, values.get("username"))
        existing = self.profiles.get(profile_id)
        if existing:
            updated = replace(existing, **values)
        else:
            values.setdefault("points", 0)
            values.setdefault("verification_level", "none")
            updated = ProfileRecord(id=profile_id, created_at=self._now(), **values)
        self.profiles[profile_id] = updated
        return updated

    def update_profile(self, profile_id: str, **fields: Any) -> Optional[ProfileRecord]:
        existing = self.profiles.get(profile_id)
        if not existing:
            return None
        values = {k: v for k, v in fields.items() if k in PROFILE_FIELDS}
        self._check_username(profile_id, values.get("username"))
        updated = replace(existing, **values)
        self.profiles[profile_id] = updated
        return updated

    def increment_profile_points(self, profile_id: str, delta: int) -> Optional[int]:
        existing = self.profiles.get(profile_id)
        if not existing:
            return None
        existing.points = (existing.points or 0) + delta
        return existing.points

    def has_any_role(self, user_id: str, roles: Iterable[str]) -> bool:
        return any((user_id, role) in self.user_roles for role in roles)

    def upsert_user_role(self, user_id: str, role: str) -> None:
        self.user_roles.add((user_id, role))

    # Exams and boards

    def get_exam(self, exam_id: str) -> Optional[ExamRecord]:
        return self.exams.get(exam_id)

    def get_exam_by_slug(self, slug: str) -> Optional[ExamRecord]:
        for exam in self.exams.values():
            if exam.slug == slug:
                return exam
        return None

    def upsert_exam(
        self, slug: str, name: str, description: str | None = None
    ) -> ExamRecord:
        existing = self.get_exam_by_slug(slug)
        if existing:
            existing.name = name
            existing.description = description
            return existing
        record = ExamRecord(id=_new_id(), slug=slug, name=name, description=description)
        self.exams[record.id] = record
        return record

    def get_board(self, board_id: str) -> Optional[BoardRecord]:
        return self.boards.get(board_id)

    def find_board(self, exam_slug: str, board_slug: str) -> Optional[BoardRecord]:
        exam = self.get_exam_by_slug(exam_slug)
        if not exam:
            return None
        for board in self.boards.values():
            if board.exam_id == exam.id and board.slug == board_slug:
                return board
        return None

    def list_boards(self, exam_slug: str) -> list[BoardRecord]:
        exam = self.get_exam_by_slug(exam_slug)
        if not exam:
            return []
        return [b for b in self.boards.values() if b.exam_id == exam.id]

    def upsert_board(
        self, exam_id: str, slug: str, name: str, description: str | None = None
    ) -> BoardRecord:
        if exam_id not in self.exams:
            raise _fk_violation("boards", "boards_exam_id_fkey")
        for board in self.boards.values():
            if board.exam_id == exam_id and board.slug == slug:
                board.name = name
                board.description = description
                return board
        record = BoardRecord(
            id=_new_id(), exam_id=exam_id, slug=slug, name=name, description=description
        )
        self.boards[record.id] = record
        return record

    # Posts, comments, likes, adoptions

    def create_post(
        self,
        board_id: str,
        *,
        author_name: str,
        title: str,
        content: str,
        post_type: str = "general",
    ) -> PostRecord:
        if board_id not in self.boards:
            raise _fk_violation("posts", "posts_board_id_fkey")
        record = PostRecord(
            id=_new_id(),
            board_id=board_id,
            author_name=author_name,
            title=title,
            content=content,
            post_type=post_type,
            view_count=0,
            created_at=self._now(),
        )
        self.posts[record.id] = record
        return record

    def get_post(self, post_id: str) -> Optional[PostRecord]:
        return self.posts.get(post_id)

    def list_posts(
        self, board_ids: list[str], limit: int | None = None
    ) -> list[PostRecord]:
        wanted = set(board_ids)
        rows = [p for p in self.posts.values() if p.board_id in wanted]
        rows.sort(key=lambda p: p.created_at, reverse=True)
        return rows[:limit] if limit is not None else rows

    def set_post_view_count(self, post_id: str, view_count: int) -> None:
        post = self.posts.get(post_id)
        if post:
            post.view_count = view_count

    def count_comments(self, post_ids: list[str]) -> dict[str, int]:
        wanted = set(post_ids)
        counts: dict[str, int] = {}
        for comment in self.comments.values():
            if comment.post_id in wanted:
                counts[comment.post_id] = counts.get(comment.post_id, 0) + 1
        return counts

    def count_likes(self, post_ids: list[str]) -> dict[str, int]:
        wanted = set(post_ids)
        counts: dict[str, int] = {}
        for post_id, _ in self.likes:
            if post_id in wanted:
                counts[post_id] = counts.get(post_id, 0) + 1
        return counts

    def create_comment(
        self,
        post_id: str,
        *,
        author_name: str,
        content: str,
        parent_id: str | None = None,
    ) -> CommentRecord:
        if post_id not in self.posts:
            raise _fk_violation("comments", "comments_post_id_fkey")
        if parent_id and parent_id not in self.comments:
            raise _fk_violation("comments", "comments_parent_id_fkey")
        record = CommentRecord(
            id=_new_id(),
            post_id=post_id,
            author_name=author_name,
            content=content,
            parent_id=parent_id,
            created_at=self._now(),
        )
        self.comments[record.id] = record
        return record

    def get_comment(self, comment_id: str) -> Optional[CommentRecord]:
        return self.comments.get(comment_id)

    def list_comments(self, post_id: str) -> list[CommentRecord]:
        rows = [c for c in self.comments.values() if c.post_id == post_id]
        rows.sort(key=lambda c: c.created_at)
        return rows

    def has_like(self, post_id: str, user_id: str) -> bool:
        return (post_id, user_id) in self.likes

    def add_like(self, post_id: str, user_id: str) -> None:
        if post_id not in self.posts:
            raise _fk_violation("post_likes", "post_likes_post_id_fkey")
        if (post_id, user_id) in self.likes:
            raise _unique_violation("post_likes_pkey")
        self.likes.add((post_id, user_id))

    def remove_like(self, post_id: str, user_id: str) -> None:
        self.likes.discard((post_id, user_id))

    def get_adoption(self, post_id: str) -> Optional[AdoptionRecord]:
        return self.adoptions.get(post_id)

    def create_adoption(
        self,
        post_id: str,
        comment_id: str,
        *,
        adopter_name: str,
        selected_author_name: str,
        points_awarded: int,
    ) -> AdoptionRecord:
        if post_id in self.adoptions:
            raise _unique_violation("answer_adoptions_post_id_key")
        if comment_id not in self.comments:
            raise _fk_violation("answer_adoptions", "answer_adoptions_comment_id_fkey")
        record = AdoptionRecord(
            id=_new_id(),
            post_id=post_id,
            comment_id=comment_id,
            adopter_name=adopter_name,
            selected_author_name=selected_author_name,
            points_awarded=points_awarded,
            created_at=self._now(),
        )
        self.adoptions[post_id] = record
        return record

    # Instructor rankings and votes

    def list_rankings(
        self, exam_slug: str, limit: int | None = None
    ) -> list[RankingRecord]:
        rows = [r for r in self.rankings.values() if r.exam_slug == exam_slug]
        rows.sort(key=lambda r: (r.subject, r.instructor_name))
        return rows[:limit] if limit is not None else rows

    def find_ranking(
        self, exam_slug: str, instructor_name: str, subject: str | None = None
    ) -> Optional[RankingRecord]:
        for row in self.list_rankings(exam_slug):
            if row.instructor_name != instructor_name:
                continue
            if subject is not None and row.subject != subject:
                continue
            return row
        return None

    def get_ranking(self, ranking_id: str, exam_slug: str) -> Optional[RankingRecord]:
        row = self.rankings.get(ranking_id)
        if row and row.exam_slug == exam_slug:
            return row
        return None

    def max_ranking_rank(self, exam_slug: str) -> Optional[int]:
        ranks = [r.rank for r in self.rankings.values() if r.exam_slug == exam_slug]
        return max(ranks) if ranks else None

    def upsert_ranking(
        self,
        exam_slug: str,
        subject: str,
        instructor_name: str,
        *,
        rank: int,
        confidence: int,
        trend: str = "-",
        source_type: str = "admin",
        is_seed: bool = False,
    ) -> RankingRecord:
        existing = self.find_ranking(exam_slug, instructor_name, subject=subject)
        if existing:
            existing.rank = rank
            existing.confidence = confidence
            existing.trend = trend
            existing.source_type = source_type
            existing.is_seed = is_seed
            return existing
        record = RankingRecord(
            id=_new_id(),
            exam_slug=exam_slug,
            subject=subject,
            instructor_name=instructor_name,
            rank=rank,
            confidence=confidence,
            trend=trend,
            source_type=source_type,
            is_seed=is_seed,
        )
        self.rankings[record.id] = record
        return record

    def delete_ranking(self, ranking_id: str, exam_slug: str) -> None:
        if self.get_ranking(ranking_id, exam_slug):
            del self.rankings[ranking_id]

    def list_votes(self, exam_slug: str) -> list[VoteRecord]:
        return [v for v in self.votes.values() if v.exam_slug == exam_slug]

    def find_vote(self, exam_slug: str, voter_name: str) -> Optional[VoteRecord]:
        rows = [
            v
            for v in self.votes.values()
            if v.exam_slug == exam_slug and v.voter_name == voter_name
        ]
        rows.sort(key=lambda v: v.created_at)
        return rows[0] if rows else None

    def create_vote(
        self, exam_slug: str, instructor_name: str, voter_name: str
    ) -> VoteRecord:
        if self.find_vote(exam_slug, voter_name):
            raise _unique_violation("instructor_votes_exam_slug_voter_name_key")
        record = VoteRecord(
            id=_new_id(),
            exam_slug=exam_slug,
            instructor_name=instructor_name,
            voter_name=voter_name,
            created_at=self._now(),
        )
        self.votes[record.id] = record
        return record

    def delete_votes(self, exam_slug: str, instructor_name: str) -> int:
        doomed = [
            vote_id
            for vote_id, v in self.votes.items()
            if v.exam_slug == exam_slug and v.instructor_name == instructor_name
        ]
        for vote_id in doomed:
            del self.votes[vote_id]
        return len(doomed)

    # Cutoff scores and briefings

    def list_cutoffs(
        self, exam_slug: str, limit: int | None = None
    ) -> list[CutoffRecord]:
        rows = [c for c in self.cutoffs.values() if c.exam_slug == exam_slug]
        rows.sort(key=lambda c: (-c.year, c.university, c.major))
        return rows[:limit] if limit is not None else rows

    def upsert_cutoff(
        self,
        exam_slug: str,
        university: str,
        major: str,
        year: int,
        *,
        score_band: str,
        note: str | None = None,
        source: str | None = None,
    ) -> CutoffRecord:
        for row in self.cutoffs.values():
            if (row.exam_slug, row.university, row.major, row.year) == (
                exam_slug,
                university,
                major,
                year,
            ):
                row.score_band = score_band
                row.note = note
                row.source = source
                return row
        record = CutoffRecord(
            id=_new_id(),
            exam_slug=exam_slug,
            university=university,
            major=major,
            year=year,
            score_band=score_band,
            note=note,
            source=source,
        )
        self.cutoffs[record.id] = record
        return record

    def delete_cutoff(self, cutoff_id: str, exam_slug: str) -> None:
        row = self.cutoffs.get(cutoff_id)
        if row and row.exam_slug == exam_slug:
            del self.cutoffs[cutoff_id]

    def list_daily_briefings(
        self, exam_slug: str, limit: int = 10
    ) -> list[BriefingRecord]:
        rows = [b for b in self.briefings.values() if b.exam_slug == exam_slug]
        rows.sort(key=lambda b: b.published_at, reverse=True)
        return rows[:limit]

    def add_daily_briefing(
        self,
        exam_slug: str,
        *,
        title: str,
        summary: str,
        source_label: str | None = None,
        published_at: datetime | None = None,
    ) -> BriefingRecord:
        record = BriefingRecord(
            id=_new_id(),
            exam_slug=exam_slug,
            title=title,
            summary=summary,
            source_label=source_label,
            published_at=published_at or self._now(),
        )
        self.briefings[record.id] = record
        return record

    # Point ledger

    def add_ledger_entry(
        self,
        *,
        profile_id: str | None,
        receiver_name: str,
        source: str,
        amount: int,
        meta: dict | None = None,
    ) -> LedgerRecord:
        if profile_id and profile_id not in self.profiles:
            raise _fk_violation("point_ledger", "point_ledger_profile_id_fkey")
        record = LedgerRecord(
            id=_new_id(),
            profile_id=profile_id,
            receiver_name=receiver_name,
            source=source,
            amount=amount,
            meta=dict(meta) if meta else None,
            created_at=self._now(),
        )
        self.ledger[record.id] = record
        return record

    def list_ledger(
        self,
        *,
        profile_id: str | None = None,
        receiver_name: str | None = None,
        limit: int = 30,
    ) -> list[LedgerRecord]:
        rows = list(self.ledger.values())
        if profile_id is not None:
            rows = [r for r in rows if r.profile_id == profile_id]
        if receiver_name is not None:
            rows = [r for r in rows if r.receiver_name == receiver_name]
        rows.sort(key=lambda r: r.created_at, reverse=True)
        return rows[:limit]

    # Verification requests

    def create_verification_request(
        self,
        *,
        profile_id: str | None,
        requester_name: str,
        exam_slug: str,
        verification_type: str,
        evidence_url: str,
        memo: str | None = None,
    ) -> VerificationRecord:
        if profile_id and profile_id not in self.profiles:
            raise _fk_violation(
                "verification_requests", "verification_requests_profile_id_fkey"
            )
        record = VerificationRecord(
            id=_new_id(),
            profile_id=profile_id,
            requester_name=requester_name,
            exam_slug=exam_slug,
            verification_type=verification_type,
            evidence_url=evidence_url,
            memo=memo,
            status="pending",
            created_at=self._now(),
        )
        self.verifications[record.id] = record
        return record

    def get_verification_request(self, request_id: str) -> Optional[VerificationRecord]:
        return self.verifications.get(request_id)

    def list_verification_requests(
        self, status: str | None = None, limit: int = 100
    ) -> list[VerificationRecord]:
        rows = list(self.verifications.values())
        if status:
            rows = [r for r in rows if r.status == status]
        rows.sort(key=lambda r: r.created_at, reverse=True)
        return rows[:limit]

    def update_verification_request(
        self, request_id: str, *, status: str, reviewed_by: str | None = None
    ) -> Optional[VerificationRecord]:
        record = self.verifications.get(request_id)
        if not record:
            return None
        record.status = status
        record.reviewed_by = reviewed_by
        record.reviewed_at = self._now()
        return record
