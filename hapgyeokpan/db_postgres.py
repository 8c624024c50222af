"""
SQLAlchemy-backed DbClient for the Supabase Postgres database.

Accepts any SQLAlchemy URL, so tests run it against SQLite in memory.
"""

from __future__ import annotations

import uuid
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Iterable, Iterator, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    create_engine,
    delete,
    func,
    select,
    update,
)
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from hapgyeokpan.db import (
    PROFILE_FIELDS,
    AdoptionRecord,
    BoardRecord,
    BriefingRecord,
    CommentRecord,
    CutoffRecord,
    ExamRecord,
    LedgerRecord,
    PostRecord,
    ProfileRecord,
    RankingRecord,
    VerificationRecord,
    VoteRecord,
    utcnow,
)
from hapgyeokpan.errors import StoreError

Base = declarative_base()


def _new_id() -> str:
    return str(uuid.uuid4())


class ProfileRow(Base):
    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True)
    username = Column(String, nullable=True, unique=True)
    display_name = Column(String, nullable=True, index=True)
    points = Column(Integer, nullable=False, default=0)
    verification_level = Column(String, nullable=False, default="none")
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class UserRoleRow(Base):
    __tablename__ = "user_roles"
    __table_args__ = (UniqueConstraint("user_id", "role"),)

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(36), nullable=False, index=True)
    role = Column(String, nullable=False)


class ExamRow(Base):
    __tablename__ = "exams"

    id = Column(String(36), primary_key=True, default=_new_id)
    slug = Column(String, nullable=False, unique=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)


class BoardRow(Base):
    __tablename__ = "boards"
    __table_args__ = (UniqueConstraint("exam_id", "slug"),)

    id = Column(String(36), primary_key=True, default=_new_id)
    exam_id = Column(String(36), ForeignKey("exams.id"), nullable=False)
    slug = Column(String, nullable=False)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)


class PostRow(Base):
    __tablename__ = "posts"

    id = Column(String(36), primary_key=True, default=_new_id)
    board_id = Column(String(36), ForeignKey("boards.id"), nullable=False, index=True)
    author_name = Column(String, nullable=True)
    title = Column(String, nullable=False)
    content = Column(Text, nullable=False)
    post_type = Column(String, nullable=False, default="general")
    view_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class CommentRow(Base):
    __tablename__ = "comments"

    id = Column(String(36), primary_key=True, default=_new_id)
    post_id = Column(String(36), ForeignKey("posts.id"), nullable=False, index=True)
    parent_id = Column(String(36), ForeignKey("comments.id"), nullable=True)
    author_name = Column(String, nullable=True)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class PostLikeRow(Base):
    __tablename__ = "post_likes"

    post_id = Column(String(36), ForeignKey("posts.id"), primary_key=True)
    user_id = Column(String(36), primary_key=True)


class AdoptionRow(Base):
    __tablename__ = "answer_adoptions"

    id = Column(String(36), primary_key=True, default=_new_id)
    post_id = Column(String(36), ForeignKey("posts.id"), nullable=False, unique=True)
    comment_id = Column(String(36), ForeignKey("comments.id"), nullable=False)
    adopter_name = Column(String, nullable=False)
    selected_author_name = Column(String, nullable=False)
    points_awarded = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class RankingRow(Base):
    __tablename__ = "instructor_rankings"
    __table_args__ = (UniqueConstraint("exam_slug", "subject", "instructor_name"),)

    id = Column(String(36), primary_key=True, default=_new_id)
    exam_slug = Column(String, nullable=False, index=True)
    subject = Column(String, nullable=False)
    instructor_name = Column(String, nullable=False)
    rank = Column(Integer, nullable=False)
    trend = Column(String, nullable=False, default="-")
    confidence = Column(Integer, nullable=True)
    source_type = Column(String, nullable=True)
    is_seed = Column(Boolean, nullable=False, default=False)


class VoteRow(Base):
    __tablename__ = "instructor_votes"
    __table_args__ = (UniqueConstraint("exam_slug", "voter_name"),)

    id = Column(String(36), primary_key=True, default=_new_id)
    exam_slug = Column(String, nullable=False, index=True)
    instructor_name = Column(String, nullable=False)
    voter_name = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class CutoffRow(Base):
    __tablename__ = "cutoff_scores"
    __table_args__ = (UniqueConstraint("exam_slug", "university", "major", "year"),)

    id = Column(String(36), primary_key=True, default=_new_id)
    exam_slug = Column(String, nullable=False, index=True)
    university = Column(String, nullable=False)
    major = Column(String, nullable=False)
    year = Column(Integer, nullable=False)
    score_band = Column(String, nullable=False)
    note = Column(Text, nullable=True)
    source = Column(String, nullable=True)


class BriefingRow(Base):
    __tablename__ = "daily_briefings"

    id = Column(String(36), primary_key=True, default=_new_id)
    exam_slug = Column(String, nullable=False, index=True)
    title = Column(String, nullable=False)
    summary = Column(Text, nullable=False)
    source_label = Column(String, nullable=True)
    published_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class LedgerRow(Base):
    __tablename__ = "point_ledger"

    id = Column(String(36), primary_key=True, default=_new_id)
    profile_id = Column(String(36), ForeignKey("profiles.id"), nullable=True, index=True)
    receiver_name = Column(String, nullable=False, index=True)
    source = Column(String, nullable=False)
    amount = Column(Integer, nullable=False)
    meta = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class VerificationRow(Base):
    __tablename__ = "verification_requests"

    id = Column(String(36), primary_key=True, default=_new_id)
    profile_id = Column(String(36), ForeignKey("profiles.id"), nullable=True)
    requester_name = Column(String, nullable=False)
    exam_slug = Column(String, nullable=False)
    verification_type = Column(String, nullable=False)
    evidence_url = Column(String, nullable=False)
    memo = Column(Text, nullable=True)
    status = Column(String, nullable=False, default="pending", index=True)
    reviewed_by = Column(String, nullable=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


def _to_profile(row: ProfileRow) -> ProfileRecord:
    return ProfileRecord(
        id=row.id,
        username=row.username,
        display_name=row.display_name,
        points=row.points,
        verification_level=row.verification_level,
        created_at=row.created_at,
    )


def _to_exam(row: ExamRow) -> ExamRecord:
    return ExamRecord(id=row.id, slug=row.slug, name=row.name, description=row.description)


def _to_board(row: BoardRow) -> BoardRecord:
    return BoardRecord(
        id=row.id,
        exam_id=row.exam_id,
        slug=row.slug,
        name=row.name,
        description=row.description,
    )


def _to_post(row: PostRow) -> PostRecord:
    return PostRecord(
        id=row.id,
        board_id=row.board_id,
        author_name=row.author_name,
        title=row.title,
        content=row.content,
        post_type=row.post_type,
        view_count=row.view_count or 0,
        created_at=row.created_at,
    )


def _to_comment(row: CommentRow) -> CommentRecord:
    return CommentRecord(
        id=row.id,
        post_id=row.post_id,
        author_name=row.author_name,
        content=row.content,
        parent_id=row.parent_id,
        created_at=row.created_at,
    )


def _to_adoption(row: AdoptionRow) -> AdoptionRecord:
    return AdoptionRecord(
        id=row.id,
        post_id=row.post_id,
        comment_id=row.comment_id,
        adopter_name=row.adopter_name,
        selected_author_name=row.selected_author_name,
        points_awarded=row.points_awarded,
        created_at=row.created_at,
    )


def _to_ranking(row: RankingRow) -> RankingRecord:
    return RankingRecord(
        id=row.id,
        exam_slug=row.exam_slug,
        subject=row.subject,
        instructor_name=row.instructor_name,
        rank=row.rank,
        confidence=row.confidence,
        trend=row.trend,
        source_type=row.source_type,
        is_seed=bool(row.is_seed),
    )


def _to_vote(row: VoteRow) -> VoteRecord:
    return VoteRecord(
        id=row.id,
        exam_slug=row.exam_slug,
        instructor_name=row.instructor_name,
        voter_name=row.voter_name,
        created_at=row.created_at,
    )


def _to_cutoff(row: CutoffRow) -> CutoffRecord:
    return CutoffRecord(
        id=row.id,
        exam_slug=row.exam_slug,
        university=row.university,
        major=row.major,
        year=row.year,
        score_band=row.score_band,
        note=row.note,
        source=row.source,
    )


def _to_briefing(row: BriefingRow) -> BriefingRecord:
    return BriefingRecord(
        id=row.id,
        exam_slug=row.exam_slug,
        title=row.title,
        summary=row.summary,
        source_label=row.source_label,
        published_at=row.published_at,
    )


def _to_ledger(row: LedgerRow) -> LedgerRecord:
    return LedgerRecord(
        id=row.id,
        profile_id=row.profile_id,
        receiver_name=row.receiver_name,
        source=row.source,
        amount=row.amount,
        meta=row.meta,
        created_at=row.created_at,
    )


def _to_verification(row: VerificationRow) -> VerificationRecord:
    return VerificationRecord(
        id=row.id,
        profile_id=row.profile_id,
        requester_name=row.requester_name,
        exam_slug=row.exam_slug,
        verification_type=row.verification_type,
        evidence_url=row.evidence_url,
        memo=row.memo,
        status=row.status,
        reviewed_by=row.reviewed_by,
        reviewed_at=row.reviewed_at,
        created_at=row.created_at,
    )


class PostgresDbClient:
    """
    SQLAlchemy-backed implementation. Accepts any SQLAlchemy URL (e.g., Postgres or SQLite for tests).
    """

    def __init__(self, database_url: str, create_schema: bool = True):
        if not database_url:
            raise ValueError("DATABASE_URL is required for PostgresDbClient")
        self.engine = create_engine(
            database_url,
            future=True,
            pool_pre_ping=True,
            pool_recycle=1800,
        )
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        if create_schema:
            Base.metadata.create_all(self.engine)

    @contextmanager
    def _session(self) -> Iterator[Session]:
        """Yield a session and translate driver failures into StoreError."""
        with self.Session() as session:
            try:
                yield session
            except SQLAlchemyError as exc:
                session.rollback()
                orig = getattr(exc, "orig", None)
                raise StoreError(str(orig or exc)) from exc

    # Profiles and roles

    def get_profile(self, profile_id: str) -> Optional[ProfileRecord]:
        with self._session() as session:
            row = session.get(ProfileRow, profile_id)
            return _to_profile(row) if row else None

    def find_profile(
        self,
        *,
        username: str | None = None,
        display_name: str | None = None,
        exclude_id: str | None = None,
    ) -> Optional[ProfileRecord]:
        stmt = select(ProfileRow)
        if username is not None:
            stmt = stmt.where(ProfileRow.username == username)
        if display_name is not None:
            stmt = stmt.where(ProfileRow.display_name == display_name)
        if exclude_id:
            stmt = stmt.where(ProfileRow.id != exclude_id)
        stmt = stmt.order_by(ProfileRow.created_at.asc()).limit(1)
        with self._session() as session:
            row = session.execute(stmt).scalar_one_or_none()
            return _to_profile(row) if row else None

    def upsert_profile(self, profile_id: str, **fields: Any) -> ProfileRecord:
        values = {k: v for k, v in fields.items() if k in PROFILE_FIELDS}
        with self._session() as session:
            row = session.get(ProfileRow, profile_id)
            if row:
                for key, value in values.items():
                    setattr(row, key, value)
            else:
                values.setdefault("points", 0)
                values.setdefault("verification_level", "none")
                row = ProfileRow(id=profile_id, **values)
                session.add(row)
            session.commit()
            session.refresh(row)
            return _to_profile(row)

    def update_profile(self, profile_id: str, **fields: Any) -> Optional[ProfileRecord]:
        values = {k: v for k, v in fields.items() if k in PROFILE_FIELDS}
        with self._session() as session:
            row = session.get(ProfileRow, profile_id)
            if not row:
                return None
            for key, value in values.items():
                setattr(row, key, value)
            session.commit()
            session.refresh(row)
            return _to_profile(row)

    def increment_profile_points(self, profile_id: str, delta: int) -> Optional[int]:
        with self._session() as session:
            result = session.execute(
                update(ProfileRow)
                .where(ProfileRow.id == profile_id)
                .values(points=func.coalesce(ProfileRow.points, 0) + delta)
            )
            session.commit()
            if not result.rowcount:
                return None
            return session.execute(
                select(ProfileRow.points).where(ProfileRow.id == profile_id)
            ).scalar_one()

    def has_any_role(self, user_id: str, roles: Iterable[str]) -> bool:
        stmt = (
            select(UserRoleRow.id)
            .where(UserRoleRow.user_id == user_id, UserRoleRow.role.in_(list(roles)))
            .limit(1)
        )
        with self._session() as session:
            return session.execute(stmt).first() is not None

    def upsert_user_role(self, user_id: str, role: str) -> None:
        with self._session() as session:
            existing = session.execute(
                select(UserRoleRow).where(
                    UserRoleRow.user_id == user_id, UserRoleRow.role == role
                )
            ).scalar_one_or_none()
            if not existing:
                session.add(UserRoleRow(user_id=user_id, role=role))
                session.commit()

    # Exams and boards

    def get_exam(self, exam_id: str) -> Optional[ExamRecord]:
        with self._session() as session:
            row = session.get(ExamRow, exam_id)
            return _to_exam(row) if row else None

    def get_exam_by_slug(self, slug: str) -> Optional[ExamRecord]:
        with self._session() as session:
            row = session.execute(
                select(ExamRow).where(ExamRow.slug == slug)
            ).scalar_one_or_none()
            return _to_exam(row) if row else None

    def upsert_exam(
        self, slug: str, name: str, description: str | None = None
    ) -> ExamRecord:
        with self._session() as session:
            row = session.execute(
                select(ExamRow).where(ExamRow.slug == slug)
            ).scalar_one_or_none()
            if row:
                row.name = name
                row.description = description
            else:
                row = ExamRow(slug=slug, name=name, description=description)
                session.add(row)
            session.commit()
            session.refresh(row)
            return _to_exam(row)

    def get_board(self, board_id: str) -> Optional[BoardRecord]:
        with self._session() as session:
            row = session.get(BoardRow, board_id)
            return _to_board(row) if row else None

    def find_board(self, exam_slug: str, board_slug: str) -> Optional[BoardRecord]:
        stmt = (
            select(BoardRow)
            .join(ExamRow, ExamRow.id == BoardRow.exam_id)
            .where(ExamRow.slug == exam_slug, BoardRow.slug == board_slug)
        )
        with self._session() as session:
            row = session.execute(stmt).scalar_one_or_none()
            return _to_board(row) if row else None

    def list_boards(self, exam_slug: str) -> list[BoardRecord]:
        stmt = (
            select(BoardRow)
            .join(ExamRow, ExamRow.id == BoardRow.exam_id)
            .where(ExamRow.slug == exam_slug)
        )
        with self._session() as session:
            return [_to_board(row) for row in session.execute(stmt).scalars()]

    def upsert_board(
        self, exam_id: str, slug: str, name: str, description: str | None = None
    ) -> BoardRecord:
        with self._session() as session:
            row = session.execute(
                select(BoardRow).where(BoardRow.exam_id == exam_id, BoardRow.slug == slug)
            ).scalar_one_or_none()
            if row:
                row.name = name
                row.description = description
            else:
                row = BoardRow(exam_id=exam_id, slug=slug, name=name, description=description)
                session.add(row)
            session.commit()
            session.refresh(row)
            return _to_board(row)

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
        with self._session() as session:
            row = PostRow(
                board_id=board_id,
                author_name=author_name,
                title=title,
                content=content,
                post_type=post_type,
                view_count=0,
            )
            session.add(row)
            session.commit()
            session.refresh(row)
            return _to_post(row)

    def get_post(self, post_id: str) -> Optional[PostRecord]:
        with self._session() as session:
            row = session.get(PostRow, post_id)
            return _to_post(row) if row else None

    def list_posts(
        self, board_ids: list[str], limit: int | None = None
    ) -> list[PostRecord]:
        if not board_ids:
            return []
        stmt = (
            select(PostRow)
            .where(PostRow.board_id.in_(board_ids))
            .order_by(PostRow.created_at.desc())
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        with self._session() as session:
            return [_to_post(row) for row in session.execute(stmt).scalars()]

    def set_post_view_count(self, post_id: str, view_count: int) -> None:
        with self._session() as session:
            session.execute(
                update(PostRow).where(PostRow.id == post_id).values(view_count=view_count)
            )
            session.commit()

    def _count_by_post(self, column, post_ids: list[str]) -> dict[str, int]:
        if not post_ids:
            return {}
        stmt = (
            select(column, func.count())
            .where(column.in_(post_ids))
            .group_by(column)
        )
        with self._session() as session:
            return {post_id: count for post_id, count in session.execute(stmt)}

    def count_comments(self, post_ids: list[str]) -> dict[str, int]:
        return self._count_by_post(CommentRow.post_id, post_ids)

    def count_likes(self, post_ids: list[str]) -> dict[str, int]:
        return self._count_by_post(PostLikeRow.post_id, post_ids)

    def create_comment(
        self,
        post_id: str,
        *,
        author_name: str,
        content: str,
        parent_id: str | None = None,
    ) -> CommentRecord:
        with self._session() as session:
            row = CommentRow(
                post_id=post_id,
                parent_id=parent_id,
                author_name=author_name,
                content=content,
            )
            session.add(row)
            session.commit()
            session.refresh(row)
            return _to_comment(row)

    def get_comment(self, comment_id: str) -> Optional[CommentRecord]:
        with self._session() as session:
            row = session.get(CommentRow, comment_id)
            return _to_comment(row) if row else None

    def list_comments(self, post_id: str) -> list[CommentRecord]:
        stmt = (
            select(CommentRow)
            .where(CommentRow.post_id == post_id)
            .order_by(CommentRow.created_at.asc())
        )
        with self._session() as session:
            return [_to_comment(row) for row in session.execute(stmt).scalars()]

    def has_like(self, post_id: str, user_id: str) -> bool:
        with self._session() as session:
            return session.get(PostLikeRow, (post_id, user_id)) is not None

    def add_like(self, post_id: str, user_id: str) -> None:
        with self._session() as session:
            session.add(PostLikeRow(post_id=post_id, user_id=user_id))
            session.commit()

    def remove_like(self, post_id: str, user_id: str) -> None:
        with self._session() as session:
            session.execute(
                delete(PostLikeRow).where(
                    PostLikeRow.post_id == post_id, PostLikeRow.user_id == user_id
                )
            )
            session.commit()

    def get_adoption(self, post_id: str) -> Optional[AdoptionRecord]:
        with self._session() as session:
            row = session.execute(
                select(AdoptionRow).where(AdoptionRow.post_id == post_id)
            ).scalar_one_or_none()
            return _to_adoption(row) if row else None

    def create_adoption(
        self,
        post_id: str,
        comment_id: str,
        *,
        adopter_name: str,
        selected_author_name: str,
        points_awarded: int,
    ) -> AdoptionRecord:
        with self._session() as session:
            row = AdoptionRow(
                post_id=post_id,
                comment_id=comment_id,
                adopter_name=adopter_name,
                selected_author_name=selected_author_name,
                points_awarded=points_awarded,
            )
            session.add(row)
            session.commit()
            session.refresh(row)
            return _to_adoption(row)

    # Instructor rankings and votes

    def list_rankings(
        self, exam_slug: str, limit: int | None = None
    ) -> list[RankingRecord]:
        stmt = (
            select(RankingRow)
            .where(RankingRow.exam_slug == exam_slug)
            .order_by(RankingRow.subject.asc(), RankingRow.instructor_name.asc())
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        with self._session() as session:
            return [_to_ranking(row) for row in session.execute(stmt).scalars()]

    def find_ranking(
        self, exam_slug: str, instructor_name: str, subject: str | None = None
    ) -> Optional[RankingRecord]:
        stmt = select(RankingRow).where(
            RankingRow.exam_slug == exam_slug,
            RankingRow.instructor_name == instructor_name,
        )
        if subject is not None:
            stmt = stmt.where(RankingRow.subject == subject)
        stmt = stmt.order_by(RankingRow.subject.asc()).limit(1)
        with self._session() as session:
            row = session.execute(stmt).scalar_one_or_none()
            return _to_ranking(row) if row else None

    def get_ranking(self, ranking_id: str, exam_slug: str) -> Optional[RankingRecord]:
        stmt = select(RankingRow).where(
            RankingRow.id == ranking_id, RankingRow.exam_slug == exam_slug
        )
        with self._session() as session:
            row = session.execute(stmt).scalar_one_or_none()
            return _to_ranking(row) if row else None

    def max_ranking_rank(self, exam_slug: str) -> Optional[int]:
        stmt = select(func.max(RankingRow.rank)).where(RankingRow.exam_slug == exam_slug)
        with self._session() as session:
            return session.execute(stmt).scalar_one_or_none()

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
        with self._session() as session:
            row = session.execute(
                select(RankingRow).where(
                    RankingRow.exam_slug == exam_slug,
                    RankingRow.subject == subject,
                    RankingRow.instructor_name == instructor_name,
                )
            ).scalar_one_or_none()
            if row is None:
                row = RankingRow(
                    exam_slug=exam_slug,
                    subject=subject,
                    instructor_name=instructor_name,
                )
                session.add(row)
            row.rank = rank
            row.confidence = confidence
            row.trend = trend
            row.source_type = source_type
            row.is_seed = is_seed
            session.commit()
            session.refresh(row)
            return _to_ranking(row)

    def delete_ranking(self, ranking_id: str, exam_slug: str) -> None:
        with self._session() as session:
            session.execute(
                delete(RankingRow).where(
                    RankingRow.id == ranking_id, RankingRow.exam_slug == exam_slug
                )
            )
            session.commit()

    def list_votes(self, exam_slug: str) -> list[VoteRecord]:
        stmt = select(VoteRow).where(VoteRow.exam_slug == exam_slug)
        with self._session() as session:
            return [_to_vote(row) for row in session.execute(stmt).scalars()]

    def find_vote(self, exam_slug: str, voter_name: str) -> Optional[VoteRecord]:
        stmt = (
            select(VoteRow)
            .where(VoteRow.exam_slug == exam_slug, VoteRow.voter_name == voter_name)
            .order_by(VoteRow.created_at.asc())
            .limit(1)
        )
        with self._session() as session:
            row = session.execute(stmt).scalar_one_or_none()
            return _to_vote(row) if row else None

    def create_vote(
        self, exam_slug: str, instructor_name: str, voter_name: str
    ) -> VoteRecord:
        with self._session() as session:
            row = VoteRow(
                exam_slug=exam_slug,
                instructor_name=instructor_name,
                voter_name=voter_name,
            )
            session.add(row)
            session.commit()
            session.refresh(row)
            return _to_vote(row)

    def delete_votes(self, exam_slug: str, instructor_name: str) -> int:
        with self._session() as session:
            result = session.execute(
                delete(VoteRow).where(
                    VoteRow.exam_slug == exam_slug,
                    VoteRow.instructor_name == instructor_name,
                )
            )
            session.commit()
            return result.rowcount or 0

    # Cutoff scores and briefings

    def list_cutoffs(
        self, exam_slug: str, limit: int | None = None
    ) -> list[CutoffRecord]:
        stmt = (
            select(CutoffRow)
            .where(CutoffRow.exam_slug == exam_slug)
            .order_by(
                CutoffRow.year.desc(),
                CutoffRow.university.asc(),
                CutoffRow.major.asc(),
            )
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        with self._session() as session:
            return [_to_cutoff(row) for row in session.execute(stmt).scalars()]

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
        with self._session() as session:
            row = session.execute(
                select(CutoffRow).where(
                    CutoffRow.exam_slug == exam_slug,
                    CutoffRow.university == university,
                    CutoffRow.major == major,
                    CutoffRow.year == year,
                )
            ).scalar_one_or_none()
            if row is None:
                row = CutoffRow(
                    exam_slug=exam_slug, university=university, major=major, year=year
                )
                session.add(row)
            row.score_band = score_band
            row.note = note
            row.source = source
            session.commit()
            session.refresh(row)
            return _to_cutoff(row)

    def delete_cutoff(self, cutoff_id: str, exam_slug: str) -> None:
        with self._session() as session:
            session.execute(
                delete(CutoffRow).where(
                    CutoffRow.id == cutoff_id, CutoffRow.exam_slug == exam_slug
                )
            )
            session.commit()

    def list_daily_briefings(
        self, exam_slug: str, limit: int = 10
    ) -> list[BriefingRecord]:
        stmt = (
            select(BriefingRow)
            .where(BriefingRow.exam_slug == exam_slug)
            .order_by(BriefingRow.published_at.desc())
            .limit(limit)
        )
        with self._session() as session:
            return [_to_briefing(row) for row in session.execute(stmt).scalars()]

    def add_daily_briefing(
        self,
        exam_slug: str,
        *,
        title: str,
        summary: str,
        source_label: str | None = None,
        published_at: datetime | None = None,
    ) -> BriefingRecord:
        with self._session() as session:
            row = BriefingRow(
                exam_slug=exam_slug,
                title=title,
                summary=summary,
                source_label=source_label,
                published_at=published_at or utcnow(),
            )
            session.add(row)
            session.commit()
            session.refresh(row)
            return _to_briefing(row)

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
        with self._session() as session:
            row = LedgerRow(
                profile_id=profile_id,
                receiver_name=receiver_name,
                source=source,
                amount=amount,
                meta=meta,
            )
            session.add(row)
            session.commit()
            session.refresh(row)
            return _to_ledger(row)

    def list_ledger(
        self,
        *,
        profile_id: str | None = None,
        receiver_name: str | None = None,
        limit: int = 30,
    ) -> list[LedgerRecord]:
        stmt = select(LedgerRow)
        if profile_id is not None:
            stmt = stmt.where(LedgerRow.profile_id == profile_id)
        if receiver_name is not None:
            stmt = stmt.where(LedgerRow.receiver_name == receiver_name)
        stmt = stmt.order_by(LedgerRow.created_at.desc()).limit(limit)
        with self._session() as session:
            return [_to_ledger(row) for row in session.execute(stmt).scalars()]

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
        with self._session() as session:
            row = VerificationRow(
                profile_id=profile_id,
                requester_name=requester_name,
                exam_slug=exam_slug,
                verification_type=verification_type,
                evidence_url=evidence_url,
                memo=memo,
                status="pending",
            )
            session.add(row)
            session.commit()
            session.refresh(row)
            return _to_verification(row)

    def get_verification_request(self, request_id: str) -> Optional[VerificationRecord]:
        with self._session() as session:
            row = session.get(VerificationRow, request_id)
            return _to_verification(row) if row else None

    def list_verification_requests(
        self, status: str | None = None, limit: int = 100
    ) -> list[VerificationRecord]:
        stmt = select(VerificationRow)
        if status:
            stmt = stmt.where(VerificationRow.status == status)
        stmt = stmt.order_by(VerificationRow.created_at.desc()).limit(limit)
        with self._session() as session:
            return [_to_verification(row) for row in session.execute(stmt).scalars()]

    def update_verification_request(
        self, request_id: str, *, status: str, reviewed_by: str | None = None
    ) -> Optional[VerificationRecord]:
        with self._session() as session:
            row = session.get(VerificationRow, request_id)
            if not row:
                return None
            row.status = status
            row.reviewed_by = reviewed_by
            row.reviewed_at = utcnow()
            session.commit()
            session.refresh(row)
            return _to_verification(row)
