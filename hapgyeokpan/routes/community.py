"""
Community routes: board catalog, feeds, post listings and detail, and post/comment/like/adopt writes.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Header

from hapgyeokpan import catalog
from hapgyeokpan.config import Settings, get_settings
from hapgyeokpan.db import DbClient, PostRecord
from hapgyeokpan.dependencies import get_db_client
from hapgyeokpan.errors import ApiError, StoreError
from hapgyeokpan.points import adoption_award, is_verified
from hapgyeokpan.routes.common import (
    ensure_exam_readable,
    ensure_exam_writable,
    iso,
    relative_time,
)
from hapgyeokpan.schemas import (
    AdoptRequest,
    AdoptResponse,
    AdoptionSummary,
    BoardPostsResponse,
    BoardPreview,
    BoardSummary,
    CatalogResponse,
    CommentItem,
    CreateCommentRequest,
    CreateCommentResponse,
    CreatePostRequest,
    CreatePostResponse,
    ExamBoardsResponse,
    ExamGroupSummary,
    FeedResponse,
    FeedSection,
    LikeRequest,
    LikeResponse,
    PostDetail,
    PostDetailResponse,
    PostSummary,
)
from hapgyeokpan.validation import (
    ANONYMOUS_AUTHOR,
    author_or_anonymous,
    board_from_referer,
    is_valid_uuid,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["community"])

PREVIEW_POSTS_PER_BOARD = 3
EXAM_PREVIEW_QUERY_LIMIT = 240


def _post_summaries(db: DbClient, posts: list[PostRecord]) -> list[PostSummary]:
    post_ids = [post.id for post in posts]
    comment_counts = db.count_comments(post_ids)
    like_counts = db.count_likes(post_ids)
    return [
        PostSummary(
            id=post.id,
            title=post.title,
            author=post.author_name or ANONYMOUS_AUTHOR,
            comments=comment_counts.get(post.id, 0),
            likes=like_counts.get(post.id, 0),
            views=post.view_count or 0,
            created_at=iso(post.created_at),
            time_label=relative_time(post.created_at),
        )
        for post in posts
    ]


def _seed_summaries(posts: list[catalog.SeedPost]) -> list[PostSummary]:
    return [
        PostSummary(
            id=post.id,
            title=post.title,
            author=post.author,
            comments=post.comments,
            likes=catalog.deterministic_like_count(post.id, post.comments),
            views=post.views,
            time_label=post.time_label,
            is_sample=True,
        )
        for post in posts
    ]


def _post_exam_slug(db: DbClient, post: PostRecord) -> Optional[str]:
    board = db.get_board(post.board_id)
    if not board:
        return None
    exam = db.get_exam(board.exam_id)
    return exam.slug if exam else None


@router.get("/community", response_model=CatalogResponse)
def community_catalog(settings: Settings = Depends(get_settings)):
    groups = [
        ExamGroupSummary(
            exam_slug=group.exam_slug,
            exam_name=group.exam_name,
            description=group.description,
            boards=[
                BoardSummary(slug=b.slug, name=b.name, description=b.description)
                for b in group.boards
            ],
        )
        for group in catalog.BOARD_GROUPS
        if settings.is_exam_enabled(group.exam_slug)
    ]
    return CatalogResponse(groups=groups)


@router.get("/community/feed", response_model=FeedResponse)
def community_feed(
    db: DbClient = Depends(get_db_client),
    settings: Settings = Depends(get_settings),
):
    """Latest posts of each featured exam's free board."""
    sections = []
    for exam_slug in catalog.FEATURED_EXAM_SLUGS:
        if not settings.is_exam_enabled(exam_slug):
            continue
        posts: list[PostSummary] = []
        try:
            board = db.find_board(exam_slug, "free")
            if board:
                rows = db.list_posts([board.id], limit=PREVIEW_POSTS_PER_BOARD)
                posts = _post_summaries(db, rows)
        except StoreError as exc:
            logger.warning("Feed read failed for %s: %s", exam_slug, exc.message)
        source = "db"
        if not posts:
            seeds = catalog.seed_posts(exam_slug, "free")[:PREVIEW_POSTS_PER_BOARD]
            posts, source = _seed_summaries(seeds), "seed"
        sections.append(
            FeedSection(
                exam_slug=exam_slug,
                exam_name=catalog.exam_name(exam_slug),
                board_slug="free",
                board_name=catalog.board_name(exam_slug, "free"),
                posts=posts,
                source=source,
            )
        )
    return FeedResponse(sections=sections)


@router.get("/community/{exam}", response_model=ExamBoardsResponse)
def exam_boards(
    exam: str,
    db: DbClient = Depends(get_db_client),
    settings: Settings = Depends(get_settings),
):
    group = catalog.find_group(exam)
    if not group:
        raise ApiError(status_code=404, detail="시험 정보를 찾을 수 없습니다.")
    ensure_exam_readable(settings, exam)

    grouped: dict[str, list[PostRecord]] = {}
    board_ids: dict[str, str] = {}
    try:
        boards = db.list_boards(exam)
        board_ids = {board.slug: board.id for board in boards}
        rows = db.list_posts(list(board_ids.values()), limit=EXAM_PREVIEW_QUERY_LIMIT)
        for row in rows:
            bucket = grouped.setdefault(row.board_id, [])
            if len(bucket) < PREVIEW_POSTS_PER_BOARD:
                bucket.append(row)
    except StoreError as exc:
        logger.warning("Board preview read failed for %s: %s", exam, exc.message)
        grouped = {}

    previews = []
    for info in group.boards:
        rows = grouped.get(board_ids.get(info.slug, ""), [])
        if rows:
            posts, source = _post_summaries(db, rows), "db"
        else:
            seeds = catalog.seed_posts(exam, info.slug)[:PREVIEW_POSTS_PER_BOARD]
            posts, source = _seed_summaries(seeds), "seed"
        previews.append(
            BoardPreview(
                slug=info.slug,
                name=info.name,
                description=info.description,
                posts=posts,
                source=source,
            )
        )

    return ExamBoardsResponse(
        exam_slug=exam,
        exam_name=group.exam_name,
        description=group.description,
        read_only=not settings.is_exam_writable(exam),
        boards=previews,
    )


@router.get("/boards/{exam}/{board}/posts", response_model=BoardPostsResponse)
def board_posts(
    exam: str,
    board: str,
    db: DbClient = Depends(get_db_client),
    settings: Settings = Depends(get_settings),
):
    ensure_exam_readable(settings, exam)
    group = catalog.find_group(exam)
    info = group.board(board) if group else None
    record = None
    posts: list[PostSummary] = []
    try:
        record = db.find_board(exam, board)
        if record:
            posts = _post_summaries(db, db.list_posts([record.id]))
    except StoreError as exc:
        logger.warning("Board read failed for %s/%s: %s", exam, board, exc.message)
    if not record and not info:
        raise ApiError(status_code=404, detail="게시판을 찾을 수 없습니다.")

    source = "db"
    if not posts:
        posts, source = _seed_summaries(catalog.seed_posts(exam, board)), "seed"

    return BoardPostsResponse(
        exam_slug=exam,
        exam_name=catalog.exam_name(exam),
        board_slug=board,
        board_name=record.name if record else info.name,
        read_only=not settings.is_exam_writable(exam),
        source=source,
        posts=posts,
    )


def _bump_view_count(db: DbClient, post: PostRecord) -> int:
    """Best-effort read-increment-write; a failure keeps the old count."""
    views = (post.view_count or 0) + 1
    try:
        db.set_post_view_count(post.id, views)
    except StoreError as exc:
        logger.warning("View count update failed for %s: %s", post.id, exc.message)
        return post.view_count or 0
    return views


@router.get("/boards/{exam}/{board}/posts/{post_id}", response_model=PostDetailResponse)
def post_detail(
    exam: str,
    board: str,
    post_id: str,
    db: DbClient = Depends(get_db_client),
    settings: Settings = Depends(get_settings),
):
    ensure_exam_readable(settings, exam)
    read_only = not settings.is_exam_writable(exam)

    record = post = None
    if is_valid_uuid(post_id):
        try:
            record = db.find_board(exam, board)
            post = db.get_post(post_id) if record else None
        except StoreError as exc:
            logger.warning("Post read failed for %s: %s", post_id, exc.message)
    if post and post.board_id == record.id:
        views = _bump_view_count(db, post)
        comments = db.list_comments(post.id)
        adoption = db.get_adoption(post.id)
        return PostDetailResponse(
            post=PostDetail(
                id=post.id,
                exam_slug=exam,
                board_slug=board,
                board_name=record.name,
                title=post.title,
                author=post.author_name or ANONYMOUS_AUTHOR,
                content=post.content,
                post_type=post.post_type,
                views=views,
                likes=db.count_likes([post.id]).get(post.id, 0),
                created_at=iso(post.created_at),
                time_label=relative_time(post.created_at),
            ),
            comments=[
                CommentItem(
                    id=c.id,
                    parent_id=c.parent_id,
                    author=c.author_name or ANONYMOUS_AUTHOR,
                    content=c.content,
                    created_at=iso(c.created_at),
                )
                for c in comments
            ],
            adoption=AdoptionSummary(
                comment_id=adoption.comment_id,
                selected_author_name=adoption.selected_author_name,
                points_awarded=adoption.points_awarded,
            )
            if adoption
            else None,
            read_only=read_only,
        )

    sample = catalog.find_seed_post(exam, board, post_id)
    if not sample:
        raise ApiError(status_code=404, detail="게시글을 찾을 수 없습니다.")
    created_at = datetime.now(timezone.utc) - timedelta(seconds=sample.views * 10)
    return PostDetailResponse(
        post=PostDetail(
            id=sample.id,
            exam_slug=exam,
            board_slug=board,
            board_name=catalog.board_name(exam, board),
            title=sample.title,
            author=sample.author,
            content=catalog.SAMPLE_POST_BODY.format(title=sample.title),
            views=sample.views,
            likes=catalog.deterministic_like_count(sample.id, sample.comments),
            created_at=iso(created_at),
            time_label=sample.time_label,
            is_sample=True,
        ),
        comments=[],
        read_only=read_only,
    )


@router.post("/posts/create", response_model=CreatePostResponse)
def create_post(
    payload: CreatePostRequest,
    referer: Optional[str] = Header(default=None),
    db: DbClient = Depends(get_db_client),
    settings: Settings = Depends(get_settings),
):
    exam_slug = payload.exam_slug.strip()
    board_slug = payload.board_slug.strip()
    if not exam_slug or not board_slug:
        ref_exam, ref_board = board_from_referer(referer or "")
        exam_slug = exam_slug or ref_exam
        board_slug = board_slug or ref_board
    if not exam_slug or not board_slug:
        raise ApiError(status_code=400, detail="게시판 정보가 없습니다.")

    ensure_exam_writable(
        settings,
        exam_slug,
        "현재 CPA는 읽기 전용입니다. 게시글 작성은 편입에서 이용해 주세요.",
    )

    title = payload.title.strip()
    content = payload.content.strip()
    if not title:
        raise ApiError(status_code=400, detail="제목을 입력해 주세요.")
    if not content:
        raise ApiError(status_code=400, detail="내용을 입력해 주세요.")

    group = catalog.find_group(exam_slug)
    info = group.board(board_slug) if group else None
    exam = db.upsert_exam(
        exam_slug,
        group.exam_name if group else exam_slug,
        group.description if group else None,
    )
    board = db.upsert_board(
        exam.id,
        board_slug,
        catalog.board_name(exam_slug, board_slug),
        info.description if info else None,
    )
    post = db.create_post(
        board.id,
        author_name=author_or_anonymous(payload.author_name),
        title=title,
        content=content,
        post_type=catalog.post_type_for_board(board_slug),
    )
    logger.info("Created post %s on %s/%s", post.id, exam_slug, board_slug)
    return CreatePostResponse(id=post.id)


@router.post("/posts/like", response_model=LikeResponse)
def toggle_like(
    payload: LikeRequest,
    db: DbClient = Depends(get_db_client),
    settings: Settings = Depends(get_settings),
):
    post_id = payload.post_id.strip()
    user_id = payload.user_id.strip()
    if not is_valid_uuid(post_id):
        raise ApiError(status_code=400, detail="게시글 정보가 올바르지 않습니다.")
    if not is_valid_uuid(user_id):
        raise ApiError(status_code=401, detail="로그인이 필요합니다.")

    post = db.get_post(post_id)
    if not post:
        raise ApiError(status_code=404, detail="게시글 정보를 확인할 수 없습니다.")
    exam_slug = _post_exam_slug(db, post) or ""
    ensure_exam_writable(
        settings,
        exam_slug,
        "현재 CPA는 읽기 전용입니다. 좋아요 기능은 편입에서 이용해 주세요.",
    )

    if db.has_like(post_id, user_id):
        db.remove_like(post_id, user_id)
        return LikeResponse(liked=False)
    db.add_like(post_id, user_id)
    return LikeResponse(liked=True)


@router.post("/comments/create", response_model=CreateCommentResponse)
def create_comment(
    payload: CreateCommentRequest,
    db: DbClient = Depends(get_db_client),
    settings: Settings = Depends(get_settings),
):
    post_id = payload.post_id.strip()
    parent_id = (payload.parent_id or "").strip() or None
    content = payload.content.strip()

    if not post_id:
        raise ApiError(status_code=400, detail="게시글 정보가 없습니다.")
    # Sample posts carry non-UUID ids.
    if not is_valid_uuid(post_id):
        raise ApiError(status_code=400, detail="샘플 게시글에는 댓글을 작성할 수 없습니다.")
    if parent_id and not is_valid_uuid(parent_id):
        raise ApiError(status_code=400, detail="유효하지 않은 답글 대상입니다.")
    if not content:
        raise ApiError(status_code=400, detail="댓글 내용을 입력해 주세요.")

    post = db.get_post(post_id)
    exam_slug = _post_exam_slug(db, post) if post else None
    if not post or exam_slug is None:
        raise ApiError(status_code=404, detail="게시글 정보를 확인할 수 없습니다.")
    ensure_exam_writable(
        settings,
        exam_slug,
        "현재 CPA는 읽기 전용입니다. 댓글 작성은 편입 커뮤니티에서 가능합니다.",
    )

    comment = db.create_comment(
        post_id,
        author_name=author_or_anonymous(payload.author_name),
        content=content,
        parent_id=parent_id,
    )
    return CreateCommentResponse(id=comment.id)


@router.post("/comments/adopt", response_model=AdoptResponse)
def adopt_comment(
    payload: AdoptRequest,
    db: DbClient = Depends(get_db_client),
    settings: Settings = Depends(get_settings),
):
    """Mark a comment as the accepted answer and credit its author."""
    post_id = payload.post_id.strip()
    comment_id = payload.comment_id.strip()
    adopter_name = payload.adopter_name.strip()

    if not is_valid_uuid(post_id) or not is_valid_uuid(comment_id):
        raise ApiError(status_code=400, detail="유효하지 않은 요청입니다.")
    if not adopter_name:
        raise ApiError(status_code=401, detail="로그인 정보가 필요합니다.")

    post = db.get_post(post_id)
    if not post:
        raise ApiError(status_code=404, detail="게시글을 찾을 수 없습니다.")
    ensure_exam_writable(
        settings,
        _post_exam_slug(db, post) or "",
        "현재 CPA는 읽기 전용입니다. 답변 채택은 편입 커뮤니티에서 가능합니다.",
    )

    if (post.author_name or "").strip() != adopter_name:
        raise ApiError(status_code=403, detail="게시글 작성자만 채택할 수 있습니다.")
    if db.get_adoption(post_id):
        raise ApiError(status_code=409, detail="이미 채택된 답변이 있습니다.")

    comment = db.get_comment(comment_id)
    if not comment or comment.post_id != post_id:
        raise ApiError(status_code=400, detail="댓글 정보를 확인할 수 없습니다.")

    selected_author = (comment.author_name or "").strip() or ANONYMOUS_AUTHOR
    profile = db.find_profile(display_name=selected_author)
    awarded, source = adoption_award(bool(profile) and is_verified(profile.verification_level))

    db.create_adoption(
        post_id,
        comment_id,
        adopter_name=adopter_name,
        selected_author_name=selected_author,
        points_awarded=awarded,
    )
    db.add_ledger_entry(
        profile_id=profile.id if profile else None,
        receiver_name=selected_author,
        source=source,
        amount=awarded,
        meta={"post_id": post_id, "comment_id": comment_id},
    )
    if profile:
        db.increment_profile_points(profile.id, awarded)
    logger.info("Adopted comment %s on post %s (+%d)", comment_id, post_id, awarded)

    return AdoptResponse(
        awarded=awarded,
        selected_author_name=selected_author,
        adopted_comment_id=comment_id,
    )
