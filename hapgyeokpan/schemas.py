"""
Pydantic schemas for the community API.

JSON keys are camelCase on the wire; request bodies also accept snake_case.
"""

from __future__ import annotations

from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class OkResponse(ApiModel):
    ok: Literal[True] = True


# Auth


class CheckAvailabilityRequest(ApiModel):
    username: str = ""
    nickname: str = ""
    email: str = ""


class AvailabilityResponse(OkResponse):
    available: bool


class LoginRequest(ApiModel):
    username: str = ""
    password: str = ""


class SignupRequest(ApiModel):
    username: str = ""
    nickname: str = ""
    email: str = ""
    password: str = ""


class SendCodeRequest(ApiModel):
    email: str = ""


class OAuthFinalizeRequest(ApiModel):
    access_token: str = ""
    refresh_token: str = ""
    expires_at: Optional[Union[float, str]] = None


class SessionUser(ApiModel):
    id: str
    email: str = ""
    username: str
    nickname: str


class SessionTokens(BaseModel):
    # Mirrors the auth provider's session shape so clients can restore it as-is.
    access_token: str
    refresh_token: str
    expires_at: Optional[Union[int, float]] = None


class SessionResponse(OkResponse):
    user: SessionUser
    session: SessionTokens


# Community


class BoardSummary(ApiModel):
    slug: str
    name: str
    description: str


class ExamGroupSummary(ApiModel):
    exam_slug: str
    exam_name: str
    description: str
    boards: list[BoardSummary]


class CatalogResponse(OkResponse):
    groups: list[ExamGroupSummary]


class PostSummary(ApiModel):
    id: str
    title: str
    author: str
    comments: int
    likes: int = 0
    views: int = 0
    created_at: Optional[str] = None
    time_label: Optional[str] = None
    is_sample: bool = False


class BoardPreview(ApiModel):
    slug: str
    name: str
    description: str
    posts: list[PostSummary]
    source: Literal["db", "seed"]


class ExamBoardsResponse(OkResponse):
    exam_slug: str
    exam_name: str
    description: str
    read_only: bool
    boards: list[BoardPreview]


class FeedSection(ApiModel):
    exam_slug: str
    exam_name: str
    board_slug: str
    board_name: str
    posts: list[PostSummary]
    source: Literal["db", "seed"]


class FeedResponse(OkResponse):
    sections: list[FeedSection]


class BoardPostsResponse(OkResponse):
    exam_slug: str
    exam_name: str
    board_slug: str
    board_name: str
    read_only: bool
    source: Literal["db", "seed"]
    posts: list[PostSummary]


class CommentItem(ApiModel):
    id: str
    parent_id: Optional[str] = None
    author: str
    content: str
    created_at: Optional[str] = None


class AdoptionSummary(ApiModel):
    comment_id: str
    selected_author_name: str
    points_awarded: int


class PostDetail(ApiModel):
    id: str
    exam_slug: str
    board_slug: str
    board_name: str
    title: str
    author: str
    content: str
    post_type: str = "general"
    views: int = 0
    likes: int = 0
    created_at: Optional[str] = None
    time_label: Optional[str] = None
    is_sample: bool = False


class PostDetailResponse(OkResponse):
    post: PostDetail
    comments: list[CommentItem]
    adoption: Optional[AdoptionSummary] = None
    read_only: bool


class CreatePostRequest(ApiModel):
    exam_slug: str = ""
    board_slug: str = ""
    author_name: str = ""
    title: str = ""
    content: str = ""


class CreatePostResponse(OkResponse):
    id: str


class LikeRequest(ApiModel):
    post_id: str = ""
    user_id: str = ""


class LikeResponse(OkResponse):
    liked: bool


class CreateCommentRequest(ApiModel):
    post_id: str = ""
    parent_id: Optional[str] = None
    author_name: str = ""
    content: str = ""


class CreateCommentResponse(OkResponse):
    id: str


class AdoptRequest(ApiModel):
    post_id: str = ""
    comment_id: str = ""
    adopter_name: str = ""


class AdoptResponse(OkResponse):
    awarded: int
    selected_author_name: str
    adopted_comment_id: str


# Rankings


class RankingItem(ApiModel):
    id: str
    exam_slug: str
    subject: str
    instructor_name: str
    rank: int
    vote_count: int
    vote_percent: float


class RankingsResponse(OkResponse):
    source: Literal["db"] = "db"
    total_votes: int
    rankings: list[RankingItem]


class VoteRequest(ApiModel):
    instructor_name: str = ""


class VoteStatusResponse(OkResponse):
    has_voted: bool
    instructor_name: Optional[str] = None
    voted_at: Optional[str] = None


class VoteResponse(OkResponse):
    already_voted: bool
    instructor_name: str
    voted_at: Optional[str] = None


# Cutoffs, briefings, schedule


class CutoffItem(ApiModel):
    id: str
    exam_slug: str
    university: str
    major: str
    year: int
    score_band: str
    note: str = ""


class CutoffsResponse(OkResponse):
    source: Literal["db", "seed"]
    cutoffs: list[CutoffItem]


class PredictRequest(ApiModel):
    exam: str = "transfer"
    university: str = ""
    year: Optional[Union[float, str]] = None
    score: Optional[Union[float, str]] = None
    wrong_count: Optional[Union[float, str]] = 0


class PredictResponse(OkResponse):
    university: str
    year: int
    tier: str
    strategy: str
    reason: str
    cutoff_low: float
    cutoff_high: float
    adjusted_score: float
    wrong_penalty: float
    margin: float
    sample_count: int


class BriefingItem(ApiModel):
    id: str
    exam_slug: str
    title: str
    summary: str
    source_label: str = ""
    published_at: str


class BriefingsResponse(OkResponse):
    source: Literal["db", "seed"]
    briefings: list[BriefingItem]


class ScheduleItem(ApiModel):
    id: str
    title: str
    date: str
    days_left: int
    label: str
    is_soon: bool


class ScheduleResponse(OkResponse):
    today: str
    exams: list[ScheduleItem]


# Points, profile, uploads, verification


class LedgerItem(ApiModel):
    id: str
    receiver_name: str
    source: str
    amount: int
    meta: Optional[dict] = None
    created_at: str


class PointsResponse(OkResponse):
    owner_name: str
    points: int
    verification_level: str
    ledger: list[LedgerItem]


class ProfileUpdateRequest(ApiModel):
    access_token: str = ""
    user_id: str = ""
    nickname: str = ""


class ProfileUser(ApiModel):
    id: str
    username: str
    nickname: str


class ProfileUpdateResponse(OkResponse):
    user: ProfileUser


class UploadResponse(OkResponse):
    url: str
    filename: str


class VerificationSubmitRequest(ApiModel):
    requester_name: str = ""
    exam_slug: str = ""
    verification_type: str = ""
    evidence_url: str = ""
    memo: Optional[str] = None
    user_id: Optional[str] = None


class VerificationSubmitResponse(OkResponse):
    id: str
    status: str


# Admin


class AdminUser(ApiModel):
    id: str
    email: str


class AdminMeResponse(OkResponse):
    user: AdminUser
    is_admin: bool
    can_bootstrap: bool
    admin_email_configured: bool


class BootstrapResponse(OkResponse):
    is_admin: bool
    upgraded: bool


class AdminRankingItem(ApiModel):
    id: str
    subject: str
    instructor_name: str
    rank: int
    initial_rank: int
    initial_votes: int
    real_vote_count: int
    source_type: str
    is_seed: bool
    vote_count: int
    vote_percent: float


class AdminRankingsResponse(OkResponse):
    total_votes: int
    rankings: list[AdminRankingItem]


class AdminRankingUpsertRequest(ApiModel):
    subject: str = ""
    instructor_name: str = ""
    initial_rank: Optional[float] = None
    initial_votes: Optional[float] = None


class AdminDeleteRequest(ApiModel):
    id: str = ""
    exam: str = ""


class AdminCutoffItem(ApiModel):
    id: str
    exam_slug: str
    university: str
    major: str
    year: int
    result_type: str
    note: str
    input_basis: str


class AdminCutoffsResponse(OkResponse):
    cutoffs: list[AdminCutoffItem]


class AdminCutoffUpsertRequest(ApiModel):
    exam: str = ""
    university: str = ""
    major: str = ""
    year: Optional[Union[float, str]] = None
    result_type: str = ""
    input_basis: str = ""
    note: str = ""


class VerificationItem(ApiModel):
    id: str
    profile_id: Optional[str] = None
    requester_name: str
    exam_slug: str
    verification_type: str
    evidence_url: str
    memo: Optional[str] = None
    status: str
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[str] = None
    created_at: str


class VerificationListResponse(OkResponse):
    requests: list[VerificationItem]


class VerificationReviewRequest(ApiModel):
    decision: str = ""


class VerificationReviewResponse(OkResponse):
    request: VerificationItem
    verification_level: Optional[str] = None


class HealthResponse(ApiModel):
    status: str
    version: str
    timestamp: str
