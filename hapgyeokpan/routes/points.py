"""
Point balance and recent ledger for one member.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from hapgyeokpan.db import DbClient, ProfileRecord
from hapgyeokpan.dependencies import get_db_client
from hapgyeokpan.errors import ApiError
from hapgyeokpan.points import (
    LEDGER_LIMIT,
    merge_ledger,
    owner_name,
    summarize_points,
    verification_label,
)
from hapgyeokpan.routes.common import iso
from hapgyeokpan.schemas import LedgerItem, PointsResponse
from hapgyeokpan.validation import is_valid_uuid

router = APIRouter(prefix="/points", tags=["points"])


def _lookup_profile(db: DbClient, nickname: str, user_id: str) -> ProfileRecord | None:
    profile = db.get_profile(user_id) if is_valid_uuid(user_id) else None
    if not profile and nickname:
        profile = db.find_profile(display_name=nickname)
    if not profile and nickname:
        profile = db.find_profile(username=nickname)
    return profile


@router.get("/me", response_model=PointsResponse)
def my_points(
    nickname: str = Query(default=""),
    user_id: str = Query(default="", alias="userId"),
    db: DbClient = Depends(get_db_client),
):
    nickname = nickname.strip()
    user_id = user_id.strip()
    if not nickname and not user_id:
        raise ApiError(status_code=400, detail="nickname 또는 userId가 필요합니다.")

    profile = _lookup_profile(db, nickname, user_id)
    name = owner_name(profile, nickname)

    by_profile = db.list_ledger(profile_id=profile.id, limit=LEDGER_LIMIT) if profile else []
    by_name = db.list_ledger(receiver_name=name, limit=LEDGER_LIMIT) if name else []
    ledger = merge_ledger(by_profile, by_name)

    return PointsResponse(
        owner_name=name,
        points=summarize_points(profile, ledger),
        verification_level=verification_label(
            profile.verification_level if profile else None
        ),
        ledger=[
            LedgerItem(
                id=row.id,
                receiver_name=row.receiver_name,
                source=row.source,
                amount=row.amount,
                meta=row.meta,
                created_at=iso(row.created_at),
            )
            for row in ledger
        ],
    )
