"""
Instructor ranking aggregation: seed vote counts merged with real votes.
"""

from __future__ import annotations

import unicodedata
from collections import Counter
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Sequence

from hapgyeokpan.db import RankingRecord, VoteRecord


@dataclass
class RankedInstructor:
    id: str
    exam_slug: str
    subject: str
    instructor_name: str
    rank: int
    seed_rank: int
    initial_votes: int
    real_vote_count: int
    vote_count: int
    vote_percent: float
    source_type: str
    is_seed: bool


def _collate(value: str) -> tuple[str, str]:
    """
    Locale-style sort key: case-insensitive first, lowercase before uppercase
    on otherwise equal text. Hangul sorts by NFC code point, which is its
    dictionary order.
    """
    text = unicodedata.normalize("NFC", value)
    return text.casefold(), text.swapcase()


def percent_share(count: int, total: int) -> float:
    """Share of total as a percentage with one decimal, halves rounded up."""
    value = Decimal(str(count / total * 100))
    return float(value.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def tally_votes(votes: Iterable[VoteRecord]) -> Counter:
    return Counter(vote.instructor_name for vote in votes)


def aggregate_rankings(
    rankings: Sequence[RankingRecord], votes: Iterable[VoteRecord]
) -> tuple[list[RankedInstructor], int]:
    """
    Merge seed rows with vote tallies and re-rank by combined vote count.

    Ties fall back to the seed rank, then subject, then instructor name, so the
    result does not depend on the order of either input.
    Returns the ranked entries and the total vote count.
    """
    tally = tally_votes(votes)
    entries = []
    for row in rankings:
        initial_votes = max(0, row.confidence or 0)
        real_votes = tally.get(row.instructor_name, 0)
        entries.append(
            RankedInstructor(
                id=row.id,
                exam_slug=row.exam_slug,
                subject=row.subject,
                instructor_name=row.instructor_name,
                rank=row.rank,
                seed_rank=row.rank,
                initial_votes=initial_votes,
                real_vote_count=real_votes,
                vote_count=initial_votes + real_votes,
                vote_percent=0,
                source_type=row.source_type or "manual",
                is_seed=bool(row.is_seed),
            )
        )

    entries.sort(
        key=lambda e: (
            -e.vote_count,
            e.seed_rank,
            _collate(e.subject),
            _collate(e.instructor_name),
            e.id,
        )
    )

    total_votes = sum(e.vote_count for e in entries)
    for position, entry in enumerate(entries, start=1):
        entry.rank = position
        if total_votes > 0:
            entry.vote_percent = percent_share(entry.vote_count, total_votes)
    return entries, total_votes
