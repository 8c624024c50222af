"""
Exam calendar with D-day labels.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional

from hapgyeokpan.catalog import UPCOMING_EXAMS, ScheduledExam

SOON_WINDOW_DAYS = 30


@dataclass
class DDay:
    id: str
    title: str
    exam_date: date
    days_left: int
    label: str
    is_soon: bool


def d_day_label(days_left: int) -> str:
    if days_left < 0:
        return f"D+{abs(days_left)}"
    if days_left == 0:
        return "D-Day"
    return f"D-{days_left}"


def build_schedule(
    today: Optional[date] = None, exams: Iterable[ScheduledExam] = UPCOMING_EXAMS
) -> list[DDay]:
    today = today or date.today()
    schedule = []
    for exam in exams:
        days_left = (exam.exam_date - today).days
        schedule.append(
            DDay(
                id=exam.id,
                title=exam.title,
                exam_date=exam.exam_date,
                days_left=days_left,
                label=d_day_label(days_left),
                is_soon=0 <= days_left <= SOON_WINDOW_DAYS,
            )
        )
    return schedule
