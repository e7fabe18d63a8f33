"""Rank promotion eligibility and promotion commit."""

from collections.abc import Iterable
from dataclasses import replace
from datetime import date

from academy.domain.errors import NotExamReadyError
from academy.domain.models import Member, PromotionHistoryItem, Rank
from academy.domain.value_objects import MemberStatus

ELIGIBLE_STATUSES = frozenset({MemberStatus.ACTIVE, MemberStatus.DEBTOR})


def find_rank(ranks: Iterable[Rank], rank_id: str) -> Rank | None:
    return next((r for r in ranks if r.id == rank_id), None)


def next_rank(ranks: Iterable[Rank], current: Rank) -> Rank | None:
    """Return the rank with the smallest ordinal above `current`."""
    higher = [r for r in ranks if r.ordinal > current.ordinal]
    return min(higher, key=lambda r: r.ordinal, default=None)


def evaluate(member: Member, ranks: Iterable[Rank]) -> Member:
    """Move an active or debtor member to exam_ready once they meet their
    rank's attendance requirement.

    Unknown ranks leave the member unchanged; rank data may still be loading.
    """
    rank = find_rank(ranks, member.rank_id)
    if rank is None:
        return member
    if (
        member.attendance_count >= rank.required_attendance
        and member.status in ELIGIBLE_STATUSES
    ):
        return replace(member, status=MemberStatus.EXAM_READY)
    return member


def commit_promotion(member: Member, ranks: Iterable[Rank], today: date) -> Member:
    """Advance an exam-ready member to the next rank by ordinal.

    Attendance is reset, status returns to active and the previous rank is
    recorded in the promotion history. A member at the top rank, or holding
    an unknown rank, is returned unchanged.

    Raises:
        NotExamReadyError: If the member is not exam_ready.
    """
    ranks = list(ranks)
    current = find_rank(ranks, member.rank_id)
    if current is None:
        return member
    target = next_rank(ranks, current)
    if target is None:
        return member
    if member.status is not MemberStatus.EXAM_READY:
        raise NotExamReadyError(member.id)

    entry = PromotionHistoryItem(
        rank_name=current.name,
        date=today,
        notes=f"Promoted to {target.name}",
    )
    return replace(
        member,
        rank_id=target.id,
        attendance_count=0,
        attendance_history=(),
        status=MemberStatus.ACTIVE,
        promotion_history=(entry,) + member.promotion_history,
    )
