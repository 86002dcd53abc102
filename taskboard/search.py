"""Card search across the boards a user belongs to."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from .config import settings
from .db import BoardList, BoardMember, Card, CardLabel
from .errors import Forbidden
from .utils import now_utc, to_utc

DUE_BUCKETS = ("overdue", "today", "week", "none")


@dataclass
class SearchFilter:
    text: Optional[str] = None
    labels: list[str] = field(default_factory=list)
    due: Optional[str] = None
    board_id: Optional[str] = None


def start_of_local_day(now: datetime) -> datetime:
    """Local midnight of the day containing ``now``."""
    local = now.astimezone()
    return local.replace(hour=0, minute=0, second=0, microsecond=0)


def due_window(bucket: str, now: datetime) -> tuple[Optional[datetime], Optional[datetime]]:
    """Half-open ``[lower, upper)`` UTC bounds on the due date for ``bucket``.

    ``none`` has no window; callers match a missing due date instead.
    """
    today = start_of_local_day(now)
    if bucket == "overdue":
        return None, to_utc(today)
    if bucket == "today":
        return to_utc(today), to_utc(today + timedelta(days=1))
    if bucket == "week":
        return to_utc(today), to_utc(today + timedelta(days=7))
    if bucket == "none":
        return None, None
    raise ValueError(f"unknown due bucket: {bucket}")


def accessible_board_ids(db: Session, user_id: str) -> set[str]:
    return set(db.scalars(select(BoardMember.board_id).where(BoardMember.user_id == user_id)))


def search_cards(
    db: Session,
    user_id: str,
    flt: SearchFilter,
    now: Optional[datetime] = None,
    limit: Optional[int] = None,
) -> list[Card]:
    """Cards matching ``flt`` on boards visible to ``user_id``, most recently updated first."""
    board_ids = accessible_board_ids(db, user_id)
    if flt.board_id:
        if flt.board_id not in board_ids:
            raise Forbidden("Access denied to this board", code="board_forbidden")
        board_ids = {flt.board_id}

    stmt = (
        select(Card)
        .join(BoardList, Card.list_id == BoardList.id)
        .where(BoardList.board_id.in_(sorted(board_ids)))
    )

    terms = (flt.text or "").split()
    if terms:
        stmt = stmt.where(
            or_(
                *[Card.title.icontains(term, autoescape=True) for term in terms],
                *[Card.description.icontains(term, autoescape=True) for term in terms],
            )
        )
    if flt.labels:
        stmt = stmt.where(Card.id.in_(select(CardLabel.card_id).where(CardLabel.label.in_(flt.labels))))
    if flt.due:
        if flt.due == "none":
            stmt = stmt.where(Card.due_date.is_(None))
        else:
            lower, upper = due_window(flt.due, now or now_utc())
            stmt = stmt.where(Card.due_date.is_not(None))
            if lower is not None:
                stmt = stmt.where(Card.due_date >= lower)
            stmt = stmt.where(Card.due_date < upper)

    stmt = stmt.order_by(Card.updated_at.desc(), Card.id).limit(limit or settings.SEARCH_LIMIT)
    return list(db.scalars(stmt))
