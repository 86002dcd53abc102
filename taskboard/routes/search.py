from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..auth import get_current_user
from ..db import get_db
from ..schemas import card_out
from ..search import SearchFilter, search_cards

router = APIRouter(prefix="/search", tags=["search"])


def split_labels(raw: Optional[list[str]]) -> list[str]:
    """Accept both ``?labels=a&labels=b`` and ``?labels=a,b``."""
    labels: list[str] = []
    for value in raw or []:
        labels.extend(part.strip() for part in value.split(",") if part.strip())
    return labels


@router.get("", response_model=dict)
def search(
    q: Optional[str] = None,
    labels: Optional[list[str]] = Query(default=None),
    dueDate: Optional[Literal["overdue", "today", "week", "none"]] = None,
    boardId: Optional[str] = None,
    user: str = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    flt = SearchFilter(text=q, labels=split_labels(labels), due=dueDate, board_id=boardId)
    return {"cards": [card_out(card) for card in search_cards(db, user, flt)]}
