"""Append-only audit trail for card mutations.

Each append commits on its own, after the mutation it describes has been
committed. A failure here propagates to the caller; the mutation itself is
not rolled back.
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from .db import Activity

logger = logging.getLogger(__name__)

CREATED = "created"
TITLE = "title"
DESCRIPTION = "description"
MOVED = "moved"
COMMENT = "comment"


class ActivityLogger:
    def __init__(self, db: Session) -> None:
        self.db = db

    def append(self, card_id: str, actor_id: str, action: str, details: Optional[str] = None) -> Activity:
        activity = Activity(card_id=card_id, user_id=actor_id, action=action, details=details)
        self.db.add(activity)
        self.db.commit()
        logger.debug("activity %s on card %s by %s", action, card_id, actor_id)
        return activity

    def for_card(self, card_id: str) -> list[Activity]:
        """Activity of ``card_id``, newest first."""
        stmt = (
            select(Activity)
            .where(Activity.card_id == card_id)
            .order_by(Activity.created_at.desc(), Activity.id.desc())
        )
        return list(self.db.scalars(stmt))
