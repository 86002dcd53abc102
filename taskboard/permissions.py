"""Board-scoped role resolution and the authorization gate.

Roles are not ordered: every check site names the exact set of roles it
accepts, so ``admin`` passes an editor-level check only where it is listed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from fastapi import Depends, Request
from sqlalchemy import select
from sqlalchemy.orm import Session

from .auth import get_current_user
from .db import BoardMember, get_db
from .errors import Forbidden

logger = logging.getLogger(__name__)


class Role(str, Enum):
    ADMIN = "admin"
    EDITOR = "editor"
    VIEWER = "viewer"


ANY_MEMBER = frozenset({Role.ADMIN, Role.EDITOR, Role.VIEWER})
EDITORS = frozenset({Role.ADMIN, Role.EDITOR})
ADMINS = frozenset({Role.ADMIN})


@dataclass(frozen=True)
class BoardAccess:
    board_id: str
    user_id: str
    role: Role


def resolve_role(db: Session, user_id: str, board_id: str) -> Optional[Role]:
    """Return the caller's role on ``board_id`` or ``None`` when not a member."""
    member = db.scalar(
        select(BoardMember).where(BoardMember.board_id == board_id, BoardMember.user_id == user_id)
    )
    if member is None:
        return None
    return Role(member.role)


def authorize(db: Session, user_id: str, board_id: str, allowed: frozenset[Role]) -> Role:
    role = resolve_role(db, user_id, board_id)
    if role is None:
        raise Forbidden("You do not have access to this board.", code="not_a_member")
    if role not in allowed:
        raise Forbidden("Insufficient permissions.", code="insufficient_role")
    return role


def require_board_role(allowed: frozenset[Role]) -> Callable[..., BoardAccess]:
    """Build a dependency that gates a ``{board_id}`` route on ``allowed`` roles.

    The resolved role is also left on ``request.state.board_role``.
    """

    def dependency(
        board_id: str,
        request: Request,
        user_id: str = Depends(get_current_user),
        db: Session = Depends(get_db),
    ) -> BoardAccess:
        role = authorize(db, user_id, board_id, allowed)
        request.state.board_role = role
        return BoardAccess(board_id=board_id, user_id=user_id, role=role)

    return dependency
