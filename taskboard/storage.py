from __future__ import annotations

import base64
import binascii
import logging
from datetime import datetime
from typing import Any, Optional

from fastapi import Depends
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from . import activity as actions
from . import ordering
from .activity import ActivityLogger
from .auth import hash_password, verify_password
from .db import Board, BoardList, BoardMember, Card, Comment, User, get_db
from .errors import Conflict, NotFound, Unauthenticated, ValidationFailed
from .permissions import Role
from .utils import now_utc, to_utc

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


class Storage:
    """Boards, lists, cards and their sub-records on top of one session.

    Every card lookup is scoped to the board named by the caller; a card that
    lives on another board is reported as missing.
    """

    def __init__(self, db: Session) -> None:
        self.db = db
        self.activity = ActivityLogger(db)

    def _commit_unique(self, message: str, code: str) -> None:
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise Conflict(message, code=code)

    # === User operations ===
    def register_user(self, name: str, email: str, password: str) -> User:
        email = normalize_email(email)
        if self.db.scalar(select(User).where(User.email == email)) is not None:
            raise Conflict("Email already registered.", code="email_taken")
        user = User(name=name.strip(), email=email, password_hash=hash_password(password))
        self.db.add(user)
        self._commit_unique("Email already registered.", "email_taken")
        logger.info("registered user %s", user.id)
        return user

    def authenticate(self, email: str, password: str) -> User:
        user = self.db.scalar(select(User).where(User.email == normalize_email(email)))
        # Same answer for unknown email and wrong password.
        if user is None or not verify_password(password, user.password_hash):
            raise Unauthenticated("Invalid email or password.", code="invalid_credentials")
        return user

    def get_user(self, user_id: str) -> User:
        user = self.db.get(User, user_id)
        if user is None:
            raise NotFound("User not found", code="user_not_found")
        return user

    # === Board operations ===
    def list_boards_for_user(self, user_id: str) -> list[tuple[Board, str]]:
        stmt = (
            select(Board, BoardMember.role)
            .join(BoardMember, BoardMember.board_id == Board.id)
            .where(BoardMember.user_id == user_id)
            .order_by(BoardMember.created_at.desc())
        )
        return [(board, role) for board, role in self.db.execute(stmt)]

    def create_board(self, owner_id: str, name: str) -> Board:
        board = Board(name=name.strip(), created_by=owner_id)
        self.db.add(board)
        self.db.flush()
        self.db.add(BoardMember(board_id=board.id, user_id=owner_id, role=Role.ADMIN.value))
        self.db.commit()
        logger.info("board %s created by %s", board.id, owner_id)
        return board

    def get_board(self, board_id: str) -> Board:
        board = self.db.get(Board, board_id)
        if board is None:
            raise NotFound("Board not found", code="board_not_found")
        return board

    def update_board(self, board: Board, name: Optional[str]) -> Board:
        if name is not None:
            board.name = name.strip()
        self.db.commit()
        return board

    def delete_board(self, board: Board) -> None:
        # Cascades to memberships, lists, their cards and the cards' comments/activity.
        board_id = board.id
        self.db.delete(board)
        self.db.commit()
        logger.info("board %s deleted", board_id)

    # === List operations ===
    def get_lists(self, board_id: str) -> list[BoardList]:
        stmt = select(BoardList).where(BoardList.board_id == board_id)
        return ordering.sorted_siblings(self.db.scalars(stmt))

    def get_list(
        self,
        board_id: str,
        list_id: str,
        message: str = "List not found",
        code: str = "list_not_found",
    ) -> BoardList:
        board_list = self.db.scalar(
            select(BoardList).where(BoardList.id == list_id, BoardList.board_id == board_id)
        )
        if board_list is None:
            raise NotFound(message, code=code)
        return board_list

    def create_list(self, board_id: str, title: str) -> BoardList:
        siblings = self.get_lists(board_id)
        board_list = BoardList(
            title=title.strip(),
            board_id=board_id,
            order=ordering.append_position(siblings),
        )
        self.db.add(board_list)
        self.db.commit()
        return board_list

    def update_list(self, board_list: BoardList, title: Optional[str], order: Optional[int]) -> BoardList:
        if title is not None:
            board_list.title = title.strip()
        if order is not None:
            board_list.order = order
        self.db.commit()
        return board_list

    def delete_list(self, board_list: BoardList) -> None:
        board_id, list_id = board_list.board_id, board_list.id
        self.db.delete(board_list)
        self.db.flush()
        ordering.close_gaps(self.get_lists(board_id))
        self.db.commit()
        logger.info("list %s deleted from board %s", list_id, board_id)

    def reorder_lists(self, board_id: str, list_ids: list[str]) -> list[BoardList]:
        ordering.apply_order(self.get_lists(board_id), list_ids)
        self.db.commit()
        return self.get_lists(board_id)

    # === Card operations ===
    def _cards_in_list(self, list_id: str) -> list[Card]:
        return ordering.sorted_siblings(self.db.scalars(select(Card).where(Card.list_id == list_id)))

    def list_cards(self, board_id: str) -> list[Card]:
        stmt = (
            select(Card)
            .join(BoardList, Card.list_id == BoardList.id)
            .where(BoardList.board_id == board_id)
            .order_by(Card.order, Card.created_at, Card.id)
        )
        return list(self.db.scalars(stmt))

    def get_card(self, board_id: str, card_id: str) -> Card:
        """Fetch ``card_id`` and check it belongs to ``board_id`` through its list."""
        card = self.db.get(Card, card_id)
        if card is None or card.board_list is None or card.board_list.board_id != board_id:
            raise NotFound("Card not found", code="card_not_found")
        return card

    def create_card(
        self,
        board_id: str,
        actor_id: str,
        list_id: str,
        title: str,
        description: Optional[str],
        due_date: Optional[datetime],
        labels: list[str],
    ) -> Card:
        board_list = self.get_list(board_id, list_id)
        card = Card(
            title=title.strip(),
            description=(description or "").strip(),
            list_id=board_list.id,
            order=ordering.append_position(self._cards_in_list(board_list.id)),
            due_date=to_utc(due_date),
            attachments=[],
            created_by=actor_id,
        )
        card.labels = labels
        self.db.add(card)
        self.db.commit()
        self.activity.append(card.id, actor_id, actions.CREATED, f'Card "{card.title}" created')
        return card

    def update_card(self, board_id: str, card: Card, actor_id: str, changes: dict[str, Any]) -> Card:
        """Apply the provided fields of a card patch, then log one activity per change kind."""
        logged: list[tuple[str, Optional[str]]] = []

        title = changes.get("title")
        if title is not None and title != card.title:
            card.title = title
            logged.append((actions.TITLE, f'Title changed to "{title}"'))
        if "description" in changes:
            description = (changes["description"] or "").strip()
            if description != card.description:
                card.description = description
                logged.append((actions.DESCRIPTION, None))
        if "dueDate" in changes:
            card.due_date = to_utc(changes["dueDate"])
        if changes.get("labels") is not None:
            card.labels = changes["labels"]

        moved = False
        target_id = changes.get("listId")
        if target_id is not None:
            target = self.get_list(board_id, target_id, "Target list not found", "target_list_not_found")
            if target.id != card.list_id:
                source = card.board_list
                card.list_id = target.id
                if changes.get("order") is None:
                    card.order = ordering.move_position(self._cards_in_list(target.id), card)
                ordering.close_gaps(s for s in self._cards_in_list(source.id) if s.id != card.id)
                logged.append((actions.MOVED, f'Moved from "{source.title}" to "{target.title}"'))
                moved = True
        if changes.get("order") is not None:
            card.order = changes["order"]

        # Label edits only touch card_labels, so onupdate alone would miss them.
        if changes:
            card.updated_at = now_utc()
        self.db.commit()
        if moved:
            logger.info("card %s moved to list %s", card.id, card.list_id)
        for action, details in logged:
            self.activity.append(card.id, actor_id, action, details)
        return card

    def delete_card(self, card: Card) -> None:
        # Comments, activity and labels go with the card.
        list_id = card.list_id
        self.db.delete(card)
        self.db.flush()
        ordering.close_gaps(self._cards_in_list(list_id))
        self.db.commit()

    def reorder_cards(self, board_id: str, list_id: str, card_ids: list[str]) -> list[Card]:
        board_list = self.get_list(board_id, list_id)
        ordering.apply_order(self._cards_in_list(board_list.id), card_ids)
        self.db.commit()
        return self._cards_in_list(board_list.id)

    def comments_for(self, card: Card) -> list[Comment]:
        stmt = (
            select(Comment)
            .where(Comment.card_id == card.id)
            .order_by(Comment.created_at.desc(), Comment.id.desc())
        )
        return list(self.db.scalars(stmt))

    def add_comment(self, card: Card, actor_id: str, text: str) -> Comment:
        comment = Comment(card_id=card.id, user_id=actor_id, text=text.strip())
        self.db.add(comment)
        self.db.commit()
        self.activity.append(card.id, actor_id, actions.COMMENT, comment.text[:50])
        return comment

    def add_attachment(self, card: Card, name: str, mime_type: str, size: int, data: str) -> Card:
        try:
            base64.b64decode(data, validate=True)
        except binascii.Error:
            raise ValidationFailed("Attachment data must be base64 encoded.", code="invalid_attachment_data")
        attachment = {
            "name": name,
            "mimeType": mime_type,
            "size": size,
            "data": data,
            "uploadedAt": now_utc().isoformat(),
        }
        # Reassign so the JSON column registers the change.
        card.attachments = [*(card.attachments or []), attachment]
        self.db.commit()
        return card

    def get_attachment(self, card: Card, index: int) -> dict[str, Any]:
        attachments = card.attachments or []
        if index < 0 or index >= len(attachments):
            raise NotFound("Attachment not found", code="attachment_not_found")
        return attachments[index]

    # === Member operations ===
    def list_members(self, board_id: str) -> list[BoardMember]:
        stmt = select(BoardMember).where(BoardMember.board_id == board_id).order_by(BoardMember.created_at)
        return list(self.db.scalars(stmt))

    def get_member(self, board_id: str, member_id: str) -> BoardMember:
        member = self.db.scalar(
            select(BoardMember).where(BoardMember.id == member_id, BoardMember.board_id == board_id)
        )
        if member is None:
            raise NotFound("Member not found", code="member_not_found")
        return member

    def invite_member(self, board_id: str, inviter_id: str, email: str, role: Role) -> BoardMember:
        user = self.db.scalar(select(User).where(User.email == normalize_email(email)))
        if user is None:
            raise NotFound("User not found with this email.", code="user_not_found")
        existing = self.db.scalar(
            select(BoardMember).where(BoardMember.board_id == board_id, BoardMember.user_id == user.id)
        )
        if existing is not None:
            raise Conflict("User is already a member.", code="already_member")
        member = BoardMember(board_id=board_id, user_id=user.id, role=role.value, invited_by=inviter_id)
        self.db.add(member)
        self._commit_unique("User is already a member.", "already_member")
        logger.info("user %s invited to board %s as %s", user.id, board_id, role.value)
        return member

    def _admin_count(self, board_id: str) -> int:
        return self.db.scalar(
            select(func.count())
            .select_from(BoardMember)
            .where(BoardMember.board_id == board_id, BoardMember.role == Role.ADMIN.value)
        )

    def update_member_role(self, board_id: str, member_id: str, role: Role) -> BoardMember:
        member = self.get_member(board_id, member_id)
        if member.role == Role.ADMIN.value and role != Role.ADMIN and self._admin_count(board_id) <= 1:
            raise Conflict("A board needs at least one admin.", code="last_admin")
        member.role = role.value
        self.db.commit()
        logger.info("member %s on board %s is now %s", member.user_id, board_id, role.value)
        return member

    def remove_member(self, board_id: str, member_id: str, requester_id: str) -> None:
        member = self.get_member(board_id, member_id)
        user_id = member.user_id
        if user_id == requester_id:
            raise ValidationFailed(
                "Cannot remove yourself. Leave or delete the board.", code="cannot_remove_self"
            )
        self.db.delete(member)
        self.db.commit()
        logger.info("member %s removed from board %s", user_id, board_id)

    def leave_board(self, board_id: str, user_id: str) -> None:
        member = self.db.scalar(
            select(BoardMember).where(BoardMember.board_id == board_id, BoardMember.user_id == user_id)
        )
        if member is None:
            raise NotFound("Member not found", code="member_not_found")
        if member.role == Role.ADMIN.value and self._admin_count(board_id) <= 1:
            raise Conflict(
                "The last admin cannot leave. Promote another admin or delete the board.",
                code="last_admin",
            )
        self.db.delete(member)
        self.db.commit()
        logger.info("user %s left board %s", user_id, board_id)


def get_storage(db: Session = Depends(get_db)) -> Storage:
    return Storage(db)
